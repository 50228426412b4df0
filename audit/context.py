"""
Request provenance carried into audit entries.
"""

from dataclasses import dataclass


# Known private/internal IP ranges (for filtering X-Forwarded-For)
PRIVATE_IP_PREFIXES = (
    "10.",
    "172.16.", "172.17.", "172.18.", "172.19.",
    "172.20.", "172.21.", "172.22.", "172.23.",
    "172.24.", "172.25.", "172.26.", "172.27.",
    "172.28.", "172.29.", "172.30.", "172.31.",
    "192.168.",
    "127.",
    "::1",
    "fc00:",
    "fe80:",
)


def is_private_ip(ip: str) -> bool:
    if not ip:
        return True
    ip_lower = ip.lower().strip()
    if ip_lower in ("localhost", "unknown"):
        return True
    return any(ip_lower.startswith(prefix) for prefix in PRIVATE_IP_PREFIXES)


def get_client_ip(request) -> str:
    """
    Extract the caller's address, preferring the first public hop in
    X-Forwarded-For (at most 5 hops are considered).
    """
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        hops = [hop.strip() for hop in forwarded.split(",")][:5]
        for hop in hops:
            if hop and not is_private_ip(hop) and ("." in hop or ":" in hop):
                return hop
        if hops and hops[0]:
            return hops[0]
    return request.META.get("REMOTE_ADDR", "")


@dataclass(frozen=True)
class AuditContext:
    """Who is acting and from where, as recorded on each audit entry."""

    actor: object = None
    ip_address: str = ""
    user_agent: str = ""

    @classmethod
    def from_request(cls, request) -> "AuditContext":
        user = getattr(request, "user", None)
        return cls(
            actor=user if getattr(user, "is_authenticated", False) else None,
            ip_address=get_client_ip(request),
            user_agent=request.META.get("HTTP_USER_AGENT", "")[:200],
        )

    def for_actor(self, actor) -> "AuditContext":
        """Return a copy attributed to ``actor`` (used once a login resolves the account)."""
        return AuditContext(actor=actor, ip_address=self.ip_address, user_agent=self.user_agent)


SYSTEM_CONTEXT = AuditContext()
