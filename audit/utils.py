"""
Helpers for writing audit log entries.
"""

import logging
from typing import Optional

from django.db import DatabaseError, transaction

from .context import SYSTEM_CONTEXT, AuditContext
from .models import AuditLog, AuditOutcome, AuditSeverity

logger = logging.getLogger("audit")


def log_event(
    action: str,
    resource_type: str,
    resource_id: str = "",
    actor=None,
    details: Optional[dict] = None,
    severity: str = AuditSeverity.MEDIUM,
    outcome: str = AuditOutcome.SUCCESS,
    context: Optional[AuditContext] = None,
) -> Optional[AuditLog]:
    """
    Create an audit log entry without ever failing the caller.

    The insert runs in its own savepoint so a store error cannot abort
    the surrounding transaction; the error is logged and ``None`` is
    returned instead.
    """
    context = context or SYSTEM_CONTEXT
    if actor is None:
        actor = context.actor
    actor = actor if getattr(actor, "is_authenticated", False) else None

    log_data = {
        "action": action,
        "resource_type": resource_type,
        "resource_id": str(resource_id) if resource_id is not None else "",
        "actor_id": actor.pk if actor else None,
        "severity": str(severity),
        "outcome": str(outcome),
        "ip_address": context.ip_address,
    }
    if outcome == AuditOutcome.SUCCESS:
        logger.info(f"AUDIT: {action}", extra=log_data)
    else:
        logger.warning(f"AUDIT {str(outcome).upper()}: {action}", extra=log_data)

    try:
        with transaction.atomic():
            return AuditLog.objects.create(
                actor=actor,
                action=action,
                resource_type=resource_type,
                resource_id=log_data["resource_id"],
                details=details or {},
                severity=severity,
                outcome=outcome,
                ip_address=context.ip_address,
                user_agent=context.user_agent,
            )
    except DatabaseError as exc:
        logger.error(f"Failed to persist audit entry {action}: {exc}", extra=log_data)
        return None
