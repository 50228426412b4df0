"""
Read side of the audit trail: filtered, paginated log queries.
"""

from typing import Optional

from django.conf import settings

from administration.models import Permission
from administration.permissions import require_permission
from core.exceptions import InvalidInput
from core.pagination import paginate
from .models import AuditLog, AuditSeverity

SORTABLE_FIELDS = {"created_at", "action", "severity", "resource_type"}


def get_logs(
    filters: Optional[dict] = None,
    page: int = 1,
    limit: Optional[int] = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> dict:
    """
    Return one page of audit entries plus pagination metadata.

    Supported filters:
        action: case-insensitive substring of the action name
        resource_type: exact resource type
        severity: exact severity
        start_date / end_date: inclusive bounds on ``created_at``
        actor_id: acting account id

    Returns:
        dict: ``{"logs": [...], "pagination": {"page", "limit", "total", "pages"}}``
    """
    filters = filters or {}
    limit = limit or getattr(settings, "AUDIT_LOG_PAGE_SIZE", 50)
    if sort_by not in SORTABLE_FIELDS:
        raise InvalidInput(f"Cannot sort audit logs by '{sort_by}'.")
    if sort_order not in ("asc", "desc"):
        raise InvalidInput("Sort order must be 'asc' or 'desc'.")

    queryset = AuditLog.objects.select_related("actor")

    if filters.get("action"):
        queryset = queryset.filter(action__icontains=filters["action"])
    if filters.get("resource_type"):
        queryset = queryset.filter(resource_type=filters["resource_type"])
    if filters.get("severity"):
        if filters["severity"] not in AuditSeverity.values:
            raise InvalidInput(f"Unknown severity '{filters['severity']}'.")
        queryset = queryset.filter(severity=filters["severity"])
    if filters.get("start_date"):
        queryset = queryset.filter(created_at__gte=filters["start_date"])
    if filters.get("end_date"):
        queryset = queryset.filter(created_at__lte=filters["end_date"])
    if filters.get("actor_id"):
        queryset = queryset.filter(actor_id=filters["actor_id"])

    prefix = "-" if sort_order == "desc" else ""
    # id breaks ties so pages stay stable
    queryset = queryset.order_by(f"{prefix}{sort_by}", f"{prefix}id")

    logs, pagination = paginate(queryset, page, limit)
    return {"logs": logs, "pagination": pagination}


def query_audit_logs(actor, filters: Optional[dict] = None, **options) -> dict:
    """``get_logs`` for an admin holding the ``audit_logs`` permission."""
    require_permission(actor, Permission.AUDIT_LOGS)
    return get_logs(filters, **options)
