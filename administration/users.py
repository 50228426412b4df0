"""
Account directory for admins holding ``user_management``.

Read-only: tier and status are owned by ``subscriptions.lifecycle`` and
registration state by ``accounts.registration``.
"""

from typing import Optional

from django.contrib.auth import get_user_model
from django.db.models import Q

from accounts.models import AccountSubscriptionStatus, SubscriptionTier
from audit.context import AuditContext
from audit.models import AuditSeverity, ResourceType
from audit.utils import log_event
from core.exceptions import InvalidInput, NotFound
from core.pagination import paginate
from subscriptions.models import ContentAccessGrant, Subscription
from .models import Permission
from .permissions import require_permission

User = get_user_model()


def list_users(
    actor,
    filters: Optional[dict] = None,
    page: int = 1,
    limit: int = 20,
    context: Optional[AuditContext] = None,
) -> dict:
    """
    Page through accounts, newest first.

    Supported filters:
        search: case-insensitive substring of email or full name
        subscription_tier / subscription_status: exact projection values
        start_date / end_date: inclusive bounds on ``created_at``
    """
    require_permission(actor, Permission.USER_MANAGEMENT, context)
    filters = filters or {}

    queryset = User.objects.all()
    if filters.get("search"):
        term = filters["search"]
        queryset = queryset.filter(Q(email__icontains=term) | Q(full_name__icontains=term))
    if filters.get("subscription_tier"):
        if filters["subscription_tier"] not in SubscriptionTier.values:
            raise InvalidInput(f"Invalid subscription tier: {filters['subscription_tier']}")
        queryset = queryset.filter(subscription_tier=filters["subscription_tier"])
    if filters.get("subscription_status"):
        if filters["subscription_status"] not in AccountSubscriptionStatus.values:
            raise InvalidInput(f"Invalid subscription status: {filters['subscription_status']}")
        queryset = queryset.filter(subscription_status=filters["subscription_status"])
    if filters.get("start_date"):
        queryset = queryset.filter(created_at__gte=filters["start_date"])
    if filters.get("end_date"):
        queryset = queryset.filter(created_at__lte=filters["end_date"])

    users, pagination = paginate(queryset.order_by("-created_at", "-id"), page, limit)

    log_event(
        action="users_list_viewed",
        resource_type=ResourceType.USER,
        actor=actor,
        details={"filters": filters, "total": pagination["total"]},
        severity=AuditSeverity.LOW,
        context=context,
    )
    return {"users": users, "pagination": pagination}


def get_user_detail(actor, user_id, context: Optional[AuditContext] = None) -> dict:
    """One account with its subscriptions and content access records."""
    require_permission(actor, Permission.USER_MANAGEMENT, context)
    user = User.objects.filter(pk=user_id).first()
    if user is None:
        raise NotFound("User not found.")

    return {
        "user": user,
        "subscriptions": list(Subscription.objects.filter(user=user).order_by("-created_at", "-id")),
        "content_access": list(ContentAccessGrant.objects.filter(user=user).order_by("-created_at", "-id")),
    }
