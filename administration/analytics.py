"""
Read-only statistics for the admin dashboard.

Every function requires the ``analytics_view`` permission. Counts come from
the database in a handful of aggregate queries; amounts are minor currency
units.
"""

from datetime import timedelta

from django.contrib.auth import get_user_model
from django.db.models import Avg, Count, Q, Sum
from django.utils import timezone

from accounts.models import AccountSubscriptionStatus, SubscriptionTier
from audit.models import AuditLog
from subscriptions.models import PLANS, ContentAccessGrant, Subscription, SubscriptionStatus
from .models import AdminGrant, Permission
from .permissions import require_permission

User = get_user_model()

# Monthly list price per paid tier, used for the dashboard revenue estimate
TIER_MONTHLY_PRICE = {
    SubscriptionTier.PREMIUM: PLANS["premium_monthly"]["amount"],
    SubscriptionTier.ENTERPRISE: PLANS["enterprise_monthly"]["amount"],
}


def _start_of_month(now):
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _tier_breakdown(queryset) -> list[dict]:
    return list(
        queryset.values("subscription_tier")
        .annotate(count=Count("id"))
        .order_by("subscription_tier")
    )


def dashboard_stats(actor, context=None) -> dict:
    """Headline numbers: accounts, active members, admins, recent audit activity."""
    require_permission(actor, Permission.ANALYTICS_VIEW, context)
    now = timezone.now()

    active_accounts = User.objects.filter(subscription_status=AccountSubscriptionStatus.ACTIVE)
    breakdown = _tier_breakdown(active_accounts)
    estimated_revenue = sum(
        TIER_MONTHLY_PRICE.get(row["subscription_tier"], 0) * row["count"] for row in breakdown
    )

    return {
        "total_users": User.objects.count(),
        "active_subscriptions": active_accounts.count(),
        "total_admins": AdminGrant.objects.filter(is_active=True).count(),
        "recent_activity": AuditLog.objects.filter(created_at__gte=now - timedelta(hours=24)).count(),
        "new_users_this_week": User.objects.filter(created_at__gte=now - timedelta(days=7)).count(),
        "estimated_revenue": estimated_revenue,
        "subscription_breakdown": breakdown,
    }


def subscription_stats(actor, context=None) -> dict:
    """Subscription counts by status and plan, with revenue from active ones."""
    require_permission(actor, Permission.ANALYTICS_VIEW, context)

    counts = Subscription.objects.aggregate(
        total=Count("id"),
        active=Count("id", filter=Q(status=SubscriptionStatus.ACTIVE)),
        cancelled=Count("id", filter=Q(status=SubscriptionStatus.CANCELLED)),
        new_this_month=Count("id", filter=Q(created_at__gte=_start_of_month(timezone.now()))),
    )
    revenue = Subscription.objects.filter(status=SubscriptionStatus.ACTIVE).aggregate(
        total_revenue=Sum("amount"),
        avg_revenue=Avg("amount"),
    )
    plan_stats = list(
        Subscription.objects.values("plan_id")
        .annotate(count=Count("id"), revenue=Sum("amount"))
        .order_by("plan_id")
    )

    return {
        "total_subscriptions": counts["total"],
        "active_subscriptions": counts["active"],
        "cancelled_subscriptions": counts["cancelled"],
        "new_subscriptions_this_month": counts["new_this_month"],
        "revenue": {
            "total_revenue": revenue["total_revenue"] or 0,
            "avg_revenue": round(revenue["avg_revenue"], 2) if revenue["avg_revenue"] else 0,
        },
        "plan_stats": plan_stats,
    }


def content_stats(actor, context=None) -> dict:
    """Content access records by content type and by grant reason."""
    require_permission(actor, Permission.ANALYTICS_VIEW, context)

    content_type_stats = list(
        ContentAccessGrant.objects.values("content_type")
        .annotate(total=Count("id"), active=Count("id", filter=Q(access_granted=True)))
        .order_by("content_type")
    )
    access_reason_stats = list(
        ContentAccessGrant.objects.filter(access_granted=True)
        .values("access_reason")
        .annotate(count=Count("id"))
        .order_by("access_reason")
    )

    return {
        "total_access": ContentAccessGrant.objects.count(),
        "active_access": ContentAccessGrant.objects.filter(access_granted=True).count(),
        "content_type_stats": content_type_stats,
        "access_reason_stats": access_reason_stats,
    }


def user_overview(actor, context=None) -> dict:
    """Account counts by tier, plus this month's sign-ups."""
    require_permission(actor, Permission.ANALYTICS_VIEW, context)

    counts = User.objects.aggregate(
        total=Count("id"),
        active=Count("id", filter=Q(subscription_status=AccountSubscriptionStatus.ACTIVE)),
        premium=Count("id", filter=Q(subscription_tier=SubscriptionTier.PREMIUM)),
        enterprise=Count("id", filter=Q(subscription_tier=SubscriptionTier.ENTERPRISE)),
        new_this_month=Count("id", filter=Q(created_at__gte=_start_of_month(timezone.now()))),
    )

    return {
        "total_users": counts["total"],
        "active_subscriptions": counts["active"],
        "premium_users": counts["premium"],
        "enterprise_users": counts["enterprise"],
        "new_users_this_month": counts["new_this_month"],
        "subscription_stats": _tier_breakdown(User.objects.all()),
    }
