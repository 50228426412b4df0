"""
Subscription lifecycle and the account tier/status projection.

This module is the only writer of ``User.subscription_tier`` and
``User.subscription_status``. Every mutation locks the owning account row
and recomputes the projection inside the same ``transaction.atomic()``
block, so readers never see an active subscription on a ``free`` account.
"""

import calendar
import logging
from datetime import datetime
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.utils import timezone

from accounts.models import AccountSubscriptionStatus, PROJECTION_FIELDS, SubscriptionTier
from administration.models import Permission
from administration.permissions import require_permission
from audit.context import SYSTEM_CONTEXT, AuditContext
from audit.models import AuditSeverity, ResourceType
from audit.utils import log_event
from core.exceptions import Conflict, InvalidInput, InvalidState, NotFound
from core.pagination import paginate
from .models import PLANS, BillingInterval, Subscription, SubscriptionStatus

logger = logging.getLogger(__name__)
User = get_user_model()


def add_interval(start: datetime, interval: str) -> datetime:
    """Advance ``start`` by one billing interval, clamping the day to month end."""
    months = 12 if interval == BillingInterval.YEAR else 1
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def _lock_account(user_id):
    account = User.objects.select_for_update().filter(pk=user_id).first()
    if account is None:
        raise NotFound("User not found.")
    return account


def _write_projection(account, tier: str, status: str) -> None:
    if account.subscription_tier == tier and account.subscription_status == status:
        return
    account.subscription_tier = tier
    account.subscription_status = status
    account.save(update_fields=[*PROJECTION_FIELDS, "updated_at"])


def _sync_caller_instance(user, account) -> None:
    # Keep an in-memory instance held by the caller (e.g. request.user) current
    if user is not None and user is not account and getattr(user, "pk", None) == account.pk:
        for field in PROJECTION_FIELDS:
            setattr(user, field, getattr(account, field))


def _projection_snapshot(account) -> dict:
    return {field: getattr(account, field) for field in PROJECTION_FIELDS}


def recompute_account_projection(subscription: Subscription, account=None):
    """
    Re-derive the owning account's tier/status after ``subscription`` changed.

    * active: tier becomes the plan's tier, status ``active``
    * anything else (cancelled, expired, past_due): the projection follows
      another still-active subscription of the account if there is one,
      otherwise it resets to ``free``/``inactive``

    Must run inside the transaction that mutated ``subscription``; the
    account row is locked here if the caller has not done so already.
    """
    if account is None:
        account = _lock_account(subscription.user_id)

    if subscription.status == SubscriptionStatus.ACTIVE:
        _write_projection(account, subscription.tier, AccountSubscriptionStatus.ACTIVE)
        return account

    other_active = (
        Subscription.objects.filter(user_id=account.pk, status=SubscriptionStatus.ACTIVE)
        .exclude(pk=subscription.pk)
        .order_by("-created_at", "-id")
        .first()
    )
    if other_active is None:
        _write_projection(account, SubscriptionTier.FREE, AccountSubscriptionStatus.INACTIVE)
    else:
        _write_projection(account, other_active.tier, AccountSubscriptionStatus.ACTIVE)
    return account


def grant_provisional_premium(user):
    """
    Approval-time projection write: ``premium``/``active`` with no
    subscription record behind it. Runs in the caller's transaction.
    """
    with transaction.atomic():
        account = _lock_account(user.pk)
        _write_projection(account, SubscriptionTier.PREMIUM, AccountSubscriptionStatus.ACTIVE)
    _sync_caller_instance(user, account)
    return account


def create_subscription(
    user,
    plan_id: str,
    payment_method_ref: str = "",
    context: Optional[AuditContext] = None,
) -> Subscription:
    """
    Start a subscription on ``plan_id`` for ``user``.

    Raises:
        InvalidInput: unknown plan
        Conflict: the account already holds an active subscription
    """
    plan = PLANS.get(plan_id)
    if plan is None:
        raise InvalidInput(f"Invalid plan: {plan_id}")

    with transaction.atomic():
        account = _lock_account(user.pk)
        if Subscription.objects.filter(user=account, status=SubscriptionStatus.ACTIVE).exists():
            raise Conflict("User already has an active subscription.")

        now = timezone.now()
        try:
            with transaction.atomic():
                subscription = Subscription.objects.create(
                    user=account,
                    plan_id=plan_id,
                    status=SubscriptionStatus.ACTIVE,
                    current_period_start=now,
                    current_period_end=add_interval(now, plan["interval"]),
                    amount=plan["amount"],
                    interval=plan["interval"],
                    metadata={
                        "payment_method_ref": payment_method_ref or "",
                        "created_via": "api",
                    },
                )
        except IntegrityError:
            raise Conflict("User already has an active subscription.")

        recompute_account_projection(subscription, account)

        log_event(
            action="subscription_created",
            resource_type=ResourceType.SUBSCRIPTION,
            resource_id=subscription.pk,
            actor=account,
            details={
                "plan_id": plan_id,
                "amount": subscription.amount,
                "interval": subscription.interval,
                "current_period_end": subscription.current_period_end,
            },
            severity=AuditSeverity.MEDIUM,
            context=context,
        )

    _sync_caller_instance(user, account)
    logger.info(f"Subscription {subscription.pk} ({plan_id}) created for user {account.pk}")
    return subscription


def cancel_subscription(user, subscription_id, context: Optional[AuditContext] = None) -> Subscription:
    """
    Cancel one of the caller's own subscriptions.

    Raises:
        NotFound: no such subscription owned by ``user``
        InvalidState: the subscription is not active
    """
    with transaction.atomic():
        account = _lock_account(user.pk)
        subscription = (
            Subscription.objects.select_for_update()
            .filter(pk=subscription_id, user=account)
            .first()
        )
        if subscription is None:
            raise NotFound("Subscription not found.")
        if subscription.status != SubscriptionStatus.ACTIVE:
            raise InvalidState("Only active subscriptions can be cancelled.")

        subscription.status = SubscriptionStatus.CANCELLED
        subscription.cancelled_at = timezone.now()
        subscription.cancel_at_period_end = True
        subscription.save(update_fields=["status", "cancelled_at", "cancel_at_period_end", "updated_at"])

        recompute_account_projection(subscription, account)

        log_event(
            action="subscription_cancelled",
            resource_type=ResourceType.SUBSCRIPTION,
            resource_id=subscription.pk,
            actor=account,
            details={
                "plan_id": subscription.plan_id,
                "cancelled_at": subscription.cancelled_at,
                "current_period_end": subscription.current_period_end,
            },
            severity=AuditSeverity.MEDIUM,
            context=context,
        )

    _sync_caller_instance(user, account)
    return subscription


def admin_update_subscription(
    actor,
    subscription_id,
    status: Optional[str] = None,
    current_period_end: Optional[datetime] = None,
    context: Optional[AuditContext] = None,
) -> Subscription:
    """
    Administrative override of a subscription's status and/or period end.

    Raises:
        InvalidInput: unknown status
        NotFound: no such subscription
        Conflict: activating while the account already has another active one
    """
    require_permission(actor, Permission.SUBSCRIPTION_MANAGEMENT, context)
    if status is not None and status not in SubscriptionStatus.values:
        raise InvalidInput(f"Invalid status: {status}")

    owner_id = Subscription.objects.filter(pk=subscription_id).values_list("user_id", flat=True).first()
    if owner_id is None:
        raise NotFound("Subscription not found.")

    with transaction.atomic():
        account = _lock_account(owner_id)
        subscription = Subscription.objects.select_for_update().filter(pk=subscription_id).first()
        if subscription is None:
            raise NotFound("Subscription not found.")

        old_data = {
            "status": subscription.status,
            "current_period_end": subscription.current_period_end,
            **_projection_snapshot(account),
        }
        update_fields = ["updated_at"]
        if status is not None:
            subscription.status = status
            update_fields.append("status")
            if status == SubscriptionStatus.CANCELLED and subscription.cancelled_at is None:
                subscription.cancelled_at = timezone.now()
                update_fields.append("cancelled_at")
        if current_period_end is not None:
            subscription.current_period_end = current_period_end
            update_fields.append("current_period_end")

        try:
            with transaction.atomic():
                subscription.save(update_fields=update_fields)
        except IntegrityError:
            raise Conflict("User already has an active subscription.")

        recompute_account_projection(subscription, account)

        log_event(
            action="admin_subscription_updated",
            resource_type=ResourceType.SUBSCRIPTION,
            resource_id=subscription.pk,
            actor=actor,
            details={
                "target_user_id": account.pk,
                "old_data": old_data,
                "new_data": {
                    "status": subscription.status,
                    "current_period_end": subscription.current_period_end,
                    **_projection_snapshot(account),
                },
            },
            severity=AuditSeverity.HIGH,
            context=context,
        )
    return subscription


def subscriptions_for(user):
    """The caller's own subscriptions, newest first."""
    return Subscription.objects.filter(user=user).order_by("-created_at", "-id")


def list_subscriptions(actor, filters: Optional[dict] = None, page: int = 1, limit: int = 20) -> dict:
    """Admin listing filtered by ``status``, ``plan_id`` or ``user_id``."""
    require_permission(actor, Permission.SUBSCRIPTION_MANAGEMENT)
    filters = filters or {}

    queryset = Subscription.objects.select_related("user")
    if filters.get("status"):
        if filters["status"] not in SubscriptionStatus.values:
            raise InvalidInput(f"Invalid status: {filters['status']}")
        queryset = queryset.filter(status=filters["status"])
    if filters.get("plan_id"):
        queryset = queryset.filter(plan_id=filters["plan_id"])
    if filters.get("user_id"):
        queryset = queryset.filter(user_id=filters["user_id"])

    subscriptions, pagination = paginate(queryset.order_by("-created_at", "-id"), page, limit)
    return {"subscriptions": subscriptions, "pagination": pagination}


def expire_lapsed_subscriptions(now: Optional[datetime] = None) -> int:
    """
    Mark active subscriptions whose period has ended as expired and
    recompute each owner's projection. Returns the number expired.
    """
    now = now or timezone.now()
    lapsed_ids = list(
        Subscription.objects.filter(
            status=SubscriptionStatus.ACTIVE,
            current_period_end__lte=now,
        ).values_list("id", flat=True)
    )

    expired = 0
    for subscription_id in lapsed_ids:
        with transaction.atomic():
            owner_id = Subscription.objects.filter(pk=subscription_id).values_list("user_id", flat=True).first()
            if owner_id is None:
                continue
            account = _lock_account(owner_id)
            subscription = (
                Subscription.objects.select_for_update()
                .filter(pk=subscription_id, status=SubscriptionStatus.ACTIVE, current_period_end__lte=now)
                .first()
            )
            # Changed concurrently since the scan
            if subscription is None:
                continue

            subscription.status = SubscriptionStatus.EXPIRED
            subscription.save(update_fields=["status", "updated_at"])
            recompute_account_projection(subscription, account)

            log_event(
                action="subscription_expired",
                resource_type=ResourceType.SUBSCRIPTION,
                resource_id=subscription.pk,
                details={
                    "target_user_id": account.pk,
                    "plan_id": subscription.plan_id,
                    "current_period_end": subscription.current_period_end,
                },
                severity=AuditSeverity.LOW,
                context=SYSTEM_CONTEXT,
            )
            expired += 1

    if expired:
        logger.info(f"Expired {expired} lapsed subscriptions")
    return expired
