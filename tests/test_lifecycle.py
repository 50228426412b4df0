"""
Tests for subscription lifecycle and the account projection.
"""

from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.utils import timezone

from accounts.models import AccountSubscriptionStatus, PAID_TIERS, SubscriptionTier
from audit.models import AuditLog, AuditSeverity
from core.exceptions import Conflict, Forbidden, InvalidInput, InvalidState, NotFound
from subscriptions import lifecycle, tasks
from subscriptions.entitlements import check_access
from subscriptions.models import BillingInterval, Subscription, SubscriptionStatus


def assert_projection_consistent(account):
    """An active subscription exists exactly when the projection is active."""
    account.refresh_from_db()
    active = Subscription.objects.filter(user=account, status=SubscriptionStatus.ACTIVE).first()
    if active is not None:
        assert account.subscription_status == AccountSubscriptionStatus.ACTIVE
        assert account.subscription_tier == active.tier
    if account.subscription_status == AccountSubscriptionStatus.ACTIVE:
        assert active is not None
    if account.subscription_tier == SubscriptionTier.FREE:
        assert active is None


@pytest.fixture
def lapsed(user):
    """A premium subscription whose billing period ended yesterday."""
    subscription = lifecycle.create_subscription(user, "premium_monthly")
    Subscription.objects.filter(pk=subscription.pk).update(
        current_period_end=timezone.now() - timedelta(days=1)
    )
    return subscription


class TestAddInterval:
    """Billing period arithmetic."""

    def test_monthly(self):
        start = datetime(2024, 3, 15, 10, 30, tzinfo=dt_timezone.utc)
        assert lifecycle.add_interval(start, BillingInterval.MONTH) == datetime(2024, 4, 15, 10, 30, tzinfo=dt_timezone.utc)

    def test_month_end_clamps(self):
        assert lifecycle.add_interval(datetime(2023, 1, 31), BillingInterval.MONTH) == datetime(2023, 2, 28)
        assert lifecycle.add_interval(datetime(2024, 1, 31), BillingInterval.MONTH) == datetime(2024, 2, 29)

    def test_december_rolls_year(self):
        assert lifecycle.add_interval(datetime(2024, 12, 10), BillingInterval.MONTH) == datetime(2025, 1, 10)

    def test_yearly_leap_day_clamps(self):
        assert lifecycle.add_interval(datetime(2024, 2, 29), BillingInterval.YEAR) == datetime(2025, 2, 28)


@pytest.mark.django_db
class TestCreateSubscription:

    def test_create_sets_period_and_projection(self, user):
        subscription = lifecycle.create_subscription(user, "premium_monthly", payment_method_ref="pm_123")

        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.amount == 999
        assert subscription.interval == BillingInterval.MONTH
        assert subscription.metadata["payment_method_ref"] == "pm_123"
        assert subscription.current_period_end == lifecycle.add_interval(
            subscription.current_period_start, BillingInterval.MONTH
        )
        assert user.subscription_tier == SubscriptionTier.PREMIUM
        assert user.subscription_status == AccountSubscriptionStatus.ACTIVE
        assert_projection_consistent(user)

    def test_enterprise_plan_projects_enterprise_tier(self, user):
        lifecycle.create_subscription(user, "enterprise_yearly")

        user.refresh_from_db()
        assert user.subscription_tier == SubscriptionTier.ENTERPRISE

    def test_unknown_plan(self, user):
        with pytest.raises(InvalidInput):
            lifecycle.create_subscription(user, "gold_weekly")

        assert not Subscription.objects.exists()

    def test_second_active_subscription_conflicts(self, user):
        lifecycle.create_subscription(user, "premium_monthly")

        with pytest.raises(Conflict):
            lifecycle.create_subscription(user, "enterprise_monthly")

        assert Subscription.objects.filter(user=user).count() == 1
        user.refresh_from_db()
        assert user.subscription_tier == SubscriptionTier.PREMIUM

    def test_new_subscription_after_cancel(self, user):
        first = lifecycle.create_subscription(user, "premium_monthly")
        lifecycle.cancel_subscription(user, first.pk)

        second = lifecycle.create_subscription(user, "enterprise_monthly")

        assert second.status == SubscriptionStatus.ACTIVE
        assert_projection_consistent(user)

    def test_audited(self, user):
        subscription = lifecycle.create_subscription(user, "premium_yearly")

        entry = AuditLog.objects.get(action="subscription_created")
        assert entry.resource_id == str(subscription.pk)
        assert entry.severity == AuditSeverity.MEDIUM
        assert entry.details["plan_id"] == "premium_yearly"


@pytest.mark.django_db
class TestCancelSubscription:

    def test_cancel_resets_projection(self, user):
        subscription = lifecycle.create_subscription(user, "premium_monthly")

        cancelled = lifecycle.cancel_subscription(user, subscription.pk)

        assert cancelled.status == SubscriptionStatus.CANCELLED
        assert cancelled.cancelled_at is not None
        assert cancelled.cancel_at_period_end is True
        user.refresh_from_db()
        assert user.subscription_tier == SubscriptionTier.FREE
        assert user.subscription_status == AccountSubscriptionStatus.INACTIVE

    def test_cannot_cancel_twice(self, user):
        subscription = lifecycle.create_subscription(user, "premium_monthly")
        lifecycle.cancel_subscription(user, subscription.pk)

        with pytest.raises(InvalidState):
            lifecycle.cancel_subscription(user, subscription.pk)

    def test_cannot_cancel_someone_elses(self, user, make_user):
        other = make_user()
        subscription = lifecycle.create_subscription(other, "premium_monthly")

        with pytest.raises(NotFound):
            lifecycle.cancel_subscription(user, subscription.pk)

        subscription.refresh_from_db()
        assert subscription.status == SubscriptionStatus.ACTIVE


@pytest.mark.django_db
class TestAdminUpdateSubscription:

    def test_admin_cancel_revokes_global_access(self, admin, user):
        subscription = lifecycle.create_subscription(user, "enterprise_monthly")
        assert check_access(user.pk, "video", "v-1") is True

        lifecycle.admin_update_subscription(admin, subscription.pk, status=SubscriptionStatus.CANCELLED)

        subscription.refresh_from_db()
        assert subscription.cancelled_at is not None
        user.refresh_from_db()
        assert user.subscription_tier == SubscriptionTier.FREE
        assert user.subscription_status == AccountSubscriptionStatus.INACTIVE
        assert check_access(user.pk, "video", "v-1") is False

        entry = AuditLog.objects.get(action="admin_subscription_updated")
        assert entry.severity == AuditSeverity.HIGH
        assert entry.details["old_data"]["status"] == "active"
        assert entry.details["old_data"]["subscription_tier"] == "enterprise"
        assert entry.details["new_data"]["status"] == "cancelled"
        assert entry.details["new_data"]["subscription_tier"] == "free"

    def test_reactivate_projects_plan_tier(self, admin, user):
        subscription = lifecycle.create_subscription(user, "premium_monthly")
        lifecycle.cancel_subscription(user, subscription.pk)

        lifecycle.admin_update_subscription(admin, subscription.pk, status=SubscriptionStatus.ACTIVE)

        user.refresh_from_db()
        assert user.subscription_tier == SubscriptionTier.PREMIUM
        assert user.subscription_status == AccountSubscriptionStatus.ACTIVE

    def test_reactivating_alongside_another_active_conflicts(self, admin, user):
        old = lifecycle.create_subscription(user, "premium_monthly")
        lifecycle.cancel_subscription(user, old.pk)
        lifecycle.create_subscription(user, "enterprise_monthly")

        with pytest.raises(Conflict):
            lifecycle.admin_update_subscription(admin, old.pk, status=SubscriptionStatus.ACTIVE)

        old.refresh_from_db()
        assert old.status == SubscriptionStatus.CANCELLED
        assert_projection_consistent(user)

    def test_closing_old_record_keeps_other_active_projection(self, admin, user):
        old = lifecycle.create_subscription(user, "premium_monthly")
        lifecycle.cancel_subscription(user, old.pk)
        lifecycle.create_subscription(user, "enterprise_monthly")

        lifecycle.admin_update_subscription(admin, old.pk, status=SubscriptionStatus.EXPIRED)

        user.refresh_from_db()
        assert user.subscription_tier == SubscriptionTier.ENTERPRISE
        assert user.subscription_status == AccountSubscriptionStatus.ACTIVE

    def test_past_due_resets_projection(self, admin, user):
        subscription = lifecycle.create_subscription(user, "premium_monthly")

        lifecycle.admin_update_subscription(admin, subscription.pk, status=SubscriptionStatus.PAST_DUE)

        user.refresh_from_db()
        assert user.subscription_tier == SubscriptionTier.FREE
        assert user.subscription_status == AccountSubscriptionStatus.INACTIVE
        assert check_access(user.pk, "magazine", "1") is False
        assert_projection_consistent(user)

    def test_past_due_old_record_follows_other_active(self, admin, user):
        old = lifecycle.create_subscription(user, "premium_monthly")
        lifecycle.cancel_subscription(user, old.pk)
        lifecycle.create_subscription(user, "enterprise_monthly")

        lifecycle.admin_update_subscription(admin, old.pk, status=SubscriptionStatus.PAST_DUE)

        user.refresh_from_db()
        assert user.subscription_tier == SubscriptionTier.ENTERPRISE
        assert user.subscription_status == AccountSubscriptionStatus.ACTIVE
        assert_projection_consistent(user)

    def test_period_end_only(self, admin, user):
        subscription = lifecycle.create_subscription(user, "premium_monthly")
        new_end = timezone.now() + timedelta(days=90)

        updated = lifecycle.admin_update_subscription(admin, subscription.pk, current_period_end=new_end)

        assert updated.current_period_end == new_end
        assert updated.status == SubscriptionStatus.ACTIVE

    def test_unknown_status(self, admin, user):
        subscription = lifecycle.create_subscription(user, "premium_monthly")

        with pytest.raises(InvalidInput):
            lifecycle.admin_update_subscription(admin, subscription.pk, status="paused")

    def test_missing_subscription(self, admin):
        with pytest.raises(NotFound):
            lifecycle.admin_update_subscription(admin, 424242, status=SubscriptionStatus.CANCELLED)

    def test_requires_subscription_management(self, user, make_user):
        subscription = lifecycle.create_subscription(user, "premium_monthly")

        with pytest.raises(Forbidden):
            lifecycle.admin_update_subscription(make_user(), subscription.pk, status=SubscriptionStatus.CANCELLED)

        subscription.refresh_from_db()
        assert subscription.status == SubscriptionStatus.ACTIVE


@pytest.mark.django_db
class TestExpireLapsedSubscriptions:

    def test_expires_and_resets_projection(self, user, lapsed):
        assert lifecycle.expire_lapsed_subscriptions() == 1

        lapsed.refresh_from_db()
        assert lapsed.status == SubscriptionStatus.EXPIRED
        user.refresh_from_db()
        assert user.subscription_tier == SubscriptionTier.FREE
        assert user.subscription_status == AccountSubscriptionStatus.INACTIVE
        assert AuditLog.objects.filter(action="subscription_expired", resource_id=str(lapsed.pk)).count() == 1

    def test_second_run_is_a_noop(self, lapsed):
        lifecycle.expire_lapsed_subscriptions()

        assert lifecycle.expire_lapsed_subscriptions() == 0

    def test_current_subscriptions_untouched(self, user):
        subscription = lifecycle.create_subscription(user, "premium_monthly")

        assert lifecycle.expire_lapsed_subscriptions() == 0

        subscription.refresh_from_db()
        assert subscription.status == SubscriptionStatus.ACTIVE

    def test_period_end_boundary_counts_as_lapsed(self, user):
        subscription = lifecycle.create_subscription(user, "premium_monthly")

        assert lifecycle.expire_lapsed_subscriptions(now=subscription.current_period_end) == 1

    def test_celery_task(self, lapsed):
        assert tasks.expire_lapsed_subscriptions() == "Expired 1 subscriptions"


@pytest.mark.django_db
class TestProjectionInvariant:

    def test_provisional_premium_without_subscription(self, user):
        lifecycle.grant_provisional_premium(user)

        assert user.subscription_tier == SubscriptionTier.PREMIUM
        assert user.subscription_status == AccountSubscriptionStatus.ACTIVE
        assert not user.subscriptions.exists()

    def test_invariant_holds_through_lifecycle(self, admin, user):
        subscription = lifecycle.create_subscription(user, "premium_yearly")
        assert_projection_consistent(user)
        assert user.subscription_tier in PAID_TIERS

        lifecycle.admin_update_subscription(admin, subscription.pk, status=SubscriptionStatus.PAST_DUE)
        assert_projection_consistent(user)

        lifecycle.admin_update_subscription(admin, subscription.pk, status=SubscriptionStatus.ACTIVE)
        assert_projection_consistent(user)

        lifecycle.cancel_subscription(user, subscription.pk)
        assert_projection_consistent(user)
