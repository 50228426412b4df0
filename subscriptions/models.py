"""
Subscription and content-access models.

Subscriptions are abstract billing records; no payment gateway is involved.
The owning account's tier/status projection is maintained by
``subscriptions.lifecycle`` after every change made here.
"""

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from accounts.models import SubscriptionTier


class BillingInterval(models.TextChoices):
    MONTH = "month", "Monthly"
    YEAR = "year", "Yearly"


# Fixed plan table: amount in minor currency units
PLANS = {
    "premium_monthly": {"amount": 999, "interval": BillingInterval.MONTH, "tier": SubscriptionTier.PREMIUM},
    "premium_yearly": {"amount": 9999, "interval": BillingInterval.YEAR, "tier": SubscriptionTier.PREMIUM},
    "enterprise_monthly": {"amount": 2999, "interval": BillingInterval.MONTH, "tier": SubscriptionTier.ENTERPRISE},
    "enterprise_yearly": {"amount": 29999, "interval": BillingInterval.YEAR, "tier": SubscriptionTier.ENTERPRISE},
}

PLAN_CHOICES = [(plan_id, plan_id.replace("_", " ").title()) for plan_id in PLANS]


class SubscriptionStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    CANCELLED = "cancelled", "Cancelled"
    EXPIRED = "expired", "Expired"
    PAST_DUE = "past_due", "Past Due"


class Subscription(models.Model):
    """
    A paid subscription owned by one account.

    At most one subscription per account may be ``active``; the partial
    unique constraint below enforces it at the database level.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="subscriptions",
    )
    plan_id = models.CharField(max_length=40, choices=PLAN_CHOICES)
    status = models.CharField(
        max_length=20,
        choices=SubscriptionStatus.choices,
        default=SubscriptionStatus.ACTIVE,
    )

    # Billing dates
    current_period_start = models.DateTimeField(default=timezone.now)
    current_period_end = models.DateTimeField(
        help_text="End of current billing period",
    )
    cancel_at_period_end = models.BooleanField(
        default=False,
        help_text="Whether subscription will cancel at period end",
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)
    trial_start = models.DateTimeField(null=True, blank=True)
    trial_end = models.DateTimeField(null=True, blank=True)

    amount = models.PositiveIntegerField(help_text="Price in minor currency units")
    currency = models.CharField(max_length=3, default="usd")
    interval = models.CharField(max_length=10, choices=BillingInterval.choices)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "subscription"
        verbose_name_plural = "subscriptions"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "status"]),
            models.Index(fields=["status", "current_period_end"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["user"],
                condition=Q(status="active"),
                name="one_active_subscription_per_user",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.plan_id} for {self.user.email} ({self.status})"

    @property
    def tier(self) -> str:
        return PLANS[self.plan_id]["tier"]

    @property
    def is_in_trial(self) -> bool:
        now = timezone.now()
        return bool(
            self.trial_start and self.trial_end
            and self.trial_start <= now < self.trial_end
        )

    @property
    def is_in_paid_period(self) -> bool:
        """Check if current period end is still in the future."""
        return bool(self.current_period_end and self.current_period_end > timezone.now())

    @property
    def days_until_expiry(self) -> int | None:
        """Days remaining in the current billing period (0 once lapsed)."""
        if not self.current_period_end:
            return None
        delta = self.current_period_end - timezone.now()
        return max(0, delta.days)


class ContentType(models.TextChoices):
    MAGAZINE = "magazine", "Magazine"
    ARTICLE = "article", "Article"
    VIDEO = "video", "Video"
    DOCUMENT = "document", "Document"


class AccessReason(models.TextChoices):
    SUBSCRIPTION = "subscription", "Subscription"
    MANUAL_GRANT = "manual_grant", "Manual grant"
    TRIAL = "trial", "Trial"
    PROMOTION = "promotion", "Promotion"


class ContentAccessGrant(models.Model):
    """Explicit per-content access override with optional expiry."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="content_grants",
    )
    content_type = models.CharField(max_length=20, choices=ContentType.choices)
    content_id = models.CharField(max_length=100)
    access_granted = models.BooleanField(default=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    granted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="content_grants_given",
    )
    access_reason = models.CharField(
        max_length=20,
        choices=AccessReason.choices,
        default=AccessReason.MANUAL_GRANT,
    )
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "content access grant"
        verbose_name_plural = "content access grants"
        db_table = "subscriptions_content_access_grant"
        constraints = [
            models.UniqueConstraint(
                fields=["user", "content_type", "content_id"],
                name="unique_content_grant",
            ),
        ]
        indexes = [
            models.Index(fields=["expires_at"]),
        ]

    def __str__(self) -> str:
        state = "granted" if self.access_granted else "denied"
        return f"{self.user.email} {self.content_type}:{self.content_id} {state}"

    def is_valid(self, now=None) -> bool:
        """Granted and not expired; a grant expiring exactly at ``now`` is expired."""
        if not self.access_granted:
            return False
        if self.expires_at is None:
            return True
        return self.expires_at > (now or timezone.now())
