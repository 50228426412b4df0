"""
Custom User model for the membership platform.

The account carries two independent status axes: registration/payment
(gates login) and a subscription projection (tier/status) that is kept
in sync by ``subscriptions.lifecycle`` and never written directly.
"""

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models
from django.utils import timezone


class RegistrationStatus(models.TextChoices):
    PENDING_PAYMENT = "pending_payment", "Pending payment"
    PAYMENT_SUBMITTED = "payment_submitted", "Payment submitted"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    VERIFIED = "verified", "Verified"
    REJECTED = "rejected", "Rejected"


class SubscriptionTier(models.TextChoices):
    FREE = "free", "Free"
    PREMIUM = "premium", "Premium"
    ENTERPRISE = "enterprise", "Enterprise"


class AccountSubscriptionStatus(models.TextChoices):
    INACTIVE = "inactive", "Inactive"
    ACTIVE = "active", "Active"
    CANCELLED = "cancelled", "Cancelled"
    EXPIRED = "expired", "Expired"


PAID_TIERS = (SubscriptionTier.PREMIUM, SubscriptionTier.ENTERPRISE)

# Fields written only through subscriptions.lifecycle
PROJECTION_FIELDS = ("subscription_tier", "subscription_status")


def normalize_account_email(email: str) -> str:
    """Accounts are keyed by trimmed, lower-cased email."""
    return (email or "").strip().lower()


class UserManager(BaseUserManager):
    """Custom user manager that uses email as the unique identifier."""

    @classmethod
    def normalize_email(cls, email):
        return normalize_account_email(email)

    def get_by_natural_key(self, username):
        return self.get(email=normalize_account_email(username))

    def create_user(self, email: str, password: str | None = None, **extra_fields):
        """Create and save a regular user with the given email and password."""
        if not email:
            raise ValueError("The Email field must be set")
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email: str, password: str | None = None, **extra_fields):
        """Create and save a Django superuser with the given email and password."""
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("registration_status", RegistrationStatus.APPROVED)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(email, password, **extra_fields)


class User(AbstractUser):
    """Membership account identified by email."""

    username = None
    email = models.EmailField("email address", unique=True)
    full_name = models.CharField(max_length=150, blank=True, default="")
    mobile_number = models.CharField(max_length=30, blank=True, default="")

    # Registration / payment verification
    registration_status = models.CharField(
        max_length=20,
        choices=RegistrationStatus.choices,
        default=RegistrationStatus.PENDING_PAYMENT,
        help_text="Gates login: only approved accounts may authenticate",
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_proof_reference = models.CharField(
        max_length=500,
        blank=True,
        default="",
        help_text="Opaque reference to the submitted payment proof",
    )
    payment_verified_at = models.DateTimeField(null=True, blank=True)
    admin_notes = models.TextField(blank=True, default="")
    is_email_verified = models.BooleanField(default=False)

    # Subscription projection (see subscriptions.lifecycle)
    subscription_tier = models.CharField(
        max_length=20,
        choices=SubscriptionTier.choices,
        default=SubscriptionTier.FREE,
    )
    subscription_status = models.CharField(
        max_length=20,
        choices=AccountSubscriptionStatus.choices,
        default=AccountSubscriptionStatus.INACTIVE,
    )

    # Credential lockout bookkeeping
    failed_login_attempts = models.PositiveIntegerField(default=0)
    lock_until = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        indexes = [
            models.Index(fields=["registration_status"]),
            models.Index(fields=["payment_status"]),
            models.Index(fields=["subscription_status"]),
            models.Index(fields=["subscription_tier"]),
        ]

    def __str__(self) -> str:
        return self.email

    def save(self, *args, **kwargs):
        self.email = normalize_account_email(self.email)
        super().save(*args, **kwargs)

    @property
    def is_locked(self) -> bool:
        return bool(self.lock_until and self.lock_until > timezone.now())

    @property
    def can_login(self) -> bool:
        return self.registration_status == RegistrationStatus.APPROVED

    def has_active_subscription(self) -> bool:
        """True when the projection grants global content access."""
        return (
            self.subscription_status == AccountSubscriptionStatus.ACTIVE
            and self.subscription_tier in PAID_TIERS
        )
