"""
Admin configuration for accounts app.

Registration decisions and the subscription projection are read-only
here: approvals go through the admin API so they are audited, and
tier/status are maintained by ``subscriptions.lifecycle``.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import PROJECTION_FIELDS, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Custom User admin keyed by email."""

    list_display = [
        "email",
        "full_name",
        "registration_status",
        "payment_status",
        "subscription_tier",
        "subscription_status",
        "created_at",
    ]
    list_filter = ["registration_status", "payment_status", "subscription_tier", "subscription_status", "is_staff"]
    search_fields = ["email", "full_name", "mobile_number"]
    ordering = ["-created_at"]

    readonly_fields = [
        "registration_status",
        "payment_status",
        "payment_verified_at",
        "payment_proof_reference",
        *PROJECTION_FIELDS,
        "failed_login_attempts",
        "lock_until",
        "last_login",
        "date_joined",
        "created_at",
        "updated_at",
    ]

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Profile", {"fields": ("full_name", "mobile_number", "is_email_verified")}),
        (
            "Registration",
            {
                "fields": (
                    "registration_status",
                    "payment_status",
                    "payment_proof_reference",
                    "payment_verified_at",
                    "admin_notes",
                ),
            },
        ),
        ("Subscription", {"fields": PROJECTION_FIELDS}),
        ("Security", {"fields": ("failed_login_attempts", "lock_until")}),
        (
            "Permissions",
            {
                "fields": (
                    "is_active",
                    "is_staff",
                    "is_superuser",
                    "groups",
                    "user_permissions",
                ),
            },
        ),
        ("Important dates", {"fields": ("last_login", "date_joined", "created_at", "updated_at")}),
    )
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "password1", "password2"),
            },
        ),
    )

    exclude = ["first_name", "last_name", "username"]
