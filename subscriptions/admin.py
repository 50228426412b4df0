"""
Admin configuration for subscriptions and content grants.

Status changes made here bypass the account projection, so both models
are read-only; use the admin API (``subscriptions.lifecycle`` and
``subscriptions.entitlements``) to change them.
"""

from django.contrib import admin
from django.utils.html import format_html

from .models import ContentAccessGrant, Subscription, SubscriptionStatus


class ReadOnlyAdminMixin:
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Subscription)
class SubscriptionAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = [
        "user_email",
        "plan_id",
        "status_badge",
        "current_period_end",
        "cancel_at_period_end",
        "created_at",
    ]
    list_filter = ["status", "plan_id", "cancel_at_period_end", "created_at"]
    search_fields = ["user__email"]

    fieldsets = (
        ("User", {"fields": ("user",)}),
        ("Plan", {"fields": ("plan_id", "amount", "currency", "interval")}),
        ("Subscription Status", {"fields": ("status", "cancel_at_period_end", "cancelled_at")}),
        ("Billing Period", {
            "fields": ("current_period_start", "current_period_end", "trial_start", "trial_end"),
        }),
        ("Metadata", {
            "fields": ("metadata", "created_at", "updated_at"),
            "classes": ("collapse",),
        }),
    )

    def user_email(self, obj):
        return obj.user.email
    user_email.short_description = "User"
    user_email.admin_order_field = "user__email"

    def status_badge(self, obj):
        """Display status with colored badge."""
        colors = {
            SubscriptionStatus.ACTIVE: "#22C55E",
            SubscriptionStatus.PAST_DUE: "#F59E0B",
            SubscriptionStatus.CANCELLED: "#EF4444",
            SubscriptionStatus.EXPIRED: "#9CA3AF",
        }
        color = colors.get(obj.status, "#9CA3AF")
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 10px; '
            'border-radius: 12px; font-size: 11px; font-weight: 600;">{}</span>',
            color,
            obj.get_status_display(),
        )
    status_badge.short_description = "Status"
    status_badge.admin_order_field = "status"


@admin.register(ContentAccessGrant)
class ContentAccessGrantAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ["user", "content_type", "content_id", "access_granted", "expires_at", "access_reason"]
    list_filter = ["content_type", "access_granted", "access_reason"]
    search_fields = ["user__email", "content_id"]
