"""
Admin configuration for admin grants.
"""

from django.contrib import admin

from .models import AdminGrant


@admin.register(AdminGrant)
class AdminGrantAdmin(admin.ModelAdmin):
    """Read-only; grants are managed through ``administration.permissions``."""

    list_display = ["user", "role", "is_active", "last_admin_login", "created_by", "created_at"]
    list_filter = ["role", "is_active"]
    search_fields = ["user__email"]
    readonly_fields = [field.name for field in AdminGrant._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
