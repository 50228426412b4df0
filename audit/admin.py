"""
Admin configuration for audit logs.
"""

from django.contrib import admin

from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Read-only view of the audit trail."""

    list_display = ["action", "resource_type", "resource_id", "severity", "outcome", "actor", "created_at"]
    list_filter = ["severity", "outcome", "resource_type", "created_at"]
    search_fields = ["action", "resource_type", "resource_id", "actor__email", "ip_address"]
    readonly_fields = [field.name for field in AuditLog._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
