"""
Serializers for the administration API.
"""

from rest_framework import serializers

from audit.models import AuditLog
from .models import AdminGrant, AdminRole, Permission


class AdminGrantSerializer(serializers.ModelSerializer):
    user_email = serializers.EmailField(source="user.email", read_only=True)
    created_by_email = serializers.EmailField(source="created_by.email", read_only=True, default=None)

    class Meta:
        model = AdminGrant
        fields = [
            "id",
            "user",
            "user_email",
            "role",
            "permissions",
            "is_active",
            "last_admin_login",
            "created_by_email",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AdminGrantCreateSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    role = serializers.ChoiceField(choices=AdminRole.choices, default=AdminRole.ADMIN)
    permissions = serializers.ListField(
        child=serializers.ChoiceField(choices=Permission.choices),
        required=False,
    )


class AdminGrantUpdateSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=AdminRole.choices, required=False)
    permissions = serializers.ListField(
        child=serializers.ChoiceField(choices=Permission.choices),
        required=False,
    )
    is_active = serializers.BooleanField(required=False)


class AuditLogSerializer(serializers.ModelSerializer):
    actor_email = serializers.EmailField(source="actor.email", read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = [
            "id",
            "actor",
            "actor_email",
            "action",
            "resource_type",
            "resource_id",
            "details",
            "severity",
            "outcome",
            "ip_address",
            "user_agent",
            "created_at",
        ]
        read_only_fields = fields


class AuditLogQuerySerializer(serializers.Serializer):
    """Query-string parameters of the audit log listing."""

    action = serializers.CharField(required=False)
    resource_type = serializers.CharField(required=False)
    severity = serializers.CharField(required=False)
    start_date = serializers.DateTimeField(required=False)
    end_date = serializers.DateTimeField(required=False)
    actor_id = serializers.IntegerField(required=False)
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1)
    sort_by = serializers.CharField(required=False, default="created_at")
    sort_order = serializers.ChoiceField(choices=["asc", "desc"], required=False, default="desc")


class UserListQuerySerializer(serializers.Serializer):
    """Query-string parameters of the admin account listing."""

    search = serializers.CharField(required=False)
    subscription_tier = serializers.CharField(required=False)
    subscription_status = serializers.CharField(required=False)
    start_date = serializers.DateTimeField(required=False)
    end_date = serializers.DateTimeField(required=False)
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1, default=20)
