"""
Serializers for subscriptions and content access.
"""

from rest_framework import serializers

from .models import PLANS, AccessReason, ContentAccessGrant, ContentType, Subscription, SubscriptionStatus


class SubscriptionSerializer(serializers.ModelSerializer):
    tier = serializers.CharField(read_only=True)
    days_until_expiry = serializers.IntegerField(read_only=True)
    is_in_trial = serializers.BooleanField(read_only=True)
    is_in_paid_period = serializers.BooleanField(read_only=True)
    user_email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = Subscription
        fields = [
            "id",
            "user",
            "user_email",
            "plan_id",
            "tier",
            "status",
            "current_period_start",
            "current_period_end",
            "cancel_at_period_end",
            "cancelled_at",
            "trial_start",
            "trial_end",
            "is_in_trial",
            "is_in_paid_period",
            "days_until_expiry",
            "amount",
            "currency",
            "interval",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class SubscriptionCreateSerializer(serializers.Serializer):
    # Plan ids are validated by the lifecycle so unknown ones surface as InvalidInput
    plan_id = serializers.CharField(max_length=40)
    payment_method_ref = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class AdminSubscriptionUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=SubscriptionStatus.choices, required=False)
    current_period_end = serializers.DateTimeField(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Provide status and/or current_period_end.")
        return attrs


class ContentAccessGrantSerializer(serializers.ModelSerializer):
    is_valid = serializers.SerializerMethodField()

    class Meta:
        model = ContentAccessGrant
        fields = [
            "id",
            "user",
            "content_type",
            "content_id",
            "access_granted",
            "expires_at",
            "access_reason",
            "granted_by",
            "metadata",
            "is_valid",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_is_valid(self, obj) -> bool:
        return obj.is_valid()


class GrantAccessSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    content_type = serializers.ChoiceField(choices=ContentType.choices)
    content_id = serializers.CharField(max_length=100)
    expires_at = serializers.DateTimeField(required=False, allow_null=True, default=None)
    access_reason = serializers.ChoiceField(choices=AccessReason.choices, default=AccessReason.MANUAL_GRANT)
    metadata = serializers.DictField(required=False, default=dict)


class RevokeAccessSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    content_type = serializers.ChoiceField(choices=ContentType.choices)
    content_id = serializers.CharField(max_length=100)


def plan_catalogue() -> list[dict]:
    return [
        {"plan_id": plan_id, "amount": plan["amount"], "interval": plan["interval"], "tier": plan["tier"]}
        for plan_id, plan in PLANS.items()
    ]
