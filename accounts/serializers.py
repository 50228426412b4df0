"""
Serializers for the accounts app.

Serializers only shape and validate input; state changes go through
``accounts.registration`` and ``accounts.authentication``.
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from .models import PROJECTION_FIELDS

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Public profile of an account; never includes the password hash."""

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "full_name",
            "mobile_number",
            "registration_status",
            "payment_status",
            "payment_verified_at",
            "is_email_verified",
            *PROJECTION_FIELDS,
            "last_login",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AdminUserSerializer(UserSerializer):
    """Account as seen by reviewers, including the payment proof and notes."""

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + [
            "payment_proof_reference",
            "admin_notes",
            "failed_login_attempts",
            "lock_until",
        ]
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Self-service profile edits; status and projection fields are not writable."""

    class Meta:
        model = User
        fields = ["full_name", "mobile_number"]


class RegisterSerializer(serializers.Serializer):
    """Input for registration, optionally with a payment-proof reference."""

    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        required=True,
        style={"input_type": "password"},
    )
    password_confirm = serializers.CharField(
        write_only=True,
        required=True,
        style={"input_type": "password"},
    )
    full_name = serializers.CharField(max_length=150, required=False, allow_blank=True, default="")
    mobile_number = serializers.CharField(max_length=30, required=False, allow_blank=True, default="")
    payment_proof_reference = serializers.CharField(
        max_length=500, required=False, allow_blank=True, default=""
    )

    def validate(self, attrs):
        """Validate that passwords match and meet the password policy."""
        if attrs["password"] != attrs["password_confirm"]:
            raise serializers.ValidationError(
                {"password_confirm": "Passwords do not match."}
            )
        candidate = User(email=attrs["email"], full_name=attrs.get("full_name", ""))
        try:
            validate_password(attrs["password"], candidate)
        except DjangoValidationError as exc:
            raise serializers.ValidationError({"password": list(exc.messages)})
        attrs.pop("password_confirm")
        return attrs


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(style={"input_type": "password"}, trim_whitespace=False)


class PaymentSubmissionSerializer(serializers.Serializer):
    payment_proof_reference = serializers.CharField(max_length=500)


class PasswordChangeSerializer(serializers.Serializer):
    """Serializer for password change."""

    old_password = serializers.CharField(
        required=True,
        style={"input_type": "password"},
    )
    new_password = serializers.CharField(
        required=True,
        style={"input_type": "password"},
    )
    new_password_confirm = serializers.CharField(
        required=True,
        style={"input_type": "password"},
    )

    def validate(self, attrs):
        """Validate passwords."""
        if attrs["new_password"] != attrs["new_password_confirm"]:
            raise serializers.ValidationError(
                {"new_password_confirm": "Passwords do not match."}
            )
        return attrs


class RegistrationDecisionSerializer(serializers.Serializer):
    admin_notes = serializers.CharField(required=False, allow_blank=True, default="")


class BulkApproveSerializer(serializers.Serializer):
    SCOPE_ALL = "all_unapproved"
    SCOPE_ACTIVE = "submitted_with_active_subscription"

    scope = serializers.ChoiceField(choices=[SCOPE_ALL, SCOPE_ACTIVE])


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField(required=True)
