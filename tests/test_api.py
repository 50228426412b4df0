"""
API tests: request/response shapes and error rendering.
"""

import pytest
from django.urls import reverse
from rest_framework import status
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken

from accounts.models import RegistrationStatus, SubscriptionTier
from administration.models import AdminGrant
from audit.models import AuditLog
from subscriptions import entitlements, lifecycle
from subscriptions.models import Subscription


@pytest.mark.django_db
class TestAuthAPI:

    def test_register(self, api_client, password):
        response = api_client.post(
            reverse("accounts_api:register"),
            {
                "email": "newbie@example.com",
                "password": password,
                "password_confirm": password,
                "full_name": "New Bie",
                "payment_proof_reference": "receipt-9",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.data["data"]["user"]
        assert data["registration_status"] == RegistrationStatus.PAYMENT_SUBMITTED
        assert "password" not in data
        assert "access" not in response.data["data"]

    def test_register_password_mismatch(self, api_client, password):
        response = api_client.post(
            reverse("accounts_api:register"),
            {"email": "newbie@example.com", "password": password, "password_confirm": "nope"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "password_confirm" in response.data

    def test_register_duplicate_is_conflict(self, api_client, user, password):
        response = api_client.post(
            reverse("accounts_api:register"),
            {"email": user.email, "password": password, "password_confirm": password},
            format="json",
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data == {
            "success": False,
            "error": {"kind": "conflict", "message": "User already exists with this email."},
        }

    def test_login_returns_tokens_usable_for_me(self, api_client, user, password):
        response = api_client.post(
            reverse("accounts_api:login"),
            {"email": user.email, "password": password},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.data["data"]
        assert data["user"]["email"] == user.email

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {data['access']}")
        me = api_client.get(reverse("accounts_api:me"))
        assert me.status_code == status.HTTP_200_OK
        assert me.data["id"] == user.pk

    def test_login_pending_registration_forbidden(self, api_client, pending_user, password):
        response = api_client.post(
            reverse("accounts_api:login"),
            {"email": pending_user.email, "password": password},
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error"]["kind"] == "forbidden"
        assert response.data["error"]["registration_status"] == RegistrationStatus.PAYMENT_SUBMITTED

    def test_login_lockout_returns_423(self, api_client, user):
        for _ in range(5):
            response = api_client.post(
                reverse("accounts_api:login"),
                {"email": user.email, "password": "wrong-password"},
                format="json",
            )
            assert response.status_code == status.HTTP_401_UNAUTHORIZED

        response = api_client.post(
            reverse("accounts_api:login"),
            {"email": user.email, "password": "wrong-password"},
            format="json",
        )

        assert response.status_code == status.HTTP_423_LOCKED
        assert response.data["error"]["kind"] == "account_locked"
        assert "locked_until" in response.data["error"]

    def test_submit_payment_with_credentials(self, api_client, make_user, password):
        account = make_user(registration_status=RegistrationStatus.PENDING_PAYMENT)

        response = api_client.post(
            reverse("accounts_api:payment"),
            {"email": account.email, "password": password, "payment_proof_reference": "wire-55"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        account.refresh_from_db()
        assert account.registration_status == RegistrationStatus.PAYMENT_SUBMITTED

    def test_profile_update_cannot_touch_projection(self, authenticated_client, user):
        response = authenticated_client.patch(
            reverse("accounts_api:me"),
            {"full_name": "Renamed", "subscription_tier": "enterprise"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.full_name == "Renamed"
        assert user.subscription_tier == SubscriptionTier.FREE

    def test_me_requires_authentication(self, api_client):
        response = api_client.get(reverse("accounts_api:me"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_logout_revokes_refresh_token(self, api_client, user, password):
        tokens = api_client.post(
            reverse("accounts_api:login"),
            {"email": user.email, "password": password},
            format="json",
        ).data["data"]
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        response = api_client.post(reverse("accounts_api:logout"), {"refresh": tokens["refresh"]}, format="json")

        assert response.status_code == status.HTTP_200_OK
        assert BlacklistedToken.objects.count() == 1
        refreshed = api_client.post(reverse("token_refresh"), {"refresh": tokens["refresh"]}, format="json")
        assert refreshed.status_code == status.HTTP_401_UNAUTHORIZED

    def test_logout_with_invalid_token(self, authenticated_client):
        response = authenticated_client.post(
            reverse("accounts_api:logout"), {"refresh": "garbage"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"]["kind"] == "invalid_input"


@pytest.mark.django_db
class TestAdminAPI:

    def test_approve_registration(self, admin_client, pending_user):
        response = admin_client.post(
            reverse("admin_api:registration_approve", args=[pending_user.pk]),
            {"admin_notes": "ok"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.data["data"]["user"]
        assert data["registration_status"] == RegistrationStatus.APPROVED
        assert data["subscription_tier"] == SubscriptionTier.PREMIUM

    def test_approve_twice_is_invalid_state(self, admin_client, user):
        response = admin_client.post(reverse("admin_api:registration_approve", args=[user.pk]))

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error"]["kind"] == "invalid_state"

    def test_non_admin_cannot_reject(self, authenticated_client, pending_user):
        response = authenticated_client.post(reverse("admin_api:registration_reject", args=[pending_user.pk]))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["success"] is False
        assert response.data["error"]["kind"] == "forbidden"
        assert AuditLog.objects.filter(action="unauthorized_admin_access_attempt").exists()

    def test_list_registrations(self, admin_client, pending_user):
        response = admin_client.get(reverse("admin_api:registrations"))

        assert response.status_code == status.HTTP_200_OK
        users = response.data["data"]["users"]
        assert [u["email"] for u in users] == [pending_user.email]
        assert users[0]["payment_proof_reference"] == "receipt-001"

    def test_bulk_approve(self, admin_client, pending_user):
        response = admin_client.post(
            reverse("admin_api:registrations_bulk_approve"),
            {"scope": "all_unapproved"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["data"]["approved_count"] == 1

    def test_create_and_deactivate_grant(self, admin_client, user):
        created = admin_client.post(
            reverse("admin_api:grants"),
            {"user_id": user.pk, "role": "admin"},
            format="json",
        )
        assert created.status_code == status.HTTP_201_CREATED
        grant_id = created.data["data"]["admin"]["id"]

        response = admin_client.delete(reverse("admin_api:grant_detail", args=[grant_id]))

        assert response.status_code == status.HTTP_200_OK
        assert AdminGrant.objects.get(pk=grant_id).is_active is False

    def test_self_deactivation_conflict(self, admin_client, super_admin):
        response = admin_client.delete(reverse("admin_api:grant_detail", args=[super_admin.admin_grant.pk]))

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_audit_logs(self, admin_client, admin, pending_user):
        admin_client.post(reverse("admin_api:registration_approve", args=[pending_user.pk]))

        response = admin_client.get(reverse("admin_api:audit_logs"), {"action": "approved"})

        assert response.status_code == status.HTTP_200_OK
        logs = response.data["data"]["logs"]
        assert [log["action"] for log in logs] == ["user_approved"]
        assert response.data["data"]["pagination"]["total"] == 1

    def test_audit_logs_invalid_sort(self, admin_client):
        response = admin_client.get(reverse("admin_api:audit_logs"), {"sort_by": "password"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"]["kind"] == "invalid_input"

    def test_audit_logs_need_permission(self, api_client, admin):
        api_client.force_authenticate(user=admin)

        response = api_client.get(reverse("admin_api:audit_logs"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.parametrize(
        "route, key",
        [
            ("admin_api:stats_dashboard", "estimated_revenue"),
            ("admin_api:stats_subscriptions", "plan_stats"),
            ("admin_api:stats_content", "content_type_stats"),
            ("admin_api:stats_users", "premium_users"),
        ],
    )
    def test_stats_reports(self, admin_client, authenticated_client, route, key):
        response = admin_client.get(reverse(route))

        assert response.status_code == status.HTTP_200_OK
        assert key in response.data["data"]
        assert authenticated_client.get(reverse(route)).status_code == status.HTTP_403_FORBIDDEN

    def test_user_directory(self, admin_client, user, make_user):
        make_user(email="someone@example.com")
        lifecycle.create_subscription(user, "premium_monthly")

        listing = admin_client.get(reverse("admin_api:users"), {"subscription_tier": "premium"})

        assert listing.status_code == status.HTTP_200_OK
        assert [u["email"] for u in listing.data["data"]["users"]] == [user.email]
        assert listing.data["data"]["pagination"]["total"] == 1

        detail = admin_client.get(reverse("admin_api:user_detail", args=[user.pk]))

        assert detail.status_code == status.HTTP_200_OK
        assert detail.data["data"]["user"]["email"] == user.email
        assert [s["plan_id"] for s in detail.data["data"]["subscriptions"]] == ["premium_monthly"]
        assert detail.data["data"]["content_access"] == []

    def test_user_directory_needs_user_management(self, authenticated_client, user):
        response = authenticated_client.get(reverse("admin_api:user_detail", args=[user.pk]))

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestSubscriptionAPI:

    def test_purchase_and_cancel(self, authenticated_client, user):
        created = authenticated_client.post(
            reverse("subscriptions_api:subscriptions"),
            {"plan_id": "premium_monthly"},
            format="json",
        )
        assert created.status_code == status.HTTP_201_CREATED
        subscription_id = created.data["data"]["subscription"]["id"]
        assert created.data["data"]["subscription"]["tier"] == SubscriptionTier.PREMIUM

        cancelled = authenticated_client.post(reverse("subscriptions_api:cancel", args=[subscription_id]))

        assert cancelled.status_code == status.HTTP_200_OK
        assert cancelled.data["data"]["subscription"]["status"] == "cancelled"
        assert cancelled.data["data"]["subscription"]["is_in_paid_period"] is True
        user.refresh_from_db()
        assert user.subscription_tier == SubscriptionTier.FREE

    def test_unknown_plan(self, authenticated_client):
        response = authenticated_client.post(
            reverse("subscriptions_api:subscriptions"),
            {"plan_id": "platinum_forever"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"]["kind"] == "invalid_input"

    def test_second_subscription_conflict(self, authenticated_client, user):
        lifecycle.create_subscription(user, "premium_monthly")

        response = authenticated_client.post(
            reverse("subscriptions_api:subscriptions"),
            {"plan_id": "enterprise_monthly"},
            format="json",
        )

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_list_includes_plans(self, authenticated_client):
        response = authenticated_client.get(reverse("subscriptions_api:subscriptions"))

        assert response.status_code == status.HTTP_200_OK
        assert {p["plan_id"] for p in response.data["data"]["plans"]} == {
            "premium_monthly",
            "premium_yearly",
            "enterprise_monthly",
            "enterprise_yearly",
        }

    def test_admin_update(self, admin_client, user):
        subscription = lifecycle.create_subscription(user, "premium_monthly")

        response = admin_client.patch(
            reverse("subscriptions_api:admin_update", args=[subscription.pk]),
            {"status": "cancelled"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert Subscription.objects.get(pk=subscription.pk).status == "cancelled"

    def test_admin_list_requires_permission(self, authenticated_client):
        response = authenticated_client.get(reverse("subscriptions_api:admin_list"))

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestContentAPI:

    def test_check_access(self, authenticated_client, admin, user):
        entitlements.grant_access(admin, user.pk, "magazine", "42")

        granted = authenticated_client.get(reverse("content_api:check_access", args=["magazine", "42"]))
        denied = authenticated_client.get(reverse("content_api:check_access", args=["magazine", "43"]))

        assert granted.data["data"]["has_access"] is True
        assert denied.data["data"]["has_access"] is False

    def test_admin_grant_and_revoke(self, admin_client, user):
        payload = {"user_id": user.pk, "content_type": "video", "content_id": "v-1"}

        granted = admin_client.post(reverse("content_api:admin_grant"), payload, format="json")
        assert granted.status_code == status.HTTP_200_OK
        assert granted.data["data"]["grant"]["is_valid"] is True

        revoked = admin_client.post(reverse("content_api:admin_revoke"), payload, format="json")
        assert revoked.status_code == status.HTTP_200_OK
        assert revoked.data["data"]["grant"]["access_granted"] is False
        assert entitlements.check_access(user.pk, "video", "v-1") is False

    def test_my_access(self, authenticated_client, admin, user):
        entitlements.grant_access(admin, user.pk, "document", "d-1")

        response = authenticated_client.get(reverse("content_api:my_access"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["data"]["has_active_subscription"] is False
        assert [g["content_id"] for g in response.data["data"]["grants"]] == ["d-1"]

    def test_non_admin_grant_forbidden(self, authenticated_client, user):
        response = authenticated_client.post(
            reverse("content_api:admin_grant"),
            {"user_id": user.pk, "content_type": "video", "content_id": "v-1"},
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error"]["kind"] == "forbidden"
