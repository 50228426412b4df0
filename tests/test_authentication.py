"""
Tests for login, credential lockout, password changes and logout.
"""

from datetime import timedelta

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken
from rest_framework_simplejwt.tokens import RefreshToken

from accounts import authentication
from accounts.models import RegistrationStatus
from audit.models import AuditLog, AuditOutcome, AuditSeverity
from core.exceptions import AccountLocked, Forbidden, InvalidInput, Unauthorized

User = get_user_model()


def _fail(user, times):
    for _ in range(times):
        with pytest.raises(Unauthorized):
            authentication.login(user.email, "wrong-password")


@pytest.mark.django_db
class TestLogin:
    """Credential checks for approved and unapproved accounts."""

    def test_successful_login(self, user, password):
        account = authentication.login("  TestUser@Example.com", password)

        assert account.pk == user.pk
        assert account.last_login is not None
        assert account.failed_login_attempts == 0
        entry = AuditLog.objects.get(action="user_login")
        assert entry.actor == user
        assert entry.details["is_admin"] is False

    def test_unknown_email_is_unauthorized(self, db, password):
        with pytest.raises(Unauthorized):
            authentication.login("nobody@example.com", password)

        entry = AuditLog.objects.get(action="login_failed")
        assert entry.details["reason"] == "unknown_email"
        assert entry.outcome == AuditOutcome.FAILURE

    def test_wrong_password_is_unauthorized_and_counted(self, user):
        with pytest.raises(Unauthorized):
            authentication.login(user.email, "wrong-password")

        user.refresh_from_db()
        assert user.failed_login_attempts == 1
        assert user.lock_until is None

    @pytest.mark.parametrize(
        "status,message",
        [
            (RegistrationStatus.PENDING_PAYMENT, "Please complete your registration with payment proof."),
            (RegistrationStatus.PAYMENT_SUBMITTED, "Your registration is pending admin approval."),
            (RegistrationStatus.REJECTED, "Your registration has been rejected. Please contact support."),
        ],
    )
    def test_unapproved_accounts_forbidden(self, make_user, password, status, message):
        user = make_user(registration_status=status)

        with pytest.raises(Forbidden) as exc_info:
            authentication.login(user.email, password)

        assert exc_info.value.message == message
        assert exc_info.value.extra["registration_status"] == status

    def test_admin_login_stamps_last_admin_login(self, super_admin, password):
        authentication.login(super_admin.email, password)

        super_admin.admin_grant.refresh_from_db()
        assert super_admin.admin_grant.last_admin_login is not None
        assert AuditLog.objects.get(action="user_login").details["is_admin"] is True


@pytest.mark.django_db
class TestLockout:
    """Five consecutive failures lock the account for two hours."""

    def test_fifth_failure_locks_account(self, user):
        _fail(user, 4)
        user.refresh_from_db()
        assert user.failed_login_attempts == 4
        assert user.lock_until is None

        with pytest.raises(Unauthorized):
            authentication.login(user.email, "wrong-password")

        user.refresh_from_db()
        assert user.failed_login_attempts == 5
        assert user.is_locked is True
        assert user.lock_until > timezone.now() + timedelta(minutes=119)
        locked = AuditLog.objects.get(action="account_locked")
        assert locked.severity == AuditSeverity.HIGH
        assert locked.outcome == AuditOutcome.WARNING

    def test_sixth_attempt_reports_lock(self, user):
        _fail(user, 5)
        user.refresh_from_db()

        with pytest.raises(AccountLocked) as exc_info:
            authentication.login(user.email, "wrong-password")

        assert exc_info.value.extra["locked_until"] == user.lock_until.isoformat()
        user.refresh_from_db()
        assert user.failed_login_attempts == 5

    def test_correct_password_refused_while_locked(self, user, password):
        _fail(user, 5)

        with pytest.raises(AccountLocked):
            authentication.login(user.email, password)

        user.refresh_from_db()
        assert user.failed_login_attempts == 5
        assert AuditLog.objects.filter(action="login_failed", details__reason="account_locked").count() == 1

    def test_expired_lock_is_cleared_on_success(self, user, password):
        _fail(user, 5)
        User.objects.filter(pk=user.pk).update(lock_until=timezone.now() - timedelta(seconds=1))

        account = authentication.login(user.email, password)

        assert account.failed_login_attempts == 0
        assert account.lock_until is None

    def test_expired_lock_restarts_counter_on_failure(self, user):
        _fail(user, 5)
        User.objects.filter(pk=user.pk).update(lock_until=timezone.now() - timedelta(seconds=1))

        with pytest.raises(Unauthorized):
            authentication.login(user.email, "wrong-password")

        user.refresh_from_db()
        assert user.failed_login_attempts == 1
        assert user.lock_until is None

    def test_success_resets_counter(self, user, password):
        _fail(user, 3)

        authentication.login(user.email, password)

        user.refresh_from_db()
        assert user.failed_login_attempts == 0

    def test_threshold_follows_settings(self, user, settings):
        settings.ACCOUNT_LOCKOUT_MAX_ATTEMPTS = 2

        _fail(user, 2)
        user.refresh_from_db()
        assert user.is_locked is True

        with pytest.raises(AccountLocked):
            authentication.login(user.email, "wrong-password")


@pytest.mark.django_db
class TestChangePassword:

    def test_change_password(self, user, password):
        authentication.change_password(user, password, "Another-Long-Passphrase-9")

        user.refresh_from_db()
        assert user.check_password("Another-Long-Passphrase-9")
        assert AuditLog.objects.filter(action="password_changed", actor=user).exists()

    def test_wrong_current_password(self, user, password):
        with pytest.raises(Unauthorized):
            authentication.change_password(user, "not-my-password", "Another-Long-Passphrase-9")

        user.refresh_from_db()
        assert user.check_password(password)

    def test_weak_new_password_rejected(self, user, password):
        with pytest.raises(InvalidInput):
            authentication.change_password(user, password, "short")

        user.refresh_from_db()
        assert user.check_password(password)


@pytest.mark.django_db
class TestLogout:

    def test_blacklists_refresh_token(self, user):
        refresh = RefreshToken.for_user(user)

        authentication.logout(user, str(refresh))

        assert BlacklistedToken.objects.filter(token__jti=refresh["jti"]).exists()
        entry = AuditLog.objects.get(action="user_logout")
        assert entry.actor == user
        assert entry.severity == AuditSeverity.LOW

    def test_second_logout_with_same_token(self, user):
        refresh = str(RefreshToken.for_user(user))
        authentication.logout(user, refresh)

        with pytest.raises(InvalidInput):
            authentication.logout(user, refresh)

    def test_foreign_token_refused(self, user, make_user):
        refresh = RefreshToken.for_user(make_user())

        with pytest.raises(InvalidInput):
            authentication.logout(user, str(refresh))

        assert not BlacklistedToken.objects.exists()

    @pytest.mark.parametrize("refresh", ["", "not-a-token"])
    def test_malformed_token(self, user, refresh):
        with pytest.raises(InvalidInput):
            authentication.logout(user, refresh)
