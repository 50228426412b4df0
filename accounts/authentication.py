"""
Credential checks with persistent lockout bookkeeping.

After ``ACCOUNT_LOCKOUT_MAX_ATTEMPTS`` consecutive failures the account is
locked for ``ACCOUNT_LOCKOUT_MINUTES``. The lock is checked before the
password, so even a correct password is refused inside the window. Once
the window has passed the lock and counter are cleared before checking.
"""

import logging
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings as jwt_settings
from rest_framework_simplejwt.tokens import RefreshToken

from administration.permissions import record_admin_login
from audit.context import SYSTEM_CONTEXT, AuditContext
from audit.models import AuditOutcome, AuditSeverity, ResourceType
from audit.utils import log_event
from core.exceptions import AccountLocked, Forbidden, InvalidInput, NotFound, Unauthorized
from .models import RegistrationStatus, normalize_account_email

logger = logging.getLogger("security")
User = get_user_model()

NOT_APPROVED_MESSAGES = {
    RegistrationStatus.PENDING_PAYMENT: "Please complete your registration with payment proof.",
    RegistrationStatus.PAYMENT_SUBMITTED: "Your registration is pending admin approval.",
    RegistrationStatus.REJECTED: "Your registration has been rejected. Please contact support.",
}

# Outcomes of a credential check
VERIFIED = "verified"
FAILED = "failed"
LOCKED = "locked"


def max_failed_attempts() -> int:
    return getattr(settings, "ACCOUNT_LOCKOUT_MAX_ATTEMPTS", 5)


def lockout_duration() -> timedelta:
    return timedelta(minutes=getattr(settings, "ACCOUNT_LOCKOUT_MINUTES", 120))


def check_credentials(user, password: str, context: Optional[AuditContext] = None):
    """
    Verify ``password`` for ``user`` and update the lockout counters.

    The bookkeeping is committed before any failure is raised.

    Returns:
        The refreshed account on success.

    Raises:
        AccountLocked: the account is locked
        Unauthorized: wrong password, including the one that trips the lock
    """
    context = (context or SYSTEM_CONTEXT).for_actor(user)

    with transaction.atomic():
        account = User.objects.select_for_update().filter(pk=user.pk).first()
        if account is None:
            raise NotFound("User not found.")

        now = timezone.now()
        update_fields = []
        if account.lock_until and not account.is_locked:
            account.lock_until = None
            account.failed_login_attempts = 0
            update_fields += ["lock_until", "failed_login_attempts"]

        if account.is_locked:
            outcome = LOCKED
            log_event(
                action="login_failed",
                resource_type=ResourceType.USER,
                resource_id=account.pk,
                details={"email": account.email, "reason": "account_locked"},
                severity=AuditSeverity.MEDIUM,
                outcome=AuditOutcome.FAILURE,
                context=context,
            )
        elif account.check_password(password):
            outcome = VERIFIED
            account.failed_login_attempts = 0
            account.lock_until = None
            update_fields += ["failed_login_attempts", "lock_until"]
        else:
            account.failed_login_attempts += 1
            update_fields.append("failed_login_attempts")
            outcome = FAILED
            log_event(
                action="login_failed",
                resource_type=ResourceType.USER,
                resource_id=account.pk,
                details={
                    "email": account.email,
                    "reason": "invalid_password",
                    "failed_attempts": account.failed_login_attempts,
                },
                severity=AuditSeverity.MEDIUM,
                outcome=AuditOutcome.FAILURE,
                context=context,
            )
            if account.failed_login_attempts >= max_failed_attempts():
                account.lock_until = now + lockout_duration()
                update_fields.append("lock_until")
                logger.warning(
                    f"Account {account.pk} locked after {account.failed_login_attempts} failed attempts"
                )
                log_event(
                    action="account_locked",
                    resource_type=ResourceType.USER,
                    resource_id=account.pk,
                    details={
                        "failed_attempts": account.failed_login_attempts,
                        "lock_until": account.lock_until,
                    },
                    severity=AuditSeverity.HIGH,
                    outcome=AuditOutcome.WARNING,
                    context=context,
                )

        if update_fields:
            account.save(update_fields=[*dict.fromkeys(update_fields), "updated_at"])

    if outcome == LOCKED:
        raise AccountLocked(locked_until=account.lock_until.isoformat())
    if outcome == FAILED:
        raise Unauthorized("Invalid credentials.")
    return account


def login(email: str, password: str, context: Optional[AuditContext] = None):
    """
    Authenticate by email and password.

    Raises:
        Unauthorized: unknown email or wrong password
        Forbidden: registration not approved
        AccountLocked: too many failed attempts
    """
    context = context or SYSTEM_CONTEXT
    email = normalize_account_email(email)
    user = User.objects.filter(email=email).first() if email else None
    if user is None:
        log_event(
            action="login_failed",
            resource_type=ResourceType.USER,
            details={"email": email, "reason": "unknown_email"},
            severity=AuditSeverity.MEDIUM,
            outcome=AuditOutcome.FAILURE,
            context=context,
        )
        raise Unauthorized("Invalid credentials.")

    if not user.can_login:
        raise Forbidden(
            NOT_APPROVED_MESSAGES.get(user.registration_status, "Account not yet approved."),
            registration_status=user.registration_status,
        )

    account = check_credentials(user, password, context)

    account.last_login = timezone.now()
    account.save(update_fields=["last_login"])
    is_admin = record_admin_login(account)

    log_event(
        action="user_login",
        resource_type=ResourceType.USER,
        resource_id=account.pk,
        actor=account,
        details={"email": account.email, "is_admin": is_admin},
        severity=AuditSeverity.LOW,
        context=context,
    )
    return account


def change_password(user, current_password: str, new_password: str, context: Optional[AuditContext] = None):
    """Replace the password after verifying the current one."""
    if not new_password:
        raise InvalidInput("New password is required.")
    account = check_credentials(user, current_password, context)
    try:
        validate_password(new_password, account)
    except ValidationError as exc:
        raise InvalidInput(" ".join(exc.messages))

    account.set_password(new_password)
    account.save(update_fields=["password", "updated_at"])

    log_event(
        action="password_changed",
        resource_type=ResourceType.USER,
        resource_id=account.pk,
        actor=account,
        severity=AuditSeverity.MEDIUM,
        context=context,
    )
    return account


def logout(user, refresh: str, context: Optional[AuditContext] = None) -> None:
    """
    Revoke the caller's refresh token by blacklisting it.

    Access tokens already issued stay valid until they expire.

    Raises:
        InvalidInput: missing, malformed, expired or foreign refresh token
    """
    if not refresh:
        raise InvalidInput("Refresh token is required.")
    try:
        token = RefreshToken(refresh)
    except TokenError as exc:
        raise InvalidInput(f"Invalid refresh token: {exc}")
    if str(token.get(jwt_settings.USER_ID_CLAIM)) != str(user.pk):
        raise InvalidInput("Refresh token does not belong to this account.")
    token.blacklist()

    log_event(
        action="user_logout",
        resource_type=ResourceType.USER,
        resource_id=user.pk,
        actor=user,
        severity=AuditSeverity.LOW,
        context=context,
    )
