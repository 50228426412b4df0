"""
Registration and payment-verification state machine.

    pending_payment -> payment_submitted -> approved | rejected

Accounts may authenticate only once ``approved``. Approval and rejection
are admin transitions (``user_management``) allowed from either
non-terminal state; ``approved`` and ``rejected`` admit no further
transition.
"""

import logging
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from administration.models import Permission
from administration.permissions import require_permission
from audit.context import AuditContext
from audit.models import AuditSeverity, ResourceType
from audit.utils import log_event
from core.exceptions import Conflict, InvalidInput, InvalidState, NotFound
from core.pagination import paginate
from subscriptions.lifecycle import grant_provisional_premium
from .models import (
    AccountSubscriptionStatus,
    PAID_TIERS,
    PaymentStatus,
    RegistrationStatus,
    normalize_account_email,
)

logger = logging.getLogger(__name__)
User = get_user_model()

OPEN_STATUSES = (RegistrationStatus.PENDING_PAYMENT, RegistrationStatus.PAYMENT_SUBMITTED)

# Bulk approval predicates
UNAPPROVED = Q(registration_status__in=OPEN_STATUSES)
SUBMITTED_WITH_ACTIVE_SUBSCRIPTION = Q(registration_status=RegistrationStatus.PAYMENT_SUBMITTED) & (
    Q(subscription_status=AccountSubscriptionStatus.ACTIVE) | Q(subscription_tier__in=PAID_TIERS)
)

TRANSITION_FIELDS = (
    "registration_status",
    "payment_status",
    "subscription_status",
    "subscription_tier",
)


def _snapshot(account) -> dict:
    return {field: getattr(account, field) for field in TRANSITION_FIELDS}


def register(
    email: str,
    password: str,
    full_name: str = "",
    mobile_number: str = "",
    payment_proof_reference: str = "",
    context: Optional[AuditContext] = None,
):
    """
    Create an account. Supplying a payment-proof reference starts it in
    ``payment_submitted`` instead of ``pending_payment``.
    """
    email = normalize_account_email(email)
    if not email or not password:
        raise InvalidInput("Email and password are required.")
    if User.objects.filter(email=email).exists():
        raise Conflict("User already exists with this email.")

    with_payment = bool(payment_proof_reference)
    try:
        with transaction.atomic():
            user = User.objects.create_user(
                email=email,
                password=password,
                full_name=full_name or "",
                mobile_number=mobile_number or "",
                payment_proof_reference=payment_proof_reference or "",
                registration_status=(
                    RegistrationStatus.PAYMENT_SUBMITTED if with_payment
                    else RegistrationStatus.PENDING_PAYMENT
                ),
            )
            log_event(
                action="user_registered_with_payment" if with_payment else "user_registered",
                resource_type=ResourceType.USER,
                resource_id=user.pk,
                actor=user,
                details={
                    "email": user.email,
                    "full_name": user.full_name,
                    "registration_status": user.registration_status,
                },
                severity=AuditSeverity.LOW,
                context=context,
            )
    except IntegrityError:
        raise Conflict("User already exists with this email.")

    logger.info(f"Registered user {user.pk} ({user.registration_status})")
    return user


def submit_payment(user, payment_proof_reference: str, context: Optional[AuditContext] = None):
    """Self-service move to ``payment_submitted``; resubmitting replaces the reference."""
    if not payment_proof_reference:
        raise InvalidInput("Payment proof reference is required.")

    with transaction.atomic():
        account = User.objects.select_for_update().filter(pk=user.pk).first()
        if account is None:
            raise NotFound("User not found.")
        if account.registration_status not in OPEN_STATUSES:
            raise InvalidState(
                f"Cannot submit payment while registration is {account.registration_status}."
            )

        previous = account.registration_status
        account.registration_status = RegistrationStatus.PAYMENT_SUBMITTED
        account.payment_proof_reference = payment_proof_reference
        account.save(update_fields=["registration_status", "payment_proof_reference", "updated_at"])

        log_event(
            action="payment_submitted",
            resource_type=ResourceType.USER,
            resource_id=account.pk,
            actor=account,
            details={
                "old_status": previous,
                "new_status": account.registration_status,
                "resubmission": previous == RegistrationStatus.PAYMENT_SUBMITTED,
            },
            severity=AuditSeverity.LOW,
            context=context,
        )
    return account


def _decide(actor, user_id, approve: bool, admin_notes: str, context):
    require_permission(actor, Permission.USER_MANAGEMENT, context)

    with transaction.atomic():
        account = User.objects.select_for_update().filter(pk=user_id).first()
        if account is None:
            raise NotFound("User not found.")
        if account.registration_status not in OPEN_STATUSES:
            raise InvalidState(f"Registration is already {account.registration_status}.")

        before = _snapshot(account)
        update_fields = ["registration_status", "payment_status", "updated_at"]
        if approve:
            account.registration_status = RegistrationStatus.APPROVED
            account.payment_status = PaymentStatus.VERIFIED
            account.payment_verified_at = timezone.now()
            account.is_email_verified = True
            update_fields += ["payment_verified_at", "is_email_verified"]
        else:
            account.registration_status = RegistrationStatus.REJECTED
            account.payment_status = PaymentStatus.REJECTED
        if admin_notes:
            account.admin_notes = admin_notes
            update_fields.append("admin_notes")
        account.save(update_fields=update_fields)

        if approve:
            grant_provisional_premium(account)

        log_event(
            action="user_approved" if approve else "user_rejected",
            resource_type=ResourceType.USER,
            resource_id=account.pk,
            actor=actor,
            details={
                "target_user_email": account.email,
                "before": before,
                "after": _snapshot(account),
                "admin_notes": admin_notes or "",
            },
            severity=AuditSeverity.HIGH,
            context=context,
        )
    return account


def approve_registration(actor, user_id, admin_notes: str = "", context: Optional[AuditContext] = None):
    """Approve a pending registration and grant provisional premium access."""
    return _decide(actor, user_id, True, admin_notes, context)


def reject_registration(actor, user_id, admin_notes: str = "", context: Optional[AuditContext] = None):
    """Reject a pending registration. Rejection is terminal."""
    return _decide(actor, user_id, False, admin_notes, context)


def _bulk_approve(actor, predicate: Q, action: str, note: str, context) -> int:
    with transaction.atomic():
        now = timezone.now()
        count = User.objects.filter(predicate).update(
            registration_status=RegistrationStatus.APPROVED,
            payment_status=PaymentStatus.VERIFIED,
            payment_verified_at=now,
            is_email_verified=True,
            admin_notes=f"{note} ({now.isoformat()})",
            updated_at=now,
        )
        if count:
            log_event(
                action=action,
                resource_type=ResourceType.USER,
                actor=actor,
                details={"approved_count": count},
                severity=AuditSeverity.HIGH,
                context=context,
            )
    if count:
        logger.info(f"{action}: approved {count} accounts")
    return count


def approve_all_unapproved(actor, context: Optional[AuditContext] = None) -> int:
    """
    Approve every account still in ``pending_payment`` or ``payment_submitted``.

    Rejected accounts are excluded on purpose. Rejection is terminal and a
    bulk sweep never reopens it.
    """
    require_permission(actor, Permission.USER_MANAGEMENT, context)
    return _bulk_approve(
        actor,
        UNAPPROVED,
        action="bulk_approve_all",
        note="Auto-approved: bulk approval",
        context=context,
    )


def approve_submitted_with_active_subscription(actor, context: Optional[AuditContext] = None) -> int:
    """Approve ``payment_submitted`` accounts whose subscription already looks paid."""
    require_permission(actor, Permission.USER_MANAGEMENT, context)
    return _bulk_approve(
        actor,
        SUBMITTED_WITH_ACTIVE_SUBSCRIPTION,
        action="bulk_approve_active_subscribers",
        note="Auto-approved: existing user with active subscription",
        context=context,
    )


def pending_registrations(actor, status: str = RegistrationStatus.PAYMENT_SUBMITTED, page: int = 1, limit: int = 20) -> dict:
    """Accounts awaiting review; ``status="all"`` lists every account."""
    require_permission(actor, Permission.USER_MANAGEMENT)
    queryset = User.objects.all()
    if status != "all":
        if status not in RegistrationStatus.values:
            raise InvalidInput(f"Invalid registration status: {status}")
        queryset = queryset.filter(registration_status=status)

    users, pagination = paginate(queryset.order_by("-created_at", "-id"), page, limit)
    return {"users": users, "pagination": pagination}
