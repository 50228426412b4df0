"""
Administrative authorization layer.

Resolves whether a principal holds an active admin grant and a given
permission token, and owns every mutation of ``AdminGrant`` records.
"""

import logging
from typing import Iterable, Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.permissions import BasePermission

from accounts.models import PaymentStatus, RegistrationStatus, normalize_account_email
from audit.context import SYSTEM_CONTEXT, AuditContext
from audit.models import AuditOutcome, AuditSeverity, ResourceType
from audit.utils import log_event
from core.exceptions import Conflict, Forbidden, InvalidInput, NotFound, Unauthorized
from core.pagination import paginate
from .models import AdminGrant, AdminRole, Permission

logger = logging.getLogger("security")
User = get_user_model()


def _principal_id(principal):
    return getattr(principal, "pk", principal)


def get_admin_grant(principal) -> Optional[AdminGrant]:
    """Return the principal's active admin grant, or None."""
    principal_id = _principal_id(principal)
    if principal_id is None:
        return None
    return AdminGrant.objects.filter(user_id=principal_id, is_active=True).first()


def is_admin(principal) -> bool:
    return get_admin_grant(principal) is not None


def validate_permission_tokens(tokens: Iterable[str]) -> list[str]:
    tokens = list(tokens)
    unknown = sorted(set(tokens) - set(Permission.values))
    if unknown:
        raise InvalidInput(f"Unknown permission(s): {', '.join(unknown)}")
    # Keep caller order but drop duplicates
    return list(dict.fromkeys(tokens))


def has_permission(principal, token: str) -> bool:
    if token not in Permission.values:
        raise InvalidInput(f"Unknown permission: {token}")
    grant = get_admin_grant(principal)
    return bool(grant and grant.has_permission(token))


def require_permission(actor, token: str, context: Optional[AuditContext] = None) -> AdminGrant:
    """
    Guard for privileged operations.

    Raises:
        Unauthorized: no authenticated actor
        Forbidden: actor has no active admin grant, or the grant lacks ``token``
        InvalidInput: ``token`` is not part of the permission vocabulary
    """
    if token not in Permission.values:
        raise InvalidInput(f"Unknown permission: {token}")
    if actor is None or not getattr(actor, "is_authenticated", True):
        raise Unauthorized()

    grant = get_admin_grant(actor)
    if grant is None:
        log_event(
            action="unauthorized_admin_access_attempt",
            resource_type=ResourceType.ADMIN,
            actor=actor if hasattr(actor, "pk") else None,
            details={"required_permission": token},
            severity=AuditSeverity.HIGH,
            outcome=AuditOutcome.FAILURE,
            context=context,
        )
        raise Forbidden("Admin access required.")

    if not grant.has_permission(token):
        logger.warning(
            f"Admin {grant.user_id} denied: missing permission {token}",
            extra={"admin_grant_id": grant.pk},
        )
        raise Forbidden(f"Permission required: {token}")

    return grant


def _validate_role(role: str) -> str:
    if role not in AdminRole.values:
        raise InvalidInput(f"Unknown admin role: {role}")
    return role


def create_admin_grant(
    actor,
    user_id,
    role: str = AdminRole.ADMIN,
    permissions: Optional[list[str]] = None,
    context: Optional[AuditContext] = None,
) -> AdminGrant:
    """Make ``user_id`` an admin. Explicit ``permissions`` override the role default."""
    require_permission(actor, Permission.ADMIN_MANAGEMENT, context)
    role = _validate_role(role)
    if permissions is not None:
        permissions = validate_permission_tokens(permissions)

    with transaction.atomic():
        user = User.objects.filter(pk=user_id).first()
        if user is None:
            raise NotFound("User not found.")
        if AdminGrant.objects.filter(user=user).exists():
            raise Conflict("User is already an admin.")
        grant = AdminGrant(user=user, role=role, permissions=permissions or [], created_by=actor)
        try:
            with transaction.atomic():
                grant.save(keep_permissions=permissions is not None)
        except IntegrityError:
            raise Conflict("User is already an admin.")

        log_event(
            action="admin_user_created",
            resource_type=ResourceType.ADMIN,
            resource_id=grant.pk,
            actor=actor,
            details={
                "target_user_id": user.pk,
                "target_user_email": user.email,
                "role": grant.role,
                "permissions": grant.permissions,
            },
            severity=AuditSeverity.HIGH,
            context=context,
        )
    return grant


def update_admin_grant(
    actor,
    grant_id,
    role: Optional[str] = None,
    permissions: Optional[list[str]] = None,
    is_active: Optional[bool] = None,
    context: Optional[AuditContext] = None,
) -> AdminGrant:
    """
    Change role, permissions or active flag of an admin grant.

    Setting ``role`` re-applies that role's default permissions unless
    ``permissions`` is passed in the same call.
    """
    require_permission(actor, Permission.ADMIN_MANAGEMENT, context)
    if role is not None:
        _validate_role(role)
    if permissions is not None:
        permissions = validate_permission_tokens(permissions)

    with transaction.atomic():
        grant = AdminGrant.objects.select_for_update().filter(pk=grant_id).first()
        if grant is None:
            raise NotFound("Admin user not found.")
        if is_active is False and grant.user_id == actor.pk:
            raise Conflict("Cannot deactivate your own admin account.")

        old_data = {
            "role": grant.role,
            "permissions": list(grant.permissions),
            "is_active": grant.is_active,
        }
        if role is not None:
            grant.role = role
        if permissions is not None:
            grant.permissions = permissions
        if is_active is not None:
            grant.is_active = is_active
        grant.save(keep_permissions=permissions is not None)

        log_event(
            action="admin_user_updated",
            resource_type=ResourceType.ADMIN,
            resource_id=grant.pk,
            actor=actor,
            details={
                "old_data": old_data,
                "new_data": {
                    "role": grant.role,
                    "permissions": list(grant.permissions),
                    "is_active": grant.is_active,
                },
            },
            severity=AuditSeverity.HIGH,
            context=context,
        )
    return grant


def deactivate_admin_grant(actor, grant_id, context: Optional[AuditContext] = None) -> AdminGrant:
    """Deactivate another admin. Admins cannot deactivate themselves."""
    require_permission(actor, Permission.ADMIN_MANAGEMENT, context)

    with transaction.atomic():
        grant = AdminGrant.objects.select_for_update().filter(pk=grant_id).first()
        if grant is None:
            raise NotFound("Admin user not found.")
        if grant.user_id == actor.pk:
            raise Conflict("Cannot deactivate your own admin account.")

        was_active = grant.is_active
        grant.is_active = False
        grant.save(update_fields=["is_active", "updated_at"])

        log_event(
            action="admin_user_deactivated",
            resource_type=ResourceType.ADMIN,
            resource_id=grant.pk,
            actor=actor,
            details={"target_user_id": grant.user_id, "was_active": was_active},
            severity=AuditSeverity.HIGH,
            context=context,
        )
    return grant


def list_admin_grants(actor, page: int = 1, limit: int = 20) -> dict:
    require_permission(actor, Permission.ADMIN_MANAGEMENT)
    queryset = (
        AdminGrant.objects.filter(is_active=True)
        .select_related("user", "created_by")
        .order_by("-created_at", "-id")
    )
    admins, pagination = paginate(queryset, page, limit)
    return {"admins": admins, "pagination": pagination}


def record_admin_login(user) -> bool:
    """Stamp ``last_admin_login`` if ``user`` is an active admin."""
    updated = AdminGrant.objects.filter(user=user, is_active=True).update(
        last_admin_login=timezone.now()
    )
    return bool(updated)


def bootstrap_admin(email: str, password: str, full_name: str = "Administrator") -> tuple[AdminGrant, bool]:
    """
    Idempotently provision a super admin from configuration.

    Creates the account (approved, verified) and its super_admin grant if
    missing. An existing account's password and grant are left untouched.

    Returns:
        tuple: (admin grant, whether anything was created)
    """
    email = normalize_account_email(email)
    if not email or not password:
        raise InvalidInput("Bootstrap admin email and password are required.")

    with transaction.atomic():
        created = False
        user = User.objects.select_for_update().filter(email=email).first()
        if user is None:
            user = User.objects.create_user(
                email=email,
                password=password,
                full_name=full_name,
                registration_status=RegistrationStatus.APPROVED,
                payment_status=PaymentStatus.VERIFIED,
                payment_verified_at=timezone.now(),
                is_email_verified=True,
            )
            created = True

        grant, grant_created = AdminGrant.objects.get_or_create(
            user=user,
            defaults={"role": AdminRole.SUPER_ADMIN},
        )
        created = created or grant_created

        if created:
            log_event(
                action="admin_bootstrapped",
                resource_type=ResourceType.ADMIN,
                resource_id=grant.pk,
                details={"target_user_id": user.pk, "target_user_email": user.email},
                severity=AuditSeverity.CRITICAL,
                context=SYSTEM_CONTEXT,
            )
    return grant, created


class HasAdminPermission(BasePermission):
    """
    DRF permission: request user must be an active admin holding the
    view's ``required_permission`` (or any active grant when unset).
    """

    message = "Admin access required."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        token = getattr(view, "required_permission", None)
        if token is None:
            return is_admin(user)
        return has_permission(user, token)
