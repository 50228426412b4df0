"""
Entitlement resolution for content access.

Access comes from exactly two sources, checked in order:

1. the account's subscription projection (active premium/enterprise
   grants every content item), then
2. an explicit, unexpired ``ContentAccessGrant`` for the exact
   (account, content type, content id) triple.

Results are never cached, so a projection change is visible on the
next call.
"""

import logging
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from administration.models import Permission
from administration.permissions import require_permission
from audit.context import AuditContext
from audit.models import AuditSeverity, ResourceType
from audit.utils import log_event
from core.exceptions import InvalidInput, NotFound
from core.pagination import paginate
from .models import AccessReason, ContentAccessGrant, ContentType

logger = logging.getLogger(__name__)
User = get_user_model()


def _validate_content_type(content_type: str) -> str:
    if content_type not in ContentType.values:
        raise InvalidInput(f"Invalid content type: {content_type}")
    return content_type


def check_access(user_id, content_type: str, content_id, now=None) -> bool:
    """Return True if the account may view the content item."""
    account = User.objects.filter(pk=getattr(user_id, "pk", user_id)).first()
    if account is None:
        return False

    if account.has_active_subscription():
        return True

    grant = ContentAccessGrant.objects.filter(
        user=account,
        content_type=content_type,
        content_id=str(content_id),
    ).first()
    return bool(grant and grant.is_valid(now or timezone.now()))


def _upsert_grant(actor, user_id, content_type, content_id, defaults, action, severity, context):
    _validate_content_type(content_type)
    target = User.objects.filter(pk=user_id).first()
    if target is None:
        raise NotFound("User not found.")

    with transaction.atomic():
        grant, created = ContentAccessGrant.objects.update_or_create(
            user=target,
            content_type=content_type,
            content_id=str(content_id),
            defaults={"granted_by": actor, **defaults},
        )
        log_event(
            action=action,
            resource_type=ResourceType.CONTENT,
            resource_id=f"{content_type}:{content_id}",
            actor=actor,
            details={
                "target_user_id": target.pk,
                "grant_id": grant.pk,
                "created": created,
                "access_granted": grant.access_granted,
                "expires_at": grant.expires_at,
                "access_reason": grant.access_reason,
            },
            severity=severity,
            context=context,
        )
    return grant


def grant_access(
    actor,
    user_id,
    content_type: str,
    content_id,
    expires_at=None,
    access_reason: str = AccessReason.MANUAL_GRANT,
    metadata: Optional[dict] = None,
    context: Optional[AuditContext] = None,
) -> ContentAccessGrant:
    """
    Grant explicit access to one content item. Repeating the call with the
    same arguments leaves a single, unchanged grant record.
    """
    require_permission(actor, Permission.CONTENT_MANAGEMENT, context)
    if access_reason not in AccessReason.values:
        raise InvalidInput(f"Invalid access reason: {access_reason}")
    return _upsert_grant(
        actor,
        user_id,
        content_type,
        content_id,
        defaults={
            "access_granted": True,
            "expires_at": expires_at,
            "access_reason": access_reason,
            "metadata": metadata or {},
        },
        action="content_access_granted",
        severity=AuditSeverity.MEDIUM,
        context=context,
    )


def revoke_access(
    actor,
    user_id,
    content_type: str,
    content_id,
    context: Optional[AuditContext] = None,
) -> ContentAccessGrant:
    """Deny explicit access; a never-granted triple is stored as denied."""
    require_permission(actor, Permission.CONTENT_MANAGEMENT, context)
    return _upsert_grant(
        actor,
        user_id,
        content_type,
        content_id,
        defaults={"access_granted": False},
        action="content_access_revoked",
        severity=AuditSeverity.MEDIUM,
        context=context,
    )


def access_for(user, content_type: Optional[str] = None):
    """The account's own explicit grants, newest first."""
    queryset = ContentAccessGrant.objects.filter(user=user)
    if content_type:
        queryset = queryset.filter(content_type=_validate_content_type(content_type))
    return queryset.order_by("-created_at", "-id")


def list_grants(actor, filters: Optional[dict] = None, page: int = 1, limit: int = 20) -> dict:
    """Admin listing filtered by ``user_id``, ``content_type`` or ``content_id``."""
    require_permission(actor, Permission.CONTENT_MANAGEMENT)
    filters = filters or {}

    queryset = ContentAccessGrant.objects.select_related("user", "granted_by")
    if filters.get("user_id"):
        queryset = queryset.filter(user_id=filters["user_id"])
    if filters.get("content_type"):
        queryset = queryset.filter(content_type=_validate_content_type(filters["content_type"]))
    if filters.get("content_id"):
        queryset = queryset.filter(content_id=str(filters["content_id"]))

    grants, pagination = paginate(queryset.order_by("-created_at", "-id"), page, limit)
    return {"grants": grants, "pagination": pagination}
