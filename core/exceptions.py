"""
Typed failures raised by the membership services and their API rendering.
"""

import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class MembershipError(Exception):
    """
    Base class for every failure a service can surface to a caller.

    Each failure carries a stable machine-readable ``kind`` and a
    human-readable ``message``. Services raise these inside
    ``transaction.atomic()`` so nothing partial is ever committed.
    """

    kind = "error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be completed."

    def __init__(self, message: str | None = None, **extra):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def as_dict(self) -> dict:
        payload = {"kind": self.kind, "message": self.message}
        payload.update(self.extra)
        return payload


class NotFound(MembershipError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found."


class Conflict(MembershipError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Request conflicts with the current state."


class InvalidState(MembershipError):
    kind = "invalid_state"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Transition is not allowed from the current state."


class InvalidInput(MembershipError):
    kind = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input."


class Unauthorized(MembershipError):
    kind = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required."


class Forbidden(MembershipError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to perform this action."


class AccountLocked(MembershipError):
    kind = "account_locked"
    status_code = status.HTTP_423_LOCKED
    default_message = "Account is temporarily locked due to too many failed login attempts."


def api_exception_handler(exc, context):
    """
    DRF exception handler rendering service failures as
    ``{"success": false, "error": {"kind": ..., "message": ...}}``.

    Store-level errors are logged and replaced by a generic message so
    no internal detail reaches the caller.
    """
    if isinstance(exc, MembershipError):
        return Response(
            {"success": False, "error": exc.as_dict()},
            status=exc.status_code,
        )

    if isinstance(exc, DatabaseError):
        view = context.get("view")
        logger.error(
            f"Database error in {view.__class__.__name__ if view else 'unknown view'}: {exc}"
        )
        return Response(
            {
                "success": False,
                "error": {"kind": "server_error", "message": "Request failed. Please try again later."},
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return exception_handler(exc, context)
