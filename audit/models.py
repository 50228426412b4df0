"""
Persistent audit log entries.
"""

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class AuditSeverity(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"
    CRITICAL = "critical", "Critical"


class AuditOutcome(models.TextChoices):
    SUCCESS = "success", "Success"
    FAILURE = "failure", "Failure"
    WARNING = "warning", "Warning"


class ResourceType(models.TextChoices):
    USER = "user", "User"
    SUBSCRIPTION = "subscription", "Subscription"
    CONTENT = "content", "Content"
    ADMIN = "admin", "Admin"
    SYSTEM = "system", "System"


class AuditLogError(Exception):
    """Raised when code tries to rewrite or remove an audit entry."""


class AuditLog(models.Model):
    """
    Append-only record of a privileged action.

    Entries are written once by ``audit.utils.log_event`` and never
    updated or deleted afterwards; retention is handled outside the app.
    """

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_events",
    )
    action = models.CharField(max_length=100)
    resource_type = models.CharField(
        max_length=20,
        choices=ResourceType.choices,
        blank=True,
        default="",
    )
    resource_id = models.CharField(max_length=100, blank=True, default="")
    details = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    severity = models.CharField(
        max_length=10,
        choices=AuditSeverity.choices,
        default=AuditSeverity.MEDIUM,
    )
    outcome = models.CharField(
        max_length=10,
        choices=AuditOutcome.choices,
        default=AuditOutcome.SUCCESS,
    )
    ip_address = models.CharField(max_length=45, blank=True, default="")
    user_agent = models.CharField(max_length=200, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "audit log"
        verbose_name_plural = "audit logs"
        db_table = "audit_log"
        indexes = [
            models.Index(fields=["action", "created_at"]),
            models.Index(fields=["resource_type", "resource_id"]),
            models.Index(fields=["severity"]),
            models.Index(fields=["created_at"]),
        ]

    def __str__(self) -> str:
        return f"{self.action} ({self.created_at:%Y-%m-%d %H:%M})"

    def save(self, *args, **kwargs):
        if self.pk is not None and not self._state.adding:
            raise AuditLogError("Audit log entries are immutable.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise AuditLogError("Audit log entries cannot be deleted.")
