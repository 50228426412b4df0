"""
Admin grants: which accounts may perform privileged operations.
"""

from django.conf import settings
from django.db import models


class AdminRole(models.TextChoices):
    ADMIN = "admin", "Admin"
    SUPER_ADMIN = "super_admin", "Super admin"


class Permission(models.TextChoices):
    """Fixed permission vocabulary."""
    USER_MANAGEMENT = "user_management", "User management"
    CONTENT_MANAGEMENT = "content_management", "Content management"
    SUBSCRIPTION_MANAGEMENT = "subscription_management", "Subscription management"
    ADMIN_MANAGEMENT = "admin_management", "Admin management"
    SYSTEM_SETTINGS = "system_settings", "System settings"
    ANALYTICS_VIEW = "analytics_view", "Analytics view"
    AUDIT_LOGS = "audit_logs", "Audit logs"


ROLE_DEFAULT_PERMISSIONS = {
    AdminRole.SUPER_ADMIN: list(Permission.values),
    AdminRole.ADMIN: [
        Permission.USER_MANAGEMENT.value,
        Permission.CONTENT_MANAGEMENT.value,
        Permission.SUBSCRIPTION_MANAGEMENT.value,
        Permission.ANALYTICS_VIEW.value,
    ],
}


class AdminGrant(models.Model):
    """
    One-to-one admin record for an account.

    ``permissions`` is a list of tokens from ``Permission``. The role's
    default set is assigned on creation and every time the role is set,
    unless the same call supplies an explicit list.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="admin_grant",
    )
    role = models.CharField(
        max_length=20,
        choices=AdminRole.choices,
        default=AdminRole.ADMIN,
    )
    permissions = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    last_admin_login = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="admin_grants_created",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "admin grant"
        verbose_name_plural = "admin grants"
        db_table = "administration_admin_grant"
        indexes = [
            models.Index(fields=["role"]),
            models.Index(fields=["is_active"]),
        ]

    def __str__(self) -> str:
        return f"{self.user.email} ({self.role})"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._remember_loaded_state()
        return instance

    def _remember_loaded_state(self):
        # Deferred fields stay unknown rather than triggering a query here
        self._loaded_role = self.__dict__.get("role")
        permissions = self.__dict__.get("permissions")
        self._loaded_permissions = None if permissions is None else list(permissions)

    def save(self, *args, keep_permissions=False, **kwargs):
        """
        Apply the role's default permissions on creation and on role change.

        ``keep_permissions=True`` stores ``permissions`` exactly as set, for
        callers that assigned an explicit list in the same change.
        """
        if keep_permissions:
            apply_defaults = False
        elif self._state.adding:
            apply_defaults = not self.permissions
        else:
            loaded_role = getattr(self, "_loaded_role", None)
            loaded_permissions = getattr(self, "_loaded_permissions", None)
            # An explicit list set alongside the new role wins
            apply_defaults = (
                loaded_role is not None
                and self.role != loaded_role
                and self.permissions == loaded_permissions
            )

        if apply_defaults:
            self.permissions = self.default_permissions(self.role)
            update_fields = kwargs.get("update_fields")
            if update_fields is not None and "permissions" not in update_fields:
                kwargs["update_fields"] = [*update_fields, "permissions"]

        super().save(*args, **kwargs)
        self._remember_loaded_state()

    @staticmethod
    def default_permissions(role: str) -> list[str]:
        return list(ROLE_DEFAULT_PERMISSIONS.get(role, []))

    def has_permission(self, token: str) -> bool:
        return self.is_active and token in (self.permissions or [])
