"""
Role and permission models.

Models:
    Permission: Named capability in the immutable catalog
    Role: Named group of permissions, one of which is the default role
    RolePermission: Role <-> Permission association
    UserRole: User <-> Role association

Design Decisions:
    - Exactly one role has is_default=True; a partial unique constraint
      rejects a second one and RoleRegistry refuses to delete it
    - Every user holds the default role (assigned on user creation)
    - Associations are explicit models so the registry can detach them
      itself before deleting a role
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q

from core.models import BaseModel
from roles.constants import ROLE_CONFIG


class Permission(models.Model):
    """
    A capability that can be granted to roles.

    The catalog is seeded by migration and not mutated at runtime.

    Fields:
        name: Unique machine name (e.g. "manage_roles")
        description: Human-readable description
        category: Grouping for display (general, membership, text, voice)
    """

    name = models.CharField(
        max_length=100,
        unique=True,
        help_text="Unique permission name",
    )
    description = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="What this permission allows",
    )
    category = models.CharField(
        max_length=50,
        default="general",
        db_index=True,
        help_text="Permission grouping for display",
    )

    class Meta:
        db_table = "permissions"
        ordering = ["category", "id"]

    def __str__(self) -> str:
        return self.name


class Role(BaseModel):
    """
    A named set of permissions assigned to users.

    Fields:
        name: Display name (1-50 characters)
        color: Hex color used for member display
        position: Display/priority order (higher first)
        is_default: Whether this is the role every user holds

    Relationships:
        role_permissions: RolePermission rows for this role
        user_roles: UserRole rows for this role
    """

    name = models.CharField(
        max_length=ROLE_CONFIG.MAX_NAME_LENGTH,
        help_text="Role display name",
    )
    color = models.CharField(
        max_length=7,
        default=ROLE_CONFIG.DEFAULT_COLOR,
        help_text="Hex color (#RRGGBB)",
    )
    position = models.IntegerField(
        default=0,
        db_index=True,
        help_text="Ordering position; higher roles are listed first",
    )
    is_default = models.BooleanField(
        default=False,
        help_text="Whether every user holds this role",
    )
    permissions = models.ManyToManyField(
        Permission,
        through="RolePermission",
        related_name="roles",
    )

    class Meta:
        db_table = "roles"
        ordering = ["-position", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["is_default"],
                condition=Q(is_default=True),
                name="single_default_role",
            ),
        ]

    def __str__(self) -> str:
        return self.name

    def permission_names(self) -> list[str]:
        """Permission names granted by this role, in catalog order."""
        return list(
            Permission.objects.filter(role_permissions__role=self)
            .order_by("category", "id")
            .values_list("name", flat=True)
        )


class RolePermission(models.Model):
    """Grants a permission to a role."""

    role = models.ForeignKey(
        Role,
        on_delete=models.CASCADE,
        related_name="role_permissions",
    )
    permission = models.ForeignKey(
        Permission,
        on_delete=models.CASCADE,
        related_name="role_permissions",
    )

    class Meta:
        db_table = "role_permissions"
        constraints = [
            models.UniqueConstraint(
                fields=["role", "permission"],
                name="unique_role_permission",
            ),
        ]

    def __str__(self) -> str:
        return f"RolePermission({self.role_id}, {self.permission_id})"


class UserRole(models.Model):
    """Assigns a role to a user."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="user_roles",
    )
    role = models.ForeignKey(
        Role,
        on_delete=models.CASCADE,
        related_name="user_roles",
    )
    assigned_at = models.DateTimeField(
        auto_now_add=True,
        help_text="When the role was assigned",
    )

    class Meta:
        db_table = "user_roles"
        constraints = [
            models.UniqueConstraint(
                fields=["user", "role"],
                name="unique_user_role",
            ),
        ]
        indexes = [
            models.Index(fields=["role"], name="user_roles_role_idx"),
        ]

    def __str__(self) -> str:
        return f"UserRole({self.user_id}, {self.role_id})"
