"""
Role management and permission resolution services.

Services:
    RoleRegistry: Role CRUD, permission grants, user <-> role assignment
    PermissionResolver: Effective permissions with the administrator override

Design Principles:
    - Services are stateless (use class methods)
    - Rejected operations raise core.exceptions subclasses
    - Every committed mutation emits a role.changed domain event
    - The default role can be recolored but never renamed, deleted or
      removed from a user

Usage:
    from roles.services import PermissionResolver, RoleRegistry

    role = RoleRegistry.create_role("Moderator", "#3498DB", ["kick_members"])
    RoleRegistry.assign_role(user.id, role.id)

    if PermissionResolver.has_permission(user.id, "kick_members"):
        ...
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model
from django.core.exceptions import ImproperlyConfigured
from django.db.models import Max, Prefetch

from core.decorators import retry_on_connection_loss
from core.events import DomainEvent, EventType, emit
from core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from core.services import BaseService
from roles.constants import ROLE_CONFIG, Permissions
from roles.models import Permission, Role, RolePermission, UserRole

if TYPE_CHECKING:
    from collections.abc import Iterable


class RoleRegistry(BaseService):
    """
    Service for roles and their assignments.

    Methods:
        create_role: Create a non-default role with permissions
        update_role: Rename/recolor a role
        set_role_permissions: Replace a role's permission set
        add_role_permission: Grant a single permission
        remove_role_permission: Revoke a single permission
        delete_role: Delete a non-default role and its associations
        assign_role: Give a role to a user
        remove_role: Take a non-default role from a user
        set_user_roles: Replace a user's roles (default role always kept)
        assign_default_role: Give a new user the default role
        get_default_role: The single default role
        get_user_roles: A user's roles, highest position first
        get_highest_role: A user's highest-positioned role
        get_roles_with_permissions: All roles with their permissions
        get_permissions_grouped: The permission catalog by category
    """

    @classmethod
    @retry_on_connection_loss
    def create_role(
        cls,
        name: str,
        color: str = ROLE_CONFIG.DEFAULT_COLOR,
        permission_names: Iterable[str] = (),
    ) -> Role:
        """
        Create a new non-default role.

        The role is placed above every existing non-default role.

        Args:
            name: Display name (1-50 characters after stripping)
            color: Hex color (#RRGGBB)
            permission_names: Permissions to grant

        Returns:
            The created Role

        Raises:
            ValidationError: Bad name, bad color, or unknown permissions
        """
        name = cls._clean_name(name)
        cls._check_color(color)

        with cls.atomic():
            permissions = cls._resolve_permissions(permission_names)
            top = Role.objects.filter(is_default=False).aggregate(
                top=Max("position")
            )["top"]
            role = Role.objects.create(
                name=name,
                color=color,
                position=(top or 0) + 1,
                is_default=False,
            )
            RolePermission.objects.bulk_create(
                [RolePermission(role=role, permission=p) for p in permissions]
            )
            emit(
                DomainEvent(
                    EventType.ROLE_CHANGED,
                    {"action": "created", "role_id": role.id},
                )
            )

        cls.get_logger().info(
            f"Created role {role.id} '{name}' with {len(permissions)} permissions"
        )
        return role

    @classmethod
    @retry_on_connection_loss
    def update_role(
        cls,
        role_id: int,
        name: str | None = None,
        color: str | None = None,
    ) -> Role:
        """
        Rename and/or recolor a role.

        Raises:
            NotFoundError: Unknown role
            ValidationError: Bad name or color
            ConflictError: Renaming the default role
        """
        if name is not None:
            name = cls._clean_name(name)
        if color is not None:
            cls._check_color(color)

        with cls.atomic():
            role = cls.get_or_raise(
                Role,
                "ROLE_NOT_FOUND",
                queryset=Role.objects.select_for_update(),
                pk=role_id,
            )

            if name is not None and name != role.name and role.is_default:
                raise ConflictError(
                    "The default role cannot be renamed",
                    error_code="DEFAULT_ROLE_PROTECTED",
                    details={"role_id": role.id},
                )

            update_fields = ["updated_at"]
            if name is not None:
                role.name = name
                update_fields.append("name")
            if color is not None:
                role.color = color
                update_fields.append("color")
            role.save(update_fields=update_fields)

            emit(
                DomainEvent(
                    EventType.ROLE_CHANGED,
                    {"action": "updated", "role_id": role.id},
                )
            )

        cls.get_logger().info(f"Updated role {role.id}")
        return role

    @classmethod
    @retry_on_connection_loss
    def set_role_permissions(
        cls,
        role_id: int,
        permission_names: Iterable[str],
    ) -> list[str]:
        """
        Replace a role's permission set.

        Unknown permission names reject the whole call; nothing is changed.

        Returns:
            The role's permission names after the change

        Raises:
            NotFoundError: Unknown role
            ValidationError: Unknown permission names (listed in details)
        """
        with cls.atomic():
            role = cls.get_or_raise(Role, "ROLE_NOT_FOUND", pk=role_id)
            permissions = cls._resolve_permissions(permission_names)

            RolePermission.objects.filter(role=role).delete()
            RolePermission.objects.bulk_create(
                [RolePermission(role=role, permission=p) for p in permissions]
            )
            names = role.permission_names()

            emit(
                DomainEvent(
                    EventType.ROLE_CHANGED,
                    {
                        "action": "permissions_set",
                        "role_id": role.id,
                        "permissions": names,
                    },
                )
            )

        cls.get_logger().info(
            f"Set {len(names)} permissions on role {role.id}"
        )
        return names

    @classmethod
    @retry_on_connection_loss
    def add_role_permission(cls, role_id: int, permission_name: str) -> bool:
        """
        Grant one permission to a role.

        Returns:
            True if the grant was added, False if it already existed
        """
        with cls.atomic():
            role = cls.get_or_raise(Role, "ROLE_NOT_FOUND", pk=role_id)
            (permission,) = cls._resolve_permissions([permission_name])
            _, created = RolePermission.objects.get_or_create(
                role=role, permission=permission
            )
            if created:
                emit(
                    DomainEvent(
                        EventType.ROLE_CHANGED,
                        {
                            "action": "permission_added",
                            "role_id": role.id,
                            "permission": permission.name,
                        },
                    )
                )

        return created

    @classmethod
    @retry_on_connection_loss
    def remove_role_permission(cls, role_id: int, permission_name: str) -> bool:
        """
        Revoke one permission from a role.

        Returns:
            True if a grant was removed, False if the role did not have it
        """
        with cls.atomic():
            role = cls.get_or_raise(Role, "ROLE_NOT_FOUND", pk=role_id)
            (permission,) = cls._resolve_permissions([permission_name])
            deleted, _ = RolePermission.objects.filter(
                role=role, permission=permission
            ).delete()
            if deleted:
                emit(
                    DomainEvent(
                        EventType.ROLE_CHANGED,
                        {
                            "action": "permission_removed",
                            "role_id": role.id,
                            "permission": permission.name,
                        },
                    )
                )

        return bool(deleted)

    @classmethod
    @retry_on_connection_loss
    def delete_role(cls, role_id: int) -> None:
        """
        Delete a role together with its grants and assignments.

        Raises:
            NotFoundError: Unknown role
            ConflictError: The role is the default role
        """
        with cls.atomic():
            role = cls.get_or_raise(
                Role,
                "ROLE_NOT_FOUND",
                queryset=Role.objects.select_for_update(),
                pk=role_id,
            )
            if role.is_default:
                raise ConflictError(
                    "Cannot delete the default role",
                    error_code="DEFAULT_ROLE_PROTECTED",
                    details={"role_id": role.id},
                )

            unassigned, _ = UserRole.objects.filter(role=role).delete()
            RolePermission.objects.filter(role=role).delete()
            role.delete()

            emit(
                DomainEvent(
                    EventType.ROLE_CHANGED,
                    {"action": "deleted", "role_id": role_id},
                )
            )

        cls.get_logger().info(
            f"Deleted role {role_id} (unassigned from {unassigned} users)"
        )

    @classmethod
    @retry_on_connection_loss
    def assign_role(cls, user_id: int, role_id: int) -> bool:
        """
        Give a role to a user. Assigning a role the user holds is a no-op.

        Returns:
            True if the assignment was created

        Raises:
            NotFoundError: Unknown user or role
        """
        with cls.atomic():
            cls.get_or_raise(get_user_model(), "USER_NOT_FOUND", pk=user_id)
            role = cls.get_or_raise(Role, "ROLE_NOT_FOUND", pk=role_id)
            _, created = UserRole.objects.get_or_create(user_id=user_id, role=role)
            if created:
                emit(
                    DomainEvent(
                        EventType.ROLE_CHANGED,
                        {"action": "assigned", "role_id": role.id, "user_id": user_id},
                    )
                )

        if created:
            cls.get_logger().info(f"Assigned role {role_id} to user {user_id}")
        return created

    @classmethod
    @retry_on_connection_loss
    def remove_role(cls, user_id: int, role_id: int) -> bool:
        """
        Take a role from a user. Removing a role the user lacks is a no-op.

        Returns:
            True if an assignment was removed

        Raises:
            NotFoundError: Unknown role
            ConflictError: The role is the default role
        """
        with cls.atomic():
            role = cls.get_or_raise(Role, "ROLE_NOT_FOUND", pk=role_id)
            if role.is_default:
                raise ConflictError(
                    "The default role cannot be removed from a user",
                    error_code="DEFAULT_ROLE_PROTECTED",
                    details={"role_id": role.id, "user_id": user_id},
                )

            deleted, _ = UserRole.objects.filter(user_id=user_id, role=role).delete()
            if deleted:
                emit(
                    DomainEvent(
                        EventType.ROLE_CHANGED,
                        {"action": "unassigned", "role_id": role.id, "user_id": user_id},
                    )
                )

        if deleted:
            cls.get_logger().info(f"Removed role {role_id} from user {user_id}")
        return bool(deleted)

    @classmethod
    @retry_on_connection_loss
    def set_user_roles(cls, user_id: int, role_ids: Iterable[int]) -> list[Role]:
        """
        Replace a user's roles. The default role is always kept.

        Returns:
            The user's roles after the change, highest position first

        Raises:
            NotFoundError: Unknown user or any unknown role id
        """
        wanted = set(role_ids)

        with cls.atomic():
            cls.get_or_raise(get_user_model(), "USER_NOT_FOUND", pk=user_id)

            roles = {role.id: role for role in Role.objects.filter(pk__in=wanted)}
            missing = wanted - roles.keys()
            if missing:
                raise NotFoundError(
                    "Role not found",
                    error_code="ROLE_NOT_FOUND",
                    details={"role_ids": sorted(missing)},
                )

            wanted.add(cls.get_default_role().id)
            held = set(
                UserRole.objects.filter(user_id=user_id).values_list("role_id", flat=True)
            )

            UserRole.objects.filter(user_id=user_id).exclude(role_id__in=wanted).delete()
            UserRole.objects.bulk_create(
                [UserRole(user_id=user_id, role_id=rid) for rid in wanted - held]
            )

            if held != wanted:
                emit(
                    DomainEvent(
                        EventType.ROLE_CHANGED,
                        {
                            "action": "user_roles_set",
                            "user_id": user_id,
                            "role_ids": sorted(wanted),
                        },
                    )
                )

        return cls.get_user_roles(user_id)

    @classmethod
    @retry_on_connection_loss
    def assign_default_role(cls, user_id: int) -> bool:
        """Give a user the default role (no-op if already held)."""
        default = cls.get_default_role()
        _, created = UserRole.objects.get_or_create(user_id=user_id, role=default)
        if created:
            emit(
                DomainEvent(
                    EventType.ROLE_CHANGED,
                    {"action": "assigned", "role_id": default.id, "user_id": user_id},
                )
            )
        return created

    @classmethod
    def get_default_role(cls) -> Role:
        """
        Return the single default role.

        Raises:
            ImproperlyConfigured: No default role exists. The catalog is
                seeded by migration, so this means the database was not
                migrated or was tampered with.
        """
        role = Role.objects.filter(is_default=True).first()
        if role is None:
            raise ImproperlyConfigured(
                "No default role exists; run the roles migrations"
            )
        return role

    @classmethod
    def get_user_roles(cls, user_id: int) -> list[Role]:
        """A user's roles, highest position first."""
        return list(
            Role.objects.filter(user_roles__user_id=user_id).order_by("-position", "id")
        )

    @classmethod
    def get_highest_role(cls, user_id: int) -> Role | None:
        """A user's highest-positioned role, or None if they hold none."""
        return (
            Role.objects.filter(user_roles__user_id=user_id)
            .order_by("-position", "id")
            .first()
        )

    @classmethod
    def get_roles_with_permissions(cls) -> list[Role]:
        """
        All roles, highest position first, with permissions prefetched.

        Each role's ``permissions.all()`` is ordered by category.
        """
        return list(
            Role.objects.order_by("-position", "id").prefetch_related(
                Prefetch(
                    "permissions",
                    queryset=Permission.objects.order_by("category", "id"),
                )
            )
        )

    @classmethod
    def get_permissions_grouped(cls) -> dict[str, list[Permission]]:
        """The permission catalog keyed by category, in catalog order."""
        grouped: dict[str, list[Permission]] = {}
        for permission in Permission.objects.order_by("category", "id"):
            grouped.setdefault(permission.category, []).append(permission)
        return grouped

    # =========================================================================
    # Internal helpers
    # =========================================================================

    @classmethod
    def _clean_name(cls, name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError(
                "Role name is required",
                error_code="ROLE_NAME_REQUIRED",
            )
        if len(name) > ROLE_CONFIG.MAX_NAME_LENGTH:
            raise ValidationError(
                f"Role name cannot exceed {ROLE_CONFIG.MAX_NAME_LENGTH} characters",
                error_code="ROLE_NAME_TOO_LONG",
                details={"max_length": ROLE_CONFIG.MAX_NAME_LENGTH},
            )
        return name

    @classmethod
    def _check_color(cls, color: str) -> None:
        if not isinstance(color, str) or not re.match(ROLE_CONFIG.COLOR_PATTERN, color):
            raise ValidationError(
                "Color must be a hex value like #99AAB5",
                error_code="INVALID_COLOR",
                details={"color": color},
            )

    @classmethod
    def _resolve_permissions(cls, names: Iterable[str]) -> list[Permission]:
        wanted = set(names)
        if not wanted:
            return []

        found = list(Permission.objects.filter(name__in=wanted))
        unknown = wanted - {p.name for p in found}
        if unknown:
            raise ValidationError(
                "Unknown permissions",
                error_code="UNKNOWN_PERMISSION",
                details={"unknown": sorted(unknown)},
            )
        return found


class PermissionResolver(BaseService):
    """
    Read-only permission checks.

    A user's effective permissions are the union of the permissions of
    every role they hold. Holding ``administrator`` grants everything.
    """

    @classmethod
    @retry_on_connection_loss
    def effective_permissions(cls, user_id: int) -> frozenset[str]:
        """Union of permission names across all of the user's roles."""
        return frozenset(
            Permission.objects.filter(role_permissions__role__user_roles__user_id=user_id)
            .values_list("name", flat=True)
            .distinct()
        )

    @classmethod
    def has_permission(cls, user_id: int, permission_name: str) -> bool:
        """Whether the user holds the permission or ``administrator``."""
        permissions = cls.effective_permissions(user_id)
        return (
            Permissions.ADMINISTRATOR in permissions
            or permission_name in permissions
        )

    @classmethod
    def has_any_permission(cls, user_id: int, permission_names: Iterable[str]) -> bool:
        """Whether the user holds any of the permissions or ``administrator``."""
        permissions = cls.effective_permissions(user_id)
        if Permissions.ADMINISTRATOR in permissions:
            return True
        return not permissions.isdisjoint(permission_names)

    @classmethod
    def require_permission(cls, user_id: int, permission_name: str) -> None:
        """
        Raise unless the user holds the permission.

        Raises:
            PermissionDeniedError: Permission missing
        """
        if not cls.has_permission(user_id, permission_name):
            cls.get_logger().warning(
                f"User {user_id} denied: missing {permission_name}"
            )
            raise PermissionDeniedError(
                f"This action requires the {permission_name} permission",
                details={"required_permission": permission_name},
            )
