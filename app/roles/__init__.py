"""
Roles app: the permission catalog and role-based access control.

This app handles:
- The immutable permission catalog (seeded by migration)
- Roles with color/position and the single default role
- Role <-> permission and user <-> role associations
- Effective permission resolution with the administrator override

Usage:
    from roles.services import PermissionResolver, RoleRegistry

    if PermissionResolver.has_permission(user_id, Permissions.MANAGE_ROLES):
        RoleRegistry.create_role("Moderator", "#3498DB", ["manage_messages"])
"""
