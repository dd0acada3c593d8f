"""
Seed the permission catalog and the stock roles.

Creates:
- The 17 catalog permissions
- Admin (administrator), Moderator and the default Member role
"""

from django.db import migrations

from roles.constants import PERMISSION_CATALOG, SEED_ROLES


def seed_roles(apps, schema_editor):
    """Create catalog permissions and stock roles with their grants."""
    Permission = apps.get_model("roles", "Permission")
    Role = apps.get_model("roles", "Role")
    RolePermission = apps.get_model("roles", "RolePermission")

    permissions = {}
    for name, description, category in PERMISSION_CATALOG:
        permission, _ = Permission.objects.get_or_create(
            name=name,
            defaults={"description": description, "category": category},
        )
        permissions[name] = permission

    for name, color, position, is_default, granted in SEED_ROLES:
        role, _ = Role.objects.get_or_create(
            name=name,
            defaults={
                "color": color,
                "position": position,
                "is_default": is_default,
            },
        )
        for permission_name in granted:
            RolePermission.objects.get_or_create(
                role=role, permission=permissions[permission_name]
            )


def remove_seed(apps, schema_editor):
    """Remove stock roles and the catalog on migration rollback."""
    Permission = apps.get_model("roles", "Permission")
    Role = apps.get_model("roles", "Role")

    Role.objects.filter(name__in=[row[0] for row in SEED_ROLES]).delete()
    Permission.objects.filter(name__in=[row[0] for row in PERMISSION_CATALOG]).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("roles", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_roles, remove_seed),
    ]
