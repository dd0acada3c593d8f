"""
Roles application configuration.
"""

from django.apps import AppConfig


class RolesConfig(AppConfig):
    """Configuration for the roles application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "roles"
    verbose_name = "Roles"

    def ready(self):
        """Connect the default-role assignment signal."""
        from roles import signals  # noqa: F401
