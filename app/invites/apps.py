"""
Invites application configuration.
"""

from django.apps import AppConfig


class InvitesConfig(AppConfig):
    """Configuration for the invites application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "invites"
    verbose_name = "Invites"
