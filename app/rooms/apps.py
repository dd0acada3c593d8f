"""
Rooms application configuration.
"""

from django.apps import AppConfig


class RoomsConfig(AppConfig):
    """Configuration for the rooms application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "rooms"
    verbose_name = "Rooms"
