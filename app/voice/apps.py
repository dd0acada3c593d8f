"""
Voice application configuration.
"""

from django.apps import AppConfig


class VoiceConfig(AppConfig):
    """Configuration for the voice application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "voice"
    verbose_name = "Voice"
