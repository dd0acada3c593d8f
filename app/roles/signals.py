"""
Signal handlers for the roles app.

Every user holds the default role. It is assigned as part of the same
transaction that creates the user, so a missing default role aborts user
creation with ImproperlyConfigured.
"""

import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

from roles.services import RoleRegistry

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def assign_default_role_on_create(sender, instance, created, raw=False, **kwargs):
    """Give newly created users the default role."""
    if not created or raw:
        return

    RoleRegistry.assign_default_role(instance.pk)
    logger.debug(f"Assigned default role to user {instance.pk}")
