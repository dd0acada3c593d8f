"""
Celery tasks for invite code maintenance.

Usage:
    from invites.tasks import purge_spent_invite_codes

    # Scheduled hourly via celery-beat (see migration 0002)
    purge_spent_invite_codes.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task

from invites.services import InviteCodeService

logger = logging.getLogger(__name__)


@shared_task
def purge_spent_invite_codes() -> dict:
    """
    Periodic task that deletes expired and exhausted invite codes.

    Returns:
        Dict with the number of codes purged
    """
    purged = InviteCodeService.purge_spent()

    logger.info(
        "Purged spent invite codes",
        extra={"purged_count": purged},
    )
    return {"purged": purged}
