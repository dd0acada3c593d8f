"""
Domain events published to the real-time transport.

Every committed mutation in the core produces a DomainEvent. Publication
is deferred with transaction.on_commit so a rolled-back operation never
leaks an event. On commit the event is:

1. sent through the ``domain_event`` Django signal (in-process listeners)
2. forwarded to the Django Channels layer group named by
   settings.REALTIME_EVENTS_GROUP, when a channel layer is configured

The WebSocket consumers that fan events out to clients live outside this
project; they subscribe to that group and handle ``domain.event`` messages.

Usage:
    from core.events import DomainEvent, EventType, emit

    emit(DomainEvent(
        EventType.VOICE_JOINED,
        {"channel_id": channel.id, "user_id": user_id},
    ))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.db import transaction
from django.dispatch import Signal
from django.utils import timezone

logger = logging.getLogger(__name__)

# Sent after commit with kwargs: event (DomainEvent)
domain_event = Signal()


class EventType:
    """
    Event names understood by the transport layer.

    ROLE_CHANGED: role created/updated/deleted, permissions or assignments changed
        payload: {"action": str, "role_id": int, ...}

    VOICE_JOINED: user entered a voice channel
        payload: {"channel_id": int, "user_id": int, "channel_type": str}

    VOICE_LEFT: user left a voice channel (explicit leave, move, reconcile)
        payload: {"channel_id": int, "user_id": int, "reason": str}

    VOICE_FORCE_DISCONNECTED: privileged user removed someone from voice
        payload: {"channel_id": int, "user_id": int, "disconnected_by": int}

    VOICE_STATE_UPDATED: mute/deafen flag changed
        payload: {"channel_id": int, "user_id": int, "muted": bool, "deafened": bool}

    FRIEND_REQUEST_UPDATED: request sent/accepted/declined/cancelled
        payload: {"request_id": int, "sender_id": int, "receiver_id": int, "status": str}

    FRIENDSHIP_CREATED / FRIENDSHIP_REMOVED
        payload: {"user1_id": int, "user2_id": int}
    """

    ROLE_CHANGED = "role.changed"
    VOICE_JOINED = "voice.joined"
    VOICE_LEFT = "voice.left"
    VOICE_FORCE_DISCONNECTED = "voice.force_disconnected"
    VOICE_STATE_UPDATED = "voice.state_updated"
    FRIEND_REQUEST_UPDATED = "friend_request.updated"
    FRIENDSHIP_CREATED = "friendship.created"
    FRIENDSHIP_REMOVED = "friendship.removed"


@dataclass(frozen=True)
class DomainEvent:
    """A committed state change, ready to broadcast."""

    event_type: str
    payload: dict[str, Any]
    occurred_at: str = field(default_factory=lambda: timezone.now().isoformat())

    def to_message(self) -> dict[str, Any]:
        """Channel layer message for this event."""
        return {
            "type": "domain.event",
            "event": self.event_type,
            "payload": self.payload,
            "occurred_at": self.occurred_at,
        }


def emit(event: DomainEvent) -> None:
    """
    Publish an event once the surrounding transaction commits.

    Outside a transaction (autocommit) the event is published immediately.
    """
    transaction.on_commit(lambda: _publish(event))


def _publish(event: DomainEvent) -> None:
    domain_event.send(sender=DomainEvent, event=event)

    channel_layer = get_channel_layer()
    if channel_layer is None:
        return

    try:
        async_to_sync(channel_layer.group_send)(
            settings.REALTIME_EVENTS_GROUP, event.to_message()
        )
    except Exception:
        # State is already committed; broadcast failures are logged only
        logger.exception(f"Failed to broadcast {event.event_type} event")
