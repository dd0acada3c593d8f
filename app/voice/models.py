"""
Voice membership model.

Models:
    VoiceMember: A user's presence in a voice channel

Design Decisions:
    - user is unique: a user is in at most one voice channel, enforced by
      the database even if two joins race
    - Rows are deleted on leave; there is no history
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from rooms.models import VoiceChannel


class VoiceMember(models.Model):
    """
    A user currently in a voice channel.

    Fields:
        channel: The occupied voice channel
        user: The member (unique across all channels)
        muted: Self-mute flag
        deafened: Self-deafen flag
        joined_at: When the user joined this channel
    """

    channel = models.ForeignKey(
        VoiceChannel,
        on_delete=models.CASCADE,
        related_name="members",
        help_text="Occupied voice channel",
    )
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="voice_membership",
        help_text="Member; a user occupies at most one channel",
    )
    muted = models.BooleanField(default=False)
    deafened = models.BooleanField(default=False)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "voice_members"
        ordering = ["joined_at", "id"]

    def __str__(self) -> str:
        return f"VoiceMember(user={self.user_id}, channel={self.channel_id})"

    def to_payload(self) -> dict:
        return {
            "channel_id": self.channel_id,
            "user_id": self.user_id,
            "muted": self.muted,
            "deafened": self.deafened,
        }
