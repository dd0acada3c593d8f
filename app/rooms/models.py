"""
Channel models.

Models:
    TextChannel: A text channel (public or private DM)
    VoiceChannel: A voice channel with an optional occupancy limit
    ChannelParticipant: The owners of a private (DM) channel

Design Decisions:
    - Public channels are open to everyone; DM channels are restricted to
      the users listed as ChannelParticipant rows for that channel
    - ChannelParticipant references either channel table through
      (channel_kind, channel_id) so one table covers both kinds
    - max_users == 0 means unlimited
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.models import BaseModel
from rooms.constants import CHANNEL_CONFIG


class ChannelType(models.TextChoices):
    """
    Visibility of a channel.

    PUBLIC: Normal server channel
    DM: Private channel owned by two friends
    """

    PUBLIC = "public", "Public"
    DM = "dm", "Direct Message"


class ChannelKind(models.TextChoices):
    """Which channel table a ChannelParticipant row points at."""

    TEXT = "text", "Text"
    VOICE = "voice", "Voice"


class TextChannel(BaseModel):
    """
    A text channel.

    Fields:
        name: Channel name
        description: Optional topic
        channel_type: public or dm
        created_by: User who created the channel
        position: Sort order in the channel list
    """

    name = models.CharField(
        max_length=CHANNEL_CONFIG.MAX_NAME_LENGTH,
        help_text="Channel name",
    )
    description = models.CharField(
        max_length=CHANNEL_CONFIG.MAX_DESCRIPTION_LENGTH,
        blank=True,
        default="",
        help_text="Channel topic",
    )
    channel_type = models.CharField(
        max_length=10,
        choices=ChannelType.choices,
        default=ChannelType.PUBLIC,
        db_index=True,
        help_text="Public server channel or private DM channel",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="created_text_channels",
        help_text="User who created the channel",
    )
    position = models.IntegerField(
        default=0,
        help_text="Sort order in the channel list",
    )

    class Meta:
        db_table = "text_channels"
        ordering = ["position", "id"]

    def __str__(self) -> str:
        return f"#{self.name}"

    @property
    def is_dm(self) -> bool:
        return self.channel_type == ChannelType.DM


class VoiceChannel(BaseModel):
    """
    A voice channel.

    Fields:
        name: Channel name
        channel_type: public or dm
        max_users: Occupancy limit, 0 for unlimited
        bitrate: Audio bitrate in bits per second
        created_by: User who created the channel
        position: Sort order in the channel list

    Relationships:
        members: VoiceMember rows for users currently in the channel
    """

    name = models.CharField(
        max_length=CHANNEL_CONFIG.MAX_NAME_LENGTH,
        help_text="Channel name",
    )
    channel_type = models.CharField(
        max_length=10,
        choices=ChannelType.choices,
        default=ChannelType.PUBLIC,
        db_index=True,
        help_text="Public server channel or private DM channel",
    )
    max_users = models.PositiveIntegerField(
        default=0,
        help_text="Maximum simultaneous members (0 = unlimited)",
    )
    bitrate = models.PositiveIntegerField(
        default=CHANNEL_CONFIG.DEFAULT_BITRATE,
        help_text="Audio bitrate in bits per second",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="created_voice_channels",
        help_text="User who created the channel",
    )
    position = models.IntegerField(
        default=0,
        help_text="Sort order in the channel list",
    )

    class Meta:
        db_table = "voice_channels"
        ordering = ["position", "id"]

    def __str__(self) -> str:
        return f"voice:{self.name}"

    @property
    def is_dm(self) -> bool:
        return self.channel_type == ChannelType.DM

    @property
    def is_unlimited(self) -> bool:
        return self.max_users == 0

    def has_room_for(self, occupancy: int) -> bool:
        """Whether one more member fits given the current occupancy."""
        return self.is_unlimited or occupancy < self.max_users


class ChannelParticipant(models.Model):
    """
    Lists a user as an owner of a private channel.

    Fields:
        channel_kind: text or voice
        channel_id: Primary key in the matching channel table
        user: The participant
        joined_at: When the user was added
    """

    channel_kind = models.CharField(
        max_length=10,
        choices=ChannelKind.choices,
        default=ChannelKind.TEXT,
    )
    channel_id = models.PositiveBigIntegerField(
        help_text="Id of the TextChannel or VoiceChannel",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="channel_participations",
    )
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "channel_participants"
        constraints = [
            models.UniqueConstraint(
                fields=["channel_kind", "channel_id", "user"],
                name="unique_channel_participant",
            ),
        ]
        indexes = [
            models.Index(
                fields=["channel_kind", "channel_id"],
                name="channel_participants_chan_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.channel_kind}:{self.channel_id} user={self.user_id}"
