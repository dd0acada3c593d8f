"""
Private channel provisioning.

Services:
    DirectChannelService: Find or create the DM text/voice channels shared
        by two users, and answer participant checks

The caller is responsible for serializing concurrent provisioning for the
same pair (FriendshipService holds a row lock on the friendship).
"""

from __future__ import annotations

from typing import TypeVar

from core.exceptions import ValidationError
from core.services import BaseService
from rooms.constants import CHANNEL_CONFIG
from rooms.models import (
    ChannelKind,
    ChannelParticipant,
    ChannelType,
    TextChannel,
    VoiceChannel,
)

C = TypeVar("C", TextChannel, VoiceChannel)


class DirectChannelService(BaseService):
    """
    Service for private channels between two users.

    Methods:
        get_or_create_text_channel: DM text channel for a pair
        get_or_create_voice_channel: DM voice channel (max 2) for a pair
        is_participant: Whether a user owns a private channel
        get_participant_ids: The two owners of a private channel
        can_access_voice_channel: Public channel or DM participant
    """

    @classmethod
    def get_or_create_text_channel(cls, user_a: int, user_b: int) -> TextChannel:
        """Return the DM text channel shared by two users, creating it if needed."""
        low, high = cls._ordered_pair(user_a, user_b)
        channel = cls._find_pair_channel(TextChannel, ChannelKind.TEXT, low, high)
        if channel is not None:
            return channel

        with cls.atomic():
            channel = TextChannel.objects.create(
                name=CHANNEL_CONFIG.DM_TEXT_NAME_TEMPLATE.format(low=low, high=high),
                channel_type=ChannelType.DM,
                created_by_id=low,
            )
            cls._add_participants(ChannelKind.TEXT, channel.id, low, high)

        cls.get_logger().info(
            f"Created DM text channel {channel.id} for users {low} and {high}"
        )
        return channel

    @classmethod
    def get_or_create_voice_channel(cls, user_a: int, user_b: int) -> VoiceChannel:
        """Return the DM voice channel shared by two users, creating it if needed."""
        low, high = cls._ordered_pair(user_a, user_b)
        channel = cls._find_pair_channel(VoiceChannel, ChannelKind.VOICE, low, high)
        if channel is not None:
            return channel

        with cls.atomic():
            channel = VoiceChannel.objects.create(
                name=CHANNEL_CONFIG.DM_VOICE_NAME_TEMPLATE.format(low=low, high=high),
                channel_type=ChannelType.DM,
                max_users=CHANNEL_CONFIG.DM_VOICE_MAX_USERS,
                created_by_id=low,
            )
            cls._add_participants(ChannelKind.VOICE, channel.id, low, high)

        cls.get_logger().info(
            f"Created DM voice channel {channel.id} for users {low} and {high}"
        )
        return channel

    @classmethod
    def is_participant(cls, kind: str, channel_id: int, user_id: int) -> bool:
        """Whether the user is listed as an owner of the private channel."""
        return ChannelParticipant.objects.filter(
            channel_kind=kind, channel_id=channel_id, user_id=user_id
        ).exists()

    @classmethod
    def get_participant_ids(cls, kind: str, channel_id: int) -> list[int]:
        """Owners of a private channel, lowest id first."""
        return list(
            ChannelParticipant.objects.filter(channel_kind=kind, channel_id=channel_id)
            .order_by("user_id")
            .values_list("user_id", flat=True)
        )

    @classmethod
    def can_access_voice_channel(cls, channel: VoiceChannel, user_id: int) -> bool:
        """Public voice channels are open; DM voice channels need participation."""
        if not channel.is_dm:
            return True
        return cls.is_participant(ChannelKind.VOICE, channel.id, user_id)

    # =========================================================================
    # Internal helpers
    # =========================================================================

    @classmethod
    def _ordered_pair(cls, user_a: int, user_b: int) -> tuple[int, int]:
        if user_a == user_b:
            raise ValidationError(
                "A private channel needs two different users",
                error_code="SAME_USER",
            )
        return min(user_a, user_b), max(user_a, user_b)

    @classmethod
    def _find_pair_channel(
        cls, model_class: type[C], kind: str, low: int, high: int
    ) -> C | None:
        low_ids = ChannelParticipant.objects.filter(
            channel_kind=kind, user_id=low
        ).values("channel_id")
        high_ids = ChannelParticipant.objects.filter(
            channel_kind=kind, user_id=high
        ).values("channel_id")
        return (
            model_class.objects.filter(
                channel_type=ChannelType.DM, pk__in=low_ids
            )
            .filter(pk__in=high_ids)
            .order_by("id")
            .first()
        )

    @classmethod
    def _add_participants(cls, kind: str, channel_id: int, *user_ids: int) -> None:
        ChannelParticipant.objects.bulk_create(
            [
                ChannelParticipant(channel_kind=kind, channel_id=channel_id, user_id=uid)
                for uid in user_ids
            ]
        )
