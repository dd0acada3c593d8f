"""
Voice channel membership service.

This module keeps the voice_members table consistent under concurrent
joins, leaves, moves and forced disconnects.

Services:
    VoiceMembershipService: join/leave/move, mute/deafen, forced disconnect,
        stale-session reconcile

Concurrency:
    join() locks the target VoiceChannel row (SELECT ... FOR UPDATE) before
    counting members, so two joins racing for the last seat are serialized
    and exactly one wins. The unique constraint on VoiceMember.user catches
    the same user joining two channels at once; that loser gets a
    ConflictError instead of a second membership.

Usage:
    from voice.services import VoiceMembershipService

    member = VoiceMembershipService.join(user.id, channel.id)
    VoiceMembershipService.toggle_mute(user.id)
    VoiceMembershipService.leave(user.id)
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db import IntegrityError
from django.db.models import Prefetch

from core.decorators import retry_on_connection_loss
from core.events import DomainEvent, EventType, emit
from core.exceptions import ConflictError, PermissionDeniedError
from core.services import BaseService
from roles.constants import Permissions
from roles.services import PermissionResolver
from rooms.models import ChannelKind, ChannelParticipant, ChannelType, VoiceChannel
from rooms.services import DirectChannelService
from voice.models import VoiceMember


class LeaveReason:
    """Reason attached to voice.left events."""

    LEFT = "left"
    MOVED = "moved"
    RECONCILE = "reconcile"


class VoiceMembershipService(BaseService):
    """
    Service for voice channel membership.

    Methods:
        join: Enter a channel (moving out of any other), capacity-checked
        leave: Leave the current channel
        toggle_mute: Flip the caller's mute flag
        toggle_deafen: Flip the caller's deafen flag
        force_disconnect: Remove another user (requires move_members)
        reconcile_on_connect: Drop a membership left over from a dead session
        get_members: Members of a channel in join order
        get_member_channel: The channel a user is in, if any
        get_channels_with_members: Public channels with their members
        get_active_dm_call: The DM voice channel a user is in
        get_any_active_dm_call: An occupied DM voice channel a user owns
    """

    @classmethod
    @retry_on_connection_loss
    def join(cls, user_id: int, channel_id: int) -> VoiceMember:
        """
        Put a user in a voice channel.

        Joining the channel the user is already in returns the existing
        membership unchanged. Joining another channel moves the user. When
        the target is full nothing changes and the user keeps any previous
        membership.

        Implementation:
            1. Lock the target channel row
            2. Check DM participation for private channels
            3. Return the existing membership if already there
            4. Delete any membership elsewhere (move)
            5. Count members and compare to max_users
            6. Insert the membership

        Args:
            user_id: Joining user
            channel_id: Target voice channel

        Returns:
            The user's VoiceMember row

        Raises:
            NotFoundError: Unknown user or channel
            PermissionDeniedError: DM channel the user does not own
            ConflictError: Channel full (CHANNEL_FULL) or a concurrent join
                by the same user won (JOIN_CONFLICT)
        """
        try:
            with cls.atomic():
                cls.get_or_raise(get_user_model(), "USER_NOT_FOUND", pk=user_id)
                channel = cls.get_or_raise(
                    VoiceChannel,
                    "CHANNEL_NOT_FOUND",
                    queryset=VoiceChannel.objects.select_for_update(),
                    pk=channel_id,
                )

                if not DirectChannelService.can_access_voice_channel(channel, user_id):
                    cls.get_logger().warning(
                        f"User {user_id} denied access to DM voice channel {channel.id}"
                    )
                    raise PermissionDeniedError(
                        "You are not a participant of this private call",
                        error_code="NOT_CHANNEL_PARTICIPANT",
                        details={"channel_id": channel.id},
                    )

                current = (
                    VoiceMember.objects.select_for_update()
                    .filter(user_id=user_id)
                    .first()
                )
                if current is not None and current.channel_id == channel.id:
                    return current

                previous_channel_id = None
                if current is not None:
                    previous_channel_id = current.channel_id
                    current.delete()

                occupancy = VoiceMember.objects.filter(channel=channel).count()
                if not channel.has_room_for(occupancy):
                    cls.get_logger().warning(
                        f"User {user_id} rejected from full voice channel {channel.id} "
                        f"({occupancy}/{channel.max_users})"
                    )
                    raise ConflictError(
                        "Voice channel is full",
                        error_code="CHANNEL_FULL",
                        details={
                            "channel_id": channel.id,
                            "max_users": channel.max_users,
                        },
                    )

                member = VoiceMember.objects.create(channel=channel, user_id=user_id)

                if previous_channel_id is not None:
                    emit(
                        DomainEvent(
                            EventType.VOICE_LEFT,
                            {
                                "channel_id": previous_channel_id,
                                "user_id": user_id,
                                "reason": LeaveReason.MOVED,
                            },
                        )
                    )
                emit(
                    DomainEvent(
                        EventType.VOICE_JOINED,
                        {
                            "channel_id": channel.id,
                            "user_id": user_id,
                            "channel_type": channel.channel_type,
                        },
                    )
                )
        except IntegrityError as exc:
            cls.get_logger().warning(
                f"Concurrent voice join for user {user_id} lost the race: {exc}"
            )
            raise ConflictError(
                "Another join for this user is in progress",
                error_code="JOIN_CONFLICT",
                details={"user_id": user_id, "channel_id": channel_id},
            ) from exc

        if previous_channel_id is not None:
            cls.get_logger().info(
                f"User {user_id} moved from voice channel {previous_channel_id} "
                f"to {channel.id}"
            )
        else:
            cls.get_logger().info(f"User {user_id} joined voice channel {channel.id}")
        return member

    @classmethod
    @retry_on_connection_loss
    def leave(cls, user_id: int) -> bool:
        """
        Remove a user from their voice channel.

        Returns:
            True if a membership was removed, False if the user was not in voice
        """
        return cls._remove_membership(user_id, LeaveReason.LEFT)

    @classmethod
    @retry_on_connection_loss
    def toggle_mute(cls, user_id: int) -> VoiceMember:
        """
        Flip the user's own mute flag.

        Raises:
            NotFoundError: User is not in a voice channel
        """
        return cls._toggle_flag(user_id, "muted")

    @classmethod
    @retry_on_connection_loss
    def toggle_deafen(cls, user_id: int) -> VoiceMember:
        """
        Flip the user's own deafen flag.

        Raises:
            NotFoundError: User is not in a voice channel
        """
        return cls._toggle_flag(user_id, "deafened")

    @classmethod
    @retry_on_connection_loss
    def force_disconnect(cls, acting_user_id: int, target_user_id: int) -> bool:
        """
        Remove another user from voice.

        The acting user needs move_members (administrator also passes).

        Returns:
            True if the target was in voice and has been removed

        Raises:
            PermissionDeniedError: Acting user lacks move_members
        """
        PermissionResolver.require_permission(acting_user_id, Permissions.MOVE_MEMBERS)

        with cls.atomic():
            member = (
                VoiceMember.objects.select_for_update()
                .filter(user_id=target_user_id)
                .first()
            )
            if member is None:
                return False

            channel_id = member.channel_id
            member.delete()
            emit(
                DomainEvent(
                    EventType.VOICE_FORCE_DISCONNECTED,
                    {
                        "channel_id": channel_id,
                        "user_id": target_user_id,
                        "disconnected_by": acting_user_id,
                    },
                )
            )

        cls.get_logger().info(
            f"User {acting_user_id} disconnected user {target_user_id} "
            f"from voice channel {channel_id}"
        )
        return True

    @classmethod
    @retry_on_connection_loss
    def reconcile_on_connect(cls, user_id: int) -> bool:
        """
        Drop a membership left behind by a session that died without leaving.

        Called when a user's real-time session is (re)established. Safe to
        call any number of times.

        Returns:
            True if a stale membership was removed
        """
        return cls._remove_membership(user_id, LeaveReason.RECONCILE)

    @classmethod
    def get_members(cls, channel_id: int) -> list[VoiceMember]:
        """Members of a channel in join order."""
        return list(VoiceMember.objects.filter(channel_id=channel_id).order_by("joined_at", "id"))

    @classmethod
    def get_member_channel(cls, user_id: int) -> VoiceChannel | None:
        """The voice channel the user is in, or None."""
        return VoiceChannel.objects.filter(members__user_id=user_id).first()

    @classmethod
    def get_channels_with_members(cls) -> list[VoiceChannel]:
        """
        Public voice channels in list order, members prefetched.

        ``channel.members.all()`` is in join order with users loaded.
        """
        return list(
            VoiceChannel.objects.filter(channel_type=ChannelType.PUBLIC)
            .order_by("position", "id")
            .prefetch_related(
                Prefetch(
                    "members",
                    queryset=VoiceMember.objects.select_related("user").order_by(
                        "joined_at", "id"
                    ),
                )
            )
        )

    @classmethod
    def get_active_dm_call(cls, user_id: int) -> VoiceChannel | None:
        """The DM voice channel the user is currently in, or None."""
        return VoiceChannel.objects.filter(
            channel_type=ChannelType.DM, members__user_id=user_id
        ).first()

    @classmethod
    def get_any_active_dm_call(cls, user_id: int) -> VoiceChannel | None:
        """
        A DM voice channel the user owns that someone is connected to.

        Finds a call whether the user is in it or the other participant is
        waiting there, so a client can show an incoming call. Use
        DirectChannelService.get_participant_ids() to find the other party.
        """
        owned = ChannelParticipant.objects.filter(
            channel_kind=ChannelKind.VOICE, user_id=user_id
        ).values("channel_id")
        occupied = VoiceMember.objects.values("channel_id")
        return (
            VoiceChannel.objects.filter(
                channel_type=ChannelType.DM, pk__in=owned
            )
            .filter(pk__in=occupied)
            .order_by("id")
            .first()
        )

    # =========================================================================
    # Internal helpers
    # =========================================================================

    @classmethod
    def _remove_membership(cls, user_id: int, reason: str) -> bool:
        with cls.atomic():
            member = (
                VoiceMember.objects.select_for_update().filter(user_id=user_id).first()
            )
            if member is None:
                return False

            channel_id = member.channel_id
            member.delete()
            emit(
                DomainEvent(
                    EventType.VOICE_LEFT,
                    {"channel_id": channel_id, "user_id": user_id, "reason": reason},
                )
            )

        cls.get_logger().info(
            f"User {user_id} left voice channel {channel_id} ({reason})"
        )
        return True

    @classmethod
    def _toggle_flag(cls, user_id: int, field: str) -> VoiceMember:
        with cls.atomic():
            member = cls.get_or_raise(
                VoiceMember,
                "NOT_IN_VOICE",
                queryset=VoiceMember.objects.select_for_update(),
                user_id=user_id,
            )
            setattr(member, field, not getattr(member, field))
            member.save(update_fields=[field])
            emit(DomainEvent(EventType.VOICE_STATE_UPDATED, member.to_payload()))

        return member
