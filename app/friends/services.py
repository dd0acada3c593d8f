"""
Friendship service layer.

Services:
    FriendshipService: Request lifecycle, canonical friendships and the
        pair's private channels

Design Principles:
    - Services are stateless (use class methods)
    - At most one pending request exists per unordered pair
    - Accepting a request and creating the friendship commit together
    - Private channels are created on first request, under a row lock on
      the friendship, so concurrent callers get the same channels

Usage:
    from friends.services import FriendshipService

    request = FriendshipService.send_request(alice.id, bob.id)
    FriendshipService.accept_request(request.id, bob.id)
    text, voice = FriendshipService.get_dm_channels(alice.id, bob.id)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model
from django.db import IntegrityError
from django.db.models import Q
from django.utils import timezone

from core.decorators import retry_on_connection_loss
from core.events import DomainEvent, EventType, emit
from core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from core.services import BaseService
from friends.models import FriendRequest, FriendRequestStatus, Friendship
from rooms.services import DirectChannelService

if TYPE_CHECKING:
    from authentication.models import User
    from rooms.models import TextChannel, VoiceChannel


class FriendshipService(BaseService):
    """
    Service for friend requests and friendships.

    Methods:
        send_request: Ask another user to be friends
        accept_request: Receiver accepts; friendship is created
        decline_request: Receiver declines
        cancel_request: Sender withdraws a pending request
        get_dm_channels: The pair's private text and voice channels
        remove_friend: End a friendship (private channels are kept)
        are_friends: Whether two users are friends
        get_friends: A user's friends
        pending_received: Pending requests addressed to a user
        pending_sent: Pending requests sent by a user
        pending_count: Number of pending requests addressed to a user
    """

    @classmethod
    @retry_on_connection_loss
    def send_request(cls, sender_id: int, receiver_id: int) -> FriendRequest:
        """
        Send a friend request.

        A request the receiver declined earlier is reused and reset to
        pending.

        Raises:
            ValidationError: Sender and receiver are the same user
            NotFoundError: Unknown receiver
            ConflictError: Already friends (ALREADY_FRIENDS) or a request
                is pending in either direction (REQUEST_PENDING)
        """
        if sender_id == receiver_id:
            raise ValidationError(
                "You cannot send a friend request to yourself",
                error_code="CANNOT_FRIEND_SELF",
            )

        try:
            with cls.atomic():
                # Both users locked in id order so opposite sends serialize
                locked = list(
                    get_user_model()
                    .objects.select_for_update()
                    .filter(pk__in=Friendship.canonical(sender_id, receiver_id))
                    .order_by("pk")
                    .values_list("pk", flat=True)
                )
                if receiver_id not in locked:
                    raise NotFoundError(
                        "User not found",
                        error_code="USER_NOT_FOUND",
                        details={"pk": receiver_id},
                    )

                if cls.are_friends(sender_id, receiver_id):
                    raise ConflictError(
                        "You are already friends",
                        error_code="ALREADY_FRIENDS",
                        details={"user_id": receiver_id},
                    )

                pending = FriendRequest.objects.filter(
                    Q(sender_id=sender_id, receiver_id=receiver_id)
                    | Q(sender_id=receiver_id, receiver_id=sender_id),
                    status=FriendRequestStatus.PENDING,
                ).first()
                if pending is not None:
                    raise ConflictError(
                        "A friend request between you is already pending",
                        error_code="REQUEST_PENDING",
                        details={"request_id": pending.id},
                    )

                request = (
                    FriendRequest.objects.select_for_update()
                    .filter(sender_id=sender_id, receiver_id=receiver_id)
                    .first()
                )
                if request is None:
                    request = FriendRequest.objects.create(
                        sender_id=sender_id, receiver_id=receiver_id
                    )
                else:
                    request.status = FriendRequestStatus.PENDING
                    request.save(update_fields=["status", "updated_at"])

                emit(
                    DomainEvent(
                        EventType.FRIEND_REQUEST_UPDATED,
                        {**request.to_payload(), "status": "sent"},
                    )
                )
        except IntegrityError as exc:
            raise ConflictError(
                "A friend request between you is already pending",
                error_code="REQUEST_PENDING",
                details={"user_id": receiver_id},
            ) from exc

        cls.get_logger().info(
            f"User {sender_id} sent friend request {request.id} to user {receiver_id}"
        )
        return request

    @classmethod
    @retry_on_connection_loss
    def accept_request(cls, request_id: int, user_id: int) -> Friendship:
        """
        Accept a pending request addressed to user_id.

        Raises:
            NotFoundError: Unknown request
            PermissionDeniedError: user_id is not the receiver
            ConflictError: Request is no longer pending
        """
        with cls.atomic():
            request = cls._lock_pending_request(request_id, user_id, "receiver")

            request.status = FriendRequestStatus.ACCEPTED
            request.save(update_fields=["status", "updated_at"])

            FriendRequest.objects.filter(
                sender_id=request.receiver_id,
                receiver_id=request.sender_id,
                status=FriendRequestStatus.PENDING,
            ).update(status=FriendRequestStatus.DECLINED, updated_at=timezone.now())

            user1_id, user2_id = Friendship.canonical(
                request.sender_id, request.receiver_id
            )
            friendship, _ = Friendship.objects.get_or_create(
                user1_id=user1_id, user2_id=user2_id
            )

            emit(DomainEvent(EventType.FRIEND_REQUEST_UPDATED, request.to_payload()))
            emit(
                DomainEvent(
                    EventType.FRIENDSHIP_CREATED,
                    {"user1_id": user1_id, "user2_id": user2_id},
                )
            )

        cls.get_logger().info(
            f"Friend request {request_id} accepted; users {user1_id} and "
            f"{user2_id} are now friends"
        )
        return friendship

    @classmethod
    @retry_on_connection_loss
    def decline_request(cls, request_id: int, user_id: int) -> FriendRequest:
        """
        Decline a pending request addressed to user_id.

        Raises:
            NotFoundError: Unknown request
            PermissionDeniedError: user_id is not the receiver
            ConflictError: Request is no longer pending
        """
        with cls.atomic():
            request = cls._lock_pending_request(request_id, user_id, "receiver")

            request.status = FriendRequestStatus.DECLINED
            request.save(update_fields=["status", "updated_at"])

            emit(DomainEvent(EventType.FRIEND_REQUEST_UPDATED, request.to_payload()))

        cls.get_logger().info(f"Friend request {request_id} declined")
        return request

    @classmethod
    @retry_on_connection_loss
    def cancel_request(cls, request_id: int, user_id: int) -> None:
        """
        Withdraw a pending request sent by user_id. The row is deleted.

        Raises:
            NotFoundError: Unknown request
            PermissionDeniedError: user_id is not the sender
            ConflictError: Request is no longer pending
        """
        with cls.atomic():
            request = cls._lock_pending_request(request_id, user_id, "sender")
            payload = {**request.to_payload(), "status": "cancelled"}
            request.delete()

            emit(DomainEvent(EventType.FRIEND_REQUEST_UPDATED, payload))

        cls.get_logger().info(f"Friend request {request_id} cancelled")

    @classmethod
    @retry_on_connection_loss
    def get_dm_channels(
        cls, user_a: int, user_b: int
    ) -> tuple[TextChannel, VoiceChannel]:
        """
        Return the pair's private text and voice channels.

        Channels are created on the first call and their ids stored on the
        friendship; later calls return the same channels. If the pair were
        friends before, the channels from that time are found and reused.

        Raises:
            NotFoundError: The users are not friends
        """
        user1_id, user2_id = Friendship.canonical(user_a, user_b)

        with cls.atomic():
            friendship = cls.get_or_raise(
                Friendship,
                "NOT_FRIENDS",
                queryset=Friendship.objects.select_for_update(),
                user1_id=user1_id,
                user2_id=user2_id,
            )

            update_fields = []
            if friendship.dm_channel_id is None:
                friendship.dm_channel = DirectChannelService.get_or_create_text_channel(
                    user1_id, user2_id
                )
                update_fields.append("dm_channel")
            if friendship.voice_channel_id is None:
                friendship.voice_channel = (
                    DirectChannelService.get_or_create_voice_channel(user1_id, user2_id)
                )
                update_fields.append("voice_channel")
            if update_fields:
                friendship.save(update_fields=update_fields)

            return friendship.dm_channel, friendship.voice_channel

    @classmethod
    @retry_on_connection_loss
    def remove_friend(cls, user_a: int, user_b: int) -> None:
        """
        End a friendship. Private channels and their history are kept.

        Raises:
            NotFoundError: The users are not friends
        """
        user1_id, user2_id = Friendship.canonical(user_a, user_b)

        with cls.atomic():
            deleted, _ = Friendship.objects.filter(
                user1_id=user1_id, user2_id=user2_id
            ).delete()
            if not deleted:
                raise NotFoundError(
                    "You are not friends with this user",
                    error_code="NOT_FRIENDS",
                    details={"user_id": user_b},
                )

            emit(
                DomainEvent(
                    EventType.FRIENDSHIP_REMOVED,
                    {"user1_id": user1_id, "user2_id": user2_id},
                )
            )

        cls.get_logger().info(f"Users {user1_id} and {user2_id} are no longer friends")

    @classmethod
    def are_friends(cls, user_a: int, user_b: int) -> bool:
        user1_id, user2_id = Friendship.canonical(user_a, user_b)
        return Friendship.objects.filter(user1_id=user1_id, user2_id=user2_id).exists()

    @classmethod
    def get_friends(cls, user_id: int) -> list[User]:
        """A user's friends ordered by username."""
        friend_ids = [
            friendship.other_user_id(user_id)
            for friendship in Friendship.objects.filter(
                Q(user1_id=user_id) | Q(user2_id=user_id)
            )
        ]
        return list(get_user_model().objects.filter(pk__in=friend_ids).order_by("username"))

    @classmethod
    def pending_received(cls, user_id: int) -> list[FriendRequest]:
        """Pending requests addressed to the user, newest first."""
        return list(
            FriendRequest.objects.filter(
                receiver_id=user_id, status=FriendRequestStatus.PENDING
            )
            .select_related("sender")
            .order_by("-created_at", "-id")
        )

    @classmethod
    def pending_sent(cls, user_id: int) -> list[FriendRequest]:
        """Pending requests the user has sent, newest first."""
        return list(
            FriendRequest.objects.filter(
                sender_id=user_id, status=FriendRequestStatus.PENDING
            )
            .select_related("receiver")
            .order_by("-created_at", "-id")
        )

    @classmethod
    def pending_count(cls, user_id: int) -> int:
        """Number of pending requests addressed to the user."""
        return FriendRequest.objects.filter(
            receiver_id=user_id, status=FriendRequestStatus.PENDING
        ).count()

    # =========================================================================
    # Internal helpers
    # =========================================================================

    @classmethod
    def _lock_pending_request(
        cls, request_id: int, user_id: int, party: str
    ) -> FriendRequest:
        """Lock a request, check the acting party and that it is pending."""
        request = cls.get_or_raise(
            FriendRequest,
            "REQUEST_NOT_FOUND",
            queryset=FriendRequest.objects.select_for_update(),
            pk=request_id,
        )

        if getattr(request, f"{party}_id") != user_id:
            cls.get_logger().warning(
                f"User {user_id} is not the {party} of friend request {request_id}"
            )
            raise PermissionDeniedError(
                f"Only the {party} can do this",
                error_code=f"NOT_REQUEST_{party.upper()}",
                details={"request_id": request_id},
            )

        if not request.is_pending:
            raise ConflictError(
                "This friend request is no longer pending",
                error_code="REQUEST_NOT_PENDING",
                details={"request_id": request_id, "status": request.status},
            )

        return request
