"""
Friend request and friendship models.

Models:
    FriendRequest: A directed request from sender to receiver
    Friendship: A symmetric friendship between two users

Design Decisions:
    - One FriendRequest row per ordered (sender, receiver) pair; a declined
      row is reset to pending when the sender asks again
    - Friendship rows are canonical: user1_id < user2_id, enforced by a
      check constraint, so each unordered pair has exactly one row
    - DM channel links use SET_NULL so deleting a channel never deletes
      the friendship, and deleting the friendship never deletes channels
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from core.models import BaseModel
from rooms.models import TextChannel, VoiceChannel


class FriendRequestStatus(models.TextChoices):
    """
    Lifecycle state of a friend request.

    PENDING: Awaiting the receiver's answer
    ACCEPTED: Receiver accepted; a Friendship exists (unless later removed)
    DECLINED: Receiver declined; the sender may ask again
    """

    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    DECLINED = "declined", "Declined"


class FriendRequest(BaseModel):
    """
    A friend request from sender to receiver.

    Fields:
        sender: User who sent the request
        receiver: User who may accept or decline
        status: pending, accepted or declined
    """

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_friend_requests",
    )
    receiver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="received_friend_requests",
    )
    status = models.CharField(
        max_length=10,
        choices=FriendRequestStatus.choices,
        default=FriendRequestStatus.PENDING,
    )

    class Meta:
        db_table = "friend_requests"
        constraints = [
            models.UniqueConstraint(
                fields=["sender", "receiver"],
                name="unique_friend_request_pair",
            ),
        ]
        indexes = [
            models.Index(
                fields=["receiver", "status"],
                name="friend_requests_inbox_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"FriendRequest({self.sender_id} -> {self.receiver_id}, {self.status})"

    @property
    def is_pending(self) -> bool:
        return self.status == FriendRequestStatus.PENDING

    def to_payload(self) -> dict:
        return {
            "request_id": self.id,
            "sender_id": self.sender_id,
            "receiver_id": self.receiver_id,
            "status": self.status,
        }


class Friendship(models.Model):
    """
    A friendship between two users, stored with user1_id < user2_id.

    Fields:
        user1: The lower-id user
        user2: The higher-id user
        dm_channel: Private text channel (provisioned lazily)
        voice_channel: Private voice channel (provisioned lazily)
        created_at: When the friendship was established
    """

    user1 = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
    )
    user2 = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
    )
    dm_channel = models.ForeignKey(
        TextChannel,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    voice_channel = models.ForeignKey(
        VoiceChannel,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "friendships"
        constraints = [
            models.UniqueConstraint(
                fields=["user1", "user2"],
                name="unique_friendship_pair",
            ),
            models.CheckConstraint(
                condition=Q(user1__lt=F("user2")),
                name="friendship_canonical_order",
            ),
        ]
        indexes = [
            models.Index(fields=["user2"], name="friendships_user2_idx"),
        ]

    def __str__(self) -> str:
        return f"Friendship({self.user1_id}, {self.user2_id})"

    @staticmethod
    def canonical(user_a: int, user_b: int) -> tuple[int, int]:
        """Order a pair of user ids the way rows store them."""
        return (user_a, user_b) if user_a < user_b else (user_b, user_a)

    def other_user_id(self, user_id: int) -> int:
        return self.user2_id if user_id == self.user1_id else self.user1_id
