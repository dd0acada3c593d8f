"""
Tests for FriendshipService.

Test Organization:
    - Each service method has its own test class
    - Tests use descriptive names following: test_<scenario>_<expected_outcome>
"""

import pytest

from authentication.tests.factories import UserFactory
from core.events import EventType
from core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from friends.models import FriendRequest, FriendRequestStatus, Friendship
from friends.services import FriendshipService
from friends.tests.factories import FriendRequestFactory, make_friends
from rooms.models import ChannelType, TextChannel, VoiceChannel


# =============================================================================
# FriendshipService.send_request
# =============================================================================


class TestSendRequest:
    """Tests for FriendshipService.send_request()."""

    def test_creates_pending_request(self, alice, bob):
        request = FriendshipService.send_request(alice.id, bob.id)

        assert request.status == FriendRequestStatus.PENDING
        assert request.sender_id == alice.id
        assert request.receiver_id == bob.id

    def test_cannot_befriend_self(self, alice):
        with pytest.raises(ValidationError) as exc_info:
            FriendshipService.send_request(alice.id, alice.id)

        assert exc_info.value.error_code == "CANNOT_FRIEND_SELF"

    def test_unknown_receiver(self, alice):
        with pytest.raises(NotFoundError) as exc_info:
            FriendshipService.send_request(alice.id, 999999)

        assert exc_info.value.error_code == "USER_NOT_FOUND"
        assert not FriendRequest.objects.exists()

    def test_duplicate_pending_request_rejected(self, alice, bob):
        FriendshipService.send_request(alice.id, bob.id)

        with pytest.raises(ConflictError) as exc_info:
            FriendshipService.send_request(alice.id, bob.id)

        assert exc_info.value.error_code == "REQUEST_PENDING"

    def test_reverse_pending_request_rejected(self, alice, bob):
        FriendshipService.send_request(alice.id, bob.id)

        with pytest.raises(ConflictError) as exc_info:
            FriendshipService.send_request(bob.id, alice.id)

        assert exc_info.value.error_code == "REQUEST_PENDING"

    def test_already_friends_rejected(self, alice, bob, friendship):
        with pytest.raises(ConflictError) as exc_info:
            FriendshipService.send_request(bob.id, alice.id)

        assert exc_info.value.error_code == "ALREADY_FRIENDS"

    def test_declined_request_is_reused(self, alice, bob):
        request = FriendshipService.send_request(alice.id, bob.id)
        FriendshipService.decline_request(request.id, bob.id)

        again = FriendshipService.send_request(alice.id, bob.id)

        assert again.pk == request.pk
        assert again.status == FriendRequestStatus.PENDING
        assert FriendRequest.objects.filter(sender=alice, receiver=bob).count() == 1

    def test_request_after_unfriending(self, alice, bob):
        request = FriendshipService.send_request(alice.id, bob.id)
        FriendshipService.accept_request(request.id, bob.id)
        FriendshipService.remove_friend(alice.id, bob.id)

        again = FriendshipService.send_request(alice.id, bob.id)

        assert again.status == FriendRequestStatus.PENDING

    def test_emits_sent_event(
        self, alice, bob, domain_events, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            request = FriendshipService.send_request(alice.id, bob.id)

        assert domain_events[0].event_type == EventType.FRIEND_REQUEST_UPDATED
        assert domain_events[0].payload == {
            "request_id": request.id,
            "sender_id": alice.id,
            "receiver_id": bob.id,
            "status": "sent",
        }


# =============================================================================
# Accept / decline / cancel
# =============================================================================


class TestAcceptRequest:
    """Tests for FriendshipService.accept_request()."""

    def test_accept_creates_canonical_friendship(self, alice, bob):
        # Higher id sends to lower id so the canonical swap is exercised
        request = FriendshipService.send_request(bob.id, alice.id)

        friendship = FriendshipService.accept_request(request.id, alice.id)

        assert (friendship.user1_id, friendship.user2_id) == (
            min(alice.id, bob.id),
            max(alice.id, bob.id),
        )
        request.refresh_from_db()
        assert request.status == FriendRequestStatus.ACCEPTED
        assert FriendshipService.are_friends(alice.id, bob.id)
        assert FriendshipService.are_friends(bob.id, alice.id)

    def test_only_receiver_can_accept(self, alice, bob):
        request = FriendshipService.send_request(alice.id, bob.id)

        with pytest.raises(PermissionDeniedError):
            FriendshipService.accept_request(request.id, alice.id)

        assert not Friendship.objects.exists()

    def test_declined_request_cannot_be_accepted(self, alice, bob):
        request = FriendshipService.send_request(alice.id, bob.id)
        FriendshipService.decline_request(request.id, bob.id)

        with pytest.raises(ConflictError) as exc_info:
            FriendshipService.accept_request(request.id, bob.id)

        assert exc_info.value.error_code == "REQUEST_NOT_PENDING"

    def test_unknown_request(self, bob):
        with pytest.raises(NotFoundError):
            FriendshipService.accept_request(999999, bob.id)

    def test_accept_declines_reverse_pending_request(self, alice, bob):
        request = FriendRequestFactory(sender=alice, receiver=bob)
        reverse = FriendRequestFactory(sender=bob, receiver=alice)

        FriendshipService.accept_request(request.id, bob.id)

        reverse.refresh_from_db()
        assert reverse.status == FriendRequestStatus.DECLINED
        assert not FriendshipService.pending_received(alice.id)
        assert not FriendshipService.pending_sent(bob.id)

    def test_does_not_provision_channels(self, alice, bob):
        request = FriendshipService.send_request(alice.id, bob.id)

        friendship = FriendshipService.accept_request(request.id, bob.id)

        assert friendship.dm_channel_id is None
        assert friendship.voice_channel_id is None

    def test_emits_accepted_and_created(
        self, alice, bob, domain_events, django_capture_on_commit_callbacks
    ):
        request = FriendRequestFactory(sender=alice, receiver=bob)

        with django_capture_on_commit_callbacks(execute=True):
            FriendshipService.accept_request(request.id, bob.id)

        assert [e.event_type for e in domain_events] == [
            EventType.FRIEND_REQUEST_UPDATED,
            EventType.FRIENDSHIP_CREATED,
        ]
        assert domain_events[0].payload["status"] == "accepted"


class TestDeclineRequest:
    """Tests for FriendshipService.decline_request()."""

    def test_decline(self, alice, bob):
        request = FriendRequestFactory(sender=alice, receiver=bob)

        declined = FriendshipService.decline_request(request.id, bob.id)

        assert declined.status == FriendRequestStatus.DECLINED
        assert not FriendshipService.are_friends(alice.id, bob.id)

    def test_only_receiver_can_decline(self, alice, bob, carol):
        request = FriendRequestFactory(sender=alice, receiver=bob)

        with pytest.raises(PermissionDeniedError) as exc_info:
            FriendshipService.decline_request(request.id, carol.id)

        assert exc_info.value.error_code == "NOT_REQUEST_RECEIVER"


class TestCancelRequest:
    """Tests for FriendshipService.cancel_request()."""

    def test_cancel_deletes_request(self, alice, bob):
        request = FriendRequestFactory(sender=alice, receiver=bob)

        FriendshipService.cancel_request(request.id, alice.id)

        assert not FriendRequest.objects.filter(pk=request.pk).exists()

    def test_only_sender_can_cancel(self, alice, bob):
        request = FriendRequestFactory(sender=alice, receiver=bob)

        with pytest.raises(PermissionDeniedError) as exc_info:
            FriendshipService.cancel_request(request.id, bob.id)

        assert exc_info.value.error_code == "NOT_REQUEST_SENDER"

    def test_cancelled_pair_can_request_again(self, alice, bob):
        request = FriendRequestFactory(sender=alice, receiver=bob)
        FriendshipService.cancel_request(request.id, alice.id)

        assert FriendshipService.send_request(bob.id, alice.id).is_pending

    def test_emits_cancelled(
        self, alice, bob, domain_events, django_capture_on_commit_callbacks
    ):
        request = FriendRequestFactory(sender=alice, receiver=bob)

        with django_capture_on_commit_callbacks(execute=True):
            FriendshipService.cancel_request(request.id, alice.id)

        assert domain_events[0].payload == {
            "request_id": request.id,
            "sender_id": alice.id,
            "receiver_id": bob.id,
            "status": "cancelled",
        }


# =============================================================================
# FriendshipService.get_dm_channels
# =============================================================================


class TestGetDmChannels:
    """Tests for FriendshipService.get_dm_channels()."""

    def test_provisions_text_and_voice_channels(self, alice, bob, friendship):
        text, voice = FriendshipService.get_dm_channels(alice.id, bob.id)

        assert text.channel_type == ChannelType.DM
        assert voice.channel_type == ChannelType.DM
        assert voice.max_users == 2
        friendship.refresh_from_db()
        assert friendship.dm_channel_id == text.id
        assert friendship.voice_channel_id == voice.id

    def test_repeated_calls_return_same_channels(self, alice, bob, friendship):
        first = FriendshipService.get_dm_channels(alice.id, bob.id)
        second = FriendshipService.get_dm_channels(bob.id, alice.id)

        assert [c.id for c in first] == [c.id for c in second]
        assert TextChannel.objects.filter(channel_type=ChannelType.DM).count() == 1
        assert VoiceChannel.objects.filter(channel_type=ChannelType.DM).count() == 1

    def test_not_friends(self, alice, bob):
        with pytest.raises(NotFoundError) as exc_info:
            FriendshipService.get_dm_channels(alice.id, bob.id)

        assert exc_info.value.error_code == "NOT_FRIENDS"

    def test_refriending_reuses_channels(self, alice, bob, friendship):
        text, voice = FriendshipService.get_dm_channels(alice.id, bob.id)
        FriendshipService.remove_friend(alice.id, bob.id)
        make_friends(alice, bob)

        again = FriendshipService.get_dm_channels(alice.id, bob.id)

        assert (again[0].id, again[1].id) == (text.id, voice.id)


# =============================================================================
# FriendshipService.remove_friend
# =============================================================================


class TestRemoveFriend:
    """Tests for FriendshipService.remove_friend()."""

    def test_removes_friendship_keeps_channels(self, alice, bob, friendship):
        text, voice = FriendshipService.get_dm_channels(alice.id, bob.id)

        FriendshipService.remove_friend(bob.id, alice.id)

        assert not FriendshipService.are_friends(alice.id, bob.id)
        assert TextChannel.objects.filter(pk=text.id).exists()
        assert VoiceChannel.objects.filter(pk=voice.id).exists()

    def test_not_friends(self, alice, bob):
        with pytest.raises(NotFoundError):
            FriendshipService.remove_friend(alice.id, bob.id)

    def test_emits_removed(
        self, alice, bob, friendship, domain_events, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            FriendshipService.remove_friend(alice.id, bob.id)

        assert domain_events[0].event_type == EventType.FRIENDSHIP_REMOVED


# =============================================================================
# Queries
# =============================================================================


class TestQueries:
    """Tests for the read helpers."""

    def test_get_friends(self, alice, bob, carol, friendship):
        make_friends(carol, alice)
        UserFactory()

        assert [u.username for u in FriendshipService.get_friends(alice.id)] == [
            "bob",
            "carol",
        ]
        assert [u.username for u in FriendshipService.get_friends(bob.id)] == ["alice"]

    def test_pending_lists(self, alice, bob, carol):
        to_alice = FriendRequestFactory(sender=bob, receiver=alice)
        FriendRequestFactory(sender=carol, receiver=alice, status=FriendRequestStatus.DECLINED)
        from_alice = FriendRequestFactory(sender=alice, receiver=carol)

        assert FriendshipService.pending_received(alice.id) == [to_alice]
        assert FriendshipService.pending_sent(alice.id) == [from_alice]
        assert FriendshipService.pending_count(alice.id) == 1
