"""
Factory Boy factories for friend models.

Usage:
    from friends.tests.factories import FriendRequestFactory, make_friends

    request = FriendRequestFactory(sender=alice, receiver=bob)
    friendship = make_friends(alice, bob)
"""

import factory

from authentication.tests.factories import UserFactory
from friends.models import FriendRequest, FriendRequestStatus, Friendship


class FriendRequestFactory(factory.django.DjangoModelFactory):
    """Factory for pending friend requests."""

    class Meta:
        model = FriendRequest

    sender = factory.SubFactory(UserFactory)
    receiver = factory.SubFactory(UserFactory)
    status = FriendRequestStatus.PENDING


def make_friends(user_a, user_b):
    """Create a canonical Friendship row for two users."""
    user1_id, user2_id = Friendship.canonical(user_a.id, user_b.id)
    return Friendship.objects.create(user1_id=user1_id, user2_id=user2_id)
