"""
Test configuration and fixtures for voice tests.
"""

import pytest

from authentication.tests.factories import UserFactory
from roles.models import Role, UserRole
from rooms.tests.factories import VoiceChannelFactory


@pytest.fixture
def lobby(db):
    """An unlimited public voice channel."""
    return VoiceChannelFactory(name="lobby", max_users=0)


@pytest.fixture
def booth(db):
    """A public voice channel with two seats."""
    return VoiceChannelFactory(name="booth", max_users=2)


@pytest.fixture
def moderator(db):
    """A user holding the seeded Moderator role (move_members)."""
    user = UserFactory()
    UserRole.objects.create(user=user, role=Role.objects.get(name="Moderator"))
    return user


@pytest.fixture
def administrator(db):
    """A user holding the seeded Admin role (administrator only)."""
    user = UserFactory()
    UserRole.objects.create(user=user, role=Role.objects.get(name="Admin"))
    return user
