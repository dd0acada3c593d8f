"""
Test configuration and fixtures for friends tests.
"""

import pytest

from authentication.tests.factories import UserFactory
from friends.tests.factories import make_friends


@pytest.fixture
def alice(db):
    return UserFactory(username="alice")


@pytest.fixture
def bob(db):
    return UserFactory(username="bob")


@pytest.fixture
def carol(db):
    return UserFactory(username="carol")


@pytest.fixture
def friendship(alice, bob):
    """alice and bob are friends."""
    return make_friends(alice, bob)
