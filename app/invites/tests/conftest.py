"""
Test configuration and fixtures for invites tests.
"""

import pytest

from authentication.tests.factories import UserFactory


@pytest.fixture
def issuer(db):
    return UserFactory(username="issuer")


@pytest.fixture
def newcomer(db):
    return UserFactory(username="newcomer")
