"""
Test configuration and fixtures for authentication tests.
"""

import pytest

from authentication.tests.factories import UserFactory


@pytest.fixture
def user(db):
    """Create a basic active user."""
    return UserFactory()
