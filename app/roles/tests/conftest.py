"""
Test configuration and fixtures for role tests.

Users created through UserFactory already hold the default Member role.
"""

import pytest

from authentication.tests.factories import UserFactory
from roles.models import Role, UserRole


@pytest.fixture
def default_role(db):
    """The seeded default role (Member)."""
    return Role.objects.get(is_default=True)


@pytest.fixture
def admin_role(db):
    """The seeded Admin role (administrator permission only)."""
    return Role.objects.get(name="Admin")


@pytest.fixture
def moderator_role(db):
    """The seeded Moderator role."""
    return Role.objects.get(name="Moderator")


@pytest.fixture
def member_user(db):
    """A user holding only the default role."""
    return UserFactory()


@pytest.fixture
def admin_user(db, admin_role):
    """A user holding the Admin role."""
    user = UserFactory()
    UserRole.objects.create(user=user, role=admin_role)
    return user


@pytest.fixture
def moderator_user(db, moderator_role):
    """A user holding the Moderator role."""
    user = UserFactory()
    UserRole.objects.create(user=user, role=moderator_role)
    return user
