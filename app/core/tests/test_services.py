"""
Tests for BaseService helpers.
"""

import pytest

from authentication.models import User
from authentication.tests.factories import UserFactory
from core.exceptions import NotFoundError
from core.services import BaseService


class ExampleService(BaseService):
    pass


@pytest.mark.django_db
class TestBaseService:
    """Tests for the shared service utilities."""

    def test_logger_named_after_service(self):
        assert ExampleService.get_logger().name == f"{__name__}.ExampleService"

    def test_get_or_raise_returns_row(self):
        user = UserFactory()

        assert ExampleService.get_or_raise(User, "USER_NOT_FOUND", pk=user.pk) == user

    def test_get_or_raise_missing_row(self):
        with pytest.raises(NotFoundError) as exc_info:
            ExampleService.get_or_raise(User, "USER_NOT_FOUND", pk=999999)

        assert exc_info.value.error_code == "USER_NOT_FOUND"
        assert exc_info.value.details == {"pk": 999999}

    def test_get_or_raise_uses_given_queryset(self):
        user = UserFactory(is_active=False)

        with pytest.raises(NotFoundError):
            ExampleService.get_or_raise(
                User,
                "USER_NOT_FOUND",
                queryset=User.objects.filter(is_active=True),
                pk=user.pk,
            )

    def test_atomic_rolls_back_on_error(self):
        with pytest.raises(RuntimeError):
            with ExampleService.atomic():
                UserFactory(username="ghost")
                raise RuntimeError("abort")

        assert not User.objects.filter(username="ghost").exists()
