"""
Base service layer patterns for business logic encapsulation.

Services encapsulate the access-control core separate from request
handlers and models. Handlers pass already-authenticated user ids,
models hold data, services enforce invariants.

Failure Handling:
    Services raise core.exceptions subclasses for every rejected
    operation (validation, permission, missing entity, invariant
    conflict). Nothing is returned as a silent failure flag.

Usage:
    from core.services import BaseService

    class RoleRegistry(BaseService):
        @classmethod
        def delete_role(cls, role_id: int) -> None:
            role = cls.get_or_raise(Role, "ROLE_NOT_FOUND", pk=role_id)
            with cls.atomic():
                UserRole.objects.filter(role=role).delete()
                role.delete()

            cls.get_logger().info(f"Deleted role {role_id}")

Related:
    - core.exceptions: Error taxonomy raised by services
    - core.decorators: Connection-loss retry for service entry points
    - core.events: Domain events published after commit
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, TypeVar

from django.db import models, transaction

from core.exceptions import NotFoundError

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

M = TypeVar("M", bound=models.Model)


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management
    - Entity lookup that raises NotFoundError

    Design Notes:
        - Use @classmethod (no instance state)
        - Services should be stateless
        - Raise core.exceptions for rejected operations
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.

        Example:
            class InviteCodeService(BaseService):
                @classmethod
                def redeem(cls, code, user_id):
                    cls.get_logger().info(f"Redeeming {code} for {user_id}")
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        All database operations within this context manager are
        wrapped in a transaction. If any operation fails, all
        changes are rolled back.

        Example:
            with cls.atomic():
                request.status = FriendRequestStatus.ACCEPTED
                request.save(update_fields=["status", "updated_at"])
                Friendship.objects.create(user1_id=low, user2_id=high)
                # If the friendship insert fails, the status change rolls back
        """
        with transaction.atomic():
            yield

    @classmethod
    def get_or_raise(
        cls,
        model_class: type[M],
        error_code: str,
        queryset: models.QuerySet[M] | None = None,
        **lookup: Any,
    ) -> M:
        """
        Fetch a single row or raise NotFoundError.

        Args:
            model_class: Model to look up
            error_code: Error code for the NotFoundError
            queryset: Optional pre-filtered/locked queryset to use
            **lookup: Field lookups identifying the row

        Returns:
            The matching model instance

        Raises:
            NotFoundError: If no row matches
        """
        qs = queryset if queryset is not None else model_class.objects.all()
        instance = qs.filter(**lookup).first()
        if instance is None:
            name = model_class._meta.verbose_name.capitalize()
            raise NotFoundError(
                f"{name} not found",
                error_code=error_code,
                details={key: value for key, value in lookup.items()},
            )
        return instance
