"""
Custom decorators for service entry points.

This module provides generic infrastructure decorators for:
- Retrying an operation once after a broken storage connection

Usage:
    from core.decorators import retry_on_connection_loss

    class VoiceMembershipService(BaseService):
        @classmethod
        @retry_on_connection_loss
        def leave(cls, user_id: int) -> bool:
            ...
"""

from __future__ import annotations

import functools
import logging
from typing import Callable, TypeVar

from django.db import DatabaseError, InterfaceError, OperationalError, connection

from core.exceptions import TransientStorageError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable)

CONNECTION_ERRORS: tuple[type[DatabaseError], ...] = (OperationalError, InterfaceError)


def retry_on_connection_loss(func: F) -> F:
    """
    Retry a storage operation exactly once after reconnecting.

    On OperationalError/InterfaceError the current connection is closed so
    Django opens a fresh one on next use, and the call is repeated. A
    second failure raises TransientStorageError.

    Inside an outer atomic block the transaction is already broken, so no
    retry is attempted; the error surfaces immediately as
    TransientStorageError for the outermost caller to handle.

    Args:
        func: Operation to wrap

    Returns:
        Wrapped function
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except CONNECTION_ERRORS as exc:
            if connection.in_atomic_block:
                raise TransientStorageError(
                    "Storage connection lost inside a transaction",
                    details={"operation": func.__qualname__},
                ) from exc

            logger.warning(
                f"Storage connection lost during {func.__qualname__}, "
                f"reconnecting and retrying once: {exc}"
            )
            connection.close()

        try:
            return func(*args, **kwargs)
        except CONNECTION_ERRORS as exc:
            logger.error(f"Retry of {func.__qualname__} failed: {exc}")
            raise TransientStorageError(
                "Storage is temporarily unavailable",
                details={"operation": func.__qualname__},
            ) from exc

    return wrapper  # type: ignore[return-value]
