"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps (roles, rooms, voice,
friends, invites). No domain logic lives here.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Services (import from core.services):
    - BaseService: Stateless service base (logging, transactions, lookups)

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError: Input validation failures
    - NotFoundError: Referenced entity missing
    - PermissionDeniedError: Authorization failures
    - ConflictError: Invariant conflicts (capacity, duplicates, state)
    - TransientStorageError: Storage connection lost twice in a row

Decorators (import from core.decorators):
    - retry_on_connection_loss: Retry once after a broken connection

Events (import from core.events):
    - DomainEvent, EventType, emit: Post-commit domain events

Note:
    Django models are NOT imported here to avoid AppRegistryNotReady
    errors. Import them directly from their modules.
"""

# Exceptions (no Django dependencies)
from .exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    TransientStorageError,
    ValidationError,
)

__all__ = [
    "BaseApplicationError",
    "ValidationError",
    "NotFoundError",
    "PermissionDeniedError",
    "ConflictError",
    "TransientStorageError",
]
