"""
Base exception classes for application-wide error handling.

Every failure in the access-control core is scoped to a single operation
and reported to the caller through one of these exceptions. Request
handlers translate them to HTTP responses via ``to_dict()``.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Malformed input (caller's fault)
    ├── NotFoundError - Referenced entity absent
    ├── PermissionDeniedError - Authenticated but not authorized
    ├── ConflictError - Invariant would be violated
    └── TransientStorageError - Storage connection lost (after one retry)

Usage:
    from core.exceptions import ConflictError, NotFoundError

    # Raise with message only
    raise NotFoundError("Voice channel 12 not found")

    # Raise with error code for client handling
    raise ConflictError("Channel is full", error_code="CHANNEL_FULL")

    # Raise with additional details
    raise ConflictError(
        "Channel is full",
        error_code="CHANNEL_FULL",
        details={"channel_id": 12, "max_users": 2},
    )

    # Convert to dict for API response
    try:
        ...
    except BaseApplicationError as e:
        return JsonResponse(e.to_dict(), status=409)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (ids, limits, offending values)

    Example:
        try:
            VoiceMembershipService.join(user_id, channel_id)
        except ConflictError as e:
            logger.warning(f"Join rejected: {e.error_code}")
            return JsonResponse(e.to_dict(), status=409)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dict with error, error_code, and details keys

        Example:
            {
                "error": "Voice channel is full",
                "error_code": "CHANNEL_FULL",
                "details": {"channel_id": 3, "max_users": 2}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for:
    - Empty or over-long role names
    - Malformed colors
    - Self-directed friend requests
    - Unknown permission names

    Example:
        raise ValidationError(
            "Unknown permissions",
            error_code="UNKNOWN_PERMISSION",
            details={"unknown": ["fly"]},
        )
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """
    Raised when a referenced entity does not exist.

    Example:
        role = Role.objects.filter(pk=role_id).first()
        if role is None:
            raise NotFoundError(
                f"Role {role_id} not found",
                error_code="ROLE_NOT_FOUND",
                details={"role_id": role_id},
            )
    """

    default_error_code: str = "NOT_FOUND"


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when an authenticated user lacks permission for an operation.

    Use for:
    - Missing role permissions (e.g. move_members for force disconnect)
    - Acting on a friend request addressed to someone else
    - Joining a private DM voice channel as an outsider

    Example:
        if not PermissionResolver.has_permission(user_id, "move_members"):
            raise PermissionDeniedError(
                "Moving members requires the move_members permission",
                details={"required_permission": "move_members"},
            )
    """

    default_error_code: str = "PERMISSION_DENIED"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation would violate an invariant.

    Use for:
    - Capacity exhaustion (voice channel full, invite code used up)
    - Duplicate relations (pending friend request, existing friendship)
    - Default role protection
    - Invalid state transitions (accepting a declined request)

    Example:
        raise ConflictError(
            "Cannot delete the default role",
            error_code="DEFAULT_ROLE_PROTECTED",
            details={"role_id": role.id},
        )

    Note:
        HTTP 409 Conflict is the appropriate status for these errors.
    """

    default_error_code: str = "CONFLICT"


class TransientStorageError(BaseApplicationError):
    """
    Raised when the storage connection fails twice in a row.

    Operations are retried once after reconnecting (see
    core.decorators.retry_on_connection_loss); the second failure
    surfaces here instead of being dropped.

    Note:
        HTTP 503 Service Unavailable is the appropriate status.
    """

    default_error_code: str = "TRANSIENT_STORAGE_ERROR"
