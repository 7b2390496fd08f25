"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Not found errors (404)
    USER_NOT_FOUND = "USER_NOT_FOUND"
    GROUP_NOT_FOUND = "GROUP_NOT_FOUND"
    MEMBERSHIP_NOT_FOUND = "MEMBERSHIP_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_LOCATION = "INVALID_LOCATION"
    INVALID_CATEGORY = "INVALID_CATEGORY"

    # Conflict errors (409)
    GROUP_CONFLICT = "GROUP_CONFLICT"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500/503)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class AppException(Exception):
    """Base application exception."""

    retryable: bool = False

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class NotFoundError(AppException):
    """A referenced user, group or membership does not exist."""


class UserNotFoundError(NotFoundError):
    """User profile not found."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.USER_NOT_FOUND,
            message=f"User not found: {user_id}",
            status_code=404,
            details={"user_id": user_id},
        )


class GroupNotFoundError(NotFoundError):
    """Group not found."""

    def __init__(self, group_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.GROUP_NOT_FOUND,
            message=f"Group not found: {group_id}",
            status_code=404,
            details={"group_id": group_id},
        )


class MembershipNotFoundError(NotFoundError):
    """Membership row not found."""

    def __init__(self, membership_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.MEMBERSHIP_NOT_FOUND,
            message=f"Membership not found: {membership_id}",
            status_code=404,
            details={"membership_id": membership_id},
        )


class LocationValidationError(AppException):
    """Location components are missing or out of range for the category."""

    def __init__(self, message: str, details: Any | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_LOCATION,
            message=message,
            status_code=400,
            details=details,
        )


class InvalidCategoryError(AppException):
    """Unknown community category."""

    def __init__(self, category: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_CATEGORY,
            message=f"Unknown community category: {category}",
            status_code=400,
            details={"category": category},
        )


class ConflictError(AppException):
    """A uniqueness constraint was violated by a concurrent writer."""

    def __init__(self, entity: str, message: str | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.GROUP_CONFLICT,
            message=message or f"Concurrent write conflict on {entity}",
            status_code=409,
            details={"entity": entity},
        )


class StoreError(AppException):
    """The persistence layer failed. Safe for the caller to retry."""

    retryable = True

    def __init__(self, message: str = "Storage operation failed") -> None:
        super().__init__(
            error_code=ErrorCode.DATABASE_ERROR,
            message=message,
            status_code=503,
        )
