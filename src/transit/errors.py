"""
Custom exceptions and error handling for Campus Transit.

Defines application-specific exceptions with error codes so handlers can map
failures to HTTP responses without exposing internal details to clients.

Usage:
    from transit.errors import NotFoundError, ErrorCode

    raise NotFoundError("Booking b-17 not found", code=ErrorCode.BOOKING_NOT_FOUND)
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for client-facing error messages."""

    # Authentication errors
    AUTH_FAILED = "AUTH_FAILED"

    # Lookup errors
    TRIP_NOT_FOUND = "TRIP_NOT_FOUND"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    NOTIFICATION_NOT_FOUND = "NOTIFICATION_NOT_FOUND"

    # Lifecycle errors
    INVALID_TRANSITION = "INVALID_TRANSITION"
    STALE_RECORD = "STALE_RECORD"

    # Notification errors
    NOTIFICATION_FAILED = "NOTIFICATION_FAILED"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


USER_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.AUTH_FAILED: "Authentication failed. Please sign in again.",
    ErrorCode.TRIP_NOT_FOUND: "The requested trip could not be found.",
    ErrorCode.BOOKING_NOT_FOUND: "The requested booking could not be found.",
    ErrorCode.USER_NOT_FOUND: "One or more users could not be found.",
    ErrorCode.NOTIFICATION_NOT_FOUND: "The requested notification could not be found.",
    ErrorCode.INVALID_TRANSITION: "This trip can no longer be changed.",
    ErrorCode.STALE_RECORD: "The record was changed by someone else. Please try again.",
    ErrorCode.NOTIFICATION_FAILED: "The notification could not be created.",
    ErrorCode.VALIDATION_ERROR: "Your request contains invalid information. Please check and try again.",
    ErrorCode.INVALID_REQUEST: "Invalid request format. Please try again.",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred. Please try again.",
}


class TransitError(Exception):
    """Base exception for all Campus Transit errors."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INTERNAL_ERROR):
        self.message = message
        self.code = code
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return USER_MESSAGES.get(self.code, USER_MESSAGES[ErrorCode.INTERNAL_ERROR])


class AuthenticationError(TransitError):
    """The acting user could not be identified."""

    pass


class NotFoundError(TransitError):
    """A trip, booking, user or notification referenced by an operation is missing."""

    pass


class ValidationError(TransitError):
    """Input validation or schema validation failed."""

    pass


class InvalidTransitionError(TransitError):
    """A trip status change is not allowed from its current status."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INVALID_TRANSITION):
        super().__init__(message, code)


class StaleRecordError(TransitError):
    """A compare-and-set write lost against a concurrent modification."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.STALE_RECORD):
        super().__init__(message, code)


class NotificationError(TransitError):
    """Notification construction or delivery failed."""

    pass
