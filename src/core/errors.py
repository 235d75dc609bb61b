"""Schedule engine exceptions and error classification utilities."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from src.core.db_client import DatabaseError, RecordNotFoundError


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Validation errors
    ERR_INVALID_DATE_FORMAT = "ERR_INVALID_DATE_FORMAT"
    ERR_INVALID_WEEK_START = "ERR_INVALID_WEEK_START"
    ERR_INVALID_OVERRIDE = "ERR_INVALID_OVERRIDE"
    ERR_VALIDATION = "ERR_VALIDATION"

    # Store errors
    ERR_RECORD_NOT_FOUND = "ERR_RECORD_NOT_FOUND"
    ERR_DATABASE = "ERR_DATABASE"

    # Engine errors
    ERR_INTERNAL_CONSISTENCY = "ERR_INTERNAL_CONSISTENCY"
    ERR_NOTIFICATION_FAILED = "ERR_NOTIFICATION_FAILED"

    # Generic errors
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ScheduleError(Exception):
    """Base class for errors raised by the schedule engine."""

    code: str = ErrorCode.ERR_UNKNOWN


class ScheduleValidationError(ScheduleError):
    """Input rejected before any write happened."""

    code = ErrorCode.ERR_VALIDATION

    def __init__(self, message: str, *, field: str | None = None, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.field = field
        self.errors = errors or []


class InvalidDateFormatError(ScheduleValidationError):
    """A date string is not a valid YYYY-MM-DD calendar date."""

    code = ErrorCode.ERR_INVALID_DATE_FORMAT


class InvalidWeekStartError(ScheduleValidationError):
    """A week start date does not fall on a Monday."""

    code = ErrorCode.ERR_INVALID_WEEK_START


class InvalidOverrideError(ScheduleValidationError):
    """One or more task override drafts failed validation."""

    code = ErrorCode.ERR_INVALID_OVERRIDE


class InternalConsistencyError(ScheduleError):
    """Persisted state is missing right after a successful write."""

    code = ErrorCode.ERR_INTERNAL_CONSISTENCY


class NotificationError(ScheduleError):
    """Delivering a notification to the notification collaborator failed."""

    code = ErrorCode.ERR_NOTIFICATION_FAILED


class ErrorResponse(BaseModel):
    """Structured error response for the caller layer."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity
    field: str | None = None
    details: list[dict[str, Any]] = Field(default_factory=list)


def classify_error_with_response(exception: Exception) -> ErrorResponse:  # noqa: PLR0911
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised by the engine or the store

    Returns:
        ErrorResponse with code, message, suggestion, and severity
    """
    if isinstance(exception, InvalidDateFormatError):
        return ErrorResponse(
            code=exception.code,
            message=str(exception),
            suggestion="Send dates as YYYY-MM-DD (e.g., 2024-01-01).",
            severity=ErrorSeverity.LOW,
            field=exception.field,
        )

    if isinstance(exception, InvalidWeekStartError):
        return ErrorResponse(
            code=exception.code,
            message=str(exception),
            suggestion="Use the Monday that starts the week.",
            severity=ErrorSeverity.LOW,
            field=exception.field,
        )

    if isinstance(exception, ScheduleValidationError):
        return ErrorResponse(
            code=exception.code,
            message=str(exception),
            suggestion="Fix the listed fields and resubmit the whole batch.",
            severity=ErrorSeverity.LOW,
            field=exception.field,
            details=exception.errors,
        )

    if isinstance(exception, InternalConsistencyError):
        return ErrorResponse(
            code=exception.code,
            message="The schedule could not be read back after saving.",
            suggestion="Reload the week. If the problem persists, contact support.",
            severity=ErrorSeverity.CRITICAL,
        )

    if isinstance(exception, NotificationError):
        return ErrorResponse(
            code=exception.code,
            message="A schedule notification could not be delivered.",
            suggestion="The schedule change was saved; members may need to refresh.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, RecordNotFoundError):
        return ErrorResponse(
            code=ErrorCode.ERR_RECORD_NOT_FOUND,
            message="A referenced record does not exist.",
            suggestion="Check the family, task, member and template IDs.",
            severity=ErrorSeverity.MEDIUM,
        )

    if isinstance(exception, DatabaseError):
        return ErrorResponse(
            code=ErrorCode.ERR_DATABASE,
            message="The schedule store failed.",
            suggestion="Please try again later.",
            severity=ErrorSeverity.HIGH,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
    )
