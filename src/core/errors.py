"""Error taxonomy for task lifecycle operations and its mapping to API responses."""

from enum import Enum

from pydantic import BaseModel


class TaskTrackerError(Exception):
    """Base exception for all task lifecycle failures."""


class ValidationError(TaskTrackerError):
    """Missing or invalid input. Nothing was sent to persistence."""


class NotFoundError(TaskTrackerError):
    """Task does not exist, or does not satisfy the precondition of the requested transition."""

    def __init__(self, message: str, *, task_id: str | None = None):
        self.task_id = task_id
        super().__init__(message)


class PersistenceError(TaskTrackerError):
    """Underlying storage failure. The operation's effects were not applied."""


class TaskNumberAllocationError(PersistenceError):
    """Task number could not be allocated; the create was aborted."""


class OperationTimeoutError(TaskTrackerError):
    """A storage call exceeded its time bound. The outcome is unknown."""


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    ERR_VALIDATION = "ERR_VALIDATION"
    ERR_TASK_NOT_FOUND = "ERR_TASK_NOT_FOUND"
    ERR_PERSISTENCE = "ERR_PERSISTENCE"
    ERR_TASK_NUMBER_ALLOCATION = "ERR_TASK_NUMBER_ALLOCATION"
    ERR_TIMEOUT = "ERR_TIMEOUT"
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity
    status_code: int


def classify_error_with_response(exception: Exception) -> ErrorResponse:
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised while handling a request

    Returns:
        ErrorResponse with code, message, suggestion, severity and HTTP status
    """
    message = str(exception)

    if isinstance(exception, ValidationError):
        return ErrorResponse(
            code=ErrorCode.ERR_VALIDATION,
            message=message,
            suggestion="Check the required fields and try again.",
            severity=ErrorSeverity.LOW,
            status_code=400,
        )

    if isinstance(exception, NotFoundError):
        return ErrorResponse(
            code=ErrorCode.ERR_TASK_NOT_FOUND,
            message=message,
            suggestion="Refresh the task list; the task may have been archived, restored or deleted.",
            severity=ErrorSeverity.LOW,
            status_code=404,
        )

    if isinstance(exception, TaskNumberAllocationError):
        return ErrorResponse(
            code=ErrorCode.ERR_TASK_NUMBER_ALLOCATION,
            message=message,
            suggestion="No task was created. Please try again.",
            severity=ErrorSeverity.HIGH,
            status_code=500,
        )

    if isinstance(exception, PersistenceError):
        return ErrorResponse(
            code=ErrorCode.ERR_PERSISTENCE,
            message=message,
            suggestion="The change was not saved. Please try again later.",
            severity=ErrorSeverity.HIGH,
            status_code=500,
        )

    if isinstance(exception, OperationTimeoutError):
        return ErrorResponse(
            code=ErrorCode.ERR_TIMEOUT,
            message=message,
            suggestion="The outcome is unknown. Reload the task before retrying.",
            severity=ErrorSeverity.MEDIUM,
            status_code=504,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.CRITICAL,
        status_code=500,
    )
