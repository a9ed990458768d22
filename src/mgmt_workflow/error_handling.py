"""Error taxonomy and classification for the management workflow."""

import logging
import time
from enum import Enum
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Classification of error severity levels."""

    CRITICAL = "critical"  # Process must terminate
    HIGH = "high"  # Request fails, caller can not fix it
    MEDIUM = "medium"  # Request fails, infrastructure may recover later
    LOW = "low"  # Request rejected, caller can fix it


class WorkflowError(Exception):
    """Base class for every error surfaced at the controller boundary."""

    status: int = 500
    severity: ErrorSeverity = ErrorSeverity.HIGH

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequest(WorkflowError):
    status = 400
    severity = ErrorSeverity.LOW


class NothingToSubmit(InvalidRequest):
    def __init__(self, message: str = "No changes to submit"):
        super().__init__(message)


class NothingToRevert(InvalidRequest):
    def __init__(self, message: str = "No changes to revert"):
        super().__init__(message)


class SubmissionExists(InvalidRequest):
    pass


class NotFound(WorkflowError):
    status = 404
    severity = ErrorSeverity.LOW


class AccessDenied(WorkflowError):
    status = 403
    severity = ErrorSeverity.LOW


class RepositoryUnavailable(WorkflowError):
    status = 503
    severity = ErrorSeverity.MEDIUM


class StorageIOError(WorkflowError):
    status = 500
    severity = ErrorSeverity.HIGH


class ErrorContext:
    """Context information about an error, used for logging and responses."""

    def __init__(
        self,
        error: Exception,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        operation: str = "",
        user_id: Optional[str] = None,
        recoverable: bool = True,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        self.error = error
        self.severity = severity
        self.operation = operation
        self.user_id = user_id
        self.recoverable = recoverable
        self.metadata = metadata or {}
        self.error_time = time.time()

    @property
    def status(self) -> int:
        if isinstance(self.error, WorkflowError):
            return self.error.status
        if self.severity == ErrorSeverity.LOW:
            return 400
        return 500

    @property
    def reason(self) -> str:
        if isinstance(self.error, WorkflowError):
            return self.error.message
        if self.severity == ErrorSeverity.LOW:
            return f"Invalid request: {self.error}"
        # Internal details stay in the logs
        return "Internal server error"


def classify_error(
    error: Exception, operation: str = "", user_id: Optional[str] = None
) -> ErrorContext:
    """
    Classify an error and create an appropriate ErrorContext.

    Args:
        error: The exception that occurred
        operation: The operation during which the error occurred
        user_id: The acting user, when known

    Returns:
        ErrorContext with appropriate severity and recoverability settings
    """
    if isinstance(error, WorkflowError):
        return ErrorContext(
            error=error,
            severity=error.severity,
            operation=operation,
            user_id=user_id,
            recoverable=error.severity in (ErrorSeverity.LOW, ErrorSeverity.MEDIUM),
        )

    error_type = type(error).__name__

    if error_type in ("SystemExit", "KeyboardInterrupt", "MemoryError"):
        return ErrorContext(
            error=error,
            severity=ErrorSeverity.CRITICAL,
            operation=operation,
            user_id=user_id,
            recoverable=False,
        )

    if any(x in error_type for x in ["Validation", "Parse", "Decode"]):
        return ErrorContext(
            error=error,
            severity=ErrorSeverity.LOW,
            operation=operation,
            user_id=user_id,
            recoverable=True,
        )

    return ErrorContext(
        error=error,
        severity=ErrorSeverity.HIGH,
        operation=operation,
        user_id=user_id,
        recoverable=False,
    )


def error_response(
    error: Exception, operation: str = "", user_id: Optional[str] = None
) -> Tuple[int, str]:
    """Map an exception to an HTTP-equivalent status and a human readable reason."""
    context = classify_error(error, operation, user_id)

    if context.severity in (ErrorSeverity.CRITICAL, ErrorSeverity.HIGH) or context.status >= 500:
        logger.error(
            f"{context.severity.value.upper()} error in {operation} for {user_id}: {error}",
            exc_info=None if isinstance(error, WorkflowError) else error,
        )
    else:
        logger.info(f"Rejected {operation} for {user_id}: {context.reason}")

    return context.status, context.reason
