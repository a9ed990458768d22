"""Tests for error classification and response mapping."""

import logging

import pytest
from pydantic import BaseModel, ValidationError

from mgmt_workflow.error_handling import (
    AccessDenied,
    ErrorContext,
    ErrorSeverity,
    InvalidRequest,
    NotFound,
    NothingToRevert,
    NothingToSubmit,
    RepositoryUnavailable,
    StorageIOError,
    SubmissionExists,
    WorkflowError,
    classify_error,
    error_response,
)


class _Strict(BaseModel):
    value: int


def _validation_error() -> ValidationError:
    try:
        _Strict.model_validate({"value": "not a number"})
    except ValidationError as e:
        return e
    raise AssertionError("validation unexpectedly succeeded")


class TestErrorContext:
    """Test ErrorContext functionality."""

    def test_error_context_creation(self):
        error = ValueError("test error")
        context = ErrorContext(
            error=error,
            severity=ErrorSeverity.HIGH,
            operation="submit",
            user_id="alice",
            recoverable=False,
            metadata={"key": "value"},
        )

        assert context.error == error
        assert context.severity == ErrorSeverity.HIGH
        assert context.operation == "submit"
        assert context.user_id == "alice"
        assert context.recoverable is False
        assert context.metadata == {"key": "value"}
        assert isinstance(context.error_time, float)

    def test_error_context_defaults(self):
        context = ErrorContext(RuntimeError("test error"))

        assert context.severity == ErrorSeverity.MEDIUM
        assert context.operation == ""
        assert context.user_id is None
        assert context.recoverable is True
        assert context.metadata == {}

    def test_internal_errors_hide_details(self):
        context = ErrorContext(RuntimeError("secret path /var/x"), severity=ErrorSeverity.HIGH)

        assert context.status == 500
        assert context.reason == "Internal server error"


class TestWorkflowErrors:
    @pytest.mark.parametrize(
        "error,status",
        [
            (InvalidRequest("bad"), 400),
            (NothingToSubmit(), 400),
            (NothingToRevert(), 400),
            (SubmissionExists("exists"), 400),
            (NotFound("missing"), 404),
            (AccessDenied("no"), 403),
            (RepositoryUnavailable("locked"), 503),
            (StorageIOError("disk"), 500),
        ],
    )
    def test_status(self, error, status):
        assert error.status == status
        assert isinstance(error, WorkflowError)

    def test_default_messages(self):
        assert NothingToSubmit().message == "No changes to submit"
        assert NothingToRevert().message == "No changes to revert"


class TestClassifyError:
    def test_workflow_error_keeps_its_severity(self):
        context = classify_error(NotFound("missing"), "fetch", "alice")

        assert context.severity == ErrorSeverity.LOW
        assert context.recoverable is True
        assert context.user_id == "alice"

    def test_storage_error_is_not_recoverable(self):
        assert classify_error(StorageIOError("disk")).recoverable is False

    def test_validation_errors_are_low_severity(self):
        context = classify_error(_validation_error())

        assert context.severity == ErrorSeverity.LOW
        assert context.status == 400
        assert context.reason.startswith("Invalid request:")

    def test_critical_errors(self):
        context = classify_error(KeyboardInterrupt())

        assert context.severity == ErrorSeverity.CRITICAL
        assert context.recoverable is False

    def test_unknown_errors_are_high_severity(self):
        assert classify_error(RuntimeError("boom")).severity == ErrorSeverity.HIGH


class TestErrorResponse:
    def test_expected_rejection_logged_at_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="mgmt_workflow.error_handling"):
            status, reason = error_response(AccessDenied("You do not own this service."), "fetch", "bob")

        assert (status, reason) == (403, "You do not own this service.")
        assert all(r.levelno == logging.INFO for r in caplog.records)

    def test_unexpected_error_logged_with_traceback(self, caplog):
        with caplog.at_level(logging.INFO, logger="mgmt_workflow.error_handling"):
            status, reason = error_response(RuntimeError("boom"), "submit", "alice")

        assert (status, reason) == (500, "Internal server error")
        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.exc_info is not None

    def test_unavailable_repository_logged_as_error(self, caplog):
        with caplog.at_level(logging.INFO, logger="mgmt_workflow.error_handling"):
            status, _ = error_response(RepositoryUnavailable("timed out"), "revert", "alice")

        assert status == 503
        assert caplog.records[-1].levelno == logging.ERROR
