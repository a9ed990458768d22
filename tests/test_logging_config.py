"""Tests for logging configuration and structured output."""

import io
import json
import logging

import pytest

from mgmt_workflow.logging_config import (
    SafeStreamHandler,
    StructuredLogFormatter,
    configure_logging,
    context_logger,
    level_for_verbosity,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("mgmt_workflow.test", logging.INFO, __file__, 1, "submitted %s", ("alice_1",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredLogFormatter:
    def test_basic_fields(self):
        data = json.loads(StructuredLogFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "mgmt_workflow.test"
        assert data["message"] == "submitted alice_1"
        assert "timestamp" in data

    def test_context_fields(self):
        data = json.loads(StructuredLogFormatter().format(_record(user_id="alice", branch="submit-1")))

        assert data["user_id"] == "alice"
        assert data["branch"] == "submit-1"
        assert "filename" not in data

    def test_exception_is_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            import sys

            record = _record()
            record.exc_info = sys.exc_info()

        data = json.loads(StructuredLogFormatter().format(record))
        assert "RuntimeError: boom" in data["exception"]


class TestConfigureLogging:
    def test_plain_output(self, restore_root_logger):
        configure_logging("debug")

        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        handler = restore_root_logger.handlers[0]
        assert isinstance(handler, SafeStreamHandler)
        assert not isinstance(handler.formatter, StructuredLogFormatter)

    def test_structured_output(self, restore_root_logger):
        configure_logging("INFO", structured=True)

        assert isinstance(restore_root_logger.handlers[0].formatter, StructuredLogFormatter)

    def test_noisy_libraries_are_quietened(self, restore_root_logger):
        configure_logging("DEBUG")

        assert logging.getLogger("git").level == logging.WARNING
        assert logging.getLogger("aiohttp").level == logging.WARNING


def test_safe_handler_ignores_closed_stream():
    stream = io.StringIO()
    handler = SafeStreamHandler(stream)
    stream.close()

    # Must not raise
    handler.emit(_record())


class TestContextLogger:
    def test_context_is_attached_to_records(self, caplog):
        log = context_logger(logging.getLogger("mgmt_workflow.test"), user_id="alice", branch="submit-1")

        with caplog.at_level(logging.INFO, logger="mgmt_workflow.test"):
            log.info("submitted")

        [record] = caplog.records
        assert record.user_id == "alice"
        assert record.branch == "submit-1"

    def test_call_extra_is_merged(self, caplog):
        log = context_logger(logging.getLogger("mgmt_workflow.test"), user_id="alice")

        with caplog.at_level(logging.INFO, logger="mgmt_workflow.test"):
            log.info("queued", extra={"filename": "submit-1.json"})
            log.info("renamed", extra={"user_id": "bob"})

        first, second = caplog.records
        assert (first.user_id, first.filename) == ("alice", "submit-1.json")
        assert second.user_id == "bob"

    def test_missing_values_are_left_out(self):
        log = context_logger(logging.getLogger("mgmt_workflow.test"), user_id="alice", branch=None)

        assert log.extra == {"user_id": "alice"}

    def test_unknown_fields_are_refused(self):
        with pytest.raises(ValueError, match="service"):
            context_logger(logging.getLogger("mgmt_workflow.test"), service="Calendar")

    def test_structured_output_carries_context(self):
        stream = io.StringIO()
        logger = logging.getLogger("mgmt_workflow.test.structured")
        handler = logging.StreamHandler(stream)
        handler.setFormatter(StructuredLogFormatter())
        logger.addHandler(handler)
        logger.propagate = False
        try:
            context_logger(logger, user_id="alice", filename="edit-42.json").warning("overwritten")
        finally:
            logger.removeHandler(handler)
            logger.propagate = True

        data = json.loads(stream.getvalue())
        assert data["user_id"] == "alice"
        assert data["filename"] == "edit-42.json"
        assert data["message"] == "overwritten"


@pytest.mark.parametrize("verbose,expected", [(0, "WARNING"), (1, "INFO"), (2, "DEBUG"), (3, "DEBUG")])
def test_level_for_verbosity(verbose, expected):
    assert level_for_verbosity(verbose, default="WARNING") == expected
