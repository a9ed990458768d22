"""
Logging setup for the management workflow.

Records may carry workflow context (the acting user, the branch or queue
file being worked on, request timing). Controllers attach it through
``context_logger``; the structured formatter lifts it into the JSON output.
"""

import json
import logging
import sys
from typing import Any, MutableMapping, Optional, Tuple

PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

CONTEXT_FIELDS = ("user_id", "branch", "filename", "duration_ms")

NOISY_LOGGERS = ("asyncio", "aiohttp", "git")


class WorkflowContextAdapter(logging.LoggerAdapter):
    """Stamps every record with the workflow context it was created with.

    Per-call ``extra`` values win over the adapter's own.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def context_logger(logger: logging.Logger, **context: Any) -> WorkflowContextAdapter:
    unknown = set(context) - set(CONTEXT_FIELDS)
    if unknown:
        raise ValueError(f"Unknown log context fields: {sorted(unknown)}")
    return WorkflowContextAdapter(logger, {k: v for k, v in context.items() if v is not None})


class SafeStreamHandler(logging.StreamHandler):
    """
    Stream handler that gracefully handles closed streams during shutdown.
    """

    def emit(self, record):
        try:
            super().emit(record)
        except (ValueError, OSError) as e:
            message = str(e).lower()
            if "closed file" not in message and "bad file descriptor" not in message:
                raise


class StructuredLogFormatter(logging.Formatter):
    """One JSON object per record, with whatever workflow context it carries."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (name, getattr(record, name))
            for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        elif record.exc_text:
            entry["exception"] = record.exc_text
        return json.dumps(entry, ensure_ascii=False)


def level_for_verbosity(verbose: int, default: str = "INFO") -> str:
    """Map a ``-v`` count onto a level; no flag keeps the configured level."""
    if verbose >= 2:
        return "DEBUG"
    if verbose == 1:
        return "INFO"
    return default


def configure_logging(log_level: str = "INFO", structured: bool = False, stream: Optional[Any] = None) -> None:
    """
    Route all records to stderr (or ``stream``), as plain text or JSON lines.

    Replaces any handlers already on the root logger, so it is safe to call
    once per process from the command line entry point.
    """
    handler = SafeStreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredLogFormatter() if structured else logging.Formatter(PLAIN_FORMAT))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
