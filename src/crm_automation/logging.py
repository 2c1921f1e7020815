"""Structured logging configuration.

Uses standard library logging with a JSON formatter. Two channels matter:

- module loggers (``logging.getLogger(__name__)``) for engine lifecycle events
  such as registrations, bindings, dispatches and failures;
- the step trace channel :data:`TRACE_LOGGER_NAME`, fed by
  :class:`crm_automation.automation.logger.AutomationLogger`, which carries one
  record per condition/action trace message plus its payload context.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

TRACE_LOGGER_NAME = "crm_automation.automation.trace"

_RESERVED_LOG_RECORD_ATTRS: set[str] = {
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "taskName",
    "thread",
    "threadName",
}


class JsonFormatter(logging.Formatter):
    """Render each record as one JSON object per line.

    Trace records get ``"trace": true`` and their step context as a top-level
    ``"context"`` key, so a workflow run can be followed with a plain filter.
    Everything else passed via ``extra`` lands under ``"extra"``.
    """

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_LOG_RECORD_ATTRS and not key.startswith("_")
        }
        if record.name == TRACE_LOGGER_NAME:
            payload["trace"] = True
            context = extra.pop("context", None)
            if context is not None:
                payload["context"] = context
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        # Trace context may carry arbitrary payload values.
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str, stream: TextIO | None = None) -> None:
    """Configure root logging with structured JSON output.

    The trace channel only emits when ``level`` is DEBUG; at any higher level
    step traces stay in the in-memory :class:`AutomationLogger` only.
    """

    root = logging.getLogger()

    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.setFormatter(JsonFormatter())

    root.addHandler(handler)
    root.setLevel(level.upper())

    logging.getLogger(TRACE_LOGGER_NAME).setLevel(
        logging.DEBUG if root.level <= logging.DEBUG else logging.WARNING
    )
