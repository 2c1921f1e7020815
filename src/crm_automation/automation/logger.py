"""Trace sink handed to steps while they execute.

Steps never configure logging themselves. They look the logger up through the
engine and call :meth:`AutomationLogger.log`, which must never raise.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, ClassVar

from crm_automation.logging import TRACE_LOGGER_NAME

logger = logging.getLogger(__name__)
trace_logger = logging.getLogger(TRACE_LOGGER_NAME)


@dataclass(frozen=True, slots=True)
class LogEntry:
    timestamp: datetime
    message: str
    context: dict[str, Any] | None = None


@dataclass
class AutomationLogger:
    """Collects structured trace messages emitted by conditions and actions.

    Messages are always forwarded to the ``crm_automation.automation.trace``
    logger at DEBUG. When ``output`` is enabled they are also kept in memory so
    callers (tests, the CLI) can inspect what a workflow run did.
    """

    output: bool = True
    entries: list[LogEntry] = field(default_factory=list)

    _instance: ClassVar[AutomationLogger | None] = None

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    @classmethod
    def instance(cls, force: bool = False) -> AutomationLogger:
        """Return the default process-wide logger, creating it on first use."""
        if cls._instance is None or force:
            cls._instance = cls()
        return cls._instance

    def log(self, message: str, context: dict[str, Any] | None = None) -> None:
        try:
            entry = LogEntry(
                timestamp=datetime.now(tz=UTC),
                message=str(message),
                context=dict(context) if context is not None else None,
            )
            if self.output:
                with self._lock:
                    self.entries.append(entry)
            if context:
                trace_logger.debug(entry.message, extra={"context": entry.context})
            else:
                trace_logger.debug(entry.message)
        except Exception:  # noqa: BLE001
            # Tracing is fire-and-forget; never let it break a workflow run.
            logger.debug("Failed to record automation trace message", exc_info=True)

    def get_log(self) -> list[LogEntry]:
        with self._lock:
            return list(self.entries)

    def messages(self) -> list[str]:
        return [entry.message for entry in self.get_log()]

    def reset_log(self) -> None:
        with self._lock:
            self.entries.clear()
