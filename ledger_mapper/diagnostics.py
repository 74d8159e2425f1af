"""
Processing Diagnostics.

An append-only, ordered audit log owned by a single run.  Each significant
pipeline decision (row skipped, table detected, total extracted, balance
mismatch, ...) becomes a timestamped ``ProcessingLogEntry``; every entry is
mirrored to the process logger at the matching level.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ledger_mapper.logging_setup import get_logger
from ledger_mapper.schema import LogLevel, ProcessingLogEntry

logger = get_logger("diagnostics")

_STD_LEVELS = {
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class ProcessingLog:
    """Accumulates log entries during one processing run."""

    def __init__(self) -> None:
        self._entries: List[ProcessingLogEntry] = []

    def record(
        self,
        level: LogLevel,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> ProcessingLogEntry:
        entry = ProcessingLogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=level,
            message=message,
            details=dict(details) if details is not None else None,
        )
        self._entries.append(entry)
        if details:
            logger.log(_STD_LEVELS[level], "%s %s", message, details)
        else:
            logger.log(_STD_LEVELS[level], "%s", message)
        return entry

    def info(self, message: str, details: Optional[Dict[str, Any]] = None) -> ProcessingLogEntry:
        return self.record(LogLevel.INFO, message, details)

    def warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> ProcessingLogEntry:
        return self.record(LogLevel.WARNING, message, details)

    def error(self, message: str, details: Optional[Dict[str, Any]] = None) -> ProcessingLogEntry:
        return self.record(LogLevel.ERROR, message, details)

    @property
    def entries(self) -> List[ProcessingLogEntry]:
        """Return a *copy* of the recorded entries."""
        return list(self._entries)

    def count(self, level: LogLevel) -> int:
        return sum(1 for e in self._entries if e.level is level)

    def __len__(self) -> int:
        return len(self._entries)
