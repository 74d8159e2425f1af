"""
Centralised logging configuration for Ledger Mapper.

Every module obtains its logger via ``get_logger("<module>")``.
Each ``TrialBalanceProcessor`` calls ``configure_logging`` with its own
``PipelineConfig.log_level`` / ``log_file``.  Handlers are attached once per
destination; the level always follows the most recent call.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Dict, Optional, Union

NAMESPACE = "ledger_mapper"

LOG_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

CONSOLE = "console"

# Destination key ("console" or resolved file path) -> attached handler
_HANDLERS: Dict[str, logging.Handler] = {}


def _attach(root: logging.Logger, key: str, handler: logging.Handler) -> None:
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
    _HANDLERS[key] = handler


def configure_logging(
    level: int = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """Set up the namespace logger for ``ledger_mapper``.

    Safe to call repeatedly: the console handler and each log file are
    attached only once, while ``level`` is re-applied to the logger and to
    every attached handler.

    Parameters
    ----------
    level:
        Minimum severity to emit.
    log_file:
        If provided, a ``FileHandler`` is added alongside the console handler.

    Returns
    -------
    logging.Logger
        The ``ledger_mapper`` namespace logger.
    """
    root = logging.getLogger(NAMESPACE)
    root.setLevel(level)
    root.propagate = False

    if CONSOLE not in _HANDLERS:
        _attach(root, CONSOLE, logging.StreamHandler(sys.stdout))

    if log_file:
        key = str(Path(log_file).resolve())
        if key not in _HANDLERS:
            _attach(root, key, logging.FileHandler(key, encoding="utf-8"))

    for handler in _HANDLERS.values():
        handler.setLevel(level)

    return root


def get_logger(name: str) -> logging.Logger:
    """Return a child logger under the ``ledger_mapper`` namespace."""
    return logging.getLogger(f"{NAMESPACE}.{name}")
