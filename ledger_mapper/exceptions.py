"""
Exceptions raised by Ledger Mapper.

Fatal conditions end a run and carry a human-readable message plus
structured details.  Classification uncertainty is never an exception; it
is reported as data on the result.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class LedgerMapperError(Exception):
    """Base class for every error raised by the package."""

    default_message = "Processing failed"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class WorkbookReadError(LedgerMapperError):
    """The payload could not be opened as a workbook."""

    default_message = "Unable to read the workbook"


class DetectionError(LedgerMapperError):
    """No candidate table was found, even with relaxed criteria."""

    default_message = "No financial tables detected in the file"


class DataError(LedgerMapperError):
    """Tables were detected but the worksheet has no rows to process."""

    default_message = "No data found in the worksheet"


class LabelServiceError(LedgerMapperError):
    """The external label-extraction service failed or timed out.

    Non-fatal: the processor logs it and continues without hints.
    """

    default_message = "Label extraction service failed"
