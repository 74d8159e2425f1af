"""
Data models carried through the processing pipeline.

Defines the classification, entry, table and result structures that the
detector, classifier and aggregation engine produce, plus the aggregate
``TrialBalanceResult`` handed to exporters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class TableType(str, Enum):
    """Statement type of a detected table."""

    TRIAL_BALANCE = "TRIAL_BALANCE"
    BALANCE_SHEET = "BALANCE_SHEET"
    INCOME_STATEMENT = "INCOME_STATEMENT"
    UNKNOWN = "UNKNOWN"


class BalanceSide(str, Enum):
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class LogLevel(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LabelType(str, Enum):
    """Column role suggested by the external label-extraction service."""

    ACCOUNT_DESCRIPTION = "account_description"
    DEBIT = "debit"
    CREDIT = "credit"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AccountClassification:
    """A three-level position in the chart of accounts."""

    primary: str
    secondary: str
    tertiary: str
    confidence: float  # 0.0 – 1.0
    reasoning: str

    @property
    def path(self) -> str:
        return f"{self.primary} > {self.secondary} > {self.tertiary}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "primary": self.primary,
            "secondary": self.secondary,
            "tertiary": self.tertiary,
            "confidence": round(self.confidence, 4),
            "reasoning": self.reasoning,
        }


@dataclass(frozen=True)
class FinancialEntry:
    """One classified ledger row.  Amounts are never negative."""

    account_code: str
    account_name: str
    debit: Decimal
    credit: Decimal
    classification: AccountClassification
    source_table: str
    row_index: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_code": self.account_code,
            "account_name": self.account_name,
            "debit": str(self.debit),
            "credit": str(self.credit),
            "classification": self.classification.to_dict(),
            "source_table": self.source_table,
            "row_index": self.row_index,
        }


@dataclass
class DetectedTable:
    """A tabular region located in the cell grid."""

    name: str
    sheet_name: str
    range: str
    headers: list[str]
    row_count: int
    confidence: float
    type: TableType
    # Grid position of the header row and of each header cell (1-based)
    header_row: int = 0
    header_columns: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "sheet_name": self.sheet_name,
            "range": self.range,
            "headers": list(self.headers),
            "row_count": self.row_count,
            "confidence": round(self.confidence, 4),
            "type": self.type.value,
        }


@dataclass
class UncertainClassification:
    """An entry flagged for review, with the current and alternative picks."""

    entry: FinancialEntry
    possible_classifications: list[AccountClassification]

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry": self.entry.to_dict(),
            "possible_classifications": [
                c.to_dict() for c in self.possible_classifications
            ],
        }


@dataclass
class UnmatchedEntry:
    """An account no classification strategy could place."""

    account_code: str
    account_name: str
    possible_classifications: list[AccountClassification]
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_code": self.account_code,
            "account_name": self.account_name,
            "possible_classifications": [
                c.to_dict() for c in self.possible_classifications
            ],
            "reason": self.reason,
        }


@dataclass(frozen=True)
class TotalSummary:
    """A subtotal/total row lifted out of the ledger."""

    name: str
    amount: Decimal
    type: BalanceSide
    category: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "amount": str(self.amount),
            "type": self.type.value,
            "category": self.category,
        }


@dataclass(frozen=True)
class ProcessingLogEntry:
    timestamp: str  # ISO-8601, UTC
    level: LogLevel
    message: str
    details: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "timestamp": self.timestamp,
            "level": self.level.value,
            "message": self.message,
        }
        if self.details is not None:
            data["details"] = self.details
        return data


@dataclass(frozen=True)
class LabelHint:
    """A candidate column label supplied by the label-extraction service."""

    text: str
    confidence: float
    type: LabelType = LabelType.UNKNOWN

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "confidence": round(self.confidence, 4),
            "type": self.type.value,
        }


# ---------------------------------------------------------------------------
# Aggregate result
# ---------------------------------------------------------------------------

@dataclass
class TrialBalanceResult:
    """Aggregate result of a full processing run."""

    entries: list[FinancialEntry] = field(default_factory=list)
    total_debits: Decimal = Decimal("0")
    total_credits: Decimal = Decimal("0")
    is_balanced: bool = True
    detected_tables: list[DetectedTable] = field(default_factory=list)
    processing_logs: list[ProcessingLogEntry] = field(default_factory=list)
    uncertain_classifications: list[UncertainClassification] = field(
        default_factory=list
    )
    unmatched_entries: list[UnmatchedEntry] = field(default_factory=list)
    totals_summary: list[TotalSummary] = field(default_factory=list)

    @property
    def difference(self) -> Decimal:
        return self.total_debits - self.total_credits

    @property
    def needs_review(self) -> bool:
        return bool(self.uncertain_classifications or self.unmatched_entries)

    def to_dict(self) -> dict[str, Any]:
        return {
            "entries": [e.to_dict() for e in self.entries],
            "total_debits": str(self.total_debits),
            "total_credits": str(self.total_credits),
            "is_balanced": self.is_balanced,
            "detected_tables": [t.to_dict() for t in self.detected_tables],
            "processing_logs": [log.to_dict() for log in self.processing_logs],
            "uncertain_classifications": [
                u.to_dict() for u in self.uncertain_classifications
            ],
            "unmatched_entries": [u.to_dict() for u in self.unmatched_entries],
            "totals_summary": [t.to_dict() for t in self.totals_summary],
        }
