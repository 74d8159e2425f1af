"""
Aggregation Engine.

Exact-decimal arithmetic over classified entries:

* Debit and credit totals, and the balance check (exact equality — no
  floating point anywhere on the amount path).
* Extraction of subtotal/total rows into ``TotalSummary`` records.  Total
  rows are summary-only and never count towards the balance.

Known limitation: a row is a total row whenever its name contains
"total", so an account literally named "Total Holdings Inc." is treated as
a total.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from ledger_mapper.diagnostics import ProcessingLog
from ledger_mapper.logging_setup import get_logger
from ledger_mapper.schema import BalanceSide, FinancialEntry, TotalSummary

logger = get_logger("aggregation")

ZERO = Decimal("0")

# First fragment found in the lower-cased name decides the category
_TOTAL_CATEGORIES: Tuple[Tuple[str, str], ...] = (
    ("asset", "Assets"),
    ("liabilit", "Liabilities"),
    ("equity", "Equity"),
    ("revenue", "Revenue"),
    ("expense", "Expenses"),
)


class AggregationEngine:
    """Sums, balance check and total-row summaries."""

    # ------------------------------------------------------------------ #
    # Total rows
    # ------------------------------------------------------------------ #

    @staticmethod
    def is_total_row(account_name: str) -> bool:
        return "total" in account_name.lower()

    @staticmethod
    def total_category(name: str) -> str:
        name_lower = name.lower()
        for fragment, category in _TOTAL_CATEGORIES:
            if fragment in name_lower:
                return category
        return "Other"

    def extract_total(
        self, name: str, debit: Decimal, credit: Decimal
    ) -> Optional[TotalSummary]:
        """Summarise a total row by its larger side; ties go to CREDIT."""
        if not self.is_total_row(name):
            return None

        category = self.total_category(name)
        if debit > credit:
            return TotalSummary(
                name=name, amount=debit, type=BalanceSide.DEBIT, category=category
            )
        return TotalSummary(
            name=name, amount=credit, type=BalanceSide.CREDIT, category=category
        )

    @staticmethod
    def sort_totals(totals: Iterable[TotalSummary]) -> List[TotalSummary]:
        """Category ascending, then amount descending within a category."""
        return sorted(totals, key=lambda t: (t.category, -t.amount))

    # ------------------------------------------------------------------ #
    # Balance
    # ------------------------------------------------------------------ #

    @staticmethod
    def sum_entries(entries: Iterable[FinancialEntry]) -> Tuple[Decimal, Decimal]:
        total_debits = ZERO
        total_credits = ZERO
        for entry in entries:
            total_debits += entry.debit
            total_credits += entry.credit
        return total_debits, total_credits

    def check_balance(
        self, entries: Iterable[FinancialEntry], log: ProcessingLog
    ) -> Tuple[Decimal, Decimal, bool]:
        """Return ``(total_debits, total_credits, is_balanced)``."""
        total_debits, total_credits = self.sum_entries(entries)
        is_balanced = total_debits == total_credits

        if is_balanced:
            logger.info("Trial balance is balanced at %s", total_debits)
        else:
            log.warning("Trial balance is not balanced", {
                "total_debits": str(total_debits),
                "total_credits": str(total_credits),
                "difference": str(total_debits - total_credits),
            })

        return total_debits, total_credits, is_balanced
