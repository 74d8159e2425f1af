"""
Ledger Mapper — Trial Balance Detection and Classification Engine.

Reads a ledger export, trial balance or balance sheet with an arbitrary
layout, locates its financial table, maps every account onto a standard
three-level chart of accounts, and verifies the balance with exact decimal
arithmetic.

Every classification carries a confidence and a reason.  Low-confidence
and unmatched accounts are flagged for review instead of being guessed
silently.
"""

__version__ = "1.0.0"
__author__ = "Ledger Mapper Team"

from ledger_mapper.pipeline import TrialBalanceProcessor  # noqa: F401
