"""
Chart-of-Accounts Taxonomy.

Read-only reference data shared by every run:

* ``STANDARD_CHART`` — standard account codes and their exact
  classification.  The most trustworthy layer; a hit short-circuits the
  classifier.
* ``HIERARCHY`` — primary → secondary → tertiary → keyword list, used for
  keyword classification of account names.
* ``STATEMENT_KEYWORDS`` — flat keyword lists identifying trial balances,
  balance sheets and income statements from their headers.
* ``COLUMN_KEYWORDS`` — column-label vocabulary for account description,
  debit and credit columns.

Everything is wrapped in ``MappingProxyType``/tuples at import time; no
behaviour depends on mutating it.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Tuple

from ledger_mapper.schema import AccountClassification, LabelType, TableType


# ---------------------------------------------------------------------------
# Standard chart of accounts
# ---------------------------------------------------------------------------

_CHART_REASONING = "Direct match with standard chart of accounts"

_STANDARD_CHART_ROWS: Tuple[Tuple[str, str, str, str], ...] = (
    # --- Assets ---
    ("1000", "Assets", "Current Assets", "Cash and Cash Equivalents"),
    ("1100", "Assets", "Current Assets", "Accounts Receivable"),
    ("1200", "Assets", "Current Assets", "Inventory"),
    ("1500", "Assets", "Non-Current Assets", "Property, Plant and Equipment"),

    # --- Liabilities ---
    ("2000", "Liabilities", "Current Liabilities", "Accounts Payable"),
    ("2100", "Liabilities", "Current Liabilities", "Short-term Loans"),
    ("2500", "Liabilities", "Non-Current Liabilities", "Long-term Loans"),

    # --- Equity ---
    ("3000", "Equity", "Capital", "Share Capital"),
    ("3100", "Equity", "Retained Earnings", "Accumulated Profits"),

    # --- Revenue ---
    ("4000", "Revenue", "Operating Revenue", "Sales Revenue"),
    ("4100", "Revenue", "Other Revenue", "Interest Income"),

    # --- Expenses ---
    ("5000", "Expenses", "Operating Expenses", "Cost of Sales"),
    ("5100", "Expenses", "Operating Expenses", "Employee Benefits"),
    ("5200", "Expenses", "Operating Expenses", "Office Expenses"),
)

STANDARD_CHART: Mapping[str, AccountClassification] = MappingProxyType({
    code: AccountClassification(
        primary=primary,
        secondary=secondary,
        tertiary=tertiary,
        confidence=1.0,
        reasoning=_CHART_REASONING,
    )
    for code, primary, secondary, tertiary in _STANDARD_CHART_ROWS
})

STANDARD_CODES: Tuple[str, ...] = tuple(STANDARD_CHART)


# ---------------------------------------------------------------------------
# Keyword hierarchy
# ---------------------------------------------------------------------------
# Convention: keywords are lower-case and matched as substrings of the
# lower-cased account name.

_HIERARCHY = {
    "Assets": {
        "Current Assets": {
            "Cash": ("cash", "bank", "money market", "petty cash"),
            "Receivables": ("accounts receivable", "trade debtors", "due from"),
            "Inventory": ("inventory", "stock", "goods", "merchandise"),
            "Prepayments": ("prepaid", "advance payment", "deposit"),
        },
        "Non-Current Assets": {
            "Fixed Assets": ("property", "plant", "equipment", "ppe"),
            "Investments": ("investment", "shares", "bonds", "securities"),
            "Intangibles": ("goodwill", "patent", "trademark", "license"),
        },
    },
    "Liabilities": {
        "Current Liabilities": {
            "Payables": ("accounts payable", "trade creditors", "due to"),
            "Short-term Loans": (
                "short term loan", "overdraft", "current borrowing",
            ),
            "Accruals": ("accrued", "accrual", "provision"),
        },
        "Non-Current Liabilities": {
            "Long-term Loans": ("long term loan", "mortgage", "bond payable"),
            "Deferred Tax": ("deferred tax", "future tax"),
        },
    },
    "Equity": {
        "Capital": {
            "Share Capital": ("share capital", "common stock", "issued capital"),
        },
        "Reserves": {
            "Reserves and Surplus": ("reserve", "surplus", "accumulated"),
        },
        "Retained Earnings": {
            "Accumulated Profits": ("retained earning", "accumulated profit"),
        },
    },
    "Revenue": {
        "Operating Revenue": {
            "Sales": ("sales revenue", "service revenue", "fee income"),
            "Commission": ("commission earned", "brokerage"),
        },
        "Other Revenue": {
            "Interest": ("interest income", "interest earned"),
            "Dividend": ("dividend income", "dividend received"),
        },
    },
    "Expenses": {
        "Operating Expenses": {
            "Employee": ("salary", "wage", "payroll", "employee benefit"),
            "Office": ("rent", "utility", "insurance", "maintenance"),
            "Selling": ("advertising", "marketing", "promotion"),
        },
        "Financial Expenses": {
            "Interest": ("interest expense", "finance cost"),
            "Bank Charges": ("bank charge", "bank fee"),
        },
    },
}

HIERARCHY: Mapping[str, Mapping[str, Mapping[str, Tuple[str, ...]]]] = (
    MappingProxyType({
        primary: MappingProxyType({
            secondary: MappingProxyType(dict(leaves))
            for secondary, leaves in groups.items()
        })
        for primary, groups in _HIERARCHY.items()
    })
)


def iter_leaves() -> Iterator[Tuple[str, str, str, Tuple[str, ...]]]:
    """Yield ``(primary, secondary, tertiary, keywords)`` in taxonomy order."""
    for primary, groups in HIERARCHY.items():
        for secondary, leaves in groups.items():
            for tertiary, keywords in leaves.items():
                yield primary, secondary, tertiary, keywords


# ---------------------------------------------------------------------------
# Document-type and column keywords
# ---------------------------------------------------------------------------

STATEMENT_KEYWORDS: Mapping[TableType, Tuple[str, ...]] = MappingProxyType({
    TableType.TRIAL_BALANCE: (
        "trial balance", "tb", "trial", "balance",
        "account listing", "general ledger", "gl balance",
        "account balance", "ledger balance",
    ),
    TableType.BALANCE_SHEET: (
        "balance sheet", "statement of financial position",
        "financial position", "assets and liabilities", "net assets",
        "financial statement", "statement of position", "bs",
        "position statement",
    ),
    TableType.INCOME_STATEMENT: (
        "income statement", "profit and loss", "p&l",
        "statement of comprehensive income", "earnings statement",
        "operating statement", "statement of operations", "profit & loss",
        "income and expenditure", "revenue statement",
    ),
})

ALL_STATEMENT_KEYWORDS: Tuple[str, ...] = tuple(
    keyword
    for keywords in STATEMENT_KEYWORDS.values()
    for keyword in keywords
)

COLUMN_KEYWORDS: Mapping[LabelType, Tuple[str, ...]] = MappingProxyType({
    LabelType.ACCOUNT_DESCRIPTION: (
        "account", "description", "particulars", "details", "name",
        "item", "acc", "a/c", "ledger",
    ),
    LabelType.DEBIT: (
        "debit", "dr", "dr.", "debit amount", "charges", "debits",
        "debit bal", "debit balance",
    ),
    LabelType.CREDIT: (
        "credit", "cr", "cr.", "credit amount", "payments", "credits",
        "credit bal", "credit balance",
    ),
})

# Single-word header tokens that identify an amount column
AMOUNT_COLUMN_TOKENS = frozenset({
    "debit", "debits", "dr", "credit", "credits", "cr",
})

# Structural words that mark section headings inside a ledger
SECTION_KEYWORDS: Tuple[str, ...] = (
    "assets", "liabilities", "equity", "revenue", "expenses",
    "current", "non-current", "operating", "financing",
)


def lookup_code(code: str) -> Optional[AccountClassification]:
    """Exact standard-chart lookup."""
    return STANDARD_CHART.get(code.strip())
