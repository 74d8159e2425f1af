"""
Column Role Mapping.

Works out which columns of a detected table hold the account code, account
name, debit and credit amounts.  Header text is compared in this order:

1. Label hints — a header whose text equals a typed hint takes its type.
2. Exact column keywords ("debit", "cr.", "particulars", ...).
3. Code patterns ("code", "no", "number", "#").
4. Partial column keywords ("debit balance", "account name", ...).

Two description-like columns with no code column are read as code then
name ("Account | Description | Debit | Credit").
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from openpyxl.utils import column_index_from_string

from ledger_mapper.diagnostics import ProcessingLog
from ledger_mapper.logging_setup import get_logger
from ledger_mapper.normalizer import CellNormalizer
from ledger_mapper.schema import DetectedTable, LabelHint, LabelType
from ledger_mapper.taxonomy import COLUMN_KEYWORDS

logger = get_logger("columns")

_CODE_TOKENS = frozenset({"code", "no", "number", "num", "#", "id", "ref"})

CODE = "code"
NAME = "name"
DEBIT = "debit"
CREDIT = "credit"

_LABEL_ROLES = {
    LabelType.ACCOUNT_DESCRIPTION: NAME,
    LabelType.DEBIT: DEBIT,
    LabelType.CREDIT: CREDIT,
}


@dataclass(frozen=True)
class ColumnMap:
    """Sheet column numbers (1-based) for each role; ``None`` if absent."""

    code: Optional[int] = None
    name: Optional[int] = None
    debit: Optional[int] = None
    credit: Optional[int] = None


class ColumnResolver:
    """Assign column roles from a table's header cells."""

    def __init__(self, normalizer: Optional[CellNormalizer] = None) -> None:
        self._normalizer = normalizer or CellNormalizer()

    def resolve(
        self,
        table: DetectedTable,
        hints: Sequence[LabelHint],
        log: ProcessingLog,
    ) -> ColumnMap:
        if not table.header_columns:
            # Header seeded from hints only: assume the usual layout
            log.warning(
                "No header cells to map; assuming name, debit, credit layout",
                {"table": table.name},
            )
            first = self._first_column(table)
            return ColumnMap(name=first, debit=first + 1, credit=first + 2)

        hint_roles: Dict[str, str] = {
            self._normalizer.normalize_label(h.text): _LABEL_ROLES[h.type]
            for h in hints
            if h.type in _LABEL_ROLES
        }

        roles: Dict[str, int] = {}
        descriptions: List[int] = []

        for column, header in zip(table.header_columns, table.headers):
            role = self._role_for(self._normalizer.normalize_label(header), hint_roles)
            if role is None:
                continue
            if role == NAME:
                descriptions.append(column)
            elif role not in roles:
                roles[role] = column

        if descriptions:
            if CODE not in roles and len(descriptions) >= 2:
                roles[CODE] = descriptions[0]
                roles[NAME] = descriptions[1]
            else:
                roles[NAME] = descriptions[0]

        if NAME not in roles:
            assigned = set(roles.values())
            for column in table.header_columns:
                if column not in assigned:
                    roles[NAME] = column
                    log.warning(
                        "No account name column recognised; using first unassigned column",
                        {"table": table.name, "column": column},
                    )
                    break

        for role in (DEBIT, CREDIT):
            if role not in roles:
                log.warning(
                    f"No {role} column recognised; {role} amounts read as zero",
                    {"table": table.name, "headers": list(table.headers)},
                )

        mapping = ColumnMap(
            code=roles.get(CODE),
            name=roles.get(NAME),
            debit=roles.get(DEBIT),
            credit=roles.get(CREDIT),
        )
        logger.debug("Column map for %s: %s", table.name, mapping)
        return mapping

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _role_for(header: str, hint_roles: Dict[str, str]) -> Optional[str]:
        if header in hint_roles:
            return hint_roles[header]

        for label_type, keywords in COLUMN_KEYWORDS.items():
            if header in keywords:
                return _LABEL_ROLES[label_type]

        tokens = {t.strip(".") for t in header.split()}
        if tokens & _CODE_TOKENS:
            return CODE

        for label_type, keywords in COLUMN_KEYWORDS.items():
            if any(keyword in header for keyword in keywords):
                return _LABEL_ROLES[label_type]

        return None

    @staticmethod
    def _first_column(table: DetectedTable) -> int:
        start = table.range.split(":")[0]
        letters = start.rstrip("0123456789")
        return column_index_from_string(letters)
