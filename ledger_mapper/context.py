"""
Per-run state.

A ``RunContext`` is allocated at the start of every processing run and
passed explicitly to each component that needs mutable state.  Nothing in
it survives the run, so concurrent or successive runs never observe each
other's classification memory, diagnostics or unmatched entries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from ledger_mapper.diagnostics import ProcessingLog
from ledger_mapper.schema import AccountClassification, UnmatchedEntry


@dataclass(frozen=True)
class MemoryRecord:
    """A classification remembered for the rest of the run."""

    account_code: str
    account_name: str
    classification: AccountClassification


@dataclass
class RunContext:
    """Mutable state owned by exactly one run."""

    log: ProcessingLog = field(default_factory=ProcessingLog)
    unmatched: List[UnmatchedEntry] = field(default_factory=list)
    _memory: Dict[str, MemoryRecord] = field(default_factory=dict)

    def remember(
        self,
        account_code: str,
        account_name: str,
        classification: AccountClassification,
    ) -> None:
        """Store a classification; a repeated code replaces the earlier record."""
        self._memory[account_code] = MemoryRecord(
            account_code=account_code,
            account_name=account_name,
            classification=classification,
        )

    def recall(self, account_code: str) -> Optional[MemoryRecord]:
        return self._memory.get(account_code)

    def remembered(self) -> Iterator[MemoryRecord]:
        """Iterate records in first-classified order."""
        return iter(list(self._memory.values()))

    @property
    def memory_size(self) -> int:
        return len(self._memory)
