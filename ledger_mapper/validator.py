"""
Validation Layer.

Post-run checks on the classified entries *before* the result is handed to
exporters.  Nothing here is fatal; findings go to the run's diagnostics.

Checks performed
----------------
1. **Confidence bounds** — every classification confidence lies in [0, 1].
2. **Duplicate codes** — the same account code on several rows.
3. **Two-sided rows** — an entry carrying both a debit and a credit.
4. **Magnitude** — amounts beyond a plausible ceiling (unit errors).
"""

from __future__ import annotations

from typing import Dict, List

from ledger_mapper.config import ValidationConfig
from ledger_mapper.diagnostics import ProcessingLog
from ledger_mapper.logging_setup import get_logger
from ledger_mapper.schema import FinancialEntry

logger = get_logger("validator")


class ValidationReport:
    """Accumulates errors and warnings during a validation pass."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def write_to(self, log: ProcessingLog) -> None:
        for msg in self.errors:
            log.error(f"Validation error: {msg}")
        for msg in self.warnings:
            log.warning(f"Validation warning: {msg}")


class Validator:
    """Validates a list of ``FinancialEntry`` objects.

    Parameters
    ----------
    config:
        Validation thresholds and behaviour flags.
    """

    def __init__(self, config: ValidationConfig) -> None:
        self._config = config

    def validate(self, entries: List[FinancialEntry]) -> ValidationReport:
        """Run all checks and return a ``ValidationReport``."""
        report = ValidationReport()
        self._check_confidence(entries, report)
        if self._config.warn_on_duplicate_codes:
            self._check_duplicate_codes(entries, report)
        self._check_amounts(entries, report)
        logger.info(
            "Validation complete — errors=%d, warnings=%d",
            len(report.errors),
            len(report.warnings),
        )
        return report

    # ------------------------------------------------------------------ #
    # Individual checks
    # ------------------------------------------------------------------ #

    @staticmethod
    def _check_confidence(
        entries: List[FinancialEntry], report: ValidationReport
    ) -> None:
        for e in entries:
            confidence = e.classification.confidence
            if not 0.0 <= confidence <= 1.0:
                report.add_error(
                    f"'{e.account_name}' (row {e.row_index}) has confidence "
                    f"{confidence} outside [0, 1]"
                )

    @staticmethod
    def _check_duplicate_codes(
        entries: List[FinancialEntry], report: ValidationReport
    ) -> None:
        seen: Dict[str, int] = {}  # code → first row
        for e in entries:
            if not e.account_code:
                continue
            if e.account_code in seen:
                report.add_warning(
                    f"Duplicate account code '{e.account_code}': "
                    f"first on row {seen[e.account_code]}, again on row {e.row_index}"
                )
            else:
                seen[e.account_code] = e.row_index

    def _check_amounts(
        self, entries: List[FinancialEntry], report: ValidationReport
    ) -> None:
        ceiling = self._config.max_absolute_value
        for e in entries:
            if e.debit and e.credit:
                report.add_warning(
                    f"'{e.account_name}' (row {e.row_index}) has both a debit "
                    f"and a credit"
                )
            for side, amount in (("debit", e.debit), ("credit", e.credit)):
                if amount > ceiling:
                    report.add_warning(
                        f"'{e.account_name}' {side} {amount} exceeds "
                        f"max_absolute_value ({ceiling}). Possible unit error?"
                    )
