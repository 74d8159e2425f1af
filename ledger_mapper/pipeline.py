"""
Pipeline Orchestrator.

The central entry point that wires together every layer:

    Workbook  →  Cell Grid  →  Table Detector  →  Column Resolver
              →  Row decoding  →  Account Classifier  →  Aggregation
              →  Validator  →  TrialBalanceResult

Every run allocates its own ``RunContext``; classification memory,
diagnostics and unmatched entries never outlive the call that created them.

Usage
-----
>>> from ledger_mapper.pipeline import TrialBalanceProcessor
>>>
>>> processor = TrialBalanceProcessor()
>>> result = processor.process_file("trial_balance.xlsx")
>>> print(result.is_balanced, len(result.entries))
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Set, Tuple

from ledger_mapper.aggregation import AggregationEngine
from ledger_mapper.classifier import AccountClassifier
from ledger_mapper.columns import ColumnMap, ColumnResolver
from ledger_mapper.config import PipelineConfig
from ledger_mapper.context import RunContext
from ledger_mapper.exceptions import DataError, LabelServiceError, WorkbookReadError
from ledger_mapper.grid import CellGrid, WorkbookSource, load_grid
from ledger_mapper.hints import HintProvider, RawLabel, coerce_hints, fetch_hints
from ledger_mapper.logging_setup import configure_logging, get_logger
from ledger_mapper.normalizer import CellNormalizer
from ledger_mapper.schema import (
    FinancialEntry,
    LabelHint,
    TotalSummary,
    TrialBalanceResult,
    UncertainClassification,
)
from ledger_mapper.similarity import SimilarityScorer
from ledger_mapper.table_detector import TableDetector
from ledger_mapper.taxonomy import SECTION_KEYWORDS
from ledger_mapper.validator import Validator

logger = get_logger("pipeline")


class TrialBalanceProcessor:
    """Orchestrates one processing run per call.

    Parameters
    ----------
    config:
        All tuneable knobs.  Defaults follow the standard chart of accounts.
    scorer:
        Similarity capability handed to the classifier; defaults to
        rapidfuzz.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        scorer: Optional[SimilarityScorer] = None,
    ) -> None:
        self._config = config or PipelineConfig()

        # Bootstrap logging before anything else
        configure_logging(level=self._config.log_level, log_file=self._config.log_file)

        # Construct layers
        self._normalizer = CellNormalizer()
        self._detector = TableDetector(self._config.detection, self._normalizer)
        self._columns = ColumnResolver(self._normalizer)
        self._classifier = AccountClassifier(
            config=self._config.classification,
            scorer=scorer,
        )
        self._aggregation = AggregationEngine()
        self._validator = Validator(config=self._config.validation)

        logger.info(
            "Processor initialised — similarity_threshold=%.2f, "
            "uncertainty_threshold=%.2f",
            self._config.classification.similarity_threshold,
            self._config.classification.uncertainty_threshold,
        )

    # ------------------------------------------------------------------ #
    # Entry points
    # ------------------------------------------------------------------ #

    def process_file(
        self,
        source: WorkbookSource,
        label_hints: Optional[Iterable[RawLabel]] = None,
    ) -> TrialBalanceResult:
        """Process the first sheet of an ``.xlsx`` workbook.

        Raises
        ------
        WorkbookReadError, DetectionError, DataError
        """
        grid = load_grid(source)
        return self.process_grid(grid, label_hints)

    def process_with_label_service(
        self,
        source: WorkbookSource,
        provider: HintProvider,
    ) -> TrialBalanceResult:
        """Fetch column-label hints first, then process.

        A failing label service is logged and the run continues without
        hints.
        """
        payload = _read_payload(source)
        context = RunContext()
        try:
            hints: List[LabelHint] = fetch_hints(provider, payload)
        except LabelServiceError as exc:
            context.log.warning(
                "Label extraction failed; continuing without label hints",
                {"error": exc.message, **exc.details},
            )
            hints = []
        return self._run(load_grid(payload), hints, context)

    def process_grid(
        self,
        grid: CellGrid,
        label_hints: Optional[Iterable[RawLabel]] = None,
    ) -> TrialBalanceResult:
        """Process an already-loaded grid."""
        return self._run(grid, coerce_hints(label_hints), RunContext())

    # ------------------------------------------------------------------ #
    # Core pipeline logic
    # ------------------------------------------------------------------ #

    def _run(
        self,
        grid: CellGrid,
        hints: Sequence[LabelHint],
        context: RunContext,
    ) -> TrialBalanceResult:
        log = context.log
        log.info("Starting file processing", {
            "sheet": grid.sheet_name,
            "range": grid.dimensions,
            "label_hints": len(hints),
        })

        tables = self._detector.detect(grid, hints, log)
        primary = tables[0]

        first_row = primary.header_row + 1
        if first_row > grid.max_row:
            log.error(DataError.default_message, {"table": primary.name})
            raise DataError(details={"table": primary.name})

        columns = self._columns.resolve(primary, hints, log)
        other_headers: Set[int] = {t.header_row for t in tables[1:]}

        entries: List[FinancialEntry] = []
        uncertain: List[UncertainClassification] = []
        totals: List[TotalSummary] = []

        for row, values in grid.iter_rows(first_row):
            # --- Empty ------------------------------------------------
            if grid.is_row_empty(row):
                log.info(f"Skipping empty row {row}")
                continue

            name = self._text(grid, row, columns.name)
            has_amounts = self._has_numeric_payload(grid, row, columns)

            # --- Header -----------------------------------------------
            if row in other_headers or (
                not has_amounts and self._has_section_keyword(values)
            ):
                log.info(f"Skipping header row {row}", {
                    "row": [self._normalizer.cell_text(v) for v in values],
                })
                continue

            debit, credit = self._amounts(grid, row, columns, context)

            # --- Total ------------------------------------------------
            if self._aggregation.is_total_row(name):
                summary = self._aggregation.extract_total(name, debit, credit)
                if summary is not None:
                    totals.append(summary)
                    log.info(
                        f"Extracted total summary: {summary.name}",
                        summary.to_dict(),
                    )
                continue

            # --- Data -------------------------------------------------
            code = self._text(grid, row, columns.code)
            classification, alternatives = self._classifier.classify(
                code, name, context
            )
            entry = FinancialEntry(
                account_code=code,
                account_name=name,
                debit=debit,
                credit=credit,
                classification=classification,
                source_table=primary.name,
                row_index=row,
            )
            entries.append(entry)

            threshold = self._config.classification.uncertainty_threshold
            if classification.confidence < threshold or alternatives:
                uncertain.append(UncertainClassification(
                    entry=entry,
                    possible_classifications=[classification, *alternatives],
                ))

        total_debits, total_credits, is_balanced = self._aggregation.check_balance(
            entries, log
        )

        report = self._validator.validate(entries)
        report.write_to(log)

        result = TrialBalanceResult(
            entries=entries,
            total_debits=total_debits,
            total_credits=total_credits,
            is_balanced=is_balanced,
            detected_tables=list(tables),
            processing_logs=log.entries,
            uncertain_classifications=uncertain,
            unmatched_entries=list(context.unmatched),
            totals_summary=self._aggregation.sort_totals(totals),
        )

        logger.info(
            "Processing complete — entries=%d, totals=%d, uncertain=%d, "
            "unmatched=%d, balanced=%s",
            len(result.entries),
            len(result.totals_summary),
            len(result.uncertain_classifications),
            len(result.unmatched_entries),
            result.is_balanced,
        )
        return result

    # ------------------------------------------------------------------ #
    # Row decoding
    # ------------------------------------------------------------------ #

    def _text(self, grid: CellGrid, row: int, column: Optional[int]) -> str:
        if column is None:
            return ""
        return self._normalizer.cell_text(grid.value(row, column))

    def _has_numeric_payload(
        self, grid: CellGrid, row: int, columns: ColumnMap
    ) -> bool:
        return any(
            column is not None and self._normalizer.is_numeric(grid.value(row, column))
            for column in (columns.debit, columns.credit)
        )

    def _has_section_keyword(self, values: Sequence[Any]) -> bool:
        texts = [self._normalizer.cell_text(v).lower() for v in values]
        return any(k in text for k in SECTION_KEYWORDS for text in texts)

    def _amounts(
        self,
        grid: CellGrid,
        row: int,
        columns: ColumnMap,
        context: RunContext,
    ) -> Tuple[Decimal, Decimal]:
        """Decode debit and credit; a negative amount moves to the other side."""
        debit = self._amount(grid, row, columns.debit, "debit", context)
        credit = self._amount(grid, row, columns.credit, "credit", context)

        if debit < 0 or credit < 0:
            context.log.warning(
                f"Negative amount on row {row} moved to the opposite side",
                {"debit": str(debit), "credit": str(credit)},
            )
            debit, credit = (
                max(debit, Decimal(0)) + max(-credit, Decimal(0)),
                max(credit, Decimal(0)) + max(-debit, Decimal(0)),
            )
        return debit, credit

    def _amount(
        self,
        grid: CellGrid,
        row: int,
        column: Optional[int],
        side: str,
        context: RunContext,
    ) -> Decimal:
        if column is None:
            return Decimal(0)
        value, warnings = self._normalizer.to_decimal(grid.value(row, column))
        for warning in warnings:
            context.log.warning(
                f"Unreadable {side} amount on row {row}; read as zero",
                {"cell": grid.cell_ref(row, column), "reason": warning},
            )
        return value


def _read_payload(source: WorkbookSource) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, (str, Path)):
        try:
            return Path(source).read_bytes()
        except OSError as exc:
            raise WorkbookReadError(details={"reason": str(exc)}) from exc
    return source.read()

