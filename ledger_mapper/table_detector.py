"""
Table Detection Layer.

Scans a worksheet grid for header rows that introduce financial tables and
classifies each table's statement type.

Two passes:

1. **Strict** — a row with at least two text cells, followed by enough
   non-empty rows, whose cells hit at least two financial keywords (or
   whose sheet the label hints confirm as account/debit/credit).
2. **Lenient** — only when the strict pass finds nothing: the first row
   with two text cells (or any row, when hints confirm the columns) becomes
   a single ``UNKNOWN`` table spanning to the end of the used range.

If neither pass finds a table a ``DetectionError`` is raised.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Set, Tuple

from ledger_mapper.config import DetectionConfig
from ledger_mapper.diagnostics import ProcessingLog
from ledger_mapper.exceptions import DetectionError
from ledger_mapper.grid import CellGrid
from ledger_mapper.hints import has_required_labels, summarize_labels
from ledger_mapper.logging_setup import get_logger
from ledger_mapper.normalizer import CellNormalizer
from ledger_mapper.schema import DetectedTable, LabelHint, TableType
from ledger_mapper.taxonomy import (
    ALL_STATEMENT_KEYWORDS,
    AMOUNT_COLUMN_TOKENS,
    STATEMENT_KEYWORDS,
)

logger = get_logger("table_detector")

# Statement types in the order they are tested
_TYPE_PRIORITY: Tuple[Tuple[TableType, str, str], ...] = (
    (TableType.TRIAL_BALANCE, "debit", "credit"),
    (TableType.BALANCE_SHEET, "assets", "liabilities"),
    (TableType.INCOME_STATEMENT, "revenue", "expenses"),
)


class TableDetector:
    """Locate financial tables in a ``CellGrid``.

    Parameters
    ----------
    config:
        Row / keyword minimums and confidence constants.
    """

    def __init__(
        self,
        config: DetectionConfig,
        normalizer: Optional[CellNormalizer] = None,
    ) -> None:
        self._config = config
        self._normalizer = normalizer or CellNormalizer()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def detect(
        self,
        grid: CellGrid,
        hints: Sequence[LabelHint],
        log: ProcessingLog,
    ) -> List[DetectedTable]:
        """Return detected tables in scan order; the first one is primary.

        Raises
        ------
        DetectionError
            If no region qualifies under either pass.
        """
        hints_confirmed = has_required_labels(hints)
        if hints_confirmed:
            log.info("Found required column labels via label hints")

        tables = self._detect_strict(grid, hints_confirmed, log)

        if not tables:
            log.warning(
                "No tables detected with strict criteria, "
                "attempting lenient detection"
            )
            tables = self._detect_lenient(grid, hints, hints_confirmed, log)

        if not tables:
            log.error(DetectionError.default_message, {"range": grid.dimensions})
            raise DetectionError(details={"range": grid.dimensions})

        return tables

    # ------------------------------------------------------------------ #
    # Passes
    # ------------------------------------------------------------------ #

    def _detect_strict(
        self, grid: CellGrid, hints_confirmed: bool, log: ProcessingLog
    ) -> List[DetectedTable]:
        tables: List[DetectedTable] = []
        if grid.is_empty:
            return tables

        row = grid.min_row
        while row <= grid.max_row:
            cells = self._header_cells(grid, row)
            if len(cells) < 2:
                row += 1
                continue

            data_rows = self._count_data_rows(grid, row)
            if data_rows < self._config.min_table_rows:
                row += 1
                continue

            headers = [text for _, text in cells]
            keyword_hits = self.count_financial_keywords(headers)
            if keyword_hits < self._config.min_financial_keywords and not hints_confirmed:
                row += 1
                continue

            table_type = self.determine_table_type(headers)
            confidence = self.calculate_confidence(headers, table_type)
            if hints_confirmed:
                confidence += self._config.hint_confidence_boost
            confidence = min(1.0, round(confidence, 4))

            table = DetectedTable(
                name=self._table_name(table_type, len(tables)),
                sheet_name=grid.sheet_name,
                range=(
                    f"{grid.cell_ref(row, grid.min_col)}:"
                    f"{grid.cell_ref(row + data_rows, grid.max_col)}"
                ),
                headers=headers,
                row_count=data_rows,
                confidence=confidence,
                type=table_type,
                header_row=row,
                header_columns=[col for col, _ in cells],
            )
            tables.append(table)
            log.info(f"Detected table: {table.name}", {
                "type": table_type.value,
                "headers": headers,
                "range": table.range,
                "row_count": data_rows,
                "keyword_hits": keyword_hits,
                "label_hints_confirmed": hints_confirmed,
            })

            # Rows of this header's block cannot start another table
            row = self._block_end(grid, row) + 1

        return tables

    def _detect_lenient(
        self,
        grid: CellGrid,
        hints: Sequence[LabelHint],
        hints_confirmed: bool,
        log: ProcessingLog,
    ) -> List[DetectedTable]:
        if grid.is_empty:
            return []

        for row, _ in grid.iter_rows():
            cells = self._header_cells(grid, row)
            if len(cells) < 2 and not hints_confirmed:
                continue

            data_rows = self._count_data_rows(grid, row)
            if data_rows < self._config.min_table_rows:
                continue

            headers = [text for _, text in cells]
            columns = [col for col, _ in cells]
            if len(headers) < 2 and hints_confirmed:
                # Seed the header list from the confirmed hint labels
                headers = [text.lower() for text in summarize_labels(hints)[0]]
                columns = []

            confidence = (
                self._config.lenient_hint_confidence
                if hints_confirmed
                else self._config.lenient_confidence
            )
            table = DetectedTable(
                name=f"table_{row}",
                sheet_name=grid.sheet_name,
                range=(
                    f"{grid.cell_ref(row, grid.min_col)}:"
                    f"{grid.cell_ref(grid.max_row, grid.max_col)}"
                ),
                headers=headers,
                row_count=data_rows,
                confidence=confidence,
                type=TableType.UNKNOWN,
                header_row=row,
                header_columns=columns,
            )
            log.info(f"Detected table with lenient criteria: {table.name}", {
                "headers": headers,
                "row_count": data_rows,
                "label_hints_confirmed": hints_confirmed,
            })
            return [table]

        return []

    # ------------------------------------------------------------------ #
    # Header analysis
    # ------------------------------------------------------------------ #

    def count_financial_keywords(self, headers: Sequence[str]) -> int:
        """Number of header cells that look like financial column labels."""
        count = 0
        for header in headers:
            if any(keyword in header for keyword in ALL_STATEMENT_KEYWORDS):
                count += 1
            elif self._tokens([header]) & AMOUNT_COLUMN_TOKENS:
                count += 1
        return count

    def determine_table_type(self, headers: Sequence[str]) -> TableType:
        """First matching statement type wins: TB, then BS, then IS."""
        header_str = " ".join(headers)
        tokens = self._tokens(headers)
        for table_type, first, second in _TYPE_PRIORITY:
            if any(k in header_str for k in STATEMENT_KEYWORDS[table_type]):
                return table_type
            if first in tokens and second in tokens:
                return table_type
        return TableType.UNKNOWN

    def calculate_confidence(
        self, headers: Sequence[str], table_type: TableType
    ) -> float:
        """Score how strongly the headers describe a financial table."""
        tokens = self._tokens(headers)
        confidence = 0.0

        if "debit" in tokens and "credit" in tokens:
            confidence += 0.4
        if "account" in tokens or "description" in tokens:
            confidence += 0.3

        keywords = STATEMENT_KEYWORDS.get(table_type, ())
        if keywords:
            matched = sum(
                1 for k in keywords if any(k in header for header in headers)
            )
            confidence += (matched / len(keywords)) * 0.3

        return min(1.0, confidence)

    # ------------------------------------------------------------------ #
    # Grid helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _header_cells(grid: CellGrid, row: int) -> List[Tuple[int, str]]:
        """``(column, lower-cased text)`` for every text cell in the row."""
        cells: List[Tuple[int, str]] = []
        for offset, value in enumerate(grid.row_values(row)):
            if isinstance(value, str) and value.strip():
                cells.append((grid.min_col + offset, value.strip().lower()))
        return cells

    @staticmethod
    def _count_data_rows(grid: CellGrid, header_row: int) -> int:
        return sum(
            1
            for row in range(header_row + 1, grid.max_row + 1)
            if not grid.is_row_empty(row)
        )

    @staticmethod
    def _block_end(grid: CellGrid, header_row: int) -> int:
        """Last row of the contiguous non-empty block starting at the header."""
        row = header_row
        while row + 1 <= grid.max_row and not grid.is_row_empty(row + 1):
            row += 1
        return row

    def _tokens(self, headers: Sequence[str]) -> Set[str]:
        return {
            token.strip(".")
            for header in headers
            for token in self._normalizer.label_tokens(header)
        }

    @staticmethod
    def _table_name(table_type: TableType, index: int) -> str:
        return f"{table_type.value.lower().replace('_', ' ')}_{index + 1}"
