"""
Worksheet Cell Grid.

Reads the first sheet of an ``.xlsx`` workbook into an addressable grid of
cell values.  Rows and columns are 1-based like openpyxl; the declared used
range (``min_row``/``min_col``/``max_row``/``max_col``) is honoured so that
a sheet whose data starts at ``C5`` is addressed exactly as it appears in
Excel.
"""

from __future__ import annotations

import zipfile
from io import BytesIO
from pathlib import Path
from typing import IO, Any, Iterator, List, Optional, Sequence, Tuple, Union

import openpyxl
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from ledger_mapper.exceptions import WorkbookReadError
from ledger_mapper.logging_setup import get_logger
from ledger_mapper.normalizer import CellNormalizer

logger = get_logger("grid")

WorkbookSource = Union[str, Path, bytes, bytearray, IO[bytes]]


class CellGrid:
    """Row/column addressed view over one worksheet.

    Parameters
    ----------
    rows:
        Cell values of the used range, top row first.
    sheet_name:
        Name of the worksheet the values came from.
    min_row, min_col:
        Sheet coordinates of ``rows[0][0]``.
    """

    def __init__(
        self,
        rows: Sequence[Sequence[Any]],
        sheet_name: str = "Sheet1",
        min_row: int = 1,
        min_col: int = 1,
    ) -> None:
        width = max((len(r) for r in rows), default=0)
        # Pad ragged rows so every row spans the full used range
        self._rows: List[Tuple[Any, ...]] = [
            tuple(r) + (None,) * (width - len(r)) for r in rows
        ]
        self.sheet_name = sheet_name
        self.min_row = min_row
        self.min_col = min_col
        self.max_row = min_row + len(self._rows) - 1
        self.max_col = min_col + width - 1

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #

    @classmethod
    def from_rows(
        cls, rows: Sequence[Sequence[Any]], sheet_name: str = "Sheet1"
    ) -> "CellGrid":
        """Build a grid anchored at ``A1`` from in-memory rows."""
        return cls(rows, sheet_name=sheet_name)

    # ------------------------------------------------------------------ #
    # Addressing
    # ------------------------------------------------------------------ #

    @property
    def is_empty(self) -> bool:
        return not self._rows or self.max_col < self.min_col

    def value(self, row: int, col: int) -> Any:
        """Return the value at sheet coordinates, ``None`` outside the range."""
        r = row - self.min_row
        c = col - self.min_col
        if 0 <= r < len(self._rows) and 0 <= c < len(self._rows[r]):
            return self._rows[r][c]
        return None

    def row_values(self, row: int) -> Tuple[Any, ...]:
        r = row - self.min_row
        if 0 <= r < len(self._rows):
            return self._rows[r]
        return ()

    def iter_rows(self, start: Optional[int] = None) -> Iterator[Tuple[int, Tuple[Any, ...]]]:
        """Yield ``(row_number, values)`` from *start* to the end of the range."""
        first = self.min_row if start is None else max(start, self.min_row)
        for row in range(first, self.max_row + 1):
            yield row, self._rows[row - self.min_row]

    def is_row_empty(self, row: int) -> bool:
        return all(CellNormalizer.is_blank(v) for v in self.row_values(row))

    @staticmethod
    def cell_ref(row: int, col: int) -> str:
        return f"{get_column_letter(col)}{row}"

    @property
    def dimensions(self) -> str:
        if self.is_empty:
            return "A1"
        return (
            f"{self.cell_ref(self.min_row, self.min_col)}:"
            f"{self.cell_ref(self.max_row, self.max_col)}"
        )

    def __repr__(self) -> str:
        return f"CellGrid(sheet={self.sheet_name!r}, range={self.dimensions})"


def load_grid(source: WorkbookSource) -> CellGrid:
    """Read the first worksheet of an ``.xlsx`` payload.

    Parameters
    ----------
    source:
        File path, raw bytes, or a binary file object.

    Raises
    ------
    WorkbookReadError
        If the payload is not a readable workbook.
    """
    if isinstance(source, (bytes, bytearray)):
        source = BytesIO(bytes(source))

    try:
        wb = openpyxl.load_workbook(source, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise WorkbookReadError(details={"reason": str(exc)}) from exc

    try:
        ws = wb.worksheets[0]
        logger.info(
            "Reading sheet: %s (range %s)", ws.title, ws.calculate_dimension()
        )
        rows = [
            list(row)
            for row in ws.iter_rows(
                min_row=ws.min_row,
                max_row=ws.max_row,
                min_col=ws.min_column,
                max_col=ws.max_column,
                values_only=True,
            )
        ]
        return CellGrid(
            rows,
            sheet_name=ws.title,
            min_row=ws.min_row,
            min_col=ws.min_column,
        )
    finally:
        wb.close()
