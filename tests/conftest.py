"""
Shared fixtures: in-memory ``.xlsx`` payloads built with openpyxl.
"""

from __future__ import annotations

from io import BytesIO
from typing import Any, Callable, Sequence

import openpyxl
import pytest


def build_xlsx(
    rows: Sequence[Sequence[Any]],
    sheet_name: str = "Sheet1",
    origin: str = "A1",
) -> bytes:
    """Write *rows* to a single-sheet workbook starting at *origin*."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = sheet_name
    start = ws[origin]
    for r, row in enumerate(rows):
        for c, value in enumerate(row):
            if value is not None:
                ws.cell(row=start.row + r, column=start.column + c, value=value)
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def xlsx_bytes() -> Callable[..., bytes]:
    return build_xlsx


@pytest.fixture
def trial_balance_rows() -> list[list[Any]]:
    return [
        ["Account Code", "Account Name", "Debit", "Credit"],
        ["1000", "Cash", 5000, None],
        ["1100", "Accounts Receivable", 2500.5, None],
        ["2000", "Accounts Payable", None, 1500.5],
        ["3000", "Share Capital", None, 6000],
        [None, None, None, None],
        [None, "Total Assets", 7500.5, 0],
    ]
