"""
Result Export.

Serialises a ``TrialBalanceResult`` for downstream consumers:

* ``export_workbook`` — a multi-sheet ``.xlsx`` (Trial Balance, Uncertain
  Classifications, Summary, Processing Logs) written with openpyxl.
* ``result_to_json`` — the JSON form returned by the HTTP API.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from decimal import Decimal
from io import BytesIO
from typing import Any, Iterable, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.worksheet.worksheet import Worksheet

from ledger_mapper.logging_setup import get_logger
from ledger_mapper.schema import AccountClassification, TrialBalanceResult

logger = get_logger("exporter")

XLSX_MIMETYPE = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
)

TRIAL_BALANCE_HEADERS = (
    "Account Code", "Account Name", "Classification", "Confidence", "Debit", "Credit",
)
UNCERTAIN_HEADERS = (
    "Account Code", "Account Name", "Current Classification", "Confidence",
    "Alternative Classifications",
)
SUMMARY_HEADERS = ("Category", "Name", "Amount", "Type")
LOG_HEADERS = ("Timestamp", "Level", "Message", "Details")


def _percent(confidence: float) -> str:
    return f"{round(confidence * 100)}%"


def _amount_cell(amount: Decimal) -> Optional[Decimal]:
    """Zero amounts are left blank."""
    return amount if amount else None


def _alternatives_text(possible: Sequence[AccountClassification]) -> str:
    # The first entry is the current classification
    return "\n".join(
        f"{c.path} ({_percent(c.confidence)})" for c in possible[1:]
    )


def _write_sheet(
    ws: Worksheet, headers: Sequence[str], rows: Iterable[Sequence[Any]]
) -> None:
    ws.append(list(headers))
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for row in rows:
        ws.append(list(row))


def export_workbook(result: TrialBalanceResult) -> bytes:
    """Render the result as ``.xlsx`` bytes.

    The "Uncertain Classifications" and "Summary" sheets are only written
    when they have rows.
    """
    wb = Workbook()

    ws = wb.active
    ws.title = "Trial Balance"
    _write_sheet(ws, TRIAL_BALANCE_HEADERS, (
        (
            e.account_code,
            e.account_name,
            e.classification.path,
            _percent(e.classification.confidence),
            _amount_cell(e.debit),
            _amount_cell(e.credit),
        )
        for e in result.entries
    ))
    ws.append(["", "TOTAL", "", "", result.total_debits, result.total_credits])
    for cell in ws[ws.max_row]:
        cell.font = Font(bold=True)

    if result.uncertain_classifications:
        _write_sheet(wb.create_sheet("Uncertain Classifications"), UNCERTAIN_HEADERS, (
            (
                u.entry.account_code,
                u.entry.account_name,
                u.entry.classification.path,
                _percent(u.entry.classification.confidence),
                _alternatives_text(u.possible_classifications),
            )
            for u in result.uncertain_classifications
        ))

    if result.totals_summary:
        _write_sheet(wb.create_sheet("Summary"), SUMMARY_HEADERS, (
            (t.category, t.name, t.amount, t.type.value)
            for t in result.totals_summary
        ))

    _write_sheet(wb.create_sheet("Processing Logs"), LOG_HEADERS, (
        (
            log.timestamp,
            log.level.value,
            log.message,
            json.dumps(log.details, default=str) if log.details else "",
        )
        for log in result.processing_logs
    ))

    buffer = BytesIO()
    wb.save(buffer)
    logger.info(
        "Exported workbook — sheets=%s, entries=%d",
        wb.sheetnames,
        len(result.entries),
    )
    return buffer.getvalue()


def export_filename(now: Optional[datetime] = None) -> str:
    """``financial-analysis-YYYY-MM-DDTHH-MM-SS.xlsx``"""
    now = now or datetime.now(timezone.utc)
    return f"financial-analysis-{now.strftime('%Y-%m-%dT%H-%M-%S')}.xlsx"


def result_to_json(result: TrialBalanceResult, indent: int = 2) -> str:
    return json.dumps(result.to_dict(), indent=indent, ensure_ascii=False)
