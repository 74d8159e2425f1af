"""
Cell Normalization Layer.

Transforms raw cell values into uniform representations so that the
detector, column mapper and aggregation engine operate on clean,
comparable data.

* Labels: strip, lowercase, drop punctuation (except ``&``, ``/``, ``#``
  and hyphens), collapse whitespace.
* Amounts: exact ``Decimal`` parsing — currency symbols, thousands
  separators and parenthetical negatives are handled; floats are converted
  through their shortest repr so ``0.1`` stays ``Decimal("0.1")``.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, List, Tuple

from ledger_mapper.logging_setup import get_logger

logger = get_logger("normalizer")

ZERO = Decimal("0")


class CellNormalizer:
    """Stateless cell normaliser.  All methods are pure functions."""

    # Currency symbols / prefixes to strip from amounts
    _CURRENCY_RE = re.compile(r"[₹$€£¥]")

    # Parenthetical negative: ``(1234)`` → ``-1234``
    _PAREN_NEG_RE = re.compile(r"^\((.+)\)$")

    # Characters to remove from labels
    _PUNCT_RE = re.compile(r"[^a-z0-9\s\-&/#.]")

    _MULTI_SPACE_RE = re.compile(r"\s+")

    # ------------------------------------------------------------------ #
    # Cells
    # ------------------------------------------------------------------ #

    @staticmethod
    def is_blank(value: Any) -> bool:
        if value is None:
            return True
        if isinstance(value, str):
            return not value.strip()
        return False

    @staticmethod
    def cell_text(value: Any) -> str:
        """Return the display text of a cell.

        Integral floats drop their ``.0`` so that account codes read as
        numbers (``1000.0``) come back as ``"1000"``.
        """
        if value is None:
            return ""
        if isinstance(value, bool):
            return str(value)
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, datetime):
            return value.isoformat(sep=" ")
        if isinstance(value, date):
            return value.isoformat()
        return str(value).strip()

    # ------------------------------------------------------------------ #
    # Labels
    # ------------------------------------------------------------------ #

    def normalize_label(self, raw: Any) -> str:
        """Return the comparable form of a header or label cell."""
        text = self.cell_text(raw).lower()
        text = text.replace("–", "-").replace("—", "-")
        text = self._PUNCT_RE.sub(" ", text)
        text = self._MULTI_SPACE_RE.sub(" ", text).strip()
        return text

    def label_tokens(self, raw: Any) -> List[str]:
        return self.normalize_label(raw).split()

    # ------------------------------------------------------------------ #
    # Amounts
    # ------------------------------------------------------------------ #

    def is_numeric(self, raw: Any) -> bool:
        """True when the cell holds a parseable, non-blank amount."""
        if self.is_blank(raw) or isinstance(raw, (bool, datetime, date)):
            return False
        _, warnings = self.to_decimal(raw)
        return not warnings

    def to_decimal(self, raw: Any) -> Tuple[Decimal, List[str]]:
        """Parse an amount cell into an exact ``Decimal``.

        Returns
        -------
        Tuple[Decimal, List[str]]
            (parsed_value, list_of_warnings).  Blank cells are zero without
            a warning; unparseable cells are zero with a warning.
        """
        warnings: List[str] = []

        if self.is_blank(raw):
            return ZERO, warnings

        if isinstance(raw, bool) or isinstance(raw, (datetime, date)):
            warnings.append(f"Unexpected value type: {type(raw).__name__}")
            return ZERO, warnings

        if isinstance(raw, Decimal):
            return raw, warnings

        if isinstance(raw, int):
            return Decimal(raw), warnings

        if isinstance(raw, float):
            if raw != raw or raw in (float("inf"), float("-inf")):
                warnings.append(f"Non-finite amount: {raw!r}")
                return ZERO, warnings
            # repr gives the shortest string that round-trips
            return Decimal(repr(raw)), warnings

        if not isinstance(raw, str):
            warnings.append(f"Unexpected value type: {type(raw).__name__}")
            return ZERO, warnings

        text = self._CURRENCY_RE.sub("", raw.strip()).strip()

        negative = False
        m = self._PAREN_NEG_RE.match(text)
        if m:
            text = m.group(1).strip()
            negative = True

        text = text.replace(",", "").replace(" ", "")

        try:
            value = Decimal(text)
        except InvalidOperation:
            warnings.append(f"Cannot parse numeric value from: {raw!r}")
            return ZERO, warnings

        if not value.is_finite():
            warnings.append(f"Non-finite amount: {raw!r}")
            return ZERO, warnings

        if negative:
            value = -value

        logger.debug("to_decimal: %r → %s", raw, value)
        return value, warnings
