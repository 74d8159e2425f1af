"""
Column Label Hints.

The optional label-extraction service returns raw text items with an OCR
confidence.  This module types them as account-description / debit /
credit labels, summarises them, and answers the one question the table
detector asks: are all three required columns confirmed?

A hint provider is any callable taking the workbook bytes and returning
raw items or ``LabelHint`` objects.  Any exception a provider raises is
reported as ``LabelServiceError``.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ledger_mapper.exceptions import LabelServiceError
from ledger_mapper.logging_setup import get_logger
from ledger_mapper.schema import LabelHint, LabelType
from ledger_mapper.taxonomy import COLUMN_KEYWORDS

logger = get_logger("hints")

REQUIRED_LABEL_TYPES = (
    LabelType.ACCOUNT_DESCRIPTION,
    LabelType.DEBIT,
    LabelType.CREDIT,
)

_AMOUNT_TEXT_RE = re.compile(r"^[\d,.\-]+$")

RawLabel = Union[LabelHint, Mapping[str, Any]]
HintProvider = Callable[[bytes], Sequence[RawLabel]]


def categorize_label(text: str, confidence: float) -> LabelHint:
    """Type one extracted text item by its column-keyword vocabulary."""
    lowered = text.lower().strip()

    # Exact keyword matches first (highest confidence)
    for label_type, keywords in COLUMN_KEYWORDS.items():
        if lowered in keywords:
            return LabelHint(text=text, confidence=confidence * 0.95, type=label_type)

    # Partial matches, in vocabulary order
    for label_type, keywords in COLUMN_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return LabelHint(text=text, confidence=confidence * 0.9, type=label_type)

    if _AMOUNT_TEXT_RE.match(lowered):
        # An amount could sit under either column
        return LabelHint(text=text, confidence=confidence * 0.7)

    return LabelHint(text=text, confidence=confidence)


def label_confidence(item: Any) -> Optional[float]:
    """Return the clamped confidence of a raw item, or ``None`` if unreadable."""
    if not isinstance(item, Mapping):
        return None
    raw = item.get("confidence", 0.0)
    if isinstance(raw, bool):
        return None
    try:
        confidence = float(raw)
    except (TypeError, ValueError):
        return None
    if confidence != confidence:
        return None
    return min(1.0, max(0.0, confidence))


def categorize_labels(items: Iterable[Mapping[str, Any]]) -> List[LabelHint]:
    """Type raw ``{"text", "confidence"}`` items from the extraction service."""
    hints = coerce_hints(
        {"text": item.get("text", ""), "confidence": item.get("confidence", 0.0)}
        if isinstance(item, Mapping) else item
        for item in items
    )
    logger.debug("Categorised %d extracted labels", len(hints))
    return hints


def coerce_hints(items: Optional[Iterable[RawLabel]]) -> List[LabelHint]:
    """Accept typed hints, typed dicts, or raw extracted items.

    Dicts carrying a ``type`` are taken at face value; dicts without one are
    categorised.  Unrecognised ``type`` values fall back to ``unknown``.
    Items that are not mappings, or whose confidence is not a number, are
    skipped with a warning.
    """
    hints: List[LabelHint] = []
    for item in items or ():
        if isinstance(item, LabelHint):
            hints.append(item)
            continue
        confidence = label_confidence(item)
        if confidence is None:
            logger.warning("Skipping unreadable label item %r", item)
            continue
        text = str(item.get("text", ""))
        raw_type = item.get("type")
        if raw_type is None:
            hints.append(categorize_label(text, confidence))
            continue
        try:
            label_type = LabelType(str(raw_type))
        except ValueError:
            logger.warning("Unknown label type %r for %r; treated as unknown", raw_type, text)
            label_type = LabelType.UNKNOWN
        hints.append(LabelHint(text=text, confidence=confidence, type=label_type))
    return hints


def has_required_labels(hints: Sequence[LabelHint]) -> bool:
    """True only when account description, debit AND credit are all present."""
    present = {h.type for h in hints}
    return all(t in present for t in REQUIRED_LABEL_TYPES)


def summarize_labels(hints: Sequence[LabelHint]) -> Tuple[List[str], float]:
    """Return the first label text per required type and an overall confidence.

    The confidence is the weakest of the three best per-type confidences, so
    a missing type yields ``0.0``.
    """
    headers: List[str] = []
    best: List[float] = []
    for label_type in REQUIRED_LABEL_TYPES:
        group = [h for h in hints if h.type is label_type]
        if group and group[0].text:
            headers.append(group[0].text)
        best.append(max((h.confidence for h in group), default=0.0))
    return headers, min(best)


def fetch_hints(provider: HintProvider, payload: bytes) -> List[LabelHint]:
    """Call the label-extraction service once, completely, before detection.

    Raises
    ------
    LabelServiceError
        Wrapping any failure of the provider, or of reading its response,
        so callers handle a single non-fatal error type.
    """
    try:
        return coerce_hints(provider(payload))
    except LabelServiceError:
        raise
    except Exception as exc:
        raise LabelServiceError(
            details={"reason": str(exc), "type": type(exc).__name__}
        ) from exc
