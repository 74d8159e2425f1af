"""
Unit tests for label-hint categorisation and the label-service wrapper.
"""

from __future__ import annotations

import pytest

from ledger_mapper.exceptions import LabelServiceError
from ledger_mapper.hints import (
    categorize_label,
    categorize_labels,
    coerce_hints,
    fetch_hints,
    has_required_labels,
    label_confidence,
    summarize_labels,
)
from ledger_mapper.schema import LabelHint, LabelType


# ======================================================================
# Categorisation
# ======================================================================

class TestCategorize:
    def test_exact_keyword(self) -> None:
        hint = categorize_label("Debit", 1.0)
        assert hint.type is LabelType.DEBIT
        assert hint.confidence == pytest.approx(0.95)

    def test_partial_keyword(self) -> None:
        hint = categorize_label("Account Name", 1.0)
        assert hint.type is LabelType.ACCOUNT_DESCRIPTION
        assert hint.confidence == pytest.approx(0.9)

    def test_partial_order_prefers_description(self) -> None:
        # "account" is checked before "credit"
        hint = categorize_label("Account credit", 1.0)
        assert hint.type is LabelType.ACCOUNT_DESCRIPTION

    def test_numeric_text(self) -> None:
        hint = categorize_label("12,500.00", 1.0)
        assert hint.type is LabelType.UNKNOWN
        assert hint.confidence == pytest.approx(0.7)

    def test_unrecognised_text(self) -> None:
        hint = categorize_label("Quarter", 0.6)
        assert hint.type is LabelType.UNKNOWN
        assert hint.confidence == 0.6

    def test_batch(self) -> None:
        hints = categorize_labels([
            {"text": "Particulars", "confidence": 0.9},
            {"text": "Cr", "confidence": 0.8},
        ])
        assert [h.type for h in hints] == [LabelType.ACCOUNT_DESCRIPTION, LabelType.CREDIT]


# ======================================================================
# Coercion
# ======================================================================

class TestCoerce:
    def test_mixed_inputs(self) -> None:
        typed = LabelHint("Dr", 0.8, LabelType.DEBIT)
        hints = coerce_hints([
            typed,
            {"text": "Credit", "confidence": 0.7, "type": "credit"},
            {"text": "Account", "confidence": 0.9},
        ])
        assert hints[0] is typed
        assert hints[1].type is LabelType.CREDIT
        assert hints[1].confidence == 0.7
        assert hints[2].type is LabelType.ACCOUNT_DESCRIPTION

    def test_unknown_type(self) -> None:
        hints = coerce_hints([{"text": "x", "confidence": 0.5, "type": "balance"}])
        assert hints[0].type is LabelType.UNKNOWN

    def test_confidence_clamped(self) -> None:
        hints = coerce_hints([{"text": "Debit", "confidence": 3, "type": "debit"}])
        assert hints[0].confidence == 1.0

    def test_none(self) -> None:
        assert coerce_hints(None) == []

    @pytest.mark.parametrize("item", [
        {"text": "Debit", "confidence": "high"},
        {"text": "Debit", "confidence": None},
        {"text": "Debit", "confidence": True},
        {"text": "Debit", "confidence": float("nan")},
        "Debit",
        None,
    ])
    def test_unreadable_item_skipped(self, item) -> None:
        hints = coerce_hints([item, {"text": "Cr", "confidence": 0.8}])
        assert len(hints) == 1
        assert hints[0].type is LabelType.CREDIT

    def test_numeric_string_confidence(self) -> None:
        hints = coerce_hints([{"text": "Debit", "confidence": "0.75", "type": "debit"}])
        assert hints[0].confidence == 0.75

    def test_label_confidence(self) -> None:
        assert label_confidence({"confidence": -2}) == 0.0
        assert label_confidence({"text": "x"}) == 0.0
        assert label_confidence({"confidence": "n/a"}) is None
        assert label_confidence(["x"]) is None


# ======================================================================
# Summary
# ======================================================================

class TestSummary:
    def test_required_labels_all_three(self) -> None:
        hints = [
            LabelHint("Particulars", 0.9, LabelType.ACCOUNT_DESCRIPTION),
            LabelHint("Dr", 0.8, LabelType.DEBIT),
            LabelHint("Cr", 0.85, LabelType.CREDIT),
        ]
        assert has_required_labels(hints)
        assert not has_required_labels(hints[:2])

    def test_summarize(self) -> None:
        hints = [
            LabelHint("Particulars", 0.9, LabelType.ACCOUNT_DESCRIPTION),
            LabelHint("Dr", 0.6, LabelType.DEBIT),
            LabelHint("Debit", 0.95, LabelType.DEBIT),
            LabelHint("Cr", 0.85, LabelType.CREDIT),
        ]
        headers, confidence = summarize_labels(hints)
        assert headers == ["Particulars", "Dr", "Cr"]
        assert confidence == 0.85

    def test_summarize_missing_type(self) -> None:
        headers, confidence = summarize_labels([LabelHint("Dr", 0.6, LabelType.DEBIT)])
        assert headers == ["Dr"]
        assert confidence == 0.0


# ======================================================================
# Label service
# ======================================================================

class TestFetchHints:
    def test_success(self) -> None:
        hints = fetch_hints(lambda payload: [{"text": "Debit", "confidence": 1.0}], b"x")
        assert hints[0].type is LabelType.DEBIT

    def test_timeout_wrapped(self) -> None:
        def provider(payload: bytes):
            raise TimeoutError("timed out")

        with pytest.raises(LabelServiceError) as exc_info:
            fetch_hints(provider, b"x")
        assert exc_info.value.details == {"reason": "timed out", "type": "TimeoutError"}

    def test_any_provider_error_wrapped(self) -> None:
        def provider(payload: bytes):
            raise RuntimeError("HTTP 500 from label service")

        with pytest.raises(LabelServiceError) as exc_info:
            fetch_hints(provider, b"x")
        assert exc_info.value.details["reason"] == "HTTP 500 from label service"
        assert exc_info.value.details["type"] == "RuntimeError"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_malformed_response_wrapped(self) -> None:
        with pytest.raises(LabelServiceError):
            fetch_hints(lambda payload: 42, b"x")

    def test_bad_items_skipped(self) -> None:
        hints = fetch_hints(
            lambda payload: [
                {"text": "Debit", "confidence": "high"},
                {"text": "Credit", "confidence": 0.9},
            ],
            b"x",
        )
        assert [h.text for h in hints] == ["Credit"]

    def test_service_error_passes_through(self) -> None:
        error = LabelServiceError("quota exceeded")

        def provider(payload: bytes):
            raise error

        with pytest.raises(LabelServiceError) as exc_info:
            fetch_hints(provider, b"x")
        assert exc_info.value is error
