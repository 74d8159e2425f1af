"""
Unit tests for the AccountClassifier and its strategies.
"""

from __future__ import annotations

from typing import Optional, Sequence

import pytest

from ledger_mapper.classifier import (
    AccountClassifier,
    KeywordStrategy,
    PrefixCodeStrategy,
    RunMemoryStrategy,
    heuristic_category,
)
from ledger_mapper.config import ClassificationConfig
from ledger_mapper.context import RunContext
from ledger_mapper.schema import AccountClassification
from ledger_mapper.similarity import SimilarityMatch


def _fallback() -> AccountClassification:
    return AccountClassification(
        primary="Uncategorized",
        secondary="Needs Review",
        tertiary="Unclassified",
        confidence=0.3,
        reasoning="Basic category determined from account name",
    )


class StubScorer:
    """Always answers with the same match."""

    def __init__(self, target: Optional[str] = None, rating: float = 0.0) -> None:
        self.target = target
        self.rating = rating
        self.calls: list[str] = []

    def best_match(
        self, candidate: str, references: Sequence[str]
    ) -> Optional[SimilarityMatch]:
        self.calls.append(candidate)
        if self.target is None:
            return None
        return SimilarityMatch(target=self.target, rating=self.rating)


@pytest.fixture
def classifier() -> AccountClassifier:
    return AccountClassifier(config=ClassificationConfig())


@pytest.fixture
def context() -> RunContext:
    return RunContext()


# ======================================================================
# Exact code
# ======================================================================

class TestExactCode:
    def test_standard_code(self, classifier: AccountClassifier, context: RunContext) -> None:
        best, alternatives = classifier.classify("1000", "Cash", context)
        assert (best.primary, best.secondary, best.tertiary) == (
            "Assets", "Current Assets", "Cash and Cash Equivalents",
        )
        assert best.confidence == 1.0
        assert alternatives == []
        assert context.unmatched == []

    def test_short_circuits_other_strategies(self, context: RunContext) -> None:
        scorer = StubScorer("2000", 1.0)
        classifier = AccountClassifier(scorer=scorer)
        classifier.classify("1000", "Accounts payable", context)
        assert scorer.calls == []

    def test_exact_match_is_remembered(
        self, classifier: AccountClassifier, context: RunContext
    ) -> None:
        classifier.classify("1000", "Cash", context)
        record = context.recall("1000")
        assert record is not None
        assert record.account_name == "Cash"


# ======================================================================
# Strategy chain
# ======================================================================

class TestChain:
    def test_prefix_beats_fuzzy(self, classifier: AccountClassifier, context: RunContext) -> None:
        best, alternatives = classifier.classify("1001", "Petty Cash", context)
        assert best.confidence == 0.8
        assert best.reasoning == "Account code prefix matches standard classification 1000"
        assert best.tertiary == "Cash and Cash Equivalents"

    def test_equal_keyword_does_not_override_prefix(
        self, classifier: AccountClassifier, context: RunContext
    ) -> None:
        best, alternatives = classifier.classify("1001", "Petty Cash", context)
        # The keyword candidate ties at 0.8 and stays an alternative
        assert best.reasoning.startswith("Account code prefix")
        assert alternatives[0].tertiary == "Cash"
        assert alternatives[0].confidence == 0.8
        assert alternatives[1].reasoning == "Similar to account code 1000"
        assert alternatives[1].confidence == 0.7

    def test_alternatives_exclude_best(
        self, classifier: AccountClassifier, context: RunContext
    ) -> None:
        best, alternatives = classifier.classify("1001", "Petty Cash", context)
        assert all(a is not best for a in alternatives)

    def test_alternatives_capped_and_sorted(self, context: RunContext) -> None:
        classifier = AccountClassifier(scorer=StubScorer())
        best, alternatives = classifier.classify(
            "", "Salary wage rent insurance advertising bank charge", context
        )
        assert len(alternatives) == 3
        confidences = [a.confidence for a in alternatives]
        assert confidences == sorted(confidences, reverse=True)
        assert best.confidence >= confidences[0]

    def test_stub_fuzzy_match(self, context: RunContext) -> None:
        classifier = AccountClassifier(scorer=StubScorer("4000", 0.9))
        best, _ = classifier.classify("ZZ", "Unlabelled", context)
        assert best.tertiary == "Sales Revenue"
        assert best.confidence == 0.7
        assert best.reasoning == "Similar to account code 4000"

    def test_fuzzy_below_threshold_ignored(self, context: RunContext) -> None:
        classifier = AccountClassifier(scorer=StubScorer("4000", 0.59))
        best, _ = classifier.classify("ZZ", "Unlabelled", context)
        assert best.confidence == 0.3
        assert len(context.unmatched) == 1

    def test_keyword_confidence(self, context: RunContext) -> None:
        classifier = AccountClassifier(scorer=StubScorer())
        best, _ = classifier.classify("", "Deferred tax liability", context)
        # 1 of 2 keywords matched: min(0.8, 0.5 + 0.3)
        assert best.tertiary == "Deferred Tax"
        assert best.confidence == 0.8
        assert best.reasoning == "Matched keywords: deferred tax"

    def test_custom_strategy_chain(self, context: RunContext) -> None:
        config = ClassificationConfig()
        classifier = AccountClassifier(
            config=config, strategies=[KeywordStrategy(config)]
        )
        best, _ = classifier.classify("1001", "Office rent", context)
        assert best.secondary == "Operating Expenses"


# ======================================================================
# Fallback
# ======================================================================

class TestFallback:
    def test_unknown_account(self, classifier: AccountClassifier, context: RunContext) -> None:
        best, alternatives = classifier.classify("9999", "Miscellaneous Gains", context)
        assert best.primary == "Uncategorized"
        assert best.secondary == "Needs Review"
        assert best.tertiary == "Unclassified"
        assert best.confidence == 0.3
        assert alternatives == []

        assert len(context.unmatched) == 1
        unmatched = context.unmatched[0]
        assert unmatched.account_code == "9999"
        assert unmatched.reason == "No confident match found"

    def test_fallback_remembered(self, classifier: AccountClassifier, context: RunContext) -> None:
        classifier.classify("9999", "Miscellaneous Gains", context)
        assert context.memory_size == 1


class TestHeuristicCategory:
    @pytest.mark.parametrize("name,expected", [
        ("Petty cash", "Assets"),
        ("Other receivable", "Assets"),
        ("Liabilities misc", "Liabilities"),
        ("Other income", "Revenue"),
        ("Cost of goods", "Assets"),
        ("General expense", "Expenses"),
        ("Owner equity", "Equity"),
        ("Suspense", "Uncategorized"),
    ])
    def test_categories(self, name: str, expected: str) -> None:
        assert heuristic_category(name) == expected


# ======================================================================
# Run memory
# ======================================================================

class TestRunMemory:
    def test_memory_is_advisory(self, context: RunContext) -> None:
        classifier = AccountClassifier(scorer=StubScorer())
        classifier.classify("X1", "Alpha Widgets", context)
        best, alternatives = classifier.classify("X2", "Alpha Gadgets", context)

        assert best.confidence == 0.3
        assert len(alternatives) == 1
        assert alternatives[0].confidence == 0.7
        assert alternatives[0].reasoning == (
            "Similar to previously classified entry: Alpha Widgets"
        )

    def test_fresh_context_has_no_memory(self) -> None:
        classifier = AccountClassifier(scorer=StubScorer())
        classifier.classify("X1", "Alpha Widgets", RunContext())
        _, alternatives = classifier.classify("X2", "Alpha Gadgets", RunContext())
        assert alternatives == []

    def test_words_are_case_insensitive(self, context: RunContext) -> None:
        config = ClassificationConfig()
        context.remember("X1", "ALPHA widgets", _fallback())
        strategy = RunMemoryStrategy(config)
        candidates = strategy.propose("X2", "alpha gadgets", context)
        assert len(candidates) == 1
        assert candidates[0].eligible is False

    def test_repeated_code_replaces_record(self, context: RunContext) -> None:
        context.remember("X1", "First", _fallback())
        context.remember("X1", "Second", _fallback())
        assert context.memory_size == 1
        assert context.recall("X1").account_name == "Second"


class TestPrefixStrategy:
    def test_every_matching_prefix(self, context: RunContext) -> None:
        strategy = PrefixCodeStrategy(ClassificationConfig())
        candidates = strategy.propose("1150", "", context)
        assert [c.classification.tertiary for c in candidates] == ["Accounts Receivable"]

    def test_empty_code(self, context: RunContext) -> None:
        strategy = PrefixCodeStrategy(ClassificationConfig())
        assert strategy.propose("", "", context) == []

