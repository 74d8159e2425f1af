"""
Account Classification Layer.

Places an account (code + name) in the three-level chart of accounts.

Resolution chain
----------------
1. **Exact code** — a standard chart code wins outright (confidence 1.0,
   no alternatives, rest of the chain skipped).
2. **Fuzzy code** — the closest standard code, if similar enough.
3. **Code prefix** — standard codes sharing the first two characters.
4. **Run memory** — an account classified earlier in the same run whose
   name shares a word.  Advisory only: it is offered as an alternative but
   never becomes the chosen classification.
5. **Keywords** — taxonomy leaves whose keywords occur in the name.

A candidate replaces the current best only with a strictly higher
confidence, so on ties the earlier strategy keeps the pick.  When nothing
is chosen the account gets a low-confidence fallback in a heuristic
primary category and is recorded as unmatched.  The classifier never
raises.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional, Protocol, Sequence, Tuple

from ledger_mapper.config import ClassificationConfig
from ledger_mapper.context import RunContext
from ledger_mapper.logging_setup import get_logger
from ledger_mapper.schema import AccountClassification, UnmatchedEntry
from ledger_mapper.similarity import RapidFuzzScorer, SimilarityScorer
from ledger_mapper.taxonomy import STANDARD_CHART, STANDARD_CODES, iter_leaves, lookup_code

logger = get_logger("classifier")

UNMATCHED_REASON = "No confident match found"

# Substring checks used when the taxonomy has nothing to say
_BASIC_CATEGORIES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Assets", ("asset", "cash", "receivable")),
    ("Liabilities", ("liabilit", "payable")),
    ("Revenue", ("revenue", "income", "sale")),
    ("Expenses", ("expense", "cost")),
    ("Equity", ("capital", "equity", "earnings")),
)


@dataclass(frozen=True)
class Candidate:
    """A classification proposed by one strategy."""

    classification: AccountClassification
    # False for advisory candidates that may only appear as alternatives
    eligible: bool = True


class ClassificationStrategy(Protocol):
    name: str

    def propose(
        self, code: str, name: str, context: RunContext
    ) -> List[Candidate]:
        ...


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

class FuzzyCodeStrategy:
    name = "fuzzy_code"

    def __init__(self, config: ClassificationConfig, scorer: SimilarityScorer) -> None:
        self._config = config
        self._scorer = scorer

    def propose(self, code: str, name: str, context: RunContext) -> List[Candidate]:
        match = self._scorer.best_match(code, STANDARD_CODES)
        if match is None or match.rating < self._config.similarity_threshold:
            return []
        standard = STANDARD_CHART.get(match.target)
        if standard is None:
            return []
        return [Candidate(replace(
            standard,
            confidence=self._config.fuzzy_code_confidence,
            reasoning=f"Similar to account code {match.target}",
        ))]


class PrefixCodeStrategy:
    name = "code_prefix"

    def __init__(self, config: ClassificationConfig) -> None:
        self._config = config

    def propose(self, code: str, name: str, context: RunContext) -> List[Candidate]:
        return [
            Candidate(replace(
                standard,
                confidence=self._config.prefix_confidence,
                reasoning=(
                    f"Account code prefix matches standard classification {standard_code}"
                ),
            ))
            for standard_code, standard in STANDARD_CHART.items()
            if code.startswith(standard_code[:2])
        ]


class RunMemoryStrategy:
    name = "run_memory"

    def __init__(self, config: ClassificationConfig) -> None:
        self._config = config

    def propose(self, code: str, name: str, context: RunContext) -> List[Candidate]:
        words = set(name.lower().split())
        if not words:
            return []
        for record in context.remembered():
            if words & set(record.account_name.lower().split()):
                return [Candidate(
                    replace(
                        record.classification,
                        confidence=self._config.memory_confidence,
                        reasoning=(
                            "Similar to previously classified entry: "
                            f"{record.account_name}"
                        ),
                    ),
                    eligible=False,
                )]
        return []


class KeywordStrategy:
    name = "keywords"

    def __init__(self, config: ClassificationConfig) -> None:
        self._config = config

    def propose(self, code: str, name: str, context: RunContext) -> List[Candidate]:
        name_lower = name.lower()
        results: List[AccountClassification] = []
        for primary, secondary, tertiary, keywords in iter_leaves():
            matches = [k for k in keywords if k in name_lower]
            if not matches:
                continue
            confidence = round(min(
                self._config.keyword_confidence_cap,
                len(matches) / len(keywords) + self._config.keyword_confidence_bonus,
            ), 4)
            results.append(AccountClassification(
                primary=primary,
                secondary=secondary,
                tertiary=tertiary,
                confidence=confidence,
                reasoning=f"Matched keywords: {', '.join(matches)}",
            ))
        results.sort(key=lambda c: c.confidence, reverse=True)
        return [Candidate(c) for c in results]


def heuristic_category(account_name: str) -> str:
    """Best-effort primary category for an account nothing else matched."""
    name_lower = account_name.lower()

    for primary, _, _, keywords in iter_leaves():
        if any(k in name_lower for k in keywords):
            return primary

    for category, fragments in _BASIC_CATEGORIES:
        if any(f in name_lower for f in fragments):
            return category

    return "Uncategorized"


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------

class AccountClassifier:
    """Run the resolution chain for one account at a time.

    Parameters
    ----------
    config:
        Confidences and thresholds for every strategy.
    scorer:
        Similarity capability for fuzzy code matching.  Defaults to
        ``RapidFuzzScorer``.
    strategies:
        Override the ordered strategy chain (the exact-code lookup always
        runs first).
    """

    def __init__(
        self,
        config: Optional[ClassificationConfig] = None,
        scorer: Optional[SimilarityScorer] = None,
        strategies: Optional[Sequence[ClassificationStrategy]] = None,
    ) -> None:
        self._config = config or ClassificationConfig()
        scorer = scorer or RapidFuzzScorer()
        if strategies is None:
            strategies = (
                FuzzyCodeStrategy(self._config, scorer),
                PrefixCodeStrategy(self._config),
                RunMemoryStrategy(self._config),
                KeywordStrategy(self._config),
            )
        self._strategies = tuple(strategies)

    def classify(
        self,
        account_code: str,
        account_name: str,
        context: RunContext,
    ) -> Tuple[AccountClassification, List[AccountClassification]]:
        """Return ``(best, alternatives)`` and remember the pick for this run.

        Alternatives exclude the chosen classification, are ordered by
        descending confidence and capped at ``max_alternatives``.
        """
        exact = lookup_code(account_code)
        if exact is not None:
            context.remember(account_code, account_name, exact)
            logger.debug("Exact code match: %r → %s", account_code, exact.path)
            return exact, []

        collected: List[AccountClassification] = []
        best: Optional[AccountClassification] = None
        best_confidence = 0.0

        for strategy in self._strategies:
            for candidate in strategy.propose(account_code, account_name, context):
                collected.append(candidate.classification)
                confidence = candidate.classification.confidence
                if candidate.eligible and confidence > best_confidence:
                    best = candidate.classification
                    best_confidence = confidence

        if best is None:
            best = AccountClassification(
                primary=heuristic_category(account_name),
                secondary="Needs Review",
                tertiary="Unclassified",
                confidence=self._config.fallback_confidence,
                reasoning=(
                    f"Basic category determined from account name: {account_name}"
                ),
            )
            context.unmatched.append(UnmatchedEntry(
                account_code=account_code,
                account_name=account_name,
                possible_classifications=list(collected),
                reason=UNMATCHED_REASON,
            ))

        context.remember(account_code, account_name, best)

        # Identity, not equality: only the chosen object itself is dropped
        alternatives = sorted(
            (c for c in collected if c is not best),
            key=lambda c: c.confidence,
            reverse=True,
        )[: self._config.max_alternatives]

        logger.debug(
            "Classified %r/%r → %s (%.2f, %d alternatives)",
            account_code,
            account_name,
            best.path,
            best.confidence,
            len(alternatives),
        )
        return best, alternatives
