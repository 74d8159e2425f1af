"""
String Similarity Layer.

The classifier consults a ``SimilarityScorer`` to find the standard account
code closest to an unknown one.  The scorer is injectable: the default
implementation uses ``rapidfuzz``; tests swap in a stub.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from rapidfuzz import fuzz, process

from ledger_mapper.logging_setup import get_logger

logger = get_logger("similarity")


@dataclass(frozen=True)
class SimilarityMatch:
    """The best reference string for a candidate."""

    target: str
    rating: float  # 0.0 – 1.0


class SimilarityScorer(Protocol):
    def best_match(
        self, candidate: str, references: Sequence[str]
    ) -> Optional[SimilarityMatch]:
        """Return the best-rated reference, or ``None`` if there are none."""
        ...


class RapidFuzzScorer:
    """Rate candidates with ``rapidfuzz``'s normalised Indel similarity.

    ``fuzz.ratio`` is used rather than a token scorer: account codes are
    single tokens where character order matters ("1050" vs "1500").
    """

    def best_match(
        self, candidate: str, references: Sequence[str]
    ) -> Optional[SimilarityMatch]:
        if not references:
            return None

        result = process.extractOne(candidate, references, scorer=fuzz.ratio)
        if result is None:
            return None

        target, score, _ = result
        logger.debug(
            "Similarity: %r → %r (%.1f)", candidate, target, score
        )
        return SimilarityMatch(target=target, rating=score / 100.0)
