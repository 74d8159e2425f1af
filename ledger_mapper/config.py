"""
Configuration module for Ledger Mapper.

All tuneable parameters — thresholds, confidences, limits — live here.
Nothing is hard-coded in business logic modules.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class DetectionConfig:
    """Controls how tables are discovered in the cell grid."""

    # A header row needs at least this many non-empty rows below it
    min_table_rows: int = 2

    # Header cells that must hit a financial keyword in the strict pass
    min_financial_keywords: int = 2

    # Flat bonus when the label hints confirm account/debit/credit columns
    hint_confidence_boost: float = 0.2

    # Confidence of the single table produced by the lenient fallback
    lenient_confidence: float = 0.5
    lenient_hint_confidence: float = 0.7


@dataclass(frozen=True)
class ClassificationConfig:
    """Controls the account classification chain."""

    # Minimum similarity rating (0.0–1.0) for a fuzzy account-code match
    similarity_threshold: float = 0.6

    fuzzy_code_confidence: float = 0.7
    prefix_confidence: float = 0.8
    memory_confidence: float = 0.7

    # Keyword confidence is min(cap, matched/total + bonus)
    keyword_confidence_cap: float = 0.8
    keyword_confidence_bonus: float = 0.3

    fallback_confidence: float = 0.3

    # Entries below this confidence are flagged for review
    uncertainty_threshold: float = 0.8

    max_alternatives: int = 3


@dataclass(frozen=True)
class ValidationConfig:
    """Controls the post-run validation layer."""

    # Maximum plausible amount; larger values suggest a unit error
    max_absolute_value: Decimal = Decimal("1e15")

    # When True, an account code appearing on several rows is logged.
    warn_on_duplicate_codes: bool = True


@dataclass(frozen=True)
class PipelineConfig:
    """Top-level configuration aggregating all sub-configs."""

    detection: DetectionConfig = field(default_factory=DetectionConfig)
    classification: ClassificationConfig = field(
        default_factory=ClassificationConfig
    )
    validation: ValidationConfig = field(default_factory=ValidationConfig)

    # Logging level for the process log
    log_level: int = logging.INFO

    # Optional file receiving the same log lines as the console
    log_file: Optional[str] = None
