"""Benchmark score to quality tier lookups.

Two independent scales: MMLU (general knowledge) and SWE-bench Verified
(% of coding tasks resolved). SWE-bench scores for local models run far lower,
so its thresholds are lower too. Scores are never interpolated or averaged.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class QualityTier:
    label: str
    style_class: str

    def to_dict(self) -> dict:
        return {"label": self.label, "style_class": self.style_class}


EXCELLENT = QualityTier("Excellent", "tier-excellent")
GREAT = QualityTier("Great", "tier-great")
GOOD = QualityTier("Good", "tier-good")
FAIR = QualityTier("Fair", "tier-fair")
BASIC = QualityTier("Basic", "tier-basic")
NOT_AVAILABLE = QualityTier("N/A", "tier-na")

# (minimum score, tier), highest first
GENERAL_THRESHOLDS: list[tuple[float, QualityTier]] = [
    (83, EXCELLENT),
    (75, GREAT),
    (67, GOOD),
    (55, FAIR),
]

CODING_THRESHOLDS: list[tuple[float, QualityTier]] = [
    (30, EXCELLENT),
    (22, GREAT),
    (15, GOOD),
    (8, FAIR),
]


def _lookup(score: float, thresholds: list[tuple[float, QualityTier]]) -> QualityTier:
    for minimum, tier in thresholds:
        if score >= minimum:
            return tier
    return BASIC


def classify_general_tier(score: float) -> QualityTier:
    """Quality tier from an MMLU score."""
    return _lookup(score, GENERAL_THRESHOLDS)


def classify_coding_tier(score: float | None) -> QualityTier:
    """Quality tier from a SWE-bench score; N/A when the model has none."""
    if score is None:
        return NOT_AVAILABLE
    return _lookup(score, CODING_THRESHOLDS)
