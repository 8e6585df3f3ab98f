"""Weighted match scoring and quality bands."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from ...schemas import MatchQuality

DEFAULT_WEIGHTS: dict[str, float] = {
    "similarity": 0.40,
    "subject": 0.20,
    "salary": 0.15,
    "video": 0.15,
    "experience": 0.10,
}

DEFAULT_QUALITY_THRESHOLDS: dict[str, int] = {
    "EXCELLENT": 90,
    "GREAT": 80,
    "GOOD": 70,
    "FAIR": 60,
}


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


@dataclass
class ScoringConfig:
    """Weights and thresholds for the composite match score."""

    weights: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    quality_thresholds: dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_QUALITY_THRESHOLDS)
    )
    min_actionable_score: int = 60
    experience_bonus_span_years: float = 5.0

    def __post_init__(self) -> None:
        if set(self.weights) != set(DEFAULT_WEIGHTS):
            raise ValueError(
                f"Scoring weights must define exactly {sorted(DEFAULT_WEIGHTS)}"
            )
        total = sum(self.weights.values())
        if not math.isclose(total, 1.0, abs_tol=1e-6):
            raise ValueError(f"Scoring weights must sum to 1.0 (got {total:.4f})")
        thresholds = {**DEFAULT_QUALITY_THRESHOLDS, **self.quality_thresholds}
        ordered = [thresholds[label] for label in ("EXCELLENT", "GREAT", "GOOD", "FAIR")]
        if ordered != sorted(ordered, reverse=True):
            raise ValueError("Quality thresholds must decrease from EXCELLENT to FAIR")
        self.quality_thresholds = thresholds
        if self.experience_bonus_span_years <= 0:
            raise ValueError("experience_bonus_span_years must be positive")


class MatchScorer:
    """Compute the 0-100 composite score and its quality band."""

    def __init__(self, *, config: ScoringConfig | None = None) -> None:
        self._config = config or ScoringConfig()

    @property
    def config(self) -> ScoringConfig:
        return self._config

    def experience_bonus(self, years_experience: float | None, required_years: float) -> float:
        surplus = (years_experience or 0.0) - (required_years or 0.0)
        return _clamp(surplus / self._config.experience_bonus_span_years)

    def score(
        self,
        *,
        similarity: float,
        subject_score: float,
        salary_alignment: float,
        video_score: float | None,
        years_experience: float | None,
        required_years: float = 0.0,
    ) -> int:
        weights = self._config.weights
        components = {
            "similarity": _clamp(similarity),
            "subject": _clamp(subject_score),
            "salary": _clamp(salary_alignment),
            "video": _clamp((video_score or 0.0) / 100.0),
            "experience": self.experience_bonus(years_experience, required_years),
        }
        total = sum(components[name] * weights[name] for name in weights)
        return int(_clamp(math.floor(total * 100 + 0.5), 0, 100))

    def quality(self, score: float) -> MatchQuality:
        thresholds = self._config.quality_thresholds
        if score >= thresholds["EXCELLENT"]:
            return "EXCELLENT"
        if score >= thresholds["GREAT"]:
            return "GREAT"
        if score >= thresholds["GOOD"]:
            return "GOOD"
        return "FAIR"

    def is_actionable(self, score: float) -> bool:
        return score >= self._config.min_actionable_score


_default_scorer = MatchScorer()


def calculate_match_score(
    *,
    similarity: float,
    subject_score: float,
    salary_alignment: float,
    video_score: float | None,
    years_experience: float | None,
    required_years: float = 0.0,
) -> int:
    """Weighted composite of the match components, rounded to an int in [0, 100]."""
    return _default_scorer.score(
        similarity=similarity,
        subject_score=subject_score,
        salary_alignment=salary_alignment,
        video_score=video_score,
        years_experience=years_experience,
        required_years=required_years,
    )


def get_match_quality(score: float) -> MatchQuality:
    return _default_scorer.quality(score)


def is_actionable(score: float) -> bool:
    return _default_scorer.is_actionable(score)
