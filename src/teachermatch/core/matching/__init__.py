"""Candidate filtering, scoring and deduplication for job matching."""

from .dedup import (
    ContactHistory,
    InMemoryContactHistory,
    deduplicate_matches,
    should_recontact,
)
from .filters import (
    CandidateFilterPipeline,
    EligibilityCheck,
    FilterConfig,
    FilterResult,
    FilterStats,
    StageStats,
    apply_filters,
    top_match_reasons,
)
from .scoring import (
    MatchScorer,
    ScoringConfig,
    calculate_match_score,
    get_match_quality,
    is_actionable,
)

__all__ = [
    "CandidateFilterPipeline",
    "ContactHistory",
    "EligibilityCheck",
    "FilterConfig",
    "FilterResult",
    "FilterStats",
    "InMemoryContactHistory",
    "MatchScorer",
    "ScoringConfig",
    "StageStats",
    "apply_filters",
    "calculate_match_score",
    "deduplicate_matches",
    "get_match_quality",
    "is_actionable",
    "should_recontact",
    "top_match_reasons",
]
