"""Core rule evaluation: visa eligibility and candidate matching."""

from __future__ import annotations

# NOTE: keep imports explicit for export clarity.
from .matching import (
    CandidateFilterPipeline,
    ContactHistory,
    FilterConfig,
    FilterResult,
    FilterStats,
    InMemoryContactHistory,
    MatchScorer,
    ScoringConfig,
    apply_filters,
    deduplicate_matches,
)
from .visa import (
    CachedEligibilityChecker,
    EligibilityResult,
    RuleTable,
    VisaEligibilityChecker,
    VisaStatusCache,
    check_all_countries,
    check_visa_eligibility,
    generate_visa_summary,
    get_eligibility_recommendations,
    get_eligible_countries,
    get_ineligible_countries,
)

__all__ = [
    "CachedEligibilityChecker",
    "CandidateFilterPipeline",
    "ContactHistory",
    "EligibilityResult",
    "FilterConfig",
    "FilterResult",
    "FilterStats",
    "InMemoryContactHistory",
    "MatchScorer",
    "RuleTable",
    "ScoringConfig",
    "VisaEligibilityChecker",
    "VisaStatusCache",
    "apply_filters",
    "check_all_countries",
    "check_visa_eligibility",
    "deduplicate_matches",
    "generate_visa_summary",
    "get_eligibility_recommendations",
    "get_eligible_countries",
    "get_ineligible_countries",
]
