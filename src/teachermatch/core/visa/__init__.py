"""Rule-based visa eligibility checking."""

from .advice import generate_visa_summary, get_eligibility_recommendations
from .cache import CachedEligibilityChecker, VisaStatusCache
from .checker import (
    VisaEligibilityChecker,
    check_all_countries,
    check_multiple_countries,
    check_visa_eligibility,
    get_eligible_countries,
    get_ineligible_countries,
    supported_countries,
)
from .results import CountryVerdict, EligibilityResult, FailedRequirement
from .rules import (
    DEFAULT_RULES,
    CountryRequirement,
    Priority,
    RequirementPredicate,
    RuleTable,
    RuleTableError,
)

__all__ = [
    "CachedEligibilityChecker",
    "CountryRequirement",
    "CountryVerdict",
    "DEFAULT_RULES",
    "EligibilityResult",
    "FailedRequirement",
    "Priority",
    "RequirementPredicate",
    "RuleTable",
    "RuleTableError",
    "VisaEligibilityChecker",
    "VisaStatusCache",
    "check_all_countries",
    "check_multiple_countries",
    "check_visa_eligibility",
    "generate_visa_summary",
    "get_eligibility_recommendations",
    "get_eligible_countries",
    "get_ineligible_countries",
    "supported_countries",
]
