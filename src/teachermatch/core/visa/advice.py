"""Human-readable digests and next steps for eligibility results."""

from __future__ import annotations

from .results import EligibilityResult, FailedRequirement

_FIELD_LABELS: dict[str, str] = {
    "age": "date of birth",
    "citizenship": "citizenship",
    "degree_level": "highest degree",
    "years_experience": "years of teaching experience",
    "has_tefl": "TEFL/TESOL certification status",
    "has_teaching_license": "teaching license status",
    "has_background_check": "background check status",
    "has_criminal_record": "criminal record declaration",
    "has_apostille": "apostille status",
    "has_visa_violation": "visa history",
}

_RECOMMENDATIONS: dict[str, str] = {
    "degree": "Complete a recognised bachelor degree program",
    "certification": "Obtain TEFL/TESOL certification (120 hours minimum)",
    "license": "Get a teaching license from your home country",
    "background_check": "Obtain a national-level criminal background check",
    "criminal_record": "A clean criminal record is required for this visa",
    "apostille": "Have your degree and background check apostilled",
    "citizenship": "This requirement cannot be changed (citizenship restriction)",
    "age": "Age requirement cannot be changed",
    "visa_history": "Consult an immigration adviser about previous visa violations",
}


def generate_visa_summary(result: EligibilityResult) -> str:
    """One-line digest such as ``"Eligible"`` or ``"Ineligible: <reason>"``."""
    if not result.eligible:
        reason = (
            result.disqualifications[0]
            if result.disqualifications
            else "requirements not met"
        )
        return f"Ineligible: {reason}"
    if result.failed_requirements:
        return f"Eligible (advisory: {result.failed_requirements[0].message})"
    return "Eligible"


def get_eligibility_recommendations(result: EligibilityResult) -> list[str]:
    """Map each failed requirement to an actionable suggestion, in failure order."""
    recommendations: list[str] = []
    for failure in result.failed_requirements:
        suggestion = _recommend(failure, result)
        if suggestion not in recommendations:
            recommendations.append(suggestion)
    return recommendations


def _recommend(failure: FailedRequirement, result: EligibilityResult) -> str:
    if failure.reason == "unsupported_country":
        return f"Contact support for guidance on {result.country} visa requirements"
    if failure.reason in ("missing_data", "invalid_data") and failure.field:
        label = _FIELD_LABELS.get(failure.field, failure.field.replace("_", " "))
        return f"Add your {label} to your profile"
    if failure.kind == "experience":
        years = failure.expected
        if isinstance(years, (int, float)):
            unit = "year" if years == 1 else "years"
            return f"Gain at least {years:g} {unit} of teaching experience"
        return "Gain more teaching experience"
    return _RECOMMENDATIONS.get(failure.kind, failure.message)
