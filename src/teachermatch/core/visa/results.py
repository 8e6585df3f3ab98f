"""Value objects produced by the visa eligibility checker."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from .rules import Priority

FailureReason = Literal["not_met", "missing_data", "invalid_data", "unsupported_country"]


@dataclass(frozen=True, slots=True)
class FailedRequirement:
    """A predicate that did not hold for the candidate."""

    name: str
    kind: str
    message: str
    priority: Priority
    reason: FailureReason = "not_met"
    field: str | None = None
    expected: Any = None

    @property
    def is_critical(self) -> bool:
        return self.priority is Priority.CRITICAL


@dataclass(frozen=True, slots=True)
class EligibilityResult:
    """Outcome of evaluating one candidate against one country's requirements."""

    country: str
    country_name: str
    visa_type: str
    eligible: bool
    failed_requirements: tuple[FailedRequirement, ...] = ()
    disqualifications: tuple[str, ...] = ()
    passed_requirements: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()
    confidence: int = 0
    notes: str | None = None
    last_updated: str | None = None

    @property
    def warnings(self) -> tuple[FailedRequirement, ...]:
        return tuple(item for item in self.failed_requirements if not item.is_critical)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        for item in payload["failed_requirements"]:
            item["priority"] = item["priority"].value
            if item["expected"] is not None and not isinstance(
                item["expected"], (str, int, float, bool)
            ):
                item["expected"] = _plain(item["expected"])
        return payload


@dataclass(frozen=True, slots=True)
class CountryVerdict:
    """Country plus the reasons a candidate does or does not qualify."""

    country: str
    country_name: str
    reasons: list[str] = field(default_factory=list)


def _plain(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, int):
        return int(value)
    return str(value)
