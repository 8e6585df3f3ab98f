"""Visa eligibility evaluation against per-country requirement tables."""

from __future__ import annotations

import dataclasses
import operator
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Union

import pendulum
import structlog

from ...schemas import CandidateProfile, DegreeLevel
from .advice import get_eligibility_recommendations
from .results import CountryVerdict, EligibilityResult, FailedRequirement, FailureReason
from .rules import DEFAULT_RULES, Priority, RequirementPredicate, RuleTable

CandidateInput = Union[CandidateProfile, Mapping[str, Any]]

_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "eq": operator.eq,
    "neq": operator.ne,
    "gte": operator.ge,
    "lte": operator.le,
    "gt": operator.gt,
    "lt": operator.lt,
}
_NUMERIC_OPERATORS = frozenset({"gte", "lte", "gt", "lt"})


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"expected a number, got {value!r}")
    try:
        return float(value)
    except TypeError as exc:
        raise ValueError(f"expected a number, got {value!r}") from exc


def _to_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError(f"expected true/false, got {value!r}")


def _to_country_code(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"expected a country code, got {value!r}")
    return value.strip().upper()


_COERCERS: dict[str, Callable[[Any], Any]] = {
    "citizenship": _to_country_code,
    "degree_level": DegreeLevel.parse,
    "years_experience": _to_number,
    "has_tefl": _to_flag,
    "has_teaching_license": _to_flag,
    "has_background_check": _to_flag,
    "has_criminal_record": _to_flag,
    "has_apostille": _to_flag,
    "has_visa_violation": _to_flag,
}


def candidate_attribute(candidate: CandidateInput, name: str) -> Any:
    if isinstance(candidate, Mapping):
        return candidate.get(name)
    return getattr(candidate, name, None)


def _compare(actual: Any, op: str, expected: Any) -> bool:
    if op in _NUMERIC_OPERATORS:
        return _COMPARATORS[op](_to_number(actual), _to_number(expected))
    if op == "in":
        return actual in expected
    if op == "not_in":
        return actual not in expected
    if op == "includes":
        return isinstance(actual, (list, tuple, set, frozenset)) and expected in actual
    return _COMPARATORS[op](actual, expected)


class VisaEligibilityChecker:
    """Evaluate candidates against an immutable table of country requirements.

    Every predicate of the requested country runs, in declared order, so the
    result always carries the complete failure list. Missing or malformed
    candidate attributes fail the predicate that needs them instead of
    raising, which keeps batch evaluation going past a bad record.
    """

    def __init__(
        self,
        *,
        rules: RuleTable | None = None,
        now_provider: Callable[[], pendulum.DateTime] | None = None,
    ) -> None:
        self._rules = rules if rules is not None else DEFAULT_RULES
        self._now_provider = now_provider or pendulum.now
        self._logger = structlog.get_logger(__name__)

    @property
    def rules(self) -> RuleTable:
        return self._rules

    @property
    def supported_countries(self) -> tuple[str, ...]:
        return self._rules.codes

    def with_clock(
        self,
        now_provider: Callable[[], pendulum.DateTime],
    ) -> "VisaEligibilityChecker":
        """Checker over the same rules that derives ages relative to ``now_provider``."""
        return VisaEligibilityChecker(rules=self._rules, now_provider=now_provider)

    def check(self, candidate: CandidateInput, country: str) -> EligibilityResult:
        requirement = self._rules.resolve(country)
        if requirement is None:
            return self._unsupported(candidate, country)

        failures: list[FailedRequirement] = []
        passed: list[str] = []
        for predicate in requirement.predicates:
            failure = self._evaluate(predicate, candidate)
            if failure is None:
                passed.append(predicate.name)
            else:
                failures.append(failure)

        disqualifications = tuple(item.message for item in failures if item.is_critical)
        eligible = not disqualifications
        result = EligibilityResult(
            country=requirement.code,
            country_name=requirement.name,
            visa_type=requirement.visa_type,
            eligible=eligible,
            failed_requirements=tuple(failures),
            disqualifications=disqualifications,
            passed_requirements=tuple(passed),
            confidence=self._confidence(eligible, failures),
            notes=requirement.notes,
            last_updated=requirement.last_updated,
        )
        result = dataclasses.replace(
            result,
            recommendations=tuple(get_eligibility_recommendations(result)),
        )

        self._logger.debug(
            "visa.checked",
            candidate_id=candidate_attribute(candidate, "candidate_id"),
            country=requirement.code,
            eligible=eligible,
            failed=[item.name for item in failures],
        )
        return result

    def check_many(
        self,
        candidate: CandidateInput,
        countries: Iterable[str],
    ) -> dict[str, EligibilityResult]:
        results: dict[str, EligibilityResult] = {}
        for country in countries:
            result = self.check(candidate, country)
            results[result.country] = result
        return results

    def check_all(self, candidate: CandidateInput) -> dict[str, EligibilityResult]:
        return self.check_many(candidate, self._rules.codes)

    def eligible_countries(self, candidate: CandidateInput) -> list[CountryVerdict]:
        return [
            CountryVerdict(
                country=code,
                country_name=result.country_name,
                reasons=[item.message for item in result.failed_requirements],
            )
            for code, result in self.check_all(candidate).items()
            if result.eligible
        ]

    def ineligible_countries(self, candidate: CandidateInput) -> list[CountryVerdict]:
        return [
            CountryVerdict(
                country=code,
                country_name=result.country_name,
                reasons=list(result.disqualifications),
            )
            for code, result in self.check_all(candidate).items()
            if not result.eligible
        ]

    def _evaluate(
        self,
        predicate: RequirementPredicate,
        candidate: CandidateInput,
    ) -> FailedRequirement | None:
        try:
            actual = self._read(candidate, predicate.field)
        except ValueError as exc:
            return self._failure(
                predicate,
                "invalid_data",
                f"{predicate.message} (invalid {predicate.field}: {exc})",
            )
        if actual is None:
            return self._failure(
                predicate,
                "missing_data",
                f"{predicate.message} (missing {predicate.field})",
            )
        try:
            satisfied = _compare(actual, predicate.operator, predicate.value)
        except (TypeError, ValueError) as exc:
            return self._failure(
                predicate,
                "invalid_data",
                f"{predicate.message} (invalid {predicate.field}: {exc})",
            )
        if satisfied:
            return None
        return self._failure(predicate, "not_met", predicate.message)

    def _read(self, candidate: CandidateInput, field: str) -> Any:
        if field == "age":
            return self._age(candidate)
        raw = candidate_attribute(candidate, field)
        if raw is None:
            return None
        coercer = _COERCERS.get(field)
        return coercer(raw) if coercer else raw

    def _age(self, candidate: CandidateInput) -> float | None:
        age = candidate_attribute(candidate, "age")
        if age is not None:
            return _to_number(age)
        birth_date = candidate_attribute(candidate, "birth_date")
        if birth_date is None:
            return None
        born = pendulum.parse(str(birth_date))
        as_of = self._now_provider()
        if born > as_of:
            raise ValueError(f"birth date {birth_date} is in the future")
        return float(as_of.diff(born).in_years())

    @staticmethod
    def _failure(
        predicate: RequirementPredicate,
        reason: FailureReason,
        message: str,
    ) -> FailedRequirement:
        return FailedRequirement(
            name=predicate.name,
            kind=predicate.kind,
            message=message,
            priority=predicate.priority,
            reason=reason,
            field=predicate.field,
            expected=predicate.value,
        )

    @staticmethod
    def _confidence(eligible: bool, failures: list[FailedRequirement]) -> int:
        if not failures:
            return 95
        if eligible:
            return 60
        if any(item.reason != "not_met" for item in failures if item.is_critical):
            return 30
        return 10

    def _unsupported(self, candidate: CandidateInput, country: str | None) -> EligibilityResult:
        code = (country or "").strip().upper() or "UNKNOWN"
        message = f"No visa rules configured for {code}"
        self._logger.info(
            "visa.unsupported_country",
            candidate_id=candidate_attribute(candidate, "candidate_id"),
            country=code,
        )
        result = EligibilityResult(
            country=code,
            country_name=code,
            visa_type="Unknown",
            eligible=False,
            failed_requirements=(
                FailedRequirement(
                    name="unsupported_country",
                    kind="unsupported_country",
                    message=message,
                    priority=Priority.CRITICAL,
                    reason="unsupported_country",
                ),
            ),
            disqualifications=(message,),
            confidence=0,
        )
        return dataclasses.replace(
            result,
            recommendations=tuple(get_eligibility_recommendations(result)),
        )


_default_checker = VisaEligibilityChecker()


def supported_countries() -> tuple[str, ...]:
    return _default_checker.supported_countries


def check_visa_eligibility(candidate: CandidateInput, country: str) -> EligibilityResult:
    """Evaluate ``candidate`` against the default requirement table for ``country``."""
    return _default_checker.check(candidate, country)


def check_multiple_countries(
    candidate: CandidateInput,
    countries: Iterable[str],
) -> dict[str, EligibilityResult]:
    return _default_checker.check_many(candidate, countries)


def check_all_countries(candidate: CandidateInput) -> dict[str, EligibilityResult]:
    """Evaluate ``candidate`` for every supported country, in table order."""
    return _default_checker.check_all(candidate)


def get_eligible_countries(candidate: CandidateInput) -> list[CountryVerdict]:
    return _default_checker.eligible_countries(candidate)


def get_ineligible_countries(candidate: CandidateInput) -> list[CountryVerdict]:
    return _default_checker.ineligible_countries(candidate)
