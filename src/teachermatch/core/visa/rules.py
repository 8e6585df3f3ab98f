"""Per-country visa requirement tables."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import Any

from ...schemas import DegreeLevel

OPERATORS: frozenset[str] = frozenset(
    {"eq", "neq", "gte", "lte", "gt", "lt", "in", "not_in", "includes"}
)

NATIVE_ENGLISH_COUNTRIES: tuple[str, ...] = ("US", "GB", "CA", "AU", "NZ", "IE", "ZA")


class RuleTableError(ValueError):
    """Raised when a requirement table is malformed."""


class Priority(str, Enum):
    """CRITICAL failures block eligibility, WARNING failures are advisory."""

    CRITICAL = "CRITICAL"
    WARNING = "WARNING"


@dataclass(frozen=True, slots=True)
class RequirementPredicate:
    """A single condition on one candidate attribute."""

    name: str
    kind: str
    field: str
    operator: str
    value: Any
    priority: Priority
    message: str

    def __post_init__(self) -> None:
        if self.operator not in OPERATORS:
            raise RuleTableError(f"{self.name}: unknown operator {self.operator!r}")
        if not isinstance(self.priority, Priority):
            try:
                object.__setattr__(self, "priority", Priority(str(self.priority).upper()))
            except ValueError as exc:
                raise RuleTableError(f"{self.name}: unknown priority {self.priority!r}") from exc
        if isinstance(self.value, list):
            object.__setattr__(self, "value", tuple(self.value))
        if self.field == "degree_level" and self.value is not None:
            try:
                object.__setattr__(self, "value", DegreeLevel.parse(self.value))
            except ValueError as exc:
                raise RuleTableError(f"{self.name}: {exc}") from exc


@dataclass(frozen=True, slots=True)
class CountryRequirement:
    """Ordered visa requirement set for one destination country."""

    code: str
    name: str
    visa_type: str
    predicates: tuple[RequirementPredicate, ...]
    aliases: tuple[str, ...] = field(default_factory=tuple)
    notes: str | None = None
    last_updated: str | None = None

    def __post_init__(self) -> None:
        names = [predicate.name for predicate in self.predicates]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise RuleTableError(f"{self.code}: duplicate predicate names {duplicates}")


class RuleTable(Mapping[str, CountryRequirement]):
    """Read-only mapping from country code to its requirement set.

    Lookups through :meth:`resolve` accept the code, the country name or any
    configured alias, case-insensitively.
    """

    def __init__(self, requirements: Iterable[CountryRequirement]):
        ordered: dict[str, CountryRequirement] = {}
        aliases: dict[str, str] = {}
        for requirement in requirements:
            code = requirement.code.upper()
            if code in ordered:
                raise RuleTableError(f"Duplicate country code: {code}")
            ordered[code] = requirement
            for alias in (code, requirement.name, *requirement.aliases):
                aliases[alias.strip().casefold()] = code
        self._rules = MappingProxyType(ordered)
        self._aliases = MappingProxyType(aliases)

    def __getitem__(self, code: str) -> CountryRequirement:
        return self._rules[code]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(self._rules)

    def resolve(self, country: str | None) -> CountryRequirement | None:
        if not country:
            return None
        code = self._aliases.get(country.strip().casefold())
        return self._rules[code] if code else None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RuleTable":
        """Build a table from plain data such as a parsed YAML document."""
        countries = data.get("countries")
        if not isinstance(countries, list):
            raise RuleTableError("Rule data must contain a 'countries' list")

        requirements: list[CountryRequirement] = []
        for entry in countries:
            try:
                predicates = tuple(
                    RequirementPredicate(
                        name=item["name"],
                        kind=item.get("kind", item["name"]),
                        field=item["field"],
                        operator=item["operator"],
                        value=item.get("value"),
                        priority=item.get("priority", Priority.CRITICAL),
                        message=item["message"],
                    )
                    for item in entry.get("requirements", [])
                )
                last_updated = entry.get("last_updated")
                if isinstance(last_updated, date):
                    last_updated = last_updated.isoformat()
                requirements.append(
                    CountryRequirement(
                        code=str(entry["code"]).upper(),
                        name=entry.get("name", entry["code"]),
                        visa_type=entry.get("visa_type", "Unknown"),
                        predicates=predicates,
                        aliases=tuple(entry.get("aliases", [])),
                        notes=entry.get("notes"),
                        last_updated=last_updated,
                    )
                )
            except KeyError as exc:
                raise RuleTableError(f"Rule entry missing key {exc}") from exc
        return cls(requirements)


def _citizenship(message: str) -> RequirementPredicate:
    return RequirementPredicate(
        name="citizenship",
        kind="citizenship",
        field="citizenship",
        operator="in",
        value=NATIVE_ENGLISH_COUNTRIES,
        priority=Priority.CRITICAL,
        message=message,
    )


def _degree(message: str = "Bachelor degree or higher required") -> RequirementPredicate:
    return RequirementPredicate(
        name="degree",
        kind="degree",
        field="degree_level",
        operator="gte",
        value=DegreeLevel.BACHELOR,
        priority=Priority.CRITICAL,
        message=message,
    )


def _experience(
    years: float,
    priority: Priority,
    message: str = "Insufficient teaching experience",
) -> RequirementPredicate:
    return RequirementPredicate(
        name="experience",
        kind="experience",
        field="years_experience",
        operator="gte",
        value=years,
        priority=priority,
        message=message,
    )


def _min_age(years: int) -> RequirementPredicate:
    return RequirementPredicate(
        name="min_age",
        kind="age",
        field="age",
        operator="gte",
        value=years,
        priority=Priority.CRITICAL,
        message=f"Applicants must be at least {years} years old",
    )


def _max_age(years: int) -> RequirementPredicate:
    return RequirementPredicate(
        name="max_age",
        kind="age",
        field="age",
        operator="lte",
        value=years,
        priority=Priority.CRITICAL,
        message=f"Maximum age is {years} years old",
    )


def _tefl(priority: Priority) -> RequirementPredicate:
    return RequirementPredicate(
        name="tefl",
        kind="certification",
        field="has_tefl",
        operator="eq",
        value=True,
        priority=priority,
        message="Missing TEFL/TESOL certification",
    )


def _license(priority: Priority) -> RequirementPredicate:
    return RequirementPredicate(
        name="teaching_license",
        kind="license",
        field="has_teaching_license",
        operator="eq",
        value=True,
        priority=priority,
        message="Valid teaching license from home country required",
    )


def _criminal_record() -> RequirementPredicate:
    return RequirementPredicate(
        name="criminal_record",
        kind="criminal_record",
        field="has_criminal_record",
        operator="eq",
        value=False,
        priority=Priority.CRITICAL,
        message="Clean criminal record required",
    )


def _background_check() -> RequirementPredicate:
    return RequirementPredicate(
        name="background_check",
        kind="background_check",
        field="has_background_check",
        operator="eq",
        value=True,
        priority=Priority.CRITICAL,
        message="National-level criminal background check required",
    )


def _apostille() -> RequirementPredicate:
    return RequirementPredicate(
        name="apostille",
        kind="apostille",
        field="has_apostille",
        operator="eq",
        value=True,
        priority=Priority.WARNING,
        message="Degree and background check must be apostilled",
    )


def _visa_history(message: str) -> RequirementPredicate:
    return RequirementPredicate(
        name="visa_violation",
        kind="visa_history",
        field="has_visa_violation",
        operator="eq",
        value=False,
        priority=Priority.CRITICAL,
        message=message,
    )


_RULES_UPDATED = "2025-01-15"

DEFAULT_RULES = RuleTable(
    [
        CountryRequirement(
            code="KR",
            name="South Korea",
            aliases=("Korea", "Republic of Korea"),
            visa_type="E-2",
            predicates=(
                _citizenship("Must be a citizen of a native English-speaking country"),
                _degree(),
                _min_age(22),
                _max_age(60),
                _experience(1, Priority.CRITICAL),
                _tefl(Priority.CRITICAL),
                _criminal_record(),
                _background_check(),
                _apostille(),
                _visa_history("Previous E-2 visa violations will result in denial"),
            ),
            notes="Visa processing takes 4-6 weeks. Health check required upon arrival.",
            last_updated=_RULES_UPDATED,
        ),
        CountryRequirement(
            code="CN",
            name="China",
            visa_type="Z",
            predicates=(
                _degree(),
                _experience(2, Priority.CRITICAL),
                _max_age(60),
                _tefl(Priority.WARNING),
                _criminal_record(),
                _visa_history("Previous visa violations or overstays will result in denial"),
            ),
            notes="Some provinces add requirements. Health check and HIV test required.",
            last_updated=_RULES_UPDATED,
        ),
        CountryRequirement(
            code="AE",
            name="United Arab Emirates",
            aliases=("UAE",),
            visa_type="Employment",
            predicates=(
                _degree("Bachelor degree required (must be attested by UAE embassy)"),
                _license(Priority.CRITICAL),
                _experience(2, Priority.WARNING),
                _criminal_record(),
            ),
            notes="Degree attestation takes 6-8 weeks. Medical fitness test required.",
            last_updated=_RULES_UPDATED,
        ),
        CountryRequirement(
            code="VN",
            name="Vietnam",
            aliases=("Viet Nam",),
            visa_type="Work Permit",
            predicates=(
                _degree(),
                _criminal_record(),
                _visa_history("Previous visa violations may result in denial"),
            ),
            notes="Notarization of documents required.",
            last_updated=_RULES_UPDATED,
        ),
        CountryRequirement(
            code="TH",
            name="Thailand",
            visa_type="Non-B",
            predicates=(
                _degree(),
                _criminal_record(),
            ),
            notes="Teachers Council Waiver available for non-licensed teachers.",
            last_updated=_RULES_UPDATED,
        ),
        CountryRequirement(
            code="JP",
            name="Japan",
            visa_type="Instructor",
            predicates=(
                _degree(),
                _criminal_record(),
            ),
            notes="Certificate of Eligibility must be sponsored by the employer.",
            last_updated=_RULES_UPDATED,
        ),
        CountryRequirement(
            code="SA",
            name="Saudi Arabia",
            aliases=("KSA",),
            visa_type="Work Visa",
            predicates=(
                _degree("Bachelor degree required (must be attested)"),
                _experience(2, Priority.WARNING),
                _license(Priority.WARNING),
                _criminal_record(),
            ),
            notes="Medical tests required.",
            last_updated=_RULES_UPDATED,
        ),
        CountryRequirement(
            code="TW",
            name="Taiwan",
            visa_type="Teaching",
            predicates=(
                _citizenship("Must be from a native English-speaking country"),
                _degree(),
                _criminal_record(),
            ),
            notes="Health check required. Can be processed in-country.",
            last_updated=_RULES_UPDATED,
        ),
        CountryRequirement(
            code="SG",
            name="Singapore",
            visa_type="Employment Pass",
            predicates=(
                _degree("Recognised degree from an accredited institution required"),
                _experience(3, Priority.WARNING),
            ),
            notes="Points-based system. International school experience highly valued.",
            last_updated=_RULES_UPDATED,
        ),
        CountryRequirement(
            code="QA",
            name="Qatar",
            visa_type="Work Visa",
            predicates=(
                _degree("Bachelor degree required (must be attested)"),
                _experience(2, Priority.WARNING),
                _license(Priority.CRITICAL),
                _criminal_record(),
            ),
            notes="Medical tests required.",
            last_updated=_RULES_UPDATED,
        ),
    ]
)
