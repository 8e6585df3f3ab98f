from __future__ import annotations

from datetime import date, datetime
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DegreeLevel(IntEnum):
    """Highest completed education, ordered so levels compare by rank."""

    NONE = 0
    HIGH_SCHOOL = 1
    ASSOCIATE = 2
    BACHELOR = 3
    MASTER = 4
    DOCTORATE = 5

    @classmethod
    def parse(cls, value: "DegreeLevel | int | str") -> "DegreeLevel":
        if isinstance(value, DegreeLevel):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return cls(value)
        if not isinstance(value, str):
            raise ValueError(f"Unrecognised degree level: {value!r}")
        normalized = value.strip().lower().replace(".", "").replace("'", "")
        try:
            return _DEGREE_ALIASES[normalized]
        except KeyError:
            pass
        try:
            return cls[normalized.upper().replace(" ", "_")]
        except KeyError as exc:
            raise ValueError(f"Unrecognised degree level: {value!r}") from exc


_DEGREE_ALIASES: dict[str, DegreeLevel] = {
    "none": DegreeLevel.NONE,
    "high school": DegreeLevel.HIGH_SCHOOL,
    "highschool": DegreeLevel.HIGH_SCHOOL,
    "diploma": DegreeLevel.HIGH_SCHOOL,
    "associate": DegreeLevel.ASSOCIATE,
    "associates": DegreeLevel.ASSOCIATE,
    "aa": DegreeLevel.ASSOCIATE,
    "as": DegreeLevel.ASSOCIATE,
    "bachelor": DegreeLevel.BACHELOR,
    "bachelors": DegreeLevel.BACHELOR,
    "ba": DegreeLevel.BACHELOR,
    "bs": DegreeLevel.BACHELOR,
    "bsc": DegreeLevel.BACHELOR,
    "bed": DegreeLevel.BACHELOR,
    "master": DegreeLevel.MASTER,
    "masters": DegreeLevel.MASTER,
    "ma": DegreeLevel.MASTER,
    "ms": DegreeLevel.MASTER,
    "msc": DegreeLevel.MASTER,
    "med": DegreeLevel.MASTER,
    "mba": DegreeLevel.MASTER,
    "phd": DegreeLevel.DOCTORATE,
    "edd": DegreeLevel.DOCTORATE,
    "doctorate": DegreeLevel.DOCTORATE,
}


class CandidateProfile(BaseModel):
    """Teacher attributes consumed by visa rules and match filters."""

    candidate_id: str
    name: str | None = None
    age: int | None = None
    birth_date: date | None = None
    citizenship: str | None = None
    degree_level: DegreeLevel | None = None
    years_experience: float | None = None
    has_tefl: bool | None = None
    has_teaching_license: bool | None = None
    has_background_check: bool | None = None
    has_criminal_record: bool | None = None
    has_apostille: bool | None = None
    has_visa_violation: bool | None = None
    preferred_countries: list[str] = Field(default_factory=list)
    min_salary_usd: int | None = None
    subjects: list[str] = Field(default_factory=list)
    video_score: float | None = Field(default=None, ge=0, le=100)
    last_contacted_at: datetime | None = None

    model_config = ConfigDict(extra="allow", frozen=True)

    @field_validator("degree_level", mode="before")
    @classmethod
    def _parse_degree(cls, value):
        if value is None or value == "":
            return None
        return DegreeLevel.parse(value)

    @field_validator("citizenship", mode="before")
    @classmethod
    def _normalize_citizenship(cls, value):
        if isinstance(value, str):
            return value.strip().upper() or None
        return value

    @field_validator("preferred_countries", mode="before")
    @classmethod
    def _normalize_countries(cls, value):
        if isinstance(value, (list, tuple)):
            return [str(item).strip().upper() for item in value if item]
        return value
