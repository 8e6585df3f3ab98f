from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class JobPosting(BaseModel):
    """Job posting fields used by the candidate filter pipeline."""

    job_id: str
    title: str = ""
    school_name: str | None = None
    country: str
    city: str | None = None
    subject: str = ""
    required_subjects: list[str] = Field(default_factory=list)
    min_years_experience: float = 0.0
    salary_usd: int | None = None

    model_config = ConfigDict(extra="allow", frozen=True)

    @field_validator("min_years_experience", mode="before")
    @classmethod
    def _default_experience(cls, value):
        return 0.0 if value is None else value
