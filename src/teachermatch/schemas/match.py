from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .candidate import CandidateProfile

MatchQuality = Literal["EXCELLENT", "GREAT", "GOOD", "FAIR"]


class MatchCandidate(BaseModel):
    """A candidate paired with its similarity to a job and pipeline annotations.

    ``similarity`` is supplied by whatever search produced the candidate; the
    remaining annotation fields are filled in by the filter pipeline, which
    returns updated copies rather than mutating instances.
    """

    candidate: CandidateProfile
    similarity: float = Field(default=0.0, ge=0.0, le=1.0)
    last_contacted_at: datetime | None = None
    subject_match: bool | None = None
    matched_subjects: list[str] = Field(default_factory=list)
    salary_alignment: float | None = None
    match_score: int | None = None
    match_quality: MatchQuality | None = None
    match_reasons: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def candidate_id(self) -> str:
        return self.candidate.candidate_id

    @property
    def contacted_at(self) -> datetime | None:
        """Most recent contact known on either the match or the profile."""
        return self.last_contacted_at or self.candidate.last_contacted_at
