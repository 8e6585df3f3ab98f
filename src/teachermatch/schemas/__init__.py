"""Pydantic schema definitions for candidates, jobs and matches."""

from __future__ import annotations

from .candidate import CandidateProfile, DegreeLevel
from .job import JobPosting
from .match import MatchCandidate, MatchQuality

__all__ = [
    "CandidateProfile",
    "DegreeLevel",
    "JobPosting",
    "MatchCandidate",
    "MatchQuality",
]
