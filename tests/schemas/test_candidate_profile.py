from __future__ import annotations

import pytest
from pydantic import ValidationError

from teachermatch.schemas import CandidateProfile, DegreeLevel, JobPosting, MatchCandidate


def test_candidate_profile_defaults():
    profile = CandidateProfile(candidate_id="C-001")

    assert profile.age is None
    assert profile.degree_level is None
    assert profile.has_tefl is None
    assert profile.preferred_countries == []
    assert profile.subjects == []
    assert profile.last_contacted_at is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Bachelors", DegreeLevel.BACHELOR),
        ("B.A.", DegreeLevel.BACHELOR),
        ("M.Ed", DegreeLevel.MASTER),
        ("PhD", DegreeLevel.DOCTORATE),
        ("high school", DegreeLevel.HIGH_SCHOOL),
        (4, DegreeLevel.MASTER),
    ],
)
def test_degree_level_aliases(raw, expected: DegreeLevel):
    profile = CandidateProfile(candidate_id="C-002", degree_level=raw)

    assert profile.degree_level is expected


def test_degree_levels_are_ordered():
    assert DegreeLevel.DOCTORATE > DegreeLevel.MASTER > DegreeLevel.BACHELOR > DegreeLevel.ASSOCIATE


def test_unknown_degree_is_rejected():
    with pytest.raises(ValidationError):
        CandidateProfile(candidate_id="C-003", degree_level="wizardry")


def test_country_codes_are_normalised():
    profile = CandidateProfile(
        candidate_id="C-004",
        citizenship=" us ",
        preferred_countries=["kr", "jp", ""],
    )

    assert profile.citizenship == "US"
    assert profile.preferred_countries == ["KR", "JP"]


def test_candidate_profile_requires_id_and_is_frozen():
    with pytest.raises(ValidationError):
        CandidateProfile()  # type: ignore[call-arg]

    profile = CandidateProfile(candidate_id="C-005")
    with pytest.raises(ValidationError):
        profile.age = 30  # type: ignore[misc]


def test_match_candidate_similarity_bounds():
    profile = CandidateProfile(candidate_id="C-006")

    with pytest.raises(ValidationError):
        MatchCandidate(candidate=profile, similarity=1.2)
    with pytest.raises(ValidationError):
        MatchCandidate(candidate=profile, similarity=0.5, unexpected=True)  # type: ignore[call-arg]


def test_match_candidate_contact_falls_back_to_profile():
    profile = CandidateProfile(candidate_id="C-007", last_contacted_at="2025-03-01T00:00:00Z")

    match = MatchCandidate(candidate=profile)

    assert match.candidate_id == "C-007"
    assert match.contacted_at == profile.last_contacted_at


def test_job_posting_defaults():
    job = JobPosting(job_id="J-001", country="KR", min_years_experience=None)

    assert job.min_years_experience == 0.0
    assert job.required_subjects == []
    assert job.salary_usd is None
