from __future__ import annotations

from typing import Any

import pendulum
import pytest

from teachermatch.core.matching import (
    CandidateFilterPipeline,
    FilterConfig,
    apply_filters,
    top_match_reasons,
)
from teachermatch.core.visa import EligibilityResult
from teachermatch.schemas import CandidateProfile, JobPosting, MatchCandidate


def make_match(candidate_id: str, similarity: float = 0.8, **profile: Any) -> MatchCandidate:
    defaults: dict[str, Any] = {
        "candidate_id": candidate_id,
        "degree_level": "Bachelors",
        "has_criminal_record": False,
        "years_experience": 3,
    }
    defaults.update(profile)
    return MatchCandidate(candidate=CandidateProfile(**defaults), similarity=similarity)


@pytest.fixture
def job() -> JobPosting:
    return JobPosting(
        job_id="J-TH-01",
        title="English Teacher",
        school_name="Bangkok International School",
        country="TH",
        subject="English",
        min_years_experience=2,
        salary_usd=2000,
    )


@pytest.fixture
def pool() -> list[MatchCandidate]:
    return [
        make_match(
            "C-1",
            similarity=0.9,
            years_experience=5,
            min_salary_usd=1500,
            subjects=["English"],
            video_score=90,
            preferred_countries=["th"],
        ),
        make_match("C-2", degree_level="High School"),
        make_match("C-3", has_criminal_record=True),
        make_match("C-4", years_experience=1),
        make_match("C-5", similarity=0.6, years_experience=2, subjects=["Math"]),
    ]


def test_stage_counts_follow_stage_order(pool: list[MatchCandidate], job: JobPosting):
    result = apply_filters(pool, job)
    stats = result.stats

    assert stats.total == 5
    assert stats.after_visa == 3
    assert stats.after_experience == 2
    assert stats.after_salary == 2
    assert stats.after_subject == 2
    assert stats.subject_matched == 1
    assert stats.final == 2
    assert [stage.name for stage in stats.stages] == ["visa", "experience", "salary", "subject"]
    assert [stage.removed for stage in stats.stages] == [2, 1, 0, 0]
    assert [match.candidate_id for match in result.filtered] == ["C-1", "C-5"]


def test_counts_never_increase(pool: list[MatchCandidate], job: JobPosting):
    stats = apply_filters(pool, job).stats

    counts = [stats.total, stats.after_visa, stats.after_experience, stats.after_salary, stats.final]
    assert counts == sorted(counts, reverse=True)
    assert stats.subject_matched <= stats.after_subject


def test_survivors_carry_reasons_and_scores(pool: list[MatchCandidate], job: JobPosting):
    best = apply_filters(pool, job).filtered[0]

    assert best.subject_match is True
    assert best.matched_subjects == ["English"]
    assert best.match_score is not None and best.match_quality is not None
    assert best.match_reasons == [
        "Eligible for Thailand Non-B visa",
        "5+ years of experience (exceeds requirement)",
        "Salary is $500/mo above their minimum",
        "Teaches English",
        "Specifically interested in TH",
        "Excellent video resume (top 10%)",
    ]
    assert top_match_reasons(best) == best.match_reasons[:3]


def test_results_are_ordered_by_score(job: JobPosting):
    pool = [make_match(f"C-{idx}", similarity=value) for idx, value in enumerate((0.2, 0.9, 0.5))]

    filtered = apply_filters(pool, job).filtered

    assert [match.candidate_id for match in filtered] == ["C-1", "C-2", "C-0"]
    scores = [match.match_score for match in filtered]
    assert scores == sorted(scores, reverse=True)


def test_salary_tolerance_boundary(job: JobPosting):
    pool = [
        make_match("at-limit", min_salary_usd=2100),
        make_match("over-limit", min_salary_usd=2101),
        make_match("below", min_salary_usd=1800),
        make_match("unknown"),
    ]

    result = apply_filters(pool, job)
    kept = {match.candidate_id: match for match in result.filtered}

    assert set(kept) == {"at-limit", "below", "unknown"}
    assert kept["at-limit"].salary_alignment == 0.0
    assert kept["unknown"].salary_alignment == 0.5
    assert kept["below"].salary_alignment == pytest.approx(200 / 1800)
    assert "Salary is $200/mo above their minimum" in kept["below"].match_reasons
    assert result.stats.after_salary == 3


def test_tighter_salary_tolerance_from_config(job: JobPosting):
    pipeline = CandidateFilterPipeline(config=FilterConfig(salary_tolerance_ratio=0.0))

    result = pipeline.apply_filters([make_match("C-1", min_salary_usd=2050)], job)

    assert result.filtered == []
    assert result.stats.after_salary == 0


def test_subject_match_is_case_insensitive_containment(job: JobPosting):
    pool = [
        make_match("esl", subjects=["esl english"]),
        make_match("short", subjects=["ENG"]),
        make_match("other", subjects=["Chemistry"]),
    ]

    filtered = {match.candidate_id: match for match in apply_filters(pool, job).filtered}

    assert filtered["esl"].subject_match is True
    assert filtered["short"].matched_subjects == ["ENG"]
    assert filtered["other"].subject_match is False
    assert filtered["other"].matched_subjects == []


def test_empty_input_yields_zero_stats(job: JobPosting):
    result = apply_filters([], job)

    assert result.filtered == []
    assert result.stats.total == 0
    assert result.stats.final == 0
    assert len(result.stats.stages) == 4


def test_every_candidate_removed(job: JobPosting):
    pool = [make_match("C-1", has_criminal_record=True), make_match("C-2", degree_level="None")]

    result = apply_filters(pool, job)

    assert result.filtered == []
    assert result.stats.after_visa == 0
    assert result.stats.final == 0


def test_inputs_are_not_mutated_and_runs_repeat(pool: list[MatchCandidate], job: JobPosting):
    snapshot = [match.model_dump() for match in pool]

    first = apply_filters(pool, job)
    second = apply_filters(pool, job)

    assert [match.model_dump() for match in pool] == snapshot
    assert first.filtered == second.filtered
    assert first.stats == second.stats


class StubChecker:
    def __init__(self, allowed: set[str]) -> None:
        self.allowed = allowed
        self.seen: list[str] = []

    def check(self, candidate: CandidateProfile, country: str) -> EligibilityResult:
        self.seen.append(candidate.candidate_id)
        eligible = candidate.candidate_id in self.allowed
        return EligibilityResult(
            country=country,
            country_name="Testland",
            visa_type="T-1",
            eligible=eligible,
            disqualifications=() if eligible else ("stubbed",),
        )


def test_pipeline_accepts_any_eligibility_checker(job: JobPosting):
    checker = StubChecker({"C-2"})
    pipeline = CandidateFilterPipeline(checker=checker)

    result = pipeline.apply_filters([make_match("C-1"), make_match("C-2")], job)

    assert checker.seen == ["C-1", "C-2"]
    assert [match.candidate_id for match in result.filtered] == ["C-2"]
    assert result.filtered[0].match_reasons[0] == "Eligible for Testland T-1 visa"


def test_as_of_measures_birth_date_ages_at_reference_date():
    job = JobPosting(job_id="J-KR-01", country="KR", subject="English", min_years_experience=1)
    profile = {
        "citizenship": "US",
        "years_experience": 2,
        "has_tefl": True,
        "has_background_check": True,
        "has_apostille": True,
        "has_visa_violation": False,
    }
    pool = [
        make_match("turns-22-later", birth_date="2003-07-01", **profile),
        make_match("already-22", birth_date="2003-05-01", **profile),
    ]
    pipeline = CandidateFilterPipeline()

    june_2025 = pipeline.as_of(pendulum.datetime(2025, 6, 1))
    august_2025 = pipeline.as_of(pendulum.datetime(2025, 8, 1))

    assert [match.candidate_id for match in june_2025.apply_filters(pool, job).filtered] == [
        "already-22"
    ]
    assert {match.candidate_id for match in august_2025.apply_filters(pool, job).filtered} == {
        "turns-22-later",
        "already-22",
    }
    assert june_2025.config is pipeline.config


def test_as_of_keeps_checkers_without_a_clock(job: JobPosting):
    checker = StubChecker({"C-1"})

    pinned = CandidateFilterPipeline(checker=checker).as_of(pendulum.datetime(2025, 6, 1))
    result = pinned.apply_filters([make_match("C-1")], job)

    assert checker.seen == ["C-1"]
    assert len(result.filtered) == 1
