"""Multi-stage candidate filtering for a job posting."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Protocol, runtime_checkable

import pendulum
import structlog

from ...schemas import CandidateProfile, JobPosting, MatchCandidate
from ..visa import EligibilityResult, VisaEligibilityChecker
from .scoring import MatchScorer

DEFAULT_SALARY_TOLERANCE_RATIO = 0.05
DEFAULT_RECONTACT_WINDOW_DAYS = 90


@runtime_checkable
class EligibilityCheck(Protocol):
    """Anything that can evaluate a candidate for a destination country."""

    def check(self, candidate: CandidateProfile, country: str) -> EligibilityResult:
        """Return the eligibility verdict for ``candidate`` in ``country``."""


@dataclass
class FilterConfig:
    """Tunables for the filter stages."""

    salary_tolerance_ratio: float = DEFAULT_SALARY_TOLERANCE_RATIO
    recontact_window_days: int = DEFAULT_RECONTACT_WINDOW_DAYS
    experience_highlight_years: float = 3.0
    excellent_video_score: float = 85.0

    def __post_init__(self) -> None:
        if self.salary_tolerance_ratio < 0:
            raise ValueError("salary_tolerance_ratio must not be negative")
        if self.recontact_window_days < 0:
            raise ValueError("recontact_window_days must not be negative")


@dataclass(slots=True)
class StageStats:
    name: str
    entered: int
    passed: int

    @property
    def removed(self) -> int:
        return self.entered - self.passed


@dataclass(slots=True)
class FilterStats:
    """Candidate counts at each stage, in stage order."""

    total: int = 0
    after_visa: int = 0
    after_experience: int = 0
    after_salary: int = 0
    after_subject: int = 0
    subject_matched: int = 0
    final: int = 0
    stages: list[StageStats] = field(default_factory=list)

    def record(self, name: str, entered: int, passed: int) -> None:
        self.stages.append(StageStats(name=name, entered=entered, passed=passed))
        setattr(self, f"after_{name}", passed)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class FilterResult:
    filtered: list[MatchCandidate]
    stats: FilterStats


def _annotate(match: MatchCandidate, reason: str | None = None, **updates: Any) -> MatchCandidate:
    if reason:
        updates["match_reasons"] = [*match.match_reasons, reason]
    return match.model_copy(update=updates) if updates else match


class CandidateFilterPipeline:
    """Reduce candidate matches for a job through fixed, ordered stages.

    Stages run as visa, experience, salary and subject; each stage sees only
    the survivors of the previous one. The subject stage annotates and never
    drops. Survivors are then scored and ordered by score, highest first.
    Inputs are never mutated.
    """

    STAGES: tuple[str, ...] = ("visa", "experience", "salary", "subject")

    def __init__(
        self,
        *,
        checker: EligibilityCheck | None = None,
        scorer: MatchScorer | None = None,
        config: FilterConfig | None = None,
    ) -> None:
        self._checker = checker or VisaEligibilityChecker()
        self._scorer = scorer or MatchScorer()
        self._config = config or FilterConfig()
        self._logger = structlog.get_logger(__name__)

    @property
    def config(self) -> FilterConfig:
        return self._config

    def as_of(self, now: pendulum.DateTime) -> "CandidateFilterPipeline":
        """Copy of this pipeline whose visa stage measures ages at ``now``.

        Checkers without a ``with_clock`` method are reused unchanged.
        """
        with_clock = getattr(self._checker, "with_clock", None)
        checker = with_clock(lambda: now) if with_clock is not None else self._checker
        return CandidateFilterPipeline(checker=checker, scorer=self._scorer, config=self._config)

    def apply_filters(
        self,
        candidates: Iterable[MatchCandidate],
        job: JobPosting,
    ) -> FilterResult:
        pool = list(candidates)
        stats = FilterStats(total=len(pool))

        for stage in self.STAGES:
            entered = len(pool)
            pool = getattr(self, f"_{stage}_stage")(pool, job)
            stats.record(stage, entered, len(pool))

        stats.subject_matched = sum(1 for match in pool if match.subject_match)
        scored = sorted(
            (self._score(match, job) for match in pool),
            key=lambda match: match.match_score or 0,
            reverse=True,
        )
        stats.final = len(scored)

        self._logger.info(
            "filters.applied",
            job_id=job.job_id,
            country=job.country,
            stages=[(item.name, item.entered, item.passed) for item in stats.stages],
            final=stats.final,
        )
        return FilterResult(filtered=scored, stats=stats)

    def _visa_stage(self, pool: list[MatchCandidate], job: JobPosting) -> list[MatchCandidate]:
        kept: list[MatchCandidate] = []
        for match in pool:
            result = self._checker.check(match.candidate, job.country)
            if not result.eligible:
                self._logger.debug(
                    "filters.dropped",
                    stage="visa",
                    candidate_id=match.candidate_id,
                    reasons=list(result.disqualifications),
                )
                continue
            kept.append(
                _annotate(match, f"Eligible for {result.country_name} {result.visa_type} visa")
            )
        return kept

    def _experience_stage(
        self,
        pool: list[MatchCandidate],
        job: JobPosting,
    ) -> list[MatchCandidate]:
        required = job.min_years_experience or 0.0
        kept: list[MatchCandidate] = []
        for match in pool:
            years = match.candidate.years_experience or 0.0
            if years < required:
                self._logger.debug(
                    "filters.dropped",
                    stage="experience",
                    candidate_id=match.candidate_id,
                    years=years,
                    required=required,
                )
                continue
            reason = None
            if years >= required + self._config.experience_highlight_years:
                reason = f"{years:g}+ years of experience (exceeds requirement)"
            kept.append(_annotate(match, reason))
        return kept

    def _salary_stage(self, pool: list[MatchCandidate], job: JobPosting) -> list[MatchCandidate]:
        kept: list[MatchCandidate] = []
        for match in pool:
            acceptable, alignment, delta = self._salary_fit(
                match.candidate.min_salary_usd,
                job.salary_usd,
            )
            if not acceptable:
                self._logger.debug(
                    "filters.dropped",
                    stage="salary",
                    candidate_id=match.candidate_id,
                    minimum=match.candidate.min_salary_usd,
                    offered=job.salary_usd,
                )
                continue
            reason = None
            if delta is not None and delta > 0:
                reason = f"Salary is ${delta:,}/mo above their minimum"
            kept.append(_annotate(match, reason, salary_alignment=alignment))
        return kept

    def _subject_stage(self, pool: list[MatchCandidate], job: JobPosting) -> list[MatchCandidate]:
        targets = self._subject_targets(job)
        annotated: list[MatchCandidate] = []
        for match in pool:
            matched = [
                subject
                for subject in match.candidate.subjects
                if any(_contains_either_way(subject, target) for target in targets)
            ]
            reason = f"Teaches {', '.join(matched)}" if matched else None
            annotated.append(
                _annotate(
                    match,
                    reason,
                    subject_match=bool(matched),
                    matched_subjects=matched,
                )
            )
        return annotated

    def _salary_fit(
        self,
        minimum: int | None,
        offered: int | None,
    ) -> tuple[bool, float, int | None]:
        """Return (acceptable, alignment in [0, 1], offered - minimum)."""
        if not minimum or minimum <= 0 or offered is None:
            return True, 0.5, None
        delta = offered - minimum
        if minimum > offered * (1 + self._config.salary_tolerance_ratio):
            return False, 0.0, delta
        alignment = max(0.0, min(delta / minimum, 1.0))
        return True, alignment, delta

    @staticmethod
    def _subject_targets(job: JobPosting) -> list[str]:
        targets: list[str] = []
        for subject in (job.subject, *job.required_subjects):
            if subject and subject.strip() and subject.strip().lower() not in {
                item.lower() for item in targets
            }:
                targets.append(subject.strip())
        return targets

    def _subject_score(self, match: MatchCandidate, job: JobPosting) -> float:
        targets = self._subject_targets(job)
        if not targets:
            return 0.0
        hits = sum(
            1
            for target in targets
            if any(_contains_either_way(subject, target) for subject in match.matched_subjects)
        )
        return hits / len(targets)

    def _score(self, match: MatchCandidate, job: JobPosting) -> MatchCandidate:
        candidate = match.candidate
        score = self._scorer.score(
            similarity=match.similarity,
            subject_score=self._subject_score(match, job),
            salary_alignment=match.salary_alignment if match.salary_alignment is not None else 0.5,
            video_score=candidate.video_score,
            years_experience=candidate.years_experience,
            required_years=job.min_years_experience or 0.0,
        )
        reasons = list(match.match_reasons)
        if job.country.strip().upper() in candidate.preferred_countries:
            reasons.append(f"Specifically interested in {job.country}")
        if (candidate.video_score or 0.0) >= self._config.excellent_video_score:
            reasons.append("Excellent video resume (top 10%)")
        return match.model_copy(
            update={
                "match_score": score,
                "match_quality": self._scorer.quality(score),
                "match_reasons": reasons,
            }
        )


def _contains_either_way(left: str, right: str) -> bool:
    a, b = left.strip().lower(), right.strip().lower()
    if not a or not b:
        return False
    return a in b or b in a


def top_match_reasons(match: MatchCandidate, limit: int = 3) -> list[str]:
    """Leading reasons for a match, e.g. for a notification email."""
    return list(match.match_reasons[:limit])


_default_pipeline = CandidateFilterPipeline()


def apply_filters(candidates: Iterable[MatchCandidate], job: JobPosting) -> FilterResult:
    """Run the default pipeline over ``candidates`` for ``job``."""
    return _default_pipeline.apply_filters(candidates, job)
