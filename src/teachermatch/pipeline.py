"""Matching pipeline assembly and execution."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import pendulum
import structlog
from pydantic import ValidationError

from . import __version__
from .core.matching import (
    CandidateFilterPipeline,
    ContactHistory,
    InMemoryContactHistory,
    MatchScorer,
    deduplicate_matches,
)
from .core.visa import (
    EligibilityResult,
    VisaEligibilityChecker,
    generate_visa_summary,
)
from .schemas import CandidateProfile, JobPosting, MatchCandidate


class CandidateLoadError(ValueError):
    """Raised when candidate loading encounters invalid records."""

    def __init__(self, errors: list[str], partial: list[MatchCandidate]):
        super().__init__("Candidate loading failed")
        self.errors = errors
        self.partial = partial

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Candidate loading failed: {self.errors}"


class CandidateLoader:
    """Load candidate matches from JSON lines.

    Each line is either ``{"candidate": {...}, "similarity": 0.9}`` or a flat
    candidate profile carrying an optional ``similarity`` key.
    """

    def load(self, path: Path) -> list[MatchCandidate]:
        matches: list[MatchCandidate] = []
        errors: list[str] = []
        with path.open("r", encoding="utf-8") as handle:
            for idx, line in enumerate(handle, start=1):
                raw = line.strip()
                if not raw:
                    continue
                try:
                    record = json.loads(raw)
                except json.JSONDecodeError as exc:
                    errors.append(f"line {idx}: invalid JSON ({exc})")
                    continue
                if not isinstance(record, dict):
                    errors.append(f"line {idx}: expected a JSON object")
                    continue
                try:
                    matches.append(self._to_match(record))
                except ValidationError as exc:
                    errors.append(f"line {idx}: {exc}")
        if errors:
            raise CandidateLoadError(errors, matches)
        return matches

    @staticmethod
    def _to_match(record: dict[str, Any]) -> MatchCandidate:
        if "candidate" in record:
            return MatchCandidate.model_validate(record)
        profile = dict(record)
        similarity = profile.pop("similarity", 0.0)
        return MatchCandidate(
            candidate=CandidateProfile.model_validate(profile),
            similarity=similarity,
        )


class JobLoader:
    """Load job posting documents."""

    def load(self, path: Path) -> JobPosting:
        with path.open("r", encoding="utf-8") as handle:
            try:
                data = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid job JSON: {exc}") from exc
        return JobPosting.model_validate(data)


class ContactLoader:
    """Load contact history records (``candidate_id`` + ``contacted_at``) from JSON lines."""

    def load(self, path: Path, *, now: pendulum.DateTime | None = None) -> InMemoryContactHistory:
        records: list[dict[str, Any]] = []
        with path.open("r", encoding="utf-8") as handle:
            for idx, line in enumerate(handle, start=1):
                raw = line.strip()
                if not raw:
                    continue
                try:
                    records.append(json.loads(raw))
                except json.JSONDecodeError as exc:
                    raise ValueError(f"{path} line {idx}: invalid JSON ({exc})") from exc
        now_provider = (lambda: now) if now is not None else None
        return InMemoryContactHistory.from_records(records, now_provider=now_provider)


class OutputWriter:
    """Persist pipeline output."""

    def write(self, path: Path, payload: dict | list[dict]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2, default=_json_default),
            encoding="utf-8",
        )


class MatchingPipeline:
    """Filter, deduplicate and rank candidates for a job, then write a report."""

    def __init__(
        self,
        *,
        filters: CandidateFilterPipeline,
        scorer: MatchScorer,
        candidate_loader: CandidateLoader | None = None,
        job_loader: JobLoader | None = None,
        contact_loader: ContactLoader | None = None,
        writer: OutputWriter | None = None,
    ) -> None:
        self._filters = filters
        self._scorer = scorer
        self._candidates = candidate_loader or CandidateLoader()
        self._jobs = job_loader or JobLoader()
        self._contacts = contact_loader or ContactLoader()
        self._writer = writer or OutputWriter()
        self._logger = structlog.get_logger(__name__)

    def run(
        self,
        *,
        candidates_path: Path,
        job_path: Path,
        output_path: Path,
        contacts_path: Path | None = None,
        as_of: str | None = None,
    ) -> dict[str, Any]:
        now = pendulum.parse(as_of) if as_of else pendulum.now()
        job = self._jobs.load(job_path)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(job_id=job.job_id)

        load_errors: list[str] = []
        try:
            candidates = self._candidates.load(candidates_path)
        except CandidateLoadError as exc:
            candidates = exc.partial
            load_errors.extend(exc.errors)
            self._logger.warning("matching.partial_load", errors=exc.errors)

        if contacts_path is not None:
            history: ContactHistory = self._contacts.load(contacts_path, now=now)
        else:
            history = InMemoryContactHistory.from_matches(candidates, now_provider=lambda: now)

        result = self._filters.as_of(now).apply_filters(candidates, job)
        deduplicated = asyncio.run(
            deduplicate_matches(
                result.filtered,
                job.job_id,
                history,
                window_days=self._filters.config.recontact_window_days,
                now=now,
            )
        )
        actionable = [
            match for match in deduplicated if self._scorer.is_actionable(match.match_score or 0)
        ]

        for match in actionable:
            self._logger.info(
                "matching.result",
                candidate_id=match.candidate_id,
                match_score=match.match_score,
                match_quality=match.match_quality,
            )

        payload = {
            "metadata": {
                "job_id": job.job_id,
                "candidate_count": len(candidates),
                "errors": load_errors,
                "timestamp": now.to_iso8601_string(),
                "app_version": __version__,
            },
            "stats": {
                **result.stats.to_dict(),
                "after_dedup": len(deduplicated),
                "actionable": len(actionable),
            },
            "results": [match.model_dump(mode="json") for match in actionable],
        }
        self._writer.write(output_path, payload)
        return payload


class VisaReport:
    """Per-country eligibility matrix for one candidate."""

    def __init__(self, checker: VisaEligibilityChecker) -> None:
        self._checker = checker

    def build(self, candidate: CandidateProfile, countries: list[str] | None = None) -> dict[str, Any]:
        if countries:
            results = self._checker.check_many(candidate, countries)
        else:
            results = self._checker.check_all(candidate)
        eligible = sorted(code for code, result in results.items() if result.eligible)
        return {
            "candidate_id": candidate.candidate_id,
            "summary": f"Eligible for {len(eligible)} out of {len(results)} countries",
            "eligible_countries": eligible,
            "results": {code: _render(result) for code, result in results.items()},
        }


def _render(result: EligibilityResult) -> dict[str, Any]:
    rendered = result.to_dict()
    rendered["summary"] = generate_visa_summary(result)
    return rendered


def _json_default(value):  # type: ignore[override]
    if isinstance(value, pendulum.DateTime):
        return value.to_iso8601_string()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
