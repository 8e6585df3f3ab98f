"""Recontact-window deduplication of candidate matches."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

import pendulum
import structlog

from ...schemas import MatchCandidate
from .filters import DEFAULT_RECONTACT_WINDOW_DAYS

logger = structlog.get_logger(__name__)


@runtime_checkable
class ContactHistory(Protocol):
    """Look up when a candidate was last notified about any job."""

    async def last_contacted_at(
        self,
        candidate_id: str,
        *,
        within_days: int,
    ) -> datetime | None:
        """Most recent contact within the last ``within_days`` days, if any."""


def should_recontact(
    last_contacted_at: datetime | None,
    *,
    window_days: int = DEFAULT_RECONTACT_WINDOW_DAYS,
    now: pendulum.DateTime | None = None,
) -> bool:
    """True when no contact happened inside the recontact window."""
    if last_contacted_at is None:
        return True
    as_of = now or pendulum.now()
    return pendulum.instance(last_contacted_at) < as_of.subtract(days=window_days)


async def deduplicate_matches(
    candidates: Iterable[MatchCandidate],
    job_id: str,
    contact_history: ContactHistory,
    *,
    window_days: int = DEFAULT_RECONTACT_WINDOW_DAYS,
    now: pendulum.DateTime | None = None,
) -> list[MatchCandidate]:
    """Drop candidates already contacted about any job within ``window_days``.

    Lookups run concurrently; an exception raised by ``contact_history``
    propagates to the caller as-is.
    """
    pool = list(candidates)
    if not pool:
        return []

    as_of = now or pendulum.now()
    contacted = await asyncio.gather(
        *(
            contact_history.last_contacted_at(match.candidate_id, within_days=window_days)
            for match in pool
        )
    )

    kept: list[MatchCandidate] = []
    for match, last_contact in zip(pool, contacted):
        if should_recontact(last_contact, window_days=window_days, now=as_of):
            kept.append(match)
        else:
            logger.debug(
                "dedup.dropped",
                job_id=job_id,
                candidate_id=match.candidate_id,
                last_contacted_at=pendulum.instance(last_contact).to_iso8601_string(),
            )

    logger.info(
        "dedup.completed",
        job_id=job_id,
        window_days=window_days,
        received=len(pool),
        kept=len(kept),
    )
    return kept


class InMemoryContactHistory:
    """Contact history held in memory, e.g. loaded from a JSONL export."""

    def __init__(
        self,
        contacts: Mapping[str, Iterable[datetime]] | None = None,
        *,
        now_provider: Callable[[], pendulum.DateTime] | None = None,
    ) -> None:
        self._contacts: dict[str, list[pendulum.DateTime]] = {}
        self._now_provider = now_provider or pendulum.now
        for candidate_id, timestamps in (contacts or {}).items():
            for timestamp in timestamps:
                self.record(candidate_id, timestamp)

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        **kwargs: Any,
    ) -> "InMemoryContactHistory":
        history = cls(**kwargs)
        for record in records:
            contacted_at = record["contacted_at"]
            if isinstance(contacted_at, str):
                contacted_at = pendulum.parse(contacted_at)
            history.record(str(record["candidate_id"]), contacted_at)
        return history

    @classmethod
    def from_matches(
        cls,
        matches: Iterable[MatchCandidate],
        **kwargs: Any,
    ) -> "InMemoryContactHistory":
        history = cls(**kwargs)
        for match in matches:
            if match.contacted_at is not None:
                history.record(match.candidate_id, match.contacted_at)
        return history

    def record(self, candidate_id: str, contacted_at: datetime) -> None:
        self._contacts.setdefault(candidate_id, []).append(pendulum.instance(contacted_at))

    async def last_contacted_at(
        self,
        candidate_id: str,
        *,
        within_days: int,
    ) -> datetime | None:
        cutoff = self._now_provider().subtract(days=within_days)
        recent = [stamp for stamp in self._contacts.get(candidate_id, []) if stamp >= cutoff]
        return max(recent) if recent else None
