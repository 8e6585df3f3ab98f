"""Time-limited cache of eligibility results keyed by candidate and country."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

import pendulum
import structlog

from .checker import CandidateInput, VisaEligibilityChecker, candidate_attribute
from .results import EligibilityResult

DEFAULT_TTL_DAYS = 30


@dataclass(frozen=True, slots=True)
class CacheEntry:
    result: EligibilityResult
    checked_at: pendulum.DateTime


class VisaStatusCache:
    """In-memory store of eligibility results that expire after ``ttl_days``."""

    def __init__(
        self,
        *,
        ttl_days: int = DEFAULT_TTL_DAYS,
        now_provider: Callable[[], pendulum.DateTime] | None = None,
    ) -> None:
        if ttl_days <= 0:
            raise ValueError("ttl_days must be positive")
        self._ttl_days = ttl_days
        self._now_provider = now_provider or pendulum.now
        self._entries: dict[tuple[str, str], CacheEntry] = {}

    @property
    def ttl_days(self) -> int:
        return self._ttl_days

    def get(self, candidate_id: str, country: str) -> EligibilityResult | None:
        key = (candidate_id, country.upper())
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.checked_at.add(days=self._ttl_days) <= self._now_provider():
            del self._entries[key]
            return None
        return entry.result

    def put(self, candidate_id: str, result: EligibilityResult) -> None:
        self._entries[(candidate_id, result.country)] = CacheEntry(
            result=result,
            checked_at=self._now_provider(),
        )

    def invalidate(self, candidate_id: str, countries: Iterable[str] | None = None) -> int:
        """Drop cached results for a candidate, e.g. after a profile update."""
        wanted = {code.upper() for code in countries} if countries is not None else None
        stale = [
            key
            for key in self._entries
            if key[0] == candidate_id and (wanted is None or key[1] in wanted)
        ]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def __len__(self) -> int:
        return len(self._entries)


class CachedEligibilityChecker:
    """Checker front that consults a :class:`VisaStatusCache` first.

    Candidates without a ``candidate_id`` are always evaluated afresh.
    """

    def __init__(self, checker: VisaEligibilityChecker, cache: VisaStatusCache) -> None:
        self._checker = checker
        self._cache = cache
        self._logger = structlog.get_logger(__name__)

    @property
    def supported_countries(self) -> tuple[str, ...]:
        return self._checker.supported_countries

    def with_clock(
        self,
        now_provider: Callable[[], pendulum.DateTime],
    ) -> "CachedEligibilityChecker":
        return CachedEligibilityChecker(self._checker.with_clock(now_provider), self._cache)

    def check(self, candidate: CandidateInput, country: str) -> EligibilityResult:
        candidate_id = candidate_attribute(candidate, "candidate_id")
        requirement = self._checker.rules.resolve(country)
        if not candidate_id or requirement is None:
            return self._checker.check(candidate, country)

        cached = self._cache.get(candidate_id, requirement.code)
        if cached is not None:
            self._logger.debug("visa.cache_hit", candidate_id=candidate_id, country=requirement.code)
            return cached

        result = self._checker.check(candidate, country)
        self._cache.put(candidate_id, result)
        return result

    def check_all(self, candidate: CandidateInput) -> dict[str, EligibilityResult]:
        return {code: self.check(candidate, code) for code in self.supported_countries}
