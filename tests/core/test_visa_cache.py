from __future__ import annotations

import pendulum
import pytest

from teachermatch.core.visa import (
    CachedEligibilityChecker,
    VisaEligibilityChecker,
    VisaStatusCache,
)


class Clock:
    def __init__(self) -> None:
        self.now = pendulum.datetime(2025, 1, 1)

    def __call__(self) -> pendulum.DateTime:
        return self.now


class CountingChecker(VisaEligibilityChecker):
    def __init__(self) -> None:
        super().__init__()
        self.calls = 0

    def check(self, candidate, country):
        self.calls += 1
        return super().check(candidate, country)


CANDIDATE = {
    "candidate_id": "T-300",
    "degree_level": "BA",
    "has_criminal_record": False,
}


def test_cached_checker_reuses_results_within_ttl():
    clock = Clock()
    checker = CountingChecker()
    cached = CachedEligibilityChecker(checker, VisaStatusCache(now_provider=clock))

    first = cached.check(CANDIDATE, "JP")
    clock.now = clock.now.add(days=29)
    second = cached.check(CANDIDATE, "japan")

    assert first.eligible is True
    assert second is first
    assert checker.calls == 1


def test_cached_results_expire_after_ttl():
    clock = Clock()
    checker = CountingChecker()
    cache = VisaStatusCache(ttl_days=30, now_provider=clock)
    cached = CachedEligibilityChecker(checker, cache)

    cached.check(CANDIDATE, "JP")
    clock.now = clock.now.add(days=30)
    cached.check(CANDIDATE, "JP")

    assert checker.calls == 2
    assert len(cache) == 1


def test_unsupported_country_and_anonymous_candidates_bypass_cache():
    checker = CountingChecker()
    cache = VisaStatusCache()
    cached = CachedEligibilityChecker(checker, cache)

    cached.check(CANDIDATE, "FR")
    cached.check({"degree_level": "BA"}, "JP")

    assert len(cache) == 0
    assert checker.calls == 2


def test_invalidate_drops_candidate_entries():
    cache = VisaStatusCache()
    cached = CachedEligibilityChecker(VisaEligibilityChecker(), cache)
    results = cached.check_all(CANDIDATE)

    assert len(cache) == len(results) == 10
    assert cache.invalidate("T-300", ["jp", "TH"]) == 2
    assert cache.get("T-300", "JP") is None
    assert cache.invalidate("T-300") == 8
    assert len(cache) == 0


def test_ttl_must_be_positive():
    with pytest.raises(ValueError):
        VisaStatusCache(ttl_days=0)
