"""Dependency injection container for the matching system."""

from __future__ import annotations

from dependency_injector import containers, providers

from .config import load_yaml
from .core.matching import CandidateFilterPipeline, FilterConfig, MatchScorer, ScoringConfig
from .core.visa import (
    CachedEligibilityChecker,
    RuleTable,
    VisaEligibilityChecker,
    VisaStatusCache,
)
from .pipeline import MatchingPipeline, VisaReport


class MatchingContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    visa_checker = providers.Singleton(VisaEligibilityChecker)
    visa_cache = providers.Singleton(VisaStatusCache)
    cached_visa_checker = providers.Singleton(
        CachedEligibilityChecker,
        checker=visa_checker,
        cache=visa_cache,
    )

    filter_config = providers.Singleton(FilterConfig)
    scoring_config = providers.Singleton(ScoringConfig)

    scorer = providers.Singleton(MatchScorer, config=scoring_config)

    filter_pipeline = providers.Singleton(
        CandidateFilterPipeline,
        checker=visa_checker,
        scorer=scorer,
        config=filter_config,
    )

    matching_pipeline = providers.Factory(
        MatchingPipeline,
        filters=filter_pipeline,
        scorer=scorer,
    )

    visa_report = providers.Factory(VisaReport, checker=visa_checker)


def create_container(*, settings: dict | None = None) -> MatchingContainer:
    """Instantiate container with optional overrides."""

    container = MatchingContainer()

    if not settings:
        return container

    visa_settings = settings.get("visa", {}) if isinstance(settings, dict) else {}

    if visa_settings.get("rules_file"):
        rules = RuleTable.from_mapping(load_yaml(visa_settings["rules_file"]))
        container.visa_checker.override(
            providers.Singleton(VisaEligibilityChecker, rules=rules)
        )

    if visa_settings.get("cache_ttl_days"):
        container.visa_cache.override(
            providers.Singleton(VisaStatusCache, ttl_days=visa_settings["cache_ttl_days"])
        )

    filter_settings = settings.get("filters", {}) if isinstance(settings, dict) else {}
    if filter_settings:
        container.filter_config.override(providers.Singleton(FilterConfig, **filter_settings))

    scoring_settings = settings.get("scoring", {}) if isinstance(settings, dict) else {}
    if scoring_settings:
        container.scoring_config.override(
            providers.Singleton(ScoringConfig, **scoring_settings)
        )

    if visa_settings.get("use_cache") or visa_settings.get("cache_ttl_days"):
        container.filter_pipeline.override(
            providers.Singleton(
                CandidateFilterPipeline,
                checker=container.cached_visa_checker,
                scorer=container.scorer,
                config=container.filter_config,
            )
        )

    return container
