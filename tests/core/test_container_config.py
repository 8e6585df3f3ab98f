from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from teachermatch.config import ConfigManager, load_yaml
from teachermatch.container import create_container
from teachermatch.core.visa import CachedEligibilityChecker, VisaEligibilityChecker
from teachermatch.schemas.config import AppConfig, load_config

RULES_YAML = """
countries:
  - code: TH
    name: Thailand
    visa_type: Non-B
    requirements:
      - {name: degree, field: degree_level, operator: gte, value: bachelor, message: Bachelor degree required}
"""


def test_create_container_with_overrides():
    container = create_container(
        settings={
            "filters": {"salary_tolerance_ratio": 0.1, "recontact_window_days": 30},
            "scoring": {
                "weights": {
                    "similarity": 0.5,
                    "subject": 0.2,
                    "salary": 0.1,
                    "video": 0.1,
                    "experience": 0.1,
                },
                "min_actionable_score": 70,
            },
        }
    )

    filters = container.filter_pipeline()
    scorer = container.scorer()

    assert filters.config.salary_tolerance_ratio == 0.1
    assert filters.config.recontact_window_days == 30
    assert scorer.config.weights["similarity"] == 0.5
    assert scorer.config.min_actionable_score == 70
    assert filters._scorer is scorer
    assert isinstance(filters._checker, VisaEligibilityChecker)


def test_default_container_shares_singletons():
    container = create_container()

    assert container.visa_checker() is container.visa_checker()
    assert container.filter_pipeline()._checker is container.visa_checker()
    assert container.visa_report()._checker is container.visa_checker()


def test_cache_settings_route_filters_through_cache():
    container = create_container(settings={"visa": {"cache_ttl_days": 7}})

    filters = container.filter_pipeline()

    assert isinstance(filters._checker, CachedEligibilityChecker)
    assert container.visa_cache().ttl_days == 7


def test_rules_file_replaces_default_table(tmp_path: Path):
    rules_path = tmp_path / "rules.yaml"
    rules_path.write_text(RULES_YAML, encoding="utf-8")

    container = create_container(settings={"visa": {"rules_file": str(rules_path)}})

    assert container.visa_checker().supported_countries == ("TH",)


def test_invalid_weights_fail_on_resolution():
    container = create_container(
        settings={"scoring": {"weights": {"similarity": 1.0}}}
    )

    with pytest.raises(ValueError):
        container.scorer()


def test_load_config_validation():
    data = {
        "visa": {"use_cache": False, "cache_ttl_days": 14},
        "filters": {"salary_tolerance_ratio": 0.08},
    }
    app_config = load_config(data)
    assert isinstance(app_config, AppConfig)
    settings = app_config.to_settings()
    assert settings == {
        "visa": {"cache_ttl_days": 14},
        "filters": {"salary_tolerance_ratio": 0.08},
    }


def test_load_config_rejects_unknown_keys_and_non_mappings():
    with pytest.raises(ValidationError):
        load_config({"filters": {"salary_tolerance": 0.1}})
    with pytest.raises(ValidationError):
        load_config(["not", "a", "mapping"])


def test_config_manager_loads_by_name(tmp_path: Path):
    (tmp_path / "matching.yaml").write_text("filters:\n  recontact_window_days: 60\n", encoding="utf-8")
    (tmp_path / "empty.yaml").write_text("", encoding="utf-8")
    (tmp_path / "list.yaml").write_text("- 1\n- 2\n", encoding="utf-8")

    manager = ConfigManager(tmp_path)

    assert manager.load("matching") == {"filters": {"recontact_window_days": 60}}
    assert manager.load("matching.yaml") == manager.load("matching")
    assert manager.load("empty") == {}
    with pytest.raises(ValueError):
        load_yaml(tmp_path / "list.yaml")
