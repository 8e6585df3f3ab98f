"""Pydantic configuration schema for CLI YAML input."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class VisaSettings(BaseModel):
    rules_file: str | None = None
    use_cache: bool = False
    cache_ttl_days: int | None = Field(default=None, gt=0)

    model_config = ConfigDict(extra="forbid")


class FilterSettings(BaseModel):
    salary_tolerance_ratio: float | None = Field(default=None, ge=0.0)
    recontact_window_days: int | None = Field(default=None, ge=0)

    model_config = ConfigDict(extra="forbid")


class ScoringSettings(BaseModel):
    weights: dict[str, float] | None = None
    quality_thresholds: dict[str, int] | None = None
    min_actionable_score: int | None = Field(default=None, ge=0, le=100)

    model_config = ConfigDict(extra="forbid")


class AppConfig(BaseModel):
    visa: VisaSettings = Field(default_factory=VisaSettings)
    filters: FilterSettings = Field(default_factory=FilterSettings)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)

    model_config = ConfigDict(extra="forbid")

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        for section in ("visa", "filters", "scoring"):
            values = getattr(self, section).model_dump(exclude_none=True)
            if section == "visa" and not values.get("use_cache"):
                values.pop("use_cache", None)
            if values:
                settings[section] = values
        return settings


def load_config(raw: Any) -> AppConfig:
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
