"""Configuration management utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


class ConfigManager:
    """YAML-backed configuration loader."""

    def __init__(self, base_path: str | Path):
        self._base_path = Path(base_path)

    def load(self, name: str) -> dict[str, Any]:
        """Load a YAML document by name (extension optional) relative to the base path."""
        path = self._base_path / name
        if path.suffix not in {".yaml", ".yml"}:
            path = path.with_name(f"{path.name}.yaml")
        return load_yaml(path)


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML mapping from ``path``; empty documents yield an empty dict."""
    with Path(path).open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"{path}: YAML document must be a mapping")
    return loaded


__all__ = ["ConfigManager", "load_yaml"]
