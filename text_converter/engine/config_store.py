"""Per-(category, method) configuration, persisted through the SettingsManager."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from ..errors import ConfigValidationError
from ..logger import get_logger
from ..models import Category, Configuration
from ..settings_manager import SettingsManager

_logger = get_logger("config")

KEY_PREFIX = "tbc-config"


def storage_key(category: Category | str, method: str) -> str:
    cat = category.value if isinstance(category, Category) else str(category)
    return f"{KEY_PREFIX}::{cat}::{method}"


def validate_partial(partial: Mapping[str, Any]) -> None:
    if not isinstance(partial, Mapping):
        raise ConfigValidationError(f"configuration update must be a mapping, got {type(partial).__name__}")
    for name, value in partial.items():
        expected = Configuration.TYPES.get(name)
        if expected is None:
            raise ConfigValidationError(f"unknown configuration field: {name!r}")
        if not isinstance(value, expected):
            raise ConfigValidationError(
                f"configuration field {name!r} must be {expected.__name__}, got {type(value).__name__}"
            )


class ConfigStore:
    def __init__(self, settings: SettingsManager) -> None:
        self._settings = settings

    def get(self, category: Category | str, method: str) -> Configuration:
        raw = self._settings.get(storage_key(category, method))
        if raw is None:
            return Configuration()
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError:
                _logger.warning("stored config is corrupt, using defaults: %s", storage_key(category, method))
                return Configuration()
        return Configuration.from_dict(raw if isinstance(raw, Mapping) else None)

    def set(self, category: Category | str, method: str, partial: Mapping[str, Any]) -> Configuration:
        validate_partial(partial)
        cfg = self.get(category, method).merged(partial)
        self._settings.set(storage_key(category, method), json.dumps(cfg.to_dict()))
        _logger.debug("config saved: %s fields=%s", storage_key(category, method), sorted(partial))
        return cfg

    def reset(self, category: Category | str, method: str) -> bool:
        return self._settings.remove(storage_key(category, method))
