from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from .logger import get_logger

_logger = get_logger("settings")

_SETTINGS_ENV = "TEXT_CONVERTER_SETTINGS"


def default_settings_path() -> str:
    env = (os.getenv(_SETTINGS_ENV) or "").strip()
    if env:
        return str(Path(env).expanduser().resolve(strict=False))
    return str(Path.home() / ".text_converter" / "settings.json")


class SettingsManager:
    """JSON-file key-value store.

    Keys are strings. The engine stores its own blobs as serialized strings and
    treats them as opaque here; a missing or unreadable file means an empty store.
    """

    def __init__(self, settings_path: str | None = None):
        self.settings_path = settings_path or default_settings_path()
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "debounce_ms": 250,
    }

    def load(self) -> None:
        try:
            if os.path.exists(self.settings_path):
                with open(self.settings_path, encoding="utf-8") as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        self._settings = data
                        _logger.debug("settings loaded: %s", self.settings_path)
                        return
                    _logger.warning("settings file is not an object, ignoring: %s", self.settings_path)
        except Exception as e:
            _logger.warning("settings load failed: %s", e)
        self._settings = {}

    def save(self) -> None:
        try:
            parent = os.path.dirname(self.settings_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except Exception as e:
            _logger.error("settings save failed: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def has(self, key: str) -> bool:
        return key in self._settings

    def set(self, key: str, value: Any) -> None:
        self._settings[key] = value
        self.save()

    def remove(self, key: str) -> bool:
        if key not in self._settings:
            return False
        del self._settings[key]
        self.save()
        return True

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    @property
    def debounce_ms(self) -> int:
        try:
            value = int(self.get("debounce_ms"))
        except (TypeError, ValueError):
            _logger.warning("saved debounce_ms invalid: %r", self.get("debounce_ms"))
            return int(self.DEFAULTS["debounce_ms"])
        return max(0, value)
