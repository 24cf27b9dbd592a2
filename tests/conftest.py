"""Pytest configuration.

The engine uses QtCore timers and QtGui image loading, so one
`QGuiApplication` is created for the entire session as early as possible and
shut down cleanly at the end.

Every test also gets its own settings file so nothing touches the user's
`~/.text_converter/settings.json`.
"""

from __future__ import annotations

import os
from typing import Any

# Run Qt headless unless the caller chose a platform.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QGuiApplication exists before collecting/running tests."""

    # Import lazily so non-Qt environments can still import this conftest.
    try:
        from PySide6.QtGui import QGuiApplication
    except ImportError:
        return

    global _APP

    app = QGuiApplication.instance()
    if app is None:
        # Keep a strong ref so it isn't GC'd mid-session.
        _APP = QGuiApplication([])
    else:
        _APP = app


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    """Attempt a clean Qt shutdown to avoid lingering timers at interpreter exit."""

    try:
        from PySide6.QtGui import QGuiApplication
    except ImportError:
        return

    app = QGuiApplication.instance()
    if app is None:
        return

    app.quit()
    app.processEvents()


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("TEXT_CONVERTER_SETTINGS", str(tmp_path / "settings.json"))


@pytest.fixture
def settings(tmp_path):
    from text_converter.settings_manager import SettingsManager

    return SettingsManager(str(tmp_path / "settings.json"))


class FakeTimer:
    """Stands in for DebounceTimer; fire() runs the pending callback by hand."""

    def __init__(self) -> None:
        self.callback = None
        self.delay_ms: int | None = None
        self.scheduled = 0

    def schedule(self, callback, delay_ms: int) -> None:
        self.callback = callback
        self.delay_ms = delay_ms
        self.scheduled += 1

    def cancel_pending(self) -> None:
        self.callback = None

    def is_pending(self) -> bool:
        return self.callback is not None

    def fire(self) -> None:
        callback, self.callback = self.callback, None
        if callback is not None:
            callback()


@pytest.fixture
def fake_timer() -> FakeTimer:
    return FakeTimer()
