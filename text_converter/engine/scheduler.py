"""Debounced auto-run on the Qt event loop."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import QObject, QTimer

from ..logger import get_logger

_logger = get_logger("scheduler")

DEFAULT_DELAY_MS = 250


class DebounceTimer(QObject):
    """Single pending callback on a single-shot QTimer.

    Scheduling again replaces the pending callback and restarts the window.
    """

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._callback: Callable[[], None] | None = None
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._fire)

    def schedule(self, callback: Callable[[], None], delay_ms: int) -> None:
        self._callback = callback
        self._timer.setInterval(max(0, int(delay_ms)))
        self._timer.start()

    def cancel_pending(self) -> None:
        self._timer.stop()
        self._callback = None

    def is_pending(self) -> bool:
        return self._timer.isActive()

    def _fire(self) -> None:
        callback, self._callback = self._callback, None
        if callback is not None:
            callback()


class AutoRunScheduler:
    """Reruns ``execute`` once input, config or selection settle.

    ``execute`` reads whatever state is current when it fires, so a burst of
    changes inside the window produces exactly one run over the final state.
    """

    def __init__(
        self,
        execute: Callable[[], None],
        auto_run_enabled: Callable[[], bool],
        timer: DebounceTimer | None = None,
        delay_ms: int = DEFAULT_DELAY_MS,
    ) -> None:
        self._execute = execute
        self._auto_run_enabled = auto_run_enabled
        self._timer = timer if timer is not None else DebounceTimer()
        self.delay_ms = max(0, int(delay_ms))
        self.runs = 0

    def notify_changed(self) -> None:
        if not self._auto_run_enabled():
            self._timer.cancel_pending()
            return
        self._timer.schedule(self._run, self.delay_ms)

    def trigger(self) -> None:
        """Manual run: now, superseding anything pending."""
        self._timer.cancel_pending()
        self._run()

    def cancel(self) -> None:
        self._timer.cancel_pending()

    def is_pending(self) -> bool:
        return self._timer.is_pending()

    def _run(self) -> None:
        self.runs += 1
        try:
            self._execute()
        except Exception:
            _logger.exception("auto-run execution failed")
