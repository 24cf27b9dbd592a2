from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from PySide6.QtCore import Property, QObject, Signal, Slot

from ..engine.config_store import ConfigStore
from ..engine.executor import TransformExecutor
from ..engine.registry import TransformRegistry, registry as default_registry
from ..engine.scheduler import AutoRunScheduler, DebounceTimer
from ..engine.sniffer import PayloadSniffer
from ..engine.state import EngineState
from ..engine.tags import TagManager
from ..errors import ConverterError
from ..logger import get_logger
from ..models import Category, Configuration, ConversionRequest, ConversionResult, Mode, QuickTag
from ..settings_manager import SettingsManager

_logger = get_logger("controller")

KEY_CATEGORY = "tbc-category"
KEY_METHOD = "tbc-method"
KEY_SUBMODE = "tbc-submode"
KEY_MODE = "tbc-mode"


def _payload_value(payload: object, key: str, default: Any = None) -> Any:
    if isinstance(payload, Mapping):
        return payload.get(key, default)
    return default


class ConverterController(QObject):
    """Facade the host UI talks to.

    Owns the engine state and wires the config store, scheduler, executor,
    sniffer and tag manager together. Every finished run is published on
    ``resultReady``.
    """

    resultReady = Signal(object)  # ConversionResult
    tagsChanged = Signal()
    configChanged = Signal(object)  # Configuration
    # QObject already has an .event() method; expose the signal as "event" to the host.
    event_ = Signal(object, name="event")

    def __init__(
        self,
        settings: SettingsManager | None = None,
        registry: TransformRegistry | None = None,
        timer: DebounceTimer | None = None,
        sniffer: PayloadSniffer | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._settings_mgr = settings or SettingsManager()
        self._registry = registry if registry is not None else default_registry
        self._state = EngineState(self)
        self._configs = ConfigStore(self._settings_mgr)
        self._tags = TagManager(self._settings_mgr)
        self._executor = TransformExecutor(self._registry)
        self._sniffer = sniffer or PayloadSniffer()
        self._scheduler = AutoRunScheduler(
            self.run_now,
            lambda: self.current_config().auto_run,
            timer=timer if timer is not None else DebounceTimer(self),
            delay_ms=self._settings_mgr.debounce_ms,
        )
        self._last_result = ConversionResult.success("")
        self._restore_selection()

    # ---- expose state to the host ----
    def _get_state(self) -> QObject:
        return self._state

    state = Property(QObject, _get_state, constant=True)  # type: ignore[arg-type]

    @property
    def tags(self) -> TagManager:
        return self._tags

    @property
    def configs(self) -> ConfigStore:
        return self._configs

    @property
    def sniffer(self) -> PayloadSniffer:
        return self._sniffer

    @property
    def scheduler(self) -> AutoRunScheduler:
        return self._scheduler

    @property
    def last_result(self) -> ConversionResult:
        return self._last_result

    # ---- selection ----
    def _restore_selection(self) -> None:
        category = Category.parse(self._settings_mgr.get(KEY_CATEGORY) or "")
        method = self._settings_mgr.get(KEY_METHOD)
        if category is None or not isinstance(method, str) or self._registry.lookup(category, method) is None:
            return
        self._state._set_category(category)
        self._state._set_method(method)
        submode = self._settings_mgr.get(KEY_SUBMODE)
        descriptor = self._registry.lookup(category, method)
        if isinstance(submode, str) and descriptor.resolve_submode(submode) is not None:
            self._state._set_submode(descriptor.resolve_submode(submode))
        mode = self._settings_mgr.get(KEY_MODE)
        if isinstance(mode, str):
            try:
                self._state._set_mode(Mode.parse(mode))
            except ValueError:
                _logger.warning("ignoring stored mode %r", mode)
        _logger.debug("restored selection %s/%s", category.value, method)

    def _persist_selection(self) -> None:
        sel = self._state.snapshot()
        self._settings_mgr.set(KEY_CATEGORY, sel.category.value)
        self._settings_mgr.set(KEY_METHOD, sel.method)
        self._settings_mgr.set(KEY_SUBMODE, sel.submode)
        self._settings_mgr.set(KEY_MODE, sel.mode.value)

    def select(self, category: Category | str, method: str | None = None, submode: str | None = None) -> bool:
        """Switch the active method; with no method the category's first one is used."""
        cat = Category.parse(category)
        if cat is None:
            _logger.warning("select: unknown category %r", category)
            return False
        if method is None:
            methods = self._registry.list_methods(cat)
            if not methods:
                return False
            method = methods[0].method
        descriptor = self._registry.lookup(cat, method)
        if descriptor is None:
            _logger.warning("select: unknown method %s/%r", cat.value, method)
            return False
        resolved = descriptor.resolve_submode(submode)
        if resolved is None:
            _logger.warning("select: %s has no submode %r, using default", method, submode)
            resolved = descriptor.resolve_submode(None)

        changed = self._state._set_category(cat)
        changed = self._state._set_method(descriptor.method) or changed
        changed = self._state._set_submode(resolved) or changed
        if not descriptor.invertible:
            changed = self._state._set_mode(Mode.ENCODE) or changed
        if changed:
            self._persist_selection()
            self._scheduler.notify_changed()
        return True

    def set_submode(self, submode: str) -> bool:
        sel = self._state.snapshot()
        descriptor = self._registry.lookup(sel.category, sel.method)
        resolved = descriptor.resolve_submode(submode) if descriptor else None
        if resolved is None:
            _logger.warning("set_submode: %s has no submode %r", sel.method, submode)
            return False
        if self._state._set_submode(resolved):
            self._persist_selection()
            self._scheduler.notify_changed()
        return True

    def set_mode(self, mode: Mode | str) -> bool:
        try:
            parsed = Mode.parse(mode)
        except ValueError:
            _logger.warning("set_mode: unknown mode %r", mode)
            return False
        if self._state._set_mode(parsed):
            self._persist_selection()
            self._scheduler.notify_changed()
        return True

    def set_input(self, text: str) -> None:
        if self._state._set_input(text):
            self._scheduler.notify_changed()

    # ---- configuration ----
    def current_config(self) -> Configuration:
        sel = self._state.snapshot()
        return self._configs.get(sel.category, sel.method)

    def update_config(self, partial: Mapping[str, Any]) -> Configuration:
        """Merge `partial` into the active method's configuration (raises ConfigValidationError)."""
        sel = self._state.snapshot()
        cfg = self._configs.set(sel.category, sel.method, partial)
        self.configChanged.emit(cfg)
        self._scheduler.notify_changed()
        return cfg

    def reset_config(self) -> Configuration:
        sel = self._state.snapshot()
        self._configs.reset(sel.category, sel.method)
        cfg = self.current_config()
        self.configChanged.emit(cfg)
        self._scheduler.notify_changed()
        return cfg

    # ---- execution ----
    def build_request(self) -> ConversionRequest:
        sel = self._state.snapshot()
        return ConversionRequest(
            category=sel.category,
            method=sel.method,
            submode=sel.submode or None,
            mode=sel.mode,
            input=sel.input,
            config=self._configs.get(sel.category, sel.method),
        )

    def run_now(self) -> ConversionResult:
        result = self._sniffer.sniff(self._executor.execute(self.build_request()))
        self._last_result = result
        self.resultReady.emit(result)
        return result

    def convert(self) -> None:
        """Manual Convert: runs immediately regardless of autoRun."""
        self._scheduler.trigger()

    # ---- tags ----
    def apply_tag(self, tag_id: str) -> bool:
        tag = self._tags.get(tag_id)
        if tag is None:
            _logger.warning("apply_tag: no tag %r", tag_id)
            return False
        return self.select(tag.category, tag.method, tag.submode)

    def add_current_to_tags(self) -> QuickTag:
        sel = self._state.snapshot()
        tag = self._tags.add_selection(sel.category, sel.method, sel.submode or None)
        self.tagsChanged.emit()
        return tag

    def add_tag(self, tag: QuickTag) -> None:
        self._tags.add(tag)
        self.tagsChanged.emit()

    def remove_tag(self, tag_id: str) -> bool:
        removed = self._tags.remove(tag_id)
        if removed:
            self.tagsChanged.emit()
        return removed

    def shutdown(self) -> None:
        self._scheduler.cancel()

    # ---- host command entry ----
    def _emit_error(self, message: str, level: str = "warning") -> None:
        self.event_.emit({"type": "event", "name": "error", "level": level, "message": message})

    @Slot(str, "QVariant")  # type: ignore[call-overload]
    def dispatch(self, cmd: str, payload: object | None = None) -> None:  # noqa: PLR0911, PLR0912
        command = str(cmd or "").strip()
        try:
            if command == "select":
                category = str(_payload_value(payload, "category", ""))
                method = _payload_value(payload, "method")
                if not self.select(category, method, _payload_value(payload, "submode")):
                    self._emit_error(f"Unknown method: {category}/{method}")
                return
            if command == "setSubmode":
                value = str(_payload_value(payload, "value", ""))
                if not self.set_submode(value):
                    self._emit_error(f"Unknown submode: {value!r}")
                return
            if command == "setMode":
                value = str(_payload_value(payload, "value", Mode.ENCODE.value))
                if not self.set_mode(value):
                    self._emit_error(f"Unknown mode: {value!r}")
                return
            if command == "setInput":
                self.set_input(str(_payload_value(payload, "value", "")))
                return
            if command == "setConfig":
                config = _payload_value(payload, "config", {})
                if not isinstance(config, Mapping):
                    self._emit_error(f"setConfig expects a mapping, got {type(config).__name__}", level="error")
                    return
                self.update_config(config)
                return
            if command == "resetConfig":
                self.reset_config()
                return
            if command == "convert":
                self.convert()
                return
            if command == "applyTag":
                tag_id = str(_payload_value(payload, "id", ""))
                if not self.apply_tag(tag_id):
                    self._emit_error(f"Cannot apply tag {tag_id!r}")
                return
            if command == "addCurrentTag":
                self.add_current_to_tags()
                return
            if command == "removeTag":
                tag_id = str(_payload_value(payload, "id", ""))
                if not self.remove_tag(tag_id):
                    self._emit_error(f"No tag {tag_id!r}")
                return
        except ConverterError as e:
            _logger.warning("dispatch %s failed: %s", command, e)
            self._emit_error(str(e))
            return
        self._emit_error(f"Unknown cmd: {command!r}", level="error")
