from __future__ import annotations

from dataclasses import dataclass

from PySide6.QtCore import Property, QObject, Signal

from ..models import Category, Mode


@dataclass(frozen=True)
class Selection:
    category: Category
    method: str
    submode: str
    mode: Mode
    input: str


class EngineState(QObject):
    """Active selection and input that the host UI binds to.

    Only the controller mutates it (through the ``_set_*`` helpers); the
    executor works from an immutable ``snapshot()``.
    """

    categoryChanged = Signal(str)
    methodChanged = Signal(str)
    submodeChanged = Signal(str)
    modeChanged = Signal(str)
    inputTextChanged = Signal(str)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._category = Category.ENCODE_DECODE
        self._method = "Base64"
        self._submode = ""
        self._mode = Mode.ENCODE
        self._input = ""

    def _get_category(self) -> str:
        return self._category.value

    category = Property(str, _get_category, notify=categoryChanged)  # type: ignore[arg-type]

    def _get_method(self) -> str:
        return str(self._method)

    method = Property(str, _get_method, notify=methodChanged)  # type: ignore[arg-type]

    def _get_submode(self) -> str:
        return str(self._submode)

    submode = Property(str, _get_submode, notify=submodeChanged)  # type: ignore[arg-type]

    def _get_mode(self) -> str:
        return self._mode.value

    mode = Property(str, _get_mode, notify=modeChanged)  # type: ignore[arg-type]

    def _get_input_text(self) -> str:
        return str(self._input)

    inputText = Property(str, _get_input_text, notify=inputTextChanged)  # type: ignore[arg-type]

    def snapshot(self) -> Selection:
        return Selection(self._category, self._method, self._submode, self._mode, self._input)

    # ---- internal mutation helpers (called by controller) ----
    def _set_category(self, category: Category) -> bool:
        if category is self._category:
            return False
        self._category = category
        self.categoryChanged.emit(category.value)
        return True

    def _set_method(self, method: str) -> bool:
        m = str(method)
        if m == self._method:
            return False
        self._method = m
        self.methodChanged.emit(m)
        return True

    def _set_submode(self, submode: str | None) -> bool:
        s = str(submode or "")
        if s == self._submode:
            return False
        self._submode = s
        self.submodeChanged.emit(s)
        return True

    def _set_mode(self, mode: Mode) -> bool:
        if mode is self._mode:
            return False
        self._mode = mode
        self.modeChanged.emit(mode.value)
        return True

    def _set_input(self, text: str) -> bool:
        t = str(text)
        if t == self._input:
            return False
        self._input = t
        self.inputTextChanged.emit(t)
        return True
