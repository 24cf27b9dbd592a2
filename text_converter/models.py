"""Value types shared across the engine.

Everything here is immutable. Configuration is the only type with a
serialized form (`to_dict` / `from_dict`), used by the configuration store.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from .errors import ErrorKind


class Category(str, Enum):
    ENCRYPT_DECRYPT = "Encrypt-Decrypt"
    ENCODE_DECODE = "Encode-Decode"
    ESCAPE = "Escape"
    CONVERT = "Convert"
    HASH = "Hash"

    @classmethod
    def parse(cls, value: Category | str) -> Category | None:
        if isinstance(value, Category):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return None


# Encrypt/Escape read as the forward direction, Decrypt/Unescape as the inverse.
_FORWARD_VERBS = frozenset({"encode", "encrypt", "escape", "forward"})
_INVERSE_VERBS = frozenset({"decode", "decrypt", "unescape", "reverse"})


class Mode(str, Enum):
    ENCODE = "Encode"
    DECODE = "Decode"

    @classmethod
    def parse(cls, value: Mode | str) -> Mode:
        """Accept the per-category verbs too; raises ValueError for anything else."""
        if isinstance(value, Mode):
            return value
        v = str(value).strip().lower()
        if v in _FORWARD_VERBS:
            return cls.ENCODE
        if v in _INVERSE_VERBS:
            return cls.DECODE
        raise ValueError(f"unknown mode: {value!r}")


class Directionality(str, Enum):
    BIDIRECTIONAL = "Bidirectional"
    ONE_WAY = "OneWay"


class ConfigFlag(str, Enum):
    KEY = "key"
    IV = "iv"
    CASE_SENSITIVE = "caseSensitive"


@dataclass(frozen=True)
class TransformContext:
    """What a transform may see of the configuration.

    Only fields declared in the descriptor's required_config are populated;
    everything else is blank so stale values never leak into execution.
    """

    submode: str = ""
    key: str = ""
    iv: str = ""
    case_sensitive: bool = False

    @property
    def key_bytes(self) -> bytes:
        return self.key.encode("utf-8")

    @property
    def iv_bytes(self) -> bytes:
        return self.iv.encode("utf-8")


TransformFn = Callable[[bytes, TransformContext], Any]
ConfigValidator = Callable[[TransformContext], None]


@dataclass(frozen=True)
class Transform:
    forward: TransformFn
    inverse: TransformFn | None = None
    validate: ConfigValidator | None = None


@dataclass(frozen=True)
class MethodDescriptor:
    category: Category
    method: str
    directionality: Directionality
    required_config: frozenset[ConfigFlag] = frozenset()
    submodes: tuple[str, ...] = ()
    lossy: bool = False
    deterministic: bool = True
    description: str = ""
    transform: Transform | None = field(default=None, repr=False, compare=False)

    @property
    def invertible(self) -> bool:
        return self.directionality is Directionality.BIDIRECTIONAL

    @property
    def key(self) -> tuple[Category, str]:
        return (self.category, self.method)

    def requires(self, flag: ConfigFlag) -> bool:
        return flag in self.required_config

    def resolve_submode(self, submode: str | None) -> str | None:
        """Return the effective submode, or None when `submode` is not declared."""
        if not self.submodes:
            return ""
        if not submode:
            return self.submodes[0]
        for s in self.submodes:
            if s.lower() == str(submode).strip().lower():
                return s
        return None


@dataclass(frozen=True)
class Configuration:
    key: str = ""
    iv: str = ""
    auto_run: bool = True
    case_sensitive: bool = False

    # serialized field name -> attribute name
    FIELDS = {"key": "key", "iv": "iv", "autoRun": "auto_run", "caseSensitive": "case_sensitive"}
    TYPES = {"key": str, "iv": str, "autoRun": bool, "caseSensitive": bool}

    def to_dict(self) -> dict[str, Any]:
        return {name: getattr(self, attr) for name, attr in self.FIELDS.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Configuration:
        """Total merge with defaults: wrong-typed or missing fields keep their default."""
        cfg = cls()
        if not isinstance(data, Mapping):
            return cfg
        changes = {}
        for name, attr in cls.FIELDS.items():
            if name in data and isinstance(data[name], cls.TYPES[name]):
                changes[attr] = data[name]
        return replace(cfg, **changes)

    def merged(self, partial: Mapping[str, Any]) -> Configuration:
        changes = {self.FIELDS[name]: value for name, value in partial.items()}
        return replace(self, **changes)


@dataclass(frozen=True)
class ConversionRequest:
    category: Category | str
    method: str
    submode: str | None = None
    mode: Mode = Mode.ENCODE
    input: str | bytes = ""
    config: Configuration = field(default_factory=Configuration)


@dataclass(frozen=True)
class ConversionResult:
    output: str | bytes | dict[str, str] | None = None
    error: ErrorKind | None = None
    message: str = ""
    is_image: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, output: str | bytes | dict[str, str]) -> ConversionResult:
        return cls(output=output)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str = "") -> ConversionResult:
        return cls(output=None, error=kind, message=message or kind.value)

    def with_image(self, is_image: bool) -> ConversionResult:
        return replace(self, is_image=bool(is_image))


@dataclass(frozen=True)
class QuickTag:
    id: str
    category: Category | str
    method: str
    submode: str | None = None
    label: str = ""

    def to_dict(self) -> dict[str, Any]:
        category = self.category.value if isinstance(self.category, Category) else str(self.category)
        return {
            "id": self.id,
            "category": category,
            "method": self.method,
            "submode": self.submode,
            "label": self.label or f"{category} - {self.method}",
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> QuickTag:
        tag_id = data.get("id")
        category = data.get("category")
        method = data.get("method")
        if not all(isinstance(v, str) and v for v in (tag_id, category, method)):
            raise ValueError(f"invalid tag: {dict(data)!r}")
        submode = data.get("submode")
        label = data.get("label")
        parsed = Category.parse(category)
        return cls(
            id=tag_id,
            category=parsed if parsed is not None else category,
            method=method,
            submode=submode if isinstance(submode, str) and submode else None,
            label=label if isinstance(label, str) and label else f"{category} - {method}",
        )
