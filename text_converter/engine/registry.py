"""Catalogue of every (category, method) the engine can run.

The registry is filled once at import time from the codec modules and frozen;
after that it is a read-only lookup table.
"""

from __future__ import annotations

from ..logger import get_logger
from ..models import Category, MethodDescriptor

_logger = get_logger("registry")


class TransformRegistry:
    def __init__(self) -> None:
        self._methods: dict[Category, dict[str, MethodDescriptor]] = {c: {} for c in Category}
        self._frozen = False

    def register(self, descriptor: MethodDescriptor) -> None:
        if self._frozen:
            raise RuntimeError("registry is frozen")
        bucket = self._methods[descriptor.category]
        if descriptor.method in bucket:
            raise ValueError(f"duplicate method {descriptor.category.value}/{descriptor.method}")
        bucket[descriptor.method] = descriptor

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def lookup(self, category: Category | str, method: str) -> MethodDescriptor | None:
        cat = Category.parse(category)
        if cat is None:
            return None
        return self._methods[cat].get(method)

    def list_methods(self, category: Category | str) -> list[MethodDescriptor]:
        cat = Category.parse(category)
        if cat is None:
            return []
        return list(self._methods[cat].values())

    def list_categories(self) -> list[Category]:
        return list(self._methods)

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._methods.values())

    def __iter__(self):
        for bucket in self._methods.values():
            yield from bucket.values()


def build_registry() -> TransformRegistry:
    from ..codecs import encoding, encryption, escape, formatting, hashing

    reg = TransformRegistry()
    for module in (encryption, encoding, escape, formatting, hashing):
        module.register_all(reg)
    reg.freeze()
    _logger.debug("registry built: %d methods", len(reg))
    return reg


registry = build_registry()
