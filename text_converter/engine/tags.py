"""Quick-action tags: persisted shortcuts to a (category, method, submode)."""

from __future__ import annotations

import json
import re
from dataclasses import replace

from ..errors import DuplicateTagError
from ..logger import get_logger
from ..models import Category, QuickTag
from ..settings_manager import SettingsManager

_logger = get_logger("tags")

STORAGE_KEY = "tbc-custom-tags"

DEFAULT_TAGS: tuple[QuickTag, ...] = (
    QuickTag("url", Category.ENCODE_DECODE, "URL", label="URL Encode"),
    QuickTag("all-hashes", Category.HASH, "All", label="All Hashes"),
    QuickTag("base64", Category.ENCODE_DECODE, "Base64", label="Base64"),
    QuickTag("sha256", Category.HASH, "SHA-256", label="SHA-256"),
    QuickTag("json-yaml", Category.CONVERT, "JSON ↔ YAML", label="JSON ↔ YAML"),
)

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def selection_id(category: Category | str, method: str) -> str:
    cat = category.value if isinstance(category, Category) else str(category)
    return _NON_ALNUM.sub("-", f"{cat}-{method}".lower())


def _category_name(category: Category | str) -> str:
    return category.value if isinstance(category, Category) else str(category)


class TagManager:
    def __init__(self, settings: SettingsManager) -> None:
        self._settings = settings
        self._tags: list[QuickTag] = []
        self._load()

    def _load(self) -> None:
        if not self._settings.has(STORAGE_KEY):
            self._tags = list(DEFAULT_TAGS)
            self._save()
            _logger.debug("seeded %d default tags", len(self._tags))
            return
        raw = self._settings.get(STORAGE_KEY)
        try:
            items = json.loads(raw) if isinstance(raw, str) else raw
            if not isinstance(items, list):
                raise ValueError("tag list is not an array")
            tags: list[QuickTag] = []
            seen: set[str] = set()
            for item in items:
                tag = QuickTag.from_dict(item)
                if tag.id in seen:
                    continue
                seen.add(tag.id)
                tags.append(tag)
        except (ValueError, TypeError, AttributeError) as e:
            _logger.warning("stored tags are corrupt, using defaults: %s", e)
            self._tags = list(DEFAULT_TAGS)
            return
        self._tags = tags

    def _save(self) -> None:
        self._settings.set(STORAGE_KEY, json.dumps([t.to_dict() for t in self._tags], ensure_ascii=False))

    def list(self) -> list[QuickTag]:
        return list(self._tags)

    def get(self, tag_id: str) -> QuickTag | None:
        for tag in self._tags:
            if tag.id == tag_id:
                return tag
        return None

    def add(self, tag: QuickTag) -> None:
        if self.get(tag.id) is not None:
            raise DuplicateTagError(f"tag already exists: {tag.id}")
        if not tag.label:
            tag = replace(tag, label=f"{_category_name(tag.category)} - {tag.method}")
        self._tags.append(tag)
        self._save()
        _logger.debug("tag added: %s", tag.id)

    def remove(self, tag_id: str) -> bool:
        for i, tag in enumerate(self._tags):
            if tag.id == tag_id:
                del self._tags[i]
                self._save()
                _logger.debug("tag removed: %s", tag_id)
                return True
        return False

    def contains_selection(self, category: Category | str, method: str, submode: str | None = None) -> bool:
        cat = _category_name(category)
        for tag in self._tags:
            if _category_name(tag.category) == cat and tag.method == method:
                if not submode or not tag.submode or tag.submode == submode:
                    return True
        return False

    def add_selection(self, category: Category | str, method: str, submode: str | None = None) -> QuickTag:
        """Tag the given selection under its derived id."""
        tag = QuickTag(
            id=selection_id(category, method),
            category=category,
            method=method,
            submode=submode or None,
            label=f"{_category_name(category)} - {method}",
        )
        self.add(tag)
        return tag
