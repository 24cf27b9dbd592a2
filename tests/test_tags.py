from __future__ import annotations

import json

import pytest

from text_converter.engine.tags import DEFAULT_TAGS, STORAGE_KEY, TagManager, selection_id
from text_converter.errors import DuplicateTagError, ErrorKind
from text_converter.models import Category, QuickTag
from text_converter.settings_manager import SettingsManager


def test_first_run_seeds_defaults_and_persists(settings) -> None:
    tags = TagManager(settings)
    assert [t.id for t in tags.list()] == ["url", "all-hashes", "base64", "sha256", "json-yaml"]
    assert tags.get("url").label == "URL Encode"
    assert json.loads(settings.get(STORAGE_KEY))[1]["method"] == "All"


def test_deleted_defaults_stay_deleted(settings, tmp_path) -> None:
    tags = TagManager(settings)
    assert tags.remove("url") is True
    assert tags.remove("url") is False

    reloaded = TagManager(SettingsManager(str(tmp_path / "settings.json")))
    assert reloaded.get("url") is None
    assert len(reloaded.list()) == len(DEFAULT_TAGS) - 1


def test_add_appends_and_duplicate_is_rejected_without_mutation(settings) -> None:
    tags = TagManager(settings)
    tags.add(QuickTag("aes-gcm", Category.ENCRYPT_DECRYPT, "AES", submode="GCM"))
    assert tags.list()[-1].id == "aes-gcm"
    assert tags.list()[-1].label == "Encrypt-Decrypt - AES"

    before = tags.list()
    with pytest.raises(DuplicateTagError) as excinfo:
        tags.add(QuickTag("aes-gcm", Category.HASH, "MD5"))
    assert excinfo.value.kind is ErrorKind.DUPLICATE_ID
    assert tags.list() == before


def test_add_then_remove_restores_previous_list(settings, tmp_path) -> None:
    tags = TagManager(settings)
    tags.remove("base64")
    before = tags.list()

    tags.add(QuickTag("base32", Category.ENCODE_DECODE, "Base32", label="Base32"))
    assert tags.remove("base32")

    assert tags.list() == before
    assert TagManager(SettingsManager(str(tmp_path / "settings.json"))).list() == before


def test_tags_survive_reload(settings, tmp_path) -> None:
    TagManager(settings).add(QuickTag("hex", Category.ENCODE_DECODE, "Base16 (Hex)", submode="Uppercase", label="HEX"))
    reloaded = TagManager(SettingsManager(str(tmp_path / "settings.json")))
    tag = reloaded.get("hex")
    assert tag == QuickTag("hex", Category.ENCODE_DECODE, "Base16 (Hex)", submode="Uppercase", label="HEX")


@pytest.mark.parametrize("blob", ["{broken", '{"id": "x"}', '[{"id": "x"}]', "42"])
def test_corrupt_storage_falls_back_to_defaults(settings, blob) -> None:
    settings.set(STORAGE_KEY, blob)
    assert TagManager(settings).list() == list(DEFAULT_TAGS)


def test_selection_helpers(settings) -> None:
    tags = TagManager(settings)
    assert selection_id("Encrypt-Decrypt", "Triple DES") == "encrypt-decrypt-triple-des"
    assert tags.contains_selection(Category.HASH, "All")
    assert not tags.contains_selection(Category.HASH, "MD5")

    tag = tags.add_selection(Category.HASH, "MD5")
    assert tag.id == "hash-md5"
    assert tag.label == "Hash - MD5"
    assert tags.contains_selection("Hash", "MD5")
    with pytest.raises(DuplicateTagError):
        tags.add_selection(Category.HASH, "MD5")
