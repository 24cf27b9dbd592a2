from __future__ import annotations

import json

import pytest

from text_converter.engine.config_store import ConfigStore, storage_key
from text_converter.errors import ConfigValidationError, ErrorKind
from text_converter.models import Category, Configuration
from text_converter.settings_manager import SettingsManager


def test_defaults_when_unset(settings) -> None:
    cfg = ConfigStore(settings).get(Category.ENCRYPT_DECRYPT, "AES")
    assert cfg == Configuration(key="", iv="", auto_run=True, case_sensitive=False)


def test_set_merges_and_persists(settings, tmp_path) -> None:
    store = ConfigStore(settings)
    store.set(Category.ENCRYPT_DECRYPT, "AES", {"key": "k" * 16})
    cfg = store.set(Category.ENCRYPT_DECRYPT, "AES", {"iv": "i" * 16})
    assert cfg.key == "k" * 16
    assert cfg.iv == "i" * 16

    reopened = ConfigStore(SettingsManager(str(tmp_path / "settings.json")))
    assert reopened.get("Encrypt-Decrypt", "AES") == cfg
    raw = json.loads(settings.get("tbc-config::Encrypt-Decrypt::AES"))
    assert raw == {"key": "k" * 16, "iv": "i" * 16, "autoRun": True, "caseSensitive": False}


def test_methods_are_independent(settings) -> None:
    store = ConfigStore(settings)
    store.set(Category.ENCRYPT_DECRYPT, "AES", {"key": "aes-key"})
    assert store.get(Category.ENCRYPT_DECRYPT, "DES").key == ""


@pytest.mark.parametrize(
    "partial",
    [{"key": 5}, {"autoRun": "yes"}, {"caseSensitive": 1}, {"iv": None}, {"bogus": "x"}],
)
def test_set_rejects_bad_fields(settings, partial) -> None:
    store = ConfigStore(settings)
    with pytest.raises(ConfigValidationError) as excinfo:
        store.set(Category.ENCRYPT_DECRYPT, "AES", partial)
    assert excinfo.value.kind is ErrorKind.INVALID_CONFIG
    assert not settings.has(storage_key(Category.ENCRYPT_DECRYPT, "AES"))


@pytest.mark.parametrize(
    ("blob", "expected"),
    [
        ("{not json", Configuration()),
        ("[1, 2, 3]", Configuration()),
        ('{"key": 42, "iv": "abc", "autoRun": "no"}', Configuration(iv="abc")),
        ({"caseSensitive": True}, Configuration(case_sensitive=True)),
    ],
)
def test_corrupt_blobs_fall_back_per_field(settings, blob, expected) -> None:
    settings.set(storage_key(Category.ENCODE_DECODE, "Base16 (Hex)"), blob)
    assert ConfigStore(settings).get(Category.ENCODE_DECODE, "Base16 (Hex)") == expected


def test_reset_deletes_stored_value(settings) -> None:
    store = ConfigStore(settings)
    store.set(Category.HASH, "HMAC", {"key": "secret", "autoRun": False})
    assert store.reset(Category.HASH, "HMAC") is True
    assert store.get(Category.HASH, "HMAC") == Configuration()
    assert store.reset(Category.HASH, "HMAC") is False
