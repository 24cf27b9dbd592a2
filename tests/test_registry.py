from __future__ import annotations

import pytest

from text_converter.codecs import define
from text_converter.engine.registry import TransformRegistry, registry
from text_converter.models import Category, ConfigFlag, Directionality


def test_every_category_has_methods() -> None:
    assert registry.list_categories() == list(Category)
    for cat in Category:
        assert registry.list_methods(cat), cat


def test_registry_is_frozen() -> None:
    assert registry.frozen
    with pytest.raises(RuntimeError):
        registry.register(define(Category.HASH, "New", lambda data, ctx: ""))


def test_lookup_by_enum_or_display_string() -> None:
    assert registry.lookup(Category.ENCODE_DECODE, "Base64") is registry.lookup("Encode-Decode", "Base64")
    assert registry.lookup("Encode-Decode", "base64") is None
    assert registry.lookup("Unknown", "Base64") is None
    assert registry.list_methods("Unknown") == []


def test_duplicate_registration_rejected() -> None:
    reg = TransformRegistry()
    reg.register(define(Category.HASH, "X", lambda data, ctx: ""))
    with pytest.raises(ValueError):
        reg.register(define(Category.HASH, "X", lambda data, ctx: ""))
    reg.register(define(Category.ESCAPE, "X", lambda data, ctx: "", lambda data, ctx: ""))
    assert len(reg) == 2


def test_hash_methods_are_one_way() -> None:
    for desc in registry.list_methods(Category.HASH):
        assert desc.directionality is Directionality.ONE_WAY
    assert registry.list_methods(Category.HASH)[0].method == "All"


def test_capability_flags() -> None:
    aes = registry.lookup(Category.ENCRYPT_DECRYPT, "AES")
    assert aes.required_config == {ConfigFlag.KEY, ConfigFlag.IV}
    assert aes.submodes == ("CBC", "CTR", "GCM")
    assert registry.lookup(Category.ENCRYPT_DECRYPT, "XOR").required_config == {ConfigFlag.KEY}
    assert registry.lookup(Category.ENCODE_DECODE, "Base16 (Hex)").requires(ConfigFlag.CASE_SENSITIVE)
    assert registry.lookup(Category.ENCODE_DECODE, "Base64").required_config == frozenset()
    assert registry.lookup(Category.ENCODE_DECODE, "Morse Code").lossy
    assert not registry.lookup(Category.HASH, "bcrypt").deterministic


def test_descriptions_come_from_docstrings() -> None:
    assert registry.lookup(Category.ENCODE_DECODE, "Base32").description == "RFC 4648 base32."


def test_resolve_submode() -> None:
    aes = registry.lookup(Category.ENCRYPT_DECRYPT, "AES")
    assert aes.resolve_submode(None) == "CBC"
    assert aes.resolve_submode("gcm") == "GCM"
    assert aes.resolve_submode("ECB") is None
    assert registry.lookup(Category.ENCODE_DECODE, "Base64").resolve_submode("stale") == ""


@pytest.mark.parametrize(
    ("category", "method"),
    [
        (Category.CONVERT, "YAML ↔ TOML"),
        (Category.CONVERT, "JSON ↔ XML"),
        (Category.CONVERT, "Markdown ↔ HTML"),
        (Category.ENCODE_DECODE, "Bencode"),
    ],
)
def test_structured_formats_are_lossy_and_invertible(category: Category, method: str) -> None:
    desc = registry.lookup(category, method)
    assert desc is not None
    assert desc.invertible
    assert desc.lossy


def test_fnv1_listed_before_fnv1a() -> None:
    names = [d.method for d in registry.list_methods(Category.HASH)]
    assert names.index("FNV-1") < names.index("FNV-1a")
