"""Digests, checksums and password hashes for the Hash category.

Every method here is OneWay. ``All`` fans out across the fast deterministic
digests and returns a mapping of algorithm name to hex digest.
"""

from __future__ import annotations

import hashlib
import hmac
import zlib

import bcrypt
import blake3
import mmh3
import xxhash
from argon2.low_level import Type as Argon2Type
from argon2.low_level import hash_secret_raw
from Crypto.Hash import RIPEMD160

from ..models import Category, ConfigFlag, TransformContext
from . import define

_CAT = Category.HASH

# Fixed salt: these are shown as reproducible digests, not stored credentials.
_KDF_SALT = b"defaultsalt1234"

_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_U64 = 0xFFFFFFFFFFFFFFFF


def _hashlib(name: str, **kwargs):
    def digest(data: bytes, ctx: TransformContext) -> str:
        return hashlib.new(name, data, **kwargs).hexdigest()

    return digest


def blake2b_256(data: bytes, ctx: TransformContext) -> str:
    """BLAKE2b with a 256-bit digest."""
    return hashlib.blake2b(data, digest_size=32).hexdigest()


def blake3_256(data: bytes, ctx: TransformContext) -> str:
    """BLAKE3 default 256-bit digest."""
    return blake3.blake3(data).hexdigest()


def ripemd160(data: bytes, ctx: TransformContext) -> str:
    """RIPEMD-160."""
    return RIPEMD160.new(data).hexdigest()


def crc32(data: bytes, ctx: TransformContext) -> str:
    """CRC-32 (IEEE)."""
    return f"{zlib.crc32(data) & 0xFFFFFFFF:08x}"


def adler32(data: bytes, ctx: TransformContext) -> str:
    """Adler-32 checksum."""
    return f"{zlib.adler32(data) & 0xFFFFFFFF:08x}"


def murmur3(data: bytes, ctx: TransformContext) -> str:
    """MurmurHash3 x86 32-bit, seed 0."""
    return f"{mmh3.hash(data, 0, signed=False):08x}"


def xxhash64(data: bytes, ctx: TransformContext) -> str:
    """XXH64, seed 0."""
    return xxhash.xxh64(data, seed=0).hexdigest()


def fnv1_64(data: bytes, ctx: TransformContext) -> str:
    """FNV-1 64-bit."""
    h = _FNV64_OFFSET
    for b in data:
        h = ((h * _FNV64_PRIME) & _U64) ^ b
    return f"{h:016x}"


def fnv1a64(data: bytes, ctx: TransformContext) -> str:
    """FNV-1a 64-bit."""
    h = _FNV64_OFFSET
    for b in data:
        h = ((h ^ b) * _FNV64_PRIME) & _U64
    return f"{h:016x}"


def bcrypt_hash(data: bytes, ctx: TransformContext) -> str:
    """bcrypt with a fresh random salt (cost 10)."""
    # bcrypt only looks at the first 72 bytes and rejects longer secrets in recent releases.
    return bcrypt.hashpw(data[:72], bcrypt.gensalt(rounds=10)).decode("ascii")


def scrypt_hash(data: bytes, ctx: TransformContext) -> str:
    """scrypt (N=16384, r=8, p=1), 32-byte key."""
    return hashlib.scrypt(data, salt=_KDF_SALT, n=16384, r=8, p=1, maxmem=64 * 1024 * 1024, dklen=32).hex()


def argon2_hash(data: bytes, ctx: TransformContext) -> str:
    """Argon2id (t=1, m=64 MiB, p=4), 32-byte key."""
    raw = hash_secret_raw(
        secret=data,
        salt=_KDF_SALT,
        time_cost=1,
        memory_cost=64 * 1024,
        parallelism=4,
        hash_len=32,
        type=Argon2Type.ID,
    )
    return raw.hex()


_HMAC_DIGESTS = {"SHA-256": "sha256", "SHA-1": "sha1", "SHA-512": "sha512", "MD5": "md5"}


def hmac_digest(data: bytes, ctx: TransformContext) -> str:
    """HMAC keyed with the configured key."""
    return hmac.new(ctx.key_bytes, data, _HMAC_DIGESTS.get(ctx.submode, "sha256")).hexdigest()


# Display order of the multi-digest view.
FAST_DIGESTS = {
    "MD5": _hashlib("md5"),
    "SHA-1": _hashlib("sha1"),
    "SHA-224": _hashlib("sha224"),
    "SHA-256": _hashlib("sha256"),
    "SHA-384": _hashlib("sha384"),
    "SHA-512": _hashlib("sha512"),
    "SHA-3 (Keccak)": _hashlib("sha3_256"),
    "BLAKE2b": blake2b_256,
    "BLAKE3": blake3_256,
    "RIPEMD-160": ripemd160,
    "CRC32": crc32,
    "Adler-32": adler32,
    "MurmurHash3": murmur3,
    "xxHash": xxhash64,
    "FNV-1": fnv1_64,
    "FNV-1a": fnv1a64,
}


def all_digests(data: bytes, ctx: TransformContext) -> dict[str, str]:
    """Every fast digest at once, keyed by algorithm name."""
    return {name: fn(data, ctx) for name, fn in FAST_DIGESTS.items()}


def register_all(registry) -> None:
    registry.register(define(_CAT, "All", all_digests))
    for name, fn in FAST_DIGESTS.items():
        registry.register(define(_CAT, name, fn, description=f"{name} digest"))
    registry.register(define(_CAT, "bcrypt", bcrypt_hash, deterministic=False))
    registry.register(define(_CAT, "scrypt", scrypt_hash))
    registry.register(define(_CAT, "Argon2", argon2_hash))
    registry.register(
        define(
            _CAT,
            "HMAC",
            hmac_digest,
            required=(ConfigFlag.KEY,),
            submodes=tuple(_HMAC_DIGESTS),
        )
    )
