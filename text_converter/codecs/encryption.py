"""Symmetric and asymmetric ciphers for the Encrypt-Decrypt category.

Key and IV come from the configuration as text and are used as their UTF-8
bytes, so a 32 character ASCII key is a 256-bit key. Ciphertext travels as
standard base64 in both directions.
"""

from __future__ import annotations

import base64
import binascii

from Crypto.Cipher import ARC4, Blowfish, Salsa20
from Crypto.Util.Padding import pad, unpad
from cryptography.exceptions import InvalidTag
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.decrepit.ciphers.algorithms import TripleDES
from cryptography.hazmat.primitives import hashes, padding, serialization
from cryptography.hazmat.primitives.asymmetric import padding as asym_padding
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..errors import InvalidConfigError, MalformedInputError
from ..models import Category, ConfigFlag, TransformContext
from . import define

_CAT = Category.ENCRYPT_DECRYPT
_KEY_IV = (ConfigFlag.KEY, ConfigFlag.IV)
_KEY = (ConfigFlag.KEY,)

AES_CBC = "CBC"
AES_CTR = "CTR"
AES_GCM = "GCM"
RSA_PKCS1 = "PKCS#1 v1.5"
RSA_OAEP = "OAEP"

_GCM_NONCE = 12
_CHACHA_NONCE = 12
_SALSA_NONCE = 8


def _ciphertext(data: bytes) -> bytes:
    try:
        return base64.b64decode(b"".join(data.split()), validate=True)
    except binascii.Error as exc:
        raise MalformedInputError(f"ciphertext is not valid base64: {exc}") from exc


def _armor(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _check_len(what: str, value: bytes, allowed: tuple[int, ...]) -> None:
    if len(value) not in allowed:
        sizes = " or ".join(str(n) for n in allowed)
        raise InvalidConfigError(f"{what} must be {sizes} bytes (received {len(value)})")


def _check_range(what: str, value: bytes, low: int, high: int) -> None:
    if not low <= len(value) <= high:
        raise InvalidConfigError(f"{what} must be {low}-{high} bytes (received {len(value)})")


# ---- CBC block ciphers -----------------------------------------------------
def _cbc_encrypt(algorithm, iv: bytes, plaintext: bytes) -> str:
    padder = padding.PKCS7(algorithm.block_size).padder()
    padded = padder.update(plaintext) + padder.finalize()
    enc = Cipher(algorithm, modes.CBC(iv)).encryptor()
    return _armor(enc.update(padded) + enc.finalize())


def _cbc_decrypt(algorithm, iv: bytes, data: bytes) -> bytes:
    raw = _ciphertext(data)
    block = algorithm.block_size // 8
    if not raw or len(raw) % block:
        raise MalformedInputError(f"ciphertext length must be a multiple of {block} bytes")
    dec = Cipher(algorithm, modes.CBC(iv)).decryptor()
    padded = dec.update(raw) + dec.finalize()
    unpadder = padding.PKCS7(algorithm.block_size).unpadder()
    try:
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as exc:
        raise MalformedInputError("invalid padding (wrong key or IV?)") from exc


# ---- AES -------------------------------------------------------------------
def _validate_aes(ctx: TransformContext) -> None:
    _check_len("AES key", ctx.key_bytes, (16, 24, 32))
    if ctx.submode == AES_GCM:
        _check_len("AES-GCM nonce (IV)", ctx.iv_bytes, (_GCM_NONCE,))
    else:
        _check_len(f"AES-{ctx.submode} IV", ctx.iv_bytes, (16,))


def aes_encrypt(data: bytes, ctx: TransformContext) -> str:
    """AES in CBC (PKCS#7), CTR or GCM mode."""
    if ctx.submode == AES_GCM:
        return _armor(AESGCM(ctx.key_bytes).encrypt(ctx.iv_bytes, data, None))
    if ctx.submode == AES_CTR:
        enc = Cipher(algorithms.AES(ctx.key_bytes), modes.CTR(ctx.iv_bytes)).encryptor()
        return _armor(enc.update(data) + enc.finalize())
    return _cbc_encrypt(algorithms.AES(ctx.key_bytes), ctx.iv_bytes, data)


def aes_decrypt(data: bytes, ctx: TransformContext) -> bytes:
    if ctx.submode == AES_GCM:
        try:
            return AESGCM(ctx.key_bytes).decrypt(ctx.iv_bytes, _ciphertext(data), None)
        except InvalidTag as exc:
            raise MalformedInputError("decryption failed (invalid key, nonce, or ciphertext)") from exc
    if ctx.submode == AES_CTR:
        dec = Cipher(algorithms.AES(ctx.key_bytes), modes.CTR(ctx.iv_bytes)).decryptor()
        return dec.update(_ciphertext(data)) + dec.finalize()
    return _cbc_decrypt(algorithms.AES(ctx.key_bytes), ctx.iv_bytes, data)


# ---- DES family / Blowfish -------------------------------------------------
def _validate_des(ctx: TransformContext) -> None:
    _check_len("DES key", ctx.key_bytes, (8,))
    _check_len("DES IV", ctx.iv_bytes, (8,))


def _single_des(key: bytes) -> TripleDES:
    # EDE with K1 = K2 = K3 is plain DES.
    return TripleDES(key * 3)


def des_encrypt(data: bytes, ctx: TransformContext) -> str:
    """Single DES, CBC with PKCS#7 padding."""
    return _cbc_encrypt(_single_des(ctx.key_bytes), ctx.iv_bytes, data)


def des_decrypt(data: bytes, ctx: TransformContext) -> bytes:
    return _cbc_decrypt(_single_des(ctx.key_bytes), ctx.iv_bytes, data)


def _validate_3des(ctx: TransformContext) -> None:
    _check_len("Triple DES key", ctx.key_bytes, (16, 24))
    _check_len("Triple DES IV", ctx.iv_bytes, (8,))


def tdes_encrypt(data: bytes, ctx: TransformContext) -> str:
    """Triple DES (EDE), CBC with PKCS#7 padding."""
    return _cbc_encrypt(TripleDES(ctx.key_bytes), ctx.iv_bytes, data)


def tdes_decrypt(data: bytes, ctx: TransformContext) -> bytes:
    return _cbc_decrypt(TripleDES(ctx.key_bytes), ctx.iv_bytes, data)


def _validate_blowfish(ctx: TransformContext) -> None:
    _check_range("Blowfish key", ctx.key_bytes, 4, 56)
    _check_len("Blowfish IV", ctx.iv_bytes, (8,))


def blowfish_encrypt(data: bytes, ctx: TransformContext) -> str:
    """Blowfish, CBC with PKCS#7 padding."""
    cipher = Blowfish.new(ctx.key_bytes, Blowfish.MODE_CBC, iv=ctx.iv_bytes)
    return _armor(cipher.encrypt(pad(data, Blowfish.block_size)))


def blowfish_decrypt(data: bytes, ctx: TransformContext) -> bytes:
    raw = _ciphertext(data)
    if not raw or len(raw) % Blowfish.block_size:
        raise MalformedInputError(f"ciphertext length must be a multiple of {Blowfish.block_size} bytes")
    cipher = Blowfish.new(ctx.key_bytes, Blowfish.MODE_CBC, iv=ctx.iv_bytes)
    try:
        return unpad(cipher.decrypt(raw), Blowfish.block_size)
    except ValueError as exc:
        raise MalformedInputError("invalid padding (wrong key or IV?)") from exc


# ---- stream ciphers --------------------------------------------------------
def _validate_rc4(ctx: TransformContext) -> None:
    _check_range("RC4 key", ctx.key_bytes, 5, 256)


def rc4_encrypt(data: bytes, ctx: TransformContext) -> str:
    """RC4 keystream XOR."""
    return _armor(ARC4.new(ctx.key_bytes).encrypt(data))


def rc4_decrypt(data: bytes, ctx: TransformContext) -> bytes:
    return ARC4.new(ctx.key_bytes).decrypt(_ciphertext(data))


def _validate_chacha(ctx: TransformContext) -> None:
    _check_len("ChaCha20 key", ctx.key_bytes, (32,))
    _check_len("ChaCha20 nonce (IV)", ctx.iv_bytes, (_CHACHA_NONCE,))


def _chacha(ctx: TransformContext):
    # RFC 7539 layout: 32-bit little-endian block counter (starting at 0) + 96-bit nonce.
    return Cipher(algorithms.ChaCha20(ctx.key_bytes, b"\x00" * 4 + ctx.iv_bytes), mode=None)


def chacha_encrypt(data: bytes, ctx: TransformContext) -> str:
    """ChaCha20 (RFC 7539, unauthenticated)."""
    enc = _chacha(ctx).encryptor()
    return _armor(enc.update(data) + enc.finalize())


def chacha_decrypt(data: bytes, ctx: TransformContext) -> bytes:
    dec = _chacha(ctx).decryptor()
    return dec.update(_ciphertext(data)) + dec.finalize()


def _validate_salsa(ctx: TransformContext) -> None:
    _check_len("Salsa20 key", ctx.key_bytes, (16, 32))
    _check_len("Salsa20 nonce (IV)", ctx.iv_bytes, (_SALSA_NONCE,))


def salsa_encrypt(data: bytes, ctx: TransformContext) -> str:
    """Salsa20/20 stream cipher."""
    return _armor(Salsa20.new(key=ctx.key_bytes, nonce=ctx.iv_bytes).encrypt(data))


def salsa_decrypt(data: bytes, ctx: TransformContext) -> bytes:
    return Salsa20.new(key=ctx.key_bytes, nonce=ctx.iv_bytes).decrypt(_ciphertext(data))


def _xor(data: bytes, key: bytes) -> bytes:
    return bytes(b ^ key[i % len(key)] for i, b in enumerate(data))


def xor_encrypt(data: bytes, ctx: TransformContext) -> str:
    """Repeating-key XOR."""
    return _armor(_xor(data, ctx.key_bytes))


def xor_decrypt(data: bytes, ctx: TransformContext) -> bytes:
    return _xor(_ciphertext(data), ctx.key_bytes)


# ---- Fernet ----------------------------------------------------------------
def _fernet(ctx: TransformContext) -> Fernet:
    try:
        return Fernet(ctx.key.strip().encode("ascii"))
    except (ValueError, UnicodeEncodeError, binascii.Error) as exc:
        raise InvalidConfigError("Fernet key must be 32 url-safe base64-encoded bytes") from exc


def _validate_fernet(ctx: TransformContext) -> None:
    _fernet(ctx)


def fernet_encrypt(data: bytes, ctx: TransformContext) -> str:
    """Fernet tokens (AES-128-CBC + HMAC-SHA256, timestamped)."""
    return _fernet(ctx).encrypt(data).decode("ascii")


def fernet_decrypt(data: bytes, ctx: TransformContext) -> bytes:
    try:
        return _fernet(ctx).decrypt(b"".join(data.split()))
    except InvalidToken as exc:
        raise MalformedInputError("invalid Fernet token (wrong key or corrupt data)") from exc


# ---- RSA -------------------------------------------------------------------
def _pem(ctx: TransformContext) -> bytes:
    text = ctx.key.strip()
    if "-----BEGIN" in text:
        return text.encode("ascii", errors="replace")
    # Keys pasted as base64-encoded PEM are accepted too.
    try:
        return base64.b64decode("".join(text.split()), validate=True)
    except binascii.Error as exc:
        raise InvalidConfigError("RSA key must be a PEM block (or base64-encoded PEM)") from exc


def _load_rsa(ctx: TransformContext):
    pem = _pem(ctx)
    try:
        if b"PRIVATE KEY" in pem:
            key = serialization.load_pem_private_key(pem, password=None)
        else:
            key = serialization.load_pem_public_key(pem)
    except (ValueError, TypeError) as exc:
        raise InvalidConfigError(f"could not parse RSA key: {exc}") from exc
    if not isinstance(key, (rsa.RSAPrivateKey, rsa.RSAPublicKey)):
        raise InvalidConfigError("key is not an RSA key")
    return key


def _rsa_padding(ctx: TransformContext):
    if ctx.submode == RSA_OAEP:
        return asym_padding.OAEP(
            mgf=asym_padding.MGF1(algorithm=hashes.SHA256()),
            algorithm=hashes.SHA256(),
            label=None,
        )
    return asym_padding.PKCS1v15()


def _validate_rsa(ctx: TransformContext) -> None:
    _load_rsa(ctx)


def rsa_encrypt(data: bytes, ctx: TransformContext) -> str:
    """RSA with PKCS#1 v1.5 or OAEP (SHA-256) padding; accepts a public or private PEM."""
    key = _load_rsa(ctx)
    public = key.public_key() if isinstance(key, rsa.RSAPrivateKey) else key
    try:
        return _armor(public.encrypt(data, _rsa_padding(ctx)))
    except ValueError as exc:
        raise MalformedInputError(f"RSA encryption failed: {exc}") from exc


def rsa_decrypt(data: bytes, ctx: TransformContext) -> bytes:
    key = _load_rsa(ctx)
    if not isinstance(key, rsa.RSAPrivateKey):
        raise InvalidConfigError("RSA decryption requires a private key")
    try:
        return key.decrypt(_ciphertext(data), _rsa_padding(ctx))
    except ValueError as exc:
        raise MalformedInputError(f"RSA decryption failed: {exc}") from exc


def register_all(registry) -> None:
    registry.register(
        define(
            _CAT,
            "AES",
            aes_encrypt,
            aes_decrypt,
            required=_KEY_IV,
            submodes=(AES_CBC, AES_CTR, AES_GCM),
            validate=_validate_aes,
        )
    )
    registry.register(define(_CAT, "DES", des_encrypt, des_decrypt, required=_KEY_IV, validate=_validate_des))
    registry.register(
        define(_CAT, "Triple DES", tdes_encrypt, tdes_decrypt, required=_KEY_IV, validate=_validate_3des)
    )
    registry.register(
        define(_CAT, "Blowfish", blowfish_encrypt, blowfish_decrypt, required=_KEY_IV, validate=_validate_blowfish)
    )
    registry.register(define(_CAT, "RC4", rc4_encrypt, rc4_decrypt, required=_KEY, validate=_validate_rc4))
    registry.register(
        define(_CAT, "ChaCha20", chacha_encrypt, chacha_decrypt, required=_KEY_IV, validate=_validate_chacha)
    )
    registry.register(
        define(_CAT, "Salsa20", salsa_encrypt, salsa_decrypt, required=_KEY_IV, validate=_validate_salsa)
    )
    registry.register(define(_CAT, "XOR", xor_encrypt, xor_decrypt, required=_KEY))
    registry.register(
        define(
            _CAT,
            "Fernet",
            fernet_encrypt,
            fernet_decrypt,
            required=_KEY,
            validate=_validate_fernet,
            deterministic=False,
        )
    )
    registry.register(
        define(
            _CAT,
            "RSA",
            rsa_encrypt,
            rsa_decrypt,
            required=_KEY,
            submodes=(RSA_PKCS1, RSA_OAEP),
            validate=_validate_rsa,
            deterministic=False,
        )
    )
