"""Binary-to-text codecs for the Encode-Decode category."""

from __future__ import annotations

import base64
import codecs
import html
import json
import quopri
import re
from urllib.parse import quote_plus, unquote_plus

import base58
import bencodepy

from ..errors import MalformedInputError
from ..models import Category, ConfigFlag, TransformContext
from . import as_text, define

_CAT = Category.ENCODE_DECODE

HEX_LOWER = "Lowercase"
HEX_UPPER = "Uppercase"
ASCII85 = "Ascii85"
BASE85 = "Base85"

_BAD_PERCENT = re.compile(r"%(?![0-9A-Fa-f]{2})")
_BINARY_TOKEN = re.compile(r"^[01]{1,8}$")


def _compact(data: bytes) -> str:
    # Encoded text may be wrapped across lines by whoever pasted it.
    return "".join(as_text(data).split())


# ---- base16 ----------------------------------------------------------------
def hex_encode(data: bytes, ctx: TransformContext) -> str:
    """Hexadecimal digits, two per byte."""
    out = data.hex()
    return out.upper() if ctx.submode == HEX_UPPER else out


def hex_decode(data: bytes, ctx: TransformContext) -> bytes:
    text = _compact(data)
    if text[:2] in ("0x", "0X"):
        text = text[2:]
    if ctx.case_sensitive:
        expected = text.upper() if ctx.submode == HEX_UPPER else text.lower()
        if text != expected:
            raise MalformedInputError(f"hex input must be {ctx.submode.lower() or 'lowercase'}")
    return bytes.fromhex(text)


# ---- base32 / base58 / base64 ----------------------------------------------
def base32_encode(data: bytes, ctx: TransformContext) -> str:
    """RFC 4648 base32."""
    return base64.b32encode(data).decode("ascii")


def base32_decode(data: bytes, ctx: TransformContext) -> bytes:
    return base64.b32decode(_compact(data))


def base58_encode(data: bytes, ctx: TransformContext) -> str:
    """Bitcoin alphabet base58."""
    return base58.b58encode(data).decode("ascii")


def base58_decode(data: bytes, ctx: TransformContext) -> bytes:
    return base58.b58decode(_compact(data))


def base64_encode(data: bytes, ctx: TransformContext) -> str:
    """Standard base64 with padding."""
    return base64.b64encode(data).decode("ascii")


def base64_decode(data: bytes, ctx: TransformContext) -> bytes:
    return base64.b64decode(_compact(data), validate=True)


def base64url_encode(data: bytes, ctx: TransformContext) -> str:
    """URL-safe base64 alphabet with padding."""
    return base64.urlsafe_b64encode(data).decode("ascii")


def base64url_decode(data: bytes, ctx: TransformContext) -> bytes:
    text = _compact(data)
    text += "=" * (-len(text) % 4)
    return base64.b64decode(text, altchars=b"-_", validate=True)


def base85_encode(data: bytes, ctx: TransformContext) -> str:
    """Adobe Ascii85 (with <~ ~> markers) or RFC 1924 base85."""
    if ctx.submode == BASE85:
        return base64.b85encode(data).decode("ascii")
    return base64.a85encode(data, adobe=True).decode("ascii")


def base85_decode(data: bytes, ctx: TransformContext) -> bytes:
    text = _compact(data)
    if ctx.submode == BASE85:
        return base64.b85decode(text)
    return base64.a85decode(text, adobe=text.startswith("<~"))


# ---- text-level codecs -----------------------------------------------------
def url_encode(data: bytes, ctx: TransformContext) -> str:
    """Query-string percent encoding (space becomes '+')."""
    return quote_plus(as_text(data), safe="")


def url_decode(data: bytes, ctx: TransformContext) -> str:
    text = as_text(data)
    bad = _BAD_PERCENT.search(text)
    if bad:
        raise MalformedInputError(f"invalid percent escape at position {bad.start()}")
    return unquote_plus(text, errors="strict")


def html_encode(data: bytes, ctx: TransformContext) -> str:
    """HTML entity encoding of the five markup-significant characters."""
    return html.escape(as_text(data), quote=True)


def html_decode(data: bytes, ctx: TransformContext) -> str:
    return html.unescape(as_text(data))


def binary_encode(data: bytes, ctx: TransformContext) -> str:
    """Space separated 8-bit groups."""
    return " ".join(f"{b:08b}" for b in data)


def binary_decode(data: bytes, ctx: TransformContext) -> bytes:
    out = bytearray()
    for token in as_text(data).split():
        if not _BINARY_TOKEN.match(token):
            raise MalformedInputError(f"invalid binary group: {token!r}")
        out.append(int(token, 2))
    return bytes(out)


_MORSE = {
    "A": ".-", "B": "-...", "C": "-.-.", "D": "-..", "E": ".", "F": "..-.", "G": "--.",
    "H": "....", "I": "..", "J": ".---", "K": "-.-", "L": ".-..", "M": "--", "N": "-.",
    "O": "---", "P": ".--.", "Q": "--.-", "R": ".-.", "S": "...", "T": "-", "U": "..-",
    "V": "...-", "W": ".--", "X": "-..-", "Y": "-.--", "Z": "--..",
    "1": ".----", "2": "..---", "3": "...--", "4": "....-", "5": ".....",
    "6": "-....", "7": "--...", "8": "---..", "9": "----.", "0": "-----",
    ".": ".-.-.-", ",": "--..--", "?": "..--..", "'": ".----.", "!": "-.-.--",
    "/": "-..-.", "(": "-.--.", ")": "-.--.-", "&": ".-...", ":": "---...",
    ";": "-.-.-.", "=": "-...-", "+": ".-.-.", "-": "-....-", "_": "..--.-",
    '"': ".-..-.", "@": ".--.-.", " ": "/",
}
_MORSE_REVERSE = {v: k for k, v in _MORSE.items()}


def morse_encode(data: bytes, ctx: TransformContext) -> str:
    """International Morse code; letters are upper-cased, unknown characters dropped."""
    return " ".join(_MORSE[ch] for ch in as_text(data).upper() if ch in _MORSE)


def morse_decode(data: bytes, ctx: TransformContext) -> str:
    return "".join(_MORSE_REVERSE.get(tok, "") for tok in as_text(data).split(" ") if tok)


def punycode_encode(data: bytes, ctx: TransformContext) -> str:
    """IDNA (punycode) ASCII form of an internationalized domain name."""
    return as_text(data).strip().encode("idna").decode("ascii")


def punycode_decode(data: bytes, ctx: TransformContext) -> str:
    return as_text(data).strip().encode("ascii").decode("idna")


def rot13(data: bytes, ctx: TransformContext) -> str:
    """ROT13 letter rotation (its own inverse)."""
    return codecs.encode(as_text(data), "rot13")


def rot47(data: bytes, ctx: TransformContext) -> str:
    """ROT47 rotation over printable ASCII (its own inverse)."""
    return "".join(
        chr(33 + (ord(ch) - 33 + 47) % 94) if 33 <= ord(ch) <= 126 else ch for ch in as_text(data)
    )


def qp_encode(data: bytes, ctx: TransformContext) -> str:
    """MIME quoted-printable."""
    return quopri.encodestring(data).decode("ascii")


def qp_decode(data: bytes, ctx: TransformContext) -> bytes:
    try:
        data.decode("ascii")
    except UnicodeDecodeError as exc:
        raise MalformedInputError("quoted-printable input must be ASCII") from exc
    return quopri.decodestring(data)


# ---- bencode ---------------------------------------------------------------
def _to_bencodable(value):
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise MalformedInputError(f"bencode has no floating point numbers: {value!r}")
    if value is None:
        return b""
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, list):
        return [_to_bencodable(v) for v in value]
    return {k.encode("utf-8"): _to_bencodable(v) for k, v in value.items()}


def _from_bencoded(value):
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, list):
        return [_from_bencoded(v) for v in value]
    if isinstance(value, dict):
        return {_from_bencoded(k): _from_bencoded(v) for k, v in value.items()}
    return value


def bencode_encode(data: bytes, ctx: TransformContext) -> str:
    """JSON value to BitTorrent bencode (dictionary keys sorted)."""
    try:
        obj = json.loads(as_text(data))
    except json.JSONDecodeError as exc:
        raise MalformedInputError(f"bencode input must be JSON: {exc}") from exc
    return bencodepy.encode(_to_bencodable(obj)).decode("utf-8")


def bencode_decode(data: bytes, ctx: TransformContext) -> str:
    try:
        obj = bencodepy.decode(data.strip())
    except bencodepy.BencodeDecodeError as exc:
        raise MalformedInputError(f"invalid bencode: {exc}") from exc
    return json.dumps(_from_bencoded(obj), indent=2, ensure_ascii=False)


def register_all(registry) -> None:
    registry.register(
        define(
            _CAT,
            "Base16 (Hex)",
            hex_encode,
            hex_decode,
            required=(ConfigFlag.CASE_SENSITIVE,),
            submodes=(HEX_LOWER, HEX_UPPER),
        )
    )
    registry.register(define(_CAT, "Base32", base32_encode, base32_decode))
    registry.register(define(_CAT, "Base58", base58_encode, base58_decode))
    registry.register(define(_CAT, "Base64", base64_encode, base64_decode))
    registry.register(define(_CAT, "Base64URL", base64url_encode, base64url_decode))
    registry.register(define(_CAT, "Base85", base85_encode, base85_decode, submodes=(ASCII85, BASE85)))
    registry.register(define(_CAT, "URL", url_encode, url_decode))
    registry.register(define(_CAT, "HTML Entities", html_encode, html_decode))
    registry.register(define(_CAT, "Binary", binary_encode, binary_decode))
    registry.register(define(_CAT, "Morse Code", morse_encode, morse_decode, lossy=True))
    registry.register(define(_CAT, "Punycode", punycode_encode, punycode_decode, lossy=True))
    registry.register(define(_CAT, "ROT13", rot13, rot13))
    registry.register(define(_CAT, "ROT47", rot47, rot47))
    registry.register(define(_CAT, "Quoted-Printable", qp_encode, qp_decode))
    registry.register(define(_CAT, "Bencode", bencode_encode, bencode_decode, lossy=True))


