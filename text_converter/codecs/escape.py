"""Escape/unescape transforms. Encode is "escape", Decode is "unescape"."""

from __future__ import annotations

import re

from ..errors import MalformedInputError
from ..models import Category, TransformContext
from . import as_text, define
from .encoding import url_decode, url_encode

_CAT = Category.ESCAPE

_LITERAL_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "'": "\\'",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}
_LITERAL_UNESCAPES = {v[1]: k for k, v in _LITERAL_ESCAPES.items()}
_LITERAL_SEQ = re.compile(r"\\(x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|.|\Z)", re.DOTALL)
_UNICODE_SEQ = re.compile(r"\\u([0-9a-fA-F]{4})|\\U([0-9a-fA-F]{8})|\\x([0-9a-fA-F]{2})")

_HTML_ESCAPES = (("&", "&amp;"), ("<", "&lt;"), (">", "&gt;"), ('"', "&quot;"), ("'", "&#x27;"))
_REGEX_SPECIALS = frozenset("\\.*+?|()[]{}^$")


def literal_escape(data: bytes, ctx: TransformContext) -> str:
    """Backslash escapes for a double- or single-quoted string literal."""
    out = []
    for ch in as_text(data):
        if ch in _LITERAL_ESCAPES:
            out.append(_LITERAL_ESCAPES[ch])
        elif ord(ch) < 32:
            out.append(f"\\x{ord(ch):02x}")
        else:
            out.append(ch)
    return "".join(out)


def literal_unescape(data: bytes, ctx: TransformContext) -> str:
    text = as_text(data)

    def _sub(m: re.Match) -> str:
        seq = m.group(1)
        if not seq:
            raise MalformedInputError("dangling backslash at end of input")
        if seq[0] in "xu" and len(seq) > 1:
            return chr(int(seq[1:], 16))
        if seq in _LITERAL_UNESCAPES:
            return _LITERAL_UNESCAPES[seq]
        raise MalformedInputError(f"unknown escape sequence \\{seq} at position {m.start()}")

    return _LITERAL_SEQ.sub(_sub, text)


def unicode_escape(data: bytes, ctx: TransformContext) -> str:
    """\\xNN for Latin-1, \\uNNNN (or \\UNNNNNNNN) for everything else non-ASCII."""
    out = []
    for ch in as_text(data):
        cp = ord(ch)
        if cp < 128 and (cp >= 32 or ch in "\n\t\r"):
            out.append(ch)
        elif cp < 256:
            out.append(f"\\x{cp:02x}")
        elif cp <= 0xFFFF:
            out.append(f"\\u{cp:04x}")
        else:
            out.append(f"\\U{cp:08x}")
    return "".join(out)


def unicode_unescape(data: bytes, ctx: TransformContext) -> str:
    def _sub(m: re.Match) -> str:
        digits = m.group(1) or m.group(2) or m.group(3)
        cp = int(digits, 16)
        if cp > 0x10FFFF:
            raise MalformedInputError(f"code point out of range: {m.group(0)}")
        return chr(cp)

    return _UNICODE_SEQ.sub(_sub, as_text(data))


def html_escape(data: bytes, ctx: TransformContext) -> str:
    """XML-safe entity escaping."""
    text = as_text(data)
    for raw, entity in _HTML_ESCAPES:
        text = text.replace(raw, entity)
    return text


def html_unescape(data: bytes, ctx: TransformContext) -> str:
    text = as_text(data).replace("&#39;", "'")
    for raw, entity in reversed(_HTML_ESCAPES):
        text = text.replace(entity, raw)
    return text


def regex_escape(data: bytes, ctx: TransformContext) -> str:
    """Backslash-escape regular expression metacharacters."""
    return "".join("\\" + ch if ch in _REGEX_SPECIALS else ch for ch in as_text(data))


def regex_unescape(data: bytes, ctx: TransformContext) -> str:
    out = []
    escaped = False
    for ch in as_text(data):
        if escaped:
            out.append(ch)
            escaped = False
        elif ch == "\\":
            escaped = True
        else:
            out.append(ch)
    return "".join(out)


def register_all(registry) -> None:
    registry.register(define(_CAT, "String Literal", literal_escape, literal_unescape))
    registry.register(define(_CAT, "Unicode/Hex", unicode_escape, unicode_unescape, lossy=True))
    registry.register(define(_CAT, "HTML/XML", html_escape, html_unescape))
    registry.register(define(_CAT, "URL", url_encode, url_decode, description="Percent-escape for query strings"))
    registry.register(define(_CAT, "Regex", regex_escape, regex_unescape))
