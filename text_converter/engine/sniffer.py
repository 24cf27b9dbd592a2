"""Detects base64 image payloads in conversion output so the host can preview them."""

from __future__ import annotations

import base64
import binascii
import re
from collections.abc import Callable

from PySide6.QtGui import QImage

from ..errors import ErrorKind
from ..logger import get_logger
from ..models import ConversionResult

_logger = get_logger("sniffer")

_DATA_URI = re.compile(r"^data:image/([\w.+-]+);base64,(.*)$", re.DOTALL | re.IGNORECASE)
# Raw base64 shorter than this is never treated as an image.
MIN_RAW_BASE64 = 100

# (mime, predicate over the decoded leading bytes)
_MAGIC: tuple[tuple[str, Callable[[bytes], bool]], ...] = (
    ("image/png", lambda b: b.startswith(b"\x89PNG\r\n\x1a\n")),
    ("image/jpeg", lambda b: b.startswith(b"\xff\xd8\xff")),
    ("image/gif", lambda b: b.startswith((b"GIF87a", b"GIF89a"))),
    ("image/webp", lambda b: len(b) >= 12 and b[:4] == b"RIFF" and b[8:12] == b"WEBP"),
    ("image/bmp", lambda b: b.startswith(b"BM")),
)


def image_mime(data: bytes) -> str | None:
    for mime, matches in _MAGIC:
        if matches(data):
            return mime
    return None


def _strict_b64(text: str) -> bytes:
    return base64.b64decode("".join(text.split()), validate=True)


def qimage_loads(data: bytes) -> bool:
    img = QImage()
    return bool(img.loadFromData(data)) and not img.isNull()


class PayloadSniffer:
    def __init__(self, loader: Callable[[bytes], bool] | None = None) -> None:
        self._loader = loader or qimage_loads

    def _loads(self, data: bytes) -> bool:
        try:
            return bool(self._loader(data))
        except Exception as e:
            _logger.debug("image loader raised: %s", e)
            return False

    def sniff(self, result: ConversionResult) -> ConversionResult:
        """Return `result` with is_image set; a broken data:image payload becomes a failure."""
        if not result.ok or not isinstance(result.output, str):
            return result.with_image(False)
        text = result.output.strip()
        if not text:
            return result.with_image(False)

        m = _DATA_URI.match(text)
        if m:
            try:
                data = _strict_b64(m.group(2))
            except (binascii.Error, ValueError):
                return ConversionResult.failure(ErrorKind.INVALID_BASE64_DATA, "Invalid Base64 Data")
            if not self._loads(data):
                return ConversionResult.failure(ErrorKind.IMAGE_LOAD_FAILED, "Failed to load image")
            return result.with_image(True)

        payload = "".join(text.split())
        if len(payload) < MIN_RAW_BASE64:
            return result.with_image(False)
        try:
            data = _strict_b64(payload)
        except (binascii.Error, ValueError):
            # Ordinary text.
            return result.with_image(False)
        if image_mime(data) is None:
            return result.with_image(False)
        if not self._loads(data):
            _logger.debug("base64 output looks like %s but does not load; keeping it as text", image_mime(data))
            return result.with_image(False)
        return result.with_image(True)

    def classify(self, result: ConversionResult) -> bool:
        return self.sniff(result).is_image

    def image_source(self, text: str) -> str:
        """A data: URI for the renderer; PNG is assumed when no magic number matches."""
        text = text.strip()
        if _DATA_URI.match(text):
            return text
        payload = "".join(text.split())
        try:
            mime = image_mime(_strict_b64(payload)) or "image/png"
        except (binascii.Error, ValueError):
            mime = "image/png"
        return f"data:{mime};base64,{payload}"
