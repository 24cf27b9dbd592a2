from __future__ import annotations

import base64

import pytest
from PySide6.QtCore import QBuffer, QByteArray, QIODevice
from PySide6.QtGui import QColor, QImage

from text_converter.engine.sniffer import MIN_RAW_BASE64, PayloadSniffer, image_mime
from text_converter.errors import ErrorKind
from text_converter.models import ConversionResult


def _png_bytes() -> bytes:
    img = QImage(16, 16, QImage.Format.Format_RGB32)
    for x in range(16):
        for y in range(16):
            img.setPixelColor(x, y, QColor(x * 16, y * 16, (x * y) % 256))
    ba = QByteArray()
    buf = QBuffer(ba)
    buf.open(QIODevice.OpenModeFlag.WriteOnly)
    assert img.save(buf, "PNG")
    buf.close()
    return bytes(ba.data())


@pytest.fixture(scope="module")
def png_b64() -> str:
    return base64.b64encode(_png_bytes()).decode("ascii")


def test_raw_png_base64_is_image(png_b64: str) -> None:
    res = PayloadSniffer().sniff(ConversionResult.success(png_b64))
    assert res.ok
    assert res.is_image
    assert res.output == png_b64


def test_data_uri_png_is_image(png_b64: str) -> None:
    sniffer = PayloadSniffer()
    assert sniffer.classify(ConversionResult.success(f"data:image/png;base64,{png_b64}"))


def test_plain_text_is_not_image() -> None:
    sniffer = PayloadSniffer()
    for text in ("hello world", "aGVsbG8=", "", "!!!"):
        res = sniffer.sniff(ConversionResult.success(text))
        assert res.ok
        assert not res.is_image


def test_mappings_bytes_and_errors_are_never_images(png_b64: str) -> None:
    sniffer = PayloadSniffer(loader=lambda data: True)
    assert not sniffer.classify(ConversionResult.success({"MD5": png_b64}))
    assert not sniffer.classify(ConversionResult.success(b"\x89PNG\r\n\x1a\n"))
    assert not sniffer.classify(ConversionResult.failure(ErrorKind.MALFORMED_INPUT))


def test_data_uri_with_bad_base64() -> None:
    res = PayloadSniffer().sniff(ConversionResult.success("data:image/png;base64,@@@not base64@@@"))
    assert res.error is ErrorKind.INVALID_BASE64_DATA
    assert res.message == "Invalid Base64 Data"
    assert res.output is None


def test_truncated_png_is_kept_as_text() -> None:
    truncated = base64.b64encode(b"\x89PNG\r\n\x1a\n" + b"\x00" * 120).decode("ascii")
    res = PayloadSniffer().sniff(ConversionResult.success(truncated))
    assert res.ok
    assert not res.is_image
    assert res.output == truncated


def test_data_uri_that_does_not_load() -> None:
    payload = base64.b64encode(b"\x89PNG\r\n\x1a\n" + b"\x00" * 8).decode("ascii")
    res = PayloadSniffer().sniff(ConversionResult.success(f"data:image/png;base64,{payload}"))
    assert res.error is ErrorKind.IMAGE_LOAD_FAILED
    assert res.message == "Failed to load image"
    assert res.output is None


@pytest.mark.parametrize("text", ["Qk1h", "R0lGODlh", base64.b64encode(b"BMW car").decode("ascii")])
def test_short_base64_with_magic_prefix_is_text(text: str) -> None:
    res = PayloadSniffer(loader=lambda data: True).sniff(ConversionResult.success(text))
    assert res.ok
    assert not res.is_image
    assert res.output == text


def test_long_text_starting_with_bm_is_not_an_image() -> None:
    text = base64.b64encode(b"BMW " + b"car review, " * 10).decode("ascii")
    assert len(text) >= MIN_RAW_BASE64
    res = PayloadSniffer().sniff(ConversionResult.success(text))
    assert res.ok
    assert not res.is_image
    assert res.output == text


def test_loader_is_injectable() -> None:
    seen: list[bytes] = []

    def loader(data: bytes) -> bool:
        seen.append(data)
        return True

    gif = base64.b64encode(b"GIF89a" + b"\x00" * 90).decode("ascii")
    assert PayloadSniffer(loader=loader).classify(ConversionResult.success(gif))
    assert seen and seen[0].startswith(b"GIF89a")


def test_loader_exception_is_not_an_image() -> None:
    def loader(data: bytes) -> bool:
        raise RuntimeError("decoder crashed")

    jpeg = base64.b64encode(b"\xff\xd8\xff\xe0" + b"\x00" * 90).decode("ascii")
    res = PayloadSniffer(loader=loader).sniff(ConversionResult.success(jpeg))
    assert res.ok
    assert not res.is_image

    uri = PayloadSniffer(loader=loader).sniff(ConversionResult.success(f"data:image/jpeg;base64,{jpeg}"))
    assert uri.error is ErrorKind.IMAGE_LOAD_FAILED


@pytest.mark.parametrize(
    ("head", "mime"),
    [
        (b"\x89PNG\r\n\x1a\n", "image/png"),
        (b"\xff\xd8\xff\xe0", "image/jpeg"),
        (b"GIF87a", "image/gif"),
        (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"BM\x00\x00", "image/bmp"),
        (b"hello", None),
    ],
)
def test_image_mime(head: bytes, mime: str | None) -> None:
    assert image_mime(head) == mime


def test_image_source(png_b64: str) -> None:
    sniffer = PayloadSniffer()
    assert sniffer.image_source(png_b64) == f"data:image/png;base64,{png_b64}"
    gif = base64.b64encode(b"GIF89a").decode("ascii")
    assert sniffer.image_source(gif).startswith("data:image/gif;base64,")
    uri = f"data:image/png;base64,{png_b64}"
    assert sniffer.image_source(uri) == uri
