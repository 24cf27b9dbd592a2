"""Error taxonomy shared by the executor, sniffer, config store and tag manager."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    UNKNOWN_METHOD = "UnknownMethod"
    NOT_INVERTIBLE = "NotInvertible"
    MISSING_CONFIG = "MissingConfig"
    INVALID_CONFIG = "InvalidConfig"
    MALFORMED_INPUT = "MalformedInput"
    INVALID_BASE64_DATA = "InvalidBase64Data"
    IMAGE_LOAD_FAILED = "ImageLoadFailed"
    DUPLICATE_ID = "DuplicateId"


class ConverterError(Exception):
    """Base class for errors that carry an ErrorKind."""

    kind: ErrorKind = ErrorKind.MALFORMED_INPUT

    def __init__(self, message: str = "", kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""


class ConversionError(ConverterError):
    """Raised inside transforms; the executor turns it into a failed result."""


class MissingConfigError(ConversionError):
    kind = ErrorKind.MISSING_CONFIG


class InvalidConfigError(ConversionError):
    kind = ErrorKind.INVALID_CONFIG


class MalformedInputError(ConversionError):
    kind = ErrorKind.MALFORMED_INPUT


class ConfigValidationError(ConverterError, ValueError):
    """A configuration update with unknown fields or wrongly typed values."""

    kind = ErrorKind.INVALID_CONFIG


class DuplicateTagError(ConverterError, KeyError):
    kind = ErrorKind.DUPLICATE_ID

    def __str__(self) -> str:
        return self.message
