"""Runs a ConversionRequest against the registry.

Every outcome is a ConversionResult: failures are reported through
``result.error`` and never raised to the caller.
"""

from __future__ import annotations

import binascii
import configparser
import csv
import time

import yaml
from cryptography.exceptions import InvalidTag

from ..errors import ConversionError, ErrorKind, MissingConfigError
from ..logger import get_logger
from ..models import (
    ConfigFlag,
    Configuration,
    ConversionRequest,
    ConversionResult,
    MethodDescriptor,
    Mode,
    TransformContext,
)
from .registry import TransformRegistry, registry as default_registry

_logger = get_logger("executor")

DATA_IMAGE_PREFIX = "data:image/"

# Library failures that mean "this input cannot be converted".
_MALFORMED = (
    ValueError,
    TypeError,
    UnicodeError,
    binascii.Error,
    InvalidTag,
    yaml.YAMLError,
    csv.Error,
    configparser.Error,
    OverflowError,
)


def build_context(descriptor: MethodDescriptor, submode: str, config: Configuration) -> TransformContext:
    """Project the configuration onto the fields the method declares."""
    return TransformContext(
        submode=submode,
        key=config.key if descriptor.requires(ConfigFlag.KEY) else "",
        iv=config.iv if descriptor.requires(ConfigFlag.IV) else "",
        case_sensitive=config.case_sensitive if descriptor.requires(ConfigFlag.CASE_SENSITIVE) else False,
    )


def _check_required(descriptor: MethodDescriptor, config: Configuration) -> None:
    if descriptor.requires(ConfigFlag.KEY) and not config.key:
        raise MissingConfigError(f"{descriptor.method} requires a key")
    if descriptor.requires(ConfigFlag.IV) and not config.iv:
        raise MissingConfigError(f"{descriptor.method} requires an IV")


def _normalize_output(output):
    if isinstance(output, (bytes, bytearray)):
        raw = bytes(output)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            return raw
    return output


class TransformExecutor:
    def __init__(self, registry: TransformRegistry | None = None) -> None:
        self._registry = registry if registry is not None else default_registry

    def execute(self, request: ConversionRequest) -> ConversionResult:
        started = time.perf_counter()
        result = self._execute(request)
        _logger.debug(
            "execute %s/%s [%s] mode=%s -> %s in %.2fms",
            getattr(request.category, "value", request.category),
            request.method,
            request.submode or "-",
            getattr(request.mode, "value", request.mode),
            result.error.value if result.error else "ok",
            (time.perf_counter() - started) * 1000.0,
        )
        return result

    def _execute(self, request: ConversionRequest) -> ConversionResult:
        descriptor = self._registry.lookup(request.category, request.method)
        if descriptor is None or descriptor.transform is None:
            return ConversionResult.failure(
                ErrorKind.UNKNOWN_METHOD,
                f"unknown method: {getattr(request.category, 'value', request.category)}/{request.method}",
            )

        try:
            mode = Mode.parse(request.mode)
        except ValueError as e:
            return ConversionResult.failure(ErrorKind.INVALID_CONFIG, str(e))
        if mode is Mode.DECODE and not descriptor.invertible:
            return ConversionResult.failure(ErrorKind.NOT_INVERTIBLE, f"{descriptor.method} is one-way")

        config = request.config or Configuration()
        submode = descriptor.resolve_submode(request.submode)
        try:
            _check_required(descriptor, config)
            if submode is None:
                return ConversionResult.failure(
                    ErrorKind.INVALID_CONFIG,
                    f"{descriptor.method} has no submode {request.submode!r}",
                )
            ctx = build_context(descriptor, submode, config)
            if descriptor.transform.validate is not None:
                descriptor.transform.validate(ctx)
        except ConversionError as e:
            return ConversionResult.failure(e.kind, e.message)

        text = request.input
        if not text:
            return ConversionResult.success("")
        if isinstance(text, str) and text.lstrip().startswith(DATA_IMAGE_PREFIX):
            # Already an image payload; hand it to the sniffer untouched.
            return ConversionResult.success(text.strip())

        data = text if isinstance(text, bytes) else text.encode("utf-8")
        fn = descriptor.transform.forward if mode is Mode.ENCODE else descriptor.transform.inverse
        try:
            output = fn(data, ctx)
        except ConversionError as e:
            return ConversionResult.failure(e.kind, e.message)
        except _MALFORMED as e:
            _logger.debug("transform %s failed: %s", descriptor.method, e)
            return ConversionResult.failure(ErrorKind.MALFORMED_INPUT, str(e) or type(e).__name__)
        except Exception as e:
            _logger.exception("unexpected failure in %s/%s", descriptor.category.value, descriptor.method)
            return ConversionResult.failure(ErrorKind.MALFORMED_INPUT, str(e) or type(e).__name__)
        return ConversionResult.success(_normalize_output(output))


_default_executor: TransformExecutor | None = None


def execute(request: ConversionRequest) -> ConversionResult:
    """Execute against the built-in registry."""
    global _default_executor
    if _default_executor is None:
        _default_executor = TransformExecutor()
    return _default_executor.execute(request)
