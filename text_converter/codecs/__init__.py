"""Transform backends, one module per category.

Each module exposes ``register_all(registry)`` which adds its descriptors to
the registry. Transforms take ``(data: bytes, ctx: TransformContext)`` and
return ``str``, ``bytes`` or (for multi-digest output) ``dict[str, str]``.
"""

from __future__ import annotations

from ..errors import MalformedInputError
from ..models import (
    Category,
    ConfigFlag,
    ConfigValidator,
    Directionality,
    MethodDescriptor,
    Transform,
    TransformFn,
)


def as_text(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedInputError(f"input is not valid UTF-8: {exc}") from exc


def define(
    category: Category,
    name: str,
    forward: TransformFn,
    inverse: TransformFn | None = None,
    *,
    required: tuple[ConfigFlag, ...] = (),
    submodes: tuple[str, ...] = (),
    validate: ConfigValidator | None = None,
    lossy: bool = False,
    deterministic: bool = True,
    description: str = "",
) -> MethodDescriptor:
    """Build a descriptor; a missing inverse makes the method OneWay."""
    if not description and forward.__doc__:
        description = forward.__doc__.strip().splitlines()[0]
    return MethodDescriptor(
        category=category,
        method=name,
        directionality=Directionality.BIDIRECTIONAL if inverse is not None else Directionality.ONE_WAY,
        required_config=frozenset(required),
        submodes=tuple(submodes),
        lossy=lossy,
        deterministic=deterministic,
        description=description,
        transform=Transform(forward=forward, inverse=inverse, validate=validate),
    )
