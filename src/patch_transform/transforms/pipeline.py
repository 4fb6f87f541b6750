from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from patch_transform.errors import InvalidConfiguration, TransformError
from patch_transform.models import (
    ConvertTransform,
    MapTransform,
    MatchTransform,
    MathTransform,
    StringTransform,
    load_transform,
)
from patch_transform.transforms.arithmetic import resolve_math
from patch_transform.transforms.convert import resolve_convert
from patch_transform.transforms.lookup import resolve_map, resolve_match
from patch_transform.transforms.strings import resolve_string

logger = logging.getLogger(__name__)


def resolve(transform: Any, value: Any) -> Any:
    """Run a single transform step over *value*."""
    t = load_transform(transform)
    if isinstance(t, ConvertTransform):
        return resolve_convert(t.convert, value)
    if isinstance(t, MathTransform):
        return resolve_math(t.math, value)
    if isinstance(t, MapTransform):
        return resolve_map(t.map, value)
    if isinstance(t, MatchTransform):
        return resolve_match(t.match, value)
    if isinstance(t, StringTransform):
        return resolve_string(t.string, value)
    raise InvalidConfiguration(f"transform type {getattr(t, 'type', t)!r} is unsupported")


def resolve_transforms(transforms: Optional[Iterable[Any]], value: Any) -> Any:
    """
    Fold the ordered transform steps over *value*.

    Each step consumes the previous step's output. An empty or missing list
    returns *value* unchanged.

    Args:
        transforms: Transform models or their wire mappings.
        value: The input value.

    Returns:
        The output of the last step.

    Raises:
        TransformError: naming the index of the first failing step; no
            partially transformed value is returned.
    """
    out = value
    for i, transform in enumerate(transforms or ()):
        try:
            out = resolve(transform, out)
        except TransformError as e:
            raise TransformError(f"transform at index {i} returned error: {e}") from e
        logger.debug("transform %d produced %r", i, out)
    return out
