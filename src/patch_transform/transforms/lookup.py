from __future__ import annotations

import copy
import re
from typing import Any

from patch_transform.errors import TransformError
from patch_transform.models import (
    MapConfig,
    MatchConfig,
    MatchFallbackTo,
    MatchPattern,
    MatchPatternType,
)
from patch_transform.transforms.sprintf import render_value, type_name


def resolve_map(config: MapConfig, value: Any) -> Any:
    """Look the value's text rendering up in ``pairs``."""
    if isinstance(value, (dict, list)):
        raise TransformError(f"type {type_name(value)} is not supported for map transform")
    key = render_value(value)
    if key in config.pairs:
        return copy.deepcopy(config.pairs[key])
    if config.has_fallback:
        return copy.deepcopy(config.fallback_value)
    raise TransformError(f"key {key} is not found in map")


def _matches(pattern: MatchPattern, value: Any) -> bool:
    kind = MatchPatternType(pattern.type)
    if kind == MatchPatternType.LITERAL:
        if pattern.literal is None:
            raise TransformError("literal pattern requires a literal value")
        return isinstance(value, str) and value == pattern.literal

    if pattern.regexp is None:
        raise TransformError("regexp pattern requires a regexp value")
    try:
        compiled = re.compile(pattern.regexp)
    except re.error as e:
        raise TransformError(f"invalid regexp {pattern.regexp!r}: {e}") from None
    return isinstance(value, str) and compiled.search(value) is not None


def resolve_match(config: MatchConfig, value: Any) -> Any:
    """Return the result of the first matching pattern.

    With no match the configured ``fallbackValue`` is returned, or the input
    itself when ``fallbackTo`` is ``Input``.
    """
    for i, pattern in enumerate(config.patterns):
        try:
            matched = _matches(pattern, value)
        except TransformError as e:
            raise TransformError(f"cannot match pattern at index {i}: {e}") from e
        if matched:
            return copy.deepcopy(pattern.result)

    if config.fallback_to == MatchFallbackTo.INPUT:
        return value
    return copy.deepcopy(config.fallback_value)
