from __future__ import annotations

from typing import Any

from patch_transform.errors import TransformError
from patch_transform.models import MathConfig, MathType
from patch_transform.transforms.sprintf import is_number, type_name


def _same_kind(value: Any, bound: Any) -> Any:
    # Clamping returns the bound in the numeric type of the input.
    if isinstance(value, float):
        return float(bound)
    return bound


def resolve_math(config: MathConfig, value: Any) -> Any:
    """Apply a Multiply, ClampMin or ClampMax step.

    The numeric type of *value* is preserved: ``int * int`` stays an int,
    a float input stays a float.
    """
    if not is_number(value):
        raise TransformError(
            f"input is required to be a number for math transformer, got {type_name(value)}"
        )

    kind = MathType(config.type or MathType.MULTIPLY)
    if kind == MathType.MULTIPLY:
        if config.multiply is None:
            raise TransformError("math transform requires a multiply value")
        return value * config.multiply

    if kind == MathType.CLAMP_MIN:
        if config.clamp_min is None:
            raise TransformError("math transform requires a clampMin value")
        return _same_kind(value, config.clamp_min) if value < config.clamp_min else value

    if config.clamp_max is None:
        raise TransformError("math transform requires a clampMax value")
    return _same_kind(value, config.clamp_max) if value > config.clamp_max else value
