from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Sequence

from patch_transform.errors import (
    CombineConfigMissing,
    CombineRequiresVariables,
    TransformError,
)
from patch_transform.models import Combine, CombineStrategy
from patch_transform.transforms.sprintf import sprintf


def validate_combine(config: Combine) -> None:
    """Check that *config* names variables and carries its strategy block."""
    if not config.variables:
        raise CombineRequiresVariables()
    if config.strategy != CombineStrategy.STRING.value or config.string is None:
        raise CombineConfigMissing(config.strategy)


def combine(config: Any, values: Sequence[Any]) -> Any:
    """
    Merge the resolved variable values into a single value.

    Args:
        config: A ``Combine`` model or its wire mapping.
        values: One resolved value per variable, in declaration order.

    Returns:
        For the ``string`` strategy, ``fmt`` with each value substituted in
        order.

    Raises:
        CombineConfigMissing: if the strategy is unknown or its block is absent.
        TransformError: if the format does not take exactly ``len(values)``
            values.
    """
    if isinstance(config, Mapping):
        config = Combine.model_validate(config)
    validate_combine(config)
    try:
        return sprintf(config.string.fmt, *values)
    except TransformError as e:
        raise TransformError(f"cannot combine values with strategy string: {e}") from e
