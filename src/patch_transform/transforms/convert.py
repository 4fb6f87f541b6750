"""Convert transform: coerce a value to a declared scalar or JSON type.

Only lossless conversions are allowed; ``2.5 -> int64`` or ``7 -> bool`` is
an error rather than a silent truncation.
"""

from __future__ import annotations

import json
import math
import re
from decimal import ROUND_CEILING, Decimal, InvalidOperation
from typing import Any, Callable

from patch_transform.errors import TransformError
from patch_transform.models import ConvertConfig, ConvertFormat, ConvertToType
from patch_transform.transforms.sprintf import format_float, type_name

_INT_RE = re.compile(r"^[+-]?\d+$")
_QUANTITY_RE = re.compile(
    r"^(?P<number>[+-]?(?:\d+\.?\d*|\.\d+))"
    r"(?:(?P<exponent>[eE][+-]?\d+)|(?P<suffix>Ki|Mi|Gi|Ti|Pi|Ei|n|u|m|k|M|G|T|P|E))?$"
)
_QUANTITY_SUFFIXES = {
    "n": Decimal("1e-9"),
    "u": Decimal("1e-6"),
    "m": Decimal("1e-3"),
    "k": Decimal("1e3"),
    "M": Decimal("1e6"),
    "G": Decimal("1e9"),
    "T": Decimal("1e12"),
    "P": Decimal("1e15"),
    "E": Decimal("1e18"),
    "Ki": Decimal(2**10),
    "Mi": Decimal(2**20),
    "Gi": Decimal(2**30),
    "Ti": Decimal(2**40),
    "Pi": Decimal(2**50),
    "Ei": Decimal(2**60),
}
_TRUE_STRINGS = {"1", "t", "true"}
_FALSE_STRINGS = {"0", "f", "false"}


def _fail(value: Any, to_type: str, reason: str = "") -> TransformError:
    msg = f"cannot convert {type_name(value)} {value!r} to {to_type}"
    return TransformError(f"{msg}: {reason}" if reason else msg)


# ----------------------------------------------------------------------
# Scalar conversions
# ----------------------------------------------------------------------

def _string_to_int(value: str) -> int:
    if not _INT_RE.match(value.strip()):
        raise _fail(value, "int64", "not a base-10 integer")
    return int(value.strip())


def _string_to_float(value: str) -> float:
    try:
        out = float(value.strip())
    except ValueError:
        raise _fail(value, "float64", "not a number") from None
    return out


def _string_to_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    raise _fail(value, "bool", "not a boolean literal")


def _int_to_bool(value: int) -> bool:
    if value not in (0, 1):
        raise _fail(value, "bool", "only 0 and 1 are booleans")
    return value == 1


def _float_to_int(value: float) -> int:
    if not math.isfinite(value) or not value.is_integer():
        raise _fail(value, "int64", "value has a fractional part")
    return int(value)


def _float_to_bool(value: float) -> bool:
    if value not in (0.0, 1.0):
        raise _fail(value, "bool", "only 0 and 1 are booleans")
    return value == 1.0


_CONVERSIONS: dict[tuple[str, str], Callable[[Any], Any]] = {
    ("string", "int64"): _string_to_int,
    ("string", "float64"): _string_to_float,
    ("string", "bool"): _string_to_bool,
    ("int64", "string"): str,
    ("int64", "float64"): float,
    ("int64", "bool"): _int_to_bool,
    ("float64", "string"): format_float,
    ("float64", "int64"): _float_to_int,
    ("float64", "bool"): _float_to_bool,
    ("bool", "string"): lambda v: "true" if v else "false",
    ("bool", "int64"): int,
    ("bool", "float64"): float,
}


# ----------------------------------------------------------------------
# Formats
# ----------------------------------------------------------------------

def parse_quantity(value: str) -> Decimal:
    """Parse a resource quantity such as ``500m``, ``1Gi`` or ``2e3``."""
    m = _QUANTITY_RE.match(value.strip())
    if not m:
        raise _fail(value, "quantity", "not a valid quantity")
    try:
        number = Decimal(m.group("number"))
        if m.group("exponent"):
            number = number.scaleb(int(m.group("exponent")[1:]))
        elif m.group("suffix"):
            number = number * _QUANTITY_SUFFIXES[m.group("suffix")]
    except InvalidOperation:
        raise _fail(value, "quantity", "not a valid quantity") from None
    return number


def _convert_quantity(value: Any, to_type: str) -> Any:
    if not isinstance(value, str):
        raise _fail(value, to_type, "quantity format requires string input")
    quantity = parse_quantity(value)
    if to_type == "float64":
        return float(quantity)
    if to_type == "int64":
        return int(quantity.to_integral_value(rounding=ROUND_CEILING))
    raise _fail(value, to_type, "quantity format only converts to int64 or float64")


def _convert_json(value: Any, to_type: str) -> Any:
    if isinstance(value, str) and to_type == "string":
        return value
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError as e:
            raise _fail(value, to_type, f"invalid JSON: {e}") from None
        if to_type in ("object", "array"):
            return _check_type(decoded, to_type)
        return _convert_plain(decoded, to_type)
    if to_type == "string":
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return _convert_plain(value, to_type)


def _check_type(value: Any, to_type: str) -> Any:
    if type_name(value) != to_type:
        raise TransformError(
            f"expected JSON {to_type}, got {type_name(value)}"
        )
    return value


def _convert_plain(value: Any, to_type: str) -> Any:
    from_type = type_name(value)
    if from_type == to_type:
        return value
    conv = _CONVERSIONS.get((from_type, to_type))
    if conv is None:
        raise TransformError(
            f"conversion from {from_type} to {to_type} is not supported"
        )
    return conv(value)


def resolve_convert(config: ConvertConfig, value: Any) -> Any:
    to_type = ConvertToType(config.to_type).value
    if to_type == ConvertToType.INT.value:
        to_type = ConvertToType.INT64.value
    fmt = ConvertFormat(config.format or ConvertFormat.NONE)

    if fmt == ConvertFormat.QUANTITY:
        return _convert_quantity(value, to_type)
    if fmt == ConvertFormat.JSON:
        return _convert_json(value, to_type)
    return _convert_plain(value, to_type)
