"""Positional ``%``-verb formatting with strict arity.

Formats follow the printf conventions rule authors already write
(``"%s-%s"``, ``"%05d"``, ``"%.2f"``, ``"%t"``, ``"%q"``); values render the
way a JSON document would spell them (``true``/``false``, ``4`` rather than
``4.0``). Unlike printf, a mismatch between the number of verbs and the
number of values is an error instead of an inline marker.
"""

from __future__ import annotations

import json
import math
import re
from decimal import Decimal
from typing import Any

from patch_transform.errors import TransformError

_VERB_RE = re.compile(r"%([-+# 0]*)(\d+)?(?:\.(\d+))?([a-zA-Z%])")


def is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_number(value: Any) -> bool:
    return is_integer(value) or isinstance(value, float)


def type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int64"
    if isinstance(value, float):
        return "float64"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def format_float(value: float) -> str:
    """Shortest positional rendering of a float (``4.0`` -> ``"4"``)."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    text = repr(value)
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    if text.endswith(".0"):
        text = text[:-2]
    return text


def render_value(value: Any) -> str:
    """Render any document value as text."""
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_float(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def count_verbs(fmt: str) -> int:
    return sum(1 for m in _VERB_RE.finditer(fmt) if m.group(4) != "%")


def _format_one(verb: str, spec: str, value: Any) -> str:
    if verb in ("s", "v"):
        return (spec + "s") % render_value(value)
    if verb == "q":
        return (spec + "s") % json.dumps(render_value(value), ensure_ascii=False)
    if verb == "t":
        if not isinstance(value, bool):
            raise TransformError(f"%t expects a bool, got {type_name(value)}")
        return (spec + "s") % render_value(value)
    if verb == "d":
        if not is_integer(value):
            raise TransformError(f"%d expects an integer, got {type_name(value)}")
        return (spec + "d") % value
    if verb in ("x", "X"):
        if is_integer(value):
            return (spec + verb) % value
        if isinstance(value, str):
            digits = value.encode("utf-8").hex()
            return (spec + "s") % (digits.upper() if verb == "X" else digits)
        raise TransformError(f"%{verb} expects an integer or string, got {type_name(value)}")
    if verb in ("e", "E", "f", "F", "g", "G"):
        if not is_number(value):
            raise TransformError(f"%{verb} expects a number, got {type_name(value)}")
        return (spec + verb) % value
    raise TransformError(f"unsupported format verb %{verb}")


def sprintf(fmt: str, *values: Any) -> str:
    """Substitute *values* into *fmt*, one per verb, in order.

    Raises:
        TransformError: if the verb count differs from ``len(values)``, a
            verb is unknown, or a value does not suit its verb.
    """
    expected = count_verbs(fmt)
    if expected != len(values):
        raise TransformError(
            f"format {fmt!r} expects {expected} value(s), got {len(values)}"
        )

    out: list[str] = []
    pos = 0
    remaining = iter(values)
    for m in _VERB_RE.finditer(fmt):
        out.append(fmt[pos:m.start()])
        pos = m.end()
        flags, width, precision, verb = m.groups()
        if verb == "%":
            out.append("%")
            continue
        spec = "%" + flags + (width or "")
        if precision is not None:
            spec += "." + precision
        out.append(_format_one(verb, spec, next(remaining)))
    out.append(fmt[pos:])
    return "".join(out)
