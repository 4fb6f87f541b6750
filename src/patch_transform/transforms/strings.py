from __future__ import annotations

import base64
import binascii
import hashlib
import json
import re
import zlib
from typing import Any

from patch_transform.errors import TransformError
from patch_transform.models import StringConfig, StringConversionType, StringTransformType
from patch_transform.transforms.sprintf import render_value, sprintf, type_name


def _hash_input(value: Any) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _convert(kind: StringConversionType, value: Any) -> str:
    if kind == StringConversionType.TO_UPPER:
        return render_value(value).upper()
    if kind == StringConversionType.TO_LOWER:
        return render_value(value).lower()
    if kind == StringConversionType.TO_BASE64:
        return base64.b64encode(render_value(value).encode("utf-8")).decode("ascii")
    if kind == StringConversionType.FROM_BASE64:
        try:
            return base64.b64decode(render_value(value), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise TransformError(f"cannot decode base64: {e}") from None
    if kind == StringConversionType.TO_JSON:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    if kind == StringConversionType.TO_SHA1:
        return hashlib.sha1(_hash_input(value)).hexdigest()
    if kind == StringConversionType.TO_SHA256:
        return hashlib.sha256(_hash_input(value)).hexdigest()
    if kind == StringConversionType.TO_SHA512:
        return hashlib.sha512(_hash_input(value)).hexdigest()
    return str(zlib.adler32(_hash_input(value)))


def _regexp(config: StringConfig, value: Any) -> str:
    if config.regexp is None:
        raise TransformError("string transform Regexp requires a regexp block")
    try:
        compiled = re.compile(config.regexp.match)
    except re.error as e:
        raise TransformError(f"invalid regexp {config.regexp.match!r}: {e}") from None
    m = compiled.search(render_value(value))
    if m is None:
        raise TransformError(f"regexp {config.regexp.match!r} had no matches")
    group = config.regexp.group or 0
    if group > compiled.groups:
        raise TransformError(
            f"regexp {config.regexp.match!r} has no group {group}"
        )
    return m.group(group) or ""


def resolve_string(config: StringConfig, value: Any) -> str:
    kind = StringTransformType(config.type or StringTransformType.FORMAT)

    if kind == StringTransformType.FORMAT:
        if config.fmt is None:
            raise TransformError("string transform Format requires fmt")
        return sprintf(config.fmt, value)

    if kind == StringTransformType.CONVERT:
        if config.convert is None:
            raise TransformError("string transform Convert requires convert")
        return _convert(StringConversionType(config.convert), value)

    if kind in (StringTransformType.TRIM_PREFIX, StringTransformType.TRIM_SUFFIX):
        if config.trim is None:
            raise TransformError(f"string transform {kind.value} requires trim")
        text = render_value(value)
        if kind == StringTransformType.TRIM_PREFIX:
            return text.removeprefix(config.trim)
        return text.removesuffix(config.trim)

    if kind == StringTransformType.REGEXP:
        return _regexp(config, value)

    if not isinstance(value, list):
        raise TransformError(f"string transform Join requires an array, got {type_name(value)}")
    separator = config.join.separator if config.join else ""
    return separator.join(render_value(v) for v in value)
