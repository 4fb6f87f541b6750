"""Field-path resolution over JSON-like documents.

Field paths address a location in a document with dot-separated keys,
bracketed integer indices, bracketed keys (for keys that contain dots) and
the ``[*]`` wildcard::

    metadata.labels[app.kubernetes.io/name]
    spec.containers[0].image
    metadata.ownerReferences[*].name

``Paved`` wraps a document and supplies get / set / merge / wildcard
expansion. Writes create intermediate maps and lists as needed.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

from patch_transform.errors import FieldPathError, FieldPathNotFound

_WILDCARD_TOKEN = "*"


@dataclass(frozen=True)
class Segment:
    """One step of a parsed field path."""

    kind: str  # "field" | "index" | "wildcard"
    field: str = ""
    index: int = 0

    FIELD = "field"
    INDEX = "index"
    WILDCARD = "wildcard"

    @classmethod
    def of_field(cls, name: str) -> "Segment":
        if name == _WILDCARD_TOKEN:
            return cls(cls.WILDCARD)
        return cls(cls.FIELD, field=name)

    @classmethod
    def of_index(cls, index: int) -> "Segment":
        return cls(cls.INDEX, index=index)


def _bracket_segment(content: str, path: str) -> Segment:
    if content == "":
        raise FieldPathError(f"{path}: empty brackets")
    if content == _WILDCARD_TOKEN:
        return Segment(Segment.WILDCARD)
    if content.isdigit():
        return Segment.of_index(int(content))
    return Segment(Segment.FIELD, field=content)


def parse(path: str) -> list[Segment]:
    """Parse a field path into segments.

    Raises:
        FieldPathError: when the path is empty or malformed.
    """
    if not isinstance(path, str) or path == "":
        raise FieldPathError("field path must be a non-empty string")

    segments: list[Segment] = []
    pos = 0
    length = len(path)
    while pos < length:
        ch = path[pos]
        if ch == "[":
            end = path.find("]", pos)
            if end == -1:
                raise FieldPathError(f"{path}: unterminated '[' at position {pos}")
            segments.append(_bracket_segment(path[pos + 1:end], path))
            pos = end + 1
        elif ch in ".]":
            raise FieldPathError(f"{path}: unexpected '{ch}' at position {pos}")
        else:
            end = pos
            while end < length and path[end] not in ".[]":
                end += 1
            segments.append(Segment.of_field(path[pos:end]))
            pos = end

        if pos < length:
            if path[pos] == ".":
                pos += 1
                if pos == length or path[pos] in ".[]":
                    raise FieldPathError(
                        f"{path}: expected a field name at position {pos}"
                    )
            elif path[pos] != "[":
                raise FieldPathError(f"{path}: unexpected '{path[pos]}' at position {pos}")
    return segments


def to_path(segments: list[Segment]) -> str:
    """Render segments back into field-path syntax."""
    parts: list[str] = []
    for seg in segments:
        if seg.kind == Segment.INDEX:
            parts.append(f"[{seg.index}]")
        elif seg.kind == Segment.WILDCARD:
            parts.append("[*]")
        elif any(c in seg.field for c in ".[]"):
            parts.append(f"[{seg.field}]")
        elif parts:
            parts.append(f".{seg.field}")
        else:
            parts.append(seg.field)
    return "".join(parts)


def has_wildcards(path: str) -> bool:
    return any(seg.kind == Segment.WILDCARD for seg in parse(path))


def _container_for(segment: Segment) -> Any:
    return [] if segment.kind == Segment.INDEX else {}


def _merge(dst: Any, src: Any, keep_map_values: bool, append_slice: bool) -> Any:
    if dst is None or src is None:
        return copy.deepcopy(src)
    if isinstance(dst, dict) and isinstance(src, dict):
        out = dict(dst)
        for key, val in src.items():
            if key not in out or out[key] is None:
                out[key] = copy.deepcopy(val)
            elif isinstance(out[key], dict) and isinstance(val, dict):
                out[key] = _merge(out[key], val, keep_map_values, append_slice)
            elif isinstance(out[key], list) and isinstance(val, list) and append_slice:
                out[key] = _merge(out[key], val, keep_map_values, append_slice)
            elif not keep_map_values:
                out[key] = copy.deepcopy(val)
        return out
    if isinstance(dst, list) and isinstance(src, list) and append_slice:
        return dst + [copy.deepcopy(v) for v in src if v not in dst]
    return copy.deepcopy(src)


class Paved:
    """A document addressable by field path."""

    def __init__(self, obj: dict[str, Any]) -> None:
        if not isinstance(obj, dict):
            raise FieldPathError(
                f"document must be an object, got {type(obj).__name__}"
            )
        self._obj = obj

    @property
    def object(self) -> dict[str, Any]:
        return self._obj

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_value(self, path: str) -> Any:
        """Return the value at *path*.

        Raises:
            FieldPathNotFound: if a key or index along the path is absent.
            FieldPathError: if the path is malformed, contains a wildcard,
                or traverses through a scalar.
        """
        return self._get(parse(path))

    def _get(self, segments: list[Segment]) -> Any:
        cur: Any = self._obj
        for i, seg in enumerate(segments):
            if seg.kind == Segment.WILDCARD:
                raise FieldPathError(
                    f"{to_path(segments[:i + 1])}: cannot read a wildcarded path"
                )
            if cur is None:
                raise FieldPathNotFound(f"{to_path(segments[:i + 1])}: no such field")
            if seg.kind == Segment.INDEX:
                if not isinstance(cur, list):
                    raise FieldPathError(f"{to_path(segments[:i])}: not an array")
                if seg.index >= len(cur):
                    raise FieldPathNotFound(
                        f"{to_path(segments[:i + 1])}: no such element"
                    )
                cur = cur[seg.index]
                continue
            if not isinstance(cur, dict):
                raise FieldPathError(f"{to_path(segments[:i])}: not an object")
            if seg.field not in cur:
                raise FieldPathNotFound(f"{to_path(segments[:i + 1])}: no such field")
            cur = cur[seg.field]
        return cur

    def _exists(self, segments: list[Segment]) -> bool:
        try:
            self._get(segments)
        except FieldPathError:
            return False
        return True

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_value(self, path: str, value: Any) -> None:
        """Write a deep copy of *value* at *path*, creating parents as needed.

        Raises:
            FieldPathError: if the path contains a wildcard or an existing
                scalar blocks it.
        """
        segments = parse(path)
        if any(seg.kind == Segment.WILDCARD for seg in segments):
            raise FieldPathError(f"{path}: cannot set a wildcarded path")
        self._set(segments, copy.deepcopy(value))

    def _set(self, segments: list[Segment], value: Any) -> None:
        cur: Any = self._obj
        last = len(segments) - 1
        for i, seg in enumerate(segments):
            if seg.kind == Segment.INDEX:
                if not isinstance(cur, list):
                    raise FieldPathError(f"{to_path(segments[:i])}: not an array")
                if seg.index >= len(cur):
                    cur.extend([None] * (seg.index + 1 - len(cur)))
                if i == last:
                    cur[seg.index] = value
                    return
                if cur[seg.index] is None:
                    cur[seg.index] = _container_for(segments[i + 1])
                cur = cur[seg.index]
                continue
            if not isinstance(cur, dict):
                raise FieldPathError(f"{to_path(segments[:i])}: not an object")
            if i == last:
                cur[seg.field] = value
                return
            if cur.get(seg.field) is None:
                cur[seg.field] = _container_for(segments[i + 1])
            cur = cur[seg.field]

    def merge_value(
        self,
        path: str,
        value: Any,
        keep_map_values: bool = False,
        append_slice: bool = False,
    ) -> None:
        """Merge *value* into whatever already lives at *path*.

        Maps are merged key by key; with ``keep_map_values`` existing keys win
        over incoming ones. With ``append_slice`` lists are extended with the
        incoming elements they do not already contain instead of replaced.
        """
        try:
            current = self.get_value(path)
        except FieldPathNotFound:
            current = None
        # Merge through a one-key wrapper so a scalar at *path* follows the
        # same keep/override rule as a nested map key.
        merged = _merge(
            {"value": current},
            {"value": value},
            keep_map_values,
            append_slice,
        )
        self.set_value(path, merged["value"])

    # ------------------------------------------------------------------
    # Wildcards
    # ------------------------------------------------------------------

    def expand_wildcards(self, path: str) -> list[str]:
        """Expand every ``[*]`` in *path* into concrete paths.

        A wildcard over a list yields one path per index; over a map, one path
        per key in sorted order. Only concrete paths that resolve to an
        existing value are returned, so a missing base sequence (or a trailing
        field absent from every element) yields an empty list.

        Raises:
            FieldPathError: if a wildcard is applied to a scalar.
        """
        return [
            to_path(segments)
            for segments in self._expand(parse(path))
            if self._exists(segments)
        ]

    def _expand(self, segments: list[Segment]) -> list[list[Segment]]:
        for i, seg in enumerate(segments):
            if seg.kind != Segment.WILDCARD:
                continue
            try:
                container = self._get(segments[:i])
            except FieldPathNotFound:
                return []
            if isinstance(container, list):
                concrete = [Segment.of_index(ix) for ix in range(len(container))]
            elif isinstance(container, dict):
                concrete = [Segment(Segment.FIELD, field=k) for k in sorted(container)]
            elif container is None:
                return []
            else:
                raise FieldPathError(
                    f"{to_path(segments[:i])}: unexpected wildcard usage"
                )
            expanded: list[list[Segment]] = []
            for c in concrete:
                expanded.extend(self._expand(segments[:i] + [c] + segments[i + 1:]))
            return expanded
        return [segments]
