from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from patch_transform.errors import (
    DuplicatePatchSet,
    NestedPatchSet,
    RequiredFieldMissing,
    UndefinedPatchSet,
)
from patch_transform.models import (
    ComposedTemplate,
    PatchType,
    load_patch_set,
    load_template,
)

logger = logging.getLogger(__name__)


def _index_patch_sets(patch_sets: Iterable[Any]) -> dict[str, list[Any]]:
    by_name: dict[str, list[Any]] = {}
    for raw in patch_sets:
        patch_set = load_patch_set(raw)
        for patch in patch_set.patches:
            if patch.type == PatchType.PATCH_SET.value:
                raise NestedPatchSet(patch_set.name)
        if patch_set.name in by_name:
            raise DuplicatePatchSet(patch_set.name)
        by_name[patch_set.name] = patch_set.patches
    return by_name


def composed_templates(
    patch_sets: Optional[Iterable[Any]],
    templates: Iterable[Any],
) -> list[ComposedTemplate]:
    """
    Replace every PatchSet reference in *templates* with the named set's patches.

    Non-PatchSet patches keep their position; each referenced set is spliced
    in place, in its declared order. Inputs are not modified.

    Args:
        patch_sets: ``PatchSet`` models or mappings ``{name, patches}``.
        templates: ``ComposedTemplate`` models or mappings with ``patches``.

    Returns:
        New templates whose patch lists contain no PatchSet entries.

    Raises:
        UndefinedPatchSet: if a reference names no supplied set. Nothing is
            returned in that case.
        NestedPatchSet: if a patch set itself contains a PatchSet entry.
        DuplicatePatchSet: if two supplied sets share a name.
        RequiredFieldMissing: if a PatchSet entry has no ``patchSetName``.
    """
    by_name = _index_patch_sets(patch_sets or ())

    expanded: list[ComposedTemplate] = []
    for raw in templates:
        template = load_template(raw)
        patches: list[Any] = []
        for patch in template.patches:
            if patch.type != PatchType.PATCH_SET.value:
                patches.append(patch.model_copy(deep=True))
                continue
            name = patch.patch_set_name
            if not name:
                raise RequiredFieldMissing("PatchSetName", PatchType.PATCH_SET)
            if name not in by_name:
                raise UndefinedPatchSet(name)
            patches.extend(p.model_copy(deep=True) for p in by_name[name])
        logger.debug(
            "expanded template %s: %d -> %d patches",
            template.name or "<unnamed>",
            len(template.patches),
            len(patches),
        )
        expanded.append(template.model_copy(update={"patches": patches}, deep=True))
    return expanded
