"""Patch application between a composite and a composed document.

``FromComposite*`` patches read the composite and write the composed
document; ``ToComposite*`` patches mirror that direction. Combine patches read
several paths and write one.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Any, Iterable, Optional

from patch_transform.combine import combine, validate_combine
from patch_transform.errors import (
    ArrayExpansionFailure,
    FieldPathError,
    InvalidPatchType,
    RequiredFieldMissing,
)
from patch_transform.fieldpath import Paved, has_wildcards
from patch_transform.models import (
    CombineFromCompositePatch,
    CombineToCompositePatch,
    MergeOptions,
    PatchType,
    load_patch,
)
from patch_transform.policy import ResolvedPolicy, is_optional_field_path_not_found, resolve_policy
from patch_transform.transforms import resolve_transforms

logger = logging.getLogger(__name__)

FIELD_PATH_TYPES = frozenset({
    PatchType.FROM_COMPOSITE_FIELD_PATH,
    PatchType.TO_COMPOSITE_FIELD_PATH,
})
COMBINE_TYPES = frozenset({
    PatchType.COMBINE_FROM_COMPOSITE,
    PatchType.COMBINE_TO_COMPOSITE,
})
FROM_COMPOSITE_TYPES = frozenset({
    PatchType.FROM_COMPOSITE_FIELD_PATH,
    PatchType.COMBINE_FROM_COMPOSITE,
})
TO_COMPOSITE_TYPES = frozenset({
    PatchType.TO_COMPOSITE_FIELD_PATH,
    PatchType.COMBINE_TO_COMPOSITE,
})


def _patch_type(value: Any) -> PatchType:
    try:
        return PatchType(getattr(value, "value", value))
    except ValueError:
        raise InvalidPatchType(value) from None


def _validate(patch: Any, patch_type: PatchType) -> None:
    if patch_type in FIELD_PATH_TYPES:
        if not patch.from_field_path:
            raise RequiredFieldMissing("FromFieldPath", patch_type)
        return
    if patch_type in COMBINE_TYPES:
        if patch.combine is None:
            raise RequiredFieldMissing("Combine", patch_type)
        validate_combine(patch.combine)
        if not patch.to_field_path:
            raise RequiredFieldMissing("ToFieldPath", patch_type)
        return
    raise InvalidPatchType(patch_type.value)


def _read_variables(
    patch: Any, source: dict[str, Any], policy: ResolvedPolicy
) -> Optional[list[Any]]:
    """Read every combine variable, or return None when the patch is a no-op."""
    paved = Paved(source)
    values: list[Any] = []
    for variable in patch.combine.variables:
        try:
            values.append(paved.get_value(variable.from_field_path))
        except FieldPathError as e:
            if is_optional_field_path_not_found(e, policy):
                logger.debug(
                    "skipping %s patch: optional variable %s not found",
                    patch.type,
                    variable.from_field_path,
                )
                return None
            raise
    return values


def _write_targets(
    paved: Paved,
    targets: list[str],
    value: Any,
    merge_options: Optional[MergeOptions],
) -> None:
    for target in targets:
        if merge_options is None:
            paved.set_value(target, value)
        else:
            paved.merge_value(
                target,
                value,
                keep_map_values=bool(merge_options.keep_map_values),
                append_slice=bool(merge_options.append_slice),
            )


def _write(
    document: dict[str, Any],
    path: str,
    value: Any,
    merge_options: Optional[MergeOptions],
) -> None:
    # Trial-run every write on a copy so the document is untouched on failure.
    trial = Paved(copy.deepcopy(document))
    if has_wildcards(path):
        try:
            targets = trial.expand_wildcards(path)
        except FieldPathError as e:
            raise ArrayExpansionFailure(path) from e
        if not targets:
            raise ArrayExpansionFailure(path)
    else:
        targets = [path]

    _write_targets(trial, targets, value, merge_options)
    # The same writes cannot fail on the original once the trial succeeded.
    _write_targets(Paved(document), targets, value, merge_options)


def apply(
    patch: Any,
    composite: dict[str, Any],
    composed: dict[str, Any],
    only: Optional[Iterable[Any]] = None,
) -> None:
    """
    Apply one patch between a composite and a composed document.

    Exactly one of the two documents is mutated in place on success; on any
    error both are left untouched.

    Args:
        patch: A patch model or its wire mapping.
        composite: The composite (parent) document.
        composed: The composed (child) document.
        only: If non-empty, patch types outside this set are skipped silently.

    Raises:
        InvalidPatchType: for an unknown patch type.
        RequiredFieldMissing: when the type's mandatory field is absent.
        CombineRequiresVariables, CombineConfigMissing: for bad combine config.
        FieldPathNotFound: for a missing source path under a Required policy.
        TransformError: when a transform or the combine format fails.
        ArrayExpansionFailure: when a wildcarded destination matches nothing.
    """
    if only:
        # Filter on the raw type so excluded patches are never decoded.
        allowed = {_patch_type(t).value for t in only}
        raw_type = patch.get("type") if isinstance(patch, Mapping) else getattr(patch, "type", None)
        raw_type = getattr(raw_type, "value", raw_type)
        if raw_type not in allowed:
            logger.debug("skipping %s patch: filtered out", raw_type)
            return

    patch = load_patch(patch)
    patch_type = _patch_type(patch.type)

    if patch_type == PatchType.PATCH_SET:
        # Patch sets are expanded by composed_templates before application.
        logger.debug("skipping unexpanded PatchSet %s", patch.patch_set_name)
        return

    _validate(patch, patch_type)
    policy = resolve_policy(patch.policy)

    if patch_type in FROM_COMPOSITE_TYPES:
        source, destination = composite, composed
    else:
        source, destination = composed, composite

    if isinstance(patch, (CombineFromCompositePatch, CombineToCompositePatch)):
        values = _read_variables(patch, source, policy)
        if values is None:
            return
        value = combine(patch.combine, values)
        to_field_path = patch.to_field_path
    else:
        try:
            value = Paved(source).get_value(patch.from_field_path)
        except FieldPathError as e:
            if is_optional_field_path_not_found(e, policy):
                logger.debug(
                    "skipping %s patch: optional %s not found",
                    patch_type.value,
                    patch.from_field_path,
                )
                return
            raise
        to_field_path = patch.to_field_path or patch.from_field_path

    out = resolve_transforms(patch.transforms, value)
    _write(destination, to_field_path, out, policy.merge_options)


def apply_all(
    patches: Iterable[Any],
    composite: dict[str, Any],
    composed: dict[str, Any],
    only: Optional[Iterable[Any]] = None,
) -> None:
    """Apply *patches* in order, stopping at the first error."""
    only = list(only or ())
    for patch in patches:
        apply(patch, composite, composed, only)
