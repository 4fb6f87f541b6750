"""Render a whole composition: one composite, many composed resources.

This is orchestration glue around ``apply``: it expands patch sets, seeds
each composed resource from its template ``base``, runs the
``FromComposite*`` patches into it, then runs the ``ToComposite*`` patches
back into a copy of the composite. Failures are collected per patch instead
of aborting the whole render.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Optional

from patch_transform.errors import PatchTransformError
from patch_transform.models import load_composition, resource_name
from patch_transform.patch_sets import composed_templates
from patch_transform.patches import FROM_COMPOSITE_TYPES, TO_COMPOSITE_TYPES, apply
from patch_transform.settings import get_settings

logger = logging.getLogger(__name__)


def _error(resource: Optional[str], index: Optional[int], err: Exception) -> dict[str, Any]:
    return {
        "resource": resource,
        "index": index,
        "kind": type(err).__name__,
        "message": str(err),
    }


def render(
    composite: dict[str, Any],
    composition: Any,
    observed: Optional[dict[str, dict[str, Any]]] = None,
    strict: Optional[bool] = None,
) -> dict[str, Any]:
    """
    Render every composed resource of *composition* against *composite*.

    Args:
        composite: The composite document. It is not modified.
        composition: ``{patchSets: [...], resources: [{name, base, patches}]}``.
        observed: Optional observed composed documents keyed by resource
            name. ToComposite patches read from these when present, else from
            the freshly rendered resource.
        strict: Stop at the first failing patch. Defaults to
            ``Settings.STRICT_RENDER``.

    Returns:
        Result dict with ok (bool), errors (list), composite (dict) and
        resources (name -> rendered document).
    """
    if strict is None:
        strict = get_settings().STRICT_RENDER
    observed = observed or {}

    desired_composite = copy.deepcopy(composite)
    resources: dict[str, dict[str, Any]] = {}
    errors: list[dict[str, Any]] = []

    def result() -> dict[str, Any]:
        return {
            "ok": len(errors) == 0,
            "errors": errors,
            "composite": desired_composite,
            "resources": resources,
        }

    try:
        loaded = load_composition(composition)
        templates = composed_templates(loaded.patch_sets, loaded.resources)
    except PatchTransformError as e:
        errors.append(_error(None, None, e))
        return result()

    for i, template in enumerate(templates):
        name = resource_name(template, i)
        composed = copy.deepcopy(template.base)
        for j, patch in enumerate(template.patches):
            try:
                apply(patch, composite, composed, only=FROM_COMPOSITE_TYPES)
            except PatchTransformError as e:
                logger.warning("resource %s: patch %d failed: %s", name, j, e)
                errors.append(_error(name, j, e))
                if strict:
                    return result()
        resources[name] = composed

    for i, template in enumerate(templates):
        name = resource_name(template, i)
        source = copy.deepcopy(observed.get(name, resources[name]))
        for j, patch in enumerate(template.patches):
            try:
                apply(patch, desired_composite, source, only=TO_COMPOSITE_TYPES)
            except PatchTransformError as e:
                logger.warning("resource %s: patch %d failed: %s", name, j, e)
                errors.append(_error(name, j, e))
                if strict:
                    return result()

    return result()
