from patch_transform.combine import combine
from patch_transform.errors import (
    ArrayExpansionFailure,
    CombineConfigMissing,
    CombineRequiresVariables,
    DuplicatePatchSet,
    DuplicateResourceName,
    FieldPathError,
    FieldPathNotFound,
    InvalidConfiguration,
    InvalidPatchType,
    NestedPatchSet,
    PatchTransformError,
    RequiredFieldMissing,
    TransformError,
    UndefinedPatchSet,
)
from patch_transform.fieldpath import Paved
from patch_transform.models import (
    ComposedTemplate,
    FromFieldPathPolicy,
    PatchPolicy,
    PatchSet,
    PatchType,
    load_patch,
    load_transform,
)
from patch_transform.patch_sets import composed_templates
from patch_transform.patches import apply, apply_all
from patch_transform.policy import is_optional_field_path_not_found, resolve_policy
from patch_transform.render import render
from patch_transform.transforms import resolve_transforms

__all__ = [
    "apply",
    "apply_all",
    "combine",
    "composed_templates",
    "is_optional_field_path_not_found",
    "render",
    "resolve_policy",
    "resolve_transforms",
    "load_patch",
    "load_transform",
    "Paved",
    "ComposedTemplate",
    "FromFieldPathPolicy",
    "PatchPolicy",
    "PatchSet",
    "PatchType",
    "PatchTransformError",
    "InvalidConfiguration",
    "RequiredFieldMissing",
    "InvalidPatchType",
    "FieldPathError",
    "FieldPathNotFound",
    "ArrayExpansionFailure",
    "UndefinedPatchSet",
    "NestedPatchSet",
    "DuplicatePatchSet",
    "DuplicateResourceName",
    "CombineConfigMissing",
    "CombineRequiresVariables",
    "TransformError",
]
