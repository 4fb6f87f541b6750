"""Declarative rule schema: patches, transforms, patch sets and templates.

Patches and transforms are closed sum types. Each variant is its own model,
selected by its ``type`` discriminator, and carries only the payload that
belongs to it; a foreign payload (for example ``combine`` on a
``FromCompositeFieldPath`` patch) is rejected at decode time.

Wire keys are camelCase; attributes are snake_case.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from patch_transform.errors import (
    DuplicateResourceName,
    InvalidConfiguration,
    InvalidPatchType,
)


class _Rule(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


# ======================================================================
# Enums
# ======================================================================
class PatchType(str, Enum):
    FROM_COMPOSITE_FIELD_PATH = "FromCompositeFieldPath"
    TO_COMPOSITE_FIELD_PATH = "ToCompositeFieldPath"
    COMBINE_FROM_COMPOSITE = "CombineFromComposite"
    COMBINE_TO_COMPOSITE = "CombineToComposite"
    PATCH_SET = "PatchSet"


PATCH_TYPE_VALUES = frozenset(t.value for t in PatchType)


class FromFieldPathPolicy(str, Enum):
    OPTIONAL = "Optional"
    REQUIRED = "Required"


class CombineStrategy(str, Enum):
    STRING = "string"


class TransformType(str, Enum):
    CONVERT = "convert"
    MATH = "math"
    MAP = "map"
    MATCH = "match"
    STRING = "string"


class ConvertToType(str, Enum):
    STRING = "string"
    INT = "int"
    INT64 = "int64"
    FLOAT64 = "float64"
    BOOL = "bool"
    OBJECT = "object"
    ARRAY = "array"


class ConvertFormat(str, Enum):
    NONE = "none"
    QUANTITY = "quantity"
    JSON = "json"


class MathType(str, Enum):
    MULTIPLY = "Multiply"
    CLAMP_MIN = "ClampMin"
    CLAMP_MAX = "ClampMax"


class StringTransformType(str, Enum):
    FORMAT = "Format"
    CONVERT = "Convert"
    TRIM_PREFIX = "TrimPrefix"
    TRIM_SUFFIX = "TrimSuffix"
    REGEXP = "Regexp"
    JOIN = "Join"


class StringConversionType(str, Enum):
    TO_UPPER = "ToUpper"
    TO_LOWER = "ToLower"
    TO_BASE64 = "ToBase64"
    FROM_BASE64 = "FromBase64"
    TO_JSON = "ToJson"
    TO_SHA1 = "ToSha1"
    TO_SHA256 = "ToSha256"
    TO_SHA512 = "ToSha512"
    TO_ADLER32 = "ToAdler32"


class MatchPatternType(str, Enum):
    LITERAL = "literal"
    REGEXP = "regexp"


class MatchFallbackTo(str, Enum):
    VALUE = "Value"
    INPUT = "Input"


# ======================================================================
# Transforms
# ======================================================================
class ConvertConfig(_Rule):
    to_type: ConvertToType = Field(alias="toType")
    format: Optional[ConvertFormat] = None


class MathConfig(_Rule):
    type: Optional[MathType] = None
    multiply: Optional[Union[int, float]] = None
    clamp_min: Optional[Union[int, float]] = Field(default=None, alias="clampMin")
    clamp_max: Optional[Union[int, float]] = Field(default=None, alias="clampMax")


class MapConfig(_Rule):
    pairs: dict[str, Any] = Field(default_factory=dict)
    fallback_value: Any = Field(default=None, alias="fallbackValue")

    @property
    def has_fallback(self) -> bool:
        return "fallback_value" in self.model_fields_set


class MatchPattern(_Rule):
    type: MatchPatternType = MatchPatternType.LITERAL
    literal: Optional[str] = None
    regexp: Optional[str] = None
    result: Any = None


class MatchConfig(_Rule):
    patterns: list[MatchPattern] = Field(default_factory=list)
    fallback_value: Any = Field(default=None, alias="fallbackValue")
    fallback_to: MatchFallbackTo = Field(
        default=MatchFallbackTo.VALUE, alias="fallbackTo"
    )


class StringRegexp(_Rule):
    match: str
    group: Optional[int] = None


class StringJoin(_Rule):
    separator: str = ""


class StringConfig(_Rule):
    type: Optional[StringTransformType] = None
    fmt: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("fmt", "format")
    )
    convert: Optional[StringConversionType] = None
    trim: Optional[str] = None
    regexp: Optional[StringRegexp] = None
    join: Optional[StringJoin] = None


class _TransformBase(_Rule):
    @field_validator("type", mode="before", check_fields=False)
    @classmethod
    def _lower_type(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v


class ConvertTransform(_TransformBase):
    type: Literal["convert"] = "convert"
    convert: ConvertConfig


class MathTransform(_TransformBase):
    type: Literal["math"] = "math"
    math: MathConfig


class MapTransform(_TransformBase):
    type: Literal["map"] = "map"
    map: MapConfig


class MatchTransform(_TransformBase):
    type: Literal["match"] = "match"
    match: MatchConfig


class StringTransform(_TransformBase):
    type: Literal["string"] = "string"
    string: StringConfig


def _transform_tag(v: Any) -> Optional[str]:
    if isinstance(v, Mapping):
        t = v.get("type")
        return t.lower() if isinstance(t, str) else None
    return getattr(v, "type", None)


Transform = Annotated[
    Union[
        Annotated[ConvertTransform, Tag("convert")],
        Annotated[MathTransform, Tag("math")],
        Annotated[MapTransform, Tag("map")],
        Annotated[MatchTransform, Tag("match")],
        Annotated[StringTransform, Tag("string")],
    ],
    Discriminator(_transform_tag),
]


# ======================================================================
# Patches
# ======================================================================
class MergeOptions(_Rule):
    keep_map_values: Optional[bool] = Field(default=None, alias="keepMapValues")
    append_slice: Optional[bool] = Field(default=None, alias="appendSlice")


class PatchPolicy(_Rule):
    from_field_path: Optional[FromFieldPathPolicy] = Field(
        default=None, alias="fromFieldPath"
    )
    merge_options: Optional[MergeOptions] = Field(default=None, alias="mergeOptions")


class CombineVariable(_Rule):
    from_field_path: str = Field(alias="fromFieldPath")


class StringCombine(_Rule):
    fmt: str = Field(validation_alias=AliasChoices("fmt", "format"))


class Combine(_Rule):
    variables: list[CombineVariable] = Field(default_factory=list)
    strategy: str = CombineStrategy.STRING.value
    string: Optional[StringCombine] = None


class _FieldPathPatch(_Rule):
    from_field_path: Optional[str] = Field(default=None, alias="fromFieldPath")
    to_field_path: Optional[str] = Field(default=None, alias="toFieldPath")
    policy: Optional[PatchPolicy] = None
    transforms: list[Transform] = Field(default_factory=list)


class FromCompositeFieldPathPatch(_FieldPathPatch):
    type: Literal["FromCompositeFieldPath"] = "FromCompositeFieldPath"


class ToCompositeFieldPathPatch(_FieldPathPatch):
    type: Literal["ToCompositeFieldPath"] = "ToCompositeFieldPath"


class _CombinePatch(_Rule):
    combine: Optional[Combine] = None
    to_field_path: Optional[str] = Field(default=None, alias="toFieldPath")
    policy: Optional[PatchPolicy] = None
    transforms: list[Transform] = Field(default_factory=list)


class CombineFromCompositePatch(_CombinePatch):
    type: Literal["CombineFromComposite"] = "CombineFromComposite"


class CombineToCompositePatch(_CombinePatch):
    type: Literal["CombineToComposite"] = "CombineToComposite"


class PatchSetPatch(_Rule):
    type: Literal["PatchSet"] = "PatchSet"
    patch_set_name: Optional[str] = Field(default=None, alias="patchSetName")


Patch = Annotated[
    Union[
        FromCompositeFieldPathPatch,
        ToCompositeFieldPathPatch,
        CombineFromCompositePatch,
        CombineToCompositePatch,
        PatchSetPatch,
    ],
    Field(discriminator="type"),
]

PATCH_MODELS = (
    FromCompositeFieldPathPatch,
    ToCompositeFieldPathPatch,
    CombineFromCompositePatch,
    CombineToCompositePatch,
    PatchSetPatch,
)


class PatchSet(_Rule):
    name: str
    patches: list[Patch] = Field(default_factory=list)


class ComposedTemplate(_Rule):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: Optional[str] = None
    base: dict[str, Any] = Field(default_factory=dict)
    patches: list[Patch] = Field(default_factory=list)


class Composition(_Rule):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    patch_sets: list[PatchSet] = Field(default_factory=list, alias="patchSets")
    resources: list[ComposedTemplate] = Field(default_factory=list)


_PATCH_ADAPTER = TypeAdapter(Patch)
_TRANSFORM_ADAPTER = TypeAdapter(Transform)


# ======================================================================
# Loaders
# ======================================================================
def _require_mapping(data: Any, what: str) -> Mapping:
    if not isinstance(data, Mapping):
        raise InvalidConfiguration(
            f"{what} must be a mapping, got {type(data).__name__}"
        )
    return data


def load_patch(data: Any) -> Any:
    """Decode a patch mapping into its variant model.

    Model instances are returned unchanged.

    Raises:
        InvalidPatchType: if ``type`` is not a known patch type.
        InvalidConfiguration: if the payload does not fit the variant.
    """
    if isinstance(data, PATCH_MODELS):
        return data
    data = _require_mapping(data, "patch")
    patch_type = data.get("type")
    if patch_type not in PATCH_TYPE_VALUES:
        raise InvalidPatchType(patch_type)
    try:
        return _PATCH_ADAPTER.validate_python(dict(data))
    except ValidationError as e:
        raise InvalidConfiguration(f"invalid {patch_type} patch: {e}") from e


def load_transform(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data
    data = _require_mapping(data, "transform")
    try:
        return _TRANSFORM_ADAPTER.validate_python(dict(data))
    except ValidationError as e:
        raise InvalidConfiguration(f"invalid transform: {e}") from e


def _load_with_patches(model: type[BaseModel], data: Any, what: str) -> Any:
    if isinstance(data, model):
        return data
    data = dict(_require_mapping(data, what))
    data["patches"] = [load_patch(p) for p in data.get("patches") or []]
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidConfiguration(f"invalid {what}: {e}") from e


def load_patch_set(data: Any) -> PatchSet:
    return _load_with_patches(PatchSet, data, "patch set")


def load_template(data: Any) -> ComposedTemplate:
    return _load_with_patches(ComposedTemplate, data, "composed template")


def resource_name(template: ComposedTemplate, index: int) -> str:
    """Name a template by its ``name``, or by position when it has none."""
    return template.name or f"resource-{index}"


def load_composition(data: Any) -> Composition:
    """Decode ``{patchSets: [...], resources: [...]}``.

    Resource names must be unique, counting the positional names given to
    unnamed templates.
    """
    if isinstance(data, Composition):
        composition = data
    else:
        data = _require_mapping(data, "composition")
        try:
            composition = Composition(
                patch_sets=[load_patch_set(s) for s in data.get("patchSets") or []],
                resources=[load_template(r) for r in data.get("resources") or []],
            )
        except ValidationError as e:
            raise InvalidConfiguration(f"invalid composition: {e}") from e

    seen: set[str] = set()
    for i, template in enumerate(composition.resources):
        name = resource_name(template, i)
        if name in seen:
            raise DuplicateResourceName(name)
        seen.add(name)
    return composition


def dump_model(model: BaseModel) -> dict[str, Any]:
    """Serialize a rule model back to its camelCase wire shape."""
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)
