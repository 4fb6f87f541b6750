"""Exception hierarchy raised by the patch engine.

Every failure is raised synchronously to the caller. The only error the
engine ever turns into a no-op is a ``FieldPathNotFound`` read under an
Optional from-field-path policy (see ``patch_transform.policy``).
"""

from __future__ import annotations

from typing import Any


class PatchTransformError(ValueError):
    """Base class for every error raised by the engine."""


class InvalidConfiguration(PatchTransformError):
    """A rule document could not be decoded into patches or transforms."""


class RequiredFieldMissing(PatchTransformError):
    def __init__(self, field: str, patch_type: Any) -> None:
        self.field = field
        self.patch_type = str(getattr(patch_type, "value", patch_type))
        super().__init__(f"{field} is required by type {self.patch_type}")


class InvalidPatchType(PatchTransformError):
    def __init__(self, patch_type: Any) -> None:
        self.patch_type = patch_type
        super().__init__(f"patch type {patch_type} is unsupported")


class FieldPathError(PatchTransformError):
    """A field path is malformed or cannot be traversed."""


class FieldPathNotFound(FieldPathError):
    """A read found no value at the requested field path."""


class ArrayExpansionFailure(PatchTransformError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"cannot expand ToFieldPath {path}")


class UndefinedPatchSet(PatchTransformError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"cannot find PatchSet by name {name}")


class NestedPatchSet(PatchTransformError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"a patch in PatchSet {name} cannot be of type PatchSet"
        )


class DuplicatePatchSet(PatchTransformError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"PatchSet name {name} is defined more than once")


class DuplicateResourceName(PatchTransformError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"resource name {name} is used by more than one template")


class CombineConfigMissing(PatchTransformError):
    def __init__(self, strategy: Any) -> None:
        self.strategy = str(getattr(strategy, "value", strategy))
        super().__init__(
            f"given combine strategy {self.strategy} requires configuration"
        )


class CombineRequiresVariables(PatchTransformError):
    def __init__(self) -> None:
        super().__init__("combine patch types require at least one variable")


class TransformError(PatchTransformError):
    """A transform step could not process its input."""
