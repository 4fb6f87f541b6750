from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union

from patch_transform.errors import FieldPathNotFound
from patch_transform.models import FromFieldPathPolicy, MergeOptions, PatchPolicy


@dataclass(frozen=True)
class ResolvedPolicy:
    """A patch policy with every default filled in.

    Computed once per patch and handed to every read and write the patch
    performs.
    """

    optional: bool = True
    merge_options: Optional[MergeOptions] = None

    @property
    def from_field_path(self) -> FromFieldPathPolicy:
        return FromFieldPathPolicy.OPTIONAL if self.optional else FromFieldPathPolicy.REQUIRED


def resolve_policy(policy: Any) -> ResolvedPolicy:
    """Resolve a (possibly absent) patch policy.

    A missing policy, or one with no ``fromFieldPath``, is Optional. Accepts a
    ``PatchPolicy``, its wire mapping, or an already resolved policy.
    """
    if isinstance(policy, ResolvedPolicy):
        return policy
    if policy is None:
        return ResolvedPolicy()
    if isinstance(policy, Mapping):
        policy = PatchPolicy.model_validate(policy)
    return ResolvedPolicy(
        optional=policy.from_field_path != FromFieldPathPolicy.REQUIRED,
        merge_options=policy.merge_options,
    )


def is_optional_field_path_not_found(
    err: Optional[BaseException],
    policy: Union[PatchPolicy, ResolvedPolicy, None] = None,
) -> bool:
    """Return True when *err* should turn the patch into a no-op.

    That is the case only for a field-not-found error under an Optional
    from-field-path policy. Any other error, or an explicit Required policy,
    must be propagated.
    """
    if not isinstance(err, FieldPathNotFound):
        return False
    return resolve_policy(policy).optional
