from patch_transform.transforms.pipeline import resolve, resolve_transforms
from patch_transform.transforms.sprintf import render_value, sprintf

__all__ = [
    "resolve",
    "resolve_transforms",
    "render_value",
    "sprintf",
]
