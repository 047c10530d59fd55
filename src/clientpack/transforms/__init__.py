from pathlib import Path

from clientpack.transforms.asset_urls import InlineAssetsTransform, inline_asset_url
from clientpack.transforms.base import Transform

BUILTIN_TRANSFORMS: list[Transform] = [
    InlineAssetsTransform(),
]


def build_transforms(custom_transforms=None, max_workers=None):
    """Return the ordered transform list: built-ins first, then *custom_transforms*."""
    if max_workers is None:
        transforms = list(BUILTIN_TRANSFORMS)
    else:
        transforms = [InlineAssetsTransform(max_workers=max_workers)]
    if custom_transforms:
        transforms.extend(custom_transforms)
    return transforms


def apply_transforms(source, path, transforms=None):
    """Run *source* through each transform in order and return the final text."""
    for t in BUILTIN_TRANSFORMS if transforms is None else transforms:
        replacement = t.transform(source, Path(path))
        if replacement is not None:
            source = replacement
    return source


__all__ = [
    "BUILTIN_TRANSFORMS",
    "InlineAssetsTransform",
    "Transform",
    "apply_transforms",
    "build_transforms",
    "inline_asset_url",
]
