"""Naming of image preview artifacts."""

from __future__ import annotations

import mimetypes
from collections.abc import Callable, Iterable

DEFAULT_PREVIEW_CONTENT_TYPE = "image/jpeg"


def size_to_image_preview_suffix(size: int) -> str:
    """Get the entry suffix of the image preview with the given max dimension."""
    return f"image-preview-{size}.jpg"


def image_preview_suffixes(
    sizes: Iterable[int],
    size_filter: Callable[[int], bool] | None = None,
) -> tuple[str, ...]:
    """Map preview sizes to entry suffixes, keeping their order.

    Args:
        sizes: Preview sizes in order of preference
        size_filter: Optional predicate selecting the usable sizes

    Returns:
        Tuple of preview suffixes
    """
    return tuple(
        size_to_image_preview_suffix(size)
        for size in sizes
        if size_filter is None or size_filter(size)
    )


def preview_content_type(suffix: str) -> str:
    """Get the HTTP content type of a preview artifact from its suffix."""
    content_type, _ = mimetypes.guess_type(suffix)
    if content_type is None or not content_type.startswith("image/"):
        return DEFAULT_PREVIEW_CONTENT_TYPE
    return content_type
