"""
Scaling policy shared by the single-frame and animated paths.

The engine only downscales unless the caller explicitly allows upscaling.
Both paths must reach the same decision for the same source size, so they
both go through these functions.
"""

from __future__ import annotations

from PIL import Image


def scale_factor(src_width: int, src_height: int, dst_width: int, dst_height: int) -> float:
    """Uniform factor that makes the source cover the destination box.

    This is the larger of the two per-axis ratios (cover-fit), so a zero
    destination dimension simply does not contribute.

    Examples:
        >>> scale_factor(100, 50, 50, 50)
        1.0
    """
    if src_width <= 0 or src_height <= 0:
        raise ValueError(f"Source dimensions must be positive, got {src_width}x{src_height}")
    return max(dst_width / src_width, dst_height / src_height)


def scale_factor_image(img: Image.Image, dst_width: int, dst_height: int) -> float:
    """scale_factor for an image's natural size."""
    width, height = img.size
    return scale_factor(width, height, dst_width, dst_height)


def should_transform(factor: float, upscale: bool) -> bool:
    """Whether a resample should run for the given factor.

    True for a genuine downscale (factor < 1) or when upscaling is allowed;
    otherwise the caller passes the source through unchanged.
    """
    return factor < 1 or upscale
