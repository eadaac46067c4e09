"""
Color analysis: dominant color extraction, hex parsing and luminance.

All functions are pure and deterministic for a given input.
"""

from __future__ import annotations

import logging
import re
from typing import Sequence

import cv2
import numpy as np
from PIL import Image

import config
from .errors import InvalidHex
from .types import RGB

logger = logging.getLogger(__name__)

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]+")

# BT.709 luminance weights
LUMINANCE_WEIGHTS = (0.2126, 0.7152, 0.0722)

# sRGB linearisation breakpoint (WCAG 2.0 value)
_LINEAR_BREAKPOINT = 0.03928


def hex_to_rgb(text: str) -> RGB:
    """Parse a hexadecimal color into an RGB triple.

    The text is read as a 24-bit integer: bits 16-23 are red, 8-15 green and
    0-7 blue. A single leading '#' is allowed. Short inputs are zero-extended
    on the left, so "ff" is blue.

    Raises:
        InvalidHex: If the text is not hexadecimal or needs more than 24 bits.

    Examples:
        >>> hex_to_rgb("1a2b3c")
        RGB(red=26, green=43, blue=60)
    """
    if not isinstance(text, str):
        raise InvalidHex(text, "expected a string")
    digits = text[1:] if text.startswith("#") else text
    if not _HEX_DIGITS.fullmatch(digits):
        raise InvalidHex(text)
    value = int(digits, 16)
    if value > 0xFFFFFF:
        raise InvalidHex(text, "value exceeds 24 bits")
    return RGB(
        red=(value >> 16) & 0xFF,
        green=(value >> 8) & 0xFF,
        blue=value & 0xFF,
    )


def rgb_to_hex(rgb: RGB) -> str:
    """Format an RGB triple as '#rrggbb'."""
    return "#" + rgb.to_hex()


def _sample_pixels(image: Image.Image, sample_size: int) -> np.ndarray:
    """Downsample and return visible pixels as an (N, 3) float32 array."""
    sample = image.convert("RGBA")
    if max(sample.size) > sample_size:
        sample.thumbnail((sample_size, sample_size), Image.Resampling.BILINEAR)
    pixels = np.asarray(sample, dtype=np.uint8).reshape(-1, 4)
    visible = pixels[pixels[:, 3] > 0]
    if visible.size == 0:
        visible = pixels
    return visible[:, :3].astype(np.float32)


def _initial_labels(pixels: np.ndarray, clusters: int) -> np.ndarray:
    """Seed labels by luma rank so clustering is reproducible."""
    luma = pixels @ np.array([0.299, 0.587, 0.114], dtype=np.float32)
    order = np.argsort(luma, kind="stable")
    labels = np.empty(len(pixels), dtype=np.int32)
    labels[order] = (np.arange(len(pixels)) * clusters) // len(pixels)
    return labels.reshape(-1, 1)


def dominant_color(
    image: Image.Image,
    clusters: int = config.DOMINANT_COLOR_CLUSTERS,
    sample_size: int = config.DOMINANT_COLOR_SAMPLE_SIZE,
) -> RGB:
    """Find the most representative color of an image.

    The image is downsampled, fully transparent pixels are ignored and the
    remaining colors are grouped with k-means. The centroid of the most
    populated cluster wins. Images with no more distinct colors than
    clusters return their most frequent color.

    Args:
        image: Source raster in any Pillow mode.
        clusters: Number of k-means clusters.
        sample_size: Maximum long edge of the downsampled image.

    Returns:
        The dominant color.
    """
    pixels = _sample_pixels(image, sample_size)
    unique, unique_counts = np.unique(pixels, axis=0, return_counts=True)
    if len(unique) <= clusters:
        # Few distinct colors: the most frequent one is exact
        return RGB(*(int(c) for c in unique[int(np.argmax(unique_counts))]))

    criteria = (
        cv2.TERM_CRITERIA_EPS + cv2.TERM_CRITERIA_MAX_ITER,
        config.DOMINANT_COLOR_MAX_ITER,
        config.DOMINANT_COLOR_EPSILON,
    )
    _, labels, centers = cv2.kmeans(
        pixels,
        clusters,
        _initial_labels(pixels, clusters),
        criteria,
        1,
        cv2.KMEANS_USE_INITIAL_LABELS,
    )
    counts = np.bincount(labels.ravel(), minlength=clusters)
    best = int(np.argmax(counts))
    center = np.clip(np.rint(centers[best]), 0, 255).astype(int)
    color = RGB(*(int(c) for c in center))
    logger.debug(
        "Dominant color %s (%d of %d pixels)", rgb_to_hex(color), counts[best], len(pixels)
    )
    return color


def _linearize(value: float) -> float:
    v = value / 255
    if v <= _LINEAR_BREAKPOINT:
        return v / 12.92
    return ((v + 0.055) / 1.055) ** 2.4


def relative_luminance(channels: Sequence[float]) -> float:
    """BT.709 relative luminance of 8-bit RGB channels, in [0, 1]."""
    if len(channels) != 3:
        raise ValueError(f"Expected 3 channels, got {len(channels)}")
    return sum(w * _linearize(c) for w, c in zip(LUMINANCE_WEIGHTS, channels))


def watermark_score(channels: Sequence[float]) -> float:
    """Brightness score that drives the watermark variant choice.

    This is the score deployed outputs were produced with, kept for parity:
    only the first (red) channel is evaluated and its upper branch is linear.
    The result lies in [0, 0.0031] for very dark reds and in [1.117, 2.938]
    otherwise. It is not a luminance; see relative_luminance for that.
    """
    if not channels:
        raise ValueError("Expected at least one channel")
    v = channels[0] / 255
    if v <= _LINEAR_BREAKPOINT:
        return v / 12.92
    return ((v + 0.55) / 1.055) * 2
