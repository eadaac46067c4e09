"""
Watermark selection and compositing.

The watermark comes in two variants ("plain" and "colored"). The variant is
picked from the dominant color of the image being stamped, then blended over
its center with a constant low opacity.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

import config
from .color import dominant_color, rgb_to_hex, watermark_score
from .errors import AssetUnavailable

logger = logging.getLogger(__name__)

PLAIN = "plain"
COLORED = "colored"


def _load_asset(path: str | Path) -> Image.Image:
    path = Path(path)
    try:
        with Image.open(path) as img:
            img.load()
            return img.convert("RGBA")
    except FileNotFoundError as exc:
        raise AssetUnavailable(f"Watermark asset not found: {path}") from exc
    except (UnidentifiedImageError, OSError) as exc:
        raise AssetUnavailable(f"Watermark asset cannot be decoded: {path}: {exc}") from exc


@dataclass(frozen=True)
class WatermarkAssets:
    """The pair of watermark rasters, shared read-only between requests.

    Attributes:
        plain: Variant stamped on darker images.
        colored: Variant stamped on brighter images.
    """

    plain: Image.Image
    colored: Image.Image

    def __post_init__(self) -> None:
        for name in (PLAIN, COLORED):
            img = getattr(self, name)
            if img.mode != "RGBA":
                object.__setattr__(self, name, img.convert("RGBA"))

    @classmethod
    def load(
        cls,
        plain_path: str | Path = config.WATERMARK_PLAIN_PATH,
        colored_path: str | Path = config.WATERMARK_COLORED_PATH,
    ) -> WatermarkAssets:
        """Load both variants from disk.

        Raises:
            AssetUnavailable: If either file is missing or not an image.
        """
        assets = cls(plain=_load_asset(plain_path), colored=_load_asset(colored_path))
        logger.info("Loaded watermark assets: %s, %s", plain_path, colored_path)
        return assets

    def variant(self, name: str) -> Image.Image:
        if name == PLAIN:
            return self.plain
        if name == COLORED:
            return self.colored
        raise ValueError(f"Unknown watermark variant: {name!r}")


_default_assets: WatermarkAssets | None = None
_default_lock = threading.Lock()


def default_watermark_assets() -> WatermarkAssets:
    """Return the process-wide watermark pair, loading it on first use.

    Loading happens at most once even when called concurrently. A failed load
    is not cached, so a later call retries once the files are deployed.
    """
    global _default_assets
    if _default_assets is not None:
        return _default_assets
    with _default_lock:
        if _default_assets is None:
            _default_assets = WatermarkAssets.load(
                config.WATERMARK_PLAIN_PATH, config.WATERMARK_COLORED_PATH
            )
        return _default_assets


def reset_default_watermark_assets() -> None:
    """Forget the cached process-wide watermark pair."""
    global _default_assets
    with _default_lock:
        _default_assets = None


def select_variant(base: Image.Image) -> str:
    """Pick the watermark variant name for an image."""
    color = dominant_color(base)
    score = watermark_score(color.channels())
    variant = COLORED if score > config.WATERMARK_SCORE_THRESHOLD else PLAIN
    logger.debug(
        "Watermark variant %s (dominant %s, score %.4f)", variant, rgb_to_hex(color), score
    )
    return variant


def select_watermark(base: Image.Image, assets: WatermarkAssets) -> tuple[str, Image.Image]:
    """Return (variant name, watermark raster) for an image."""
    variant = select_variant(base)
    return variant, assets.variant(variant)


def center_offset(base_size: tuple[int, int], mark_size: tuple[int, int]) -> tuple[int, int]:
    """Top-left position that aligns the centers of two boxes.

    Each half-size is truncated before subtracting, so odd sizes may leave the
    mark one pixel left/up of the exact center. Negative when the mark is larger.
    """
    return (
        base_size[0] // 2 - mark_size[0] // 2,
        base_size[1] // 2 - mark_size[1] // 2,
    )


def compose(
    base: Image.Image,
    assets: WatermarkAssets,
    opacity: int = config.WATERMARK_OPACITY,
) -> Image.Image:
    """Blend the matching watermark over the center of an image.

    The base is left untouched. The result is RGBA when the base carries
    alpha and RGB otherwise.

    Args:
        base: Image to stamp.
        assets: Watermark pair to choose from.
        opacity: Constant alpha (0-255) multiplied into the watermark's own alpha.

    Returns:
        A new, watermarked image of the same size as the base.
    """
    _, mark = select_watermark(base, assets)

    # Scale the mark's own alpha by the constant opacity ("draw over" with a uniform mask)
    alpha = mark.getchannel("A").point(lambda a: a * opacity // 255)
    faded = mark.copy()
    faded.putalpha(alpha)

    overlay = Image.new("RGBA", base.size, (0, 0, 0, 0))
    overlay.paste(faded, center_offset(base.size, mark.size))

    has_alpha = base.mode in ("RGBA", "LA", "PA") or "transparency" in base.info
    result = Image.alpha_composite(base.convert("RGBA"), overlay)
    if has_alpha:
        return result
    return result.convert("RGB")
