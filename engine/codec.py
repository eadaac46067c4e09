"""
Decoding and encoding of the supported image formats.

decode() accepts JPEG, PNG, GIF, TIFF and BMP. encode() writes any of those
five; JPEG output is watermarked right before serialisation.
"""

from __future__ import annotations

import io
import logging
from typing import Callable

from PIL import Image, UnidentifiedImageError

import config
from .errors import AssetUnavailable, DecodeFailed, UnsupportedFormat
from .types import AnimatedRaster, FrameTiming, ImageFormat
from .watermark import WatermarkAssets, compose

logger = logging.getLogger(__name__)

DECODE_FORMATS: tuple[str, ...] = tuple(fmt.value for fmt in ImageFormat)

_ALPHA_MODES = ("RGBA", "LA", "PA", "RGBa", "La")


def _plan9_palette() -> list[int]:
    """The 256-color Plan 9 palette as a flat [r, g, b, ...] list.

    A 4x4x4 RGB cube, each cell split into 4 brightness levels; grays fill
    the black cell.
    """
    flat: list[int] = []
    for r in range(4):
        for v in range(4):
            for g in range(4):
                for b in range(4):
                    den = max(r, g, b)
                    if den == 0:
                        flat.extend([17 * v] * 3)
                    else:
                        num = 17 * (4 * den + v)
                        flat.extend([r * num // den, g * num // den, b * num // den])
    return flat


PLAN9_PALETTE = _plan9_palette()


def open_image(source: bytes) -> Image.Image:
    """Open encoded bytes without decoding pixels (header only).

    Raises:
        DecodeFailed: If the bytes are not one of the supported formats.
    """
    try:
        return Image.open(io.BytesIO(source), formats=DECODE_FORMATS)
    except (
        UnidentifiedImageError,
        OSError,
        SyntaxError,
        EOFError,
        ValueError,
        TypeError,
        Image.DecompressionBombError,
    ) as exc:
        raise DecodeFailed(f"Cannot identify image: {exc}") from exc


def probe_format(source: bytes) -> ImageFormat:
    """Identify the encoding of the source bytes."""
    with open_image(source) as img:
        return ImageFormat.from_pil(img.format)


def has_alpha(img: Image.Image) -> bool:
    return img.mode in _ALPHA_MODES or "transparency" in img.info


def normalize_mode(img: Image.Image) -> Image.Image:
    """Convert to RGBA when the image carries alpha, RGB otherwise."""
    target = "RGBA" if has_alpha(img) else "RGB"
    if img.mode == target:
        return img
    return img.convert(target)


def decode(source: bytes) -> tuple[Image.Image, ImageFormat]:
    """Decode the first frame of an encoded image.

    Args:
        source: Encoded image bytes.

    Returns:
        Tuple of:
        - The decoded raster, in RGB or RGBA mode
        - The detected source format

    Raises:
        DecodeFailed: If the bytes are truncated, corrupt or not a supported format.
    """
    img = open_image(source)
    try:
        with img:
            img.load()
            fmt = ImageFormat.from_pil(img.format)
            raster = normalize_mode(img)
            if raster is img:
                raster = img.copy()
    except UnsupportedFormat as exc:
        raise DecodeFailed(f"Unsupported source format: {exc.format}") from exc
    except (OSError, SyntaxError, EOFError, ValueError, Image.DecompressionBombError) as exc:
        raise DecodeFailed(f"Cannot decode image: {exc}") from exc
    logger.debug("Decoded %s %dx%d (%s)", fmt.value, raster.width, raster.height, raster.mode)
    return raster, fmt


def to_paletted(img: Image.Image, num_colors: int = config.GIF_NUM_COLORS) -> Image.Image:
    """Reduce an image to the fixed Plan 9 palette with Floyd-Steinberg dithering.

    Alpha is dropped; transparent pixels map to the nearest palette color of
    their underlying RGB value.
    """
    palette = Image.new("P", (1, 1))
    palette.putpalette(PLAN9_PALETTE[: num_colors * 3])
    return img.convert("RGB").quantize(palette=palette, dither=Image.Dither.FLOYDSTEINBERG)


def _opaque_rgb(img: Image.Image) -> Image.Image:
    """RGB view for the JPEG encoder; RGB input is used as is, without a copy."""
    if img.mode == "RGB":
        return img
    return img.convert("RGB")


def _encode_jpeg(img, buf, quality, watermark):
    if watermark is None:
        raise AssetUnavailable("JPEG output requires watermark assets")
    _opaque_rgb(compose(img, watermark)).save(buf, format="JPEG", quality=quality)


def _encode_png(img, buf, quality, watermark):
    img.save(buf, format="PNG")


def _encode_gif(img, buf, quality, watermark):
    to_paletted(img).save(buf, format="GIF")


def _encode_tiff(img, buf, quality, watermark):
    img.save(buf, format="TIFF", compression=config.TIFF_COMPRESSION)


def _encode_bmp(img, buf, quality, watermark):
    if img.mode not in ("1", "L", "P", "RGB", "RGBA"):
        img = normalize_mode(img)
    img.save(buf, format="BMP")


_Encoder = Callable[..., None]

_ENCODERS: dict[ImageFormat, _Encoder] = {
    ImageFormat.JPEG: _encode_jpeg,
    ImageFormat.PNG: _encode_png,
    ImageFormat.GIF: _encode_gif,
    ImageFormat.TIFF: _encode_tiff,
    ImageFormat.BMP: _encode_bmp,
}


def encode(
    img: Image.Image,
    fmt: ImageFormat | str,
    quality: int = config.DEFAULT_QUALITY,
    watermark: WatermarkAssets | None = None,
) -> bytes:
    """Encode a raster into one of the supported formats.

    Args:
        img: Raster to encode. Never modified.
        fmt: Output format, as an ImageFormat or a name such as "jpg".
        quality: Encoder quality (0-100); only JPEG uses it.
        watermark: Watermark pair stamped on JPEG output.

    Returns:
        The encoded bytes.

    Raises:
        UnsupportedFormat: If there is no encoder for the format.
        AssetUnavailable: For JPEG output without watermark assets.
    """
    if not isinstance(fmt, ImageFormat):
        fmt = ImageFormat.from_name(fmt)
    encoder = _ENCODERS.get(fmt)
    if encoder is None:
        raise UnsupportedFormat(fmt)
    buf = io.BytesIO()
    encoder(img, buf, quality, watermark)
    return buf.getvalue()


def _fold_repeats(
    frames: list[Image.Image], timings: list[FrameTiming]
) -> tuple[list[Image.Image], list[FrameTiming]]:
    """Merge consecutive identical frames, summing their durations."""
    kept = [frames[0]]
    kept_timings = [timings[0]]
    for frame, timing in zip(frames[1:], timings[1:]):
        if frame.tobytes() == kept[-1].tobytes():
            previous = kept_timings[-1]
            kept_timings[-1] = FrameTiming(
                duration=previous.duration + timing.duration,
                disposal=previous.disposal,
            )
            continue
        kept.append(frame)
        kept_timings.append(timing)
    return kept, kept_timings


def encode_animation(animation: AnimatedRaster) -> bytes:
    """Serialise a paletted frame sequence as an animated GIF.

    The logical screen size is the shared frame size. Per-frame durations and
    disposal methods are written as given. Consecutive identical frames are
    folded into one, summing their durations, so a sequence may come out
    shorter than it went in.
    """
    frames, timings = _fold_repeats(animation.frames, animation.timings)
    first, rest = frames[0], frames[1:]
    durations = [t.duration for t in timings]
    disposals = [t.disposal for t in timings]
    params = {
        "format": "GIF",
        "save_all": True,
        "append_images": rest,
        "optimize": False,
    }
    if rest:
        params["duration"] = durations
        params["disposal"] = disposals
    else:
        # Pillow's single-frame writer only takes scalar frame metadata
        params["duration"] = durations[0]
        params["disposal"] = disposals[0]
    if animation.loop is not None:
        params["loop"] = animation.loop
    buf = io.BytesIO()
    first.save(buf, **params)
    return buf.getvalue()
