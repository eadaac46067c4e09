"""
Per-frame transform pipeline for animated (multi-frame) images.

Each frame is composited over an accumulator so partial (delta) frames are
rebuilt into full canvases, then transformed and re-quantized to the fixed
palette. The output is an animated GIF whose frames all share one size.

Pipeline:
    first frame -> scaling policy -> (pass through | accumulate -> transform
    -> dither) per frame -> reassemble with original timings
"""

from __future__ import annotations

import logging

from PIL import Image, ImageSequence

from .codec import encode_animation, open_image, to_paletted
from .errors import DecodeFailed
from .scaling import scale_factor, should_transform
from .steps import TransformStep, scale
from .types import AnimatedRaster, FrameTiming, TransformOptions

logger = logging.getLogger(__name__)


def _frame_timing(frame: Image.Image) -> FrameTiming:
    return FrameTiming(
        duration=int(frame.info.get("duration", 0) or 0),
        disposal=int(getattr(frame, "disposal_method", 0) or 0),
    )


def _composite(canvas: Image.Image, frame: Image.Image) -> None:
    """Draw a frame over the accumulator canvas, in place."""
    layer = frame.convert("RGBA")
    if layer.size != canvas.size:
        layer = layer.crop((0, 0) + canvas.size)
    canvas.alpha_composite(layer)


def transform_frames(
    img: Image.Image,
    options: TransformOptions,
    step: TransformStep,
    apply_policy: bool = True,
) -> AnimatedRaster:
    """Run a step over every frame of an opened multi-frame image.

    Args:
        img: Opened (header-decoded) source image; iterated frame by frame.
        options: Request options; a zero width/height is derived from the
                 first frame's aspect ratio.
        step: Transform applied to each composited canvas.
        apply_policy: Whether resample steps go through the scaling policy.

    Returns:
        AnimatedRaster of paletted frames with the source timings.
    """
    src_width, src_height = img.size

    canvas = Image.new("RGBA", (src_width, src_height), (0, 0, 0, 0))
    frames: list[Image.Image] = []
    timings: list[FrameTiming] = []
    for frame in ImageSequence.Iterator(img):
        timings.append(_frame_timing(frame))
        _composite(canvas, frame)
        if apply_policy:
            transformed = scale(canvas, options, step)
        else:
            transformed = step.apply(canvas)
        frames.append(to_paletted(transformed))

    width, height = frames[0].size
    logger.debug(
        "Transformed %d frame(s) with %s: %dx%d -> %dx%d",
        len(frames), step.name, src_width, src_height, width, height,
    )
    return AnimatedRaster(
        frames=frames,
        timings=timings,
        width=width,
        height=height,
        loop=img.info.get("loop"),
    )


def transform_animated(
    source: bytes,
    options: TransformOptions,
    step: TransformStep,
    apply_policy: bool = True,
) -> bytes:
    """Transform every frame of an animation and re-encode it as GIF.

    The scaling policy is evaluated once against the first frame's natural
    size. When it declines for a GIF source, the source bytes are returned
    unchanged and no further frame is decoded; any other source is converted
    at its natural size.

    Args:
        source: Encoded source bytes (any supported format; a still image
                becomes a one-frame animation).
        options: Request options.
        step: Transform applied to each frame.
        apply_policy: Whether resample steps go through the scaling policy.
                      Orientation steps never do.

    Returns:
        Encoded GIF bytes, or the source bytes verbatim on pass-through.

    Raises:
        DecodeFailed: If the source cannot be decoded.
    """
    img = open_image(source)
    with img:
        try:
            img.load()
            if apply_policy and step.resamples:
                factor = scale_factor(img.width, img.height, options.width, options.height)
                if not should_transform(factor, options.upscale) and img.format == "GIF":
                    logger.debug(
                        "Animation pass-through: factor %.4f without upscale", factor
                    )
                    return source
            animation = transform_frames(img, options, step, apply_policy=apply_policy)
        except (OSError, SyntaxError, EOFError) as exc:
            raise DecodeFailed(f"Cannot decode animation frame: {exc}") from exc

    return encode_animation(animation)
