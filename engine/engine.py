"""
Request-level entry point of the transformation engine.

ImageEngine maps an operation to a transform step, routes animation output
through the per-frame pipeline and everything else through a single decode,
transform and encode. It holds no mutable state and can be shared between
threads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from PIL import Image

from .animation import transform_animated
from .codec import decode, encode, probe_format
from .scaling import scale_factor_image, should_transform
from .steps import ThumbnailStep, TransformStep, build_step
from .types import ImageFormat, Operation, TransformOptions
from .watermark import WatermarkAssets, default_watermark_assets

logger = logging.getLogger(__name__)


def _requested_format(options: TransformOptions) -> ImageFormat | None:
    fmt = options.format
    if fmt is None or isinstance(fmt, ImageFormat):
        return fmt
    return ImageFormat.from_name(fmt)


@dataclass(frozen=True)
class ImageEngine:
    """Stateless image transformer.

    Attributes:
        watermark: Watermark pair stamped on JPEG output. None means the
                   process-wide pair from the configured paths, loaded on the
                   first JPEG encode.
    """

    watermark: WatermarkAssets | None = None

    def __str__(self) -> str:
        return "pillow"

    def resize(self, source: bytes, options: TransformOptions) -> bytes:
        """Resample to exactly width x height."""
        return self.transform(Operation.RESIZE, source, options)

    def thumbnail(self, source: bytes, options: TransformOptions) -> bytes:
        """Resample and crop to fill width x height."""
        return self.transform(Operation.THUMBNAIL, source, options)

    def fit(self, source: bytes, options: TransformOptions) -> bytes:
        """Resample to fit inside width x height without cropping."""
        return self.transform(Operation.FIT, source, options)

    def rotate(self, source: bytes, options: TransformOptions) -> bytes:
        """Rotate counter-clockwise by options.degree (90, 180 or 270)."""
        return self.transform(Operation.ROTATE, source, options)

    def flip(self, source: bytes, options: TransformOptions) -> bytes:
        """Mirror along options.position ("h" or "v")."""
        return self.transform(Operation.FLIP, source, options)

    def transform(
        self,
        operation: Operation,
        source: bytes,
        options: TransformOptions,
    ) -> bytes:
        """Apply an operation to encoded image bytes.

        Args:
            operation: The requested operation.
            source: Encoded source image.
            options: Request options. Never modified.

        Returns:
            Encoded output bytes. When the scaling policy declines a resample
            and the output format matches the source, the source bytes are
            returned as is.

        Raises:
            UnsupportedFormat: If the output format has no encoder.
            UnsupportedDegree: For a rotation outside 90/180/270.
            UnsupportedAxis: For a flip axis other than "h"/"v".
            DecodeFailed: If the source cannot be decoded.
            AssetUnavailable: For JPEG output when the watermark cannot be loaded.
            ValueError: If the options are invalid.
        """
        options.validate()
        fmt = _requested_format(options)
        step = build_step(operation, options)
        if fmt is None:
            fmt = probe_format(source)

        if fmt is ImageFormat.GIF:
            return self._transform_animated(operation, source, options, step)

        img, src_format = decode(source)
        if step.resamples:
            factor = scale_factor_image(img, options.width, options.height)
            if not should_transform(factor, options.upscale):
                logger.debug("%s pass-through: factor %.4f without upscale", step.name, factor)
                if fmt is src_format:
                    return source
                return self._encode(img, fmt, options.quality)

        logger.debug("Applying %s to %dx%d %s", step.name, img.width, img.height, src_format.value)
        return self._encode(step.apply(img), fmt, options.quality)

    def _transform_animated(
        self,
        operation: Operation,
        source: bytes,
        options: TransformOptions,
        step: TransformStep,
    ) -> bytes:
        if operation is Operation.FIT:
            # Frames must share one exact size, so fit-within becomes cover-fit
            step = ThumbnailStep(width=options.width, height=options.height)
        return transform_animated(
            source,
            options,
            step,
            apply_policy=operation.is_resample,
        )

    def _encode(self, img: Image.Image, fmt: ImageFormat, quality: int) -> bytes:
        watermark = None
        if fmt is ImageFormat.JPEG:
            watermark = self.watermark or default_watermark_assets()
        return encode(img, fmt, quality, watermark=watermark)
