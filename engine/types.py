"""
Core data types for the transformation engine.

These are the values that flow between the codec, the transform steps and
the animation pipeline. Rasters themselves are plain `PIL.Image.Image`
objects; every stage returns a new image instead of mutating its input.
"""

from __future__ import annotations

import dataclasses
import enum
import math
from dataclasses import dataclass
from typing import Literal

from PIL import Image

import config
from .errors import UnsupportedFormat

FlipAxis = Literal["h", "v"]

FLIP_AXES: tuple[str, ...] = ("h", "v")
ROTATE_DEGREES: tuple[int, ...] = (90, 180, 270)


class ImageFormat(enum.Enum):
    """Supported encode/decode formats, valued by their Pillow format name."""

    JPEG = "JPEG"
    PNG = "PNG"
    GIF = "GIF"
    TIFF = "TIFF"
    BMP = "BMP"

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @classmethod
    def from_name(cls, name: str) -> ImageFormat:
        """Parse a user-facing format name ("jpg", "png", ...).

        Raises:
            UnsupportedFormat: If the name does not map to a supported format.
        """
        key = str(name).strip().lower().lstrip(".")
        fmt = _ALIASES.get(key)
        if fmt is None:
            raise UnsupportedFormat(name)
        return fmt

    @classmethod
    def from_pil(cls, pil_format: str | None) -> ImageFormat:
        """Map a Pillow `Image.format` value to an ImageFormat."""
        if pil_format is None:
            raise UnsupportedFormat(pil_format)
        return cls.from_name(pil_format)


_ALIASES: dict[str, ImageFormat] = {
    "jpeg": ImageFormat.JPEG,
    "jpg": ImageFormat.JPEG,
    "png": ImageFormat.PNG,
    "gif": ImageFormat.GIF,
    "tiff": ImageFormat.TIFF,
    "tif": ImageFormat.TIFF,
    "bmp": ImageFormat.BMP,
}

_EXTENSIONS: dict[ImageFormat, str] = {
    ImageFormat.JPEG: ".jpg",
    ImageFormat.PNG: ".png",
    ImageFormat.GIF: ".gif",
    ImageFormat.TIFF: ".tiff",
    ImageFormat.BMP: ".bmp",
}


class Operation(enum.Enum):
    """Transform operations a caller can request."""

    RESIZE = "resize"
    THUMBNAIL = "thumbnail"
    FIT = "fit"
    ROTATE = "rotate"
    FLIP = "flip"

    @property
    def is_resample(self) -> bool:
        """Whether the operation resamples pixels (and so obeys the scaling policy)."""
        return self in (Operation.RESIZE, Operation.THUMBNAIL, Operation.FIT)


@dataclass(frozen=True)
class RGB:
    """An opaque 24-bit color."""

    red: int
    green: int
    blue: int

    def __post_init__(self) -> None:
        for name in ("red", "green", "blue"):
            value = getattr(self, name)
            if not 0 <= value <= 255:
                raise ValueError(f"{name} must be within [0, 255], got {value}")

    def channels(self) -> tuple[int, int, int]:
        return (self.red, self.green, self.blue)

    def to_hex(self) -> str:
        """Lower-case hex form without a leading '#', e.g. '1a2b3c'."""
        return f"{self.red:02x}{self.green:02x}{self.blue:02x}"


def derive_dimension(known: int, src_known: int, src_other: int) -> int:
    """Derive a missing dimension from the source aspect ratio.

    Rounds half up and never returns less than one pixel.

    Examples:
        >>> derive_dimension(50, 100, 50)   # width 50 on a 100x50 source
        25
    """
    return int(max(1.0, math.floor(known * src_other / src_known + 0.5)))


@dataclass(frozen=True)
class TransformOptions:
    """Caller-supplied parameters of a single transform request.

    Attributes:
        width: Target width in pixels. 0 means "derive from height".
        height: Target height in pixels. 0 means "derive from width".
        upscale: Allow resampling to a larger size than the source.
        format: Output format. None means "same as the source".
        quality: Encoder quality (0-100), used by JPEG.
        degree: Rotation in degrees counter-clockwise, one of 90/180/270.
        position: Flip axis, "h" (horizontal) or "v" (vertical).
    """

    width: int = 0
    height: int = 0
    upscale: bool = False
    format: ImageFormat | None = None
    quality: int = config.DEFAULT_QUALITY
    degree: int = 0
    position: str = ""

    def validate(self) -> None:
        """Validate numeric parameters.

        Raises:
            ValueError: If a dimension is negative or quality is out of range.
        """
        if self.width < 0 or self.height < 0:
            raise ValueError(
                f"width and height must be non-negative, got {self.width}x{self.height}"
            )
        if not 0 <= self.quality <= 100:
            raise ValueError(f"quality must be within [0, 100], got {self.quality}")

    def resolve_dimensions(self, src_width: int, src_height: int) -> TransformOptions:
        """Return a copy with any zero dimension back-filled from the source ratio.

        Width is derived first (from height), then height (from width); a
        value derived in the first step is never re-derived. When both are
        zero nothing is derived. The receiver is left unchanged.
        """
        width, height = self.width, self.height
        if width == 0 and height != 0:
            width = derive_dimension(height, src_height, src_width)
        elif height == 0 and width != 0:
            height = derive_dimension(width, src_width, src_height)
        if (width, height) == (self.width, self.height):
            return self
        return dataclasses.replace(self, width=width, height=height)

    def with_format(self, fmt: ImageFormat) -> TransformOptions:
        """Return a copy with the output format set."""
        return dataclasses.replace(self, format=fmt)


@dataclass(frozen=True)
class FrameTiming:
    """Per-frame metadata carried through an animation transform.

    Attributes:
        duration: Display time in milliseconds.
        disposal: GIF disposal method (0-3).
    """

    duration: int = 0
    disposal: int = 0


@dataclass
class AnimatedRaster:
    """An ordered frame sequence sharing one canvas size.

    Attributes:
        frames: Frames in display order, all exactly width x height.
        timings: One FrameTiming per frame.
        width: Container (logical screen) width.
        height: Container (logical screen) height.
        loop: Loop count from the source container; None means play once.
    """

    frames: list[Image.Image]
    timings: list[FrameTiming]
    width: int
    height: int
    loop: int | None = None

    def __post_init__(self) -> None:
        if not self.frames:
            raise ValueError("An animation needs at least one frame")
        if len(self.frames) != len(self.timings):
            raise ValueError(
                f"Got {len(self.frames)} frames but {len(self.timings)} timings"
            )
        for index, frame in enumerate(self.frames):
            if frame.size != (self.width, self.height):
                raise ValueError(
                    f"Frame {index} is {frame.size[0]}x{frame.size[1]}, "
                    f"container is {self.width}x{self.height}"
                )

    def __len__(self) -> int:
        return len(self.frames)
