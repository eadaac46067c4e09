"""
Transform step classes with a common interface.

Each step is a frozen dataclass implementing TransformStep. Steps are pure:
they take an image and return a new one without mutating the input.

Usage:
    from engine.steps import build_step
    from engine.types import Operation, TransformOptions

    step = build_step(Operation.THUMBNAIL, TransformOptions(width=100, height=100))
    thumb = step.apply(image)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from PIL import Image, ImageOps

from .errors import UnsupportedAxis, UnsupportedDegree
from .scaling import scale_factor_image, should_transform
from .types import FLIP_AXES, ROTATE_DEGREES, Operation, TransformOptions

logger = logging.getLogger(__name__)

LANCZOS = Image.Resampling.LANCZOS


class TransformStep(ABC):
    """Base class for transform steps.

    Steps must be pure functions of their input image.
    """

    @abstractmethod
    def apply(self, img: Image.Image) -> Image.Image:
        """Apply this step and return a new image."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for logging and debugging."""

    @property
    def resamples(self) -> bool:
        """Whether this step is subject to the scaling policy."""
        return False


@dataclass(frozen=True)
class _ResampleStep(TransformStep):
    """Shared parts of the steps that change an image's size."""

    width: int
    height: int

    @property
    def resamples(self) -> bool:
        return True

    def target_size(self, img: Image.Image) -> tuple[int, int]:
        """Requested size with a zero dimension derived from the image's ratio."""
        resolved = TransformOptions(width=self.width, height=self.height).resolve_dimensions(*img.size)
        return resolved.width, resolved.height


@dataclass(frozen=True)
class ResizeStep(_ResampleStep):
    """Resample to exactly the requested size (aspect ratio may change)."""

    def apply(self, img: Image.Image) -> Image.Image:
        width, height = self.target_size(img)
        if width == 0 and height == 0:
            return img.copy()
        return img.resize((width, height), LANCZOS)

    @property
    def name(self) -> str:
        return f"resize({self.width}x{self.height})"


@dataclass(frozen=True)
class ThumbnailStep(_ResampleStep):
    """Scale to cover the requested box, then crop the excess around the center."""

    def apply(self, img: Image.Image) -> Image.Image:
        width, height = self.target_size(img)
        if width == 0 and height == 0:
            return img.copy()
        return ImageOps.fit(img, (width, height), method=LANCZOS, centering=(0.5, 0.5))

    @property
    def name(self) -> str:
        return f"thumbnail({self.width}x{self.height})"


@dataclass(frozen=True)
class FitStep(_ResampleStep):
    """Scale to fit inside the requested box, preserving aspect ratio, no cropping."""

    def apply(self, img: Image.Image) -> Image.Image:
        max_w, max_h = self.target_size(img)
        if max_w == 0 and max_h == 0:
            return img.copy()
        src_w, src_h = img.size
        if src_w <= max_w and src_h <= max_h:
            return img.copy()

        src_ratio = src_w / src_h
        if src_ratio > max_w / max_h:
            new_w = max_w
            new_h = max(1, int(new_w / src_ratio + 0.5))
        else:
            new_h = max_h
            new_w = max(1, int(new_h * src_ratio + 0.5))
        return img.resize((new_w, new_h), LANCZOS)

    @property
    def name(self) -> str:
        return f"fit({self.width}x{self.height})"


_ROTATIONS: dict[int, Image.Transpose] = {
    # counter-clockwise degrees, same convention as Pillow
    90: Image.Transpose.ROTATE_90,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_270,
}

_FLIPS: dict[str, Image.Transpose] = {
    "h": Image.Transpose.FLIP_LEFT_RIGHT,
    "v": Image.Transpose.FLIP_TOP_BOTTOM,
}


@dataclass(frozen=True)
class RotateStep(TransformStep):
    """Lossless counter-clockwise rotation by a multiple of 90 degrees."""

    degree: int

    def __post_init__(self) -> None:
        if self.degree not in ROTATE_DEGREES:
            raise UnsupportedDegree(self.degree)

    def apply(self, img: Image.Image) -> Image.Image:
        return img.transpose(_ROTATIONS[self.degree])

    @property
    def name(self) -> str:
        return f"rotate({self.degree})"


@dataclass(frozen=True)
class FlipStep(TransformStep):
    """Lossless mirror along the horizontal ("h") or vertical ("v") axis."""

    position: str

    def __post_init__(self) -> None:
        if self.position not in FLIP_AXES:
            raise UnsupportedAxis(self.position)

    def apply(self, img: Image.Image) -> Image.Image:
        return img.transpose(_FLIPS[self.position])

    @property
    def name(self) -> str:
        return f"flip({self.position})"


_STEP_BUILDERS: dict[Operation, Callable[[TransformOptions], TransformStep]] = {
    Operation.RESIZE: lambda o: ResizeStep(width=o.width, height=o.height),
    Operation.THUMBNAIL: lambda o: ThumbnailStep(width=o.width, height=o.height),
    Operation.FIT: lambda o: FitStep(width=o.width, height=o.height),
    Operation.ROTATE: lambda o: RotateStep(degree=o.degree),
    Operation.FLIP: lambda o: FlipStep(position=o.position),
}


def build_step(operation: Operation, options: TransformOptions) -> TransformStep:
    """Build the step implementing an operation.

    Raises:
        ValueError: If no step is registered for the operation.
        UnsupportedDegree: For a rotation outside 90/180/270.
        UnsupportedAxis: For a flip axis other than "h"/"v".
    """
    builder = _STEP_BUILDERS.get(operation)
    if builder is None:
        raise ValueError(f"No transform step for operation: {operation!r}")
    return builder(options)


def scale(img: Image.Image, options: TransformOptions, step: TransformStep) -> Image.Image:
    """Apply a step, honouring the scaling policy for resample steps.

    When the policy declines, a copy of the input is returned.
    """
    if not step.resamples:
        return step.apply(img)
    factor = scale_factor_image(img, options.width, options.height)
    if should_transform(factor, options.upscale):
        return step.apply(img)
    logger.debug("Skipping %s: factor %.4f without upscale", step.name, factor)
    return img.copy()
