"""
Image transformation engine.

Turns encoded image bytes plus a requested operation (resize, thumbnail, fit,
rotate, flip) into re-encoded output bytes. JPEG output is stamped with a
semi-transparent watermark whose variant depends on the image's dominant
color; animated output is transformed frame by frame.

Key components:
- types: ImageFormat, Operation, TransformOptions, RGB, AnimatedRaster
- color: dominant color, hex parsing, luminance
- watermark: WatermarkAssets and the compositor
- scaling: the downscale-only scaling policy
- steps: TransformStep classes and build_step() dispatch
- animation: the per-frame pipeline for animated output
- codec: decode() / encode()
- engine: ImageEngine, the request-level entry point
"""

from .codec import decode, encode, encode_animation, probe_format
from .color import dominant_color, hex_to_rgb, relative_luminance, rgb_to_hex, watermark_score
from .engine import ImageEngine
from .errors import (
    AssetUnavailable,
    DecodeFailed,
    EngineError,
    InvalidHex,
    UnsupportedAxis,
    UnsupportedDegree,
    UnsupportedFormat,
)
from .scaling import scale_factor, scale_factor_image, should_transform
from .steps import (
    FitStep,
    FlipStep,
    ResizeStep,
    RotateStep,
    ThumbnailStep,
    TransformStep,
    build_step,
)
from .types import (
    RGB,
    AnimatedRaster,
    FrameTiming,
    ImageFormat,
    Operation,
    TransformOptions,
)
from .watermark import WatermarkAssets, compose, default_watermark_assets

__all__ = [
    # Entry point
    "ImageEngine",
    # Types
    "RGB",
    "AnimatedRaster",
    "FrameTiming",
    "ImageFormat",
    "Operation",
    "TransformOptions",
    # Errors
    "EngineError",
    "DecodeFailed",
    "UnsupportedFormat",
    "UnsupportedDegree",
    "UnsupportedAxis",
    "InvalidHex",
    "AssetUnavailable",
    # Color analysis
    "dominant_color",
    "hex_to_rgb",
    "rgb_to_hex",
    "relative_luminance",
    "watermark_score",
    # Watermark
    "WatermarkAssets",
    "compose",
    "default_watermark_assets",
    # Scaling policy
    "scale_factor",
    "scale_factor_image",
    "should_transform",
    # Steps
    "TransformStep",
    "ResizeStep",
    "ThumbnailStep",
    "FitStep",
    "RotateStep",
    "FlipStep",
    "build_step",
    # Codec
    "decode",
    "encode",
    "encode_animation",
    "probe_format",
]
