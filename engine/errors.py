"""
Error types raised by the transformation engine.

Every error is local to a single request: nothing inside the engine retries,
and no partial output is returned alongside an error.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for all engine failures."""


class DecodeFailed(EngineError, ValueError):
    """Source bytes are not a valid encoding of any supported format."""


class UnsupportedFormat(EngineError, ValueError):
    """Requested output format has no encoder."""

    def __init__(self, fmt: object):
        super().__init__(f"Unsupported image format: {fmt!r}")
        self.format = fmt


class UnsupportedDegree(EngineError, ValueError):
    """Rotation degree outside the allowed set."""

    def __init__(self, degree: object):
        super().__init__(f"Invalid rotate transformation, degree={degree!r} is not supported")
        self.degree = degree


class UnsupportedAxis(EngineError, ValueError):
    """Flip axis outside the allowed set."""

    def __init__(self, position: object):
        super().__init__(f"Invalid flip transformation, {position!r} is not supported")
        self.position = position


class InvalidHex(EngineError, ValueError):
    """Malformed hexadecimal color string."""

    def __init__(self, text: object, reason: str = "not a 24-bit hexadecimal color"):
        super().__init__(f"Invalid hex color {text!r}: {reason}")
        self.text = text


class AssetUnavailable(EngineError, RuntimeError):
    """A watermark asset is missing or cannot be decoded."""
