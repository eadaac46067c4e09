"""Transform commands (resize/thumbnail/fit/rotate/flip) CLI parsing and control flow."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import config
from engine import (
    EngineError,
    ImageEngine,
    ImageFormat,
    Operation,
    TransformOptions,
    WatermarkAssets,
)

logger = logging.getLogger(__name__)

STDIO = "-"

_RESAMPLE_HELP = {
    Operation.RESIZE: "Resize to exactly WIDTHxHEIGHT",
    Operation.THUMBNAIL: "Resize and crop to fill WIDTHxHEIGHT",
    Operation.FIT: "Resize to fit inside WIDTHxHEIGHT without cropping",
}


def _add_io_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("source", help="Source image path ('-' for stdin)")
    parser.add_argument("output", help="Output image path ('-' for stdout)")
    parser.add_argument(
        "-f", "--format",
        help="Output format: jpg, png, gif, tiff, bmp "
             "(default: from output extension, else source format)",
    )
    parser.add_argument(
        "--quality",
        type=int,
        default=config.DEFAULT_QUALITY,
        help=f"JPEG quality 0-100 (default: {config.DEFAULT_QUALITY})",
    )
    parser.add_argument(
        "--watermark",
        metavar="PATH",
        help=f"Plain watermark variant (default: {config.WATERMARK_PLAIN_PATH})",
    )
    parser.add_argument(
        "--watermark-colored",
        metavar="PATH",
        help=f"Colored watermark variant (default: {config.WATERMARK_COLORED_PATH})",
    )


def add_transform_subparsers(subparsers: argparse._SubParsersAction) -> None:
    for operation, help_text in _RESAMPLE_HELP.items():
        op_parser = subparsers.add_parser(operation.value, help=help_text)
        _add_io_args(op_parser)
        op_parser.add_argument(
            "-W", "--width",
            type=int,
            default=0,
            help="Target width (0: derive from height)",
        )
        op_parser.add_argument(
            "-H", "--height",
            type=int,
            default=0,
            help="Target height (0: derive from width)",
        )
        op_parser.add_argument(
            "--upscale",
            action="store_true",
            help="Allow output larger than the source",
        )
        op_parser.set_defaults(_cmd=cmd_transform, operation=operation)

    rotate_parser = subparsers.add_parser("rotate", help="Rotate counter-clockwise by 90, 180 or 270 degrees")
    _add_io_args(rotate_parser)
    rotate_parser.add_argument(
        "-d", "--degree",
        type=int,
        required=True,
        help="Rotation in degrees (90, 180, 270)",
    )
    rotate_parser.set_defaults(_cmd=cmd_transform, operation=Operation.ROTATE)

    flip_parser = subparsers.add_parser("flip", help="Mirror horizontally (h) or vertically (v)")
    _add_io_args(flip_parser)
    flip_parser.add_argument(
        "-p", "--position",
        required=True,
        help="Flip axis: h (horizontal) or v (vertical)",
    )
    flip_parser.set_defaults(_cmd=cmd_transform, operation=Operation.FLIP)


def resolve_output_format(fmt: str | None, output: str) -> ImageFormat | None:
    """Pick the output format from --format, then the output file extension.

    Returns None (meaning "same as source") when neither names a format.
    """
    if fmt:
        return ImageFormat.from_name(fmt)
    if output != STDIO:
        suffix = Path(output).suffix
        if suffix:
            try:
                return ImageFormat.from_name(suffix)
            except EngineError:
                logger.debug("Unknown output extension %s, keeping source format", suffix)
    return None


def build_options(args: argparse.Namespace) -> TransformOptions:
    return TransformOptions(
        width=getattr(args, "width", 0),
        height=getattr(args, "height", 0),
        upscale=getattr(args, "upscale", False),
        format=resolve_output_format(args.format, args.output),
        quality=args.quality,
        degree=getattr(args, "degree", 0),
        position=getattr(args, "position", ""),
    )


def load_watermark(args: argparse.Namespace) -> WatermarkAssets | None:
    """Load explicitly requested watermark files; None defers to the defaults."""
    if not args.watermark and not args.watermark_colored:
        return None
    return WatermarkAssets.load(
        args.watermark or config.WATERMARK_PLAIN_PATH,
        args.watermark_colored or config.WATERMARK_COLORED_PATH,
    )


def _read_source(source: str) -> bytes:
    if source == STDIO:
        return sys.stdin.buffer.read()
    return Path(source).read_bytes()


def _write_output(output: str, data: bytes) -> None:
    if output == STDIO:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


def cmd_transform(args: argparse.Namespace) -> int:
    operation: Operation = args.operation
    try:
        source = _read_source(args.source)
    except OSError as exc:
        logger.error("Cannot read %s: %s", args.source, exc)
        return 1

    try:
        options = build_options(args)
        engine = ImageEngine(watermark=load_watermark(args))
        result = engine.transform(operation, source, options)
    except (EngineError, ValueError) as exc:
        logger.error("%s failed: %s", operation.value, exc)
        return 1

    try:
        _write_output(args.output, result)
    except OSError as exc:
        logger.error("Cannot write %s: %s", args.output, exc)
        return 1

    if result is source:
        logger.info("%s: source passed through unchanged (%d bytes)", operation.value, len(result))
    else:
        logger.info("%s: wrote %d bytes to %s", operation.value, len(result), args.output)
    return 0
