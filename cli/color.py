"""Color report command CLI parsing and control flow."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import config
from engine import (
    EngineError,
    decode,
    dominant_color,
    hex_to_rgb,
    relative_luminance,
    rgb_to_hex,
    watermark_score,
)
from engine.types import RGB
from engine.watermark import COLORED, PLAIN

logger = logging.getLogger(__name__)


def add_color_subparser(subparsers: argparse._SubParsersAction) -> None:
    color_parser = subparsers.add_parser(
        "color",
        help="Report the dominant color and the watermark variant it selects",
    )
    source_group = color_parser.add_mutually_exclusive_group(required=True)
    source_group.add_argument(
        "source",
        nargs="?",
        help="Image file to analyse",
    )
    source_group.add_argument(
        "--hex",
        help="Analyse a given color instead, e.g. 1a2b3c",
    )
    color_parser.set_defaults(_cmd=cmd_color)


def color_report(color: RGB) -> dict[str, str]:
    """Describe a color the way the watermark compositor sees it."""
    channels = color.channels()
    score = watermark_score(channels)
    variant = COLORED if score > config.WATERMARK_SCORE_THRESHOLD else PLAIN
    return {
        "hex": rgb_to_hex(color),
        "rgb": "{}, {}, {}".format(*channels),
        "relative_luminance": f"{relative_luminance(channels):.4f}",
        "watermark_score": f"{score:.4f}",
        "watermark_variant": variant,
    }


def cmd_color(args: argparse.Namespace) -> int:
    try:
        if args.hex:
            color = hex_to_rgb(args.hex)
        else:
            image, _ = decode(Path(args.source).read_bytes())
            color = dominant_color(image)
    except OSError as exc:
        logger.error("Cannot read %s: %s", args.source, exc)
        return 1
    except EngineError as exc:
        logger.error("%s", exc)
        return 1

    for key, value in color_report(color).items():
        print(f"{key}: {value}")
    return 0
