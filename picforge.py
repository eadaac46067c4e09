#!/usr/bin/env python3
"""
Command line front end for the picforge image transformation engine.

Usage:
    picforge resize SRC OUT -W 320 -H 240      # Resize to exactly 320x240
    picforge thumbnail SRC OUT -W 100 -H 100   # Cover-fit and crop to 100x100
    picforge fit SRC OUT -W 800                # Fit inside 800 wide
    picforge rotate SRC OUT -d 90              # Rotate counter-clockwise
    picforge flip SRC OUT -p h                 # Mirror horizontally
    picforge color SRC                         # Dominant color / watermark variant
    picforge color --hex 1a2b3c                # Same, for a given color
"""

from __future__ import annotations

import argparse
import logging
import sys

from logging_utils import configure_logging, add_logging_args
from cli.color import add_color_subparser
from cli.transform import add_transform_subparsers

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="picforge",
        description="Picforge - resize, crop, rotate and watermark images",
    )
    add_logging_args(parser)
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    add_transform_subparsers(subparsers)
    add_color_subparser(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.verbose, args.quiet)

    cmd = getattr(args, "_cmd", None)
    if cmd is None:
        parser.print_help()
        return 1
    return cmd(args)


if __name__ == "__main__":
    sys.exit(main())
