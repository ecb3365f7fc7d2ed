"""
Module: cli

Purpose:
    Command-line entry point (stitch-toolkit) for the stand-alone
    composition tools: horizontal stitch, justified layout and region
    crop of image files.

Key Functions:
    - build_parser(): argparse definition
    - main(): Entry point, returns a process exit code

Usage:
    stitch-toolkit stitch a.png b.png -o out.png
    stitch-toolkit justify *.jpg -o grid.png --width 1600 --row-height 240
    stitch-toolkit crop photo.png --rect 10 10 50 40 -o crop.png

Dependencies:
    - argparse (std)
    - composition, loading
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .composition.config import JustifiedLayoutConfig
from .composition.cropper import crop_to_raster
from .composition.justified import justified_layout
from .composition.raster import encode_png
from .composition.stitcher import horizontal_stitch
from .config import ToolkitConfig
from .core.errors import StitchError
from .core.geometry import Rect, normalize_rect
from .loading.importer import probe_size

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stitch-toolkit",
        description="Crop, stitch and lay out images",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--workers", type=int, default=ToolkitConfig().decode_workers,
                        help="Parallel decode workers")
    parser.add_argument("--compress-level", type=int, default=ToolkitConfig().png_compress_level,
                        help="PNG compression level (0-9)")
    sub = parser.add_subparsers(dest="command", required=True)

    stitch = sub.add_parser("stitch", help="Join images left to right at the tallest height")
    stitch.add_argument("inputs", nargs="+", type=Path)
    stitch.add_argument("--output", "-o", type=Path, required=True)

    defaults = JustifiedLayoutConfig()
    justify = sub.add_parser("justify", help="Justified row layout")
    justify.add_argument("inputs", nargs="+", type=Path)
    justify.add_argument("--output", "-o", type=Path, required=True)
    justify.add_argument("--width", type=int, default=defaults.container_width)
    justify.add_argument("--row-height", type=int, default=defaults.target_row_height)
    justify.add_argument("--spacing", type=int, default=defaults.spacing)
    justify.add_argument("--background", default=defaults.background_color)
    justify.add_argument("--sparse-row-ratio", type=float, default=defaults.sparse_row_ratio)

    crop = sub.add_parser("crop", help="Cut a percentage rectangle out of an image")
    crop.add_argument("input", type=Path)
    crop.add_argument("--rect", nargs=4, type=float, required=True,
                      metavar=("X", "Y", "WIDTH", "HEIGHT"), help="Percentages of the image")
    crop.add_argument("--output", "-o", type=Path, required=True)

    return parser


def _write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    logger.info(f"Wrote {path}")


def _run(args: argparse.Namespace) -> int:
    config = ToolkitConfig(decode_workers=args.workers, png_compress_level=args.compress_level)

    if args.command == "stitch":
        image = horizontal_stitch(list(args.inputs), config.decode_workers)
    elif args.command == "justify":
        layout_config = JustifiedLayoutConfig(
            container_width=args.width,
            target_row_height=args.row_height,
            spacing=args.spacing,
            background_color=args.background,
            sparse_row_ratio=args.sparse_row_ratio,
        )
        image = justified_layout(list(args.inputs), layout_config, config.decode_workers)
    else:
        width, height = probe_size(args.input)
        image = crop_to_raster(args.input, normalize_rect(Rect(*args.rect)), width, height)

    logger.info(f"{args.command}: {image.width}x{image.height}")
    _write(args.output, encode_png(image, config.png_compress_level))
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Run the CLI.

    Returns:
        0 on success, 1 on a toolkit error, 2 on bad arguments
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(message)s',
    )
    try:
        return _run(args)
    except ValueError as e:
        logger.error(f"Invalid settings: {e}")
        return 2
    except StitchError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
