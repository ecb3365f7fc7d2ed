"""
Module: composition.stitcher

Purpose:
    Horizontal stitching: every input is scaled to the tallest input's
    height (aspect preserved) and laid out left to right with no gaps.

Key Functions:
    - stitch_images(): Stitch already decoded images
    - horizontal_stitch(): Decode sources in parallel, then stitch

Dependencies:
    - PIL.Image: Resizing and pasting
    - composition.raster: Parallel decoding

Used By:
    - cache.composite_cache: Group virtual images
    - output.exporter: Stitch queue export
    - cli: stitch subcommand
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

from PIL import Image

from .cropper import round_half_up
from .raster import RasterSource, decode_all

logger = logging.getLogger(__name__)


def stitch_images(images: Sequence[Image.Image]) -> Optional[Image.Image]:
    """
    Stitch decoded images horizontally.

    target_height = max(height); each image is scaled to
    target_height * (w / h) wide; the canvas is ceil(sum of widths) x
    target_height. A single image comes back unscaled.

    Args:
        images: Decoded images in left-to-right order

    Returns:
        RGBA image, or None for an empty input

    Example:
        >>> stitch_images([img_800x600, img_400x600]).size
        (1200, 600)
    """
    if not images:
        return None

    target_height = max(img.height for img in images)
    widths: List[float] = [target_height * img.width / img.height for img in images]
    canvas = Image.new("RGBA", (math.ceil(sum(widths)), target_height), (0, 0, 0, 0))

    # Cumulative edges are rounded so neighbours never overlap or gap
    cursor = 0.0
    for img, width in zip(images, widths):
        x0 = round_half_up(cursor)
        cursor += width
        size = (max(1, round_half_up(cursor) - x0), target_height)
        tile = img if img.size == size else img.resize(size, Image.Resampling.LANCZOS)
        if tile.mode != "RGBA":
            tile = tile.convert("RGBA")
        canvas.paste(tile, (x0, 0))

    logger.debug(f"Stitched {len(images)} images into {canvas.width}x{canvas.height}")
    return canvas


def horizontal_stitch(sources: Sequence[RasterSource], max_workers: int = 4) -> Optional[Image.Image]:
    """
    Decode all sources concurrently, then stitch them left to right.

    Raises:
        DecodeFailure: If any source fails (no partial output)
    """
    if not sources:
        return None
    return stitch_images(decode_all(sources, max_workers))
