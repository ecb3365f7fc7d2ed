"""
Module: composition.compositor

Purpose:
    Flatten a layer's replacement rasters onto its base image.

Key Functions:
    - composite_regions(): Paint replacements onto a decoded base
    - composite_layer(): Decode a layer's sources and flatten them

Dependencies:
    - PIL.Image: Resizing and alpha compositing
    - composition.raster: Parallel decoding

Used By:
    - cache.composite_cache: Member rasters of a group's virtual image
    - output.exporter: "Save composition" export
"""

from __future__ import annotations

import logging
from typing import Sequence

from PIL import Image

from ..core.models import Layer, Region
from .cropper import region_pixel_box, round_half_up
from .raster import decode_all

logger = logging.getLogger(__name__)


def composite_regions(
    base: Image.Image,
    regions: Sequence[Region],
    replacements: Sequence[Image.Image],
) -> Image.Image:
    """
    Stretch each replacement into its region's pixel rectangle.

    Replacements are painted in list order, so later regions cover
    earlier ones where they overlap. Transparent replacement pixels let
    the base show through.

    Args:
        base: Decoded base raster (modified in place and returned)
        regions: Regions carrying replacements, in paint order
        replacements: Decoded replacement for each region

    Returns:
        The base image with replacements painted on
    """
    for region, replacement in zip(regions, replacements):
        left, top, right, bottom = region_pixel_box(region.rect, base.width, base.height)
        x0, y0 = round_half_up(left), round_half_up(top)
        size = (
            max(1, round_half_up(right) - x0),
            max(1, round_half_up(bottom) - y0),
        )
        if replacement.size != size:
            replacement = replacement.resize(size, Image.Resampling.LANCZOS)
        base.alpha_composite(replacement, dest=(x0, y0))
    return base


def composite_layer(layer: Layer, max_workers: int = 4) -> Image.Image:
    """
    Base raster at full size with every replacement painted on.

    The base and all replacements are decoded together in parallel; a
    layer without replacements yields a copy of its base.

    Args:
        layer: Layer to flatten
        max_workers: Decode parallelism

    Returns:
        RGBA image of original_width x original_height

    Raises:
        DecodeFailure: If the base or any replacement fails to decode
    """
    replaced = [r for r in layer.regions if r.has_replacement]
    decoded = decode_all([layer.raster_src] + [r.replacement_src for r in replaced], max_workers)
    base = decoded[0]

    size = (layer.original_width, layer.original_height)
    if base.size != size:
        # Canvas is the recorded size; the base is drawn unscaled at the origin
        canvas = Image.new("RGBA", size, (0, 0, 0, 0))
        canvas.paste(base, (0, 0))
        base = canvas

    logger.debug(f"Compositing {len(replaced)} replacements onto layer {layer.name!r}")
    return composite_regions(base, replaced, decoded[1:])
