"""
Module: composition.cropper

Purpose:
    Cut a region's pixels out of a raster.

Key Functions:
    - region_pixel_box(): Region geometry to a float pixel box
    - crop_to_raster(): Region crop with a never-empty output canvas

Dependencies:
    - PIL.Image: Cropping and sub-pixel resampling
    - composition.raster: Source decoding

Used By:
    - output.exporter: Region export, group cuts
"""

from __future__ import annotations

import math
from typing import Tuple

from PIL import Image

from ..core.geometry import Rect, pixel_box
from .raster import RasterSource, load_image


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive pixel values."""
    return int(math.floor(value + 0.5))


def output_size(pixel_width: float, pixel_height: float) -> Tuple[int, int]:
    """Canvas size for a pixel box; never zero."""
    return max(1, round_half_up(pixel_width)), max(1, round_half_up(pixel_height))


def region_pixel_box(rect: Rect, src_width: float, src_height: float) -> Tuple[float, float, float, float]:
    """
    Float pixel box (left, top, right, bottom) of a percentage rectangle.

    Example:
        >>> region_pixel_box(Rect(10, 20, 50, 50), 800, 600)
        (80.0, 120.0, 480.0, 420.0)
    """
    left, top, width, height = pixel_box(rect, src_width, src_height)
    return (left, top, left + width, top + height)


def crop_to_raster(
    source: RasterSource,
    rect: Rect,
    src_width: float,
    src_height: float,
) -> Image.Image:
    """
    Crop a region out of a source raster.

    The pixel box is (x/100*W, y/100*H, w/100*W, h/100*H); the output
    canvas is max(1, round(pw)) x max(1, round(ph)) and receives the box
    at 1:1 scale (sub-pixel boxes are resampled to fit exactly).

    Args:
        source: Raster source or decoded image
        rect: Region geometry in percent (Region or Rect)
        src_width: Width the percentages refer to (original pixel width)
        src_height: Height the percentages refer to

    Returns:
        RGBA image of the region

    Raises:
        DecodeFailure: If the source cannot be decoded
    """
    image = load_image(source)
    left, top, right, bottom = region_pixel_box(rect, src_width, src_height)
    size = output_size(right - left, bottom - top)
    # Float error must not push the box past the raster edge
    box = (
        max(0.0, left),
        max(0.0, top),
        min(float(image.width), right),
        min(float(image.height), bottom),
    )

    int_box = tuple(round_half_up(v) for v in box)
    if int_box == box and (int_box[2] - int_box[0], int_box[3] - int_box[1]) == size:
        return image.crop(int_box)
    return image.resize(size, Image.Resampling.LANCZOS, box=box)
