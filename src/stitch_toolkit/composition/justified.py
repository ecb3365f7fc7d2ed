"""
Module: composition.justified

Purpose:
    Justified row layout ("smart stitch"): images are packed greedily
    into rows at a provisional height, then each row is rescaled so its
    images exactly fill the container width.

Key Functions:
    - plan_justified_layout(): Pure geometry, no pixels
    - justified_layout(): Decode, plan and draw

Key Classes:
    - TilePlacement: Where one image lands
    - JustifiedLayout: All placements plus canvas size

Algorithm:
    1. Packing: append images at target_row_height; close the row once
       sum(widths) + (count - 1) * spacing >= container_width.
    2. Row height: available = container - 2*spacing - (count-1)*spacing;
       row_height = available / sum(aspect).
    3. The last row keeps target_row_height when its aspect sum is below
       sparse_row_ratio * (available / target_row_height).
    4. x starts at spacing and advances by width + spacing; y starts at
       spacing and advances by row_height + spacing.

Dependencies:
    - PIL.Image / PIL.ImageColor: Drawing
    - composition.raster: Parallel decoding

Used By:
    - cli: justify subcommand
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageColor

from .config import JustifiedLayoutConfig
from .cropper import round_half_up
from .raster import RasterSource, decode_all

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TilePlacement:
    """
    Float geometry of one image in the layout.

    Attributes:
        index: Position of the image in the input list
        row: Row number (0-based)
        x, y: Top-left corner in pixels
        width, height: Drawn size in pixels
    """

    index: int
    row: int
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class JustifiedLayout:
    """
    Result of planning.

    Attributes:
        placements: One placement per input image, in input order
        row_heights: Final height of each row
        width: Canvas width (the container width)
        height: Canvas height (ceil of spacing + sum(row_height + spacing))
    """

    placements: Tuple[TilePlacement, ...] = ()
    row_heights: Tuple[float, ...] = ()
    width: int = 0
    height: int = 0
    exempt_last_row: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.placements

    def row(self, row: int) -> Tuple[TilePlacement, ...]:
        """Placements in one row, left to right."""
        return tuple(p for p in self.placements if p.row == row)


@dataclass
class _Row:
    indices: List[int] = field(default_factory=list)
    aspects: List[float] = field(default_factory=list)


def _pack_rows(aspects: Sequence[float], config: JustifiedLayoutConfig) -> List[_Row]:
    rows: List[_Row] = []
    current = _Row()
    current_width = 0.0
    for i, aspect in enumerate(aspects):
        current.indices.append(i)
        current.aspects.append(aspect)
        current_width += config.target_row_height * aspect
        if current_width + (len(current.indices) - 1) * config.spacing >= config.container_width:
            rows.append(current)
            current = _Row()
            current_width = 0.0
    if current.indices:
        rows.append(current)
    return rows


def plan_justified_layout(
    sizes: Sequence[Tuple[int, int]],
    config: Optional[JustifiedLayoutConfig] = None,
) -> JustifiedLayout:
    """
    Plan a justified layout for images of the given pixel sizes.

    Args:
        sizes: (width, height) of each image, in order
        config: Layout settings (defaults: 1200 / 300 / 12)

    Returns:
        JustifiedLayout (empty for no input)

    Example:
        >>> layout = plan_justified_layout([(600, 300), (300, 300), (450, 300)])
        >>> layout.row_heights
        (256.0,)
    """
    config = config or JustifiedLayoutConfig()
    if not sizes:
        return JustifiedLayout(width=config.container_width)

    for w, h in sizes:
        if w <= 0 or h <= 0:
            raise ValueError(f"Image sizes must be positive: {w}x{h}")

    aspects = [w / h for w, h in sizes]
    rows = _pack_rows(aspects, config)

    placements: List[TilePlacement] = []
    row_heights: List[float] = []
    exempt = False
    y = float(config.spacing)
    for row_no, row in enumerate(rows):
        aspect_sum = sum(row.aspects)
        available = config.available_width(len(row.indices))
        is_last = row_no == len(rows) - 1
        if is_last and aspect_sum < (available / config.target_row_height) * config.sparse_row_ratio:
            row_height = float(config.target_row_height)
            exempt = True
        else:
            row_height = available / aspect_sum

        x = float(config.spacing)
        for index, aspect in zip(row.indices, row.aspects):
            width = row_height * aspect
            placements.append(TilePlacement(index, row_no, x, y, width, row_height))
            x += width + config.spacing
        row_heights.append(row_height)
        y += row_height + config.spacing

    logger.debug(f"Planned {len(sizes)} images into {len(rows)} rows (last row exempt: {exempt})")
    return JustifiedLayout(
        placements=tuple(placements),
        row_heights=tuple(row_heights),
        width=config.container_width,
        height=math.ceil(y),
        exempt_last_row=exempt,
    )


def render_justified_layout(
    images: Sequence[Image.Image],
    layout: JustifiedLayout,
    background_color: str = "#ffffff",
) -> Image.Image:
    """Draw decoded images onto a background-filled canvas at their placements."""
    fill = ImageColor.getrgb(background_color)
    if len(fill) == 3:
        fill = fill + (255,)
    canvas = Image.new("RGBA", (layout.width, layout.height), fill)
    for p in layout.placements:
        x0, y0 = round_half_up(p.x), round_half_up(p.y)
        size = (
            max(1, round_half_up(p.x + p.width) - x0),
            max(1, round_half_up(p.y + p.height) - y0),
        )
        tile = images[p.index]
        if tile.size != size:
            tile = tile.resize(size, Image.Resampling.LANCZOS)
        canvas.alpha_composite(tile, dest=(x0, y0))
    return canvas


def justified_layout(
    sources: Sequence[RasterSource],
    config: Optional[JustifiedLayoutConfig] = None,
    max_workers: int = 4,
) -> Optional[Image.Image]:
    """
    Decode sources in parallel, plan the layout and draw it.

    Returns:
        RGBA image, or None for an empty input

    Raises:
        DecodeFailure: If any source fails (no partial output)
    """
    config = config or JustifiedLayoutConfig()
    if not sources:
        return None
    images = decode_all(sources, max_workers)
    layout = plan_justified_layout([img.size for img in images], config)
    logger.info(f"Justified layout: {len(images)} images, {layout.width}x{layout.height}")
    return render_justified_layout(images, layout, config.background_color)
