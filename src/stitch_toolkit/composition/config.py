"""
Module: composition.config

Purpose:
    Settings for the justified ("smart stitch") layout.

Key Classes:
    - JustifiedLayoutConfig: Immutable justified layout configuration

Dependencies:
    - dataclasses (std)
    - PIL.ImageColor: Background colour validation

Used By:
    - composition.justified: Planning and drawing
    - cli: justify subcommand
"""

from __future__ import annotations

from dataclasses import dataclass

from PIL import ImageColor


DEFAULT_CONTAINER_WIDTH = 1200
DEFAULT_TARGET_ROW_HEIGHT = 300
DEFAULT_SPACING = 12

# A trailing row whose aspect sum is below this share of a full row
# stays at target height instead of stretching.
DEFAULT_SPARSE_ROW_RATIO = 0.6


@dataclass(frozen=True)
class JustifiedLayoutConfig:
    """
    Configuration for justified row layout (immutable).

    Attributes:
        container_width: Canvas width in pixels
        target_row_height: Provisional row height used while packing
        spacing: Gap between images and around the edges (px)
        background_color: Canvas fill (any Pillow colour string)
        sparse_row_ratio: Last-row stretch threshold

    Example:
        >>> config = JustifiedLayoutConfig()
        >>> config.available_width(3)
        1152
    """

    container_width: int = DEFAULT_CONTAINER_WIDTH
    target_row_height: int = DEFAULT_TARGET_ROW_HEIGHT
    spacing: int = DEFAULT_SPACING
    background_color: str = "#ffffff"
    sparse_row_ratio: float = DEFAULT_SPARSE_ROW_RATIO

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.container_width <= 0:
            raise ValueError(f"container_width must be positive: {self.container_width}")
        if self.target_row_height <= 0:
            raise ValueError(f"target_row_height must be positive: {self.target_row_height}")
        if self.spacing < 0:
            raise ValueError(f"spacing must be non-negative: {self.spacing}")
        if self.container_width - 2 * self.spacing <= 0:
            raise ValueError("Spacing exceeds container width")
        if self.sparse_row_ratio < 0:
            raise ValueError(f"sparse_row_ratio must be non-negative: {self.sparse_row_ratio}")
        # Raises ValueError for unknown colours
        ImageColor.getrgb(self.background_color)

    def available_width(self, count: int) -> int:
        """Width left for images in a row of `count` after edge and inner gaps."""
        return self.container_width - 2 * self.spacing - (count - 1) * self.spacing
