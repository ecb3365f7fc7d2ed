"""
Module: core.models.region

Purpose:
    Provides the Region dataclass - a rectangle in percentage space
    attached to a Layer or Group, optionally carrying a replacement
    raster that overrides the owner's pixels inside the rectangle.

Key Functions:
    - Region.create(rect): New unlocked region with a fresh id
    - Region.rect: Geometry as a Rect
    - Region.with_rect(rect): Copy with new geometry
    - Region.to_dict() / Region.from_dict(): Plain-data snapshot

Dependencies:
    - dataclasses (std)
    - core.geometry: Rect, normalize_rect

Used By:
    - core.models.assets: Layer.regions, Group.regions
    - graph.asset_graph: Region mutations
    - interaction.editor: Gesture commits
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from typing import Any, Optional, Sequence

from ..geometry import Rect, normalize_rect

logger = logging.getLogger(__name__)


def new_id() -> str:
    """Fresh opaque id for regions, layers, groups and queue items."""
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class Region:
    """
    Rectangular region in percentage space (immutable).

    Coordinates are percentages of the owner's displayed bounds, not
    pixels. Geometry is normalized on construction: out-of-range values
    are clamped into [0, 100] with a minimum size of 1%, never rejected.

    Attributes:
        id: Region identifier (unique within its owner)
        x, y: Top-left corner in percent
        width, height: Size in percent (>= 1)
        is_locked: Locked regions cannot be moved, resized or deleted
        replacement_src: Raster source that replaces the owner's pixels
        is_queued: Informational; set once the region joined the stitch queue

    Invariants:
        - 0 <= x, 0 <= y
        - x + width <= 100, y + height <= 100
        - width >= 1, height >= 1

    Example:
        >>> Region("r1", x=95, y=0, width=10, height=10).x
        90.0
    """

    id: str
    x: float
    y: float
    width: float
    height: float
    is_locked: bool = False
    replacement_src: Optional[Any] = None
    is_queued: bool = False

    def __post_init__(self) -> None:
        """Normalize geometry on construction."""
        raw = Rect(self.x, self.y, self.width, self.height)
        fixed = normalize_rect(raw)
        if fixed is not raw:
            logger.debug(f"Corrected region {self.id} geometry {raw} -> {fixed}")
            object.__setattr__(self, "x", fixed.x)
            object.__setattr__(self, "y", fixed.y)
            object.__setattr__(self, "width", fixed.width)
            object.__setattr__(self, "height", fixed.height)

    @classmethod
    def create(cls, rect: Rect, region_id: Optional[str] = None) -> Region:
        """New unlocked region with no replacement, not queued."""
        return cls(
            id=region_id or new_id(),
            x=rect.x,
            y=rect.y,
            width=rect.width,
            height=rect.height,
        )

    @property
    def rect(self) -> Rect:
        """Geometry as a Rect."""
        return Rect(self.x, self.y, self.width, self.height)

    @property
    def has_replacement(self) -> bool:
        """True if a replacement raster is set."""
        return self.replacement_src is not None

    def with_rect(self, rect: Rect) -> Region:
        """Copy with new geometry (normalized)."""
        return replace(self, x=rect.x, y=rect.y, width=rect.width, height=rect.height)

    def to_dict(self) -> dict:
        """
        Serialize to plain data.

        Replacement rasters are only carried through when they are strings
        (paths or data URLs); other sources are reported via has_replacement.
        """
        d = {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "is_locked": self.is_locked,
            "is_queued": self.is_queued,
            "has_replacement": self.has_replacement,
        }
        if isinstance(self.replacement_src, str):
            d["replacement_src"] = self.replacement_src
        return d

    @classmethod
    def from_dict(cls, data: dict) -> Region:
        """Deserialize from plain data."""
        return cls(
            id=data["id"],
            x=data["x"],
            y=data["y"],
            width=data["width"],
            height=data["height"],
            is_locked=data.get("is_locked", False),
            replacement_src=data.get("replacement_src"),
            is_queued=data.get("is_queued", False),
        )


def find_region(regions: Sequence[Region], region_id: str) -> Optional[Region]:
    """Find a region by id, or None."""
    for region in regions:
        if region.id == region_id:
            return region
    return None
