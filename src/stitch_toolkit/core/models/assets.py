"""
Module: core.models.assets

Purpose:
    Provides the asset dataclasses held by the asset graph: Layer (an
    imported image), Group (an ordered, nestable collection of layers
    whose left-to-right concatenation is its virtual image),
    StitchQueueItem (a non-owning reference to a region queued for
    export) and Selection (what the editor currently has active).

Key Classes:
    - Layer: Image asset plus its regions
    - Group: Composite asset plus its regions (in virtual-image space)
    - StitchQueueItem: (owner, region) pair in export order
    - Selection: Active asset and region ids

Dependencies:
    - dataclasses (std)
    - core.models.region: Region

Used By:
    - graph.asset_graph: Arena of layers and groups
    - composition.compositor: composite_layer(layer)
    - cache.composite_cache: Group fingerprints
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from .region import Region, find_region


@dataclass(frozen=True, slots=True)
class Layer:
    """
    Imported image asset (immutable).

    Attributes:
        id: Layer identifier
        name: Display name (usually the file name)
        raster_src: Raster source, stored verbatim
        original_width: Decoded pixel width
        original_height: Decoded pixel height
        regions: Regions in paint order
        group_id: Owning group, if any (membership is exclusive)

    Example:
        >>> layer = Layer("l1", "photo.png", b"...", 800, 600)
        >>> layer.aspect_ratio
        1.3333333333333333
    """

    id: str
    name: str
    raster_src: Any
    original_width: int
    original_height: int
    regions: Tuple[Region, ...] = ()
    group_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate dimensions on construction."""
        if self.original_width <= 0:
            raise ValueError(f"original_width must be positive: {self.original_width}")
        if self.original_height <= 0:
            raise ValueError(f"original_height must be positive: {self.original_height}")

    @property
    def aspect_ratio(self) -> float:
        """Width / height."""
        return self.original_width / self.original_height

    @property
    def has_replacements(self) -> bool:
        """True if any region carries a replacement raster."""
        return any(r.has_replacement for r in self.regions)

    def find_region(self, region_id: str) -> Optional[Region]:
        """Find a region by id, or None."""
        return find_region(self.regions, region_id)

    def to_dict(self) -> dict:
        """Serialize to plain data (raster source omitted unless a string)."""
        d = {
            "id": self.id,
            "type": "layer",
            "name": self.name,
            "width": self.original_width,
            "height": self.original_height,
            "regions": [r.to_dict() for r in self.regions],
        }
        if self.group_id is not None:
            d["group_id"] = self.group_id
        if isinstance(self.raster_src, str):
            d["raster_src"] = self.raster_src
        return d


@dataclass(frozen=True, slots=True)
class Group:
    """
    Composite asset (immutable).

    The ordered member list is the left-to-right assembly order of the
    group's virtual image. Regions on a group are defined in the
    percentage space of that virtual image.

    Attributes:
        id: Group identifier
        name: Display name
        member_layer_ids: Ordered member layer ids
        regions: Regions in paint order
        parent_group_id: Parent group for subgroups (None for roots)
    """

    id: str
    name: str
    member_layer_ids: Tuple[str, ...] = ()
    regions: Tuple[Region, ...] = ()
    parent_group_id: Optional[str] = None

    @property
    def is_root(self) -> bool:
        """True if this group has no parent."""
        return self.parent_group_id is None

    def find_region(self, region_id: str) -> Optional[Region]:
        """Find a region by id, or None."""
        return find_region(self.regions, region_id)

    def to_dict(self) -> dict:
        """Serialize to plain data."""
        d = {
            "id": self.id,
            "type": "group",
            "name": self.name,
            "member_layer_ids": list(self.member_layer_ids),
            "regions": [r.to_dict() for r in self.regions],
        }
        if self.parent_group_id is not None:
            d["parent_group_id"] = self.parent_group_id
        return d


@dataclass(frozen=True, slots=True)
class StitchQueueItem:
    """
    Queued region for the final horizontal stitch (non-owning).

    Attributes:
        id: Queue item identifier
        owner_id: Layer or group id
        region_id: Region id within that owner
    """

    id: str
    owner_id: str
    region_id: str

    def to_dict(self) -> dict:
        return {"id": self.id, "owner_id": self.owner_id, "region_id": self.region_id}


@dataclass(frozen=True, slots=True)
class Selection:
    """Currently active asset (layer or group) and region."""

    asset_id: Optional[str] = None
    region_id: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.asset_id is None and self.region_id is None
