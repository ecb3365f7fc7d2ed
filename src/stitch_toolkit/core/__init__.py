"""
Core Package

Percentage-space geometry, the immutable data models (Region, Layer,
Group, StitchQueueItem, Selection) and the toolkit's error kinds.
"""

from .errors import (
    StitchError,
    GeometryViolation,
    GraphInvariantViolation,
    RegionLocked,
    DecodeFailure,
    OwnerNotFound,
    RegionNotFound,
)
from .geometry import Rect, Point, Bounds, Handle, Hit
from .models import Region, Layer, Group, StitchQueueItem, Selection

__all__ = [
    "StitchError",
    "GeometryViolation",
    "GraphInvariantViolation",
    "RegionLocked",
    "DecodeFailure",
    "OwnerNotFound",
    "RegionNotFound",
    "Rect",
    "Point",
    "Bounds",
    "Handle",
    "Hit",
    "Region",
    "Layer",
    "Group",
    "StitchQueueItem",
    "Selection",
]
