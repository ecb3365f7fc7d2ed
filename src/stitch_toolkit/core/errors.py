"""
Module: core.errors

Purpose:
    Exception hierarchy shared by every layer of the toolkit.

Key Classes:
    - StitchError: Base class for all toolkit errors
    - GeometryViolation: Rectangle outside [0, 100] or below minimum size
    - GraphInvariantViolation: Graph operation that would orphan a reference
    - RegionLocked: Destructive edit attempted on a locked region
    - DecodeFailure: Raster source could not be decoded
    - OwnerNotFound / RegionNotFound: Stale ids

Propagation:
    Geometry problems are corrected where they occur and only surface from
    the strict validator. Graph and decode errors always reach the caller
    with the graph left untouched.
"""

from __future__ import annotations


class StitchError(Exception):
    """Base class for toolkit errors."""
    pass


class GeometryViolation(StitchError):
    """Rectangle breaks the percentage-space invariants."""
    pass


class GraphInvariantViolation(StitchError):
    """Asset graph operation rejected; no mutation took place."""
    pass


class RegionLocked(GraphInvariantViolation):
    """Move, resize or delete attempted on a locked region."""
    
    def __init__(self, region_id: str, action: str = "modify"):
        super().__init__(f"Region {region_id} is locked; cannot {action}")
        self.region_id = region_id
        self.action = action


class DecodeFailure(StitchError):
    """Raster source could not be decoded."""
    
    def __init__(self, message: str, source_hint: str = ""):
        super().__init__(message)
        self.source_hint = source_hint


class OwnerNotFound(StitchError):
    """No layer or group with the given id."""
    
    def __init__(self, owner_id: str):
        super().__init__(f"No layer or group with id: {owner_id}")
        self.owner_id = owner_id


class RegionNotFound(StitchError):
    """Owner has no region with the given id."""
    
    def __init__(self, owner_id: str, region_id: str):
        super().__init__(f"No region {region_id} on owner {owner_id}")
        self.owner_id = owner_id
        self.region_id = region_id
