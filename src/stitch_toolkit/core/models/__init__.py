"""
Core Models Package

Immutable data models shared by the graph, the editor and the
composition engine. Changes always produce new instances
(`dataclasses.replace`), which lets the asset graph stage an operation
on a draft and swap it in only once every invariant holds.
"""

from .region import Region, new_id, find_region
from .assets import Layer, Group, StitchQueueItem, Selection

__all__ = [
    "Region",
    "Layer",
    "Group",
    "StitchQueueItem",
    "Selection",
    "new_id",
    "find_region",
]
