"""
Asset graph: layers, nested groups, the stitch queue and selection.
"""

from .asset_graph import AssetGraph
from .library import DropAction, create_group_from, move_into, reorder, resolve_drop

__all__ = [
    "AssetGraph",
    "DropAction",
    "create_group_from",
    "move_into",
    "reorder",
    "resolve_drop",
]
