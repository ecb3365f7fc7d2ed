"""
Module: graph.library

Purpose:
    Library reorganization commands. Each is a thin, independently
    testable wrapper around AssetGraph operations, and resolve_drop()
    picks between them for a "drop source onto target" interaction.

Key Functions:
    - reorder(): Move a layer next to a sibling in the same group
    - move_into(): Reparent a layer onto a group or layer
    - create_group_from(): Group ungrouped layers
    - resolve_drop(): Dispatch a source/target pair to one of the above

Dependencies:
    - graph.asset_graph: AssetGraph

Used By:
    - Library UI consumers
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Sequence

from ..core.errors import GraphInvariantViolation
from ..core.models import Group
from .asset_graph import AssetGraph

logger = logging.getLogger(__name__)


class DropAction(str, Enum):
    """What resolve_drop() did."""
    NONE = "none"
    REORDER = "reorder"
    MOVE_INTO = "move_into"
    CREATE_GROUP = "create_group"


def reorder(graph: AssetGraph, layer_id: str, target_layer_id: str) -> Group:
    """
    Move a layer to the position of another member of the same group.

    Raises:
        GraphInvariantViolation: If the layers are not siblings
    """
    layer = graph.get_layer(layer_id)
    target = graph.get_layer(target_layer_id)
    if layer.group_id is None or layer.group_id != target.group_id:
        raise GraphInvariantViolation(
            f"Layers {layer_id} and {target_layer_id} are not in the same group"
        )
    ids = graph.get_group(layer.group_id).member_layer_ids
    return graph.reorder_group_members(layer.group_id, ids.index(layer_id), ids.index(target_layer_id))


def move_into(graph: AssetGraph, layer_id: str, target_id: str) -> Group:
    """Reparent a layer onto a group, a grouped layer, or an ungrouped layer."""
    return graph.move_layer(layer_id, target_id)


def create_group_from(graph: AssetGraph, layer_ids: Sequence[str], name: Optional[str] = None) -> Group:
    """Group two or more ungrouped layers, in the given order."""
    return graph.group(layer_ids, name)


def resolve_drop(graph: AssetGraph, source_id: str, target_id: str) -> DropAction:
    """
    Apply the library's drop rules for dragging source onto target.

    - Source onto itself, or source is a group: nothing happens.
    - Both layers in the same group: reorder.
    - Target is a group, or a layer inside a group: move into that group.
    - Target is an ungrouped layer: new group [target, source].

    Returns:
        The action taken
    """
    if source_id == target_id or not graph.has_layer(source_id):
        logger.debug(f"Ignoring drop {source_id} -> {target_id}")
        return DropAction.NONE

    source = graph.get_layer(source_id)
    if graph.has_group(target_id):
        move_into(graph, source_id, target_id)
        return DropAction.MOVE_INTO

    target = graph.get_layer(target_id)
    if target.group_id is not None:
        if target.group_id == source.group_id:
            reorder(graph, source_id, target_id)
            return DropAction.REORDER
        move_into(graph, source_id, target_id)
        return DropAction.MOVE_INTO

    move_into(graph, source_id, target_id)
    return DropAction.CREATE_GROUP
