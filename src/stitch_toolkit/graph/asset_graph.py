"""
Module: graph.asset_graph

Purpose:
    The asset graph: every imported Layer, every Group (a flat table with
    parent pointers, so subgroups form a forest), the ordered stitch queue
    and the current selection. All mutations go through here.

Key Classes:
    - AssetGraph: Owner of layers, groups, queue and selection

Transactions:
    Each operation stages its changes on a draft copy of the tables,
    checks every invariant, and only then swaps the draft in. An operation
    that raises leaves the graph exactly as it was, so no caller can
    observe a layer pointing at a missing group or a group listing a
    deleted layer.

Invariants (checked after every operation):
    - layer.group_id is set iff the layer is listed by exactly that group
    - every member id of a group resolves to a layer
    - every parent_group_id resolves, and parent chains have no cycles
    - every stitch queue item resolves to an (owner, region) pair
    - the selection only points at existing assets/regions

Dependencies:
    - dataclasses, contextlib (std)
    - core.models: Layer, Group, Region, StitchQueueItem, Selection
    - core.errors: GraphInvariantViolation, RegionLocked, OwnerNotFound, RegionNotFound

Used By:
    - interaction.editor: Committed region edits
    - graph.library: Drag-and-drop style commands
    - cache.composite_cache: Group fingerprints
    - loading.importer / output.exporter: Boundaries
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Sequence, Set, Tuple, Union

from ..core.errors import (
    GraphInvariantViolation,
    OwnerNotFound,
    RegionLocked,
    RegionNotFound,
)
from ..core.geometry import Rect
from ..core.models import Group, Layer, Region, Selection, StitchQueueItem, new_id

logger = logging.getLogger(__name__)

Owner = Union[Layer, Group]


@dataclass
class _Draft:
    """Mutable staging copy of the graph tables for one transaction."""
    layers: Dict[str, Layer]
    groups: Dict[str, Group]
    queue: List[StitchQueueItem]
    selection: Selection


class AssetGraph:
    """
    Layers, groups, stitch queue and selection.

    Layers and groups live in flat id-keyed tables. Groups nest through
    parent_group_id pointers only; descendants are found by a bounded
    traversal that never revisits an id.

    Example:
        >>> graph = AssetGraph()
        >>> graph.add_layer(layer_a)
        >>> graph.add_layer(layer_b)
        >>> group = graph.group([layer_a.id, layer_b.id])
        >>> graph.get_layer(layer_a.id).group_id == group.id
        True
    """

    def __init__(self) -> None:
        self._layers: Dict[str, Layer] = {}
        self._groups: Dict[str, Group] = {}
        self._queue: Tuple[StitchQueueItem, ...] = ()
        self._selection = Selection()
        self._revision = 0

    # ─────────────────────────────────────────────────────────────────────────
    # Read Access
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def revision(self) -> int:
        """Incremented on every committed operation."""
        return self._revision

    @property
    def layers(self) -> Tuple[Layer, ...]:
        """All layers in import order."""
        return tuple(self._layers.values())

    @property
    def groups(self) -> Tuple[Group, ...]:
        """All groups in creation order."""
        return tuple(self._groups.values())

    @property
    def stitch_queue(self) -> Tuple[StitchQueueItem, ...]:
        """Queued regions in export order."""
        return self._queue

    @property
    def selection(self) -> Selection:
        """Currently active asset and region."""
        return self._selection

    def has_layer(self, layer_id: str) -> bool:
        return layer_id in self._layers

    def has_group(self, group_id: str) -> bool:
        return group_id in self._groups

    def get_layer(self, layer_id: str) -> Layer:
        """
        Get a layer by id.

        Raises:
            OwnerNotFound: If no such layer
        """
        layer = self._layers.get(layer_id)
        if layer is None:
            raise OwnerNotFound(layer_id)
        return layer

    def get_group(self, group_id: str) -> Group:
        """
        Get a group by id.

        Raises:
            OwnerNotFound: If no such group
        """
        group = self._groups.get(group_id)
        if group is None:
            raise OwnerNotFound(group_id)
        return group

    def get_owner(self, owner_id: str) -> Owner:
        """Get the layer or group with this id (OwnerNotFound otherwise)."""
        return _require_owner(self._layers, self._groups, owner_id)

    def get_region(self, owner_id: str, region_id: str) -> Region:
        """Get a region of a layer or group (OwnerNotFound / RegionNotFound otherwise)."""
        return _require_region(self.get_owner(owner_id), region_id)

    def members(self, group_id: str) -> Tuple[Layer, ...]:
        """Member layers of a group in assembly order."""
        group = self.get_group(group_id)
        return tuple(self._layers[lid] for lid in group.member_layer_ids)

    def subgroups(self, group_id: str) -> Tuple[Group, ...]:
        """Direct child groups."""
        return tuple(g for g in self._groups.values() if g.parent_group_id == group_id)

    def root_layers(self) -> Tuple[Layer, ...]:
        """Layers that belong to no group."""
        return tuple(l for l in self._layers.values() if l.group_id is None)

    def root_groups(self) -> Tuple[Group, ...]:
        """Groups without a parent."""
        return tuple(g for g in self._groups.values() if g.parent_group_id is None)

    def descendant_group_ids(self, group_id: str) -> Tuple[str, ...]:
        """The group and all groups below it, parents before children."""
        self.get_group(group_id)
        return tuple(_collect_subtree(self._groups, group_id))

    def groups_containing(self, layer_id: str) -> Tuple[Group, ...]:
        """Groups whose virtual image depends on this layer (at most one)."""
        return tuple(g for g in self._groups.values() if layer_id in g.member_layer_ids)

    def tree(self) -> dict:
        """
        Nested plain-data snapshot of the library for UI consumers.

        Returns:
            Dict with root "groups" (each carrying nested "subgroups" and
            member "layers"), root "layers", "stitch_queue" and "selection"
        """
        visited: Set[str] = set()

        def _group_node(group: Group) -> dict:
            visited.add(group.id)
            node = group.to_dict()
            node["layers"] = [self._layers[lid].to_dict() for lid in group.member_layer_ids]
            node["subgroups"] = [
                _group_node(child)
                for child in self.subgroups(group.id)
                if child.id not in visited
            ]
            return node

        return {
            "groups": [_group_node(g) for g in self.root_groups()],
            "layers": [l.to_dict() for l in self.root_layers()],
            "stitch_queue": [item.to_dict() for item in self._queue],
            "selection": {
                "asset_id": self._selection.asset_id,
                "region_id": self._selection.region_id,
            },
        }

    # ─────────────────────────────────────────────────────────────────────────
    # Transactions
    # ─────────────────────────────────────────────────────────────────────────

    @contextmanager
    def _transaction(self, action: str) -> Iterator[_Draft]:
        """Stage changes on a draft; commit only if every invariant holds."""
        draft = _Draft(
            layers=dict(self._layers),
            groups=dict(self._groups),
            queue=list(self._queue),
            selection=self._selection,
        )
        yield draft
        draft.selection = _prune_selection(draft)
        _check_invariants(draft)
        self._layers = draft.layers
        self._groups = draft.groups
        self._queue = tuple(draft.queue)
        self._selection = draft.selection
        self._revision += 1
        logger.debug(f"{action} committed (revision {self._revision})")

    # ─────────────────────────────────────────────────────────────────────────
    # Layers and Groups
    # ─────────────────────────────────────────────────────────────────────────

    def add_layer(self, layer: Layer, *, select: bool = False) -> Layer:
        """
        Add a newly imported layer.

        Args:
            layer: Layer to add (must not reference a group)
            select: Make it the active asset

        Raises:
            GraphInvariantViolation: Duplicate id or dangling group_id
        """
        if layer.id in self._layers or layer.id in self._groups:
            raise GraphInvariantViolation(f"Duplicate asset id: {layer.id}")
        if layer.group_id is not None:
            raise GraphInvariantViolation("New layers must be ungrouped; use move_layer()")
        with self._transaction("add_layer") as d:
            d.layers[layer.id] = layer
            if select:
                d.selection = Selection(asset_id=layer.id)
        logger.info(f"Added layer {layer.name!r} ({layer.original_width}x{layer.original_height})")
        return layer

    def group(self, layer_ids: Sequence[str], name: Optional[str] = None) -> Group:
        """
        Group two or more ungrouped layers.

        Member order is the given order. The new group becomes the active
        asset.

        Raises:
            GraphInvariantViolation: Fewer than two distinct ids, or a layer
                is already grouped
            OwnerNotFound: Unknown layer id
        """
        ids = tuple(layer_ids)
        if len(ids) < 2:
            raise GraphInvariantViolation(f"Grouping needs at least 2 layers, got {len(ids)}")
        if len(set(ids)) != len(ids):
            raise GraphInvariantViolation(f"Duplicate layer ids in group request: {ids}")

        with self._transaction("group") as d:
            group = _create_group(d, ids, name)
        logger.info(f"Grouped {len(ids)} layers into {group.name!r}")
        return group

    def ungroup(self, group_id: str) -> Tuple[str, ...]:
        """
        Dissolve a group, releasing (not deleting) its members.

        Subgroups are detached and become roots. The group's own regions
        go with it, along with any queue items pointing at them.

        Returns:
            Ids of the released layers
        """
        with self._transaction("ungroup") as d:
            group = _require_group(d.groups, group_id)
            for lid in group.member_layer_ids:
                d.layers[lid] = replace(d.layers[lid], group_id=None)
            del d.groups[group_id]
            for child in list(d.groups.values()):
                if child.parent_group_id == group_id:
                    d.groups[child.id] = replace(child, parent_group_id=None)
            _purge_queue(d, {group_id})
        logger.info(f"Ungrouped {group.name!r}, released {len(group.member_layer_ids)} layers")
        return group.member_layer_ids

    def delete_group(self, group_id: str) -> FrozenSet[str]:
        """
        Delete a group, all descendant groups and every layer they hold.

        Returns:
            Ids of every removed group and layer
        """
        with self._transaction("delete_group") as d:
            _require_group(d.groups, group_id)
            removed = _delete_group_in(d, group_id)
        logger.info(f"Deleted group {group_id} ({len(removed)} assets removed)")
        return removed

    def delete_layer(self, layer_id: str) -> None:
        """
        Delete a layer and strip it from its group.

        A group may be left with zero or one member; it is not collapsed.
        """
        with self._transaction("delete_layer") as d:
            _require_layer(d.layers, layer_id)
            _delete_layer_in(d, layer_id)
        logger.info(f"Deleted layer {layer_id}")

    def delete_items(self, asset_ids: Iterable[str]) -> FrozenSet[str]:
        """
        Delete a mixed selection of layers and groups in one operation.

        Groups cascade as in delete_group(). Ids already removed by an
        earlier cascade in the same call are skipped.

        Raises:
            OwnerNotFound: If an id is unknown (nothing is deleted)
        """
        ids = list(asset_ids)
        removed: Set[str] = set()
        with self._transaction("delete_items") as d:
            for asset_id in ids:
                _require_owner(self._layers, self._groups, asset_id)
            for asset_id in ids:
                if asset_id in removed:
                    continue
                if asset_id in d.groups:
                    removed |= _delete_group_in(d, asset_id)
                else:
                    _delete_layer_in(d, asset_id)
                    removed.add(asset_id)
        logger.info(f"Deleted {len(removed)} assets")
        return frozenset(removed)

    def move_layer(self, layer_id: str, target_owner_id: str) -> Group:
        """
        Reparent a layer.

        - Target is a group: append the layer to it.
        - Target is a grouped layer: append to that layer's group.
        - Target is an ungrouped layer: create a new group [target, layer].

        A layer already in a group is detached from it first (the remaining
        members keep their order). Moving a layer into the group it is
        already in changes nothing.

        Returns:
            The group the layer ends up in

        Raises:
            GraphInvariantViolation: Layer moved onto itself
            OwnerNotFound: Unknown id
        """
        if layer_id == target_owner_id:
            raise GraphInvariantViolation("Cannot move a layer onto itself")
        layer = self.get_layer(layer_id)
        target = self.get_owner(target_owner_id)
        target_group_id = target.id if isinstance(target, Group) else target.group_id

        if target_group_id is not None and layer.group_id == target_group_id:
            return self._groups[target_group_id]

        with self._transaction("move_layer") as d:
            _detach(d, layer_id)
            if target_group_id is not None:
                group = d.groups[target_group_id]
                group = replace(group, member_layer_ids=group.member_layer_ids + (layer_id,))
                d.groups[group.id] = group
                d.layers[layer_id] = replace(d.layers[layer_id], group_id=group.id)
            else:
                group = _create_group(d, (target_owner_id, layer_id), None)
        logger.info(f"Moved layer {layer.name!r} into {group.name!r}")
        return group

    def reorder_group_members(self, group_id: str, from_index: int, to_index: int) -> Group:
        """
        Move one member to a new position (pure list move).

        Raises:
            GraphInvariantViolation: Index out of range
        """
        with self._transaction("reorder_group_members") as d:
            group = _require_group(d.groups, group_id)
            ids = list(group.member_layer_ids)
            _check_index(from_index, len(ids))
            _check_index(to_index, len(ids))
            moved = ids.pop(from_index)
            ids.insert(to_index, moved)
            group = replace(group, member_layer_ids=tuple(ids))
            d.groups[group_id] = group
        return group

    def create_subgroup(
        self,
        parent_group_id: str,
        layers: Sequence[Layer],
        name: Optional[str] = None,
    ) -> Group:
        """
        Add new layers as a group nested under an existing group.

        The subgroup becomes the active asset.

        Args:
            parent_group_id: Parent group
            layers: New (not yet added) layers, in assembly order
            name: Defaults to "Selection Stitch N"
        """
        if not layers:
            raise GraphInvariantViolation("Subgroup needs at least one layer")
        with self._transaction("create_subgroup") as d:
            _require_group(d.groups, parent_group_id)
            siblings = sum(1 for g in d.groups.values() if g.parent_group_id == parent_group_id)
            group = Group(
                id=new_id(),
                name=name or f"Selection Stitch {siblings + 1}",
                member_layer_ids=tuple(l.id for l in layers),
                parent_group_id=parent_group_id,
            )
            for layer in layers:
                if layer.id in d.layers or layer.id in d.groups:
                    raise GraphInvariantViolation(f"Duplicate asset id: {layer.id}")
                d.layers[layer.id] = replace(layer, group_id=group.id)
            d.groups[group.id] = group
            d.selection = Selection(asset_id=group.id)
        logger.info(f"Created subgroup {group.name!r} with {len(layers)} layers")
        return group

    def rename_group(self, group_id: str, name: str) -> Group:
        """Rename a group; blank names are rejected."""
        if not name.strip():
            raise GraphInvariantViolation("Group name must not be blank")
        with self._transaction("rename_group") as d:
            group = replace(_require_group(d.groups, group_id), name=name)
            d.groups[group_id] = group
        return group

    # ─────────────────────────────────────────────────────────────────────────
    # Regions
    # ─────────────────────────────────────────────────────────────────────────

    def add_region(self, owner_id: str, region: Region) -> Region:
        """Append a region to a layer or group (paint order = list order)."""
        with self._transaction("add_region") as d:
            owner = _require_owner(d.layers, d.groups, owner_id)
            if owner.find_region(region.id) is not None:
                raise GraphInvariantViolation(f"Duplicate region id {region.id} on {owner_id}")
            _store_owner(d, replace(owner, regions=owner.regions + (region,)))
        return region

    def update_region_rect(self, owner_id: str, region_id: str, rect: Rect) -> Region:
        """
        Replace a region's geometry (normalized).

        Raises:
            RegionLocked: If the region is locked
        """
        def _apply(region: Region) -> Region:
            if region.is_locked:
                raise RegionLocked(region_id, "move or resize")
            return region.with_rect(rect)

        return self._update_region("update_region_rect", owner_id, region_id, _apply)

    def delete_region(self, owner_id: str, region_id: str) -> None:
        """
        Remove a region and any queue items pointing at it.

        Raises:
            RegionLocked: If the region is locked
        """
        with self._transaction("delete_region") as d:
            owner = _require_owner(d.layers, d.groups, owner_id)
            region = _require_region(owner, region_id)
            if region.is_locked:
                raise RegionLocked(region_id, "delete")
            regions = tuple(r for r in owner.regions if r.id != region_id)
            _store_owner(d, replace(owner, regions=regions))
            d.queue = [
                item for item in d.queue
                if not (item.owner_id == owner_id and item.region_id == region_id)
            ]

    def set_locked(self, owner_id: str, region_id: str, locked: bool) -> Region:
        """Lock or unlock a region."""
        return self._update_region(
            "set_locked", owner_id, region_id,
            lambda r: replace(r, is_locked=locked),
        )

    def toggle_lock(self, owner_id: str, region_id: str) -> Region:
        """Flip a region's lock state."""
        return self._update_region(
            "toggle_lock", owner_id, region_id,
            lambda r: replace(r, is_locked=not r.is_locked),
        )

    def set_replacement(self, owner_id: str, region_id: str, replacement_src) -> Region:
        """
        Store an externally edited raster for a region (verbatim).

        Allowed on locked regions. Any group containing the owner sees a
        new composite fingerprint and recomputes on its next pull.
        """
        if replacement_src is None:
            raise GraphInvariantViolation("Use clear_replacement() to remove a replacement")
        region = self._update_region(
            "set_replacement", owner_id, region_id,
            lambda r: replace(r, replacement_src=replacement_src),
        )
        logger.info(f"Replacement set for region {region_id} on {owner_id}")
        return region

    def clear_replacement(self, owner_id: str, region_id: str) -> Region:
        """Drop a region's replacement raster."""
        return self._update_region(
            "clear_replacement", owner_id, region_id,
            lambda r: replace(r, replacement_src=None),
        )

    def _update_region(self, action: str, owner_id: str, region_id: str, apply) -> Region:
        with self._transaction(action) as d:
            owner = _require_owner(d.layers, d.groups, owner_id)
            updated = apply(_require_region(owner, region_id))
            regions = tuple(updated if r.id == region_id else r for r in owner.regions)
            _store_owner(d, replace(owner, regions=regions))
        return updated

    # ─────────────────────────────────────────────────────────────────────────
    # Stitch Queue
    # ─────────────────────────────────────────────────────────────────────────

    def enqueue_stitch(self, owner_id: str, region_id: str) -> StitchQueueItem:
        """
        Append a region to the stitch queue and mark it queued.

        Raises:
            OwnerNotFound / RegionNotFound: If the pair does not resolve
        """
        item = StitchQueueItem(id=new_id(), owner_id=owner_id, region_id=region_id)
        with self._transaction("enqueue_stitch") as d:
            owner = _require_owner(d.layers, d.groups, owner_id)
            _require_region(owner, region_id)
            d.queue.append(item)
            _refresh_queued_flag(d, owner_id, region_id)
        logger.info(f"Queued region {region_id} of {owner_id} at position {len(self._queue) - 1}")
        return item

    def remove_stitch_item(self, item_id: str) -> None:
        """Remove one queue item; the region's is_queued follows the queue."""
        with self._transaction("remove_stitch_item") as d:
            item = next((i for i in d.queue if i.id == item_id), None)
            if item is None:
                raise GraphInvariantViolation(f"No stitch queue item {item_id}")
            d.queue.remove(item)
            _refresh_queued_flag(d, item.owner_id, item.region_id)

    def move_stitch_item(self, index: int, step: int) -> bool:
        """
        Swap a queue item with its neighbour (step -1 = left, +1 = right).

        Returns:
            False (and no change) if the move would leave the queue
        """
        target = index + step
        if not (0 <= index < len(self._queue)) or not (0 <= target < len(self._queue)):
            return False
        with self._transaction("move_stitch_item") as d:
            d.queue[index], d.queue[target] = d.queue[target], d.queue[index]
        return True

    def reorder_stitch_queue(self, from_index: int, to_index: int) -> None:
        """Move one queue item to a new position."""
        with self._transaction("reorder_stitch_queue") as d:
            _check_index(from_index, len(d.queue))
            _check_index(to_index, len(d.queue))
            d.queue.insert(to_index, d.queue.pop(from_index))

    # ─────────────────────────────────────────────────────────────────────────
    # Selection
    # ─────────────────────────────────────────────────────────────────────────

    def select(self, asset_id: Optional[str], region_id: Optional[str] = None) -> Selection:
        """
        Make an asset (and optionally one of its regions) active.

        Passing None clears the selection.
        """
        if asset_id is None:
            self._selection = Selection()
            return self._selection
        owner = self.get_owner(asset_id)
        if region_id is not None:
            _require_region(owner, region_id)
        self._selection = Selection(asset_id=asset_id, region_id=region_id)
        return self._selection

    def select_region(self, owner_id: str, region_id: Optional[str]) -> Selection:
        """Activate a region of an owner (None deselects the region only)."""
        return self.select(owner_id, region_id)


# ─────────────────────────────────────────────────────────────────────────────
# Draft helpers
# ─────────────────────────────────────────────────────────────────────────────

def _require_layer(layers: Dict[str, Layer], layer_id: str) -> Layer:
    layer = layers.get(layer_id)
    if layer is None:
        raise OwnerNotFound(layer_id)
    return layer


def _require_group(groups: Dict[str, Group], group_id: str) -> Group:
    group = groups.get(group_id)
    if group is None:
        raise OwnerNotFound(group_id)
    return group


def _require_owner(layers: Dict[str, Layer], groups: Dict[str, Group], owner_id: str) -> Owner:
    owner = layers.get(owner_id) or groups.get(owner_id)
    if owner is None:
        raise OwnerNotFound(owner_id)
    return owner


def _require_region(owner: Owner, region_id: str) -> Region:
    region = owner.find_region(region_id)
    if region is None:
        raise RegionNotFound(owner.id, region_id)
    return region


def _store_owner(d: _Draft, owner: Owner) -> None:
    if isinstance(owner, Group):
        d.groups[owner.id] = owner
    else:
        d.layers[owner.id] = owner


def _check_index(index: int, length: int) -> None:
    if not 0 <= index < length:
        raise GraphInvariantViolation(f"Index {index} out of range for {length} items")


def _create_group(d: _Draft, layer_ids: Tuple[str, ...], name: Optional[str]) -> Group:
    for lid in layer_ids:
        layer = _require_layer(d.layers, lid)
        if layer.group_id is not None:
            raise GraphInvariantViolation(f"Layer {lid} already belongs to group {layer.group_id}")
    group = Group(
        id=new_id(),
        name=name or f"Group {len(d.groups) + 1}",
        member_layer_ids=tuple(layer_ids),
    )
    d.groups[group.id] = group
    for lid in layer_ids:
        d.layers[lid] = replace(d.layers[lid], group_id=group.id)
    d.selection = Selection(asset_id=group.id)
    return group


def _detach(d: _Draft, layer_id: str) -> None:
    """Remove a layer from its current group, keeping the others in order."""
    layer = d.layers[layer_id]
    if layer.group_id is None:
        return
    group = d.groups[layer.group_id]
    d.groups[group.id] = replace(
        group,
        member_layer_ids=tuple(lid for lid in group.member_layer_ids if lid != layer_id),
    )
    d.layers[layer_id] = replace(layer, group_id=None)


def _collect_subtree(groups: Dict[str, Group], root_id: str) -> List[str]:
    """Breadth-first descendants of root_id (inclusive), never revisiting an id."""
    children: Dict[str, List[str]] = {}
    for g in groups.values():
        if g.parent_group_id is not None:
            children.setdefault(g.parent_group_id, []).append(g.id)

    ordered: List[str] = []
    seen: Set[str] = set()
    frontier = [root_id]
    while frontier and len(ordered) <= len(groups):
        next_frontier: List[str] = []
        for gid in frontier:
            if gid in seen:
                continue
            seen.add(gid)
            ordered.append(gid)
            next_frontier.extend(children.get(gid, ()))
        frontier = next_frontier
    return ordered


def _delete_layer_in(d: _Draft, layer_id: str) -> None:
    layer = d.layers.pop(layer_id)
    for group in list(d.groups.values()):
        if layer_id in group.member_layer_ids:
            d.groups[group.id] = replace(
                group,
                member_layer_ids=tuple(lid for lid in group.member_layer_ids if lid != layer_id),
            )
    _purge_queue(d, {layer.id})


def _delete_group_in(d: _Draft, group_id: str) -> FrozenSet[str]:
    doomed_groups = set(_collect_subtree(d.groups, group_id))
    doomed_layers = {
        lid
        for gid in doomed_groups
        for lid in d.groups[gid].member_layer_ids
    }
    doomed_layers |= {l.id for l in d.layers.values() if l.group_id in doomed_groups}

    for lid in doomed_layers:
        if lid in d.layers:
            _delete_layer_in(d, lid)
    for gid in doomed_groups:
        del d.groups[gid]
    _purge_queue(d, doomed_groups)
    return frozenset(doomed_groups | doomed_layers)


def _purge_queue(d: _Draft, owner_ids: Set[str]) -> None:
    before = len(d.queue)
    d.queue = [item for item in d.queue if item.owner_id not in owner_ids]
    if len(d.queue) != before:
        logger.debug(f"Purged {before - len(d.queue)} stitch queue items")


def _refresh_queued_flag(d: _Draft, owner_id: str, region_id: str) -> None:
    """Keep region.is_queued in step with whether any queue item refers to it."""
    owner = d.layers.get(owner_id) or d.groups.get(owner_id)
    if owner is None:
        return
    queued = any(i.owner_id == owner_id and i.region_id == region_id for i in d.queue)
    regions = tuple(
        replace(r, is_queued=queued) if r.id == region_id else r
        for r in owner.regions
    )
    _store_owner(d, replace(owner, regions=regions))


def _prune_selection(d: _Draft) -> Selection:
    """Drop selection parts that point at removed assets or regions."""
    sel = d.selection
    if sel.asset_id is None:
        return Selection()
    owner = d.layers.get(sel.asset_id) or d.groups.get(sel.asset_id)
    if owner is None:
        return Selection()
    if sel.region_id is not None and owner.find_region(sel.region_id) is None:
        return Selection(asset_id=sel.asset_id)
    return sel


def _check_invariants(d: _Draft) -> None:
    """
    Verify the staged graph.

    Raises:
        GraphInvariantViolation: On the first broken invariant
    """
    claimed: Dict[str, str] = {}
    for group in d.groups.values():
        if len(set(group.member_layer_ids)) != len(group.member_layer_ids):
            raise GraphInvariantViolation(f"Group {group.id} lists a layer twice")
        for lid in group.member_layer_ids:
            layer = d.layers.get(lid)
            if layer is None:
                raise GraphInvariantViolation(f"Group {group.id} lists missing layer {lid}")
            if layer.group_id != group.id:
                raise GraphInvariantViolation(
                    f"Layer {lid} is listed by {group.id} but points at {layer.group_id}"
                )
            if lid in claimed:
                raise GraphInvariantViolation(f"Layer {lid} listed by {claimed[lid]} and {group.id}")
            claimed[lid] = group.id
        if group.parent_group_id is not None and group.parent_group_id not in d.groups:
            raise GraphInvariantViolation(
                f"Group {group.id} has missing parent {group.parent_group_id}"
            )

    for layer in d.layers.values():
        if layer.group_id is not None and claimed.get(layer.id) != layer.group_id:
            raise GraphInvariantViolation(
                f"Layer {layer.id} points at {layer.group_id} which does not list it"
            )

    for group in d.groups.values():
        seen = {group.id}
        parent = group.parent_group_id
        while parent is not None:
            if parent in seen:
                raise GraphInvariantViolation(f"Group parent cycle through {group.id}")
            seen.add(parent)
            parent = d.groups[parent].parent_group_id

    for item in d.queue:
        owner = d.layers.get(item.owner_id) or d.groups.get(item.owner_id)
        if owner is None or owner.find_region(item.region_id) is None:
            raise GraphInvariantViolation(f"Stitch queue item {item.id} does not resolve")
