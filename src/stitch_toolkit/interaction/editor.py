"""
Module: interaction.editor

Purpose:
    Region editing on one owner (a layer or a group's virtual image).
    Pointer events in client coordinates drive a small state machine that
    creates, moves and resizes rectangular regions in percentage space.

Key Classes:
    - RegionEditor: Pointer state machine plus the editor's toolbar actions

States:
    Idle      --down on empty canvas-->     Creating
    Idle      --down on unlocked body-->    Moving
    Idle      --down on unlocked handle-->  Resizing
    Idle      --down on locked region-->    Idle (region becomes active)
    any       --up-->                       Idle (commit or discard)

Every transition is synchronous arithmetic on percentages; nothing here
decodes pixels. Moves only touch the gesture buffer; the graph is
written once on pointer-up.

Dependencies:
    - core.geometry: Conversion, clamping, hit testing
    - interaction.gesture: States and GestureBuffer
    - graph.asset_graph: Committed region mutations

Used By:
    - UI consumers of a layer or group editing surface
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

from ..config import ToolkitConfig
from ..core.errors import OwnerNotFound, RegionLocked, RegionNotFound
from ..core.geometry import (
    Bounds,
    Rect,
    clamp_point,
    hit_test,
    move_rect,
    rect_from_points,
    resize_rect,
)
from ..core.models import Region, StitchQueueItem
from ..graph.asset_graph import AssetGraph
from .gesture import IDLE, Creating, GestureBuffer, GestureState, Idle, Moving, Resizing

logger = logging.getLogger(__name__)

DELETE_KEYS = frozenset({"Delete", "Backspace"})


class RegionEditor:
    """
    Pointer-driven region editing for one owner.

    The active region is the graph's selected region while this owner is
    the selected asset, so the library and the editor agree on it.

    Example:
        >>> editor = RegionEditor(graph, layer.id)
        >>> bounds = Bounds(0, 0, 400, 200)
        >>> editor.pointer_down(40, 20, bounds)      # empty canvas
        >>> editor.pointer_move(200, 120, bounds)    # preview only
        >>> region = editor.pointer_up(200, 120, bounds)
        >>> region.rect
        Rect(x=10.0, y=10.0, width=40.0, height=50.0)
    """

    def __init__(self, graph: AssetGraph, owner_id: str, config: Optional[ToolkitConfig] = None):
        graph.get_owner(owner_id)
        self._graph = graph
        self._owner_id = owner_id
        self._config = config or ToolkitConfig()
        self._state: GestureState = IDLE
        self._buffer = GestureBuffer()

    # ─────────────────────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def state(self) -> GestureState:
        """Current gesture state."""
        return self._state

    @property
    def preview(self) -> Optional[Rect]:
        """In-flight rectangle (creation box or moved/resized region), if any."""
        return self._buffer.pending

    @property
    def regions(self) -> Tuple[Region, ...]:
        """Committed regions of the owner."""
        return self._graph.get_owner(self._owner_id).regions

    @property
    def active_region_id(self) -> Optional[str]:
        sel = self._graph.selection
        if sel.asset_id != self._owner_id:
            return None
        return sel.region_id

    @property
    def active_region(self) -> Optional[Region]:
        region_id = self.active_region_id
        if region_id is None:
            return None
        return self._graph.get_owner(self._owner_id).find_region(region_id)

    def displayed_regions(self) -> Tuple[Region, ...]:
        """Committed regions with the in-flight move/resize merged in."""
        regions = self.regions
        pending = self._buffer.pending
        if pending is None or not isinstance(self._state, (Moving, Resizing)):
            return regions
        target = self._state.region_id
        return tuple(r.with_rect(pending) if r.id == target else r for r in regions)

    # ─────────────────────────────────────────────────────────────────────────
    # Pointer Events
    # ─────────────────────────────────────────────────────────────────────────

    def pointer_down(self, client_x: float, client_y: float, bounds: Bounds) -> GestureState:
        """
        Start a gesture at a client position.

        Returns:
            The new state
        """
        if not isinstance(self._state, Idle):
            logger.debug(f"pointer_down during {type(self._state).__name__}; abandoning it")
            self.cancel()

        point = bounds.to_percent(client_x, client_y)
        hit = hit_test(point, self.regions, self._config.handle_hit_radius)

        if hit is None:
            self._graph.select(self._owner_id)
            self._state = Creating(anchor=clamp_point(point))
            return self._state

        region = self._graph.get_region(self._owner_id, hit.region_id)
        self._graph.select(self._owner_id, region.id)
        if region.is_locked:
            # Locked regions can be activated but never dragged
            return self._state
        if hit.handle is not None:
            self._state = Resizing(region.id, hit.handle, point, region.rect)
        else:
            self._state = Moving(region.id, point, region.rect)
        return self._state

    def pointer_move(self, client_x: float, client_y: float, bounds: Bounds) -> Optional[Rect]:
        """
        Update the in-flight rectangle. Never touches the graph.

        Returns:
            The new preview rectangle (None while Idle)
        """
        state = self._state
        point = bounds.to_percent(client_x, client_y)
        min_size = self._config.min_region_size

        if isinstance(state, Creating):
            rect = rect_from_points(state.anchor, clamp_point(point))
        elif isinstance(state, Moving):
            rect = move_rect(state.snapshot, point.x - state.origin.x, point.y - state.origin.y)
        elif isinstance(state, Resizing):
            rect = resize_rect(
                state.snapshot,
                state.handle,
                point.x - state.origin.x,
                point.y - state.origin.y,
                min_size,
            )
        else:
            return None

        self._buffer.update(rect)
        return rect

    def pointer_up(
        self,
        client_x: Optional[float] = None,
        client_y: Optional[float] = None,
        bounds: Optional[Bounds] = None,
    ) -> Optional[Region]:
        """
        Finish the gesture, committing at most one change to the graph.

        If a position is given it is applied as a final move first.

        Returns:
            The created or updated region, or None if nothing was committed
        """
        if isinstance(self._state, Idle):
            return None
        if client_x is not None and client_y is not None and bounds is not None:
            self.pointer_move(client_x, client_y, bounds)

        state = self._state
        self._state = IDLE
        try:
            if isinstance(state, Creating):
                return self._buffer.commit(self._commit_new)
            return self._buffer.commit(
                lambda rect: self._graph.update_region_rect(self._owner_id, state.region_id, rect)
            )
        except (OwnerNotFound, RegionNotFound, RegionLocked) as e:
            logger.warning(f"Dropped gesture on {self._owner_id}: {e}")
            return None

    def cancel(self) -> None:
        """Abandon the current gesture without committing."""
        self._buffer.discard()
        self._state = IDLE

    def _commit_new(self, rect: Rect) -> Optional[Region]:
        min_size = self._config.min_region_size
        if not (rect.width > min_size and rect.height > min_size):
            logger.debug(f"Creation box {rect} too small; treated as a click")
            return None
        region = self._graph.add_region(self._owner_id, Region.create(rect))
        self._graph.select(self._owner_id, region.id)
        logger.info(f"Created region {region.id} on {self._owner_id}")
        return region

    # ─────────────────────────────────────────────────────────────────────────
    # Keyboard and Toolbar
    # ─────────────────────────────────────────────────────────────────────────

    def handle_key(self, key: str) -> bool:
        """
        Handle a key press. Delete/Backspace removes the active region if unlocked.

        Returns:
            True if the key changed anything
        """
        if key in DELETE_KEYS:
            return self.delete_active()
        return False

    def delete_active(self) -> bool:
        """Delete the active region unless it is locked."""
        region = self.active_region
        if region is None:
            return False
        if region.is_locked:
            logger.debug(f"Region {region.id} is locked; not deleting")
            return False
        self._graph.delete_region(self._owner_id, region.id)
        return True

    def toggle_lock(self) -> Optional[Region]:
        """Lock or unlock the active region."""
        region = self.active_region
        if region is None:
            return None
        return self._graph.toggle_lock(self._owner_id, region.id)

    def replace_active(self, replacement_src: Any) -> Optional[Region]:
        """Store an edited raster for the active region (locked or not)."""
        region = self.active_region
        if region is None:
            return None
        return self._graph.set_replacement(self._owner_id, region.id, replacement_src)

    def clear_replacement(self) -> Optional[Region]:
        """Drop the active region's replacement raster."""
        region = self.active_region
        if region is None:
            return None
        return self._graph.clear_replacement(self._owner_id, region.id)

    def enqueue_active(self) -> Optional[StitchQueueItem]:
        """Add the active region to the stitch queue."""
        region = self.active_region
        if region is None:
            return None
        return self._graph.enqueue_stitch(self._owner_id, region.id)

    def deselect(self) -> None:
        """Clear the active region; the owner stays selected."""
        self._graph.select(self._owner_id)
