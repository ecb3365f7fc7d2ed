"""
Module: cache.composite_cache

Purpose:
    Derived group composites. A group's virtual image (its members'
    flattened rasters stitched left to right) is the editing surface for
    the group's own regions. It is never maintained eagerly: callers pull
    it, and it is recomputed only when the group's dependency fingerprint
    has changed since the cached copy was made.

Key Classes:
    - VirtualImage: Cached composite plus the fingerprint it was built from
    - EditingSurface: Image and pixel size regions are drawn against
    - GroupCompositeCache: Pull-based memoized composites

Ordering:
    request() recomputes on a worker thread. Each group remembers the
    latest fingerprint asked for; a finished computation is stored only if
    its fingerprint is still that latest one, so an older computation can
    never overwrite a newer one. Stale results are discarded, not cancelled.

Dependencies:
    - concurrent.futures / threading: Background recompute
    - PIL.Image: Rasters
    - composition: composite_layer, stitch_images, load_image

Used By:
    - output.exporter: Group region export, group cuts
    - interaction consumers: Group editing surface
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from PIL import Image

from ..composition.compositor import composite_layer
from ..composition.raster import load_image, source_digest
from ..composition.stitcher import stitch_images
from ..config import ToolkitConfig
from ..core.errors import DecodeFailure
from ..core.models import Group, Layer
from ..graph.asset_graph import AssetGraph

logger = logging.getLogger(__name__)

Fingerprint = Tuple


@dataclass(frozen=True)
class VirtualImage:
    """
    A group's flattened composite.

    Attributes:
        image: RGBA raster
        width, height: Pixel size (the space group regions refer to)
        fingerprint: Dependency fingerprint it was built from
    """

    image: Image.Image
    width: int
    height: int
    fingerprint: Fingerprint


@dataclass(frozen=True)
class EditingSurface:
    """Raster that an owner's regions are drawn and cropped against."""

    image: Image.Image
    width: int
    height: int


def layer_fingerprint(layer: Layer) -> Fingerprint:
    """Raster identity, size and replacement state of one layer."""
    replacements = tuple(
        (r.id, r.rect.as_tuple(), source_digest(r.replacement_src))
        for r in layer.regions
        if r.has_replacement
    )
    return (
        layer.id,
        source_digest(layer.raster_src),
        layer.original_width,
        layer.original_height,
        replacements,
    )


def member_raster(layer: Layer, max_workers: int = 4) -> Image.Image:
    """Raw raster for a layer without replacements, its composite otherwise."""
    if layer.has_replacements:
        return composite_layer(layer, max_workers)
    return load_image(layer.raster_src)


def build_virtual_image(members: Sequence[Layer], fingerprint: Fingerprint, max_workers: int = 4) -> VirtualImage:
    """
    Two-stage recompute: member rasters in parallel, then a horizontal stitch.

    Raises:
        DecodeFailure: If any member raster or replacement fails
    """
    if len(members) == 1:
        rasters = [member_raster(members[0], max_workers)]
    else:
        with ThreadPoolExecutor(max_workers=min(max_workers, len(members))) as pool:
            futures = [pool.submit(member_raster, layer, max_workers) for layer in members]
            rasters = [f.result() for f in futures]
    image = stitch_images(rasters)
    return VirtualImage(image=image, width=image.width, height=image.height, fingerprint=fingerprint)


class GroupCompositeCache:
    """
    Memoized group virtual images keyed by dependency fingerprint.

    The fingerprint covers the ordered member ids and, per member, raster
    identity, size and replacement state. Any change a composite depends
    on changes it; anything else (names, locks, regions without
    replacements, the group's own regions) does not.

    Usage:
        with GroupCompositeCache(graph) as cache:
            virtual = cache.get_or_recompute(group.id)
            future = cache.request(group.id)  # background variant

    Example:
        >>> cache.get_or_recompute(group_id).width
        1200
        >>> cache.get_or_recompute(group_id)  # Cache HIT
    """

    def __init__(self, graph: AssetGraph, config: Optional[ToolkitConfig] = None):
        """
        Initialize the cache.

        Args:
            graph: Asset graph the groups live in
            config: Worker counts (defaults to ToolkitConfig())
        """
        self._graph = graph
        self._config = config or ToolkitConfig()
        self._entries: Dict[str, VirtualImage] = {}
        self._latest: Dict[str, Fingerprint] = {}
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=self._config.decode_workers,
            thread_name_prefix="composite",
        )

    def fingerprint(self, group_id: str) -> Fingerprint:
        """Current dependency fingerprint of a group."""
        return tuple(layer_fingerprint(m) for m in self._graph.members(group_id))

    def _snapshot(self, group_id: str) -> Tuple[Tuple[Layer, ...], Fingerprint]:
        members = self._graph.members(group_id)
        return members, tuple(layer_fingerprint(m) for m in members)

    def _lookup(self, group_id: str, fp: Fingerprint) -> Optional[VirtualImage]:
        """Record fp as the latest wanted state; return the entry if it matches."""
        with self._lock:
            self._latest[group_id] = fp
            entry = self._entries.get(group_id)
        if entry is not None and entry.fingerprint == fp:
            logger.debug(f"Cache HIT: group {group_id}")
            return entry
        logger.debug(f"Cache MISS: group {group_id}")
        return None

    def _store(self, group_id: str, virtual: VirtualImage) -> bool:
        with self._lock:
            if self._latest.get(group_id) != virtual.fingerprint:
                logger.info(f"Discarding stale composite for group {group_id}")
                return False
            self._entries[group_id] = virtual
        return True

    def _compute(self, group_id: str, members: Tuple[Layer, ...], fp: Fingerprint) -> VirtualImage:
        try:
            virtual = build_virtual_image(members, fp, self._config.decode_workers)
        except DecodeFailure as e:
            logger.warning(f"Composite for group {group_id} failed, keeping previous: {e}")
            raise
        self._store(group_id, virtual)
        logger.info(
            f"Recomputed group {group_id}: {len(members)} members, "
            f"{virtual.width}x{virtual.height}"
        )
        return virtual

    def get_or_recompute(self, group_id: str) -> Optional[VirtualImage]:
        """
        Current virtual image of a group, recomputed only if stale.

        Returns:
            VirtualImage, or None for a group with no members

        Raises:
            OwnerNotFound: Unknown group
            DecodeFailure: Recompute failed (the previous entry is kept)
        """
        members, fp = self._snapshot(group_id)
        if not members:
            self.invalidate(group_id)
            return None
        cached = self._lookup(group_id, fp)
        if cached is not None:
            return cached
        return self._compute(group_id, members, fp)

    def request(self, group_id: str) -> Future:
        """
        Recompute in the background if stale.

        The fingerprint is taken now, on the calling thread. If the group
        changes again before the work finishes, the result is returned to
        this future's caller but not stored.

        Returns:
            Future resolving to a VirtualImage (or None for an empty group)
        """
        members, fp = self._snapshot(group_id)
        if not members:
            self.invalidate(group_id)
            return _completed(None)
        cached = self._lookup(group_id, fp)
        if cached is not None:
            return _completed(cached)
        return self._executor.submit(self._compute, group_id, members, fp)

    def peek(self, group_id: str) -> Optional[VirtualImage]:
        """Cached entry, possibly stale, without recomputing."""
        with self._lock:
            return self._entries.get(group_id)

    def is_current(self, group_id: str) -> bool:
        """True if the cached entry matches the group's current fingerprint."""
        entry = self.peek(group_id)
        return entry is not None and entry.fingerprint == self.fingerprint(group_id)

    def invalidate(self, group_id: Optional[str] = None) -> None:
        """Drop one cached entry, or all of them."""
        with self._lock:
            if group_id is None:
                self._entries.clear()
                self._latest.clear()
            else:
                self._entries.pop(group_id, None)
                self._latest.pop(group_id, None)
        logger.debug(f"Cache invalidated: {group_id or 'all groups'}")

    def surface_for(self, owner_id: str) -> Optional[EditingSurface]:
        """
        The raster an owner's regions are drawn against.

        A layer's surface is its raw raster at its recorded size; a group's
        is its virtual image, so regions behave identically on both.

        Returns:
            EditingSurface, or None for an empty group
        """
        owner = self._graph.get_owner(owner_id)
        if isinstance(owner, Group):
            virtual = self.get_or_recompute(owner.id)
            if virtual is None:
                return None
            return EditingSurface(virtual.image, virtual.width, virtual.height)
        return EditingSurface(load_image(owner.raster_src), owner.original_width, owner.original_height)

    @property
    def size(self) -> int:
        """Number of cached composites."""
        return len(self._entries)

    def close(self) -> None:
        """Wait for background work and stop the worker pool."""
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "GroupCompositeCache":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def _completed(value) -> Future:
    future: Future = Future()
    future.set_result(value)
    return future
