"""
Module: interaction.gesture

Purpose:
    Gesture states and the two-tier buffer behind them. Pointer moves
    fire at high frequency; they only ever update the buffer. The asset
    graph sees a gesture once, when the buffer is committed on release.

Key Classes:
    - Idle, Creating, Moving, Resizing: Gesture states
    - GestureBuffer: Ephemeral rectangle with explicit commit()/discard()

Dependencies:
    - dataclasses (std)
    - core.geometry: Point, Rect, Handle

Used By:
    - interaction.editor: RegionEditor
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, TypeVar, Union

from ..core.geometry import Handle, Point, Rect

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Idle:
    """No gesture in progress."""


@dataclass(frozen=True, slots=True)
class Creating:
    """Drag-to-select of a new region; anchor is the pointer-down point."""

    anchor: Point


@dataclass(frozen=True, slots=True)
class Moving:
    """Dragging a region body; origin is the pointer-down point."""

    region_id: str
    origin: Point
    snapshot: Rect


@dataclass(frozen=True, slots=True)
class Resizing:
    """Dragging one corner handle of a region."""

    region_id: str
    handle: Handle
    origin: Point
    snapshot: Rect


GestureState = Union[Idle, Creating, Moving, Resizing]

IDLE = Idle()


class GestureBuffer:
    """
    Fast local holder for the in-flight rectangle.

    update() may be called on every pointer move; commit() hands the
    final value to the authoritative store exactly once and empties the
    buffer.

    Example:
        >>> buf = GestureBuffer()
        >>> buf.update(Rect(10, 10, 5, 5))
        >>> buf.commit(lambda rect: rect.width)
        5
        >>> buf.pending is None
        True
    """

    def __init__(self) -> None:
        self._pending: Optional[Rect] = None
        self._updates = 0

    @property
    def pending(self) -> Optional[Rect]:
        """Current ephemeral rectangle, or None."""
        return self._pending

    @property
    def updates(self) -> int:
        """Number of update() calls since the last commit/discard."""
        return self._updates

    def update(self, rect: Rect) -> None:
        self._pending = rect
        self._updates += 1

    def commit(self, apply: Callable[[Rect], T]) -> Optional[T]:
        """
        Pass the pending rectangle to `apply` and clear the buffer.

        The buffer is cleared even if `apply` raises.

        Returns:
            Whatever `apply` returned, or None if nothing was pending
        """
        pending = self._pending
        self.discard()
        if pending is None:
            return None
        return apply(pending)

    def discard(self) -> None:
        """Drop the pending rectangle without committing it."""
        self._pending = None
        self._updates = 0
