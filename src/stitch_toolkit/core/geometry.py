"""
Module: core.geometry

Purpose:
    Percentage-space rectangle math used by region editing. Regions are
    stored as percentages of the owning image's displayed bounds so they
    survive rescaling; this module keeps them inside [0, 100] with a
    minimum size, and converts pointer positions into that space.

Key Functions:
    - normalize_rect(): Clamp a rectangle into bounds (auto-correction)
    - validate_rect(): Strict check, raises GeometryViolation
    - rect_from_points(): Drag-to-select box between two points
    - move_rect(): Clamped translation of a snapshot
    - resize_rect(): Corner-anchored resize of a snapshot
    - pixel_box(): Percentage rectangle to float pixel rectangle
    - hit_test(): Find the region / handle under a point

Key Classes:
    - Point, Rect: Immutable percentage-space values
    - Bounds: Client-space bounding box of the displayed image
    - Handle: Corner handles (NW, NE, SW, SE)

Dependencies:
    - dataclasses (std)
    - enum (std)

Used By:
    - core.models.region: Region normalizes itself on construction
    - interaction.editor: Gesture previews
    - composition.cropper / compositor: Pixel rectangles
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterator, Optional, Sequence, Tuple

from .errors import GeometryViolation

if TYPE_CHECKING:
    from .models.region import Region


MIN_REGION_SIZE = 1.0
MAX_PERCENT = 100.0

# Float comparisons in validate_rect
_TOLERANCE = 1e-9


@dataclass(frozen=True, slots=True)
class Point:
    """A position in percentage space."""

    x: float
    y: float


@dataclass(frozen=True, slots=True)
class Rect:
    """
    Rectangle in percentage space.

    Attributes:
        x: Left edge (percent of displayed width)
        y: Top edge (percent of displayed height)
        width: Width in percent
        height: Height in percent

    Example:
        >>> r = Rect(10, 20, 30, 40)
        >>> r.right, r.bottom
        (40, 60)
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        """Right edge (x + width)."""
        return self.x + self.width

    @property
    def bottom(self) -> float:
        """Bottom edge (y + height)."""
        return self.y + self.height

    def corner(self, handle: Handle) -> Point:
        """Position of the corner a handle sits on."""
        x = self.x if handle.moves_left else self.right
        y = self.y if handle.moves_top else self.bottom
        return Point(x, y)

    def contains(self, point: Point) -> bool:
        """Check if a point lies inside the rectangle (edges included)."""
        return self.x <= point.x <= self.right and self.y <= point.y <= self.bottom

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Get as (x, y, width, height)."""
        return (self.x, self.y, self.width, self.height)


class Handle(str, Enum):
    """Corner resize handles."""
    NW = "nw"
    NE = "ne"
    SW = "sw"
    SE = "se"

    @property
    def moves_left(self) -> bool:
        """True if dragging this handle moves the left edge."""
        return self in (Handle.NW, Handle.SW)

    @property
    def moves_top(self) -> bool:
        """True if dragging this handle moves the top edge."""
        return self in (Handle.NW, Handle.NE)

    @property
    def anchor(self) -> Handle:
        """The diagonally opposite corner, which stays fixed during resize."""
        return _OPPOSITE[self]

    def __str__(self) -> str:
        return self.value


_OPPOSITE = {
    Handle.NW: Handle.SE,
    Handle.NE: Handle.SW,
    Handle.SW: Handle.NE,
    Handle.SE: Handle.NW,
}


@dataclass(frozen=True, slots=True)
class Bounds:
    """
    Client-space bounding box of the currently displayed image.

    Pointer events arrive in client coordinates; this converts them to
    percentages of the displayed image.

    Example:
        >>> Bounds(left=100, top=50, width=400, height=200).to_percent(300, 150)
        Point(x=50.0, y=50.0)
    """

    left: float
    top: float
    width: float
    height: float

    def __post_init__(self) -> None:
        """Validate bounds on construction."""
        if self.width <= 0:
            raise ValueError(f"width must be positive: {self.width}")
        if self.height <= 0:
            raise ValueError(f"height must be positive: {self.height}")

    def to_percent(self, client_x: float, client_y: float) -> Point:
        """Convert a client position into percentage space (unclamped)."""
        return Point(
            x=(client_x - self.left) * 100.0 / self.width,
            y=(client_y - self.top) * 100.0 / self.height,
        )


@dataclass(frozen=True, slots=True)
class Hit:
    """Result of hit-testing: the region under the point and, optionally, a handle."""

    region_id: str
    handle: Optional[Handle] = None


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(value, high))


def clamp_point(point: Point) -> Point:
    """Clamp a point into the [0, 100] square."""
    return Point(clamp(point.x, 0.0, MAX_PERCENT), clamp(point.y, 0.0, MAX_PERCENT))


def normalize_rect(rect: Rect, min_size: float = MIN_REGION_SIZE) -> Rect:
    """
    Clamp a rectangle into [0, 100] with the minimum size applied.

    Size is corrected first, then position, so an oversized rectangle
    keeps as much of itself as fits.

    Args:
        rect: Rectangle to correct
        min_size: Minimum width/height in percent

    Returns:
        The same rect if already valid, otherwise a corrected copy
    """
    width = clamp(rect.width, min_size, MAX_PERCENT)
    height = clamp(rect.height, min_size, MAX_PERCENT)
    x = clamp(rect.x, 0.0, MAX_PERCENT - width)
    y = clamp(rect.y, 0.0, MAX_PERCENT - height)
    if (x, y, width, height) == rect.as_tuple():
        return rect
    return Rect(x, y, width, height)


def validate_rect(rect: Rect, min_size: float = MIN_REGION_SIZE) -> None:
    """
    Strictly check a rectangle against the percentage-space invariants.

    Raises:
        GeometryViolation: If any invariant fails
    """
    if rect.x < -_TOLERANCE or rect.y < -_TOLERANCE:
        raise GeometryViolation(f"Rect origin is negative: {rect}")
    if rect.width < min_size - _TOLERANCE or rect.height < min_size - _TOLERANCE:
        raise GeometryViolation(f"Rect smaller than {min_size}%: {rect}")
    if rect.right > MAX_PERCENT + _TOLERANCE or rect.bottom > MAX_PERCENT + _TOLERANCE:
        raise GeometryViolation(f"Rect extends past 100%: {rect}")


def rect_from_points(anchor: Point, current: Point) -> Rect:
    """Drag-to-select box spanned by two points, in either drag direction."""
    return Rect(
        x=min(anchor.x, current.x),
        y=min(anchor.y, current.y),
        width=abs(current.x - anchor.x),
        height=abs(current.y - anchor.y),
    )


def move_rect(snapshot: Rect, dx: float, dy: float) -> Rect:
    """Translate a snapshot by (dx, dy), clamped so it stays inside bounds."""
    return Rect(
        x=clamp(snapshot.x + dx, 0.0, MAX_PERCENT - snapshot.width),
        y=clamp(snapshot.y + dy, 0.0, MAX_PERCENT - snapshot.height),
        width=snapshot.width,
        height=snapshot.height,
    )


def _resize_axis(
    start: float,
    size: float,
    delta: float,
    moves_start: bool,
    min_size: float,
) -> Tuple[float, float]:
    """Resize one axis; returns (start, size)."""
    if moves_start:
        # Far edge is the anchor
        end = start + size
        new_start = max(0.0, min(start + delta, end - min_size))
        return new_start, end - new_start
    return start, max(min_size, min(size + delta, MAX_PERCENT - start))


def resize_rect(
    snapshot: Rect,
    handle: Handle,
    dx: float,
    dy: float,
    min_size: float = MIN_REGION_SIZE,
) -> Rect:
    """
    Resize a snapshot by dragging one corner handle.

    The diagonally opposite corner stays where it was. Each dragged edge
    is clamped so the size stays >= min_size and the rectangle stays
    inside [0, 100].

    Args:
        snapshot: Committed rectangle at gesture start
        handle: Corner being dragged
        dx, dy: Pointer travel since gesture start (percent)
        min_size: Minimum width/height in percent

    Returns:
        Resized rectangle

    Example:
        >>> resize_rect(Rect(10, 10, 20, 20), Handle.SE, 5, 5)
        Rect(x=10, y=10, width=25, height=25)
    """
    x, width = _resize_axis(snapshot.x, snapshot.width, dx, handle.moves_left, min_size)
    y, height = _resize_axis(snapshot.y, snapshot.height, dy, handle.moves_top, min_size)
    return Rect(x, y, width, height)


def pixel_box(rect: Rect, width: float, height: float) -> Tuple[float, float, float, float]:
    """
    Convert a percentage rectangle to a float pixel rectangle.

    Returns:
        (left, top, pixel_width, pixel_height)
    """
    return (
        rect.x * width / 100.0,
        rect.y * height / 100.0,
        rect.width * width / 100.0,
        rect.height * height / 100.0,
    )


def _iter_handles(rect: Rect) -> Iterator[Tuple[Handle, Point]]:
    for handle in Handle:
        yield handle, rect.corner(handle)


def hit_test(
    point: Point,
    regions: Sequence[Region],
    handle_radius: float = 1.5,
) -> Optional[Hit]:
    """
    Find what a pointer-down at `point` lands on.

    Later regions paint over earlier ones, so the search runs back to
    front. A corner within `handle_radius` percent counts as a handle
    hit even slightly outside the body.

    Args:
        point: Pointer position in percentage space
        regions: Regions in paint order
        handle_radius: Handle grab distance in percent

    Returns:
        Hit for the topmost region, or None for empty canvas
    """
    for region in reversed(regions):
        rect = region.rect
        for handle, corner in _iter_handles(rect):
            if abs(point.x - corner.x) <= handle_radius and abs(point.y - corner.y) <= handle_radius:
                return Hit(region.id, handle)
        if rect.contains(point):
            return Hit(region.id)
    return None
