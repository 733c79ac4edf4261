"""
Planar geometry primitives used by the Voronoi clipping kernel.

This module provides:
- Vector2 points
- An axis-aligned Box with point containment
- Segment/box clipping with side-tagged entry and exit crossings
- Polygon helpers (shoelace area, ray-casting containment)

The box uses a y-up convention (bottom < top). Sides are numbered so that
stepping +1 mod 4 walks the perimeter counter-clockwise:
LEFT -> BOTTOM -> RIGHT -> TOP -> LEFT.

Comparisons against the box use a tolerance relative to its size, so Voronoi
vertices computed a few ulps off a side still count as lying on it.
"""

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import List, NamedTuple, Optional, Sequence

RELATIVE_TOLERANCE = 1e-9


class Vector2(NamedTuple):
    """2D point or direction."""
    x: float
    y: float


class Side(IntEnum):
    """Box sides in counter-clockwise perimeter order."""
    LEFT = 0
    BOTTOM = 1
    RIGHT = 2
    TOP = 3

    def next(self) -> "Side":
        """Adjacent side walking the perimeter counter-clockwise."""
        return Side((self + 1) % 4)


class Intersection(NamedTuple):
    """A crossing of a segment with one side of a box."""
    point: Vector2
    side: Side


class SegmentClip(NamedTuple):
    """
    Part of a segment lying inside a box, as parameters t0 <= t1 in [0, 1].

    entry is set when the segment starts outside (t0 > 0), exit when it
    ends outside (t1 < 1).
    """
    t0: float
    t1: float
    entry: Optional[Intersection]
    exit: Optional[Intersection]


@dataclass(frozen=True)
class Box:
    """Axis-aligned rectangle with y growing upward."""
    left: float
    bottom: float
    right: float
    top: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.top - self.bottom

    @property
    def center(self) -> Vector2:
        return Vector2((self.left + self.right) / 2, (self.bottom + self.top) / 2)

    @property
    def tolerance(self) -> float:
        """Distance under which a point counts as lying on the boundary."""
        return RELATIVE_TOLERANCE * max(self.width, self.height, 1.0)

    def contains(self, point: Sequence[float]) -> bool:
        """Check if point lies inside or on the box (within tolerance)."""
        x, y = point[0], point[1]
        tol = self.tolerance
        return (self.left - tol <= x <= self.right + tol and
                self.bottom - tol <= y <= self.top + tol)

    def clamp(self, point: Sequence[float]) -> Vector2:
        """Nearest point of the box."""
        return Vector2(min(max(float(point[0]), self.left), self.right),
                       min(max(float(point[1]), self.bottom), self.top))

    def side_of(self, point: Sequence[float], entering: bool) -> Side:
        """
        Side of the boundary a point lies on.

        A corner belongs to two sides. Walking the perimeter counter-clockwise,
        a path entering the box at a corner is reported on the side that ends
        there, a path leaving it on the side that starts there. Stitching
        along the perimeter then never adds a zero-length edge.
        """
        x, y = float(point[0]), float(point[1])
        distances = {
            Side.LEFT: abs(x - self.left),
            Side.BOTTOM: abs(y - self.bottom),
            Side.RIGHT: abs(x - self.right),
            Side.TOP: abs(y - self.top),
        }
        nearest = min(distances.values())
        sides = [side for side in Side if distances[side] <= nearest + self.tolerance]
        if len(sides) == 2:
            first, second = sides if sides[0].next() == sides[1] else sides[::-1]
            return first if entering else second
        return sides[0]

    def clip_segment(self, origin: Sequence[float],
                     destination: Sequence[float]) -> Optional[SegmentClip]:
        """
        Clip the segment origin -> destination to the box (Liang-Barsky).

        A segment whose part inside the box is no longer than the tolerance
        (one touching a side or a corner) is outside. So is a segment running
        along a side with the box on its right.

        Returns:
            The inside part, or None when the segment is outside.
        """
        ox, oy = float(origin[0]), float(origin[1])
        dx = float(destination[0]) - ox
        dy = float(destination[1]) - oy
        tol = self.tolerance
        length = math.hypot(dx, dy)
        if length <= tol:
            return SegmentClip(0.0, 1.0, None, None) if self.contains(origin) else None

        t0, t1 = 0.0, 1.0
        # (outward movement, distance inside the side, left normal . inward normal)
        for p, q, facing in ((-dx, ox - self.left, -dy),
                             (dx, self.right - ox, dy),
                             (-dy, oy - self.bottom, dx),
                             (dy, self.top - oy, -dx)):
            if abs(p) <= tol:
                if q < -tol or (q <= tol and facing < 0):
                    return None
                continue
            r = q / p
            if p < 0:
                t0 = max(t0, r)
            else:
                t1 = min(t1, r)

        if (t1 - t0) * length <= tol:
            return None
        if t0 * length <= tol:
            t0 = 0.0
        if (1.0 - t1) * length <= tol:
            t1 = 1.0

        entry = leave = None
        if t0 > 0.0:
            point = self.clamp((ox + t0 * dx, oy + t0 * dy))
            entry = Intersection(point, self.side_of(point, entering=True))
        if t1 < 1.0:
            point = self.clamp((ox + t1 * dx, oy + t1 * dy))
            leave = Intersection(point, self.side_of(point, entering=False))
        return SegmentClip(t0, t1, entry, leave)

    def get_intersections(self, origin: Sequence[float],
                          destination: Sequence[float]) -> List[Intersection]:
        """
        Find where the segment origin -> destination crosses the box boundary.

        A crossing at a corner is reported once. Endpoints lying on the
        boundary are not crossings.

        Args:
            origin: Segment start point
            destination: Segment end point

        Returns:
            Zero to two intersections, nearest to origin first.
        """
        clip = self.clip_segment(origin, destination)
        if clip is None:
            return []
        return [crossing for crossing in (clip.entry, clip.exit) if crossing is not None]

    def corner(self, side: Side) -> Vector2:
        """
        Corner where a counter-clockwise walk enters the given side.

        LEFT starts at the top-left corner, BOTTOM at bottom-left,
        RIGHT at bottom-right and TOP at top-right.
        """
        if side == Side.LEFT:
            return Vector2(self.left, self.top)
        if side == Side.BOTTOM:
            return Vector2(self.left, self.bottom)
        if side == Side.RIGHT:
            return Vector2(self.right, self.bottom)
        return Vector2(self.right, self.top)


def signed_area(polygon: Sequence[Sequence[float]]) -> float:
    """
    Calculate signed area of polygon using shoelace formula.

    Returns:
        Positive for CCW winding, negative for CW winding.
    """
    n = len(polygon)
    if n < 3:
        return 0.0
    area = 0.0
    for i in range(n):
        j = (i + 1) % n
        area += polygon[i][0] * polygon[j][1]
        area -= polygon[j][0] * polygon[i][1]
    return area / 2.0


def point_in_polygon(point: Sequence[float], polygon: Sequence[Sequence[float]]) -> bool:
    """Check if point is inside polygon using ray casting."""
    x, y = point[0], point[1]
    n = len(polygon)
    if n < 3:
        return False
    inside = False

    j = n - 1
    for i in range(n):
        xi, yi = polygon[i][0], polygon[i][1]
        xj, yj = polygon[j][0], polygon[j][1]

        if ((yi > y) != (yj > y)) and (x < (xj - xi) * (y - yi) / (yj - yi) + xi):
            inside = not inside
        j = i

    return inside
