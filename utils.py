"""
Utility functions for planar geometry on contour points and polylines.
"""

import math
from typing import List, Sequence

from models import Point


class GeometryCalculator:
    """Calculate geometric properties of points, segments and polylines."""

    @staticmethod
    def calculate_distance(p1: Point, p2: Point) -> float:
        """Calculate Euclidean distance between two points."""
        return math.hypot(p2.x - p1.x, p2.y - p1.y)

    @staticmethod
    def points_equal(p1: Point, p2: Point, tolerance: float) -> bool:
        """Absolute per-axis comparison."""
        return abs(p1.x - p2.x) < tolerance and abs(p1.y - p2.y) < tolerance

    @staticmethod
    def triangle_area(p1: Point, p2: Point, p3: Point) -> float:
        """
        Calculate area of the triangle p1-p2-p3 using the shoelace formula.
        """
        return abs(
            (p2.x - p1.x) * (p3.y - p1.y) -
            (p3.x - p1.x) * (p2.y - p1.y)
        ) / 2.0

    @staticmethod
    def direction(p1: Point, p2: Point, p3: Point) -> float:
        """
        Orientation of p3 relative to the line p1-p2.
        Positive on one side, negative on the other, zero when collinear.
        """
        return (p3.x - p1.x) * (p2.y - p1.y) - (p2.x - p1.x) * (p3.y - p1.y)

    @staticmethod
    def on_segment(p1: Point, p2: Point, p3: Point) -> bool:
        """Check if p2 lies inside the bounding box of segment p1-p3."""
        return (min(p1.x, p3.x) <= p2.x <= max(p1.x, p3.x) and
                min(p1.y, p3.y) <= p2.y <= max(p1.y, p3.y))

    @staticmethod
    def segments_intersect(a1: Point, a2: Point, b1: Point, b2: Point) -> bool:
        """
        Check if segment a1-a2 intersects segment b1-b2.

        Proper crossings are detected through orientation signs; touching and
        collinear-overlapping segments count as intersecting.
        """
        direction = GeometryCalculator.direction
        on_segment = GeometryCalculator.on_segment

        d1 = direction(b1, b2, a1)
        d2 = direction(b1, b2, a2)
        d3 = direction(a1, a2, b1)
        d4 = direction(a1, a2, b2)

        if (((d1 > 0 and d2 < 0) or (d1 < 0 and d2 > 0)) and
                ((d3 > 0 and d4 < 0) or (d3 < 0 and d4 > 0))):
            return True

        # Collinear cases
        if d1 == 0 and on_segment(b1, a1, b2):
            return True
        if d2 == 0 and on_segment(b1, a2, b2):
            return True
        if d3 == 0 and on_segment(a1, b1, a2):
            return True
        if d4 == 0 and on_segment(a1, b2, a2):
            return True

        return False

    @staticmethod
    def is_closed(line: Sequence[Point]) -> bool:
        return len(line) > 2 and line[0] == line[-1]

    @staticmethod
    def self_intersections(line: Sequence[Point]) -> List[tuple]:
        """
        Find pairs of non-adjacent segments that intersect.

        Segment k joins ``line[k]`` and ``line[k + 1]``. For a closed polyline the
        first and last segments share the closing vertex and count as adjacent.

        Returns:
            List of (k, m) segment index pairs with k < m.
        """
        n_segments = len(line) - 1
        closed = GeometryCalculator.is_closed(line)
        hits = []
        for k in range(n_segments):
            for m in range(k + 2, n_segments):
                if closed and k == 0 and m == n_segments - 1:
                    continue
                if GeometryCalculator.segments_intersect(line[k], line[k + 1], line[m], line[m + 1]):
                    hits.append((k, m))
        return hits
