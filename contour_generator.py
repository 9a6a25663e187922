"""
Contour Map Generator
Extracts contour lines at regular elevation intervals.

Two interchangeable extractors produce unconnected segments per level:
- ConrecContourer: CONREC over a regular interpolated grid
- TriangleContourer: linear interpolation directly on the TIN
ContourGenerator stitches the segments into polylines per level.
"""

import logging
import math
from typing import Dict, List, Sequence

from models import ContourMap, ElevationGrid, Point, Segment
from stitching import SegmentStitcher
from triangulation import Triangulation

logger = logging.getLogger(__name__)

# Corner elevations closer than this are treated as equal when interpolating
FLAT_EPSILON = 1e-10


def contour_levels(z_min: float, z_max: float, interval: float) -> List[float]:
    """
    Multiples of interval from ceil(z_min / interval) * interval up to z_max.

    Example:
        contour_levels(12, 47, 10)  # -> [20.0, 30.0, 40.0]
    """
    if interval <= 0:
        raise ValueError("Contour interval must be positive")
    if z_max < z_min:
        return []

    first = math.ceil(z_min / interval)
    levels = []
    k = first
    while k * interval <= z_max:
        levels.append(float(k * interval))
        k += 1
    return levels


def interpolate_crossing(p1: Point, p2: Point, z1: float, z2: float, level: float) -> Point:
    """Point on p1-p2 where the linear elevation profile reaches level."""
    if abs(z2 - z1) < FLAT_EPSILON:
        return Point((p1.x + p2.x) / 2, (p1.y + p2.y) / 2)
    t = (level - z1) / (z2 - z1)
    return Point(p1.x + t * (p2.x - p1.x), p1.y + t * (p2.y - p1.y))


class ConrecContourer:
    """
    CONREC contouring (Paul Bourke) on a regular grid.

    Each cell is split into four triangles by its diagonals, meeting at a
    center vertex holding the mean corner elevation. Every vertex is classed
    below/on/above the level and the action table picks the segment drawn in
    each triangle.
    """

    # Corner offsets, counter-clockwise from (i, j)
    IM = (0, 1, 1, 0)
    JM = (0, 0, 1, 1)

    # Rows are (corner m1 class, center class), columns the corner m3 class;
    # classes are 0 below, 1 on, 2 above.
    # 0: none, 1-3: vertex to vertex, 4-6: vertex to opposite side, 7-9: side to side
    CASTAB = (
        (0, 0, 8), (0, 2, 5), (7, 6, 9),
        (0, 3, 4), (1, 3, 1), (4, 3, 0),
        (9, 6, 7), (5, 2, 0), (8, 0, 0),
    )

    def contour(self, grid: ElevationGrid, levels: Sequence[float]) -> Dict[float, List[Segment]]:
        segments: Dict[float, List[Segment]] = {level: [] for level in levels}
        if not levels:
            return segments

        d = grid.values
        xs, ys = grid.xs, grid.ys
        z_low, z_high = levels[0], levels[-1]

        for j in range(grid.rows - 2, -1, -1):
            for i in range(grid.cols - 1):
                corners = [d[i + self.IM[m], j + self.JM[m]] for m in range(4)]
                if any(math.isnan(c) for c in corners):
                    continue
                dmin, dmax = min(corners), max(corners)
                if dmax < z_low or dmin > z_high:
                    continue

                for level in levels:
                    if level < dmin or level > dmax:
                        continue
                    code = sum(8 >> m for m in range(4) if corners[m] > level)
                    if code == 0 or code == 15:
                        continue
                    self._contour_cell(i, j, corners, xs, ys, level, segments[level])

        return segments

    def _contour_cell(self, i, j, corners, xs, ys, level, out: List[Segment]) -> None:
        # Vertex 0 is the cell center, 1-4 the corners
        h = [0.0] * 5
        pts = [None] * 5
        for m in range(1, 5):
            h[m] = corners[m - 1] - level
            pts[m] = Point(float(xs[i + self.IM[m - 1]]), float(ys[j + self.JM[m - 1]]))
        h[0] = 0.25 * (h[1] + h[2] + h[3] + h[4])
        pts[0] = Point(0.5 * float(xs[i] + xs[i + 1]), 0.5 * float(ys[j] + ys[j + 1]))
        sh = [1 if v > 0 else (-1 if v < 0 else 0) for v in h]

        def crossing(a: int, b: int) -> Point:
            return interpolate_crossing(pts[a], pts[b], h[a], h[b], 0.0)

        for m in range(1, 5):
            m1, m2, m3 = m, 0, (m + 1 if m != 4 else 1)
            case = self.CASTAB[(sh[m1] + 1) * 3 + (sh[m2] + 1)][sh[m3] + 1]
            if case == 0:
                continue
            if case == 1:
                start, end = pts[m1], pts[m2]
            elif case == 2:
                start, end = pts[m2], pts[m3]
            elif case == 3:
                start, end = pts[m3], pts[m1]
            elif case == 4:
                start, end = pts[m1], crossing(m2, m3)
            elif case == 5:
                start, end = pts[m2], crossing(m3, m1)
            elif case == 6:
                start, end = pts[m3], crossing(m1, m2)
            elif case == 7:
                start, end = crossing(m1, m2), crossing(m2, m3)
            elif case == 8:
                start, end = crossing(m2, m3), crossing(m3, m1)
            else:
                start, end = crossing(m3, m1), crossing(m1, m2)
            out.append(Segment(start.copy(), end.copy(), level))


class TriangleContourer:
    """
    Contour directly on the triangulation.

    A vertex whose elevation equals the level counts as above it, so every
    triangle has either zero or exactly two crossing edges. Crossings that
    collapse onto a shared vertex give zero-length segments, which are dropped.
    """

    def contour(self, triangulation: Triangulation, levels: Sequence[float]) -> Dict[float, List[Segment]]:
        segments: Dict[float, List[Segment]] = {level: [] for level in levels}
        coords = triangulation.coords
        z = triangulation.elevations

        for simplex in triangulation.simplices:
            a, b, c = (int(v) for v in simplex)
            tri_min = min(z[a], z[b], z[c])
            tri_max = max(z[a], z[b], z[c])
            for level in levels:
                if level < tri_min or level > tri_max:
                    continue
                segment = self._triangle_segment((a, b, c), coords, z, level)
                if segment is not None:
                    segments[level].append(segment)

        return segments

    def _triangle_segment(self, vertices, coords, z, level):
        crossings = []
        for k in range(3):
            # Shared edges interpolate in the same direction from both triangles
            p, q = sorted((vertices[k], vertices[(k + 1) % 3]))
            if (z[p] >= level) == (z[q] >= level):
                continue
            crossings.append(interpolate_crossing(
                Point(float(coords[p][0]), float(coords[p][1])),
                Point(float(coords[q][0]), float(coords[q][1])),
                float(z[p]), float(z[q]), level,
            ))

        if len(crossings) != 2:
            if crossings:
                logger.debug(f"Ignoring triangle {vertices} with {len(crossings)} crossings at {level}")
            return None

        start, end = crossings
        if start == end:
            return None
        return Segment(start, end, level)


class ContourGenerator:
    """
    Generate contour polylines from a grid or a triangulation.

    Example:
        generator = ContourGenerator(interval=10.0)
        contours = generator.from_triangulation(triangulate(samples))
        contours[20.0]  # -> list of polylines at 20 m
    """

    def __init__(self, interval: float, tolerance: float = 1e-4):
        if interval <= 0:
            raise ValueError("Contour interval must be positive")
        self.interval = interval
        self.stitcher = SegmentStitcher(tolerance)

    def levels(self, z_min: float, z_max: float) -> List[float]:
        return contour_levels(z_min, z_max, self.interval)

    def from_grid(self, grid: ElevationGrid) -> ContourMap:
        levels = self.levels(grid.min_elevation, grid.max_elevation)
        segments = ConrecContourer().contour(grid, levels)
        return self.build_map(segments)

    def from_triangulation(self, triangulation: Triangulation) -> ContourMap:
        levels = self.levels(triangulation.min_elevation, triangulation.max_elevation)
        segments = TriangleContourer().contour(triangulation, levels)
        return self.build_map(segments)

    def build_map(self, segments: Dict[float, List[Segment]]) -> ContourMap:
        """Stitch each level; levels without any polyline are left out."""
        total = sum(len(s) for s in segments.values())
        logger.info(f"Extracted {total} segments across {len(segments)} levels")

        contours = ContourMap()
        for level in sorted(segments):
            lines = [line for line in self.stitcher.connect(segments[level]) if len(line) >= 2]
            if lines:
                contours[level] = lines
        return contours
