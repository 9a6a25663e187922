"""
Visvalingam's Algorithm for contour simplification.

Removes the vertices whose triangle with their neighbors has the smallest
area, refusing any removal that would make a polyline cross itself.
Two modes:
- threshold: per polyline, drop vertices below a fraction of its largest area
- count: drop the K globally least significant vertices across the whole map
"""

import logging
import math
from typing import Dict, List, Sequence, Tuple

from models import ContourMap, Point, Polyline, RemovalCandidate
from utils import GeometryCalculator

logger = logging.getLogger(__name__)


class Visvalingam:
    """Vertex removal by effective area with a self-intersection guard."""

    @staticmethod
    def effective_areas(points: Sequence[Point]) -> List[float]:
        """Triangle area of each vertex with its neighbors; endpoints are infinite."""
        areas = [math.inf] * len(points)
        for i in range(1, len(points) - 1):
            areas[i] = GeometryCalculator.triangle_area(points[i - 1], points[i], points[i + 1])
        return areas

    @staticmethod
    def would_create_intersection(points: Sequence[Point], keep: Sequence[bool], remove_index: int) -> bool:
        """
        Check if removing a vertex would make the polyline cross itself.

        The bridge between the nearest kept vertices before and after
        ``remove_index`` is tested against every other kept segment except
        those sharing a vertex with it. On a closed polyline the first and last
        vertices are the same vertex.
        """
        n = len(points)
        prev_index = remove_index - 1
        while prev_index >= 0 and not keep[prev_index]:
            prev_index -= 1
        next_index = remove_index + 1
        while next_index < n and not keep[next_index]:
            next_index += 1

        if prev_index < 0 or next_index >= n:
            return False

        bridge_ends = {prev_index, next_index}
        if GeometryCalculator.is_closed(points) and bridge_ends & {0, n - 1}:
            bridge_ends |= {0, n - 1}

        bridge_start, bridge_end = points[prev_index], points[next_index]
        kept = [k for k in range(n) if keep[k]]
        for a, b in zip(kept, kept[1:]):
            if remove_index in (a, b) or a in bridge_ends or b in bridge_ends:
                continue
            if GeometryCalculator.segments_intersect(bridge_start, bridge_end, points[a], points[b]):
                return True

        return False

    @classmethod
    def can_remove(cls, points: Sequence[Point], keep: Sequence[bool], remove_index: int,
                   kept_count: int) -> bool:
        # Closed rings keep at least a triangle (three vertices plus the closing one)
        if GeometryCalculator.is_closed(points) and kept_count <= 4:
            return False
        return not cls.would_create_intersection(points, keep, remove_index)

    @classmethod
    def simplify(cls, points: Sequence[Point], threshold: float = 0.0) -> Polyline:
        """
        Simplify a polyline.

        Args:
            points: Polyline vertices
            threshold: Fraction (0-1) of the largest effective area below which
                vertices are removed; 0 removes nothing

        Returns:
            New list of the kept points, endpoints always included.
        """
        if threshold < 0:
            raise ValueError("threshold must be non-negative")
        if len(points) <= 2:
            return list(points)

        areas = cls.effective_areas(points)
        max_area = max(a for a in areas if a != math.inf)
        min_area = threshold * max_area

        order = sorted(range(1, len(points) - 1), key=lambda i: areas[i])
        keep = [True] * len(points)
        kept_count = len(points)

        for index in order:
            if areas[index] >= min_area:
                break
            if not cls.can_remove(points, keep, index, kept_count):
                logger.debug(f"Keeping vertex {index}: removal would self-intersect")
                continue
            keep[index] = False
            kept_count -= 1

        return [p for p, k in zip(points, keep) if k]

    @classmethod
    def simplify_lines(cls, lines: Sequence[Polyline], threshold: float) -> List[Polyline]:
        return [cls.simplify(line, threshold) for line in lines]


def simplify_contours(contours: ContourMap, threshold: float) -> ContourMap:
    """Threshold-mode simplification of every polyline; input is untouched."""
    result = ContourMap()
    for level, lines in contours.items():
        result[level] = [[p.copy() for p in line] for line in Visvalingam.simplify_lines(lines, threshold)]
    return result


def rank_removal_candidates(contours: ContourMap) -> List[RemovalCandidate]:
    """
    Every interior vertex of every polyline, least significant first.

    Ties keep level / polyline / vertex order.
    """
    candidates = []
    for level, lines in contours.items():
        for line_index, line in enumerate(lines):
            areas = Visvalingam.effective_areas(line)
            for point_index in range(1, len(line) - 1):
                candidates.append(RemovalCandidate(level, line_index, point_index, areas[point_index]))
    candidates.sort(key=lambda c: c.effective_area)
    return candidates


def simplify_by_count(contours: ContourMap, ranking: Sequence[RemovalCandidate],
                      remove_count: int) -> ContourMap:
    """
    Remove up to ``remove_count`` vertices in ranked order.

    Removals are applied one by one so later intersection checks see the
    earlier ones; a refused candidate is skipped, not replaced. Polylines
    left with fewer than two points are dropped.
    """
    if remove_count < 0:
        raise ValueError("remove_count must be non-negative")

    keeps: Dict[Tuple[float, int], List[bool]] = {}
    kept_counts: Dict[Tuple[float, int], int] = {}
    refused = 0

    for candidate in ranking[:remove_count]:
        key = (candidate.level, candidate.line_index)
        line = contours[candidate.level][candidate.line_index]
        if key not in keeps:
            keeps[key] = [True] * len(line)
            kept_counts[key] = len(line)
        keep = keeps[key]
        if not Visvalingam.can_remove(line, keep, candidate.point_index, kept_counts[key]):
            refused += 1
            continue
        keep[candidate.point_index] = False
        kept_counts[key] -= 1

    if refused:
        logger.debug(f"Refused {refused} removals that would self-intersect")

    result = ContourMap()
    for level, lines in contours.items():
        simplified = []
        for line_index, line in enumerate(lines):
            keep = keeps.get((level, line_index))
            points = [p.copy() for i, p in enumerate(line) if keep is None or keep[i]]
            if len(points) >= 2:
                simplified.append(points)
        if simplified:
            result[level] = simplified
    return result


class ContourSimplifier:
    """
    Re-invokable simplification over an immutable original contour map.

    The removal ranking is computed once; every call starts again from the
    original and returns a fresh map.

    Example:
        simplifier = ContourSimplifier(contours)
        simplifier.by_count(150)
        simplifier.preview(20)  # next 20 vertices that would go
    """

    def __init__(self, contours: ContourMap):
        self.original = contours.clone()
        self.ranking = rank_removal_candidates(self.original)
        self.current = self.original.clone()
        self.position = 0

    @property
    def max_removals(self) -> int:
        return len(self.ranking)

    def by_threshold(self, threshold: float) -> ContourMap:
        self.current = simplify_contours(self.original, threshold)
        return self.current

    def by_count(self, remove_count: int) -> ContourMap:
        self.position = max(0, min(int(remove_count), self.max_removals))
        self.current = simplify_by_count(self.original, self.ranking, self.position)
        return self.current

    def preview(self, count: int = 10) -> List[RemovalCandidate]:
        """Candidates that the next ``count`` slider steps would remove."""
        return list(self.ranking[self.position:self.position + count])

    def reset(self) -> ContourMap:
        self.position = 0
        self.current = self.original.clone()
        return self.current
