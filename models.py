"""
Data model for the contour pipeline.
Points, samples, bounds, segments and the level-ordered contour map.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from exceptions import InvalidBounds


@dataclass
class Point:
    """Planar coordinate; longitude/latitude are treated as Cartesian x/y."""

    x: float
    y: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def copy(self) -> 'Point':
        return Point(self.x, self.y)


@dataclass
class Sample(Point):
    """
    A point with an optional elevation.

    ``None`` means the elevation is pending or the lookup failed. Once a value
    is assigned it never changes.
    """

    elevation: Optional[float] = None

    @property
    def has_elevation(self) -> bool:
        return self.elevation is not None

    def assign_elevation(self, value: Optional[float]) -> None:
        """Record the oracle's answer for this sample."""
        if self.elevation is not None:
            raise ValueError(
                f"Sample at ({self.x}, {self.y}) already has elevation {self.elevation}"
            )
        self.elevation = None if value is None else float(value)


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned rectangle with min_x < max_x and min_y < max_y."""

    min_x: float
    max_x: float
    min_y: float
    max_y: float

    def __post_init__(self):
        values = (self.min_x, self.max_x, self.min_y, self.max_y)
        if not all(math.isfinite(v) for v in values):
            raise InvalidBounds(f"Bounds must be finite, got {values}")
        if not self.min_x < self.max_x:
            raise InvalidBounds(
                f"Bounds have zero or negative width: min_x={self.min_x}, max_x={self.max_x}"
            )
        if not self.min_y < self.max_y:
            raise InvalidBounds(
                f"Bounds have zero or negative height: min_y={self.min_y}, max_y={self.max_y}"
            )

    @classmethod
    def from_corners(cls, corner_a: Tuple[float, float], corner_b: Tuple[float, float]) -> 'Bounds':
        """Build bounds from two opposite corners given in any order."""
        (ax, ay), (bx, by) = corner_a, corner_b
        return cls(min(ax, bx), max(ax, bx), min(ay, by), max(ay, by))

    @classmethod
    def from_points(cls, points: List[Point]) -> 'Bounds':
        """Smallest rectangle enclosing the given points."""
        if not points:
            raise InvalidBounds("Cannot derive bounds from an empty point set")
        xs = [p.x for p in points]
        ys = [p.y for p in points]
        return cls(min(xs), max(xs), min(ys), max(ys))

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def contains(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def clamp(self, point: Point) -> None:
        """Move a point onto the rectangle if it lies outside (in place)."""
        point.x = max(self.min_x, min(self.max_x, point.x))
        point.y = max(self.min_y, min(self.max_y, point.y))


@dataclass(frozen=True)
class Segment:
    """Unconnected contour piece at one elevation level."""

    start: Point
    end: Point
    level: float


Polyline = List[Point]


@dataclass(frozen=True)
class RemovalCandidate:
    """One interior vertex in the global simplification ranking."""

    level: float
    line_index: int
    point_index: int
    effective_area: float


@dataclass
class ElevationGrid:
    """
    Regular grid of interpolated elevations.

    ``values[i, j]`` is the elevation at ``(xs[i], ys[j])`` (column-major in x).
    """

    xs: np.ndarray
    ys: np.ndarray
    values: np.ndarray

    @property
    def cols(self) -> int:
        return len(self.xs)

    @property
    def rows(self) -> int:
        return len(self.ys)

    @property
    def min_elevation(self) -> float:
        return float(np.nanmin(self.values))

    @property
    def max_elevation(self) -> float:
        return float(np.nanmax(self.values))


class ContourMap:
    """
    Polylines grouped by elevation level.

    Iteration always runs in ascending level order.
    """

    def __init__(self, lines: Optional[Dict[float, List[Polyline]]] = None):
        self._lines: Dict[float, List[Polyline]] = {}
        for level, polylines in (lines or {}).items():
            self[level] = polylines

    def __setitem__(self, level: float, polylines: List[Polyline]) -> None:
        self._lines[float(level)] = list(polylines)

    def __getitem__(self, level: float) -> List[Polyline]:
        return self._lines[float(level)]

    def __contains__(self, level) -> bool:
        return float(level) in self._lines

    def __iter__(self) -> Iterator[float]:
        return iter(self.levels())

    def __len__(self) -> int:
        return len(self._lines)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ContourMap):
            return NotImplemented
        return self._lines == other._lines

    def __repr__(self) -> str:
        return f"ContourMap(levels={self.levels()}, polylines={self.polyline_count()})"

    def levels(self) -> List[float]:
        return sorted(self._lines)

    def items(self) -> Iterator[Tuple[float, List[Polyline]]]:
        for level in self.levels():
            yield level, self._lines[level]

    def polyline_count(self) -> int:
        return sum(len(lines) for lines in self._lines.values())

    def vertex_count(self) -> int:
        return sum(len(line) for lines in self._lines.values() for line in lines)

    def clone(self) -> 'ContourMap':
        """Deep structural copy; the result shares no points or lists with self."""
        copy = ContourMap()
        for level, lines in self.items():
            copy[level] = [[p.copy() for p in line] for line in lines]
        return copy
