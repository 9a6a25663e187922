"""
Sample Point Generator
Places boundary and well-separated interior sample points inside a rectangle.
Interior points use Poisson-disc sampling or Mitchell's best-candidate algorithm.
"""

import logging
import math
import random
from typing import List, Optional, Sequence, Tuple

from config import SamplingConfig
from models import Bounds, Point, Sample

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def generate_edge_points(bounds: Bounds, edge_count: int) -> List[Sample]:
    """
    Distribute points along the rectangle boundary.

    The x/y split follows the aspect ratio so spacing is roughly even:
    x_count = round(sqrt(edge_count * width / height)), y_count = round(edge_count / x_count).
    Top and bottom edges get x_count points each, corners included; left and
    right edges get y_count - 2 points each, corners excluded.

    Returns an empty list when fewer than two points fit along x.
    """
    if edge_count <= 0:
        return []

    width, height = bounds.width, bounds.height
    x_count = _round_half_up(math.sqrt(edge_count * bounds.aspect_ratio))
    if x_count < 2:
        logger.debug(f"Skipping edge samples: x_count={x_count} for edge_count={edge_count}")
        return []
    y_count = _round_half_up(edge_count / x_count)

    points = []

    # Top edge
    for i in range(x_count):
        x = min(bounds.min_x + (i / (x_count - 1)) * width, bounds.max_x)
        points.append(Sample(x, bounds.max_y))

    # Bottom edge
    for i in range(x_count):
        x = min(bounds.min_x + (i / (x_count - 1)) * width, bounds.max_x)
        points.append(Sample(x, bounds.min_y))

    # Left and right edges, corners already placed; empty when y_count <= 2
    for edge_x in (bounds.min_x, bounds.max_x):
        for i in range(1, y_count - 1):
            y = min(bounds.min_y + (i / (y_count - 1)) * height, bounds.max_y)
            points.append(Sample(edge_x, y))

    return points


class PoissonDiscSampler:
    """
    Blue-noise interior sampling with a guaranteed minimum spacing.

    A background grid with cell size min_distance / sqrt(2) holds at most one
    point per cell, so the neighborhood check only looks at the surrounding
    5x5 cells.
    """

    def __init__(self, bounds: Bounds, min_distance: float,
                 max_attempts: int = 30, rng: Optional[random.Random] = None):
        if min_distance <= 0:
            raise ValueError("min_distance must be positive")
        self.bounds = bounds
        self.min_distance = min_distance
        self.max_attempts = max_attempts
        self.rng = rng or random.Random()
        self.cell_size = min_distance / math.sqrt(2)

        self.cols = max(1, math.ceil(bounds.width / self.cell_size))
        self.rows = max(1, math.ceil(bounds.height / self.cell_size))

        self.grid = {}
        self.active: List[Point] = []
        self.points: List[Point] = []

    def seed_points(self) -> List[Point]:
        """Center plus four corners inset to 20%/80% of the extent."""
        b = self.bounds
        return [
            Point(b.min_x + b.width * 0.5, b.min_y + b.height * 0.5),
            Point(b.min_x + b.width * 0.2, b.min_y + b.height * 0.2),
            Point(b.min_x + b.width * 0.8, b.min_y + b.height * 0.2),
            Point(b.min_x + b.width * 0.2, b.min_y + b.height * 0.8),
            Point(b.min_x + b.width * 0.8, b.min_y + b.height * 0.8),
        ]

    def generate(self, target_count: int) -> List[Point]:
        if target_count <= 0:
            return []

        for seed in self.seed_points():
            if self.is_valid(seed.x, seed.y):
                self.add_point(seed)
                if len(self.points) >= target_count:
                    return self.points

        while self.active and len(self.points) < target_count:
            active_index = self.rng.randrange(len(self.active))
            point = self.active[active_index]
            found = False

            for _ in range(self.max_attempts):
                angle = self.rng.random() * math.pi * 2
                radius = self.min_distance + self.rng.random() * self.min_distance
                new_x = point.x + math.cos(angle) * radius
                new_y = point.y + math.sin(angle) * radius

                if self.is_valid(new_x, new_y):
                    self.add_point(Point(new_x, new_y))
                    found = True
                    if len(self.points) >= target_count:
                        break

            if not found:
                self.active.pop(active_index)

        if len(self.points) < target_count:
            logger.info(
                f"Poisson-disc sampling saturated at {len(self.points)} of {target_count} points"
            )
        return self.points

    def _cell(self, x: float, y: float) -> Tuple[int, int]:
        col = int((x - self.bounds.min_x) / self.cell_size)
        row = int((y - self.bounds.min_y) / self.cell_size)
        return min(col, self.cols - 1), min(row, self.rows - 1)

    def is_valid(self, x: float, y: float) -> bool:
        if not self.bounds.contains(x, y):
            return False

        col, row = self._cell(x, y)
        for i in range(max(0, col - 2), min(self.cols - 1, col + 2) + 1):
            for j in range(max(0, row - 2), min(self.rows - 1, row + 2) + 1):
                for neighbor in self.grid.get((i, j), ()):
                    if math.hypot(x - neighbor.x, y - neighbor.y) < self.min_distance:
                        return False
        return True

    def add_point(self, point: Point) -> None:
        self.points.append(point)
        self.active.append(point)
        self.grid.setdefault(self._cell(point.x, point.y), []).append(point)


class MitchellSampler:
    """
    Mitchell's best-candidate algorithm.

    Each new point is the farthest, among a handful of uniform random
    candidates, from its nearest already-placed point. O(n^2 * candidates)
    overall, which is fine for a few hundred points.
    """

    def __init__(self, bounds: Bounds, candidates_per_point: int = 20,
                 rng: Optional[random.Random] = None):
        self.bounds = bounds
        self.candidates_per_point = max(1, candidates_per_point)
        self.rng = rng or random.Random()
        self.points: List[Point] = []

    def _random_point(self) -> Point:
        b = self.bounds
        return Point(min(b.min_x + self.rng.random() * b.width, b.max_x),
                     min(b.min_y + self.rng.random() * b.height, b.max_y))

    def nearest_distance(self, candidate: Point) -> float:
        return min(
            (math.hypot(candidate.x - p.x, candidate.y - p.y) for p in self.points),
            default=math.inf,
        )

    def generate(self, target_count: int) -> List[Point]:
        if target_count <= 0:
            return []

        self.points.append(self._random_point())

        while len(self.points) < target_count:
            best_candidate = None
            best_distance = -1.0
            for _ in range(self.candidates_per_point):
                candidate = self._random_point()
                distance = self.nearest_distance(candidate)
                if distance > best_distance:
                    best_distance = distance
                    best_candidate = candidate
            self.points.append(best_candidate)

        return self.points


class PointRelaxation:
    """
    Spread points apart with pairwise repulsion.

    Forces are computed in coordinates normalized to the unit square, so the
    same strength behaves alike on metre-sized and degree-sized rectangles.
    Every unordered pair pushes apart with magnitude strength / distance^2.
    A pass moves each point at most max_step (default half the mean spacing,
    1 / (2 * sqrt(n))) and at most half of its remaining gap to the boundary,
    so moved points stay strictly inside and never land on edge samples.
    Points in the fixed subset (matched by coordinates) feel the force but do
    not move. Each pass is O(n^2); keep n in the low hundreds.
    """

    @staticmethod
    def _limited_step(position: float, step: float) -> float:
        # position is normalized to [0, 1]
        if step > 0:
            return min(step, 0.5 * (1.0 - position))
        return max(step, -0.5 * position)

    @staticmethod
    def relax(points: Sequence[Point], fixed: Sequence[Point], bounds: Bounds,
              iterations: int = 10, strength: float = 0.01,
              max_step: Optional[float] = None) -> Sequence[Point]:
        if len(points) < 2:
            return points
        if max_step is None:
            max_step = 0.5 / math.sqrt(len(points))

        fixed_keys = {(p.x, p.y) for p in fixed}
        movable = [(p.x, p.y) not in fixed_keys for p in points]
        width, height = bounds.width, bounds.height

        for _ in range(iterations):
            us = [(p.x - bounds.min_x) / width for p in points]
            vs = [(p.y - bounds.min_y) / height for p in points]
            forces = [[0.0, 0.0] for _ in points]

            for i in range(len(points)):
                for j in range(i + 1, len(points)):
                    du = us[j] - us[i]
                    dv = vs[j] - vs[i]
                    dist = math.hypot(du, dv)
                    if dist < 1e-10:
                        continue

                    force = strength / (dist * dist)
                    fu = (du / dist) * force
                    fv = (dv / dist) * force

                    forces[i][0] -= fu
                    forces[i][1] -= fv
                    forces[j][0] += fu
                    forces[j][1] += fv

            for index, ((fu, fv), can_move) in enumerate(zip(forces, movable)):
                if not can_move:
                    continue
                magnitude = math.hypot(fu, fv)
                if magnitude > max_step:
                    fu *= max_step / magnitude
                    fv *= max_step / magnitude
                u = us[index] + PointRelaxation._limited_step(us[index], fu)
                v = vs[index] + PointRelaxation._limited_step(vs[index], fv)
                point = points[index]
                point.x = bounds.min_x + u * width
                point.y = bounds.min_y + v * height
                bounds.clamp(point)

        return points


class PointSampler:
    """
    Generate the initial sample set for a selection rectangle.

    A quarter of the samples go on the boundary, the rest inside.

    Example:
        sampler = PointSampler(SamplingConfig(seed=1))
        samples = sampler.generate(bounds, 400)
    """

    def __init__(self, config: Optional[SamplingConfig] = None,
                 rng: Optional[random.Random] = None):
        self.config = config or SamplingConfig()
        self.rng = rng or random.Random(self.config.seed)

    def split_counts(self, total_count: int) -> Tuple[int, int]:
        edge_count = _round_half_up(total_count * self.config.edge_fraction)
        return edge_count, total_count - edge_count

    def interior_points(self, bounds: Bounds, interior_count: int) -> List[Point]:
        if interior_count <= 0:
            return []

        if self.config.method == 'mitchell':
            sampler = MitchellSampler(bounds, self.config.candidates_per_point, rng=self.rng)
        else:
            min_distance = (min(bounds.width, bounds.height) / math.sqrt(interior_count)
                            * self.config.poisson_k)
            sampler = PoissonDiscSampler(bounds, min_distance,
                                         max_attempts=self.config.max_attempts, rng=self.rng)
        return sampler.generate(interior_count)

    def generate_split(self, bounds: Bounds, total_count: int) -> Tuple[List[Sample], List[Sample]]:
        """Return (edge_samples, interior_samples)."""
        edge_count, interior_count = self.split_counts(total_count)
        edges = generate_edge_points(bounds, edge_count)
        interior = [Sample(p.x, p.y) for p in self.interior_points(bounds, interior_count)]
        logger.info(
            f"Generated {len(edges)} edge and {len(interior)} interior samples "
            f"({self.config.method})"
        )
        return edges, interior

    def generate(self, bounds: Bounds, total_count: Optional[int] = None) -> List[Sample]:
        if total_count is None:
            total_count = self.config.total_samples
        edges, interior = self.generate_split(bounds, total_count)
        samples = edges + interior
        if self.config.relax:
            PointRelaxation.relax(samples, edges, bounds,
                                  iterations=self.config.relax_iterations,
                                  strength=self.config.relax_strength)
        return samples
