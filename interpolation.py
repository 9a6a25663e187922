"""
Surface interpolation from scattered samples.

Plain inverse distance weighting (IDW) over every sample, or a
triangulation-assisted variant that only weights the samples sharing a
triangle with the nearest sample. The assisted variant is an approximation of
TIN interpolation, not barycentric interpolation inside the containing
triangle, and drifts slightly from the true surface away from that triangle.
"""

import logging
import math
from typing import Optional, Sequence

import numpy as np

from exceptions import InsufficientSamples
from models import Bounds, ElevationGrid, Sample
from triangulation import Triangulation, valid_samples

logger = logging.getLogger(__name__)

# Queries closer than this to a sample return the sample's elevation exactly
SNAP_DISTANCE = 1e-10


def idw_interpolate(x: float, y: float, xs: np.ndarray, ys: np.ndarray,
                    zs: np.ndarray, power: float = 2.0) -> float:
    """
    Inverse distance weighted elevation at (x, y).

    elevation = sum(w_i * z_i) / sum(w_i) with w_i = 1 / d_i ** power.
    """
    distances = np.hypot(xs - x, ys - y)
    closest = int(np.argmin(distances))
    if distances[closest] < SNAP_DISTANCE:
        return float(zs[closest])

    weights = 1.0 / distances ** power
    return float(np.sum(weights * zs) / np.sum(weights))


class SurfaceInterpolator:
    """
    Estimate elevations at arbitrary coordinates.

    Example:
        interpolator = SurfaceInterpolator(samples)
        interpolator.interpolate(10.5, 42.1)

        tin = triangulate(samples)
        SurfaceInterpolator(tin.samples, triangulation=tin).interpolate(10.5, 42.1)
    """

    def __init__(self, samples: Sequence[Sample], triangulation: Optional[Triangulation] = None,
                 power: float = 2.0):
        self.samples = valid_samples(samples)
        if not self.samples:
            raise InsufficientSamples(0, required=1)
        self.xs = np.array([s.x for s in self.samples], dtype=float)
        self.ys = np.array([s.y for s in self.samples], dtype=float)
        self.zs = np.array([s.elevation for s in self.samples], dtype=float)
        self.triangulation = triangulation
        self.power = power

        if triangulation is not None and len(triangulation.samples) != len(self.samples):
            raise ValueError("Triangulation must be built over the same samples")

    @property
    def method(self) -> str:
        return 'triangulated' if self.triangulation is not None else 'idw'

    def interpolate(self, x: float, y: float) -> float:
        if self.triangulation is None:
            return idw_interpolate(x, y, self.xs, self.ys, self.zs, self.power)

        nearest, distance = self.triangulation.nearest(x, y)
        if distance < SNAP_DISTANCE:
            return float(self.zs[nearest])

        indices = np.fromiter(sorted(self.triangulation.incident_vertices(nearest)), dtype=int)
        return idw_interpolate(x, y, self.xs[indices], self.ys[indices], self.zs[indices], self.power)

    def __call__(self, x: float, y: float) -> float:
        return self.interpolate(x, y)


def grid_shape(bounds: Bounds, grid_size: int):
    """Columns follow grid_size; rows follow the aspect ratio (at least 2)."""
    cols = grid_size
    rows = max(2, int(math.floor(grid_size * (bounds.height / bounds.width) + 0.5)))
    return cols, rows


def create_grid(bounds: Bounds, interpolator: SurfaceInterpolator, grid_size: int = 50) -> ElevationGrid:
    """
    Resample the surface onto a regular grid spanning the bounds.

    Returns:
        ElevationGrid with values[i, j] at (xs[i], ys[j]).
    """
    cols, rows = grid_shape(bounds, grid_size)
    xs = np.array([bounds.min_x + (i / (cols - 1)) * bounds.width for i in range(cols)])
    ys = np.array([bounds.min_y + (j / (rows - 1)) * bounds.height for j in range(rows)])

    values = np.empty((cols, rows), dtype=float)
    for i, x in enumerate(xs):
        for j, y in enumerate(ys):
            values[i, j] = interpolator.interpolate(x, y)

    logger.info(f"Created {cols}x{rows} elevation grid using {interpolator.method} interpolation")
    return ElevationGrid(xs=xs, ys=ys, values=values)
