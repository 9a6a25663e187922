"""
Elevation lookups for sample points.

An elevation oracle is any callable mapping a batch of points to a list of
elevations (None where the source has no data), preserving order 1:1.
ElevationFetcher batches requests, waits between batches and aborts the run
on the first failed batch.
"""

import logging
import math
import time
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
import requests

from config import ElevationConfig
from exceptions import OracleBatchFailure
from models import Bounds, Point, Sample

logger = logging.getLogger(__name__)

ElevationOracle = Callable[[Sequence[Point]], Sequence[Optional[float]]]


class ElevationFetcher:
    """
    Batch elevation lookups against an oracle.

    May be called several times per run (initial samples, then refinement
    midpoints); samples that already hold an elevation are left alone.
    """

    def __init__(self, oracle: ElevationOracle, config: Optional[ElevationConfig] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.oracle = oracle
        self.config = config or ElevationConfig()
        self.sleep = sleep
        self.calls = 0

    @staticmethod
    def _to_elevations(values: Sequence, batch_index: int, batch_size: int) -> List[Optional[float]]:
        # Non-finite values count as missing
        elevations = []
        for position, value in enumerate(values):
            if value is None:
                elevations.append(None)
                continue
            try:
                elevation = float(value)
            except (TypeError, ValueError) as e:
                logger.error(f"Elevation batch {batch_index} returned {value!r} at position {position}")
                raise OracleBatchFailure(
                    batch_index, f"non-numeric elevation {value!r} at position {position}", batch_size
                ) from e
            elevations.append(elevation if math.isfinite(elevation) else None)
        return elevations

    def fetch(self, samples: Sequence[Sample]) -> List[Sample]:
        """
        Assign elevations to every pending sample.

        Returns:
            The same samples, for chaining.

        Raises:
            OracleBatchFailure: If any batch raises or returns the wrong number of values.
        """
        pending = [s for s in samples if not s.has_elevation]
        if not pending:
            return list(samples)

        size = self.config.batch_size
        batches = [pending[i:i + size] for i in range(0, len(pending), size)]
        logger.info(f"Fetching elevations for {len(pending)} points in {len(batches)} batches")

        for batch_index, batch in enumerate(batches):
            try:
                values = list(self.oracle(batch))
            except OracleBatchFailure:
                raise
            except Exception as e:
                logger.error(f"Elevation batch {batch_index} failed: {e}")
                raise OracleBatchFailure(batch_index, str(e), len(batch)) from e
            self.calls += 1

            if len(values) != len(batch):
                raise OracleBatchFailure(
                    batch_index,
                    f"expected {len(batch)} elevations, got {len(values)}",
                    len(batch),
                )

            elevations = self._to_elevations(values, batch_index, len(batch))
            for sample, elevation in zip(batch, elevations):
                sample.assign_elevation(elevation)

            if batch_index < len(batches) - 1 and self.config.batch_delay > 0:
                self.sleep(self.config.batch_delay)

        missing = sum(1 for s in pending if not s.has_elevation)
        if missing:
            logger.warning(f"{missing} of {len(pending)} points returned no elevation")
        return list(samples)


class OpenElevationClient:
    """
    Elevation oracle backed by the Open-Elevation lookup API.

    Example:
        client = OpenElevationClient()
        client([Point(-74.006, 40.7128)])  # -> [10.0]
    """

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        config = ElevationConfig()
        self.url = url or config.api_url
        self.timeout = timeout if timeout is not None else config.timeout
        self.session = session or requests.Session()

    def __call__(self, points: Sequence[Point]) -> List[Optional[float]]:
        locations = [{'latitude': p.y, 'longitude': p.x} for p in points]
        response = self.session.post(self.url, json={'locations': locations}, timeout=self.timeout)
        response.raise_for_status()

        results = response.json().get('results')
        if results is None:
            raise ValueError("Elevation API response has no 'results' field")
        return [r.get('elevation') for r in results]


class SyntheticTerrain:
    """
    Deterministic analytic surface used as an offline oracle.

    elevation = base + slope_x * x + slope_y * y + sum(height * exp(-r^2 / (2 * sigma^2)))
    """

    def __init__(self, hills: Sequence[Tuple[float, float, float, float]],
                 base: float = 0.0, slope_x: float = 0.0, slope_y: float = 0.0):
        self.hills = np.array(hills, dtype=float).reshape(-1, 4)
        self.base = base
        self.slope_x = slope_x
        self.slope_y = slope_y

    @classmethod
    def for_bounds(cls, bounds: Bounds, peak: float = 100.0, base: float = 0.0) -> 'SyntheticTerrain':
        """Two hills and a shallow valley placed relative to the rectangle."""
        w, h = bounds.width, bounds.height
        sigma = min(w, h) * 0.18
        hills = [
            (bounds.min_x + 0.3 * w, bounds.min_y + 0.35 * h, peak, sigma),
            (bounds.min_x + 0.7 * w, bounds.min_y + 0.65 * h, peak * 0.6, sigma * 0.8),
            (bounds.min_x + 0.75 * w, bounds.min_y + 0.2 * h, -peak * 0.3, sigma * 0.6),
        ]
        return cls(hills, base=base)

    def elevation_at(self, x, y):
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        z = self.base + self.slope_x * x + self.slope_y * y
        for cx, cy, height, sigma in self.hills:
            r2 = (x - cx) ** 2 + (y - cy) ** 2
            z = z + height * np.exp(-r2 / (2.0 * sigma * sigma))
        return z

    def __call__(self, points: Sequence[Point]) -> List[Optional[float]]:
        if not points:
            return []
        xs = [p.x for p in points]
        ys = [p.y for p in points]
        return [float(z) for z in self.elevation_at(xs, ys)]
