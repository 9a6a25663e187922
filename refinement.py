"""
Adaptive Refinement
Adds sample points between neighbors whose elevations differ sharply,
so cliffs and ridges get denser coverage.
"""

import logging
import math
from typing import List, Optional, Sequence, Set, Tuple

from config import RefinementConfig
from models import Bounds, Sample
from utils import GeometryCalculator

logger = logging.getLogger(__name__)


class AdaptiveRefiner:
    """
    Propose midpoints for the steepest neighbor pairs.

    Two samples are neighbors when closer than neighbor_fraction * max(width, height).
    Pairs whose elevation difference reaches the configured percentile of all
    neighbor differences get a new pending sample at their midpoint.
    """

    def __init__(self, bounds: Bounds, config: Optional[RefinementConfig] = None):
        self.bounds = bounds
        self.config = config or RefinementConfig()
        self.max_distance = max(bounds.width, bounds.height) * self.config.neighbor_fraction

    def _key(self, x: float, y: float) -> Tuple[str, str]:
        precision = self.config.key_precision
        return (f"{x:.{precision}f}", f"{y:.{precision}f}")

    def neighbor_differences(self, samples: Sequence[Sample]) -> List[Tuple[float, int, int]]:
        """Return (elevation_difference, i, j) for every neighbor pair with elevations."""
        valid = [(i, s) for i, s in enumerate(samples) if s.has_elevation]
        differences = []
        for a in range(len(valid)):
            i, si = valid[a]
            for b in range(a + 1, len(valid)):
                j, sj = valid[b]
                distance = GeometryCalculator.calculate_distance(si, sj)
                if distance < self.max_distance:
                    differences.append((abs(si.elevation - sj.elevation), i, j))
        return differences

    def threshold(self, differences: List[Tuple[float, int, int]]) -> float:
        ordered = sorted(d[0] for d in differences)
        index = min(int(math.floor(len(ordered) * self.config.percentile)), len(ordered) - 1)
        return ordered[index]

    def refine(self, samples: Sequence[Sample]) -> List[Sample]:
        """
        Compute new refinement points.

        Args:
            samples: Current sample set; not modified.

        Returns:
            New samples with pending elevation. Midpoints landing on an existing
            sample or on each other (at key_precision decimals) are dropped.
        """
        if len(samples) < 2:
            return []

        differences = self.neighbor_differences(samples)
        if not differences:
            logger.info("No neighbor pairs found for refinement")
            return []

        threshold = self.threshold(differences)

        seen: Set[Tuple[str, str]] = {self._key(s.x, s.y) for s in samples}
        new_points = []
        for diff, i, j in differences:
            if diff < threshold:
                continue
            mx = (samples[i].x + samples[j].x) / 2
            my = (samples[i].y + samples[j].y) / 2
            key = self._key(mx, my)
            if key in seen:
                continue
            seen.add(key)
            new_points.append(Sample(mx, my))

        logger.info(
            f"Refinement threshold {threshold:.3f} over {len(differences)} neighbor pairs "
            f"adds {len(new_points)} points"
        )
        return new_points
