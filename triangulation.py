"""
Delaunay triangulation of the sample set (TIN).
Wraps scipy.spatial.Delaunay and exposes triangle and neighbor queries.
"""

import logging
from typing import List, Sequence, Set, Tuple

import numpy as np
from scipy.spatial import Delaunay, QhullError, cKDTree

from exceptions import DegenerateTriangulation, InsufficientSamples
from models import Sample

logger = logging.getLogger(__name__)


def valid_samples(samples: Sequence[Sample]) -> List[Sample]:
    """Drop samples without elevation, logging how many were lost."""
    valid = [s for s in samples if s.has_elevation]
    dropped = len(samples) - len(valid)
    if dropped:
        logger.warning(f"Ignoring {dropped} samples without elevation")
    return valid


class Triangulation:
    """
    Read-only triangulated irregular network over samples with elevations.

    Attributes:
        coords: (n, 2) array of x/y coordinates
        elevations: (n,) array of elevations
        simplices: (m, 3) array of sample indices per triangle
    """

    def __init__(self, samples: Sequence[Sample]):
        if len(samples) < 3:
            raise InsufficientSamples(len(samples))

        self.samples = list(samples)
        self.coords = np.array([[s.x, s.y] for s in samples], dtype=float)
        self.elevations = np.array([s.elevation for s in samples], dtype=float)

        unique = np.unique(self.coords, axis=0)
        if len(unique) != len(self.coords):
            raise DegenerateTriangulation(
                f"{len(self.coords) - len(unique)} duplicate sample coordinates"
            )

        try:
            self._delaunay = Delaunay(self.coords)
        except QhullError as e:
            raise DegenerateTriangulation(f"Triangulation failed: {e}") from e

        if len(self._delaunay.simplices) == 0:
            raise DegenerateTriangulation("Triangulation produced no triangles")

        self.simplices = self._delaunay.simplices
        self._tree = cKDTree(self.coords)
        logger.info(f"Triangulated {len(self.samples)} samples into {len(self.simplices)} triangles")

    def __len__(self) -> int:
        return len(self.simplices)

    @property
    def triangles(self) -> List[Tuple[int, int, int]]:
        return [tuple(int(v) for v in simplex) for simplex in self.simplices]

    @property
    def min_elevation(self) -> float:
        return float(self.elevations.min())

    @property
    def max_elevation(self) -> float:
        return float(self.elevations.max())

    def nearest(self, x: float, y: float) -> Tuple[int, float]:
        """Index of and distance to the nearest sample."""
        distance, index = self._tree.query([x, y])
        return int(index), float(distance)

    def incident_vertices(self, index: int) -> Set[int]:
        """Vertices of every triangle touching sample ``index``, itself included."""
        indptr, indices = self._delaunay.vertex_neighbor_vertices
        neighbors = set(int(v) for v in indices[indptr[index]:indptr[index + 1]])
        neighbors.add(index)
        return neighbors


def triangulate(samples: Sequence[Sample]) -> Triangulation:
    """
    Triangulate the samples that hold an elevation.

    Raises:
        InsufficientSamples: Fewer than three usable samples.
        DegenerateTriangulation: Collinear or duplicate coordinates.
    """
    return Triangulation(valid_samples(samples))
