"""
Contour pipeline.

selection rectangle -> sampling -> (relaxation) -> elevations -> refinement
-> elevations for new points -> triangulation -> grid or TIN contouring
-> stitching -> simplification session.

Each run owns its samples, triangulation and contour maps; nothing is shared
between runs. Any error aborts the run.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from config import PipelineConfig
from contour_generator import ContourGenerator
from elevation import ElevationFetcher, ElevationOracle
from exceptions import InsufficientSamples
from interpolation import SurfaceInterpolator, create_grid
from models import Bounds, ContourMap, ElevationGrid, Sample
from refinement import AdaptiveRefiner
from sampling import PointSampler
from simplification import ContourSimplifier
from triangulation import Triangulation, triangulate, valid_samples

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


@dataclass
class PipelineResult:
    """Outputs of one run."""

    bounds: Bounds
    samples: List[Sample]
    contours: ContourMap
    simplifier: ContourSimplifier
    triangulation: Triangulation
    grid: Optional[ElevationGrid] = None
    refinement_count: int = 0
    stats: Dict[str, float] = field(default_factory=dict)

    @property
    def original_contours(self) -> ContourMap:
        return self.simplifier.original

    @property
    def current_contours(self) -> ContourMap:
        return self.simplifier.current

    def summary(self) -> Dict[str, float]:
        elevations = [s.elevation for s in self.samples if s.has_elevation]
        return {
            'num_samples': len(self.samples),
            'num_valid_samples': len(elevations),
            'num_refinement_points': self.refinement_count,
            'elevation_min': min(elevations) if elevations else float('nan'),
            'elevation_max': max(elevations) if elevations else float('nan'),
            'num_levels': len(self.contours),
            'num_polylines': self.contours.polyline_count(),
            'num_vertices': self.contours.vertex_count(),
            'num_triangles': len(self.triangulation),
        }


class ContourPipeline:
    """
    Run the full contour generation for a selection rectangle.

    Example:
        pipeline = ContourPipeline(PipelineConfig(interval=20), oracle=OpenElevationClient())
        result = pipeline.run(Bounds(-74.02, -73.99, 40.70, 40.72))
        result.simplifier.by_threshold(0.1)
    """

    def __init__(self, config: Optional[PipelineConfig] = None,
                 oracle: Optional[ElevationOracle] = None,
                 rng: Optional[random.Random] = None,
                 sleep: Optional[Callable[[float], None]] = None,
                 progress: Optional[ProgressCallback] = None):
        self.config = config or PipelineConfig()
        self.oracle = oracle
        self.rng = rng or random.Random(self.config.sampling.seed)
        self.sleep = sleep
        self.progress = progress

    def _report(self, message: str) -> None:
        logger.info(message)
        if self.progress is not None:
            self.progress(message)

    def _fetcher(self) -> ElevationFetcher:
        if self.oracle is None:
            raise ValueError("An elevation oracle is required to sample new points")
        if self.sleep is None:
            return ElevationFetcher(self.oracle, self.config.elevation)
        return ElevationFetcher(self.oracle, self.config.elevation, sleep=self.sleep)

    def sample(self, bounds: Bounds, total_count: Optional[int] = None) -> List[Sample]:
        sampling = self.config.sampling
        if sampling.relax:
            self._report('Sampling and relaxing points...')
        return PointSampler(sampling, rng=self.rng).generate(bounds, total_count)

    def refine(self, samples: List[Sample], bounds: Bounds, fetcher: ElevationFetcher) -> int:
        """Fetch elevations for refinement midpoints and append them in place."""
        if not self.config.refinement.enabled:
            return 0
        new_points = AdaptiveRefiner(bounds, self.config.refinement).refine(samples)
        if new_points:
            self._report(f'Adding {len(new_points)} refinement points...')
            fetcher.fetch(new_points)
            samples.extend(new_points)
        return len(new_points)

    def run(self, bounds: Bounds, total_count: Optional[int] = None) -> PipelineResult:
        self._report('Generating sample points...')
        samples = self.sample(bounds, total_count)

        fetcher = self._fetcher()
        self._report(f'Fetching elevations for {len(samples)} points...')
        fetcher.fetch(samples)

        self._report('Performing adaptive refinement...')
        refinement_count = self.refine(samples, bounds, fetcher)

        return self.contour(samples, bounds, refinement_count=refinement_count)

    def run_from_samples(self, samples: Sequence[Sample], bounds: Optional[Bounds] = None,
                         refine: bool = False) -> PipelineResult:
        """
        Contour an existing sample set, e.g. loaded from a file.

        Refinement needs an oracle for the new midpoints and is off by default.
        """
        samples = list(samples)
        usable = valid_samples(samples)
        if len(usable) < 3:
            raise InsufficientSamples(len(usable))
        bounds = bounds or Bounds.from_points(usable)

        refinement_count = 0
        if refine:
            refinement_count = self.refine(samples, bounds, self._fetcher())
        return self.contour(samples, bounds, refinement_count=refinement_count)

    def contour(self, samples: List[Sample], bounds: Bounds, refinement_count: int = 0) -> PipelineResult:
        grid_config = self.config.grid
        usable = valid_samples(samples)
        if len(usable) < 3:
            raise InsufficientSamples(len(usable))

        tin = triangulate(usable)
        generator = ContourGenerator(self.config.interval, tolerance=grid_config.tolerance)

        grid = None
        if grid_config.method == 'grid':
            self._report('Creating elevation grid...')
            interpolator = SurfaceInterpolator(
                usable,
                triangulation=tin if grid_config.interpolation == 'triangulated' else None,
                power=grid_config.idw_power,
            )
            grid = create_grid(bounds, interpolator, grid_config.grid_size)
            self._report('Generating contour lines...')
            contours = generator.from_grid(grid)
        else:
            self._report('Generating contour lines...')
            contours = generator.from_triangulation(tin)

        simplifier = ContourSimplifier(contours)
        result = PipelineResult(
            bounds=bounds,
            samples=samples,
            contours=simplifier.original,
            simplifier=simplifier,
            triangulation=tin,
            grid=grid,
            refinement_count=refinement_count,
        )
        result.stats = result.summary()
        self._report(
            f"Contours generated: {result.stats['num_levels']} levels, "
            f"{result.stats['num_polylines']} polylines"
        )
        return result
