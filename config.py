"""
Configuration for the contour pipeline.
All tunable parameters are grouped per stage with their defaults.

Classes:
    SamplingConfig: Sample count, edge/interior split, sampler choice, relaxation
    RefinementConfig: Neighbor radius and percentile for adaptive refinement
    GridConfig: Contour method, grid resolution, interpolation, stitching tolerance
    ElevationConfig: Batch size, inter-batch delay and Open-Elevation endpoint
    ExportConfig: SVG/DXF output viewport and styling
    PipelineConfig: Aggregate of the above
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Optional

SAMPLER_METHODS = ('poisson', 'mitchell')
CONTOUR_METHODS = ('grid', 'triangles')
INTERPOLATION_METHODS = ('idw', 'triangulated')


@dataclass(frozen=True)
class SamplingConfig:
    """Point placement parameters."""

    total_samples: int = 400
    edge_fraction: float = 0.25
    method: str = 'poisson'
    # min_distance = min(width, height) / sqrt(interior_count) * poisson_k
    poisson_k: float = 0.8
    max_attempts: int = 30
    candidates_per_point: int = 20
    relax: bool = False
    relax_iterations: int = 10
    relax_strength: float = 0.01
    seed: Optional[int] = None

    def __post_init__(self):
        if self.method not in SAMPLER_METHODS:
            raise ValueError(f"Unknown sampler '{self.method}', expected one of {SAMPLER_METHODS}")
        if self.total_samples < 0:
            raise ValueError("total_samples must be non-negative")
        if not 0.0 <= self.edge_fraction <= 1.0:
            raise ValueError("edge_fraction must be within [0, 1]")


@dataclass(frozen=True)
class RefinementConfig:
    """Adaptive refinement around steep terrain."""

    enabled: bool = True
    # Pairs closer than neighbor_fraction * max(width, height) are neighbors
    neighbor_fraction: float = 0.15
    percentile: float = 0.95
    key_precision: int = 8


@dataclass(frozen=True)
class GridConfig:
    """Contour extraction parameters."""

    method: str = 'grid'
    grid_size: int = 50
    interpolation: str = 'idw'
    idw_power: float = 2.0
    stitch_tolerance: Optional[float] = None

    def __post_init__(self):
        if self.method not in CONTOUR_METHODS:
            raise ValueError(f"Unknown contour method '{self.method}', expected one of {CONTOUR_METHODS}")
        if self.interpolation not in INTERPOLATION_METHODS:
            raise ValueError(
                f"Unknown interpolation '{self.interpolation}', expected one of {INTERPOLATION_METHODS}"
            )
        if self.grid_size < 2:
            raise ValueError("grid_size must be at least 2")

    @property
    def tolerance(self) -> float:
        """Endpoint matching tolerance used when stitching segments."""
        if self.stitch_tolerance is not None:
            return self.stitch_tolerance
        # Grid crossings are recomputed per cell; triangle crossings share exact edges
        return 1e-4 if self.method == 'grid' else 1e-8


@dataclass(frozen=True)
class ElevationConfig:
    """Elevation lookup batching and the default HTTP endpoint."""

    batch_size: int = 200
    batch_delay: float = 0.1
    api_url: str = 'https://api.open-elevation.com/api/v1/lookup'
    timeout: float = 30.0

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")


@dataclass(frozen=True)
class ExportConfig:
    """Vector output styling."""

    width: float = 1000.0
    stroke_width: float = 1.5
    opacity: float = 0.7
    decimals: int = 2


@dataclass(frozen=True)
class PipelineConfig:
    """Complete configuration for one pipeline run."""

    interval: float = 10.0
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    refinement: RefinementConfig = field(default_factory=RefinementConfig)
    grid: GridConfig = field(default_factory=GridConfig)
    elevation: ElevationConfig = field(default_factory=ElevationConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    def __post_init__(self):
        if self.interval <= 0:
            raise ValueError("Contour interval must be positive")

    _SECTIONS = {
        'sampling': SamplingConfig,
        'refinement': RefinementConfig,
        'grid': GridConfig,
        'elevation': ElevationConfig,
        'export': ExportConfig,
    }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PipelineConfig':
        """
        Build a configuration from a nested mapping.

        Example:
            PipelineConfig.from_dict({'interval': 20, 'grid': {'method': 'triangles'}})

        Raises:
            ValueError: On unknown sections or keys.
        """
        kwargs = {}
        for key, value in data.items():
            if key == 'interval':
                kwargs['interval'] = float(value)
                continue
            section_cls = cls._SECTIONS.get(key)
            if section_cls is None:
                raise ValueError(f"Unknown configuration section '{key}'")
            if not isinstance(value, dict):
                raise ValueError(f"Configuration section '{key}' must be a mapping")
            known = {f.name for f in fields(section_cls)}
            unknown = set(value) - known
            if unknown:
                raise ValueError(f"Unknown keys in '{key}': {sorted(unknown)}")
            kwargs[key] = section_cls(**value)
        return cls(**kwargs)

    def with_overrides(self, **sections) -> 'PipelineConfig':
        """Copy with whole sections or the interval replaced."""
        return replace(self, **sections)
