"""Shared pytest fixtures for the contour pipeline tests.

COORDINATE SYSTEM:
    Most tests use a 10 x 10 unit square at the origin so expected crossings
    can be worked out by hand. Elevation sources are deterministic.
"""

import random

import pytest

from elevation import SyntheticTerrain
from models import Bounds, Sample


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def unit_bounds() -> Bounds:
    return Bounds(0.0, 10.0, 0.0, 10.0)


@pytest.fixture
def cone_samples() -> list:
    """Four corners at 0 m and a center peak at 100 m."""
    return [
        Sample(0.0, 0.0, 0.0),
        Sample(10.0, 0.0, 0.0),
        Sample(10.0, 10.0, 0.0),
        Sample(0.0, 10.0, 0.0),
        Sample(5.0, 5.0, 100.0),
    ]


@pytest.fixture
def synthetic_terrain(unit_bounds: Bounds) -> SyntheticTerrain:
    return SyntheticTerrain.for_bounds(unit_bounds)


class RecordingOracle:
    """Elevation oracle returning a plane z = 10x + y and recording batch sizes."""

    def __init__(self, fail_on_call: int = -1, short_on_call: int = -1):
        self.batches = []
        self.fail_on_call = fail_on_call
        self.short_on_call = short_on_call

    def __call__(self, points):
        call = len(self.batches)
        self.batches.append(len(points))
        if call == self.fail_on_call:
            raise ConnectionError("service unavailable")
        values = [10.0 * p.x + p.y for p in points]
        if call == self.short_on_call:
            return values[:-1]
        return values


@pytest.fixture
def recording_oracle() -> RecordingOracle:
    return RecordingOracle()


@pytest.fixture
def oracle_factory():
    """Build oracles that fail or short-change a given call."""
    return RecordingOracle
