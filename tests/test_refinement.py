"""Unit tests for adaptive refinement."""

from config import RefinementConfig
from models import Bounds, Sample
from refinement import AdaptiveRefiner


class TestAdaptiveRefiner:
    """Tests for AdaptiveRefiner.refine."""

    def test_single_steep_pair_gets_midpoint(self, unit_bounds: Bounds) -> None:
        """Two neighbors 0 m and 100 m apart: exactly one new point between them."""
        samples = [Sample(0.0, 0.0, 0.0), Sample(1.0, 0.0, 100.0)]
        new_points = AdaptiveRefiner(unit_bounds).refine(samples)

        assert len(new_points) == 1
        assert new_points[0].as_tuple() == (0.5, 0.0)
        assert not new_points[0].has_elevation

    def test_input_is_not_modified(self, unit_bounds: Bounds) -> None:
        samples = [Sample(0.0, 0.0, 0.0), Sample(1.0, 0.0, 100.0)]
        AdaptiveRefiner(unit_bounds).refine(samples)
        assert len(samples) == 2

    def test_fewer_than_two_samples(self, unit_bounds: Bounds) -> None:
        refiner = AdaptiveRefiner(unit_bounds)
        assert refiner.refine([]) == []
        assert refiner.refine([Sample(1.0, 1.0, 5.0)]) == []

    def test_no_neighbors_in_range(self, unit_bounds: Bounds) -> None:
        """Neighbor radius is 15% of the larger side, 1.5 units here."""
        samples = [Sample(0.0, 0.0, 0.0), Sample(9.0, 9.0, 100.0)]
        assert AdaptiveRefiner(unit_bounds).refine(samples) == []

    def test_pending_samples_are_ignored(self, unit_bounds: Bounds) -> None:
        samples = [Sample(0.0, 0.0, 0.0), Sample(1.0, 0.0), Sample(0.0, 1.0, 40.0)]
        new_points = AdaptiveRefiner(unit_bounds).refine(samples)
        assert [p.as_tuple() for p in new_points] == [(0.0, 0.5)]

    def test_existing_sample_blocks_midpoint(self, unit_bounds: Bounds) -> None:
        samples = [Sample(0.0, 0.0, 0.0), Sample(1.0, 0.0, 100.0), Sample(0.5, 0.0, 50.0)]
        assert AdaptiveRefiner(unit_bounds).refine(samples) == []

    def test_only_steepest_pairs_are_refined(self, unit_bounds: Bounds) -> None:
        """A gentle row with one cliff: only the steepest pair reaches the 95th percentile."""
        samples = [Sample(float(i), 0.0, float(i)) for i in range(10)]
        samples.append(Sample(9.0, 1.0, 500.0))
        new_points = AdaptiveRefiner(unit_bounds).refine(samples)

        assert [p.as_tuple() for p in new_points] == [(8.5, 0.5)]

    def test_midpoints_are_deduplicated(self, unit_bounds: Bounds) -> None:
        """Both diagonals of a square share a midpoint; it is added once."""
        samples = [
            Sample(0.0, 0.0, 0.0), Sample(1.0, 1.0, 100.0),
            Sample(1.0, 0.0, 0.0), Sample(0.0, 1.0, 100.0),
        ]
        config = RefinementConfig(percentile=0.0)
        new_points = AdaptiveRefiner(unit_bounds, config).refine(samples)
        coords = [p.as_tuple() for p in new_points]

        assert coords.count((0.5, 0.5)) == 1
        assert len(coords) == len(set(coords))

    def test_threshold_uses_sorted_percentile(self, unit_bounds: Bounds) -> None:
        refiner = AdaptiveRefiner(unit_bounds, RefinementConfig(percentile=0.5))
        differences = [(d, 0, 1) for d in (5.0, 1.0, 3.0, 4.0)]
        assert refiner.threshold(differences) == 4.0
