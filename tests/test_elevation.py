"""Unit tests for batched elevation lookups and the bundled oracles.

No network access: the HTTP client is exercised through a fake session.
"""

import math

import pytest
import requests

from config import ElevationConfig
from elevation import ElevationFetcher, OpenElevationClient, SyntheticTerrain
from exceptions import ContourError, OracleBatchFailure
from models import Bounds, Point, Sample


def _samples(count: int) -> list:
    return [Sample(float(i % 20), float(i // 20)) for i in range(count)]


class _FakeResponse:
    def __init__(self, payload, status_code: int = 200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        return self.payload


class _FakeSession:
    def __init__(self, response: _FakeResponse):
        self.response = response
        self.requests = []

    def post(self, url, json=None, timeout=None):
        self.requests.append({'url': url, 'json': json, 'timeout': timeout})
        return self.response


# =============================================================================
# ElevationFetcher
# =============================================================================


class TestElevationFetcher:
    """Tests for batching, delays and failure handling."""

    def test_batches_and_delays(self, recording_oracle) -> None:
        """450 points at 200 per batch: three calls with a pause between each."""
        pauses = []
        fetcher = ElevationFetcher(recording_oracle, ElevationConfig(batch_size=200, batch_delay=0.1),
                                   sleep=pauses.append)
        samples = _samples(450)
        fetcher.fetch(samples)

        assert recording_oracle.batches == [200, 200, 50]
        assert pauses == [0.1, 0.1]
        assert fetcher.calls == 3
        assert all(s.elevation == 10.0 * s.x + s.y for s in samples)

    def test_order_is_preserved(self, recording_oracle) -> None:
        samples = [Sample(3.0, 1.0), Sample(0.0, 2.0), Sample(1.0, 0.0)]
        ElevationFetcher(recording_oracle, sleep=lambda _: None).fetch(samples)
        assert [s.elevation for s in samples] == [31.0, 2.0, 10.0]

    def test_only_pending_samples_are_requested(self, recording_oracle) -> None:
        samples = [Sample(0.0, 0.0, 5.0), Sample(1.0, 1.0), Sample(2.0, 2.0)]
        ElevationFetcher(recording_oracle, sleep=lambda _: None).fetch(samples)

        assert recording_oracle.batches == [2]
        assert samples[0].elevation == 5.0
        assert samples[2].elevation == 22.0

    def test_nothing_pending_means_no_calls(self, recording_oracle) -> None:
        ElevationFetcher(recording_oracle).fetch([Sample(0.0, 0.0, 1.0)])
        assert recording_oracle.batches == []

    def test_failed_batch_aborts(self, oracle_factory) -> None:
        """The second batch raises; the error names it and chains the cause."""
        oracle = oracle_factory(fail_on_call=1)
        fetcher = ElevationFetcher(oracle, ElevationConfig(batch_size=10), sleep=lambda _: None)
        samples = _samples(25)

        with pytest.raises(OracleBatchFailure) as excinfo:
            fetcher.fetch(samples)

        error = excinfo.value
        assert error.batch_index == 1
        assert isinstance(error.__cause__, ConnectionError)
        assert "Failed to fetch elevation data for batch 1" in str(error)
        assert isinstance(error, ContourError)
        assert oracle.batches == [10, 10]

    def test_wrong_result_count_is_a_failure(self, oracle_factory) -> None:
        oracle = oracle_factory(short_on_call=0)
        with pytest.raises(OracleBatchFailure, match="expected 3 elevations, got 2"):
            ElevationFetcher(oracle).fetch(_samples(3))

    def test_missing_and_non_finite_values_stay_pending(self) -> None:
        samples = _samples(3)
        ElevationFetcher(lambda points: [None, math.nan, 7.0]).fetch(samples)
        assert [s.has_elevation for s in samples] == [False, False, True]
        assert samples[2].elevation == 7.0

    def test_non_numeric_value_fails_the_whole_batch(self) -> None:
        samples = _samples(3)
        fetcher = ElevationFetcher(lambda points: [5.0, 'n/a', 7.0])

        with pytest.raises(OracleBatchFailure, match="non-numeric elevation 'n/a' at position 1") as exc_info:
            fetcher.fetch(samples)

        assert exc_info.value.batch_index == 0
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert not any(s.has_elevation for s in samples)

    def test_numeric_strings_are_accepted(self) -> None:
        samples = _samples(2)
        ElevationFetcher(lambda points: ['12.5', 3]).fetch(samples)
        assert [s.elevation for s in samples] == [12.5, 3.0]


# =============================================================================
# OpenElevationClient
# =============================================================================


class TestOpenElevationClient:
    """Tests for the Open-Elevation HTTP oracle."""

    def test_request_and_response_mapping(self) -> None:
        session = _FakeSession(_FakeResponse({'results': [
            {'latitude': 40.0, 'longitude': -74.0, 'elevation': 12.5},
            {'latitude': 41.0, 'longitude': -73.0, 'elevation': None},
        ]}))
        client = OpenElevationClient(url='http://elevation.test/lookup', timeout=5, session=session)

        values = client([Point(-74.0, 40.0), Point(-73.0, 41.0)])

        assert values == [12.5, None]
        request = session.requests[0]
        assert request['url'] == 'http://elevation.test/lookup'
        assert request['timeout'] == 5
        assert request['json'] == {'locations': [
            {'latitude': 40.0, 'longitude': -74.0},
            {'latitude': 41.0, 'longitude': -73.0},
        ]}

    def test_default_endpoint(self) -> None:
        client = OpenElevationClient(session=_FakeSession(_FakeResponse({'results': []})))
        assert client.url == ElevationConfig().api_url

    def test_missing_results_field(self) -> None:
        client = OpenElevationClient(session=_FakeSession(_FakeResponse({'error': 'nope'})))
        with pytest.raises(ValueError, match="results"):
            client([Point(0.0, 0.0)])

    def test_http_error_becomes_batch_failure(self) -> None:
        client = OpenElevationClient(session=_FakeSession(_FakeResponse({}, status_code=503)))
        with pytest.raises(OracleBatchFailure) as excinfo:
            ElevationFetcher(client).fetch(_samples(2))
        assert isinstance(excinfo.value.__cause__, requests.HTTPError)


# =============================================================================
# SyntheticTerrain
# =============================================================================


class TestSyntheticTerrain:
    """Tests for the offline analytic oracle."""

    def test_single_hill_peak(self) -> None:
        terrain = SyntheticTerrain([(5.0, 5.0, 100.0, 2.0)], base=10.0)
        assert terrain([Point(5.0, 5.0)]) == [pytest.approx(110.0)]
        far = terrain([Point(500.0, 500.0)])[0]
        assert far == pytest.approx(10.0)

    def test_planar_slope(self) -> None:
        terrain = SyntheticTerrain([], base=1.0, slope_x=2.0, slope_y=-1.0)
        assert terrain([Point(3.0, 4.0)]) == [pytest.approx(3.0)]

    def test_for_bounds_is_deterministic(self, unit_bounds: Bounds) -> None:
        points = [Point(1.0, 2.0), Point(3.0, 3.5), Point(9.0, 9.0)]
        first = SyntheticTerrain.for_bounds(unit_bounds)(points)
        second = SyntheticTerrain.for_bounds(unit_bounds)(points)
        assert first == second
        assert all(isinstance(v, float) for v in first)
        # The main hill sits at 30% / 35% of the rectangle
        assert first[1] > 90.0

    def test_empty_batch(self, synthetic_terrain: SyntheticTerrain) -> None:
        assert synthetic_terrain([]) == []
