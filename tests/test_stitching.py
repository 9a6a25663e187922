"""Unit tests for segment stitching."""

from hypothesis import given, settings, strategies as st

from models import Point, Segment
from stitching import SegmentStitcher


def _seg(x1: float, y1: float, x2: float, y2: float, level: float = 10.0) -> Segment:
    return Segment(Point(x1, y1), Point(x2, y2), level)


def _coords(line) -> list:
    return [p.as_tuple() for p in line]


def _canonical(line) -> tuple:
    """Polyline identity up to direction, and up to starting vertex for closed rings."""
    coords = _coords(line)
    if len(coords) > 2 and coords[0] == coords[-1]:
        ring = coords[:-1]
        variants = []
        for seq in (ring, ring[::-1]):
            for k in range(len(seq)):
                variants.append(tuple(seq[k:] + seq[:k]))
        return ('closed', min(variants))
    return ('open', min(tuple(coords), tuple(coords[::-1])))


# Zig-zag chain and a pentagon ring, each listed segment by segment
CHAIN = [_seg(0, 0, 1, 1), _seg(1, 1, 2, 0), _seg(2, 0, 3, 1), _seg(3, 1, 4, 0), _seg(4, 0, 5, 1)]
RING = [_seg(20, 0, 24, 0), _seg(24, 0, 25, 3), _seg(25, 3, 22, 5), _seg(22, 5, 19, 3), _seg(19, 3, 20, 0)]


class TestSegmentStitcher:
    """Tests for SegmentStitcher.connect."""

    def test_empty(self) -> None:
        assert SegmentStitcher().connect([]) == []

    def test_single_segment(self) -> None:
        lines = SegmentStitcher().connect([_seg(0, 0, 1, 0)])
        assert [_coords(line) for line in lines] == [[(0, 0), (1, 0)]]

    def test_chain_with_reversed_segment(self) -> None:
        segments = [_seg(0, 0, 1, 0), _seg(2, 0, 1, 0), _seg(2, 0, 3, 0)]
        lines = SegmentStitcher().connect(segments)
        assert [_coords(line) for line in lines] == [[(0, 0), (1, 0), (2, 0), (3, 0)]]

    def test_grows_at_head(self) -> None:
        segments = [_seg(1, 0, 2, 0), _seg(0, 0, 1, 0)]
        lines = SegmentStitcher().connect(segments)
        assert [_coords(line) for line in lines] == [[(0, 0), (1, 0), (2, 0)]]

    def test_closed_ring(self) -> None:
        lines = SegmentStitcher().connect(RING)
        assert len(lines) == 1
        ring = lines[0]
        assert len(ring) == 6
        assert ring[0] == ring[-1]

    def test_separate_pieces_stay_separate(self) -> None:
        lines = SegmentStitcher().connect(CHAIN + [_seg(10, 10, 11, 11)])
        assert sorted(len(line) for line in lines) == [2, 6]

    def test_tolerance(self) -> None:
        segments = [_seg(0, 0, 1, 0), _seg(1 + 1e-6, 0, 2, 0)]
        assert len(SegmentStitcher(tolerance=1e-4).connect(segments)) == 1
        assert len(SegmentStitcher(tolerance=1e-8).connect(segments)) == 2

    def test_input_points_are_not_shared(self) -> None:
        segments = [_seg(0, 0, 1, 0)]
        line = SegmentStitcher().connect(segments)[0]
        line[0].x = 42.0
        assert segments[0].start.x == 0

    @given(order=st.permutations(range(len(CHAIN + RING))),
           flips=st.lists(st.booleans(), min_size=len(CHAIN + RING), max_size=len(CHAIN + RING)))
    @settings(max_examples=50)
    def test_result_independent_of_segment_order(self, order: list, flips: list) -> None:
        """Shuffling and reversing segments yields the same set of polylines."""
        segments = CHAIN + RING
        shuffled = []
        for index in order:
            seg = segments[index]
            if flips[index]:
                seg = Segment(seg.end, seg.start, seg.level)
            shuffled.append(seg)

        expected = sorted(_canonical(line) for line in SegmentStitcher().connect(segments))
        actual = sorted(_canonical(line) for line in SegmentStitcher().connect(shuffled))
        assert actual == expected
        assert [kind for kind, _ in actual] == ['closed', 'open']
