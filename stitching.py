"""
Segment Stitching
Connects same-level contour segments that share endpoints into polylines.
"""

import logging
from typing import List, Sequence

from models import Point, Polyline, Segment
from utils import GeometryCalculator

logger = logging.getLogger(__name__)


class SegmentStitcher:
    """
    Greedy chaining of segments into polylines.

    Endpoints match within an absolute tolerance because the same crossing
    computed from two neighboring cells can differ by rounding. Each polyline
    grows at its tail and head until a full scan finds nothing to attach.
    O(n^2) per level.
    """

    def __init__(self, tolerance: float = 1e-4):
        self.tolerance = tolerance

    def _matches(self, a: Point, b: Point) -> bool:
        return GeometryCalculator.points_equal(a, b, self.tolerance)

    def connect(self, segments: Sequence[Segment]) -> List[Polyline]:
        if not segments:
            return []

        lines = []
        used = [False] * len(segments)

        for i, first in enumerate(segments):
            if used[i]:
                continue
            used[i] = True
            line = [first.start.copy(), first.end.copy()]

            extended = True
            while extended:
                extended = False
                for j, seg in enumerate(segments):
                    if used[j]:
                        continue
                    head, tail = line[0], line[-1]

                    if self._matches(tail, seg.start):
                        line.append(seg.end.copy())
                    elif self._matches(tail, seg.end):
                        line.append(seg.start.copy())
                    elif self._matches(head, seg.end):
                        line.insert(0, seg.start.copy())
                    elif self._matches(head, seg.start):
                        line.insert(0, seg.end.copy())
                    else:
                        continue

                    used[j] = True
                    extended = True
                    break

            # Closed rings end exactly on their first vertex
            if len(line) > 3 and self._matches(line[0], line[-1]):
                line[-1] = line[0].copy()
            lines.append(line)

        return lines
