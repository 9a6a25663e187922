"""
Error kinds raised by the contour pipeline.
Every stage raises one of these and aborts the current run; nothing is retried here.
"""

from typing import Optional


class ContourError(Exception):
    """Base class for all pipeline failures."""


class InvalidBounds(ContourError, ValueError):
    """Selection rectangle is degenerate or inverted."""


class InsufficientSamples(ContourError):
    """Fewer than three samples with a valid elevation are available."""

    def __init__(self, available: int, required: int = 3):
        self.available = available
        self.required = required
        super().__init__(
            f"Need at least {required} samples with elevation, got {available}"
        )


class OracleBatchFailure(ContourError):
    """
    The elevation source failed for a whole batch.

    The original exception, if any, is chained as ``__cause__``.
    """

    def __init__(self, batch_index: int, reason: str, batch_size: Optional[int] = None):
        self.batch_index = batch_index
        self.reason = reason
        self.batch_size = batch_size
        super().__init__(
            f"Failed to fetch elevation data for batch {batch_index}: {reason}. "
            "Please try a smaller area or fewer sample points."
        )


class DegenerateTriangulation(ContourError):
    """Sample coordinates are collinear or duplicated so no Delaunay triangulation exists."""
