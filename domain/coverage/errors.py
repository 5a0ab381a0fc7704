"""Coverage Bounded Context - Error Hierarchy.

Custom exceptions for polygon coverage operations.
"""

from __future__ import annotations

from domain.grid.value_objects import CellCode


class CoverageError(Exception):
    """Base error for coverage operations."""


class InvalidPolygonError(CoverageError, ValueError):
    """Polygon coordinates are malformed, empty, or degenerate."""


class InvalidGeoJsonError(CoverageError):
    """GeoJSON document is unreadable or holds no polygonal geometry."""


class UnboundedRowScanError(CoverageError):
    """The west-to-east walk of a row never reached its stopping cell.

    Happens when the stopping cell is computed on a different row than the
    walk, e.g. for extents touching the antimeridian or a pole.

    Attributes:
        anchor: Cell the walk started from
        stop: Cell the walk was expected to reach
        steps: Number of cells visited before giving up
    """

    def __init__(self, anchor: CellCode, stop: CellCode, steps: int) -> None:
        self.anchor = anchor
        self.stop = stop
        self.steps = steps
        super().__init__(
            f"Row starting at {anchor!r} did not reach stop cell {stop!r} "
            f"after {steps} steps"
        )
