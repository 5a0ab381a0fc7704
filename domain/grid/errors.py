"""Grid Bounded Context - Error Hierarchy.

Custom exceptions for geohash codec operations.
"""

from __future__ import annotations


class GridError(Exception):
    """Base error for grid operations."""


class InvalidPrecisionError(GridError, ValueError):
    """Precision is outside the range supported by the codec variant.

    Attributes:
        precision: The offending precision
        integer_mode: True if the integer codec was requested
    """

    def __init__(self, precision: int, integer_mode: bool = False) -> None:
        self.precision = precision
        self.integer_mode = integer_mode
        unit, limit = ("bits", 52) if integer_mode else ("characters", 12)
        super().__init__(
            f"Precision must be between 1 and {limit} {unit}, got {precision}"
        )


class InvalidCellCodeError(GridError, ValueError):
    """Cell code cannot be decoded (bad character, empty, or out of range)."""


class InvalidCoordinateError(GridError, ValueError):
    """Latitude or longitude is not a finite value inside WGS84 range."""
