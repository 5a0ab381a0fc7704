"""Root pytest configuration for all tests.

Coordinates follow GeoJSON order ([lng, lat]). Shared polygons are exposed as
fixtures returning fresh coordinate lists, so tests may not mutate each
other's input.
"""

from __future__ import annotations

from typing import Any

import pytest


def _rectangle(west: float, south: float, east: float, north: float) -> list[Any]:
    """Outer ring of an axis-aligned rectangle, counter-clockwise and closed."""
    return [
        [west, south],
        [east, south],
        [east, north],
        [west, north],
        [west, south],
    ]


@pytest.fixture
def square_coordinates() -> list[Any]:
    """Polygon lng [1, 20], lat [1, 10].

    At precision 2 (cells 11.25 x 5.625 degrees) it spans two rows of two
    cells: s1 s3 over s0 s2.
    """
    return [_rectangle(1.0, 1.0, 20.0, 10.0)]


@pytest.fixture
def western_square_coordinates() -> list[Any]:
    """Polygon lng [-20, -1], lat [1, 10]: cells e9 ec over e8 eb at precision 2."""
    return [_rectangle(-20.0, 1.0, -1.0, 10.0)]


@pytest.fixture
def holed_square_coordinates() -> list[Any]:
    """Polygon lng/lat [0, 10] with a hole at [4, 6]; hole ring is clockwise."""
    hole = [[4.0, 4.0], [4.0, 6.0], [6.0, 6.0], [6.0, 4.0], [4.0, 4.0]]
    return [_rectangle(0.0, 0.0, 10.0, 10.0), hole]


@pytest.fixture
def triangle_coordinates() -> list[Any]:
    """Irregular polygon west of Washington, DC."""
    return [[[-77.5, 38.8], [-77.0, 38.8], [-77.25, 39.2], [-77.5, 38.8]]]
