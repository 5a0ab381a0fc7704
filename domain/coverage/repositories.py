"""Domain Port(s) for Coverage Input.

Defines interfaces (Protocols) that infrastructure adapters must implement.
No concrete I/O here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol


class PolygonRepository(Protocol):
    """Port for obtaining polygon coordinates from external sources.

    Implementations live in infrastructure (e.g., GeoJSON adapter).
    """

    def load_coordinates(self, file_path: Path | str) -> list[Any]:
        """Load polygons as MultiPolygon-style coordinates for a CoverageRequest."""
        ...
