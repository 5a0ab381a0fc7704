"""Coverage Bounded Context - Value Objects.

Immutable request and traversal-state structures for polygon coverage.
All validation occurs at construction time via Pydantic.
"""

from __future__ import annotations

from enum import Enum
from functools import cached_property
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from shapely.geometry import Polygon
from shapely.geometry.base import BaseGeometry

from domain.coverage.geometry import polygons_from_coordinates
from domain.grid.geohash import (
    DEFAULT_INTEGER_PRECISION,
    DEFAULT_PRECISION,
    GeohashCodec,
    validate_precision,
)
from domain.grid.value_objects import BoundingBox, CellCode

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_SPLIT_AT = 2000  # Outer-ring vertex count that turns on row narrowing


class CoverageMode(str, Enum):
    """Rule selecting which scanned cells are kept."""

    INSIDE = "inside"  # Cell center lies inside the polygon
    INTERSECT = "intersect"  # Cell overlaps the polygon (optionally by area)
    EXTENT = "extent"  # Every cell of the scanned extent


class ProductionMode(str, Enum):
    """How results are handed to the caller."""

    BULK = "bulk"  # One list, computed to completion
    ROWS = "rows"  # Generator of per-row lists
    CELLS = "cells"  # Generator of single codes


# ---------------------------------------------------------------------------
# CoverageRequest
# ---------------------------------------------------------------------------
class CoverageRequest(BaseModel):
    """Configuration for one coverage computation (Value Object).

    `coordinates` holds GeoJSON-ordered ([lng, lat]) rings of one polygon, or a
    list of such polygons. Polygons are parsed and validated at construction,
    so an invalid request can never reach the engine.

    `precision` defaults to 6 characters, or 32 bits when `integer_mode` is set.
    """

    coordinates: list[Any]
    precision: Optional[int] = None
    integer_mode: bool = False
    mode: CoverageMode = CoverageMode.INSIDE
    area_threshold: float = Field(default=0.0, ge=0.0, le=1.0)
    split_at: int = Field(default=DEFAULT_SPLIT_AT, ge=1)
    production: ProductionMode = ProductionMode.BULK

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_request(self) -> "CoverageRequest":
        if self.precision is None:
            # Frozen model: fill the derived default in place, as at init time
            default = (
                DEFAULT_INTEGER_PRECISION if self.integer_mode else DEFAULT_PRECISION
            )
            object.__setattr__(self, "precision", default)
        validate_precision(self.precision, self.integer_mode)
        # Parse once here so malformed rings fail at construction
        polygons_from_coordinates(self.coordinates)
        return self

    @cached_property
    def polygons(self) -> tuple[Polygon, ...]:
        """Parsed polygons in input order."""
        return polygons_from_coordinates(self.coordinates)

    def codec(self) -> GeohashCodec:
        """Geohash codec for this request's precision and code variant."""
        return GeohashCodec(self.precision, self.integer_mode)


# ---------------------------------------------------------------------------
# CoverageState
# ---------------------------------------------------------------------------
class CoverageState(BaseModel):
    """Traversal state between two row scans (Value Object).

    `polygons` is the remaining stack; the last entry is being scanned.
    The per-polygon fields are None until the polygon's first row and are
    reset to None once its last row is done.

    Invariants:
        bounding stays fixed while the same polygon is on top of the stack.
        row_anchor, when set, is a real cell code at the request precision.
    """

    polygons: tuple[Polygon, ...]
    bounding: Optional[BoundingBox] = None  # Current polygon's overall extent
    row_bounding: Optional[BoundingBox] = None  # Current row's (narrowed) extent
    row_anchor: Optional[CellCode] = None  # Westernmost cell of the current row

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @classmethod
    def initial(cls, request: CoverageRequest) -> "CoverageState":
        return cls(polygons=request.polygons)

    @property
    def is_done(self) -> bool:
        return not self.polygons

    @property
    def current_polygon(self) -> Polygon:
        return self.polygons[-1]

    @property
    def is_polygon_started(self) -> bool:
        return self.bounding is not None


# ---------------------------------------------------------------------------
# RowScan
# ---------------------------------------------------------------------------
class RowScan(BaseModel):
    """Outcome of scanning one row (Value Object).

    Attributes:
        cells: Candidate codes, west to east
        geometry: Geometry the candidates are tested against
        state: State for the next scan
    """

    cells: tuple[CellCode, ...]
    geometry: BaseGeometry
    state: CoverageState

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)
