"""Grid Bounded Context - Value Objects.

Immutable data structures representing geographic concepts.
All validation occurs at construction time via Pydantic.
"""

from __future__ import annotations

from typing import Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

# A geohash cell is identified by a base32 string or by its raw bits.
CellCode = Union[str, int]


class GeoPoint(BaseModel):
    """Geographic coordinate in WGS84 (Value Object).

    Decoded geohash cells are represented by their center as a GeoPoint.

    Note on __eq__ and __hash__: Pydantic frozen models compare by value automatically.
    """

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    model_config = ConfigDict(frozen=True)


class BoundingBox(BaseModel):
    """Geographic extent in EPSG:4326 (Value Object).

    Field order follows the geohash convention (south, west, north, east).
    Invariants are enforced at construction time - invalid BoundingBox
    cannot be instantiated.
    """

    south: float  # Southern boundary (latitude)
    west: float  # Western boundary (longitude)
    north: float  # Northern boundary (latitude)
    east: float  # Eastern boundary (longitude)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_bounds(self) -> "BoundingBox":
        # Longitude range
        if not (-180 <= self.west <= 180):
            raise ValueError(f"west longitude out of range: {self.west}")
        if not (-180 <= self.east <= 180):
            raise ValueError(f"east longitude out of range: {self.east}")
        # Latitude range
        if not (-90 <= self.south <= 90):
            raise ValueError(f"south latitude out of range: {self.south}")
        if not (-90 <= self.north <= 90):
            raise ValueError(f"north latitude out of range: {self.north}")
        # Ordering
        if not (self.west < self.east):
            raise ValueError(
                f"Invalid longitude ordering: west={self.west} >= east={self.east}"
            )
        if not (self.south < self.north):
            raise ValueError(
                f"Invalid latitude ordering: south={self.south} >= north={self.north}"
            )
        return self

    @classmethod
    def from_bounds(cls, bounds: tuple[float, float, float, float]) -> "BoundingBox":
        """Build from (min_lng, min_lat, max_lng, max_lat), shapely bounds order."""
        min_x, min_y, max_x, max_y = bounds
        return cls(south=min_y, west=min_x, north=max_y, east=max_x)

    def as_bounds(self) -> tuple[float, float, float, float]:
        """Return (min_lng, min_lat, max_lng, max_lat)."""
        return (self.west, self.south, self.east, self.north)

    @property
    def mid_latitude(self) -> float:
        return self.south + (self.north - self.south) / 2

    def contains(self, point: GeoPoint) -> bool:
        """Check if point is within the box (inclusive)."""
        return (
            self.west <= point.longitude <= self.east
            and self.south <= point.latitude <= self.north
        )
