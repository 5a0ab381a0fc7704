"""Coverage Bounded Context - Geometry Primitives.

Thin wrappers over shapely and pyproj that the coverage services consume:
polygon construction from GeoJSON-style coordinates, bounding boxes,
polygonal intersection, per-ring containment and ellipsoidal area.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any, Union

import numpy as np
import shapely
from numpy.typing import NDArray
from pyproj import Geod
from shapely.errors import GEOSException
from shapely.geometry import GeometryCollection, MultiPolygon, Polygon, box
from shapely.geometry.base import BaseGeometry
from shapely.geometry.polygon import orient

from domain.coverage.errors import InvalidPolygonError
from domain.grid.value_objects import BoundingBox

Polygonal = Union[Polygon, MultiPolygon]

# WGS84 ellipsoid for area calculations (same as GPS, EPSG:4326)
_geod = Geod(ellps="WGS84")


# ---------------------------------------------------------------------------
# Construction from GeoJSON-style coordinates
# ---------------------------------------------------------------------------
def is_multipolygon_coordinates(coordinates: Any) -> bool:
    """True if coordinates nest four levels deep (list of polygons)."""
    try:
        return isinstance(coordinates[0][0][0], (list, tuple))
    except (IndexError, KeyError, TypeError) as e:
        raise InvalidPolygonError(f"Malformed polygon coordinates: {e}") from e


def _ring(raw: Any, index: int) -> list[tuple[float, float]]:
    try:
        ring = [(float(position[0]), float(position[1])) for position in raw]
    except (IndexError, KeyError, TypeError, ValueError) as e:
        raise InvalidPolygonError(f"Ring {index}: malformed position: {e}") from e
    for lng, lat in ring:
        if not (math.isfinite(lng) and math.isfinite(lat)):
            raise InvalidPolygonError(f"Ring {index}: non-finite coordinate")
        if not (-180 <= lng <= 180 and -90 <= lat <= 90):
            raise InvalidPolygonError(
                f"Ring {index}: coordinate ({lng}, {lat}) outside WGS84 range"
            )
    return ring


def polygon_from_rings(rings: Sequence[Any]) -> Polygon:
    """Build a Polygon from [outer, hole, ...] rings of [lng, lat] positions.

    Raises:
        InvalidPolygonError: If there are no rings, a ring has too few
            positions, a position is malformed, or the outer ring encloses
            no area.
    """
    if not rings:
        raise InvalidPolygonError("Polygon has no rings")
    parsed = [_ring(raw, i) for i, raw in enumerate(rings)]
    try:
        polygon = Polygon(parsed[0], parsed[1:])
    except (GEOSException, ValueError) as e:
        raise InvalidPolygonError(f"Invalid ring: {e}") from e
    if polygon.is_empty or Polygon(polygon.exterior).area == 0:
        raise InvalidPolygonError("Outer ring encloses no area")
    return polygon


def polygons_from_coordinates(coordinates: Any) -> tuple[Polygon, ...]:
    """Parse a Polygon or MultiPolygon coordinate array into polygons.

    Input order is preserved; the coverage engine processes the returned
    tuple from the end.
    """
    if not coordinates:
        raise InvalidPolygonError("No polygon coordinates given")
    if is_multipolygon_coordinates(coordinates):
        return tuple(polygon_from_rings(rings) for rings in coordinates)
    return (polygon_from_rings(coordinates),)


# ---------------------------------------------------------------------------
# Boxes and parts
# ---------------------------------------------------------------------------
def bounding_box(geometry: BaseGeometry) -> BoundingBox:
    return BoundingBox.from_bounds(geometry.bounds)


def to_box(bbox: BoundingBox) -> Polygon:
    """Counter-clockwise rectangle for bbox."""
    return box(*bbox.as_bounds())


def polygon_parts(geometry: BaseGeometry | None) -> list[Polygon]:
    """Non-empty Polygon members of any geometry; lines and points are dropped."""
    if geometry is None or geometry.is_empty:
        return []
    if isinstance(geometry, Polygon):
        return [geometry]
    if isinstance(geometry, (MultiPolygon, GeometryCollection)):
        parts: list[Polygon] = []
        for member in geometry.geoms:
            parts.extend(polygon_parts(member))
        return parts
    return []


def polygonal_part(geometry: BaseGeometry | None) -> Polygonal | None:
    """Return the polygonal content of geometry, or None if it has none."""
    parts = [part for part in polygon_parts(geometry) if part.area > 0]
    if not parts:
        return None
    if len(parts) == 1:
        return parts[0]
    return MultiPolygon(parts)


def intersect(first: BaseGeometry, second: BaseGeometry) -> Polygonal | None:
    """Polygonal part of the intersection, or None when they share no area."""
    return polygonal_part(first.intersection(second))


def vertex_count(polygon: Polygon) -> int:
    """Coordinates in the outer ring, closing coordinate included."""
    return len(polygon.exterior.coords)


# ---------------------------------------------------------------------------
# Even-odd containment
# ---------------------------------------------------------------------------
def ring_polygons(geometry: BaseGeometry) -> list[Polygon]:
    """Every ring of every part as a standalone (prepared) polygon."""
    rings: list[Polygon] = []
    for part in polygon_parts(geometry):
        for ring in (part.exterior, *part.interiors):
            ring_polygon = Polygon(ring.coords)
            shapely.prepare(ring_polygon)
            rings.append(ring_polygon)
    return rings


def enclosing_ring_counts(
    rings: Sequence[Polygon], xs: NDArray[np.float64], ys: NDArray[np.float64]
) -> NDArray[np.int64]:
    """Count, per point, the rings that contain it or have it on their boundary.

    A point is inside the geometry iff its count is odd: the outer ring counts
    once and a hole it sits in cancels it out. Boundaries count as inside, so
    a point on an outer edge is kept and one on a hole edge is not.
    """
    counts = np.zeros(len(xs), dtype=np.int64)
    for ring in rings:
        counts += shapely.intersects_xy(ring, xs, ys)
    return counts


# ---------------------------------------------------------------------------
# Area
# ---------------------------------------------------------------------------
def geodesic_area(geometry: BaseGeometry) -> float:
    """Area in square meters on the WGS84 ellipsoid.

    Parts are oriented counter-clockwise (holes clockwise) first, because
    pyproj signs ring areas by orientation.
    """
    total = 0.0
    for part in polygon_parts(geometry):
        area, _ = _geod.geometry_area_perimeter(orient(part, sign=1.0))
        total += area
    return float(total)
