"""GeoJSON adapter for PolygonRepository.

Loads Polygon and MultiPolygon geometries from a GeoJSON file (bare geometry,
Feature, FeatureCollection, or GeometryCollection) and returns them as
MultiPolygon-style coordinates ready for a CoverageRequest.

Lifecycle:
1) Check the file exists, has a GeoJSON extension and is not empty
2) Parse JSON
3) Walk the document collecting polygonal geometries; other types are skipped
4) Validate each geometry through shapely
5) Return the coordinates in document order
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from shapely.errors import GEOSException
from shapely.geometry import shape

from domain.coverage.errors import InvalidGeoJsonError

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)

GEOJSON_SUFFIXES = (".geojson", ".json")
POLYGONAL_TYPES = ("Polygon", "MultiPolygon")


def _iter_geometries(document: Any) -> Iterator[dict[str, Any]]:
    """Yield every geometry object contained in a GeoJSON document."""
    if not isinstance(document, dict):
        raise InvalidGeoJsonError("GeoJSON root must be an object")
    kind = document.get("type")
    if kind == "FeatureCollection":
        for feature in document.get("features") or []:
            yield from _iter_geometries(feature)
    elif kind == "Feature":
        geometry = document.get("geometry")
        if geometry is not None:
            yield from _iter_geometries(geometry)
    elif kind == "GeometryCollection":
        for geometry in document.get("geometries") or []:
            yield from _iter_geometries(geometry)
    else:
        yield document


class GeoJsonPolygonAdapter:
    """Infrastructure adapter for loading coverage polygons from GeoJSON files.

    Parameters
    ----------
    max_bytes: int | None
        Optional size budget for the file. Larger files raise
        InvalidGeoJsonError before being read.
    """

    def __init__(self, max_bytes: int | None = None) -> None:
        self.max_bytes = max_bytes

    def load_coordinates(self, file_path: Path | str) -> list[Any]:
        """Load polygons from a GeoJSON file.

        Returns:
            List of polygon coordinate arrays (one entry per polygon, each a
            list of [lng, lat] rings), i.e. MultiPolygon coordinates.

        Raises:
            FileNotFoundError: If the file does not exist
            InvalidGeoJsonError: If the file is not GeoJSON, cannot be parsed,
                or contains no Polygon/MultiPolygon geometry
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(str(path))

        if path.suffix.lower() not in GEOJSON_SUFFIXES:
            raise InvalidGeoJsonError(f"Unsupported file extension: {path.suffix}")

        try:
            size = path.stat().st_size
            if size == 0:
                raise InvalidGeoJsonError("Empty file")
            if self.max_bytes is not None and size > self.max_bytes:
                raise InvalidGeoJsonError(
                    f"File size {size}B exceeds budget {self.max_bytes}B"
                )
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            # Log only filename, errno and strerror; the exception is re-raised as is
            logger.error(
                "Failed to read %s (errno=%s, strerror=%s)",
                path.name,
                getattr(e, "errno", "unknown"),
                getattr(e, "strerror", "unknown"),
            )
            raise

        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidGeoJsonError(f"Invalid JSON: {e.msg}") from e

        coordinates: list[Any] = []
        skipped = 0
        for geometry in _iter_geometries(document):
            kind = geometry.get("type")
            if kind not in POLYGONAL_TYPES:
                skipped += 1
                continue
            try:
                parsed = shape(geometry)
            except (GEOSException, ValueError, TypeError, KeyError, IndexError) as e:
                raise InvalidGeoJsonError(f"Malformed {kind} geometry: {e}") from e
            if parsed.is_empty:
                skipped += 1
                continue
            if kind == "Polygon":
                coordinates.append(geometry["coordinates"])
            else:
                coordinates.extend(geometry["coordinates"])

        if skipped:
            logger.warning(
                "GeoJSON %s: skipped %d non-polygonal or empty geometries",
                path.name,
                skipped,
            )
        if not coordinates:
            raise InvalidGeoJsonError("No Polygon or MultiPolygon geometry found")

        logger.debug("GeoJSON %s: loaded %d polygons", path.name, len(coordinates))
        return coordinates
