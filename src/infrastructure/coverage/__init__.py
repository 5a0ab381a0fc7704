"""Infrastructure adapters for the coverage bounded context.

Adapter exported for simplified imports.
"""

from .geojson_adapter import GeoJsonPolygonAdapter

__all__ = ["GeoJsonPolygonAdapter"]
