"""Geohash Coverage Domain Layer.

This package contains the core logic organized by bounded contexts:
- grid: Geohash cells, codec arithmetic, geographic value objects
- coverage: Polygon coverage scan, coverage modes, row narrowing
"""

# Imports alphabetized per project style (isort)
from domain import coverage, grid

__all__ = ["coverage", "grid"]
