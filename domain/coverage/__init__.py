"""Coverage Bounded Context.

Responsible for covering polygons with geohash cells:
- Value Objects: CoverageRequest, CoverageState, RowScan
- Services: scan_row, effective_geometry, filter_cells
- Engine: CoverageEngine, cover
"""
