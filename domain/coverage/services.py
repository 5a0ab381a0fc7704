"""Coverage Bounded Context - Domain Services.

Pure domain logic for scanning a polygon row by row:
- scan_row: walk one latitude band west to east and advance the state
- effective_geometry: narrow high-vertex polygons to the current band
- filter_cells: apply the coverage mode to a row's candidates

NO I/O operations. Every function takes the state it needs and returns a new
value; nothing is mutated.
"""

from __future__ import annotations

import logging

import numpy as np
from shapely.geometry import Polygon, box
from shapely.geometry.base import BaseGeometry

from domain.coverage.errors import UnboundedRowScanError
from domain.coverage.geometry import (
    bounding_box,
    enclosing_ring_counts,
    geodesic_area,
    intersect,
    ring_polygons,
    to_box,
    vertex_count,
)
from domain.coverage.value_objects import (
    CoverageMode,
    CoverageRequest,
    CoverageState,
    RowScan,
)
from domain.grid.geohash import GeohashCodec
from domain.grid.value_objects import BoundingBox, CellCode

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
# Padding around a row band when clipping, in degrees. Keeps geometry that
# only touches the band edge from being lost to floating-point rounding.
ROW_BUFFER_DEG = 0.0002

EAST = (0, 1)
SOUTH = (-1, 0)

# Relative slack on overlap ratios; a fully covered cell must pass threshold 1.0
AREA_RATIO_TOLERANCE = 1e-9


# ---------------------------------------------------------------------------
# Polygon Splitter
# ---------------------------------------------------------------------------
def effective_geometry(
    polygon: Polygon,
    bounding: BoundingBox,
    row_box: BoundingBox,
    request: CoverageRequest,
    codec: GeohashCodec,
) -> tuple[BaseGeometry, BoundingBox | None, CellCode | None]:
    """Return the geometry to test a row against, plus optional narrowing.

    Polygons whose outer ring has at least `request.split_at` coordinates are
    clipped to a thin box spanning the polygon's full width and the row's
    latitude band (padded by ROW_BUFFER_DEG). Point and area tests then cost
    in proportion to the local slice, not the whole polygon.

    Args:
        polygon: Polygon being scanned
        bounding: The polygon's overall extent
        row_box: Extent of the current row anchor cell
        request: Coverage configuration
        codec: Geohash codec at the request precision

    Returns:
        (geometry, row_bounding, walk_start). The last two are None when no
        narrowing took place; otherwise they are the clipped slice's extent
        and the cell at its mid latitude and western edge, where the row walk
        begins.
    """
    if request.mode is CoverageMode.EXTENT or vertex_count(polygon) < request.split_at:
        return polygon, None, None

    clipper = box(
        bounding.west - ROW_BUFFER_DEG,
        row_box.south - ROW_BUFFER_DEG,
        bounding.east + ROW_BUFFER_DEG,
        row_box.north + ROW_BUFFER_DEG,
    )
    clipped = intersect(clipper, polygon)
    if clipped is None:
        # Band does not touch the polygon: test against the whole of it
        logger.debug(
            "Row band [%.6f, %.6f] misses polygon; using full geometry",
            row_box.south,
            row_box.north,
        )
        return polygon, None, None

    row_bounding = bounding_box(clipped)
    anchor = codec.encode(row_bounding.mid_latitude, row_bounding.west)
    return clipped, row_bounding, anchor


# ---------------------------------------------------------------------------
# Row Scanner
# ---------------------------------------------------------------------------
def begin_polygon(state: CoverageState, bounding: BoundingBox) -> CoverageState:
    """Set up the per-polygon fields for the polygon on top of the stack."""
    logger.debug(
        "Starting polygon %d of stack: extent S=%.6f W=%.6f N=%.6f E=%.6f",
        len(state.polygons),
        bounding.south,
        bounding.west,
        bounding.north,
        bounding.east,
    )
    return state.model_copy(
        update={"bounding": bounding, "row_bounding": bounding, "row_anchor": None}
    )


def walk_row(anchor: CellCode, east: float, codec: GeohashCodec) -> list[CellCode]:
    """Collect cells from anchor eastward through the cell holding `east`.

    The walk stops on reaching the cell one step east of the cell that holds
    (anchor center latitude, east).

    Raises:
        UnboundedRowScanError: If the stopping cell is not met within one
            full circle of longitude.
    """
    center = codec.decode(anchor)
    stop = codec.neighbor(codec.encode(center.latitude, east), EAST)
    if stop == anchor:
        # Extent spans the whole circle of longitude; the stop cell wraps
        # onto the anchor and the row comes out empty.
        logger.warning(
            "Row at %r: stopping cell wraps onto the anchor; row is empty", anchor
        )

    cells: list[CellCode] = []
    cell = anchor
    limit = codec.cells_per_row
    while cell != stop:
        if len(cells) >= limit:
            raise UnboundedRowScanError(anchor, stop, len(cells))
        cells.append(cell)
        cell = codec.neighbor(cell, EAST)
    return cells


def scan_row(
    state: CoverageState, request: CoverageRequest, codec: GeohashCodec
) -> RowScan:
    """Scan the next row of the polygon on top of the stack.

    Rows run north to south, starting with the cell holding the polygon's
    north-west corner. When the row just scanned reaches the polygon's
    southern bound (or the south pole row), the polygon is popped and the
    returned state is ready for the next polygon.

    Args:
        state: Current traversal state; must have at least one polygon
        request: Coverage configuration
        codec: Geohash codec at the request precision

    Returns:
        RowScan with unfiltered candidate cells, test geometry and next state
    """
    polygon = state.current_polygon
    bounding = state.bounding
    if bounding is None:
        bounding = bounding_box(polygon)
        state = begin_polygon(state, bounding)

    anchor = state.row_anchor
    if anchor is None:
        anchor = codec.encode(bounding.north, bounding.west)
    row_box = codec.decode_bbox(anchor)

    geometry, narrowed_bounding, narrowed_anchor = effective_geometry(
        polygon, bounding, row_box, request, codec
    )
    row_bounding = bounding
    walk_start = anchor
    if narrowed_bounding is not None and narrowed_anchor is not None:
        row_bounding = narrowed_bounding
        walk_start = narrowed_anchor

    cells = walk_row(walk_start, row_bounding.east, codec)

    # Step from the row anchor: the walk start may lie in a neighboring row
    south = codec.neighbor(anchor, SOUTH)
    # Done when no row exists further south, or this row reaches the bottom
    if south == anchor or row_box.south <= bounding.south:
        logger.debug("Finished polygon at row %r", anchor)
        next_state = CoverageState(polygons=state.polygons[:-1])
    else:
        next_state = state.model_copy(
            update={"row_bounding": row_bounding, "row_anchor": south}
        )

    return RowScan(cells=tuple(cells), geometry=geometry, state=next_state)


# ---------------------------------------------------------------------------
# Mode Filter
# ---------------------------------------------------------------------------
def cells_inside(
    cells: tuple[CellCode, ...], geometry: BaseGeometry, codec: GeohashCodec
) -> list[CellCode]:
    """Keep cells whose center is enclosed by an odd number of rings."""
    rings = ring_polygons(geometry)
    if not rings or not cells:
        return []
    centers = [codec.decode(cell) for cell in cells]
    xs = np.array([point.longitude for point in centers], dtype=np.float64)
    ys = np.array([point.latitude for point in centers], dtype=np.float64)
    counts = enclosing_ring_counts(rings, xs, ys)
    return [cell for cell, count in zip(cells, counts) if count % 2 == 1]


def cells_meeting_threshold(
    cells: tuple[CellCode, ...],
    geometry: BaseGeometry,
    threshold: float,
    codec: GeohashCodec,
) -> list[CellCode]:
    """Keep cells whose overlap with geometry covers at least `threshold`.

    The reference area is the first cell's, reused for the whole row. Cells
    of one row share a latitude band, so their areas agree closely.
    """
    if not threshold:
        return list(cells)

    base_area: float | None = None
    kept: list[CellCode] = []
    for cell in cells:
        cell_box = to_box(codec.decode_bbox(cell))
        if base_area is None:
            base_area = geodesic_area(cell_box)
        overlap = intersect(geometry, cell_box)
        if overlap is None or not base_area:
            continue
        if geodesic_area(overlap) / base_area >= threshold - AREA_RATIO_TOLERANCE:
            kept.append(cell)
    return kept


def filter_cells(
    cells: tuple[CellCode, ...],
    geometry: BaseGeometry,
    request: CoverageRequest,
    codec: GeohashCodec,
) -> list[CellCode]:
    """Apply the request's coverage mode to one row of candidates."""
    if request.mode is CoverageMode.EXTENT:
        return list(cells)
    if request.mode is CoverageMode.INSIDE:
        return cells_inside(cells, geometry, codec)
    return cells_meeting_threshold(cells, geometry, request.area_threshold, codec)
