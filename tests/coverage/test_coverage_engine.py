"""Tests for CoverageEngine and cover(): end-to-end coverage behaviour."""

from __future__ import annotations

import logging
import math
import types

import pytest
from shapely.geometry import Point, Polygon, box

from domain.coverage.engine import CoverageEngine, cover
from domain.coverage.services import scan_row
from domain.coverage.value_objects import CoverageRequest, CoverageState
from domain.grid.geohash import GeohashCodec


def run(coordinates, **settings):
    return CoverageEngine(CoverageRequest(coordinates=coordinates, **settings)).run()


def cell_box(codec: GeohashCodec, code) -> Polygon:
    bbox = codec.decode_bbox(code)
    return box(bbox.west, bbox.south, bbox.east, bbox.north)


def densified_square(west, south, east, north, per_side):
    """Closed counter-clockwise square ring with per_side points on each edge."""
    ring = []
    corners = [(west, south), (east, south), (east, north), (west, north)]
    for (x0, y0), (x1, y1) in zip(corners, corners[1:] + corners[:1]):
        for i in range(per_side):
            t = i / per_side
            ring.append([x0 + (x1 - x0) * t, y0 + (y1 - y0) * t])
    ring.append(ring[0])
    return [ring]


# ===========================================================================
# Production
# ===========================================================================
def test_run_returns_rows_north_to_south(square_coordinates):
    assert run(square_coordinates, precision=2) == ["s1", "s3", "s0", "s2"]


def test_run_integer_mode(square_coordinates):
    assert run(square_coordinates, precision=10, integer_mode=True) == [
        769,
        771,
        768,
        770,
    ]


def test_run_logs_summary(square_coordinates, caplog):
    caplog.set_level(logging.INFO, logger="domain.coverage.engine")

    run(square_coordinates, precision=2)

    assert any("4 cells in 2 rows" in r.getMessage() for r in caplog.records)


def test_rows_yields_one_list_per_row(square_coordinates):
    request = CoverageRequest(coordinates=square_coordinates, precision=2)

    assert list(CoverageEngine(request).rows()) == [["s1", "s3"], ["s0", "s2"]]


def test_cells_are_produced_lazily(square_coordinates):
    request = CoverageRequest(coordinates=square_coordinates, precision=2)
    engine = CoverageEngine(request)

    stream = engine.cells()
    assert engine.state.row_anchor is None

    assert next(stream) == "s1"
    assert engine.state.row_anchor == "s0"
    assert list(stream) == ["s3", "s0", "s2"]
    assert engine.is_done


def test_next_row_returns_none_when_exhausted(square_coordinates):
    engine = CoverageEngine(
        CoverageRequest(coordinates=square_coordinates, precision=2)
    )

    assert engine.next_row() == ["s1", "s3"]
    assert engine.next_row() == ["s0", "s2"]
    assert engine.next_row() is None
    assert engine.step() == []


def test_engine_is_single_use(square_coordinates):
    engine = CoverageEngine(
        CoverageRequest(coordinates=square_coordinates, precision=2)
    )

    assert engine.run() == ["s1", "s3", "s0", "s2"]
    assert engine.run() == []


def test_empty_rows_are_skipped():
    # Top row's cell centers (lat 8.4375) lie north of the polygon
    coordinates = [[[1, 1], [20, 1], [20, 6], [1, 6], [1, 1]]]
    request = CoverageRequest(coordinates=coordinates, precision=2)

    assert list(CoverageEngine(request).rows()) == [["s0", "s2"]]
    assert run(coordinates, precision=2, mode="extent") == ["s1", "s3", "s0", "s2"]


@pytest.mark.parametrize(
    "production, expected",
    [
        ("bulk", ["s1", "s3", "s0", "s2"]),
        ("rows", [["s1", "s3"], ["s0", "s2"]]),
        ("cells", ["s1", "s3", "s0", "s2"]),
    ],
)
def test_cover_dispatches_on_production(square_coordinates, production, expected):
    request = CoverageRequest(
        coordinates=square_coordinates, precision=2, production=production
    )

    result = cover(request)

    if production == "bulk":
        assert isinstance(result, list)
    else:
        assert isinstance(result, types.GeneratorType)
    assert list(result) == expected


# ===========================================================================
# Multiple polygons
# ===========================================================================
def test_multipolygon_processed_in_reverse_order(
    square_coordinates, western_square_coordinates
):
    cells = run([square_coordinates, western_square_coordinates], precision=2)

    assert cells == ["e9", "ec", "e8", "eb", "s1", "s3", "s0", "s2"]


def test_overlapping_polygons_keep_duplicates(square_coordinates):
    cells = run([square_coordinates, square_coordinates], precision=2)

    assert cells == ["s1", "s3", "s0", "s2"] * 2


def test_results_are_deterministic(triangle_coordinates):
    first = run(triangle_coordinates, precision=5)
    second = run(triangle_coordinates, precision=5)

    assert first == second
    assert first


# ===========================================================================
# Modes
# ===========================================================================
def test_inside_cells_have_centers_in_polygon(triangle_coordinates):
    polygon = Polygon(triangle_coordinates[0])
    codec = GeohashCodec(5)

    inside = run(triangle_coordinates, precision=5)

    assert inside
    for code in inside:
        center = codec.decode(code)
        assert polygon.covers(Point(center.longitude, center.latitude))


def test_inside_is_subset_of_extent(triangle_coordinates):
    inside = run(triangle_coordinates, precision=5)
    extent = run(triangle_coordinates, precision=5, mode="extent")

    assert set(inside) <= set(extent)
    assert len(inside) < len(extent)


def test_holes_excluded_from_inside(holed_square_coordinates):
    codec = GeohashCodec(3)
    in_hole = codec.encode(5.0, 5.0)

    inside = run(holed_square_coordinates, precision=3)
    extent = run(holed_square_coordinates, precision=3, mode="extent")

    assert in_hole in extent
    assert in_hole not in inside
    assert codec.encode(2.0, 2.0) in inside


def test_inside_keeps_cells_centered_on_polygon_edge():
    # s0 center (5.625, 2.8125) sits on the western edge
    ring = [[5.625, 0.5], [30.0, 0.5], [30.0, 20.0], [5.625, 20.0], [5.625, 0.5]]

    inside = run([ring], precision=2)

    assert "s0" in inside
    assert "s1" in inside


def test_intersect_without_threshold_matches_extent(triangle_coordinates):
    intersect = run(triangle_coordinates, precision=5, mode="intersect")
    extent = run(triangle_coordinates, precision=5, mode="extent")

    assert intersect == extent


def test_full_threshold_keeps_only_covered_cells(triangle_coordinates):
    polygon = Polygon(triangle_coordinates[0])
    codec = GeohashCodec(5)

    kept = run(
        triangle_coordinates, precision=5, mode="intersect", area_threshold=1.0
    )

    assert kept
    slack = polygon.buffer(1e-9)
    for code in kept:
        assert slack.covers(cell_box(codec, code))


def test_half_threshold_keeps_mostly_covered_cells(triangle_coordinates):
    polygon = Polygon(triangle_coordinates[0])
    codec = GeohashCodec(5)

    kept = run(
        triangle_coordinates, precision=5, mode="intersect", area_threshold=0.5
    )
    extent = run(triangle_coordinates, precision=5, mode="extent")

    assert kept
    assert len(kept) < len(extent)
    for code in kept:
        cell = cell_box(codec, code)
        assert polygon.intersection(cell).area / cell.area >= 0.49


def test_polygon_within_one_cell():
    coordinates = [[[2, 6], [3, 6], [3, 7], [2, 7], [2, 6]]]

    assert run(coordinates, precision=2, mode="extent") == ["s1"]
    assert run(coordinates, precision=2, mode="intersect") == ["s1"]
    # The cell center (5.625, 8.4375) is outside the polygon
    assert run(coordinates, precision=2) == []


def test_extent_cells_stay_near_bounding_box():
    west, south, east, north = -77.480264, 38.848498, -77.453227, 38.866812
    coordinates = [
        [[west, south], [east, south], [east, north], [west, north], [west, south]]
    ]
    codec = GeohashCodec(6)
    lng_size, lat_size = 360 / 2**15, 180 / 2**15

    cells = run(coordinates, precision=6, mode="extent")

    assert cells
    for code in cells:
        center = codec.decode(code)
        assert south - lat_size <= center.latitude <= north + lat_size
        assert west - lng_size <= center.longitude <= east + lng_size


# ===========================================================================
# Row narrowing
# ===========================================================================
def test_narrowing_does_not_change_inside_results():
    dense = densified_square(20.01, 10.01, 20.19, 10.19, per_side=100)
    simple = densified_square(20.01, 10.01, 20.19, 10.19, per_side=1)

    narrowed = run(dense, precision=5, split_at=100)
    plain = run(simple, precision=5)

    assert len(dense[0]) == 401
    assert narrowed
    assert sorted(set(narrowed)) == sorted(set(plain))


def test_narrowing_threshold_applies_to_intersect_mode(square_coordinates):
    narrowed = run(
        square_coordinates,
        precision=3,
        mode="intersect",
        area_threshold=1.0,
        split_at=5,
    )
    plain = run(square_coordinates, precision=3, mode="intersect", area_threshold=1.0)

    assert set(narrowed) == set(plain)


def test_narrowing_at_fine_precision_always_moves_south():
    # A precision 8 row is shorter than the clipping buffer, so the clipped
    # slice of the bottom row reaches into the row north of it
    row_height = 180 / 2**20
    row_edge = -90 + math.floor(100 / row_height) * row_height
    south, north = row_edge - 1e-5, 10.01
    ring = [[10.0, south], [10.01, south], [10.01, north], [10.0, north], [10.0, south]]
    request = CoverageRequest(coordinates=[ring], precision=8, split_at=1)
    codec = request.codec()

    state = CoverageState.initial(request)
    latitudes = []
    for _ in range(200):
        if state.is_done:
            break
        state = scan_row(state, request, codec).state
        if state.row_anchor is not None:
            latitudes.append(codec.decode(state.row_anchor).latitude)

    assert state.is_done
    assert latitudes == sorted(set(latitudes), reverse=True)

    narrowed = CoverageEngine(request).run()
    assert narrowed
    assert set(narrowed) <= set(run([ring], precision=8))


@pytest.mark.slow
def test_narrowing_on_high_vertex_circle():
    circle = Point(-77.0, 38.9).buffer(0.05, quad_segs=750)
    coordinates = [[list(xy) for xy in circle.exterior.coords]]

    narrowed = run(coordinates, precision=6)
    plain = run(coordinates, precision=6, split_at=10**6)

    assert len(coordinates[0]) > 2000
    assert narrowed
    assert set(narrowed) == set(plain)
