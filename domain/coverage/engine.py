"""Coverage Bounded Context - Coverage Engine.

Drives scan_row and filter_cells over every polygon of a request until the
polygon stack is empty. Results are produced in one of three ways:

- run(): blocking, returns every cell as one list
- rows(): generator of non-empty rows
- cells(): generator of single cells

Generators do work only when pulled; between pulls the engine holds just its
CoverageState. An engine is single-use and must not be shared between
consumers.

Ordering: cells west to east within a row, rows north to south, polygons in
reverse input order. Duplicates are possible and are kept.

Example:
    >>> request = CoverageRequest(
    ...     coordinates=[[[1, 1], [20, 1], [20, 10], [1, 10], [1, 1]]],
    ...     precision=2,
    ... )
    >>> CoverageEngine(request).run()
    ['s1', 's3', 's0', 's2']
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from domain.coverage.services import filter_cells, scan_row
from domain.coverage.value_objects import (
    CoverageRequest,
    CoverageState,
    ProductionMode,
)
from domain.grid.value_objects import CellCode

logger = logging.getLogger(__name__)


class CoverageEngine:
    """Row-by-row geohash coverage of the polygons in one request.

    Parameters
    ----------
    request: CoverageRequest
        Validated configuration; its polygons form the initial stack.
    """

    def __init__(self, request: CoverageRequest) -> None:
        self.request = request
        self.codec = request.codec()
        self.state = CoverageState.initial(request)

    @property
    def is_done(self) -> bool:
        return self.state.is_done

    def step(self) -> list[CellCode]:
        """Scan and filter exactly one row; the result may be empty.

        Returns an empty list once the stack is exhausted.
        """
        if self.state.is_done:
            return []
        scan = scan_row(self.state, self.request, self.codec)
        kept = filter_cells(scan.cells, scan.geometry, self.request, self.codec)
        self.state = scan.state
        return kept

    def next_row(self) -> list[CellCode] | None:
        """Return the next non-empty row, or None when no rows remain."""
        while not self.state.is_done:
            row = self.step()
            if row:
                return row
        return None

    def rows(self) -> Iterator[list[CellCode]]:
        """Yield non-empty rows until the polygon stack is exhausted."""
        while True:
            row = self.next_row()
            if row is None:
                return
            yield row

    def cells(self) -> Iterator[CellCode]:
        """Yield cells one at a time, pulling a new row only when needed."""
        for row in self.rows():
            yield from row

    def run(self) -> list[CellCode]:
        """Compute every remaining cell and return them as one list."""
        result: list[CellCode] = []
        row_count = 0
        for row in self.rows():
            result.extend(row)
            row_count += 1
        logger.info(
            "Coverage complete: %d cells in %d rows (mode=%s, precision=%d)",
            len(result),
            row_count,
            self.request.mode.value,
            self.request.precision,
        )
        return result


def cover(
    request: CoverageRequest,
) -> list[CellCode] | Iterator[list[CellCode]] | Iterator[CellCode]:
    """Compute coverage the way `request.production` asks for.

    Returns:
        A list for BULK, a generator of rows for ROWS, a generator of cells
        for CELLS. Each call uses a fresh engine.
    """
    engine = CoverageEngine(request)
    if request.production is ProductionMode.ROWS:
        return engine.rows()
    if request.production is ProductionMode.CELLS:
        return engine.cells()
    return engine.run()
