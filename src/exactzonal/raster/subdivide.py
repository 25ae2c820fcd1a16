"""Split a grid into memory-bounded tiles."""

from __future__ import annotations

from typing import Iterator

from exactzonal.raster.grid import Grid, GridExtent


def subdivide(grid: Grid, max_cells: int) -> Iterator[Grid]:
    """Yield row bands of *grid* holding at most *max_cells* cells each.

    Bands cover *grid* exactly, top to bottom, without overlap.  When a
    single row is wider than *max_cells* each row is further split into
    column blocks.
    """
    if max_cells < 1:
        raise ValueError(f"max_cells must be positive, got {max_cells}")
    if grid.kind is not GridExtent.BOUNDED:
        raise ValueError("Only bounded grids can be subdivided")
    if grid.empty:
        return

    rows, cols = grid.rows, grid.cols

    if cols <= max_cells:
        band = max_cells // cols
        for row in range(0, rows, band):
            yield grid.crop(row, 0, min(band, rows - row), cols)
    else:
        for row in range(rows):
            for col in range(0, cols, max_cells):
                yield grid.crop(row, col, 1, min(max_cells, cols - col))
