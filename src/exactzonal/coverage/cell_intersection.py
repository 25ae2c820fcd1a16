"""Exact fraction of each grid cell covered by a polygon.

For every column strip of the grid, the area of a polygon inside one cell
equals the integral, along the polygon boundary, of the boundary's height
above the cell bottom (clamped to ``[0, dy]``) against ``-dx``.  Boundary
edges are therefore cut at every column line and, for angled edges, every
row line they cross.  Each resulting piece lies in a single cell, or in
the one-cell margin around the grid, and deposits:

* the trapezoid between itself and its cell's bottom edge into that cell;
* a full-height strip into every cell below it in the same column.

Strips are accumulated as per-column deltas and prefix-summed down the
rows at the end.  Pieces above the grid fall in the top margin and only
deposit strips; pieces below it or beside it deposit nothing.  Vertical
edges enclose no area against the bottom reference and are skipped.
"""

from __future__ import annotations

from typing import List, Tuple

import numpy as np
from shapely.geometry import GeometryCollection, MultiPolygon, Polygon, shape
from shapely.geometry.base import BaseGeometry

from exactzonal.coverage.segment import SegmentOrientation, classify_segments
from exactzonal.raster import Box, Grid, Raster


def raster_cell_intersection(grid: Grid, geometry) -> Raster:
    """Return a float64 :class:`Raster` over *grid* with coverage fractions.

    *geometry* is a shapely (Multi)Polygon or any object exposing
    ``__geo_interface__``.  Empty, non-areal and degenerate geometries give
    an all-zero raster.
    """
    grid = grid.as_bounded()
    zeros = np.zeros(grid.shape, dtype=np.float64)
    if grid.empty or geometry is None:
        return Raster(zeros, grid)

    if not isinstance(geometry, BaseGeometry):
        geometry = shape(geometry)

    polygons = _polygon_parts(geometry)
    if not polygons or not Box.from_bounds(geometry.bounds).intersects(grid.extent()):
        return Raster(zeros, grid)

    accumulator = _CoverageAccumulator(grid)
    for polygon in polygons:
        accumulator.add_ring(polygon.exterior.coords, sign=1.0)
        for interior in polygon.interiors:
            accumulator.add_ring(interior.coords, sign=-1.0)

    return Raster(accumulator.coverage(), grid)


def _polygon_parts(geometry: BaseGeometry) -> List[Polygon]:
    if geometry.is_empty:
        return []
    if isinstance(geometry, Polygon):
        return [geometry]
    if isinstance(geometry, (MultiPolygon, GeometryCollection)):
        return [p for part in geometry.geoms for p in _polygon_parts(part)]
    return []


def _line_crossings(
    a: np.ndarray,
    b: np.ndarray,
    lines: np.ndarray,
    mask: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """Edge index and parameter ``t`` of every line strictly between ``a`` and ``b``.

    *lines* must be sorted ascending.  Edges where *mask* is false are skipped.
    """
    lo = np.minimum(a, b)
    hi = np.maximum(a, b)
    first = np.searchsorted(lines, lo, side="right")
    last = np.searchsorted(lines, hi, side="left")
    counts = np.where(mask, np.maximum(last - first, 0), 0)

    total = int(counts.sum())
    if total == 0:
        return np.empty(0, dtype=np.int64), np.empty(0, dtype=np.float64)

    edges = np.repeat(np.arange(len(a)), counts)
    starts = np.cumsum(counts) - counts
    k = first[edges] + (np.arange(total) - starts[edges])
    t = (lines[k] - a[edges]) / (b[edges] - a[edges])
    return edges, t


class _CoverageAccumulator:
    """Signed-area buffers for one grid, shared by every ring of a polygon."""

    def __init__(self, grid: Grid):
        self._grid = grid
        self._margin = grid.as_infinite()
        rows, cols = grid.shape

        self._areas = np.zeros((rows, cols), dtype=np.float64)
        # Row k holds strips deposited for grid rows >= k; row 0 is the top margin.
        self._strips = np.zeros((rows + 1, cols), dtype=np.float64)

        self._x_lines = grid.xmin + np.arange(cols + 1) * grid.dx
        self._x_lines[-1] = grid.xmax
        self._y_lines = grid.ymax - np.arange(rows, -1, -1) * grid.dy
        self._y_lines[0] = grid.ymin
        self._cell_bottoms = grid.ymax - (np.arange(rows) + 1) * grid.dy
        self._cell_bottoms[-1] = grid.ymin

    def add_ring(self, coords, sign: float) -> None:
        """Deposit one closed ring; *sign* is +1 for shells and -1 for holes."""
        xy = np.asarray(coords, dtype=np.float64)
        if xy.ndim != 2 or len(xy) < 3:
            return

        g = self._grid
        xs = g.snap_x(xy[:, 0])
        ys = g.snap_y(xy[:, 1])
        if xs[0] != xs[-1] or ys[0] != ys[-1]:
            xs = np.append(xs, xs[0])
            ys = np.append(ys, ys[0])

        x0, y0, x1, y1 = xs[:-1], ys[:-1], xs[1:], ys[1:]

        winding = 0.5 * float(np.sum(x0 * y1 - x1 * y0))
        if winding == 0.0:
            return
        factor = sign if winding > 0 else -sign

        orientation = classify_segments(x0, y0, x1, y1)
        keep = (
            (orientation != SegmentOrientation.VERTICAL_UP)
            & (orientation != SegmentOrientation.VERTICAL_DOWN)
            & (np.maximum(x0, x1) > g.xmin)
            & (np.minimum(x0, x1) < g.xmax)
            & (np.maximum(y0, y1) > g.ymin)
        )
        if not keep.any():
            return
        x0, y0, x1, y1 = x0[keep], y0[keep], x1[keep], y1[keep]
        angled = orientation[keep] == SegmentOrientation.ANGLED

        n = len(x0)
        ex, tx = _line_crossings(x0, x1, self._x_lines, np.ones(n, dtype=bool))
        ey, ty = _line_crossings(y0, y1, self._y_lines, angled)

        edge = np.concatenate([np.arange(n), np.arange(n), ex, ey])
        t = np.concatenate([np.zeros(n), np.ones(n), tx, ty])
        order = np.lexsort((t, edge))
        edge, t = edge[order], t[order]

        distinct = np.ones(len(t), dtype=bool)
        distinct[1:] = (edge[1:] != edge[:-1]) | (t[1:] != t[:-1])
        edge, t = edge[distinct], t[distinct]

        same = edge[1:] == edge[:-1]
        e = edge[:-1][same]
        ta = t[:-1][same]
        tb = t[1:][same]

        ddx = (x1 - x0)[e]
        tm = 0.5 * (ta + tb)
        mx = x0[e] + tm * ddx
        my = y0[e] + tm * (y1 - y0)[e]
        self._deposit(mx, my, (tb - ta) * ddx, factor)

    def _deposit(self, mx, my, width, factor: float) -> None:
        g = self._grid
        mx = np.clip(mx, g.xmin - 0.5 * g.dx, g.xmax + 0.5 * g.dx)
        my = np.clip(my, g.ymin - 0.5 * g.dy, g.ymax + 0.5 * g.dy)

        cols = self._margin.get_columns(mx) - 1
        rows = self._margin.get_rows(my)

        inside = (cols >= 0) & (cols < g.cols) & (rows <= g.rows)
        cols, rows, width, my = cols[inside], rows[inside], width[inside], my[inside]

        np.add.at(self._strips, (rows, cols), -factor * width * g.dy)

        in_grid = rows >= 1
        r = rows[in_grid] - 1
        height = np.clip(my[in_grid] - self._cell_bottoms[r], 0.0, g.dy)
        np.add.at(self._areas, (r, cols[in_grid]), -factor * width[in_grid] * height)

    def coverage(self) -> np.ndarray:
        g = self._grid
        total = self._areas + np.cumsum(self._strips, axis=0)[:-1]
        return np.clip(total / (g.dx * g.dy), 0.0, 1.0)
