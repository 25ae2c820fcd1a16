"""Regular grids: coordinate-to-index mapping with alignment rules.

A :class:`Grid` is anchored at the upper-left corner of its box.  ``xmax``
and ``ymin`` are pushed outward so that the extent always holds a whole
number of cells.  Two extent kinds share the same arithmetic:

* ``GridExtent.BOUNDED`` indexes ``[0, rows)`` x ``[0, cols)`` and rejects
  coordinates outside its box.
* ``GridExtent.INFINITE`` adds one margin cell on every side, so a
  coordinate up to one cell outside the box still resolves (to row 0,
  row ``rows - 1``, etc.).  The coverage engine uses the margin to file
  boundary segments that leave the region of interest.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np

from exactzonal.errors import (
    IncompatibleGridError,
    InvalidResolutionError,
    OutOfRangeError,
)
from exactzonal.raster.box import Box

# Relative tolerance used when a coordinate quotient is "on" a grid line.
EPSILON = 1e-9

# Tolerance for resolution ratios and origin offsets in compatible_with().
COMPAT_TOLERANCE = 1e-6


class GridExtent(Enum):
    BOUNDED = 0
    INFINITE = 1

    @property
    def padding(self) -> int:
        return self.value


def _snap(value: float) -> float:
    nearest = round(value)
    if abs(value - nearest) <= EPSILON * max(1.0, abs(value)):
        return float(nearest)
    return value


def _snap_array(values: np.ndarray) -> np.ndarray:
    nearest = np.round(values)
    tol = EPSILON * np.maximum(1.0, np.abs(values))
    return np.where(np.abs(values - nearest) <= tol, nearest, values)


def _is_integral(value: float, tol: float = COMPAT_TOLERANCE) -> bool:
    return abs(value - round(value)) <= tol


def _whole_cells(length: float, res: float) -> Tuple[int, float]:
    """Return ``(count, snapped_length)`` covering *length* with cells of *res*."""
    if length <= 0:
        return 0, length
    q = _snap(length / res)
    count = int(math.ceil(q))
    if count == q:
        return count, length
    return count, count * res


def _index_span(lo: float, hi: float, res: float, n: int) -> Tuple[int, int]:
    """First and last cell index touched by ``[lo, hi]`` (offsets from the origin)."""
    first = int(math.floor(_snap(lo / res)))
    last = int(math.ceil(_snap(hi / res))) - 1
    first = min(max(first, 0), n - 1)
    last = min(max(last, first), n - 1)
    return first, last


@dataclass(frozen=True)
class Extent:
    """Region plus resolution, used to request a view of a raster."""

    xmin: float
    ymin: float
    xmax: float
    ymax: float
    dx: float
    dy: float

    @property
    def box(self) -> Box:
        return Box(self.xmin, self.ymin, self.xmax, self.ymax)

    def to_grid(self) -> "Grid":
        return Grid(self.box, self.dx, self.dy)


class Grid:
    """Immutable regular grid over a :class:`Box`."""

    __slots__ = ("_box", "_dx", "_dy", "_kind", "_rows", "_cols")

    def __init__(
        self,
        box: Box,
        dx: float,
        dy: float,
        kind: GridExtent = GridExtent.BOUNDED,
    ):
        if not (dx > 0 and dy > 0):
            raise InvalidResolutionError(f"Grid resolution must be positive, got dx={dx}, dy={dy}")

        cols, width = _whole_cells(box.width, dx)
        rows, height = _whole_cells(box.height, dy)

        if width == box.width and height == box.height:
            self._box = box
        else:
            self._box = Box(box.xmin, box.ymax - height, box.xmin + width, box.ymax)
        self._dx = float(dx)
        self._dy = float(dy)
        self._kind = kind
        self._rows = rows
        self._cols = cols

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def kind(self) -> GridExtent:
        return self._kind

    @property
    def padding(self) -> int:
        return self._kind.padding

    @property
    def xmin(self) -> float:
        return self._box.xmin

    @property
    def ymin(self) -> float:
        return self._box.ymin

    @property
    def xmax(self) -> float:
        return self._box.xmax

    @property
    def ymax(self) -> float:
        return self._box.ymax

    @property
    def dx(self) -> float:
        return self._dx

    @property
    def dy(self) -> float:
        return self._dy

    @property
    def rows(self) -> int:
        return self._rows + 2 * self.padding

    @property
    def cols(self) -> int:
        return self._cols + 2 * self.padding

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.rows, self.cols)

    @property
    def size(self) -> int:
        return self.rows * self.cols

    @property
    def empty(self) -> bool:
        """True when the extent holds no cells (margins do not count)."""
        return self._rows == 0 or self._cols == 0

    def extent(self) -> Box:
        return self._box

    def to_extent(self) -> Extent:
        return Extent(self.xmin, self.ymin, self.xmax, self.ymax, self._dx, self._dy)

    def as_bounded(self) -> "Grid":
        if self._kind is GridExtent.BOUNDED:
            return self
        return Grid(self._box, self._dx, self._dy, GridExtent.BOUNDED)

    def as_infinite(self) -> "Grid":
        if self._kind is GridExtent.INFINITE:
            return self
        return Grid(self._box, self._dx, self._dy, GridExtent.INFINITE)

    # ------------------------------------------------------------------
    # Coordinate <-> index
    # ------------------------------------------------------------------

    def get_row(self, y: float) -> int:
        return int(self.get_rows(np.array([y], dtype=np.float64))[0])

    def get_column(self, x: float) -> int:
        return int(self.get_columns(np.array([x], dtype=np.float64))[0])

    def get_rows(self, ys) -> np.ndarray:
        """Vectorized :meth:`get_row`."""
        ys = np.asarray(ys, dtype=np.float64)
        q = _snap_array((self.ymax - ys) / self._dy)
        idx = np.minimum(np.floor(q), self._rows - 1).astype(np.int64)
        above = ys > self.ymax
        below = ys < self.ymin
        self._check_range(ys, above, below, self.ymax + self._dy, self.ymin - self._dy, "y")
        idx[above] = -1
        idx[below] = self._rows
        return idx + self.padding

    def get_columns(self, xs) -> np.ndarray:
        """Vectorized :meth:`get_column`."""
        xs = np.asarray(xs, dtype=np.float64)
        q = _snap_array((xs - self.xmin) / self._dx)
        idx = np.minimum(np.floor(q), self._cols - 1).astype(np.int64)
        left = xs < self.xmin
        right = xs > self.xmax
        self._check_range(xs, right, left, self.xmax + self._dx, self.xmin - self._dx, "x")
        idx[left] = -1
        idx[right] = self._cols
        return idx + self.padding

    def _check_range(self, values, high, low, high_limit, low_limit, axis):
        if self.padding == 0:
            bad = high | low
        else:
            bad = (values > high_limit) | (values < low_limit)
        if bad.any():
            raise OutOfRangeError(
                f"{axis}={values[bad][0]!r} is outside grid extent {self._box.bounds}"
            )

    def x_for_col(self, col: int) -> float:
        """X coordinate of the center of column *col*."""
        return self.xmin + (col - self.padding + 0.5) * self._dx

    def y_for_row(self, row: int) -> float:
        """Y coordinate of the center of row *row*."""
        return self.ymax - (row - self.padding + 0.5) * self._dy

    def snap_x(self, xs) -> np.ndarray:
        """Move x coordinates lying within epsilon of a column line onto it."""
        xs = np.asarray(xs, dtype=np.float64)
        q = (xs - self.xmin) / self._dx
        snapped = _snap_array(q)
        return np.where(snapped != q, self.xmin + snapped * self._dx, xs)

    def snap_y(self, ys) -> np.ndarray:
        """Move y coordinates lying within epsilon of a row line onto it."""
        ys = np.asarray(ys, dtype=np.float64)
        q = (self.ymax - ys) / self._dy
        snapped = _snap_array(q)
        return np.where(snapped != q, self.ymax - snapped * self._dy, ys)

    # ------------------------------------------------------------------
    # Grid algebra
    # ------------------------------------------------------------------

    def compatible_with(self, other: "Grid") -> bool:
        """True if one grid's cell lines are a regular subsample of the other's."""
        fine_dx = min(self._dx, other._dx)
        fine_dy = min(self._dy, other._dy)

        if not _is_integral(max(self._dx, other._dx) / fine_dx):
            return False
        if not _is_integral(max(self._dy, other._dy) / fine_dy):
            return False

        if not _is_integral(abs(self.xmin - other.xmin) / fine_dx):
            return False
        if not _is_integral(abs(self.ymax - other.ymax) / fine_dy):
            return False

        return True

    def common_grid(self, other: "Grid") -> "Grid":
        """Finest-resolution grid spanning both extents."""
        if not self.compatible_with(other):
            raise IncompatibleGridError(f"Grids are not compatible: {self!r} / {other!r}")

        return Grid(
            self._box.union(other._box),
            min(self._dx, other._dx),
            min(self._dy, other._dy),
            self._kind,
        )

    def shrink_to_fit(self, box: Box) -> "Grid":
        """Smallest same-phase sub-grid whose extent contains ``box ∩ extent``."""
        b = box.intersection(self._box)
        if b is None or self.empty:
            raise OutOfRangeError(f"Box {box.bounds} does not intersect grid extent {self._box.bounds}")

        col0, col1 = _index_span(b.xmin - self.xmin, b.xmax - self.xmin, self._dx, self._cols)
        row0, row1 = _index_span(self.ymax - b.ymax, self.ymax - b.ymin, self._dy, self._rows)
        ncols = col1 - col0 + 1
        nrows = row1 - row0 + 1

        # Snapped origins may land a round-off away from the box edge; the
        # box must stay inside the result, so absorb the residual.
        xmin = min(self.xmin + col0 * self._dx, b.xmin)
        ymax = max(self.ymax - row0 * self._dy, b.ymax)

        xmax = max(xmin + ncols * self._dx, b.xmax)
        ymin = min(ymax - nrows * self._dy, b.ymin)
        xmax = min(xmax, self.xmax)
        ymin = max(ymin, self.ymin)

        return Grid(Box(xmin, ymin, xmax, ymax), self._dx, self._dy, self._kind)

    def crop(self, row: int, col: int, nrows: int, ncols: int) -> "Grid":
        """Sub-grid of *nrows* x *ncols* cells starting at extent cell (row, col)."""
        if row < 0 or col < 0 or nrows < 1 or ncols < 1 \
                or row + nrows > self._rows or col + ncols > self._cols:
            raise OutOfRangeError(
                f"Cannot crop {nrows}x{ncols} cells at ({row}, {col}) "
                f"from a {self._rows}x{self._cols} grid"
            )

        xmin = self.xmin + col * self._dx
        ymax = self.ymax - row * self._dy
        xmax = self.xmax if col + ncols == self._cols else xmin + ncols * self._dx
        ymin = self.ymin if row + nrows == self._rows else ymax - nrows * self._dy

        return Grid(Box(xmin, ymin, xmax, ymax), self._dx, self._dy, self._kind)

    def row_offset(self, other: "Grid") -> int:
        """Rows of the finer grid between the two grids' top edges."""
        return int(round(abs(self.ymax - other.ymax) / min(self._dy, other._dy)))

    def col_offset(self, other: "Grid") -> int:
        """Columns of the finer grid between the two grids' left edges."""
        return int(round(abs(self.xmin - other.xmin) / min(self._dx, other._dx)))

    # ------------------------------------------------------------------
    # Value semantics
    # ------------------------------------------------------------------

    def _key(self):
        return (self._kind, self._box, self._dx, self._dy, self._rows, self._cols)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return (
            f"Grid({self._kind.name.lower()}, bounds={self._box.bounds}, "
            f"dx={self._dx}, dy={self._dy}, rows={self.rows}, cols={self.cols})"
        )
