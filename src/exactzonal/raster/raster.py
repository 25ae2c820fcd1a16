"""Dense rasters bound to a grid, and resampling views over them."""

from __future__ import annotations

from typing import Union

import numpy as np

from exactzonal.errors import IncompatibleResolutionError
from exactzonal.raster.box import Box
from exactzonal.raster.grid import Extent, Grid, GridExtent, _is_integral


class Raster:
    """Owns a row-major 2D numpy array laid out over a bounded :class:`Grid`."""

    def __init__(self, data: np.ndarray, grid: Grid):
        data = np.asarray(data)
        if data.ndim != 2:
            raise ValueError(f"Raster data must be 2D, got shape {data.shape}")
        if grid.kind is not GridExtent.BOUNDED:
            grid = grid.as_bounded()
        if data.shape != grid.shape:
            raise ValueError(f"Data shape {data.shape} does not match grid shape {grid.shape}")
        self._data = data
        self._grid = grid

    @classmethod
    def from_array(cls, array, box: Box) -> "Raster":
        """Wrap *array*, deriving the resolution from *box* and the array shape."""
        array = np.asarray(array)
        rows, cols = array.shape
        return cls(array, Grid(box, box.width / cols, box.height / rows))

    @classmethod
    def from_box(
        cls,
        box: Box,
        rows: int,
        cols: int,
        dtype=np.float64,
        fill=0,
    ) -> "Raster":
        """Allocate a *rows* x *cols* raster over *box* filled with *fill*."""
        return cls.from_array(np.full((rows, cols), fill, dtype=dtype), box)

    # ------------------------------------------------------------------

    @property
    def grid(self) -> Grid:
        return self._grid

    @property
    def data(self) -> np.ndarray:
        return self._data

    @property
    def dtype(self):
        return self._data.dtype

    @property
    def shape(self):
        return self._data.shape

    @property
    def rows(self) -> int:
        return self._grid.rows

    @property
    def cols(self) -> int:
        return self._grid.cols

    @property
    def xres(self) -> float:
        return self._grid.dx

    @property
    def yres(self) -> float:
        return self._grid.dy

    @property
    def xmin(self) -> float:
        return self._grid.xmin

    @property
    def ymin(self) -> float:
        return self._grid.ymin

    @property
    def xmax(self) -> float:
        return self._grid.xmax

    @property
    def ymax(self) -> float:
        return self._grid.ymax

    def __getitem__(self, key):
        return self._data[key]

    def __setitem__(self, key, value) -> None:
        self._data[key] = value

    def __array__(self, dtype=None, copy=None):
        if copy:
            return self._data.astype(self._data.dtype if dtype is None else dtype, copy=True)
        out = self._data if dtype is None else self._data.astype(dtype, copy=False)
        if copy is False and out is not self._data:
            raise ValueError(f"Cannot convert {self._data.dtype} raster to {dtype} without a copy")
        return out

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, (Raster, RasterView)):
            return NotImplemented
        return _same_grid_and_values(self, other)

    def __repr__(self) -> str:
        return f"Raster({self._data.dtype}, {self._grid!r})"


class RasterView:
    """Read-only nearest-cell view of a :class:`Raster` over another extent.

    The view resolution must equal the backing resolution or divide it by
    a whole number.  Each view cell takes the value of the backing cell
    containing its center.  Cells whose center falls outside the backing
    raster read as *fill_value* when one is given, and raise
    :class:`OutOfRangeError` otherwise.  The backing raster is referenced,
    never copied, until :meth:`read` is called.
    """

    def __init__(self, raster: Raster, extent: Extent, fill_value=None):
        backing = raster.grid
        ratio_x = backing.dx / extent.dx
        ratio_y = backing.dy / extent.dy
        if not (_is_integral(ratio_x) and round(ratio_x) >= 1
                and _is_integral(ratio_y) and round(ratio_y) >= 1):
            raise IncompatibleResolutionError(
                f"View resolution ({extent.dx}, {extent.dy}) does not evenly divide "
                f"raster resolution ({backing.dx}, {backing.dy})"
            )

        self._raster = raster
        self._grid = extent.to_grid()
        self._fill_value = fill_value
        rows = np.arange(self._grid.rows)
        cols = np.arange(self._grid.cols)
        self._row_index = self._lookup(backing.get_rows, self._grid.y_for_row(rows), backing.ymin, backing.ymax)
        self._col_index = self._lookup(backing.get_columns, self._grid.x_for_col(cols), backing.xmin, backing.xmax)

    def _lookup(self, to_indices, centers, low, high) -> np.ndarray:
        inside = (centers >= low) & (centers <= high)
        if self._fill_value is None or inside.all():
            return to_indices(centers)
        index = np.full(len(centers), -1, dtype=np.int64)
        index[inside] = to_indices(centers[inside])
        return index

    @property
    def grid(self) -> Grid:
        return self._grid

    @property
    def shape(self):
        return self._grid.shape

    @property
    def rows(self) -> int:
        return self._grid.rows

    @property
    def cols(self) -> int:
        return self._grid.cols

    @property
    def xres(self) -> float:
        return self._grid.dx

    @property
    def yres(self) -> float:
        return self._grid.dy

    @property
    def xmin(self) -> float:
        return self._grid.xmin

    @property
    def ymin(self) -> float:
        return self._grid.ymin

    @property
    def xmax(self) -> float:
        return self._grid.xmax

    @property
    def ymax(self) -> float:
        return self._grid.ymax

    def __getitem__(self, key):
        row, col = key
        r = self._row_index[row]
        c = self._col_index[col]
        if r < 0 or c < 0:
            return self._fill_value
        return self._raster.data[r, c]

    def read(self) -> np.ndarray:
        """Materialize the view as a new array."""
        rows = self._row_index
        cols = self._col_index
        out = self._raster.data[np.ix_(np.maximum(rows, 0), np.maximum(cols, 0))]

        missing_rows = rows < 0
        missing_cols = cols < 0
        if missing_rows.any() or missing_cols.any():
            dtype = np.result_type(out.dtype, np.asarray(self._fill_value).dtype)
            out = out.astype(dtype)
            out[missing_rows, :] = self._fill_value
            out[:, missing_cols] = self._fill_value
        return out

    def to_raster(self) -> Raster:
        return Raster(self.read(), self._grid)

    def __array__(self, dtype=None, copy=None):
        if copy is False:
            raise ValueError("RasterView values only exist as a copy; use read()")
        out = self.read()
        return out if dtype is None else out.astype(dtype)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, (Raster, RasterView)):
            return NotImplemented
        return _same_grid_and_values(self, other)

    def __repr__(self) -> str:
        return f"RasterView({self._grid!r}, backing={self._raster!r})"


RasterLike = Union[Raster, RasterView]


def _same_grid_and_values(a: RasterLike, b: RasterLike) -> bool:
    if a.grid != b.grid:
        return False
    left = np.asarray(a)
    right = np.asarray(b)
    equal_nan = left.dtype.kind == "f" and right.dtype.kind == "f"
    return bool(np.array_equal(left, right, equal_nan=equal_nan))
