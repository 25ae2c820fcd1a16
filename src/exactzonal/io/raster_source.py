"""Raster inputs: a band of a rasterio dataset, or an in-memory raster."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional

import numpy as np
from loguru import logger

from exactzonal.errors import BadInputError
from exactzonal.raster import Box, Grid, Raster


def grid_from_transform(transform, width: int, height: int) -> Grid:
    """Build the bounded grid of a north-up raster from its affine transform."""
    if transform.b != 0 or transform.d != 0 or transform.a <= 0 or transform.e >= 0:
        raise BadInputError(f"Only north-up, non-rotated rasters are supported (transform={tuple(transform)[:6]})")

    dx = transform.a
    dy = -transform.e
    xmin = transform.c
    ymax = transform.f
    return Grid(Box(xmin, ymax - height * dy, xmin + width * dx, ymax), dx, dy)


class RasterSource:
    """One band of a raster file, read window by window.

    Reads go through a lock so a single source can be shared by worker
    threads.  Use as a context manager, or call :meth:`close`.
    """

    def __init__(self, path: str, band: int = 1, name: Optional[str] = None):
        import rasterio
        from rasterio.errors import RasterioIOError

        self.path = str(path)
        self.band = band
        self.name = name or Path(self.path).stem
        try:
            self._dataset = rasterio.open(self.path)
        except RasterioIOError as exc:
            raise BadInputError(f"Cannot open raster {self.path}: {exc}") from exc

        if not 1 <= band <= self._dataset.count:
            self._dataset.close()
            raise BadInputError(f"{self.path} has {self._dataset.count} band(s); band {band} requested")

        try:
            self.grid = grid_from_transform(self._dataset.transform, self._dataset.width, self._dataset.height)
        except BadInputError:
            self._dataset.close()
            raise

        self.nodata = self._dataset.nodatavals[band - 1]
        self._lock = threading.Lock()
        logger.debug(f"Opened {self.path} band {band}: {self.grid!r}, nodata={self.nodata}")

    def read_box(self, box: Box) -> Raster:
        """Read the cells of the grid touched by *box* at native resolution."""
        from rasterio.windows import Window

        cropped = self.grid.shrink_to_fit(box)
        window = Window(
            self.grid.col_offset(cropped),
            self.grid.row_offset(cropped),
            cropped.cols,
            cropped.rows,
        )
        with self._lock:
            data = self._dataset.read(self.band, window=window)
        return Raster(data, cropped)

    def close(self) -> None:
        self._dataset.close()

    def __enter__(self) -> "RasterSource":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"RasterSource({self.path!r}, band={self.band})"


class MemoryRasterSource:
    """Serve windows of an in-memory :class:`Raster` like a :class:`RasterSource`."""

    def __init__(self, raster: Raster, nodata: Optional[float] = None, name: str = "memory"):
        self.raster = raster
        self.grid = raster.grid
        self.nodata = nodata
        self.name = name

    def read_box(self, box: Box) -> Raster:
        cropped = self.grid.shrink_to_fit(box)
        row = self.grid.row_offset(cropped)
        col = self.grid.col_offset(cropped)
        data = np.asarray(self.raster)[row:row + cropped.rows, col:col + cropped.cols].copy()
        return Raster(data, cropped)

    def close(self) -> None:
        pass

    def __enter__(self) -> "MemoryRasterSource":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
