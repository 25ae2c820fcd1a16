"""Boxes, grids, rasters and tiling."""

from exactzonal.raster.box import Box
from exactzonal.raster.grid import Extent, Grid, GridExtent
from exactzonal.raster.raster import Raster, RasterView
from exactzonal.raster.subdivide import subdivide

__all__ = [
    "Box",
    "Extent",
    "Grid",
    "GridExtent",
    "Raster",
    "RasterView",
    "subdivide",
]
