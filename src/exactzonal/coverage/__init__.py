"""Exact polygon/cell coverage fractions."""

from exactzonal.coverage.cell_intersection import raster_cell_intersection
from exactzonal.coverage.segment import SegmentOrientation, classify_segment, classify_segments

__all__ = [
    "SegmentOrientation",
    "classify_segment",
    "classify_segments",
    "raster_cell_intersection",
]
