"""Coverage-weighted statistics for a single polygon.

The polygon's bounding box is cropped to the value raster, the cropped
grid (merged with the weight grid, if any) is split into tiles of at most
``max_cells`` cells, and each tile's coverage fractions are folded into one
:class:`StatsAccumulator` per weight raster.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from loguru import logger

from exactzonal.config import DEFAULT_MAX_CELLS
from exactzonal.coverage import raster_cell_intersection
from exactzonal.errors import BadInputError, IncompatibleGridError
from exactzonal.raster import Box, Grid, RasterView, subdivide
from exactzonal.stats.accumulator import (
    WEIGHTED_STATS,
    StatsAccumulator,
    requires_value_tracking,
    requires_weights,
    validate_stats,
)


def check_grids(values, weights: Sequence) -> None:
    """Fail unless all weight rasters share one grid compatible with *values*."""
    if not weights:
        return

    first = weights[0].grid
    for other in weights[1:]:
        if other.grid != first:
            raise IncompatibleGridError(
                f"All weighting rasters must have the same resolution and extent "
                f"({weights[0].name}: {first!r}, {other.name}: {other.grid!r})"
            )

    if not values.grid.compatible_with(first):
        raise IncompatibleGridError(
            "Value and weighting rasters do not have compatible grids. "
            f"Value grid origin: ({values.grid.xmin}, {values.grid.ymin}) "
            f"resolution: ({values.grid.dx}, {values.grid.dy}); "
            f"weighting grid origin: ({first.xmin}, {first.ymin}) "
            f"resolution: ({first.dx}, {first.dy})"
        )


@dataclass
class FeatureStats:
    """Accumulated statistics of one polygon, ready to be written out."""

    accumulators: List[StatsAccumulator]
    weight_names: List[str] = field(default_factory=list)
    tiles: int = 0

    def row(self, stats: Sequence[str]) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for stat in stats:
            if stat in WEIGHTED_STATS and len(self.weight_names) > 1:
                for name, acc in zip(self.weight_names, self.accumulators):
                    out[f"{stat}_{name}"] = acc.stat(stat)
            else:
                out[stat] = self.accumulators[0].stat(stat)
        return out


def _tile_view(source, tile: Grid):
    """Cells of *source* resampled onto *tile*; NaN where the source has no data."""
    if not tile.extent().intersects(source.grid.extent()):
        return np.full(tile.shape, np.nan)
    return RasterView(source.read_box(tile.extent()), tile.to_extent(), fill_value=np.nan)


def _crop(values, weights: Sequence, bbox: Box) -> Optional[Grid]:
    region = bbox.intersection(values.grid.extent())
    if region is None:
        return None

    grid = values.grid.shrink_to_fit(region)
    if weights:
        weight_region = region.intersection(weights[0].grid.extent())
        if weight_region is not None:
            grid = grid.common_grid(weights[0].grid.shrink_to_fit(weight_region))
    return grid


def compute_feature_stats(
    geometry,
    values,
    stats: Sequence[str],
    weights: Sequence = (),
    max_cells: int = DEFAULT_MAX_CELLS,
) -> FeatureStats:
    """Accumulate *stats* for one polygon.

    Args:
        geometry: shapely (Multi)Polygon in the rasters' coordinate system.
        values: Value raster source (``grid``, ``nodata``, ``read_box``).
        stats: Requested stat names.
        weights: Optional weight raster sources sharing one grid.
        max_cells: Upper bound on cells per tile.

    Returns:
        :class:`FeatureStats`; a polygon that misses the value raster
        yields empty accumulators.
    """
    stats = validate_stats(stats)
    if requires_weights(stats) and not weights:
        raise BadInputError("Weighted statistics requested without a weighting raster")

    store_values = requires_value_tracking(stats)
    accumulators = [
        StatsAccumulator(store_values=store_values, nodata=values.nodata)
        for _ in (weights or [None])
    ]
    result = FeatureStats(accumulators, [w.name for w in weights])

    if geometry is None or geometry.is_empty:
        return result

    grid = _crop(values, weights, Box.from_bounds(geometry.bounds))
    if grid is None:
        logger.debug("Feature does not intersect the value raster")
        return result

    for tile in subdivide(grid, max_cells):
        result.tiles += 1
        coverage = raster_cell_intersection(tile, geometry)
        if not coverage.data.any():
            continue

        tile_values = _tile_view(values, tile)
        if not weights:
            accumulators[0].process(coverage, tile_values)
            continue

        tile_values = np.asarray(tile_values)
        for source, acc in zip(weights, accumulators):
            acc.process(coverage, tile_values, _tile_view(source, tile))

    return result
