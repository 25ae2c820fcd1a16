"""Zonal statistics step: coverage-weighted stats for every polygon.

Preconditions (stat names, weight grids, inputs) are checked before any
polygon is processed.  After that, a failing polygon is logged and
recorded, and processing moves on to the next one.
"""

from __future__ import annotations

import threading
from contextlib import ExitStack
from typing import Iterable, Optional, Sequence

from loguru import logger

from exactzonal.config import DEFAULT_MAX_CELLS, PipelineConfig
from exactzonal.errors import BadInputError
from exactzonal.execution.local_executor import run_features
from exactzonal.io.geometry_source import Feature
from exactzonal.io.result_sink import ResultSink
from exactzonal.stats.accumulator import requires_weights, validate_stats
from exactzonal.tracking import RunTracker
from exactzonal.zonal.feature_stats import check_grids, compute_feature_stats


def zonal_stats(
    features: Iterable[Feature],
    values,
    sink: ResultSink,
    stats: Sequence[str],
    weights: Sequence = (),
    max_cells: int = DEFAULT_MAX_CELLS,
    id_filter: Optional[str] = None,
    max_workers: int = 1,
    progress: bool = False,
) -> RunTracker:
    """Compute *stats* for each feature and write one row per success to *sink*.

    A feature whose bounds miss the value raster still gets a row: ``count``
    and ``sum`` are 0 and every other statistic is undefined (``NA`` in CSV).

    Args:
        features: ``Feature(id, geometry)`` items.
        values: Value raster source.
        sink: Receives one row per successfully processed feature.
        stats: Requested stat names.
        weights: Weight raster sources (may be empty).
        max_cells: Upper bound on cells per tile.
        id_filter: Process only the feature with this id.
        max_workers: Worker threads; ``1`` processes features in order.
        progress: Log each completed feature at INFO instead of DEBUG.

    Returns:
        A :class:`RunTracker` with one result per processed feature.
    """
    stats = validate_stats(stats)
    if requires_weights(stats) and not weights:
        raise BadInputError("Weighted statistics requested without a weighting raster")
    check_grids(values, weights)

    if id_filter is not None:
        features = (f for f in features if f.id == id_filter)

    tracker = RunTracker()
    sink_lock = threading.Lock()
    written = [0]
    log_progress = logger.info if progress else logger.debug

    def emit(feature_id, row):
        with sink_lock:
            sink.write(feature_id, row)
            written[0] += 1
            log_progress(f"[{written[0]}] wrote results for feature {feature_id}")

    def worker(geometry):
        result = compute_feature_stats(geometry, values, stats, weights, max_cells)
        return result.row(stats), result.tiles

    run_features(worker, features, tracker, emit, max_workers=max_workers)
    tracker.print_summary()
    return tracker


def run_zonal_stats(
    polygons: str,
    raster: str,
    output: str,
    id_field: str,
    stats: Sequence[str],
    cfg: PipelineConfig,
    weights: Sequence[str] = (),
    id_filter: Optional[str] = None,
    progress: bool = False,
) -> RunTracker:
    """Calculate zonal statistics of *raster* for the polygons in *polygons*.

    1. Check stat names
    2. Open value and weight rasters, check grid compatibility
    3. Load polygon features
    4. Compute statistics per polygon, tile by tile
    5. Write results CSV incrementally
    """
    from exactzonal.io.geometry_source import read_features
    from exactzonal.io.raster_source import RasterSource
    from exactzonal.io.result_sink import CsvResultSink

    logger.info(f"Running zonal stats for {polygons} over {raster}")
    stats = validate_stats(stats)
    if requires_weights(stats) and not weights:
        raise BadInputError("Weighted statistics requested without a weighting raster")

    with ExitStack() as stack:
        values = stack.enter_context(RasterSource(raster))
        weight_sources = [stack.enter_context(RasterSource(path)) for path in weights]
        check_grids(values, weight_sources)

        features = read_features(polygons, id_field)
        sink = stack.enter_context(
            CsvResultSink(output, id_field, stats, [w.name for w in weight_sources])
        )

        tracker = zonal_stats(
            features,
            values,
            sink,
            stats,
            weights=weight_sources,
            max_cells=cfg.zonal.max_cells,
            id_filter=id_filter,
            max_workers=cfg.zonal.max_workers,
            progress=progress,
        )

    if cfg.zonal.report_dir:
        tracker.save_reports(cfg.zonal.report_dir)

    logger.info(f"Results written to {output} ({len(tracker.succeeded)} polygons)")
    return tracker
