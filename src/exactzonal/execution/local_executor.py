"""Run the per-feature worker sequentially or on a thread pool."""

from __future__ import annotations

import time
import traceback
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, Iterable, Tuple

from loguru import logger

from exactzonal.io.geometry_source import Feature, feature_scope
from exactzonal.logging import feature_context
from exactzonal.tracking import FeatureResult, RunTracker

# worker(geometry) -> (row, tiles)
Worker = Callable[[Any], Tuple[Dict[str, Any], int]]
Emit = Callable[[str, Dict[str, Any]], None]


def _invoke_worker(
    worker_fn: Worker,
    feature: Feature,
    tracker: RunTracker,
    emit: Emit,
) -> FeatureResult:
    """Call *worker_fn* on *feature*, emit its row and record the outcome.

    Exceptions raised by the worker fail this feature only.  Exceptions
    raised by *emit* propagate: a broken sink ends the run.
    """
    logger.debug(f"Starting feature {feature.id}")
    t0 = time.perf_counter()

    try:
        with feature_context(feature.id), feature_scope(feature) as geometry:
            row, tiles = worker_fn(geometry)
    except Exception as exc:
        duration = time.perf_counter() - t0
        logger.error(f"Feature {feature.id} failed: {exc}")
        result = FeatureResult(
            feature_id=feature.id,
            status="failed",
            duration_sec=duration,
            error_message=str(exc),
            error_type=type(exc).__name__,
            error_traceback=traceback.format_exc(),
        )
        tracker.add_result(result)
        return result

    duration = time.perf_counter() - t0
    emit(feature.id, row)
    result = FeatureResult(
        feature_id=feature.id,
        status="success",
        duration_sec=duration,
        tiles=tiles,
        stats=row,
    )
    tracker.add_result(result)
    logger.debug(f"Completed feature {feature.id} in {duration:.3f}s ({tiles} tiles)")
    return result


def run_features(
    worker_fn: Worker,
    features: Iterable[Feature],
    tracker: RunTracker,
    emit: Emit,
    max_workers: int = 1,
) -> None:
    """Call *worker_fn* for each feature, sequentially or in parallel.

    Args:
        worker_fn: Computes ``(row, tiles)`` for one geometry.
        features: Features to process.
        tracker: Collects one :class:`FeatureResult` per feature.
        emit: Receives ``(feature_id, row)`` for every success; callers
            must make it safe to call from several threads.
        max_workers: ``1`` for sequential (default), ``>1`` for
            thread-pool parallelism.
    """
    logger.info(f"Processing features (max_workers={max_workers})")

    if max_workers <= 1:
        for feature in features:
            _invoke_worker(worker_fn, feature, tracker, emit)
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = {
                pool.submit(_invoke_worker, worker_fn, feature, tracker, emit): feature
                for feature in features
            }
            for fut in as_completed(futures):
                fut.result()  # re-raise sink errors; worker errors are already recorded
