"""Streaming coverage-weighted statistics."""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional

import numpy as np

from exactzonal.errors import UnknownStatError, ValueTrackingError

STAT_NAMES = (
    "count",
    "sum",
    "mean",
    "min",
    "max",
    "mode",
    "majority",
    "minority",
    "variety",
    "weighted_count",
    "weighted_sum",
    "weighted_mean",
    "weighted_fraction",
)

# Stats that need the per-value coverage map.
VALUE_STATS = frozenset({"mode", "majority", "minority", "variety"})

WEIGHTED_STATS = frozenset({"weighted_count", "weighted_sum", "weighted_mean", "weighted_fraction"})


def normalize_stat_name(name: str) -> str:
    """``"weighted mean"`` / ``"Weighted-Mean"`` -> ``"weighted_mean"``."""
    return name.strip().lower().replace(" ", "_").replace("-", "_")


def validate_stats(names: Iterable[str]) -> List[str]:
    """Normalize *names*, rejecting any that are not in :data:`STAT_NAMES`."""
    out = []
    for name in names:
        norm = normalize_stat_name(name)
        if norm not in STAT_NAMES:
            raise UnknownStatError(f"Unknown stat: {name!r} (choose from {', '.join(STAT_NAMES)})")
        out.append(norm)
    if not out:
        raise UnknownStatError("No statistics requested")
    return out


def requires_value_tracking(names: Iterable[str]) -> bool:
    return any(normalize_stat_name(n) in VALUE_STATS for n in names)


def requires_weights(names: Iterable[str]) -> bool:
    return any(normalize_stat_name(n) in WEIGHTED_STATS for n in names)


class StatsAccumulator:
    """Accumulate coverage against values (and optionally weights).

    State is a handful of sums, so :meth:`process` may be called once per
    tile in any order and accumulators built from disjoint tiles can be
    combined with :meth:`merge`.  Value-derived stats (mode, minority,
    variety) need ``store_values=True`` from the start.

    Ties in :meth:`mode` and :meth:`minority` go to the value seen first:
    row-major order within one :meth:`process` call, call order across
    calls.
    """

    def __init__(self, store_values: bool = False, nodata: Optional[float] = None):
        self.store_values = store_values
        self.nodata = nodata

        self._count = 0.0
        self._sum = 0.0
        self._weights = 0.0
        self._weighted_sum = 0.0
        self._min: Optional[float] = None
        self._max: Optional[float] = None
        self._coverage_by_value: Dict[float, float] = {}

    def process(self, coverage, values, weights=None) -> None:
        """Fold one tile of coverage fractions and cell values into the totals.

        *coverage*, *values* and *weights* are arrays (or rasters/views) of
        the same shape.  Cells with zero coverage, NaN values or the nodata
        value are ignored; cells with NaN weights are left out of the
        weighted sums only.
        """
        cov = np.asarray(coverage, dtype=np.float64)
        vals = np.asarray(values, dtype=np.float64)
        if cov.shape != vals.shape:
            raise ValueError(f"Coverage shape {cov.shape} does not match values shape {vals.shape}")

        mask = (cov > 0) & ~np.isnan(vals)
        if self.nodata is not None and not math.isnan(self.nodata):
            mask &= vals != self.nodata

        c = cov[mask]
        v = vals[mask]
        if c.size == 0:
            return

        self._count += float(c.sum())
        self._sum += float((c * v).sum())

        vmin = float(v.min())
        vmax = float(v.max())
        self._min = vmin if self._min is None else min(self._min, vmin)
        self._max = vmax if self._max is None else max(self._max, vmax)

        if weights is not None:
            w = np.asarray(weights, dtype=np.float64)
            if w.shape != cov.shape:
                raise ValueError(f"Weights shape {w.shape} does not match coverage shape {cov.shape}")
            w = w[mask]
            valid = ~np.isnan(w)
            cw = c[valid] * w[valid]
            self._weights += float(cw.sum())
            self._weighted_sum += float((cw * v[valid]).sum())

        if self.store_values:
            uniq, first, inverse = np.unique(v, return_index=True, return_inverse=True)
            sums = np.bincount(inverse.ravel(), weights=c, minlength=len(uniq))
            for i in np.argsort(first, kind="stable"):
                key = float(uniq[i])
                self._coverage_by_value[key] = self._coverage_by_value.get(key, 0.0) + float(sums[i])

    def merge(self, other: "StatsAccumulator") -> "StatsAccumulator":
        """Add *other*'s totals into this accumulator and return it."""
        if other.store_values != self.store_values:
            raise ValueTrackingError("Cannot merge accumulators with different value tracking")

        self._count += other._count
        self._sum += other._sum
        self._weights += other._weights
        self._weighted_sum += other._weighted_sum
        if other._min is not None:
            self._min = other._min if self._min is None else min(self._min, other._min)
            self._max = other._max if self._max is None else max(self._max, other._max)
        for key, cov in other._coverage_by_value.items():
            self._coverage_by_value[key] = self._coverage_by_value.get(key, 0.0) + cov
        return self

    __iadd__ = merge

    # ------------------------------------------------------------------
    # Derived statistics
    # ------------------------------------------------------------------

    def count(self) -> float:
        return self._count

    def sum(self) -> float:
        return self._sum

    def mean(self) -> Optional[float]:
        if self._count == 0:
            return None
        return self._sum / self._count

    def weighted_count(self) -> float:
        return self._weights

    def weighted_sum(self) -> float:
        return self._weighted_sum

    def weighted_mean(self) -> Optional[float]:
        if self._weights == 0:
            return None
        return self._weighted_sum / self._weights

    def weighted_fraction(self) -> Optional[float]:
        if self._count == 0:
            return None
        return self._weights / self._count

    def min(self) -> Optional[float]:
        return self._min

    def max(self) -> Optional[float]:
        return self._max

    def _tracked(self) -> Dict[float, float]:
        if not self.store_values:
            raise ValueTrackingError(
                "mode/minority/variety need an accumulator created with store_values=True"
            )
        return self._coverage_by_value

    def mode(self) -> Optional[float]:
        best = None
        best_cov = 0.0
        for value, cov in self._tracked().items():
            if cov > best_cov:
                best, best_cov = value, cov
        return best

    majority = mode

    def minority(self) -> Optional[float]:
        best = None
        best_cov = math.inf
        for value, cov in self._tracked().items():
            if 0 < cov < best_cov:
                best, best_cov = value, cov
        return best

    def variety(self) -> int:
        return sum(1 for cov in self._tracked().values() if cov > 0)

    def coverage_by_value(self) -> Dict[float, float]:
        """Copy of the value -> coverage map, in first-seen order."""
        return dict(self._tracked())

    def stat(self, name: str):
        norm = normalize_stat_name(name)
        if norm not in STAT_NAMES:
            raise UnknownStatError(f"Unknown stat: {name!r}")
        return getattr(self, norm)()

    def to_dict(self, names: Iterable[str]) -> Dict[str, object]:
        return {normalize_stat_name(n): self.stat(n) for n in names}

    def __repr__(self) -> str:
        return (
            f"StatsAccumulator(count={self._count:g}, sum={self._sum:g}, "
            f"store_values={self.store_values})"
        )
