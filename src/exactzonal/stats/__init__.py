"""Coverage-weighted zonal statistics."""

from exactzonal.stats.accumulator import (
    STAT_NAMES,
    StatsAccumulator,
    requires_value_tracking,
    requires_weights,
    validate_stats,
)

__all__ = [
    "STAT_NAMES",
    "StatsAccumulator",
    "requires_value_tracking",
    "requires_weights",
    "validate_stats",
]
