"""Per-feature result tracking and reporting."""

from exactzonal.tracking.feature_result import FeatureResult
from exactzonal.tracking.run_tracker import RunTracker

__all__ = [
    "FeatureResult",
    "RunTracker",
]
