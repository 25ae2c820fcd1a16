"""Outcome of processing one polygon."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class FeatureResult:
    feature_id: str
    status: str  # 'success', 'failed'
    duration_sec: Optional[float] = None
    tiles: Optional[int] = None
    error_message: Optional[str] = None
    error_type: Optional[str] = None  # exception class name
    error_traceback: Optional[str] = None
    stats: Optional[Dict[str, Any]] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
