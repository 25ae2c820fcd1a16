"""Per-run bookkeeping of polygon outcomes, with report generation."""

from __future__ import annotations

import csv
import json
import os
import threading
from datetime import datetime
from typing import List

from loguru import logger

from exactzonal.tracking.feature_result import FeatureResult


class RunTracker:
    """Thread-safe collection of :class:`FeatureResult` records."""

    def __init__(self):
        self.results: List[FeatureResult] = []
        self.start_time = datetime.now()
        self._lock = threading.Lock()

    def add_result(self, result: FeatureResult) -> None:
        with self._lock:
            self.results.append(result)

    @property
    def succeeded(self) -> List[FeatureResult]:
        return [r for r in self.results if r.succeeded]

    @property
    def failed(self) -> List[FeatureResult]:
        return [r for r in self.results if not r.succeeded]

    def failures(self) -> List[str]:
        """Ids of the polygons that failed, in completion order."""
        return [r.feature_id for r in self.failed]

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def print_summary(self) -> None:
        total = len(self.results)
        if total == 0:
            logger.info("No features were processed.")
            return

        failed = self.failures()
        durations = [r.duration_sec for r in self.results if r.duration_sec]
        avg_dur = sum(durations) / len(durations) if durations else 0

        logger.info(
            f"Feature summary: {total - len(failed)} succeeded, {len(failed)} failed "
            f"({total} total, avg {avg_dur:.3f}s)"
        )
        if failed:
            logger.error("Failures:\n" + "\n".join(failed))

    def save_reports(self, output_dir: str) -> None:
        """Write a JSON report of every result and a CSV summary to *output_dir*."""
        os.makedirs(output_dir, exist_ok=True)
        timestamp = self.start_time.strftime("%Y%m%d_%H%M%S")

        json_path = os.path.join(output_dir, f"run_report_{timestamp}.json")
        with open(json_path, "w") as f:
            json.dump([r.to_dict() for r in self.results], f, indent=2, default=str)

        csv_path = os.path.join(output_dir, f"run_summary_{timestamp}.csv")
        fieldnames = ["feature_id", "status", "duration_sec", "tiles", "error_type", "error_message"]
        with open(csv_path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            for r in self.results:
                writer.writerow({
                    "feature_id": r.feature_id,
                    "status": r.status,
                    "duration_sec": r.duration_sec,
                    "tiles": r.tiles,
                    "error_type": r.error_type,
                    "error_message": r.error_message[:100] if r.error_message else None,
                })

        logger.info(f"Reports saved to {output_dir}/")
