import json

import pandas as pd

from exactzonal.exit_codes import ExitCode, exit_code_from_tracker
from exactzonal.tracking import FeatureResult, RunTracker


def _tracker(*statuses):
    tracker = RunTracker()
    for i, status in enumerate(statuses):
        error = "boom" if status == "failed" else None
        tracker.add_result(FeatureResult(f"f{i}", status, duration_sec=0.1, error_message=error))
    return tracker


def test_succeeded_and_failed():
    tracker = _tracker("success", "failed", "success")
    assert len(tracker.succeeded) == 2
    assert tracker.failures() == ["f1"]


def test_exit_codes():
    assert exit_code_from_tracker(_tracker()) == ExitCode.NO_WORK
    assert exit_code_from_tracker(_tracker("success")) == ExitCode.SUCCESS
    assert exit_code_from_tracker(_tracker("success", "failed")) == ExitCode.PARTIAL_FAILURE
    assert exit_code_from_tracker(_tracker("failed", "failed")) == ExitCode.TOTAL_FAILURE


def test_save_reports(tmp_path):
    tracker = _tracker("success", "failed")
    tracker.save_reports(str(tmp_path / "reports"))

    json_files = list((tmp_path / "reports").glob("run_report_*.json"))
    csv_files = list((tmp_path / "reports").glob("run_summary_*.csv"))
    assert len(json_files) == 1 and len(csv_files) == 1

    report = json.loads(json_files[0].read_text())
    assert [r["feature_id"] for r in report] == ["f0", "f1"]

    summary = pd.read_csv(csv_files[0])
    assert summary["status"].tolist() == ["success", "failed"]
    assert summary.loc[1, "error_message"] == "boom"
