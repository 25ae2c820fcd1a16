import pandas as pd
import pytest

from exactzonal.errors import UnknownStatError
from exactzonal.io.result_sink import CsvResultSink, MemoryResultSink, result_columns


def test_result_columns():
    assert result_columns(["count", "weighted_mean"]) == ["count", "weighted_mean"]
    assert result_columns(["count", "weighted_mean"], ["pop"]) == ["count", "weighted_mean"]
    assert result_columns(["count", "weighted_mean"], ["pop", "area"]) == [
        "count",
        "weighted_mean_pop",
        "weighted_mean_area",
    ]


def test_unknown_stat_rejected_at_construction(tmp_path):
    with pytest.raises(UnknownStatError):
        CsvResultSink(tmp_path / "out.csv", "id", ["count", "median"])
    assert not (tmp_path / "out.csv").exists()


def test_csv_sink_writes_header_and_rows(tmp_path):
    path = tmp_path / "out.csv"
    with CsvResultSink(path, "fid", ["count", "mean"]) as sink:
        assert pd.read_csv(path).columns.tolist() == ["fid", "count", "mean"]
        sink.write("1", {"count": 2.5, "mean": 4.0})
        sink.write("2", {"count": 0.0, "mean": None})

    lines = path.read_text().splitlines()
    assert lines == ["fid,count,mean", "1,2.5,4.0", "2,0.0,NA"]


def test_sink_rejects_unknown_columns():
    sink = MemoryResultSink("id", ["count"])
    with pytest.raises(UnknownStatError):
        sink.write("1", {"count": 1.0, "sum": 2.0})


def test_memory_sink_frame():
    sink = MemoryResultSink("id", ["max", "min"])
    sink.write("x", {"min": 1.0, "max": 3.0})
    frame = sink.to_frame()
    assert frame.columns.tolist() == ["id", "max", "min"]
    assert frame.iloc[0].tolist() == ["x", 3.0, 1.0]
