"""Result sinks: one row of statistics per polygon."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

import pandas as pd

from exactzonal.errors import UnknownStatError
from exactzonal.stats.accumulator import WEIGHTED_STATS, validate_stats


def result_columns(stats: Sequence[str], weight_names: Sequence[str] = ()) -> List[str]:
    """Output column names for *stats*.

    With more than one weight raster each weighted stat is repeated once per
    raster, suffixed with the raster's name.
    """
    columns = []
    for stat in validate_stats(stats):
        if stat in WEIGHTED_STATS and len(weight_names) > 1:
            columns.extend(f"{stat}_{name}" for name in weight_names)
        else:
            columns.append(stat)
    return columns


class ResultSink:
    """Base sink; subclasses implement :meth:`_write_row`.

    Not thread-safe: callers serialize :meth:`write`.
    """

    def __init__(self, id_field: str, stats: Sequence[str], weight_names: Sequence[str] = ()):
        self.id_field = id_field
        self.columns = result_columns(stats, weight_names)

    def write(self, feature_id: str, values: Dict[str, Any]) -> None:
        unknown = set(values) - set(self.columns)
        if unknown:
            raise UnknownStatError(f"Unknown stat column(s): {', '.join(sorted(unknown))}")
        row = {self.id_field: feature_id}
        row.update({col: values.get(col) for col in self.columns})
        self._write_row(row)

    def _write_row(self, row: Dict[str, Any]) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class CsvResultSink(ResultSink):
    """Append rows to a CSV file; undefined values are written as ``NA``."""

    def __init__(self, path: str, id_field: str, stats: Sequence[str], weight_names: Sequence[str] = ()):
        super().__init__(id_field, stats, weight_names)
        self.path = str(path)
        pd.DataFrame(columns=[id_field] + self.columns).to_csv(self.path, index=False)

    def _write_row(self, row: Dict[str, Any]) -> None:
        frame = pd.DataFrame([row], columns=[self.id_field] + self.columns)
        frame.to_csv(self.path, mode="a", header=False, index=False, na_rep="NA")


class MemoryResultSink(ResultSink):
    """Collect rows in memory; :meth:`to_frame` returns them as a DataFrame."""

    def __init__(self, id_field: str, stats: Sequence[str], weight_names: Sequence[str] = ()):
        super().__init__(id_field, stats, weight_names)
        self.rows: List[Dict[str, Any]] = []

    def _write_row(self, row: Dict[str, Any]) -> None:
        self.rows.append(row)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows, columns=[self.id_field] + self.columns)
