"""Orientation of polygon boundary segments relative to the grid axes."""

from __future__ import annotations

from enum import IntEnum

import numpy as np


class SegmentOrientation(IntEnum):
    HORIZONTAL_RIGHT = 0
    HORIZONTAL_LEFT = 1
    VERTICAL_UP = 2
    VERTICAL_DOWN = 3
    ANGLED = 4

    @property
    def is_horizontal(self) -> bool:
        return self in (SegmentOrientation.HORIZONTAL_RIGHT, SegmentOrientation.HORIZONTAL_LEFT)

    @property
    def is_vertical(self) -> bool:
        return self in (SegmentOrientation.VERTICAL_UP, SegmentOrientation.VERTICAL_DOWN)


def classify_segment(x0: float, y0: float, x1: float, y1: float) -> SegmentOrientation:
    return SegmentOrientation(int(classify_segments(x0, y0, x1, y1)))


def classify_segments(x0, y0, x1, y1) -> np.ndarray:
    """Vectorized classification; returns :class:`SegmentOrientation` codes.

    Zero-length segments classify as ``VERTICAL_UP``.
    """
    x0, y0, x1, y1 = (np.asarray(a, dtype=np.float64) for a in (x0, y0, x1, y1))
    return np.select(
        [
            (y0 == y1) & (x1 > x0),
            (y0 == y1) & (x1 < x0),
            (x0 == x1) & (y1 >= y0),
            (x0 == x1) & (y1 < y0),
        ],
        [
            int(SegmentOrientation.HORIZONTAL_RIGHT),
            int(SegmentOrientation.HORIZONTAL_LEFT),
            int(SegmentOrientation.VERTICAL_UP),
            int(SegmentOrientation.VERTICAL_DOWN),
        ],
        default=int(SegmentOrientation.ANGLED),
    ).astype(np.int8)
