"""Structured exit codes for CLI commands."""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from exactzonal.tracking import RunTracker


class ExitCode(IntEnum):
    """Process exit status of `exactzonal stats` and `exactzonal check`."""

    SUCCESS = 0
    PARTIAL_FAILURE = 1
    TOTAL_FAILURE = 2
    BAD_INPUT = 3
    MISSING_DEPENDENCY = 4
    NO_WORK = 6  # Filter matched no features
    INCOMPATIBLE_GRIDS = 10  # check command: weight grids unusable with value grid


def exit_code_from_tracker(tracker: RunTracker) -> ExitCode:
    """Derive an exit code from a :class:`RunTracker`'s results."""
    if not tracker.results:
        return ExitCode.NO_WORK
    failed = len(tracker.failed)
    if failed == len(tracker.results):
        return ExitCode.TOTAL_FAILURE
    elif failed > 0:
        return ExitCode.PARTIAL_FAILURE
    return ExitCode.SUCCESS
