"""loguru setup: one stderr handler (plus an optional file) with run context.

Every record carries ``extra["run_id"]``; records logged while a polygon
is being processed also carry ``extra["feature_id"]``.
"""

from __future__ import annotations

import sys
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

from loguru import logger


def _text_format(record) -> str:
    extra = record["extra"]
    fmt = "<level>{level: <8}</level> | "
    if "run_id" in extra:
        fmt += "{extra[run_id]:>8} | "
    if extra.get("feature_id") is not None:
        fmt += "<cyan>{extra[feature_id]}</cyan> | "
    return fmt + "{message}\n{exception}"


def setup_logging(level: str = "INFO", fmt: str = "text", log_file: Optional[str] = None) -> None:
    """Replace loguru's handlers with a stderr handler in *fmt* (``text`` or ``json``).

    With *log_file*, records are also appended to that file in the same
    format.  Call once at CLI startup.
    """
    logger.remove()
    level = level.upper()
    serialize = fmt == "json"

    sinks = [sys.stderr] + ([log_file] if log_file else [])
    for sink in sinks:
        if serialize:
            logger.add(sink, level=level, serialize=True)
        else:
            logger.add(sink, level=level, format=_text_format, colorize=None if sink is sys.stderr else False)


def new_run_id() -> str:
    """Generate an 8-char hex run identifier."""
    return uuid.uuid4().hex[:8]


def bind_run_context(run_id: str) -> None:
    logger.configure(extra={"run_id": run_id, "feature_id": None})


@contextmanager
def feature_context(feature_id: str) -> Iterator[None]:
    """Attach *feature_id* to every record logged inside the block, on any thread."""
    with logger.contextualize(feature_id=feature_id):
        yield
