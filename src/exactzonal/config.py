"""YAML config loading with dataclass defaults.

Example ``exactzonal.yaml``::

    zonal:
      stats: [count, mean, weighted_mean]
      id_field: site_id
      max_cells: 10000000
      max_workers: 4
    logging:
      level: DEBUG
      format: json
      file: run.log
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from loguru import logger

from exactzonal.errors import BadInputError

DEFAULT_CONFIG_NAME = "exactzonal.yaml"
DEFAULT_MAX_CELLS = 30_000_000


@dataclass
class ZonalConfig:
    stats: List[str] = field(default_factory=lambda: ["count", "mean"])
    id_field: Optional[str] = None
    max_cells: int = DEFAULT_MAX_CELLS
    max_workers: int = 1
    report_dir: Optional[str] = None


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "text"
    file: Optional[str] = None


@dataclass
class PipelineConfig:
    zonal: ZonalConfig = field(default_factory=ZonalConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _apply_section(target: Any, raw: Optional[Dict[str, Any]], name: str) -> None:
    known = {f.name for f in fields(target)}
    for key, value in (raw or {}).items():
        if key not in known:
            logger.warning(f"Ignoring unknown config key '{name}.{key}'")
        elif value is not None:
            setattr(target, key, value)


def load_config(path: Optional[str] = None) -> PipelineConfig:
    """Load config from YAML, falling back to defaults for missing keys.

    Without *path*, ``./exactzonal.yaml`` is used when it exists.
    """
    if path is None:
        default = Path(DEFAULT_CONFIG_NAME)
        if not default.exists():
            logger.debug("No config file found; using built-in defaults")
            return PipelineConfig()
        path = str(default)

    logger.info(f"Using config: {path}")
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    cfg = PipelineConfig()
    _apply_section(cfg.zonal, raw.get("zonal"), "zonal")
    _apply_section(cfg.logging, raw.get("logging"), "logging")

    if isinstance(cfg.zonal.stats, str):
        cfg.zonal.stats = [cfg.zonal.stats]
    if int(cfg.zonal.max_cells) < 1 or int(cfg.zonal.max_workers) < 1:
        raise BadInputError(f"{path}: zonal.max_cells and zonal.max_workers must be at least 1")

    return cfg
