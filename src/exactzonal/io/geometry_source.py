"""Polygon inputs read with geopandas."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional

import shapely
from loguru import logger
from shapely.geometry.base import BaseGeometry

from exactzonal.errors import BadInputError


@dataclass(frozen=True)
class Feature:
    id: str
    geometry: Optional[BaseGeometry]


def features_from_frame(gdf: Any, id_field: str) -> Iterator[Feature]:
    """Yield a :class:`Feature` per row of a GeoDataFrame, keyed by *id_field*."""
    if id_field not in gdf.columns:
        raise BadInputError(
            f"Field {id_field!r} not found; available fields: {', '.join(map(str, gdf.columns))}"
        )
    return (Feature(str(fid), geom) for fid, geom in zip(gdf[id_field], gdf.geometry))


def read_features(path: str, id_field: str, layer: Optional[str] = None) -> Iterator[Feature]:
    """Read polygons from any vector format geopandas can open."""
    import geopandas as gpd

    try:
        gdf = gpd.read_file(path, layer=layer) if layer else gpd.read_file(path)
    except Exception as exc:
        raise BadInputError(f"Cannot open polygons {path}: {exc}") from exc

    logger.info(f"Loaded {len(gdf)} features from {path}")
    return features_from_frame(gdf, id_field)


@contextmanager
def feature_scope(feature: Feature) -> Iterator[Optional[BaseGeometry]]:
    """Prepare a feature's geometry for one polygon's processing.

    The prepared state is released on exit whether or not processing
    succeeded.
    """
    geom = feature.geometry
    prepared = geom is not None and not geom.is_empty
    if prepared:
        shapely.prepare(geom)
    try:
        yield geom
    finally:
        if prepared:
            shapely.destroy_prepared(geom)
