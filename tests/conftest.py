import sys

import numpy as np
import pytest
from loguru import logger

from exactzonal.raster import Box, Grid, Raster


GLOBAL = Box(-180, -90, 180, 90)


@pytest.fixture
def global_box():
    return GLOBAL


@pytest.fixture
def squares_raster():
    """10x10 raster over (0, 0, 10, 10) holding row * col."""
    rows, cols = np.indices((10, 10))
    return Raster((rows * cols).astype(np.float32), Grid(Box(0, 0, 10, 10), 1, 1))


@pytest.fixture
def write_geotiff(tmp_path):
    """Write a single-band, north-up GeoTIFF and return its path."""
    import rasterio
    from rasterio.transform import from_origin

    def _write(name, data, xmin, ymax, res, nodata=None):
        data = np.asarray(data)
        path = tmp_path / name
        profile = dict(
            driver="GTiff",
            width=data.shape[1],
            height=data.shape[0],
            count=1,
            dtype=data.dtype.name,
            transform=from_origin(xmin, ymax, res, res),
        )
        if nodata is not None:
            profile["nodata"] = nodata
        with rasterio.open(path, "w", **profile) as dst:
            dst.write(data, 1)
        return str(path)

    return _write


@pytest.fixture
def write_polygons(tmp_path):
    """Write ``{id: geometry}`` to a GeoJSON file keyed by *id_field*."""
    import geopandas as gpd

    def _write(name, geometries, id_field="name"):
        gdf = gpd.GeoDataFrame(
            {id_field: list(geometries.keys())},
            geometry=list(geometries.values()),
        )
        path = tmp_path / name
        gdf.to_file(path, driver="GeoJSON")
        return str(path)

    return _write


@pytest.fixture
def restore_logger():
    """Reset loguru to a plain stderr handler after a CLI invocation."""
    yield
    logger.remove()
    logger.configure(extra={"run_id": "-", "feature_id": None})
    logger.add(sys.stderr, level="INFO")
