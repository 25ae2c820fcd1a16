import numpy as np
import pytest
from rasterio.transform import Affine

from exactzonal.errors import BadInputError
from exactzonal.io.raster_source import MemoryRasterSource, RasterSource, grid_from_transform
from exactzonal.raster import Box, Grid, Raster


@pytest.fixture
def values_tif(write_geotiff):
    data = np.arange(24, dtype=np.float32).reshape(4, 6)
    return write_geotiff("values.tif", data, xmin=10, ymax=20, res=0.5, nodata=-1)


def test_grid_and_metadata(values_tif):
    with RasterSource(values_tif) as src:
        assert src.grid == Grid(Box(10, 18, 13, 20), 0.5, 0.5)
        assert src.nodata == -1
        assert src.name == "values"


def test_read_box_returns_native_cells(values_tif):
    with RasterSource(values_tif) as src:
        raster = src.read_box(Box(10.7, 18.2, 11.4, 19.1))

    assert raster.grid == Grid(Box(10.5, 18.0, 11.5, 19.5), 0.5, 0.5)
    expected = np.arange(24).reshape(4, 6)[1:4, 1:3]
    assert np.array_equal(np.asarray(raster), expected)


def test_read_box_clips_to_raster(values_tif):
    with RasterSource(values_tif) as src:
        raster = src.read_box(Box(12, 15, 30, 30))
    assert raster.shape == (4, 2)


def test_missing_file(tmp_path):
    with pytest.raises(BadInputError):
        RasterSource(str(tmp_path / "nope.tif"))


def test_missing_band(values_tif):
    with pytest.raises(BadInputError):
        RasterSource(values_tif, band=2)


def test_rotated_transform_rejected():
    with pytest.raises(BadInputError):
        grid_from_transform(Affine(1, 0.2, 0, 0, -1, 10), 10, 10)
    with pytest.raises(BadInputError):
        grid_from_transform(Affine(1, 0, 0, 0, 1, 10), 10, 10)


def test_grid_from_transform():
    grid = grid_from_transform(Affine(0.25, 0, -5, 0, -0.5, 3), 8, 4)
    assert grid == Grid(Box(-5, 1, -3, 3), 0.25, 0.5)


def test_memory_source_tiles_are_independent():
    backing = Raster(np.arange(16, dtype=np.float64).reshape(4, 4), Grid(Box(0, 0, 4, 4), 1, 1))
    tile = MemoryRasterSource(backing).read_box(Box(1, 1, 3, 3))
    tile[0, 0] = -5

    assert tile.grid == Grid(Box(1, 1, 3, 3), 1, 1)
    assert backing[1, 1] == 5
