import numpy as np
import pytest
from shapely.geometry import LineString, MultiPolygon, Point, Polygon, box, mapping

from exactzonal.coverage import raster_cell_intersection
from exactzonal.raster import Box, Grid, subdivide


def coverage(grid, geometry):
    return np.asarray(raster_cell_intersection(grid, geometry))


def test_unit_cell_fully_covered():
    grid = Grid(Box(0, 0, 3, 3), 1, 1)
    result = raster_cell_intersection(grid, box(1, 1, 2, 2))

    expected = np.zeros((3, 3))
    expected[1, 1] = 1.0
    assert result.grid == grid
    assert result.dtype == np.float64
    np.testing.assert_allclose(np.asarray(result), expected, atol=1e-12)


def test_lower_left_triangle_covers_half():
    grid = Grid(Box(0, 0, 1, 1), 1, 1)
    triangle = Polygon([(0, 0), (1, 0), (0, 1)])
    assert coverage(grid, triangle)[0, 0] == pytest.approx(0.5)


def test_square_straddling_cells():
    grid = Grid(Box(0, 0, 3, 3), 1, 1)
    result = coverage(grid, box(0.5, 0.5, 2.5, 2.5))

    expected = [
        [0.25, 0.5, 0.25],
        [0.5, 1.0, 0.5],
        [0.25, 0.5, 0.25],
    ]
    np.testing.assert_allclose(result, expected, atol=1e-12)


def test_polygon_extending_beyond_grid():
    grid = Grid(Box(0, 0, 3, 3), 1, 1)
    result = coverage(grid, box(-1, -1, 1.5, 1.5))

    expected = [
        [0, 0, 0],
        [0.5, 0.25, 0],
        [1.0, 0.5, 0],
    ]
    np.testing.assert_allclose(result, expected, atol=1e-12)


def test_polygon_larger_than_grid():
    grid = Grid(Box(0, 0, 4, 2), 0.5, 0.5)
    np.testing.assert_allclose(coverage(grid, box(-10, -10, 10, 10)), 1.0)


def test_clockwise_ring_matches_counter_clockwise():
    grid = Grid(Box(0, 0, 3, 3), 1, 1)
    ccw = Polygon([(0.2, 0.1), (2.7, 0.4), (1.9, 2.8)])
    cw = Polygon(list(ccw.exterior.coords)[::-1])
    np.testing.assert_allclose(coverage(grid, cw), coverage(grid, ccw), atol=1e-12)


def test_hole_is_excluded():
    grid = Grid(Box(0, 0, 3, 3), 1, 1)
    donut = Polygon(box(0, 0, 3, 3).exterior.coords, [box(1, 1, 2, 2).exterior.coords])

    expected = np.ones((3, 3))
    expected[1, 1] = 0
    np.testing.assert_allclose(coverage(grid, donut), expected, atol=1e-12)


def test_multipolygon_parts_add_up():
    grid = Grid(Box(0, 0, 4, 1), 1, 1)
    parts = MultiPolygon([box(0, 0, 1, 1), box(2.5, 0, 4, 0.5)])
    np.testing.assert_allclose(coverage(grid, parts), [[1, 0, 0.25, 0.5]], atol=1e-12)


@pytest.mark.parametrize(
    "geometry",
    [
        Point(5, 5).buffer(3),
        Polygon([(1.1, 1.3), (8.7, 2.2), (6.4, 9.1), (3.3, 6.6), (2.0, 8.8)]),
        box(2.25, 3.75, 7.5, 4.1),
        Point(5, 5).buffer(4).difference(Point(5.3, 4.9).buffer(1.7)),
    ],
)
def test_coverage_sum_matches_area(geometry):
    grid = Grid(Box(0, 0, 10, 10), 0.5, 0.25)
    total = coverage(grid, geometry).sum() * grid.dx * grid.dy
    assert total == pytest.approx(geometry.area, rel=1e-9)


def test_coverage_in_unit_interval():
    grid = Grid(Box(0, 0, 10, 10), 0.3, 0.7)
    result = coverage(grid, Point(4.2, 5.1).buffer(3.3))
    assert (result >= 0).all() and (result <= 1).all()


def test_offset_grid_with_rectangular_cells():
    grid = Grid(Box(10, 20, 14, 23), 2, 1)
    triangle = Polygon([(10, 20), (14, 20), (10, 23)])
    result = coverage(grid, triangle)

    assert result.shape == (3, 2)
    assert result.sum() * 2 == pytest.approx(triangle.area)
    assert result[2, 0] == pytest.approx(1.0)
    assert result[0, 1] == pytest.approx(0.0)


def test_tiles_reproduce_whole_grid():
    grid = Grid(Box(0, 0, 10, 10), 0.5, 0.5)
    geometry = Point(4.7, 5.2).buffer(3.9)
    whole = coverage(grid, geometry)

    for tile in subdivide(grid, 45):
        r = grid.row_offset(tile)
        c = grid.col_offset(tile)
        part = coverage(tile, geometry)
        np.testing.assert_allclose(part, whole[r:r + tile.rows, c:c + tile.cols], atol=1e-9)


def test_geo_interface_input():
    grid = Grid(Box(0, 0, 1, 1), 1, 1)
    assert coverage(grid, mapping(box(0, 0, 1, 1)))[0, 0] == pytest.approx(1.0)


@pytest.mark.parametrize(
    "geometry",
    [
        box(20, 20, 21, 21),
        Polygon(),
        LineString([(0, 0), (1, 1)]),
        Polygon([(0, 0), (1, 1), (2, 2)]),
        None,
    ],
)
def test_geometries_without_area_give_zeros(geometry):
    grid = Grid(Box(0, 0, 3, 3), 1, 1)
    result = coverage(grid, geometry)
    assert result.shape == (3, 3)
    assert not result.any()
