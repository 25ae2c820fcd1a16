import pytest

from exactzonal.raster import Box, Grid, subdivide


def _covered_cells(grid, tiles):
    cells = set()
    for tile in tiles:
        r0 = grid.row_offset(tile)
        c0 = grid.col_offset(tile)
        for r in range(tile.rows):
            for c in range(tile.cols):
                cell = (r0 + r, c0 + c)
                assert cell not in cells
                cells.add(cell)
    return cells


@pytest.mark.parametrize("max_cells", [1, 7, 10, 35, 1000])
def test_tiles_partition_the_grid(max_cells):
    grid = Grid(Box(0, 0, 10, 7), 1, 1)
    tiles = list(subdivide(grid, max_cells))

    assert all(tile.size <= max_cells for tile in tiles)
    assert _covered_cells(grid, tiles) == {(r, c) for r in range(7) for c in range(10)}


def test_small_grid_is_a_single_tile():
    grid = Grid(Box(0, 0, 10, 7), 0.5, 0.5)
    assert list(subdivide(grid, grid.size)) == [grid]


def test_row_bands_cover_full_width():
    grid = Grid(Box(0, 0, 4, 6), 1, 1)
    tiles = list(subdivide(grid, 9))

    assert [t.rows for t in tiles] == [2, 2, 2]
    assert all(t.cols == 4 for t in tiles)
    assert tiles[0].ymax == grid.ymax
    assert tiles[-1].ymin == grid.ymin


def test_partial_final_band_keeps_grid_edge():
    grid = Grid(Box(0, 0.3, 4, 7.3), 1, 1)
    tiles = list(subdivide(grid, 12))
    assert tiles[-1].ymin == grid.ymin


def test_empty_grid_yields_nothing():
    assert list(subdivide(Grid(Box(0, 0, 0, 0), 1, 1), 10)) == []


def test_invalid_arguments():
    grid = Grid(Box(0, 0, 4, 4), 1, 1)
    with pytest.raises(ValueError):
        list(subdivide(grid, 0))
    with pytest.raises(ValueError):
        list(subdivide(grid.as_infinite(), 10))
