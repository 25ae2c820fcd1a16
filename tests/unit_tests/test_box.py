import pytest

from exactzonal.raster import Box


def test_box_dimensions():
    box = Box(-2, 1, 4, 4)
    assert box.width == 6
    assert box.height == 3
    assert box.area == 18
    assert box.bounds == (-2, 1, 4, 4)


def test_inverted_box_rejected():
    with pytest.raises(ValueError):
        Box(1, 0, 0, 1)


def test_from_bounds_uses_shapely_order():
    assert Box.from_bounds((1, 2, 3, 4)) == Box(1, 2, 3, 4)


def test_touching_boxes_intersect():
    a = Box(0, 0, 1, 1)
    b = Box(1, 0, 2, 1)
    assert a.intersects(b)
    assert a.intersection(b) == Box(1, 0, 1, 1)


def test_disjoint_boxes():
    a = Box(0, 0, 1, 1)
    b = Box(2, 2, 3, 3)
    assert not a.intersects(b)
    assert a.intersection(b) is None
    assert a.union(b) == Box(0, 0, 3, 3)


def test_contains():
    outer = Box(0, 0, 10, 10)
    assert outer.contains(Box(1, 1, 10, 10))
    assert not outer.contains(Box(-1, 1, 5, 5))
    assert outer.contains_point(10, 0)
    assert not outer.contains_point(10.5, 0)
