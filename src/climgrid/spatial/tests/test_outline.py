import numpy as np
import pytest
from shapely.geometry import Polygon

from climgrid.spatial import outline
from climgrid.spatial.errors import OutOfRangeError, ShapeMismatchError
from climgrid.spatial.tests.fixtures.grids import (
    make_annulus_mask,
    make_box_mask,
    make_regular_grid,
)


def _net_area(rings):
    return sum(outline.ring_area(r) for r in rings)


def test_single_rectangle_matches_pixel_edges():
    X, Y = make_regular_grid(nx=10, ny=8)
    mask = make_box_mask(X.shape, rows=(2, 5), cols=(3, 7))
    rings = outline.extract_outline(X, Y, mask)
    assert len(rings) == 1
    ring = rings[0]
    assert ring.shape == (5, 2)
    assert np.array_equal(ring[0], ring[-1])
    assert ring[:, 0].min() == pytest.approx(2.5)
    assert ring[:, 0].max() == pytest.approx(6.5)
    assert ring[:, 1].min() == pytest.approx(1.5)
    assert ring[:, 1].max() == pytest.approx(4.5)
    # counter-clockwise exterior
    assert outline.ring_area(ring) == pytest.approx(12.0)


def test_two_disjoint_regions_stay_separate():
    X, Y = make_regular_grid(nx=12, ny=6)
    mask = make_box_mask(X.shape, rows=(1, 4), cols=(1, 4))
    mask |= make_box_mask(X.shape, rows=(1, 3), cols=(7, 9))
    rings = outline.extract_outline(X, Y, mask)
    assert len(rings) == 2
    # largest region first
    assert outline.ring_area(rings[0]) == pytest.approx(9.0)
    assert outline.ring_area(rings[1]) == pytest.approx(4.0)


def test_diagonal_neighbours_are_not_merged():
    X, Y = make_regular_grid(nx=4, ny=4)
    mask = np.zeros(X.shape, dtype=bool)
    mask[1, 1] = mask[2, 2] = True
    rings = outline.extract_outline(X, Y, mask)
    assert len(rings) == 2
    assert all(r.shape == (5, 2) for r in rings)


def test_hole_is_clockwise_ring_after_exterior():
    X, Y = make_regular_grid(nx=7, ny=7)
    rings = outline.extract_outline(X, Y, make_annulus_mask((7, 7)))
    assert len(rings) == 2
    assert outline.ring_area(rings[0]) == pytest.approx(25.0)
    assert outline.ring_area(rings[1]) == pytest.approx(-1.0)
    assert _net_area(rings) == pytest.approx(24.0)


def test_positive_buffer_grows_area():
    X, Y = make_regular_grid(nx=10, ny=8)
    mask = make_box_mask(X.shape, rows=(2, 5), cols=(3, 7))
    base = _net_area(outline.extract_outline(X, Y, mask))
    grown = outline.extract_outline(X, Y, mask, buffer=0.5)
    assert len(grown) == 1
    assert _net_area(grown) > base
    square = outline.extract_outline(X, Y, mask, buffer=0.5, join_style='mitre')
    assert _net_area(square) == pytest.approx(5.0 * 4.0)


def test_negative_buffer_shrinks_then_vanishes():
    X, Y = make_regular_grid(nx=10, ny=8)
    mask = make_box_mask(X.shape, rows=(2, 5), cols=(3, 7))
    base = _net_area(outline.extract_outline(X, Y, mask))
    shrunk = outline.extract_outline(X, Y, mask, buffer=-0.5)
    assert 0 < _net_area(shrunk) < base
    assert _net_area(shrunk) == pytest.approx(3.0 * 2.0)
    assert _net_area(outline.extract_outline(X, Y, mask, buffer=-1.4)) > 0
    gone = outline.extract_outline(X, Y, mask, buffer=-1.6)
    assert len(gone) == 1
    assert gone[0].shape == (0, 2)


def test_erosion_keeps_one_slot_per_region():
    X, Y = make_regular_grid(nx=12, ny=8)
    mask = make_box_mask(X.shape, rows=(1, 7), cols=(1, 7))
    mask |= make_box_mask(X.shape, rows=(1, 3), cols=(9, 11))
    rings = outline.extract_outline(X, Y, mask, buffer=-1.2)
    assert len(rings) == 2
    assert outline.ring_area(rings[0]) == pytest.approx(3.6 * 3.6)
    assert rings[1].shape == (0, 2)


def test_nonuniform_spacing_uses_neighbour_midpoints():
    x = np.array([0.0, 1.0, 3.0, 6.0])
    y = np.array([0.0, 2.0])
    cx, cy = outline.cell_corners(x, y)
    assert cx.shape == (3, 5)
    assert cx[0].tolist() == pytest.approx([-0.5, 0.5, 2.0, 4.5, 7.5])
    assert cy[:, 0].tolist() == pytest.approx([-1.0, 1.0, 3.0])

    rings = outline.extract_outline(x, y, np.ones((2, 4), dtype=bool))
    assert len(rings) == 1
    ring = rings[0]
    assert ring[:, 0].min() == pytest.approx(-0.5)
    assert ring[:, 0].max() == pytest.approx(7.5)
    assert outline.ring_area(ring) == pytest.approx(8.0 * 4.0)


def test_transposed_grid_gives_same_outline():
    X, Y = make_regular_grid(nx=9, ny=6)
    mask = make_box_mask(X.shape, rows=(1, 4), cols=(2, 5))
    a = outline.extract_outline(X, Y, mask)
    b = outline.extract_outline(X.T, Y.T, mask.T)
    assert len(a) == len(b) == 1
    assert outline.ring_area(b[0]) == pytest.approx(outline.ring_area(a[0]))
    assert outline.ring_area(b[0]) > 0


def test_single_pixel_grid():
    rings = outline.extract_outline(np.array([[2.0]]), np.array([[3.0]]), np.array([[True]]))
    assert len(rings) == 1
    assert outline.ring_area(rings[0]) == pytest.approx(1.0)


def test_single_row_gets_square_pixels():
    x = np.arange(5.0) * 2.0
    rings = outline.extract_outline(x[None, :], np.zeros((1, 5)), np.ones((1, 5), dtype=bool))
    ring = rings[0]
    assert ring[:, 1].min() == pytest.approx(-1.0)
    assert ring[:, 1].max() == pytest.approx(1.0)


def test_region_selects_nth_largest():
    X, Y = make_regular_grid(nx=12, ny=6)
    mask = make_box_mask(X.shape, rows=(1, 4), cols=(1, 4))
    mask |= make_box_mask(X.shape, rows=(1, 3), cols=(7, 9))
    second = outline.extract_outline(X, Y, mask, region=2)
    assert len(second) == 1
    assert outline.ring_area(second[0]) == pytest.approx(4.0)
    with pytest.raises(OutOfRangeError):
        outline.extract_outline(X, Y, mask, region=3)


def test_empty_mask_and_shape_errors():
    X, Y = make_regular_grid(nx=4, ny=3)
    assert outline.extract_outline(X, Y, np.zeros(X.shape, dtype=bool)) == []
    with pytest.raises(ShapeMismatchError):
        outline.extract_outline(X, Y, np.ones((4, 3), dtype=bool))
    with pytest.raises(ShapeMismatchError):
        outline.extract_outline(X, Y[:2], np.ones(X.shape, dtype=bool))


def test_outline_polygons_are_oriented():
    X, Y = make_regular_grid(nx=7, ny=7)
    polys = outline.outline_polygons(X, Y, make_annulus_mask((7, 7)))
    assert len(polys) == 1
    poly = polys[0]
    assert isinstance(poly, Polygon)
    assert poly.exterior.is_ccw
    assert not poly.interiors[0].is_ccw
    assert poly.area == pytest.approx(24.0)


def test_nan_separated_output():
    X, Y = make_regular_grid(nx=12, ny=6)
    mask = make_box_mask(X.shape, rows=(1, 4), cols=(1, 4))
    mask |= make_box_mask(X.shape, rows=(1, 3), cols=(7, 9))
    rings = outline.extract_outline(X, Y, mask)
    xs, ys = outline.outline_to_nan_separated(rings + [np.empty((0, 2))])
    assert xs.shape == ys.shape == (11,)
    assert np.isnan(xs).sum() == 1
    assert np.isnan(xs[5])
    xs, ys = outline.outline_to_nan_separated([])
    assert xs.size == 0 and ys.size == 0
