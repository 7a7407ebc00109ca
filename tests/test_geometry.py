"""Tests for point / polygon helpers."""

import numpy as np
import pytest

from photo_ocr.geometry import (
    bounding_rect,
    clip_points,
    crop_size,
    distance,
    get_mini_boxes,
    order_points_clockwise,
    polygon_area,
    polygon_perimeter,
    unclip,
)


def test_order_points_clockwise_from_shuffled_rect():
    pts = np.array([[50, 30], [10, 10], [10, 30], [50, 10]], dtype=np.float32)

    ordered = order_points_clockwise(pts)

    np.testing.assert_array_equal(ordered, [[10, 10], [50, 10], [50, 30], [10, 30]])


def test_order_points_clockwise_tilted_quad():
    pts = np.array([[30, 60], [80, 10], [20, 30], [90, 40]], dtype=np.float32)

    ordered = order_points_clockwise(pts)

    np.testing.assert_array_equal(ordered, [[20, 30], [80, 10], [90, 40], [30, 60]])


def test_get_mini_boxes_axis_aligned_contour():
    contour = np.array([[[10, 5]], [[10, 25]], [[60, 25]], [[60, 5]]], dtype=np.int32)

    box, short_side = get_mini_boxes(contour)

    assert short_side == pytest.approx(20.0)
    np.testing.assert_allclose(box, [[10, 5], [60, 5], [60, 25], [10, 25]], atol=1e-3)


def test_polygon_area_and_perimeter():
    square = [[0, 0], [10, 0], [10, 10], [0, 10]]

    assert polygon_area(square) == pytest.approx(100.0)
    assert polygon_perimeter(square) == pytest.approx(40.0)


def test_unclip_zero_ratio_is_congruent():
    box = np.array([[10, 10], [50, 10], [50, 30], [10, 30]])

    paths = unclip(box, 0.0)

    assert len(paths) == 1
    assert sorted(map(tuple, paths[0])) == sorted(map(tuple, box.tolist()))


def test_unclip_expands_by_area_over_perimeter():
    box = np.array([[10, 10], [50, 10], [50, 30], [10, 30]])

    paths = unclip(box, 1.5)

    # distance = 1.5 * 800 / 120 = 10
    expanded = np.array(paths[0])
    assert expanded[:, 0].min() == pytest.approx(0, abs=1)
    assert expanded[:, 0].max() == pytest.approx(60, abs=1)
    assert expanded[:, 1].min() == pytest.approx(0, abs=1)
    assert expanded[:, 1].max() == pytest.approx(40, abs=1)


def test_unclip_degenerate_polygon_returns_nothing():
    box = np.array([[5, 5], [5, 5], [5, 5], [5, 5]])

    assert unclip(box, 1.5) == []


def test_clip_points_clamps_to_image():
    pts = np.array([[-5, 3], [120, -1], [99, 60], [0, 49]])

    clipped = clip_points(pts, img_height=50, img_width=100)

    np.testing.assert_array_equal(clipped, [[0, 3], [99, 0], [99, 49], [0, 49]])
    assert pts[0, 0] == -5


def test_crop_size_and_bounds():
    box = np.array([[20, 30], [80, 10], [90, 40], [30, 60]])

    assert crop_size(box) == (63, 31)
    assert bounding_rect(box) == (20, 10, 90, 60)
    assert distance((0, 0), (3, 4)) == pytest.approx(5.0)
