"""Unit tests for rotated-box geometry helpers."""
import math

import numpy as np
import pytest

from labeler.core.entities import Box
from labeler.utils.geometry import (
    angle_about, box_corners, clamp, contains_point, distance, from_local,
    image_rect_of, polygon_to_box, rotate_point, to_local
)


class TestBasics:

    def test_clamp(self):
        assert clamp(5, 0, 10) == 5
        assert clamp(-1, 0, 10) == 0
        assert clamp(11, 0, 10) == 10

    def test_distance(self):
        assert distance((0, 0), (3, 4)) == 5.0

    def test_rotate_point_quarter_turn(self):
        x, y = rotate_point((1.0, 0.0), 90)
        assert x == pytest.approx(0.0, abs=1e-12)
        assert y == pytest.approx(1.0)

    def test_angle_about_is_clockwise_on_screen(self):
        # +y points down on screen, so straight below the center is +90 degrees
        assert angle_about((0, 0), (0, 10)) == pytest.approx(90.0)
        assert angle_about((0, 0), (10, 0)) == pytest.approx(0.0)


class TestBoxCorners:

    def test_unrotated_corner_order(self, sample_box):
        corners = box_corners(sample_box)
        np.testing.assert_allclose(corners, [[80, 40], [120, 40], [120, 60], [80, 60]])

    def test_quarter_turn_keeps_box_order(self):
        box = Box("r", 0, 50, 50, 20, 10, 90)
        corners = box_corners(box)
        # The box's own top-left swings to the upper right
        np.testing.assert_allclose(corners, [[55, 40], [55, 60], [45, 60], [45, 40]], atol=1e-9)

    def test_rotation_pivots_about_center(self):
        box = Box("r", 0, 30, 70, 16, 8, 33)
        corners = box_corners(box)
        np.testing.assert_allclose(corners.mean(axis=0), [30, 70], atol=1e-9)

    def test_image_rect_of(self, sample_box):
        rect = image_rect_of(sample_box)
        assert (rect.x, rect.y, rect.width, rect.height) == (80, 40, 40, 20)
        assert rect.pivot == (100, 50)


class TestLocalFrame:

    def test_to_local_from_local_inverse(self):
        box = Box("r", 0, 100, 100, 40, 20, 30)
        point = (113.0, 91.0)
        back = from_local(box, to_local(box, point))
        assert back == pytest.approx(point)

    def test_contains_point_respects_rotation(self):
        box = Box("r", 0, 100, 100, 100, 10, 90)
        assert contains_point(box, (100, 140))
        assert not contains_point(box, (140, 100))

    def test_contains_point_margin(self, sample_box):
        assert not contains_point(sample_box, (123, 50))
        assert contains_point(sample_box, (123, 50), margin=4)


class TestPolygonToBox:

    def test_recovers_rotated_box(self):
        original = Box("r", 3, 200, 150, 80, 30, 25)
        rebuilt = polygon_to_box(box_corners(original), class_id=3)
        assert rebuilt.class_id == 3
        assert rebuilt.cx == pytest.approx(200)
        assert rebuilt.cy == pytest.approx(150)
        assert rebuilt.w == pytest.approx(80)
        assert rebuilt.h == pytest.approx(30)
        assert rebuilt.rotation == pytest.approx(25)

    def test_axis_aligned_polygon(self):
        rebuilt = polygon_to_box([[0, 0], [10, 0], [10, 4], [0, 4]])
        assert (rebuilt.cx, rebuilt.cy, rebuilt.w, rebuilt.h) == (5, 2, 10, 4)
        assert math.isclose(rebuilt.rotation, 0.0, abs_tol=1e-12)
