"""
Tests for overlay placement: scale, pan clamping, rotation and tilt.
"""

import itertools
import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from speedwall.overlay_transform import (
    MAX_USER_SCALE,
    MIN_USER_SCALE,
    OVERLAY_MARGIN,
    TILT_LIMIT_DEG,
    OverlayTransform,
    project_points,
)


SCREEN = (400.0, 800.0)
PPM = 100.0  # wall renders at 300 x 1500


def make_transform():
    transform = OverlayTransform(SCREEN)
    transform.rendered_size(PPM)
    return transform


def overlap(low, high, screen_extent):
    return min(high, screen_extent) - max(low, 0.0)


class TestSizing:
    def test_rendered_size(self):
        transform = OverlayTransform(SCREEN)
        assert transform.rendered_size(PPM) == (300.0, 1500.0)

    def test_centered_placement(self):
        placement = make_transform().placement(PPM)
        assert_allclose(placement.corners, [[50, -350], [350, -350], [350, 1150], [50, 1150]], atol=1e-9)
        assert placement.rendered_size == (300.0, 1500.0)

    def test_template_scaling(self):
        placement = make_transform().placement(PPM, template_size=(600, 3000))
        assert_allclose(placement.corners[2], [350, 1150], atol=1e-9)


class TestPan:
    def test_drag_in_flight_is_not_committed(self):
        transform = make_transform()
        transform.begin_drag()
        transform.update_drag(30, -20)
        assert transform.pan_offset == [0.0, 0.0]
        assert transform.effective_offset() == (30.0, -20.0)

        placement = transform.placement(PPM)
        assert_allclose(placement.corners[0], [80, -370], atol=1e-9)

    def test_end_drag_commits(self):
        transform = make_transform()
        transform.begin_drag()
        transform.update_drag(30, -20)
        transform.end_drag()
        transform.begin_drag()
        transform.end_drag(10, 10)
        assert transform.pan_offset == [40.0, -10.0]
        assert transform.drag_offset == [0.0, 0.0]
        assert not transform.dragging

    def test_clamp_limits(self):
        transform = make_transform()
        transform.end_drag(1000, -5000)
        # (400 + 300) / 2 - 100 and (800 + 1500) / 2 - 100
        assert transform.pan_offset == [250.0, -1050.0]

    def test_clamp_keeps_margin_on_screen(self):
        transform = make_transform()
        width, height = SCREEN
        for dx, dy in itertools.product([-5000, -400, -120, 0, 90, 700, 5000], repeat=2):
            transform.reset()
            transform.end_drag(dx, dy)
            left, top, right, bottom = transform.visible_bounds()
            assert overlap(left, right, width) >= OVERLAY_MARGIN - 1e-9
            assert overlap(top, bottom, height) >= OVERLAY_MARGIN - 1e-9

    def test_screen_resize_reclamps(self):
        transform = make_transform()
        transform.end_drag(1000, 0)
        transform.set_screen_size(300, 600)
        assert transform.pan_offset[0] == pytest.approx(200.0)

    def test_tiny_screen_centers(self):
        transform = OverlayTransform((50, 50), wall_size=(0.5, 0.5))
        transform.rendered_size(100)
        transform.end_drag(80, -80)
        assert transform.pan_offset == [0.0, 0.0]

    def test_place_initial(self):
        transform = make_transform()
        transform.place_initial(PPM)
        assert transform.pan_offset[0] == 0.0
        assert transform.pan_offset[1] == pytest.approx(800 / 3 - 750)


class TestRotation:
    def test_auto_level_rotates_about_screen_center(self):
        transform = make_transform()
        transform.auto_level = True
        transform.set_auto_level_angle(math.pi / 2)
        placement = transform.placement(PPM)
        # Top-left (-150, -750) from center turns to (750, -150)
        assert_allclose(placement.corners[0], [950, 250], atol=1e-6)

    def test_auto_level_angle_ignored_when_disabled(self):
        transform = make_transform()
        transform.set_auto_level_angle(0.4)
        placement = transform.placement(PPM)
        assert_allclose(placement.corners[0], [50, -350], atol=1e-9)


class TestTilt:
    def test_tilt_is_clamped(self):
        transform = make_transform()
        transform.set_horizontal_tilt(60)
        transform.set_vertical_tilt(-90)
        assert transform.horizontal_tilt == 45.0
        assert transform.vertical_tilt == -45.0

    def test_tilt_reset(self):
        transform = make_transform()
        transform.set_horizontal_tilt(12.5)
        transform.set_vertical_tilt(-7)
        transform.reset_horizontal_tilt()
        transform.reset_vertical_tilt()
        assert transform.horizontal_tilt == 0.0
        assert transform.vertical_tilt == 0.0

    def test_center_is_fixed_under_tilt(self):
        transform = make_transform()
        transform.set_horizontal_tilt(30)
        transform.set_vertical_tilt(-20)
        placement = transform.placement(PPM)
        assert_allclose(project_points(placement.matrix, [(150, 750)])[0], [200, 400], atol=1e-9)

    def test_horizontal_tilt_adds_perspective(self):
        transform = make_transform()
        transform.set_horizontal_tilt(20)
        tl, tr, br, bl = transform.placement(PPM).corners
        left_height = bl[1] - tl[1]
        right_height = br[1] - tr[1]
        assert not np.isclose(left_height, right_height)

    def test_vertical_tilt_adds_perspective(self):
        transform = make_transform()
        transform.set_vertical_tilt(20)
        tl, tr, br, bl = transform.placement(PPM).corners
        assert not np.isclose(tr[0] - tl[0], br[0] - bl[0])

    @pytest.mark.parametrize("tilt", [TILT_LIMIT_DEG, -TILT_LIMIT_DEG])
    @pytest.mark.parametrize("drag", [(0, 5000), (0, -5000), (5000, 0), (-5000, 0),
                                      (5000, 5000), (-5000, -5000)])
    def test_full_tilt_keeps_corners_in_front_when_panned(self, tilt, drag):
        # Small wall on a tall screen, so the clamp allows panning far off center
        transform = OverlayTransform(SCREEN)
        transform.rendered_size(10)
        transform.end_drag(*drag)
        transform.set_horizontal_tilt(tilt)
        transform.set_vertical_tilt(tilt)

        placement = transform.placement(10)
        width, height = placement.rendered_size
        corners = np.array([[0, 0, 1], [width, 0, 1], [width, height, 1], [0, height, 1]], dtype=float)
        w = (corners @ placement.matrix.T)[:, 2]
        assert (w > 0).all()

    def test_vertical_tilt_at_bottom_clamp(self):
        transform = OverlayTransform(SCREEN)
        transform.rendered_size(10)
        transform.end_drag(0, 5000)
        assert transform.pan_offset[1] == pytest.approx(375.0)
        transform.set_vertical_tilt(45)

        tl, tr, br, bl = transform.placement(10).corners
        # Bottom edge stays below the top edge and keeps its orientation
        assert bl[1] > tl[1]
        assert br[0] > bl[0]


class TestUserScale:
    def test_scale_multiplies_rendered_size(self):
        transform = make_transform()
        transform.end_scale(PPM, 2.0)
        assert transform.user_scale == 2.0
        assert transform.rendered_size(PPM) == (600.0, 3000.0)

    def test_pinch_in_flight_is_not_committed(self):
        transform = make_transform()
        transform.begin_scale()
        transform.update_scale(1.5)
        assert transform.user_scale == 1.0
        assert transform.placement(PPM).rendered_size == (450.0, 2250.0)

    def test_pinches_accumulate(self):
        transform = make_transform()
        transform.end_scale(PPM, 2.0)
        transform.begin_scale()
        transform.end_scale(PPM, 0.75)
        assert transform.user_scale == pytest.approx(1.5)
        assert transform.pinch_scale == 1.0

    def test_scale_is_bounded(self):
        transform = make_transform()
        transform.end_scale(PPM, 10.0)
        assert transform.user_scale == MAX_USER_SCALE
        transform.set_scale(PPM, 0.01)
        assert transform.user_scale == MIN_USER_SCALE

    def test_shrinking_reclamps_pan(self):
        transform = make_transform()
        transform.end_drag(1000, 0)
        assert transform.pan_offset[0] == 250.0
        transform.end_scale(PPM, 0.5)
        # (400 + 150) / 2 - 100
        assert transform.pan_offset[0] == pytest.approx(175.0)

    def test_scale_keeps_screen_center_fixed(self):
        transform = make_transform()
        transform.set_scale(PPM, 2.0)
        placement = transform.placement(PPM, template_size=(300, 1500))
        assert_allclose(project_points(placement.matrix, [(150, 750)])[0], [200, 400], atol=1e-9)
        assert_allclose(placement.corners[0], [-100, -1100], atol=1e-9)


class TestReset:
    def test_reset_restores_defaults(self):
        transform = make_transform()
        transform.auto_level = True
        transform.end_drag(40, 40)
        transform.set_horizontal_tilt(10)
        transform.set_auto_level_angle(0.2)
        transform.set_color((255, 0, 0))
        transform.toggle_grid()
        transform.toggle_labels()
        transform.set_scale(PPM, 1.5)

        transform.reset()

        assert transform.pan_offset == [0.0, 0.0]
        assert transform.user_scale == 1.0
        assert transform.horizontal_tilt == 0.0
        assert transform.auto_level_angle == 0.0
        assert transform.color == (0, 0, 0)
        assert not transform.show_grid
        assert not transform.show_labels
        assert transform.auto_level
