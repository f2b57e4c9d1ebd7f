"""
Tests for the combined app state: mode changes, auto-level wiring and resets.
"""

import math

import pytest

from speedwall.app_state import AppMode, AppState
from speedwall.motion_filter import MotionManager, MotionSample, ReplayMotionSource
from speedwall.scale_calibrator import CalibrationError


def make_state(samples=None, units="m"):
    source = ReplayMotionSource(samples if samples is not None else
                                [MotionSample(math.sin(0.3), -math.cos(0.3))])
    state = AppState(motion=MotionManager(source), screen_size=(400, 800), units=units)
    return state, source


def calibrate(state, text="1.0"):
    state.record_tap(0, 0)
    state.record_tap(100, 0)
    return state.confirm_distance_text(text)


class TestCalibrationFlow:
    def test_confirm_distance_text_converts_units(self):
        state, _ = make_state(units="cm")
        assert calibrate(state, "50") == pytest.approx(200.0)
        assert state.is_calibrated()
        assert state.calibrator.known_distance_meters == pytest.approx(0.5)

    def test_bad_text_leaves_state(self):
        state, _ = make_state()
        state.record_tap(0, 0)
        state.record_tap(100, 0)
        with pytest.raises(ValueError):
            state.confirm_distance_text("-1")
        assert not state.is_calibrated()

    def test_coincident_points_rejected(self):
        state, _ = make_state()
        state.record_tap(10, 10)
        state.record_tap(10, 10)
        with pytest.raises(CalibrationError):
            state.confirm_distance_text("1")

    def test_rejected_confirm_keeps_line_label(self):
        state, _ = make_state()
        state.record_tap(10, 10)
        state.record_tap(10, 10)
        with pytest.raises(CalibrationError):
            state.confirm_distance_text("2.5")
        assert state.units.distance_text == "1.0"
        assert state.units.format_distance() == "1.0 m"

    def test_accepted_confirm_updates_line_label(self):
        state, _ = make_state()
        calibrate(state, " 2.5 ")
        assert state.units.format_distance() == "2.5 m"

    def test_wheel_scale_resizes_and_reclamps(self):
        state, _ = make_state()
        calibrate(state)
        state.proceed_to_overlay()
        state.transform.end_drag(10000, 0)
        assert state.scale_overlay(0.5) == 0.5
        # rendered width 150: (400 + 150) / 2 - 100
        assert state.transform.pan_offset[0] == pytest.approx(175.0)
        assert state.scale_overlay(100) == 4.0

    def test_calibration_updates_rendered_size(self):
        state, _ = make_state()
        calibrate(state)
        state.transform.end_drag(10000, 0)
        # rendered width 300: (400 + 300) / 2 - 100
        assert state.transform.pan_offset[0] == pytest.approx(250.0)

    def test_taps_ignored_in_overlay_mode(self):
        state, _ = make_state()
        calibrate(state)
        state.proceed_to_overlay()
        assert not state.record_tap(50, 50)


class TestModes:
    def test_overlay_requires_calibration(self):
        state, _ = make_state()
        assert not state.proceed_to_overlay()
        assert state.mode is AppMode.CALIBRATION

    def test_proceed_places_overlay(self):
        state, _ = make_state()
        calibrate(state)
        assert state.proceed_to_overlay()
        assert state.mode is AppMode.OVERLAY
        assert state.transform.pan_offset[1] == pytest.approx(800 / 3 - 750)

    def test_back_to_calibration_resets_transform(self):
        state, _ = make_state()
        calibrate(state)
        state.proceed_to_overlay()
        state.transform.set_vertical_tilt(15)
        state.transform.toggle_grid()

        state.back_to_calibration()

        assert state.mode is AppMode.CALIBRATION
        assert state.transform.vertical_tilt == 0.0
        assert not state.transform.show_grid
        assert state.is_calibrated()

    def test_reset_calibration_resets_transform(self):
        state, _ = make_state()
        calibrate(state)
        state.transform.set_color((10, 20, 30))
        state.reset_calibration()
        assert state.pixels_per_meter == 0
        assert state.transform.color == (0, 0, 0)


class TestAutoLevel:
    def test_motion_only_runs_in_overlay_mode(self):
        state, _ = make_state()
        calibrate(state)
        state.set_auto_level(True)
        assert not state.motion.active

        state.proceed_to_overlay()
        assert state.motion.active

    def test_samples_drive_auto_level_angle(self):
        state, source = make_state()
        calibrate(state)
        state.proceed_to_overlay()
        state.toggle_auto_level()
        for _ in range(10):
            source.pump()
        assert state.transform.auto_level_angle < 0
        assert state.transform.auto_level_angle == state.motion.roll_correction

    def test_disabling_stops_and_levels(self):
        state, source = make_state()
        calibrate(state)
        state.proceed_to_overlay()
        state.set_auto_level(True)
        source.pump()

        state.set_auto_level(False)
        assert not state.motion.active
        assert state.transform.auto_level_angle == 0.0

    def test_leaving_overlay_stops_motion(self):
        state, source = make_state()
        calibrate(state)
        state.set_auto_level(True)
        state.proceed_to_overlay()
        source.pump()

        state.back_to_calibration()
        assert not state.motion.active
        assert state.motion.smoother.smoothed_roll == 0.0
        assert state.transform.auto_level

    def test_motion_shares_state_lock(self):
        state, _ = make_state()
        assert state.motion.lock is state.lock


class TestPlacement:
    def test_screen_resize_reclamps(self):
        state, _ = make_state()
        calibrate(state)
        state.transform.end_drag(250, 0)
        state.set_screen_size(300, 600)
        assert state.transform.pan_offset[0] == pytest.approx(200.0)

    def test_current_placement_uses_scale(self):
        state, _ = make_state()
        calibrate(state)
        placement = state.current_placement()
        assert placement.rendered_size == pytest.approx((300.0, 1500.0))
