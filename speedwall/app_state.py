"""
AppState - Ties calibration, unit entry, overlay transform and motion together.
"""

import logging
import threading
from enum import Enum

from .motion_filter import MotionManager
from .overlay_transform import OverlayTransform
from .scale_calibrator import ScaleCalibrator
from .unit_converter import UnitConverter


class AppMode(Enum):
    CALIBRATION = "calibration"
    OVERLAY = "overlay"


class AppState:
    """
    Main app state container.

    All mutation goes through this object under one lock, so motion
    samples delivered from a sensor thread are serialized with UI input.
    """

    def __init__(self, motion=None, screen_size=(0.0, 0.0), units="m"):
        self.lock = threading.RLock()
        self.mode = AppMode.CALIBRATION
        self.calibrator = ScaleCalibrator()
        self.units = UnitConverter(units)
        self.transform = OverlayTransform(screen_size)
        self.motion = motion if motion is not None else MotionManager()
        self.motion.lock = self.lock

        self.calibrator.subscribe(self._on_calibration_changed)
        self.motion.subscribe(self._on_roll_correction)

    @property
    def pixels_per_meter(self):
        return self.calibrator.pixels_per_meter

    def is_calibrated(self):
        return self.calibrator.is_calibrated()

    def _on_calibration_changed(self, calibrator):
        self.transform.rendered_size(calibrator.pixels_per_meter)

    def _on_roll_correction(self, angle):
        self.transform.set_auto_level_angle(angle)

    # Calibration

    def record_tap(self, x, y):
        with self.lock:
            if self.mode is not AppMode.CALIBRATION:
                return False
            return self.calibrator.record_tap(x, y)

    def confirm_distance_text(self, text=None):
        """
        Parse the distance entry in the selected unit and complete calibration.

        Raises:
            ValueError: For unparsable or non-positive text, or a
                CalibrationError if the points cannot define a scale
        """
        with self.lock:
            if text is None:
                text = self.units.distance_text
            meters = self.units.parse_distance(text, commit=False)
            pixels_per_meter = self.calibrator.confirm_distance(meters)
            self.units.set_distance_text(str(text).strip())
            return pixels_per_meter

    def update_point_position(self, index, x, y):
        with self.lock:
            return self.calibrator.update_point_position(index, x, y)

    def translate_points(self, dx, dy):
        with self.lock:
            return self.calibrator.translate_points(dx, dy)

    def reset_calibration(self):
        with self.lock:
            self.calibrator.reset()
            self.transform.reset()

    # Mode changes

    def proceed_to_overlay(self):
        """Switch to overlay mode; only allowed once calibrated"""
        with self.lock:
            if not self.calibrator.is_calibrated():
                return False
            self.mode = AppMode.OVERLAY
            self.transform.place_initial(self.pixels_per_meter)
            if self.transform.auto_level:
                self.motion.start()
            logging.info("Entered overlay mode")
            return True

    def back_to_calibration(self):
        with self.lock:
            self.mode = AppMode.CALIBRATION
            self.motion.stop()
            self.transform.reset()
            logging.info("Returned to calibration mode")

    # Overlay controls

    def set_auto_level(self, enabled):
        with self.lock:
            self.transform.auto_level = bool(enabled)
            if self.mode is AppMode.OVERLAY:
                if enabled:
                    self.motion.start()
                else:
                    self.motion.stop()

    def toggle_auto_level(self):
        self.set_auto_level(not self.transform.auto_level)
        return self.transform.auto_level

    def scale_overlay(self, factor):
        """Multiply the user overlay scale (wheel zoom), bounded and re-clamped"""
        with self.lock:
            self.transform.set_scale(self.pixels_per_meter, self.transform.user_scale * factor)
            return self.transform.user_scale

    def set_screen_size(self, width, height):
        with self.lock:
            self.transform.rendered_size(self.pixels_per_meter)
            self.transform.set_screen_size(width, height)

    def current_placement(self, template_size=None):
        with self.lock:
            return self.transform.placement(self.pixels_per_meter, template_size)
