"""
ScaleCalibrator - Manages the two-tap calibration workflow for pixels-per-meter.
"""

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Tuple, Union

import numpy as np


# Point pairs closer than this (in screen pixels) cannot define a scale
MIN_PIXEL_DISTANCE = 1.0


class CalibrationError(ValueError):
    """Raised when a distance cannot be confirmed"""


@dataclass
class CalibrationPoint:
    """A calibration point tapped by the user"""
    screen_position: Tuple[float, float]
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class WaitingForFirstPoint:
    pass


@dataclass(frozen=True)
class WaitingForSecondPoint:
    first: CalibrationPoint


@dataclass(frozen=True)
class WaitingForDistance:
    first: CalibrationPoint
    second: CalibrationPoint


@dataclass(frozen=True)
class Complete:
    first: CalibrationPoint
    second: CalibrationPoint


CalibrationState = Union[WaitingForFirstPoint, WaitingForSecondPoint,
                         WaitingForDistance, Complete]


def pixel_distance(p1, p2):
    """Euclidean distance between two (x, y) screen positions"""
    return float(np.sqrt((p2[0] - p1[0])**2 + (p2[1] - p1[1])**2))


class ScaleCalibrator:
    """
    Handles scale calibration for converting meters to screen pixels.

    The user taps two points on a feature of known length, then enters
    that length. The pixel distance between the taps divided by the
    length in meters gives pixels-per-meter. Once complete, either point
    (or the whole line) can be dragged and the scale is recomputed from
    the already-known length.

    Taps outside the tap-collecting states are ignored; the UI is expected
    to block them rather than have them rejected here.
    """

    def __init__(self):
        """Initialize the scale calibrator"""
        self.state = WaitingForFirstPoint()
        self.known_distance_meters = 1.0
        self.pixels_per_meter = 0.0
        self._listeners = []

    # Change notification

    def subscribe(self, callback):
        """Register callback(calibrator) to run after every state change"""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def unsubscribe(self, callback):
        """Remove a previously registered callback"""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self):
        for callback in list(self._listeners):
            callback(self)

    # Queries

    def is_complete(self):
        """Check if the distance has been confirmed"""
        return isinstance(self.state, Complete)

    def is_calibrated(self):
        """Check if scale has been successfully calibrated"""
        return self.is_complete() and self.pixels_per_meter > 0

    def get_points(self):
        """Get the CalibrationPoint objects placed so far (0, 1 or 2)"""
        if isinstance(self.state, WaitingForSecondPoint):
            return [self.state.first]
        if isinstance(self.state, (WaitingForDistance, Complete)):
            return [self.state.first, self.state.second]
        return []

    @property
    def calibration_points(self):
        """Screen positions of the placed points"""
        return [point.screen_position for point in self.get_points()]

    def get_point_count(self):
        """Get number of points placed"""
        return len(self.get_points())

    def calculate_pixel_distance(self):
        """
        Calculate the pixel distance between the two calibration points.

        Returns:
            float: Euclidean distance in pixels, or None if not enough points
        """
        points = self.calibration_points
        if len(points) != 2:
            return None
        return pixel_distance(points[0], points[1])

    def get_point_near(self, x, y, threshold=17):
        """
        Find if there's a calibration point near the given coordinates.

        Args:
            x: X coordinate to check
            y: Y coordinate to check
            threshold: Maximum distance in pixels

        Returns:
            int: Index of point (0 or 1), or None if no point nearby
        """
        for i, position in enumerate(self.calibration_points):
            if pixel_distance((x, y), position) <= threshold:
                return i
        return None

    # Workflow

    def record_tap(self, x, y):
        """
        Record a tap during calibration.

        Returns:
            bool: True if the tap placed a point, False if it was ignored
        """
        point = CalibrationPoint((float(x), float(y)))

        if isinstance(self.state, WaitingForFirstPoint):
            self.state = WaitingForSecondPoint(point)
        elif isinstance(self.state, WaitingForSecondPoint):
            self.state = WaitingForDistance(self.state.first, point)
        else:
            return False

        self._notify()
        return True

    def confirm_distance(self, meters):
        """
        Set the real-world distance between the points and complete calibration.

        Confirming again while complete replaces the known distance.

        Args:
            meters: Real-world distance in meters, must be positive

        Returns:
            float: The calculated pixels per meter

        Raises:
            CalibrationError: If fewer than two points exist, the distance is
                not positive, or the points coincide. State is unchanged.
        """
        if not isinstance(self.state, (WaitingForDistance, Complete)):
            raise CalibrationError("Need exactly 2 points to set scale")

        meters = float(meters)
        if not meters > 0 or meters == float("inf"):
            raise CalibrationError("Distance must be positive")

        distance = self.calculate_pixel_distance()
        if distance < MIN_PIXEL_DISTANCE:
            raise CalibrationError("Calibration points are too close together")

        self.known_distance_meters = meters
        self.pixels_per_meter = distance / meters
        self.state = Complete(self.state.first, self.state.second)

        logging.info(f"Calibration complete: {self.pixels_per_meter:.2f} pixels/meter")
        self._notify()
        return self.pixels_per_meter

    def update_point_position(self, index, x, y):
        """
        Move a calibration point and recalculate pixels per meter.

        Only allowed once calibration is complete.

        Args:
            index: 0 for the first point, 1 for the second
            x: New X coordinate
            y: New Y coordinate

        Returns:
            bool: True if the point was moved
        """
        if not isinstance(self.state, Complete) or index not in (0, 1):
            return False

        first, second = self.state.first, self.state.second
        if index == 0:
            first = replace(first, screen_position=(float(x), float(y)))
        else:
            second = replace(second, screen_position=(float(x), float(y)))
        self.state = Complete(first, second)

        self._recalculate()
        self._notify()
        return True

    def translate_points(self, dx, dy):
        """
        Move both calibration points by the same offset (line drag).

        Returns:
            bool: True if the points were moved
        """
        if not isinstance(self.state, Complete):
            return False

        first, second = self.state.first, self.state.second
        self.state = Complete(
            replace(first, screen_position=(first.screen_position[0] + dx,
                                            first.screen_position[1] + dy)),
            replace(second, screen_position=(second.screen_position[0] + dx,
                                             second.screen_position[1] + dy)))

        self._recalculate()
        self._notify()
        return True

    def _recalculate(self):
        distance = self.calculate_pixel_distance()
        if distance < MIN_PIXEL_DISTANCE or self.known_distance_meters <= 0:
            # Dragged onto each other: no usable scale until moved apart
            self.pixels_per_meter = 0.0
        else:
            self.pixels_per_meter = distance / self.known_distance_meters

    def reset(self):
        """Reset all calibration data"""
        self.state = WaitingForFirstPoint()
        self.pixels_per_meter = 0.0
        self._notify()
