"""
SpeedWall library modules - calibration, overlay placement and their collaborators.
"""

from .unit_converter import DistanceUnit, UnitConverter, to_meters
from .scale_calibrator import (
    CalibrationError,
    CalibrationPoint,
    Complete,
    ScaleCalibrator,
    WaitingForDistance,
    WaitingForFirstPoint,
    WaitingForSecondPoint,
)
from .motion_filter import MotionManager, MotionSample, MotionSmoother, NullMotionSource, ReplayMotionSource
from .overlay_transform import OverlayPlacement, OverlayTransform
from .app_state import AppMode, AppState
from .camera import CameraError, CameraErrorKind, CameraSession
from .overlay_renderer import OverlayRenderer
from .screenshot import ScreenshotSaver

__all__ = [
    'DistanceUnit',
    'UnitConverter',
    'to_meters',
    'CalibrationError',
    'CalibrationPoint',
    'Complete',
    'ScaleCalibrator',
    'WaitingForDistance',
    'WaitingForFirstPoint',
    'WaitingForSecondPoint',
    'MotionManager',
    'MotionSample',
    'MotionSmoother',
    'NullMotionSource',
    'ReplayMotionSource',
    'OverlayPlacement',
    'OverlayTransform',
    'AppMode',
    'AppState',
    'CameraError',
    'CameraErrorKind',
    'CameraSession',
    'OverlayRenderer',
    'ScreenshotSaver',
]
