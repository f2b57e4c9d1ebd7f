"""
OverlayTransform - Placement math for the wall template layer.

Composes scale, pan offset, auto-level rotation and the two perspective
tilts into a single homography from template pixels to screen pixels.
"""

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np


# Real-world wall dimensions (meters)
WALL_WIDTH_METERS = 3.0
WALL_HEIGHT_METERS = 15.0

# Minimum overlap between the overlay and every screen edge after a drag
OVERLAY_MARGIN = 100.0

# Tilt slider range and step (degrees)
TILT_LIMIT_DEG = 45.0
TILT_STEP_DEG = 0.5

# Perspective strength of the tilt rotations
PERSPECTIVE = 0.5

# User scale multiplier bounds (pinch / wheel zoom on top of calibration)
MIN_USER_SCALE = 0.25
MAX_USER_SCALE = 4.0

DEFAULT_COLOR = (0, 0, 0)


def translation_matrix(tx, ty):
    return np.array([[1.0, 0.0, tx],
                     [0.0, 1.0, ty],
                     [0.0, 0.0, 1.0]])


def scale_matrix(sx, sy):
    return np.array([[sx, 0.0, 0.0],
                     [0.0, sy, 0.0],
                     [0.0, 0.0, 1.0]])


def rotation_matrix(angle):
    """Planar rotation; positive angles turn clockwise on a y-down screen"""
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[c, -s, 0.0],
                     [s, c, 0.0],
                     [0.0, 0.0, 1.0]])


def tilt_x_matrix(degrees, depth, perspective=PERSPECTIVE):
    """Rotation about the horizontal screen axis, projected back to 2D"""
    theta = math.radians(degrees)
    return np.array([[1.0, 0.0, 0.0],
                     [0.0, math.cos(theta), 0.0],
                     [0.0, -perspective * math.sin(theta) / depth, 1.0]])


def tilt_y_matrix(degrees, depth, perspective=PERSPECTIVE):
    """Rotation about the vertical screen axis, projected back to 2D"""
    phi = math.radians(degrees)
    return np.array([[math.cos(phi), 0.0, 0.0],
                     [0.0, 1.0, 0.0],
                     [perspective * math.sin(phi) / depth, 0.0, 1.0]])


def project_points(matrix, points):
    """Apply a 3x3 homography to an (N, 2) array of points"""
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    homogeneous = np.hstack([pts, np.ones((len(pts), 1))])
    mapped = homogeneous @ matrix.T
    return mapped[:, :2] / mapped[:, 2:3]


def clamp_tilt(degrees):
    return max(-TILT_LIMIT_DEG, min(TILT_LIMIT_DEG, float(degrees)))


def clamp_user_scale(scale):
    return max(MIN_USER_SCALE, min(MAX_USER_SCALE, float(scale)))


@dataclass
class OverlayPlacement:
    """Where the template lands on screen for one frame"""
    matrix: np.ndarray                    # template pixels -> screen pixels
    corners: np.ndarray                   # (4, 2) TL, TR, BR, BL on screen
    rendered_size: Tuple[float, float]    # width, height before rotation


class OverlayTransform:
    """
    Mutable overlay state driven by drag, slider and toggle input.

    The overlay is laid out centered on the screen; pan offsets are
    relative to that centered position.
    """

    def __init__(self, screen_size=(0.0, 0.0),
                 wall_size=(WALL_WIDTH_METERS, WALL_HEIGHT_METERS),
                 margin=OVERLAY_MARGIN):
        self.wall_size = wall_size
        self.margin = margin
        self.screen_size = (float(screen_size[0]), float(screen_size[1]))
        self.auto_level = False
        self._rendered_size = (0.0, 0.0)
        self.reset()

    def reset(self):
        """Restore defaults (auto-level preference is kept)"""
        self.pan_offset = [0.0, 0.0]
        self.drag_offset = [0.0, 0.0]
        self.dragging = False
        self.user_scale = 1.0
        self.pinch_scale = 1.0
        self.horizontal_tilt = 0.0
        self.vertical_tilt = 0.0
        self.auto_level_angle = 0.0
        self.color = DEFAULT_COLOR
        self.show_grid = False
        self.show_labels = False

    # Sizing

    def rendered_size(self, pixels_per_meter):
        """On-screen width and height of the wall at the calibrated and user scale"""
        factor = pixels_per_meter * self.effective_scale()
        width = self.wall_size[0] * factor
        height = self.wall_size[1] * factor
        self._rendered_size = (width, height)
        return width, height

    def set_screen_size(self, width, height):
        """Track screen size changes (rotation, resize) and re-clamp"""
        self.screen_size = (float(width), float(height))
        self.clamp_offset(*self._rendered_size)

    # User scale

    def effective_scale(self):
        """Committed user scale times any in-progress pinch"""
        return self.user_scale * self.pinch_scale

    def begin_scale(self):
        self.pinch_scale = 1.0

    def update_scale(self, factor):
        """Set the in-flight pinch factor (relative to pinch start)"""
        self.pinch_scale = float(factor)

    def end_scale(self, pixels_per_meter, factor=None):
        """Commit the pinch into the user scale, bound it and re-clamp the pan"""
        if factor is not None:
            self.pinch_scale = float(factor)
        self.user_scale = clamp_user_scale(self.user_scale * self.pinch_scale)
        self.pinch_scale = 1.0
        self.clamp_offset(*self.rendered_size(pixels_per_meter))

    def set_scale(self, pixels_per_meter, scale):
        self.user_scale = clamp_user_scale(scale)
        self.pinch_scale = 1.0
        self.clamp_offset(*self.rendered_size(pixels_per_meter))

    # Pan

    def begin_drag(self):
        self.dragging = True
        self.drag_offset = [0.0, 0.0]

    def update_drag(self, dx, dy):
        """Set the in-flight drag translation (relative to drag start)"""
        self.dragging = True
        self.drag_offset = [float(dx), float(dy)]

    def end_drag(self, dx=None, dy=None):
        """Commit the drag into the pan offset and clamp"""
        if dx is not None and dy is not None:
            self.drag_offset = [float(dx), float(dy)]
        self.pan_offset[0] += self.drag_offset[0]
        self.pan_offset[1] += self.drag_offset[1]
        self.drag_offset = [0.0, 0.0]
        self.dragging = False
        self.clamp_offset(*self._rendered_size)

    def effective_offset(self):
        """Accumulated pan plus any in-progress drag"""
        return (self.pan_offset[0] + self.drag_offset[0],
                self.pan_offset[1] + self.drag_offset[1])

    def clamp_offset(self, rendered_width, rendered_height):
        """Keep at least `margin` of the overlay on screen along each axis"""
        screen_width, screen_height = self.screen_size
        max_x = max(0.0, (screen_width + rendered_width) / 2 - self.margin)
        max_y = max(0.0, (screen_height + rendered_height) / 2 - self.margin)
        self.pan_offset[0] = min(max(self.pan_offset[0], -max_x), max_x)
        self.pan_offset[1] = min(max(self.pan_offset[1], -max_y), max_y)

    def place_initial(self, pixels_per_meter):
        """Put the wall's center a third of the way down the screen"""
        rendered_width, rendered_height = self.rendered_size(pixels_per_meter)
        self.pan_offset[1] = self.screen_size[1] / 3 - rendered_height / 2
        self.clamp_offset(rendered_width, rendered_height)

    def visible_bounds(self):
        """Unrotated overlay rectangle (left, top, right, bottom) on screen"""
        rendered_width, rendered_height = self._rendered_size
        ox, oy = self.pan_offset
        cx = self.screen_size[0] / 2 + ox
        cy = self.screen_size[1] / 2 + oy
        return (cx - rendered_width / 2, cy - rendered_height / 2,
                cx + rendered_width / 2, cy + rendered_height / 2)

    # Tilt

    def set_horizontal_tilt(self, degrees):
        self.horizontal_tilt = clamp_tilt(degrees)

    def set_vertical_tilt(self, degrees):
        self.vertical_tilt = clamp_tilt(degrees)

    def reset_horizontal_tilt(self):
        self.horizontal_tilt = 0.0

    def reset_vertical_tilt(self):
        self.vertical_tilt = 0.0

    def set_auto_level_angle(self, radians):
        self.auto_level_angle = float(radians)

    # Layers

    def toggle_grid(self):
        self.show_grid = not self.show_grid
        return self.show_grid

    def toggle_labels(self):
        self.show_labels = not self.show_labels
        return self.show_labels

    def set_color(self, rgb):
        self.color = tuple(int(c) for c in rgb[:3])

    # Placement

    def placement(self, pixels_per_meter, template_size=None):
        """
        Compute the screen placement of the template.

        Args:
            pixels_per_meter: Calibrated scale
            template_size: (width, height) of the template image in pixels;
                defaults to the rendered size (identity scale)

        Returns:
            OverlayPlacement
        """
        rendered_width, rendered_height = self.rendered_size(pixels_per_meter)
        if template_size is None:
            template_size = (rendered_width, rendered_height)
        template_width, template_height = template_size

        sx = rendered_width / template_width if template_width else 0.0
        sy = rendered_height / template_height if template_height else 0.0
        ox, oy = self.effective_offset()
        angle = self.auto_level_angle if self.auto_level else 0.0
        template_corners = [(0, 0), (template_width, 0),
                            (template_width, template_height), (0, template_height)]

        planar = (rotation_matrix(angle)
                  @ translation_matrix(ox, oy)
                  @ translation_matrix(-rendered_width / 2, -rendered_height / 2)
                  @ scale_matrix(sx, sy))

        # Depth must cover the farthest corner from the tilt axes, otherwise
        # a panned overlay crosses w = 0 and projects mirrored.
        extent = np.abs(project_points(planar, template_corners)).max()
        depth = max(rendered_width, rendered_height, extent, 1.0)

        matrix = (translation_matrix(self.screen_size[0] / 2, self.screen_size[1] / 2)
                  @ tilt_y_matrix(self.horizontal_tilt, depth)
                  @ tilt_x_matrix(self.vertical_tilt, depth)
                  @ planar)

        corners = project_points(matrix, template_corners)
        return OverlayPlacement(matrix, corners, (rendered_width, rendered_height))
