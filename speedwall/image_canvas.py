"""
ImageCanvas - Helper class for showing frames and calibration marks on a tkinter canvas.
"""

import math
import tkinter as tk

import cv2
import cv3
import numpy as np
from PIL import Image, ImageTk


CALIBRATION_ACCENT = (255, 167, 38)  # RGB orange


class ImageCanvas:
    """
    Helper class to manage display and drag tracking for a canvas.

    Frames are stretched to the canvas, so canvas pixels are the screen
    coordinate space used by calibration and the overlay transform.
    """

    def __init__(self, canvas, canvas_width, canvas_height):
        self.canvas = canvas
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height

        # Drag state
        self.dragging = False
        self.drag_start = None

        # PhotoImage reference (must keep reference to prevent garbage collection)
        self.photo = None

    def update_canvas_size(self, width, height):
        """Update canvas dimensions"""
        self.canvas_width = width
        self.canvas_height = height

    def clear(self):
        """Clear the canvas"""
        self.canvas.delete("all")
        self.photo = None

    def fit_frame(self, image_rgb):
        """Resize a frame to the canvas, or a blank frame if there is none"""
        if image_rgb is None:
            return np.full((self.canvas_height, self.canvas_width, 3), 32, dtype=np.uint8)
        return cv3.resize(image_rgb, self.canvas_width, self.canvas_height)

    def display_image(self, image_rgb, overlay_callback=None):
        """
        Display an image on the canvas

        Args:
            image_rgb: numpy array in RGB format, already canvas-sized
            overlay_callback: optional function(canvas_image) to draw marks
                on the canvas image before display
        """
        canvas_image = image_rgb.copy()

        if overlay_callback:
            overlay_callback(canvas_image)

        # Convert to PhotoImage
        img_pil = Image.fromarray(canvas_image)
        self.photo = ImageTk.PhotoImage(image=img_pil)

        # Update canvas
        self.canvas.delete("all")
        self.canvas.create_image(0, 0, anchor=tk.NW, image=self.photo)

    def start_drag(self, x, y):
        """Start a drag operation"""
        self.dragging = True
        self.drag_start = (x, y)

    def drag_translation(self, x, y):
        """Translation since the drag started, or None if not dragging"""
        if self.dragging and self.drag_start:
            return x - self.drag_start[0], y - self.drag_start[1]
        return None

    def end_drag(self):
        """End drag operation"""
        self.dragging = False
        self.drag_start = None


def draw_calibration(canvas_image, points, label=None):
    """
    Draw calibration markers, the line between them and its distance label.

    Args:
        canvas_image: RGB numpy array to draw on
        points: list of 0-2 (x, y) screen positions
        label: text for the line midpoint (shown once calibration is complete)
    """
    if len(points) == 2:
        (x0, y0), (x1, y1) = points
        cv3.line(canvas_image, int(x0), int(y0), int(x1), int(y1),
                 color=CALIBRATION_ACCENT, t=2)

    for i, (x, y) in enumerate(points):
        cv3.circle(canvas_image, int(x), int(y), 12, color=CALIBRATION_ACCENT, t=1)
        cv3.circle(canvas_image, int(x), int(y), 4, color=CALIBRATION_ACCENT, fill=True)
        cv2.putText(canvas_image, str(i + 1), (int(x) + 14, int(y) - 14),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, CALIBRATION_ACCENT, 1)

    if label and len(points) == 2:
        (x0, y0), (x1, y1) = points
        mid = ((x0 + x1) / 2, (y0 + y1) / 2)
        (text_w, text_h), _ = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, 0.5, 1)
        origin = (int(mid[0] - text_w / 2), int(mid[1] + text_h / 2))
        cv2.rectangle(canvas_image, (origin[0] - 6, origin[1] - text_h - 6),
                      (origin[0] + text_w + 6, origin[1] + 6), CALIBRATION_ACCENT, -1)
        cv2.putText(canvas_image, label, origin, cv2.FONT_HERSHEY_SIMPLEX, 0.5,
                    (255, 255, 255), 1)


def is_near_segment(x, y, points, threshold=12):
    """Check if (x, y) is within threshold pixels of the calibration line midsection"""
    if len(points) != 2:
        return False
    (x0, y0), (x1, y1) = points
    dx, dy = x1 - x0, y1 - y0
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return False
    t = ((x - x0) * dx + (y - y0) * dy) / length_sq
    if t < 0.2 or t > 0.8:
        return False
    px, py = x0 + t * dx, y0 + t * dy
    return math.hypot(x - px, y - py) <= threshold
