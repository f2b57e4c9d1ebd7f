"""
OverlayRenderer - Composites the tinted wall template onto camera frames.
"""

import logging
import os

import cv2
import numpy as np
from PIL import Image
from pillow_heif import register_heif_opener  # For HEIC template support

register_heif_opener()


LAYER_NAMES = ("overlay", "grid", "labels")
LAYER_EXTENSIONS = (".png", ".heic", ".heif", ".jpg", ".jpeg")


def load_layer_mask(path):
    """
    Load a template layer as a coverage mask.

    Layers are drawn as templates: only their shape is used and the
    overlay color fills it. RGBA images use their alpha channel; opaque
    images use darkness (black = fully covered).

    Returns:
        numpy uint8 array (H, W)
    """
    pil_image = Image.open(path)
    if pil_image.mode in ("RGBA", "LA") or "transparency" in pil_image.info:
        return np.array(pil_image.convert("RGBA"))[:, :, 3]
    return 255 - np.array(pil_image.convert("L"))


class OverlayRenderer:
    """
    Holds the template layer masks and draws them over a frame.

    The "overlay" (holds) layer is always drawn; "grid" and "labels" follow
    the transform's visibility toggles.
    """

    def __init__(self, layers=None):
        self.layers = dict(layers or {})

    @classmethod
    def from_directory(cls, directory):
        layers = {}
        for name in LAYER_NAMES:
            for ext in LAYER_EXTENSIONS:
                path = os.path.join(directory, name + ext)
                if os.path.exists(path):
                    layers[name] = load_layer_mask(path)
                    break
            else:
                logging.warning(f"Template layer '{name}' not found in {directory}")
        return cls(layers)

    def template_size(self):
        """(width, height) of the template layers, or None if none loaded"""
        for mask in self.layers.values():
            return mask.shape[1], mask.shape[0]
        return None

    def visible_layers(self, transform):
        visible = {"overlay": True, "grid": transform.show_grid, "labels": transform.show_labels}
        return [self.layers[name] for name in LAYER_NAMES
                if name in self.layers and visible[name]]

    def combined_mask(self, transform):
        """Union of the visible layers as one mask"""
        masks = self.visible_layers(transform)
        if not masks:
            return None
        combined = masks[0].copy()
        for mask in masks[1:]:
            combined = np.maximum(combined, mask)
        return combined

    def render(self, frame_rgb, transform, placement):
        """
        Composite the overlay onto a frame.

        Args:
            frame_rgb: numpy array in RGB format, sized to the screen
            transform: OverlayTransform (color and layer toggles)
            placement: OverlayPlacement whose matrix maps template pixels
                to frame pixels

        Returns:
            New RGB numpy array
        """
        mask = self.combined_mask(transform)
        if mask is None or frame_rgb is None:
            return frame_rgb

        h, w = frame_rgb.shape[:2]
        warped = cv2.warpPerspective(mask, placement.matrix.astype(np.float64), (w, h),
                                     flags=cv2.INTER_LINEAR,
                                     borderMode=cv2.BORDER_CONSTANT, borderValue=0)

        alpha = (warped.astype(np.float32) / 255.0)[:, :, np.newaxis]
        color = np.array(transform.color, dtype=np.float32).reshape(1, 1, 3)
        blended = frame_rgb.astype(np.float32) * (1.0 - alpha) + color * alpha
        return blended.clip(0, 255).astype(np.uint8)
