"""
ScreenshotSaver - Writes composited overlay frames to the photo directory.
"""

import logging
import os
from datetime import datetime

from PIL import Image


class ScreenshotSaver:
    """Saves RGB frames as timestamped PNG files"""

    def __init__(self, directory):
        self.directory = directory
        self.last_path = None

    def save(self, image_rgb):
        """
        Save an in-memory image.

        Args:
            image_rgb: numpy array in RGB format

        Returns:
            bool: True on success; False if the image could not be written
        """
        if image_rgb is None:
            return False

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        path = os.path.join(self.directory, f"speedwall_{timestamp}.png")

        try:
            os.makedirs(self.directory, exist_ok=True)
            Image.fromarray(image_rgb).save(path)
        except (OSError, ValueError, TypeError) as e:
            logging.error(f"Screenshot save failed: {e}")
            return False

        self.last_path = path
        logging.info(f"Screenshot saved to {path}")
        return True
