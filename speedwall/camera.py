"""
CameraSession - Live camera capture on a background thread.
"""

import logging
import threading
from enum import Enum

import cv2


class CameraErrorKind(Enum):
    UNAVAILABLE = "unavailable"
    CANNOT_ADD_INPUT = "cannot_add_input"
    CANNOT_ADD_OUTPUT = "cannot_add_output"
    PERMISSION_DENIED = "permission_denied"
    UNKNOWN = "unknown"


CAMERA_ERROR_MESSAGES = {
    CameraErrorKind.UNAVAILABLE: "Camera is not available on this device",
    CameraErrorKind.CANNOT_ADD_INPUT: "Cannot access camera input",
    CameraErrorKind.CANNOT_ADD_OUTPUT: "Cannot configure camera output",
    CameraErrorKind.PERMISSION_DENIED: "Camera permission was denied. Please enable in Settings.",
    CameraErrorKind.UNKNOWN: "An unknown error occurred",
}


class CameraError(Exception):
    """Camera failure with a kind the host can present to the user"""

    def __init__(self, kind):
        self.kind = kind
        super().__init__(CAMERA_ERROR_MESSAGES[kind])


class CameraSession:
    """
    Grabs frames from a cv2.VideoCapture device on a worker thread.

    Only the latest frame (RGB) and the running flag cross the thread
    boundary; the overlay state never does.
    """

    def __init__(self, index=0, capture_factory=cv2.VideoCapture):
        self.index = index
        self.capture_factory = capture_factory
        self.capture = None
        self.error = None
        self._frame = None
        self._frame_lock = threading.Lock()
        self._thread = None
        self._stop_event = threading.Event()

    @property
    def is_running(self):
        return self._thread is not None and self._thread.is_alive()

    def configure(self):
        """
        Open the capture device.

        Raises:
            CameraError: If the device cannot be opened or read
        """
        try:
            capture = self.capture_factory(self.index)
        except cv2.error as e:
            logging.error(f"Camera {self.index} failed to open: {e}")
            self.error = CameraError(CameraErrorKind.CANNOT_ADD_INPUT)
            raise self.error

        if not capture.isOpened():
            logging.error(f"Camera {self.index} is not available")
            self.error = CameraError(CameraErrorKind.UNAVAILABLE)
            raise self.error

        ok, _ = capture.read()
        if not ok:
            capture.release()
            logging.error(f"Camera {self.index} opened but returned no frames")
            self.error = CameraError(CameraErrorKind.CANNOT_ADD_OUTPUT)
            raise self.error

        self.capture = capture
        self.error = None
        logging.info(f"Camera {self.index} configured")

    def start(self):
        """Start grabbing frames; configures the device on first use"""
        if self.is_running:
            return
        if self.capture is None:
            self.configure()
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="camera-session", daemon=True)
        self._thread.start()

    def stop(self):
        """Stop grabbing frames and release the device"""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        if self.capture is not None:
            self.capture.release()
            self.capture = None

    def latest_frame(self):
        """Most recent frame as an RGB numpy array, or None"""
        with self._frame_lock:
            return self._frame

    def _run(self):
        while not self._stop_event.is_set():
            ok, frame_bgr = self.capture.read()
            if not ok:
                logging.warning("Camera read failed; stopping session")
                self.error = CameraError(CameraErrorKind.UNKNOWN)
                # Release the dead device so the next start() reconfigures
                capture, self.capture = self.capture, None
                capture.release()
                break
            frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
            with self._frame_lock:
                self._frame = frame_rgb
