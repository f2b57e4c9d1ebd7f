"""
Motion smoothing for auto-level: turns noisy gravity samples into a stable
roll correction angle, plus the motion sources that feed it.
"""

import csv
import logging
import math
import threading
import time
from dataclasses import dataclass, field


@dataclass
class MotionSample:
    """Gravity vector in device coordinates (units of g)"""
    gravity_x: float
    gravity_y: float
    gravity_z: float = 0.0
    timestamp: float = field(default_factory=time.time)


class MotionSmoother:
    """
    Low-pass filter from device gravity to overlay roll correction.

    Each sample gives a raw roll angle relative to upright, clamped to
    +/-45 degrees. The angle is scaled by a confidence ramp based on how
    much of gravity lies in the screen plane, so a phone held face up or
    face down fades the correction toward zero. The result is blended into
    the running value with an angle-aware exponential moving average.
    """

    SMOOTHING = 0.15             # EMA factor per sample
    CLAMP_LIMIT = math.pi / 4    # +/-45 deg
    CONFIDENCE_FLOOR = 0.25      # in-plane magnitude with zero confidence
    CONFIDENCE_RANGE = 0.4       # full confidence at floor + range

    def __init__(self, smoothing=SMOOTHING):
        self.smoothing = smoothing
        self.smoothed_roll = 0.0

    @property
    def roll_correction(self):
        """Correction angle in radians, opposite to the device roll"""
        return -self.smoothed_roll

    @staticmethod
    def raw_angle(gravity_x, gravity_y):
        """Roll of gravity relative to upright"""
        return math.atan2(gravity_x, -gravity_y)

    @classmethod
    def confidence(cls, gravity_x, gravity_y):
        """0..1 ramp on the in-plane gravity magnitude"""
        screen_mag = math.sqrt(gravity_x * gravity_x + gravity_y * gravity_y)
        return max(0.0, min(1.0, (screen_mag - cls.CONFIDENCE_FLOOR) / cls.CONFIDENCE_RANGE))

    @classmethod
    def target_angle(cls, gravity_x, gravity_y):
        """Clamped raw angle faded by confidence"""
        raw = cls.raw_angle(gravity_x, gravity_y)
        clamped = max(-cls.CLAMP_LIMIT, min(cls.CLAMP_LIMIT, raw))
        return clamped * cls.confidence(gravity_x, gravity_y)

    def process(self, sample):
        """
        Blend one sample into the filter.

        Args:
            sample: MotionSample

        Returns:
            float: The updated roll correction in radians
        """
        target = self.target_angle(sample.gravity_x, sample.gravity_y)

        # Shortest path across the +/-pi seam
        delta = target - self.smoothed_roll
        if delta > math.pi:
            delta -= 2 * math.pi
        if delta < -math.pi:
            delta += 2 * math.pi
        self.smoothed_roll += delta * self.smoothing

        return self.roll_correction

    def reset(self):
        """Return the filter to level"""
        self.smoothed_roll = 0.0


class NullMotionSource:
    """Motion source for hosts without a motion sensor"""

    def is_available(self):
        return False

    def start(self, callback):
        logging.warning("Device motion is not available; auto-level is inactive")

    def stop(self):
        pass


class ReplayMotionSource:
    """
    Replays gravity samples recorded in a CSV log.

    Each row is "gx,gy,gz"; rows that do not parse (such as a header) are
    skipped. The host calls pump() on its own timer (about 60 Hz), which
    delivers the next sample to the registered callback and loops at the end.
    """

    def __init__(self, samples):
        self.samples = list(samples)
        self.callback = None
        self._index = 0

    @classmethod
    def from_csv(cls, path):
        samples = []
        with open(path, newline="") as f:
            for row in csv.reader(f):
                try:
                    values = [float(v) for v in row[:3]]
                except ValueError:
                    continue
                if len(values) < 2:
                    continue
                samples.append(MotionSample(*values))
        logging.info(f"Loaded {len(samples)} motion samples from {path}")
        return cls(samples)

    def is_available(self):
        return len(self.samples) > 0

    def is_active(self):
        return self.callback is not None

    def start(self, callback):
        self.callback = callback
        self._index = 0

    def stop(self):
        self.callback = None

    def pump(self):
        """Deliver one sample; returns False when stopped"""
        if self.callback is None or not self.samples:
            return False
        sample = self.samples[self._index % len(self.samples)]
        self._index += 1
        self.callback(sample)
        return True


class MotionManager:
    """
    Starts and stops a motion source and exposes the smoothed correction.

    Samples are processed in whatever thread the source calls back on;
    sources that call back from their own thread are serialized through
    `lock`, which AppState shares with the rest of its state.
    """

    UPDATE_INTERVAL = 1.0 / 60.0

    def __init__(self, source=None, smoother=None, lock=None):
        self.source = source if source is not None else NullMotionSource()
        self.smoother = smoother if smoother is not None else MotionSmoother()
        self.lock = lock if lock is not None else threading.RLock()
        self.active = False
        self._listeners = []

    @property
    def roll_correction(self):
        return self.smoother.roll_correction

    def subscribe(self, callback):
        """Register callback(angle_radians) for every processed sample"""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def unsubscribe(self, callback):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def start(self):
        """Begin sample delivery; no-op if unavailable or already running"""
        if self.active or not self.source.is_available():
            return False
        self.active = True
        self.source.start(self.on_sample)
        logging.info("Motion updates started")
        return True

    def stop(self):
        """Stop sample delivery and level the correction"""
        with self.lock:
            if self.active:
                self.source.stop()
                self.active = False
                logging.info("Motion updates stopped")
            self.smoother.reset()
            for callback in list(self._listeners):
                callback(self.roll_correction)

    def on_sample(self, sample):
        with self.lock:
            if not self.active:
                return
            angle = self.smoother.process(sample)
            for callback in list(self._listeners):
                callback(angle)
