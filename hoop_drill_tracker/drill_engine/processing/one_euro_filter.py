# hoop_drill_tracker/drill_engine/processing/one_euro_filter.py
import numpy as np
from typing import Dict
from ..common.models import LandmarkPoint, PoseFrame

class OneEuroFilter:
    """
    A vectorized One-Euro filter for smoothing signal data (like pose landmarks).
    Timestamps are in seconds.
    """
    def __init__(self, min_cutoff=0.5, beta=0.05, d_cutoff=1.0):
        self.min_cutoff = min_cutoff
        self.beta = beta
        self.d_cutoff = d_cutoff
        self.x_prev = None
        self.dx_prev = None
        self.t_prev = None

    def _smoothing_factor(self, te, cutoff):
        r = 2 * np.pi * cutoff * te
        return r / (r + 1)

    def __call__(self, x, t):
        x = np.asarray(x, dtype=float)
        if self.t_prev is None:
            self.t_prev = t
            self.x_prev = x
            self.dx_prev = np.zeros_like(x)
            return x

        te = t - self.t_prev

        # Duplicate or out-of-order timestamp
        if te < 1e-6:
            return self.x_prev

        alpha_d = self._smoothing_factor(te, self.d_cutoff)
        dx = (x - self.x_prev) / te
        dx_hat = alpha_d * dx + (1 - alpha_d) * self.dx_prev

        cutoff = self.min_cutoff + self.beta * np.abs(dx_hat)
        alpha = self._smoothing_factor(te, cutoff)
        x_hat = alpha * x + (1 - alpha) * self.x_prev

        self.x_prev = x_hat
        self.dx_prev = dx_hat
        self.t_prev = t

        return x_hat

class LandmarkSmoother:
    """
    Smooths the x/y/z of every landmark in a PoseFrame with its own filter.

    A landmark that drops out loses its filter, so it restarts unsmoothed
    when it reappears instead of sliding in from a stale position.
    """
    def __init__(self, min_cutoff=0.5, beta=0.05, d_cutoff=1.0):
        self._params = dict(min_cutoff=min_cutoff, beta=beta, d_cutoff=d_cutoff)
        self._filters: Dict[int, OneEuroFilter] = {}

    def __call__(self, frame: PoseFrame) -> PoseFrame:
        t = frame.timestamp_ms / 1000.0
        for key in list(self._filters):
            if key not in frame.landmarks:
                del self._filters[key]

        smoothed = {}
        for key, point in frame.landmarks.items():
            f = self._filters.setdefault(key, OneEuroFilter(**self._params))
            x, y, z = f(np.array([point.x, point.y, point.z]), t)
            smoothed[key] = LandmarkPoint(x=float(x), y=float(y), z=float(z), confidence=point.confidence)
        return frame.model_copy(update={"landmarks": smoothed})
