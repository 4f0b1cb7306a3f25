# hoop_drill_tracker/drill_engine/detection/ball_source.py
import math
import cv2
import numpy as np
from typing import Optional
from ..common.config import BallConfig
from ..common.models import BallObservation, FrameMetadata
from .base import BallSource, FailureCallback, NullBallSource

class ColourBallSource(BallSource):
    """
    Finds the ball as the largest blob inside an HSV colour range.

    Confidence is the blob's circularity (4*pi*area / perimeter^2), so a
    clean round ball scores near 1 and smeared or partial blobs score lower.
    """

    def __init__(self, config: BallConfig, on_failure: Optional[FailureCallback] = None):
        super().__init__(on_failure)
        self.config = config
        self._lower = np.array(config.hsv_lower, dtype=np.uint8)
        self._upper = np.array(config.hsv_upper, dtype=np.uint8)
        self._kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (5, 5))

    def detect(self, frame: np.ndarray, metadata: FrameMetadata) -> Optional[BallObservation]:
        try:
            hsv = cv2.cvtColor(frame, cv2.COLOR_BGR2HSV)
            mask = cv2.inRange(hsv, self._lower, self._upper)
            mask = cv2.morphologyEx(mask, cv2.MORPH_OPEN, self._kernel, iterations=2)
            contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        except cv2.error as e:
            self._report_failure(e)
            return None

        if not contours:
            return None

        blob = max(contours, key=cv2.contourArea)
        (cx, cy), radius = cv2.minEnclosingCircle(blob)
        if radius < self.config.min_radius_px:
            return None

        perimeter = cv2.arcLength(blob, True)
        if perimeter <= 0:
            return None
        circularity = 4 * math.pi * cv2.contourArea(blob) / (perimeter * perimeter)

        return BallObservation(
            center_x=float(cx),
            center_y=float(cy),
            radius=float(radius),
            confidence=min(1.0, max(0.0, circularity)),
            timestamp_ms=metadata.timestamp_ms,
        )

def create_ball_source(config: BallConfig, on_failure: Optional[FailureCallback] = None) -> BallSource:
    if config.detector == "colour":
        return ColourBallSource(config, on_failure)
    return NullBallSource(on_failure)
