# hoop_drill_tracker/drill_engine/detection/base.py
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional
import numpy as np
from ..common.models import BallObservation, FrameMetadata, PoseFrame

logger = logging.getLogger(__name__)

FailureCallback = Callable[[Exception], None]

class _Source(ABC):
    """Shared failure reporting: detector errors go to a callback, never to the engine."""

    def __init__(self, on_failure: Optional[FailureCallback] = None):
        self._on_failure = on_failure

    def _report_failure(self, error: Exception) -> None:
        logger.warning("%s failed: %s", type(self).__name__, error)
        if self._on_failure is not None:
            self._on_failure(error)

    def close(self):
        pass

class PoseSource(_Source):
    """Turns a raw camera frame into the landmarks of a single body."""

    @abstractmethod
    def detect(self, frame: np.ndarray, metadata: FrameMetadata) -> Optional[PoseFrame]:
        """Returns None when the detector produced no result for this frame."""

class BallSource(_Source):
    """Turns a raw camera frame into an optional ball observation."""

    @abstractmethod
    def detect(self, frame: np.ndarray, metadata: FrameMetadata) -> Optional[BallObservation]:
        """Returns None when no ball is visible, never a placeholder."""

class NullBallSource(BallSource):
    """Ball source for sessions without a ball detector."""

    def detect(self, frame: np.ndarray, metadata: FrameMetadata) -> Optional[BallObservation]:
        return None
