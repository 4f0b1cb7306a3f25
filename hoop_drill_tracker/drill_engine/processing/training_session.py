# hoop_drill_tracker/drill_engine/processing/training_session.py
import logging
import threading
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from ..common.config import DrillThresholds
from ..common.enums import DrillState
from ..common.models import BallObservation, DrillMetrics, PoseFrame, SessionSummary
from .drill_engine import DrillEngine

logger = logging.getLogger(__name__)

class TrainingUiState(BaseModel):
    """What the presentation layer renders for the current frame."""
    model_config = ConfigDict(frozen=True)

    state: DrillState = DrillState.READY
    metrics: DrillMetrics = Field(default_factory=DrillMetrics)
    latest_pose_frame: Optional[PoseFrame] = None
    summary: Optional[SessionSummary] = None

class TrainingSession:
    """
    Feeds frames into a DrillEngine and publishes immutable UI snapshots.

    Frames that arrive while another frame is still being consumed are
    dropped, so the engine never sees overlapping calls.
    """

    def __init__(self, thresholds: Optional[DrillThresholds] = None):
        self._thresholds = thresholds
        self._engine = DrillEngine(thresholds)
        self._busy = threading.Lock()
        self._ui_state = TrainingUiState()
        # Separate from _busy: it is taken exactly when _busy could not be
        self._drop_lock = threading.Lock()
        self._dropped_frames = 0

    @property
    def ui_state(self) -> TrainingUiState:
        return self._ui_state

    @property
    def dropped_frames(self) -> int:
        with self._drop_lock:
            return self._dropped_frames

    def on_pose_frame(self, frame: PoseFrame, ball: Optional[BallObservation] = None) -> bool:
        """Returns False if the frame was dropped because the engine was busy."""
        if not self._busy.acquire(blocking=False):
            with self._drop_lock:
                self._dropped_frames += 1
            logger.debug("Dropped frame at %d ms, engine busy", frame.timestamp_ms)
            return False
        try:
            state, metrics = self._engine.consume(frame, ball)
            self._ui_state = self._ui_state.model_copy(update={
                "state": state,
                "metrics": metrics,
                "latest_pose_frame": frame,
            })
        finally:
            self._busy.release()
        return True

    def end_session(self) -> SessionSummary:
        with self._busy:
            summary = self._engine.finish_session()
            self._ui_state = self._ui_state.model_copy(update={
                "state": DrillState.SUMMARY,
                "summary": summary,
            })
        logger.info("Session ended: %d reps in %.1f s", summary.reps, summary.duration_ms / 1000)
        return summary

    def restart(self) -> None:
        """Discards the current session and starts a fresh engine."""
        with self._busy:
            self._engine = DrillEngine(self._thresholds)
            self._ui_state = TrainingUiState()
        logger.info("Session restarted")
