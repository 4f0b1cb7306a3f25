# hoop_drill_tracker/drill_engine/common/models.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Tuple, Dict
from .enums import BallSide, DrillState

class FrameMetadata(BaseModel):
    """Metadata associated with a single camera frame."""
    frame_id: int
    timestamp_ms: int
    source_resolution: Tuple[int, int]
    rotation_degrees: int = 0
    is_front_camera: bool = False

class LandmarkPoint(BaseModel):
    """A single body keypoint in frame pixel space."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    z: float = 0.0
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)

class PoseFrame(BaseModel):
    """
    One sampled instant of a single detected body.

    A landmark that was not detected has no key in `landmarks`; coordinates
    are never filled with a placeholder.
    """
    model_config = ConfigDict(frozen=True)

    timestamp_ms: int
    width: int = Field(ge=0)
    height: int = Field(ge=0)
    rotation_degrees: int = 0
    is_front_camera: bool = False
    landmarks: Dict[int, LandmarkPoint] = Field(default_factory=dict)

    @field_validator("rotation_degrees")
    @classmethod
    def _check_rotation(cls, value: int) -> int:
        if value not in (0, 90, 180, 270):
            raise ValueError(f"rotation must be one of 0/90/180/270, got {value}")
        return value

    def point(self, landmark: int) -> Optional[LandmarkPoint]:
        return self.landmarks.get(int(landmark))

class BallObservation(BaseModel):
    """Bounding circle of the ball for one frame."""
    model_config = ConfigDict(frozen=True)

    center_x: float
    center_y: float
    radius: float = Field(ge=0.0)
    confidence: float = Field(ge=0.0, le=1.0)
    timestamp_ms: int

class DrillMetrics(BaseModel):
    """Running counters for a session. Each consume call yields a new snapshot."""
    model_config = ConfigDict(frozen=True)

    rep_count: int = 0
    hops: int = 0
    stance_cue: Optional[str] = None
    lateral_distance_px: float = 0.0
    pound_low: int = 0
    pound_hip: int = 0
    pound_high: int = 0
    crossover_count: int = 0
    elapsed_ms: int = 0
    debug_text: str = ""

class SessionSummary(BaseModel):
    """Frozen end-of-session snapshot."""
    model_config = ConfigDict(frozen=True)

    duration_ms: int
    reps: int
    hops: int
    crossover_count: int
    low_dribbles: int
    hip_dribbles: int
    high_dribbles: int

    @classmethod
    def from_metrics(cls, metrics: DrillMetrics) -> "SessionSummary":
        return cls(
            duration_ms=metrics.elapsed_ms,
            reps=metrics.rep_count,
            hops=metrics.hops,
            crossover_count=metrics.crossover_count,
            low_dribbles=metrics.pound_low,
            hip_dribbles=metrics.pound_hip,
            high_dribbles=metrics.pound_high,
        )

class EngineState(BaseModel):
    """
    Everything the drill engine carries from one frame to the next.

    Threaded through `step()`; a fresh instance is a fresh session.
    """
    model_config = ConfigDict(frozen=True)

    drill_state: DrillState = DrillState.READY
    metrics: DrillMetrics = Field(default_factory=DrillMetrics)
    started_at_ms: Optional[int] = None
    previous_mid_hip_x: Optional[float] = None
    previous_hip_y: Optional[float] = None
    previous_vertical_y: Optional[float] = None
    previous_timestamp_ms: Optional[int] = None
    previous_vertical_velocity: float = 0.0
    previous_ball_side: BallSide = BallSide.UNKNOWN
    summary: Optional[SessionSummary] = None
