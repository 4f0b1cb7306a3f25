# hoop_drill_tracker/drill_engine/processing/drill_engine.py
import logging
from typing import Iterable, Optional, Tuple
from ..common.config import DrillThresholds
from ..common.enums import BallSide, DribbleZone, DrillState, Landmark
from ..common.models import BallObservation, DrillMetrics, EngineState, PoseFrame, SessionSummary
from .geometry import angle_by_law_of_cosines, distance, velocity

logger = logging.getLogger(__name__)

REQUIRED_LANDMARKS = (
    Landmark.NOSE,
    Landmark.LEFT_HIP,
    Landmark.RIGHT_HIP,
    Landmark.LEFT_KNEE,
    Landmark.RIGHT_KNEE,
)

STAY_LOW_CUE = "Stay Low"
WAITING_TEXT = "Waiting for full body in frame"

DEFAULT_THRESHOLDS = DrillThresholds()

def is_user_in_frame(frame: PoseFrame) -> bool:
    return all(frame.point(lm) is not None for lm in REQUIRED_LANDMARKS)

def _mean(values: Iterable[Optional[float]]) -> Optional[float]:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)

def _pair_mean_y(frame: PoseFrame, first: Landmark, second: Landmark) -> Optional[float]:
    """Mean y of two landmarks, or None unless both are present."""
    one, two = frame.point(first), frame.point(second)
    if one is None or two is None:
        return None
    return (one.y + two.y) / 2.0

def knee_angle(frame: PoseFrame, left: bool) -> Optional[float]:
    """Hip-knee-ankle interior angle at the knee for one side."""
    if left:
        hip, knee, ankle = Landmark.LEFT_HIP, Landmark.LEFT_KNEE, Landmark.LEFT_ANKLE
    else:
        hip, knee, ankle = Landmark.RIGHT_HIP, Landmark.RIGHT_KNEE, Landmark.RIGHT_ANKLE
    h, k, a = frame.point(hip), frame.point(knee), frame.point(ankle)
    if h is None or k is None or a is None:
        return None
    return angle_by_law_of_cosines(h.x, h.y, k.x, k.y, a.x, a.y)

def evaluate_stance(frame: PoseFrame, thresholds: DrillThresholds) -> Optional[str]:
    average = _mean([knee_angle(frame, left=True), knee_angle(frame, left=False)])
    if average is not None and average > thresholds.hip_knee_angle_threshold_deg:
        return STAY_LOW_CUE
    return None

def evaluate_lateral_slide(
    frame: PoseFrame, state: EngineState, thresholds: DrillThresholds
) -> Tuple[float, Optional[float], Optional[float]]:
    """
    Returns (cumulative lateral distance, mid-hip x, mid-hip y).

    Horizontal hip travel only counts while the hip height stays within the
    tolerance band of the previous frame, so jumps and squats are not slides.
    """
    total = state.metrics.lateral_distance_px
    left_hip, right_hip = frame.point(Landmark.LEFT_HIP), frame.point(Landmark.RIGHT_HIP)
    if left_hip is None or right_hip is None:
        return total, state.previous_mid_hip_x, state.previous_hip_y

    mid_x = (left_hip.x + right_hip.x) / 2.0
    mid_y = (left_hip.y + right_hip.y) / 2.0
    y_reference = state.previous_hip_y if state.previous_hip_y is not None else mid_y
    if abs(mid_y - y_reference) <= frame.height * thresholds.lateral_y_tolerance_ratio:
        previous_x = state.previous_mid_hip_x if state.previous_mid_hip_x is not None else mid_x
        total += abs(mid_x - previous_x)
    return total, mid_x, mid_y

def vertical_position(frame: PoseFrame) -> Optional[float]:
    """Mean ankle height, falling back to mid-hip height when an ankle is missing."""
    ankles = _pair_mean_y(frame, Landmark.LEFT_ANKLE, Landmark.RIGHT_ANKLE)
    if ankles is not None:
        return ankles
    return _pair_mean_y(frame, Landmark.LEFT_HIP, Landmark.RIGHT_HIP)

def evaluate_jump_cadence(
    frame: PoseFrame, state: EngineState, thresholds: DrillThresholds
) -> Tuple[int, Optional[float], Optional[int], float]:
    """
    Returns (hop increment, vertical position, timestamp, vertical velocity).

    Velocity is upward-positive (image y grows downward). A hop is counted on
    the frame where it first rises above the threshold.
    """
    y = vertical_position(frame)
    if y is None:
        return 0, state.previous_vertical_y, state.previous_timestamp_ms, state.previous_vertical_velocity

    previous_y = state.previous_vertical_y if state.previous_vertical_y is not None else y
    previous_ts = state.previous_timestamp_ms if state.previous_timestamp_ms is not None else frame.timestamp_ms
    dt = max(frame.timestamp_ms - previous_ts, 1)
    current = velocity(previous_y - y, dt)

    threshold = thresholds.hop_velocity_threshold_px_per_sec
    crossed = current > threshold and state.previous_vertical_velocity <= threshold
    return (1 if crossed else 0), y, frame.timestamp_ms, current

def classify_dribble_zone(
    frame: PoseFrame, ball: Optional[BallObservation], thresholds: DrillThresholds
) -> DribbleZone:
    if ball is None or ball.confidence < thresholds.min_hit_confidence:
        return DribbleZone.NONE

    knee_y = _pair_mean_y(frame, Landmark.LEFT_KNEE, Landmark.RIGHT_KNEE)
    hip_y = _pair_mean_y(frame, Landmark.LEFT_HIP, Landmark.RIGHT_HIP)
    shoulder_y = _pair_mean_y(frame, Landmark.LEFT_SHOULDER, Landmark.RIGHT_SHOULDER)
    waist_y = (knee_y + hip_y) / 2.0 if knee_y is not None and hip_y is not None else None

    ball_y = ball.center_y
    if knee_y is not None and ball_y > knee_y:
        return DribbleZone.LOW
    if shoulder_y is not None and ball_y <= shoulder_y:
        return DribbleZone.HIGH
    if shoulder_y is not None and waist_y is not None and shoulder_y < ball_y <= waist_y:
        return DribbleZone.HIP
    return DribbleZone.NONE

def body_midline_x(frame: PoseFrame) -> Optional[float]:
    points = (frame.point(lm) for lm in (Landmark.NOSE, Landmark.LEFT_HIP, Landmark.RIGHT_HIP))
    return _mean(p.x for p in points if p is not None)

def is_hand_strike(frame: PoseFrame, ball: BallObservation, radius_px: float) -> bool:
    for wrist in (Landmark.LEFT_WRIST, Landmark.RIGHT_WRIST):
        point = frame.point(wrist)
        if point is not None and distance(point.x, point.y, ball.center_x, ball.center_y) < radius_px:
            return True
    return False

def evaluate_crossover(
    frame: PoseFrame, ball: Optional[BallObservation], previous_side: BallSide, thresholds: DrillThresholds
) -> Tuple[int, BallSide]:
    """Returns (crossover increment, side to remember for the next frame)."""
    if ball is None:
        return 0, previous_side
    midline = body_midline_x(frame)
    if midline is None:
        return 0, previous_side

    side = BallSide.LEFT if ball.center_x < midline else BallSide.RIGHT
    crossed = (
        is_hand_strike(frame, ball, thresholds.hand_strike_radius_px)
        and previous_side != BallSide.UNKNOWN
        and side != previous_side
    )
    return (1 if crossed else 0), side

def _enter_ready(state: EngineState) -> EngineState:
    """Pauses live cues and drops motion references; cumulative counters stay."""
    return state.model_copy(update={
        "drill_state": DrillState.READY,
        "metrics": state.metrics.model_copy(update={"stance_cue": None, "debug_text": WAITING_TEXT}),
        "previous_mid_hip_x": None,
        "previous_hip_y": None,
        "previous_vertical_y": None,
        "previous_timestamp_ms": None,
        "previous_vertical_velocity": 0.0,
    })

def step(
    state: EngineState,
    frame: PoseFrame,
    ball: Optional[BallObservation] = None,
    thresholds: DrillThresholds = DEFAULT_THRESHOLDS,
) -> EngineState:
    """Advances the engine by one frame and returns the new state."""
    if state.drill_state == DrillState.SUMMARY:
        return state
    if not is_user_in_frame(frame):
        return _enter_ready(state)

    now = frame.timestamp_ms
    started_at = state.started_at_ms if state.started_at_ms is not None else now

    stance_cue = evaluate_stance(frame, thresholds)
    lateral_distance, mid_hip_x, hip_y = evaluate_lateral_slide(frame, state, thresholds)
    hops, vertical_y, timestamp, vertical_velocity = evaluate_jump_cadence(frame, state, thresholds)
    zone = classify_dribble_zone(frame, ball, thresholds)
    crossovers, ball_side = evaluate_crossover(frame, ball, state.previous_ball_side, thresholds)

    m = state.metrics
    metrics = DrillMetrics(
        rep_count=m.rep_count + hops + crossovers,
        hops=m.hops + hops,
        stance_cue=stance_cue,
        lateral_distance_px=lateral_distance,
        pound_low=m.pound_low + (1 if zone == DribbleZone.LOW else 0),
        pound_hip=m.pound_hip + (1 if zone == DribbleZone.HIP else 0),
        pound_high=m.pound_high + (1 if zone == DribbleZone.HIGH else 0),
        crossover_count=m.crossover_count + crossovers,
        elapsed_ms=now - started_at,
        debug_text=f"state={DrillState.ACTIVE.value} zone={zone.value}",
    )
    return state.model_copy(update={
        "drill_state": DrillState.ACTIVE,
        "metrics": metrics,
        "started_at_ms": started_at,
        "previous_mid_hip_x": mid_hip_x,
        "previous_hip_y": hip_y,
        "previous_vertical_y": vertical_y,
        "previous_timestamp_ms": timestamp,
        "previous_vertical_velocity": vertical_velocity,
        "previous_ball_side": ball_side,
    })

def finish(state: EngineState) -> EngineState:
    """Enters SUMMARY. The summary is taken once; later calls keep the first one."""
    if state.summary is not None:
        return state
    return state.model_copy(update={
        "drill_state": DrillState.SUMMARY,
        "summary": SessionSummary.from_metrics(state.metrics),
    })

class DrillEngine:
    """
    Per-session drill state machine and event detectors.

    Not thread-safe: callers must serialize `consume` calls. Start a new
    session by constructing a new engine.
    """

    def __init__(self, thresholds: Optional[DrillThresholds] = None):
        self.thresholds = thresholds or DEFAULT_THRESHOLDS
        self._state = EngineState()

    @property
    def state(self) -> DrillState:
        return self._state.drill_state

    @property
    def metrics(self) -> DrillMetrics:
        return self._state.metrics

    def consume(self, frame: PoseFrame, ball: Optional[BallObservation] = None) -> Tuple[DrillState, DrillMetrics]:
        previous = self._state
        self._state = step(previous, frame, ball, self.thresholds)
        self._log_changes(previous, self._state)
        return self._state.drill_state, self._state.metrics

    def finish_session(self) -> SessionSummary:
        if self._state.drill_state != DrillState.SUMMARY:
            logger.info("Drill state %s -> SUMMARY", self._state.drill_state.value)
        self._state = finish(self._state)
        return self._state.summary

    @staticmethod
    def _log_changes(before: EngineState, after: EngineState) -> None:
        if before.drill_state != after.drill_state:
            logger.info("Drill state %s -> %s", before.drill_state.value, after.drill_state.value)
        if after.metrics.hops > before.metrics.hops:
            logger.debug("Hop detected (total=%d)", after.metrics.hops)
        if after.metrics.crossover_count > before.metrics.crossover_count:
            logger.debug("Crossover detected (total=%d)", after.metrics.crossover_count)
