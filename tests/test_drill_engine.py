import pytest

from conftest import FRAME_MS, STRAIGHT_LEGS, ankles_at, make_ball, make_frame
from drill_engine.common.config import DrillThresholds
from drill_engine.common.enums import BallSide, DribbleZone, DrillState, Landmark
from drill_engine.common.models import EngineState
from drill_engine.processing.drill_engine import (
    REQUIRED_LANDMARKS,
    STAY_LOW_CUE,
    WAITING_TEXT,
    DrillEngine,
    classify_dribble_zone,
    evaluate_stance,
    finish,
    step,
)

COUNTERS = ("rep_count", "hops", "crossover_count", "pound_low", "pound_hip", "pound_high")


def counters(metrics):
    return {name: getattr(metrics, name) for name in COUNTERS}


def feed_ankles(engine, ys, start_ts=0, dt=FRAME_MS):
    for i, y in enumerate(ys):
        engine.consume(make_frame(start_ts + i * dt, at=ankles_at(y)))
    return engine.metrics


# --- state machine --------------------------------------------------------

def test_new_engine_starts_ready():
    engine = DrillEngine()
    assert engine.state == DrillState.READY
    assert engine.metrics.rep_count == 0


def test_full_body_enters_active():
    state, metrics = DrillEngine().consume(make_frame(0))
    assert state == DrillState.ACTIVE
    assert metrics.debug_text == "state=ACTIVE zone=NONE"


@pytest.mark.parametrize("missing", REQUIRED_LANDMARKS)
def test_missing_required_landmark_forces_ready_without_counting(missing):
    engine = DrillEngine()
    engine.consume(make_frame(0, at=ankles_at(620)))
    engine.consume(make_frame(33, at=ankles_at(590)), make_ball(600, 380))
    engine.consume(make_frame(66, at=ankles_at(620)), make_ball(680, 380))
    before = counters(engine.metrics)
    assert before["hops"] == 1 and before["crossover_count"] == 1

    state, metrics = engine.consume(make_frame(99, at=ankles_at(500), drop=(missing,)), make_ball(600, 380))

    assert state == DrillState.READY
    assert counters(metrics) == before


def test_optional_landmarks_may_be_missing():
    frame = make_frame(0, drop=(Landmark.LEFT_WRIST, Landmark.RIGHT_SHOULDER, Landmark.LEFT_ANKLE))
    state, _ = DrillEngine().consume(frame)
    assert state == DrillState.ACTIVE


def test_ready_clears_live_cue_and_keeps_lateral_distance():
    engine = DrillEngine()
    engine.consume(make_frame(0, at=STRAIGHT_LEGS))
    engine.consume(make_frame(33, at=STRAIGHT_LEGS, shift_x=30))
    assert engine.metrics.stance_cue == STAY_LOW_CUE

    state, metrics = engine.consume(make_frame(66, drop=(Landmark.NOSE,)))

    assert state == DrillState.READY
    assert metrics.stance_cue is None
    assert metrics.debug_text == WAITING_TEXT
    assert metrics.lateral_distance_px == pytest.approx(30)


def test_motion_is_not_measured_across_an_out_of_frame_gap():
    engine = DrillEngine()
    engine.consume(make_frame(0, at=ankles_at(620)))
    engine.consume(make_frame(33, drop=(Landmark.LEFT_HIP,)))
    # Far away and much higher: would be a slide and a hop if compared to frame 0
    _, metrics = engine.consume(make_frame(66, at=ankles_at(400), shift_x=300))

    assert metrics.hops == 0
    assert metrics.lateral_distance_px == 0


def test_elapsed_time_keeps_running_through_ready_excursions():
    engine = DrillEngine()
    engine.consume(make_frame(1000))
    engine.consume(make_frame(2000, drop=(Landmark.NOSE,)))
    _, metrics = engine.consume(make_frame(3500))
    assert metrics.elapsed_ms == 2500


def test_elapsed_time_starts_at_first_active_frame():
    engine = DrillEngine()
    engine.consume(make_frame(500, drop=(Landmark.NOSE,)))
    engine.consume(make_frame(800))
    _, metrics = engine.consume(make_frame(1800))
    assert metrics.elapsed_ms == 1000


def test_finish_session_summarizes_and_freezes():
    engine = DrillEngine()
    feed_ankles(engine, [620, 620, 590])
    engine.consume(make_frame(200), make_ball(640, 600))

    summary = engine.finish_session()

    assert engine.state == DrillState.SUMMARY
    assert summary.hops == 1
    assert summary.reps == 1
    assert summary.low_dribbles == 1
    assert summary.duration_ms == 200

    frozen = engine.metrics
    state, metrics = engine.consume(make_frame(233, at=ankles_at(500)), make_ball(640, 600))
    assert state == DrillState.SUMMARY
    assert metrics == frozen
    state, _ = engine.consume(make_frame(266, drop=REQUIRED_LANDMARKS))
    assert state == DrillState.SUMMARY
    assert engine.finish_session() == summary


def test_finish_session_from_ready():
    summary = DrillEngine().finish_session()
    assert summary.reps == 0
    assert summary.duration_ms == 0


def test_step_is_pure():
    initial = EngineState()
    after = step(initial, make_frame(0))
    assert initial.drill_state == DrillState.READY
    assert initial.previous_mid_hip_x is None
    assert after.drill_state == DrillState.ACTIVE
    assert after.previous_mid_hip_x == pytest.approx(640)
    assert after.started_at_ms == 0

    summarized = finish(after)
    assert summarized.summary is not None
    assert step(summarized, make_frame(33)) is summarized


def test_fresh_engines_do_not_share_state():
    first = DrillEngine()
    feed_ankles(first, [620, 590])
    assert DrillEngine().metrics.hops == 0


# --- jump cadence ---------------------------------------------------------

def test_two_clean_hops_over_ten_frames():
    engine = DrillEngine()
    metrics = feed_ankles(engine, [620, 620, 590, 570, 580, 620, 620, 590, 580, 620])

    assert metrics.hops == 2
    assert metrics.rep_count == 2
    assert metrics.pound_low == metrics.pound_hip == metrics.pound_high == 0
    assert metrics.crossover_count == 0


def test_sustained_fast_rise_counts_once():
    # 30 px per 33 ms is ~909 px/s on every frame after the first
    metrics = feed_ankles(DrillEngine(), [620 - 30 * i for i in range(8)])
    assert metrics.hops == 1


def test_slow_motion_never_counts():
    # 10 px per 33 ms is ~303 px/s
    metrics = feed_ankles(DrillEngine(), [620, 610, 600, 590, 600, 610, 620, 610, 600, 590])
    assert metrics.hops == 0


def test_velocity_exactly_at_threshold_is_not_a_hop():
    engine = DrillEngine()
    # 70 px over 125 ms is exactly 560 px/s
    metrics = feed_ankles(engine, [620, 550], dt=125)
    assert metrics.hops == 0
    # From exactly-at-threshold to above it is a rising edge
    _, metrics = engine.consume(make_frame(250, at=ankles_at(470)))
    assert metrics.hops == 1


def test_downward_motion_is_not_a_hop():
    metrics = feed_ankles(DrillEngine(), [500, 560, 620])
    assert metrics.hops == 0


def test_hop_uses_hip_when_ankles_missing():
    engine = DrillEngine()
    no_ankles = (Landmark.LEFT_ANKLE, Landmark.RIGHT_ANKLE)
    engine.consume(make_frame(0, drop=no_ankles))
    _, metrics = engine.consume(make_frame(33, drop=no_ankles, shift_y=-30))
    assert metrics.hops == 1


def test_duplicate_timestamp_does_not_blow_up():
    engine = DrillEngine()
    engine.consume(make_frame(100, at=ankles_at(620)))
    _, metrics = engine.consume(make_frame(100, at=ankles_at(619)))
    # 1 px over the 1 ms floor is 1000 px/s, still a finite rising edge
    assert metrics.hops == 1


# --- lateral slides -------------------------------------------------------

def test_lateral_distance_accumulates_hip_travel():
    engine = DrillEngine()
    for i, dx in enumerate([0, 20, 40, 10]):
        engine.consume(make_frame(i * FRAME_MS, shift_x=dx))
    assert engine.metrics.lateral_distance_px == pytest.approx(70)


def test_lateral_distance_ignores_vertical_jumps():
    engine = DrillEngine()
    engine.consume(make_frame(0))
    engine.consume(make_frame(33, shift_x=40))
    assert engine.metrics.lateral_distance_px == pytest.approx(40)

    # Hip drops by 150 px (> 14% of 720) while moving sideways
    engine.consume(make_frame(66, shift_x=100, shift_y=150))
    assert engine.metrics.lateral_distance_px == pytest.approx(40)

    # The rejected frame still becomes the new reference
    engine.consume(make_frame(99, shift_x=120, shift_y=150))
    assert engine.metrics.lateral_distance_px == pytest.approx(60)


def test_lateral_distance_never_decreases():
    engine = DrillEngine()
    shifts = [(0, 0), (50, 0), (-30, 5), (-30, 200), (10, 0), (80, -20), (-60, 0)]
    previous = 0.0
    for i, (dx, dy) in enumerate(shifts):
        _, metrics = engine.consume(make_frame(i * FRAME_MS, shift_x=dx, shift_y=dy))
        assert metrics.lateral_distance_px >= previous
        previous = metrics.lateral_distance_px


# --- stance ---------------------------------------------------------------

def test_low_stance_has_no_cue():
    assert evaluate_stance(make_frame(0), DrillThresholds()) is None


def test_straight_legs_get_stay_low_cue():
    assert evaluate_stance(make_frame(0, at=STRAIGHT_LEGS), DrillThresholds()) == STAY_LOW_CUE


def test_stance_uses_available_side_only():
    frame = make_frame(0, at=STRAIGHT_LEGS, drop=(Landmark.LEFT_ANKLE,))
    assert evaluate_stance(frame, DrillThresholds()) == STAY_LOW_CUE


def test_stance_without_ankles_is_neutral():
    frame = make_frame(0, at=STRAIGHT_LEGS, drop=(Landmark.LEFT_ANKLE, Landmark.RIGHT_ANKLE))
    assert evaluate_stance(frame, DrillThresholds()) is None


def test_stance_threshold_is_configurable():
    # The default stance is ~135 degrees
    assert evaluate_stance(make_frame(0), DrillThresholds(hip_knee_angle_threshold_deg=120)) == STAY_LOW_CUE


# --- dribble zones --------------------------------------------------------

@pytest.mark.parametrize("ball_y, zone", [
    (600, DribbleZone.LOW),
    (501, DribbleZone.LOW),
    (500, DribbleZone.NONE),
    (470, DribbleZone.NONE),
    (440, DribbleZone.HIP),
    (300, DribbleZone.HIP),
    (200, DribbleZone.HIGH),
    (150, DribbleZone.HIGH),
])
def test_dribble_zone_bands(ball_y, zone):
    assert classify_dribble_zone(make_frame(0), make_ball(640, ball_y), DrillThresholds()) == zone


def test_dribble_zone_without_shoulders_only_detects_low():
    frame = make_frame(0, drop=(Landmark.LEFT_SHOULDER,))
    thresholds = DrillThresholds()
    assert classify_dribble_zone(frame, make_ball(640, 150), thresholds) == DribbleZone.NONE
    assert classify_dribble_zone(frame, make_ball(640, 300), thresholds) == DribbleZone.NONE
    assert classify_dribble_zone(frame, make_ball(640, 600), thresholds) == DribbleZone.LOW


def test_dribble_zone_counts_every_active_frame():
    engine = DrillEngine()
    for i in range(3):
        engine.consume(make_frame(i * FRAME_MS), make_ball(640, 600))
    engine.consume(make_frame(99), make_ball(640, 300))
    _, metrics = engine.consume(make_frame(132), make_ball(640, 150))

    assert (metrics.pound_low, metrics.pound_hip, metrics.pound_high) == (3, 1, 1)
    assert metrics.rep_count == 0
    assert metrics.debug_text == "state=ACTIVE zone=HIGH"


def test_low_confidence_ball_is_ignored_for_dribbles():
    engine = DrillEngine()
    _, metrics = engine.consume(make_frame(0), make_ball(640, 600, confidence=0.4))
    assert (metrics.pound_low, metrics.pound_hip, metrics.pound_high) == (0, 0, 0)


def test_confidence_at_minimum_is_accepted():
    _, metrics = DrillEngine().consume(make_frame(0), make_ball(640, 600, confidence=0.5))
    assert metrics.pound_low == 1


def test_no_ball_no_dribble():
    _, metrics = DrillEngine().consume(make_frame(0))
    assert metrics.debug_text.endswith("zone=NONE")


# --- crossovers -----------------------------------------------------------
# Midline is x=640; wrists sit at (560, 380) and (720, 380).

LEFT_STRIKE = (600, 380)
RIGHT_STRIKE = (680, 380)
LEFT_NO_STRIKE = (600, 650)


def feed_balls(engine, balls):
    for i, ball in enumerate(balls):
        engine.consume(make_frame(i * FRAME_MS), None if ball is None else make_ball(*ball))
    return engine.metrics


def test_first_side_observation_never_counts():
    metrics = feed_balls(DrillEngine(), [LEFT_STRIKE])
    assert metrics.crossover_count == 0


def test_strike_on_other_side_counts():
    metrics = feed_balls(DrillEngine(), [LEFT_STRIKE, RIGHT_STRIKE])
    assert metrics.crossover_count == 1
    assert metrics.rep_count == 1


def test_strike_on_same_side_does_not_count():
    metrics = feed_balls(DrillEngine(), [LEFT_STRIKE, LEFT_STRIKE, RIGHT_STRIKE, RIGHT_STRIKE])
    assert metrics.crossover_count == 1


def test_side_change_without_strike_moves_reference_silently():
    metrics = feed_balls(DrillEngine(), [RIGHT_STRIKE, LEFT_NO_STRIKE, LEFT_STRIKE])
    assert metrics.crossover_count == 0


def test_side_reference_survives_frames_without_ball():
    metrics = feed_balls(DrillEngine(), [RIGHT_STRIKE, None, None, LEFT_STRIKE])
    assert metrics.crossover_count == 1


def test_crossover_ignores_hit_confidence():
    engine = DrillEngine()
    engine.consume(make_frame(0), make_ball(*LEFT_STRIKE, confidence=0.2))
    _, metrics = engine.consume(make_frame(33), make_ball(*RIGHT_STRIKE, confidence=0.2))
    assert metrics.crossover_count == 1


def test_strike_radius_is_exclusive():
    engine = DrillEngine()
    engine.consume(make_frame(0), make_ball(*LEFT_STRIKE))
    # Exactly 90 px to the right of the right wrist
    _, metrics = engine.consume(make_frame(33), make_ball(810, 380))
    assert metrics.crossover_count == 0


def test_reps_combine_hops_and_crossovers():
    engine = DrillEngine()
    engine.consume(make_frame(0, at=ankles_at(620)), make_ball(*LEFT_STRIKE))
    _, metrics = engine.consume(make_frame(33, at=ankles_at(590)), make_ball(*RIGHT_STRIKE))
    assert metrics.hops == 1
    assert metrics.crossover_count == 1
    assert metrics.rep_count == 2


def test_previous_ball_side_is_tracked_in_state():
    after = step(EngineState(), make_frame(0), make_ball(*LEFT_STRIKE))
    assert after.previous_ball_side == BallSide.LEFT
