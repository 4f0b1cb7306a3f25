from drill_engine.common.enums import Landmark
from drill_engine.common.models import BallObservation, LandmarkPoint, PoseFrame

WIDTH, HEIGHT = 1280, 720
FRAME_MS = 33

# One person in the middle of a 1280x720 frame in a low stance (~135 deg knees).
# Body midline x = 640; mean knee y = 500, hip y = 380, shoulder y = 200.
STANCE = {
    Landmark.NOSE: (640, 120),
    Landmark.LEFT_SHOULDER: (600, 200),
    Landmark.RIGHT_SHOULDER: (680, 200),
    Landmark.LEFT_WRIST: (560, 380),
    Landmark.RIGHT_WRIST: (720, 380),
    Landmark.LEFT_HIP: (610, 380),
    Landmark.RIGHT_HIP: (670, 380),
    Landmark.LEFT_KNEE: (560, 500),
    Landmark.RIGHT_KNEE: (720, 500),
    Landmark.LEFT_ANKLE: (610, 620),
    Landmark.RIGHT_ANKLE: (670, 620),
}

STRAIGHT_LEGS = {Landmark.LEFT_KNEE: (610, 500), Landmark.RIGHT_KNEE: (670, 500)}


def make_frame(ts, at=None, drop=(), shift_x=0.0, shift_y=0.0, **fields):
    """
    Builds a PoseFrame from the STANCE pose.

    `at` replaces individual points, `drop` removes landmarks and the shifts
    move every point.
    """
    points = dict(STANCE)
    points.update(at or {})
    landmarks = {
        int(lm): LandmarkPoint(x=x + shift_x, y=y + shift_y, z=0.0, confidence=0.9)
        for lm, (x, y) in points.items()
        if lm not in drop
    }
    return PoseFrame(timestamp_ms=ts, width=WIDTH, height=HEIGHT, landmarks=landmarks, **fields)


def make_ball(x, y, confidence=0.9, ts=0, radius=20.0):
    return BallObservation(center_x=x, center_y=y, radius=radius, confidence=confidence, timestamp_ms=ts)


def ankles_at(y):
    return {Landmark.LEFT_ANKLE: (610, y), Landmark.RIGHT_ANKLE: (670, y)}
