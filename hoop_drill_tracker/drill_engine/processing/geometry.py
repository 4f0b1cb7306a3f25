# hoop_drill_tracker/drill_engine/processing/geometry.py
import math

_MIN_DENOMINATOR = 1e-4

def distance(ax: float, ay: float, bx: float, by: float) -> float:
    """Euclidean distance between (ax, ay) and (bx, by)."""
    return math.hypot(ax - bx, ay - by)

def angle_by_law_of_cosines(ax: float, ay: float, bx: float, by: float, cx: float, cy: float) -> float:
    """
    Interior angle at vertex B of triangle A-B-C, in degrees.

    The denominator is floored and the cosine clamped so that degenerate
    triangles (B on top of A or C, collinear points) still give a value
    in [0, 180] instead of NaN.
    """
    a = distance(bx, by, cx, cy)
    b = distance(bx, by, ax, ay)
    c = distance(ax, ay, cx, cy)
    denominator = max(2.0 * a * b, _MIN_DENOMINATOR)
    cos_theta = min(1.0, max(-1.0, (a * a + b * b - c * c) / denominator))
    return math.degrees(math.acos(cos_theta))

def velocity(delta: float, dt_ms: float) -> float:
    """Change per second given a delta over dt_ms milliseconds. 0 for dt_ms <= 0."""
    if dt_ms <= 0:
        return 0.0
    return delta / (dt_ms / 1000.0)
