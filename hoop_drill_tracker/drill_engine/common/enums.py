# hoop_drill_tracker/drill_engine/common/enums.py
from enum import Enum, IntEnum

class DrillState(str, Enum):
    """Defines the coarse state of a drill session."""
    READY = "READY"
    ACTIVE = "ACTIVE"
    SUMMARY = "SUMMARY"

class DribbleZone(str, Enum):
    """Body-relative height band of the ball during a pound dribble."""
    LOW = "LOW"
    HIP = "HIP"
    HIGH = "HIGH"
    NONE = "NONE"

class BallSide(str, Enum):
    """Side of the body midline the ball was last seen on."""
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    UNKNOWN = "UNKNOWN"

class Landmark(IntEnum):
    """Pose landmark identifiers (33-point BlazePose topology)."""
    NOSE = 0
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28

class LogLevel(str, Enum):
    """Defines logging levels for structured logging."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
