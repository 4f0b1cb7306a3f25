# hoop_drill_tracker/drill_engine/common/config.py
import yaml
from pathlib import Path
from typing import Literal, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from .enums import LogLevel

class ConfigError(Exception):
    """Raised when the application configuration cannot be loaded."""

class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")

class CameraConfig(_Section):
    source: Union[int, str] = 0
    resolution: Tuple[int, int] = (1280, 720)
    target_fps: int = 30
    buffer_size: int = Field(default=5, ge=1)
    front_facing: bool = True

class FilterConfig(_Section):
    min_cutoff: float = 0.5
    beta: float = 0.05
    d_cutoff: float = 1.0

class PoseConfig(_Section):
    model_complexity: int = Field(default=1, ge=0, le=2)
    min_detection_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    min_tracking_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    min_landmark_visibility: float = Field(default=0.5, ge=0.0, le=1.0)
    smoothing: bool = True
    filter: FilterConfig = Field(default_factory=FilterConfig)

class BallConfig(_Section):
    detector: Literal["null", "colour"] = "null"
    # OpenCV HSV ranges, hue in [0, 179]
    hsv_lower: Tuple[int, int, int] = (5, 120, 80)
    hsv_upper: Tuple[int, int, int] = (20, 255, 255)
    min_radius_px: float = Field(default=8.0, ge=0.0)

class DrillThresholds(_Section):
    """Tunable detector constants, fixed for the life of an engine."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    hip_knee_angle_threshold_deg: float = 145.0
    lateral_y_tolerance_ratio: float = 0.14
    hop_velocity_threshold_px_per_sec: float = 560.0
    min_hit_confidence: float = 0.5
    hand_strike_radius_px: float = 90.0

class VisualizationConfig(_Section):
    draw_landmarks: bool = True
    draw_hud: bool = True
    adaptive_lod: bool = True
    lod_threshold_fps: float = 15.0
    mirror_front_camera: bool = True

class LoggingConfig(_Section):
    level: LogLevel = LogLevel.INFO

class AppConfig(_Section):
    camera: CameraConfig = Field(default_factory=CameraConfig)
    pose: PoseConfig = Field(default_factory=PoseConfig)
    ball: BallConfig = Field(default_factory=BallConfig)
    drill: DrillThresholds = Field(default_factory=DrillThresholds)
    visualization: VisualizationConfig = Field(default_factory=VisualizationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

def load_config(path: Union[str, Path]) -> AppConfig:
    """Reads a YAML file into an AppConfig. Missing sections take their defaults."""
    try:
        with open(path, 'r') as f:
            raw = yaml.safe_load(f) or {}
    except (IOError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Config {path} must be a mapping, got {type(raw).__name__}")

    try:
        return AppConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {path}: {e}") from e
