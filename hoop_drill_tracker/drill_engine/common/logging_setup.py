# hoop_drill_tracker/drill_engine/common/logging_setup.py
import logging
from .enums import LogLevel

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

def configure_logging(level: LogLevel = LogLevel.INFO) -> None:
    """Configures the root logger once for the application."""
    logging.basicConfig(level=getattr(logging, level.value), format=LOG_FORMAT, force=True)
    # mediapipe/absl are chatty at INFO
    logging.getLogger("absl").setLevel(logging.WARNING)
