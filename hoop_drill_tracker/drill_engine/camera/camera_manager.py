# hoop_drill_tracker/drill_engine/camera/camera_manager.py
import cv2
import logging
import time
import threading
import numpy as np
from collections import deque
from typing import Tuple, Optional
from ..common.config import CameraConfig
from ..common.models import FrameMetadata

logger = logging.getLogger(__name__)

class CameraManager:
    """
    Manages non-blocking camera I/O in a separate thread.

    Only the newest frame is handed out, so a slow consumer drops frames
    instead of building a backlog.
    """

    def __init__(self, config: CameraConfig):
        self.config = config
        self._source = config.source
        self._resolution = tuple(config.resolution)
        self._target_fps = config.target_fps
        self._cap = cv2.VideoCapture(self._source)
        if not self._cap.isOpened():
            raise IOError(f"Cannot open camera source: {self._source}")

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._resolution[0])
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._resolution[1])
        self._cap.set(cv2.CAP_PROP_FPS, self._target_fps)

        self._buffer = deque(maxlen=config.buffer_size)
        self._lock = threading.Lock()
        self._thread = threading.Thread(target=self._update, daemon=True)
        self._running = False
        self._frame_id = 0
        self._last_served_id = 0
        self._frames_served = 0
        self._dropped_frames = 0

    def _update(self):
        """The frame-grabbing loop running in a dedicated thread."""
        while self._running:
            grabbed = self._cap.grab()
            if not grabbed:
                self._dropped_frames += 1
                time.sleep(0.01)
                continue

            ret, frame = self._cap.retrieve()
            if ret:
                timestamp_ms = int(time.monotonic() * 1000)
                self._frame_id += 1
                with self._lock:
                    self._buffer.append((frame, self._frame_id, timestamp_ms))
            else:
                self._dropped_frames += 1

    def get_frame(self) -> Tuple[Optional[np.ndarray], Optional[FrameMetadata]]:
        """Returns the latest unseen frame and its metadata, or (None, None)."""
        with self._lock:
            if not self._buffer:
                return None, None
            frame, frame_id, timestamp_ms = self._buffer[-1]
            if frame_id == self._last_served_id:
                return None, None
            self._last_served_id = frame_id
            self._frames_served += 1

        metadata = FrameMetadata(
            frame_id=frame_id,
            timestamp_ms=timestamp_ms,
            source_resolution=(frame.shape[1], frame.shape[0]),
            is_front_camera=self.config.front_facing,
        )
        return frame.copy(), metadata

    def get_stats(self) -> dict:
        """Capture counters for the shutdown log: grabbed, handed out and failed frames."""
        with self._lock:
            frames_served = self._frames_served
        return {
            "source": self._source,
            "frames_captured": self._frame_id,
            "frames_served": frames_served,
            "frames_skipped": max(self._frame_id - frames_served, 0),
            "grab_failures": self._dropped_frames,
        }

    def is_running(self) -> bool:
        return self._running

    def __enter__(self):
        self._running = True
        self._thread.start()
        logger.info("CameraManager started (source=%s).", self._source)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._running = False
        self._thread.join()
        self._cap.release()
        logger.info("CameraManager stopped: %s", self.get_stats())
