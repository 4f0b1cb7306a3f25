# hoop_drill_tracker/drill_engine/detection/pose_source.py
import logging
import cv2
import mediapipe as mp
import numpy as np
from typing import Optional
from ..common.config import PoseConfig
from ..common.models import FrameMetadata, LandmarkPoint, PoseFrame
from ..processing.one_euro_filter import LandmarkSmoother
from .base import FailureCallback, PoseSource

logger = logging.getLogger(__name__)

class MediaPipePoseSource(PoseSource):
    """MediaPipe Pose wrapped as a PoseSource, with optional One-Euro smoothing."""

    def __init__(self, config: PoseConfig, on_failure: Optional[FailureCallback] = None):
        super().__init__(on_failure)
        self.config = config

        self.mp_pose = mp.solutions.pose
        self.pose = self.mp_pose.Pose(
            static_image_mode=False,
            model_complexity=config.model_complexity,
            smooth_landmarks=False, # Smoothing is done by LandmarkSmoother
            enable_segmentation=False,
            min_detection_confidence=config.min_detection_confidence,
            min_tracking_confidence=config.min_tracking_confidence
        )

        self.smoother = LandmarkSmoother(**config.filter.model_dump()) if config.smoothing else None
        logger.info("MediaPipe pose source ready (complexity=%d, smoothing=%s)",
                    config.model_complexity, config.smoothing)

    def detect(self, frame: np.ndarray, metadata: FrameMetadata) -> Optional[PoseFrame]:
        """Processes a single frame; returns a PoseFrame in pixel space or None."""
        frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        frame_rgb.flags.writeable = False

        try:
            results = self.pose.process(frame_rgb)
        except Exception as e:
            self._report_failure(e)
            return None

        width, height = metadata.source_resolution
        landmarks = {}
        if results.pose_landmarks:
            for idx, lm in enumerate(results.pose_landmarks.landmark):
                # Off-screen or occluded points count as not detected
                if lm.visibility < self.config.min_landmark_visibility:
                    continue
                landmarks[idx] = LandmarkPoint(
                    x=lm.x * width,
                    y=lm.y * height,
                    z=lm.z * width,
                    confidence=min(1.0, max(0.0, lm.visibility)),
                )

        pose_frame = PoseFrame(
            timestamp_ms=metadata.timestamp_ms,
            width=width,
            height=height,
            rotation_degrees=metadata.rotation_degrees,
            is_front_camera=metadata.is_front_camera,
            landmarks=landmarks,
        )
        if self.smoother is not None:
            pose_frame = self.smoother(pose_frame)
        return pose_frame

    def close(self):
        self.pose.close()
