# hoop_drill_tracker/drill_engine/visualization/visualizer.py
import cv2
import numpy as np
from ..common.config import VisualizationConfig
from ..common.enums import DrillState, Landmark
from ..common.models import PoseFrame, SessionSummary
from ..processing.training_session import TrainingUiState

# Arms, torso and legs
SKELETON_CONNECTIONS = [
    (Landmark.LEFT_SHOULDER, Landmark.RIGHT_SHOULDER),
    (Landmark.LEFT_SHOULDER, Landmark.LEFT_ELBOW), (Landmark.LEFT_ELBOW, Landmark.LEFT_WRIST),
    (Landmark.RIGHT_SHOULDER, Landmark.RIGHT_ELBOW), (Landmark.RIGHT_ELBOW, Landmark.RIGHT_WRIST),
    (Landmark.LEFT_SHOULDER, Landmark.LEFT_HIP), (Landmark.RIGHT_SHOULDER, Landmark.RIGHT_HIP),
    (Landmark.LEFT_HIP, Landmark.RIGHT_HIP),
    (Landmark.LEFT_HIP, Landmark.LEFT_KNEE), (Landmark.LEFT_KNEE, Landmark.LEFT_ANKLE),
    (Landmark.RIGHT_HIP, Landmark.RIGHT_KNEE), (Landmark.RIGHT_KNEE, Landmark.RIGHT_ANKLE),
]

ACCENT = (77, 169, 255)  # orange, BGR
TEXT = (240, 240, 240)
GOOD_FORM = "Good Form"

class Visualizer:
    """Draws the skeleton, ball and drill HUD. Read-only with respect to the session."""

    def __init__(self, config: VisualizationConfig):
        self.config = config
        self.font = cv2.FONT_HERSHEY_SIMPLEX

    def render(self, frame: np.ndarray, ui: TrainingUiState, current_fps: float, ball=None) -> np.ndarray:
        """Renders the session snapshot onto a copy of the frame."""
        output_frame = frame.copy()

        lod_reduced = self.config.adaptive_lod and current_fps < self.config.lod_threshold_fps

        pose = ui.latest_pose_frame
        if pose is not None and self.config.draw_landmarks:
            self._draw_skeleton(output_frame, pose, lod_reduced)
        if ball is not None:
            cv2.circle(output_frame, (int(ball.center_x), int(ball.center_y)), max(int(ball.radius), 2), ACCENT, 2, cv2.LINE_AA)

        # Mirror before text so the HUD stays readable
        if pose is not None and pose.is_front_camera and self.config.mirror_front_camera:
            output_frame = cv2.flip(output_frame, 1)

        if self.config.draw_hud:
            self._draw_hud(output_frame, ui, current_fps, lod_reduced)
        if ui.state == DrillState.SUMMARY and ui.summary is not None:
            self._draw_summary(output_frame, ui.summary)

        return output_frame

    def _draw_skeleton(self, frame: np.ndarray, pose: PoseFrame, lod_reduced: bool):
        connection_color = (100, 100, 100) if lod_reduced else (200, 200, 200)
        for start, end in SKELETON_CONNECTIONS:
            a, b = pose.point(start), pose.point(end)
            if a is None or b is None:
                continue
            cv2.line(frame, (int(a.x), int(a.y)), (int(b.x), int(b.y)), connection_color, 2, cv2.LINE_AA)
        if lod_reduced:
            return
        for point in pose.landmarks.values():
            cv2.circle(frame, (int(point.x), int(point.y)), 3, (0, 255, 0), -1, cv2.LINE_AA)

    def _draw_hud(self, frame: np.ndarray, ui: TrainingUiState, fps: float, lod_reduced: bool):
        m = ui.metrics
        cv2.putText(frame, "TRACKER", (10, 30), self.font, 0.8, TEXT, 2, cv2.LINE_AA)
        cv2.putText(frame, m.stance_cue or GOOD_FORM, (10, 65), self.font, 0.8, ACCENT, 2, cv2.LINE_AA)

        hud_elements = [
            f"Reps: {m.rep_count}",
            f"Time: {m.elapsed_ms // 1000}s",
            f"Hops: {m.hops}  Crossovers: {m.crossover_count}",
            f"Dribbles L/H/H: {m.pound_low}/{m.pound_hip}/{m.pound_high}",
            f"Slide: {m.lateral_distance_px:.0f} px",
            f"State: {ui.state.value}",
            f"FPS: {fps:.1f}",
        ]
        if lod_reduced:
            hud_elements.append("LOD: REDUCED")

        for i, text in enumerate(hud_elements):
            cv2.putText(frame, text, (10, 100 + i * 28), self.font, 0.6, TEXT, 1, cv2.LINE_AA)

    def _draw_summary(self, frame: np.ndarray, summary: SessionSummary):
        h, w = frame.shape[:2]
        x0, y0, x1, y1 = w // 4, h // 4, 3 * w // 4, 3 * h // 4
        overlay = frame.copy()
        cv2.rectangle(overlay, (x0, y0), (x1, y1), (20, 20, 20), -1)
        cv2.addWeighted(overlay, 0.75, frame, 0.25, 0, dst=frame)

        lines = [
            "SESSION SUMMARY",
            f"Duration: {summary.duration_ms / 1000:.1f}s",
            f"Reps: {summary.reps}",
            f"Hops: {summary.hops}",
            f"Crossovers: {summary.crossover_count}",
            f"Low/Hip/High dribbles: {summary.low_dribbles}/{summary.hip_dribbles}/{summary.high_dribbles}",
        ]
        for i, text in enumerate(lines):
            color = ACCENT if i == 0 else TEXT
            cv2.putText(frame, text, (x0 + 20, y0 + 40 + i * 32), self.font, 0.7, color, 2, cv2.LINE_AA)
