# hoop_drill_tracker/main.py
import cv2
import logging
import sys
import time
import numpy as np
from collections import deque

from drill_engine.camera.camera_manager import CameraManager
from drill_engine.common.config import ConfigError, load_config
from drill_engine.common.logging_setup import configure_logging
from drill_engine.detection.ball_source import create_ball_source
from drill_engine.detection.pose_source import MediaPipePoseSource
from drill_engine.processing.training_session import TrainingSession
from drill_engine.visualization.visualizer import Visualizer

logger = logging.getLogger("hoop_drill_tracker")

def main(config_path: str = 'config.yaml'):
    """
    The main application loop.
    Captures frames, runs pose and ball detection, feeds the drill session
    and renders the HUD until the user quits.
    """
    try:
        config = load_config(config_path)
    except ConfigError as e:
        configure_logging()
        logger.error("Failed to initialize. %s", e)
        return
    configure_logging(config.logging.level)

    fps_history = deque(maxlen=100)
    pose_source = None
    ball_source = None

    try:
        with CameraManager(config.camera) as camera:
            pose_source = MediaPipePoseSource(config.pose)
            ball_source = create_ball_source(config.ball)
            session = TrainingSession(config.drill)
            visualizer = Visualizer(config.visualization)

            while camera.is_running():
                frame_start_time = time.perf_counter()

                frame, metadata = camera.get_frame()
                if frame is None:
                    time.sleep(0.001) # Wait briefly if no frame is available
                    continue

                pose_frame = pose_source.detect(frame, metadata)
                ball = ball_source.detect(frame, metadata)
                if pose_frame is not None:
                    session.on_pose_frame(pose_frame, ball)

                frame_end_time = time.perf_counter()
                latency = frame_end_time - frame_start_time
                fps_history.append(1.0 / latency if latency > 0 else 0)
                avg_fps = np.mean(fps_history)

                output_frame = visualizer.render(frame, session.ui_state, avg_fps, ball)
                cv2.imshow('Hoop Drill Tracker', output_frame)

                key = cv2.waitKey(1) & 0xFF
                if key == ord('e'):
                    session.end_session()
                elif key == ord('r'):
                    session.restart()
                elif key == ord('q'):
                    logger.info("Shutdown signal received.")
                    summary = session.end_session()
                    logger.info("Summary: %s", summary.model_dump())
                    break

    except IOError as e:
        logger.error("Failed to initialize. %s", e)
    except Exception:
        logger.exception("An unexpected critical error occurred")
    finally:
        if pose_source is not None:
            pose_source.close()
        if ball_source is not None:
            ball_source.close()
        cv2.destroyAllWindows()
        logger.info("Application terminated.")

if __name__ == "__main__":
    main(*sys.argv[1:2])
