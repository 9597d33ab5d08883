"""
BloomSense MediaPipe Detector.
The black-box keypoint detector: MediaPipe Hands + Face Mesh behind ILandmarkDetector.

Note: MediaPipe labels handedness assuming a mirrored (selfie) image.
Feed it frames that were already flipped with cv2.flip(frame, 1).
"""
import logging
from typing import Optional

import mediapipe as mp

from bloomsense.config import CONFIG
from bloomsense.core.interfaces import ILandmarkDetector
from bloomsense.core.types import DetectionFrame
from bloomsense.vision.adapter import frame_from_results

logger = logging.getLogger(__name__)


class MediaPipeDetector(ILandmarkDetector):
    def __init__(self, config: Optional[dict] = None):
        cfg = config if config is not None else CONFIG
        self.hands = mp.solutions.hands.Hands(
            max_num_hands=cfg["MAX_HANDS"],
            model_complexity=cfg["MODEL_COMPLEXITY"],
            min_detection_confidence=cfg["MIN_DETECTION_CONFIDENCE"],
            min_tracking_confidence=cfg["MIN_TRACKING_CONFIDENCE"],
        )
        self.face_mesh = None
        if cfg.get("TRACK_FACE", True):
            self.face_mesh = mp.solutions.face_mesh.FaceMesh(
                max_num_faces=1,
                refine_landmarks=True,
                min_detection_confidence=cfg["MIN_DETECTION_CONFIDENCE"],
                min_tracking_confidence=cfg["MIN_TRACKING_CONFIDENCE"],
            )
        logger.info(f"🧠 MediaPipe detector ready (face tracking: {self.face_mesh is not None})")

    def detect(self, rgb_image, timestamp: float) -> DetectionFrame:
        hand_results = self.hands.process(rgb_image)
        face_results = self.face_mesh.process(rgb_image) if self.face_mesh is not None else None
        return frame_from_results(timestamp, hand_results, face_results)

    def close(self) -> None:
        self.hands.close()
        if self.face_mesh is not None:
            self.face_mesh.close()
