"""
BloomSense Detector Adapter.
===========================

Converts MediaPipe result objects into our own Detection Frame.
Duck-typed on purpose: anything shaped like a MediaPipe result works, which keeps
this module importable (and testable) without the MediaPipe runtime.

Expected shapes:
- hands:  results.multi_hand_landmarks[i].landmark[j].x/.y/.z
          results.multi_handedness[i].classification[0].label/.score
- face:   results.multi_face_landmarks[0].landmark[j].x/.y/.z
"""
from typing import Any, Optional, Tuple

from bloomsense.core.types import DetectionFrame, FaceLandmarks, HandLandmarks, HandSide


def _points(landmark_list: Any):
    # NormalizedLandmarkList wraps its points in `.landmark`; plain lists pass through
    return getattr(landmark_list, "landmark", landmark_list)


def hands_from_results(results: Any) -> Tuple[HandLandmarks, ...]:
    if results is None:
        return ()
    landmark_lists = getattr(results, "multi_hand_landmarks", None) or []
    handedness = getattr(results, "multi_handedness", None) or []

    hands = []
    for i, lms in enumerate(landmark_lists):
        side, score = HandSide.UNKNOWN, 1.0
        if i < len(handedness):
            classification = getattr(handedness[i], "classification", None)
            if classification:
                side = HandSide.from_label(getattr(classification[0], "label", None))
                score = float(getattr(classification[0], "score", 1.0))
        hands.append(HandLandmarks(_points(lms), side, score))
    return tuple(hands)


def face_from_results(results: Any) -> Optional[FaceLandmarks]:
    if results is None:
        return None
    faces = getattr(results, "multi_face_landmarks", None)
    if not faces:
        return None
    return FaceLandmarks(_points(faces[0]))


def frame_from_results(timestamp: float, hand_results: Any, face_results: Any = None) -> DetectionFrame:
    return DetectionFrame(
        timestamp=timestamp,
        hands=hands_from_results(hand_results),
        face=face_from_results(face_results),
    )
