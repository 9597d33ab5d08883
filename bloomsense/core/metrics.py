"""
BloomSense Metric Extractors (The Ruler).
========================================

Pure geometry: one landmark set in, one scalar out. No state.

Every metric is a ratio of two distances measured on the same hand or face,
so it does not change when the user steps closer to or further from the camera.
The reference distances are:
- Hands: Wrist (0) -> Middle Finger MCP (9), the "palm length".
- Face: Temple (234) -> Temple (454) for widths, Forehead (10) -> Chin (152) for heights.
"""
import math
from typing import Optional, Sequence

import numpy as np

from bloomsense.config import CONFIG, LANDMARKS
from bloomsense.core.types import FaceLandmarks, HandLandmarks, LandmarkSet, Point2D


def clamp01(value: float) -> float:
    """Clamps to [0, 1]. NaN collapses to 0 so it can never reach a channel."""
    if value != value:
        return 0.0
    return max(0.0, min(1.0, value))


def linear_map(value: float, low: float, high: float) -> float:
    """Maps [low, high] onto [0, 1] and clamps."""
    span = high - low
    if abs(span) < 1e-12:
        return 1.0 if value >= high else 0.0
    return clamp01((value - low) / span)


class MetricExtractor:
    """
    Computes every gesture metric from a single landmark set.
    Thresholds and indices come from the config so they can be tuned per deployment.
    """
    PALM_POINTS = ("WRIST", "INDEX_MCP", "MIDDLE_MCP", "RING_MCP", "PINKY_MCP")
    FINGER_TIPS = ("INDEX_TIP", "MIDDLE_TIP", "RING_TIP", "PINKY_TIP")

    def __init__(self, config: Optional[dict] = None, landmarks: Optional[dict] = None):
        self.config = config if config is not None else CONFIG
        self.idx = landmarks if landmarks is not None else LANDMARKS
        self.eps = self.config["EPSILON"]

    # --- PRIMITIVES ---
    def _require(self, lms: LandmarkSet, names: Sequence[str]):
        needed = max(self.idx[n] for n in names) + 1
        if len(lms) < needed:
            raise ValueError(f"Landmark set has {len(lms)} points, need at least {needed}")

    def _dist(self, lms: LandmarkSet, a: str, b: str) -> float:
        pa, pb = lms[self.idx[a]], lms[self.idx[b]]
        return math.hypot(pb.x - pa.x, pb.y - pa.y)

    def _safe_ratio(self, num: float, den: float) -> float:
        # Overlapping reference points would otherwise produce inf/NaN
        return num / max(den, self.eps)

    def palm_length(self, hand: HandLandmarks) -> float:
        return self._dist(hand, "WRIST", "MIDDLE_MCP")

    # --- HAND METRICS ---
    def openness(self, hand: HandLandmarks) -> float:
        """0.0 = fist (ratio ~1.1), 1.0 = fully open (ratio ~1.7+)."""
        self._require(hand, ("WRIST", "MIDDLE_MCP", "MIDDLE_TIP"))
        ratio = self._safe_ratio(self._dist(hand, "WRIST", "MIDDLE_TIP"), self.palm_length(hand))
        return clamp01((ratio - self.config["OPEN_RATIO_MIN"]) / self.config["OPEN_RATIO_SPAN"])

    def pinch(self, hand: HandLandmarks) -> float:
        """Thumb tip touching index tip -> 1.0."""
        self._require(hand, ("WRIST", "MIDDLE_MCP", "THUMB_TIP", "INDEX_TIP"))
        ratio = self._safe_ratio(self._dist(hand, "THUMB_TIP", "INDEX_TIP"), self.palm_length(hand))
        return clamp01(1.0 - ratio / self.config["PINCH_RATIO_MAX"])

    def fist_closure(self, hand: HandLandmarks) -> float:
        """Average fingertip reach, inverted: curled fingers -> 1.0."""
        self._require(hand, ("WRIST", "MIDDLE_MCP") + self.FINGER_TIPS)
        reach = sum(self._dist(hand, "WRIST", tip) for tip in self.FINGER_TIPS) / len(self.FINGER_TIPS)
        ratio = self._safe_ratio(reach, self.palm_length(hand))
        return linear_map(ratio, self.config["FIST_OPEN_RATIO"], self.config["FIST_CLOSED_RATIO"])

    def palm_center(self, hand: HandLandmarks) -> Point2D:
        """Mean of wrist + MCP joints. Far steadier than any fingertip."""
        self._require(hand, self.PALM_POINTS)
        pts = hand.as_array()[[self.idx[n] for n in self.PALM_POINTS], :2]
        cx, cy = np.mean(pts, axis=0)
        return Point2D(float(cx), float(cy))

    def palm_height(self, hand: HandLandmarks) -> float:
        """Image y grows downward, so a raised hand reads close to 1.0."""
        return clamp01(1.0 - self.palm_center(hand).y)

    def palm_x(self, hand: HandLandmarks) -> float:
        return self.palm_center(hand).x

    # --- FACE METRICS ---
    def smile(self, face: FaceLandmarks) -> float:
        self._require(face, ("MOUTH_LEFT", "MOUTH_RIGHT", "TEMPLE_LEFT", "TEMPLE_RIGHT"))
        ratio = self._safe_ratio(
            self._dist(face, "MOUTH_LEFT", "MOUTH_RIGHT"),
            self._dist(face, "TEMPLE_LEFT", "TEMPLE_RIGHT"),
        )
        return linear_map(ratio, self.config["SMILE_RATIO_MIN"], self.config["SMILE_RATIO_MAX"])

    def eyebrow_raise(self, face: FaceLandmarks) -> float:
        self._require(face, ("BROW_LEFT", "EYE_LEFT", "BROW_RIGHT", "EYE_RIGHT", "FOREHEAD", "CHIN"))
        gap = (self._dist(face, "BROW_LEFT", "EYE_LEFT") + self._dist(face, "BROW_RIGHT", "EYE_RIGHT")) / 2.0
        ratio = self._safe_ratio(gap, self._dist(face, "FOREHEAD", "CHIN"))
        return linear_map(ratio, self.config["BROW_RATIO_MIN"], self.config["BROW_RATIO_MAX"])
