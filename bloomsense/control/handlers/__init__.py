"""
Handler Context Definition.
Defines the Data Transfer Object (DTO) for the Control Layer.
"""
from typing import Dict, Optional

from bloomsense.core.fusion import DualHandFusion
from bloomsense.core.gates import GateRegistry
from bloomsense.core.metrics import MetricExtractor
from bloomsense.core.types import Channel, ChannelPolicy, DetectionFrame, HandLandmarks, HandSide, Point2D


class HandlerContext:
    """
    A unified context object containing all data required for a Handler to make decisions.
    Wraps the Detection Frame, the fused hand slots, the shared tools, and the staging
    area the controller publishes from.

    Handlers never touch the Signal Bus. They only stage:
    - targets[channel] = float  -> smooth toward this metric
    - targets[channel] = None   -> entity absent or gated out, decay instead
    """
    def __init__(self, frame: DetectionFrame, by_side: Dict[HandSide, HandLandmarks],
                 dominant: Optional[HandLandmarks], policies: Dict[Channel, ChannelPolicy],
                 metrics: MetricExtractor, gates: GateRegistry, fusion: DualHandFusion, config: dict):
        # 1. Input
        self.frame = frame
        self.timestamp = frame.timestamp

        # 2. Fused hand slots
        self.by_side = by_side
        self.dominant = dominant

        # 3. Global Resources
        self.policies = policies
        self.metrics = metrics
        self.gates = gates
        self.fusion = fusion
        self.config = config

        # 4. Staging area (read by the controller after every handler ran)
        self.targets: Dict[Channel, Optional[float]] = {}
        self.swipe: Optional[float] = None
        self.cursor: Optional[Point2D] = None

        self._palms: Dict[int, Point2D] = {}

    def palm(self, hand: HandLandmarks) -> Point2D:
        """Palm center, computed once per hand per frame."""
        key = id(hand)
        if key not in self._palms:
            self._palms[key] = self.metrics.palm_center(hand)
        return self._palms[key]

    def passes_gate(self, channel: Channel, point: Point2D) -> bool:
        return self.gates.get(self.policies[channel].gate).contains(point)

    @property
    def hand_detected(self) -> bool:
        return bool(self.by_side)

    @property
    def face_detected(self) -> bool:
        return self.frame.face is not None
