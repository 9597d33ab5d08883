"""
BloomSense Controller (The Pipeline).
====================================

Acts as the central nervous system between the detector callback and the Signal Bus.

Per Detection Frame:
1. Validate: malformed landmark sets are rejected before any state moves.
2. Fuse: assign hands to sides, pick the dominant slot.
3. Handlers: hand, face, swipe and cursor logic stage their targets.
4. Smooth: ONE generic routine walks the policy table (rise/fall or decay).
5. Commit: every channel of the frame is published to the bus in one swap.
"""
import logging
import threading
from typing import Dict, Optional

from bloomsense.config import CONFIG, CHANNEL_POLICIES, LANDMARKS
from bloomsense.control.handlers import HandlerContext
from bloomsense.control.handlers.cursor_handler import CursorHandler
from bloomsense.control.handlers.face_handler import FaceHandler
from bloomsense.control.handlers.hand_handler import HandHandler
from bloomsense.control.handlers.swipe_handler import SwipeHandler
from bloomsense.core.fusion import DualHandFusion
from bloomsense.core.gates import GateRegistry
from bloomsense.core.interfaces import ILandmarkDetector
from bloomsense.core.kinematics import SwipeDetector
from bloomsense.core.metrics import MetricExtractor
from bloomsense.core.signal_bus import SignalBus
from bloomsense.core.smoothing import ChannelSmoother, GestureLatch, make_latch
from bloomsense.core.types import Channel, DetectionFrame, SCALAR_CHANNELS, SignalSnapshot, load_policies

logger = logging.getLogger(__name__)


class GesturePipeline:
    def __init__(self, bus: Optional[SignalBus] = None, config: Optional[dict] = None,
                 policies: Optional[dict] = None, landmarks: Optional[dict] = None):
        self.config = config if config is not None else CONFIG
        self.landmarks = landmarks if landmarks is not None else LANDMARKS
        self.bus = bus or SignalBus()

        # Tools
        self.policies = load_policies(policies if policies is not None else CHANNEL_POLICIES)
        self.metrics = MetricExtractor(self.config, self.landmarks)
        self.gates = GateRegistry(self.config)
        self.fusion = DualHandFusion(self.config, self.metrics)

        # Fail fast on a policy that names a gate we do not have
        for policy in self.policies.values():
            self.gates.get(policy.gate)

        # Per-channel state
        self.smoothers: Dict[Channel, ChannelSmoother] = {
            channel: ChannelSmoother(self.policies[channel]) for channel in SCALAR_CHANNELS
        }
        self.latches: Dict[Channel, GestureLatch] = {}
        for channel in SCALAR_CHANNELS:
            latch = make_latch(self.policies[channel])
            if latch is not None:
                self.latches[channel] = latch

        # Handlers
        self.hand_handler = HandHandler()
        self.face_handler = FaceHandler()
        self.swipe_handler = SwipeHandler(SwipeDetector(self.config, self.gates.get(self.config["SWIPE_GATE"])))
        self.cursor_handler = CursorHandler()

        # Exposed for the HUD / labs: the last published frame and its raw metrics
        self.last_frame: Optional[DetectionFrame] = None
        self.last_targets: Dict[Channel, Optional[float]] = {}
        self.frames_processed = 0
        self.frames_rejected = 0

        self._busy = threading.Lock()

    # --- ENTRY POINTS ---
    def process(self, frame: DetectionFrame) -> bool:
        """
        Runs one Detection Frame through the pipeline.
        Returns False when the frame was rejected (malformed, or pipeline re-entered).
        Never raises for bad landmark data: the bus simply keeps its previous values.
        """
        if not self._busy.acquire(blocking=False):
            logger.debug("Pipeline busy, dropping re-entrant frame")
            self.frames_rejected += 1
            return False
        try:
            try:
                self._validate(frame)
                ctx = self._build_context(frame)
                self.hand_handler.handle(ctx)
                self.face_handler.handle(ctx)
                self.swipe_handler.handle(ctx)
                self.cursor_handler.handle(ctx)
            except ValueError as e:
                logger.warning(f"⚠️ Frame rejected: {e}")
                self.frames_rejected += 1
                return False

            self._publish(ctx)
            self.frames_processed += 1
            return True
        finally:
            self._busy.release()

    def run_detector(self, detector: ILandmarkDetector, rgb_image, timestamp: float) -> bool:
        """
        Detector call boundary. A detector that throws costs us one frame, nothing more.
        """
        try:
            frame = detector.detect(rgb_image, timestamp)
        except Exception:
            logger.exception("❌ Detector failed, skipping frame")
            self.frames_rejected += 1
            return False
        return self.process(frame)

    def reset(self):
        """Back to rest: smoothers, latches, swipe trackers and the bus."""
        with self._busy:
            for smoother in self.smoothers.values():
                smoother.reset()
            for latch in self.latches.values():
                latch.reset()
            self.swipe_handler.reset()
            self.last_frame = None
            self.last_targets = {}
            self.bus.reset()

    def snapshot(self) -> SignalSnapshot:
        return self.bus.snapshot()

    # --- STAGES ---
    def _validate(self, frame: DetectionFrame):
        hand_points = self.landmarks["HAND_POINTS"]
        for hand in frame.hands:
            if len(hand) < hand_points:
                raise ValueError(f"hand has {len(hand)} landmarks, expected {hand_points}")
        if frame.face is not None:
            face_points = self.landmarks["FACE_POINTS"]
            if len(frame.face) < face_points:
                raise ValueError(f"face has {len(frame.face)} landmarks, expected {face_points}")

    def _build_context(self, frame: DetectionFrame) -> HandlerContext:
        by_side = self.fusion.assign_sides(frame.hands)
        dominant = self.fusion.dominant(by_side)
        return HandlerContext(frame, by_side, dominant, self.policies,
                              self.metrics, self.gates, self.fusion, self.config)

    def _publish(self, ctx: HandlerContext):
        values = {}
        for channel in SCALAR_CHANNELS:
            smoother = self.smoothers[channel]
            target = ctx.targets.get(channel)
            values[channel] = smoother.decay() if target is None else smoother.process(target)

        engaged = {channel: latch.update(values[channel]) for channel, latch in self.latches.items()}

        self.last_frame = ctx.frame
        self.last_targets = dict(ctx.targets)
        self.bus.commit(
            values,
            cursor=ctx.cursor,
            hand_detected=ctx.hand_detected,
            face_detected=ctx.face_detected,
            swipe=ctx.swipe,
            engaged=engaged,
        )
