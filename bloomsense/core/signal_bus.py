"""
BloomSense Signal Bus (Shared State).
====================================

The one structure the whole process shares:
- Written once per processed detection frame by the pipeline (`commit`).
- Read every render frame by any number of consumers (`snapshot`).

Readers never see a half-updated frame: the pipeline stages every channel it
derives from a frame and the bus swaps in a new immutable snapshot under a lock.
The lock is only held for the swap, so readers never wait on the pipeline's math.

The swipe impulse is one-shot. Exactly one consumer (the SceneAnimator in this
application) owns `consume_swipe()`. Everyone else may `peek_swipe()`.
"""
import threading
from types import MappingProxyType
from typing import Mapping, Optional

from bloomsense.core.metrics import clamp01
from bloomsense.core.types import Channel, Point2D, SCALAR_CHANNELS, SignalSnapshot


class SignalBus:
    def __init__(self):
        self._lock = threading.Lock()
        self._snapshot = SignalSnapshot()

    # --- READ SIDE (render loop) ---
    def snapshot(self) -> SignalSnapshot:
        with self._lock:
            return self._snapshot

    def get(self, channel: Channel):
        return self.snapshot().value(channel)

    def peek_swipe(self) -> float:
        return self.snapshot().swipe_impulse

    def consume_swipe(self) -> float:
        """Atomic read-and-zero. Returns 0.0 when nothing is pending."""
        with self._lock:
            impulse = self._snapshot.swipe_impulse
            if impulse != 0.0:
                self._snapshot = self._snapshot.with_values(swipe_impulse=0.0)
            return impulse

    # --- WRITE SIDE (pipeline only) ---
    def commit(
        self,
        values: Mapping[Channel, float],
        cursor: Optional[Point2D] = None,
        hand_detected: Optional[bool] = None,
        face_detected: Optional[bool] = None,
        swipe: Optional[float] = None,
        engaged: Optional[Mapping[Channel, bool]] = None,
    ) -> SignalSnapshot:
        """
        Publishes one detection frame's worth of updates in a single swap.
        `swipe=None` keeps whatever impulse is pending (possibly already consumed):
        a commit never resurrects an impulse a consumer has zeroed.
        """
        changes = {}
        for channel, value in values.items():
            if channel not in SCALAR_CHANNELS:
                raise ValueError(f"{channel} is not a scalar channel")
            changes[SignalSnapshot.field_for(channel)] = clamp01(float(value))
        if cursor is not None:
            changes["cursor"] = Point2D(clamp01(cursor.x), clamp01(cursor.y))
        if hand_detected is not None:
            changes["hand_detected"] = bool(hand_detected)
        if face_detected is not None:
            changes["face_detected"] = bool(face_detected)
        if engaged is not None:
            # Read-only view: snapshots are shared by every reader
            changes["engaged"] = MappingProxyType(dict(engaged))

        with self._lock:
            if swipe is not None:
                changes["swipe_impulse"] = float(swipe)
            changes["frame_id"] = self._snapshot.frame_id + 1
            self._snapshot = self._snapshot.with_values(**changes)
            return self._snapshot

    def reset(self):
        """Back to rest: every channel at its neutral default."""
        with self._lock:
            self._snapshot = SignalSnapshot()
