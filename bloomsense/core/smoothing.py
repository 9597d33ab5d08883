"""
BloomSense Smoothing Layer (The Damper).
Optimized for high-frequency calling: every method is O(1).

Key Concept: "Fast In, Soft Out"
A gesture should feel instant when the user engages it (high rise rate) but must
not flicker off because the detector missed a single frame (lower fall rate).
Some channels (the fist) want to feel snappy both ways; that is a per-channel
policy, never a global rule.
"""
from typing import Optional, Tuple

from bloomsense.core.metrics import clamp01
from bloomsense.core.types import ChannelPolicy


def asymmetric_step(value: float, target: float, rise: float, fall: float) -> float:
    """
    One exponential smoothing step toward `target`.
    With rates in (0, 1] the result always lies between value and target:
    no overshoot, no oscillation.
    """
    rate = rise if target > value else fall
    return value + (target - value) * rate


class ChannelSmoother:
    """Stateful filter for one scalar channel, bounded to [0, 1]."""
    __slots__ = ("policy", "value")

    def __init__(self, policy: ChannelPolicy, initial: float = 0.0):
        self.policy = policy
        self.value = clamp01(initial)

    def process(self, target: float) -> float:
        """Normal path: the entity is visible and the metric passed its gate."""
        self.value = clamp01(asymmetric_step(self.value, clamp01(target), self.policy.rise, self.policy.fall))
        return self.value

    def decay(self) -> float:
        """Loss-of-tracking path: multiplicative fade, applied once per detection frame."""
        self.value = clamp01(self.value * self.policy.decay)
        return self.value

    def reset(self, value: float = 0.0):
        self.value = clamp01(value)


class GestureLatch:
    """
    Schmitt Trigger over a smoothed channel.
    Engages above `on`, releases only below `off`, so a value hovering around a
    single threshold cannot chatter.
    """
    __slots__ = ("on", "off", "engaged")

    def __init__(self, thresholds: Tuple[float, float]):
        self.on, self.off = thresholds
        self.engaged = False

    def update(self, value: float) -> bool:
        if self.engaged:
            self.engaged = value >= self.off
        else:
            self.engaged = value > self.on
        return self.engaged

    def reset(self):
        self.engaged = False


def make_latch(policy: ChannelPolicy) -> Optional[GestureLatch]:
    return GestureLatch(policy.latch) if policy.latch else None
