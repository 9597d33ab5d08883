"""
BloomSense Kinematics (The Flick).
Horizontal palm velocity and the one-shot swipe impulse built on top of it.
"""
from dataclasses import dataclass
from typing import Dict, Hashable, Optional

from bloomsense.config import CONFIG
from bloomsense.core.gates import ZoneGate, GateRegistry


@dataclass
class MotionSample:
    x: float
    t: float


class SwipeDetector:
    """
    Tracks the last horizontal position of each entity (one per hand side).

    A sample arriving more than SWIPE_REACQUIRE_S after the previous one is a fresh
    acquisition: the hand may have re-entered anywhere, so the jump is not a swipe.
    """

    def __init__(self, config: Optional[dict] = None, gate: Optional[ZoneGate] = None):
        cfg = config if config is not None else CONFIG
        self.reacquire_s = cfg["SWIPE_REACQUIRE_S"]
        self.threshold = cfg["SWIPE_VELOCITY_THRESHOLD"]
        self.intensity = cfg["SWIPE_INTENSITY"]
        self.gate = gate or GateRegistry(cfg).get(cfg.get("SWIPE_GATE", "swipe_band"))
        self._samples: Dict[Hashable, MotionSample] = {}
        self.last_velocity: Dict[Hashable, float] = {}

    def velocity(self, key: Hashable, x: float, timestamp: float) -> Optional[float]:
        """
        Records the sample and returns dx/dt, or None on first sight / re-acquisition.
        """
        prev = self._samples.get(key)
        self._samples[key] = MotionSample(x, timestamp)

        if prev is None:
            return None
        dt = timestamp - prev.t
        # dt <= 0 means out-of-order or duplicated timestamps
        if dt <= 0 or dt > self.reacquire_s:
            return None

        v = (x - prev.x) / dt
        self.last_velocity[key] = v
        return v

    def update(self, key: Hashable, x: float, timestamp: float) -> Optional[float]:
        """
        Returns the signed impulse (velocity * intensity) when the sample qualifies
        as a swipe, else None. Positive means moving toward larger image x.
        """
        v = self.velocity(key, x, timestamp)
        if v is None:
            return None
        if abs(v) <= self.threshold or not self.gate.contains_x(x):
            return None
        return v * self.intensity

    def last_x(self, key: Hashable) -> Optional[float]:
        sample = self._samples.get(key)
        return sample.x if sample is not None else None

    def forget(self, key: Hashable):
        """Entity lost: its next sample must count as a fresh acquisition."""
        self._samples.pop(key, None)
        self.last_velocity.pop(key, None)

    def reset(self):
        self._samples.clear()
        self.last_velocity.clear()
