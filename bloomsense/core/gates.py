"""
BloomSense Zone Gates (The Stage).
=================================

Some gestures are geometrically ambiguous near the image border: lens distortion
stretches the fingers and half the hand may be cropped. A gate is a rectangle in
normalized image space that the reference point must sit in before a metric is
allowed to drive its channel. Outside the gate the channel fades instead.
"""
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence

from bloomsense.config import CONFIG
from bloomsense.core.types import Point2D


@dataclass(frozen=True)
class ZoneGate:
    x_min: float
    x_max: float
    y_min: float
    y_max: float

    def __post_init__(self):
        if self.x_min > self.x_max or self.y_min > self.y_max:
            raise ValueError(f"Empty gate rectangle: {self}")

    @classmethod
    def from_bounds(cls, bounds: Sequence[float]) -> "ZoneGate":
        x_min, x_max, y_min, y_max = (float(b) for b in bounds)
        return cls(x_min, x_max, y_min, y_max)

    def contains(self, point: Point2D) -> bool:
        return self.x_min <= point.x <= self.x_max and self.y_min <= point.y <= self.y_max

    def contains_x(self, x: float) -> bool:
        return self.x_min <= x <= self.x_max

    @property
    def center(self) -> Point2D:
        return Point2D((self.x_min + self.x_max) / 2, (self.y_min + self.y_max) / 2)


FULL_FRAME = ZoneGate(0.0, 1.0, 0.0, 1.0)


class GateRegistry:
    """Named gates built once from CONFIG["GATES"]; channels refer to them by name."""

    def __init__(self, config: Optional[dict] = None):
        cfg = config if config is not None else CONFIG
        raw: Mapping[str, Sequence[float]] = cfg.get("GATES", {})
        self._gates: Dict[str, ZoneGate] = {name: ZoneGate.from_bounds(b) for name, b in raw.items()}
        self._gates.setdefault("full", FULL_FRAME)

    def get(self, name: Optional[str]) -> ZoneGate:
        if name is None:
            return FULL_FRAME
        try:
            return self._gates[name]
        except KeyError:
            raise ValueError(f"Unknown gate '{name}'. Known: {sorted(self._gates)}") from None

    def items(self):
        return self._gates.items()
