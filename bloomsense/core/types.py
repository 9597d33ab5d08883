"""
BloomSense Types.
Central definition of Data Contracts to prevent circular imports.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import numpy as np


# --- GEOMETRY TYPES ---
@dataclass(frozen=True)
class Point2D:
    x: float
    y: float


@dataclass(frozen=True)
class Landmark:
    """Single keypoint in normalized image space (origin top-left)."""
    x: float
    y: float
    z: float = 0.0


# --- ENTITY / CHANNEL ENUMS ---
class HandSide(Enum):
    LEFT = "left"
    RIGHT = "right"
    UNKNOWN = "unknown"

    @classmethod
    def from_label(cls, raw_label: Any) -> "HandSide":
        if not raw_label or not isinstance(raw_label, str):
            return cls.UNKNOWN
        clean = raw_label.strip().lower()
        for member in cls:
            if member.value == clean:
                return member
        return cls.UNKNOWN

    @property
    def opposite(self) -> "HandSide":
        if self is HandSide.LEFT:
            return HandSide.RIGHT
        if self is HandSide.RIGHT:
            return HandSide.LEFT
        return HandSide.UNKNOWN


class Entity(Enum):
    HAND = "hand"
    FACE = "face"


class FusionMode(Enum):
    MAX = "max"             # Either hand can drive it
    DOMINANT = "dominant"   # Primary slot first, other hand as fallback
    PER_HAND = "per_hand"   # One channel per side


class Channel(Enum):
    HAND_OPENNESS = "handOpenness"
    PINCH = "pinch"
    FIST_CLOSURE = "fistClosure"
    SMILE = "smile"
    EYEBROW_RAISE = "eyebrowRaise"
    LEFT_HAND_HEIGHT = "leftHandHeight"
    RIGHT_HAND_HEIGHT = "rightHandHeight"
    SWIPE_IMPULSE = "swipeImpulse"
    CURSOR_POSITION = "cursorPosition"
    IS_HAND_DETECTED = "isHandDetected"
    IS_FACE_DETECTED = "isFaceDetected"


# Channels that go through the smoothing/decay machinery
SCALAR_CHANNELS = (
    Channel.HAND_OPENNESS,
    Channel.PINCH,
    Channel.FIST_CLOSURE,
    Channel.SMILE,
    Channel.EYEBROW_RAISE,
    Channel.LEFT_HAND_HEIGHT,
    Channel.RIGHT_HAND_HEIGHT,
)

HEIGHT_CHANNEL_BY_SIDE = {
    HandSide.LEFT: Channel.LEFT_HAND_HEIGHT,
    HandSide.RIGHT: Channel.RIGHT_HAND_HEIGHT,
}


# --- LANDMARK SETS ---
class LandmarkSet:
    """
    Read-only, fixed-length sequence of landmarks for one tracked entity.
    Accepts Landmark objects, anything with .x/.y(/.z), or (x, y[, z]) tuples.
    """
    __slots__ = ("points",)

    def __init__(self, points: Iterable[Any]):
        self.points: Tuple[Landmark, ...] = tuple(self._coerce(p) for p in points)

    @staticmethod
    def _coerce(p: Any) -> Landmark:
        if isinstance(p, Landmark):
            return p
        if hasattr(p, "x"):
            return Landmark(float(p.x), float(p.y), float(getattr(p, "z", 0.0) or 0.0))
        coords = tuple(p)
        z = float(coords[2]) if len(coords) > 2 else 0.0
        return Landmark(float(coords[0]), float(coords[1]), z)

    def __len__(self) -> int:
        return len(self.points)

    def __getitem__(self, idx: int) -> Landmark:
        return self.points[idx]

    def __iter__(self):
        return iter(self.points)

    def as_array(self) -> np.ndarray:
        """(N, 3) float array of x, y, z."""
        return np.array([[p.x, p.y, p.z] for p in self.points], dtype=float)


class HandLandmarks(LandmarkSet):
    __slots__ = ("side", "confidence")

    def __init__(self, points: Iterable[Any], side: HandSide = HandSide.UNKNOWN, confidence: float = 1.0):
        super().__init__(points)
        self.side = side
        self.confidence = confidence

    def with_side(self, side: HandSide) -> "HandLandmarks":
        return HandLandmarks(self.points, side, self.confidence)

    def __repr__(self):
        return f"HandLandmarks(side={self.side.value}, n={len(self.points)})"


class FaceLandmarks(LandmarkSet):
    __slots__ = ()

    def __repr__(self):
        return f"FaceLandmarks(n={len(self.points)})"


@dataclass(frozen=True)
class DetectionFrame:
    """Everything the detector found in one processed camera frame."""
    timestamp: float
    hands: Tuple[HandLandmarks, ...] = ()
    face: Optional[FaceLandmarks] = None

    @property
    def has_hands(self) -> bool:
        return len(self.hands) > 0

    @property
    def has_face(self) -> bool:
        return self.face is not None


# --- POLICY ---
@dataclass(frozen=True)
class ChannelPolicy:
    rise: float
    fall: float
    decay: float
    gate: str = "full"
    entity: Entity = Entity.HAND
    fusion: Optional[FusionMode] = None
    latch: Optional[Tuple[float, float]] = None

    def __post_init__(self):
        for name in ("rise", "fall"):
            rate = getattr(self, name)
            if not 0.0 < rate <= 1.0:
                raise ValueError(f"{name} rate must be in (0, 1], got {rate}")
        if not 0.0 < self.decay < 1.0:
            raise ValueError(f"decay must be in (0, 1), got {self.decay}")
        if self.latch is not None:
            on, off = self.latch
            if off > on:
                raise ValueError(f"latch release {off} must not exceed engage {on}")

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ChannelPolicy":
        fusion = raw.get("fusion")
        latch = raw.get("latch")
        return cls(
            rise=float(raw["rise"]),
            fall=float(raw["fall"]),
            decay=float(raw["decay"]),
            gate=raw.get("gate") or "full",
            entity=Entity(raw.get("entity", "hand")),
            fusion=FusionMode(fusion) if fusion else None,
            latch=tuple(latch) if latch else None,
        )


def load_policies(table: Mapping[str, Mapping[str, Any]]) -> Dict[Channel, ChannelPolicy]:
    """Turns the CHANNEL_POLICIES config table into typed policies."""
    policies = {Channel(name): ChannelPolicy.from_dict(row) for name, row in table.items()}
    missing = [c.value for c in SCALAR_CHANNELS if c not in policies]
    if missing:
        raise ValueError(f"No channel policy for: {', '.join(missing)}")
    return policies


# --- OUTPUT CONTRACT ---
_FIELD_BY_CHANNEL = {
    Channel.HAND_OPENNESS: "hand_openness",
    Channel.PINCH: "pinch",
    Channel.FIST_CLOSURE: "fist_closure",
    Channel.SMILE: "smile",
    Channel.EYEBROW_RAISE: "eyebrow_raise",
    Channel.LEFT_HAND_HEIGHT: "left_hand_height",
    Channel.RIGHT_HAND_HEIGHT: "right_hand_height",
    Channel.SWIPE_IMPULSE: "swipe_impulse",
    Channel.CURSOR_POSITION: "cursor",
    Channel.IS_HAND_DETECTED: "hand_detected",
    Channel.IS_FACE_DETECTED: "face_detected",
}


@dataclass(frozen=True)
class SignalSnapshot:
    """Every channel as of the last completed commit. Immutable."""
    hand_openness: float = 0.0
    pinch: float = 0.0
    fist_closure: float = 0.0
    smile: float = 0.0
    eyebrow_raise: float = 0.0
    left_hand_height: float = 0.0
    right_hand_height: float = 0.0
    swipe_impulse: float = 0.0
    cursor: Point2D = Point2D(0.5, 0.5)
    hand_detected: bool = False
    face_detected: bool = False
    engaged: Mapping[Channel, bool] = field(default_factory=lambda: MappingProxyType({}))
    frame_id: int = 0

    def value(self, channel: Channel) -> Any:
        return getattr(self, _FIELD_BY_CHANNEL[channel])

    def with_values(self, **changes) -> "SignalSnapshot":
        return replace(self, **changes)

    @staticmethod
    def field_for(channel: Channel) -> str:
        return _FIELD_BY_CHANNEL[channel]
