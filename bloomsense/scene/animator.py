"""
BloomSense Scene Animator (The Flower).
======================================

The render-side consumer. Once per display frame it reads the Signal Bus and
turns channels into scene parameters:

- Openness   -> flower spin speed and "breathing" scale.
- Fist       -> the flower shrinks.
- Swipe      -> a spin kick that bleeds off with friction.
- Smile      -> colour mix toward coral.
- Eyebrows   -> light beams stretch and rotate faster.
- Hand height-> left / right light intensity.
- Smile/Pinch-> the front gesture light.

Ownership: this class is the ONLY caller of `SignalBus.consume_swipe()`.
Anything else that wants to show the impulse must use `peek_swipe()`.
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional

from bloomsense.config import CONFIG
from bloomsense.core.interfaces import ISignalConsumer
from bloomsense.core.signal_bus import SignalBus
from bloomsense.core.types import Point2D, SignalSnapshot

logger = logging.getLogger(__name__)


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


@dataclass
class SceneState:
    rotation: float = 0.0           # Flower yaw (rad)
    spin_velocity: float = 0.0      # Swipe momentum (rad/s)
    scale: float = 1.0
    color_mix: float = 0.0          # 0 = white, 1 = smile colour
    beam_length: float = 0.0
    beam_rotation: float = 0.0
    left_light: float = 0.0
    right_light: float = 0.0
    gesture_light: float = 0.0
    cursor: Optional[Point2D] = None
    swipes_applied: int = 0


class SceneAnimator(ISignalConsumer):
    LIGHT_LERP = 0.15

    def __init__(self, bus: SignalBus, config: Optional[dict] = None):
        cfg = config if config is not None else CONFIG
        self.bus = bus
        self.cfg = cfg["SCENE"]
        self.state = SceneState(
            scale=self.cfg["BASE_SCALE"],
            left_light=self.cfg["LIGHT_BASE"],
            right_light=self.cfg["LIGHT_BASE"],
        )

    def tick(self, dt: float) -> SceneState:
        """Render-loop entry: read the bus, advance the scene by `dt` seconds."""
        self.on_render(self.bus.snapshot(), dt)
        return self.state

    def on_render(self, snapshot: SignalSnapshot, dt: float) -> None:
        cfg = self.cfg
        s = self.state
        dt = max(0.0, dt)

        # 1. SWIPE (consume exactly once)
        impulse = self.bus.consume_swipe()
        if impulse != 0.0:
            s.spin_velocity += impulse
            s.swipes_applied += 1
            logger.debug(f"🌀 Swipe applied: {impulse:+.2f}")
        s.spin_velocity *= math.pow(1.0 - cfg["SPIN_FRICTION"], dt)

        # 2. ROTATION & BREATHING
        speed = cfg["BASE_ROTATION_SPEED"] + snapshot.hand_openness * cfg["ROTATION_BOOST"] + s.spin_velocity
        s.rotation = (s.rotation + speed * dt) % (2 * math.pi)
        s.scale = (cfg["BASE_SCALE"]
                   + snapshot.hand_openness * cfg["MAX_GROWTH"]
                   - snapshot.fist_closure * cfg["FIST_SHRINK"])

        # 3. FACE
        s.color_mix = snapshot.smile
        s.beam_length = snapshot.eyebrow_raise * cfg["BEAM_LENGTH_SCALE"]
        s.beam_rotation += dt * (cfg["BASE_ROTATION_SPEED"] + snapshot.eyebrow_raise * cfg["BEAM_ROTATION_BOOST"])

        # 4. LIGHTS
        span = cfg["LIGHT_MAX"] - cfg["LIGHT_BASE"]
        s.left_light = lerp(s.left_light, cfg["LIGHT_BASE"] + snapshot.left_hand_height * span, self.LIGHT_LERP)
        s.right_light = lerp(s.right_light, cfg["LIGHT_BASE"] + snapshot.right_hand_height * span, self.LIGHT_LERP)
        gesture = max(snapshot.smile, snapshot.pinch * cfg["PINCH_LIGHT_WEIGHT"])
        s.gesture_light = lerp(s.gesture_light, gesture * cfg["GESTURE_LIGHT_MAX"], self.LIGHT_LERP)

        # 5. CURSOR (inert without a hand)
        s.cursor = snapshot.cursor if snapshot.hand_detected else None
