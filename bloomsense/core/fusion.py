"""
BloomSense Dual-Hand Fusion.
===========================

Two hands can be on screen at once, and each channel must say explicitly how it
combines them:

- PER_HAND  (height): each side owns its own channel.
- DOMINANT  (pinch, fist): the primary slot wins, the other hand is the fallback.
- MAX       (openness / touch): either hand can drive it.

Treating every channel as "first hand found" breaks two-handed play; treating
every channel as max-fused breaks single-hand pinch.

Side labels from the detector are not identity-stable. By default we trust them,
but a frame where both hands claim the same side is re-derived from palm position.
"""
import logging
from typing import Dict, Iterable, Optional, Sequence

from bloomsense.config import CONFIG
from bloomsense.core.metrics import MetricExtractor
from bloomsense.core.types import HandLandmarks, HandSide

logger = logging.getLogger(__name__)


class DualHandFusion:
    MAX_HANDS = 2

    def __init__(self, config: Optional[dict] = None, metrics: Optional[MetricExtractor] = None):
        cfg = config if config is not None else CONFIG
        self.metrics = metrics or MetricExtractor(cfg)
        self.primary = HandSide.from_label(cfg.get("PRIMARY_HAND", "right"))
        if self.primary is HandSide.UNKNOWN:
            raise ValueError(f"PRIMARY_HAND must be 'left' or 'right', got {cfg.get('PRIMARY_HAND')!r}")
        self.side_source = cfg.get("HAND_SIDE_SOURCE", "label")
        if self.side_source not in ("label", "position"):
            raise ValueError(f"HAND_SIDE_SOURCE must be 'label' or 'position', got {self.side_source!r}")

    # --- SIDE ASSIGNMENT ---
    def assign_sides(self, hands: Sequence[HandLandmarks]) -> Dict[HandSide, HandLandmarks]:
        """Returns at most one hand per side."""
        if len(hands) > self.MAX_HANDS:
            logger.warning(f"⚠️ {len(hands)} hands reported, keeping the first {self.MAX_HANDS}")
            hands = hands[:self.MAX_HANDS]
        if not hands:
            return {}

        if len(hands) == 1:
            hand = hands[0]
            if self.side_source == "label" and hand.side is not HandSide.UNKNOWN:
                return {hand.side: hand}
            side = HandSide.LEFT if self.metrics.palm_x(hand) < 0.5 else HandSide.RIGHT
            return {side: hand.with_side(side)}

        a, b = hands
        labels_usable = (
            a.side is not HandSide.UNKNOWN
            and b.side is not HandSide.UNKNOWN
            and a.side is not b.side
        )
        if self.side_source == "label" and labels_usable:
            return {a.side: a, b.side: b}

        # Re-derive from position: the image-left palm is the left hand
        if self.metrics.palm_x(a) > self.metrics.palm_x(b):
            a, b = b, a
        return {HandSide.LEFT: a.with_side(HandSide.LEFT), HandSide.RIGHT: b.with_side(HandSide.RIGHT)}

    # --- FUSION MODES ---
    def dominant(self, by_side: Dict[HandSide, HandLandmarks]) -> Optional[HandLandmarks]:
        hand = by_side.get(self.primary)
        return hand if hand is not None else by_side.get(self.primary.opposite)

    @staticmethod
    def fuse_max(values: Iterable[Optional[float]]) -> Optional[float]:
        present = [v for v in values if v is not None]
        return max(present) if present else None
