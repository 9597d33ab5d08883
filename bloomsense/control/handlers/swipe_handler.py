"""
BloomSense Swipe Logic.
======================

Feeds each visible hand's palm x into the SwipeDetector and stages the impulse.

Key Logic: "Last Write Wins"
Impulses are not queued. If both hands swipe in the same frame, the dominant
hand is evaluated last and overrides. If a consumer has not read the previous
impulse yet, the new one simply replaces it on the bus.

Key Logic: "Label Swap Guard"
Side labels can flip between frames while both hands stand still. When the
crossed pairing (left now vs right before, and vice versa) fits better than the
labelled one, both histories are dropped and the frame counts as a re-acquisition.
"""
import logging

from bloomsense.control.handlers import HandlerContext
from bloomsense.core.kinematics import SwipeDetector
from bloomsense.core.types import HandSide

logger = logging.getLogger(__name__)


class SwipeHandler:
    def __init__(self, detector: SwipeDetector):
        self.detector = detector

    def handle(self, ctx: HandlerContext):
        for side in (HandSide.LEFT, HandSide.RIGHT):
            if side not in ctx.by_side:
                self.detector.forget(side)

        if self._labels_swapped(ctx):
            logger.debug("🔀 Hand sides swapped, restarting swipe tracking")
            self.detector.forget(HandSide.LEFT)
            self.detector.forget(HandSide.RIGHT)

        ordered = sorted(ctx.by_side.items(), key=lambda item: item[1] is ctx.dominant)
        for side, hand in ordered:
            impulse = self.detector.update(side, ctx.palm(hand).x, ctx.timestamp)
            if impulse is not None:
                ctx.swipe = impulse

    def _labels_swapped(self, ctx: HandlerContext) -> bool:
        if len(ctx.by_side) != 2:
            return False
        prev_left = self.detector.last_x(HandSide.LEFT)
        prev_right = self.detector.last_x(HandSide.RIGHT)
        if prev_left is None or prev_right is None:
            return False

        left_x = ctx.palm(ctx.by_side[HandSide.LEFT]).x
        right_x = ctx.palm(ctx.by_side[HandSide.RIGHT]).x
        labelled = abs(left_x - prev_left) + abs(right_x - prev_right)
        crossed = abs(left_x - prev_right) + abs(right_x - prev_left)
        return crossed < labelled

    def reset(self):
        self.detector.reset()
