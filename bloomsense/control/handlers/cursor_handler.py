"""
BloomSense Cursor Handler.
The cursor follows the hand that produced this frame (the dominant one when two
are visible), whatever fusion the other channels use.
"""
from bloomsense.control.handlers import HandlerContext
from bloomsense.core.types import Point2D


class CursorHandler:
    def handle(self, ctx: HandlerContext):
        hand = ctx.dominant
        if hand is None:
            # Stale position stays on the bus; readers gate on hand_detected
            return
        palm = ctx.palm(hand)
        x = 1.0 - palm.x if ctx.config.get("CURSOR_MIRROR_X", False) else palm.x
        ctx.cursor = Point2D(x, palm.y)
