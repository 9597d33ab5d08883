"""
BloomSense Hand Channels.
========================

Stages targets for every hand-driven channel according to its fusion mode:
- MAX       -> handOpenness: best of the hands that pass the gate.
- DOMINANT  -> pinch, fistClosure: the primary slot (or the only hand).
- PER_HAND  -> leftHandHeight / rightHandHeight: each side on its own.

A channel whose source hand is missing, or sits outside the channel's gate,
gets `None` and fades through the decay path.
"""
from typing import Callable, Optional

from bloomsense.control.handlers import HandlerContext
from bloomsense.core.types import Channel, FusionMode, HandLandmarks, HEIGHT_CHANNEL_BY_SIDE


class HandHandler:
    def __init__(self):
        self._metric_by_channel = {
            Channel.HAND_OPENNESS: lambda m, h: m.openness(h),
            Channel.PINCH: lambda m, h: m.pinch(h),
            Channel.FIST_CLOSURE: lambda m, h: m.fist_closure(h),
        }

    def handle(self, ctx: HandlerContext):
        if not ctx.hand_detected:
            for channel in self._metric_by_channel:
                ctx.targets[channel] = None
            for channel in HEIGHT_CHANNEL_BY_SIDE.values():
                ctx.targets[channel] = None
            return

        for channel, metric in self._metric_by_channel.items():
            ctx.targets[channel] = self._fused_target(ctx, channel, metric)

        for side, channel in HEIGHT_CHANNEL_BY_SIDE.items():
            hand = ctx.by_side.get(side)
            if hand is None or not ctx.passes_gate(channel, ctx.palm(hand)):
                ctx.targets[channel] = None
            else:
                ctx.targets[channel] = ctx.metrics.palm_height(hand)

    def _fused_target(self, ctx: HandlerContext, channel: Channel,
                      metric: Callable[..., float]) -> Optional[float]:
        mode = ctx.policies[channel].fusion
        if mode is FusionMode.MAX:
            candidates = list(ctx.by_side.values())
        elif mode is FusionMode.DOMINANT:
            # No fallback to the other hand when the primary one is gated out
            candidates = [ctx.dominant] if ctx.dominant is not None else []
        else:
            raise ValueError(f"{channel.value} cannot use fusion mode {mode}")

        # The gate is checked before the metric: outside it the metric is never computed
        values = [metric(ctx.metrics, h) for h in candidates if self._admitted(ctx, channel, h)]
        return ctx.fusion.fuse_max(values)

    @staticmethod
    def _admitted(ctx: HandlerContext, channel: Channel, hand: HandLandmarks) -> bool:
        return ctx.passes_gate(channel, ctx.palm(hand))
