"""BloomSense Face Channels (Smile / Eyebrows)."""
from bloomsense.control.handlers import HandlerContext
from bloomsense.core.types import Channel, Point2D


class FaceHandler:
    CHANNELS = (Channel.SMILE, Channel.EYEBROW_RAISE)

    def handle(self, ctx: HandlerContext):
        face = ctx.frame.face
        if face is None:
            for channel in self.CHANNELS:
                ctx.targets[channel] = None
            return

        arr = face.as_array()
        center = Point2D(float(arr[:, 0].mean()), float(arr[:, 1].mean()))

        ctx.targets[Channel.SMILE] = (
            ctx.metrics.smile(face) if ctx.passes_gate(Channel.SMILE, center) else None
        )
        ctx.targets[Channel.EYEBROW_RAISE] = (
            ctx.metrics.eyebrow_raise(face) if ctx.passes_gate(Channel.EYEBROW_RAISE, center) else None
        )
