import copy
import math
import random
import unittest

from bloomsense.config import CONFIG
from bloomsense.control.controller import GesturePipeline
from bloomsense.core.interfaces import ILandmarkDetector
from bloomsense.core.types import Channel, DetectionFrame, FaceLandmarks, HandLandmarks, HandSide, SCALAR_CHANNELS
from landmark_factory import make_face, make_fist, make_hand, make_open_hand

DT = 1.0 / 30.0


def frame(t, *hands, face=None):
    return DetectionFrame(t, tuple(hands), face)


class BrokenDetector(ILandmarkDetector):
    def detect(self, rgb_image, timestamp):
        raise RuntimeError("camera unplugged")

    def close(self):
        pass


class CannedDetector(ILandmarkDetector):
    def __init__(self, result):
        self.result = result

    def detect(self, rgb_image, timestamp):
        return self.result

    def close(self):
        pass


class TestPipelineSmoothing(unittest.TestCase):
    def setUp(self):
        self.pipeline = GesturePipeline()
        self.t = 0.0

    def feed(self, *hands, face=None, n=1):
        for _ in range(n):
            self.t += DT
            self.assertTrue(self.pipeline.process(frame(self.t, *hands, face=face)))
        return self.pipeline.snapshot()

    def test_acquisition_reaches_target_in_29_frames(self):
        hand = make_open_hand(0.8)
        snap = self.feed(hand, n=28)
        self.assertGreater(abs(snap.hand_openness - 0.8), 0.008)
        snap = self.feed(hand)
        self.assertLessEqual(abs(snap.hand_openness - 0.8), 0.008)
        self.assertTrue(snap.hand_detected)

    def test_decay_on_loss(self):
        snap = self.feed(make_open_hand(0.8), n=60)
        held = {c: snap.value(c) for c in SCALAR_CHANNELS}

        snap = self.feed(n=10)
        self.assertFalse(snap.hand_detected)
        for channel in (Channel.HAND_OPENNESS, Channel.PINCH, Channel.FIST_CLOSURE,
                        Channel.RIGHT_HAND_HEIGHT):
            decay = self.pipeline.policies[channel].decay
            self.assertAlmostEqual(snap.value(channel), held[channel] * decay ** 10)

    def test_gate_exclusion_decays_fist(self):
        snap = self.feed(make_fist(center=(0.5, 0.5)), n=30)
        held = snap.fist_closure
        self.assertGreater(held, 0.99)

        snap = self.feed(make_fist(center=(0.1, 0.5)), n=5)
        self.assertIsNone(self.pipeline.last_targets[Channel.FIST_CLOSURE])
        self.assertAlmostEqual(snap.fist_closure, held * 0.9 ** 5)
        # Full-frame channels still follow the hand
        self.assertTrue(snap.hand_detected)
        self.assertIsNotNone(self.pipeline.last_targets[Channel.RIGHT_HAND_HEIGHT])

    def test_latch_engages_on_held_fist(self):
        snap = self.feed(make_fist(), n=30)
        self.assertTrue(snap.engaged[Channel.FIST_CLOSURE])
        self.assertFalse(snap.engaged[Channel.HAND_OPENNESS])
        snap = self.feed(n=30)
        self.assertFalse(snap.engaged[Channel.FIST_CLOSURE])

    def test_face_channels(self):
        snap = self.feed(face=make_face(smile_ratio=0.41, brow_ratio=0.12), n=1)
        self.assertTrue(snap.face_detected)
        self.assertFalse(snap.hand_detected)
        self.assertAlmostEqual(self.pipeline.last_targets[Channel.SMILE], 0.5)
        self.assertAlmostEqual(self.pipeline.last_targets[Channel.EYEBROW_RAISE], 0.5)
        self.assertAlmostEqual(snap.smile, 0.05)

        before = snap.smile
        snap = self.feed(n=3)
        self.assertFalse(snap.face_detected)
        self.assertAlmostEqual(snap.smile, before * 0.9 ** 3)


class TestPipelineFusion(unittest.TestCase):
    def test_two_hands(self):
        """Openness takes the max, heights stay per side, pinch follows the primary hand."""
        pipeline = GesturePipeline()
        left = make_hand(center=(0.3, 0.3), reach=1.1 + 0.6 * 0.9, middle_reach=1.1 + 0.6 * 0.9,
                         pinch_gap=0.0, side="left")
        right = make_open_hand(0.2, center=(0.7, 0.6), side="right", pinch_gap=1.0)
        pipeline.process(frame(1.0, left, right))

        targets = pipeline.last_targets
        self.assertAlmostEqual(targets[Channel.HAND_OPENNESS], 0.9)
        self.assertAlmostEqual(targets[Channel.LEFT_HAND_HEIGHT], 0.7)
        self.assertAlmostEqual(targets[Channel.RIGHT_HAND_HEIGHT], 0.4)
        self.assertEqual(targets[Channel.PINCH], 0.0)

    def test_primary_hand_override(self):
        cfg = copy.deepcopy(CONFIG)
        cfg["PRIMARY_HAND"] = "left"
        pipeline = GesturePipeline(config=cfg)
        left = make_open_hand(0.5, center=(0.3, 0.5), side="left", pinch_gap=0.0)
        right = make_open_hand(0.5, center=(0.7, 0.5), side="right", pinch_gap=1.0)
        pipeline.process(frame(1.0, left, right))
        self.assertAlmostEqual(pipeline.last_targets[Channel.PINCH], 1.0)

    def test_gated_primary_does_not_hand_over_to_other_hand(self):
        """Primary hand outside the stage: fist fades even if the other hand fists centre-frame."""
        pipeline = GesturePipeline()
        left = make_fist(center=(0.5, 0.5), side="left")
        right = make_open_hand(0.8, center=(0.1, 0.5), side="right")
        pipeline.process(frame(1.0, left, right))
        self.assertIsNone(pipeline.last_targets[Channel.FIST_CLOSURE])
        self.assertAlmostEqual(pipeline.last_targets[Channel.HAND_OPENNESS], 0.8)

        # Primary gone altogether: the other hand takes the slot
        pipeline.process(frame(1.1, left))
        self.assertAlmostEqual(pipeline.last_targets[Channel.FIST_CLOSURE], 1.0)

    def test_height_of_missing_side_decays(self):
        pipeline = GesturePipeline()
        for i in range(20):
            pipeline.process(frame(i * DT, make_open_hand(0.5, center=(0.3, 0.2), side="left")))
        held = pipeline.snapshot().left_hand_height
        pipeline.process(frame(21 * DT, make_open_hand(0.5, center=(0.7, 0.5), side="right")))
        snap = pipeline.snapshot()
        self.assertAlmostEqual(snap.left_hand_height, held * 0.95)
        self.assertGreater(snap.right_hand_height, 0.0)

    def test_cursor(self):
        pipeline = GesturePipeline()
        pipeline.process(frame(1.0, make_open_hand(0.5, center=(0.6, 0.4))))
        cursor = pipeline.snapshot().cursor
        self.assertAlmostEqual(cursor.x, 0.6)
        self.assertAlmostEqual(cursor.y, 0.4)

        cfg = copy.deepcopy(CONFIG)
        cfg["CURSOR_MIRROR_X"] = True
        mirrored = GesturePipeline(config=cfg)
        mirrored.process(frame(1.0, make_open_hand(0.5, center=(0.6, 0.4))))
        self.assertAlmostEqual(mirrored.snapshot().cursor.x, 0.4)


class TestPipelineSwipe(unittest.TestCase):
    def test_swipe_reaches_bus(self):
        pipeline = GesturePipeline()
        pipeline.process(frame(1.00, make_open_hand(0.5, center=(0.40, 0.5))))
        pipeline.process(frame(1.05, make_open_hand(0.5, center=(0.55, 0.5))))
        self.assertAlmostEqual(pipeline.bus.peek_swipe(), 3.9)

        # Still hand: no new impulse, the pending one is kept until consumed
        pipeline.process(frame(1.08, make_open_hand(0.5, center=(0.55, 0.5))))
        self.assertAlmostEqual(pipeline.bus.consume_swipe(), 3.9)
        pipeline.process(frame(1.11, make_open_hand(0.5, center=(0.55, 0.5))))
        self.assertEqual(pipeline.bus.peek_swipe(), 0.0)

    def test_reentry_after_loss_is_not_a_swipe(self):
        pipeline = GesturePipeline()
        pipeline.process(frame(1.00, make_open_hand(0.5, center=(0.30, 0.5))))
        pipeline.process(frame(1.03))
        pipeline.process(frame(1.06, make_open_hand(0.5, center=(0.70, 0.5))))
        self.assertEqual(pipeline.bus.peek_swipe(), 0.0)

    def test_side_label_swap_is_not_a_swipe(self):
        """Two still hands whose labels flip for a frame must not read as a 0.4 jump."""
        pipeline = GesturePipeline()
        pipeline.process(frame(1.00, make_open_hand(0.5, center=(0.3, 0.5), side="left"),
                               make_open_hand(0.5, center=(0.7, 0.5), side="right")))
        pipeline.process(frame(1.033, make_open_hand(0.5, center=(0.3, 0.5), side="right"),
                               make_open_hand(0.5, center=(0.7, 0.5), side="left")))
        self.assertEqual(pipeline.bus.peek_swipe(), 0.0)

        # Labels flip back: still no impulse
        pipeline.process(frame(1.066, make_open_hand(0.5, center=(0.3, 0.5), side="left"),
                               make_open_hand(0.5, center=(0.7, 0.5), side="right")))
        self.assertEqual(pipeline.bus.peek_swipe(), 0.0)

    def test_one_hand_swipes_while_other_holds_still(self):
        pipeline = GesturePipeline()
        pipeline.process(frame(1.00, make_open_hand(0.5, center=(0.30, 0.5), side="left"),
                               make_open_hand(0.5, center=(0.70, 0.5), side="right")))
        pipeline.process(frame(1.05, make_open_hand(0.5, center=(0.45, 0.5), side="left"),
                               make_open_hand(0.5, center=(0.70, 0.5), side="right")))
        self.assertAlmostEqual(pipeline.bus.peek_swipe(), 3.9)


class TestPipelineRobustness(unittest.TestCase):
    def test_detector_failure_leaves_bus_untouched(self):
        pipeline = GesturePipeline()
        pipeline.process(frame(1.0, make_open_hand(0.7)))
        before = pipeline.snapshot()
        with self.assertLogs("bloomsense.control.controller", level="ERROR"):
            self.assertFalse(pipeline.run_detector(BrokenDetector(), None, 1.1))
        self.assertIs(pipeline.snapshot(), before)
        self.assertEqual(pipeline.frames_rejected, 1)

    def test_detector_success(self):
        pipeline = GesturePipeline()
        self.assertTrue(pipeline.run_detector(CannedDetector(frame(1.0, make_fist())), None, 1.0))
        self.assertEqual(pipeline.snapshot().frame_id, 1)

    def test_malformed_frame_rejected(self):
        pipeline = GesturePipeline()
        short = HandLandmarks([(0.5, 0.5, 0.0)] * 7)
        with self.assertLogs("bloomsense.control.controller", level="WARNING"):
            self.assertFalse(pipeline.process(frame(1.0, make_open_hand(0.5), short)))
        self.assertEqual(pipeline.snapshot().frame_id, 0)

        face = FaceLandmarks([(0.5, 0.5, 0.0)] * 100)
        with self.assertLogs("bloomsense.control.controller", level="WARNING"):
            self.assertFalse(pipeline.process(frame(1.0, face=face)))

    def test_reentrant_call_is_dropped(self):
        pipeline = GesturePipeline()
        pipeline._busy.acquire()
        try:
            self.assertFalse(pipeline.process(frame(1.0, make_open_hand(0.5))))
        finally:
            pipeline._busy.release()
        self.assertTrue(pipeline.process(frame(1.1, make_open_hand(0.5))))

    def test_outputs_stay_bounded(self):
        """Random and degenerate landmark soup never leaves [0, 1] or turns NaN."""
        rng = random.Random(7)
        pipeline = GesturePipeline()
        t = 0.0

        def soup(n):
            return [(rng.uniform(-0.5, 1.5), rng.uniform(-0.5, 1.5), rng.uniform(-1, 1)) for _ in range(n)]

        for i in range(300):
            t += rng.uniform(0.0, 0.2)
            hands = []
            for _ in range(rng.randint(0, 3)):
                if rng.random() < 0.2:
                    pts = [(0.5, 0.5, 0.0)] * 21
                else:
                    pts = soup(21)
                hands.append(HandLandmarks(pts, rng.choice(list(HandSide))))
            face = FaceLandmarks(soup(478)) if rng.random() < 0.5 else None
            self.assertTrue(pipeline.process(frame(t, *hands, face=face)))

            snap = pipeline.snapshot()
            for channel in SCALAR_CHANNELS:
                v = snap.value(channel)
                self.assertFalse(math.isnan(v))
                self.assertGreaterEqual(v, 0.0)
                self.assertLessEqual(v, 1.0)
            self.assertTrue(0.0 <= snap.cursor.x <= 1.0)
            self.assertTrue(0.0 <= snap.cursor.y <= 1.0)
            self.assertFalse(math.isnan(snap.swipe_impulse))

    def test_reset(self):
        pipeline = GesturePipeline()
        for i in range(10):
            pipeline.process(frame(i * DT, make_fist()))
        pipeline.reset()
        snap = pipeline.snapshot()
        self.assertEqual(snap.fist_closure, 0.0)
        self.assertEqual(snap.frame_id, 0)
        self.assertIsNone(pipeline.last_frame)
        for smoother in pipeline.smoothers.values():
            self.assertEqual(smoother.value, 0.0)


if __name__ == '__main__':
    unittest.main()
