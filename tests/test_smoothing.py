import unittest

from bloomsense.core.smoothing import ChannelSmoother, GestureLatch, asymmetric_step, make_latch
from bloomsense.core.types import ChannelPolicy, load_policies
from bloomsense.config import CHANNEL_POLICIES


class TestChannelSmoother(unittest.TestCase):
    def setUp(self):
        self.policy = ChannelPolicy(rise=0.15, fall=0.40, decay=0.95)

    def test_converges_without_overshoot(self):
        """Rising toward a fixed target: monotonic, never past it."""
        s = ChannelSmoother(self.policy)
        prev = s.value
        for _ in range(200):
            v = s.process(0.8)
            self.assertGreaterEqual(v, prev)
            self.assertLessEqual(v, 0.8)
            prev = v
        self.assertAlmostEqual(s.value, 0.8, places=6)

    def test_reaches_target_in_29_frames(self):
        """Rise 0.15 from rest: 28 frames are not enough to get within 1% of 0.8, 29 are."""
        s = ChannelSmoother(self.policy)
        for _ in range(28):
            s.process(0.8)
        self.assertGreater(abs(s.value - 0.8), 0.008)
        s.process(0.8)
        self.assertLessEqual(abs(s.value - 0.8), 0.008)

    def test_asymmetric_rates(self):
        """Fast out, slow in: one step down covers more ground than one step up."""
        up = ChannelSmoother(self.policy, initial=0.0)
        down = ChannelSmoother(self.policy, initial=1.0)
        self.assertAlmostEqual(up.process(1.0), 0.15)
        self.assertAlmostEqual(down.process(0.0), 0.60)

    def test_decay_is_multiplicative(self):
        s = ChannelSmoother(self.policy, initial=0.8)
        for _ in range(10):
            s.decay()
        self.assertAlmostEqual(s.value, 0.8 * 0.95 ** 10)

    def test_targets_and_initial_values_are_clamped(self):
        s = ChannelSmoother(ChannelPolicy(rise=1.0, fall=1.0, decay=0.5), initial=4.0)
        self.assertEqual(s.value, 1.0)
        self.assertEqual(s.process(-2.0), 0.0)
        self.assertEqual(s.process(float("nan")), 0.0)

    def test_reset(self):
        s = ChannelSmoother(self.policy, initial=0.7)
        s.reset()
        self.assertEqual(s.value, 0.0)

    def test_asymmetric_step_equal_target(self):
        self.assertEqual(asymmetric_step(0.5, 0.5, 0.1, 0.9), 0.5)


class TestGestureLatch(unittest.TestCase):
    def test_hysteresis(self):
        latch = GestureLatch((0.7, 0.5))
        self.assertFalse(latch.update(0.7))    # must exceed `on`
        self.assertTrue(latch.update(0.71))
        self.assertTrue(latch.update(0.6))     # between thresholds: holds
        self.assertTrue(latch.update(0.5))     # `off` itself still holds
        self.assertFalse(latch.update(0.49))
        self.assertFalse(latch.update(0.6))    # between thresholds: stays off

    def test_no_chatter_around_single_threshold(self):
        latch = GestureLatch((0.4, 0.25))
        latch.update(0.45)
        flips = 0
        state = latch.engaged
        for v in (0.39, 0.41, 0.38, 0.42, 0.39):
            if latch.update(v) != state:
                flips += 1
                state = latch.engaged
        self.assertEqual(flips, 0)

    def test_make_latch(self):
        self.assertIsNone(make_latch(ChannelPolicy(rise=0.2, fall=0.2, decay=0.9)))
        latch = make_latch(ChannelPolicy(rise=0.2, fall=0.2, decay=0.9, latch=(0.3, 0.2)))
        self.assertEqual((latch.on, latch.off), (0.3, 0.2))


class TestChannelPolicy(unittest.TestCase):
    def test_rejects_out_of_range(self):
        with self.assertRaises(ValueError):
            ChannelPolicy(rise=0.0, fall=0.4, decay=0.9)
        with self.assertRaises(ValueError):
            ChannelPolicy(rise=0.2, fall=1.5, decay=0.9)
        with self.assertRaises(ValueError):
            ChannelPolicy(rise=0.2, fall=0.4, decay=1.0)
        with self.assertRaises(ValueError):
            ChannelPolicy(rise=0.2, fall=0.4, decay=0.9, latch=(0.2, 0.3))

    def test_default_table_loads(self):
        policies = load_policies(CHANNEL_POLICIES)
        self.assertEqual(len(policies), 7)
        for policy in policies.values():
            self.assertTrue(0.0 < policy.decay < 1.0)

    def test_missing_channel_rejected(self):
        table = dict(CHANNEL_POLICIES)
        del table["pinch"]
        with self.assertRaises(ValueError):
            load_policies(table)


if __name__ == '__main__':
    unittest.main()
