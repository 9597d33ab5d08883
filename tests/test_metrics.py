import math
import unittest

from bloomsense.core.metrics import MetricExtractor, clamp01, linear_map
from bloomsense.core.types import FaceLandmarks, HandLandmarks
from landmark_factory import make_face, make_fist, make_hand, make_open_hand


class TestMetricExtractor(unittest.TestCase):
    def setUp(self):
        self.metrics = MetricExtractor()

    def test_openness_mapping(self):
        """Ratio 1.1 -> 0.0, ratio 1.7 -> 1.0, linear in between."""
        self.assertAlmostEqual(self.metrics.openness(make_open_hand(0.8)), 0.8)
        self.assertAlmostEqual(self.metrics.openness(make_fist()), 0.0)
        self.assertEqual(self.metrics.openness(make_hand(reach=2.5, middle_reach=2.5)), 1.0)

    def test_openness_is_scale_invariant(self):
        """A hand twice as far away (half the size) reads the same."""
        near = make_open_hand(0.6)
        far = HandLandmarks([(p.x * 0.5, p.y * 0.5, 0.0) for p in near], near.side)
        self.assertAlmostEqual(self.metrics.openness(near), self.metrics.openness(far))

    def test_pinch(self):
        self.assertAlmostEqual(self.metrics.pinch(make_hand(pinch_gap=0.0)), 1.0)
        self.assertAlmostEqual(self.metrics.pinch(make_hand(pinch_gap=0.175)), 0.5)
        self.assertEqual(self.metrics.pinch(make_hand(pinch_gap=1.0)), 0.0)

    def test_fist_closure(self):
        self.assertAlmostEqual(self.metrics.fist_closure(make_fist()), 1.0)
        self.assertAlmostEqual(self.metrics.fist_closure(make_hand(reach=1.4, middle_reach=1.4)), 0.5)
        self.assertEqual(self.metrics.fist_closure(make_hand(reach=2.0, middle_reach=2.0)), 0.0)

    def test_palm_center_and_height(self):
        hand = make_hand(center=(0.3, 0.2))
        center = self.metrics.palm_center(hand)
        self.assertAlmostEqual(center.x, 0.3)
        self.assertAlmostEqual(center.y, 0.2)
        self.assertAlmostEqual(self.metrics.palm_height(hand), 0.8)
        self.assertAlmostEqual(self.metrics.palm_x(hand), 0.3)

    def test_smile_and_eyebrows(self):
        self.assertAlmostEqual(self.metrics.smile(make_face(smile_ratio=0.41)), 0.5)
        self.assertEqual(self.metrics.smile(make_face(smile_ratio=0.30)), 0.0)
        self.assertEqual(self.metrics.smile(make_face(smile_ratio=0.60)), 1.0)
        self.assertAlmostEqual(self.metrics.eyebrow_raise(make_face(brow_ratio=0.12)), 0.5)

    def test_degenerate_geometry_never_produces_nan(self):
        """All 21 points on top of each other: zero reference distance."""
        collapsed = HandLandmarks([(0.5, 0.5, 0.0)] * 21)
        for fn in (self.metrics.openness, self.metrics.pinch, self.metrics.fist_closure):
            value = fn(collapsed)
            self.assertFalse(math.isnan(value))
            self.assertGreaterEqual(value, 0.0)
            self.assertLessEqual(value, 1.0)

        pts = [(0.5, 0.5, 0.0)] * 478
        collapsed_face = FaceLandmarks(pts)
        self.assertFalse(math.isnan(self.metrics.smile(collapsed_face)))
        self.assertFalse(math.isnan(self.metrics.eyebrow_raise(collapsed_face)))

    def test_short_landmark_set_raises(self):
        with self.assertRaises(ValueError):
            self.metrics.openness(HandLandmarks([(0.5, 0.5)] * 5))

    def test_helpers(self):
        self.assertEqual(clamp01(float("nan")), 0.0)
        self.assertEqual(clamp01(-3.0), 0.0)
        self.assertEqual(clamp01(7.0), 1.0)
        self.assertAlmostEqual(linear_map(0.5, 0.0, 2.0), 0.25)
        # Inverted ranges map downward
        self.assertAlmostEqual(linear_map(1.2, 1.8, 1.0), 0.75)


if __name__ == '__main__':
    unittest.main()
