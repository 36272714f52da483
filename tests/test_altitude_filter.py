import math
import pathlib
import sys
import unittest

# Ensure src/ is on path for direct test execution
ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from senselog.analysis.altitude_filter import AltitudeFilterConfig, AltitudeFusionFilter  # noqa: E402


class AltitudeFusionFilterTest(unittest.TestCase):
    def test_first_sample_is_returned_unchanged(self):
        f = AltitudeFusionFilter()
        self.assertEqual(f.update(250.0), 250.0)
        state = f.state
        self.assertEqual(state.last_raw_altitude, 250.0)
        self.assertEqual(state.filtered_altitude, 250.0)

    def test_constant_input_does_not_drift(self):
        f = AltitudeFusionFilter()
        outputs = [f.update(100.0, 0.0, 0.0) for _ in range(3)]
        self.assertEqual(outputs, [100.0, 100.0, 100.0])

    def test_jump_without_motion_is_damped(self):
        f = AltitudeFusionFilter()
        f.update(100.0, 0.0, 0.0)
        out = f.update(103.0, 0.0, 0.0)
        self.assertGreater(out, 100.0)
        self.assertLess(out, 103.0)
        self.assertAlmostEqual(out, 100.0 + 3.0 * (1.0 - 0.7))

    def test_jump_with_vertical_motion_is_accepted(self):
        f = AltitudeFusionFilter()
        f.update(100.0, 0.0, 0.0)
        self.assertEqual(f.update(103.0, 1.0, 0.0), 103.0)

    def test_jump_with_rotation_is_accepted(self):
        f = AltitudeFusionFilter()
        f.update(100.0)
        self.assertEqual(f.update(96.0, None, 0.5), 96.0)

    def test_missing_motion_inputs_mean_no_motion(self):
        f = AltitudeFusionFilter()
        f.update(100.0)
        out = f.update(110.0, None, None)
        self.assertAlmostEqual(out, 103.0)

    def test_small_change_is_lightly_smoothed(self):
        f = AltitudeFusionFilter()
        f.update(100.0)
        self.assertAlmostEqual(f.update(101.0, 5.0, 5.0), 100.3)
        # delta is measured against the last raw sample, not the estimate
        self.assertAlmostEqual(f.update(101.0), 100.3)

    def test_non_finite_raw_keeps_last_estimate(self):
        f = AltitudeFusionFilter()
        f.update(100.0)
        f.update(101.0)
        with self.assertLogs("senselog.analysis.altitude_filter", level="WARNING"):
            out = f.update(math.nan)
        self.assertAlmostEqual(out, 100.3)
        self.assertEqual(f.state.last_raw_altitude, 101.0)

    def test_non_finite_before_first_sample_passes_through(self):
        f = AltitudeFusionFilter()
        with self.assertLogs("senselog.analysis.altitude_filter", level="WARNING"):
            out = f.update(math.inf)
        self.assertTrue(math.isinf(out))
        self.assertFalse(f.initialized)

    def test_thresholds_come_from_config(self):
        cfg = AltitudeFilterConfig(jump_threshold=5.0, accel_threshold=2.0, alpha=0.5)
        f = AltitudeFusionFilter(cfg)
        f.update(0.0)
        # 3 m is no longer a jump, so motion does not matter
        self.assertAlmostEqual(f.update(3.0, 10.0), 1.5)

    def test_reset_starts_a_new_session(self):
        f = AltitudeFusionFilter()
        f.update(100.0)
        f.reset()
        self.assertIsNone(f.state)
        self.assertEqual(f.update(50.0), 50.0)

    def test_config_sanitized_clamps_alpha(self):
        cfg = AltitudeFilterConfig(alpha=1.5, jump_threshold=-1.0).sanitized()
        self.assertLess(cfg.alpha, 1.0)
        self.assertEqual(cfg.jump_threshold, 0.0)


if __name__ == "__main__":
    unittest.main()
