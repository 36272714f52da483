import pathlib
import sys
import tempfile
import unittest

# Ensure src/ is on path for direct test execution
ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from senselog.config import (  # noqa: E402
    DEFAULT_CONFIG_PATH,
    SessionConfig,
    config_from_mapping,
    load_config,
)


class SessionConfigTest(unittest.TestCase):
    def test_defaults(self):
        cfg = SessionConfig().sanitized()
        self.assertEqual(cfg.tick_interval_s, 1.0)
        self.assertEqual(cfg.resolved_batch_size(), 30)
        self.assertEqual(cfg.resolved_safety_flush_interval_s(), 30.0)
        self.assertEqual(cfg.upload_interval_s, 1800.0)
        self.assertFalse(cfg.final_flush)
        self.assertEqual(cfg.enabled_streams, ("gyro", "accel", "pressure", "position"))
        self.assertTrue(cfg.device_id.startswith("python-"))

    def test_device_id_is_kept(self):
        self.assertEqual(SessionConfig(device_id="rig-7").sanitized().device_id, "rig-7")

    def test_batch_size_derived_from_window(self):
        cfg = SessionConfig(tick_interval_s=0.5, batch_window_s=10.0).sanitized()
        self.assertEqual(cfg.resolved_batch_size(), 20)
        self.assertEqual(SessionConfig(batch_size=7).resolved_batch_size(), 7)

    def test_stream_aliases_are_normalized(self):
        cfg = SessionConfig(enabled_streams=("GPS", "gyroscope", "gyro"), max_age_s={"gps": 5}).sanitized()
        self.assertEqual(cfg.enabled_streams, ("position", "gyro"))
        self.assertEqual(cfg.max_age_ms(), {"position": 5000})

    def test_unknown_stream_raises(self):
        with self.assertRaises(ValueError):
            SessionConfig(enabled_streams=("magnetometer",)).sanitized()
        with self.assertRaises(ValueError):
            SessionConfig(max_age_s={"compass": 1.0}).sanitized()


class ConfigLoadingTest(unittest.TestCase):
    def _write(self, text: str) -> pathlib.Path:
        tmp = tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False, encoding="utf-8")
        with tmp:
            tmp.write(text)
        path = pathlib.Path(tmp.name)
        self.addCleanup(path.unlink)
        return path

    def test_mapping_ignores_unknown_keys(self):
        cfg = config_from_mapping({"device_id": "a", "batch_size": 5, "colour": "blue"})
        self.assertEqual(cfg.device_id, "a")
        self.assertEqual(cfg.resolved_batch_size(), 5)

    def test_session_block_and_nested_filters(self):
        path = self._write(
            "session:\n"
            "  device_id: lab\n"
            "  tick_interval_s: 0.5\n"
            "  final_flush: true\n"
            "altitude_filter:\n"
            "  alpha: 0.5\n"
            "  unknown: 1\n"
            "motion_filter:\n"
            "  enable_duplicate_filtering: true\n"
        )
        cfg = load_config(path)
        self.assertEqual(cfg.device_id, "lab")
        self.assertEqual(cfg.tick_interval_s, 0.5)
        self.assertTrue(cfg.final_flush)
        self.assertEqual(cfg.altitude_filter.alpha, 0.5)
        self.assertEqual(cfg.altitude_filter.jump_threshold, 2.0)
        self.assertTrue(cfg.motion_filter.enabled)

    def test_missing_file_gives_defaults(self):
        cfg = load_config(ROOT / "does-not-exist.yaml")
        self.assertEqual(cfg.resolved_batch_size(), 30)

    def test_non_mapping_document_raises(self):
        path = self._write("- just\n- a list\n")
        with self.assertRaises(ValueError):
            load_config(path)

    def test_bundled_defaults_load(self):
        cfg = load_config(DEFAULT_CONFIG_PATH)
        self.assertEqual(cfg.resolved_batch_size(), 30)
        self.assertEqual(cfg.max_age_s, {})
        self.assertFalse(cfg.motion_filter.enabled)
        self.assertTrue(cfg.device_id.startswith("python-"))


if __name__ == "__main__":
    unittest.main()
