import pathlib
import sys
import unittest

# Ensure src/ is on path for direct test execution
ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from senselog.sensors.readings import (  # noqa: E402
    AngularRate,
    LinearAcceleration,
    Position,
    Pressure,
    normalize_stream,
    parse_line,
)


class ParseLineTest(unittest.TestCase):
    def test_gyro_line(self):
        reading = parse_line('{"stream": "gyro", "t_ms": 1500, "x": 0.1, "y": 0.2, "z": 0.3}')
        self.assertEqual(reading, AngularRate(0.1, 0.2, 0.3, timestamp_ms=1500))

    def test_stream_and_field_aliases(self):
        self.assertEqual(
            parse_line('{"type": "GPS", "latitude": 52.1, "longitude": 4.3}'),
            Position(lat=52.1, lon=4.3),
        )
        self.assertEqual(parse_line('{"stream": "barometer", "pressure": 1009.8}'), Pressure(1009.8))
        self.assertIsInstance(
            parse_line('{"stream": "accelerometer", "x": 0, "y": 0, "z": 9.8}'),
            LinearAcceleration,
        )

    def test_missing_fields_stay_none(self):
        reading = parse_line('{"stream": "position", "accuracy": 4}')
        self.assertIsNone(reading.lat)
        self.assertEqual(reading.fields(), {"accuracy": 4.0})

    def test_invalid_lines_return_none(self):
        with self.assertLogs("senselog.sensors.readings", level="WARNING"):
            self.assertIsNone(parse_line("{not json"))
            self.assertIsNone(parse_line('{"stream": "magnetometer", "x": 1}'))
        self.assertIsNone(parse_line(""))
        self.assertIsNone(parse_line("[1, 2, 3]"))
        self.assertIsNone(parse_line('{"stream": "gyro"}'))

    def test_bad_field_value_is_dropped(self):
        with self.assertLogs("senselog.sensors.readings", level="WARNING"):
            reading = parse_line('{"stream": "gyro", "x": "abc", "y": 1.0}')
        self.assertEqual(reading.fields(), {"y": 1.0})

    def test_normalize_stream(self):
        self.assertEqual(normalize_stream(" Gyroscope "), "gyro")
        self.assertIsNone(normalize_stream("compass"))
        self.assertIsNone(normalize_stream(None))


if __name__ == "__main__":
    unittest.main()
