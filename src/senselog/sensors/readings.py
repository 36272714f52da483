"""
Sensor sources hand the aggregator one partial reading per callback. Each
reading type belongs to exactly one independent stream:

  - ``gyro``     : AngularRate(x, y, z) in rad/s
  - ``accel``    : LinearAcceleration(x, y, z) in m/s² (gravity included)
  - ``pressure`` : Pressure(value[, altitude]) in hPa and metres
  - ``position`` : Position(lat, lon, accuracy) in degrees and metres

Every field is optional: ``None`` means "no update for this field", never
zero. ``parse_line()`` accepts JSON lines such as::

  {"stream": "gyro", "t_ms": 1700000000000, "x": 0.01, "y": 0.0, "z": -0.02}
  {"stream": "pressure", "value": 1009.8}
  {"stream": "position", "lat": 52.1, "lon": 4.3, "accuracy": 6.5}
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

logger = logging.getLogger(__name__)

GYRO = "gyro"
ACCEL = "accel"
PRESSURE = "pressure"
POSITION = "position"

STREAMS: Tuple[str, ...] = (GYRO, ACCEL, PRESSURE, POSITION)

# Field names kept per stream by the aggregator.
STREAM_FIELDS: Dict[str, Tuple[str, ...]] = {
    GYRO: ("x", "y", "z"),
    ACCEL: ("x", "y", "z"),
    PRESSURE: ("value", "altitude"),
    POSITION: ("lat", "lon", "accuracy"),
}

_STREAM_ALIASES = {
    "gyro": GYRO,
    "gyroscope": GYRO,
    "angular_rate": GYRO,
    "accel": ACCEL,
    "accelerometer": ACCEL,
    "acceleration": ACCEL,
    "pressure": PRESSURE,
    "barometer": PRESSURE,
    "baro": PRESSURE,
    "position": POSITION,
    "gps": POSITION,
    "location": POSITION,
}

_FIELD_ALIASES = {
    "latitude": "lat",
    "longitude": "lon",
    "lng": "lon",
    "pressure": "value",
}


class _ReadingBase:
    stream: ClassVar[str]

    def fields(self) -> Dict[str, float]:
        """Return the fields present in this reading (``None`` entries dropped)."""
        present: Dict[str, float] = {}
        for name in STREAM_FIELDS[self.stream]:
            value = getattr(self, name)
            if value is not None:
                present[name] = value
        return present

    def is_empty(self) -> bool:
        return not self.fields()


@dataclass(frozen=True, slots=True)
class AngularRate(_ReadingBase):
    x: Optional[float] = None
    y: Optional[float] = None
    z: Optional[float] = None
    timestamp_ms: Optional[int] = None

    stream: ClassVar[str] = GYRO


@dataclass(frozen=True, slots=True)
class LinearAcceleration(_ReadingBase):
    x: Optional[float] = None
    y: Optional[float] = None
    z: Optional[float] = None
    timestamp_ms: Optional[int] = None

    stream: ClassVar[str] = ACCEL


@dataclass(frozen=True, slots=True)
class Pressure(_ReadingBase):
    """Barometer sample; ``altitude`` is set only when the source derives it."""

    value: Optional[float] = None
    altitude: Optional[float] = None
    timestamp_ms: Optional[int] = None

    stream: ClassVar[str] = PRESSURE


@dataclass(frozen=True, slots=True)
class Position(_ReadingBase):
    lat: Optional[float] = None
    lon: Optional[float] = None
    accuracy: Optional[float] = None
    timestamp_ms: Optional[int] = None

    stream: ClassVar[str] = POSITION


Reading = Union[AngularRate, LinearAcceleration, Pressure, Position]

_READING_TYPES = {
    GYRO: AngularRate,
    ACCEL: LinearAcceleration,
    PRESSURE: Pressure,
    POSITION: Position,
}


def normalize_stream(name: Any) -> Optional[str]:
    """Map a stream label (``"gps"``, ``"Gyroscope"`` ...) to its canonical name."""
    if name is None:
        return None
    return _STREAM_ALIASES.get(str(name).strip().lower())


def _coerce_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def reading_from_mapping(obj: Mapping[str, Any]) -> Optional[Reading]:
    """
    Build a reading from a decoded JSON object.

    Returns ``None`` when the stream is unknown or no usable field is present.
    Non-numeric field values are dropped rather than raising.
    """
    stream = normalize_stream(obj.get("stream", obj.get("type")))
    if stream is None:
        logger.warning("Unknown or missing stream in reading: %r", obj)
        return None

    kwargs: Dict[str, Any] = {}
    allowed = STREAM_FIELDS[stream]
    for key, raw in obj.items():
        name = _FIELD_ALIASES.get(key, key)
        if name not in allowed:
            continue
        number = _coerce_number(raw)
        if number is None:
            if raw is not None:
                logger.warning("Bad value for %s.%s: %r", stream, name, raw)
            continue
        kwargs[name] = number

    if not kwargs:
        logger.debug("No usable fields in %s reading: %r", stream, obj)
        return None

    ts_raw = obj.get("t_ms", obj.get("timestamp"))
    ts = _coerce_number(ts_raw)
    if ts is not None:
        kwargs["timestamp_ms"] = int(ts)

    return _READING_TYPES[stream](**kwargs)


def parse_line(line: str) -> Optional[Reading]:
    """
    Parse one JSON text line into a reading.

    Invalid lines return ``None`` so callers can skip them without raising.
    """
    text = line.strip()
    if not text:
        return None
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Bad JSON from reading stream: %r (%s)", text, exc)
        return None
    if not isinstance(obj, Mapping):
        logger.debug("Skipping non-object JSON payload: %r", obj)
        return None
    return reading_from_mapping(obj)


__all__ = [
    "GYRO",
    "ACCEL",
    "PRESSURE",
    "POSITION",
    "STREAMS",
    "STREAM_FIELDS",
    "AngularRate",
    "LinearAcceleration",
    "Pressure",
    "Position",
    "Reading",
    "normalize_stream",
    "reading_from_mapping",
    "parse_line",
]
