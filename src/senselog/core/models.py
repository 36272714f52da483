"""Shared dataclasses for unified records, batches, and sessions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

RECORD_TYPE = "unified"

WIRE_FIELDS: Tuple[str, ...] = (
    "timestamp",
    "gyro_x",
    "gyro_y",
    "gyro_z",
    "accel_x",
    "accel_y",
    "accel_z",
    "latitude",
    "longitude",
    "accuracy",
    "pressure",
    "altitude",
    "device_id",
    "type",
)


@dataclass(frozen=True, slots=True)
class Axes3:
    x: Optional[float] = None
    y: Optional[float] = None
    z: Optional[float] = None


@dataclass(frozen=True, slots=True)
class GeoFix:
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy: Optional[float] = None


def _opt_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


@dataclass(frozen=True, slots=True)
class UnifiedRecord:
    """One snapshot of the latest value of every stream at a tick."""

    timestamp: int
    device_id: str
    gyro: Optional[Axes3] = None
    accel: Optional[Axes3] = None
    position: Optional[GeoFix] = None
    pressure: Optional[float] = None
    altitude: Optional[float] = None

    def is_empty(self) -> bool:
        return (
            self.gyro is None
            and self.accel is None
            and self.position is None
            and self.pressure is None
            and self.altitude is None
        )

    def to_wire(self) -> Dict[str, Any]:
        """Flatten into the field names expected by the upload server."""
        gyro = self.gyro or Axes3()
        accel = self.accel or Axes3()
        pos = self.position or GeoFix()
        return {
            "timestamp": int(self.timestamp),
            "gyro_x": gyro.x,
            "gyro_y": gyro.y,
            "gyro_z": gyro.z,
            "accel_x": accel.x,
            "accel_y": accel.y,
            "accel_z": accel.z,
            "latitude": pos.latitude,
            "longitude": pos.longitude,
            "accuracy": pos.accuracy,
            "pressure": self.pressure,
            "altitude": self.altitude,
            "device_id": self.device_id,
            "type": RECORD_TYPE,
        }

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> UnifiedRecord:
        """Inverse of :meth:`to_wire`; unknown keys (e.g. ``created_at``) are ignored."""
        if data.get("timestamp") is None:
            raise ValueError(f"record is missing 'timestamp': {data!r}")

        def _axes(prefix: str) -> Optional[Axes3]:
            values = [_opt_float(data.get(f"{prefix}_{axis}")) for axis in "xyz"]
            if all(v is None for v in values):
                return None
            return Axes3(*values)

        fix_values = [_opt_float(data.get(k)) for k in ("latitude", "longitude", "accuracy")]
        position = None if all(v is None for v in fix_values) else GeoFix(*fix_values)
        return cls(
            timestamp=int(data["timestamp"]),
            device_id=str(data.get("device_id", "")),
            gyro=_axes("gyro"),
            accel=_axes("accel"),
            position=position,
            pressure=_opt_float(data.get("pressure")),
            altitude=_opt_float(data.get("altitude")),
        )


@dataclass(frozen=True, slots=True)
class Batch:
    """
    Immutable, ordered run of unified records released as one upload unit.

    ``partial`` is only set for a batch produced by an explicit final flush.
    """

    sequence: int
    records: Tuple[UnifiedRecord, ...]
    partial: bool = False

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[UnifiedRecord]:
        return iter(self.records)

    @property
    def first_timestamp(self) -> Optional[int]:
        return self.records[0].timestamp if self.records else None

    @property
    def last_timestamp(self) -> Optional[int]:
        return self.records[-1].timestamp if self.records else None


@dataclass
class SessionInfo:
    device_id: str
    started_at: datetime
    tick_interval_s: float
    batch_size: int
    stopped_at: Optional[datetime] = None


__all__ = [
    "RECORD_TYPE",
    "WIRE_FIELDS",
    "Axes3",
    "GeoFix",
    "UnifiedRecord",
    "Batch",
    "SessionInfo",
]
