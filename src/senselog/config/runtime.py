"""Runtime configuration for a logging session."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional, Tuple

import yaml

from ..analysis.altitude_filter import AltitudeFilterConfig
from ..analysis.motion_filter import MotionFilterConfig
from ..sensors.barometer import PRESSURE_STANDARD_ATMOSPHERE
from ..sensors.readings import STREAMS, normalize_stream

DEFAULT_CONFIG_PATH = Path(__file__).with_name("session.yaml")


def generate_device_id() -> str:
    """Random per-install identifier, e.g. ``python-1b4e...``."""
    return f"python-{uuid.uuid4()}"


@dataclass(slots=True)
class SessionConfig:
    """
    Tuning knobs for how readings are aggregated, batched, and uploaded.

    The defaults tick once per second and release one batch per 30 s window.
    ``batch_size`` and ``safety_flush_interval_s`` are derived from the tick
    cadence and window when left as ``None``.
    """

    device_id: Optional[str] = None
    tick_interval_s: float = 1.0
    batch_window_s: float = 30.0
    batch_size: Optional[int] = None
    safety_flush_interval_s: Optional[float] = None
    upload_interval_s: float = 1800.0
    final_flush: bool = False

    enabled_streams: Tuple[str, ...] = STREAMS
    # stream -> seconds; empty disables stale-value eviction
    max_age_s: Dict[str, float] = field(default_factory=dict)
    sea_level_hpa: float = PRESSURE_STANDARD_ATMOSPHERE

    altitude_filter: AltitudeFilterConfig = field(default_factory=AltitudeFilterConfig)
    motion_filter: MotionFilterConfig = field(default_factory=MotionFilterConfig)

    log_readings: bool = False

    def resolved_batch_size(self) -> int:
        if self.batch_size is not None:
            return max(1, int(self.batch_size))
        return max(1, int(round(self.batch_window_s / self.tick_interval_s)))

    def resolved_safety_flush_interval_s(self) -> float:
        if self.safety_flush_interval_s is not None:
            return float(self.safety_flush_interval_s)
        return self.resolved_batch_size() * self.tick_interval_s

    def max_age_ms(self) -> Dict[str, int]:
        return {stream: int(round(seconds * 1000.0)) for stream, seconds in self.max_age_s.items()}

    def sanitized(self) -> SessionConfig:
        """Return a copy with derived limits applied."""
        tick = max(0.001, float(self.tick_interval_s))
        window = max(tick, float(self.batch_window_s))

        streams = []
        for name in self.enabled_streams or ():
            canonical = normalize_stream(name)
            if canonical is None:
                raise ValueError(f"Unknown stream in enabled_streams: {name!r}")
            if canonical not in streams:
                streams.append(canonical)

        max_age: Dict[str, float] = {}
        for name, seconds in (self.max_age_s or {}).items():
            canonical = normalize_stream(name)
            if canonical is None:
                raise ValueError(f"Unknown stream in max_age_s: {name!r}")
            if seconds is None:
                continue
            max_age[canonical] = max(0.001, float(seconds))

        safety = self.safety_flush_interval_s
        if safety is not None:
            safety = max(0.001, float(safety))

        return SessionConfig(
            device_id=str(self.device_id) if self.device_id else generate_device_id(),
            tick_interval_s=tick,
            batch_window_s=window,
            batch_size=None if self.batch_size is None else max(1, int(self.batch_size)),
            safety_flush_interval_s=safety,
            upload_interval_s=max(0.001, float(self.upload_interval_s)),
            final_flush=bool(self.final_flush),
            enabled_streams=tuple(streams),
            max_age_s=max_age,
            sea_level_hpa=float(self.sea_level_hpa),
            altitude_filter=self.altitude_filter.sanitized(),
            motion_filter=self.motion_filter.sanitized(),
            log_readings=bool(self.log_readings),
        )


_NESTED = {
    "altitude_filter": AltitudeFilterConfig,
    "motion_filter": MotionFilterConfig,
}


def _recognized_fields(cls: type = SessionConfig) -> set[str]:
    return {f.name for f in fields(cls)}


def _normalize_mapping(data: Mapping[str, Any]) -> MutableMapping[str, Any]:
    """Flatten a top-level ``session`` block into the root mapping."""
    if "session" in data and isinstance(data["session"], Mapping):
        merged: MutableMapping[str, Any] = {}
        for key, value in data.items():
            if key == "session":
                merged.update(value)
            else:
                merged[key] = value
        return merged
    return dict(data)


def _nested_from_mapping(cls: type, data: Any) -> Any:
    if isinstance(data, cls):
        return data
    if not isinstance(data, Mapping):
        raise ValueError(f"Expected mapping for {cls.__name__}, got {type(data).__name__}")
    known = _recognized_fields(cls)
    return cls(**{key: data[key] for key in data.keys() & known})


def config_from_mapping(data: Mapping[str, Any] | None) -> SessionConfig:
    """Build :class:`SessionConfig` from ``data`` (ignoring unknown keys)."""
    if not data:
        return SessionConfig().sanitized()
    normalized = _normalize_mapping(data)
    known = _recognized_fields()
    payload = {key: normalized[key] for key in normalized.keys() & known}
    for key, cls in _NESTED.items():
        if payload.get(key) is not None:
            payload[key] = _nested_from_mapping(cls, payload[key])
        else:
            payload.pop(key, None)
    if payload.get("enabled_streams") is not None:
        payload["enabled_streams"] = tuple(payload["enabled_streams"])
    if payload.get("max_age_s") is None:
        payload.pop("max_age_s", None)
    return SessionConfig(**payload).sanitized()


def load_config(path: str | Path | None) -> SessionConfig:
    """
    Load configuration from ``path``.

    Missing files fall back to default :class:`SessionConfig`.
    """
    if path is None:
        return SessionConfig().sanitized()
    cfg_path = Path(path)
    if not cfg_path.exists():
        return SessionConfig().sanitized()
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    return config_from_mapping(raw)


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "SessionConfig",
    "config_from_mapping",
    "generate_device_id",
    "load_config",
]
