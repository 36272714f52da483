"""Latest-value store for independent sensor streams, snapshotted on a tick."""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Iterable, Mapping
from typing import Callable, Dict, Optional, Protocol

from ..analysis.altitude_filter import AltitudeFusionFilter
from ..analysis.features import STANDARD_GRAVITY, vector_magnitude, vertical_acceleration
from ..analysis.motion_filter import AccelerationGate
from ..sensors.barometer import PRESSURE_STANDARD_ATMOSPHERE, pressure_to_altitude
from ..sensors.readings import ACCEL, GYRO, POSITION, PRESSURE, STREAMS, Reading
from .models import Axes3, GeoFix, UnifiedRecord

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def wall_clock_ms() -> int:
    return time.time_ns() // 1_000_000


class ReadingObserver(Protocol):
    """Receives every accepted stream update (e.g. a live display)."""

    def on_reading(self, stream: str, values: Mapping[str, float]) -> None:  # pragma: no cover - protocol
        ...


class StreamAggregator:
    """
    Hold the most recent value of each stream and merge them into one
    :class:`UnifiedRecord` per tick.

    Producers (one per physical sensor) call :meth:`record` from their own
    threads; a single scheduler calls :meth:`tick`. Values persist across
    ticks until overwritten, or until ``max_age_ms`` for that stream elapses
    when eviction is configured. Age is measured from when the value arrived,
    read from ``clock``, which must share an epoch with the tick times; the
    reading's own ``timestamp_ms`` is on the source clock and is not used.

    Writes to one stream are expected to come from a single producer in
    sensor order. Concurrent writers on the *same* stream are not ordered
    and the stored value is whichever call took the lock last.
    """

    def __init__(
        self,
        device_id: str,
        *,
        altitude_filter: AltitudeFusionFilter | None = None,
        observer: ReadingObserver | None = None,
        enabled_streams: Iterable[str] | None = None,
        max_age_ms: Mapping[str, int] | None = None,
        gate: AccelerationGate | None = None,
        sea_level_hpa: float = PRESSURE_STANDARD_ATMOSPHERE,
        gravity: float = STANDARD_GRAVITY,
        clock: Clock | None = None,
        log_readings: bool = False,
    ) -> None:
        self.device_id = str(device_id)
        self._filter = altitude_filter or AltitudeFusionFilter()
        self._observer = observer
        self._enabled = frozenset(enabled_streams) if enabled_streams is not None else frozenset(STREAMS)
        unknown = self._enabled.difference(STREAMS)
        if unknown:
            raise ValueError(f"Unknown streams: {sorted(unknown)}")
        self._max_age_ms = self._normalize_max_age(max_age_ms)
        self._gate = gate
        self._sea_level_hpa = float(sea_level_hpa)
        self._gravity = float(gravity)
        self._clock = clock or wall_clock_ms
        self._log_readings = bool(log_readings)

        self._lock = threading.Lock()
        self._latest: Dict[str, Dict[str, float]] = {}
        self._updated_ms: Dict[str, int] = {}
        self._last_tick_ms: Optional[int] = None

    @property
    def altitude_filter(self) -> AltitudeFusionFilter:
        return self._filter

    @property
    def enabled_streams(self) -> frozenset[str]:
        return self._enabled

    # ------------------------------------------------------------------ ingest
    def record(self, reading: Reading) -> None:
        """
        Overwrite the fields present in ``reading`` for its stream.

        Non-finite values are dropped (the previous value is kept) with a
        warning. Pressure readings are converted to altitude and run through
        the altitude filter before being stored; a pressure that yields no
        finite altitude is rejected whole so value and altitude stay paired.
        """
        stream = reading.stream
        if stream not in self._enabled:
            return

        incoming = reading.fields()
        clean: Dict[str, float] = {}
        for name, value in incoming.items():
            value = float(value)
            if math.isfinite(value):
                clean[name] = value
            else:
                logger.warning("Dropping non-finite %s.%s=%r; keeping last value", stream, name, value)
        if not clean:
            return

        arrived_ms = self._clock()

        with self._lock:
            if self._gate is not None and not self._gate.accept(reading):
                return
            if stream == PRESSURE:
                clean = self._fuse_pressure(clean)
                if not clean:
                    return
            current = self._latest.setdefault(stream, {})
            current.update(clean)
            self._updated_ms[stream] = int(arrived_ms)

        if self._log_readings:
            logger.debug("%s reading recorded: %s", stream, clean)
        self._notify(stream, clean)

    def _fuse_pressure(self, values: Dict[str, float]) -> Dict[str, float]:
        # Caller holds self._lock.
        raw_alt = values.pop("altitude", None)
        pressure = values.get("value")
        if raw_alt is None and pressure is not None:
            raw_alt = pressure_to_altitude(pressure, self._sea_level_hpa)
        if raw_alt is None or not math.isfinite(raw_alt):
            logger.warning("Rejecting pressure update %s: no usable altitude", values)
            return {}

        accel = self._latest.get(ACCEL, {})
        gyro = self._latest.get(GYRO, {})
        vertical = vertical_acceleration(accel.get("x"), accel.get("y"), accel.get("z"), self._gravity)
        rate = vector_magnitude(gyro.get("x"), gyro.get("y"), gyro.get("z"))
        filtered = self._filter.update(raw_alt, vertical, rate)
        if math.isfinite(filtered):
            values["altitude"] = filtered
        return values

    def _notify(self, stream: str, values: Mapping[str, float]) -> None:
        if self._observer is None:
            return
        try:
            self._observer.on_reading(stream, dict(values))
        except Exception:
            logger.exception("Reading observer failed for %s update", stream)

    # -------------------------------------------------------------------- tick
    def tick(self, now_ms: int | None = None) -> Optional[UnifiedRecord]:
        """
        Snapshot the latest value of every stream into a record stamped ``now_ms``.

        Returns ``None`` while no stream holds a value. Timestamps never go
        backwards: a ``now_ms`` earlier than the previous tick is clamped.
        """
        now = int(now_ms) if now_ms is not None else self._clock()
        with self._lock:
            self._evict_stale(now)
            if not self._latest:
                return None
            if self._last_tick_ms is not None and now < self._last_tick_ms:
                logger.warning("Tick time %d earlier than previous %d; clamping", now, self._last_tick_ms)
                now = self._last_tick_ms
            self._last_tick_ms = now
            snapshot = {stream: dict(values) for stream, values in self._latest.items()}

        gyro = snapshot.get(GYRO)
        accel = snapshot.get(ACCEL)
        baro = snapshot.get(PRESSURE, {})
        pos = snapshot.get(POSITION)
        return UnifiedRecord(
            timestamp=now,
            device_id=self.device_id,
            gyro=Axes3(gyro.get("x"), gyro.get("y"), gyro.get("z")) if gyro else None,
            accel=Axes3(accel.get("x"), accel.get("y"), accel.get("z")) if accel else None,
            position=GeoFix(pos.get("lat"), pos.get("lon"), pos.get("accuracy")) if pos else None,
            pressure=baro.get("value"),
            altitude=baro.get("altitude"),
        )

    def _evict_stale(self, now: int) -> None:
        # Caller holds self._lock.
        for stream, limit in self._max_age_ms.items():
            updated = self._updated_ms.get(stream)
            if updated is None or now - updated <= limit:
                continue
            self._latest.pop(stream, None)
            self._updated_ms.pop(stream, None)
            logger.info("Evicted %s value older than %d ms", stream, limit)

    # ----------------------------------------------------------------- helpers
    def latest(self, stream: str) -> Dict[str, float]:
        """Return a copy of the stored values for ``stream`` (empty if none)."""
        with self._lock:
            return dict(self._latest.get(stream, {}))

    def has_data(self) -> bool:
        with self._lock:
            return bool(self._latest)

    def reset(self) -> None:
        """Forget all stream values and restart the altitude filter."""
        with self._lock:
            self._latest.clear()
            self._updated_ms.clear()
            self._last_tick_ms = None
            self._filter.reset()
            if self._gate is not None:
                self._gate.reset()

    @staticmethod
    def _normalize_max_age(max_age_ms: Mapping[str, int] | None) -> Dict[str, int]:
        if not max_age_ms:
            return {}
        normalized: Dict[str, int] = {}
        for stream, limit in max_age_ms.items():
            if stream not in STREAMS:
                raise ValueError(f"Unknown stream in max_age_ms: {stream!r}")
            if limit is None:
                continue
            limit = int(limit)
            if limit <= 0:
                raise ValueError(f"max age for {stream} must be positive, got {limit}")
            normalized[stream] = limit
        return normalized


__all__ = ["Clock", "ReadingObserver", "StreamAggregator", "wall_clock_ms"]
