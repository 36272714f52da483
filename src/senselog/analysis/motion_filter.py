"""Optional pre-aggregation filters for acceleration readings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .features import vector_magnitude
from ..sensors.readings import LinearAcceleration, Reading

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MotionFilterConfig:
    """
    Drop uninformative acceleration readings before they reach the aggregator.

    The magnitude compared against ``motion_threshold`` includes gravity, so
    a still device reads about 9.81 m/s²; choose the threshold accordingly.
    Both filters are off by default.
    """

    enable_motion_filtering: bool = False
    motion_threshold: float = 0.5
    enable_duplicate_filtering: bool = False
    duplicate_tolerance: float = 0.01

    def sanitized(self) -> MotionFilterConfig:
        return MotionFilterConfig(
            enable_motion_filtering=bool(self.enable_motion_filtering),
            motion_threshold=max(0.0, float(self.motion_threshold)),
            enable_duplicate_filtering=bool(self.enable_duplicate_filtering),
            duplicate_tolerance=max(0.0, float(self.duplicate_tolerance)),
        )

    @property
    def enabled(self) -> bool:
        return self.enable_motion_filtering or self.enable_duplicate_filtering


class AccelerationGate:
    """
    Decide whether an acceleration reading is worth recording.

    Readings from other streams always pass. Not thread-safe on its own; the
    aggregator calls it under its lock.
    """

    def __init__(self, config: MotionFilterConfig | None = None) -> None:
        self._config = (config or MotionFilterConfig()).sanitized()
        self._last_kept: Optional[LinearAcceleration] = None
        self.dropped = 0

    @property
    def config(self) -> MotionFilterConfig:
        return self._config

    def accept(self, reading: Reading) -> bool:
        if not isinstance(reading, LinearAcceleration) or not self._config.enabled:
            return True
        if reading.x is None or reading.y is None or reading.z is None:
            return True

        cfg = self._config
        if cfg.enable_motion_filtering:
            mag = vector_magnitude(reading.x, reading.y, reading.z)
            if mag is not None and mag < cfg.motion_threshold:
                self.dropped += 1
                return False

        if cfg.enable_duplicate_filtering:
            last = self._last_kept
            tol = cfg.duplicate_tolerance
            if (
                last is not None
                and abs(reading.x - last.x) < tol
                and abs(reading.y - last.y) < tol
                and abs(reading.z - last.z) < tol
            ):
                self.dropped += 1
                return False
            self._last_kept = reading

        return True

    def reset(self) -> None:
        self._last_kept = None
        self.dropped = 0


__all__ = ["MotionFilterConfig", "AccelerationGate"]
