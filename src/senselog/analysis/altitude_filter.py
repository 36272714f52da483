"""Barometric altitude smoothing gated by motion evidence."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AltitudeFilterConfig:
    """
    Thresholds for :class:`AltitudeFusionFilter`.

    jump_threshold:
        Altitude change (m) between consecutive raw samples treated as a jump.
    accel_threshold:
        Vertical acceleration (m/s²) above which the device is moving.
    gyro_threshold:
        Angular-rate magnitude (rad/s) above which the device is moving.
    alpha:
        Inertia of the smoother in ``[0, 1)``; higher keeps more history.
    """

    jump_threshold: float = 2.0
    accel_threshold: float = 0.5
    gyro_threshold: float = 0.1
    alpha: float = 0.7

    def sanitized(self) -> AltitudeFilterConfig:
        """Return a copy with thresholds clamped to usable ranges."""
        return AltitudeFilterConfig(
            jump_threshold=max(0.0, float(self.jump_threshold)),
            accel_threshold=max(0.0, float(self.accel_threshold)),
            gyro_threshold=max(0.0, float(self.gyro_threshold)),
            alpha=min(max(0.0, float(self.alpha)), 0.999),
        )


@dataclass(slots=True)
class AltitudeFusionState:
    last_raw_altitude: float
    filtered_altitude: float
    last_vertical_accel: Optional[float] = None
    last_angular_rate_magnitude: Optional[float] = None


def _finite_or_none(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


class AltitudeFusionFilter:
    """
    Denoise pressure-derived altitude using accelerometer/gyroscope evidence.

    A raw change larger than ``jump_threshold`` is accepted outright only when
    the motion sensors agree the device is moving; otherwise it is damped
    like any other change. Missing motion inputs count as "no motion".

    State is owned exclusively by the filter and only mutated by
    :meth:`update`; :meth:`reset` starts a new session.
    """

    def __init__(self, config: AltitudeFilterConfig | None = None) -> None:
        self._config = (config or AltitudeFilterConfig()).sanitized()
        self._state: Optional[AltitudeFusionState] = None

    @property
    def config(self) -> AltitudeFilterConfig:
        return self._config

    @property
    def initialized(self) -> bool:
        return self._state is not None

    @property
    def state(self) -> Optional[AltitudeFusionState]:
        """Copy of the current state, or ``None`` before the first sample."""
        if self._state is None:
            return None
        return replace(self._state)

    def reset(self) -> None:
        self._state = None

    def has_motion(
        self,
        vertical_accel: Optional[float],
        angular_rate_magnitude: Optional[float],
    ) -> bool:
        accel = _finite_or_none(vertical_accel)
        gyro = _finite_or_none(angular_rate_magnitude)
        if accel is not None and abs(accel) > self._config.accel_threshold:
            return True
        if gyro is not None and gyro > self._config.gyro_threshold:
            return True
        return False

    def update(
        self,
        raw_altitude: float,
        vertical_accel: Optional[float] = None,
        angular_rate_magnitude: Optional[float] = None,
    ) -> float:
        """
        Feed one raw altitude sample and return the corrected altitude.

        Parameters
        ----------
        raw_altitude:
            Altitude derived from the latest pressure sample.
        vertical_accel:
            Gravity-free vertical acceleration at the time of the sample.
        angular_rate_magnitude:
            Norm of the latest angular-rate sample.

        Returns
        -------
        float
            Filtered altitude. A non-finite ``raw_altitude`` leaves the state
            untouched and returns the last good estimate (or the raw value
            when no estimate exists yet).
        """
        raw = float(raw_altitude)
        if not math.isfinite(raw):
            if self._state is None:
                logger.warning("Non-finite raw altitude %r before first valid sample", raw)
                return raw
            logger.warning(
                "Non-finite raw altitude %r; keeping %.3f",
                raw,
                self._state.filtered_altitude,
            )
            return self._state.filtered_altitude

        accel = _finite_or_none(vertical_accel)
        gyro = _finite_or_none(angular_rate_magnitude)

        state = self._state
        if state is None:
            self._state = AltitudeFusionState(
                last_raw_altitude=raw,
                filtered_altitude=raw,
                last_vertical_accel=accel,
                last_angular_rate_magnitude=gyro,
            )
            return raw

        cfg = self._config
        delta = raw - state.last_raw_altitude
        moving = self.has_motion(accel, gyro)
        is_jump = abs(delta) > cfg.jump_threshold

        if is_jump and moving:
            state.filtered_altitude = raw
        elif is_jump:
            # Unconfirmed jump: damp like noise.
            state.filtered_altitude += delta * (1.0 - cfg.alpha)
            logger.debug("Damped altitude jump of %.2f m without motion", delta)
        else:
            state.filtered_altitude += delta * (1.0 - cfg.alpha)

        state.last_raw_altitude = raw
        state.last_vertical_accel = accel
        state.last_angular_rate_magnitude = gyro
        return state.filtered_altitude


__all__ = ["AltitudeFilterConfig", "AltitudeFusionState", "AltitudeFusionFilter"]
