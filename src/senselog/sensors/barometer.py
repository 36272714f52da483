"""Barometric pressure helpers."""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import ArrayLike

# hPa, same reference the phone sensor framework uses
PRESSURE_STANDARD_ATMOSPHERE = 1013.25

_EXPONENT = 1.0 / 5.255
_SCALE_M = 44330.0


def pressure_to_altitude(
    pressure_hpa: float,
    sea_level_hpa: float = PRESSURE_STANDARD_ATMOSPHERE,
) -> float:
    """
    Convert a pressure reading into an altitude using the international
    barometric formula.

    Parameters
    ----------
    pressure_hpa:
        Measured atmospheric pressure in hPa.
    sea_level_hpa:
        Reference pressure at sea level (default: standard atmosphere).

    Returns
    -------
    float
        Altitude in metres, or NaN when either pressure is non-positive or
        non-finite.
    """
    p = float(pressure_hpa)
    p0 = float(sea_level_hpa)
    if not (math.isfinite(p) and math.isfinite(p0)) or p <= 0.0 or p0 <= 0.0:
        return math.nan
    return _SCALE_M * (1.0 - (p / p0) ** _EXPONENT)


def pressure_to_altitude_array(
    pressures_hpa: ArrayLike,
    sea_level_hpa: float = PRESSURE_STANDARD_ATMOSPHERE,
) -> np.ndarray:
    """Vectorised :func:`pressure_to_altitude`; invalid entries map to NaN."""
    p = np.asarray(pressures_hpa, dtype=np.float64)
    p0 = float(sea_level_hpa)
    if p0 <= 0.0 or not math.isfinite(p0):
        return np.full(p.shape, np.nan)
    valid = np.isfinite(p) & (p > 0.0)
    safe = np.where(valid, p, p0)
    altitude = _SCALE_M * (1.0 - np.power(safe / p0, _EXPONENT))
    return np.where(valid, altitude, np.nan)


__all__ = [
    "PRESSURE_STANDARD_ATMOSPHERE",
    "pressure_to_altitude",
    "pressure_to_altitude_array",
]
