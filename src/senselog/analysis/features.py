"""Motion feature helpers."""

from __future__ import annotations

import math
from typing import Optional

import numpy as np
from numpy.typing import ArrayLike

STANDARD_GRAVITY = 9.80665


def vector_magnitude(
    x: Optional[float],
    y: Optional[float],
    z: Optional[float],
) -> Optional[float]:
    """
    Return the Euclidean norm of a 3-axis sample.

    ``None`` is returned when any axis is missing or non-finite, so callers
    can treat the result as "no evidence".
    """
    if x is None or y is None or z is None:
        return None
    mag = math.sqrt(x * x + y * y + z * z)
    if not math.isfinite(mag):
        return None
    return mag


def vertical_acceleration(
    x: Optional[float],
    y: Optional[float],
    z: Optional[float],
    gravity: float = STANDARD_GRAVITY,
) -> Optional[float]:
    """
    Estimate the gravity-free acceleration from a raw accelerometer sample.

    The sensor reports specific force including gravity; without an
    orientation estimate the deviation of the magnitude from ``gravity`` is
    used as the vertical component.
    """
    mag = vector_magnitude(x, y, z)
    if mag is None:
        return None
    return mag - float(gravity)


def magnitudes(samples: ArrayLike) -> np.ndarray:
    """
    Row-wise norm of an ``(n, 3)`` array of samples.

    Rows containing NaN produce NaN.
    """
    arr = np.asarray(samples, dtype=float)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"samples must have shape (n, 3), got {arr.shape}")
    return np.sqrt(np.sum(np.square(arr), axis=1))


__all__ = ["STANDARD_GRAVITY", "vector_magnitude", "vertical_acceleration", "magnitudes"]
