"""Reading types and sensor-specific conversions.

Physical sensor drivers live outside this package; they only construct the
typed readings defined in :mod:`readings` and push them into a
:class:`~senselog.core.aggregator.StreamAggregator`. :mod:`barometer` turns
pressure into altitude.
"""

from .barometer import PRESSURE_STANDARD_ATMOSPHERE, pressure_to_altitude
from .readings import (
    ACCEL,
    GYRO,
    POSITION,
    PRESSURE,
    STREAMS,
    AngularRate,
    LinearAcceleration,
    Position,
    Pressure,
    Reading,
    parse_line,
)

__all__ = [
    "PRESSURE_STANDARD_ATMOSPHERE",
    "pressure_to_altitude",
    "ACCEL",
    "GYRO",
    "POSITION",
    "PRESSURE",
    "STREAMS",
    "AngularRate",
    "LinearAcceleration",
    "Position",
    "Pressure",
    "Reading",
    "parse_line",
]
