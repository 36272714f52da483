"""Signal analysis utilities (altitude fusion, motion features and gating).

Modules here stay free of threading and I/O so they can be reused in the
live pipeline, offline scripts, and tests alike.
"""

from .altitude_filter import AltitudeFilterConfig, AltitudeFusionFilter, AltitudeFusionState
from .features import STANDARD_GRAVITY, magnitudes, vector_magnitude, vertical_acceleration
from .motion_filter import AccelerationGate, MotionFilterConfig

__all__ = [
    "AltitudeFilterConfig",
    "AltitudeFusionFilter",
    "AltitudeFusionState",
    "STANDARD_GRAVITY",
    "magnitudes",
    "vector_magnitude",
    "vertical_acceleration",
    "AccelerationGate",
    "MotionFilterConfig",
]
