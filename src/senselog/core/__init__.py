"""Core pipeline: stream aggregation, batching, and upload hand-off.

Sensor sources feed a :class:`StreamAggregator`; a scheduler ticks it into
unified records that a :class:`BatchAccumulator` groups into fixed-size
batches, and an :class:`UploadDrainer` passes completed batches to the
transport. :class:`LoggingSession` wires the pieces from configuration.
"""

from .aggregator import ReadingObserver, StreamAggregator
from .batching import BatchAccumulator
from .models import Axes3, Batch, GeoFix, SessionInfo, UnifiedRecord
from .scheduler import PeriodicScheduler
from .session import LoggingSession
from .uploader import CallableTransport, DrainReport, Transport, UploadDrainer, build_upload_payload

__all__ = [
    "ReadingObserver",
    "StreamAggregator",
    "BatchAccumulator",
    "Axes3",
    "Batch",
    "GeoFix",
    "SessionInfo",
    "UnifiedRecord",
    "PeriodicScheduler",
    "LoggingSession",
    "CallableTransport",
    "DrainReport",
    "Transport",
    "UploadDrainer",
    "build_upload_payload",
]
