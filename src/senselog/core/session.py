"""Wire filter, aggregator, accumulator and drainer into one logging session."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..analysis.altitude_filter import AltitudeFusionFilter
from ..analysis.motion_filter import AccelerationGate
from ..config import SessionConfig
from ..sensors.readings import Reading
from ..tools.debug import time_block
from .aggregator import Clock, ReadingObserver, StreamAggregator
from .batching import BatchAccumulator
from .models import SessionInfo, UnifiedRecord
from .scheduler import PeriodicScheduler
from .uploader import DrainReport, Transport, UploadDrainer

logger = logging.getLogger(__name__)

TICK_JOB = "tick"
SAFETY_FLUSH_JOB = "safety-flush"
UPLOAD_JOB = "upload"
_SESSION_JOBS = (TICK_JOB, SAFETY_FLUSH_JOB, UPLOAD_JOB)


class LoggingSession:
    """
    Own the pipeline pieces for one logging session.

    Sensor sources push readings through :meth:`record`. Time is driven either
    by :meth:`start` (jobs registered on a :class:`PeriodicScheduler`) or by
    calling :meth:`run_tick`, :meth:`check_flush` and :meth:`upload` directly,
    which is how tests and offline replays advance the pipeline.
    """

    def __init__(
        self,
        config: SessionConfig,
        transport: Transport,
        *,
        observer: ReadingObserver | None = None,
        scheduler: PeriodicScheduler | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config.sanitized()
        cfg = self.config
        self.device_id: str = cfg.device_id or ""

        gate = AccelerationGate(cfg.motion_filter) if cfg.motion_filter.enabled else None
        self.altitude_filter = AltitudeFusionFilter(cfg.altitude_filter)
        self.aggregator = StreamAggregator(
            self.device_id,
            altitude_filter=self.altitude_filter,
            observer=observer,
            enabled_streams=cfg.enabled_streams,
            max_age_ms=cfg.max_age_ms(),
            gate=gate,
            sea_level_hpa=cfg.sea_level_hpa,
            clock=clock,
            log_readings=cfg.log_readings,
        )
        self.accumulator = BatchAccumulator(cfg.resolved_batch_size())
        self.drainer = UploadDrainer(self.accumulator, transport, self.device_id)
        self._scheduler = scheduler
        self._running = False
        self.info = SessionInfo(
            device_id=self.device_id,
            started_at=datetime.now(),
            tick_interval_s=cfg.tick_interval_s,
            batch_size=self.accumulator.batch_size,
        )

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------ ingest
    def record(self, reading: Reading) -> None:
        self.aggregator.record(reading)

    # ------------------------------------------------------------------ timing
    def run_tick(self, now_ms: int | None = None) -> Optional[UnifiedRecord]:
        """Produce one unified record (if any stream has data) and batch it."""
        with time_block("session tick"):
            record = self.aggregator.tick(now_ms)
            if record is not None:
                self.accumulator.add(record)
        return record

    def check_flush(self) -> bool:
        return self.accumulator.check_flush()

    def upload(self) -> DrainReport:
        return self.drainer.drain_and_dispatch()

    # --------------------------------------------------------------- lifecycle
    def start(self) -> None:
        """Register the periodic jobs and start the scheduler."""
        if self._running:
            raise RuntimeError("session already running")
        cfg = self.config
        scheduler = self._scheduler or PeriodicScheduler()
        scheduler.add_job(TICK_JOB, cfg.tick_interval_s, self.run_tick)
        scheduler.add_job(SAFETY_FLUSH_JOB, cfg.resolved_safety_flush_interval_s(), self.check_flush)
        scheduler.add_job(UPLOAD_JOB, cfg.upload_interval_s, self.upload)
        self._scheduler = scheduler
        self.info.started_at = datetime.now()
        scheduler.start()
        self._running = True
        logger.info(
            "Session %s started: tick=%.3fs batch=%d upload every %.0fs",
            self.device_id,
            cfg.tick_interval_s,
            self.accumulator.batch_size,
            cfg.upload_interval_s,
        )

    def stop(self) -> DrainReport:
        """
        Stop future ticks, then hand off every completed batch.

        The in-progress batch is flushed when ``final_flush`` is enabled and
        discarded (with a warning) otherwise. The session's jobs are removed
        from the scheduler so a later :meth:`start` can register them again.
        """
        if self._scheduler is not None and self._running:
            self._scheduler.stop()
            for name in _SESSION_JOBS:
                self._scheduler.remove_job(name)
        self._running = False

        if self.config.final_flush:
            self.accumulator.flush_partial()
        else:
            dropped = self.accumulator.discard_partial()
            if dropped:
                logger.warning("Discarding %d records of the unfinished batch on stop", dropped)

        report = self.drainer.drain_and_dispatch()
        self.info.stopped_at = datetime.now()
        logger.info("Session %s stopped", self.device_id)
        return report

    def restart(self) -> None:
        """
        Reset stream state for a new session while keeping the configuration.

        Call it between :meth:`stop` and the next :meth:`start`.
        """
        self.aggregator.reset()
        self.accumulator.discard_partial()


__all__ = ["LoggingSession", "TICK_JOB", "SAFETY_FLUSH_JOB", "UPLOAD_JOB"]
