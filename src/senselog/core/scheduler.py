"""One scheduling collaborator that runs every periodic job of a session."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class PeriodicJob:
    name: str
    interval_s: float
    fn: Callable[[], object]
    runs: int = 0
    errors: int = 0


def next_deadline(deadline: float, interval_s: float, now: float) -> float:
    """
    Advance ``deadline`` by one period on a fixed-rate grid.

    Periods that already passed while a run overran are skipped rather than
    replayed back to back, so the result is always later than ``now``.
    """
    deadline += interval_s
    if deadline <= now:
        missed = int((now - deadline) // interval_s) + 1
        deadline += missed * interval_s
    return deadline


class PeriodicScheduler:
    """
    Run named jobs at fixed rates on daemon threads.

    Each job keeps a grid of deadlines spaced ``interval_s`` apart, so the time
    a run takes does not push later runs back. Jobs share one stop event per
    run of the scheduler, so :meth:`stop` halts all of them; it joins the
    threads before returning and no job starts a new run afterwards. A stopped
    scheduler can be started again with the jobs it still holds. An exception
    raised by a job is logged and the job keeps its schedule.
    """

    def __init__(
        self,
        *,
        thread_prefix: str = "SenseLog",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._jobs: Dict[str, PeriodicJob] = {}
        self._threads: List[threading.Thread] = []
        self._stop_event = threading.Event()
        self._prefix = thread_prefix
        self._clock = clock
        self._started = False

    def add_job(self, name: str, interval_s: float, fn: Callable[[], object]) -> PeriodicJob:
        if self._started:
            raise RuntimeError("cannot add jobs to a running scheduler")
        if interval_s <= 0:
            raise ValueError(f"interval for job {name!r} must be positive, got {interval_s}")
        if name in self._jobs:
            raise ValueError(f"duplicate job name {name!r}")
        job = PeriodicJob(name=name, interval_s=float(interval_s), fn=fn)
        self._jobs[name] = job
        return job

    def remove_job(self, name: str) -> Optional[PeriodicJob]:
        if self._started:
            raise RuntimeError("cannot remove jobs from a running scheduler")
        return self._jobs.pop(name, None)

    def job(self, name: str) -> Optional[PeriodicJob]:
        return self._jobs.get(name)

    @property
    def running(self) -> bool:
        return self._started and not self._stop_event.is_set()

    def start(self) -> None:
        if self._started:
            raise RuntimeError("scheduler already started")
        self._started = True
        stop_event = self._stop_event
        for job in self._jobs.values():
            thread = threading.Thread(
                target=self._run_job,
                args=(job, stop_event),
                name=f"{self._prefix}-{job.name}",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()
        logger.debug("Scheduler started with jobs: %s", ", ".join(self._jobs))

    def _run_job(self, job: PeriodicJob, stop_event: threading.Event) -> None:
        deadline = self._clock() + job.interval_s
        # wait() doubles as the timer and returns True once stop() is called.
        while not stop_event.wait(max(0.0, deadline - self._clock())):
            try:
                job.fn()
            except Exception:
                job.errors += 1
                logger.exception("Scheduled job %r failed", job.name)
            finally:
                job.runs += 1
            deadline = next_deadline(deadline, job.interval_s, self._clock())

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop_event.set()
        for thread in self._threads:
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Job thread %s did not stop within %.1fs", thread.name, timeout or 0.0)
        self._threads.clear()
        self._stop_event = threading.Event()
        self._started = False


__all__ = ["PeriodicJob", "PeriodicScheduler", "next_deadline"]
