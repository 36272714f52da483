"""Fixed-size batching of unified records."""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Deque, List, Optional

from .models import Batch, UnifiedRecord

logger = logging.getLogger(__name__)


class BatchAccumulator:
    """
    Collect records into an in-progress batch and release it once it holds
    exactly ``batch_size`` records.

    A batch moves ``ACCUMULATING -> COMPLETED -> consumed``. Completed batches
    are immutable tuples sitting in a FIFO queue until
    :meth:`drain_completed` hands them out; the in-progress batch is never
    exposed. One lock guards both structures so a concurrent ``add`` and
    ``drain_completed`` can neither lose nor duplicate a batch.
    """

    def __init__(self, batch_size: int) -> None:
        batch_size = int(batch_size)
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self._batch_size = batch_size
        self._lock = threading.Lock()
        self._in_progress: List[UnifiedRecord] = []
        self._completed: Deque[Batch] = deque()
        self._sequence = 0

    @property
    def batch_size(self) -> int:
        return self._batch_size

    # ------------------------------------------------------------------ ingest
    def add(self, record: UnifiedRecord) -> None:
        """Append ``record``; completes the batch synchronously when it is full."""
        with self._lock:
            self._in_progress.append(record)
            if len(self._in_progress) == self._batch_size:
                self._complete_locked(partial=False)

    def check_flush(self) -> bool:
        """
        Safety-net trigger run on a timer.

        Flushes only a batch that already holds ``batch_size`` records, which
        :meth:`add` normally handles itself. Partial batches are left alone.
        """
        with self._lock:
            if len(self._in_progress) == self._batch_size:
                logger.warning("Safety flush released a full batch missed by add()")
                self._complete_locked(partial=False)
                return True
            return False

    def flush_partial(self) -> Optional[Batch]:
        """
        Release whatever the in-progress batch holds, for use at shutdown.

        Returns the released batch, or ``None`` when nothing was pending.
        """
        with self._lock:
            if not self._in_progress:
                return None
            partial = len(self._in_progress) < self._batch_size
            batch = self._complete_locked(partial=partial)
        logger.info("Flushed %s batch #%d with %d records", "partial" if partial else "full", batch.sequence, len(batch))
        return batch

    def _complete_locked(self, *, partial: bool) -> Batch:
        # Caller holds self._lock.
        self._sequence += 1
        batch = Batch(sequence=self._sequence, records=tuple(self._in_progress), partial=partial)
        self._in_progress = []
        self._completed.append(batch)
        logger.debug("Batch #%d completed (%d records)", batch.sequence, len(batch))
        return batch

    # ------------------------------------------------------------------- drain
    def drain_completed(self) -> List[Batch]:
        """Remove and return every completed batch in completion order."""
        with self._lock:
            if not self._completed:
                return []
            batches = list(self._completed)
            self._completed.clear()
        return batches

    # ------------------------------------------------------------------- query
    @property
    def pending_count(self) -> int:
        """Records in the in-progress batch."""
        with self._lock:
            return len(self._in_progress)

    @property
    def completed_count(self) -> int:
        with self._lock:
            return len(self._completed)

    def discard_partial(self) -> int:
        """Drop the in-progress records and return how many were lost."""
        with self._lock:
            dropped = len(self._in_progress)
            self._in_progress = []
        return dropped


__all__ = ["BatchAccumulator"]
