"""Hand completed batches to an external transport."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Protocol

from .batching import BatchAccumulator
from .models import Batch

logger = logging.getLogger(__name__)

CREATED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"


class Transport(Protocol):
    """Delivers one batch; raises on failure."""

    def send(self, batch: Batch, device_id: str) -> None:  # pragma: no cover - protocol
        ...


@dataclass(slots=True)
class CallableTransport:
    """Adapt a plain ``fn(payload)`` into a :class:`Transport`."""

    fn: Callable[[Dict[str, Any]], None]

    def send(self, batch: Batch, device_id: str) -> None:
        self.fn(build_upload_payload(batch, device_id))


def build_upload_payload(batch: Batch, device_id: str) -> Dict[str, Any]:
    """
    Build the JSON body the upload server accepts for one batch.

    Shape::

        {"deviceId": ..., "count": n, "data": [<wire record + created_at>, ...]}
    """
    data: List[Dict[str, Any]] = []
    for record in batch:
        item = record.to_wire()
        item["created_at"] = datetime.fromtimestamp(record.timestamp / 1000.0).strftime(CREATED_AT_FORMAT)
        data.append(item)
    return {"deviceId": device_id, "count": len(data), "data": data}


@dataclass(slots=True)
class DrainReport:
    """Outcome of one :meth:`UploadDrainer.drain_and_dispatch` call."""

    dispatched: int = 0
    records: int = 0
    failed: int = 0
    skipped_empty: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def drained(self) -> int:
        return self.dispatched + self.failed + self.skipped_empty


class UploadDrainer:
    """
    Pull every completed batch from a :class:`BatchAccumulator` and pass it to
    the transport.

    Each drained batch is offered to the transport exactly once. A failing
    send is logged and counted but never re-queued; retries belong to the
    transport. Later batches in the same drain are still dispatched.
    """

    def __init__(self, accumulator: BatchAccumulator, transport: Transport, device_id: str) -> None:
        self._accumulator = accumulator
        self._transport = transport
        self._device_id = str(device_id)
        self._stats_lock = threading.Lock()
        self.uploads_dispatched = 0
        self.records_dispatched = 0
        self.failures = 0

    def drain_and_dispatch(self) -> DrainReport:
        report = DrainReport()
        for batch in self._accumulator.drain_completed():
            if len(batch) == 0:
                report.skipped_empty += 1
                continue
            try:
                self._transport.send(batch, self._device_id)
            except Exception as exc:
                report.failed += 1
                report.errors.append(f"batch #{batch.sequence}: {exc}")
                logger.exception("Upload of batch #%d (%d records) failed", batch.sequence, len(batch))
                continue
            report.dispatched += 1
            report.records += len(batch)

        with self._stats_lock:
            self.uploads_dispatched += report.dispatched
            self.records_dispatched += report.records
            self.failures += report.failed
            total = self.uploads_dispatched

        if report.dispatched:
            logger.info(
                "Dispatched %d batch(es), %d records (upload #%d)",
                report.dispatched,
                report.records,
                total,
            )
        elif report.drained == 0:
            logger.debug("No completed batches to upload")
        return report


__all__ = [
    "Transport",
    "CallableTransport",
    "DrainReport",
    "UploadDrainer",
    "build_upload_payload",
]
