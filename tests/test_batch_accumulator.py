from __future__ import annotations

import threading

import pytest

from senselog.core.batching import BatchAccumulator
from senselog.core.models import UnifiedRecord


def _record(ts: int) -> UnifiedRecord:
    return UnifiedRecord(timestamp=ts, device_id="dev-1", pressure=1000.0)


def test_batch_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        BatchAccumulator(0)


def test_full_batch_completes_on_add() -> None:
    acc = BatchAccumulator(3)
    for ts in (1000, 2000, 3000):
        acc.add(_record(ts))

    assert acc.pending_count == 0
    assert acc.completed_count == 1
    [batch] = acc.drain_completed()
    assert len(batch) == 3
    assert [r.timestamp for r in batch] == [1000, 2000, 3000]
    assert batch.sequence == 1
    assert not batch.partial


def test_partial_batch_is_not_exposed() -> None:
    acc = BatchAccumulator(3)
    for ts in range(5):
        acc.add(_record(ts))

    assert acc.completed_count == 1
    assert acc.pending_count == 2
    batches = acc.drain_completed()
    assert [len(b) for b in batches] == [3]


def test_drain_is_idempotent_when_empty() -> None:
    acc = BatchAccumulator(2)
    assert acc.drain_completed() == []
    acc.add(_record(1))
    acc.add(_record(2))
    assert len(acc.drain_completed()) == 1
    assert acc.drain_completed() == []


def test_drain_returns_batches_in_completion_order() -> None:
    acc = BatchAccumulator(2)
    for ts in range(6):
        acc.add(_record(ts))
    batches = acc.drain_completed()
    assert [b.sequence for b in batches] == [1, 2, 3]
    assert [b.first_timestamp for b in batches] == [0, 2, 4]
    assert [b.last_timestamp for b in batches] == [1, 3, 5]


def test_check_flush_never_releases_partial_batch() -> None:
    acc = BatchAccumulator(3)
    acc.add(_record(1))
    assert acc.check_flush() is False
    assert acc.completed_count == 0
    assert acc.pending_count == 1


def test_flush_partial_releases_remaining_records() -> None:
    acc = BatchAccumulator(3)
    assert acc.flush_partial() is None
    acc.add(_record(1))
    acc.add(_record(2))
    batch = acc.flush_partial()
    assert batch is not None
    assert batch.partial
    assert len(batch) == 2
    assert acc.pending_count == 0
    assert acc.drain_completed() == [batch]


def test_discard_partial_reports_dropped_records() -> None:
    acc = BatchAccumulator(3)
    acc.add(_record(1))
    acc.add(_record(2))
    assert acc.discard_partial() == 2
    assert acc.pending_count == 0
    assert acc.drain_completed() == []


def test_concurrent_add_and_drain_loses_nothing() -> None:
    acc = BatchAccumulator(10)
    writers = 4
    per_writer = 250
    drained = []
    done = threading.Event()

    def writer(offset: int) -> None:
        for i in range(per_writer):
            acc.add(_record(offset * per_writer + i))

    def drainer() -> None:
        while not done.is_set():
            drained.extend(acc.drain_completed())
        drained.extend(acc.drain_completed())

    drain_thread = threading.Thread(target=drainer)
    drain_thread.start()
    threads = [threading.Thread(target=writer, args=(n,)) for n in range(writers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    done.set()
    drain_thread.join()

    assert all(len(b) == 10 for b in drained)
    timestamps = [r.timestamp for b in drained for r in b]
    assert len(timestamps) == writers * per_writer
    assert len(set(timestamps)) == writers * per_writer
    assert sorted(b.sequence for b in drained) == list(range(1, len(drained) + 1))
