from __future__ import annotations

import json
from pathlib import Path

import pytest

from senselog import app
from senselog.config import SessionConfig
from senselog.core.models import Batch
from senselog.core.session import LoggingSession
from senselog.dataio.log_loader import batch_counts, load_records


class _ListTransport:
    def __init__(self) -> None:
        self.batches: list[Batch] = []

    def send(self, batch: Batch, device_id: str) -> None:
        self.batches.append(batch)


def _recording_lines(duration_ms: int = 30_000) -> list[str]:
    lines = []
    for t in range(0, duration_ms, 100):
        lines.append(json.dumps({"stream": "gyro", "t_ms": t, "x": t / 1000.0, "y": 0.0, "z": 0.0}))
        if t % 1000 == 0:
            lines.append(json.dumps({"stream": "pressure", "t_ms": t, "value": 1013.25}))
    return lines


def test_replay_ticks_on_reading_timestamps() -> None:
    transport = _ListTransport()
    session = LoggingSession(SessionConfig(device_id="dev-1"), transport)

    stats = app.replay_readings(_recording_lines(), session)

    assert stats.readings == 330
    assert stats.ticks == 30
    assert stats.records == 30
    assert stats.batches == 1
    [batch] = transport.batches
    assert [r.timestamp for r in batch] == list(range(1000, 31_000, 1000))
    # the tick at 1000 ms fires before the 1000 ms reading is recorded
    assert batch.records[0].gyro.x == 0.9
    assert batch.records[-1].gyro.x == 29.9


def test_main_replays_file_into_batches(tmp_path: Path) -> None:
    source = tmp_path / "readings.jsonl"
    source.write_text("\n".join(_recording_lines()) + "\n", encoding="utf-8")
    output = tmp_path / "out" / "batches.jsonl"

    rc = app.main([str(source), "-o", str(output), "--device-id", "bench", "--batch-size", "10"])

    assert rc == 0
    assert batch_counts(output) == [10, 10, 10]
    assert {r.device_id for r in load_records(output)} == {"bench"}


def test_main_final_flush_keeps_trailing_records(tmp_path: Path) -> None:
    source = tmp_path / "readings.jsonl"
    source.write_text("\n".join(_recording_lines(5_000)) + "\n", encoding="utf-8")
    output = tmp_path / "batches.jsonl"

    rc = app.main([str(source), "-o", str(output), "--device-id", "bench", "--batch-size", "4", "--final-flush"])

    assert rc == 0
    assert batch_counts(output) == [4, 1]


def test_main_rejects_missing_input(tmp_path: Path) -> None:
    with pytest.raises(SystemExit):
        app.main([str(tmp_path / "missing.jsonl"), "-o", str(tmp_path / "out.jsonl")])


def test_replay_clock_keeps_eviction_on_recording_time() -> None:
    lines = [json.dumps({"stream": "position", "t_ms": 0, "lat": 52.1, "lon": 4.3, "accuracy": 5.0})]
    lines += [json.dumps({"stream": "gyro", "t_ms": t, "x": 0.0, "y": 0.0, "z": 0.0}) for t in range(0, 5000, 100)]
    clock = app.ReplayClock()
    transport = _ListTransport()
    cfg = SessionConfig(device_id="dev-1", batch_size=5, max_age_s={"position": 2.5})
    session = LoggingSession(cfg, transport, clock=clock)

    app.replay_readings(lines, session, clock=clock)

    [batch] = transport.batches
    assert [r.position is not None for r in batch] == [True, True, False, False, False]
    assert clock() == 5000
