"""Command-line entry point for SenseLog.

Two modes feed JSONL readings into a :class:`~senselog.core.session.LoggingSession`
and store completed batches with :class:`~senselog.dataio.jsonl_writer.JsonlBatchWriter`:

* ``replay`` drives ticks from the ``t_ms`` stamps of a recorded file, so a
  30 minute recording is processed in well under a second;
* ``live`` reads stdin (or a file/pipe) on a producer thread while the
  session's scheduler ticks on wall-clock time until the input ends or the
  user presses Ctrl+C.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterable, Optional, Sequence, TextIO

from .config import DEFAULT_CONFIG_PATH, SessionConfig, load_config
from .core.session import LoggingSession
from .core.stream_reader import reader_loop, start_reader
from .core.uploader import DrainReport
from .dataio.file_paths import batch_file_path
from .dataio.jsonl_writer import JsonlBatchWriter
from .sensors.readings import Reading, parse_line
from .tools.debug import debug_enabled

logger = logging.getLogger(__name__)


@dataclass
class ReplayStats:
    readings: int = 0
    ticks: int = 0
    records: int = 0
    batches: int = 0


class ReplayClock:
    """Millisecond clock that follows the timestamps of a replayed recording."""

    def __init__(self, start_ms: int = 0) -> None:
        self.now_ms = int(start_ms)

    def __call__(self) -> int:
        return self.now_ms


def replay_readings(
    lines: Iterable[str],
    session: LoggingSession,
    *,
    clock: Optional[ReplayClock] = None,
) -> ReplayStats:
    """
    Push recorded readings through ``session`` using their own timestamps.

    The first tick fires one tick interval after the first stamped reading;
    every tick boundary reached by a later reading is emitted before that
    reading is recorded. Readings without ``t_ms`` are recorded at the
    current position. A last tick covers readings after the final boundary.

    Pass the ``clock`` the session was built with to keep arrival times (and
    so max-age eviction) on the recording's time line.
    """
    stats = ReplayStats()
    tick_ms = max(1, int(round(session.config.tick_interval_s * 1000.0)))
    next_tick: Optional[int] = None

    def _advance_to(limit_ms: int) -> None:
        nonlocal next_tick
        while next_tick is not None and next_tick <= limit_ms:
            _tick(next_tick)
            next_tick += tick_ms

    def _tick(now_ms: int) -> None:
        if clock is not None:
            clock.now_ms = now_ms
        stats.ticks += 1
        if session.run_tick(now_ms) is not None:
            stats.records += 1
        session.check_flush()
        if session.accumulator.completed_count:
            stats.batches += session.upload().dispatched

    def _sink(reading: Reading) -> None:
        nonlocal next_tick
        ts = reading.timestamp_ms
        if ts is not None:
            if next_tick is None:
                next_tick = ts + tick_ms
            _advance_to(ts)
            if clock is not None:
                clock.now_ms = ts
        session.record(reading)
        stats.readings += 1

    reader_loop(lines, _sink, parser=parse_line)
    if next_tick is not None:
        _tick(next_tick)
    return stats


def run_live(stream: TextIO, session: LoggingSession, *, poll_s: float = 0.2) -> None:
    """Run ``session`` on wall-clock time while a reader thread feeds it."""
    session.start()
    handle = start_reader(stream, session.record, thread_name="SenseLogStdinReader")
    try:
        while handle.is_alive():
            time.sleep(poll_s)
    except KeyboardInterrupt:
        logger.info("Interrupted; stopping session")
    finally:
        handle.stop()


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SenseLog multi-rate sensor batching")
    parser.add_argument(
        "input",
        nargs="?",
        default="-",
        help="JSONL readings file, or '-' for stdin (default)",
    )
    parser.add_argument(
        "-m",
        "--mode",
        choices=("replay", "live"),
        default="replay",
        help="replay: tick on reading timestamps; live: tick on wall-clock time",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Batch output file (default: data/batches/<device>_<time>.jsonl)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help=f"YAML session config (default: {DEFAULT_CONFIG_PATH.name} bundled with the package)",
    )
    parser.add_argument("--device-id", help="Override the device id")
    parser.add_argument("--batch-size", type=int, help="Override the number of records per batch")
    parser.add_argument("--tick-interval", type=float, help="Override the tick interval in seconds")
    parser.add_argument(
        "--final-flush",
        action="store_true",
        help="Emit the last partial batch on shutdown instead of discarding it",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _resolve_config(args: argparse.Namespace) -> SessionConfig:
    cfg = load_config(args.config or DEFAULT_CONFIG_PATH)
    if args.device_id:
        cfg = replace(cfg, device_id=args.device_id)
    if args.batch_size is not None:
        cfg = replace(cfg, batch_size=args.batch_size)
    if args.tick_interval is not None:
        cfg = replace(cfg, tick_interval_s=args.tick_interval)
    if args.final_flush:
        cfg = replace(cfg, final_flush=True)
    return cfg.sanitized()


def _log_summary(report: DrainReport, writer: JsonlBatchWriter) -> None:
    logger.info("Wrote %d batch(es) to %s", writer.batches_written, writer.path)
    if report.failed:
        logger.error("%d batch(es) failed to write", report.failed)


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if debug_enabled():
        logger.debug("SENSELOG_DEBUG set; timing every session tick")

    try:
        cfg = _resolve_config(args)
    except ValueError as exc:
        parser.error(str(exc))

    output = args.output or batch_file_path(cfg.device_id or "session")
    writer = JsonlBatchWriter(output)
    clock = ReplayClock() if args.mode == "replay" else None
    session = LoggingSession(cfg, writer, clock=clock)

    if args.input == "-":
        stream: TextIO = sys.stdin
        close_stream = False
    else:
        path = Path(args.input).expanduser()
        if not path.exists():
            parser.error(f"Input file not found: {path}")
        stream = path.open("r", encoding="utf-8")
        close_stream = True

    try:
        if args.mode == "replay":
            stats = replay_readings(stream, session, clock=clock)
            logger.info(
                "Replayed %d readings into %d records over %d ticks",
                stats.readings,
                stats.records,
                stats.ticks,
            )
        else:
            run_live(stream, session)
        report = session.stop()
    finally:
        if close_stream:
            stream.close()

    _log_summary(report, writer)
    return 0 if report.failed == 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
