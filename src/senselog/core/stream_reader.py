from __future__ import annotations

"""
Utilities for ingesting JSONL reading streams (recorded files, pipes, or
stdin) and pushing the decoded readings into an aggregator.
"""

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Callable, Optional

from ..sensors.readings import Reading, parse_line

logger = logging.getLogger(__name__)

ReadingSink = Callable[[Reading], None]


def reader_loop(
    stream: Iterable[str],
    sink: ReadingSink,
    *,
    stop_event: Optional[threading.Event] = None,
    parser: Callable[[str], Optional[Reading]] = parse_line,
) -> int:
    """Parse JSON lines from ``stream`` and hand each reading to ``sink``.

    Malformed lines and sink errors are logged and skipped so one bad record
    never ends the stream. Returns the number of readings delivered.
    """
    delivered = 0
    for raw_line in stream:
        if stop_event is not None and stop_event.is_set():
            break

        line = raw_line.strip()
        if not line:
            continue

        try:
            reading = parser(line)
        except Exception:
            logger.exception("Error parsing line %r", line)
            continue

        if reading is None:
            continue

        try:
            sink(reading)
        except Exception:
            logger.exception("Reading sink failed for %r", reading)
            continue
        delivered += 1
    return delivered


@dataclass
class StreamReaderHandle:
    thread: threading.Thread
    stop_event: threading.Event

    def stop(self, *, join: bool = False, timeout: Optional[float] = None) -> None:
        self.stop_event.set()
        if join:
            self.thread.join(timeout)

    def is_alive(self) -> bool:
        return self.thread.is_alive()


def start_reader(
    stream: Iterable[str],
    sink: ReadingSink,
    *,
    thread_name: Optional[str] = None,
) -> StreamReaderHandle:
    """
    Start a background producer thread that feeds readings from *stream*.

    Each physical source gets its own reader, matching the one-producer-per-
    stream model of :class:`~senselog.core.aggregator.StreamAggregator`.
    """
    stop_event = threading.Event()

    def _target() -> None:
        count = reader_loop(stream, sink, stop_event=stop_event)
        logger.debug("Reader %s finished after %d readings", thread_name or "stream", count)

    thread = threading.Thread(
        target=_target,
        name=thread_name or "SenseLogStreamReader",
        daemon=True,
    )
    thread.start()
    return StreamReaderHandle(thread=thread, stop_event=stop_event)


__all__ = ["ReadingSink", "StreamReaderHandle", "reader_loop", "start_reader"]
