"""Utilities for loading batch files written by :class:`JsonlBatchWriter`."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Sequence

import numpy as np

from ..core.models import WIRE_FIELDS, UnifiedRecord

logger = logging.getLogger(__name__)

NUMERIC_FIELDS = tuple(f for f in WIRE_FIELDS if f not in {"device_id", "type"})


def iter_payloads(path: Path) -> Iterator[dict]:
    """Yield upload payloads from a JSONL file, skipping malformed lines."""
    with Path(path).open("r", encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            text = line.strip()
            if not text:
                continue
            try:
                payload = json.loads(text)
            except json.JSONDecodeError as exc:
                logger.warning("Skipping malformed line %d in %s (%s)", lineno, path, exc)
                continue
            if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
                logger.warning("Skipping line %d in %s: not an upload payload", lineno, path)
                continue
            yield payload


def load_records(path: Path) -> List[UnifiedRecord]:
    """Load every record of every batch stored in ``path``, in file order."""
    records: List[UnifiedRecord] = []
    for payload in iter_payloads(path):
        for item in payload["data"]:
            records.append(UnifiedRecord.from_wire(item))
    return records


def batch_counts(path: Path) -> List[int]:
    """Return the declared ``count`` of each stored batch."""
    return [int(payload.get("count", len(payload["data"]))) for payload in iter_payloads(path)]


def records_to_columns(records: Sequence[UnifiedRecord]) -> Dict[str, np.ndarray]:
    """
    Convert records into one float64 array per wire field.

    Missing values become NaN so the columns can be plotted directly.
    """
    count = len(records)
    columns = {name: np.full(count, np.nan, dtype=np.float64) for name in NUMERIC_FIELDS}
    for i, record in enumerate(records):
        wire = record.to_wire()
        for name in NUMERIC_FIELDS:
            value = wire[name]
            if value is not None:
                columns[name][i] = float(value)
    return columns


def merge_logs(paths: Iterable[Path]) -> List[UnifiedRecord]:
    """Load several batch files and return their records sorted by timestamp."""
    merged: List[UnifiedRecord] = []
    for path in paths:
        merged.extend(load_records(path))
    merged.sort(key=lambda r: r.timestamp)
    return merged
