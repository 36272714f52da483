"""JSON-lines sink for completed batches."""

from __future__ import annotations

import json
import threading
from pathlib import Path

from ..core.models import Batch
from ..core.uploader import build_upload_payload


class JsonlBatchWriter:
    """
    Transport that appends each batch as one upload payload per line.

    Directories are created as needed. Safe to share between threads.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self.batches_written = 0

    def send(self, batch: Batch, device_id: str) -> None:
        payload = build_upload_payload(batch, device_id)
        line = json.dumps(payload, separators=(",", ":"))
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")
            self.batches_written += 1
