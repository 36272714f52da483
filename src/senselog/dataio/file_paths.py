"""Helpers for constructing standard file paths."""

import re
from datetime import datetime
from pathlib import Path

DEFAULT_OUTPUT_DIR = Path("data") / "batches"

# Allow only alphanumerics, underscore, dot, and dash.
_NAME_RE = re.compile(r"[^A-Za-z0-9_.-]+")


def _sanitize_name(name: str) -> str:
    """
    Sanitize a device id or session name for use in a file name.

    - Replace disallowed characters with '_'.
    - Strip leading/trailing underscores.
    - Fall back to 'session' if nothing remains.
    """
    cleaned = _NAME_RE.sub("_", name).strip("_")
    return cleaned or "session"


def batch_file_path(device_id: str, base: Path | None = None, *, now: datetime | None = None) -> Path:
    """
    Build a timestamped JSONL path for a session's batches.

    Example: "data/batches/python-1234_20251204_153045.jsonl"
    """
    timestamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    root = base or DEFAULT_OUTPUT_DIR
    return root / f"{_sanitize_name(device_id)}_{timestamp}.jsonl"
