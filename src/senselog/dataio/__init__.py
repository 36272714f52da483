"""Data input/output helpers (batch files and file paths).

Utility modules here keep disk-level concerns isolated from the pipeline:
- :mod:`jsonl_writer` is a local transport that stores upload payloads.
- :mod:`log_loader` reads stored batches back for offline review.
- :mod:`file_paths` centralises naming of output files.
"""

from .file_paths import batch_file_path
from .jsonl_writer import JsonlBatchWriter
from .log_loader import load_records, records_to_columns

__all__ = ["batch_file_path", "JsonlBatchWriter", "load_records", "records_to_columns"]
