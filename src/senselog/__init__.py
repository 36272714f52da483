"""SenseLog: multi-rate sensor fusion, alignment and batching.

Readings from independently clocked sensors are merged into one unified
record per tick and grouped into fixed-size batches for upload. See
:mod:`senselog.core` for the pipeline and :mod:`senselog.config` for the
session settings.
"""

__version__ = "0.1.0"
