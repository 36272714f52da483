#!/usr/bin/env python3
"""
Simple CLI plotter for SenseLog batch files.

Loads the JSONL upload payloads written by
:class:`~senselog.dataio.jsonl_writer.JsonlBatchWriter` and shows, on a shared
time axis:

  * pressure, fused altitude and the raw altitude recomputed from pressure,
  * accelerometer and gyroscope magnitudes.

By default, if no ``--file`` is provided, the newest ``*.jsonl`` file under
``data/batches`` or the current directory is used.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np

from ..analysis.features import magnitudes
from ..dataio.file_paths import DEFAULT_OUTPUT_DIR
from ..dataio.log_loader import load_records, records_to_columns
from ..sensors.barometer import pressure_to_altitude_array


# --------------------------------------------------------------------------- # helpers
def find_latest_log(search_roots: Sequence[Path]) -> Optional[Path]:
    candidates: list[Path] = []
    for root in search_roots:
        if root.exists():
            candidates.extend(root.glob("*.jsonl"))
    if not candidates:
        return None
    return max(candidates, key=lambda p: p.stat().st_mtime)


def _axis_magnitude(columns: dict[str, np.ndarray], prefix: str) -> np.ndarray:
    stacked = np.column_stack([columns[f"{prefix}_{axis}"] for axis in "xyz"])
    return magnitudes(stacked)


def build_figure(path: Path):
    records = load_records(path)
    if not records:
        raise ValueError(f"No records found in {path}")
    columns = records_to_columns(records)
    t = (columns["timestamp"] - columns["timestamp"][0]) / 1000.0

    fig, (ax_baro, ax_motion) = plt.subplots(2, 1, sharex=True, figsize=(10, 6))

    ax_baro.plot(t, columns["altitude"], label="fused altitude (m)", color="tab:blue")
    raw_altitude = pressure_to_altitude_array(columns["pressure"])
    ax_baro.plot(t, raw_altitude, label="raw altitude (m)", color="tab:gray", linestyle="--")
    ax_baro.legend(loc="upper left")
    ax_baro.set_ylabel("altitude (m)")
    ax_pressure = ax_baro.twinx()
    ax_pressure.plot(t, columns["pressure"], label="pressure (hPa)", color="tab:orange", alpha=0.6)
    ax_pressure.set_ylabel("pressure (hPa)")
    ax_baro.grid(True)

    ax_motion.plot(t, _axis_magnitude(columns, "accel"), label="|accel| (m/s²)")
    ax_motion.plot(t, _axis_magnitude(columns, "gyro"), label="|gyro| (rad/s)")
    ax_motion.set_xlabel("time (s)")
    ax_motion.legend(loc="upper right")
    ax_motion.grid(True)

    fig.suptitle(f"SenseLog: {path.name} ({len(records)} records)")
    fig.tight_layout()
    return fig


# --------------------------------------------------------------------------- # CLI
def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Plot pressure, altitude and motion from a SenseLog batch file."
    )
    parser.add_argument(
        "-f",
        "--file",
        type=str,
        help="Batch file (.jsonl). If omitted, the newest one under data/batches is used.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        help="Save the figure to this image file instead of opening a window.",
    )
    args = parser.parse_args(argv)

    if args.file:
        path = Path(args.file).expanduser().resolve()
        if not path.exists():
            parser.error(f"Batch file not found: {path}")
    else:
        path = find_latest_log([DEFAULT_OUTPUT_DIR, Path.cwd()])
        if path is None:
            parser.error("No batch files found; specify one with --file.")
        print(f"[INFO] Using latest batch file: {path}")

    fig = build_figure(path)
    if args.output:
        fig.savefig(args.output)
        plt.close(fig)
    else:
        plt.show()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
