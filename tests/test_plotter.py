from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pytest  # noqa: E402

from senselog.core.models import Axes3, Batch, UnifiedRecord  # noqa: E402
from senselog.dataio.jsonl_writer import JsonlBatchWriter  # noqa: E402
from senselog.sensors.barometer import pressure_to_altitude_array  # noqa: E402
from senselog.tools import plotter  # noqa: E402


def _write_batches(path: Path) -> None:
    records = tuple(
        UnifiedRecord(
            timestamp=1000 * (i + 1),
            device_id="dev-1",
            gyro=Axes3(0.0, 0.0, 0.1 * i),
            accel=Axes3(0.0, 0.0, 9.8),
            pressure=1013.0 - 0.1 * i,
            altitude=0.8 * i,
        )
        for i in range(10)
    )
    JsonlBatchWriter(path).send(Batch(sequence=1, records=records), "dev-1")


def test_build_figure_has_two_panels(tmp_path: Path) -> None:
    path = tmp_path / "batches.jsonl"
    _write_batches(path)
    fig = plotter.build_figure(path)
    try:
        assert len(fig.axes) == 3  # altitude, twin pressure axis, motion
        fused, raw = fig.axes[0].get_lines()
        np.testing.assert_allclose(fused.get_ydata(), [0.8 * i for i in range(10)])
        expected = pressure_to_altitude_array([1013.0 - 0.1 * i for i in range(10)])
        np.testing.assert_allclose(raw.get_ydata(), expected)
    finally:
        plt.close(fig)


def test_build_figure_rejects_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "empty.jsonl"
    path.write_text("", encoding="utf-8")
    with pytest.raises(ValueError):
        plotter.build_figure(path)


def test_cli_saves_image(tmp_path: Path) -> None:
    path = tmp_path / "batches.jsonl"
    _write_batches(path)
    image = tmp_path / "plot.png"
    assert plotter.main(["--file", str(path), "--output", str(image)]) == 0
    assert image.exists()


def test_find_latest_log(tmp_path: Path) -> None:
    assert plotter.find_latest_log([tmp_path / "nowhere"]) is None
    path = tmp_path / "batches.jsonl"
    _write_batches(path)
    assert plotter.find_latest_log([tmp_path]) == path
