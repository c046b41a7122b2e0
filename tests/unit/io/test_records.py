"""Unit tests for data-line formatting."""

from __future__ import annotations

import math

import numpy as np

from larvatrack.core.tracker import Tracker
from larvatrack.io.records import data_legend, format_record


def test_legend_enumerates_columns() -> None:
    legend = data_legend().splitlines()
    assert legend[0] == "1: Sample index"
    assert legend[14] == "15: Stage position y (ticks)"
    assert legend[-1].startswith("16+: 4*N Fourier coefficients")


def test_format_record_matches_legend(larva_frame) -> None:
    tracker = Tracker(n_harmonics=5)
    record = tracker.process(larva_frame(frame_index=25)).record
    line = format_record(record)
    assert line.endswith("\n")
    fields = [f.strip() for f in line.split(",")]
    assert len(fields) == 15 + 5 * 4
    assert fields[0] == "25"
    assert float(fields[1]) == 1.0
    assert float(fields[2]) == round(record.head[0], 2)
    assert float(fields[8]) == round(record.skeleton.length, 2)
    assert math.isclose(
        float(fields[11]), math.degrees(record.angles.head_to_body), abs_tol=0.006
    )
    assert fields[13:15] == ["0", "0"]
    np.testing.assert_allclose(
        [float(f) for f in fields[15:]], record.coefficients.ravel(), atol=1e-4
    )
