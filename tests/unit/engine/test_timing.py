"""Unit tests for TimingObserver."""

from __future__ import annotations

from pathlib import Path

import pytest

from larvatrack.engine.events import (
    FrameAnalyzed,
    SessionComplete,
    SessionFailed,
    SessionStart,
)
from larvatrack.engine.observers import Observer
from larvatrack.engine.timing import TimingObserver


def test_timing_observer_satisfies_protocol() -> None:
    """TimingObserver satisfies the Observer protocol via isinstance check."""
    assert isinstance(TimingObserver(), Observer)


def test_step_totals_and_means() -> None:
    """FrameAnalyzed events accumulate per-step totals, means and maxima."""
    observer = TimingObserver()
    observer.on_event(
        FrameAnalyzed(step_timings={"contour": 0.002, "skeleton": 0.004}, interval_ms=40.0)
    )
    observer.on_event(
        FrameAnalyzed(step_timings={"contour": 0.004, "skeleton": 0.002}, interval_ms=40.0)
    )
    assert observer.frame_count == 2
    assert observer.step_totals["contour"] == pytest.approx(0.006)
    assert observer.step_means()["skeleton"] == pytest.approx(0.003)
    assert observer.step_max["contour"] == pytest.approx(0.004)
    assert observer.over_budget == 0


def test_frames_over_budget_are_counted() -> None:
    """Frames whose total analysis time exceeds the interval are flagged."""
    observer = TimingObserver()
    observer.on_event(FrameAnalyzed(step_timings={"contour": 0.050}, interval_ms=40.0))
    observer.on_event(FrameAnalyzed(step_timings={"contour": 0.010}, interval_ms=40.0))
    assert observer.over_budget == 1


def test_step_means_empty_before_frames() -> None:
    assert TimingObserver().step_means() == {}


def test_timing_report_format() -> None:
    """Full event sequence produces a report with step names and the total."""
    observer = TimingObserver()
    observer.on_event(SessionStart(run_id="run_001"))
    observer.on_event(FrameAnalyzed(step_timings={"curvature": 0.001}, interval_ms=40.0))
    observer.on_event(SessionComplete(run_id="run_001", elapsed_seconds=2.5))
    report = observer.report()
    assert "run_001" in report
    assert "curvature" in report
    assert "frames analyzed: 1" in report
    assert "TOTAL 2.50s" in report


def test_report_written_on_completion(tmp_path: Path) -> None:
    out = tmp_path / "nested" / "timing.txt"
    observer = TimingObserver(output_path=out)
    observer.on_event(SessionStart(run_id="r"))
    observer.on_event(SessionComplete(run_id="r", elapsed_seconds=1.0))
    assert out.exists()
    assert "TOTAL 1.00s" in out.read_text()


def test_failed_session_is_marked(tmp_path: Path) -> None:
    out = tmp_path / "timing.txt"
    observer = TimingObserver(output_path=out)
    observer.on_event(SessionFailed(run_id="r", error="boom", elapsed_seconds=0.5))
    assert "FAILED" in out.read_text()
