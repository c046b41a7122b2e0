"""Timing observer for per-step analysis profiling."""

from __future__ import annotations

import logging
from pathlib import Path

from larvatrack.engine.events import (
    Event,
    FrameAnalyzed,
    SessionComplete,
    SessionFailed,
    SessionStart,
)

logger = logging.getLogger(__name__)


class TimingObserver:
    """Accumulates per-step analysis time from FrameAnalyzed events.

    The tracker does not enforce its frame budget; this observer counts the
    frames whose total analysis time exceeded the nominal frame interval so
    the caller can see whether the cadence was kept.

    Args:
        output_path: If set, the report is written here when the session
            completes or fails.

    Example::

        timing = TimingObserver()
        session = TrackingSession(config, observers=[timing])
        session.run(frames)
        print(timing.report())
    """

    def __init__(self, output_path: str | Path | None = None) -> None:
        self._output_path = Path(output_path) if output_path is not None else None
        self.step_totals: dict[str, float] = {}
        self.step_max: dict[str, float] = {}
        self.frame_count: int = 0
        self.over_budget: int = 0
        self.total_time: float | None = None
        self.run_id: str = ""
        self._failed = False

    def on_event(self, event: Event) -> None:
        if isinstance(event, SessionStart):
            self.run_id = event.run_id
        elif isinstance(event, FrameAnalyzed):
            self._record(event.step_timings, event.interval_ms)
        elif isinstance(event, SessionComplete):
            self.total_time = event.elapsed_seconds
            self._failed = False
            self._finalize()
        elif isinstance(event, SessionFailed):
            self.total_time = event.elapsed_seconds
            self._failed = True
            self._finalize()

    def _record(self, timings: dict[str, float], interval_ms: float) -> None:
        self.frame_count += 1
        for step, seconds in timings.items():
            self.step_totals[step] = self.step_totals.get(step, 0.0) + seconds
            self.step_max[step] = max(self.step_max.get(step, 0.0), seconds)
        if interval_ms > 0 and sum(timings.values()) * 1000.0 > interval_ms:
            self.over_budget += 1

    def step_means(self) -> dict[str, float]:
        """Mean seconds per analyzed frame for each step."""
        if self.frame_count == 0:
            return {}
        return {step: total / self.frame_count for step, total in self.step_totals.items()}

    def report(self) -> str:
        """Return a formatted multi-line timing report."""
        lines = [f"Timing Report — run: {self.run_id}", "=" * 50]
        means = self.step_means()
        for step, mean in means.items():
            lines.append(
                f"  {step:<14s} mean {mean * 1000:8.3f} ms   max {self.step_max[step] * 1000:8.3f} ms"
            )
        lines.append("-" * 50)
        lines.append(f"  frames analyzed: {self.frame_count}")
        lines.append(f"  frames over budget: {self.over_budget}")
        if self.total_time is not None:
            lines.append(f"  TOTAL {self.total_time:.2f}s")
        if self._failed:
            lines.append("  (session FAILED)")
        return "\n".join(lines)

    def _finalize(self) -> None:
        if self._output_path is None:
            return
        self._output_path.parent.mkdir(parents=True, exist_ok=True)
        self._output_path.write_text(self.report() + "\n", encoding="utf-8")
        logger.info("Timing report written to %s", self._output_path)
