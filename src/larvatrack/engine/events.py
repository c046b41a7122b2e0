"""Typed event dataclasses for the tracking session event system.

Events use a 3-tier taxonomy:
- Session lifecycle: SessionStart, SessionComplete, SessionFailed, SessionReset
- Frame-level: FrameAnalyzed, FrameSkipped
- Operator: VotesReset

All events are frozen dataclasses with an auto-populated timestamp field.
Observers react to events without mutating tracker state.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Event:
    """Base class for all session events.

    Attributes:
        timestamp: Unix timestamp (seconds) at event construction time.
    """

    timestamp: float = field(default_factory=time.time)


# ---------------------------------------------------------------------------
# Session lifecycle events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SessionStart(Event):
    """Emitted when a session begins processing frames.

    Attributes:
        run_id: Unique identifier for this run.
        config: The session configuration object (a ``TrackerConfig``).
    """

    run_id: str = ""
    config: object = field(default=None, compare=False)


@dataclass(frozen=True)
class SessionComplete(Event):
    """Emitted after the frame source is exhausted.

    Attributes:
        run_id: Unique identifier for this run.
        frames_analyzed: Frames that produced a history record.
        frames_skipped: Frames without a detectable contour.
        elapsed_seconds: Wall-clock time for the whole run.
    """

    run_id: str = ""
    frames_analyzed: int = 0
    frames_skipped: int = 0
    elapsed_seconds: float = 0.0


@dataclass(frozen=True)
class SessionFailed(Event):
    """Emitted when a run terminates due to an unhandled exception."""

    run_id: str = ""
    error: str = ""
    elapsed_seconds: float = 0.0


@dataclass(frozen=True)
class SessionReset(Event):
    """Emitted when threshold, identity, votes and history are discarded."""

    run_id: str = ""


# ---------------------------------------------------------------------------
# Frame-level events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FrameAnalyzed(Event):
    """Emitted after a frame produced a history record.

    Attributes:
        record: The stored ``HistoryRecord``.
        step_timings: Seconds spent in each analysis step.
        interval_ms: Nominal frame interval, the cadence budget for this frame.
    """

    record: object = field(default=None, compare=False)
    step_timings: dict[str, float] = field(default_factory=dict)
    interval_ms: float = 0.0


@dataclass(frozen=True)
class FrameSkipped(Event):
    """Emitted when a frame had no detectable contour."""

    frame_index: int = 0
    reason: str = ""


# ---------------------------------------------------------------------------
# Operator events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VotesReset(Event):
    """Emitted when the head/tail vote counters are zeroed.

    Attributes:
        previous_votes: ``(no_flip, flip)`` counters before the reset.
    """

    previous_votes: tuple[int, int] = (0, 0)


__all__ = [
    "Event",
    "FrameAnalyzed",
    "FrameSkipped",
    "SessionComplete",
    "SessionFailed",
    "SessionReset",
    "SessionStart",
    "VotesReset",
]
