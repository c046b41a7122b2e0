"""ConsoleObserver — prints session progress to stderr."""

from __future__ import annotations

import sys

from larvatrack.engine.events import (
    Event,
    FrameAnalyzed,
    FrameSkipped,
    SessionComplete,
    SessionFailed,
    SessionStart,
    VotesReset,
)


class ConsoleObserver:
    """Writes human-readable progress to stderr, keeping stdout clean for piping.

    Args:
        verbose: Print one line per frame instead of every ``every`` frames.
        every: Progress line interval in analyzed frames when not verbose.
    """

    def __init__(self, verbose: bool = False, every: int = 500) -> None:
        self._verbose = verbose
        self._every = max(1, every)
        self._analyzed = 0
        self._skipped = 0

    def on_event(self, event: Event) -> None:
        if isinstance(event, SessionStart):
            self._analyzed = 0
            self._skipped = 0
            self._write(f"Session {event.run_id} started\n")

        elif isinstance(event, FrameAnalyzed):
            self._analyzed += 1
            record = event.record
            if self._verbose:
                self._write(
                    f"  frame {record.frame_index}: length {record.skeleton.length:.1f}px "  # type: ignore[attr-defined]
                    f"headcast {record.angles.head_to_body:+.2f}rad\n"  # type: ignore[attr-defined]
                )
            elif self._analyzed % self._every == 0:
                self._write(f"  {self._analyzed} frames analyzed\n")

        elif isinstance(event, FrameSkipped):
            self._skipped += 1
            if self._verbose:
                self._write(f"  frame {event.frame_index}: skipped ({event.reason})\n")

        elif isinstance(event, VotesReset):
            self._write(f"Head/tail votes reset (were {event.previous_votes})\n")

        elif isinstance(event, SessionComplete):
            self._write(
                f"\nSession complete: {event.frames_analyzed} analyzed, "
                f"{event.frames_skipped} skipped ({event.elapsed_seconds:.1f}s)\n"
            )

        elif isinstance(event, SessionFailed):
            self._write(
                f"Session FAILED after {event.elapsed_seconds:.1f}s: {event.error}\n"
            )

    @staticmethod
    def _write(text: str) -> None:
        sys.stderr.write(text)
        sys.stderr.flush()
