"""Observer that writes one data line per analyzed frame to a text file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TextIO

from larvatrack.engine.events import (
    Event,
    FrameAnalyzed,
    SessionComplete,
    SessionFailed,
    SessionStart,
)
from larvatrack.io.records import data_legend, format_record

logger = logging.getLogger(__name__)


class RecordWriterObserver:
    """Writes ``data.txt`` (records) and ``legend.txt`` into ``output_dir``.

    The file is opened on SessionStart and closed on SessionComplete or
    SessionFailed. Frames arriving outside a session are ignored.

    Args:
        output_dir: Directory to write into; created if missing.
        filename: Name of the data file.
    """

    def __init__(self, output_dir: str | Path, filename: str = "data.txt") -> None:
        self._output_dir = Path(output_dir)
        self._filename = filename
        self._fh: TextIO | None = None
        self.lines_written = 0

    @property
    def path(self) -> Path:
        return self._output_dir / self._filename

    def on_event(self, event: Event) -> None:
        if isinstance(event, SessionStart):
            self._open()
        elif isinstance(event, FrameAnalyzed) and self._fh is not None:
            self._fh.write(format_record(event.record))  # type: ignore[arg-type]
            self.lines_written += 1
        elif isinstance(event, (SessionComplete, SessionFailed)):
            self._close()

    def _open(self) -> None:
        self._close()
        self._output_dir.mkdir(parents=True, exist_ok=True)
        (self._output_dir / "legend.txt").write_text(data_legend(), encoding="utf-8")
        self._fh = self.path.open("w", encoding="utf-8")
        self.lines_written = 0

    def _close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None
            logger.info("Wrote %d records to %s", self.lines_written, self.path)
