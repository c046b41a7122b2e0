"""I/O helpers: offline frame replay and record formatting."""

from larvatrack.io.records import data_legend, format_record
from larvatrack.io.video import VideoFrameSource

__all__ = ["VideoFrameSource", "data_legend", "format_record"]
