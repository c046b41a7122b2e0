"""Session engine: config hierarchy, event system, observers and session runner.

Import boundary: engine/ may import from core/ and io/, never the reverse.
"""

from larvatrack.engine.config import (
    AnalysisConfig,
    CalibrationConfig,
    KinematicsConfig,
    SessionConfig,
    TrackerConfig,
    load_config,
    serialize_config,
)
from larvatrack.engine.console_observer import ConsoleObserver
from larvatrack.engine.events import (
    Event,
    FrameAnalyzed,
    FrameSkipped,
    SessionComplete,
    SessionFailed,
    SessionReset,
    SessionStart,
    VotesReset,
)
from larvatrack.engine.observers import EventBus, Observer
from larvatrack.engine.record_observer import RecordWriterObserver
from larvatrack.engine.session import TrackingSession, build_tracker
from larvatrack.engine.timing import TimingObserver

__all__ = [
    "AnalysisConfig",
    "CalibrationConfig",
    "ConsoleObserver",
    "Event",
    "EventBus",
    "FrameAnalyzed",
    "FrameSkipped",
    "KinematicsConfig",
    "Observer",
    "RecordWriterObserver",
    "SessionComplete",
    "SessionConfig",
    "SessionFailed",
    "SessionReset",
    "SessionStart",
    "TimingObserver",
    "TrackerConfig",
    "TrackingSession",
    "VotesReset",
    "build_tracker",
    "load_config",
    "serialize_config",
]
