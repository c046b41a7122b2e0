"""TrackingSession — wires a Tracker to config, the world resolver and observers.

The session is the single place where tracker results turn into events.
:meth:`TrackingSession.process` is the per-frame entry point for a live
caller; :meth:`TrackingSession.run` replays a whole frame iterable and
brackets it with lifecycle events.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from pathlib import Path

from larvatrack.core.kinematics import (
    StagePositionProvider,
    StageWorldResolver,
    WorldPositionResolver,
)
from larvatrack.core.tracker import Tracker
from larvatrack.core.types import Detected, Frame, FrameResult
from larvatrack.engine.config import TrackerConfig, serialize_config
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

logger = logging.getLogger(__name__)


def build_tracker(
    config: TrackerConfig,
    resolver: WorldPositionResolver | None = None,
    stage: StagePositionProvider | None = None,
) -> Tracker:
    """Construct a :class:`Tracker` from a frozen config.

    Args:
        config: Session configuration.
        resolver: Explicit world-position resolver. When None, one is built
            from ``config.calibration`` and ``stage``.
        stage: Stage position provider used for the default resolver.

    Returns:
        A fresh tracker with empty session state.
    """
    if resolver is None:
        resolver = StageWorldResolver(
            stage=stage,
            um_per_pixel=config.calibration.um_per_pixel,
            ticks_per_mm_x=config.calibration.ticks_per_mm_x,
            ticks_per_mm_y=config.calibration.ticks_per_mm_y,
        )
    a = config.analysis
    return Tracker(
        n_harmonics=a.n_harmonics,
        resolution=a.resolution,
        curvature_distance=a.curvature_distance,
        suppression_window=a.suppression_window,
        skeleton_points=a.skeleton_points,
        neck_percentage=a.neck_percentage,
        bearing_fit_start_offset=a.bearing_fit_start_offset,
        bearing_fit_span=a.bearing_fit_span,
        bearing_filter_window=a.bearing_filter_window,
        bearing_derivative_scale=a.bearing_derivative_scale,
        head_velocity_step=config.kinematics.head_velocity_step,
        tail_velocity_step=config.kinematics.tail_velocity_step,
        history_capacity=config.session.history_capacity,
        track_sample_interval=config.session.track_sample_interval,
        track_capacity=config.session.track_capacity,
        resolver=resolver,
    )


class TrackingSession:
    """One experiment session: a tracker plus the observers listening to it.

    Example::

        config = load_config("session.yaml")
        session = TrackingSession(config, observers=[TimingObserver()])
        with VideoFrameSource("larva.avi") as frames:
            session.run(frames)

    Args:
        config: Frozen session config.
        observers: Observers subscribed to every event.
        resolver: Optional world-position resolver (see :func:`build_tracker`).
        stage: Optional stage position provider for the default resolver.
    """

    def __init__(
        self,
        config: TrackerConfig,
        observers: list[Observer] | None = None,
        resolver: WorldPositionResolver | None = None,
        stage: StagePositionProvider | None = None,
    ) -> None:
        self._config = config
        self._tracker = build_tracker(config, resolver=resolver, stage=stage)
        self._bus = EventBus()
        for observer in observers or []:
            self._bus.subscribe(Event, observer)

    @property
    def tracker(self) -> Tracker:
        return self._tracker

    @property
    def config(self) -> TrackerConfig:
        return self._config

    def add_observer(self, observer: Observer, event_type: type[Event] = Event) -> None:
        self._bus.subscribe(event_type, observer)

    def remove_observer(self, observer: Observer, event_type: type[Event] = Event) -> None:
        self._bus.unsubscribe(event_type, observer)

    def process(self, frame: Frame) -> FrameResult:
        """Analyze one frame and notify observers before returning."""
        result = self._tracker.process(frame)
        if isinstance(result, Detected):
            self._bus.emit(
                FrameAnalyzed(
                    record=result.record,
                    step_timings=dict(self._tracker.last_step_timings),
                    interval_ms=frame.interval_ms,
                )
            )
        else:
            self._bus.emit(FrameSkipped(frame_index=result.frame_index, reason=result.reason))
        return result

    def reset_votes(self) -> None:
        """Operator trigger: zero the head/tail vote counters."""
        previous = self._tracker.votes
        self._tracker.reset_votes()
        self._bus.emit(VotesReset(previous_votes=previous))

    def reset(self) -> None:
        """Start a new session without rebuilding the tracker."""
        self._tracker.reset_session()
        self._bus.emit(SessionReset(run_id=self._config.run_id))

    def run(self, frames: Iterable[Frame]) -> tuple[int, int]:
        """Process every frame of *frames* in order.

        Writes ``config.yaml`` into ``config.output_dir`` before the first
        frame when an output directory is configured.

        Returns:
            ``(frames_analyzed, frames_skipped)``.

        Raises:
            Exception: Re-raises any error after emitting ``SessionFailed``.
        """
        start = time.monotonic()
        if self._config.output_dir:
            output_dir = Path(self._config.output_dir).expanduser()
            output_dir.mkdir(parents=True, exist_ok=True)
            (output_dir / "config.yaml").write_text(
                serialize_config(self._config), encoding="utf-8"
            )

        self._bus.emit(SessionStart(run_id=self._config.run_id, config=self._config))
        analyzed = 0
        skipped = 0
        try:
            for frame in frames:
                if isinstance(self.process(frame), Detected):
                    analyzed += 1
                else:
                    skipped += 1
        except Exception as exc:
            self._bus.emit(
                SessionFailed(
                    run_id=self._config.run_id,
                    error=str(exc),
                    elapsed_seconds=time.monotonic() - start,
                )
            )
            raise

        elapsed = time.monotonic() - start
        logger.info(
            "Session %s: %d frames analyzed, %d skipped in %.1fs",
            self._config.run_id,
            analyzed,
            skipped,
            elapsed,
        )
        self._bus.emit(
            SessionComplete(
                run_id=self._config.run_id,
                frames_analyzed=analyzed,
                frames_skipped=skipped,
                elapsed_seconds=elapsed,
            )
        )
        return analyzed, skipped
