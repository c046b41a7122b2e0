"""Unit tests for session events and the EventBus."""

from __future__ import annotations

import dataclasses
import logging

import pytest

from larvatrack.engine.events import (
    Event,
    FrameAnalyzed,
    FrameSkipped,
    SessionComplete,
    SessionStart,
    VotesReset,
)
from larvatrack.engine.observers import EventBus, Observer


class _Recorder:
    def __init__(self) -> None:
        self.events: list[Event] = []

    def on_event(self, event: Event) -> None:
        self.events.append(event)


class _Broken:
    def on_event(self, event: Event) -> None:
        raise RuntimeError("observer bug")


def test_events_are_frozen_and_timestamped() -> None:
    event = FrameSkipped(frame_index=3, reason="no contour detected")
    assert event.timestamp > 0
    with pytest.raises(dataclasses.FrozenInstanceError):
        event.frame_index = 4  # type: ignore[misc]


def test_event_defaults() -> None:
    assert VotesReset().previous_votes == (0, 0)
    assert FrameAnalyzed().step_timings == {}
    assert SessionComplete(run_id="r").frames_analyzed == 0


def test_recorder_satisfies_protocol() -> None:
    assert isinstance(_Recorder(), Observer)


class TestEventBus:
    def test_exact_type_subscription(self) -> None:
        bus = EventBus()
        rec = _Recorder()
        bus.subscribe(FrameSkipped, rec)
        bus.emit(FrameSkipped(frame_index=1))
        bus.emit(SessionStart(run_id="r"))
        assert [type(e) for e in rec.events] == [FrameSkipped]

    def test_base_subscription_receives_everything(self) -> None:
        bus = EventBus()
        rec = _Recorder()
        bus.subscribe(Event, rec)
        bus.emit(FrameSkipped(frame_index=1))
        bus.emit(SessionStart(run_id="r"))
        assert len(rec.events) == 2

    def test_observer_subscribed_twice_gets_one_delivery(self) -> None:
        bus = EventBus()
        rec = _Recorder()
        bus.subscribe(Event, rec)
        bus.subscribe(FrameSkipped, rec)
        bus.emit(FrameSkipped(frame_index=1))
        assert len(rec.events) == 1

    def test_unsubscribe(self) -> None:
        bus = EventBus()
        rec = _Recorder()
        bus.subscribe(Event, rec)
        bus.unsubscribe(Event, rec)
        bus.unsubscribe(FrameSkipped, rec)  # never subscribed: no-op
        bus.emit(FrameSkipped(frame_index=1))
        assert rec.events == []

    def test_failing_observer_does_not_block_others(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        bus = EventBus()
        rec = _Recorder()
        bus.subscribe(Event, _Broken())
        bus.subscribe(Event, rec)
        with caplog.at_level(logging.WARNING, logger="larvatrack.engine.observers"):
            bus.emit(FrameSkipped(frame_index=1))
        assert len(rec.events) == 1
        assert "failed on FrameSkipped" in caplog.text
