"""Observer protocol and a typed, synchronous EventBus.

The tracker performs pure computation; timing, progress output and record
export live in observers that react to session events.

- Delivery is synchronous: the session waits for every ``on_event`` call,
  which is what lets the caller publish a frame only after its record and
  all observers are done with it.
- Subscribing to a base event class receives all subclasses of it.
- A failing observer is logged and skipped; the remaining observers still
  receive the event and tracker state is unaffected.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Protocol, runtime_checkable

from larvatrack.engine.events import Event

logger = logging.getLogger(__name__)


@runtime_checkable
class Observer(Protocol):
    """Anything with an ``on_event(event)`` method."""

    def on_event(self, event: Event) -> None: ...


class EventBus:
    """Dispatch events to observers subscribed to the event type or an ancestor.

    Example::

        bus = EventBus()
        bus.subscribe(FrameAnalyzed, timing)
        bus.subscribe(Event, console)        # everything
        bus.emit(FrameSkipped(frame_index=3))  # only console sees this
    """

    def __init__(self) -> None:
        self._subscriptions: dict[type[Event], list[Observer]] = defaultdict(list)

    def subscribe(self, event_type: type[Event], observer: Observer) -> None:
        self._subscriptions[event_type].append(observer)

    def unsubscribe(self, event_type: type[Event], observer: Observer) -> None:
        """Remove *observer* from *event_type*; no-op if it was not subscribed."""
        observers = self._subscriptions.get(event_type)
        if observers and observer in observers:
            observers.remove(observer)

    def emit(self, event: Event) -> None:
        """Deliver *event* to matching observers, most specific type first.

        Each observer is called at most once per event even when it is
        subscribed at several levels of the hierarchy.
        """
        delivered: set[int] = set()
        for ancestor in type(event).__mro__:
            if not (isinstance(ancestor, type) and issubclass(ancestor, Event)):
                continue
            for obs in list(self._subscriptions.get(ancestor, [])):
                if id(obs) in delivered:
                    continue
                delivered.add(id(obs))
                try:
                    obs.on_event(event)
                except Exception:
                    logger.warning(
                        "Observer %r failed on %s; continuing with remaining observers",
                        obs,
                        type(event).__name__,
                        exc_info=True,
                    )


__all__ = ["EventBus", "Observer"]
