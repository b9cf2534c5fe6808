"""Storage and dispatch of registered events, for tracks and the global context."""

from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any

from voicedriver.events import (
    CoreEvent,
    Delayed,
    EventData,
    Periodic,
    TrackEvent,
    UntimedEvent,
    is_global_only,
)

_log = logging.getLogger(__name__)


class EventStore:
    """Holds timed events in a heap ordered by fire time, and untimed events by kind."""

    def __init__(self, local_only: bool = False) -> None:
        self.local_only = local_only
        self._timed: list[tuple[float, int, EventData]] = []
        self._untimed: dict[UntimedEvent, list[EventData]] = {}
        self._seq = itertools.count()

    @classmethod
    def new_local(cls) -> EventStore:
        """Create a store for a single track, which ignores global-only events."""
        return cls(local_only=True)

    def __len__(self) -> int:
        return len(self._timed) + sum(len(v) for v in self._untimed.values())

    def __contains__(self, untimed_event: object) -> bool:
        return untimed_event in self._untimed

    def add_event(self, evt: EventData, now: float) -> None:
        """Register ``evt``, computing its activation time from ``now``."""
        evt.compute_activation(now)

        if self.local_only and is_global_only(evt.event):
            return

        event = evt.event
        if isinstance(event, (CoreEvent, TrackEvent)):
            self._untimed.setdefault(event, []).append(evt)
        elif isinstance(event, (Delayed, Periodic)):
            assert evt.fire_time is not None
            heapq.heappush(self._timed, (evt.fire_time, next(self._seq), evt))
        # Anything else is a cancellation: the event is dropped.

    def timed_event_ready(self, now: float) -> bool:
        """Whether any timed event is due at or before ``now``."""
        return bool(self._timed) and self._timed[0][0] <= now

    async def process_timed(self, now: float, ctx: Any) -> None:
        """Fire every timed event due at or before ``now``."""
        while self.timed_event_ready(now):
            _, _, evt = heapq.heappop(self._timed)
            old_event = evt.event
            new_event = await evt.action.act(ctx)
            if new_event is not None:
                evt.event = new_event
                self.add_event(evt, now)
            elif isinstance(old_event, Periodic):
                evt.event = Periodic(old_event.period, None)
                self.add_event(evt, now)

    async def process_untimed(self, now: float, untimed_event: UntimedEvent, ctx: Any) -> None:
        """Fire every handler attached to ``untimed_event``."""
        events = self._untimed.pop(untimed_event, None)
        if events is None:
            return

        kept: list[EventData] = []
        for evt in events:
            new_event = await evt.action.act(ctx)
            if new_event is not None and new_event == evt.event:
                evt.event = new_event
                self.add_event(evt, now)
            else:
                kept.append(evt)
        self._untimed[untimed_event] = kept


@dataclass
class GlobalEvents:
    """Driver-wide events, with track events waiting for the next tick."""

    store: EventStore = field(default_factory=EventStore)
    time: float = 0.0
    awaiting_tick: dict[TrackEvent, list[int]] = field(default_factory=dict)

    def add_event(self, evt: EventData) -> None:
        """Register a global event relative to the current global time."""
        self.store.add_event(evt, self.time)

    async def fire_core_event(self, evt: CoreEvent, ctx: Any) -> None:
        """Fire all global handlers for a core event."""
        await self.store.process_untimed(self.time, evt, ctx)

    def fire_track_event(self, evt: TrackEvent, index: int) -> None:
        """Queue a track event for the track at ``index`` until the next tick."""
        self.awaiting_tick.setdefault(evt, []).append(index)
        _log.debug("Queued %s for track %d", evt, index)

    def remove_handlers(self) -> None:
        """Drop every global handler."""
        self.store = EventStore()