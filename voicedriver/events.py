"""Event kinds, handlers, and the stored pairing of the two."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union


class CoreEvent(Enum):
    """Voice core events, fired on receipt of voice packets and telemetry.

    Core events may only be registered globally.
    """

    SPEAKING_STATE_UPDATE = "speaking_state_update"
    """Another user's speaking state, sent at least once to allow SSRC/user matching."""
    SPEAKING_UPDATE = "speaking_update"
    """A source started speaking, or stopped (5 consecutive silent frames)."""
    VOICE_PACKET = "voice_packet"
    """A voice packet arrived from another stream in the call."""
    RTCP_PACKET = "rtcp_packet"
    """An RTCP telemetry packet arrived."""
    CLIENT_DISCONNECT = "client_disconnect"
    """A user left the same stream as the bot."""
    DRIVER_CONNECT = "driver_connect"
    """The driver connected to a voice channel."""
    DRIVER_RECONNECT = "driver_reconnect"
    """The driver reconnected after a network error."""
    DRIVER_DISCONNECT = "driver_disconnect"
    """The driver failed to connect to, or dropped from, a voice channel."""


class TrackEvent(Enum):
    """Changes of a track's state, such as finishing, looping or pausing."""

    PLAY = "play"
    """The track resumed playing (not fired when a track first starts)."""
    PAUSE = "pause"
    """The track was paused."""
    END = "end"
    """The track ended."""
    LOOP = "loop"
    """The track looped."""


@dataclass(frozen=True)
class Periodic:
    """Fires every ``period`` seconds, first after ``phase`` (or one period)."""

    period: float
    phase: Optional[float] = None


@dataclass(frozen=True)
class Delayed:
    """Fires once, ``delay`` seconds after being registered."""

    delay: float


@dataclass(frozen=True)
class Cancel:
    """Returned by a handler to remove itself."""


Event = Union[Periodic, Delayed, TrackEvent, CoreEvent, Cancel]
"""Any condition a handler may listen for."""

UntimedEvent = Union[TrackEvent, CoreEvent]
"""Events that fire on a state change rather than a timer."""


def is_global_only(event: Event) -> bool:
    """Whether an event may only be attached to the global context."""
    return isinstance(event, CoreEvent)


class EventHandler(abc.ABC):
    """Responds to fired events; may be shared between several event sources."""

    @abc.abstractmethod
    async def act(self, ctx: Any) -> Optional[Event]:
        """Respond to one event.

        Returning ``None`` keeps the current event (removing one-off timers),
        while returning an event replaces the trigger condition.
        """


@dataclass(eq=False)
class EventData:
    """An event paired with the handler that responds to it."""

    event: Event
    action: EventHandler
    fire_time: Optional[float] = None

    def compute_activation(self, now: float) -> None:
        """Compute the next firing time, in seconds, for a timer event."""
        if isinstance(self.event, Periodic):
            offset = self.event.period if self.event.phase is None else self.event.phase
            self.fire_time = now + offset
        elif isinstance(self.event, Delayed):
            self.fire_time = now + self.event.delay

    def __repr__(self) -> str:
        return f"EventData(event={self.event!r}, fire_time={self.fire_time!r}, action=<fn>)"