"""Event kinds, handlers and the records that bind them together.

Times are measured in seconds, as floats.
"""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass, field
from typing import Any, Optional, Union


class TrackEvent(enum.Enum):
    """Changes of a track's state, such as finishing, looping or pausing."""

    PLAY = "play"
    PAUSE = "pause"
    END = "end"
    LOOP = "loop"


class CoreEvent(enum.Enum):
    """Events raised by the voice core on receipt of packets and telemetry."""

    SPEAKING_STATE_UPDATE = "speaking_state_update"
    SPEAKING_UPDATE = "speaking_update"
    VOICE_PACKET = "voice_packet"
    RTCP_PACKET = "rtcp_packet"
    CLIENT_CONNECT = "client_connect"
    CLIENT_DISCONNECT = "client_disconnect"
    DRIVER_CONNECT = "driver_connect"
    DRIVER_RECONNECT = "driver_reconnect"
    DRIVER_CONNECT_FAILED = "driver_connect_failed"
    DRIVER_RECONNECT_FAILED = "driver_reconnect_failed"
    DRIVER_DISCONNECT = "driver_disconnect"
    SSRC_KNOWN = "ssrc_known"


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
UntimedEvent = Union[TrackEvent, CoreEvent]


class EventHandler(abc.ABC):
    """Responds to fired events; may be shared between several events."""

    @abc.abstractmethod
    async def act(self, ctx: Any) -> Optional[Event]:
        """Handle one event; return a new event kind to listen for, or None to keep the current one."""


def is_global_only(event: Event) -> bool:
    """Return whether the event may only be registered on the global context."""
    return isinstance(event, CoreEvent)


def untimed_event(event: Event) -> UntimedEvent:
    """Return the untimed key under which a track or core event is stored."""
    if isinstance(event, (TrackEvent, CoreEvent)):
        return event
    raise ValueError(f"{event!r} is not an untimed event")


@dataclass
class EventData:
    """An event kind paired with the handler that responds to it."""

    event: Event
    action: EventHandler = field(repr=False)
    fire_time: Optional[float] = None

    def compute_activation(self, now: float) -> None:
        """Set the next firing time of a timer event relative to ``now``."""
        if isinstance(self.event, Periodic):
            offset = self.event.period if self.event.phase is None else self.event.phase
            self.fire_time = now + offset
        elif isinstance(self.event, Delayed):
            self.fire_time = now + self.event.delay