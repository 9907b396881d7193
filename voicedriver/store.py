"""Storage and dispatch of event handlers for tracks and the global context."""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from .events import (
    CoreEvent,
    Delayed,
    EventData,
    Periodic,
    TrackEvent,
    UntimedEvent,
    is_global_only,
)


class EventStore:
    """Holds timed handlers in a heap by firing time and untimed handlers by event kind."""

    def __init__(self, local_only: bool = False) -> None:
        self.local_only = local_only
        self._timed: List[Tuple[float, int, EventData]] = []
        self._untimed: Dict[UntimedEvent, List[EventData]] = {}
        self._counter = itertools.count()

    @classmethod
    def new_local(cls) -> EventStore:
        """Create a store for a single track, which ignores global-only events."""
        return cls(local_only=True)

    def __len__(self) -> int:
        return len(self._timed) + sum(len(evts) for evts in self._untimed.values())

    def add_event(self, evt: EventData, now: float) -> None:
        """Add a handler, computing its activation time from ``now``."""
        evt.compute_activation(now)

        if self.local_only and is_global_only(evt.event):
            return

        if isinstance(evt.event, (TrackEvent, CoreEvent)):
            self._untimed.setdefault(evt.event, []).append(evt)
        elif isinstance(evt.event, (Delayed, Periodic)):
            heapq.heappush(self._timed, (evt.fire_time, next(self._counter), evt))
        # Anything else is a cancellation: the handler is dropped.

    async def process_timed(self, now: float, ctx: Any) -> None:
        """Run every timed handler due at or before ``now``."""
        while self._timed and self._timed[0][0] <= now:
            _, _, evt = heapq.heappop(self._timed)
            old_event = evt.event
            new_event = await evt.action.act(ctx)
            if new_event is not None:
                evt.event = new_event
                self.add_event(evt, now)
            elif isinstance(old_event, Periodic):
                evt.event = Periodic(old_event.period, None)
                self.add_event(evt, now)

    def timed_event_ready(self, now: float) -> bool:
        """Return whether any timed handler is due at or before ``now``."""
        return bool(self._timed) and self._timed[0][0] <= now

    async def process_untimed(self, now: float, untimed_event: UntimedEvent, ctx: Any) -> None:
        """Run every handler registered for ``untimed_event``.

        A handler that answers with the very event it listens for is removed;
        any other answer leaves it in place.
        """
        events = self._untimed.pop(untimed_event, None)
        if events is None:
            return
        kept = []
        for evt in events:
            new_event = await evt.action.act(ctx)
            if new_event is not None and new_event == evt.event:
                continue
            kept.append(evt)
        self._untimed[untimed_event] = kept


@dataclass
class GlobalEvents:
    """The global event store, its clock, and track events waiting for the next tick."""

    store: EventStore = field(default_factory=EventStore)
    time: float = 0.0
    awaiting_tick: Dict[TrackEvent, List[int]] = field(default_factory=dict)

    def add_event(self, evt: EventData) -> None:
        """Register a global handler at the current time."""
        self.store.add_event(evt, self.time)

    async def fire_core_event(self, evt: CoreEvent, ctx: Any) -> None:
        """Run the global handlers for a core event."""
        await self.store.process_untimed(self.time, evt, ctx)

    def fire_track_event(self, evt: TrackEvent, index: int) -> None:
        """Queue a track event for the track at ``index`` until the next tick."""
        self.awaiting_tick.setdefault(evt, []).append(index)

    def remove_handlers(self) -> None:
        """Drop every global handler."""
        self.store = EventStore()