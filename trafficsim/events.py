"""Event scheduling kernel for the ON/OFF traffic simulator.

Every state change of a traffic source is an :class:`Event`.  Events are
kept in a binary heap by :class:`EventQueue` and handed to the simulator in
chronological order, while :class:`SimulationClock` tracks the current
simulation time and only ever moves forward.

Example usage::

    from trafficsim.events import Event, EventQueue, SourceState

    queue = EventQueue()
    queue.add_event(Event(2.0, 0, SourceState.ON))
    queue.add_event(Event(1.0, 1, SourceState.ON))
    queue.next_event().time   # -> 1.0
"""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple


class SourceState(Enum):
    """State of an ON/OFF source, also used as the kind of an event."""

    ON = "ON"
    OFF = "OFF"


@dataclass(frozen=True)
class Event:
    """Transition of one traffic source at a given simulation time.

    Parameters
    ----------
    time : float
        Simulation time (seconds) at which the transition happens.
    source_id : int
        Index of the source in the simulator's source list.
    kind : SourceState
        State the source enters when the event is processed.
    """

    time: float
    source_id: int
    kind: SourceState

    def __str__(self) -> str:
        return f"[t={self.time:.3f}] Source {self.source_id} -> {self.kind.value}"


class EventQueue:
    """Chronological scheduler backed by :mod:`heapq`.

    Heap entries are ``(time, sequence, event)`` triples.  The sequence
    number grows with every insertion, so events sharing a timestamp come
    back in the order they were scheduled.
    """

    def __init__(self) -> None:
        self._heap: List[Tuple[float, int, Event]] = []
        self._counter = itertools.count()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def add_event(self, event: Event) -> None:
        """Schedule *event*; raises ``TypeError`` for ``None``."""
        if event is None:
            raise TypeError("Cannot schedule None as an event")
        heapq.heappush(self._heap, (event.time, next(self._counter), event))

    def next_event(self) -> Optional[Event]:
        """Remove and return the earliest event, or ``None`` when empty."""
        if not self._heap:
            return None
        return heapq.heappop(self._heap)[2]

    def peek_next_event(self) -> Optional[Event]:
        """Return the earliest event without removing it."""
        if not self._heap:
            return None
        return self._heap[0][2]

    def is_empty(self) -> bool:
        return not self._heap

    def size(self) -> int:
        return len(self._heap)

    def clear(self) -> None:
        """Drop all pending events.  Safe to call repeatedly."""
        self._heap.clear()

    def __len__(self) -> int:
        return len(self._heap)

    def __repr__(self) -> str:
        return f"EventQueue(size={len(self._heap)})"


class SimulationClock:
    """Monotonic simulation time reference.

    :meth:`advance_to` ignores requests to move backwards instead of raising,
    so late or duplicate timestamps never rewind the simulation.
    """

    def __init__(self) -> None:
        self.time: float = 0.0

    def get_time(self) -> float:
        return self.time

    def advance_to(self, new_time: float) -> None:
        if new_time >= self.time:
            self.time = new_time

    def reset(self) -> None:
        self.time = 0.0

    def __repr__(self) -> str:
        return f"SimulationClock({self.time:.3f})"
