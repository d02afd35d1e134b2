# wager_sync/catalog.py
"""
In-memory event catalog.

Contents are held as an immutable tuple that is swapped under a lock, so a
reader always sees one whole catalog version, never a partially applied update.
"""

from __future__ import annotations

import threading
from typing import Callable, Iterable, Tuple

from .errors import NotFoundError
from .models import Event


class EventCatalog:
    """Ordered collection of events keyed by id."""

    def __init__(self, events: Iterable[Event] = ()) -> None:
        self._lock = threading.Lock()
        self._events: Tuple[Event, ...] = tuple(events)

    def list(self) -> Tuple[Event, ...]:
        """All events in load order. Filtering is left to callers."""
        return self._events

    def get(self, event_id: str) -> Event:
        for e in self._events:
            if e.id == event_id:
                return e
        raise NotFoundError("Game not found")

    def by_status(self, status: str) -> Tuple[Event, ...]:
        return tuple(e for e in self._events if e.status == status)

    def replace_all(self, events: Iterable[Event]) -> None:
        """Swap the whole catalog (last writer wins)."""
        new = tuple(events)
        with self._lock:
            self._events = new

    def update(self, fn: Callable[[Event], Event]) -> Tuple[Event, ...]:
        """
        Apply fn to every event and publish the result as one new version.

        Returns the published tuple.
        """
        with self._lock:
            self._events = tuple(fn(e) for e in self._events)
            return self._events

    def __len__(self) -> int:
        return len(self._events)
