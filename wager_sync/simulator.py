# wager_sync/simulator.py
"""
Timer-driven score simulator for the authority.

This is a demo feed, not a real one. Each tick, every inProgress event is
independently advanced with probability `update_probability`:
  - home and away scores each grow by a uniform draw in 0..max_score_delta
  - the clock is redrawn as M:SS (minutes 0..11, seconds 0..59)

Advancement is memoryless: the clock does not count down and scores have no
drift model. Scheduled and final events are never touched, and no status
transitions happen here.
"""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

from .catalog import EventCatalog
from .models import IN_PROGRESS, Event

logger = logging.getLogger(__name__)

CLOCK_MAX_MINUTES = 11


def random_clock(rng: random.Random) -> str:
    """Draw a M:SS clock string with zero-padded seconds."""
    return f"{rng.randint(0, CLOCK_MAX_MINUTES)}:{rng.randint(0, 59):02d}"


def advance_event(event: Event, rng: random.Random, max_score_delta: int = 2) -> Event:
    """Return a copy of an inProgress event with bumped scores and a new clock."""
    home = event.home_team
    away = event.away_team
    return replace(
        event,
        home_team=replace(home, score=(home.score or 0) + rng.randint(0, max_score_delta)),
        away_team=replace(away, score=(away.score or 0) + rng.randint(0, max_score_delta)),
        clock=random_clock(rng),
    )


class EventSimulator:
    """
    Advances inProgress events in an EventCatalog on a fixed interval.

    Each tick is published as one catalog version, then `on_tick` is called with
    the new events; the tick only counts as complete once on_tick returns.
    """

    def __init__(
        self,
        catalog: EventCatalog,
        interval_seconds: float = 30.0,
        update_probability: float = 0.3,
        max_score_delta: int = 2,
        on_tick: Optional[Callable[[Tuple[Event, ...]], None]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.catalog = catalog
        self.interval_seconds = interval_seconds
        self.update_probability = update_probability
        self.max_score_delta = max_score_delta
        self.on_tick = on_tick
        self.rng = rng or random.Random()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def tick(self) -> List[str]:
        """Run one simulation step. Returns ids of the events that changed."""
        changed: List[str] = []

        def step(event: Event) -> Event:
            if event.status != IN_PROGRESS:
                return event
            if self.rng.random() >= self.update_probability:
                return event
            changed.append(event.id)
            return advance_event(event, self.rng, self.max_score_delta)

        events = self.catalog.update(step)
        if changed:
            logger.info("simulator advanced %d event(s): %s", len(changed), ", ".join(changed))
            if self.on_tick is not None:
                self.on_tick(events)
        return changed

    # -------------------------
    # Background runner
    # -------------------------

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start ticking in a daemon thread."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="event-simulator", daemon=True)
        self._thread.start()
        logger.info("simulator started (every %.0fs, p=%.2f)", self.interval_seconds, self.update_probability)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            try:
                self.tick()
            except Exception:
                logger.exception("simulator tick failed")
