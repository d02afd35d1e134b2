import random
import re
import threading

from conftest import make_event
from wager_sync.catalog import EventCatalog
from wager_sync.models import FINAL, IN_PROGRESS, SCHEDULED
from wager_sync.simulator import EventSimulator, advance_event, random_clock

CLOCK_RE = re.compile(r"^([0-9]|1[01]):[0-5][0-9]$")


def _catalog():
    return EventCatalog(
        [
            make_event("S1", SCHEDULED),
            make_event("P1", IN_PROGRESS, 50, 48),
            make_event("F1", FINAL),
            make_event("P2", IN_PROGRESS, 3, 1),
        ]
    )


def test_random_clock_format() -> None:
    rng = random.Random(7)
    for _ in range(500):
        assert CLOCK_RE.match(random_clock(rng))


def test_advance_event_bounds() -> None:
    rng = random.Random(3)
    e = make_event("P1", IN_PROGRESS, 50, 48)
    for _ in range(200):
        nxt = advance_event(e, rng, max_score_delta=2)
        assert 0 <= nxt.home_team.score - 50 <= 2
        assert 0 <= nxt.away_team.score - 48 <= 2
        assert CLOCK_RE.match(nxt.clock)
        assert nxt.status == IN_PROGRESS


def test_tick_only_touches_in_progress_events() -> None:
    catalog = _catalog()
    before = {e.id: e for e in catalog.list()}
    sim = EventSimulator(catalog, update_probability=1.0, rng=random.Random(1))

    for _ in range(20):
        changed = sim.tick()
        assert set(changed) == {"P1", "P2"}

    after = {e.id: e for e in catalog.list()}
    assert after["S1"] == before["S1"]
    assert after["F1"] == before["F1"]
    assert after["P1"].home_team.score >= 50


def test_tick_with_zero_probability_changes_nothing() -> None:
    catalog = _catalog()
    before = catalog.list()
    sim = EventSimulator(catalog, update_probability=0.0, rng=random.Random(1))
    assert sim.tick() == []
    assert catalog.list() == before


def test_tick_preserves_order_and_calls_on_tick() -> None:
    catalog = _catalog()
    seen = []
    sim = EventSimulator(catalog, update_probability=1.0, on_tick=seen.append, rng=random.Random(2))
    sim.tick()

    assert [e.id for e in catalog.list()] == ["S1", "P1", "F1", "P2"]
    assert seen == [catalog.list()]


def test_on_tick_not_called_when_nothing_changed() -> None:
    seen = []
    sim = EventSimulator(_catalog(), update_probability=0.0, on_tick=seen.append)
    sim.tick()
    assert seen == []


def test_background_runner_ticks_and_stops() -> None:
    catalog = _catalog()
    ticked = threading.Event()
    sim = EventSimulator(
        catalog,
        interval_seconds=0.01,
        update_probability=1.0,
        on_tick=lambda events: ticked.set(),
    )
    sim.start()
    try:
        assert ticked.wait(2.0)
        assert sim.running
    finally:
        sim.stop(timeout=2.0)
    assert not sim.running
