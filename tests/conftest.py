from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

import pytest

from wager_sync.authority_client import WagerReceipt
from wager_sync.errors import TransportError, Unreachable
from wager_sync.models import (
    FINAL,
    IN_PROGRESS,
    SCHEDULED,
    Event,
    ReplicaSnapshot,
    Stats,
    Team,
    User,
    Wager,
)
from wager_sync.replica import MemoryBlobStore, ReplicaStore


def make_event(event_id: str, status: str = SCHEDULED, home_score: int = 10, away_score: int = 7) -> Event:
    scored = status != SCHEDULED
    return Event(
        id=event_id,
        home_team=Team("Home Team", "HOME", "10-5", home_score if scored else None),
        away_team=Team("Away Team", "AWAY", "8-7", away_score if scored else None),
        status=status,
        period="Q3" if status == IN_PROGRESS else None,
        clock="5:00" if status == IN_PROGRESS else None,
        winner="HOME" if status == FINAL else None,
    )


def make_user(balance: float = 100.0) -> User:
    return User(id="user123", username="tester", balance=balance, predictions=(), stats=Stats())


@pytest.fixture
def events() -> List[Event]:
    return [
        make_event("E1", SCHEDULED),
        make_event("E2", IN_PROGRESS),
        make_event("E3", FINAL),
    ]


@pytest.fixture
def snapshot(events) -> ReplicaSnapshot:
    return ReplicaSnapshot(events=tuple(events), user=make_user())


@pytest.fixture
def replica(snapshot) -> ReplicaStore:
    store = ReplicaStore(MemoryBlobStore())
    store.write(snapshot)
    return store


class FakeClient:
    """Stands in for RemoteAuthorityClient; raises `error` from every call when set."""

    def __init__(self, events: Optional[List[Event]] = None, error: Optional[TransportError] = None) -> None:
        self.events = events or []
        self.error = error
        self.balance = 1000.0
        self.user: Optional[User] = None
        self.submitted: list = []

    def fetch_events(self):
        if self.error:
            raise self.error
        return list(self.events)

    def submit_wager(self, event_id, pick, amount, user_id):
        self.submitted.append((event_id, pick, amount, user_id))
        if self.error:
            raise self.error
        self.balance -= amount
        wager = Wager(
            event_id=event_id,
            pick=pick,
            amount=amount,
            placed_at=datetime(2024, 1, 15, tzinfo=timezone.utc),
        )
        return WagerReceipt(wager=wager, new_balance=self.balance)

    def fetch_user(self, user_id):
        if self.error:
            raise self.error
        return self.user


@pytest.fixture
def offline_client() -> FakeClient:
    return FakeClient(error=Unreachable("connection refused"))
