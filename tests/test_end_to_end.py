"""Client, coordinator and authority wired together through Flask's test client."""

import pytest
import requests

from app import create_app
from conftest import make_user
from wager_sync.authority_client import RemoteAuthorityClient
from wager_sync.config import AppConfig
from wager_sync.errors import EventClosedError, InsufficientBalanceError
from wager_sync.models import ORIGIN_LOCAL, ORIGIN_REMOTE, ReplicaSnapshot
from wager_sync.replica import MemoryBlobStore, ReplicaStore
from wager_sync.services.authority_service import AuthorityService
from wager_sync.services.sync_coordinator import SyncCoordinator

BASE = "http://authority.test/api"


class _Adapter:
    def __init__(self, flask_response):
        self.status_code = flask_response.status_code
        self._body = flask_response.get_json(silent=True)

    def json(self):
        if self._body is None:
            raise ValueError("no JSON body")
        return self._body


@pytest.fixture
def authority(events):
    store = ReplicaStore(MemoryBlobStore(), key="sample-games")
    store.write(ReplicaSnapshot(events=tuple(events), user=make_user(100.0)))
    service = AuthorityService(store=store)
    service.load()
    return service


@pytest.fixture
def wire(monkeypatch, authority):
    """Route requests.request into the Flask app; flip `wire['up']` to simulate an outage."""
    test_client = create_app(AppConfig(), service=authority, start_simulator=False).test_client()
    state = {"up": True}

    def _fake_request(method, url, json=None, timeout=None, headers=None):
        if not state["up"]:
            raise requests.ConnectionError("authority down")
        path = url[len(BASE):]
        return _Adapter(test_client.open("/api" + path, method=method, json=json))

    monkeypatch.setattr("wager_sync.authority_client.requests.request", _fake_request)
    return state


@pytest.fixture
def session(wire, snapshot):
    replica = ReplicaStore(MemoryBlobStore())
    replica.write(snapshot)
    coordinator = SyncCoordinator(client=RemoteAuthorityClient(BASE), replica=replica)
    coordinator.load()
    return coordinator


def test_remote_wager_matches_authority(session, authority) -> None:
    wager = session.place_wager("E1", "HOME", 40)

    assert wager.origin == ORIGIN_REMOTE
    assert session.user.balance == 60.0
    assert authority.user.balance == 60.0
    assert session.user.stats.pending == 1


def test_outage_falls_back_then_refresh_recovers(session, wire, authority) -> None:
    wire["up"] = False
    wager = session.place_wager("E2", "AWAY", 25)
    assert wager.origin == ORIGIN_LOCAL
    assert session.user.balance == 75.0
    assert authority.user.balance == 100.0  # never replayed

    assert session.refresh_events() is False

    wire["up"] = True
    assert session.refresh_events() is True
    assert [e.id for e in session.events] == [e.id for e in authority.list_events()]


def test_closed_event_rejected_on_both_paths(session, wire) -> None:
    with pytest.raises(EventClosedError):
        session.place_wager("E3", "HOME", 10)
    wire["up"] = False
    with pytest.raises(EventClosedError):
        session.place_wager("E3", "HOME", 10)
    assert session.user.balance == 100.0


def test_over_balance_rejected_on_both_paths(session) -> None:
    with pytest.raises(InsufficientBalanceError):
        session.place_wager("E1", "HOME", 150)
    assert session.user.balance == 100.0


def test_refresh_user_pulls_authority_ledger(session, authority) -> None:
    authority.ledger.credit(50)
    assert session.refresh_user() is True
    assert session.user.balance == 150.0
