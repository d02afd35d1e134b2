# wager_sync/services/authority_service.py
"""
Authority-side state.

Responsibilities:
  - load the durable {games, user} document (seeding it on first run)
  - serve event and user reads
  - validate and apply wager submissions
  - persist after every accepted wager and every simulator tick
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from ..catalog import EventCatalog
from ..errors import NotFoundError, StorageError, ValidationError
from ..ledger import Ledger
from ..models import ORIGIN_REMOTE, Event, ReplicaSnapshot, User, Wager
from ..replica import ReplicaStore, bundled_seed

logger = logging.getLogger(__name__)

REQUIRED_WAGER_FIELDS = ("gameId", "pick", "amount", "userId")


def parse_amount(raw: Any) -> float:
    """Accept a JSON number or a numeric string."""
    if isinstance(raw, bool):
        raise ValidationError("amount must be a number")
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise ValidationError("amount must be a number") from None


@dataclass
class AuthorityService:
    """Canonical catalog + ledger, guarded by one lock."""

    store: ReplicaStore
    catalog: EventCatalog = field(default_factory=EventCatalog)
    ledger: Optional[Ledger] = None
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def load(self) -> ReplicaSnapshot:
        """
        Adopt the durable document, or the bundled seed if there is none yet.

        An unreadable document is left on disk untouched and the seed is served
        from memory until the next accepted write.
        """
        with self._lock:
            write_seed = False
            try:
                snapshot = self.store.read()
            except StorageError:
                logger.exception("Error loading game data; serving bundled seed")
                snapshot = None
            else:
                write_seed = snapshot is None

            if snapshot is None:
                snapshot = bundled_seed()
            self.catalog.replace_all(snapshot.events)
            self.ledger = Ledger(snapshot.user, self.catalog)
            if write_seed:
                logger.info("no stored game data; seeding %d events", len(snapshot.events))
                self.persist()
            return snapshot

    @property
    def user(self) -> User:
        if self.ledger is None:
            raise StorageError("authority state not loaded")
        return self.ledger.user

    def snapshot(self) -> ReplicaSnapshot:
        return ReplicaSnapshot(events=self.catalog.list(), user=self.user)

    def persist(self) -> None:
        """Write the current state; failures are logged and the in-memory state is kept."""
        with self._lock:
            try:
                self.store.write(self.snapshot())
            except StorageError:
                logger.exception("failed to persist authority state")

    def on_simulator_tick(self, events: Tuple[Event, ...]) -> None:
        self.persist()

    def list_events(self) -> Tuple[Event, ...]:
        return self.catalog.list()

    def get_event(self, event_id: str) -> Event:
        return self.catalog.get(event_id)

    def get_user(self, user_id: str) -> User:
        user = self.user
        if user_id != user.id:
            raise NotFoundError("User not found")
        return user

    def submit_wager(self, body: Dict[str, Any]) -> Tuple[Wager, float]:
        """
        Validate a {gameId, pick, amount, userId} request and apply it.

        Returns the stored wager and the new balance.
        """
        if not isinstance(body, dict) or any(not body.get(k) for k in REQUIRED_WAGER_FIELDS):
            raise ValidationError("Missing required fields: " + ", ".join(REQUIRED_WAGER_FIELDS))

        amount = parse_amount(body["amount"])
        event_id = str(body["gameId"])
        pick = str(body["pick"])

        with self._lock:
            self.get_user(str(body["userId"]))
            wager = self.ledger.place_wager(event_id, pick, amount, origin=ORIGIN_REMOTE)
            new_balance = self.ledger.balance
            logger.info("prediction accepted: game=%s pick=%s amount=%.2f balance=%.2f",
                        event_id, pick, amount, new_balance)
            self.persist()
            return wager, new_balance
