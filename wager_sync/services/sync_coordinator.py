# wager_sync/services/sync_coordinator.py
"""
Client-side reconciliation between the authority and the local replica.

Protocols:
  - load: cold start from the replica (or the bundled seed); never touches the network
  - refresh_events: pull the catalog; replace it wholesale on success, keep it on failure
  - refresh_user: pull the ledger; replace it wholesale on success, keep it on failure
  - place_wager: submit remotely; on any transport failure apply the wager to the
    local ledger instead, tagged origin=local

Locally-accepted wagers are not replayed against the authority once it comes
back; Ledger.local_wagers() lists them.

Every operation runs under one session lock, so a refresh and a wager never
interleave their reads and writes.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Protocol, Sequence

from ..authority_client import WagerReceipt
from ..catalog import EventCatalog
from ..errors import StorageError, TransportError
from ..ledger import Ledger
from ..models import ORIGIN_LOCAL, Event, ReplicaSnapshot, User, Wager
from ..replica import ReplicaStore, bundled_seed

logger = logging.getLogger(__name__)


class AuthorityClient(Protocol):
    def fetch_events(self) -> Sequence[Event]: ...

    def submit_wager(self, event_id: str, pick: str, amount: float, user_id: str) -> WagerReceipt: ...

    def fetch_user(self, user_id: str) -> User: ...


class SyncCoordinator:
    """Owns one session's catalog + ledger and keeps the replica in step with them."""

    def __init__(self, client: AuthorityClient, replica: ReplicaStore) -> None:
        self.client = client
        self.replica = replica
        self.catalog = EventCatalog()
        self.ledger: Optional[Ledger] = None
        self._lock = threading.RLock()

    # -------------------------
    # State access
    # -------------------------

    def _require_loaded(self) -> Ledger:
        if self.ledger is None:
            raise RuntimeError("SyncCoordinator.load() must be called first")
        return self.ledger

    @property
    def user(self) -> User:
        return self._require_loaded().user

    @property
    def events(self) -> Sequence[Event]:
        return self.catalog.list()

    def snapshot(self) -> ReplicaSnapshot:
        return ReplicaSnapshot(events=self.catalog.list(), user=self.user)

    def _persist(self) -> None:
        """Best-effort write; a failed write does not undo the in-memory change."""
        try:
            self.replica.write(self.snapshot())
        except StorageError:
            logger.exception("Error saving data")

    # -------------------------
    # Protocols
    # -------------------------

    def load(self) -> ReplicaSnapshot:
        """
        Cold start.

        Uses the stored snapshot when there is one. Otherwise (nothing stored,
        or the stored blob cannot be read) adopts the bundled seed and writes it.
        """
        with self._lock:
            try:
                snapshot = self.replica.read()
            except StorageError:
                logger.exception("Error loading data; falling back to seed")
                snapshot = None

            seeded = snapshot is None
            if seeded:
                snapshot = bundled_seed()

            self.catalog.replace_all(snapshot.events)
            self.ledger = Ledger(snapshot.user, self.catalog)
            if seeded:
                self._persist()
            return snapshot

    def refresh_events(self) -> bool:
        """
        Replace the catalog with the authority's list.

        Returns True if the authority answered. On failure the catalog is left
        exactly as it was and nothing is raised.
        """
        with self._lock:
            self._require_loaded()
            try:
                events = self.client.fetch_events()
            except TransportError as e:
                logger.info("API not available, using local data: %s", e)
                return False

            self.catalog.replace_all(events)
            self._persist()
            return True

    def refresh_user(self) -> bool:
        """Adopt the authority's ledger (which carries settled results) when reachable."""
        with self._lock:
            ledger = self._require_loaded()
            try:
                user = self.client.fetch_user(ledger.user.id)
            except TransportError as e:
                logger.info("API not available, keeping local profile: %s", e)
                return False

            ledger.replace_user(user)
            self._persist()
            return True

    def place_wager(self, event_id: str, pick: str, amount: float) -> Wager:
        """
        Place a wager through the authority, falling back to the local ledger.

        Raises only when the local fallback rejects the wager too
        (NotFoundError or a BusinessRuleError).
        """
        with self._lock:
            ledger = self._require_loaded()
            try:
                receipt = self.client.submit_wager(event_id, pick, amount, ledger.user.id)
            except TransportError as e:
                logger.info("API not available, using local prediction: %s", e)
                wager = ledger.place_wager(event_id, pick, amount, origin=ORIGIN_LOCAL)
            else:
                ledger.accept_remote(receipt.wager, receipt.new_balance)
                wager = receipt.wager

            self._persist()
            return wager

    def credit(self, amount: float) -> User:
        """Local balance adjustment, persisted immediately."""
        with self._lock:
            user = self._require_loaded().credit(amount)
            self._persist()
            return user
