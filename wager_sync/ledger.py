# wager_sync/ledger.py
"""
Balance and wager history for one account.

The ledger owns the rule that balance and stats stay consistent with the
wager list: every mutation swaps in a new frozen User built under the lock, so
precondition checks and the update are atomic with respect to readers.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Optional, Tuple

from .catalog import EventCatalog
from .errors import (
    EventClosedError,
    InsufficientBalanceError,
    InvalidAmountError,
)
from .models import (
    LOSS,
    ORIGIN_LOCAL,
    PENDING,
    WIN,
    Stats,
    User,
    Wager,
    utc_now,
)

logger = logging.getLogger(__name__)


def _money(v: float) -> float:
    return round(v, 2)


def _is_whole_cents(amount: float) -> bool:
    return _money(amount) == amount


def _bump(stats: Stats, result: str) -> Stats:
    if result == WIN:
        return replace(stats, wins=stats.wins + 1)
    if result == LOSS:
        return replace(stats, losses=stats.losses + 1)
    return replace(stats, pending=stats.pending + 1)


class Ledger:
    """Mutable holder of a User aggregate, checked against an EventCatalog."""

    def __init__(self, user: User, catalog: EventCatalog) -> None:
        self._lock = threading.RLock()
        self._user = user
        self.catalog = catalog

    @property
    def user(self) -> User:
        return self._user

    @property
    def balance(self) -> float:
        return self._user.balance

    def place_wager(
        self,
        event_id: str,
        pick: str,
        amount: float,
        origin: str = ORIGIN_LOCAL,
        placed_at: Optional[datetime] = None,
    ) -> Wager:
        """
        Validate and record a new pending wager.

        Checks run in order and the first failure wins:
          1. event exists                    -> NotFoundError
          2. event is not final              -> EventClosedError
          3. amount > 0, in whole cents      -> InvalidAmountError
          4. amount <= balance               -> InsufficientBalanceError
        """
        with self._lock:
            event = self.catalog.get(event_id)
            if not event.is_open:
                raise EventClosedError("Cannot bet on completed games")
            if not amount > 0:
                raise InvalidAmountError("Amount must be greater than zero")
            if not _is_whole_cents(amount):
                raise InvalidAmountError("Amount must be in whole cents")
            user = self._user
            if amount > user.balance:
                raise InsufficientBalanceError("Insufficient balance")

            wager = Wager(
                event_id=event_id,
                pick=pick,
                amount=float(amount),
                placed_at=placed_at or utc_now(),
                result=PENDING,
                origin=origin,
            )
            self._user = replace(
                user,
                balance=_money(user.balance - amount),
                predictions=user.predictions + (wager,),
                stats=_bump(user.stats, PENDING),
            )
            logger.debug("wager %s/%s %.2f accepted (%s)", event_id, pick, amount, origin)
            return wager

    def accept_remote(self, wager: Wager, new_balance: float) -> User:
        """
        Record a wager the authority already accepted.

        The authority's balance is adopted as-is; it is not re-derived here.
        """
        with self._lock:
            user = self._user
            self._user = replace(
                user,
                balance=float(new_balance),
                predictions=user.predictions + (wager,),
                stats=_bump(user.stats, wager.result),
            )
            return self._user

    def credit(self, amount: float) -> User:
        """Adjust the balance by amount (negative to debit)."""
        if not _is_whole_cents(amount):
            raise InvalidAmountError("Amount must be in whole cents")
        with self._lock:
            user = self._user
            new_balance = _money(user.balance + amount)
            if new_balance < 0:
                raise InsufficientBalanceError("Insufficient balance")
            self._user = replace(user, balance=new_balance)
            return self._user

    def replace_user(self, user: User) -> None:
        with self._lock:
            self._user = user

    def local_wagers(self) -> Tuple[Wager, ...]:
        """Wagers accepted while the authority was unreachable."""
        return tuple(w for w in self._user.predictions if w.origin == ORIGIN_LOCAL)
