# wager_sync/models.py
"""
Domain models shared by the client replica and the authority.

All models are frozen; mutations produce new instances so a reader holding a
reference never observes a half-applied change. Wire names follow the JSON
document layout ({games, user}) used by both sides.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence, Tuple

from dateutil import parser as date_parser

from .errors import ValidationError

SCHEDULED = "scheduled"
IN_PROGRESS = "inProgress"
FINAL = "final"
EVENT_STATUSES = (SCHEDULED, IN_PROGRESS, FINAL)

PENDING = "pending"
WIN = "win"
LOSS = "loss"
WAGER_RESULTS = (PENDING, WIN, LOSS)

ORIGIN_REMOTE = "remote"
ORIGIN_LOCAL = "local"


@dataclass(frozen=True)
class Team:
    """One side of an event."""
    name: str
    abbreviation: str
    record: str = ""
    score: Optional[int] = None


@dataclass(frozen=True)
class BettingLine:
    favorite: str
    spread: float


@dataclass(frozen=True)
class Event:
    """A sporting event and its current status/score."""
    id: str
    home_team: Team
    away_team: Team
    status: str
    period: Optional[str] = None
    clock: Optional[str] = None
    odds: Optional[BettingLine] = None
    winner: Optional[str] = None
    start_time: Optional[str] = None
    sport: Optional[str] = None

    @property
    def is_open(self) -> bool:
        """True while wagers can still be accepted."""
        return self.status != FINAL


@dataclass(frozen=True)
class Wager:
    """A single prediction against an event outcome."""
    event_id: str
    pick: str
    amount: float
    placed_at: datetime
    result: str = PENDING
    payout: Optional[float] = None
    origin: str = ORIGIN_REMOTE


@dataclass(frozen=True)
class Stats:
    wins: int = 0
    losses: int = 0
    pending: int = 0

    @property
    def total(self) -> int:
        return self.wins + self.losses + self.pending


@dataclass(frozen=True)
class User:
    """Balance, wager history and denormalized stats for one account."""
    id: str
    username: str
    balance: float
    predictions: Tuple[Wager, ...] = ()
    stats: Stats = field(default_factory=Stats)


@dataclass(frozen=True)
class ReplicaSnapshot:
    """The {games, user} document persisted by both the replica and the authority."""
    events: Tuple[Event, ...]
    user: User


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def stats_for(wagers: Sequence[Wager]) -> Stats:
    """Partition a wager sequence by result."""
    return Stats(
        wins=sum(1 for w in wagers if w.result == WIN),
        losses=sum(1 for w in wagers if w.result == LOSS),
        pending=sum(1 for w in wagers if w.result == PENDING),
    )


# -------------------------
# Field coercion helpers
# -------------------------

def _require(obj: Dict[str, Any], key: str, what: str) -> Any:
    if not isinstance(obj, dict):
        raise ValidationError(f"{what} must be an object")
    val = obj.get(key)
    if val is None or val == "":
        raise ValidationError(f"{what} is missing '{key}'")
    return val


def _as_str(v: Any, what: str) -> str:
    if not isinstance(v, str):
        raise ValidationError(f"{what} must be a string")
    return v


def _as_number(v: Any, what: str) -> float:
    # bool is an int subclass; reject it explicitly
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise ValidationError(f"{what} must be a number")
    return float(v)


def _as_int(v: Any, what: str) -> int:
    if isinstance(v, bool) or not isinstance(v, int):
        raise ValidationError(f"{what} must be an integer")
    return v


def _opt_str(obj: Dict[str, Any], key: str) -> Optional[str]:
    v = obj.get(key)
    if v is None:
        return None
    return _as_str(v, key)


def parse_timestamp(v: Any) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if isinstance(v, datetime):
        dt = v
    else:
        try:
            dt = date_parser.isoparse(_as_str(v, "timestamp"))
        except (ValueError, OverflowError) as e:
            raise ValidationError(f"invalid timestamp: {v!r}") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


# -------------------------
# Decoding
# -------------------------

def team_from_dict(d: Dict[str, Any]) -> Team:
    score = d.get("score") if isinstance(d, dict) else None
    return Team(
        name=_as_str(_require(d, "name", "team"), "team.name"),
        abbreviation=_as_str(_require(d, "abbreviation", "team"), "team.abbreviation"),
        record=_as_str(d.get("record") or "", "team.record"),
        score=_as_int(score, "team.score") if score is not None else None,
    )


def event_from_dict(d: Dict[str, Any]) -> Event:
    """
    Decode an Event and check its status-dependent invariants:
      - scores defined iff status != scheduled
      - winner defined iff status == final
      - period/clock only while inProgress
    """
    event_id = _as_str(_require(d, "id", "event"), "event.id")
    status = _require(d, "status", f"event {event_id}")
    if status not in EVENT_STATUSES:
        raise ValidationError(f"event {event_id} has unknown status {status!r}")

    home = team_from_dict(_require(d, "homeTeam", f"event {event_id}"))
    away = team_from_dict(_require(d, "awayTeam", f"event {event_id}"))

    has_scores = home.score is not None and away.score is not None
    if status == SCHEDULED and (home.score is not None or away.score is not None):
        raise ValidationError(f"scheduled event {event_id} carries a score")
    if status != SCHEDULED and not has_scores:
        raise ValidationError(f"event {event_id} is {status} but has no score")

    winner = _opt_str(d, "winner")
    if (winner is not None) != (status == FINAL):
        raise ValidationError(f"event {event_id}: winner is only valid when final")

    period = d.get("period")
    clock = _opt_str(d, "clock")
    if status != IN_PROGRESS and (period is not None or clock is not None):
        raise ValidationError(f"event {event_id}: period/clock only valid while inProgress")

    odds = None
    raw_odds = d.get("odds")
    if isinstance(raw_odds, dict):
        odds = BettingLine(
            favorite=_as_str(_require(raw_odds, "favorite", "odds"), "odds.favorite"),
            spread=_as_number(raw_odds.get("spread", 0), "odds.spread"),
        )

    return Event(
        id=event_id,
        home_team=home,
        away_team=away,
        status=status,
        period=str(period) if period is not None else None,
        clock=clock,
        odds=odds,
        winner=winner,
        start_time=_opt_str(d, "startTime"),
        sport=_opt_str(d, "sport"),
    )


def wager_from_dict(d: Dict[str, Any]) -> Wager:
    event_id = _as_str(_require(d, "gameId", "prediction"), "prediction.gameId")
    result = d.get("result") or PENDING
    if result not in WAGER_RESULTS:
        raise ValidationError(f"unknown wager result {result!r}")
    payout = d.get("payout")
    ts = d.get("timestamp") or d.get("placedAt")
    return Wager(
        event_id=event_id,
        pick=_as_str(_require(d, "pick", "prediction"), "prediction.pick"),
        amount=_as_number(_require(d, "amount", "prediction"), "prediction.amount"),
        placed_at=parse_timestamp(ts) if ts else utc_now(),
        result=result,
        payout=_as_number(payout, "prediction.payout") if payout is not None else None,
        origin=d.get("origin") or ORIGIN_REMOTE,
    )


def user_from_dict(d: Dict[str, Any]) -> User:
    """
    Decode a Ledger document.

    Stored stats are ignored; they are always rebuilt from the wager list.
    """
    user_id = _as_str(_require(d, "id", "user"), "user.id")
    raw_preds = d.get("predictions")
    if raw_preds is None:
        raw_preds = []
    if not isinstance(raw_preds, list):
        raise ValidationError("user.predictions must be a list")

    wagers = tuple(wager_from_dict(p) for p in raw_preds)
    return User(
        id=user_id,
        username=_as_str(d.get("username") or "", "user.username"),
        balance=_as_number(d.get("balance", 0), "user.balance"),
        predictions=wagers,
        stats=stats_for(wagers),
    )


def snapshot_from_dict(d: Dict[str, Any]) -> ReplicaSnapshot:
    if not isinstance(d, dict):
        raise ValidationError("snapshot must be an object")
    games = d.get("games")
    if not isinstance(games, list):
        raise ValidationError("snapshot.games must be a list")
    return ReplicaSnapshot(
        events=tuple(event_from_dict(g) for g in games),
        user=user_from_dict(_require(d, "user", "snapshot")),
    )


# -------------------------
# Encoding
# -------------------------

def team_to_dict(t: Team) -> Dict[str, Any]:
    out: Dict[str, Any] = {"name": t.name, "abbreviation": t.abbreviation, "record": t.record}
    if t.score is not None:
        out["score"] = t.score
    return out


def event_to_dict(e: Event) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": e.id,
        "homeTeam": team_to_dict(e.home_team),
        "awayTeam": team_to_dict(e.away_team),
        "status": e.status,
    }
    for key, val in (
        ("period", e.period),
        ("clock", e.clock),
        ("winner", e.winner),
        ("startTime", e.start_time),
        ("sport", e.sport),
    ):
        if val is not None:
            out[key] = val
    if e.odds is not None:
        out["odds"] = {"favorite": e.odds.favorite, "spread": e.odds.spread}
    return out


def wager_to_dict(w: Wager, include_origin: bool = True) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "gameId": w.event_id,
        "pick": w.pick,
        "amount": w.amount,
        "result": w.result,
        "timestamp": w.placed_at.isoformat(),
    }
    if w.payout is not None:
        out["payout"] = w.payout
    if include_origin:
        out["origin"] = w.origin
    return out


def user_to_dict(u: User, include_origin: bool = True) -> Dict[str, Any]:
    return {
        "id": u.id,
        "username": u.username,
        "balance": u.balance,
        "predictions": [wager_to_dict(w, include_origin) for w in u.predictions],
        "stats": {"wins": u.stats.wins, "losses": u.stats.losses, "pending": u.stats.pending},
    }


def snapshot_to_dict(s: ReplicaSnapshot) -> Dict[str, Any]:
    return {
        "games": [event_to_dict(e) for e in s.events],
        "user": user_to_dict(s.user),
    }
