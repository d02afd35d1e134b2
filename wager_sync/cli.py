"""CLI entrypoint for a local wager session."""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from wager_sync.authority_client import RemoteAuthorityClient
from wager_sync.config import AppConfig, configure_logging
from wager_sync.errors import BusinessRuleError, NotFoundError
from wager_sync.models import EVENT_STATUSES, SCHEDULED, Event, User
from wager_sync.replica import FileBlobStore, ReplicaStore
from wager_sync.services.sync_coordinator import SyncCoordinator


def _format_event(e: Event) -> str:
    home, away = e.home_team, e.away_team
    line = f"{e.id:<10} {away.abbreviation} @ {home.abbreviation}  [{e.status}]"
    if e.status != SCHEDULED:
        line += f"  {away.score}-{home.score}"
    if e.period:
        line += f"  {e.period} {e.clock or ''}".rstrip()
    if e.winner:
        line += f"  winner: {e.winner}"
    if e.odds is not None:
        line += f"  ({e.odds.favorite} {e.odds.spread:+g})"
    return line


def _format_user(u: User) -> str:
    s = u.stats
    lines = [
        f"{u.username} ({u.id})",
        f"balance: {u.balance:.2f}",
        f"record: {s.wins}W-{s.losses}L, {s.pending} pending",
    ]
    for w in u.predictions:
        flag = " *local" if w.origin == "local" else ""
        lines.append(f"  {w.placed_at:%Y-%m-%d %H:%M} {w.event_id} {w.pick} {w.amount:.2f} {w.result}{flag}")
    return "\n".join(lines)


def build_coordinator(cfg: AppConfig) -> SyncCoordinator:
    client = RemoteAuthorityClient(cfg.api_base_url, timeout=cfg.request_timeout_seconds)
    replica = ReplicaStore(FileBlobStore(cfg.replica_path))
    coordinator = SyncCoordinator(client=client, replica=replica)
    coordinator.load()
    return coordinator


def _cmd_events(args: argparse.Namespace, coordinator: SyncCoordinator) -> int:
    if args.refresh:
        coordinator.refresh_events()
    events = coordinator.catalog.by_status(args.status) if args.status else coordinator.events
    for e in events:
        print(_format_event(e))
    return 0


def _cmd_refresh(args: argparse.Namespace, coordinator: SyncCoordinator) -> int:
    ok = coordinator.refresh_events()
    print("refreshed from server" if ok else "server unavailable; showing local data")
    return 0


def _cmd_wager(args: argparse.Namespace, coordinator: SyncCoordinator) -> int:
    try:
        wager = coordinator.place_wager(args.event_id, args.pick.upper(), args.amount)
    except (NotFoundError, BusinessRuleError) as e:
        print(f"rejected: {e}", file=sys.stderr)
        return 1
    where = "locally (offline)" if wager.origin == "local" else "by server"
    print(f"wager accepted {where}: {wager.pick} {wager.amount:.2f} on {wager.event_id}")
    print(f"balance: {coordinator.user.balance:.2f}")
    return 0


def _cmd_profile(args: argparse.Namespace, coordinator: SyncCoordinator) -> int:
    if args.refresh:
        coordinator.refresh_user()
    print(_format_user(coordinator.user))
    return 0


def _cmd_serve(args: argparse.Namespace, coordinator: Optional[SyncCoordinator]) -> int:
    from app import main as serve_main

    serve_main()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wager-sync", description="Wager on games, online or offline.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("events", help="list games from the local replica")
    p.add_argument("--status", choices=EVENT_STATUSES)
    p.add_argument("--refresh", action="store_true", help="pull from the server first")
    p.set_defaults(func=_cmd_events)

    p = sub.add_parser("refresh", help="pull the game list from the server")
    p.set_defaults(func=_cmd_refresh)

    p = sub.add_parser("wager", help="place a wager")
    p.add_argument("event_id")
    p.add_argument("pick", help="team abbreviation")
    p.add_argument("amount", type=float)
    p.set_defaults(func=_cmd_wager)

    p = sub.add_parser("profile", help="show balance and wager history")
    p.add_argument("--refresh", action="store_true", help="pull from the server first")
    p.set_defaults(func=_cmd_profile)

    p = sub.add_parser("serve", help="run the authority API server")
    p.set_defaults(func=_cmd_serve, no_session=True)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = AppConfig()
    configure_logging(cfg.log_level)
    if getattr(args, "no_session", False):
        return args.func(args, None)
    return args.func(args, build_coordinator(cfg))


if __name__ == "__main__":
    raise SystemExit(main())
