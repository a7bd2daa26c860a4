"""``gt nudge``, ``gt address`` and ``gt nudges``: route messages to sessions by address."""

from __future__ import annotations

import argparse
import sys
import time
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import structlog

from townhall.common.console import C, fail, info, ok, warn
from townhall.common.constants import LOGS_DIR
from townhall.common.logging import get_json_file_logger
from townhall.common.redis import get_nudges, store_nudge
from townhall.fleet.agent import AgentSession
from townhall.fleet.prefixes import PrefixRegistry
from townhall.fleet.tmux import TmuxError, list_sessions, send_nudge
from townhall.nudge.address import (
    address_to_session_name,
    is_pattern,
    resolve_pattern,
    session_name_to_address,
)
from townhall.nudge.freshness import is_fresh

log = structlog.get_logger("nudge")


class NudgeError(Exception):
    """Bad nudge invocation or unresolvable target."""


def add_parser(subparsers) -> None:
    parser = subparsers.add_parser(
        "nudge",
        help="Send a message to one or more agent sessions",
        description=(
            "TARGET is an address (mayor, gastown/witness, gastown/crew/max, "
            "gastown/alpha) or a pattern (*/witness, gastown/polecats/*)."
        ),
    )
    parser.add_argument("target")
    parser.add_argument("message_words", nargs="*", metavar="MESSAGE")
    parser.add_argument("-m", "--message", default=None, help="Message text")
    parser.add_argument(
        "--stdin", action="store_true", default=False,
        help="Read the message from standard input",
    )
    parser.add_argument(
        "--if-fresh", action="store_true", default=False,
        help="Only nudge sessions created within the last minute",
    )
    parser.add_argument(
        "--dry-run", action="store_true", default=False,
        help="Show the resolved targets without sending",
    )
    parser.set_defaults(handler=run)

    address = subparsers.add_parser("address", help="Print the address of a session name")
    address.add_argument("session")
    address.set_defaults(handler=run_address)

    history = subparsers.add_parser("nudges", help="Show nudges delivered to a session")
    history.add_argument("target", help="Address (gastown/witness) or session name (gt-witness)")
    history.set_defaults(handler=run_history)


def resolve_message(args: argparse.Namespace, stdin=None) -> str:
    if args.stdin and args.message is not None:
        raise NudgeError("cannot use --stdin with --message/-m")
    if args.stdin:
        message = (stdin or sys.stdin).read()
    elif args.message is not None:
        message = args.message
    else:
        message = " ".join(args.message_words)
    message = message.strip()
    if not message and not args.dry_run:
        raise NudgeError("no message given (use -m, --stdin, or trailing words)")
    return message


def resolve_targets(
    target: str,
    sessions: list[AgentSession],
    registry: PrefixRegistry,
) -> list[AgentSession]:
    """Running sessions denoted by *target*, in enumeration order."""
    if is_pattern(target):
        names = set(resolve_pattern(target, sessions))
        if not names:
            raise NudgeError(f"no running sessions match {target!r}")
    else:
        name = address_to_session_name(target, registry)
        if not name:
            raise NudgeError(f"unrecognised address {target!r}")
        names = {name}

    matched = [s for s in sessions if s.name in names]
    if not matched:
        raise NudgeError(f"{target} is not running")
    return matched


def run(
    args: argparse.Namespace,
    town_root: Path,
    registry: PrefixRegistry,
    enumerate_sessions: Callable[[PrefixRegistry], list[AgentSession]] = list_sessions,
    deliver: Callable[[str, str], None] = send_nudge,
) -> int:
    try:
        message = resolve_message(args)
        targets = resolve_targets(args.target, enumerate_sessions(registry), registry)
    except NudgeError as exc:
        fail(str(exc))

    if args.if_fresh:
        fresh = [s for s in targets if s.created_at is not None and is_fresh(s.created_at)]
        for s in targets:
            if s not in fresh:
                info(f"{s.name}: not fresh, skipping (--if-fresh)")
        targets = fresh

    if args.dry_run:
        for s in targets:
            print(f"  {C.CYAN}>{C.NC} {s.name:<24} {session_name_to_address(s.name, registry)}")
        return 0

    audit = get_json_file_logger(town_root / LOGS_DIR / "nudge.jsonl")
    failed = 0
    for s in targets:
        address = session_name_to_address(s.name, registry)
        try:
            deliver(s.name, message)
        except TmuxError as exc:
            failed += 1
            warn(f"{address or s.name}: {exc}")
            audit.warning("nudge_failed", session=s.name, address=address, error=str(exc))
            continue
        ok(f"nudged {address or s.name}")
        audit.info("nudge_sent", session=s.name, address=address)
        try:
            store_nudge(s.name, {
                "address": address,
                "message": message,
                "timestamp_unix": time.time(),
            })
        except Exception as exc:
            log.warning("nudge_record_failed", session=s.name, error=str(exc))
    return 1 if failed else 0


def run_address(args: argparse.Namespace, town_root: Path, registry: PrefixRegistry) -> int:
    address = session_name_to_address(args.session, registry)
    if not address:
        fail(f"{args.session!r} is not a recognised session name")
    print(address)
    return 0


def run_history(args: argparse.Namespace, town_root: Path, registry: PrefixRegistry) -> int:
    session_name = address_to_session_name(args.target, registry)
    if not session_name:
        if not session_name_to_address(args.target, registry):
            fail(f"{args.target!r} is neither an address nor a session name")
        session_name = args.target

    try:
        records = get_nudges(session_name)
    except Exception as exc:
        fail(f"Cannot read nudge log from Redis: {exc}")
    if not records:
        info(f"No nudges recorded for {session_name}.")
        return 0
    for record in records:
        stamp = datetime.fromtimestamp(record.get("timestamp_unix", 0), tz=timezone.utc)
        print(f"  {stamp:%Y-%m-%d %H:%M:%S}  {record.get('message', '')}")
    return 0
