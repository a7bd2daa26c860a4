"""tmux access: enumerate fleet sessions and type nudges into them."""

from __future__ import annotations

import subprocess
from datetime import datetime, timezone

import structlog

from townhall.fleet.agent import AgentSession
from townhall.fleet.prefixes import PrefixRegistry
from townhall.nudge.address import parse_session_name

_LIST_FORMAT = "#{session_name} #{session_created}"

log = structlog.get_logger("tmux")


class TmuxError(RuntimeError):
    """A tmux command exited non-zero."""


def _tmux(*args: str) -> subprocess.CompletedProcess:
    return subprocess.run(["tmux", *args], capture_output=True, text=True)


def list_sessions(registry: PrefixRegistry | None = None) -> list[AgentSession]:
    """Return every running fleet session, classified by name.

    Sessions whose names are not fleet names are skipped.  No tmux server
    (or no tmux at all) means no sessions.
    """
    try:
        proc = _tmux("list-sessions", "-F", _LIST_FORMAT)
    except FileNotFoundError:
        log.debug("tmux_not_installed")
        return []
    if proc.returncode != 0:
        log.debug("tmux_no_server", stderr=proc.stderr.strip())
        return []

    sessions: list[AgentSession] = []
    for line in proc.stdout.splitlines():
        name, _, created = line.strip().partition(" ")
        if not name:
            continue
        session = parse_session_name(name, registry)
        if session is None:
            log.debug("tmux_session_skipped", session=name)
            continue
        if created.isdigit():
            session.created_at = datetime.fromtimestamp(int(created), tz=timezone.utc)
        sessions.append(session)
    return sessions


def send_nudge(session_name: str, message: str) -> None:
    """Type *message* into the session's active pane and press Enter."""
    proc = _tmux("send-keys", "-t", session_name, "-l", message)
    if proc.returncode != 0:
        raise TmuxError(f"send-keys to {session_name} failed: {proc.stderr.strip()}")
    proc = _tmux("send-keys", "-t", session_name, "Enter")
    if proc.returncode != 0:
        raise TmuxError(f"Enter to {session_name} failed: {proc.stderr.strip()}")
