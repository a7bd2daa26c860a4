from __future__ import annotations

import subprocess
from datetime import datetime, timezone

import pytest

from townhall.fleet import tmux
from townhall.fleet.topology import AgentType


def _completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(["tmux"], returncode, stdout=stdout, stderr=stderr)


def test_list_sessions_classifies_and_skips(monkeypatch, registry):
    out = "hq-mayor 1700000000\ngt-crew-max 1700000100\nrandom-shell 1700000200\nbd-witness x\n"
    monkeypatch.setattr(tmux, "_tmux", lambda *args: _completed(stdout=out))

    sessions = tmux.list_sessions(registry)

    assert [s.name for s in sessions] == ["hq-mayor", "gt-crew-max", "bd-witness"]
    assert sessions[1].type is AgentType.CREW
    assert sessions[1].created_at == datetime.fromtimestamp(1700000100, tz=timezone.utc)
    assert sessions[2].created_at is None


def test_list_sessions_without_server(monkeypatch, registry):
    monkeypatch.setattr(tmux, "_tmux", lambda *args: _completed(1, stderr="no server running"))
    assert tmux.list_sessions(registry) == []


def test_list_sessions_without_tmux(monkeypatch, registry):
    def missing(*args):
        raise FileNotFoundError("tmux")

    monkeypatch.setattr(tmux, "_tmux", missing)
    assert tmux.list_sessions(registry) == []


def test_send_nudge_types_literally_then_enter(monkeypatch):
    calls = []

    def fake(*args):
        calls.append(args)
        return _completed()

    monkeypatch.setattr(tmux, "_tmux", fake)
    tmux.send_nudge("gt-witness", "hello -t there")
    assert calls == [
        ("send-keys", "-t", "gt-witness", "-l", "hello -t there"),
        ("send-keys", "-t", "gt-witness", "Enter"),
    ]


def test_send_nudge_failure(monkeypatch):
    monkeypatch.setattr(tmux, "_tmux", lambda *args: _completed(1, stderr="can't find session"))
    with pytest.raises(tmux.TmuxError):
        tmux.send_nudge("gt-ghost", "hi")
