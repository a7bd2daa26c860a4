from __future__ import annotations

from pathlib import Path
from unittest import mock

import pytest

from townhall.cli import build_parser
from townhall.doctor import cli as doctor_cli
from townhall.fleet.prefixes import PrefixRegistry


@pytest.fixture
def store(monkeypatch):
    store = mock.MagicMock()
    monkeypatch.setattr(doctor_cli, "store_scan", store)
    return store


def _run(town: Path, *argv: str) -> int:
    args = build_parser().parse_args(["doctor", *argv])
    return doctor_cli.run(args, town, PrefixRegistry())


def test_clean_town_exits_zero(tmp_path: Path, store):
    assert _run(tmp_path) == 0
    meta = store.call_args.args[1]
    assert meta["status"] == "ok"


def test_stale_town_exits_one(tmp_path: Path, write_settings, store, capsys):
    write_settings(tmp_path / ".claude" / "settings.json", "PATH")
    assert _run(tmp_path) == 1
    assert "missing PATH export" in capsys.readouterr().out


def test_fix_removes_misplaced_and_rescans(tmp_path: Path, write_settings, store):
    wrong = write_settings(tmp_path / "gastown" / "witness" / ".claude" / "settings.json")
    assert _run(tmp_path, "--fix") == 0
    assert not wrong.exists()
    meta = store.call_args.args[1]
    assert meta["removed"] == [str(wrong)]
    assert (tmp_path / "logs" / "doctor.jsonl").is_file()


def test_fix_leaves_correctly_placed_stale_file(tmp_path: Path, write_settings, store):
    stale = write_settings(tmp_path / "deacon" / ".claude" / "settings.json", "Stop")
    assert _run(tmp_path, "--fix") == 1
    assert stale.exists()


def test_redis_outage_is_not_fatal(tmp_path: Path, monkeypatch, capsys):
    monkeypatch.setattr(doctor_cli, "store_scan", mock.MagicMock(side_effect=ConnectionError("down")))
    assert _run(tmp_path) == 0
    assert "non-fatal" in capsys.readouterr().out


def test_history(tmp_path: Path, monkeypatch, capsys):
    monkeypatch.setattr(doctor_cli, "get_recent_scans", lambda: ["20260101_000000"])
    monkeypatch.setattr(doctor_cli, "get_scan", lambda scan_id: {"status": "ok", "message": "fine"})
    assert _run(tmp_path, "--history") == 0
    assert "20260101_000000" in capsys.readouterr().out
