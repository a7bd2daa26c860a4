"""Pytest configuration: a scoped rig registry and a settings.json writer."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from tests.util import build_settings
from townhall.fleet.prefixes import PrefixRegistry, set_default_registry


@pytest.fixture
def registry():
    """gt -> gastown, bd -> beads, installed as the default for the test."""
    reg = PrefixRegistry()
    reg.register("gt", "gastown")
    reg.register("bd", "beads")
    previous = set_default_registry(reg)
    yield reg
    set_default_registry(previous)


@pytest.fixture
def write_settings():
    def _write(path: Path, *missing: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(build_settings(*missing), indent=2))
        return path

    return _write
