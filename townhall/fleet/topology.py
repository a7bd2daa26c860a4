"""Town layout conventions: roles, rig directories, and settings placement.

Canonical settings locations relative to the town root::

    .claude/settings.json                         mayor
    deacon/.claude/settings.json                  deacon
    <rig>/witness/rig/.claude/settings.json       witness
    <rig>/refinery/rig/.claude/settings.json      refinery
    <rig>/crew/<name>/.claude/settings.json       crew member
    <rig>/polecats/<name>/.claude/settings.json   polecat

A witness or refinery file one level up (``<rig>/witness/.claude/...``) is
the same role misplaced.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from townhall.common.constants import (
    CLAUDE_DIR,
    DEACON_DIR,
    SETTINGS_FILE,
    SKIP_DIRS,
)


class AgentType(str, enum.Enum):
    MAYOR = "mayor"
    DEACON = "deacon"
    WITNESS = "witness"
    REFINERY = "refinery"
    CREW = "crew"
    POLECAT = "polecat"

    @property
    def town_level(self) -> bool:
        return self in (AgentType.MAYOR, AgentType.DEACON)

    @property
    def named(self) -> bool:
        """Crew and polecats are individuals; every other role is a singleton."""
        return self in (AgentType.CREW, AgentType.POLECAT)


class Placement(str, enum.Enum):
    CORRECT = "correct"
    WRONG_LOCATION = "wrong_location"


# Directory under <rig>/ that holds each rig-scoped role
ROLE_DIRS: dict[AgentType, str] = {
    AgentType.WITNESS: "witness",
    AgentType.REFINERY: "refinery",
    AgentType.CREW: "crew",
    AgentType.POLECAT: "polecats",
}

# Roles whose working copy lives in an extra "rig" subdirectory
_NESTED_ROLES = (AgentType.WITNESS, AgentType.REFINERY)
_NESTED_DIR = "rig"


@dataclass(frozen=True)
class SettingsLocation:
    """Which agent a settings file belongs to, and whether it sits where it should."""

    kind: AgentType
    rig: str = ""
    name: str = ""
    placement: Placement = Placement.CORRECT

    @property
    def wrong_location(self) -> bool:
        return self.placement is Placement.WRONG_LOCATION

    def describe(self) -> str:
        if self.kind.town_level:
            return self.kind.value
        if self.kind.named:
            return f"{self.rig}/{ROLE_DIRS[self.kind]}/{self.name}"
        return f"{self.rig}/{self.kind.value}"


def is_rig_dir(name: str, skip_dirs: Iterable[str] = SKIP_DIRS) -> bool:
    """True unless *name* is hidden or on the non-rig deny-list."""
    return bool(name) and not name.startswith(".") and name not in skip_dirs


def iter_rig_dirs(town_root: Path, skip_dirs: Iterable[str] = SKIP_DIRS) -> Iterator[Path]:
    """Yield rig directories under *town_root* in name order.

    Raises OSError when the town root cannot be listed.
    """
    skip = frozenset(skip_dirs)
    for entry in sorted(town_root.iterdir()):
        if entry.is_dir() and is_rig_dir(entry.name, skip):
            yield entry


def agent_dir(town_root: Path, kind: AgentType, rig: str = "", name: str = "") -> Path:
    """Working directory for an agent (the directory that holds ``.claude/``)."""
    if kind is AgentType.MAYOR:
        return town_root
    if kind is AgentType.DEACON:
        return town_root / DEACON_DIR
    if not rig:
        raise ValueError(f"{kind.value} requires a rig")
    base = town_root / rig / ROLE_DIRS[kind]
    if kind in _NESTED_ROLES:
        return base / _NESTED_DIR
    if not name:
        raise ValueError(f"{kind.value} requires a name")
    return base / name


def settings_path(town_root: Path, kind: AgentType, rig: str = "", name: str = "") -> Path:
    """Canonical settings.json path for an agent."""
    return agent_dir(town_root, kind, rig, name) / CLAUDE_DIR / SETTINGS_FILE


def misplaced_settings_path(town_root: Path, kind: AgentType, rig: str) -> Path:
    """Where a witness/refinery settings file lands when the ``rig`` level is missed."""
    if kind not in _NESTED_ROLES:
        raise ValueError(f"{kind.value} has no misplaced location")
    return town_root / rig / ROLE_DIRS[kind] / CLAUDE_DIR / SETTINGS_FILE


def classify_settings_path(
    town_root: Path,
    path: Path,
    skip_dirs: Iterable[str] = SKIP_DIRS,
) -> SettingsLocation | None:
    """Infer the owning agent of a settings file from its position.

    Returns None for anything that is not a recognised settings location,
    including files under skip-listed or hidden top-level directories.
    """
    try:
        parts = path.relative_to(town_root).parts
    except ValueError:
        return None
    if len(parts) < 2 or parts[-2:] != (CLAUDE_DIR, SETTINGS_FILE):
        return None

    owner = parts[:-2]
    if not owner:
        return SettingsLocation(AgentType.MAYOR)
    if owner == (DEACON_DIR,):
        return SettingsLocation(AgentType.DEACON)

    rig = owner[0]
    if not is_rig_dir(rig, frozenset(skip_dirs)):
        return None

    for kind in _NESTED_ROLES:
        role_dir = ROLE_DIRS[kind]
        if owner == (rig, role_dir, _NESTED_DIR):
            return SettingsLocation(kind, rig=rig)
        if owner == (rig, role_dir):
            return SettingsLocation(kind, rig=rig, placement=Placement.WRONG_LOCATION)

    if len(owner) == 3 and owner[2] and not owner[2].startswith("."):
        for kind in (AgentType.CREW, AgentType.POLECAT):
            if owner[1] == ROLE_DIRS[kind]:
                return SettingsLocation(kind, rig=rig, name=owner[2])
    return None
