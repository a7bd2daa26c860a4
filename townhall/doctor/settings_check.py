"""Claude settings compliance: find stale settings.json files and remove misplaced ones.

A settings file is stale when it is in the wrong place, is not valid JSON,
or lacks any of the required pieces:

- top-level ``enabledPlugins``
- top-level ``hooks``
- a ``SessionStart`` hook command exporting PATH
- a ``SessionStart`` hook command running ``gt nudge deacon``
- a non-empty ``Stop`` hook list

``fix`` only deletes misplaced files.  Files in the right place with missing
pieces are reported and left alone; regenerating them belongs to whatever
provisions the agent.
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from townhall.common.constants import DEACON_NUDGE_DIRECTIVE, PATH_EXPORT_DIRECTIVE
from townhall.common.logging import get_json_file_logger
from townhall.doctor.check import (
    CheckContext,
    CheckResult,
    CheckStatus,
    FixError,
    ScanError,
)
from townhall.fleet.topology import (
    ROLE_DIRS,
    AgentType,
    SettingsLocation,
    classify_settings_path,
    iter_rig_dirs,
    misplaced_settings_path,
    settings_path,
)


class StaleReason(str, enum.Enum):
    WRONG_LOCATION = "wrong location"
    INVALID_JSON = "invalid JSON"
    MISSING_ENABLED_PLUGINS = "missing enabledPlugins"
    MISSING_HOOKS = "missing hooks"
    MISSING_PATH_EXPORT = "missing PATH export"
    MISSING_DEACON_NUDGE = "missing deacon nudge"
    MISSING_STOP_HOOK = "missing Stop hook"


# Report order
_REASON_ORDER = list(StaleReason)


@dataclass
class SettingsFile:
    path: Path
    location: SettingsLocation
    content: dict | None = None
    reasons: set[StaleReason] = field(default_factory=set)

    @property
    def is_stale(self) -> bool:
        return bool(self.reasons)

    @property
    def misplaced(self) -> bool:
        return StaleReason.WRONG_LOCATION in self.reasons

    def reason_labels(self) -> list[str]:
        return [r.value for r in _REASON_ORDER if r in self.reasons]


def _hook_commands(hooks: dict, event: str) -> list[str]:
    """All command strings configured under ``hooks[event]``."""
    commands: list[str] = []
    entries = hooks.get(event)
    if not isinstance(entries, list):
        return commands
    for entry in entries:
        inner = entry.get("hooks") if isinstance(entry, dict) else None
        if not isinstance(inner, list):
            continue
        for hook in inner:
            cmd = hook.get("command") if isinstance(hook, dict) else None
            if isinstance(cmd, str):
                commands.append(cmd)
    return commands


def validate_settings(content: dict) -> set[StaleReason]:
    """Structural checks on parsed settings; an empty set means compliant."""
    reasons: set[StaleReason] = set()
    if "enabledPlugins" not in content:
        reasons.add(StaleReason.MISSING_ENABLED_PLUGINS)

    hooks = content.get("hooks")
    if not isinstance(hooks, dict):
        # Every hook check below depends on this one.
        reasons.add(StaleReason.MISSING_HOOKS)
        return reasons

    session_start = _hook_commands(hooks, "SessionStart")
    if not any(PATH_EXPORT_DIRECTIVE in cmd for cmd in session_start):
        reasons.add(StaleReason.MISSING_PATH_EXPORT)
    if not any(DEACON_NUDGE_DIRECTIVE in cmd for cmd in session_start):
        reasons.add(StaleReason.MISSING_DEACON_NUDGE)
    if not hooks.get("Stop"):
        reasons.add(StaleReason.MISSING_STOP_HOOK)
    return reasons


def _list_dirs(path: Path) -> list[Path]:
    if not path.is_dir():
        return []
    try:
        return sorted(p for p in path.iterdir() if p.is_dir())
    except OSError as exc:
        raise ScanError(path, exc) from exc


class ClaudeSettingsCheck:
    """Doctor check for ``.claude/settings.json`` across the town."""

    name = "claude-settings"
    description = "Verify Claude settings.json files are in place and up to date"

    def __init__(self) -> None:
        self.stale_settings: list[SettingsFile] = []
        self._log = structlog.get_logger("doctor.claude_settings")

    def can_fix(self) -> bool:
        return True

    # ── Scan ──────────────────────────────────────────────────────────────

    def _candidates(self, ctx: CheckContext) -> list[Path]:
        """Every path where a settings file may live, correct or misplaced."""
        town = ctx.town_root
        paths = [
            settings_path(town, AgentType.MAYOR),
            settings_path(town, AgentType.DEACON),
        ]
        try:
            rig_dirs = list(iter_rig_dirs(town, ctx.skip_dirs))
        except FileNotFoundError:
            return paths
        except OSError as exc:
            raise ScanError(town, exc) from exc

        for rig_dir in rig_dirs:
            rig = rig_dir.name
            for kind in (AgentType.WITNESS, AgentType.REFINERY):
                paths.append(settings_path(town, kind, rig))
                paths.append(misplaced_settings_path(town, kind, rig))
            for kind in (AgentType.CREW, AgentType.POLECAT):
                for member in _list_dirs(rig_dir / ROLE_DIRS[kind]):
                    paths.append(settings_path(town, kind, rig, member.name))
        return paths

    def _inspect(self, ctx: CheckContext, path: Path) -> SettingsFile | None:
        location = classify_settings_path(ctx.town_root, path, ctx.skip_dirs)
        if location is None or not path.is_file():
            return None

        found = SettingsFile(path=path, location=location)
        if location.wrong_location:
            found.reasons.add(StaleReason.WRONG_LOCATION)

        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise ScanError(path, exc) from exc
        try:
            content = json.loads(raw)
        except (ValueError, RecursionError):
            # ValueError covers both bad JSON and bad UTF-8.
            content = None
        if not isinstance(content, dict):
            found.reasons.add(StaleReason.INVALID_JSON)
            return found

        found.content = content
        found.reasons |= validate_settings(content)
        return found

    def scan(self, ctx: CheckContext) -> list[SettingsFile]:
        """Find and classify every settings file under the town root."""
        files = []
        for path in self._candidates(ctx):
            found = self._inspect(ctx, path)
            if found is not None:
                files.append(found)
        return files

    def run(self, ctx: CheckContext) -> CheckResult:
        files = self.scan(ctx)
        self.stale_settings = [f for f in files if f.is_stale]
        self._log.debug(
            "settings_scanned",
            town_root=str(ctx.town_root),
            found=len(files),
            stale=len(self.stale_settings),
        )

        if not self.stale_settings:
            message = (
                f"All {len(files)} Claude settings file(s) up to date"
                if files else "No Claude settings files found"
            )
            return CheckResult(self.name, CheckStatus.OK, message)

        details = []
        for sf in self.stale_settings:
            rel = sf.path.relative_to(ctx.town_root)
            details.append(f"{rel}: {', '.join(sf.reason_labels())}")

        fix_hint = "Regenerate the remaining files by restarting the affected agents"
        if any(sf.misplaced for sf in self.stale_settings):
            fix_hint = "Run 'gt doctor --fix' to remove misplaced settings files"
        return CheckResult(
            self.name,
            CheckStatus.ERROR,
            f"Found {len(self.stale_settings)} stale Claude config file(s)",
            details=details,
            fix_hint=fix_hint,
        )

    # ── Fix ───────────────────────────────────────────────────────────────

    def fix(self, ctx: CheckContext) -> list[Path]:
        """Delete misplaced settings files found by the last ``run``.

        Correctly placed files are never touched.  Every deletion is
        attempted; failures are collected and raised together as FixError.
        Returns the paths that were removed.
        """
        audit = get_json_file_logger(ctx.log_dir / "doctor.jsonl") if ctx.log_dir else None
        removed: list[Path] = []
        failures: list[tuple[Path, OSError]] = []

        for sf in self.stale_settings:
            if not sf.misplaced:
                continue
            try:
                sf.path.unlink()
            except OSError as exc:
                failures.append((sf.path, exc))
                self._log.warning("settings_remove_failed", path=str(sf.path), error=str(exc))
                if audit:
                    audit.warning("settings_remove_failed", path=str(sf.path), error=str(exc))
                continue
            removed.append(sf.path)
            self._log.info("settings_removed", path=str(sf.path), agent=sf.location.describe())
            if audit:
                audit.info(
                    "settings_removed",
                    path=str(sf.path),
                    agent=sf.location.describe(),
                    reasons=sf.reason_labels(),
                )

        gone = set(removed)
        self.stale_settings = [sf for sf in self.stale_settings if sf.path not in gone]
        if failures:
            raise FixError(failures, removed)
        return removed
