"""Prune polecat branches that no longer belong to a live polecat."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import structlog

from townhall.common.constants import DEFAULT_REMOTE, POLECAT_BRANCH_GLOB
from townhall.fleet.topology import ROLE_DIRS, AgentType
from townhall.polecat.git import Git, GitError

log = structlog.get_logger("polecat.prune")


class BranchStore(Protocol):
    def list_branches(self, pattern: str) -> list[str]: ...
    def list_remote_branches(self, pattern: str) -> list[str]: ...
    def delete_branch(self, name: str, force: bool = False) -> None: ...
    def delete_remote_branch(self, remote: str, name: str) -> None: ...
    def fetch_prune(self, remote: str) -> None: ...


@dataclass
class BranchOutcome:
    kept: list[str] = field(default_factory=list)
    pruned: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)   # (branch, error)


@dataclass
class PruneReport:
    dry_run: bool
    local: BranchOutcome = field(default_factory=BranchOutcome)
    remote: BranchOutcome | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def total_pruned(self) -> int:
        return len(self.local.pruned) + (len(self.remote.pruned) if self.remote else 0)

    @property
    def total_kept(self) -> int:
        return len(self.local.kept) + (len(self.remote.kept) if self.remote else 0)


def active_polecat_branches(rig_path: Path) -> set[str]:
    """Branches checked out in the rig's existing polecat worktrees."""
    polecats_dir = rig_path / ROLE_DIRS[AgentType.POLECAT]
    if not polecats_dir.is_dir():
        return set()

    active: set[str] = set()
    for worktree in sorted(polecats_dir.iterdir()):
        if not worktree.is_dir() or worktree.name.startswith("."):
            continue
        try:
            branch = Git(worktree).current_branch()
        except GitError as exc:
            log.warning("polecat_branch_unknown", polecat=worktree.name, error=str(exc))
            continue
        if branch:
            active.add(branch)
    return active


def _prune(
    branches: list[str],
    active: set[str],
    delete,
    *,
    dry_run: bool,
    strip: str = "",
) -> BranchOutcome:
    outcome = BranchOutcome()
    for branch in branches:
        name = branch[len(strip):] if strip and branch.startswith(strip) else branch
        if name in active:
            outcome.kept.append(branch)
            continue
        if dry_run:
            outcome.pruned.append(branch)
            continue
        try:
            delete(name)
        except GitError as exc:
            outcome.failed.append((branch, str(exc)))
            log.warning("branch_delete_failed", branch=branch, error=str(exc))
        else:
            outcome.pruned.append(branch)
            log.info("branch_deleted", branch=branch)
    return outcome


def prune_branches(
    git: BranchStore,
    active: set[str],
    *,
    dry_run: bool = False,
    remote: bool = False,
    remote_name: str = DEFAULT_REMOTE,
) -> PruneReport:
    """Delete every polecat branch not in *active*.

    Local branches always; remote ones on *remote_name* when ``remote`` is
    set.  A failed delete is recorded and the rest carry on.
    """
    report = PruneReport(dry_run=dry_run)
    report.local = _prune(
        git.list_branches(POLECAT_BRANCH_GLOB),
        active,
        lambda b: git.delete_branch(b, force=True),
        dry_run=dry_run,
    )
    if not remote:
        return report

    try:
        git.fetch_prune(remote_name)
    except GitError as exc:
        report.warnings.append(f"git fetch --prune failed: {exc} (continuing)")

    try:
        remote_branches = git.list_remote_branches(f"{remote_name}/{POLECAT_BRANCH_GLOB}")
    except GitError as exc:
        report.warnings.append(f"listing remote branches: {exc}")
        report.remote = BranchOutcome()
        return report

    report.remote = _prune(
        remote_branches,
        active,
        lambda b: git.delete_remote_branch(remote_name, b),
        dry_run=dry_run,
        strip=f"{remote_name}/",
    )
    return report
