from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from townhall.polecat.git import Git, GitError, repo_base_for_rig
from townhall.polecat.prune import active_polecat_branches, prune_branches


class FakeGit:
    """In-memory branch store."""

    def __init__(self, local, remote=(), fail_delete=(), fail_fetch=False):
        self.local = list(local)
        self.remote = list(remote)
        self.fail_delete = set(fail_delete)
        self.fail_fetch = fail_fetch
        self.deleted: list[str] = []
        self.deleted_remote: list[tuple[str, str]] = []

    def list_branches(self, pattern):
        return list(self.local)

    def list_remote_branches(self, pattern):
        return list(self.remote)

    def delete_branch(self, name, force=False):
        if name in self.fail_delete:
            raise GitError(f"cannot delete {name}")
        self.deleted.append(name)

    def delete_remote_branch(self, remote, name):
        if name in self.fail_delete:
            raise GitError(f"cannot delete {remote}/{name}")
        self.deleted_remote.append((remote, name))

    def fetch_prune(self, remote):
        if self.fail_fetch:
            raise GitError("offline")


def test_prunes_set_difference_locally():
    git = FakeGit(["polecat/alpha", "polecat/beta", "polecat/gamma"])
    report = prune_branches(git, {"polecat/beta"})
    assert git.deleted == ["polecat/alpha", "polecat/gamma"]
    assert report.local.kept == ["polecat/beta"]
    assert report.remote is None
    assert (report.total_pruned, report.total_kept) == (2, 1)


def test_dry_run_deletes_nothing():
    git = FakeGit(["polecat/alpha", "polecat/beta"], remote=["origin/polecat/alpha"])
    report = prune_branches(git, {"polecat/beta"}, dry_run=True, remote=True)
    assert git.deleted == [] and git.deleted_remote == []
    assert report.local.pruned == ["polecat/alpha"]
    assert report.remote.pruned == ["origin/polecat/alpha"]


def test_remote_branches_compare_without_remote_prefix():
    git = FakeGit([], remote=["origin/polecat/alpha", "origin/polecat/beta"])
    report = prune_branches(git, {"polecat/alpha"}, remote=True)
    assert git.deleted_remote == [("origin", "polecat/beta")]
    assert report.remote.kept == ["origin/polecat/alpha"]


def test_failed_delete_does_not_abort():
    git = FakeGit(["polecat/a", "polecat/b", "polecat/c"], fail_delete={"polecat/b"})
    report = prune_branches(git, set())
    assert git.deleted == ["polecat/a", "polecat/c"]
    assert [b for b, _ in report.local.failed] == ["polecat/b"]


def test_fetch_failure_is_a_warning():
    git = FakeGit([], remote=["origin/polecat/x"], fail_fetch=True)
    report = prune_branches(git, set(), remote=True)
    assert report.warnings and "fetch --prune" in report.warnings[0]
    assert git.deleted_remote == [("origin", "polecat/x")]


def test_repo_base_prefers_bare_repo(tmp_path: Path):
    (tmp_path / ".repo.git").mkdir()
    (tmp_path / "mayor" / "rig").mkdir(parents=True)
    git = repo_base_for_rig(tmp_path)
    assert git.git_dir == tmp_path / ".repo.git"


def test_repo_base_falls_back_to_mayor_clone(tmp_path: Path):
    (tmp_path / "mayor" / "rig").mkdir(parents=True)
    git = repo_base_for_rig(tmp_path)
    assert git.git_dir is None
    assert git.work_dir == tmp_path / "mayor" / "rig"


def test_repo_base_missing(tmp_path: Path):
    with pytest.raises(GitError):
        repo_base_for_rig(tmp_path)


def test_git_runs_against_bare_repo(monkeypatch, tmp_path: Path):
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, 0, stdout="  polecat/a\npolecat/b\n\n", stderr="")

    monkeypatch.setattr(subprocess, "run", fake_run)
    git = Git(tmp_path, git_dir=tmp_path / ".repo.git")
    assert git.list_branches("polecat/*") == ["polecat/a", "polecat/b"]
    assert calls[0][:3] == ["git", "--git-dir", str(tmp_path / ".repo.git")]


def test_git_error_on_nonzero_exit(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(
        subprocess, "run",
        lambda cmd, **kw: subprocess.CompletedProcess(cmd, 1, stdout="", stderr="fatal: nope"),
    )
    with pytest.raises(GitError, match="fatal: nope"):
        Git(tmp_path).delete_branch("polecat/a", force=True)


def test_active_branches_come_from_worktrees(monkeypatch, tmp_path: Path):
    for name in ("alpha", "beta", "broken"):
        (tmp_path / "polecats" / name).mkdir(parents=True)

    def fake_current(self):
        if self.work_dir.name == "broken":
            raise GitError("not a git repository")
        return f"polecat/{self.work_dir.name}"

    monkeypatch.setattr(Git, "current_branch", fake_current)
    assert active_polecat_branches(tmp_path) == {"polecat/alpha", "polecat/beta"}


def test_no_polecats_dir_means_no_active(tmp_path: Path):
    assert active_polecat_branches(tmp_path) == set()
