"""Minimal git wrapper for polecat branch housekeeping."""

from __future__ import annotations

import subprocess
from pathlib import Path

from townhall.common.constants import MAYOR_DIR

BARE_REPO_DIR = ".repo.git"


class GitError(RuntimeError):
    """A git command failed."""


class Git:
    """Runs git against a working tree, or a bare repository via ``git_dir``."""

    def __init__(self, work_dir: Path, git_dir: Path | None = None) -> None:
        self.work_dir = work_dir
        self.git_dir = git_dir

    def __repr__(self) -> str:
        return f"Git({self.git_dir or self.work_dir})"

    def _run(self, *args: str) -> str:
        cmd = ["git"]
        if self.git_dir is not None:
            cmd += ["--git-dir", str(self.git_dir)]
        else:
            cmd += ["-C", str(self.work_dir)]
        cmd += args
        proc = subprocess.run(cmd, capture_output=True, text=True)
        if proc.returncode != 0:
            raise GitError(f"git {' '.join(args)}: {proc.stderr.strip() or proc.returncode}")
        return proc.stdout

    def list_branches(self, pattern: str) -> list[str]:
        out = self._run("branch", "--list", "--format=%(refname:short)", pattern)
        return [b.strip() for b in out.splitlines() if b.strip()]

    def list_remote_branches(self, pattern: str) -> list[str]:
        """Remote-tracking branches, e.g. ``origin/polecat/alpha``."""
        out = self._run("branch", "-r", "--list", "--format=%(refname:short)", pattern)
        return [b.strip() for b in out.splitlines() if b.strip()]

    def delete_branch(self, name: str, force: bool = False) -> None:
        self._run("branch", "-D" if force else "-d", name)

    def delete_remote_branch(self, remote: str, name: str) -> None:
        self._run("push", remote, "--delete", name)

    def fetch_prune(self, remote: str) -> None:
        self._run("fetch", "--prune", remote)

    def current_branch(self) -> str:
        return self._run("branch", "--show-current").strip()


def repo_base_for_rig(rig_path: Path) -> Git:
    """Git handle for the rig's shared repo: the bare repo, else mayor/rig."""
    bare = rig_path / BARE_REPO_DIR
    if bare.is_dir():
        return Git(rig_path, git_dir=bare)

    mayor_clone = rig_path / MAYOR_DIR / "rig"
    if not mayor_clone.exists():
        raise GitError(
            f"no repo base found in {rig_path} "
            f"(neither {BARE_REPO_DIR} nor {MAYOR_DIR}/rig exists)"
        )
    return Git(mayor_clone)
