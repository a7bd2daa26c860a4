"""``gt polecat prune``: remove branches of polecats that are gone."""

from __future__ import annotations

import argparse
from pathlib import Path

from townhall.common.console import C, dim, fail, info, ok
from townhall.fleet.prefixes import PrefixRegistry
from townhall.fleet.topology import is_rig_dir
from townhall.polecat.git import GitError, repo_base_for_rig
from townhall.polecat.prune import BranchOutcome, active_polecat_branches, prune_branches


def add_parser(subparsers) -> None:
    polecat = subparsers.add_parser("polecat", help="Polecat housekeeping")
    actions = polecat.add_subparsers(dest="polecat_command", required=True)
    prune = actions.add_parser(
        "prune",
        help="Remove polecat branches not associated with active polecats",
        description=(
            "A branch is pruned when no polecat worktree has it checked out. "
            "Only local branches by default; --remote also deletes them on origin."
        ),
    )
    prune.add_argument("rig")
    prune.add_argument(
        "--dry-run", action="store_true", default=False,
        help="Show what would be pruned without deleting",
    )
    prune.add_argument(
        "--remote", action="store_true", default=False,
        help="Also prune remote polecat branches on origin",
    )
    prune.set_defaults(handler=run_prune)


def _print_outcome(label: str, outcome: BranchOutcome, dry_run: bool) -> None:
    if not (outcome.kept or outcome.pruned or outcome.failed):
        print(f"No {label.lower()} polecat branches found.\n")
        return
    print(f"{C.BOLD}{label}{C.NC} branches:")
    if dry_run:
        for branch in outcome.kept:
            print(f"  {C.GREEN}keep{C.NC} {branch} {dim('(active polecat)')}")
        for branch in outcome.pruned:
            print(f"  {C.YELLOW}prune{C.NC} {branch}")
    else:
        for branch in outcome.pruned:
            print(f"  {C.GREEN}✓{C.NC} {branch}")
        for branch, error in outcome.failed:
            print(f"  {C.RED}fail{C.NC} {branch}: {error}")
    print()


def run_prune(args: argparse.Namespace, town_root: Path, registry: PrefixRegistry) -> int:
    rig_path = town_root / args.rig
    if not is_rig_dir(args.rig) or not rig_path.is_dir():
        fail(f"{args.rig!r} is not a rig in {town_root}")

    try:
        git = repo_base_for_rig(rig_path)
        active = active_polecat_branches(rig_path)
        verb = "Scanning" if args.dry_run else "Pruning"
        print(f"{verb} {args.rig} for stale polecat branches...\n")
        report = prune_branches(git, active, dry_run=args.dry_run, remote=args.remote)
    except GitError as exc:
        fail(str(exc))

    _print_outcome("Local", report.local, args.dry_run)
    for warning in report.warnings:
        print(f"{C.YELLOW}⚠{C.NC} {warning}\n")
    if report.remote is not None:
        _print_outcome("Remote", report.remote, args.dry_run)

    if args.dry_run:
        info(f"Would prune {report.total_pruned} branch(es), keep {report.total_kept} active")
    elif report.total_pruned == 0:
        ok("No stale branches to prune.")
    else:
        ok(f"Pruned {report.total_pruned} branch(es) (kept {report.total_kept} active)")

    failed = len(report.local.failed) + (len(report.remote.failed) if report.remote else 0)
    return 1 if failed else 0
