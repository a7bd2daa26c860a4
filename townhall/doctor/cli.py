"""``gt doctor``: check Claude settings across the town and optionally fix them."""

from __future__ import annotations

import argparse
import time
from datetime import datetime, timezone
from pathlib import Path

from townhall.common.console import C, fail, info, ok, section, warn
from townhall.common.constants import LOGS_DIR
from townhall.common.redis import get_recent_scans, get_scan, store_scan
from townhall.doctor.check import CheckContext, CheckResult, FixError, ScanError
from townhall.doctor.settings_check import ClaudeSettingsCheck
from townhall.fleet.prefixes import PrefixRegistry


def add_parser(subparsers) -> None:
    parser = subparsers.add_parser("doctor", help="Check Claude settings files for drift")
    parser.add_argument(
        "--fix", action="store_true", default=False,
        help="Remove misplaced settings files (never rewrites content)",
    )
    parser.add_argument(
        "--history", action="store_true", default=False,
        help="Show recent doctor runs recorded in Redis",
    )
    parser.set_defaults(handler=run)


def _print_result(result: CheckResult) -> None:
    if result.ok:
        ok(f"{result.name}: {result.message}")
        return
    warn(f"{result.name}: {result.message}")
    for detail in result.details:
        print(f"    {C.YELLOW}•{C.NC} {detail}")
    if result.fix_hint:
        print(f"    {C.DIM}→ {result.fix_hint}{C.NC}")


def _record(town_root: Path, result: CheckResult, removed: list[Path]) -> None:
    scan_id = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    try:
        store_scan(scan_id, {
            **result.to_dict(),
            "town_root": str(town_root),
            "removed": [str(p) for p in removed],
            "timestamp_unix": time.time(),
        })
    except Exception as exc:
        warn(f"Redis store failed (non-fatal): {exc}")


def _show_history() -> int:
    try:
        scan_ids = get_recent_scans()
        scans = [(scan_id, get_scan(scan_id)) for scan_id in scan_ids]
    except Exception as exc:
        fail(f"Cannot read doctor history from Redis: {exc}")
    if not scans:
        info("No doctor runs recorded.")
        return 0
    print(section("Recent doctor runs"))
    for scan_id, scan in scans:
        status = scan.get("status", "?")
        colour = C.GREEN if status == "ok" else C.RED
        print(f"  {scan_id}  {colour}{status:<7}{C.NC} {scan.get('message', '')}")
    return 0


def run(args: argparse.Namespace, town_root: Path, registry: PrefixRegistry) -> int:
    if args.history:
        return _show_history()

    ctx = CheckContext(town_root=town_root, log_dir=town_root / LOGS_DIR)
    check = ClaudeSettingsCheck()

    info(f"Checking {town_root} ...")
    try:
        result = check.run(ctx)
    except ScanError as exc:
        fail(f"{check.name}: scan incomplete: {exc}")
    _print_result(result)

    removed: list[Path] = []
    if args.fix and not result.ok:
        try:
            removed = check.fix(ctx)
        except FixError as exc:
            removed = exc.removed
            for path, err in exc.failures:
                warn(f"could not remove {path.relative_to(town_root)}: {err.strerror or err}")
        for path in removed:
            ok(f"removed {path.relative_to(town_root)}")
        if not removed:
            info("Nothing to remove; correctly placed files are never rewritten.")
        try:
            result = check.run(ctx)
        except ScanError as exc:
            fail(f"{check.name}: rescan incomplete: {exc}")
        _print_result(result)

    _record(town_root, result, removed)
    return 0 if result.ok else 1
