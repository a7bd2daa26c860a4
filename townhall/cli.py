"""CLI entrypoint for ``gt``.

Builds the town context once (root, .env, rig prefix registry) and hands
it to the chosen subcommand.
"""

from __future__ import annotations

import argparse
import sys
import textwrap
from pathlib import Path

from townhall.common.config import find_town_root, load_dotenv
from townhall.common.console import fail
from townhall.common.logging import configure_structlog
from townhall.doctor import cli as doctor_cli
from townhall.fleet.prefixes import RegistryError, load_registry
from townhall.nudge import cli as nudge_cli
from townhall.polecat import cli as polecat_cli


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gt",
        description="Town fleet tooling: nudges, settings doctor, polecat housekeeping.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              gt nudge gastown/witness -m "check the queue"
              gt nudge '*/witness' --if-fresh -m "session started"
              gt doctor --fix
              gt polecat prune gastown --dry-run
        """),
    )
    parser.add_argument("--town", default=None, help="Town root (default: auto-detect)")
    parser.add_argument("-v", "--verbose", action="store_true", default=False)
    subparsers = parser.add_subparsers(dest="command", required=True)
    nudge_cli.add_parser(subparsers)
    doctor_cli.add_parser(subparsers)
    polecat_cli.add_parser(subparsers)
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_structlog(args.verbose)

    town_root = Path(args.town).resolve() if args.town else find_town_root()
    load_dotenv(town_root / ".env")

    try:
        registry = load_registry(town_root)
    except RegistryError as exc:
        fail(f"Rig registry: {exc}")

    sys.exit(args.handler(args, town_root, registry))
