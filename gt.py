#!/usr/bin/env python3
"""
Town fleet CLI
==============
Thin entry-point. All logic lives in townhall.cli.

Usage:
    python3 gt.py nudge gastown/witness -m "wake up"
    python3 gt.py doctor --fix
    python3 gt.py polecat prune gastown --dry-run
"""

from townhall.cli import main

if __name__ == "__main__":
    main()
