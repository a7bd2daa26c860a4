"""Shared constants for the town: roles, layout, and settings policy."""

from datetime import timedelta

# Town-level sessions carry this prefix instead of a rig prefix
TOWN_PREFIX = "hq"
MAYOR_SESSION = f"{TOWN_PREFIX}-mayor"
DEACON_SESSION = f"{TOWN_PREFIX}-deacon"

# Environment variables
ENV_TOWN_ROOT = "GT_TOWN_ROOT"

# ── Layout ───────────────────────────────────────────────────────────────────
MAYOR_DIR = "mayor"
DEACON_DIR = "deacon"
RIGS_FILE = "rigs.json"          # lives in <town>/mayor/
LOGS_DIR = "logs"

CLAUDE_DIR = ".claude"
SETTINGS_FILE = "settings.json"

# Top-level directories that are never rigs (hidden dirs are skipped too)
SKIP_DIRS = frozenset({"mayor", "deacon", "daemon", "docs", "logs"})

# ── Settings policy ──────────────────────────────────────────────────────────
PATH_EXPORT_DIRECTIVE = "PATH="
DEACON_NUDGE_DIRECTIVE = "gt nudge deacon"

# ── Nudges ───────────────────────────────────────────────────────────────────
IF_FRESH_MAX_AGE = timedelta(seconds=60)

# ── Polecat branches ─────────────────────────────────────────────────────────
POLECAT_BRANCH_GLOB = "polecat/*"
DEFAULT_REMOTE = "origin"
