"""Environment and town-root discovery."""

from __future__ import annotations

import os
from pathlib import Path

import structlog

from townhall.common.constants import ENV_TOWN_ROOT, MAYOR_DIR, RIGS_FILE

log = structlog.get_logger("config")


def load_dotenv(env_path: Path) -> bool:
    """Load variables from a .env file into os.environ (no overwrite).

    Returns True when the file existed.
    """
    if not env_path.is_file():
        return False
    log.debug("dotenv_loaded", path=str(env_path))
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            if key.startswith("export "):
                key = key[len("export "):].strip()
            value = value.strip().strip("\"'")
            os.environ.setdefault(key, value)
    return True


def find_town_root(start: Path | None = None) -> Path:
    """Locate the town root.

    ``GT_TOWN_ROOT`` wins; otherwise the nearest ancestor of *start* that
    holds ``mayor/rigs.json``; otherwise *start* itself.
    """
    env_root = os.environ.get(ENV_TOWN_ROOT, "").strip()
    if env_root:
        return Path(env_root).expanduser().resolve()

    start = (start or Path.cwd()).resolve()
    for candidate in (start, *start.parents):
        if (candidate / MAYOR_DIR / RIGS_FILE).is_file():
            return candidate
    return start
