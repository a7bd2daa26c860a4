"""Bidirectional rig prefix registry.

Session names carry a short rig prefix (``gt-witness``) while addresses use
the full rig name (``gastown/witness``).  The registry is the bijection
between the two.  Entries are never changed after registration; to change
the mapping set, build a new registry and install it.
"""

from __future__ import annotations

import json
from pathlib import Path

import structlog

from townhall.common.constants import MAYOR_DIR, RIGS_FILE

log = structlog.get_logger("prefixes")


class RegistryError(Exception):
    """The rigs file could not be turned into a registry."""


class DuplicateError(RegistryError):
    """A prefix or rig is already bound to a different counterpart."""


class PrefixRegistry:
    def __init__(self) -> None:
        self._rig_by_prefix: dict[str, str] = {}
        self._prefix_by_rig: dict[str, str] = {}

    def register(self, prefix: str, rig: str) -> None:
        """Bind *prefix* to *rig*.  Re-registering the same pair is a no-op."""
        if not prefix or not rig:
            raise ValueError("prefix and rig must be non-empty")
        bound_rig = self._rig_by_prefix.get(prefix)
        if bound_rig is not None and bound_rig != rig:
            raise DuplicateError(f"prefix {prefix!r} already registered to rig {bound_rig!r}")
        bound_prefix = self._prefix_by_rig.get(rig)
        if bound_prefix is not None and bound_prefix != prefix:
            raise DuplicateError(f"rig {rig!r} already registered with prefix {bound_prefix!r}")
        self._rig_by_prefix[prefix] = rig
        self._prefix_by_rig[rig] = prefix

    def lookup_rig(self, prefix: str) -> str | None:
        return self._rig_by_prefix.get(prefix)

    def lookup_prefix(self, rig: str) -> str | None:
        return self._prefix_by_rig.get(rig)

    def prefixes(self) -> list[str]:
        return sorted(self._rig_by_prefix)

    def rigs(self) -> list[str]:
        return sorted(self._prefix_by_rig)

    def __contains__(self, prefix: object) -> bool:
        return prefix in self._rig_by_prefix

    def __len__(self) -> int:
        return len(self._rig_by_prefix)

    def __repr__(self) -> str:
        return f"PrefixRegistry({self._rig_by_prefix!r})"


_default = PrefixRegistry()


def default_registry() -> PrefixRegistry:
    """Return the process-wide fallback registry."""
    return _default


def set_default_registry(registry: PrefixRegistry) -> PrefixRegistry:
    """Install *registry* as the fallback and return the one it replaced.

    Callers that swap it for isolation restore the previous one themselves.
    """
    global _default
    previous, _default = _default, registry
    return previous


def _prefix_of(entry: object) -> str:
    if not isinstance(entry, dict):
        return ""
    prefix = entry.get("prefix")
    if not prefix and isinstance(entry.get("beads"), dict):
        prefix = entry["beads"].get("prefix")
    return prefix if isinstance(prefix, str) else ""


def load_registry(town_root: Path) -> PrefixRegistry:
    """Build a registry from ``<town>/mayor/rigs.json``.

    Expected shape::

        {"rigs": {"gastown": {"prefix": "gt"}, "beads": {"beads": {"prefix": "bd"}}}}

    A missing file yields an empty registry.  Rigs without a prefix are
    skipped.  Conflicting prefixes raise DuplicateError.
    """
    registry = PrefixRegistry()
    rigs_path = town_root / MAYOR_DIR / RIGS_FILE
    if not rigs_path.is_file():
        log.debug("rigs_file_missing", path=str(rigs_path))
        return registry

    try:
        data = json.loads(rigs_path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise RegistryError(f"cannot read {rigs_path}: {exc}") from exc

    rigs = data.get("rigs") if isinstance(data, dict) else None
    if not isinstance(rigs, dict):
        raise RegistryError(f"{rigs_path}: expected a 'rigs' object")

    for rig, entry in rigs.items():
        prefix = _prefix_of(entry)
        if not prefix:
            log.warning("rig_without_prefix", rig=rig)
            continue
        registry.register(prefix, rig)

    log.debug("registry_loaded", path=str(rigs_path), rigs=len(registry))
    return registry
