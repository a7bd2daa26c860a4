"""Doctor check framework: context, results, and failure types."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path

from townhall.common.constants import SKIP_DIRS


class CheckStatus(str, enum.Enum):
    OK = "ok"
    ERROR = "error"


@dataclass
class CheckContext:
    """Inputs shared by every check in one doctor run."""

    town_root: Path
    skip_dirs: frozenset[str] = SKIP_DIRS
    log_dir: Path | None = None   # JSON audit log of fixes when set


@dataclass
class CheckResult:
    name: str
    status: CheckStatus
    message: str
    details: list[str] = field(default_factory=list)
    fix_hint: str = ""

    @property
    def ok(self) -> bool:
        return self.status is CheckStatus.OK

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "details": self.details,
            "fix_hint": self.fix_hint,
        }


class ScanError(Exception):
    """The scan could not complete (e.g. an unreadable directory)."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"cannot scan {path}: {cause.strerror or cause}")
        self.path = path
        self.cause = cause


class FixError(Exception):
    """Some files could not be removed; the rest were."""

    def __init__(
        self,
        failures: list[tuple[Path, OSError]],
        removed: list[Path] | None = None,
    ) -> None:
        noun = "file" if len(failures) == 1 else "files"
        super().__init__(f"could not remove {len(failures)} {noun}")
        self.failures = failures
        self.removed = removed or []
