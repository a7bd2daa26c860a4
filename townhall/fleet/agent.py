"""AgentSession data model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from townhall.fleet.topology import AgentType


@dataclass
class AgentSession:
    """One running fleet member, as enumerated from tmux."""

    name: str                    # raw session name, e.g. "gt-crew-max", "hq-mayor"
    type: AgentType
    rig: str = ""                # empty for mayor/deacon
    agent_name: str = ""         # crew/polecat only
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.type.town_level:
            if self.rig or self.agent_name:
                raise ValueError(f"{self.type.value} session {self.name!r} is not rig-scoped")
            return
        if not self.rig:
            raise ValueError(f"{self.type.value} session {self.name!r} needs a rig")
        if self.type.named != bool(self.agent_name):
            raise ValueError(
                f"{self.type.value} session {self.name!r}: agent name "
                f"{'required' if self.type.named else 'not allowed'}"
            )
