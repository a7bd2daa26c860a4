"""Settings fixtures shared across the doctor tests."""
from __future__ import annotations

import copy

VALID_SETTINGS = {
    "enabledPlugins": ["plugin1"],
    "hooks": {
        "SessionStart": [
            {
                "matcher": "**",
                "hooks": [
                    {"type": "command", "command": "export PATH=/usr/local/bin:$PATH"},
                    {"type": "command", "command": "gt nudge deacon session-started"},
                ],
            }
        ],
        "Stop": [
            {
                "matcher": "**",
                "hooks": [
                    {"type": "command", "command": "gt costs record --session $CLAUDE_SESSION_ID"},
                ],
            }
        ],
    },
}


def _drop_command(settings: dict, needle: str) -> None:
    entry = settings["hooks"]["SessionStart"][0]
    entry["hooks"] = [h for h in entry["hooks"] if needle not in h["command"]]


def build_settings(*missing: str) -> dict:
    """Valid settings with the named pieces removed.

    Accepts "enabledPlugins", "hooks", "PATH", "deacon-nudge", "Stop".
    """
    settings = copy.deepcopy(VALID_SETTINGS)
    for piece in missing:
        if piece in ("enabledPlugins", "hooks"):
            del settings[piece]
        elif piece == "PATH":
            _drop_command(settings, "PATH=")
        elif piece == "deacon-nudge":
            _drop_command(settings, "gt nudge deacon")
        elif piece == "Stop":
            del settings["hooks"]["Stop"]
        else:
            raise ValueError(piece)
    return settings
