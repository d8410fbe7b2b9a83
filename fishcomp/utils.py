from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple


class BuiltinCommand(str, Enum):
    TOGGLE_SESSION = "fish-completion-mode"
    TOGGLE_GLOBAL = "global-fish-completion-mode"
    SHOW_CONFIG = "show-config"
    EXIT = "exit"


_ALIASES = {
    "fish_completion_mode": BuiltinCommand.TOGGLE_SESSION,
    "global_fish_completion_mode": BuiltinCommand.TOGGLE_GLOBAL,
    "show_config": BuiltinCommand.SHOW_CONFIG,
    "quit": BuiltinCommand.EXIT,
    "logout": BuiltinCommand.EXIT,
}


def parse_builtin_command(text: str | None) -> Tuple[Optional[BuiltinCommand], str]:
    """Split ``text`` into a builtin command and the rest of the line.

    Returns (None, "") when the line is not a builtin.
    """
    if not text:
        return None, ""
    head, _, rest = text.strip().partition(" ")
    name = head.lower()
    try:
        return BuiltinCommand(name), rest.strip()
    except ValueError:
        pass
    command = _ALIASES.get(name)
    if command is None:
        return None, ""
    return command, rest.strip()
