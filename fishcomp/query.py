from __future__ import annotations

import re
from typing import Iterable, List

_SEPARATORS = re.compile(r"[ \t\n\r\f\v]+")


def split_prompt(raw_prompt: str) -> List[str]:
    """Split a prompt on whitespace, dropping leading empty tokens only.

    A trailing separator yields a trailing empty token so that "ls " asks
    for a new argument instead of completing "ls".
    """
    tokens = _SEPARATORS.split(raw_prompt)
    while tokens and tokens[0] == "":
        tokens.pop(0)
    return tokens


def _is_wrapper_argument(token: str) -> bool:
    return token.startswith("-") or "=" in token


def effective_query(raw_prompt: str, wrapper_commands: Iterable[str] = ("sudo", "env")) -> str:
    """Return the text fish should complete for ``raw_prompt``.

    fish does not complete the command wrapped by sudo/env, so the wrapper,
    its flags and its VAR=value assignments are stripped and the remaining
    tokens are joined with single spaces.
    """
    tokens = split_prompt(raw_prompt)
    if not tokens or tokens[0] not in set(wrapper_commands):
        return raw_prompt

    tokens = tokens[1:]
    while tokens and _is_wrapper_argument(tokens[0]):
        tokens.pop(0)
    return " ".join(tokens)


def quote_for_fish(text: str) -> str:
    """Single-quote ``text`` for fish; only \\ and ' are special inside."""
    return "'" + text.replace("\\", "\\\\").replace("'", "\\'") + "'"


def build_complete_command(query: str) -> str:
    return f"complete -C{quote_for_fish(query)}"
