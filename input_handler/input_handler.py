"""
Readline integration: history, line editing and tab completion.

Provides the built-in path completer, the readline completer that asks fish
(through :class:`fishcomp.bridge.FishBridge`) and the helpers that install
either one as the active readline completer.  Without readline the shell
still works, only without history and completion.
"""

import atexit
import glob
import logging
import os
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from fishcomp.bridge import CompletionResult, FishBridge

logger = logging.getLogger(__name__)

# Global flag to track readline availability
_readline_available = False

try:
    import readline

    _readline_available = True
except ImportError:
    # readline not available (Windows without pyreadline3)
    readline = None

_history_file: Optional[Path] = None


def path_completer(text: str, state: int) -> Optional[str]:
    """Built-in completer: file names matching ``text``."""
    try:
        if not text:
            text = "./"

        if text.startswith(("~", "/")):
            pattern = os.path.expanduser(text) + "*"
        else:
            pattern = text + "*"

        matches = []
        for path in glob.glob(pattern):
            if not text.startswith(("~", "/")):
                path = os.path.relpath(path)

            if os.path.isdir(path):
                path += "/"

            matches.append(path)

        matches.sort()

        return matches[state] if state < len(matches) else None

    except (OSError, ValueError, IndexError):
        return None


def filter_path_candidates(text: str, candidates: Sequence[str]) -> List[str]:
    """Apply file-name rules to path candidates.

    Matching is case-insensitive and ``~`` is expanded on both sides;
    directories get a trailing slash.  When nothing matches ``text`` the
    candidates are kept as they are, since fish also matches fuzzily.
    """
    expanded_text = os.path.expanduser(text).lower()
    matches = [c for c in candidates if os.path.expanduser(c).lower().startswith(expanded_text)]
    if not matches:
        matches = list(candidates)

    result = []
    for candidate in matches:
        if not candidate.endswith("/") and os.path.isdir(os.path.expanduser(candidate)):
            candidate += "/"
        result.append(candidate)
    return result


def _readline_line_source() -> str:
    """Text of the current line up to the cursor."""
    return readline.get_line_buffer()[: readline.get_endidx()]


class FishCompleter:
    """Readline completer ``(text, state)`` backed by fish.

    The whole line up to the cursor is one completion span; fish is asked
    once per span (state 0) and later states walk the cached matches.
    """

    def __init__(self, bridge: FishBridge, line_source: Optional[Callable[[], str]] = None) -> None:
        self.bridge = bridge
        self.line_source = line_source or _readline_line_source
        self.matches: List[str] = []
        self.last_result = CompletionResult()

    @property
    def descriptions(self) -> Dict[str, str]:
        return self.last_result.descriptions

    def _compute(self, text: str) -> List[str]:
        result = self.bridge.complete(self.line_source())
        self.last_result = result
        if result.is_path:
            return filter_path_candidates(text, result.candidates)
        return list(result.candidates)

    def __call__(self, text: str, state: int) -> Optional[str]:
        if state == 0:
            try:
                self.matches = self._compute(text)
            except (OSError, ValueError) as exc:
                # An exception raised inside a readline completer is swallowed
                # by readline itself; log it so it does not vanish.
                logger.debug("Completion failed: %s", exc)
                self.matches = []
        return self.matches[state] if state < len(self.matches) else None


def make_fish_completer(bridge: FishBridge, line_source: Optional[Callable[[], str]] = None) -> FishCompleter:
    return FishCompleter(bridge, line_source)


def setup_readline(history_file: Optional[Path] = None, history_length: int = 1000) -> bool:
    """Configure key bindings, delimiters and persistent history.

    Returns False when readline is not available.
    """
    global _history_file

    if not _readline_available:
        return False

    readline.set_history_length(history_length)

    # Check if we're using libedit (macOS default)
    if "libedit" in (getattr(readline, "__doc__", "") or "").lower():
        readline.parse_and_bind("bind ^I rl_complete")
    else:
        readline.parse_and_bind("tab: complete")
        readline.parse_and_bind("set editing-mode emacs")

    # Whole shell words are completed, so only whitespace delimits them
    readline.set_completer_delims(" \t\n")
    readline.set_completer(path_completer)

    if history_file is not None:
        _history_file = history_file
        try:
            history_file.parent.mkdir(parents=True, exist_ok=True)
            if history_file.exists():
                readline.read_history_file(str(history_file))
        except OSError as exc:
            logger.debug("Cannot read history file %s: %s", history_file, exc)
        atexit.register(cleanup_input_handler)

    return True


def install_handler(handler: Optional[Callable[[str, int], Optional[str]]]) -> None:
    """Make ``handler`` the active readline completer."""
    if _readline_available:
        readline.set_completer(handler)


def set_display_hook(hook: Optional[Callable[[str, Sequence[str], int], None]]) -> None:
    if _readline_available and hasattr(readline, "set_completion_display_matches_hook"):
        readline.set_completion_display_matches_hook(hook)


def get_line_buffer() -> str:
    if not _readline_available:
        return ""
    return readline.get_line_buffer()


def enhanced_input(prompt: str = "") -> str:
    """Get user input. Uses readline automatically if available."""
    return input(prompt)


def cleanup_input_handler() -> None:
    """Save history to the configured history file."""
    if _readline_available and _history_file is not None:
        try:
            readline.write_history_file(str(_history_file))
        except OSError as exc:
            logger.debug("Cannot save history file %s: %s", _history_file, exc)


def is_readline_available() -> bool:
    """Check if readline is available."""
    return _readline_available
