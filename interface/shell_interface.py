"""Interactive shell with fish-powered tab completion.

This module provides a small shell-like prompt where:
- Commands are executed through the system shell
- Tab completion comes from the built-in path completer, or from fish once
  fish completion is toggled on for this session or globally
- fish-completion-mode / global-fish-completion-mode flip the two scopes
- Execution traces are shown only when FISHCOMP_TRACE is set
"""

import logging
import os
import subprocess
import sys
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from rich.console import Console
from rich.text import Text

from fishcomp.bash_backend import BashCompletionBackend
from fishcomp.bridge import FishBridge
from fishcomp.config import AppConfig, dump_config, get_history_file
from fishcomp.errors import FishNotFoundError
from fishcomp.toggle import CompletionScope, effective_handler, toggle, toggle_session
from fishcomp.utils import BuiltinCommand, parse_builtin_command
from input_handler.input_handler import (
    FishCompleter,
    cleanup_input_handler,
    enhanced_input,
    get_line_buffer,
    install_handler,
    make_fish_completer,
    path_completer,
    set_display_hook,
    setup_readline,
)

logger = logging.getLogger(__name__)

MISSING_FISH_MESSAGE = "Cannot find fish shell."


@dataclass
class ShellSession:
    name: str
    config: AppConfig
    bridge: FishBridge
    completer: FishCompleter
    global_scope: CompletionScope
    scope: CompletionScope
    console: Console

    @property
    def fish_active(self) -> bool:
        handler = effective_handler(self.scope, self.global_scope)
        return handler is self.completer


def build_bridge(config: AppConfig) -> FishBridge:
    fallback = None
    if config.completion.fallback_on_bash:
        fallback = BashCompletionBackend(config.bash.program, config.bash.completion_script)
    return FishBridge(
        program=config.completion.fish_program,
        fallback=fallback,
        wrapper_commands=config.completion.wrapper_commands,
    )


def create_global_scope() -> CompletionScope:
    return CompletionScope("global", default_handler=path_completer)


def create_session(
    config: AppConfig,
    console: Console,
    global_scope: Optional[CompletionScope] = None,
    name: str = "main",
    bridge: Optional[FishBridge] = None,
) -> ShellSession:
    bridge = bridge or build_bridge(config)
    return ShellSession(
        name=name,
        config=config,
        bridge=bridge,
        completer=make_fish_completer(bridge),
        global_scope=global_scope or create_global_scope(),
        # A session without its own handler inherits the global one
        scope=CompletionScope(name, default_handler=None),
        console=console,
    )


def _run_toggle(session: ShellSession, flip: Callable[[], bool], label: str) -> Optional[bool]:
    try:
        active = flip()
    except FishNotFoundError as exc:
        logger.debug("%s", exc)
        if not session.config.completion.inhibit_missing_fish_warning:
            session.console.print(MISSING_FISH_MESSAGE)
        return None
    session.console.print(f"{label} {'enabled' if active else 'disabled'}")
    return active


def toggle_session_completion(session: ShellSession) -> Optional[bool]:
    """Flip fish completion for this session; None when fish is missing."""
    program = session.config.completion.fish_program
    return _run_toggle(
        session,
        lambda: toggle_session(session.scope, session.global_scope, session.completer, program),
        f"fish completion for session {session.name!r}",
    )


def toggle_global_completion(session: ShellSession) -> Optional[bool]:
    """Flip the global default; None when fish is missing."""
    program = session.config.completion.fish_program
    return _run_toggle(
        session,
        lambda: toggle(session.global_scope, session.completer, program),
        "global fish completion",
    )


def activate_session(session: ShellSession) -> None:
    """Install the session's effective completer into readline."""
    install_handler(effective_handler(session.scope, session.global_scope))


def get_shell_prompt(session: ShellSession) -> str:
    cwd = os.getcwd()
    home = os.path.expanduser("~")
    if cwd == home or cwd.startswith(home + os.sep):
        cwd = "~" + cwd[len(home):]
    marker = "fish " if session.fish_active else ""
    return f"{marker}{cwd} $ "


def make_display_hook(session: ShellSession):
    """Readline hook listing matches together with fish's descriptions."""

    def display_matches(substitution: str, matches: Sequence[str], longest_match_length: int) -> None:
        descriptions = session.completer.descriptions if session.fish_active else {}
        print()
        for match in matches:
            description = descriptions.get(match, "")
            if description:
                session.console.print(Text.assemble(match.ljust(longest_match_length), "  ", (description, "dim")))
            else:
                session.console.print(match, highlight=False, markup=False)
        print(get_shell_prompt(session) + get_line_buffer(), end="", flush=True)

    return display_matches


def execute_shell_command(command: str) -> Tuple[int, str, str]:
    """Execute shell command and return (exit_code, stdout, stderr)."""
    raw = command.strip()
    command_parts = raw.split()
    if not command_parts:
        return 0, "", ""

    cmd = command_parts[0]

    # 'cd' must change the directory of this process
    if cmd == "cd":
        if len(command_parts) == 1:
            target_dir = os.path.expanduser("~")
        else:
            target_dir = os.path.expanduser(command_parts[1])
        try:
            os.chdir(target_dir)
            return 0, "", ""
        except FileNotFoundError:
            return 1, "", f"cd: {target_dir}: No such file or directory"
        except NotADirectoryError:
            return 1, "", f"cd: {target_dir}: Not a directory"
        except PermissionError:
            return 1, "", f"cd: {target_dir}: Permission denied"

    if cmd == "pwd":
        return 0, os.getcwd() + "\n", ""

    try:
        result = subprocess.run(raw, shell=True, capture_output=True, text=True)
    except OSError as exc:
        return 1, "", str(exc)
    return result.returncode, result.stdout, result.stderr


def handle_builtin(session: ShellSession, command: BuiltinCommand) -> bool:
    """Run a builtin; returns False when the shell should exit."""
    if command is BuiltinCommand.EXIT:
        return False
    if command is BuiltinCommand.TOGGLE_SESSION:
        toggle_session_completion(session)
    elif command is BuiltinCommand.TOGGLE_GLOBAL:
        toggle_global_completion(session)
    elif command is BuiltinCommand.SHOW_CONFIG:
        source = session.config.path or "(defaults)"
        session.console.print(f"path: {source}\n", markup=False)
        session.console.print(dump_config(session.config), markup=False, highlight=False)
    return True


def shell_main(config: AppConfig, console: Console) -> int:
    """Main shell loop."""
    readline_ready = setup_readline(get_history_file(config))
    if readline_ready:
        logger.debug("Readline: enabled, history and tab completion available")
    else:
        logger.debug("Readline: not available (basic input mode)")

    session = create_session(config, console)

    if config.completion.global_mode:
        toggle_global_completion(session)

    if readline_ready and config.ui.show_descriptions:
        set_display_hook(make_display_hook(session))

    try:
        while True:
            try:
                activate_session(session)
                user_input = enhanced_input(get_shell_prompt(session)).strip()

                if not user_input:
                    continue

                builtin, _ = parse_builtin_command(user_input)
                if builtin is not None:
                    if not handle_builtin(session, builtin):
                        break
                    continue

                exit_code, stdout, stderr = execute_shell_command(user_input)
                if stdout:
                    print(stdout, end="" if stdout.endswith("\n") else "\n")
                if stderr:
                    print(stderr, end="" if stderr.endswith("\n") else "\n", file=sys.stderr)
                logger.debug("Command exited with %s", exit_code)

            except KeyboardInterrupt:
                print()
                continue
            except EOFError:
                print()
                break
    finally:
        cleanup_input_handler()

    return 0

