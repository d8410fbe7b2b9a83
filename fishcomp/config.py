"""
fishcomp configuration management

Locates and loads the TOML configuration file that controls which fish
executable is queried, whether bash-completion is used as a fallback and how
the interactive shell presents completions.
"""

from __future__ import annotations

import json
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from fishcomp.errors import ConfigError

CONFIG_ENV_VAR = "FISHCOMP_CONFIG"

DEFAULT_CONFIG_PATHS = [
    "~/.config/fishcomp/config.toml",
    "~/.fishcomp/config.toml",
]

DEFAULT_WRAPPER_COMMANDS: Tuple[str, ...] = ("sudo", "env")

DEFAULT_BASH_COMPLETION_SCRIPT = "/usr/share/bash-completion/bash_completion"

DEFAULT_CONFIG_TEMPLATE = """# fishcomp configuration

[completion]
# Name or path of the fish executable used for completion queries.
fish_program = "fish"
# Ask bash-completion when fish has no candidates.
fallback_on_bash = false
# Do not print a message when toggling fails because fish is missing.
inhibit_missing_fish_warning = false
# Enable fish completion for every new shell session.
global_mode = false
# Commands whose first argument is another command (completion skips them).
wrapper_commands = ["sudo", "env"]

[bash]
program = "bash"
completion_script = "/usr/share/bash-completion/bash_completion"

[ui]
rich = true
show_descriptions = true
# Empty means <config dir>/history.txt
history_file = ""
"""


@dataclass
class CompletionConfig:
    fish_program: str = "fish"
    fallback_on_bash: bool = False
    inhibit_missing_fish_warning: bool = False
    global_mode: bool = False
    wrapper_commands: Tuple[str, ...] = DEFAULT_WRAPPER_COMMANDS


@dataclass
class BashConfig:
    program: str = "bash"
    completion_script: str = DEFAULT_BASH_COMPLETION_SCRIPT


@dataclass
class UIConfig:
    rich: bool = True
    show_descriptions: bool = True
    history_file: Optional[Path] = None


@dataclass
class AppConfig:
    completion: CompletionConfig = field(default_factory=CompletionConfig)
    bash: BashConfig = field(default_factory=BashConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    path: Optional[Path] = None


def get_config_dir(config_path: Optional[Path] = None) -> Path:
    """Directory holding the config file and the shell history.

    Uses the directory of the active config file when there is one,
    otherwise ~/.config/fishcomp.
    """
    if config_path is not None:
        return config_path.expanduser().resolve().parent
    return Path(DEFAULT_CONFIG_PATHS[0]).expanduser().parent


def get_history_file(config: AppConfig) -> Path:
    if config.ui.history_file is not None:
        return config.ui.history_file
    return get_config_dir(config.path) / "history.txt"


def find_config_path(cli_path: Optional[str] = None) -> Optional[Path]:
    """Return the first existing config file: CLI path, $FISHCOMP_CONFIG, defaults."""
    candidates: List[str] = []
    if cli_path:
        candidates.append(cli_path)
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(env_path)
    candidates.extend(DEFAULT_CONFIG_PATHS)

    for candidate in candidates:
        path = Path(candidate).expanduser()
        if path.is_file():
            return path.resolve()
    return None


def initialize_default_config(target: Optional[str] = None) -> Path:
    """Write the default config file and return its resolved path."""
    path = Path(target or DEFAULT_CONFIG_PATHS[0]).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        path.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    return path.resolve()


def _expect_bool(section: str, key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{section}.{key} must be true or false, got {value!r}")
    return value


def _expect_str(section: str, key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"{section}.{key} must be a string, got {value!r}")
    return value


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name, {})
    if not isinstance(value, dict):
        raise ConfigError(f"[{name}] must be a table")
    return value


def _parse_completion(data: Dict[str, Any]) -> CompletionConfig:
    defaults = CompletionConfig()
    fish_program = _expect_str("completion", "fish_program", data.get("fish_program", defaults.fish_program))
    if not fish_program.strip():
        raise ConfigError("completion.fish_program must not be empty")

    wrappers = data.get("wrapper_commands", list(defaults.wrapper_commands))
    if not isinstance(wrappers, list) or not all(isinstance(item, str) for item in wrappers):
        raise ConfigError("completion.wrapper_commands must be a list of strings")

    return CompletionConfig(
        fish_program=fish_program,
        fallback_on_bash=_expect_bool(
            "completion", "fallback_on_bash", data.get("fallback_on_bash", defaults.fallback_on_bash)
        ),
        inhibit_missing_fish_warning=_expect_bool(
            "completion",
            "inhibit_missing_fish_warning",
            data.get("inhibit_missing_fish_warning", defaults.inhibit_missing_fish_warning),
        ),
        global_mode=_expect_bool("completion", "global_mode", data.get("global_mode", defaults.global_mode)),
        wrapper_commands=tuple(wrappers),
    )


def _parse_bash(data: Dict[str, Any]) -> BashConfig:
    defaults = BashConfig()
    return BashConfig(
        program=_expect_str("bash", "program", data.get("program", defaults.program)),
        completion_script=_expect_str(
            "bash", "completion_script", data.get("completion_script", defaults.completion_script)
        ),
    )


def _parse_ui(data: Dict[str, Any]) -> UIConfig:
    defaults = UIConfig()
    history_raw = _expect_str("ui", "history_file", data.get("history_file", ""))
    return UIConfig(
        rich=_expect_bool("ui", "rich", data.get("rich", defaults.rich)),
        show_descriptions=_expect_bool(
            "ui", "show_descriptions", data.get("show_descriptions", defaults.show_descriptions)
        ),
        history_file=Path(history_raw).expanduser() if history_raw else None,
    )


def load_app_config(path: Optional[Path]) -> AppConfig:
    """Load config from ``path``; defaults when ``path`` is None."""
    if path is None:
        return AppConfig()

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read config {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    return AppConfig(
        completion=_parse_completion(_section(data, "completion")),
        bash=_parse_bash(_section(data, "bash")),
        ui=_parse_ui(_section(data, "ui")),
        path=path,
    )


def dump_config(config: AppConfig) -> str:
    """Render the effective configuration as TOML text for display."""
    wrappers = ", ".join(json.dumps(name) for name in config.completion.wrapper_commands)
    history = str(config.ui.history_file) if config.ui.history_file else ""
    lines = [
        "[completion]",
        f"fish_program = {json.dumps(config.completion.fish_program)}",
        f"fallback_on_bash = {str(config.completion.fallback_on_bash).lower()}",
        f"inhibit_missing_fish_warning = {str(config.completion.inhibit_missing_fish_warning).lower()}",
        f"global_mode = {str(config.completion.global_mode).lower()}",
        f"wrapper_commands = [{wrappers}]",
        "",
        "[bash]",
        f"program = {json.dumps(config.bash.program)}",
        f"completion_script = {json.dumps(str(config.bash.completion_script))}",
        "",
        "[ui]",
        f"rich = {str(config.ui.rich).lower()}",
        f"show_descriptions = {str(config.ui.show_descriptions).lower()}",
        f"history_file = {json.dumps(history)}",
    ]
    return "\n".join(lines) + "\n"
