from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from fishcomp import __version__
from fishcomp.config import (
    CONFIG_ENV_VAR,
    AppConfig,
    ConfigError,
    find_config_path,
    initialize_default_config,
    load_app_config,
)
from fishcomp.ui import build_console, setup_logging
from interface.shell_interface import build_bridge, shell_main


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="fishcomp",
        description="Tab completion for a readline shell, powered by fish",
        add_help=True,
    )
    parser.add_argument("--config", help="Path to config TOML file")
    parser.add_argument("--trace", action="store_true", help="Log completion queries to stderr")
    parser.add_argument("--version", action="store_true", help="Show version and exit")

    subparsers = parser.add_subparsers(dest="command")

    complete_parser = subparsers.add_parser("complete", help="Print completions for a partial command line")
    complete_parser.add_argument("prompt", help='Partial command line, e.g. "git che"')
    complete_parser.add_argument("--desc", action="store_true", help="Print fish descriptions after a tab")

    subparsers.add_parser("shell", help="Start the interactive shell (default)")

    init_parser = subparsers.add_parser("init-config", help="Write a default config file")
    init_parser.add_argument("path", nargs="?", help="Target path (default: $FISHCOMP_CONFIG or ~/.config/fishcomp/config.toml)")

    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> AppConfig:
    cli_path = Path(args.config).expanduser() if args.config else None
    if cli_path and not cli_path.is_file():
        raise ConfigError(f"Config file not found: {cli_path}")
    return load_app_config(cli_path or find_config_path())


def write_line(text: str) -> None:
    """Print ``text``, passing undecodable file-name bytes through unchanged."""
    buffer = getattr(sys.stdout, "buffer", None)
    if buffer is None:
        print(text.encode("utf-8", "surrogateescape").decode("utf-8", "replace"))
        return
    sys.stdout.flush()
    buffer.write(text.encode("utf-8", "surrogateescape") + b"\n")
    buffer.flush()


def run_complete(config: AppConfig, prompt: str, with_desc: bool = False) -> int:
    bridge = build_bridge(config)
    if not bridge.available and bridge.fallback is None:
        print("completion unavailable: fish not found", file=sys.stderr)
        return 1

    result = bridge.complete(prompt)
    for candidate in result.candidates:
        description = result.descriptions.get(candidate, "")
        if with_desc and description:
            write_line(f"{candidate}\t{description}")
        else:
            write_line(candidate)
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(sys.argv[1:] if argv is None else argv)

    if args.version:
        print(f"fishcomp {__version__}")
        return 0

    if args.command == "init-config":
        created = initialize_default_config(args.path or os.getenv(CONFIG_ENV_VAR))
        print(f"Initialized default config at {created}", file=sys.stderr)
        return 0

    try:
        config = load_config(args)
    except ConfigError as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return 1

    console = build_console(config.ui.rich)
    setup_logging(args.trace, console)

    if args.command == "complete":
        return run_complete(config, args.prompt, args.desc)

    if os.getenv(CONFIG_ENV_VAR) and config.path is None:
        console.print(f"{CONFIG_ENV_VAR} points to a missing file, using defaults")
    return shell_main(config, console)


if __name__ == "__main__":
    sys.exit(main())
