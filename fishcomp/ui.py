from __future__ import annotations

import logging
import os
import sys

from rich.console import Console
from rich.logging import RichHandler

TRACE_ENV_VAR = "FISHCOMP_TRACE"
LOGGER_NAMES = ("fishcomp", "input_handler", "interface")


def build_console(use_rich: bool) -> Console:
    return Console(file=sys.stderr, force_terminal=use_rich, stderr=True)


def should_show_trace() -> bool:
    """Check if trace mode is enabled via environment variable."""
    return os.getenv(TRACE_ENV_VAR, "").lower() in ("1", "true", "yes")


def setup_logging(trace: bool = False, console: Console | None = None) -> None:
    level = logging.DEBUG if trace or should_show_trace() else logging.WARNING
    handler = RichHandler(console=console or build_console(False), show_path=False, markup=False)
    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        logger.handlers[:] = [handler]
        logger.setLevel(level)
        logger.propagate = False
