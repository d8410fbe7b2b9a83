from __future__ import annotations


class FishCompletionError(Exception):
    """Base class for fishcomp errors."""


class FishNotFoundError(FishCompletionError):
    def __init__(self, program: str) -> None:
        super().__init__(f"Cannot find fish shell: {program!r} is not on PATH")
        self.program = program


class ConfigError(FishCompletionError):
    pass
