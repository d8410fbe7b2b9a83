"""Bridge between fish's tab completion engine and a readline shell."""

from fishcomp.bridge import CompletionResult, FishBridge
from fishcomp.errors import ConfigError, FishCompletionError, FishNotFoundError

__version__ = "0.2.0"

__all__ = [
    "CompletionResult",
    "ConfigError",
    "FishBridge",
    "FishCompletionError",
    "FishNotFoundError",
    "__version__",
]
