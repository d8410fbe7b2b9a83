"""Completion bridge: ask fish for completions of a partial command line.

The bridge runs ``fish -c "complete -C'<query>'"``, which prints one
candidate per line, optionally followed by a tab and a description.  When
fish has nothing to offer and a fallback backend (bash-completion) is
available, the fallback answers instead.

Everything here is synchronous: one blocking subprocess per request, no
timeout.  Hosts with an event loop use :meth:`FishBridge.complete_async`.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import subprocess
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from fishcomp.query import build_complete_command, effective_query

logger = logging.getLogger(__name__)


class CompletionBackend(Protocol):
    """Secondary completion provider consulted when fish returns nothing."""

    @property
    def available(self) -> bool: ...

    def dynamic_complete(self, line: str, start: int, pos: int) -> Sequence: ...


@dataclass
class CompletionResult:
    candidates: List[str] = field(default_factory=list)
    is_path: bool = False
    descriptions: Dict[str, str] = field(default_factory=dict)
    source: str = "none"

    def __bool__(self) -> bool:
        return bool(self.candidates)


def parse_completion_output(output: str) -> List[Tuple[str, str]]:
    """Turn fish's ``complete -C`` output into (candidate, description) pairs."""
    pairs: List[Tuple[str, str]] = []
    for line in output.split("\n"):
        if not line:
            continue
        candidate, _, description = line.partition("\t")
        pairs.append((candidate, description))
    return pairs


def looks_like_paths(candidates: Sequence[str]) -> bool:
    """True when the first candidate carries a directory component."""
    return bool(candidates) and os.path.dirname(candidates[0]) != ""


class FishBridge:
    def __init__(
        self,
        program: str = "fish",
        fallback: Optional[CompletionBackend] = None,
        wrapper_commands: Iterable[str] = ("sudo", "env"),
    ) -> None:
        self.program = program
        self.fallback = fallback
        self.wrapper_commands = tuple(wrapper_commands)
        self._warned_unavailable = False

    @property
    def available(self) -> bool:
        return shutil.which(self.program) is not None

    def query_for(self, raw_prompt: str) -> str:
        return effective_query(raw_prompt, self.wrapper_commands)

    def _run_fish(self, query: str) -> str:
        argv = [self.program, "-c", build_complete_command(query)]
        logger.debug("Running %s", argv)
        try:
            result = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                errors="surrogateescape",
                check=False,
            )
        except FileNotFoundError:
            if not self._warned_unavailable:
                logger.warning("completion unavailable: %s not found", self.program)
                self._warned_unavailable = True
            return ""
        except OSError as exc:
            logger.debug("fish failed to start: %s", exc)
            return ""

        if result.returncode != 0:
            logger.debug("fish exited with %s, ignoring its output", result.returncode)
            return ""
        return result.stdout or ""

    def list_completions_with_desc(self, raw_prompt: str) -> List[Tuple[str, str]]:
        return parse_completion_output(self._run_fish(self.query_for(raw_prompt)))

    def list_completions(self, raw_prompt: str) -> List[str]:
        return [candidate for candidate, _ in self.list_completions_with_desc(raw_prompt)]

    def _complete_with_fallback(self, raw_prompt: str) -> Optional[List[str]]:
        backend = self.fallback
        if backend is None or not backend.available:
            return None
        try:
            table = backend.dynamic_complete(raw_prompt, 0, len(raw_prompt))
        except (OSError, ValueError, subprocess.SubprocessError) as exc:
            logger.debug("Fallback completion failed: %s", exc)
            return None
        if not table or len(table) < 3:
            return None
        return list(table[2])

    def complete(self, raw_prompt: str) -> CompletionResult:
        """Complete ``raw_prompt``, the text from the start of the command up to the cursor."""
        pairs = self.list_completions_with_desc(raw_prompt)
        candidates = [candidate for candidate, _ in pairs]

        if not candidates:
            fallback_candidates = self._complete_with_fallback(raw_prompt)
            if fallback_candidates is not None:
                logger.debug("fish had no candidates, fallback returned %d", len(fallback_candidates))
                return CompletionResult(candidates=fallback_candidates, source="bash")
            return CompletionResult()

        descriptions = {candidate: description for candidate, description in pairs if description}
        return CompletionResult(
            candidates=candidates,
            is_path=looks_like_paths(candidates),
            descriptions=descriptions,
            source="fish",
        )

    async def complete_async(self, raw_prompt: str) -> CompletionResult:
        return await asyncio.to_thread(self.complete, raw_prompt)
