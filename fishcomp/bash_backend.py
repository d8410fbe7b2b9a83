"""bash-completion fallback backend.

Runs a non-interactive bash that loads bash-completion, looks up the
completion function registered for the command being typed and prints the
resulting COMPREPLY.  The words of the line are passed as positional
arguments, so nothing the user typed is ever evaluated by bash.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from typing import List, Tuple

from fishcomp.config import DEFAULT_BASH_COMPLETION_SCRIPT

logger = logging.getLogger(__name__)

# $1 completion script, $2 COMP_LINE, $3 COMP_CWORD, $4.. COMP_WORDS
BASH_DRIVER = r"""
__fc_script=$1
COMP_LINE=$2
COMP_POINT=${#COMP_LINE}
COMP_CWORD=$3
shift 3
COMP_WORDS=("$@")
COMP_TYPE=9
COMP_KEY=9
__fc_cmd=${COMP_WORDS[0]}
__fc_cur=${COMP_WORDS[COMP_CWORD]}
__fc_prev=
if [ "$COMP_CWORD" -gt 0 ]; then
  __fc_prev=${COMP_WORDS[COMP_CWORD-1]}
fi
if [ -f "$__fc_script" ]; then
  . "$__fc_script" >/dev/null 2>&1
fi
if [ "$COMP_CWORD" -eq 0 ]; then
  compgen -c -- "$__fc_cur" | sort -u
  exit 0
fi
__fc_spec=$(complete -p -- "$__fc_cmd" 2>/dev/null)
if [ -z "$__fc_spec" ] && declare -F _completion_loader >/dev/null 2>&1; then
  _completion_loader "$__fc_cmd" >/dev/null 2>&1
  __fc_spec=$(complete -p -- "$__fc_cmd" 2>/dev/null)
fi
__fc_func=$(printf '%s\n' "$__fc_spec" | sed -n 's/.*-F \([^ ]*\).*/\1/p')
if [ -n "$__fc_func" ]; then
  COMPREPLY=()
  "$__fc_func" "$__fc_cmd" "$__fc_cur" "$__fc_prev" >/dev/null 2>&1
  if [ "${#COMPREPLY[@]}" -gt 0 ]; then
    printf '%s\n' "${COMPREPLY[@]}"
  fi
else
  compgen -f -- "$__fc_cur"
fi
"""


def split_words(line: str) -> Tuple[List[str], int]:
    """Return (COMP_WORDS, COMP_CWORD) for ``line``.

    Trailing whitespace starts a new, empty word.
    """
    words = line.split()
    if not words or re.search(r"\s$", line):
        words.append("")
    return words, len(words) - 1


class BashCompletionBackend:
    def __init__(self, program: str = "bash", completion_script: str = DEFAULT_BASH_COMPLETION_SCRIPT) -> None:
        self.program = program
        self.completion_script = completion_script

    @property
    def available(self) -> bool:
        return shutil.which(self.program) is not None

    def candidates(self, line: str) -> List[str]:
        words, cword = split_words(line)
        argv = [
            self.program,
            "--noprofile",
            "--norc",
            "-c",
            BASH_DRIVER,
            "bash",
            self.completion_script,
            line,
            str(cword),
            *words,
        ]
        try:
            result = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                errors="surrogateescape",
                check=False,
            )
        except OSError as exc:
            logger.debug("bash completion failed to start: %s", exc)
            return []
        if result.returncode != 0:
            logger.debug("bash completion exited with %s", result.returncode)
            return []

        seen = set()
        candidates: List[str] = []
        for candidate in (result.stdout or "").split("\n"):
            if candidate and candidate not in seen:
                seen.add(candidate)
                candidates.append(candidate)
        return candidates

    def dynamic_complete(self, line: str, start: int, pos: int) -> Tuple[int, int, List[str]]:
        """Complete ``line[start:pos]``; returns (start, pos, candidates)."""
        return start, pos, self.candidates(line[start:pos])
