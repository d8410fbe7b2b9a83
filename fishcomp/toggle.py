"""Install and remove the fish completer in a completion scope.

A scope is a slot holding the completion handler the host should use.  The
global scope holds the process-wide default; each shell session has its own
scope whose handler, when set, overrides the global one.  Toggling a scope
is a plain flip between DISABLED and ENABLED.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from typing import Callable, Optional

from fishcomp.errors import FishNotFoundError

logger = logging.getLogger(__name__)

Handler = Callable[[str, int], Optional[str]]


@dataclass
class ToggleState:
    active: bool = False
    previous_handler: Optional[Handler] = None


@dataclass
class CompletionScope:
    name: str
    default_handler: Optional[Handler] = None
    handler: Optional[Handler] = None
    state: ToggleState = field(default_factory=ToggleState)

    def __post_init__(self) -> None:
        if self.handler is None:
            self.handler = self.default_handler


def effective_handler(session: CompletionScope, global_scope: CompletionScope) -> Optional[Handler]:
    """Handler the host should install for ``session``."""
    if session.handler is not None:
        return session.handler
    return global_scope.handler


def enable(scope: CompletionScope, handler: Handler, program: str = "fish") -> None:
    if scope.state.active:
        return
    if shutil.which(program) is None:
        raise FishNotFoundError(program)
    scope.state.previous_handler = scope.handler
    scope.handler = handler
    scope.state.active = True
    logger.debug("fish completion enabled for %s scope", scope.name)


def disable(scope: CompletionScope) -> None:
    if not scope.state.active:
        return
    previous = scope.state.previous_handler
    scope.handler = previous if previous is not None else scope.default_handler
    scope.state.previous_handler = None
    scope.state.active = False
    logger.debug("fish completion disabled for %s scope", scope.name)


def toggle(scope: CompletionScope, handler: Handler, program: str = "fish") -> bool:
    """Flip ``scope`` and return whether fish completion is now active.

    Raises FishNotFoundError, leaving the scope untouched, when enabling
    and ``program`` is not on PATH.
    """
    if scope.state.active:
        disable(scope)
    else:
        enable(scope, handler, program)
    return scope.state.active


def toggle_session(
    session: CompletionScope,
    global_scope: CompletionScope,
    handler: Handler,
    program: str = "fish",
) -> bool:
    """Flip whether ``session`` actually completes with ``handler``.

    A session that inherits fish from the global scope is switched off by
    pinning the handler the global scope had before fish.
    """
    if effective_handler(session, global_scope) is not handler:
        enable(session, handler, program)
        return True

    disable(session)
    if effective_handler(session, global_scope) is handler:
        session.handler = global_scope.state.previous_handler or global_scope.default_handler
        logger.debug("fish completion pinned off for %s scope", session.name)
    return False
