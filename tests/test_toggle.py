import pytest

from fishcomp import toggle as toggle_module
from fishcomp.errors import FishNotFoundError
from fishcomp.toggle import CompletionScope, disable, effective_handler, enable, toggle, toggle_session


def default_handler(text, state):
    return None


def fish_handler(text, state):
    return None


def custom_handler(text, state):
    return None


@pytest.fixture
def fish_on_path(monkeypatch):
    monkeypatch.setattr(toggle_module.shutil, "which", lambda name: f"/usr/bin/{name}")


@pytest.fixture
def fish_missing(monkeypatch):
    monkeypatch.setattr(toggle_module.shutil, "which", lambda name: None)


def test_scope_starts_disabled_with_default_handler():
    scope = CompletionScope("global", default_handler=default_handler)
    assert scope.state.active is False
    assert scope.handler is default_handler


def test_global_toggle_twice_restores_default(fish_on_path):
    scope = CompletionScope("global", default_handler=default_handler)

    assert toggle(scope, fish_handler) is True
    assert scope.handler is fish_handler
    assert scope.state.previous_handler is default_handler

    assert toggle(scope, fish_handler) is False
    assert scope.handler is default_handler
    assert scope.state.previous_handler is None


def test_disable_restores_previous_custom_handler(fish_on_path):
    scope = CompletionScope("global", default_handler=default_handler, handler=custom_handler)

    enable(scope, fish_handler)
    disable(scope)

    assert scope.handler is custom_handler


def test_disable_without_previous_uses_default(fish_on_path):
    scope = CompletionScope("global", default_handler=default_handler)
    enable(scope, fish_handler)
    scope.state.previous_handler = None

    disable(scope)

    assert scope.handler is default_handler


def test_enable_refused_when_fish_missing(fish_missing):
    scope = CompletionScope("global", default_handler=default_handler)

    with pytest.raises(FishNotFoundError) as excinfo:
        toggle(scope, fish_handler, "fish")

    assert excinfo.value.program == "fish"
    assert scope.state.active is False
    assert scope.handler is default_handler


def test_session_scope_overrides_and_inherits_global(fish_on_path):
    global_scope = CompletionScope("global", default_handler=default_handler)
    session = CompletionScope("main")

    assert effective_handler(session, global_scope) is default_handler

    toggle(session, fish_handler)
    assert effective_handler(session, global_scope) is fish_handler

    toggle(session, fish_handler)
    assert session.handler is None
    assert effective_handler(session, global_scope) is default_handler


def test_enable_and_disable_are_noops_in_target_state(fish_on_path):
    scope = CompletionScope("global", default_handler=default_handler)
    disable(scope)
    assert scope.handler is default_handler

    enable(scope, fish_handler)
    enable(scope, custom_handler)
    assert scope.handler is fish_handler
    assert scope.state.previous_handler is default_handler


def test_session_toggle_flips_observed_handler_under_global_fish(fish_on_path):
    global_scope = CompletionScope("global", default_handler=default_handler)
    session = CompletionScope("main")
    toggle(global_scope, fish_handler)

    observed = [effective_handler(session, global_scope) is fish_handler]
    for _ in range(3):
        assert toggle_session(session, global_scope, fish_handler) is not observed[-1]
        observed.append(effective_handler(session, global_scope) is fish_handler)

    assert observed == [True, False, True, False]
    assert session.handler is default_handler


def test_session_toggle_without_global_fish_falls_back_to_inheriting(fish_on_path):
    global_scope = CompletionScope("global", default_handler=default_handler)
    session = CompletionScope("main")

    assert toggle_session(session, global_scope, fish_handler) is True
    assert toggle_session(session, global_scope, fish_handler) is False
    assert session.handler is None
    assert effective_handler(session, global_scope) is default_handler


def test_session_toggle_refused_when_fish_missing(fish_missing):
    global_scope = CompletionScope("global", default_handler=default_handler)
    session = CompletionScope("main")

    with pytest.raises(FishNotFoundError):
        toggle_session(session, global_scope, fish_handler)

    assert session.handler is None
