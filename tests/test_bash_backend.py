from types import SimpleNamespace

from fishcomp import bash_backend as backend_module
from fishcomp.bash_backend import BashCompletionBackend, split_words


def test_split_words_tracks_current_word():
    assert split_words("git che") == (["git", "che"], 1)
    assert split_words("git ") == (["git", ""], 1)
    assert split_words("") == ([""], 0)
    assert split_words("ls") == (["ls"], 0)


def test_candidates_passes_words_as_arguments(monkeypatch):
    calls = []

    def fake_run(argv, **kwargs):
        calls.append(argv)
        return SimpleNamespace(returncode=0, stdout="checkout\ncherry\ncheckout\n\n")

    monkeypatch.setattr(backend_module.subprocess, "run", fake_run)
    backend = BashCompletionBackend("bash", "/etc/bash_completion")

    assert backend.candidates("git che") == ["checkout", "cherry"]

    argv = calls[0]
    assert argv[:4] == ["bash", "--noprofile", "--norc", "-c"]
    assert argv[5:] == ["bash", "/etc/bash_completion", "git che", "1", "git", "che"]


def test_dynamic_complete_returns_table_with_candidates_third(monkeypatch):
    seen = []

    def fake_run(argv, **kwargs):
        seen.append(argv[7])
        return SimpleNamespace(returncode=0, stdout="--verbose\n")

    monkeypatch.setattr(backend_module.subprocess, "run", fake_run)

    table = BashCompletionBackend().dynamic_complete("$ frob --v", 2, 10)

    assert table == (2, 10, ["--verbose"])
    assert seen == ["frob --v"]


def test_failures_yield_no_candidates(monkeypatch):
    monkeypatch.setattr(
        backend_module.subprocess,
        "run",
        lambda argv, **kwargs: SimpleNamespace(returncode=2, stdout="oops\n"),
    )
    assert BashCompletionBackend().candidates("ls ") == []

    def broken(argv, **kwargs):
        raise OSError("exec format error")

    monkeypatch.setattr(backend_module.subprocess, "run", broken)
    assert BashCompletionBackend().candidates("ls ") == []


def test_available_checks_path(monkeypatch):
    monkeypatch.setattr(backend_module.shutil, "which", lambda name: None)
    assert BashCompletionBackend().available is False


def test_candidates_tolerate_undecodable_bytes(monkeypatch):
    def fake_run(argv, **kwargs):
        stdout = b"caf\xe9.txt\nnotes.txt\n".decode("utf-8", kwargs.get("errors") or "strict")
        return SimpleNamespace(returncode=0, stdout=stdout)

    monkeypatch.setattr(backend_module.subprocess, "run", fake_run)

    candidates = BashCompletionBackend().candidates("cat ")

    assert [c.encode("utf-8", "surrogateescape") for c in candidates] == [b"caf\xe9.txt", b"notes.txt"]
