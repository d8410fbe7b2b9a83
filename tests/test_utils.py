from fishcomp.utils import BuiltinCommand, parse_builtin_command


def test_parse_builtin_command_variants():
    assert parse_builtin_command("fish-completion-mode") == (BuiltinCommand.TOGGLE_SESSION, "")
    assert parse_builtin_command("  global-fish-completion-mode ") == (BuiltinCommand.TOGGLE_GLOBAL, "")
    assert parse_builtin_command("fish_completion_mode") == (BuiltinCommand.TOGGLE_SESSION, "")
    assert parse_builtin_command("show-config") == (BuiltinCommand.SHOW_CONFIG, "")
    assert parse_builtin_command("EXIT") == (BuiltinCommand.EXIT, "")
    assert parse_builtin_command("quit now") == (BuiltinCommand.EXIT, "now")


def test_parse_builtin_command_ignores_shell_commands():
    assert parse_builtin_command("ls -la") == (None, "")
    assert parse_builtin_command("") == (None, "")
    assert parse_builtin_command(None) == (None, "")
