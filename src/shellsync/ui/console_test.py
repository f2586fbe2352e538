from __future__ import annotations

from shellsync.model import CommandConfig, SessionConfig
from shellsync.ui.console import Console, get_console, set_console


def test_debug_lines_only_in_debug_mode(capsys):
    Console(debug=False).print_debug("hidden")
    Console(debug=True).print_debug("shown")
    err = capsys.readouterr().err
    assert "hidden" not in err
    assert "[DEBUG] shown" in err


def test_print_error_goes_to_stderr(capsys):
    Console().print_error("Title", "message", suggestion="try this")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "ERROR: Title" in captured.err
    assert "try this" in captured.err


def test_print_sessions(capsys):
    cmds = [CommandConfig(command="true")]
    Console().print_sessions([
        SessionConfig(name="api", alias="a", short="backend", commands=cmds),
        SessionConfig(name="frontend", commands=cmds),
    ])
    out = capsys.readouterr().out.splitlines()
    assert out[2] == "  api (a):   backend"
    assert out[3] == "  frontend:"


def test_print_sessions_empty(capsys):
    Console().print_sessions([])
    assert "shellsync example" in capsys.readouterr().out


def test_global_console():
    console = Console(debug=True)
    set_console(console)
    assert get_console() is console
