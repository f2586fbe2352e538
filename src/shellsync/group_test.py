from __future__ import annotations

import threading
import time

import pytest

from shellsync.cancel import CancelToken
from shellsync.errors import (
    AlreadyStartedError,
    Cancelled,
    CommandError,
    ConfigError,
    DependencyError,
    ExitError,
)
from shellsync.group import Group
from shellsync.shellcmd import ShellCmd

POLL = 0.05


@pytest.fixture
def make(shell, out):
    """ShellCmd factory bound to the test's shell and output buffer."""
    def _make(command: str, **kwargs) -> ShellCmd:
        return ShellCmd(command, shell=shell, output=out, **kwargs)
    return _make


# ----------------------------------------------------------------------
# Ordering
# ----------------------------------------------------------------------

def test_commands_occur_in_order(make, buf):
    group = Group(
        make("echo monkeypotato", name="first"),
        make("echo next", name="second", depends_on=["first"]),
        make("echo last", name="last", depends_on=["second"]),
        poll_interval=POLL,
    )
    group.run()
    assert buf.getvalue() == "first | monkeypotato\nsecond | next\nlast | last\n"


def test_declaration_order_does_not_matter(make, buf):
    group = Group(
        make("echo monkeypotato", name="first", depends_on=["second"]),
        make("echo next", name="second"),
        make("echo last", name="last", depends_on=["second", "first"]),
        poll_interval=POLL,
    )
    group.run()
    assert buf.getvalue() == "second | next\nfirst | monkeypotato\nlast | last\n"


def test_silent_dependency_still_unblocks_dependents(make, buf):
    group = Group(
        make("echo monkeypotato", name="first"),
        make("echo next", name="second", depends_on=["first"], silent=True),
        make("echo last", name="last", depends_on=["second", "first"]),
        poll_interval=POLL,
    )
    group.run()
    assert buf.getvalue() == "first | monkeypotato\nlast | last\n"


def test_ready_pattern_lets_dependents_start_early(make, buf):
    group = Group(
        make("echo next", name="second", depends_on=["first"]),
        make("echo last", name="last", depends_on=["second", "first"]),
        make(
            "echo monkeypotato && sleep 2 && echo finally",
            name="first",
            ready_pattern="monkey",
        ),
        poll_interval=POLL,
    )
    group.run()
    assert buf.getvalue() == (
        "first | monkeypotato\n"
        "second | next\n"
        "last | last\n"
        "first | finally\n"
    )


def test_commands_share_a_directory(make, buf, tmp_path):
    d = str(tmp_path)
    group = Group(
        make("echo 'file contents' > asdf.txt", name="write", directory=d),
        make("cat asdf.txt", name="read", directory=d, depends_on=["write"]),
        make("rm asdf.txt", name="remove", directory=d, depends_on=["read", "write"]),
        poll_interval=POLL,
    )
    group.run()
    assert buf.getvalue() == "read | file contents\n"
    assert not (tmp_path / "asdf.txt").exists()


def test_anonymous_commands_are_not_prefixed(make, buf):
    group = Group(
        make("printf partial"),
        make("printf ' line'", name="", silent=True),
        poll_interval=POLL,
    )
    group.run()
    assert buf.getvalue() == "partial"


def test_empty_group_runs():
    Group().run()


# ----------------------------------------------------------------------
# Failures
# ----------------------------------------------------------------------

def test_already_cancelled_token(make, buf):
    token = CancelToken()
    token.cancel()
    cmds = [
        make("echo monkeypotato", name="first"),
        make("echo next", name="second", depends_on=["first"], silent=True),
        make("echo last", name="last", depends_on=["second", "first"]),
    ]
    group = Group(*cmds, poll_interval=POLL)

    with pytest.raises(Cancelled):
        group.run(token)

    assert buf.getvalue() == ""
    assert all(c.pid is None for c in cmds)


def test_non_zero_exit(make, buf):
    group = Group(make("exit 1", name="unhappy cmd"), poll_interval=POLL)

    with pytest.raises(CommandError) as exc:
        group.run()

    assert str(exc.value) == "unhappy cmd: exit status 1"
    assert isinstance(exc.value.cause, ExitError)
    assert buf.getvalue() == ""


def test_missing_dependency(make):
    group = Group(make("echo hi", name="b", depends_on=["x"]), poll_interval=POLL)

    with pytest.raises(CommandError) as exc:
        group.run()

    assert isinstance(exc.value.cause, DependencyError)
    assert str(exc.value) == "b: 'b' depends-on 'x', but 'x' does not exist"


def test_self_dependency(make):
    group = Group(make("echo hi", name="a", depends_on=["a"]), poll_interval=POLL)

    with pytest.raises(CommandError, match="a: a depends on itself"):
        group.run()


def test_failure_interrupts_the_rest_of_the_group(make):
    failing = make("sleep 0.3; exit 3", name="fail")
    long_running = make("sleep 30", name="long")
    waiting = make("echo never", name="never", depends_on=["long"])
    group = Group(failing, long_running, waiting, poll_interval=POLL)

    start = time.monotonic()
    with pytest.raises(CommandError, match="fail: exit status 3"):
        group.run()

    assert time.monotonic() - start < 10
    assert long_running.pid is not None
    assert waiting.pid is None


def test_dependents_of_a_failed_command_never_start(make, buf):
    a = make("exit 1", name="a")
    b = make("echo b", name="b", depends_on=["a"])
    group = Group(a, b, poll_interval=POLL)

    with pytest.raises(CommandError, match="a: exit status 1"):
        group.run()
    assert b.pid is None
    assert buf.getvalue() == ""


def test_first_error_wins(make):
    group = Group(
        make("exit 1", name="early"),
        make("sleep 1; exit 2", name="late"),
        poll_interval=POLL,
    )
    with pytest.raises(CommandError) as exc:
        group.run()
    assert str(exc.value) == "early: exit status 1"


@pytest.mark.parametrize("attempt", range(5))
def test_external_cancellation(make, attempt):
    token = CancelToken()
    cmd = make("sleep 30", name="long")
    group = Group(cmd, poll_interval=POLL)
    threading.Timer(0.5, token.cancel).start()

    start = time.monotonic()
    with pytest.raises(Cancelled):
        group.run(token)

    assert time.monotonic() - start < 10
    assert cmd.is_ready()


def test_cancelling_the_group_does_not_cancel_the_callers_token(make):
    token = CancelToken()
    group = Group(make("exit 1", name="a"), poll_interval=POLL)
    with pytest.raises(CommandError):
        group.run(token)
    assert not token.cancelled


# ----------------------------------------------------------------------
# Lifecycle
# ----------------------------------------------------------------------

def test_add_commands_after_start(make):
    group = Group(make("true", name="a"), poll_interval=POLL)
    group.run()
    with pytest.raises(AlreadyStartedError):
        group.add_commands(make("true", name="b"))


def test_group_runs_once(make):
    group = Group(make("true", name="a"), poll_interval=POLL)
    group.run()
    with pytest.raises(AlreadyStartedError):
        group.run()


def test_add_commands_before_start(make, buf):
    group = Group(poll_interval=POLL)
    group.add_commands(make("echo one", name="one"))
    group.add_commands(make("echo two", name="two", depends_on=["one"]))
    group.run()
    assert buf.getvalue() == "one | one\ntwo | two\n"


def test_duplicate_names_are_rejected(make):
    group = Group(make("true", name="a"))
    with pytest.raises(ConfigError, match="duplicate command name"):
        group.add_commands(make("true", name="a"))


def test_anonymous_names_may_repeat(make):
    group = Group(make("true"), make("true"))
    assert len(group.commands) == 2


def test_send_interrupts_before_start_is_noop(make):
    cmd = make("true", name="a")
    group = Group(cmd)
    group.send_interrupts()
    assert not group.started
    assert cmd.pid is None
