# runner.py
from __future__ import annotations

import signal
import sys
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Sequence

from . import color as colors
from .cancel import CancelToken
from .errors import ConfigError
from .group import POLL_INTERVAL, Group
from .model import SessionConfig
from .output import Multiplexer
from .shellcmd import ShellCmd
from .ui.console import get_console


# ----------------------------------------------------------------------
# Group build
# ----------------------------------------------------------------------

def build_group(
    session: SessionConfig,
    *,
    output: Optional[Multiplexer] = None,
    color: bool = True,
    poll_interval: float = POLL_INTERVAL,
) -> Group:
    """
    Turn a session config into a ready-to-run Group.

    Named commands get a color from the palette based on their position in
    the session; anonymous ones are never prefixed so they get none.
    """
    group = Group(poll_interval=poll_interval)
    for i, c in enumerate(session.commands):
        try:
            cmd = ShellCmd(
                c.command,
                shell=session.shell,
                name=c.name,
                directory=c.directory,
                silent=c.silence,
                ready_pattern=c.ready_regexp,
                depends_on=c.depends_on,
                environment=c.environment,
                color=colors.pick(i) if (color and c.name) else "",
                output=output,
            )
        except ConfigError as e:
            raise ConfigError(f"making command {c.name!r} of {session.name!r}: {e}") from e
        group.add_commands(cmd)
    return group


# ----------------------------------------------------------------------
# Signals
# ----------------------------------------------------------------------

@contextmanager
def relay_signals(
    token: CancelToken,
    signums: Sequence[int] = (signal.SIGINT, signal.SIGTERM),
) -> Iterator[CancelToken]:
    """
    Cancel `token` on the first SIGINT/SIGTERM.

    After the first signal the previous handlers come back, so a second
    ctrl+c behaves normally (e.g. kills a hung shutdown). Outside the main
    thread signals can't be handled, the token is just passed through.
    """
    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    previous: Dict[int, object] = {}

    def restore() -> None:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
        previous.clear()

    def handler(signum, frame):
        get_console().print_debug(f"received signal {signum}, interrupting commands")
        restore()
        token.cancel()

    for signum in signums:
        previous[signum] = signal.getsignal(signum)
        signal.signal(signum, handler)

    try:
        yield token
    finally:
        restore()


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def run_session(
    session: SessionConfig,
    *,
    output: Optional[Multiplexer] = None,
    color: Optional[bool] = None,
    token: Optional[CancelToken] = None,
) -> None:
    """
    Run every command of a session until they all finish or one fails.

    Args:
        color: colorize prefixes; None means "only if stdout is a terminal"
        token: cancel it to stop the session; SIGINT/SIGTERM cancel it too

    Raises the group's first error (see Group.run).
    """
    if color is None:
        color = sys.stdout.isatty()

    group = build_group(session, output=output, color=color)
    get_console().print_debug(
        f"running {session.name!r}: {len(group.commands)} command(s) with {session.shell}"
    )

    token = token or CancelToken()
    with relay_signals(token):
        group.run(token)
