# group.py
from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Dict, List, Optional

from .cancel import CancelToken
from .errors import (
    AlreadyStartedError,
    Cancelled,
    CommandError,
    ConfigError,
    DependencyError,
    ShellSyncError,
)
from .shellcmd import ShellCmd
from .ui.console import get_console

POLL_INTERVAL = 0.2  # seconds between dependency checks


class Group:
    """
    Runs a set of ShellCmds concurrently, each one starting once all the
    commands it depends on are ready.

    Dependencies are looked up by name every poll rather than sorted up
    front: a dependency counts as soon as it is *ready*, which can be long
    before it finishes. A bad dependency (unknown name, or a command
    depending on itself) is only discovered when the worker polls.

    The first failure cancels everything: commands still waiting are never
    started, running ones get SIGINT. A Group runs once.
    """

    def __init__(self, *commands: ShellCmd, poll_interval: float = POLL_INTERVAL):
        self.poll_interval = poll_interval
        self._commands: List[ShellCmd] = []
        self._by_name: Dict[str, ShellCmd] = {}
        self._started = False
        self._lock = threading.Lock()

        self._first_error: Optional[BaseException] = None
        self._error_lock = threading.Lock()

        self.add_commands(*commands)

    @property
    def commands(self) -> List[ShellCmd]:
        return list(self._commands)

    @property
    def started(self) -> bool:
        return self._started

    def add_commands(self, *commands: ShellCmd) -> None:
        with self._lock:
            if self._started:
                raise AlreadyStartedError("group")
            for cmd in commands:
                # anonymous commands can repeat, they are just never depended on
                if cmd.name:
                    if cmd.name in self._by_name:
                        raise ConfigError(f"duplicate command name: {cmd.name!r}")
                    self._by_name[cmd.name] = cmd
                self._commands.append(cmd)

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def run(self, token: Optional[CancelToken] = None) -> None:
        """
        Run every command and block until all workers are done.

        Cancelling `token` (e.g. from a signal handler, see
        runner.relay_signals) interrupts the whole group.

        Raises the first error any worker hit, if any.
        """
        token = token or CancelToken()

        with self._lock:
            if self._started:
                raise AlreadyStartedError("group")
            self._started = True

        if token.cancelled:
            raise Cancelled()

        scope = token.child()
        supervisor = threading.Thread(
            target=self._supervise,
            args=(scope,),
            name="shellsync-supervisor",
            daemon=True,
        )
        supervisor.start()

        try:
            if self._commands:
                with ThreadPoolExecutor(
                    max_workers=len(self._commands),
                    thread_name_prefix="shellsync-worker",
                ) as pool:
                    futures = [pool.submit(self._work, cmd, scope) for cmd in self._commands]
                    wait(futures)
        finally:
            # releases the supervisor; commands that already exited ignore the interrupt
            scope.cancel()
            supervisor.join()

        if self._first_error is not None:
            raise self._first_error

    def send_interrupts(self) -> None:
        """Relay an interrupt to every command. No-op before run()."""
        if not self._started:
            return
        for cmd in self._commands:
            try:
                cmd.interrupt()
            except ShellSyncError as e:
                # keep going, the other commands still need their signal
                get_console().print_debug(str(e))

    def _supervise(self, scope: CancelToken) -> None:
        scope.wait()
        self.send_interrupts()

    # ------------------------------------------------------------------
    # Workers
    # ------------------------------------------------------------------

    def _work(self, cmd: ShellCmd, scope: CancelToken) -> None:
        try:
            self._wait_for_dependencies(cmd, scope)
            try:
                cmd.run(scope)
            except Cancelled:
                raise
            except ShellSyncError as e:
                raise CommandError(name=cmd.name, cause=e) from e
        except Exception as e:
            self._fail(e, scope)

    def _wait_for_dependencies(self, cmd: ShellCmd, scope: CancelToken) -> None:
        # on every tick: stop if the group is shutting down, else start once
        # every depends-on command is ready
        while True:
            if scope.wait(self.poll_interval):
                raise Cancelled()
            try:
                if self._dependencies_ready(cmd):
                    return
            except DependencyError as e:
                raise CommandError(name=cmd.name, cause=e) from e

    def _dependencies_ready(self, cmd: ShellCmd) -> bool:
        for dep_name in cmd.depends_on:
            dep = self._by_name.get(dep_name)
            if dep is None:
                raise DependencyError(command=cmd.name, dependency=dep_name)
            if dep_name == cmd.name:
                raise DependencyError(command=cmd.name, dependency=dep_name)
            if not dep.is_ready():
                return False
        return True

    def _fail(self, error: BaseException, scope: CancelToken) -> None:
        with self._error_lock:
            if self._first_error is None:
                self._first_error = error
                get_console().print_debug(f"group failing: {error}")
        scope.cancel()
