# shellcmd.py
"""
ShellCmd: one shell command running as its own process group.

A ShellCmd reaches its "ready" state when either
  1. a chunk of its combined stdout/stderr matches its ready pattern, or
  2. its process finishes, successfully or not.

Dependents (see group.py) only look at the ready flag, so a command
without a ready pattern unblocks them once it exits.
"""
from __future__ import annotations

import codecs
import os
import re
import signal
import subprocess
import threading
from typing import Iterable, Mapping, Optional, Union

from .cancel import CancelToken
from .errors import (
    AlreadyStartedError,
    Cancelled,
    ConfigError,
    ExitError,
    InterruptError,
    SpawnError,
)
from .model import DEFAULT_SHELL, SUPPORTED_SHELLS, CommandSpec
from .output import Multiplexer, default_multiplexer
from .ui.console import get_console

READ_CHUNK = 32 * 1024
WAIT_INTERVAL = 0.05  # seconds between cancellation checks while a process runs

_POSIX = os.name == "posix"


# ----------------------------------------------------------------------
# Construction helpers
# ----------------------------------------------------------------------

def expand_dir(directory: str) -> str:
    """Expand a leading '~' and $VARS, and check the directory exists."""
    expanded = os.path.expandvars(os.path.expanduser(directory))
    if not os.path.isdir(expanded):
        raise ConfigError(f"directory {directory!r} does not exist: {expanded}")
    return expanded


def compile_pattern(pattern: Union[str, re.Pattern, None]) -> Optional[re.Pattern]:
    if pattern is None or isinstance(pattern, re.Pattern):
        return pattern
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"compiling regexp {pattern!r}: {e}") from e


def check_shell(shell: str) -> str:
    shell = shell or DEFAULT_SHELL
    if shell not in SUPPORTED_SHELLS:
        raise ConfigError(f"{shell!r} shell not supported. Use {'|'.join(SUPPORTED_SHELLS)}")
    return shell


# ----------------------------------------------------------------------
# ShellCmd
# ----------------------------------------------------------------------

class ShellCmd:
    """
    Wraps a shell command so it can be synchronized with others via Group.

    The command text is handed to `<shell> -c`, so pipes, `&&` and
    expansions all work. All arguments are validated here; a bad shell,
    a missing directory or an invalid ready pattern raise ConfigError
    before anything is spawned.
    """

    def __init__(
        self,
        command: str,
        *,
        shell: str = DEFAULT_SHELL,
        name: str = "",
        directory: Optional[str] = None,
        silent: bool = False,
        ready_pattern: Union[str, re.Pattern, None] = None,
        depends_on: Iterable[str] = (),
        environment: Optional[Mapping[str, str]] = None,
        color: str = "",
        output: Optional[Multiplexer] = None,
    ):
        self.spec = CommandSpec(
            command=command,
            shell=check_shell(shell),
            name=name,
            directory=expand_dir(directory) if directory else None,
            environment={k: str(v) for k, v in (environment or {}).items()},
            silent=silent,
            ready_pattern=compile_pattern(ready_pattern),
            depends_on=tuple(dict.fromkeys(depends_on)),
            color=color,
        )
        self.output = output or default_multiplexer()

        self._ready = threading.Event()
        self._proc: Optional[subprocess.Popen] = None
        self._reader: Optional[threading.Thread] = None
        self._start_lock = threading.Lock()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def __repr__(self) -> str:
        return f"ShellCmd(name={self.name!r}, command={self.spec.command!r})"

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def depends_on(self) -> tuple[str, ...]:
        return self.spec.depends_on

    @property
    def pid(self) -> Optional[int]:
        return self._proc.pid if self._proc is not None else None

    @property
    def returncode(self) -> Optional[int]:
        return self._proc.returncode if self._proc is not None else None

    def is_ready(self) -> bool:
        return self._ready.is_set()

    # ---- running ----

    def run(self, token: Optional[CancelToken] = None) -> None:
        """
        Run the command, blocking until it exits or `token` is cancelled.

        Raises:
            Cancelled: token was cancelled first; the process group was sent SIGINT
            ExitError: the process exited non-zero (or died from a signal)
            SpawnError: the shell could not be started
            AlreadyStartedError: run() was already called

        The command is marked ready when this returns, however it returns.
        """
        try:
            self._start()
            self._wait(token)
        finally:
            self._ready.set()

    def _start(self) -> None:
        with self._start_lock:
            if self._proc is not None:
                raise AlreadyStartedError(f"command {self.name!r}")

            env = os.environ.copy()
            env.update(self.spec.environment)

            kwargs = {}
            if _POSIX:
                # own process group, so one killpg() reaches every descendant
                kwargs["start_new_session"] = True
            else:
                kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP

            try:
                self._proc = subprocess.Popen(
                    self.spec.argv,
                    cwd=self.spec.directory,
                    env=env,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    bufsize=0,
                    **kwargs,
                )
            except OSError as e:
                raise SpawnError(command=self.name, reason=str(e)) from e

        get_console().print_debug(f"{self.name or '<anonymous>'}: started pid {self._proc.pid}")

        self._reader = threading.Thread(
            target=self._read_output,
            name=f"shellsync-reader-{self.name or self._proc.pid}",
            daemon=True,
        )
        self._reader.start()

    def _wait(self, token: Optional[CancelToken]) -> None:
        proc = self._proc
        while True:
            try:
                returncode = proc.wait(timeout=WAIT_INTERVAL if token is not None else None)
                break
            except subprocess.TimeoutExpired:
                if token.cancelled:
                    self.interrupt()
                    raise Cancelled()

        if token is not None and token.cancelled:
            # exited under an interrupt from the group, not on its own
            self._reader.join()
            raise Cancelled()

        # let the reader drain the pipe so all output lands before we report done
        self._reader.join()
        get_console().print_debug(f"{self.name or '<anonymous>'}: exited with {returncode}")

        if returncode != 0:
            raise ExitError(returncode)

    def _read_output(self) -> None:
        fd = self._proc.stdout.fileno()
        try:
            while True:
                chunk = os.read(fd, READ_CHUNK)
                if not chunk:
                    break
                self.write(chunk)
            # an incomplete trailing sequence comes out as U+FFFD
            self._emit(self._decoder.decode(b"", final=True))
        finally:
            self._proc.stdout.close()

    # ---- output interception ----

    def write(self, chunk: bytes) -> int:
        """
        Intercept a chunk of the process's combined stdout/stderr.

        The ready pattern is only matched against this chunk; a match split
        across two reads is never seen. Always reports the whole chunk as
        written, even when the output is silenced.
        """
        self._emit(self._decoder.decode(chunk))
        return len(chunk)

    def _emit(self, text: str) -> None:
        matched = bool(text) and self.spec.ready_pattern is not None and bool(self.spec.ready_pattern.search(text))

        if not self.spec.silent and text:
            self.output.write(text, name=self.name, color=self.spec.color)

        if matched and not self._ready.is_set():
            self._ready.set()
            get_console().print_debug(f"{self.name or '<anonymous>'}: ready (matched {self.spec.ready_pattern.pattern!r})")

    # ---- signalling ----

    def interrupt(self) -> None:
        """
        Send an interrupt to the command's whole process group.

        No-op if the command has not been started or has already exited.
        """
        proc = self._proc
        if proc is None or proc.poll() is not None:
            return

        try:
            if _POSIX:
                os.killpg(proc.pid, signal.SIGINT)
            else:
                proc.send_signal(signal.CTRL_BREAK_EVENT)
        except ProcessLookupError:
            # exited between poll() and the signal
            return
        except OSError as e:
            raise InterruptError(command=self.name, reason=str(e)) from e

        get_console().print_debug(f"{self.name or '<anonymous>'}: sent interrupt to process group {proc.pid}")
