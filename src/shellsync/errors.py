# errors.py
from __future__ import annotations

import signal
from dataclasses import dataclass


class ShellSyncError(Exception):
    """Base class for every error raised by shellsync."""


class ConfigError(ShellSyncError):
    """A command or session was configured incorrectly. Raised before anything runs."""


class AlreadyStartedError(ShellSyncError):
    def __init__(self, what: str = "group"):
        super().__init__(f"{what} has already been started")


class Cancelled(ShellSyncError):
    """The shared cancellation scope was cancelled (signal, sibling failure or caller)."""

    def __init__(self, message: str = "cancelled"):
        super().__init__(message)


@dataclass
class DependencyError(ShellSyncError):
    command: str
    dependency: str

    def __str__(self) -> str:
        if self.command == self.dependency:
            return f"{self.command} depends on itself"
        return (
            f"{self.command!r} depends-on {self.dependency!r}, "
            f"but {self.dependency!r} does not exist"
        )


@dataclass
class ExitError(ShellSyncError):
    returncode: int

    def __str__(self) -> str:
        # negative return codes mean the process was killed by a signal
        if self.returncode < 0:
            try:
                sig = signal.Signals(-self.returncode).name
            except ValueError:
                sig = str(-self.returncode)
            return f"signal: {sig}"
        return f"exit status {self.returncode}"


@dataclass
class SpawnError(ShellSyncError):
    command: str
    reason: str

    def __str__(self) -> str:
        return f"failed to start command: {self.reason}"


@dataclass
class InterruptError(ShellSyncError):
    command: str
    reason: str

    def __str__(self) -> str:
        return f"sending interrupt to {self.command}: {self.reason}"


@dataclass
class CommandError(ShellSyncError):
    """
    Wraps a failure with the name of the command it belongs to.

    str(err) == "<name>: <cause>", and `cause` is also chained as __cause__
    so tracebacks in debug mode show where it came from.
    """
    name: str
    cause: BaseException

    def __post_init__(self) -> None:
        self.__cause__ = self.cause

    def __str__(self) -> str:
        return f"{self.name}: {self.cause}"
