__version__ = "0.1.0"

from .cancel import CancelToken
from .errors import (
    AlreadyStartedError,
    Cancelled,
    CommandError,
    ConfigError,
    DependencyError,
    ExitError,
    ShellSyncError,
)
from .group import Group
from .model import CommandSpec, SessionConfig
from .output import Multiplexer, prefix_lines
from .shellcmd import ShellCmd

__all__ = [
    "AlreadyStartedError",
    "CancelToken",
    "Cancelled",
    "CommandError",
    "CommandSpec",
    "ConfigError",
    "DependencyError",
    "ExitError",
    "Group",
    "Multiplexer",
    "SessionConfig",
    "ShellCmd",
    "ShellSyncError",
    "prefix_lines",
]
