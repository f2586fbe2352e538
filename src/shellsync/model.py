# model.py
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

DEFAULT_SHELL = "zsh"
SUPPORTED_SHELLS = ("zsh", "bash", "sh")


@dataclass(frozen=True)
class CommandSpec:
    """
    A validated, immutable description of one shell command.

    Built by ShellCmd once its arguments check out: the shell is supported,
    the directory exists (and is already expanded), the ready pattern
    compiled.
    """
    command: str
    shell: str = DEFAULT_SHELL
    name: str = ""                      # "" = anonymous, output is not prefixed
    directory: Optional[str] = None
    environment: Mapping[str, str] = field(default_factory=dict)
    silent: bool = False
    ready_pattern: Optional[re.Pattern] = None
    depends_on: Tuple[str, ...] = ()
    color: str = ""

    @property
    def argv(self) -> List[str]:
        return [self.shell, "-c", self.command]


# ----------------------------------------------------------------------
# Session configs (what a YAML file describes)
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class CommandConfig:
    """One entry of a session's `commands` list, as written in the config."""
    command: str
    name: str = ""
    directory: Optional[str] = None
    silence: bool = False
    ready_regexp: Optional[str] = None
    depends_on: List[str] = field(default_factory=list)
    environment: Dict[str, str] = field(default_factory=dict)


@dataclass
class SessionConfig:
    """
    A named set of commands run together: `shellsync <name>`.

    Canonical invocation name: `name`
    Optional second name: `alias`
    """
    name: str
    commands: List[CommandConfig]
    alias: str = ""
    shell: str = DEFAULT_SHELL
    short: str = ""
    long: str = ""
    source: Optional[str] = None        # file it was loaded from, for messages

    @property
    def names(self) -> List[str]:
        return [n for n in (self.name, self.alias) if n]
