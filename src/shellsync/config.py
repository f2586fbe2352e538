# config.py
from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from .errors import ConfigError
from .model import DEFAULT_SHELL, SUPPORTED_SHELLS, CommandConfig, SessionConfig

# ----------------------------------------------------------------------
# Locations
# ----------------------------------------------------------------------
# Session configs live in one directory, one YAML file per session:
#   $SHELLSYNC_CONFIG_DIR           (if set)
#   ~/.config/shellsync             (default)
# ----------------------------------------------------------------------

CONFIG_DIR_ENV = "SHELLSYNC_CONFIG_DIR"
DEFAULT_CONFIG_DIR = "~/.config/shellsync"

# names taken by built-in CLI commands
RESERVED_NAMES = {"example", "help", "list", "ls", "version"}

_YAML_FILE = re.compile(r"\.ya?ml$")

EXAMPLE_CONFIG = """\
# Name to invoke the session via $ shellsync <name>
name: example-name
# optional alias for name
alias: exname

# optional: zsh (default), bash, sh
shell: zsh

# optional help texts
short: an example session that says hello twice
long: Optional longer description

# A list of commands. The only required field is `command`.
#   1. command {string}: the command to run directly in a shell
#   2. name {string, default: ""}: used to prefix each line of this command's
#        output AND for other commands to list dependencies
#        NOTE: an empty string is a valid name and is useful for programs
#           that write to stdout in small chunks
#   3. directory {string, default: current directory}: where to run the command
#   4. silence {boolean, default: false}: silence this command's output?
#   5. depends-on {list of strings, optional}: which (names of) commands to wait for
#   6. ready-regexp {string, optional}: a regular expression that the output
#        must match for this command to be considered "ready" and for its
#        dependents to begin running
#   7. environment {mapping, optional}: environment variables to set
commands:
- name: greeter-1
  command: echo hello from window 1
  ready-regexp: "window [0-9]"
- name: greeter-2
  command: echo hello $NAME from $PWD
  directory: ~/
  depends-on:
  - greeter-1
  environment:
    NAME: potato
- name: ""
  command: echo "they silenced me :'("
  silence: true
"""


def config_dir() -> Path:
    """Return the config directory, creating it if needed."""
    raw = os.environ.get(CONFIG_DIR_ENV) or DEFAULT_CONFIG_DIR
    path = Path(raw).expanduser()
    path.mkdir(parents=True, exist_ok=True)
    return path


# ----------------------------------------------------------------------
# Parsing / validation
# ----------------------------------------------------------------------

def _as_str_list(value: Any, field: str, where: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{where}: {field} must be a list of names")
    return list(value)


def _parse_command(data: Any, index: int, source: str) -> CommandConfig:
    where = f"{source}: cmd no. {index}"
    if not isinstance(data, dict):
        raise ConfigError(f"{where} must be a mapping")

    command = data.get("command")
    if not command or not isinstance(command, str):
        raise ConfigError(f"{where} is missing command field")

    env = data.get("environment") or {}
    if not isinstance(env, dict):
        raise ConfigError(f"{where}: environment must be a mapping")

    ready = data.get("ready-regexp")
    if ready is not None:
        ready = str(ready)
        try:
            re.compile(ready)
        except re.error as e:
            raise ConfigError(f"{where}: invalid ready-regexp {ready!r}: {e}") from e

    directory = data.get("directory")
    return CommandConfig(
        command=command,
        name=str(data.get("name") or ""),
        directory=str(directory) if directory else None,
        silence=bool(data.get("silence", False)),
        ready_regexp=ready,
        depends_on=_as_str_list(data.get("depends-on"), "depends-on", where),
        # force values to str, YAML happily turns 8080 into an int
        environment={str(k): str(v) for k, v in env.items()},
    )


def parse_config(data: Any, source: str = "<config>") -> SessionConfig:
    """
    Validate a decoded YAML document and turn it into a SessionConfig.

    Raises:
        ConfigError naming `source` when a required field is missing or a
        field has the wrong shape.
    """
    if not isinstance(data, dict):
        raise ConfigError(f"{source}: expected a mapping at the top level")

    name = data.get("name")
    if not name or not isinstance(name, str):
        raise ConfigError(f"{source}: missing name")

    shell = data.get("shell") or DEFAULT_SHELL
    if shell not in SUPPORTED_SHELLS:
        raise ConfigError(f"{source}: {shell!r} shell not supported. Use {'|'.join(SUPPORTED_SHELLS)}")

    raw_commands = data.get("commands") or []
    if not isinstance(raw_commands, list) or not raw_commands:
        raise ConfigError(f"{source}: no commands configured")

    commands = [_parse_command(c, i, source) for i, c in enumerate(raw_commands)]

    seen: set[str] = set()
    for c in commands:
        if c.name and c.name in seen:
            raise ConfigError(f"{source}: duplicate command name {c.name!r}")
        seen.add(c.name)

    return SessionConfig(
        name=name,
        commands=commands,
        alias=str(data.get("alias") or ""),
        shell=shell,
        short=str(data.get("short") or ""),
        long=str(data.get("long") or ""),
        source=source,
    )


def load_config_file(path: str | Path) -> SessionConfig:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"reading file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"unmarshalling file {path}: {e}") from e
    return parse_config(data, source=str(path))


def load_all_configs(directory: Optional[str | Path] = None) -> List[SessionConfig]:
    """Load every *.yml / *.yaml file in the config directory, sorted by file name."""
    root = Path(directory).expanduser() if directory is not None else config_dir()
    if not root.is_dir():
        raise ConfigError(f"config directory not found: {root}")

    configs: List[SessionConfig] = []
    for entry in sorted(root.iterdir()):
        if entry.is_dir() or not _YAML_FILE.search(entry.name):
            continue
        configs.append(load_config_file(entry))
    return configs


def check_name_collisions(configs: Iterable[SessionConfig]) -> None:
    """Raise ConfigError if two sessions share a name/alias, or one uses a reserved name."""
    taken: Dict[str, SessionConfig] = {}
    for config in configs:
        for n in config.names:
            if n in RESERVED_NAMES:
                raise ConfigError(f"reserved name used: {n!r} ({config.source})")
            if n in taken:
                raise ConfigError(
                    f"duplicate name or alias used: {n!r} ({taken[n].source} and {config.source})"
                )
            taken[n] = config


def find_session(configs: Iterable[SessionConfig], name: str) -> Optional[SessionConfig]:
    for config in configs:
        if name in config.names:
            return config
    return None


def write_example_config(
    directory: Optional[str | Path] = None,
    filename: str = "example.yml",
) -> Path:
    root = Path(directory).expanduser() if directory is not None else config_dir()
    root.mkdir(parents=True, exist_ok=True)
    path = root / filename
    if path.exists():
        raise ConfigError(f"{path} already exists, not overwriting it")
    path.write_text(EXAMPLE_CONFIG, encoding="utf-8")
    return path
