# cli.py
from __future__ import annotations

import sys
from typing import List, Optional

import click

from . import __version__
from .config import (
    CONFIG_DIR_ENV,
    check_name_collisions,
    config_dir,
    find_session,
    load_all_configs,
    write_example_config,
)
from .errors import Cancelled, ConfigError, ShellSyncError
from .model import SessionConfig
from .runner import run_session
from .ui.console import Console, get_console, set_console


def _load_sessions(ctx: click.Context) -> List[SessionConfig]:
    """Load (once per invocation) and validate every session config."""
    root = ctx.find_root()
    cached = root.meta.get("shellsync.sessions")
    if cached is not None:
        return cached

    directory = root.params.get("config_dir")
    sessions = load_all_configs(directory)
    check_name_collisions(sessions)
    root.meta["shellsync.sessions"] = sessions
    return sessions


def _make_session_command(session: SessionConfig) -> click.Command:
    @click.command(
        name=session.name,
        help=session.long or session.short or None,
        short_help=session.short or None,
    )
    @click.option(
        "--color/--no-color",
        default=None,
        help="Colorize command prefixes (default: only when stdout is a terminal)",
    )
    def run(color):
        console = get_console()
        try:
            run_session(session, color=color)
        except (Cancelled, KeyboardInterrupt):
            console.print_info("\nInterrupted")
            sys.exit(130)
        except ShellSyncError as e:
            console.print_error(f"running {session.name!r}", str(e))
            if console.debug:
                console.print_exception(e)
            sys.exit(1)
        except Exception as e:
            console.print_exception(e)
            sys.exit(1)

    return run


class SessionGroup(click.Group):
    """
    Root command whose subcommands are the built-ins plus one command per
    session config (reachable by name or alias).
    """

    def list_commands(self, ctx: click.Context) -> List[str]:
        builtins = super().list_commands(ctx)
        try:
            sessions = _load_sessions(ctx)
        except ShellSyncError:
            # reported when a session is actually resolved
            return builtins
        return builtins + sorted(s.name for s in sessions)

    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        cmd = super().get_command(ctx, cmd_name)
        if cmd is not None:
            return cmd

        try:
            sessions = _load_sessions(ctx)
        except ConfigError as e:
            get_console().print_error(
                "Invalid config",
                str(e),
                suggestion=f"Fix or remove the offending file in {ctx.params.get('config_dir') or config_dir()}",
            )
            ctx.exit(1)

        session = find_session(sessions, cmd_name)
        if session is None:
            return None
        return _make_session_command(session)


@click.group(cls=SessionGroup)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show scheduling details and stack traces)",
)
@click.option(
    "--config-dir",
    default=None,
    envvar=CONFIG_DIR_ENV,
    type=click.Path(file_okay=False),
    # eager, so it is known when --help lists the sessions
    is_eager=True,
    help="Directory holding session configs (default: ~/.config/shellsync)",
)
@click.version_option(__version__, prog_name="shellsync")
@click.pass_context
def cli(ctx, debug, config_dir):
    """shellsync replaces your multi-tab terminal window setup.

    Each YAML file in the config directory describes a session: a set of
    shell commands run together, each waiting for the commands it depends
    on. Run `shellsync example` to generate an example config file.
    """
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command("list")
@click.pass_context
def list_sessions(ctx):
    """List configured sessions."""
    console = get_console()
    try:
        sessions = _load_sessions(ctx)
    except ConfigError as e:
        console.print_error("Invalid config", str(e))
        sys.exit(1)
    console.print_sessions(sessions)


cli.add_command(list_sessions, name="ls")


@cli.command()
@click.pass_context
def example(ctx):
    """Write an example session config into the config directory."""
    console = get_console()
    directory = ctx.find_root().params.get("config_dir")
    try:
        path = write_example_config(directory)
    except ConfigError as e:
        console.print_error(
            "Example not written",
            str(e),
            suggestion="Remove or rename the existing file and try again.",
        )
        sys.exit(1)
    console.print_info(f"Example file generated at {path}")


@cli.command()
def version():
    """Print the shellsync version."""
    get_console().print_info(f"shellsync {__version__}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
