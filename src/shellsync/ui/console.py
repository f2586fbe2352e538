"""Console output formatting utilities for shellsync."""

from __future__ import annotations

import sys
import threading
from typing import Iterable, Optional

from ..model import SessionConfig


class Console:
    """
    Centralized diagnostics output.

    Command output never goes through here, it goes through the
    Multiplexer. The Console is for shellsync talking about itself, and it
    writes diagnostics to stderr so they never mix into the prefixed stream.
    """

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show debug lines and stack traces
        """
        self.debug = debug
        # reentrant, debug lines are also printed from signal handlers
        self._lock = threading.RLock()

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            # called from worker and reader threads
            with self._lock:
                print(f"[DEBUG] {message}", file=sys.stderr, flush=True)

    def print_error(
        self,
        title: str,
        message: str,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_sessions(self, sessions: Iterable[SessionConfig]) -> None:
        """Print configured sessions, one per line, aligned on the name column."""
        sessions = list(sessions)
        print("Configured sessions (runnable via `shellsync <name>`)")
        print()
        if not sessions:
            print("  (none) run `shellsync example` to generate one")
            return

        labels = [s.name + (f" ({s.alias})" if s.alias else "") for s in sessions]
        width = max(len(label) for label in labels)
        for label, session in zip(labels, sessions):
            print(f"  {label + ':':<{width + 1}}  {session.short}".rstrip())


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
