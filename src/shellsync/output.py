# output.py
"""
Output multiplexing: many commands, one terminal.

Every command's output is turned into whole lines prefixed with
"<name> | " and written to one shared stream. A single lock guards the
stream so the text of one write never interleaves with another.
"""
from __future__ import annotations

import sys
import threading
from typing import Optional, TextIO

from .color import colorize

SEPARATOR = " | "


def prefix_lines(text: str, label: str) -> str:
    """
    Prefix every line of `text` with "<label> | ".

    A trailing newline does not produce an extra empty prefixed line, and the
    result always ends with exactly one newline:

        prefix_lines("hello\\nasdf", "cmd") == "cmd | hello\\ncmd | asdf\\n"
    """
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    sep = f"\n{label}{SEPARATOR}"
    return label + SEPARATOR + sep.join(lines) + "\n"


def make_label(name: str, color: str = "") -> str:
    return colorize(name, color)


class Multiplexer:
    """
    Shared, lock-guarded sink for the output of many commands.

    Args:
        stream: text stream to write to. None means whatever sys.stdout is
                at write time (so pytest's capture and redirections work).
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def write(self, text: str, name: str = "", color: str = "") -> None:
        # anonymous commands pass through untouched, they may stream partial lines
        if name:
            text = prefix_lines(text, make_label(name, color))

        with self._lock:
            stream = self.stream
            stream.write(text)
            stream.flush()


_default: Optional[Multiplexer] = None
_default_lock = threading.Lock()


def default_multiplexer() -> Multiplexer:
    """The process-wide multiplexer over sys.stdout."""
    global _default
    with _default_lock:
        if _default is None:
            _default = Multiplexer()
        return _default
