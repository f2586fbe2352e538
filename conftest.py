from __future__ import annotations

import io
import shutil

import pytest

from shellsync.output import Multiplexer
from shellsync.ui.console import Console, set_console


def installed_shells() -> list[str]:
    return [s for s in ("sh", "bash", "zsh") if shutil.which(s)]


@pytest.fixture
def shell() -> str:
    """First supported shell found on this machine."""
    shells = installed_shells()
    if not shells:
        pytest.skip("no supported shell installed, tried sh, bash and zsh")
    return shells[0]


@pytest.fixture
def buf() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def out(buf) -> Multiplexer:
    """A Multiplexer writing into `buf`, so tests can assert on combined output."""
    return Multiplexer(buf)


@pytest.fixture(autouse=True)
def quiet_console():
    set_console(Console(debug=False))
    yield
    set_console(Console(debug=False))
