# color.py
from __future__ import annotations

RESET = "\033[0m"

BLACK_BOLD = "\033[30;1m"
RED_BOLD = "\033[31;1m"
GREEN_BOLD = "\033[32;1m"
YELLOW_BOLD = "\033[33;1m"
BLUE_BOLD = "\033[34;1m"
MAGENTA_BOLD = "\033[35;1m"
CYAN_BOLD = "\033[36;1m"
WHITE_BOLD = "\033[37;1m"
BLACK = "\033[30m"
RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
MAGENTA = "\033[35m"
CYAN = "\033[36m"
WHITE = "\033[37m"

# Palette handed out to named commands, in order.
COLORS = [
    CYAN_BOLD,
    GREEN_BOLD,
    MAGENTA_BOLD,
    YELLOW_BOLD,
    BLUE_BOLD,
]


def colorize(text: str, color: str = "") -> str:
    """Wrap text in an ANSI color code. An empty color leaves text untouched."""
    if not color:
        return text
    return f"{color}{text}{RESET}"


def pick(index: int) -> str:
    return COLORS[index % len(COLORS)]
