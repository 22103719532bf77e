"""Start-up banner."""

from __future__ import annotations

import sys
from datetime import datetime

_RULE = "-" * 51
_BOLD = "\x1b[1m"
_GREEN = "\x1b[38;2;0;176;0m"
_RESET = "\x1b[0m"


def _bold(text: str) -> str:
    return f"{_BOLD}{text}{_RESET}"


def _render_banner() -> str:
    lines = [
        _bold(_RULE),
        f"Initializing {_GREEN}Retcon{_RESET} at "
        f"{return_current_time()} on {return_current_date()}",
        _bold("investigato"),
        _bold(_RULE) + "\n",
    ]
    return "\n".join(lines) + "\n"


def print_banner() -> str:
    """Write the start banner to standard output and return the text written."""
    text = _render_banner()
    sys.stdout.write(text)
    sys.stdout.flush()
    return text


def return_current_time() -> str:
    """Return the local time as HH:MM:SS."""
    return datetime.now().strftime("%H:%M:%S")


def return_current_date() -> str:
    """Return the local date as MM/DD/YY."""
    return datetime.now().strftime("%m/%d/%y")