"""Console and controlling-terminal helpers."""

from __future__ import annotations

import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import IO

from rich.console import Console

TTY_PATH = "/dev/tty" if os.name != "nt" else "CON"


def create_consoles() -> tuple[Console, Console]:
    """Return ``(stdout_console, stderr_console)``.

    Only the stdout console may carry the script result; everything shown to
    the user goes through the stderr console.
    """
    return (
        Console(highlight=False, emoji=False),
        Console(stderr=True, highlight=False, emoji=False, soft_wrap=True),
    )


@contextmanager
def controlling_terminal() -> Iterator[IO[str]]:
    """Yield a readable handle to the user's terminal.

    When stdin is a pipe carrying the input payload, the terminal is opened
    separately so key presses and the editor still reach the user.
    """
    if sys.stdin is not None and sys.stdin.isatty():
        yield sys.stdin
        return
    with open(TTY_PATH, encoding="utf-8") as handle:
        yield handle
