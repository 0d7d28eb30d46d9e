"""Single-keypress command input."""

from __future__ import annotations

import logging
import os
import select
from collections.abc import Collection, Iterator
from contextlib import contextmanager

from rich.console import Console

from gptxt.session.models import Command
from gptxt.terminal.streams import controlling_terminal

# For single-keypress reading (Unix only)
try:
    import termios
    import tty

    HAS_TERMIOS = True
except ImportError:
    HAS_TERMIOS = False

POLL_INTERVAL_SECONDS = 0.1
CTRL_C = "\x03"
CTRL_BACKSLASH = "\x1c"
INTERRUPT_NOTICES = {
    CTRL_C: "Caught Ctrl+C; exiting.",
    CTRL_BACKSLASH: "Caught Ctrl+\\; exiting.",
}
LOGGER = logging.getLogger(__name__)


class TerminalInterrupt(KeyboardInterrupt):
    """User asked to abort the whole session."""

    def __init__(self, notice: str = INTERRUPT_NOTICES[CTRL_C]) -> None:
        super().__init__(notice)
        self.notice = notice


def decode_key(key: str, accepted: Collection[Command]) -> Command | None:
    """Map a raw key to a command, or ``None`` when the key should be ignored.

    Interrupt combinations raise :class:`TerminalInterrupt` whatever the
    accepted set is.
    """
    if key in INTERRUPT_NOTICES:
        raise TerminalInterrupt(INTERRUPT_NOTICES[key])
    for command in accepted:
        if command.value == key:
            return command
    return None


@contextmanager
def raw_mode(fd: int) -> Iterator[None]:
    try:
        saved = termios.tcgetattr(fd)
    except termios.error as exc:
        raise OSError(f"cannot switch terminal to raw mode: {exc}") from exc
    try:
        tty.setraw(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)


def poll_key(fd: int, timeout: float) -> str | None:
    """Return one key if it arrives within ``timeout`` seconds."""
    ready, _, _ = select.select([fd], [], [], timeout)
    if not ready:
        return None
    raw = os.read(fd, 1)
    if not raw:
        raise EOFError("terminal input closed")
    return raw.decode("utf-8", errors="ignore")


class KeyReader:
    """Reads commands from the terminal one keypress at a time."""

    def __init__(self, console: Console, *, poll_interval: float = POLL_INTERVAL_SECONDS) -> None:
        self.console = console
        self.poll_interval = poll_interval

    def read_command(self, accepted: Collection[Command]) -> Command:
        if not HAS_TERMIOS:
            raise RuntimeError("single-keypress input requires a POSIX terminal")

        with controlling_terminal() as terminal:
            fd = terminal.fileno()
            with raw_mode(fd):
                command = self._wait_for_command(fd, accepted)

        self.console.print(command.value, markup=False)
        LOGGER.debug("command_read", extra={"command": command.name})
        return command

    def _wait_for_command(self, fd: int, accepted: Collection[Command]) -> Command:
        # Short polls keep the loop responsive to signals while waiting.
        while True:
            key = poll_key(fd, self.poll_interval)
            if key is None:
                continue
            command = decode_key(key, accepted)
            if command is not None:
                return command
