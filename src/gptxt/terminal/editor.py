"""Hand a candidate script to the user's editor and read it back."""

from __future__ import annotations

import logging
import shlex
import subprocess
import tempfile
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from rich.console import Console

from gptxt.terminal.streams import controlling_terminal

DEFAULT_EDITOR = "vi"
SCRIPT_NAME = "program.py"
LOGGER = logging.getLogger(__name__)


class EditError(Exception):
    """The editor did not finish cleanly; its changes must not be adopted."""

    def __init__(self, message: str, *, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class ExternalEditor:
    """Opens a script in an external editor inside the alternate screen."""

    def __init__(
        self,
        *,
        command: str = DEFAULT_EDITOR,
        consoles: Sequence[Console] = (),
    ) -> None:
        self.command = command
        self.consoles = tuple(consoles)

    @property
    def name(self) -> str:
        parts = shlex.split(self.command)
        return parts[0] if parts else self.command

    def edit(self, text: str) -> str:
        with tempfile.TemporaryDirectory(prefix="gptxt-") as workdir:
            path = Path(workdir) / SCRIPT_NAME
            path.write_text(text, encoding="utf-8")

            with self._alternate_screen():
                returncode = self._run_editor(path)

            if returncode != 0:
                LOGGER.info(
                    "editor_exit_nonzero",
                    extra={"editor": self.name, "returncode": returncode},
                )
                raise EditError(
                    f"{self.name} exited with an error: exit status {returncode}",
                    returncode=returncode,
                )

            edited = path.read_text(encoding="utf-8").strip()

        LOGGER.info("editor_finished", extra={"editor": self.name, "chars": len(edited)})
        return edited

    def _run_editor(self, path: Path) -> int:
        argv = [*shlex.split(self.command), str(path)]
        try:
            with controlling_terminal() as terminal:
                completed = subprocess.run(argv, stdin=terminal, check=False)
        except OSError as exc:
            raise EditError(f"could not start {self.name}: {exc}") from exc
        return completed.returncode

    @contextmanager
    def _alternate_screen(self) -> Iterator[None]:
        for console in self.consoles:
            console.set_alt_screen(True)
        try:
            yield
        finally:
            for console in self.consoles:
                console.set_alt_screen(False)
