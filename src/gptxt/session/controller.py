"""Interactive synthesize/review/execute loop."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable, Collection
from enum import Enum
from typing import TextIO

from rich.console import Console

from gptxt.sandbox import ExecuteError
from gptxt.session.models import Candidate, Command, Session, SessionOutcome, SessionState
from gptxt.terminal.editor import EditError

Synthesize = Callable[[Session], tuple[str, str]]
ExecuteScript = Callable[[str, str], str]
EditScript = Callable[[str], str]
ReadCommand = Callable[[Collection[Command]], Command]

RULE = "-" * 30
NO_PROGRESS_MESSAGE = (
    "Re-generated program is identical to a previously generated program. "
    "Please rephrase your task."
)
LOGGER = logging.getLogger(__name__)


class Phase(Enum):
    REVIEWING = "reviewing"
    RECOVERING = "recovering"


ACCEPTED_COMMANDS: dict[Phase, tuple[Command, ...]] = {
    Phase.REVIEWING: (Command.RUN, Command.QUIT, Command.REGENERATE, Command.EDIT),
    Phase.RECOVERING: (Command.REGENERATE, Command.QUIT, Command.EDIT),
}

PROMPTS: dict[Phase, str] = {
    Phase.REVIEWING: (
        "[bold cyan]Run program?[/] "
        "([bold]y[/]es/[bold]q[/]uit/[bold]r[/]egen/[bold]e[/]dit) "
    ),
    Phase.RECOVERING: (
        "[bold cyan]Regenerate program and try again?[/] "
        "([bold]r[/]egen/[bold]q[/]uit/[bold]e[/]dit) "
    ),
}

Transition = Phase | SessionOutcome


class SessionController:
    """Drives one session from the first candidate to a terminal outcome.

    Review accepts run/quit/regenerate/edit. A failed run moves to recovery,
    which accepts only regenerate/edit/quit; both phases share one
    prompt-and-dispatch step parameterized by :data:`ACCEPTED_COMMANDS`.
    """

    def __init__(
        self,
        *,
        session: Session,
        synthesize: Synthesize,
        execute: ExecuteScript,
        edit: EditScript,
        read_command: ReadCommand,
        console: Console,
        output: TextIO | None = None,
        editor_name: str = "vi",
    ) -> None:
        self.session = session
        self.synthesize = synthesize
        self.execute = execute
        self.edit = edit
        self.read_command = read_command
        self.console = console
        self.output = output
        self.editor_name = editor_name
        self._handlers: dict[Command, Callable[[Phase, SessionState], Transition]] = {
            Command.RUN: self._on_run,
            Command.QUIT: self._on_quit,
            Command.REGENERATE: self._on_regenerate,
            Command.EDIT: self._on_edit,
        }

    def run(self) -> SessionOutcome:
        prompt, program = self._synthesize()
        state = SessionState(current=Candidate(text=program), history=[program])
        if self.session.show_prompt:
            self._show_prompt(prompt)

        phase = Phase.REVIEWING
        while True:
            if phase is Phase.REVIEWING:
                self._show_candidate(state)
            transition = self.step(phase, state)
            if isinstance(transition, SessionOutcome):
                LOGGER.info(
                    "session_finished",
                    extra={"outcome": transition.value, "candidates_seen": len(state.history)},
                )
                return transition
            phase = transition

    def step(self, phase: Phase, state: SessionState) -> Transition:
        """Prompt for one command valid in ``phase`` and apply it to ``state``."""
        if phase is Phase.RECOVERING:
            self.console.print()
        self.console.print(PROMPTS[phase], end="")
        command = self.read_command(ACCEPTED_COMMANDS[phase])
        if command not in ACCEPTED_COMMANDS[phase]:
            msg = f"Command {command.name} is not accepted while {phase.value}"
            raise ValueError(msg)
        LOGGER.debug("command_dispatched", extra={"phase": phase.value, "command": command.name})
        return self._handlers[command](phase, state)

    def _on_run(self, phase: Phase, state: SessionState) -> Transition:
        self.console.print()
        try:
            result = self.execute(self.session.input_payload, state.current.text)
        except ExecuteError as exc:
            self._report_error(str(exc))
            return Phase.RECOVERING
        output = self.output or sys.stdout
        output.write(f"{result}\n")
        output.flush()
        return SessionOutcome.SUCCEEDED

    def _on_quit(self, phase: Phase, state: SessionState) -> Transition:
        return SessionOutcome.QUIT

    def _on_regenerate(self, phase: Phase, state: SessionState) -> Transition:
        self.console.print()
        _, program = self._synthesize()
        if state.has_seen(program):
            LOGGER.info("candidate_repeated", extra={"candidates_seen": len(state.history)})
            self._report_error(NO_PROGRESS_MESSAGE)
            return SessionOutcome.NO_PROGRESS
        state.accept_generated(program)
        return Phase.REVIEWING

    def _on_edit(self, phase: Phase, state: SessionState) -> Transition:
        self.console.print()
        try:
            edited = self.edit(state.current.text)
        except EditError as exc:
            self.console.print()
            self._report_error(f"Error editing program with '{self.editor_name}': {exc}")
            return phase
        state.accept_edited(edited)
        return Phase.REVIEWING

    def _synthesize(self) -> tuple[str, str]:
        with self.console.status("[cyan]Generating program...[/]", spinner="dots"):
            return self.synthesize(self.session)

    def _show_prompt(self, prompt: str) -> None:
        self.console.print("[bold green]Prompt:[/]")
        self.console.print(RULE)
        self.console.print(prompt, markup=False)
        self.console.print(RULE)
        self.console.print()

    def _show_candidate(self, state: SessionState) -> None:
        label = "Edited program:" if state.current.provenance == "edited" else "Generated program:"
        self.console.print(f"[bold green]{label}[/]")
        self.console.print(RULE)
        self.console.print(state.current.text, markup=False)
        self.console.print(RULE)
        state.current = Candidate(text=state.current.text)

    def _report_error(self, message: str) -> None:
        self.console.print(message, style="bold red", markup=False)
