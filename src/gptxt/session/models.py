"""Data models shared by the synthesis/review/execution session."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

Provenance = Literal["generated", "edited"]


class Command(Enum):
    """Single-keypress commands accepted by the review and recovery prompts."""

    RUN = "y"
    REGENERATE = "r"
    EDIT = "e"
    QUIT = "q"


class SessionOutcome(Enum):
    """How an interactive session ended."""

    SUCCEEDED = "succeeded"
    QUIT = "quit"
    NO_PROGRESS = "no_progress"


@dataclass(frozen=True, slots=True)
class Session:
    """Immutable parameters for one run of the tool."""

    task: str
    input_payload: str
    temperature: float = 0.25
    max_tokens: int = 512
    jsonify: bool = False
    jsonify_one_line: bool = False
    show_lines: int | None = None
    show_prompt: bool = False


@dataclass(frozen=True, slots=True)
class Candidate:
    """A generated or edited script under consideration."""

    text: str
    provenance: Provenance = "generated"


@dataclass(slots=True)
class SessionState:
    """Mutable controller state threaded through every transition."""

    current: Candidate
    history: list[str] = field(default_factory=list)

    def has_seen(self, text: str) -> bool:
        return text in self.history

    def accept_generated(self, text: str) -> None:
        self.history.append(text)
        self.current = Candidate(text=text, provenance="generated")

    def accept_edited(self, text: str) -> None:
        self.current = Candidate(text=text, provenance="edited")
