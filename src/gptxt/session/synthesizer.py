"""Prompt assembly and post-processing for candidate scripts."""

from __future__ import annotations

import logging
from typing import Protocol

from gptxt.session.models import Session

SYSTEM_MESSAGE = """# You are part of a tool that creates Python code for text processing.
# You should return only Python code with no comments.
# Do not describe the code or add any additional information about the code.
# Data to process is stored in the string variable `data`.
# Results should be stored in the variable `result`.

import sys
data = sys.stdin.read()
"""

JSON_LINE = "import json; result = json.dumps(result)"
JSON_ONE_LINE = "import json; result = json.dumps(result, separators=(',', ':'))"
PREVIEW_MARKER = "#>"
LOGGER = logging.getLogger(__name__)


class CompletionProvider(Protocol):
    def complete(self, prompt: str, *, temperature: float, max_tokens: int) -> list[str]: ...


def build_prompt(task: str, input_payload: str, show_lines: int | None = None) -> str:
    """Assemble the completion prompt for a task and optional input preview."""
    prompt = SYSTEM_MESSAGE
    if show_lines is not None:
        shown = "\n".join(
            f"{PREVIEW_MARKER}{line}" for line in input_payload.splitlines()[:show_lines]
        )
        prompt += f"\n# First {show_lines} lines of `data`:\n{shown}\n"
    return prompt + f"\n# {task}:"


def postprocess(program: str, *, jsonify: bool, jsonify_one_line: bool) -> str:
    """Trim model output and append the requested JSON serialization of ``result``."""
    program = program.strip()
    if jsonify_one_line:
        return f"{program}\n{JSON_ONE_LINE}"
    if jsonify:
        return f"{program}\n{JSON_LINE}"
    return program


class CandidateSynthesizer:
    """Turns a session's task into a candidate script via a completion provider."""

    def __init__(self, provider: CompletionProvider) -> None:
        self.provider = provider

    def synthesize(self, session: Session) -> tuple[str, str]:
        """Return the assembled prompt and the finished candidate text.

        Errors raised by the provider propagate unchanged; there is no candidate
        to fall back to when synthesis fails.
        """
        prompt = build_prompt(session.task, session.input_payload, session.show_lines)
        choices = self.provider.complete(
            prompt,
            temperature=session.temperature,
            max_tokens=session.max_tokens,
        )
        program = postprocess(
            choices[0],
            jsonify=session.jsonify,
            jsonify_one_line=session.jsonify_one_line,
        )
        LOGGER.info(
            "candidate_synthesized",
            extra={
                "prompt_chars": len(prompt),
                "program_chars": len(program),
                "choices": len(choices),
            },
        )
        return prompt, program
