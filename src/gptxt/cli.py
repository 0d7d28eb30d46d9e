"""Command-line interface for gptxt."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from types import FrameType
from typing import cast

from .config import AppConfig, ensure_config_file
from .llm.client import CompletionClient, CompletionError
from .sandbox import ScriptExecutor
from .session.controller import SessionController
from .session.models import Session
from .session.synthesizer import CandidateSynthesizer
from .terminal import ExternalEditor, KeyReader, TerminalInterrupt, create_consoles
from .terminal.keys import CTRL_BACKSLASH, CTRL_C, INTERRUPT_NOTICES

__version__ = "1.0.0"
LOGGER = logging.getLogger(__name__)
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class CLIArgs(argparse.Namespace):
    task: str
    temperature: float
    max_tokens: int
    jsonify: bool
    jsonify_one_line: bool
    input_file: str | None
    show_lines: int | None
    show_prompt: bool
    model: str | None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gptxt", description="GPT text processing assistant")
    parser.add_argument("task", help="Description of a text processing task")
    parser.add_argument(
        "-t",
        "--temp",
        dest="temperature",
        type=float,
        default=0.25,
        help="Set GPT randomness/temperature (0.05-1.0; lower = more deterministic)",
    )
    parser.add_argument(
        "-m",
        "--max-tokens",
        dest="max_tokens",
        type=_non_negative_int,
        default=512,
        help="Set GPT response token limit",
    )
    parser.add_argument(
        "-j",
        "--json",
        dest="jsonify",
        action="store_true",
        help="Serialize program output to JSON",
    )
    parser.add_argument(
        "--json-one-line",
        dest="jsonify_one_line",
        action="store_true",
        help="Serialize JSON output to one line (requires --json)",
    )
    parser.add_argument(
        "-i",
        "--input",
        dest="input_file",
        help="Read data from a file instead of STDIN",
    )
    parser.add_argument(
        "-s",
        "--show-lines",
        dest="show_lines",
        type=_non_negative_int,
        help="Show GPT the first N lines of the input to help it generate the program",
    )
    parser.add_argument(
        "-p",
        "--show-prompt",
        dest="show_prompt",
        action="store_true",
        help="Print the prompt, including the system message and any included lines",
    )
    parser.add_argument(
        "--model",
        help="Override the configured completion model for this run",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _non_negative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        msg = f"invalid integer value: {value!r}"
        raise argparse.ArgumentTypeError(msg) from exc
    if parsed < 0:
        msg = f"must be zero or greater: {parsed}"
        raise argparse.ArgumentTypeError(msg)
    return parsed


def validate_json_flags(jsonify: bool, jsonify_one_line: bool) -> str | None:
    if jsonify_one_line and not jsonify:
        return "Error: --json-one-line requires --json to be set."
    return None


def read_input(input_file: str | None) -> str:
    if input_file is not None:
        return Path(input_file).read_text(encoding="utf-8")
    return sys.stdin.read()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = cast(CLIArgs, parser.parse_args(argv))
    stdout_console, stderr_console = create_consoles()

    flag_error = validate_json_flags(args.jsonify, args.jsonify_one_line)
    if flag_error:
        stderr_console.print(flag_error, style="bold red", markup=False)
        return 1

    config = AppConfig.from_env()
    configure_logging(config.log_level)

    if not config.api_key:
        if ensure_config_file(config.config_path):
            stderr_console.print(
                f"Created a new configuration file at: {config.config_path}",
                style="bold green",
                markup=False,
            )
            stderr_console.print(
                "Set the 'api_key' value in the file before using the program.",
                style="bold green",
            )
        else:
            stderr_console.print(
                "Set the 'api_key' value in the configuration file before using the program: "
                f"{config.config_path}",
                style="bold red",
                markup=False,
            )
        return 1

    try:
        input_payload = read_input(args.input_file)
    except (OSError, UnicodeDecodeError) as exc:
        stderr_console.print(f"Error reading input file: {exc}", style="bold red", markup=False)
        return 1

    session = Session(
        task=args.task,
        input_payload=input_payload,
        temperature=args.temperature,
        max_tokens=args.max_tokens,
        jsonify=args.jsonify,
        jsonify_one_line=args.jsonify_one_line,
        show_lines=args.show_lines,
        show_prompt=args.show_prompt,
    )
    client = CompletionClient(
        api_key=config.api_key,
        model=args.model or config.model,
        api_url=config.api_url,
        timeout=config.timeout,
    )
    editor = ExternalEditor(command=config.editor, consoles=(stdout_console, stderr_console))
    controller = SessionController(
        session=session,
        synthesize=CandidateSynthesizer(client).synthesize,
        execute=ScriptExecutor().execute,
        edit=editor.edit,
        read_command=KeyReader(stderr_console).read_command,
        console=stderr_console,
        editor_name=editor.name,
        output=sys.stdout,
    )

    _install_signal_handlers()
    try:
        outcome = controller.run()
    except CompletionError as exc:
        stderr_console.print(
            f"Error calling completion API: {exc}", style="bold red", markup=False
        )
        return 1
    except EOFError:
        stderr_console.print("Terminal input closed; exiting.", style="bold red")
        return 1
    except (OSError, RuntimeError) as exc:
        stderr_console.print(
            f"Error accessing the terminal: {exc}", style="bold red", markup=False
        )
        return 1
    except KeyboardInterrupt as exc:
        notice = exc.notice if isinstance(exc, TerminalInterrupt) else INTERRUPT_NOTICES[CTRL_C]
        stderr_console.print(f"\n{notice}", style="bold red", markup=False)
        return 0

    LOGGER.debug("session_outcome", extra={"outcome": outcome.value, "model": client.model})
    return 0


def _install_signal_handlers() -> None:
    if hasattr(signal, "SIGQUIT"):
        signal.signal(signal.SIGQUIT, _raise_quit_interrupt)


def _raise_quit_interrupt(_signum: int, _frame: FrameType | None) -> None:
    raise TerminalInterrupt(INTERRUPT_NOTICES[CTRL_BACKSLASH])


if __name__ == "__main__":
    raise SystemExit(main())
