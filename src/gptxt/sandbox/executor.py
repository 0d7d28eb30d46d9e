"""Run candidate scripts against the ``data``/``result`` contract."""

from __future__ import annotations

import builtins
import logging
import sys
import time
import traceback
from collections.abc import Iterator
from contextlib import contextmanager, redirect_stdout

DATA_NAME = "data"
RESULT_NAME = "result"
SCRIPT_FILENAME = "<string>"
LOGGER = logging.getLogger(__name__)


class ExecuteError(Exception):
    """Base class for every way a candidate script can fail to produce a result."""


class CompileError(ExecuteError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"Error compiling Python program: {self.message}"


class ExecutionError(ExecuteError):
    def __init__(self, rendered_trace: str) -> None:
        super().__init__(rendered_trace)
        self.rendered_trace = rendered_trace

    def __str__(self) -> str:
        return f"Error executing Python program: {self.rendered_trace}"


class ResultNotFound(ExecuteError):
    def __str__(self) -> str:
        return f"Error: '{RESULT_NAME}' variable not found"


class ResultConversionError(ExecuteError):
    def __init__(self, type_name: str) -> None:
        super().__init__(type_name)
        self.type_name = type_name

    def __str__(self) -> str:
        return (
            f"Error: '{RESULT_NAME}' must be a string to be printed; type is: {self.type_name}"
        )


def normalize_result(text: str) -> str:
    """Turn literal ``\\r`` and ``\\n`` escape pairs into real control characters."""
    return text.replace("\\r", "\r").replace("\\n", "\n")


class ScriptExecutor:
    """Compiles and runs a script in a fresh scope per invocation."""

    def execute(self, input_payload: str, script: str) -> str:
        started = time.monotonic()
        try:
            code = compile(script, SCRIPT_FILENAME, "exec")
        except (SyntaxError, ValueError) as exc:
            LOGGER.info("script_compile_failed", extra={"error": str(exc)})
            raise CompileError(_render_exception_only(exc)) from exc

        scope = self._new_scope(input_payload)
        try:
            with _preserved_interpreter_state(), redirect_stdout(sys.stderr):
                exec(code, scope)  # noqa: S102
        except (Exception, SystemExit) as exc:
            LOGGER.info(
                "script_execution_failed",
                extra={
                    "exception_type": type(exc).__name__,
                    "duration_seconds": round(time.monotonic() - started, 4),
                },
            )
            raise ExecutionError(_render_exception(exc)) from exc

        if RESULT_NAME not in scope:
            raise ResultNotFound()

        result = scope[RESULT_NAME]
        if not isinstance(result, str):
            raise ResultConversionError(type(result).__name__)

        LOGGER.info(
            "script_execution_succeeded",
            extra={
                "result_chars": len(result),
                "duration_seconds": round(time.monotonic() - started, 4),
            },
        )
        return normalize_result(result)

    @staticmethod
    def _new_scope(input_payload: str) -> dict[str, object]:
        return {
            "__builtins__": dict(vars(builtins)),
            "__name__": "__main__",
            DATA_NAME: input_payload,
        }


def _render_exception_only(exc: BaseException) -> str:
    return "".join(traceback.format_exception_only(type(exc), exc)).strip()


def _render_exception(exc: BaseException) -> str:
    # Drop the executor's own frame so the trace starts inside the script.
    tb = exc.__traceback__
    if tb is not None and tb.tb_next is not None:
        tb = tb.tb_next
    return "".join(traceback.format_exception(type(exc), exc, tb)).rstrip()


@contextmanager
def _preserved_interpreter_state() -> Iterator[None]:
    """Undo changes a script makes to the standard streams or the builtins module."""
    streams = (sys.stdin, sys.stdout, sys.stderr)
    namespace = vars(builtins)
    saved_builtins = dict(namespace)
    try:
        yield
    finally:
        sys.stdin, sys.stdout, sys.stderr = streams
        for name in set(namespace) - set(saved_builtins):
            del namespace[name]
        for name, value in saved_builtins.items():
            if namespace.get(name) is not value:
                namespace[name] = value
