"""Sandboxed execution of candidate scripts."""

from .executor import (
    CompileError,
    ExecuteError,
    ExecutionError,
    ResultConversionError,
    ResultNotFound,
    ScriptExecutor,
    normalize_result,
)

__all__ = [
    "CompileError",
    "ExecuteError",
    "ExecutionError",
    "ResultConversionError",
    "ResultNotFound",
    "ScriptExecutor",
    "normalize_result",
]
