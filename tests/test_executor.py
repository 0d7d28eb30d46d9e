from __future__ import annotations

import builtins
import sys

import pytest

from gptxt.sandbox import (
    CompileError,
    ExecutionError,
    ResultConversionError,
    ResultNotFound,
    ScriptExecutor,
    normalize_result,
)
from gptxt.session.synthesizer import JSON_LINE, JSON_ONE_LINE


def test_execute_binds_data_and_reads_result() -> None:
    assert ScriptExecutor().execute("hello", "result = data.upper()") == "HELLO"


def test_normalize_result_replaces_literal_escape_pairs() -> None:
    assert normalize_result("a\\nb") == "a\nb"
    assert normalize_result("a\\r\\nb") == "a\r\nb"


def test_normalize_result_leaves_other_text_alone() -> None:
    assert normalize_result("a\nb") == "a\nb"
    assert normalize_result("tab\\there") == "tab\\there"


def test_execute_normalizes_escaped_newlines_in_result() -> None:
    script = r'result = data.replace(",", "\\n")'

    assert ScriptExecutor().execute("a,b,c", script) == "a\nb\nc"


def test_missing_result_is_reported_as_result_not_found() -> None:
    with pytest.raises(ResultNotFound) as exc_info:
        ScriptExecutor().execute("hello", "value = data.upper()")

    assert "'result' variable not found" in str(exc_info.value)


def test_runtime_error_carries_full_traceback() -> None:
    script = "result = data\nraise ValueError('boom')"

    with pytest.raises(ExecutionError) as exc_info:
        ScriptExecutor().execute("hello", script)

    trace = exc_info.value.rendered_trace
    assert "Traceback (most recent call last)" in trace
    assert 'File "<string>", line 2' in trace
    assert "ValueError: boom" in trace
    assert str(exc_info.value).startswith("Error executing Python program:")


def test_compile_error_is_classified() -> None:
    with pytest.raises(CompileError) as exc_info:
        ScriptExecutor().execute("hello", "result = (")

    assert "SyntaxError" in exc_info.value.message
    assert str(exc_info.value).startswith("Error compiling Python program:")


def test_non_string_result_reports_type_name() -> None:
    with pytest.raises(ResultConversionError) as exc_info:
        ScriptExecutor().execute("hello", "result = len(data)")

    assert exc_info.value.type_name == "int"
    assert "int" in str(exc_info.value)


def test_script_calling_sys_exit_does_not_end_the_process() -> None:
    with pytest.raises(ExecutionError) as exc_info:
        ScriptExecutor().execute("hello", "import sys\nsys.exit(3)")

    assert "SystemExit" in exc_info.value.rendered_trace


def test_each_execution_gets_a_fresh_scope() -> None:
    executor = ScriptExecutor()
    executor.execute("first", "leaked = 1\nresult = data")

    assert executor.execute("second", "result = str('leaked' in globals())") == "False"


def test_builtins_changes_do_not_reach_later_executions() -> None:
    executor = ScriptExecutor()
    script = "import builtins\nbuiltins.leaked = 'x'\nbuiltins.len = None\nresult = data"
    executor.execute("first", script)

    assert not hasattr(builtins, "leaked")
    assert executor.execute("second", "result = str('leaked' in __builtins__)") == "False"
    assert executor.execute("third", "result = str(len(data))") == "5"


def test_script_cannot_rebind_standard_streams() -> None:
    streams = (sys.stdin, sys.stdout, sys.stderr)
    script = (
        "import io, sys\n"
        "sys.stdout = io.StringIO()\n"
        "sys.stderr = io.StringIO()\n"
        "result = data.upper()"
    )

    assert ScriptExecutor().execute("hello", script) == "HELLO"
    assert (sys.stdin, sys.stdout, sys.stderr) == streams


def test_script_print_output_goes_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    ScriptExecutor().execute("hello", "print('debugging')\nresult = data")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "debugging" in captured.err


def test_streams_are_restored_when_script_fails() -> None:
    streams = (sys.stdin, sys.stdout, sys.stderr)

    script = "import io, sys\nsys.stdout = io.StringIO()\nraise ValueError('x')"

    with pytest.raises(ExecutionError):
        ScriptExecutor().execute("x", script)

    assert (sys.stdin, sys.stdout, sys.stderr) == streams


def test_script_can_import_standard_library() -> None:
    script = "import re\nresult = ','.join(re.findall(r'\\d+', data))"

    assert ScriptExecutor().execute("a1b22c333", script) == "1,22,333"


def test_one_line_json_suffix_produces_compact_json() -> None:
    script = f"result = {{'words': data.split()}}\n{JSON_ONE_LINE}"

    assert ScriptExecutor().execute("a b", script) == '{"words":["a","b"]}'


def test_json_suffix_uses_default_separators() -> None:
    script = f"result = {{'words': data.split()}}\n{JSON_LINE}"

    assert ScriptExecutor().execute("a b", script) == '{"words": ["a", "b"]}'
