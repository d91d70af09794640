"""
Tests for the interactive REPL.
"""

import io
import textwrap

from quill import repl
from quill.config import QuillConfig


def run_repl(text: str, config: QuillConfig = None):
    """Helper to feed lines to the REPL and capture both streams."""
    stdin = io.StringIO(textwrap.dedent(text).lstrip("\n"))
    stdout = io.StringIO()
    stderr = io.StringIO()
    code = repl.start(stdin, stdout, stderr, config)
    return code, stdout.getvalue(), stderr.getvalue()


class TestRepl:
    """Test the read-eval-print loop."""

    def test_prints_values(self):
        code, out, err = run_repl("""
            1 + 2
            "text"
        """)
        assert code == 0
        assert out == "-> 3\n-> text\n-> \n"
        assert err == ""

    def test_bindings_persist_between_lines(self):
        _, out, _ = run_repl("""
            let make = fn(x) { fn(y) { x + y } }
            let addTwo = make(2)
            addTwo(3)
        """)
        assert out.splitlines()[2] == "-> 5"

    def test_errors_go_to_stderr_and_loop_continues(self):
        _, out, err = run_repl("""
            let x = 1
            x + true
            x + 1
        """)
        assert err == "type mismatch: INT + BOOL\n"
        assert "-> 2\n" in out

    def test_parse_error_reported(self):
        _, _, err = run_repl("let = 1\n")
        assert err.startswith("expected identifier")

    def test_output_written_before_value(self):
        _, out, _ = run_repl('puts("hi")\n')
        assert out == "-> hi\nnil\n-> \n"

    def test_show_output_disabled(self):
        _, out, _ = run_repl('puts("hi")\n', QuillConfig(show_output=False))
        assert out == "-> nil\n-> \n"

    def test_exit_command(self):
        _, out, _ = run_repl("""
            1
            exit
            2
        """)
        assert out == "-> 1\n-> "

    def test_blank_lines_are_skipped(self):
        _, out, _ = run_repl("1\n\n   \n2\n")
        assert out == "-> 1\n-> -> -> 2\n-> \n"

    def test_custom_prompt(self):
        _, out, _ = run_repl("quit\n", QuillConfig(prompt="q> "))
        assert out == "q> "

    def test_call_depth_from_config(self):
        _, _, err = run_repl(
            "let down = fn(n) { if (n == 0) { 0 } else { down(n - 1) } }; down(30)\n",
            QuillConfig(max_call_depth=10),
        )
        assert err == "maximum call depth exceeded (10)\n"

    def test_non_ascii_digit_reported_and_loop_continues(self):
        code, out, err = run_repl("²\n٣ + 1\n1 + 1\n")
        assert code == 0
        assert err.count("unexpected character") == 2
        assert "-> 2\n" in out
