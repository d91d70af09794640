"""
Tests for the quill command line interface.
"""

import io
import json
import textwrap
from pathlib import Path

import pytest

from quill.__main__ import main


@pytest.fixture
def script(tmp_path):
    """Write a source file and return its path as a string."""
    def _write(source: str, name: str = "script.ql") -> str:
        path = tmp_path / name
        path.write_text(textwrap.dedent(source))
        return str(path)
    return _write


class TestRun:
    """Test `quill run`."""

    def test_run_prints_output_and_value(self, script, capsys):
        path = script("""
            let greet = fn(name) { puts("hello " + name); len(name) };
            greet("world")
        """)
        assert main(["run", path]) == 0
        captured = capsys.readouterr()
        assert captured.out == "hello world\n5\n"

    def test_run_runtime_error(self, script, capsys):
        path = script("let x = 1;\nx + true\n")
        assert main(["run", path]) == 1
        err = capsys.readouterr().err
        assert err.startswith("Error: ")
        assert "error[E402]: type mismatch: INT + BOOL" in err
        assert "x + true" in err

    def test_run_parse_error(self, script, capsys):
        path = script("let = 1")
        assert main(["run", path]) == 1
        assert "expected identifier" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert main(["run", str(tmp_path / "missing.ql")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_config_controls_output(self, script, tmp_path, capsys):
        config = tmp_path / "quill.yaml"
        config.write_text("show_output: false\n")
        path = script('puts("hidden"); 1')
        assert main(["--config", str(config), "run", path]) == 0
        assert capsys.readouterr().out == "1\n"

    def test_bad_config(self, script, tmp_path, capsys):
        config = tmp_path / "quill.yaml"
        config.write_text("bogus: 1\n")
        assert main(["--config", str(config), "run", script("1")]) == 1
        assert "unknown config key" in capsys.readouterr().err


class TestCheckAndAst:
    """Test `quill check` and `quill ast`."""

    def test_check_ok(self, script, capsys):
        path = script("let a = 1; let b = 2; a + b", name="ok.ql")
        assert main(["check", path]) == 0
        assert capsys.readouterr().out == "OK: ok.ql - 3 statement(s)\n"

    def test_check_does_not_evaluate(self, script, capsys):
        path = script("undefined_name + 1")
        assert main(["check", path]) == 0

    def test_check_reports_error(self, script, capsys):
        path = script("if (x { 1 }")
        assert main(["check", path]) == 1
        err = capsys.readouterr().err
        assert "error[E101]" in err
        assert "expected ')'" in err

    def test_check_json_reports_diagnostic(self, script, capsys):
        path = script("let = 1")
        assert main(["check", "--json", path]) == 1
        diagnostics = json.loads(capsys.readouterr().out)
        assert len(diagnostics) == 1
        assert diagnostics[0]["code"] == "E101"
        assert diagnostics[0]["range"]["start"]["line"] == 1
        assert diagnostics[0]["severity"] == "error"

    def test_check_json_clean_file(self, script, capsys):
        assert main(["check", "--json", script("1 + 1")]) == 0
        assert json.loads(capsys.readouterr().out) == []

    def test_ast_dump(self, script, capsys):
        path = script("let x = 1 + 2")
        assert main(["ast", path]) == 0
        out = capsys.readouterr().out
        assert out.startswith("Program\n")
        assert "InfixExpr" in out
        assert "operator: +" in out


class TestRepl:
    """Test `quill repl`."""

    def test_repl_command(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("let x = 4\nx * x\n"))
        assert main(["repl"]) == 0
        assert capsys.readouterr().out == "-> 4\n-> 16\n-> \n"


class TestExamples:
    """The bundled example scripts run cleanly."""

    EXAMPLES = Path(__file__).resolve().parent.parent / "examples"

    def test_closures_example(self, capsys):
        assert main(["run", str(self.EXAMPLES / "closures.ql")]) == 0
        assert capsys.readouterr().out == "5\n13\n105\n"

    def test_collections_example(self, capsys):
        assert main(["run", str(self.EXAMPLES / "collections.ql")]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out == [
            "[1, 4, 9, 16]",
            "total age: ",
            "77",
            "{squares: [1, 4, 9, 16], oldest: Alan}",
        ]
