"""Tests for the bashtyped CLI, config, source spans and error rendering."""

from __future__ import annotations

import pytest

from bashtyped.checker import Checker
from bashtyped.cli import main
from bashtyped.config import find_config, load_config, load_nearest_config
from bashtyped.errors import (
    Diagnostic,
    DiagnosticLabel,
    DiagnosticRenderer,
    LabelColors,
    Severity,
    UnknownVariableError,
)
from bashtyped.source import SourceFile, Span

# --- CLI tests ---


class TestCLI:
    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "check" in result.output
        assert "types" in result.output
        assert "lsp" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_check_clean_file(self, runner, script):
        path = script("a=1\nb=3 #/ int\n")
        result = runner.invoke(main, ["check", str(path)])
        assert result.exit_code == 0
        assert "checked 1 file(s), no errors" in result.output

    def test_check_reports_errors(self, runner, script):
        path = script('a=1\na="x"\n')
        result = runner.invoke(main, ["check", "--no-color", str(path)])
        assert result.exit_code == 1
        assert "error[E201]" in result.output
        assert "variable `a` defined with different type" in result.output
        assert "1 of 1 file(s) had errors" in result.output

    def test_check_directory(self, runner, tmp_path):
        (tmp_path / "one.sh").write_text("a=1\n")
        (tmp_path / "two.bash").write_text("b=x\n")
        (tmp_path / "notes.txt").write_text('c="$missing"\n')
        result = runner.invoke(main, ["check", str(tmp_path)])
        assert result.exit_code == 0
        assert "checked 2 file(s)" in result.output

    def test_check_directory_uses_config_extensions(self, runner, tmp_path):
        (tmp_path / "bashtyped.toml").write_text('[check]\nextensions = [".zsh"]\n')
        (tmp_path / "one.sh").write_text("a=1\n")
        (tmp_path / "two.zsh").write_text("b=x\n")
        result = runner.invoke(main, ["check", str(tmp_path)])
        assert result.exit_code == 0
        assert "checked 1 file(s)" in result.output

    def test_check_empty_directory(self, runner, tmp_path):
        result = runner.invoke(main, ["check", str(tmp_path)])
        assert result.exit_code == 0
        assert "no shell scripts found" in result.output

    def test_check_bad_config(self, runner, tmp_path):
        (tmp_path / "bashtyped.toml").write_text('[colors]\nerror = "mauve"\n')
        result = runner.invoke(main, ["check", str(tmp_path)])
        assert result.exit_code == 1
        assert "unknown color 'mauve'" in result.output

    def test_types_command(self, runner, script):
        path = script('a=1\nb="$a" #/ int | string\n')
        result = runner.invoke(main, ["types", str(path)])
        assert result.exit_code == 0
        assert "a: int (inferred at" in result.output
        assert "b: int | string (declared at" in result.output
        assert f"{path}:2:1" in result.output

    def test_types_with_errors(self, runner, script):
        path = script('b="$missing"\n')
        result = runner.invoke(main, ["types", "--no-color", str(path)])
        assert result.exit_code == 1
        assert "error[E102]" in result.output

    def test_lsp_help(self, runner):
        result = runner.invoke(main, ["lsp", "--help"])
        assert result.exit_code == 0
        assert "language server" in result.output


# --- Config tests ---


class TestConfig:
    def test_load_config(self, tmp_path):
        toml = tmp_path / "bashtyped.toml"
        toml.write_text(
            '[check]\nextensions = [".ksh"]\n'
            '[colors]\ndeclared = "green"\ninferred = "cyan"\n'
        )
        config = load_config(toml)
        assert config.check.extensions == [".ksh"]
        assert config.colors == LabelColors(declared="green", inferred="cyan", error="red")

    def test_load_config_defaults(self, tmp_path):
        toml = tmp_path / "bashtyped.toml"
        toml.write_text("")
        config = load_config(toml)
        assert config.check.extensions == [".sh", ".bash"]
        assert config.colors == LabelColors()

    def test_unknown_color(self, tmp_path):
        toml = tmp_path / "bashtyped.toml"
        toml.write_text('[colors]\ninferred = "purple"\n')
        with pytest.raises(ValueError, match="colors.inferred"):
            load_config(toml)

    def test_find_config(self, tmp_path):
        (tmp_path / "bashtyped.toml").write_text("")
        sub = tmp_path / "scripts"
        sub.mkdir()
        assert find_config(sub) == tmp_path / "bashtyped.toml"

    def test_find_config_not_found(self, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        with pytest.raises(FileNotFoundError, match="No bashtyped.toml found"):
            find_config(empty)

    def test_nearest_config_defaults(self, tmp_path):
        config = load_nearest_config(tmp_path)
        assert config.check.extensions == [".sh", ".bash"]


# --- Error rendering tests ---


class TestDiagnostics:
    def test_render_mismatch(self):
        text = 'a="x" #/ int\n'
        checker = Checker("deploy.sh")
        checker.check(text)
        renderer = DiagnosticRenderer(color=False)
        output = renderer.render(checker.diagnostics[0], SourceFile(text, "deploy.sh"))

        assert "error[E200]: types do not match" in output
        assert "deploy.sh:1:7" in output
        assert "deploy.sh:1:1" in output
        assert 'a="x" #/ int' in output
        assert "      ^^^^^^" in output
        assert "type specified as int" in output
        assert "type inferred to be string" in output

    def test_render_uses_label_colors(self):
        source = SourceFile("a=1\n", "t.sh")
        diag = Diagnostic(
            severity=Severity.ERROR,
            code="E201",
            message="variable `a` defined with different type",
            labels=[DiagnosticLabel(Span("t.sh", 0, 3), "first", style="inferred")],
        )
        output = DiagnosticRenderer(colors=LabelColors(inferred="green")).render(diag, source)
        assert "\033[1;32mfirst" in output

    def test_render_note(self):
        source = SourceFile("a=1\n", "t.sh")
        diag = Diagnostic(Severity.WARNING, "W001", "heads up", notes=["more detail"])
        output = DiagnosticRenderer(color=False).render(diag, source)
        assert "warning[W001]: heads up" in output
        assert "note: more detail" in output

    def test_scan_error_to_diagnostic(self):
        err = UnknownVariableError("x", Span("t.sh", 3, 4))
        diag = err.to_diagnostic()
        assert diag.code == "E102"
        assert diag.severity == Severity.ERROR
        assert diag.labels[0].span == Span("t.sh", 3, 4)
        assert "`x`" in diag.message


# --- Source tests ---


class TestSource:
    def test_line_at(self):
        sf = SourceFile("line one\nline two\n", "t.sh")
        assert sf.line_at(1) == "line one"
        assert sf.line_at(2) == "line two"
        assert sf.line_at(0) == ""
        assert sf.line_at(99) == ""

    def test_location(self):
        sf = SourceFile("ab\ncd", "t.sh")
        assert sf.location(0) == (1, 1)
        assert sf.location(1) == (1, 2)
        assert sf.location(3) == (2, 1)
        assert sf.location(5) == (2, 3)

    def test_location_counts_characters(self):
        sf = SourceFile("é=1", "t.sh")
        assert sf.location(2) == (1, 2)

    def test_offset(self):
        sf = SourceFile("ab\ncd", "t.sh")
        assert sf.offset(1, 1) == 0
        assert sf.offset(2, 2) == 4
        assert sf.offset(1, 3) == 2
        assert sf.offset(1, 4) is None
        assert sf.offset(3, 1) is None

    def test_offset_counts_characters(self):
        sf = SourceFile("é=1", "t.sh")
        assert sf.offset(1, 2) == 2
        assert sf.location(sf.offset(1, 3)) == (1, 3)

    def test_span_text(self):
        sf = SourceFile("hello world\n", "t.sh")
        assert sf.span_text(Span("t.sh", 6, 11)) == "world"

    def test_from_path(self, script):
        path = script("a=1\n")
        sf = SourceFile.from_path(path)
        assert sf.name == str(path)
        assert sf.content == b"a=1\n"

    def test_span_combine(self):
        a = Span("t.sh", 5, 9)
        b = Span("t.sh", 0, 3)
        assert a.combine(b) == Span("t.sh", 0, 9)
        assert b.combine(a) == Span("t.sh", 0, 9)

    def test_span_str(self):
        assert str(Span("t.sh", 4, 10)) == "t.sh:4..10"
