"""Tests for the puffs-gen-c CLI, config, and error rendering."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from puffsgen import __version__
from puffsgen.cli import main
from puffsgen.config import find_config, load_config
from puffsgen.errors import (
    Diagnostic,
    DiagnosticLabel,
    DiagnosticRenderer,
    GenerationError,
    Severity,
)
from puffsgen.formatter import DEFAULT_COMMAND
from puffsgen.source import Span

DOC = json.dumps({
    "package": "demo",
    "decls": [{"kind": "struct", "name": "foo", "suspendible": True, "public": True,
               "fields": [{"name": "a", "type": "u32", "default": 5}]}],
})

BAD_DOC = json.dumps({
    "package": "demo",
    "decls": [{"kind": "struct", "name": "foo", "line": 2, "col": 1,
               "fields": [{"name": "a", "type": "f32"}]}],
})


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def tmp_project(tmp_path, monkeypatch):
    """A directory with a puffsgen.toml and one JSON AST, made the cwd."""
    (tmp_path / "puffsgen.toml").write_text(
        '[package]\nname = "fromcfg"\n[format]\nenabled = false\n'
    )
    (tmp_path / "a.json").write_text(json.dumps({"decls": []}))
    monkeypatch.chdir(tmp_path)
    return tmp_path


# --- CLI tests ---


class TestCLI:
    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Puffs" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_gen_from_file(self, runner, tmp_path):
        src = tmp_path / "foo.json"
        src.write_text(DOC)
        result = runner.invoke(main, ["gen", "--no-format", str(src)])
        assert result.exit_code == 0
        assert "#ifndef PUFFS_DEMO_H" in result.output
        assert "self->f_a = 5;" in result.output

    def test_gen_from_stdin(self, runner):
        result = runner.invoke(main, ["gen", "--no-format"], input=DOC)
        assert result.exit_code == 0
        assert "} puffs_demo_foo;" in result.output

    def test_gen_to_output_file(self, runner, tmp_path):
        out = tmp_path / "demo.c"
        result = runner.invoke(main, ["gen", "--no-format", "-o", str(out)], input=DOC)
        assert result.exit_code == 0
        assert "PUFFS_DEMO_H" not in result.output
        assert "#define PUFFS_DEMO_H" in out.read_text()

    def test_gen_package_override(self, runner):
        result = runner.invoke(main, ["gen", "--no-format", "--package", "gif"], input=DOC)
        assert result.exit_code == 0
        assert "} puffs_gif_foo;" in result.output

    def test_gen_error(self, runner, tmp_path):
        out = tmp_path / "demo.c"
        result = runner.invoke(main, ["gen", "--no-format", "-o", str(out)], input=BAD_DOC)
        assert result.exit_code == 1
        assert "error[G001]" in result.output
        assert "<stdin>:2:1" in result.output
        assert not out.exists()

    def test_gen_error_prints_no_c(self, runner):
        result = runner.invoke(main, ["gen", "--no-format"], input=BAD_DOC)
        assert result.exit_code == 1
        assert "#ifndef" not in result.output

    def test_gen_bad_json(self, runner):
        result = runner.invoke(main, ["gen", "--no-format"], input="{")
        assert result.exit_code == 1
        assert "error[G010]" in result.output

    def test_gen_deeply_nested_json(self, runner):
        depth = 100_000
        text = '{"decls": [' * depth + "]}" * depth
        result = runner.invoke(main, ["gen", "--no-format", "--package", "demo"], input=text)
        assert result.exit_code == 1
        assert "error[G010]" in result.output
        assert "nesting too deep" in result.output

    def test_gen_uses_found_config(self, runner, tmp_project):
        result = runner.invoke(main, ["gen", "a.json"])
        assert result.exit_code == 0
        assert "#define PUFFS_FROMCFG_H" in result.output

    def test_gen_explicit_config(self, runner, tmp_path):
        cfg = tmp_path / "custom.toml"
        cfg.write_text('[package]\nname = "custom"\n[format]\nenabled = false\n')
        result = runner.invoke(
            main, ["gen", "--config", str(cfg)], input=json.dumps({"decls": []}),
        )
        assert result.exit_code == 0
        assert "#define PUFFS_CUSTOM_H" in result.output

    def test_gen_invalid_config(self, runner, tmp_path):
        cfg = tmp_path / "broken.toml"
        cfg.write_text("[package\n")
        result = runner.invoke(main, ["gen", "--config", str(cfg)], input=DOC)
        assert result.exit_code == 1
        assert "invalid config" in result.output

    def test_gen_formatter_failure(self, runner, tmp_path):
        cfg = tmp_path / "fmt.toml"
        cfg.write_text('[format]\ncommand = ["puffsgen-no-such-formatter"]\n')
        result = runner.invoke(main, ["gen", "--config", str(cfg)], input=DOC)
        assert result.exit_code == 1
        assert "error[F001]" in result.output
        assert "#ifndef" not in result.output

    def test_view(self, runner, tmp_path):
        src = tmp_path / "foo.json"
        src.write_text(DOC)
        result = runner.invoke(main, ["view", str(src)])
        assert result.exit_code == 0
        assert "StructDef" in result.output
        assert "name: foo" in result.output
        assert "default: 5" in result.output

    def test_view_bad_input(self, runner, tmp_path):
        src = tmp_path / "bad.json"
        src.write_text("[]")
        result = runner.invoke(main, ["view", str(src)])
        assert result.exit_code == 1
        assert "error[G010]" in result.output


# --- Config tests ---


class TestConfig:
    def test_defaults(self, tmp_path):
        cfg = tmp_path / "puffsgen.toml"
        cfg.write_text("")
        config = load_config(cfg)
        assert config.package.name is None
        assert config.format.enabled
        assert config.format.command == list(DEFAULT_COMMAND)

    def test_load(self, tmp_path):
        cfg = tmp_path / "puffsgen.toml"
        cfg.write_text(
            '[package]\nname = "gif"\n'
            '[format]\nenabled = false\ncommand = ["clang-format", "-style=LLVM"]\n'
        )
        config = load_config(cfg)
        assert config.package.name == "gif"
        assert not config.format.enabled
        assert config.format.command == ["clang-format", "-style=LLVM"]

    def test_command_string_is_one_word(self, tmp_path):
        cfg = tmp_path / "puffsgen.toml"
        cfg.write_text('[format]\ncommand = "clang-format"\n')
        assert load_config(cfg).format.command == ["clang-format"]

    def test_find_config_walks_up(self, tmp_project):
        nested = tmp_project / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config(nested) == tmp_project / "puffsgen.toml"

    def test_find_config_from_file(self, tmp_project):
        assert find_config(tmp_project / "a.json") == tmp_project / "puffsgen.toml"

    def test_find_config_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            find_config(tmp_path)


# --- Error rendering tests ---


class TestDiagnosticRenderer:
    def test_plain(self):
        diag = Diagnostic(
            severity=Severity.ERROR,
            code="G001",
            message="cannot convert Puffs type 'f32' to C",
            labels=[DiagnosticLabel(Span("a.json", 3, 5, 3, 5), "here")],
            notes=["in struct 's'"],
        )
        text = DiagnosticRenderer(color=False).render(diag)
        assert text.splitlines() == [
            "error[G001]: cannot convert Puffs type 'f32' to C",
            "  --> a.json:3:5",
            "     |   here",
            "  = note: in struct 's'",
        ]

    def test_color(self):
        diag = Diagnostic(severity=Severity.WARNING, code="G001", message="m")
        text = DiagnosticRenderer(color=True).render(diag)
        assert "\033[1;33m" in text
        assert "warning[G001]" in text

    def test_generation_error(self):
        err = GenerationError("G006", "body recursion depth too large")
        assert err.code == "G006"
        [diag] = err.diagnostics
        assert diag.severity is Severity.ERROR
        assert diag.labels == []
        assert "body recursion depth too large" in str(err)
