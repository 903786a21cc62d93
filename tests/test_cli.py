"""Tests for the initx command line (initx.cli).

Commands are driven through ``main(argv)`` and checked by exit code, the
files they leave behind and their console output.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from initx.cli import build_parser, main
from initx.errors import (
    EXIT_DESTINATION_EXISTS,
    EXIT_FAILURE,
    EXIT_INVALID_NAME,
    EXIT_OK,
    EXIT_UNKNOWN_TEMPLATE,
    HookError,
)


pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in (
        "INITX_DEFAULT_DIR",
        "INITX_TEMPLATES_DIR",
        "INITX_PLACEHOLDER",
        "INITX_RUN_HOOKS",
        "INITX_HOOK_TIMEOUT",
    ):
        monkeypatch.delenv(var, raising=False)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class TestParser:
    def test_init_arguments(self):
        args = build_parser().parse_args(["init", "rust", "myapp", "-d", "/tmp", "--force", "--no-hooks"])
        assert args.command == "init"
        assert args.template == "rust"
        assert args.name == "myapp"
        assert args.parent == "/tmp"
        assert args.force is True
        assert args.no_hooks is True
        assert args.verbose is False

    def test_name_is_optional(self):
        args = build_parser().parse_args(["init", "ts"])
        assert args.name is None

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_repeatable_package(self):
        args = build_parser().parse_args(["new-template", "zig", "-p", "zig", "-p", "zls"])
        assert args.packages == ["zig", "zls"]


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------


class TestInitCommand:
    def test_scaffolds_rust(self, output_dir: Path, capsys):
        code = main(["init", "rust", "myapp", "--dir", str(output_dir), "--no-hooks"])

        assert code == EXIT_OK
        cargo = (output_dir / "myapp" / "Cargo.toml").read_text(encoding="utf-8")
        assert 'name = "myapp"' in cargo
        out = capsys.readouterr().out
        assert "Created" in out
        assert "rust" in out

    def test_alias(self, output_dir: Path):
        assert main(["init", "TS", "web", "-d", str(output_dir), "--no-hooks"]) == EXIT_OK
        assert (output_dir / "web" / "src" / "web.ts").is_file()

    def test_unknown_template(self, output_dir: Path, capsys):
        code = main(["init", "go", "myapp", "-d", str(output_dir)])

        assert code == EXIT_UNKNOWN_TEMPLATE
        err = capsys.readouterr().err
        assert "Unknown template 'go'" in err
        assert "rust, typescript" in err
        assert list(output_dir.iterdir()) == []

    def test_invalid_name(self, output_dir: Path):
        assert main(["init", "rust", "a/b", "-d", str(output_dir)]) == EXIT_INVALID_NAME
        assert list(output_dir.iterdir()) == []

    def test_destination_exists(self, output_dir: Path, capsys):
        assert main(["init", "rust", "myapp", "-d", str(output_dir), "--no-hooks"]) == EXIT_OK
        capsys.readouterr()

        code = main(["init", "rust", "myapp", "-d", str(output_dir), "--no-hooks"])

        assert code == EXIT_DESTINATION_EXISTS
        assert "--force" in capsys.readouterr().err

    def test_force_overwrites(self, output_dir: Path):
        main(["init", "rust", "myapp", "-d", str(output_dir), "--no-hooks"])
        (output_dir / "myapp" / "junk").write_text("x", encoding="utf-8")

        code = main(["init", "rust", "myapp", "-d", str(output_dir), "--no-hooks", "--force"])

        assert code == EXIT_OK
        assert not (output_dir / "myapp" / "junk").exists()

    def test_default_dir_from_env(self, output_dir: Path, monkeypatch):
        monkeypatch.setenv("INITX_DEFAULT_DIR", str(output_dir))
        assert main(["init", "rust", "envapp", "--no-hooks"]) == EXIT_OK
        assert (output_dir / "envapp" / "src" / "main.rs").is_file()

    def test_verbose_lists_entries(self, output_dir: Path, capsys):
        main(["init", "rust", "myapp", "-d", str(output_dir), "--no-hooks", "-v"])
        out = capsys.readouterr().out
        assert "Writing file" in out
        assert "Creating dir" in out

    def test_prompts_for_missing_name(self, output_dir: Path):
        with patch("initx.cli.Prompt.ask", side_effect=["  ", "prompted"]) as ask:
            code = main(["init", "rust", "-d", str(output_dir), "--no-hooks"])
        assert code == EXIT_OK
        assert ask.call_count == 2
        assert (output_dir / "prompted" / "Cargo.toml").is_file()

    def test_prompt_eof(self, output_dir: Path):
        with patch("initx.cli.Prompt.ask", side_effect=EOFError):
            assert main(["init", "rust", "-d", str(output_dir)]) == EXIT_INVALID_NAME

    def test_keyboard_interrupt(self, output_dir: Path):
        with patch("initx.cli.Prompt.ask", side_effect=KeyboardInterrupt):
            assert main(["init", "rust", "-d", str(output_dir)]) == EXIT_FAILURE

    def test_malformed_hook_timeout(self, output_dir: Path, monkeypatch, capsys):
        monkeypatch.setenv("INITX_HOOK_TIMEOUT", "abc")

        code = main(["init", "rust", "myapp", "-d", str(output_dir)])

        assert code == EXIT_FAILURE
        err = capsys.readouterr().err
        assert "Invalid configuration" in err
        assert "INITX_HOOK_TIMEOUT" in err
        assert "Traceback" not in err
        assert not (output_dir / "myapp").exists()

    def test_placeholder_clash(self, output_dir: Path, monkeypatch, capsys):
        monkeypatch.setenv("INITX_PLACEHOLDER", "$location")

        assert main(["init", "rust", "myapp", "-d", str(output_dir)]) == EXIT_FAILURE
        assert "must differ" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# Editable template copies (--templates-dir / INITX_TEMPLATES_DIR)
# ---------------------------------------------------------------------------


class TestTemplatesDir:
    def _export_and_edit(self, templates: Path) -> None:
        assert main(["export-defaults", str(templates)]) == EXIT_OK
        (templates / "rust" / "README.md").write_text("# $name, edited\n", encoding="utf-8")

    def test_init_uses_edited_copy(self, output_dir: Path):
        templates = output_dir / "templates"
        self._export_and_edit(templates)

        code = main([
            "--templates-dir", str(templates),
            "init", "rust", "myapp", "-d", str(output_dir / "work"), "--no-hooks",
        ])

        assert code == EXIT_OK
        readme = output_dir / "work" / "myapp" / "README.md"
        assert readme.read_text(encoding="utf-8") == "# myapp, edited\n"

    def test_init_uses_env_dir(self, output_dir: Path, monkeypatch):
        templates = output_dir / "templates"
        self._export_and_edit(templates)
        monkeypatch.setenv("INITX_TEMPLATES_DIR", str(templates))

        code = main(["init", "rs", "envapp", "-d", str(output_dir / "work"), "--no-hooks"])

        assert code == EXIT_OK
        readme = output_dir / "work" / "envapp" / "README.md"
        assert readme.read_text(encoding="utf-8") == "# envapp, edited\n"

    def test_option_overrides_env(self, output_dir: Path, monkeypatch):
        templates = output_dir / "templates"
        self._export_and_edit(templates)
        monkeypatch.setenv("INITX_TEMPLATES_DIR", str(output_dir / "missing"))

        code = main([
            "-t", str(templates),
            "init", "rust", "myapp", "-d", str(output_dir / "work"), "--no-hooks",
        ])

        assert code == EXIT_OK

    def test_missing_copy_is_corrupt(self, output_dir: Path, capsys):
        code = main([
            "--templates-dir", str(output_dir / "empty"),
            "init", "rust", "myapp", "-d", str(output_dir), "--no-hooks",
        ])

        assert code == EXIT_FAILURE
        assert "corrupt" in capsys.readouterr().err
        assert not (output_dir / "myapp").exists()

    def test_export_defaults_to_env_dir(self, output_dir: Path, monkeypatch, capsys):
        templates = output_dir / "templates"
        monkeypatch.setenv("INITX_TEMPLATES_DIR", str(templates))

        assert main(["export-defaults"]) == EXIT_OK
        assert (templates / "rust" / "Cargo.toml").is_file()
        assert "INITX_TEMPLATES_DIR=" not in capsys.readouterr().out

    def test_export_hints_at_templates_dir(self, output_dir: Path, capsys):
        assert main(["export-defaults", str(output_dir / "copies")]) == EXIT_OK
        assert "INITX_TEMPLATES_DIR=" in capsys.readouterr().out

    def test_export_without_target(self, capsys):
        assert main(["export-defaults"]) == EXIT_FAILURE
        assert "no export directory given" in capsys.readouterr().err

    def test_list_shows_templates_dir(self, output_dir: Path, capsys):
        templates = output_dir / "templates"
        assert main(["export-defaults", str(templates)]) == EXIT_OK
        capsys.readouterr()

        with patch("initx.cli.print_template_table") as table:
            assert main(["--templates-dir", str(templates), "list"]) == EXIT_OK

        rows, = table.call_args.args
        assert [row[0] for row in rows] == ["rust", "typescript"]
        assert str(templates) in table.call_args.kwargs["title"]

    def test_new_template_lands_in_templates_dir(self, output_dir: Path, capsys):
        templates = output_dir / "templates"

        assert main(["--templates-dir", str(templates), "new-template", "zig"]) == EXIT_OK
        assert (templates / "zig" / "devenv.nix").is_file()
        assert "registry.py" in capsys.readouterr().out

    def test_new_template_replacing_registered_copy(self, output_dir: Path, capsys):
        templates = output_dir / "templates"
        assert main(["export-defaults", str(templates)]) == EXIT_OK
        capsys.readouterr()

        code = main(["-t", str(templates), "new-template", "rust", "--force"])

        assert code == EXIT_OK
        assert "initx init rust" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# Post-scaffold hooks from the CLI
# ---------------------------------------------------------------------------


class TestInitHooks:
    def test_hooks_run_after_scaffold(self, output_dir: Path):
        with patch("initx.cli.run_post_commands", new_callable=AsyncMock) as hooks:
            code = main(["init", "rust", "myapp", "-d", str(output_dir)])

        assert code == EXIT_OK
        hooks.assert_awaited_once()
        commands, cwd, mapping = hooks.await_args.args
        assert commands == ("git init -q",)
        assert cwd == output_dir / "myapp"
        assert mapping["$name"] == "myapp"
        assert hooks.await_args.kwargs["timeout"] == 300

    def test_no_hooks_flag(self, output_dir: Path):
        with patch("initx.cli.run_post_commands", new_callable=AsyncMock) as hooks:
            main(["init", "rust", "myapp", "-d", str(output_dir), "--no-hooks"])
        hooks.assert_not_awaited()

    def test_hooks_disabled_by_env(self, output_dir: Path, monkeypatch):
        monkeypatch.setenv("INITX_RUN_HOOKS", "0")
        with patch("initx.cli.run_post_commands", new_callable=AsyncMock) as hooks:
            main(["init", "rust", "myapp", "-d", str(output_dir)])
        hooks.assert_not_awaited()

    def test_hook_failure_keeps_project(self, output_dir: Path, capsys):
        error = HookError("git init -q", 1, "boom")
        with patch("initx.cli.run_post_commands", new_callable=AsyncMock, side_effect=error):
            code = main(["init", "rust", "myapp", "-d", str(output_dir)])

        assert code == EXIT_FAILURE
        assert (output_dir / "myapp" / "Cargo.toml").is_file()
        assert "created" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# list / new-template / export-defaults
# ---------------------------------------------------------------------------


class TestOtherCommands:
    def test_list(self, capsys):
        assert main(["list"]) == EXIT_OK
        out = capsys.readouterr().out
        assert "rust" in out
        assert "typescript" in out
        assert "cargo" in out

    def test_new_template(self, output_dir: Path, capsys):
        code = main(["new-template", "Zig", "-d", str(output_dir), "-p", "zig"])

        assert code == EXIT_OK
        assert "pkgs.zig" in (output_dir / "zig" / "devenv.nix").read_text(encoding="utf-8")
        assert "registry.py" in capsys.readouterr().out

    def test_new_template_exists(self, output_dir: Path):
        main(["new-template", "zig", "-d", str(output_dir)])
        assert main(["new-template", "zig", "-d", str(output_dir)]) == EXIT_DESTINATION_EXISTS

    def test_new_template_invalid_name(self, output_dir: Path):
        assert main(["new-template", "", "-d", str(output_dir)]) == EXIT_INVALID_NAME

    def test_export_defaults(self, output_dir: Path, capsys):
        code = main(["export-defaults", str(output_dir / "defaults")])

        assert code == EXIT_OK
        assert (output_dir / "defaults" / "rust" / "Cargo.toml").is_file()
        assert (output_dir / "defaults" / "typescript" / "src" / "$name.ts").is_file()
        assert "Exported rust" in capsys.readouterr().out

    def test_export_defaults_twice(self, output_dir: Path):
        main(["export-defaults", str(output_dir)])
        assert main(["export-defaults", str(output_dir)]) == EXIT_DESTINATION_EXISTS
        assert main(["export-defaults", str(output_dir), "--force"]) == EXIT_OK
