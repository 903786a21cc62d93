"""initx command line.

Usage::

    initx init rust myapp --dir ~/code
    initx init ts                     # prompts for the project name
    initx list
    initx new-template zig --package zig --package zls
    initx export-defaults ~/.config/templates
    initx --templates-dir ~/.config/templates init rust myapp

Exit codes: 0 success, 1 I/O or hook failure, 2 unknown template,
3 destination exists, 4 invalid project name.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from rich.markup import escape
from rich.prompt import Prompt

from initx.config import InitxConfig
from initx.errors import EXIT_FAILURE, EXIT_INVALID_NAME, EXIT_OK, ConfigError, InitxError
from initx.hooks import run_post_commands
from initx.scaffolder import ProjectInitializer, TemplateRegistry
from initx.scaffolder.authoring import (
    DEFAULT_PACKAGES,
    create_template_skeleton,
    export_builtin_templates,
)
from initx.scaffolder.registry import BUILTIN_TEMPLATES_DIR
from initx.utils import (
    console,
    print_error,
    print_success,
    print_summary_table,
    print_template_table,
    print_warning,
)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="initx",
        description="Scaffold new projects from reproducible development templates.",
    )
    parser.add_argument(
        "--templates-dir", "-t",
        dest="templates_dir",
        default=None,
        help="Directory of editable template copies (default: $INITX_TEMPLATES_DIR, "
        "else the bundled templates)",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    init = sub.add_parser("init", help="Create a new project from a template")
    init.add_argument("template", help="Template id or alias (see `initx list`)")
    init.add_argument(
        "name",
        nargs="?",
        default=None,
        help="Project name (prompted for if omitted)",
    )
    init.add_argument(
        "--dir", "-d",
        dest="parent",
        default=None,
        help="Parent directory for the project (default: current directory)",
    )
    init.add_argument(
        "--force", "-f",
        action="store_true",
        help="Overwrite an existing, non-empty project directory",
    )
    init.add_argument(
        "--no-hooks",
        action="store_true",
        help="Skip the template's post-scaffold commands",
    )
    init.add_argument("--verbose", "-v", action="store_true", help="List every created entry")

    sub.add_parser("list", help="List all available templates")

    new = sub.add_parser("new-template", help="Write a skeleton for a new template")
    new.add_argument("name", help="Template name")
    new.add_argument("--dir", "-d", dest="parent", default=None, help="Parent directory")
    new.add_argument(
        "--package", "-p",
        dest="packages",
        action="append",
        default=None,
        help="Nix package to add to devenv.nix (repeatable, default: git)",
    )
    new.add_argument("--force", "-f", action="store_true", help="Overwrite an existing directory")

    export = sub.add_parser("export-defaults", help="Copy the built-in templates to a directory")
    export.add_argument(
        "target",
        nargs="?",
        default=None,
        help="Directory to export into (default: the templates directory)",
    )
    export.add_argument("--force", "-f", action="store_true", help="Overwrite existing copies")

    return parser


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _prompt_project_name() -> str:
    """Ask for a project name until a non-blank one is given."""
    while True:
        name = Prompt.ask("[bold cyan]Project Name[/bold cyan]", console=console)
        if name.strip():
            return name
        print_warning("Name cannot be empty")


def _load_config(args: argparse.Namespace) -> InitxConfig:
    """Environment configuration with the global command-line overrides applied."""
    config = InitxConfig.from_env()
    if args.templates_dir:
        config = config.model_copy(update={"templates_dir": Path(args.templates_dir)})
    return config


def _templates_root(config: InitxConfig) -> Path:
    return config.templates_dir if config.templates_dir is not None else BUILTIN_TEMPLATES_DIR


async def _run_init(args: argparse.Namespace, config: InitxConfig) -> int:
    initializer = ProjectInitializer(config)
    result = await initializer.init(args.template, args.name, args.parent, args.force)
    if result.error is not None:
        print_error(str(result.error))
        return result.error.exit_code

    print_success(f"Created {result.destination_root}")
    print_summary_table(
        {
            "Template": result.template_id,
            "Files": result.files_written,
            "Directories": result.directories_created,
        },
        title="Scaffold",
    )

    descriptor = initializer.registry.resolve(result.template_id)
    if config.run_hooks and descriptor.commands:
        mapping = initializer.substitution_map(args.name.strip(), result.destination_root)
        try:
            await run_post_commands(
                descriptor.commands,
                result.destination_root,
                mapping,
                timeout=config.hook_timeout,
            )
        except InitxError as exc:
            print_error(f"{exc} (the project at {result.destination_root} was created)")
            return exc.exit_code
    return EXIT_OK


def cmd_init(args: argparse.Namespace) -> int:
    config = _load_config(args)
    if args.verbose:
        config = config.model_copy(update={"verbose": True})
    if args.no_hooks:
        config = config.model_copy(update={"run_hooks": False})

    if args.name is None:
        try:
            args.name = _prompt_project_name()
        except EOFError:
            print_error("A project name is required")
            return EXIT_INVALID_NAME

    return asyncio.run(_run_init(args, config))


def cmd_list(args: argparse.Namespace) -> int:
    config = _load_config(args)
    registry = TemplateRegistry.builtin(config.templates_dir)
    rows = [
        (d.id, ", ".join(d.aliases), d.description)
        for d in registry.descriptors()
    ]
    print_template_table(rows, title=f"Templates ({_templates_root(config)})")
    return EXIT_OK


def cmd_new_template(args: argparse.Namespace) -> int:
    config = _load_config(args)
    if args.parent:
        parent = Path(args.parent)
    elif config.templates_dir is not None:
        parent = config.templates_dir
    else:
        parent = config.default_parent
    result = create_template_skeleton(
        args.name,
        parent,
        packages=args.packages or DEFAULT_PACKAGES,
        overwrite=args.force,
    )
    print_success(f"Template '{result.template_id}' created ({result.destination_root})")

    active = TemplateRegistry.builtin(config.templates_dir)
    in_use = (
        config.templates_dir is not None
        and result.template_id in active
        and active.resolve(result.template_id).root_path.absolute() == result.destination_root
    )
    if in_use:
        console.print(
            f"  [dim]`initx init {result.template_id}` now uses this tree.[/dim]"
        )
    else:
        console.print(
            "  [dim]Add it to the template table in initx/scaffolder/registry.py and "
            "place it under the templates directory (--templates-dir or "
            "INITX_TEMPLATES_DIR) to make it available to `initx init`.[/dim]"
        )
    return EXIT_OK


def cmd_export_defaults(args: argparse.Namespace) -> int:
    config = _load_config(args)
    if args.target:
        target = Path(args.target)
    elif config.templates_dir is not None:
        target = config.templates_dir
    else:
        raise ConfigError(
            "INITX_TEMPLATES_DIR",
            "no export directory given; pass one, or set INITX_TEMPLATES_DIR or --templates-dir",
        )

    results = export_builtin_templates(target, overwrite=args.force)
    for result in results:
        print_success(f"Exported {result.template_id} -> {result.destination_root}")

    if config.templates_dir is None or target.absolute() != config.templates_dir.absolute():
        console.print(
            f"  [dim]Set INITX_TEMPLATES_DIR={escape(str(target))} (or pass "
            "--templates-dir) so `initx init` uses the exported copies.[/dim]"
        )
    return EXIT_OK


_COMMANDS = {
    "init": cmd_init,
    "list": cmd_list,
    "new-template": cmd_new_template,
    "export-defaults": cmd_export_defaults,
}


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        return _COMMANDS[args.command](args)
    except InitxError as exc:
        print_error(str(exc))
        return exc.exit_code
    except KeyboardInterrupt:
        print_error("Aborted")
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
