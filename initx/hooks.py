"""Post-scaffold commands.

Templates may list commands (``git init -q``) to run inside the freshly
created project.  Commands are split with ``shlex``, each argument is
substituted with the same placeholder map as the files, and they run without
a shell.  They only run after a successful materialization, so a failing hook
never affects the scaffold's atomicity.
"""

from __future__ import annotations

import shlex
from collections.abc import Mapping, Sequence
from pathlib import Path

from initx.errors import HookError
from initx.scaffolder.substitution import SubstitutionEngine
from initx.utils import print_entry, run_command


async def run_post_commands(
    commands: Sequence[str],
    cwd: Path,
    mapping: Mapping[str, str],
    timeout: int = 300,
    quiet: bool = False,
) -> list[str]:
    """Run each command in *cwd* in order.

    Returns:
        The substituted commands that were executed.

    Raises:
        HookError: On the first command that fails to start or exits non-zero.
    """
    engine = SubstitutionEngine(mapping)
    executed: list[str] = []

    for raw in commands:
        # Split before substituting so values with spaces stay one argument.
        argv = [engine.apply_text(arg) for arg in shlex.split(raw)]
        if not argv:
            continue
        command = shlex.join(argv)
        if not quiet:
            print_entry("Running", command)
        try:
            returncode, _stdout, stderr = await run_command(argv, cwd=cwd, timeout=timeout)
        except FileNotFoundError:
            raise HookError(command, 127, f"{argv[0]}: command not found") from None
        if returncode != 0:
            raise HookError(command, returncode, stderr)
        executed.append(command)

    return executed
