"""Error taxonomy for the initx scaffolding engine.

Every failure the engine can surface is an ``InitxError`` subclass carrying a
stable ``kind`` label and the process ``exit_code`` the CLI should use.  The
engine raises these; the ``ProjectInitializer`` facade turns them into a
``ScaffoldResult`` and the CLI renders them as one-line messages.
"""

from __future__ import annotations

from pathlib import Path

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_UNKNOWN_TEMPLATE = 2
EXIT_DESTINATION_EXISTS = 3
EXIT_INVALID_NAME = 4


class InitxError(Exception):
    """Base class for all structured initx failures."""

    kind: str = "Error"
    exit_code: int = EXIT_FAILURE


class ConfigError(InitxError):
    """An ``INITX_*`` environment variable holds an unusable value."""

    kind = "InvalidConfig"

    def __init__(self, setting: str, reason: str) -> None:
        self.setting = setting
        self.reason = reason
        super().__init__(f"Invalid configuration ({setting}): {reason}")


class TemplateNotFoundError(InitxError):
    """Raised by the registry when no template matches the requested id."""

    kind = "NotFound"
    exit_code = EXIT_UNKNOWN_TEMPLATE

    def __init__(self, template_id: str) -> None:
        self.template_id = template_id
        super().__init__(f"No template registered for '{template_id}'")


class UnknownTemplateError(InitxError):
    """User-facing form of ``TemplateNotFoundError`` with the available ids."""

    kind = "UnknownTemplate"
    exit_code = EXIT_UNKNOWN_TEMPLATE

    def __init__(self, template_id: str, available: list[str]) -> None:
        self.template_id = template_id
        self.available = list(available)
        choices = ", ".join(self.available) or "none"
        super().__init__(
            f"Unknown template '{template_id}'. Available templates: {choices}"
        )


class TemplateCorruptError(InitxError):
    """A registered template root is missing or is not a directory.

    This indicates a packaging defect rather than a user error.
    """

    kind = "TemplateCorrupt"

    def __init__(self, template_id: str, root: Path) -> None:
        self.template_id = template_id
        self.root = Path(root)
        super().__init__(
            f"Template '{template_id}' is corrupt: root {self.root} does not exist "
            "or is not a directory"
        )


class UnsupportedEntryError(InitxError):
    """A template contains a symlink or other non-regular file."""

    kind = "UnsupportedEntry"

    def __init__(self, path: Path, reason: str = "symbolic link or special file") -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Unsupported template entry {self.path}: {reason}")


class DestinationExistsError(InitxError):
    """The destination exists, is not empty, and overwrite was not requested."""

    kind = "DestinationExists"
    exit_code = EXIT_DESTINATION_EXISTS

    def __init__(self, destination: Path) -> None:
        self.destination = Path(destination)
        super().__init__(
            f"Destination {self.destination} already exists and is not empty. "
            "Use --force to overwrite it or choose a different project name"
        )


class InvalidProjectNameError(InitxError):
    """The project name is empty or contains path separators."""

    kind = "InvalidProjectName"
    exit_code = EXIT_INVALID_NAME

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid project name {name!r}: {reason}")


class ScaffoldIOError(InitxError):
    """A filesystem operation failed while staging or promoting a scaffold.

    The underlying ``OSError`` is kept as ``__cause__`` and ``cause``.
    """

    kind = "IOFailure"

    def __init__(self, message: str, path: Path | None = None, cause: OSError | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self.cause = cause
        detail = f": {cause.strerror or cause}" if cause is not None else ""
        where = f" ({self.path})" if self.path is not None else ""
        super().__init__(f"{message}{where}{detail}")


class HookError(InitxError):
    """A post-scaffold command exited non-zero or could not be started."""

    kind = "HookFailure"

    def __init__(self, command: str, returncode: int, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        tail = f": {stderr.splitlines()[-1]}" if stderr.strip() else ""
        super().__init__(f"Post-scaffold command failed (exit {returncode}): {command}{tail}")
