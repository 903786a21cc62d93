"""Project initializer: the single entry point used by the CLI.

Validates the project name, resolves the template, builds the substitution
map and hands off to the materializer.  Engine failures are returned inside
the ``ScaffoldResult`` rather than raised, so callers always receive a
structured outcome.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

from initx.config import InitxConfig
from initx.errors import (
    InitxError,
    InvalidProjectNameError,
    TemplateNotFoundError,
    UnknownTemplateError,
)

from .materializer import ScaffoldMaterializer, ScaffoldResult
from .registry import TemplateRegistry


def validate_project_name(name: str) -> str:
    """Return the stripped project name or raise ``InvalidProjectNameError``."""
    stripped = name.strip()
    if not stripped:
        raise InvalidProjectNameError(name, "name cannot be empty")
    separators = {"/", "\\", os.sep}
    if os.altsep:
        separators.add(os.altsep)
    if any(sep in stripped for sep in separators):
        raise InvalidProjectNameError(name, "name cannot contain path separators")
    if stripped in (".", ".."):
        raise InvalidProjectNameError(name, "name cannot be '.' or '..'")
    if "\x00" in stripped:
        raise InvalidProjectNameError(name, "name cannot contain NUL bytes")
    return stripped


class ProjectInitializer:
    """Scaffolds a new project from a registered template.

    Args:
        config: Explicit configuration (placeholder tokens, default parent).
        registry: Template registry; by default the built-in table rooted at
            ``config.templates_dir`` (or the bundled trees).
        materializer: Materializer; built from *config* by default.
    """

    def __init__(
        self,
        config: InitxConfig | None = None,
        registry: TemplateRegistry | None = None,
        materializer: ScaffoldMaterializer | None = None,
    ) -> None:
        self.config = config or InitxConfig()
        self.registry = registry or TemplateRegistry.builtin(self.config.templates_dir)
        self.materializer = materializer or ScaffoldMaterializer(self.config)

    # -- Public API --------------------------------------------------------

    async def init(
        self,
        template_id: str,
        project_name: str,
        destination_parent: str | Path | None = None,
        overwrite: bool = False,
    ) -> ScaffoldResult:
        """Scaffold *project_name* from *template_id*.

        The blocking filesystem work runs in a worker thread.
        """
        return await asyncio.to_thread(
            self.init_sync, template_id, project_name, destination_parent, overwrite
        )

    def init_sync(
        self,
        template_id: str,
        project_name: str,
        destination_parent: str | Path | None = None,
        overwrite: bool = False,
    ) -> ScaffoldResult:
        """Synchronous variant of :meth:`init`."""
        parent = Path(destination_parent) if destination_parent is not None else self.config.default_parent
        destination = (parent / project_name.strip()).absolute()

        reported_id = template_id
        try:
            name = validate_project_name(project_name)
            try:
                descriptor = self.registry.resolve(template_id)
            except TemplateNotFoundError:
                raise UnknownTemplateError(template_id, self.registry.list()) from None
            reported_id = descriptor.id
            mapping = self.substitution_map(name, destination)
            return self.materializer.materialize(descriptor, destination, mapping, overwrite)
        except InitxError as exc:
            return ScaffoldResult(
                template_id=reported_id,
                destination_root=destination,
                error=exc,
            )

    def substitution_map(self, project_name: str, destination: Path) -> Mapping[str, str]:
        """Placeholder map for one invocation."""
        return MappingProxyType({
            self.config.placeholder: project_name,
            self.config.location_placeholder: str(destination),
        })
