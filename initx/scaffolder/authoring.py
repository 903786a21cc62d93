"""Helpers for template authors.

``create_template_skeleton`` writes a starter template (``.envrc``,
``devenv.nix``, ``README.md``) for a new ecosystem, and
``export_builtin_templates`` copies the bundled templates somewhere editable.
Both go through ``ScaffoldMaterializer`` so they share its staging and
promotion guarantees.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from .initializer import validate_project_name
from .materializer import ScaffoldMaterializer, ScaffoldResult
from .registry import TemplateRegistry
from .templates import TemplateRenderer
from .walker import TemplateWalker

DEFAULT_PACKAGES: tuple[str, ...] = ("git",)


def create_template_skeleton(
    name: str,
    parent: str | Path,
    packages: Sequence[str] = DEFAULT_PACKAGES,
    overwrite: bool = False,
    materializer: ScaffoldMaterializer | None = None,
    renderer: TemplateRenderer | None = None,
) -> ScaffoldResult:
    """Render a new template skeleton into ``parent / name.lower()``.

    Raises:
        InvalidProjectNameError: If *name* is empty or contains separators.
        DestinationExistsError: If the directory is taken and not *overwrite*.
        ScaffoldIOError: On filesystem failures.
    """
    template_name = validate_project_name(name).lower()
    renderer = renderer or TemplateRenderer()
    materializer = materializer or ScaffoldMaterializer()

    entries = renderer.render_entries(
        "template",
        {"template_name": template_name, "packages": list(packages)},
    )
    # No mapping: "$name" must survive into the new template.
    return materializer.materialize_entries(
        template_name,
        entries,
        Path(parent) / template_name,
        overwrite=overwrite,
        source_root=renderer.skeleton_dir / "template",
    )


def export_builtin_templates(
    target: str | Path,
    registry: TemplateRegistry | None = None,
    overwrite: bool = False,
    materializer: ScaffoldMaterializer | None = None,
) -> list[ScaffoldResult]:
    """Copy every registered template verbatim into ``target / <id>``.

    Each template is promoted independently; the first failure stops the
    export and propagates.
    """
    registry = registry or TemplateRegistry.builtin()
    materializer = materializer or ScaffoldMaterializer()
    results: list[ScaffoldResult] = []

    for template_id in registry.list():
        descriptor = registry.resolve(template_id)
        results.append(
            materializer.materialize_entries(
                descriptor.id,
                TemplateWalker(descriptor.root_path),
                Path(target) / descriptor.id,
                overwrite=overwrite,
                source_root=descriptor.root_path,
            )
        )
    return results
