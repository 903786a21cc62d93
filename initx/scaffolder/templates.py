"""Jinja2 rendering of template-authoring skeletons.

``TemplateRenderer`` loads ``.j2`` files from ``initx/scaffolder/skeletons/``
and renders them into in-memory ``TreeEntry`` objects that the materializer
writes with its usual staging guarantees.  Rendering leaves ``$name``-style
placeholders untouched, so a rendered skeleton is itself a valid initx
template.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from .walker import EntryKind, TreeEntry


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_SKELETON_DIR = Path(__file__).parent / "skeletons"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 skeletons for new initx templates.

    Skeletons are ``.j2`` files under a configurable directory, grouped by
    a prefix subdirectory (``template/`` for a new initx template).
    """

    def __init__(self, skeleton_dir: str | Path | None = None) -> None:
        if skeleton_dir is None:
            skeleton_dir = _DEFAULT_SKELETON_DIR
        self.skeleton_dir = Path(skeleton_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.skeleton_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self.env.filters["slugify"] = _slugify_filter

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single skeleton file relative to the skeleton directory."""
        template = self.env.get_template(template_path)
        return template.render(**context)

    def render_entries(self, prefix: str, context: dict[str, Any]) -> list[TreeEntry]:
        """Render every ``*.j2`` file under *prefix* into tree entries.

        The directory structure is preserved and the ``.j2`` suffix is
        stripped.  Directory entries are emitted before their children.

        Returns:
            Entries ready for ``ScaffoldMaterializer.materialize_entries``.
        """
        prefix_path = self.skeleton_dir / prefix
        if not prefix_path.is_dir():
            return []

        entries: list[TreeEntry] = []
        emitted_dirs: set[tuple[str, ...]] = set()

        for template_file in sorted(prefix_path.rglob("*.j2")):
            rel = template_file.relative_to(prefix_path)
            parts = rel.parts[:-1] + (rel.name[: -len(".j2")],)

            for depth in range(1, len(parts)):
                dir_parts = parts[:depth]
                if dir_parts not in emitted_dirs:
                    emitted_dirs.add(dir_parts)
                    entries.append(TreeEntry(dir_parts, EntryKind.DIRECTORY))

            content = self.render(_loader_key(prefix, rel), context)
            entries.append(TreeEntry(parts, EntryKind.FILE, content=content.encode("utf-8")))

        return entries

    def list_skeletons(self, prefix: str = "") -> list[str]:
        """Return a sorted list of all ``.j2`` paths under *prefix*."""
        search_dir = self.skeleton_dir / prefix if prefix else self.skeleton_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            str(p.relative_to(self.skeleton_dir).as_posix())
            for p in search_dir.rglob("*.j2")
        )


def _loader_key(prefix: str, rel: Path) -> str:
    """Loader key for a skeleton file (always ``/``-separated)."""
    return f"{prefix}/{rel.as_posix()}"


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _slugify_filter(value: str) -> str:
    """Convert a string to a filename-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower().strip())
    return slug.strip("-")
