"""Compiled-in table of the templates initx can scaffold.

The set of built-in templates is an explicit map literal rather than a scan
of the filesystem, which keeps resolution deterministic.  Each template's
files live under ``initx/builtin_templates/<id>/`` and ship as package data.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from initx.errors import TemplateCorruptError, TemplateNotFoundError

BUILTIN_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "builtin_templates"


@dataclass(frozen=True)
class TemplateDescriptor:
    """A registered template and where its file tree lives."""

    id: str
    root_path: Path
    description: str = ""
    aliases: tuple[str, ...] = ()
    # Run in the new project after materialization; may contain placeholders.
    commands: tuple[str, ...] = ()


# id -> (relative root, description, aliases, post-scaffold commands)
_BUILTIN_SPECS: dict[str, tuple[str, str, tuple[str, ...], tuple[str, ...]]] = {
    "rust": (
        "rust",
        "Rust binary crate with a nightly devenv toolchain",
        ("rs", "cargo"),
        ("git init -q",),
    ),
    "typescript": (
        "typescript",
        "TypeScript Node.js package with a devenv shell",
        ("ts", "node"),
        ("git init -q",),
    ),
}


class TemplateRegistry:
    """Maps template ids (and aliases) to ``TemplateDescriptor`` objects."""

    def __init__(self, descriptors: Iterable[TemplateDescriptor]) -> None:
        self._by_id: dict[str, TemplateDescriptor] = {}
        self._aliases: dict[str, str] = {}

        for descriptor in descriptors:
            key = descriptor.id.lower()
            if not key:
                raise ValueError("template ids must not be empty")
            if key in self._by_id or key in self._aliases:
                raise ValueError(f"Duplicate template id: {descriptor.id}")
            self._by_id[key] = descriptor

        for key, descriptor in self._by_id.items():
            for alias in descriptor.aliases:
                alias_key = alias.lower()
                if alias_key in self._by_id or alias_key in self._aliases:
                    raise ValueError(
                        f"Alias '{alias}' of template '{descriptor.id}' collides "
                        "with another template id or alias"
                    )
                self._aliases[alias_key] = key

    @classmethod
    def builtin(cls, root: str | Path | None = None) -> "TemplateRegistry":
        """Registry of the templates bundled with initx.

        Args:
            root: Override for the directory holding the template trees
                (``InitxConfig.templates_dir``); one subdirectory per id.
        """
        base = Path(root) if root is not None else BUILTIN_TEMPLATES_DIR
        return cls(
            TemplateDescriptor(
                id=template_id,
                root_path=base / rel_root,
                description=description,
                aliases=aliases,
                commands=commands,
            )
            for template_id, (rel_root, description, aliases, commands) in _BUILTIN_SPECS.items()
        )

    def resolve(self, template_id: str) -> TemplateDescriptor:
        """Look up a template by id or alias, case-insensitively.

        Raises:
            TemplateNotFoundError: If nothing matches.
            TemplateCorruptError: If the registered root is not a directory.
        """
        key = template_id.strip().lower()
        key = self._aliases.get(key, key)
        descriptor = self._by_id.get(key)
        if descriptor is None:
            raise TemplateNotFoundError(template_id)
        if not descriptor.root_path.is_dir():
            raise TemplateCorruptError(descriptor.id, descriptor.root_path)
        return descriptor

    def list(self) -> list[str]:
        """Registered ids in lexicographic order."""
        return sorted(d.id for d in self._by_id.values())

    def descriptors(self) -> list[TemplateDescriptor]:
        """Registered descriptors in the same order as :meth:`list`."""
        return sorted(self._by_id.values(), key=lambda d: d.id)

    def __contains__(self, template_id: object) -> bool:
        if not isinstance(template_id, str):
            return False
        key = template_id.strip().lower()
        return key in self._by_id or key in self._aliases

    def __len__(self) -> int:
        return len(self._by_id)
