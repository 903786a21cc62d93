"""Lazy, deterministic traversal of a template tree.

Entries are yielded depth-first: a directory always comes before its
children and siblings are ordered lexicographically by name, so a consumer
can create parent directories before writing files into them.  Only plain
directories and regular files are accepted.
"""

from __future__ import annotations

import os
import stat
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from initx.errors import TemplateCorruptError, UnsupportedEntryError

# Template metadata files (``.meta.toml``) are never part of the scaffold.
METADATA_PREFIX = ".meta"


class EntryKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class TreeEntry:
    """One node of a template tree, relative to the template root."""

    relative_path: tuple[str, ...]
    kind: EntryKind
    content: bytes | None = None
    mode: int = 0o644

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    def as_path(self) -> Path:
        return Path(*self.relative_path)


def walk(root: str | Path) -> Iterator[TreeEntry]:
    """Yield every entry under *root* in deterministic pre-order.

    The root itself is not yielded.  File content is read lazily as each
    entry is produced.

    Raises:
        TemplateCorruptError: If *root* is missing or not a directory.
        UnsupportedEntryError: On a symlink or a non-regular file.
    """
    root_path = Path(root)
    try:
        root_stat = root_path.lstat()
    except FileNotFoundError:
        raise TemplateCorruptError(root_path.name, root_path) from None
    if not stat.S_ISDIR(root_stat.st_mode):
        raise TemplateCorruptError(root_path.name, root_path)

    yield from _walk_dir(root_path, ())


def _walk_dir(directory: Path, prefix: tuple[str, ...]) -> Iterator[TreeEntry]:
    names = sorted(os.listdir(directory))
    for name in names:
        if name.startswith(METADATA_PREFIX):
            continue
        path = directory / name
        segments = prefix + (name,)
        st = path.lstat()

        if stat.S_ISLNK(st.st_mode):
            raise UnsupportedEntryError(path, "symbolic links are not allowed in templates")
        if stat.S_ISDIR(st.st_mode):
            yield TreeEntry(segments, EntryKind.DIRECTORY, mode=stat.S_IMODE(st.st_mode))
            yield from _walk_dir(path, segments)
        elif stat.S_ISREG(st.st_mode):
            yield TreeEntry(
                segments,
                EntryKind.FILE,
                content=path.read_bytes(),
                mode=stat.S_IMODE(st.st_mode),
            )
        else:
            raise UnsupportedEntryError(path, "only regular files and directories are allowed")


class TemplateWalker:
    """Re-iterable view over :func:`walk`.

    Every ``iter()`` starts a fresh traversal, yielding an equivalent
    sequence as long as the template tree is unchanged.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def __iter__(self) -> Iterator[TreeEntry]:
        return walk(self.root)

    def file_count(self) -> int:
        """Number of regular files the walk would produce."""
        return sum(1 for entry in self if entry.kind is EntryKind.FILE)
