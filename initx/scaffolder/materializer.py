"""Atomic materialization of a template tree into a destination directory.

The whole scaffold is first written into a hidden staging directory created
next to the destination.  Only when every entry has been written is the
staging tree promoted with a single ``os.rename``.  Any failure before that
point discards the staging tree, so the destination is either absent, left
exactly as it was, or a complete, fully substituted copy of the template.

Promotion falls back to a sequential copy (with removal of the partially
copied destination on failure) only when the rename crosses filesystems,
which a sibling staging directory makes unlikely.
"""

from __future__ import annotations

import errno
import os
import shutil
import stat
import tempfile
import uuid
from collections.abc import Iterable, Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from initx.config import InitxConfig
from initx.errors import (
    DestinationExistsError,
    InitxError,
    ScaffoldIOError,
    UnsupportedEntryError,
)
from initx.utils import print_entry, print_warning

from .registry import TemplateDescriptor
from .substitution import SubstitutionEngine
from .walker import TemplateWalker, TreeEntry


# ---------------------------------------------------------------------------
# Result model
# ---------------------------------------------------------------------------


class ScaffoldResult(BaseModel):
    """Outcome of one scaffold run.

    ``template_id`` is the canonical registry id once the template has been
    resolved (also for failures after resolution).  It is the id exactly as
    requested only when resolution itself failed, or when the name was
    rejected before lookup.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    template_id: str
    destination_root: Path
    files_written: int = 0
    directories_created: int = 0
    error: InitxError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Filesystem helpers
# ---------------------------------------------------------------------------


def _read_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


# mkdtemp creates 0700 directories; the promoted project root follows the umask.
_DIRECTORY_MODE = 0o777 & ~_read_umask()


def _write_file(path: Path, content: bytes, template_mode: int) -> None:
    """Write a staged file, refusing to clobber an existing one.

    Executable bits of the template file are carried over.
    """
    with open(path, "xb") as fh:
        fh.write(content)
    if template_mode & 0o111:
        current = stat.S_IMODE(path.stat().st_mode)
        os.chmod(path, current | ((current & 0o444) >> 2))


def _remove_path(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def _is_valid_segment(segment: str) -> bool:
    if segment in ("", ".", ".."):
        return False
    return "/" not in segment and "\\" not in segment and "\x00" not in segment


def _destination_is_empty_dir(destination: Path) -> bool:
    if destination.is_symlink() or not destination.is_dir():
        return False
    with os.scandir(destination) as entries:
        return next(entries, None) is None


# ---------------------------------------------------------------------------
# Materializer
# ---------------------------------------------------------------------------


class ScaffoldMaterializer:
    """Stages, substitutes and promotes a template into a destination."""

    def __init__(self, config: InitxConfig | None = None) -> None:
        self.config = config or InitxConfig()

    def materialize(
        self,
        template: TemplateDescriptor,
        destination: str | Path,
        mapping: Mapping[str, str],
        overwrite: bool = False,
    ) -> ScaffoldResult:
        """Materialize *template* into *destination*.

        Args:
            template: Resolved template descriptor.
            destination: Directory to create.  It may already exist if it is
                empty, or if *overwrite* is true (its contents are replaced).
            mapping: Placeholder -> value substitution map.
            overwrite: Replace an existing non-empty destination.

        Returns:
            A successful ``ScaffoldResult``.

        Raises:
            DestinationExistsError: Before any write, if the destination is
                occupied and *overwrite* is false.
            UnsupportedEntryError: If the template contains a symlink or a
                special file, or two entries collide after substitution.
            TemplateCorruptError: If the template root vanished.
            ScaffoldIOError: On any filesystem failure while staging or
                promoting.  The destination is left untouched.
        """
        return self.materialize_entries(
            template.id,
            TemplateWalker(template.root_path),
            destination,
            mapping,
            overwrite=overwrite,
            source_root=template.root_path,
        )

    def materialize_entries(
        self,
        template_id: str,
        entries: Iterable[TreeEntry],
        destination: str | Path,
        mapping: Mapping[str, str] | None = None,
        overwrite: bool = False,
        source_root: Path | None = None,
    ) -> ScaffoldResult:
        """Materialize an arbitrary entry stream with the same guarantees.

        *entries* must list every directory before its children.
        *source_root* is only used to report offending entries.
        """
        destination = Path(destination).absolute()
        if os.path.lexists(destination) and not overwrite:
            if not _destination_is_empty_dir(destination):
                raise DestinationExistsError(destination)

        engine = SubstitutionEngine(mapping or {})
        parent = destination.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
            staging = Path(tempfile.mkdtemp(prefix=self.config.staging_prefix, dir=parent))
        except OSError as exc:
            raise ScaffoldIOError("Could not create staging directory", parent, exc) from exc

        try:
            os.chmod(staging, _DIRECTORY_MODE)
            files, dirs = self._stage(
                entries, staging, destination, engine, source_root or Path(template_id)
            )
            self._promote(staging, destination)
        except OSError as exc:
            raise ScaffoldIOError(
                "Failed to materialize template", exc.filename or destination, exc
            ) from exc
        finally:
            self._discard(staging)

        return ScaffoldResult(
            template_id=template_id,
            destination_root=destination,
            files_written=files,
            directories_created=dirs,
        )

    # -- Staging -----------------------------------------------------------

    def _stage(
        self,
        entries: Iterable[TreeEntry],
        staging: Path,
        destination: Path,
        engine: SubstitutionEngine,
        source_root: Path,
    ) -> tuple[int, int]:
        """Write every entry under *staging*; return (files, dirs)."""
        files = 0
        dirs = 0
        seen: set[tuple[str, ...]] = set()

        for entry in entries:
            source = source_root.joinpath(*entry.relative_path)
            segments = engine.apply_segments(entry.relative_path)
            for segment in segments:
                if not _is_valid_segment(segment):
                    raise UnsupportedEntryError(
                        source, f"name becomes {segment!r} after substitution"
                    )
            if segments in seen:
                raise UnsupportedEntryError(
                    source,
                    f"collides with another entry once renamed to {'/'.join(segments)}",
                )
            seen.add(segments)
            target = staging.joinpath(*segments)

            if entry.is_dir:
                target.mkdir()
                dirs += 1
                if self.config.verbose:
                    print_entry("Creating dir", destination.joinpath(*segments))
            else:
                _write_file(target, engine.apply_bytes(entry.content or b""), entry.mode)
                files += 1
                if self.config.verbose:
                    print_entry("Writing file", destination.joinpath(*segments))

        return files, dirs

    # -- Promotion ---------------------------------------------------------

    def _promote(self, staging: Path, destination: Path) -> None:
        if os.path.lexists(destination):
            self._replace_existing(staging, destination)
        else:
            self._rename_or_copy(staging, destination)

    def _rename_or_copy(self, staging: Path, destination: Path) -> None:
        try:
            os.rename(staging, destination)
        except OSError as exc:
            if exc.errno != errno.EXDEV:
                raise
            self._copy_promote(staging, destination)

    def _copy_promote(self, staging: Path, destination: Path) -> None:
        """Cross-device fallback: copy, removing the partial copy on failure."""
        try:
            shutil.copytree(staging, destination, symlinks=True)
        except OSError:
            if os.path.lexists(destination):
                shutil.rmtree(destination, ignore_errors=True)
            raise

    def _replace_existing(self, staging: Path, destination: Path) -> None:
        """Swap the staged tree in place of an existing destination.

        The old destination is renamed aside first and restored if the swap
        fails, then deleted once the new tree is in place.
        """
        backup = destination.with_name(
            f"{self.config.staging_prefix}backup-{uuid.uuid4().hex}"
        )
        os.rename(destination, backup)
        try:
            self._rename_or_copy(staging, destination)
        except BaseException:
            os.rename(backup, destination)
            raise

        try:
            _remove_path(backup)
        except OSError as exc:
            print_warning(f"Scaffold complete but the previous contents remain at {backup}: {exc}")

    def _discard(self, staging: Path) -> None:
        if not os.path.lexists(staging):
            return
        try:
            shutil.rmtree(staging)
        except OSError as exc:
            print_warning(f"Could not remove staging directory {staging}: {exc}")
