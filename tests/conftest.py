"""Shared pytest fixtures for the initx test suite.

Provides reusable fixtures for:
- A small on-disk template tree with placeholders in names and contents
- Registries and configuration wired to that template
- Output directories
- Mock subprocess helpers for post-scaffold hooks
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from initx.config import InitxConfig
from initx.scaffolder import ScaffoldMaterializer, TemplateDescriptor, TemplateRegistry


# ---------------------------------------------------------------------------
# Template trees
# ---------------------------------------------------------------------------

SAMPLE_BINARY = b"\x89PNG\r\n\x1a\n\x00\x00$name\x00"


def build_sample_template(root: Path) -> Path:
    """Write a template tree exercising every substitution path.

    Layout::

        .envrc
        README.md
        assets/logo.png          (binary, contains "$name" bytes)
        devenv.nix
        scripts/run.sh           (executable)
        src/$name.txt            (placeholder in file name)
        src/nested/deep.txt
    """
    root.mkdir(parents=True, exist_ok=True)
    (root / ".envrc").write_text('eval "$(devenv direnvrc)"\nuse devenv\n', encoding="utf-8")
    (root / "README.md").write_text(
        "# $name\n\nLives at $location. $nameLong and $HOME stay.\n", encoding="utf-8"
    )
    (root / "devenv.nix").write_text('{ env.GREET = "$name"; }\n', encoding="utf-8")

    (root / "assets").mkdir()
    (root / "assets" / "logo.png").write_bytes(SAMPLE_BINARY)

    (root / "scripts").mkdir()
    script = root / "scripts" / "run.sh"
    script.write_text("#!/bin/sh\necho $name\n", encoding="utf-8")
    script.chmod(0o755)

    (root / "src" / "nested").mkdir(parents=True)
    (root / "src" / "$name.txt").write_text("hello $name\n", encoding="utf-8")
    (root / "src" / "nested" / "deep.txt").write_text("$name/$name", encoding="utf-8")
    return root


@pytest.fixture
def sample_template(tmp_path: Path) -> Path:
    """Path to a freshly built sample template tree."""
    return build_sample_template(tmp_path / "templates" / "sample")


@pytest.fixture
def sample_descriptor(sample_template: Path) -> TemplateDescriptor:
    """Descriptor for the sample template."""
    return TemplateDescriptor(
        id="sample",
        root_path=sample_template,
        description="Sample template for tests",
        aliases=("smp",),
    )


@pytest.fixture
def sample_registry(sample_descriptor: TemplateDescriptor) -> TemplateRegistry:
    """Registry containing only the sample template."""
    return TemplateRegistry([sample_descriptor])


# ---------------------------------------------------------------------------
# Configuration & output
# ---------------------------------------------------------------------------

@pytest.fixture
def config(tmp_path: Path) -> InitxConfig:
    """Config with hooks disabled and the default parent inside tmp_path."""
    return InitxConfig(default_parent=tmp_path / "projects", run_hooks=False)


@pytest.fixture
def materializer(config: InitxConfig) -> ScaffoldMaterializer:
    return ScaffoldMaterializer(config)


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Parent directory for generated projects."""
    out = tmp_path / "out"
    out.mkdir()
    return out


def tree_snapshot(root: Path) -> dict[str, bytes | None]:
    """Map every relative path under *root* to its bytes (``None`` for dirs)."""
    snapshot: dict[str, bytes | None] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        base = Path(dirpath)
        for d in dirnames:
            snapshot[(base / d).relative_to(root).as_posix()] = None
        for f in filenames:
            snapshot[(base / f).relative_to(root).as_posix()] = (base / f).read_bytes()
    return snapshot


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """
    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory


@pytest.fixture
def snapshot():
    """The ``tree_snapshot`` helper, for comparing directory trees."""
    return tree_snapshot


@pytest.fixture
def template_factory():
    """The ``build_sample_template`` helper, for building extra templates."""
    return build_sample_template
