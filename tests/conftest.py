"""Test configuration and shared fixtures."""

from __future__ import annotations

import shlex
import sys
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import pytest

from cmdcatalog.core.domain.config_schema import CatalogSettings

posix_only = pytest.mark.skipif(
    sys.platform == "win32", reason="uses #!/bin/sh scripts"
)

BUILT_AT = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)


def write_script(directory: Path, name: str, body: str) -> Path:
    """Write an executable ``#!/bin/sh`` script and return its path."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    path.chmod(0o755)
    return path


def usage_body(response: str, run_body: str = 'echo "ran $*"') -> str:
    """Script body answering the definitions query with ``response``."""
    return (
        'if [ "$2" = "get-command-definitions" ]; then\n'
        f"  printf '%s\\n' {shlex.quote(response)}\n"
        "  exit 0\n"
        "fi\n"
        f"{run_body}"
    )


@pytest.fixture
def make_script() -> Callable[..., Path]:
    """Factory writing plain shell scripts."""
    return write_script


@pytest.fixture
def make_usage_script() -> Callable[..., Path]:
    """Factory writing scripts that describe themselves."""

    def _make(directory: Path, name: str, response: str, run_body: str = 'echo "ran $*"') -> Path:
        return write_script(directory, name, usage_body(response, run_body))

    return _make


@pytest.fixture
def app_root(tmp_path) -> Path:
    root = tmp_path / "home"
    root.mkdir()
    return root


@pytest.fixture
def project_dir(tmp_path) -> Path:
    project = tmp_path / "project"
    project.mkdir()
    return project


@pytest.fixture
def global_layer(app_root) -> Path:
    layer = app_root / "profiles" / "default"
    layer.mkdir(parents=True)
    return layer


@pytest.fixture
def local_layer(project_dir) -> Path:
    layer = project_dir / ".cmdcatalog" / "profiles" / "default"
    layer.mkdir(parents=True)
    return layer


@pytest.fixture
def settings(app_root, project_dir) -> CatalogSettings:
    return CatalogSettings(
        token=project_dir,
        working_directory=project_dir,
        app_root=app_root,
    )
