"""
Script and Language Plugin Enumeration

Finds executables in a layer's ``scripts/`` and ``languages/`` directories:

    <layer>/
    ├── definitions.json
    ├── scripts/
    │   ├── deploy               # user script
    │   └── deploy-files/        # companion files of "deploy"
    └── languages/
        ├── python               # language plugin
        └── python-files/
            └── scripts/         # scripts shipped with the plugin

Only files directly inside the directory count; companion directories are
never scanned for scripts.
"""

import os
import sys
from pathlib import Path

import structlog

from cmdcatalog.core.interfaces.languages import LanguagePlugin

logger = structlog.get_logger(__name__)

_IGNORED_SUFFIXES = (".swp", ".bak", ".tmp", "~")


def is_script(path: Path) -> bool:
    """Check whether a file qualifies as a runnable script."""
    if not path.is_file() or path.name.startswith("."):
        return False
    if path.name.endswith(_IGNORED_SUFFIXES):
        return False
    if sys.platform == "win32":
        extensions = os.environ.get("PATHEXT", ".COM;.EXE;.BAT;.CMD").lower().split(";")
        return path.suffix.lower() in extensions
    return os.access(path, os.X_OK)


def list_scripts(directory: str | Path) -> list[str]:
    """
    List executable scripts directly under a directory.

    Args:
        directory: Directory to scan

    Returns:
        Absolute script paths sorted by file name; empty if the directory
        does not exist.
    """
    path = Path(directory)
    if not path.is_dir():
        return []

    scripts = [
        str(entry.absolute())
        for entry in sorted(path.iterdir(), key=lambda p: p.name)
        if is_script(entry)
    ]
    logger.debug("scripts.listed", directory=str(path), count=len(scripts))
    return scripts


def list_languages(directory: str | Path) -> list[LanguagePlugin]:
    """
    List installed language plugins.

    Each executable directly under ``directory`` is a plugin named after
    its file stem. Usages are left undeclared and are queried from the
    executable when the layer is rebuilt.

    Args:
        directory: The layer's ``languages/`` directory

    Returns:
        Plugins sorted by file name
    """
    return [
        LanguagePlugin(name=Path(script).stem, path=script)
        for script in list_scripts(directory)
    ]
