"""
Language Plugin Contract

A language plugin is an executable living in a layer's ``languages/``
directory. Its companion files (including its own scripts) live in
``<name>-files/`` next to it.
"""

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from cmdcatalog.core.domain.definitions import UsageParameter


@dataclass
class LanguagePlugin:
    """
    An installed language plugin.

    Attributes:
        name: Language name (executable stem)
        path: Absolute path of the plugin executable
        usages: Pre-declared top-level usages. When None the usages are
            queried from the executable during a rebuild.
    """

    name: str
    path: str
    usages: list[UsageParameter] | None = None

    @property
    def files_dir(self) -> Path:
        """Companion directory ``<languages>/<name>-files``."""
        return Path(self.path).parent / f"{self.name}-files"

    @property
    def scripts_dir(self) -> Path:
        """Directory holding the plugin's own scripts."""
        return self.files_dir / "scripts"


LanguageProvider = Callable[[Path], list[LanguagePlugin]]
