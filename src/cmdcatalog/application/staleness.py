"""
Definition Cache Staleness Detection

Decides whether a persisted layer cache still matches the filesystem it was
built from. All checks short-circuit on the first change found:

1. The set of scripts in ``scripts/`` differs from the cached script locations.
2. A script is newer than the oldest build time recorded for it.
3. A file below a script's ``<name>-files/`` companion directory is newer
   (directories named ``state`` are scratch space and skipped).
4. Steps 1-3 for language plugins and each plugin's ``<name>-files/scripts``.

Any error during the check counts as stale: an unverifiable cache is rebuilt
rather than served.
"""

import os
from collections.abc import Iterable
from pathlib import Path

import structlog

from cmdcatalog.core.domain.definitions import DefinitionCache
from cmdcatalog.core.domain.enums import DefinitionKind
from cmdcatalog.core.interfaces.languages import LanguageProvider
from cmdcatalog.core.interfaces.logging import LoggerProtocol
from cmdcatalog.infrastructure.persistence.file_times import file_time
from cmdcatalog.infrastructure.scripts.script_filter import list_languages, list_scripts

STATE_DIR = "state"
FILES_SUFFIX = "-files"


def companion_dir(path: str | Path) -> Path:
    """Companion directory ``<dir>/<stem>-files`` of a script or plugin."""
    path = Path(path)
    return path.parent / f"{path.stem}{FILES_SUFFIX}"


def _raise(error: OSError) -> None:
    raise error


class StalenessDetector:
    """
    Validates persisted definition caches against the filesystem.

    Example:
        >>> detector = StalenessDetector()
        >>> detector.is_stale(Path("~/.cmdcatalog/profiles/default"), cache)
        False
    """

    def __init__(
        self,
        languages: LanguageProvider = list_languages,
        logger: LoggerProtocol | None = None,
    ):
        """
        Initialize the detector.

        Args:
            languages: Lists the language plugins of a ``languages/`` directory
            logger: Optional logger (defaults to a bound structlog logger)
        """
        self._languages = languages
        self.logger = logger or structlog.get_logger().bind(component="staleness_detector")

    def is_builtin_stale(
        self, cache: DefinitionCache, executable: str | Path | None
    ) -> bool:
        """
        Check the built-in layer.

        Args:
            cache: Persisted built-in cache
            executable: File whose change invalidates built-in definitions

        Returns:
            True if the cache is empty or older than the executable
        """
        try:
            oldest = cache.oldest_update()
            if oldest is None:
                self.logger.debug("staleness.builtin_empty")
                return True
            if executable is None:
                return False
            if file_time(executable) > oldest:
                self.logger.debug("staleness.executable_updated", executable=str(executable))
                return True
            return False
        except Exception as e:
            self.logger.warning("staleness.check_failed", layer="builtin", error=str(e))
            return True

    def is_stale(self, layer_dir: str | Path, cache: DefinitionCache) -> bool:
        """
        Check a profile layer.

        Args:
            layer_dir: Layer directory holding ``scripts/`` and ``languages/``
            cache: Cache loaded from that directory

        Returns:
            True if the layer must be rebuilt
        """
        try:
            return self._check_layer(Path(layer_dir), cache)
        except Exception as e:
            self.logger.warning(
                "staleness.check_failed", layer=str(layer_dir), error=str(e)
            )
            return True

    def _check_layer(self, layer_dir: Path, cache: DefinitionCache) -> bool:
        scripts = list_scripts(layer_dir / "scripts")
        if self._set_changed(scripts, cache.get_locations(DefinitionKind.SCRIPT), "script"):
            return True
        if any(self._is_updated(script, cache) for script in scripts):
            return True

        languages = self._languages(layer_dir / "languages")
        if self._set_changed(
            [language.path for language in languages],
            cache.get_locations(DefinitionKind.LANGUAGE),
            "language",
        ):
            return True

        language_script_locations = cache.get_locations(DefinitionKind.LANGUAGE_SCRIPT)
        for language in languages:
            if self._is_updated(language.path, cache):
                return True

            prefix = str(language.scripts_dir) + os.sep
            cached = {
                location
                for location in language_script_locations
                if location.startswith(prefix)
            }
            current = list_scripts(language.scripts_dir)
            if self._set_changed(current, cached, "language_script"):
                return True
            if any(self._is_updated(script, cache) for script in current):
                return True

        return False

    def _set_changed(self, current: Iterable[str], cached: set[str], label: str) -> bool:
        current_set = set(current)
        added = current_set - cached
        removed = cached - current_set
        if added:
            self.logger.debug(f"staleness.{label}_added", paths=sorted(added))
            return True
        if removed:
            self.logger.debug(f"staleness.{label}_removed", paths=sorted(removed))
            return True
        return False

    def _is_updated(self, path: str, cache: DefinitionCache) -> bool:
        oldest = cache.oldest_update(path)
        if oldest is None:
            self.logger.debug("staleness.location_unrecorded", path=path)
            return True

        modified = file_time(path)
        if modified > oldest:
            self.logger.debug(
                "staleness.file_updated",
                path=path,
                oldest=oldest.isoformat(),
                modified=modified.isoformat(),
            )
            return True

        files_dir = companion_dir(path)
        if files_dir.is_dir():
            return self._is_tree_updated(files_dir, oldest)
        return False

    def _is_tree_updated(self, directory: Path, oldest) -> bool:
        for root, dirs, files in os.walk(directory, onerror=_raise):
            dirs[:] = [name for name in dirs if name != STATE_DIR]
            for name in files:
                path = Path(root) / name
                modified = file_time(path)
                if modified > oldest:
                    self.logger.debug(
                        "staleness.file_updated",
                        path=str(path),
                        oldest=oldest.isoformat(),
                        modified=modified.isoformat(),
                    )
                    return True
        return False
