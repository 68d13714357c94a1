"""
Filesystem Profile Locator

Resolves the profile layers for a directory:

- Global: ``<app_root>/profiles/<global_profile>``
- Local:  ``<project>/.cmdcatalog/profiles/<local_profile>`` where
  ``<project>`` is the nearest ancestor of the token directory that
  contains a ``.cmdcatalog`` directory.

Only directories that exist are returned, nearest first.
"""

from pathlib import Path

import structlog

from cmdcatalog.core.domain.config_schema import CatalogSettings

LOCAL_ROOT_NAME = ".cmdcatalog"
PROFILES_DIR = "profiles"

logger = structlog.get_logger(__name__)


class FilesystemProfileLocator:
    """ProfileLocatorProtocol implementation backed by directory conventions."""

    def __init__(self, settings: CatalogSettings):
        self._settings = settings

    @property
    def app_root_path(self) -> Path:
        return self._settings.app_root

    def get_active_global_profile_name(self) -> str:
        return self._settings.global_profile

    def get_active_local_profile_name(self) -> str:
        return self._settings.local_profile

    def get_local_profiles_root(self) -> Path | None:
        """Nearest ``.cmdcatalog`` directory above the token, if any."""
        current = self._settings.token.resolve()
        for candidate in (current, *current.parents):
            local_root = candidate / LOCAL_ROOT_NAME
            # The application root may itself be called .cmdcatalog
            if local_root.is_dir() and local_root.resolve() != self.app_root_path.resolve():
                return local_root
        return None

    def get_global_profile_path(self) -> Path:
        return self.app_root_path / PROFILES_DIR / self.get_active_global_profile_name()

    def get_local_profile_path(self) -> Path | None:
        local_root = self.get_local_profiles_root()
        if local_root is None:
            return None
        return local_root / PROFILES_DIR / self.get_active_local_profile_name()

    def get_ordered_profile_paths(self) -> list[Path]:
        """Existing profile directories, nearest first."""
        candidates = [self.get_local_profile_path(), self.get_global_profile_path()]
        paths = [path for path in candidates if path is not None and path.is_dir()]
        logger.debug("profiles.resolved", paths=[str(path) for path in paths])
        return paths
