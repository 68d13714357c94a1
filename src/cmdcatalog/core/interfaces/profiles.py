"""
Profile Locator Protocol

The profile system decides which configuration directories are active for
a working directory. Discovery only consumes the result.
"""

from pathlib import Path
from typing import Protocol


class ProfileLocatorProtocol(Protocol):
    """Resolves the active profile layers."""

    @property
    def app_root_path(self) -> Path:
        """Directory holding the built-in definition cache."""
        ...

    def get_ordered_profile_paths(self) -> list[Path]:
        """
        Return the active profile directories.

        Returns:
            Existing directories, nearest (local) first.
        """
        ...

    def get_active_global_profile_name(self) -> str:
        """Name of the active global profile."""
        ...

    def get_active_local_profile_name(self) -> str:
        """Name of the active local profile."""
        ...
