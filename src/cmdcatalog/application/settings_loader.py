"""
Settings Loader
===============

Builds ``CatalogSettings`` for an invocation.

Resolution order (later wins):
1. Model defaults
2. ``<app_root>/config.yaml``
3. Explicit overrides (CLI options, tests)

The application root is ``$CMDCATALOG_HOME`` when set, otherwise
``~/.cmdcatalog``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import structlog
import yaml

from cmdcatalog.core.domain.config_schema import CatalogSettings, validate_settings
from cmdcatalog.core.domain.errors import ConfigError

logger = structlog.get_logger(__name__)

CONFIG_FILE = "config.yaml"
HOME_ENV = "CMDCATALOG_HOME"
DEFAULT_APP_DIR = ".cmdcatalog"

# Keys derived from the invocation, never from the config file
_INVOCATION_KEYS = {"token", "working_directory", "app_root"}


def default_app_root() -> Path:
    """Application root from the environment or the home directory."""
    home = os.environ.get(HOME_ENV)
    if home:
        return Path(home).expanduser()
    return Path.home() / DEFAULT_APP_DIR


class SettingsLoader:
    """Load catalog settings from the application root.

    Args:
        app_root: Application root (defaults to ``default_app_root()``).
    """

    def __init__(self, app_root: Path | None = None) -> None:
        self.app_root = Path(app_root) if app_root is not None else default_app_root()
        self._logger = logger.bind(component="settings_loader")

    @property
    def config_path(self) -> Path:
        return self.app_root / CONFIG_FILE

    def load(self, working_directory: Path, **overrides: Any) -> CatalogSettings:
        """Load settings for a working directory.

        Args:
            working_directory: Directory the tool was invoked in. Used as
                the profile token unless ``token`` is overridden.
            **overrides: Settings taking precedence over the config file.
                ``None`` values are ignored.

        Returns:
            Validated settings.

        Raises:
            ConfigError: If the config file is unreadable or invalid.
        """
        working_directory = Path(working_directory).resolve()
        data = self.read_config()
        data.update(
            {
                "token": working_directory,
                "working_directory": working_directory,
                "app_root": self.app_root,
            }
        )
        data.update({key: value for key, value in overrides.items() if value is not None})

        settings = validate_settings(data, file_path=self.config_path)
        self._logger.debug(
            "settings.loaded",
            app_root=str(settings.app_root),
            token=str(settings.token),
        )
        return settings

    def read_config(self) -> dict[str, Any]:
        """Read ``config.yaml``; a missing file yields an empty dict."""
        path = self.config_path
        if not path.exists():
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read config file: {e}", file_path=str(path)) from e

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigError("Config file must contain a mapping", file_path=str(path))

        reserved = _INVOCATION_KEYS & config.keys()
        if reserved:
            raise ConfigError(
                f"Keys cannot be set in the config file: {', '.join(sorted(reserved))}",
                file_path=str(path),
            )
        return config


def load_settings(
    working_directory: Path,
    app_root: Path | None = None,
    **overrides: Any,
) -> CatalogSettings:
    """Convenience wrapper around ``SettingsLoader.load``."""
    return SettingsLoader(app_root).load(working_directory, **overrides)
