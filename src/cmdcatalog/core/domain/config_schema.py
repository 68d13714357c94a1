"""
Configuration Schema

Pydantic model for the settings every discovery component receives
explicitly (no process-wide lookups). Provides clear error messages with
file and field context.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from cmdcatalog.core.domain.errors import ConfigError

DEFAULT_DEFINITIONS_FILE = "definitions.json"
DEFAULT_PROFILE = "default"


class CatalogSettings(BaseModel):
    """
    Settings for one catalog build.

    ``token`` is the directory profiles are resolved from (usually the
    directory the tool was invoked in), ``working_directory`` is what
    scripts receive as ``{run-location}``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    token: Path = Field(..., description="Directory local profiles are resolved from")
    working_directory: Path = Field(..., description="Passed to scripts as {run-location}")
    app_root: Path = Field(..., description="Application root holding built-in cache and global profiles")
    default_language: Optional[str] = Field(
        None,
        description="Language whose commands are aliased at the top level",
    )
    global_profile: str = Field(DEFAULT_PROFILE, min_length=1)
    local_profile: str = Field(DEFAULT_PROFILE, min_length=1)
    definitions_file: str = Field(
        DEFAULT_DEFINITIONS_FILE,
        min_length=1,
        description="Per-layer cache file name",
    )
    script_timeout: float = Field(30.0, gt=0, description="Seconds before a script is killed")
    max_concurrency: int = Field(4, ge=1, le=64, description="Parallel script queries per layer")
    executable_path: Optional[Path] = Field(
        None,
        description="File whose timestamp invalidates the built-in cache",
    )

    @field_validator("definitions_file")
    @classmethod
    def validate_definitions_file(cls, value: str) -> str:
        """The cache file must be a plain file name."""
        if Path(value).name != value:
            raise ValueError("definitions_file must be a file name, not a path")
        return value

    @field_validator("default_language")
    @classmethod
    def normalize_default_language(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value


def validate_settings(
    data: dict[str, Any],
    file_path: Optional[Path] = None,
) -> CatalogSettings:
    """
    Validate settings data.

    Args:
        data: Settings dictionary
        file_path: Optional file path for error messages

    Returns:
        Validated CatalogSettings

    Raises:
        ConfigError: If validation fails
    """
    try:
        return CatalogSettings(**data)
    except ValidationError as e:
        raise ConfigError(
            str(e),
            file_path=str(file_path) if file_path else None,
        ) from e
