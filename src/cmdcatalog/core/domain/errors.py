"""Domain-specific exception types for cmdcatalog."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class CatalogError(Exception):
    """Base exception for command catalog errors."""

    message: str
    code: str = "catalog_error"
    details: Dict[str, Any] | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)
        if self.details is None:
            self.details = {}


class ConfigError(CatalogError):
    """Error raised for configuration failures."""

    def __init__(
        self,
        message: str,
        *,
        file_path: str | None = None,
        details: Dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if file_path:
            details.setdefault("file_path", file_path)
        self.file_path = file_path
        super().__init__(message=message, code="config_error", details=details)


class ScriptQueryError(CatalogError):
    """Error raised when a script cannot describe its commands."""

    def __init__(
        self,
        message: str,
        *,
        script_path: str | None = None,
        exit_code: int | None = None,
        details: Dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if script_path:
            details.setdefault("script_path", script_path)
        if exit_code is not None:
            details.setdefault("exit_code", exit_code)
        self.script_path = script_path
        self.exit_code = exit_code
        super().__init__(message=message, code="script_query_error", details=details)


class UsageParseError(CatalogError):
    """Error raised for malformed usage grammar."""

    def __init__(
        self,
        message: str,
        *,
        position: int | None = None,
        details: Dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if position is not None:
            details.setdefault("position", position)
        self.position = position
        super().__init__(message=message, code="usage_parse_error", details=details)


class CacheFormatError(CatalogError):
    """Error raised when a persisted definition cache cannot be decoded."""

    def __init__(self, message: str, *, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="cache_format_error", details=details)


class NotFoundError(CatalogError):
    """Error raised when a command is not found."""

    def __init__(self, message: str, *, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="not_found", details=details)
