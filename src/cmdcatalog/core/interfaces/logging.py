"""
Logging Protocol Interface.

Defines the LoggerProtocol interface so that discovery components can be
handed any structlog-compatible bound logger.
"""

from typing import Any, Protocol


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def info(self, event: str, **kwargs: Any) -> None:
        """Log an informational message."""
        ...

    def warning(self, event: str, **kwargs: Any) -> None:
        """Log a warning message."""
        ...

    def error(self, event: str, **kwargs: Any) -> None:
        """Log an error message."""
        ...

    def debug(self, event: str, **kwargs: Any) -> None:
        """Log a debug message."""
        ...
