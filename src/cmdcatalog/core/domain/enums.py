"""
Core Domain Enums

Defines the origin categories of command definitions and the line
categories of the script protocol to eliminate magic strings.
"""

from enum import Enum


class DefinitionKind(str, Enum):
    """Origin category of a command definition."""

    BUILTIN = "builtin"
    LANGUAGE = "language"
    LANGUAGE_SCRIPT = "language-script"
    SCRIPT = "script"


class LineKind(str, Enum):
    """Category of a line produced by a script run."""

    OUTPUT = "output"
    ERROR = "error"
    EVENT = "event"


# Reserved prefixes of the script line protocol
ERROR_PREFIX = "error|"
EVENT_PREFIX = "event|"
