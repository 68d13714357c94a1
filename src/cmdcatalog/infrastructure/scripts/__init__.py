"""
Script Infrastructure

Running, enumerating and parsing external scripts and language plugins.
"""

from cmdcatalog.infrastructure.scripts.script_filter import (
    is_script,
    list_languages,
    list_scripts,
)
from cmdcatalog.infrastructure.scripts.script_runner import ScriptRunner, expand_placeholders
from cmdcatalog.infrastructure.scripts.usage_parser import (
    ParsedUsage,
    UsageParser,
    parse_usage_response,
    split_usage_response,
)

__all__ = [
    "ParsedUsage",
    "ScriptRunner",
    "UsageParser",
    "expand_placeholders",
    "is_script",
    "list_languages",
    "list_scripts",
    "parse_usage_response",
    "split_usage_response",
]
