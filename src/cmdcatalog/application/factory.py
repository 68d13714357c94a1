"""Application Layer - Builder Factory.

Wires the filesystem adapters into a ``DefinitionBuilder``.
"""

from __future__ import annotations

from cmdcatalog.application.builtin_commands import builtin_commands
from cmdcatalog.application.definition_builder import DefinitionBuilder
from cmdcatalog.core.domain.config_schema import CatalogSettings
from cmdcatalog.infrastructure.profiles.profile_locator import FilesystemProfileLocator
from cmdcatalog.infrastructure.scripts.script_filter import list_languages


def create_definition_builder(settings: CatalogSettings) -> DefinitionBuilder:
    """Create a builder backed by the default profile layout."""
    return DefinitionBuilder(
        settings=settings,
        profiles=FilesystemProfileLocator(settings),
        builtin=builtin_commands,
        languages=list_languages,
    )
