"""
Definition Builder

Produces the merged command catalog for one invocation.

Layers are merged farthest first so nearer layers win:

1. Built-in layer (the tool's own command table, cached in the app root)
2. Global profile layer
3. Local profile layer

Each profile layer is rebuilt from its ``languages/`` and ``scripts/``
directories only when its persisted cache is missing or stale. A rebuild
queries every plugin and script with ``get-command-definitions``; queries
run concurrently but results are applied in discovery order, so the same
filesystem always yields the same catalog.
"""

import asyncio
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import structlog

import cmdcatalog
from cmdcatalog.application.staleness import StalenessDetector
from cmdcatalog.core.domain.config_schema import CatalogSettings
from cmdcatalog.core.domain.definitions import (
    BuiltInCommand,
    DefinitionCache,
    DefinitionCacheItem,
    UsageParameter,
)
from cmdcatalog.core.domain.enums import DefinitionKind
from cmdcatalog.core.domain.errors import NotFoundError, ScriptQueryError, UsageParseError
from cmdcatalog.core.interfaces.languages import LanguagePlugin, LanguageProvider
from cmdcatalog.core.interfaces.logging import LoggerProtocol
from cmdcatalog.core.interfaces.profiles import ProfileLocatorProtocol
from cmdcatalog.core.interfaces.scripts import ScriptRunnerProtocol
from cmdcatalog.core.utils.time import utc_now
from cmdcatalog.infrastructure.persistence.definition_store import DefinitionStore
from cmdcatalog.infrastructure.scripts.script_filter import list_languages, list_scripts
from cmdcatalog.infrastructure.scripts.script_runner import ScriptRunner
from cmdcatalog.infrastructure.scripts.usage_parser import (
    ParsedUsage,
    parse_usage_response,
)

BuiltInProvider = Callable[[], Iterable[BuiltInCommand]]


@dataclass
class BuildStats:
    """Counters of the most recent build."""

    layers_reused: int = 0
    layers_rebuilt: int = 0
    queries: int = 0


class DefinitionBuilder:
    """
    Builds, validates and persists command definition caches.

    Example:
        >>> builder = DefinitionBuilder(settings, FilesystemProfileLocator(settings), builtin_commands)
        >>> cache = await builder.build()
        >>> builder.get_script(["deploy"]).description
        'Deploys the project'
    """

    def __init__(
        self,
        settings: CatalogSettings,
        profiles: ProfileLocatorProtocol,
        builtin: BuiltInProvider,
        languages: LanguageProvider = list_languages,
        runner: ScriptRunnerProtocol | None = None,
        detector: StalenessDetector | None = None,
        store: DefinitionStore | None = None,
        logger: LoggerProtocol | None = None,
    ):
        """
        Initialize the builder.

        Args:
            settings: Catalog settings
            profiles: Resolves the active profile layers
            builtin: Returns the built-in command table
            languages: Lists the language plugins of a ``languages/`` directory
            runner: Script runner (defaults to a subprocess runner)
            detector: Staleness detector for persisted caches
            store: Per-layer cache persistence
            logger: Optional logger (defaults to a bound structlog logger)
        """
        self.settings = settings
        self.profiles = profiles
        self._builtin = builtin
        self._languages = languages
        self.logger = logger or structlog.get_logger().bind(component="definition_builder")
        self.runner = runner or ScriptRunner(
            working_directory=settings.working_directory,
            global_profile=profiles.get_active_global_profile_name(),
            local_profile=profiles.get_active_local_profile_name(),
            timeout=settings.script_timeout,
        )
        self.detector = detector or StalenessDetector(languages=languages)
        self.store = store or DefinitionStore(settings.definitions_file)
        self.stats = BuildStats()
        self._cache = DefinitionCache()
        self._semaphore: asyncio.Semaphore | None = None

    @property
    def cache(self) -> DefinitionCache:
        """Catalog produced by the last ``build``."""
        return self._cache

    @property
    def definitions(self) -> list[DefinitionCacheItem]:
        return self._cache.definitions

    def get(self, path: Sequence[str]) -> DefinitionCacheItem | None:
        return self._cache.get(path)

    def require(self, path: Sequence[str]) -> DefinitionCacheItem:
        """
        Look up a command that must exist.

        Raises:
            NotFoundError: If the path does not resolve in the catalog
        """
        item = self._cache.get(path)
        if item is None:
            raise NotFoundError(
                f"Command not found: {' '.join(path)}", details={"path": list(path)}
            )
        return item

    def get_builtin(self, path: Sequence[str]) -> DefinitionCacheItem | None:
        return self._cache.get_builtin(path)

    def get_language(self, path: Sequence[str]) -> DefinitionCacheItem | None:
        return self._cache.get_language(path)

    def get_language_script(self, path: Sequence[str]) -> DefinitionCacheItem | None:
        return self._cache.get_language_script(path)

    def get_script(self, path: Sequence[str]) -> DefinitionCacheItem | None:
        return self._cache.get_script(path)

    def layer_paths(self) -> list[Path]:
        """Profile layer directories in merge order (farthest first)."""
        return list(reversed(self.profiles.get_ordered_profile_paths()))

    async def build(self) -> DefinitionCache:
        """
        Build the merged catalog.

        Never raises for discovery problems: broken scripts are left out,
        unwritable caches are logged and rebuilt on the next run.

        Returns:
            The merged catalog (also available via ``cache``)
        """
        self.stats = BuildStats()
        self._semaphore = None

        cache = DefinitionCache()
        cache.merge(await self._builtin_layer())

        for path in self.layer_paths():
            if not path.is_dir():
                self.logger.debug("definitions.layer.skipped", layer=str(path))
                continue
            self.logger.debug("definitions.layer.merging", layer=str(path))
            cache.merge(await self._profile_layer(path))

        self._cache = cache
        self.logger.info(
            "definitions.built",
            commands=len(cache),
            layers_reused=self.stats.layers_reused,
            layers_rebuilt=self.stats.layers_rebuilt,
            queries=self.stats.queries,
        )
        return cache

    def invalidate(self) -> list[Path]:
        """
        Delete the persisted cache of every layer.

        Returns:
            Cache files that were removed
        """
        removed = []
        for directory in [self.profiles.app_root_path, *self.layer_paths()]:
            if self.store.delete(directory):
                removed.append(self.store.path_for(directory))
        self.logger.info("definitions.invalidated", files=[str(path) for path in removed])
        return removed

    def executable_path(self) -> Path:
        """File whose change invalidates the built-in layer."""
        return self.settings.executable_path or Path(cmdcatalog.__file__)

    async def _builtin_layer(self) -> DefinitionCache:
        root = self.profiles.app_root_path
        cached = await self.store.read(root)
        if cached is not None and not self.detector.is_builtin_stale(
            cached, self.executable_path()
        ):
            self.stats.layers_reused += 1
            return cached

        self.logger.debug("definitions.layer.rebuilding", layer="builtin")
        cache = DefinitionCache()
        now = utc_now()
        for command in self._builtin():
            item = cache.add(
                DefinitionKind.BUILTIN,
                None,
                now,
                command.usage.override,
                True,
                command.name,
                command.usage.description,
            )
            self._add_usages(cache, item, command.usage.parameters)

        await self.store.write(root, cache)
        self.stats.layers_rebuilt += 1
        return cache

    async def _profile_layer(self, path: Path) -> DefinitionCache:
        cached = await self.store.read(path)
        if cached is None:
            self.logger.debug("definitions.layer.missing", layer=str(path))
        elif self.detector.is_stale(path, cached):
            self.logger.debug("definitions.layer.out_of_date", layer=str(path))
        else:
            self.stats.layers_reused += 1
            return cached
        return await self._rebuild_layer(path)

    async def _rebuild_layer(self, path: Path) -> DefinitionCache:
        languages = self._languages(path / "languages")
        language_scripts = [list_scripts(language.scripts_dir) for language in languages]
        scripts = list_scripts(path / "scripts")

        # One gather keeps every query of the layer in flight together
        results = await asyncio.gather(
            *(self._language_usages(language) for language in languages),
            *(self._query(script) for group in language_scripts for script in group),
            *(self._query(script) for script in scripts),
        )
        language_results = results[: len(languages)]
        script_results = iter(results[len(languages) :])

        cache = DefinitionCache()
        now = utc_now()
        default_language = None

        for language, usages, group in zip(languages, language_results, language_scripts):
            item = cache.add(
                DefinitionKind.LANGUAGE,
                language.path,
                now,
                False,
                True,
                language.name,
                f"Commands for the {language.name} plugin",
            )
            self._add_usages(cache, item, usages or [])

            for script in group:
                parsed = next(script_results)
                if parsed is None:
                    cache.record_location(DefinitionKind.LANGUAGE_SCRIPT, script, now)
                    continue
                script_item = cache.append(
                    item,
                    DefinitionKind.LANGUAGE_SCRIPT,
                    script,
                    now,
                    False,
                    True,
                    Path(script).stem,
                    parsed.description,
                )
                self._add_usages(cache, script_item, parsed.parameters)

            if language.name == self.settings.default_language:
                default_language = language

        for script in scripts:
            parsed = next(script_results)
            if parsed is None:
                cache.record_location(DefinitionKind.SCRIPT, script, now)
                continue
            item = cache.add(
                DefinitionKind.SCRIPT,
                script,
                now,
                False,
                True,
                Path(script).stem,
                parsed.description,
            )
            self._add_usages(cache, item, parsed.parameters)

        if default_language is not None:
            self._alias_default_language(cache, default_language, now)

        await self.store.write(path, cache)
        self.stats.layers_rebuilt += 1
        self.logger.debug(
            "definitions.layer.rebuilt",
            layer=str(path),
            languages=len(languages),
            scripts=len(scripts),
        )
        return cache

    async def _language_usages(self, language: LanguagePlugin) -> list[UsageParameter] | None:
        if language.usages is not None:
            return language.usages
        parsed = await self._query(language.path)
        if parsed is None:
            return None
        return parsed.parameters

    def _query_slots(self) -> asyncio.Semaphore:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.settings.max_concurrency)
        return self._semaphore

    async def _query(self, script_path: str) -> ParsedUsage | None:
        async with self._query_slots():
            self.stats.queries += 1
            try:
                response = await self.runner.query(script_path)
                return parse_usage_response(response)
            except (ScriptQueryError, UsageParseError) as e:
                self.logger.warning(
                    "script.query_failed",
                    script=script_path,
                    error=e.message,
                    code=e.code,
                )
                return None

    def _add_usages(
        self,
        cache: DefinitionCache,
        item: DefinitionCacheItem,
        usages: Iterable[UsageParameter],
    ) -> None:
        """Attach top-level usages, promoting overriding ones to roots."""
        for usage in usages:
            if usage.override:
                node = cache.add(
                    item.kind,
                    item.location,
                    item.updated_at,
                    True,
                    usage.required,
                    usage.name,
                    usage.description,
                )
            else:
                node = cache.append(
                    item,
                    item.kind,
                    item.location,
                    item.updated_at,
                    False,
                    usage.required,
                    usage.name,
                    usage.description,
                )
            self._add_parameters(cache, node, usage.parameters)

    def _add_parameters(
        self,
        cache: DefinitionCache,
        parent: DefinitionCacheItem,
        parameters: Iterable[UsageParameter],
    ) -> None:
        for parameter in parameters:
            child = cache.append(
                parent,
                parent.kind,
                parent.location,
                parent.updated_at,
                parameter.override,
                parameter.required,
                parameter.name,
                parameter.description,
            )
            self._add_parameters(cache, child, parameter.parameters)

    def _alias_default_language(
        self, cache: DefinitionCache, language: LanguagePlugin, now: datetime
    ) -> None:
        language_item = cache.get_language([language.name])
        if language_item is None:
            return

        for usage in list(language_item.children):
            # Names known in this layer win; farther layers are handled on merge
            if cache.get([usage.name]) is not None:
                continue
            alias = cache.add(
                usage.kind,
                usage.location,
                now,
                False,
                True,
                usage.name,
                usage.description,
                alias=True,
            )
            self._copy_children(cache, alias, usage.children)
            self.logger.debug(
                "definitions.alias_added", language=language.name, command=usage.name
            )

    def _copy_children(
        self,
        cache: DefinitionCache,
        parent: DefinitionCacheItem,
        children: Iterable[DefinitionCacheItem],
    ) -> None:
        for child in children:
            copied = cache.append(
                parent,
                parent.kind,
                parent.location,
                parent.updated_at,
                child.override,
                child.required,
                child.name,
                child.description,
            )
            self._copy_children(cache, copied, child.children)
