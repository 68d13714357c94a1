"""
Command Definition Domain Models

A command catalog is a forest of ``DefinitionCacheItem`` nodes. Roots are
commands, children are sub-commands or parameters. Every node remembers where
it came from (``kind`` + ``location``) and when it was built (``updated_at``),
which is what cache validation compares file times against.

Merge rule (``merge_item``):
- A node whose name is new at its level is appended.
- A node flagged ``override`` replaces the same-named node and its subtree.
- Otherwise the incoming children are merged into the existing node, so
  parameter alternatives accumulate without duplicating names.

Across layers (``DefinitionCache.merge``) roots follow two extra rules:
- A default-language alias never displaces a name that is already known.
- A script-backed root takes over the identity (kind, location,
  description, time) of a same-named alias or script-backed root, so the
  nearest script is the one that runs. Children still accumulate.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from cmdcatalog.core.domain.enums import DefinitionKind


def is_optional_name(name: str) -> bool:
    """Return True for parameter names written as ``[name]``."""
    return len(name) > 2 and name.startswith("[") and name.endswith("]")


@dataclass
class UsageParameter:
    """
    Parameter node of a parsed usage description.

    Attributes:
        name: Display name (``[--flag]`` style names are optional)
        description: Help text
        required: Whether the caller must supply the parameter
        override: Whether the node replaces a same-named node when merged
        parameters: Nested parameters in declaration order
    """

    name: str
    description: str = ""
    required: bool = True
    override: bool = False
    parameters: list[UsageParameter] = field(default_factory=list)

    def add(
        self,
        name: str,
        description: str = "",
        *,
        override: bool = False,
    ) -> UsageParameter:
        """Append a nested parameter and return it."""
        child = UsageParameter(
            name=name,
            description=description,
            required=not is_optional_name(name),
            override=override,
        )
        self.parameters.append(child)
        return child


@dataclass
class BuiltInCommand:
    """A command implemented by the tool itself."""

    name: str
    usage: UsageParameter


@dataclass
class DefinitionCacheItem:
    """Node of the command tree."""

    kind: DefinitionKind
    location: str | None
    updated_at: datetime
    override: bool
    required: bool
    name: str
    description: str = ""
    children: list[DefinitionCacheItem] = field(default_factory=list)
    alias: bool = False

    @property
    def is_script_backed(self) -> bool:
        """True for script and language-script nodes that are not aliases."""
        return not self.alias and self.kind in (
            DefinitionKind.SCRIPT,
            DefinitionKind.LANGUAGE_SCRIPT,
        )

    def get(self, name: str) -> DefinitionCacheItem | None:
        """Return the child with the given name, if any."""
        for child in self.children:
            if child.name == name:
                return child
        return None

    def iter_tree(self) -> Iterator[DefinitionCacheItem]:
        """Yield this node and all descendants depth-first."""
        yield self
        for child in self.children:
            yield from child.iter_tree()


def merge_item(
    siblings: list[DefinitionCacheItem], incoming: DefinitionCacheItem
) -> DefinitionCacheItem:
    """
    Merge ``incoming`` into a sibling list.

    Args:
        siblings: Node list to merge into (modified in place)
        incoming: Node to add

    Returns:
        The node that now represents ``incoming`` at this level. Callers
        attach further children to the returned node.
    """
    for index, existing in enumerate(siblings):
        if existing.name != incoming.name:
            continue
        if incoming.override:
            siblings[index] = incoming
            return incoming
        for child in incoming.children:
            merge_item(existing.children, child)
        return existing

    siblings.append(incoming)
    return incoming


class DefinitionCache:
    """
    Addressable forest of command definitions.

    Besides the node tree the cache keeps a location index mapping
    ``(kind, location)`` to the oldest build time recorded for it. The index
    survives merges that fold a node into a same-named one, so cache
    validation always knows every file the cache was built from.

    Example:
        >>> cache = DefinitionCache()
        >>> conf = cache.add(DefinitionKind.BUILTIN, None, now, False, True, "conf", "")
        >>> cache.append(conf, DefinitionKind.BUILTIN, None, now, False, True, "read", "")
        >>> cache.get(["conf", "read"]).name
        'read'
    """

    def __init__(self) -> None:
        self._definitions: list[DefinitionCacheItem] = []
        self._locations: dict[tuple[DefinitionKind, str], datetime] = {}

    @classmethod
    def restore(
        cls,
        definitions: list[DefinitionCacheItem],
        locations: dict[tuple[DefinitionKind, str], datetime],
    ) -> DefinitionCache:
        """Rebuild a cache from persisted parts without re-merging."""
        cache = cls()
        cache._definitions = list(definitions)
        cache._locations = dict(locations)
        return cache

    @property
    def definitions(self) -> list[DefinitionCacheItem]:
        """Root nodes in insertion order."""
        return list(self._definitions)

    @property
    def locations(self) -> dict[tuple[DefinitionKind, str], datetime]:
        """Copy of the location index."""
        return dict(self._locations)

    @property
    def is_empty(self) -> bool:
        return not self._definitions and not self._locations

    def add(
        self,
        kind: DefinitionKind,
        location: str | None,
        updated_at: datetime,
        override: bool,
        required: bool,
        name: str,
        description: str,
        *,
        alias: bool = False,
    ) -> DefinitionCacheItem:
        """Add a root node and return the node holding it."""
        self.record_location(kind, location, updated_at)
        item = DefinitionCacheItem(
            kind=kind,
            location=location,
            updated_at=updated_at,
            override=override,
            required=required,
            name=name,
            description=description,
            alias=alias,
        )
        return merge_item(self._definitions, item)

    def append(
        self,
        parent: DefinitionCacheItem,
        kind: DefinitionKind,
        location: str | None,
        updated_at: datetime,
        override: bool,
        required: bool,
        name: str,
        description: str,
    ) -> DefinitionCacheItem:
        """Add a child node below ``parent`` and return the node holding it."""
        self.record_location(kind, location, updated_at)
        item = DefinitionCacheItem(
            kind=kind,
            location=location,
            updated_at=updated_at,
            override=override,
            required=required,
            name=name,
            description=description,
        )
        return merge_item(parent.children, item)

    def record_location(
        self, kind: DefinitionKind, location: str | None, updated_at: datetime
    ) -> None:
        """Remember ``location`` with the oldest build time seen for it."""
        if not location:
            return
        key = (kind, location)
        current = self._locations.get(key)
        if current is None or updated_at < current:
            self._locations[key] = updated_at

    def get(
        self, path: Sequence[str], kind: DefinitionKind | None = None
    ) -> DefinitionCacheItem | None:
        """
        Look up a node by its path of names.

        Args:
            path: Name segments, e.g. ``["conf", "read"]``
            kind: Restrict the lookup to nodes of this origin

        Returns:
            The node, or None when the path does not resolve.
        """
        if not path:
            return None

        node = next(
            (item for item in self._roots_for(kind) if item.name == path[0]), None
        )
        for segment in path[1:]:
            if node is None:
                return None
            node = node.get(segment)

        if node is None or (kind is not None and node.kind != kind):
            return None
        return node

    def get_builtin(self, path: Sequence[str]) -> DefinitionCacheItem | None:
        return self.get(path, DefinitionKind.BUILTIN)

    def get_language(self, path: Sequence[str]) -> DefinitionCacheItem | None:
        return self.get(path, DefinitionKind.LANGUAGE)

    def get_language_script(self, path: Sequence[str]) -> DefinitionCacheItem | None:
        return self.get(path, DefinitionKind.LANGUAGE_SCRIPT)

    def get_script(self, path: Sequence[str]) -> DefinitionCacheItem | None:
        return self.get(path, DefinitionKind.SCRIPT)

    def definitions_of(self, kind: DefinitionKind) -> list[DefinitionCacheItem]:
        """Root nodes of one origin category."""
        return [item for item in self._definitions if item.kind == kind]

    def get_locations(self, kind: DefinitionKind) -> set[str]:
        """All locations recorded for ``kind``."""
        return {location for (k, location) in self._locations if k == kind}

    def oldest_update(self, location: str | None = None) -> datetime | None:
        """
        Oldest build time recorded for a location.

        Args:
            location: File the definitions came from. When None the oldest
                time across the whole cache is returned.

        Returns:
            The timestamp, or None if nothing was recorded.
        """
        if location is not None:
            times = [t for (_, loc), t in self._locations.items() if loc == location]
        else:
            times = list(self._locations.values())
            times.extend(
                node.updated_at
                for root in self._definitions
                for node in root.iter_tree()
            )
        return min(times) if times else None

    def merge(self, other: DefinitionCache) -> None:
        """Fold another cache into this one, later caches taking precedence."""
        for item in other._definitions:
            self._merge_root(copy.deepcopy(item))
        for (kind, location), updated_at in other._locations.items():
            self.record_location(kind, location, updated_at)

    def _merge_root(self, incoming: DefinitionCacheItem) -> None:
        index = next(
            (i for i, item in enumerate(self._definitions) if item.name == incoming.name),
            None,
        )
        if index is None or incoming.override:
            merge_item(self._definitions, incoming)
            return

        existing = self._definitions[index]
        if incoming.alias:
            return
        if existing.alias and incoming.is_script_backed:
            self._definitions[index] = incoming
        elif existing.is_script_backed and incoming.is_script_backed:
            existing.kind = incoming.kind
            existing.location = incoming.location
            existing.description = incoming.description
            existing.updated_at = incoming.updated_at
            for child in incoming.children:
                merge_item(existing.children, child)
        else:
            merge_item(self._definitions, incoming)

    def _roots_for(self, kind: DefinitionKind | None) -> list[DefinitionCacheItem]:
        match kind:
            case None:
                return self._definitions
            case DefinitionKind.LANGUAGE_SCRIPT:
                # Language scripts live below their language root or as
                # default-language aliases at the top level
                return [
                    item
                    for item in self._definitions
                    if item.kind
                    in (DefinitionKind.LANGUAGE, DefinitionKind.LANGUAGE_SCRIPT)
                ]
            case DefinitionKind.BUILTIN | DefinitionKind.LANGUAGE | DefinitionKind.SCRIPT:
                return [item for item in self._definitions if item.kind == kind]

    def __len__(self) -> int:
        return len(self._definitions)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DefinitionCache):
            return NotImplemented
        return (
            self._definitions == other._definitions
            and self._locations == other._locations
        )

    def __repr__(self) -> str:
        names = ", ".join(item.name for item in self._definitions)
        return f"DefinitionCache([{names}])"
