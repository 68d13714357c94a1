"""
Definition Cache Store

Persists one ``DefinitionCache`` per layer directory as JSON.

File layout ({layer}/definitions.json):
    {
      "version": 1,
      "locations": [{"kind": "script", "location": "...", "updated_at": "..."}],
      "definitions": [{"kind": "...", "name": "...", "children": [...]}, ...]
    }

Writes go to a temporary file in the same directory and are renamed over
the target, so a crash mid-write leaves the previous cache intact. Loading
treats unreadable, malformed or schema-violating files as absent.
"""

import json
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal, Optional

import aiofiles
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from cmdcatalog.core.domain.config_schema import DEFAULT_DEFINITIONS_FILE
from cmdcatalog.core.domain.definitions import DefinitionCache, DefinitionCacheItem
from cmdcatalog.core.domain.enums import DefinitionKind
from cmdcatalog.core.domain.errors import CacheFormatError

CACHE_FORMAT_VERSION = 1


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class DefinitionItemModel(BaseModel):
    """Schema for one persisted definition node."""

    model_config = ConfigDict(extra="forbid")

    kind: DefinitionKind
    location: Optional[str] = None
    updated_at: datetime
    override: bool = False
    required: bool = True
    name: str = Field(..., min_length=1)
    description: str = ""
    children: list["DefinitionItemModel"] = Field(default_factory=list)
    alias: bool = False

    normalize_updated_at = field_validator("updated_at")(_as_utc)


class LocationModel(BaseModel):
    """Schema for one location index entry."""

    model_config = ConfigDict(extra="forbid")

    kind: DefinitionKind
    location: str = Field(..., min_length=1)
    updated_at: datetime

    normalize_updated_at = field_validator("updated_at")(_as_utc)


class DefinitionFileModel(BaseModel):
    """Schema for a complete definitions file."""

    model_config = ConfigDict(extra="forbid")

    version: Literal[1] = CACHE_FORMAT_VERSION
    locations: list[LocationModel] = Field(default_factory=list)
    definitions: list[DefinitionItemModel] = Field(default_factory=list)


DefinitionItemModel.model_rebuild()


def _item_to_model(item: DefinitionCacheItem) -> DefinitionItemModel:
    return DefinitionItemModel(
        kind=item.kind,
        location=item.location,
        updated_at=item.updated_at,
        override=item.override,
        required=item.required,
        name=item.name,
        description=item.description,
        children=[_item_to_model(child) for child in item.children],
        alias=item.alias,
    )


def _model_to_item(model: DefinitionItemModel) -> DefinitionCacheItem:
    return DefinitionCacheItem(
        kind=model.kind,
        location=model.location,
        updated_at=model.updated_at,
        override=model.override,
        required=model.required,
        name=model.name,
        description=model.description,
        children=[_model_to_item(child) for child in model.children],
        alias=model.alias,
    )


def serialize_cache(cache: DefinitionCache) -> str:
    """Render a cache as the JSON document stored on disk."""
    document = DefinitionFileModel(
        locations=[
            LocationModel(kind=kind, location=location, updated_at=updated_at)
            for (kind, location), updated_at in cache.locations.items()
        ],
        definitions=[_item_to_model(item) for item in cache.definitions],
    )
    return json.dumps(document.model_dump(mode="json"), indent=2, ensure_ascii=False)


def deserialize_cache(content: str) -> DefinitionCache:
    """
    Parse a JSON document produced by ``serialize_cache``.

    Raises:
        CacheFormatError: If the document is not valid JSON or violates the schema
    """
    try:
        document = DefinitionFileModel.model_validate(json.loads(content))
    except (json.JSONDecodeError, ValidationError) as e:
        raise CacheFormatError(f"Invalid definitions file: {e}") from e

    return DefinitionCache.restore(
        definitions=[_model_to_item(item) for item in document.definitions],
        locations={
            (entry.kind, entry.location): entry.updated_at
            for entry in document.locations
        },
    )


class DefinitionStore:
    """
    Reads and writes per-layer definition caches.

    Example:
        >>> store = DefinitionStore()
        >>> await store.write(Path("~/.cmdcatalog/profiles/default"), cache)
        >>> await store.read(Path("~/.cmdcatalog/profiles/default")) == cache
        True
    """

    def __init__(self, file_name: str = DEFAULT_DEFINITIONS_FILE):
        self.file_name = file_name
        self.logger = structlog.get_logger().bind(component="definition_store")

    def path_for(self, directory: str | Path) -> Path:
        """Cache file location for a layer directory."""
        return Path(directory) / self.file_name

    def exists(self, directory: str | Path) -> bool:
        return self.path_for(directory).is_file()

    async def read(self, directory: str | Path) -> DefinitionCache | None:
        """
        Load the cache of a layer directory.

        Returns:
            The cache, or None if the file is missing or unusable
        """
        path = self.path_for(directory)
        if not path.exists():
            return None

        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                content = await f.read()
            return deserialize_cache(content)
        except (OSError, UnicodeDecodeError, CacheFormatError) as e:
            self.logger.warning("definitions.load_failed", path=str(path), error=str(e))
            return None

    async def write(self, directory: str | Path, cache: DefinitionCache) -> bool:
        """
        Persist a cache atomically.

        Implementation strategy:
        1. Write to a uniquely named temp file in the same directory.
        2. Replace the target with the temp file (atomic rename).

        Returns:
            True on success, False if the file could not be written
        """
        path = self.path_for(directory)
        temp_path: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(
                dir=path.parent, suffix=".tmp", prefix=".definitions_"
            )
            os.close(temp_fd)
            async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
                await f.write(serialize_cache(cache))
            os.replace(temp_path, path)
            self.logger.debug("definitions.written", path=str(path), atomic=True)
            return True
        except OSError as e:
            if temp_path and Path(temp_path).exists():
                Path(temp_path).unlink()
            self.logger.warning("definitions.write_failed", path=str(path), error=str(e))
            return False

    def delete(self, directory: str | Path) -> bool:
        """Remove a layer's cache file. Returns True if a file was removed."""
        path = self.path_for(directory)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        self.logger.debug("definitions.deleted", path=str(path))
        return True
