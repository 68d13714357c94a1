"""
Persistence Infrastructure

Atomic storage of per-layer definition caches and file timestamps.
"""

from cmdcatalog.infrastructure.persistence.definition_store import (
    DefinitionStore,
    deserialize_cache,
    serialize_cache,
)
from cmdcatalog.infrastructure.persistence.file_times import file_time

__all__ = ["DefinitionStore", "deserialize_cache", "file_time", "serialize_cache"]
