"""
Metadata providers for PostgreSQL catalogs.

Provides a common interface to read table metadata, column definitions,
keys and indexes, backed either by a live database or an in-memory schema.
"""

from pg_lens.metadata.base import MetadataProvider
from pg_lens.metadata.memory import InMemoryMetadataProvider
from pg_lens.metadata.postgres import PostgresMetadataProvider

__all__ = [
    "MetadataProvider",
    "InMemoryMetadataProvider",
    "PostgresMetadataProvider",
]
