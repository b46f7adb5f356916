"""
Interface consumed by the snapshot layer.

Every lookup is keyed by (schema, table) with the schema already resolved.
Implementations only read; they never mutate the underlying store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Tuple

from pg_lens.models import (
    ColumnMetadata,
    ForeignKeyEdge,
    IncomingForeignKey,
    IndexDescriptor,
)


class MetadataProvider(ABC):
    """Point queries about a single table's catalog metadata."""

    @abstractmethod
    def find_tables(self, schema: str, table: str) -> List[Tuple[str, str]]:
        """Return every (schema, table) matching the name; empty if none."""

    @abstractmethod
    def get_columns(self, schema: str, table: str) -> List[ColumnMetadata]:
        """Columns in ordinal order."""

    @abstractmethod
    def get_primary_key(self, schema: str, table: str) -> List[str]:
        """Primary key column names in declaration order."""

    @abstractmethod
    def get_foreign_keys(self, schema: str, table: str) -> List[ForeignKeyEdge]:
        """Outgoing foreign key edges of the table."""

    @abstractmethod
    def get_incoming_foreign_keys(self, schema: str, table: str) -> List[IncomingForeignKey]:
        """Foreign keys on other tables that reference this table."""

    @abstractmethod
    def get_indexes(self, schema: str, table: str) -> List[IndexDescriptor]:
        """Indexes on the table."""

    @abstractmethod
    def list_tables(self) -> List[Tuple[str, str]]:
        """All user tables as (schema, table), ordered."""

    @abstractmethod
    def search_tables(self, pattern: str) -> List[Tuple[str, str]]:
        """Tables whose name or schema matches a regex, best matches first."""
