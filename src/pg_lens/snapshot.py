"""
Schema snapshots assembled from a metadata provider.

A snapshot is built fresh on every call; nothing is cached between calls.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from pg_lens.errors import AmbiguousIdentifier, MetadataUnavailable, PgLensError, TableNotFound
from pg_lens.metadata.base import MetadataProvider
from pg_lens.models import TableSnapshot, format_table_name, parse_table_name

logger = logging.getLogger(__name__)


class SchemaSnapshotter:
    """Builds TableSnapshot records from point queries against a provider."""

    def __init__(self, provider: MetadataProvider):
        self.provider = provider

    def resolve(self, identifier: str) -> Optional[Tuple[str, str]]:
        """
        Resolve an identifier to (schema, table).

        Returns:
            The matching (schema, table), or None if no table matches

        Raises:
            AmbiguousIdentifier: If more than one table matches
        """
        schema, table = parse_table_name(identifier)
        matches = call_provider(self.provider.find_tables, schema, table)
        if len(matches) > 1:
            raise AmbiguousIdentifier(identifier, matches)
        if not matches:
            return None
        return matches[0]

    def require(self, identifier: str) -> Tuple[str, str]:
        """Resolve an identifier, raising TableNotFound if it does not exist."""
        resolved = self.resolve(identifier)
        if resolved is None:
            logger.warning(f"Table not found: {identifier}")
            raise TableNotFound(identifier)
        return resolved

    def get_table_info(self, identifier: str) -> Optional[TableSnapshot]:
        """
        Get full metadata for a table.

        Args:
            identifier: ``schema.table`` or bare ``table`` (default schema)

        Returns:
            TableSnapshot, or None if the table does not exist
        """
        resolved = self.resolve(identifier)
        if resolved is None:
            logger.warning(f"Table not found: {identifier}")
            return None

        schema, table = resolved
        provider = self.provider
        return TableSnapshot(
            name=table,
            schema=schema,
            columns=call_provider(provider.get_columns, schema, table),
            primary_key=call_provider(provider.get_primary_key, schema, table),
            foreign_keys=call_provider(provider.get_foreign_keys, schema, table),
            incoming_foreign_keys=call_provider(provider.get_incoming_foreign_keys, schema, table),
            indexes=call_provider(provider.get_indexes, schema, table),
        )

    def require_table(self, identifier: str) -> TableSnapshot:
        """Same as get_table_info but raises TableNotFound instead of returning None."""
        snapshot = self.get_table_info(identifier)
        if snapshot is None:
            raise TableNotFound(identifier)
        return snapshot

    def list_tables(self) -> List[str]:
        """All user tables, rendered without the default schema prefix."""
        return [format_table_name(s, t) for s, t in call_provider(self.provider.list_tables)]

    def search_tables(self, pattern: str) -> List[str]:
        """Tables whose name or schema matches the regex, best matches first."""
        if not pattern:
            raise ValueError("Search pattern must not be empty")
        return [format_table_name(s, t) for s, t in call_provider(self.provider.search_tables, pattern)]


def call_provider(method, *args):
    """Call a provider method, mapping unexpected failures to MetadataUnavailable."""
    try:
        return method(*args)
    except (PgLensError, ValueError):
        raise
    except Exception as e:
        raise MetadataUnavailable(f"Metadata provider failed: {e}") from e
