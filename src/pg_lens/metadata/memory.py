"""
In-memory metadata provider.

Serves metadata from TableSnapshot records, either built in code or loaded
from a YAML schema file. Used for offline inspection and in tests.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml

from pg_lens.metadata.base import MetadataProvider
from pg_lens.models import (
    DEFAULT_SCHEMA,
    ColumnMetadata,
    ForeignKeyEdge,
    IncomingForeignKey,
    IndexDescriptor,
    TableSnapshot,
    parse_table_name,
)

logger = logging.getLogger(__name__)


class InMemoryMetadataProvider(MetadataProvider):
    """
    Metadata provider backed by a fixed set of tables.

    Incoming foreign keys are derived from the outgoing edges of every table.
    Snapshots handed out are copies; the provider's own records never change
    after construction.
    """

    def __init__(self, tables: Optional[Iterable[TableSnapshot]] = None):
        self._tables: Dict[Tuple[str, str], TableSnapshot] = {}
        for table in tables or []:
            self.add_table(table)

    def add_table(self, table: TableSnapshot) -> None:
        """Add or replace a table."""
        self._tables[(table.schema, table.name)] = table

    @classmethod
    def from_yaml(cls, path: Path) -> InMemoryMetadataProvider:
        """
        Load tables from a YAML schema file.

        Format::

            tables:
              - name: orders
                schema: public          # optional
                columns:
                  - {name: id, type: integer, nullable: false}
                  - {name: user_id, type: integer}
                primary_key: [id]
                foreign_keys:
                  - {column: user_id, references: users.id, constraint: orders_user_id_fkey}
                indexes:
                  - {name: orders_pkey, columns: [id], unique: true, method: btree}
        """
        path = Path(path)
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        provider = cls.from_dict(data)
        logger.info(f"Loaded {len(provider._tables)} tables from {path}")
        return provider

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> InMemoryMetadataProvider:
        """Create from the dictionary form of a YAML schema file."""
        provider = cls()
        for table_def in data.get("tables", []):
            provider.add_table(_table_from_dict(table_def))
        return provider

    def _get(self, schema: str, table: str) -> Optional[TableSnapshot]:
        return self._tables.get((schema, table))

    def find_tables(self, schema: str, table: str) -> List[Tuple[str, str]]:
        return [(schema, table)] if self._get(schema, table) else []

    def get_columns(self, schema: str, table: str) -> List[ColumnMetadata]:
        snapshot = self._get(schema, table)
        if snapshot is None:
            return []
        return [ColumnMetadata(**c.to_dict()) for c in snapshot.columns]

    def get_primary_key(self, schema: str, table: str) -> List[str]:
        snapshot = self._get(schema, table)
        return list(snapshot.primary_key) if snapshot else []

    def get_foreign_keys(self, schema: str, table: str) -> List[ForeignKeyEdge]:
        snapshot = self._get(schema, table)
        return list(snapshot.foreign_keys) if snapshot else []

    def get_incoming_foreign_keys(self, schema: str, table: str) -> List[IncomingForeignKey]:
        incoming = []
        for (src_schema, src_table), snapshot in sorted(self._tables.items(), key=lambda kv: kv[0][1]):
            for edge in snapshot.foreign_keys:
                if edge.targets(schema, table):
                    incoming.append(IncomingForeignKey(
                        from_schema=src_schema,
                        from_table=src_table,
                        from_column=edge.source_column,
                        to_column=edge.target_column,
                        constraint_name=edge.constraint_name,
                    ))
        return incoming

    def get_indexes(self, schema: str, table: str) -> List[IndexDescriptor]:
        snapshot = self._get(schema, table)
        if snapshot is None:
            return []
        return [
            IndexDescriptor(name=idx.name, columns=list(idx.columns), unique=idx.unique, method=idx.method)
            for idx in snapshot.indexes
        ]

    def list_tables(self) -> List[Tuple[str, str]]:
        return sorted(self._tables.keys())

    def search_tables(self, pattern: str) -> List[Tuple[str, str]]:
        try:
            regex = re.compile(pattern)
        except re.error as e:
            raise ValueError(f"Invalid regular expression: {e}") from e

        pattern_lower = pattern.lower()

        def rank(key: Tuple[str, str]) -> Tuple[int, str, str]:
            schema, table = key
            table_lower = table.lower()
            if table == pattern:
                return 1, schema, table
            if table_lower.startswith(pattern_lower):
                return 2, schema, table
            if pattern_lower in table_lower:
                return 3, schema, table
            return 4, schema, table

        matches = [
            key for key in self._tables
            if regex.search(key[1]) or regex.search(key[0])
        ]
        return sorted(matches, key=rank)


def _table_from_dict(data: Dict[str, Any]) -> TableSnapshot:
    """Build a TableSnapshot from one YAML table entry."""
    schema = data.get("schema", DEFAULT_SCHEMA)
    name = data["name"]

    foreign_keys = []
    for fk in data.get("foreign_keys", []):
        ref_table, _, ref_column = fk["references"].rpartition(".")
        if not ref_table or not ref_column:
            raise ValueError(
                f"Foreign key reference must be table.column or schema.table.column: {fk['references']!r}"
            )
        ref_schema, ref_table = parse_table_name(ref_table)
        foreign_keys.append(ForeignKeyEdge(
            source_schema=schema,
            source_table=name,
            source_column=fk["column"],
            target_schema=ref_schema,
            target_table=ref_table,
            target_column=ref_column,
            constraint_name=fk.get("constraint", f"{name}_{fk['column']}_fkey"),
        ))

    return TableSnapshot(
        name=name,
        schema=schema,
        columns=[ColumnMetadata.from_dict(c) for c in data.get("columns", [])],
        primary_key=list(data.get("primary_key", [])),
        foreign_keys=foreign_keys,
        indexes=[
            IndexDescriptor(
                name=idx["name"],
                columns=list(idx.get("columns", [])),
                unique=idx.get("unique", False),
                method=idx.get("method", "btree"),
            )
            for idx in data.get("indexes", [])
        ],
    )
