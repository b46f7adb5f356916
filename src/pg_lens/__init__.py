"""
pg_lens - Read-only PostgreSQL Introspection and JOIN Suggestions

Exposes table metadata (columns, keys, indexes) to automated clients and
proposes JOIN clauses between tables from the schema's foreign-key graph.

Features:
- Per-call table snapshots, never cached
- Direct, reverse and shared-reference join inference with confidence scores
- Optional naming-convention matches for undeclared foreign keys
- Live PostgreSQL catalogs or offline YAML schema files
"""

__version__ = "0.1.0"

from pg_lens.config import ConnectionSettings
from pg_lens.errors import (
    AmbiguousIdentifier,
    MetadataUnavailable,
    PgLensError,
    SuggestionCancelled,
    TableNotFound,
)
from pg_lens.models import (
    ColumnKind,
    ColumnMetadata,
    ForeignKeyEdge,
    IncomingForeignKey,
    IndexDescriptor,
    JoinSuggestion,
    JoinType,
    TableRef,
    TableSnapshot,
)
from pg_lens.metadata import (
    InMemoryMetadataProvider,
    MetadataProvider,
    PostgresMetadataProvider,
)
from pg_lens.snapshot import SchemaSnapshotter
from pg_lens.graph import ForeignKeyGraphView
from pg_lens.inference import JoinInferrer, suggest_joins

__all__ = [
    # Configuration
    "ConnectionSettings",
    # Errors
    "PgLensError",
    "TableNotFound",
    "MetadataUnavailable",
    "AmbiguousIdentifier",
    "SuggestionCancelled",
    # Core models
    "ColumnKind",
    "ColumnMetadata",
    "ForeignKeyEdge",
    "IncomingForeignKey",
    "IndexDescriptor",
    "JoinSuggestion",
    "JoinType",
    "TableRef",
    "TableSnapshot",
    # Metadata providers
    "MetadataProvider",
    "InMemoryMetadataProvider",
    "PostgresMetadataProvider",
    # Inference
    "SchemaSnapshotter",
    "ForeignKeyGraphView",
    "JoinInferrer",
    "suggest_joins",
]
