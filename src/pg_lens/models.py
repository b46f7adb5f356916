"""
Core data models for the pg_lens package.

Typed records for table metadata read from the catalog (columns, keys,
indexes), the table references used in a query, and the JOIN suggestions
produced by the inference engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

DEFAULT_SCHEMA = "public"


class ColumnKind(str, Enum):
    """Coarse classification of a column's declared type."""
    TEXTUAL = "textual"
    BINARY = "binary"
    OTHER = "other"


class JoinType(str, Enum):
    """Join keyword used in a suggestion."""
    INNER = "INNER JOIN"
    LEFT = "LEFT JOIN"


def parse_table_name(identifier: str) -> Tuple[str, str]:
    """
    Split a possibly schema-qualified identifier into (schema, table).

    Splits on the first dot. Bare names resolve to the default schema.

    Raises:
        ValueError: If the identifier or one of its parts is empty
    """
    if not identifier or not identifier.strip():
        raise ValueError("Table identifier must not be empty")

    identifier = identifier.strip()
    if "." in identifier:
        schema, table = identifier.split(".", 1)
    else:
        schema, table = DEFAULT_SCHEMA, identifier

    if not schema or not table:
        raise ValueError(f"Invalid table identifier: {identifier!r}")
    return schema, table


def format_table_name(schema: str, table: str) -> str:
    """Render a table name, omitting the default schema."""
    return table if schema == DEFAULT_SCHEMA else f"{schema}.{table}"


def classify_type(data_type: str) -> ColumnKind:
    """Classify a declared type name by substring."""
    type_lower = (data_type or "").lower()
    if "text" in type_lower or "varchar" in type_lower:
        return ColumnKind.TEXTUAL
    if "bytea" in type_lower:
        return ColumnKind.BINARY
    return ColumnKind.OTHER


@dataclass
class ColumnMetadata:
    """Metadata for a single column."""
    name: str
    data_type: str
    nullable: bool = True
    default_value: Optional[str] = None
    max_length: Optional[int] = None
    comment: Optional[str] = None

    @property
    def kind(self) -> ColumnKind:
        return classify_type(self.data_type)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "data_type": self.data_type,
            "nullable": self.nullable,
            "default_value": self.default_value,
            "max_length": self.max_length,
            "comment": self.comment,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ColumnMetadata:
        """Create from dictionary."""
        return cls(
            name=data["name"],
            data_type=data.get("data_type", data.get("type", "text")),
            nullable=data.get("nullable", True),
            default_value=data.get("default_value", data.get("default")),
            max_length=data.get("max_length"),
            comment=data.get("comment"),
        )


@dataclass(frozen=True)
class ForeignKeyEdge:
    """
    One column pair of a foreign key constraint, pointing source -> target.

    Composite constraints are represented as several edges sharing the same
    constraint name.
    """
    source_schema: str
    source_table: str
    source_column: str
    target_schema: str
    target_table: str
    target_column: str
    constraint_name: str

    def targets(self, schema: str, table: str) -> bool:
        """Whether this edge references the given table."""
        return self.target_schema == schema and self.target_table == table

    def same_target(self, other: ForeignKeyEdge) -> bool:
        """Whether both edges reference the same schema, table and column."""
        return (
            self.target_schema == other.target_schema
            and self.target_table == other.target_table
            and self.target_column == other.target_column
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "column": self.source_column,
            "referenced_schema": self.target_schema,
            "referenced_table": self.target_table,
            "referenced_column": self.target_column,
            "constraint": self.constraint_name,
        }


@dataclass(frozen=True)
class IncomingForeignKey:
    """A foreign key on another table that references this one."""
    from_schema: str
    from_table: str
    from_column: str
    to_column: str
    constraint_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_schema": self.from_schema,
            "from_table": self.from_table,
            "from_column": self.from_column,
            "to_column": self.to_column,
            "constraint": self.constraint_name,
        }


@dataclass
class IndexDescriptor:
    """An index on a table. Informational only."""
    name: str
    columns: List[str] = field(default_factory=list)
    unique: bool = False
    method: str = "btree"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "columns": self.columns,
            "unique": self.unique,
            "method": self.method,
        }


@dataclass
class TableSnapshot:
    """Full metadata for one table, assembled in a single call."""
    name: str
    schema: str = DEFAULT_SCHEMA
    columns: List[ColumnMetadata] = field(default_factory=list)
    primary_key: List[str] = field(default_factory=list)
    foreign_keys: List[ForeignKeyEdge] = field(default_factory=list)
    incoming_foreign_keys: List[IncomingForeignKey] = field(default_factory=list)
    indexes: List[IndexDescriptor] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        """Return schema-qualified table name."""
        return f"{self.schema}.{self.name}"

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def get_column(self, name: str) -> Optional[ColumnMetadata]:
        """Get column by exact name."""
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "schema": self.schema,
            "name": self.name,
            "columns": [c.to_dict() for c in self.columns],
            "primary_key": self.primary_key,
            "foreign_keys": [fk.to_dict() for fk in self.foreign_keys],
            "incoming_foreign_keys": [fk.to_dict() for fk in self.incoming_foreign_keys],
            "indexes": [idx.to_dict() for idx in self.indexes],
        }


@dataclass(frozen=True)
class TableRef:
    """A table as used in a query: identifier plus alias."""
    table_name: str
    alias: str

    def __post_init__(self):
        if not self.alias or not self.alias.strip():
            raise ValueError(f"Alias for table {self.table_name!r} must not be empty")
        # validates the identifier
        parse_table_name(self.table_name)

    @property
    def schema(self) -> str:
        return parse_table_name(self.table_name)[0]

    @property
    def table(self) -> str:
        return parse_table_name(self.table_name)[1]

    @classmethod
    def parse(cls, spec: str) -> TableRef:
        """
        Parse ``table:alias`` (or bare ``table``, aliased by its own name).
        """
        table_name, sep, alias = spec.partition(":")
        if not sep:
            alias = parse_table_name(table_name)[1]
        return cls(table_name=table_name.strip(), alias=alias.strip())


@dataclass(frozen=True)
class JoinSuggestion:
    """One proposed JOIN clause with its confidence score."""
    join_type: JoinType
    expression: str
    description: str
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "joinType": self.join_type.value,
            "expression": self.expression,
            "description": self.description,
            "score": self.score,
        }
