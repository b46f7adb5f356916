"""
PostgreSQL metadata provider using psycopg2.

Reads table metadata, column definitions, keys and indexes from the
PostgreSQL system catalogs and information_schema views.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Tuple

import psycopg2
import psycopg2.errors
from psycopg2.pool import ThreadedConnectionPool

from pg_lens.config import ConnectionSettings
from pg_lens.errors import MetadataUnavailable
from pg_lens.metadata.base import MetadataProvider
from pg_lens.models import (
    ColumnMetadata,
    ForeignKeyEdge,
    IncomingForeignKey,
    IndexDescriptor,
)

logger = logging.getLogger(__name__)

SYSTEM_SCHEMAS = ("information_schema", "pg_catalog", "pg_toast")

# One row per column pair of every foreign key, pairs kept in key order
_FK_PAIRS = """
    SELECT
        src_ns.nspname AS source_schema,
        src.relname AS source_table,
        src_att.attname AS source_column,
        tgt_ns.nspname AS target_schema,
        tgt.relname AS target_table,
        tgt_att.attname AS target_column,
        con.conname AS constraint_name
    FROM pg_constraint con
    JOIN pg_class src ON src.oid = con.conrelid
    JOIN pg_namespace src_ns ON src_ns.oid = src.relnamespace
    JOIN pg_class tgt ON tgt.oid = con.confrelid
    JOIN pg_namespace tgt_ns ON tgt_ns.oid = tgt.relnamespace
    CROSS JOIN LATERAL unnest(con.conkey, con.confkey)
        WITH ORDINALITY AS k(source_attnum, target_attnum, position)
    JOIN pg_attribute src_att
        ON src_att.attrelid = con.conrelid AND src_att.attnum = k.source_attnum
    JOIN pg_attribute tgt_att
        ON tgt_att.attrelid = con.confrelid AND tgt_att.attnum = k.target_attnum
    WHERE con.contype = 'f'
"""


def parse_pg_array(value: Any) -> List[str]:
    """
    Parse a PostgreSQL array literal such as ``{a,"b c"}``.

    Drivers return arrays of unregistered types as text; lists pass through.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]

    cleaned = str(value).strip()
    if cleaned.startswith("{") and cleaned.endswith("}"):
        cleaned = cleaned[1:-1]
    if not cleaned:
        return []
    return [part.strip().strip('"') for part in cleaned.split(",")]


class PostgresMetadataProvider(MetadataProvider):
    """
    Reads metadata from a PostgreSQL catalog through a bounded connection pool.

    Every logical query checks out its own connection and returns it on every
    exit path. Sessions are opened read-only. Driver failures surface as
    MetadataUnavailable.
    """

    def __init__(self, settings: ConnectionSettings, acquire_timeout: float = 10.0):
        """
        Initialize provider.

        Args:
            settings: Connection and pool settings
            acquire_timeout: Seconds to wait for a free pooled connection
        """
        self.settings = settings
        self.acquire_timeout = acquire_timeout
        self._pool: Optional[ThreadedConnectionPool] = None
        self._slots = threading.BoundedSemaphore(settings.pool_max)
        self._lock = threading.Lock()

    def connect(self) -> None:
        """Create the connection pool and verify connectivity."""
        self.settings.validate()
        with self._lock:
            if self._pool is not None:
                return
            try:
                pool = ThreadedConnectionPool(
                    self.settings.pool_min,
                    self.settings.pool_max,
                    **self.settings.dsn_kwargs(),
                )
            except psycopg2.Error as e:
                raise MetadataUnavailable(f"Failed to connect to PostgreSQL: {e}") from e
            self._pool = pool

        # Fail fast on bad credentials or unreachable hosts
        try:
            with self._cursor() as cursor:
                cursor.execute("SELECT 1")
        except Exception:
            self.disconnect()
            raise
        logger.info(
            f"Connected to PostgreSQL {self.settings.host}:{self.settings.port}/"
            f"{self.settings.database} as {self.settings.user}"
        )

    def disconnect(self) -> None:
        """Close every pooled connection."""
        with self._lock:
            if self._pool is not None:
                self._pool.closeall()
                self._pool = None
                logger.info("PostgreSQL connection pool closed")

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    @contextmanager
    def _cursor(self) -> Iterator[Any]:
        """Check out a pooled connection for one logical query."""
        if self._pool is None:
            self.connect()

        if not self._slots.acquire(timeout=self.acquire_timeout):
            raise MetadataUnavailable(
                f"Timed out after {self.acquire_timeout}s waiting for a database connection"
            )
        try:
            try:
                conn = self._pool.getconn()
            except psycopg2.Error as e:
                raise MetadataUnavailable(f"Could not acquire database connection: {e}") from e
            try:
                cursor = conn.cursor()
                try:
                    yield cursor
                finally:
                    cursor.close()
                    # read-only: nothing to commit
                    conn.rollback()
            except psycopg2.errors.InvalidRegularExpression as e:
                raise ValueError(f"Invalid regular expression: {e}") from e
            except psycopg2.Error as e:
                raise MetadataUnavailable(f"Metadata query failed: {e}") from e
            finally:
                self._pool.putconn(conn, close=bool(conn.closed))
        finally:
            self._slots.release()

    def _fetchall(self, sql: str, params: Tuple = ()) -> List[Tuple]:
        with self._cursor() as cursor:
            cursor.execute(sql, params)
            return cursor.fetchall()

    def find_tables(self, schema: str, table: str) -> List[Tuple[str, str]]:
        rows = self._fetchall("""
            SELECT schemaname, tablename
            FROM pg_tables
            WHERE schemaname = %s AND tablename = %s
        """, (schema, table))
        return [(row[0], row[1]) for row in rows]

    def get_columns(self, schema: str, table: str) -> List[ColumnMetadata]:
        rows = self._fetchall("""
            SELECT
                c.column_name,
                c.data_type,
                c.is_nullable,
                c.column_default,
                c.character_maximum_length,
                col_description(
                    format('%%I.%%I', c.table_schema, c.table_name)::regclass,
                    c.ordinal_position
                ) AS comment
            FROM information_schema.columns c
            WHERE c.table_schema = %s AND c.table_name = %s
            ORDER BY c.ordinal_position
        """, (schema, table))

        return [
            ColumnMetadata(
                name=name,
                data_type=data_type,
                nullable=is_nullable == "YES",
                default_value=default,
                max_length=max_length,
                comment=comment,
            )
            for name, data_type, is_nullable, default, max_length, comment in rows
        ]

    def get_primary_key(self, schema: str, table: str) -> List[str]:
        rows = self._fetchall("""
            SELECT a.attname
            FROM pg_index i
            JOIN pg_class t ON t.oid = i.indrelid
            JOIN pg_namespace n ON n.oid = t.relnamespace
            JOIN pg_attribute a ON a.attrelid = i.indrelid AND a.attnum = ANY(i.indkey)
            WHERE n.nspname = %s AND t.relname = %s AND i.indisprimary
            ORDER BY array_position(i.indkey::int2[], a.attnum)
        """, (schema, table))
        return [row[0] for row in rows]

    def get_foreign_keys(self, schema: str, table: str) -> List[ForeignKeyEdge]:
        rows = self._fetchall(_FK_PAIRS + """
            AND src_ns.nspname = %s AND src.relname = %s
            ORDER BY con.conname, k.position
        """, (schema, table))
        return [ForeignKeyEdge(*row) for row in rows]

    def get_incoming_foreign_keys(self, schema: str, table: str) -> List[IncomingForeignKey]:
        rows = self._fetchall(_FK_PAIRS + """
            AND tgt_ns.nspname = %s AND tgt.relname = %s
            ORDER BY src.relname, con.conname, k.position
        """, (schema, table))
        return [
            IncomingForeignKey(
                from_schema=src_schema,
                from_table=src_table,
                from_column=src_column,
                to_column=tgt_column,
                constraint_name=constraint,
            )
            for src_schema, src_table, src_column, _, _, tgt_column, constraint in rows
        ]

    def get_indexes(self, schema: str, table: str) -> List[IndexDescriptor]:
        rows = self._fetchall("""
            SELECT
                i.relname AS index_name,
                array_agg(a.attname::text ORDER BY array_position(ix.indkey::int2[], a.attnum)) AS columns,
                ix.indisunique AS is_unique,
                am.amname AS method
            FROM pg_class t
            JOIN pg_index ix ON t.oid = ix.indrelid
            JOIN pg_class i ON i.oid = ix.indexrelid
            JOIN pg_attribute a ON a.attrelid = t.oid AND a.attnum = ANY(ix.indkey)
            JOIN pg_am am ON i.relam = am.oid
            JOIN pg_namespace n ON n.oid = t.relnamespace
            WHERE n.nspname = %s AND t.relname = %s
            GROUP BY i.relname, ix.indisunique, am.amname
            ORDER BY i.relname
        """, (schema, table))

        return [
            IndexDescriptor(
                name=name,
                columns=parse_pg_array(columns),
                unique=bool(is_unique),
                method=method,
            )
            for name, columns, is_unique, method in rows
        ]

    def list_tables(self) -> List[Tuple[str, str]]:
        rows = self._fetchall("""
            SELECT schemaname, tablename
            FROM pg_tables
            WHERE schemaname NOT IN %s
            ORDER BY schemaname, tablename
        """, (SYSTEM_SCHEMAS,))
        return [(row[0], row[1]) for row in rows]

    def search_tables(self, pattern: str) -> List[Tuple[str, str]]:
        rows = self._fetchall("""
            SELECT schemaname, tablename
            FROM pg_tables
            WHERE schemaname NOT IN %(system)s
            AND (tablename ~ %(pattern)s OR schemaname ~ %(pattern)s)
            ORDER BY
            CASE
                WHEN tablename = %(pattern)s THEN 1
                WHEN tablename ILIKE %(pattern)s || '%%' THEN 2
                WHEN tablename ILIKE '%%' || %(pattern)s || '%%' THEN 3
                ELSE 4
            END,
            schemaname, tablename
        """, {"system": SYSTEM_SCHEMAS, "pattern": pattern})
        return [(row[0], row[1]) for row in rows]
