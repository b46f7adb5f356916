"""
Foreign-key graph view over a pair of tables.

Fetches the complete outgoing edge sets of both tables (one query each) and
derives the three relationship shapes the join inference engine needs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from pg_lens.models import ForeignKeyEdge, TableRef
from pg_lens.snapshot import SchemaSnapshotter, call_provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedTable:
    """A TableRef bound to the catalog table it names."""
    schema: str
    table: str
    alias: str


@dataclass
class PairEdges:
    """Outgoing edges of both tables of a pair."""
    left: ResolvedTable
    right: ResolvedTable
    left_edges: List[ForeignKeyEdge] = field(default_factory=list)
    right_edges: List[ForeignKeyEdge] = field(default_factory=list)

    def direct(self) -> List[ForeignKeyEdge]:
        """Left edges pointing at the right table."""
        return [e for e in self.left_edges if e.targets(self.right.schema, self.right.table)]

    def reverse(self) -> List[ForeignKeyEdge]:
        """Right edges pointing at the left table."""
        return [e for e in self.right_edges if e.targets(self.left.schema, self.left.table)]

    def shared(self) -> List[Tuple[ForeignKeyEdge, ForeignKeyEdge]]:
        """(left edge, right edge) pairs referencing the same column of a third table."""
        return [
            (left_edge, right_edge)
            for left_edge in self.left_edges
            for right_edge in self.right_edges
            if left_edge.same_target(right_edge)
        ]


class ForeignKeyGraphView:
    """Read-only projection of the foreign-key graph for table pairs."""

    def __init__(self, snapshotter: SchemaSnapshotter):
        self.snapshotter = snapshotter

    def resolve(self, ref: TableRef) -> ResolvedTable:
        """Bind a TableRef to its catalog table; raises TableNotFound."""
        schema, table = self.snapshotter.require(ref.table_name)
        return ResolvedTable(schema=schema, table=table, alias=ref.alias)

    def outgoing_edges(self, table: ResolvedTable) -> List[ForeignKeyEdge]:
        return list(call_provider(self.snapshotter.provider.get_foreign_keys, table.schema, table.table))

    def edges_between(self, left: TableRef, right: TableRef) -> PairEdges:
        """
        Collect the outgoing edges of both tables.

        Raises:
            TableNotFound: If either table does not exist
        """
        left_table = self.resolve(left)
        right_table = self.resolve(right)
        pair = PairEdges(
            left=left_table,
            right=right_table,
            left_edges=self.outgoing_edges(left_table),
            right_edges=self.outgoing_edges(right_table),
        )
        logger.debug(
            f"Edges for {left_table.schema}.{left_table.table} / {right_table.schema}.{right_table.table}: "
            f"{len(pair.left_edges)} left, {len(pair.right_edges)} right"
        )
        return pair
