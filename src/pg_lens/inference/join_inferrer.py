"""
Join Inferrer - Suggests JOIN clauses between tables in a query.

Derives candidate JOIN ... ON clauses from the foreign-key graph:
1. Direct references (existing table -> new table)
2. Reverse references (new table -> existing table)
3. Shared references (both tables -> same column of a third table)
4. Column naming conventions (optional, lower confidence)
"""

from __future__ import annotations

import logging
import re
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import List, Optional, Sequence, Set

from pg_lens.errors import SuggestionCancelled
from pg_lens.graph import ForeignKeyGraphView, PairEdges, ResolvedTable
from pg_lens.metadata.base import MetadataProvider
from pg_lens.models import DEFAULT_SCHEMA, JoinSuggestion, JoinType, TableRef
from pg_lens.snapshot import SchemaSnapshotter, call_provider

logger = logging.getLogger(__name__)

# Confidence scores
ALIAS_MATCH_SCORE = 100
DIRECT_SCORE = 95
SHARED_ALIAS_MATCH_SCORE = 90
SHARED_SCORE = 85
NAMING_EXACT_SCORE = 80
NAMING_VARIANT_SCORE = 70

INNER_JOIN_THRESHOLD = 90
INNER_JOIN_BONUS = 5

# plural suffix -> singular suffix, first match wins
_SINGULAR_SUFFIXES = (
    ("ies", "y"),
    ("ches", "ch"),
    ("shes", "sh"),
    ("ses", "s"),
    ("xes", "x"),
    ("zes", "z"),
    ("s", ""),
)
_ES_PLURAL_ENDINGS = ("s", "x", "z", "ch", "sh")
_VOWELS = "aeiou"


def name_variants(word: str) -> Set[str]:
    """
    Singular and plural spellings of an English table name.

    ``category`` yields ``categories`` and ``orders`` yields ``order``.
    The word itself is never included.
    """
    word = word.lower()
    variants = set()

    for plural, singular in _SINGULAR_SUFFIXES:
        if word.endswith(plural) and len(word) > len(plural):
            variants.add(word[:-len(plural)] + singular)
            break

    if word.endswith("y") and len(word) > 1 and word[-2] not in _VOWELS:
        variants.add(word[:-1] + "ies")
    elif word.endswith(_ES_PLURAL_ENDINGS):
        variants.add(word + "es")
    else:
        variants.add(word + "s")

    variants.discard(word)
    return variants


def render_table(schema: str, table: str, alias: str) -> str:
    """Render ``[schema.]table[ alias]`` for a JOIN clause."""
    prefix = "" if schema == DEFAULT_SCHEMA else f"{schema}."
    suffix = "" if table == alias else f" {alias}"
    return f"{prefix}{table}{suffix}"


def join_clause(joined: ResolvedTable, left_ref: str, right_ref: str) -> str:
    """Build ``LEFT JOIN <table> ON <left_ref> = <right_ref>``."""
    table = render_table(joined.schema, joined.table, joined.alias)
    return f"{JoinType.LEFT.value} {table} ON {left_ref} = {right_ref}"


def rank_suggestions(suggestions: Sequence[JoinSuggestion]) -> List[JoinSuggestion]:
    """
    Sort by score (descending, stable) and drop repeated expressions.

    Sorting happens first so the copy kept for a repeated expression is the
    highest-scoring one.
    """
    ranked = sorted(suggestions, key=lambda s: s.score, reverse=True)
    seen = set()
    unique = []
    for suggestion in ranked:
        if suggestion.expression in seen:
            continue
        seen.add(suggestion.expression)
        unique.append(suggestion)
    return unique


class JoinInferrer:
    """
    Suggests JOIN expressions for adding a table to a query.

    For every table already in the query, the pair (existing, new) is
    analysed independently; candidates from all pairs are then ranked and
    deduplicated by expression text.

    Confidence bands:
    - 105: INNER JOIN variant of an alias-matching direct/reverse FK
    - 95-100: direct or reverse foreign key
    - 85-90: shared reference to a third table
    - 70-80: column naming convention (only with naming_heuristics)
    """

    # {table}_id -> {table}.<single-column primary key>
    FK_COLUMN_PATTERN = re.compile(r'^([a-z0-9_]+)_id$')

    def __init__(
        self,
        provider: MetadataProvider,
        naming_heuristics: bool = False,
        max_workers: int = 1,
    ):
        """
        Initialize the inferrer.

        Args:
            provider: Metadata provider to read foreign keys from
            naming_heuristics: Also suggest joins from ``<table>_id`` column names
            max_workers: Number of table pairs analysed concurrently
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.snapshotter = SchemaSnapshotter(provider)
        self.graph = ForeignKeyGraphView(self.snapshotter)
        self.naming_heuristics = naming_heuristics
        self.max_workers = max_workers

    def suggest_joins(
        self,
        existing_tables: Sequence[TableRef],
        new_table: TableRef,
        timeout: Optional[float] = None,
    ) -> List[JoinSuggestion]:
        """
        Suggest JOIN expressions for bringing ``new_table`` into a query.

        Args:
            existing_tables: Tables already in the query, with aliases
            new_table: Table to join, with its alias
            timeout: Optional limit in seconds for the whole request

        Returns:
            Suggestions sorted by score (highest first), one per expression.
            Empty when no relationship exists.

        Raises:
            TableNotFound: If any referenced table does not exist
            MetadataUnavailable: If the metadata provider fails
            SuggestionCancelled: If the timeout expires first
        """
        if timeout is None and (self.max_workers == 1 or len(existing_tables) < 2):
            # An unknown new table is an error even with no existing tables
            self.graph.resolve(new_table)
            per_pair = [self.find_joins_between_tables(existing, new_table) for existing in existing_tables]
        else:
            deadline = None if timeout is None else time.monotonic() + timeout
            per_pair = self._suggest_concurrently(existing_tables, new_table, deadline)

        suggestions = [s for pair_suggestions in per_pair for s in pair_suggestions]
        ranked = rank_suggestions(suggestions)

        logger.info(
            f"Suggested {len(ranked)} joins for {new_table.table_name} ({new_table.alias}) "
            f"from {len(existing_tables)} existing tables"
        )
        return ranked

    def _suggest_concurrently(
        self,
        existing_tables: Sequence[TableRef],
        new_table: TableRef,
        deadline: Optional[float],
    ) -> List[List[JoinSuggestion]]:
        """
        Analyse pairs on a thread pool; results keep the input order.

        Every provider call runs on a worker thread, so the caller gets
        SuggestionCancelled at the deadline even while a lookup is still
        blocked. Abandoned lookups finish in the background and are discarded.
        """
        workers = max(1, min(self.max_workers, len(existing_tables)))
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="pg_lens-join")
        try:
            lookup = executor.submit(self.graph.resolve, new_table)
            _await_all([lookup], deadline, "table lookups")
            lookup.result()

            futures = [
                executor.submit(self.find_joins_between_tables, existing, new_table)
                for existing in existing_tables
            ]
            _await_all(futures, deadline, "table pairs")
            return [future.result() for future in futures]
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def find_joins_between_tables(self, left: TableRef, right: TableRef) -> List[JoinSuggestion]:
        """
        Find all candidate joins between two tables.

        Each candidate is a LEFT JOIN; candidates scoring at least 90 also
        get an INNER JOIN variant scored 5 higher.
        """
        pair = self.graph.edges_between(left, right)

        candidates = []
        candidates.extend(self._direct_candidates(pair))
        candidates.extend(self._reverse_candidates(pair))
        candidates.extend(self._shared_candidates(pair))
        if self.naming_heuristics:
            candidates.extend(self._naming_candidates(pair))

        suggestions = []
        for candidate in candidates:
            suggestions.append(candidate)
            if candidate.score >= INNER_JOIN_THRESHOLD:
                suggestions.append(self._inner_variant(candidate))

        logger.debug(
            f"{left.table_name} ({left.alias}) / {right.table_name} ({right.alias}): "
            f"{len(candidates)} candidates, {len(suggestions)} suggestions"
        )
        return suggestions

    def _direct_candidates(self, pair: PairEdges) -> List[JoinSuggestion]:
        """Left table holds a foreign key to the right table."""
        left, right = pair.left, pair.right
        candidates = []
        for edge in pair.direct():
            score = ALIAS_MATCH_SCORE if right.alias in edge.source_column else DIRECT_SCORE
            candidates.append(JoinSuggestion(
                join_type=JoinType.LEFT,
                expression=join_clause(
                    right,
                    f"{left.alias}.{edge.source_column}",
                    f"{right.alias}.{edge.target_column}",
                ),
                description=(
                    f"Direct foreign key relationship from {left.table} to {right.table} "
                    f"(FK: {edge.constraint_name})"
                ),
                score=score,
            ))
        return candidates

    def _reverse_candidates(self, pair: PairEdges) -> List[JoinSuggestion]:
        """Right table holds a foreign key to the left table."""
        left, right = pair.left, pair.right
        candidates = []
        for edge in pair.reverse():
            score = ALIAS_MATCH_SCORE if left.alias in edge.source_column else DIRECT_SCORE
            candidates.append(JoinSuggestion(
                join_type=JoinType.LEFT,
                expression=join_clause(
                    left,
                    f"{right.alias}.{edge.source_column}",
                    f"{left.alias}.{edge.target_column}",
                ),
                description=(
                    f"Reverse foreign key relationship from {right.table} to {left.table} "
                    f"(FK: {edge.constraint_name})"
                ),
                score=score,
            ))
        return candidates

    def _shared_candidates(self, pair: PairEdges) -> List[JoinSuggestion]:
        """Both tables reference the same column of a third table."""
        left, right = pair.left, pair.right
        candidates = []
        for left_edge, right_edge in pair.shared():
            alias_match = (
                left.alias in left_edge.source_column
                or right.alias in right_edge.source_column
            )
            candidates.append(JoinSuggestion(
                join_type=JoinType.LEFT,
                expression=join_clause(
                    right,
                    f"{left.alias}.{left_edge.source_column}",
                    f"{right.alias}.{right_edge.source_column}",
                ),
                description=(
                    f"Join through shared reference to {left_edge.target_table} "
                    f"(FK: {left_edge.constraint_name}, {right_edge.constraint_name})"
                ),
                score=SHARED_ALIAS_MATCH_SCORE if alias_match else SHARED_SCORE,
            ))
        return candidates

    def _naming_candidates(self, pair: PairEdges) -> List[JoinSuggestion]:
        """``<table>_id`` columns that look like undeclared foreign keys."""
        left, right = pair.left, pair.right
        candidates = []

        # left.<x>_id -> right.<pk>, rendered like a direct reference
        for column, score, pk in self._naming_matches(left, pair.left_edges, right):
            candidates.append(JoinSuggestion(
                join_type=JoinType.LEFT,
                expression=join_clause(right, f"{left.alias}.{column}", f"{right.alias}.{pk}"),
                description=f"Naming convention match from {left.table}.{column} to {right.table}.{pk}",
                score=score,
            ))

        # right.<x>_id -> left.<pk>, rendered like a reverse reference
        for column, score, pk in self._naming_matches(right, pair.right_edges, left):
            candidates.append(JoinSuggestion(
                join_type=JoinType.LEFT,
                expression=join_clause(left, f"{right.alias}.{column}", f"{left.alias}.{pk}"),
                description=f"Naming convention match from {right.table}.{column} to {left.table}.{pk}",
                score=score,
            ))

        return candidates

    def _naming_matches(self, source: ResolvedTable, source_edges, target: ResolvedTable):
        """Yield (column, score, target pk) for source columns named after the target."""
        provider = self.snapshotter.provider
        target_pk = call_provider(provider.get_primary_key, target.schema, target.table)
        if len(target_pk) != 1:
            return

        declared = {edge.source_column for edge in source_edges}
        target_lower = target.table.lower()

        for col in call_provider(provider.get_columns, source.schema, source.table):
            if col.name in declared:
                continue
            match = self.FK_COLUMN_PATTERN.match(col.name.lower())
            if not match:
                continue

            referenced = match.group(1)
            if referenced == target_lower:
                yield col.name, NAMING_EXACT_SCORE, target_pk[0]
            elif target_lower in name_variants(referenced):
                yield col.name, NAMING_VARIANT_SCORE, target_pk[0]

    def _inner_variant(self, suggestion: JoinSuggestion) -> JoinSuggestion:
        """INNER JOIN copy of a high-confidence LEFT JOIN suggestion."""
        return JoinSuggestion(
            join_type=JoinType.INNER,
            expression=suggestion.expression.replace(JoinType.LEFT.value, JoinType.INNER.value, 1),
            description=suggestion.description.replace("Left join", "Inner join"),
            score=suggestion.score + INNER_JOIN_BONUS,
        )


def _await_all(futures: List[Future], deadline: Optional[float], what: str) -> None:
    """Wait for futures until the deadline, cancelling the rest if it passes."""
    remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
    _, not_done = wait(futures, timeout=remaining)
    if not_done:
        for future in not_done:
            future.cancel()
        raise SuggestionCancelled(
            f"Join suggestion timed out with {len(not_done)} of {len(futures)} {what} pending"
        )


def suggest_joins(
    provider: MetadataProvider,
    existing_tables: Sequence[TableRef],
    new_table: TableRef,
    naming_heuristics: bool = False,
) -> List[JoinSuggestion]:
    """
    Convenience function to suggest joins with a one-off inferrer.

    Args:
        provider: Metadata provider
        existing_tables: Tables already in the query
        new_table: Table to join
        naming_heuristics: Include naming-convention matches

    Returns:
        Ranked, deduplicated JOIN suggestions
    """
    inferrer = JoinInferrer(provider, naming_heuristics=naming_heuristics)
    return inferrer.suggest_joins(existing_tables, new_table)
