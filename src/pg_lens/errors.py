"""Exceptions raised by pg_lens."""

from __future__ import annotations

from typing import List, Sequence, Tuple


class PgLensError(Exception):
    """Base class for pg_lens errors."""


class TableNotFound(PgLensError):
    """A table identifier does not resolve to a table in the database."""

    def __init__(self, identifier: str):
        super().__init__(f"Table '{identifier}' not found")
        self.identifier = identifier


class MetadataUnavailable(PgLensError):
    """The metadata provider could not answer (connectivity, permission, timeout)."""

    retryable = True


class AmbiguousIdentifier(PgLensError):
    """A qualified identifier matched more than one catalog object."""

    def __init__(self, identifier: str, matches: Sequence[Tuple[str, str]]):
        names = ", ".join(f"{schema}.{table}" for schema, table in matches)
        super().__init__(f"Identifier '{identifier}' is ambiguous: matches {names}")
        self.identifier = identifier
        self.matches: List[Tuple[str, str]] = list(matches)


class SuggestionCancelled(PgLensError):
    """A join suggestion request was cancelled or timed out before completing."""
