"""
Join inference from foreign-key relationships.

Usage:
    from pg_lens.inference import JoinInferrer

    inferrer = JoinInferrer(provider)
    suggestions = inferrer.suggest_joins(
        [TableRef("users", "u"), TableRef("orders", "o")],
        TableRef("order_items", "oi"),
    )
"""

from pg_lens.inference.join_inferrer import (
    JoinInferrer,
    rank_suggestions,
    render_table,
    suggest_joins,
)

__all__ = [
    "JoinInferrer",
    "rank_suggestions",
    "render_table",
    "suggest_joins",
]
