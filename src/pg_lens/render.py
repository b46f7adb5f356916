"""
Markdown rendering of metadata and join suggestions for automated clients.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Sequence

from pg_lens.models import JoinSuggestion, TableRef, TableSnapshot, parse_table_name


def confidence_label(score: int) -> str:
    """Map a score onto the documented confidence bands."""
    if score >= 90:
        return "HIGH"
    if score >= 70:
        return "MEDIUM"
    if score >= 50:
        return "LOW"
    return "VERY LOW"


def render_table_info(snapshot: TableSnapshot) -> str:
    """Readable summary of one table's metadata."""
    lines = [f"# Table: {snapshot.schema}.{snapshot.name}", "", "## Columns"]

    for col in snapshot.columns:
        line = f"- **{col.name}** ({col.data_type})"
        if not col.nullable:
            line += " NOT NULL"
        if col.default_value:
            line += f" DEFAULT {col.default_value}"
        if col.max_length:
            line += f" [max: {col.max_length}]"
        if col.comment:
            line += f" - {col.comment}"
        lines.append(line)

    if snapshot.primary_key:
        lines += ["", "## Primary Keys"]
        lines += [f"- {pk}" for pk in snapshot.primary_key]

    if snapshot.foreign_keys:
        lines += ["", "## Foreign Keys (Outgoing)"]
        for fk in snapshot.foreign_keys:
            lines.append(
                f"- {fk.source_column} → {fk.target_table}.{fk.target_column} ({fk.constraint_name})"
            )

    if snapshot.incoming_foreign_keys:
        lines += ["", "## Foreign Keys (Incoming)"]
        for ifk in snapshot.incoming_foreign_keys:
            lines.append(
                f"- {ifk.from_table}.{ifk.from_column} → {ifk.to_column} ({ifk.constraint_name})"
            )

    if snapshot.indexes:
        lines += ["", "## Indexes"]
        for idx in snapshot.indexes:
            unique = " (UNIQUE)" if idx.unique else ""
            lines.append(f"- {idx.name} on ({', '.join(idx.columns)}) [{idx.method}]{unique}")

    return "\n".join(lines) + "\n"


def _group_by_schema(tables: Sequence[str]) -> Dict[str, List[str]]:
    by_schema: Dict[str, List[str]] = defaultdict(list)
    for table in tables:
        schema, name = parse_table_name(table)
        by_schema[schema].append(name)
    return by_schema


def _render_groups(by_schema: Dict[str, List[str]], sort_tables: bool) -> List[str]:
    lines = []
    for schema in sorted(by_schema):
        if len(by_schema) > 1:
            lines.append(f"## Schema: {schema}")
        names = sorted(by_schema[schema]) if sort_tables else by_schema[schema]
        lines += [f"- {name}" for name in names]
        lines.append("")
    return lines


def render_table_list(tables: Sequence[str]) -> str:
    lines = [f"# Database Tables ({len(tables)} found)", ""]
    if not tables:
        lines.append("No tables found or accessible.")
    else:
        lines += _render_groups(_group_by_schema(tables), sort_tables=True)
    return "\n".join(lines) + "\n"


def render_search_results(pattern: str, tables: Sequence[str]) -> str:
    lines = [f'# Table Search Results for pattern: "{pattern}"', ""]
    if not tables:
        lines += [
            "No tables found matching the pattern.",
            "",
            "**Tips:**",
            "- Pattern is case-sensitive",
            "- Use .* for wildcard matching",
            "- Try partial matches like 'user' to find 'users', 'user_profiles', etc.",
        ]
    else:
        lines += [f"Found {len(tables)} matching table(s):", ""]
        # keep relevance order within each schema
        lines += _render_groups(_group_by_schema(tables), sort_tables=False)
    return "\n".join(lines) + "\n"


def render_join_suggestions(new_table: TableRef, suggestions: Sequence[JoinSuggestion]) -> str:
    lines = [f"# JOIN Suggestions for {new_table.table_name} ({new_table.alias})", ""]

    if not suggestions:
        lines.append("No JOIN suggestions found based on foreign key relationships or naming patterns.")
        return "\n".join(lines) + "\n"

    lines += [f"Found {len(suggestions)} potential JOIN expressions:", ""]
    for index, suggestion in enumerate(suggestions, start=1):
        label = confidence_label(suggestion.score)
        lines += [
            f"## {index}. {suggestion.join_type.value} (Score: {suggestion.score}, {label} confidence)",
            "```sql",
            suggestion.expression,
            "```",
            f"**Description:** {suggestion.description}",
            "",
        ]

    lines += [
        "## Usage Notes",
        "- **Score 85-105**: Based on actual foreign key constraints",
        "- **Score 70-80**: Based on naming conventions (e.g., user_id → users.id)",
        "- Use INNER JOIN when you only want matching rows",
        "- Use LEFT JOIN when you want to include unmatched rows from the main table",
    ]
    return "\n".join(lines) + "\n"
