"""Tests for core data models."""

import pytest

from pg_lens.models import (
    ColumnKind,
    ColumnMetadata,
    ForeignKeyEdge,
    JoinSuggestion,
    JoinType,
    TableRef,
    TableSnapshot,
    classify_type,
    format_table_name,
    parse_table_name,
)


class TestParseTableName:
    """Tests for identifier parsing."""

    def test_bare_name_uses_default_schema(self):
        assert parse_table_name("orders") == ("public", "orders")

    def test_qualified_name(self):
        assert parse_table_name("sales.invoices") == ("sales", "invoices")

    def test_splits_on_first_dot(self):
        assert parse_table_name("sales.weird.name") == ("sales", "weird.name")

    @pytest.mark.parametrize("identifier", ["", "   ", ".orders", "sales."])
    def test_invalid_identifiers(self, identifier):
        with pytest.raises(ValueError):
            parse_table_name(identifier)

    def test_format_omits_default_schema(self):
        assert format_table_name("public", "orders") == "orders"
        assert format_table_name("sales", "invoices") == "sales.invoices"


class TestColumnMetadata:
    """Tests for ColumnMetadata."""

    @pytest.mark.parametrize("data_type,kind", [
        ("text", ColumnKind.TEXTUAL),
        ("character varying", ColumnKind.OTHER),
        ("varchar", ColumnKind.TEXTUAL),
        ("bytea", ColumnKind.BINARY),
        ("integer", ColumnKind.OTHER),
        ("timestamp without time zone", ColumnKind.OTHER),
    ])
    def test_classification(self, data_type, kind):
        assert classify_type(data_type) == kind
        assert ColumnMetadata(name="c", data_type=data_type).kind == kind

    def test_from_dict_accepts_yaml_keys(self):
        col = ColumnMetadata.from_dict({"name": "created_at", "type": "date", "default": "now()"})
        assert col.data_type == "date"
        assert col.default_value == "now()"
        assert col.nullable is True


class TestTableSnapshot:
    """Tests for TableSnapshot."""

    def test_basic_table(self):
        table = TableSnapshot(
            name="orders",
            columns=[
                ColumnMetadata(name="id", data_type="integer", nullable=False),
                ColumnMetadata(name="user_id", data_type="integer"),
            ],
            primary_key=["id"],
        )
        assert table.full_name == "public.orders"
        assert table.column_names == ["id", "user_id"]
        assert table.get_column("user_id") is not None
        assert table.get_column("missing") is None

    def test_to_dict(self):
        edge = ForeignKeyEdge("public", "orders", "user_id", "public", "users", "id", "orders_user_id_fkey")
        table = TableSnapshot(name="orders", foreign_keys=[edge])
        data = table.to_dict()
        assert data["foreign_keys"] == [{
            "column": "user_id",
            "referenced_schema": "public",
            "referenced_table": "users",
            "referenced_column": "id",
            "constraint": "orders_user_id_fkey",
        }]
        assert data["primary_key"] == []


class TestForeignKeyEdge:
    """Tests for ForeignKeyEdge."""

    def test_targets_and_same_target(self):
        a = ForeignKeyEdge("public", "orders", "user_id", "public", "users", "id", "fk_a")
        b = ForeignKeyEdge("public", "order_items", "user_id", "public", "users", "id", "fk_b")
        c = ForeignKeyEdge("public", "order_items", "order_id", "public", "orders", "id", "fk_c")

        assert a.targets("public", "users")
        assert not a.targets("sales", "users")
        assert a.same_target(b)
        assert not a.same_target(c)


class TestTableRef:
    """Tests for TableRef."""

    def test_schema_and_table(self):
        ref = TableRef("sales.invoices", "i")
        assert ref.schema == "sales"
        assert ref.table == "invoices"

    def test_empty_alias_rejected(self):
        with pytest.raises(ValueError):
            TableRef("orders", "")

    def test_empty_table_rejected(self):
        with pytest.raises(ValueError):
            TableRef("", "o")

    def test_parse(self):
        assert TableRef.parse("orders:o") == TableRef("orders", "o")
        assert TableRef.parse("sales.invoices:inv") == TableRef("sales.invoices", "inv")
        assert TableRef.parse("sales.invoices") == TableRef("sales.invoices", "invoices")


class TestJoinSuggestion:
    """Tests for JoinSuggestion."""

    def test_to_dict_uses_external_field_names(self):
        suggestion = JoinSuggestion(
            join_type=JoinType.LEFT,
            expression="LEFT JOIN orders o ON oi.order_id = o.id",
            description="Reverse foreign key relationship",
            score=100,
        )
        assert suggestion.to_dict() == {
            "joinType": "LEFT JOIN",
            "expression": "LEFT JOIN orders o ON oi.order_id = o.id",
            "description": "Reverse foreign key relationship",
            "score": 100,
        }
