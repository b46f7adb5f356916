"""Shared fixtures: a small shop schema served from memory."""

import copy

import pytest

from pg_lens.metadata import InMemoryMetadataProvider

SHOP_SCHEMA = {
    "tables": [
        {
            "name": "users",
            "columns": [
                {"name": "id", "type": "integer", "nullable": False},
                {"name": "email", "type": "character varying", "max_length": 255},
                {"name": "bio", "type": "text", "comment": "Free-form profile text"},
                {"name": "avatar", "type": "bytea"},
            ],
            "primary_key": ["id"],
            "indexes": [
                {"name": "users_pkey", "columns": ["id"], "unique": True},
                {"name": "users_email_key", "columns": ["email"], "unique": True},
            ],
        },
        {
            "name": "orders",
            "columns": [
                {"name": "id", "type": "integer", "nullable": False},
                {"name": "user_id", "type": "integer"},
                {"name": "created_at", "type": "timestamp without time zone", "default": "now()"},
            ],
            "primary_key": ["id"],
            "foreign_keys": [
                {"column": "user_id", "references": "users.id", "constraint": "orders_user_id_fkey"},
            ],
        },
        {
            "name": "order_items",
            "columns": [
                {"name": "id", "type": "integer", "nullable": False},
                {"name": "order_id", "type": "integer"},
                {"name": "user_id", "type": "integer"},
                {"name": "quantity", "type": "integer"},
            ],
            "primary_key": ["id"],
            "foreign_keys": [
                {"column": "order_id", "references": "orders.id", "constraint": "order_items_order_id_fkey"},
                {"column": "user_id", "references": "users.id", "constraint": "order_items_user_id_fkey"},
            ],
        },
        {
            "name": "audit_log",
            "columns": [
                {"name": "id", "type": "bigint", "nullable": False},
                {"name": "message", "type": "text"},
            ],
            "primary_key": ["id"],
        },
        {
            "name": "category",
            "columns": [{"name": "id", "type": "integer", "nullable": False}],
            "primary_key": ["id"],
        },
        {
            "name": "products",
            "columns": [
                {"name": "id", "type": "integer", "nullable": False},
                {"name": "name", "type": "text"},
            ],
            "primary_key": ["id"],
        },
        {
            # no declared foreign keys
            "name": "reviews",
            "columns": [
                {"name": "id", "type": "integer", "nullable": False},
                {"name": "product_id", "type": "integer"},
                {"name": "category_id", "type": "integer"},
                {"name": "body", "type": "text"},
            ],
            "primary_key": ["id"],
        },
        {
            "name": "tenants_users",
            "columns": [
                {"name": "tenant_id", "type": "integer", "nullable": False},
                {"name": "id", "type": "integer", "nullable": False},
            ],
            "primary_key": ["tenant_id", "id"],
        },
        {
            # composite foreign key: one edge per column pair
            "name": "posts",
            "columns": [
                {"name": "id", "type": "integer", "nullable": False},
                {"name": "tenant_id", "type": "integer", "nullable": False},
                {"name": "author_id", "type": "integer"},
            ],
            "primary_key": ["id"],
            "foreign_keys": [
                {"column": "tenant_id", "references": "tenants_users.tenant_id", "constraint": "posts_author_fkey"},
                {"column": "author_id", "references": "tenants_users.id", "constraint": "posts_author_fkey"},
            ],
        },
        {
            "name": "invoices",
            "schema": "sales",
            "columns": [
                {"name": "id", "type": "integer", "nullable": False},
                {"name": "user_id", "type": "integer"},
            ],
            "primary_key": ["id"],
            "foreign_keys": [
                {"column": "user_id", "references": "public.users.id", "constraint": "invoices_user_id_fkey"},
            ],
        },
        {
            "name": "invoice_lines",
            "schema": "sales",
            "columns": [
                {"name": "id", "type": "integer", "nullable": False},
                {"name": "invoice_id", "type": "integer"},
            ],
            "primary_key": ["id"],
            "foreign_keys": [
                {"column": "invoice_id", "references": "sales.invoices.id"},
            ],
        },
    ]
}


@pytest.fixture
def shop_schema():
    """The shop schema in YAML dictionary form."""
    return copy.deepcopy(SHOP_SCHEMA)


@pytest.fixture
def shop_provider(shop_schema):
    """In-memory provider serving the shop schema."""
    return InMemoryMetadataProvider.from_dict(shop_schema)
