"""
Unit tests for SchemaCompiler.

The schema store is mocked; the tests pin the document layout and its
determinism.
"""

import json
from unittest.mock import MagicMock

import pytest

from apps.api.exceptions import NotFoundError
from apps.api.models.dataclasses import (
    FieldDefinition,
    FieldOption,
    PermissionDefinition,
    RelationshipDefinition,
    TableDefinition,
    ValidationRules,
)
from apps.api.models.field_types import FieldType, RelationshipType
from apps.api.services.schema_compiler import SchemaCompiler


def _field(table, name, field_type, order, field_id, **kwargs):
    return FieldDefinition(
        table_name=table,
        field_name=name,
        field_type=FieldType(field_type),
        field_label=name.title(),
        field_order=order,
        id=field_id,
        **kwargs,
    )


@pytest.fixture
def mock_store():
    """Mock schema store holding two active tables and one inactive one."""
    store = MagicMock()

    orders = TableDefinition(
        table_name="orders",
        table_label="Orders",
        table_description="Customer orders",
        fields=(
            _field("orders", "status", "select", 2, 11, field_options=(FieldOption("new", "New"),)),
            _field("orders", "customer_id", "string", 1, 10, is_required=True),
            _field("orders", "legacy", "string", 0, 12, is_active=False),
        ),
    )
    customers = TableDefinition(
        table_name="customers",
        table_label="Customers",
        table_icon="users",
        table_group="crm",
        fields=(
            _field(
                "customers",
                "age",
                "number",
                1,
                20,
                validation_rules=ValidationRules(min=0.0, max=150.0),
            ),
        ),
    )
    store.list_tables.return_value = [orders, customers]
    store.list_relationships.return_value = [
        RelationshipDefinition("orders", "customer_id", "customers", "id", RelationshipType.MANY_TO_ONE, id=1),
        RelationshipDefinition("orders", "billing_id", "customers", "id", RelationshipType.MANY_TO_ONE, id=2),
        RelationshipDefinition("orders", "old_id", "customers", "id", RelationshipType.ONE_TO_ONE, id=3, is_active=False),
    ]
    store.list_permissions.return_value = [
        PermissionDefinition("orders", "viewer", can_read=True, id=2),
        PermissionDefinition("orders", "admin", can_create=True, can_read=True, can_update=True, can_delete=True, id=1),
    ]
    store.find_table.side_effect = lambda name: {"orders": orders, "customers": customers}.get(name)
    return store


@pytest.mark.unit
class TestSchemaCompiler:
    """Test SchemaCompiler.compile and render."""

    def test_tables_are_sorted_by_name(self, mock_store):
        document = SchemaCompiler(mock_store).compile()

        assert list(document) == ["customers", "orders"]
        mock_store.list_tables.assert_called_once_with(include_inactive=False, with_fields=True)

    def test_fields_follow_field_order_and_skip_inactive(self, mock_store):
        document = SchemaCompiler(mock_store).compile()

        assert [f["name"] for f in document["orders"]["fields"]] == ["customer_id", "status"]

    def test_field_entry_carries_metadata(self, mock_store):
        document = SchemaCompiler(mock_store).compile()

        status = document["orders"]["fields"][1]
        assert status["type"] == "select"
        assert status["options"] == [{"value": "new", "label": "New"}]
        assert status["order"] == 2
        assert document["customers"]["fields"][0]["validation"] == {"min": 0.0, "max": 150.0}

    def test_relationships_are_outgoing_active_and_ordered(self, mock_store):
        document = SchemaCompiler(mock_store).compile()

        assert [r["source_field"] for r in document["orders"]["relationships"]] == [
            "billing_id",
            "customer_id",
        ]
        assert document["customers"]["relationships"] == []

    def test_permissions_are_ordered_by_role(self, mock_store):
        document = SchemaCompiler(mock_store).compile()

        assert [p["role"] for p in document["orders"]["permissions"]] == ["admin", "viewer"]

    def test_document_has_no_ids_or_timestamps(self, mock_store):
        document = SchemaCompiler(mock_store).compile()

        def keys(node):
            if isinstance(node, dict):
                for key, value in node.items():
                    yield key
                    yield from keys(value)
            elif isinstance(node, list):
                for item in node:
                    yield from keys(item)

        assert not {"id", "created_at", "updated_at"} & set(keys(document))

    def test_render_is_byte_identical_for_same_state(self, mock_store):
        compiler = SchemaCompiler(mock_store)

        first = compiler.render(compiler.compile())
        second = compiler.render(compiler.compile())

        assert first == second
        assert first.endswith("\n")
        assert json.loads(first)["orders"]["label"] == "Orders"
        assert compiler.checksum(first) == compiler.checksum(second)

    def test_compile_table(self, mock_store):
        entry = SchemaCompiler(mock_store).compile_table("customers")

        assert entry["label"] == "Customers"
        assert entry["icon"] == "users"
        assert entry["group"] == "crm"

    def test_compile_table_missing(self, mock_store):
        with pytest.raises(NotFoundError):
            SchemaCompiler(mock_store).compile_table("ghosts")
