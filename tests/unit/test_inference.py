"""
Unit tests for field inference from sample records.
"""

import pytest

from apps.api.models.field_types import FieldType
from apps.api.services.schema_store.inference import (
    generate_label,
    infer_field_definitions,
    infer_field_type,
)


@pytest.mark.unit
class TestInferFieldType:
    """Test type guesses for single values."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("ada@example.com", FieldType.EMAIL),
            ("https://example.com", FieldType.URL),
            ("http://example.com", FieldType.URL),
            ("x" * 101, FieldType.TEXT),
            ("short", FieldType.STRING),
            (3, FieldType.NUMBER),
            (2.5, FieldType.NUMBER),
            (True, FieldType.BOOLEAN),
            ({"a": 1}, FieldType.JSON),
            ([1, 2], FieldType.JSON),
            (None, FieldType.STRING),
        ],
    )
    def test_infer(self, value, expected):
        assert infer_field_type(value) == expected


@pytest.mark.unit
def test_generate_label():
    assert generate_label("unit_price") == "Unit Price"
    assert generate_label("sku") == "Sku"


@pytest.mark.unit
class TestInferFieldDefinitions:
    """Test proposals built from several documents."""

    def test_first_seen_order_and_id_skipped(self):
        proposals = infer_field_definitions(
            [{"id": 1, "name": "Widget", "price": 9.5}, {"id": 2, "name": "Gadget", "in_stock": True}]
        )

        assert [p["field_name"] for p in proposals] == ["name", "price", "in_stock"]
        assert [p["field_type"] for p in proposals] == ["string", "number", "boolean"]
        assert proposals[2]["field_label"] == "In Stock"
        assert proposals[2]["placeholder"] == "Enter in stock"

    def test_null_values_defer_to_later_samples(self):
        proposals = infer_field_definitions([{"email": None}, {"email": "a@b.co"}])

        assert proposals[0]["field_type"] == "email"

    def test_start_order(self):
        proposals = infer_field_definitions([{"a": 1, "b": 2}], start_order=5)

        assert [p["field_order"] for p in proposals] == [5, 6]

    def test_no_documents(self):
        assert infer_field_definitions([]) == []
