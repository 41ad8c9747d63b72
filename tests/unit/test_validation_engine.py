"""
Unit tests for the validation engine.

Covers required handling, per-type format checks, numeric bounds and
pattern rules, and message ordering.
"""

import pytest

from apps.api.models.dataclasses import FieldDefinition, TableDefinition, UploadedFile, ValidationRules
from apps.api.models.field_types import FieldType
from apps.api.services.validation import validate, validate_field
from apps.api.services.validation.engine import format_number, to_number


def make_field(name, field_type, label=None, order=0, field_id=None, **kwargs):
    return FieldDefinition(
        table_name="things",
        field_name=name,
        field_type=FieldType(field_type),
        field_label=label or name.title(),
        field_order=order,
        id=field_id,
        **kwargs,
    )


def make_table(*fields):
    return TableDefinition(table_name="things", table_label="Things", fields=tuple(fields))


@pytest.mark.unit
class TestValidate:
    """Test validate() over whole records."""

    def test_price_below_minimum(self):
        """A price below min 0 yields exactly one message."""
        table = make_table(
            make_field("name", "string", "Name", order=1, field_id=1, is_required=True),
            make_field(
                "price",
                "number",
                "Price",
                order=2,
                field_id=2,
                validation_rules=ValidationRules(min=0.0),
            ),
        )

        assert validate(table, {"name": "X", "price": -1}) == ["Price must be at least 0"]

    def test_valid_record_has_no_errors(self):
        table = make_table(
            make_field("email", "email", "Email", is_required=True),
            make_field("site", "url", "Website"),
        )

        assert validate(table, {"email": "ada@example.com", "site": "https://example.com"}) == []

    def test_reports_every_failure_in_field_order(self):
        """All messages are returned, ordered by field_order then creation order."""
        table = make_table(
            make_field("b", "email", "B", order=2, field_id=3),
            make_field("a", "string", "A", order=1, field_id=2, is_required=True),
            make_field("c", "number", "C", order=2, field_id=4),
        )

        errors = validate(table, {"b": "nope", "c": "abc"})

        assert errors == ["A is required", "B must be a valid email", "C must be a number"]

    def test_inactive_fields_are_ignored(self):
        table = make_table(make_field("name", "string", "Name", is_required=True, is_active=False))

        assert validate(table, {}) == []

    def test_no_definition_accepts_anything(self):
        assert validate(None, {"anything": object()}) == []

    def test_extra_keys_are_not_rejected(self):
        table = make_table(make_field("name", "string", "Name"))

        assert validate(table, {"name": "X", "unknown": 1}) == []


@pytest.mark.unit
class TestRequired:
    """Test required and empty handling."""

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_required_value(self, value):
        field = make_field("name", "string", "Name", is_required=True)

        assert validate_field(field, value) == ["Name is required"]

    def test_missing_required_value(self):
        field = make_field("name", "string", "Name", is_required=True)

        assert validate_field(field) == ["Name is required"]

    def test_required_failure_skips_other_checks(self):
        field = make_field(
            "email",
            "email",
            "Email",
            is_required=True,
            validation_rules=ValidationRules(pattern="^x"),
        )

        assert validate_field(field, "") == ["Email is required"]

    def test_empty_optional_value_skips_checks(self):
        field = make_field("email", "email", "Email", validation_rules=ValidationRules(pattern="^x"))

        assert validate_field(field, "") == []
        assert validate_field(field, None) == []

    @pytest.mark.parametrize("value", [False, 0])
    def test_falsy_values_are_present(self, value):
        field = make_field("flag", "json", "Flag", is_required=True)

        assert validate_field(field, value) == []


@pytest.mark.unit
class TestTypeChecks:
    """Test per-type format checks."""

    @pytest.mark.parametrize("value", ["a@b.co", "first.last@sub.example.org"])
    def test_valid_email(self, value):
        assert validate_field(make_field("e", "email", "Email"), value) == []

    @pytest.mark.parametrize("value", ["plain", "a@b", "a b@c.d", "@b.co", 42])
    def test_invalid_email(self, value):
        assert validate_field(make_field("e", "email", "Email"), value) == ["Email must be a valid email"]

    @pytest.mark.parametrize("value", ["https://example.com", "http://localhost:8080/x?y=1", "ftp://files.example.com"])
    def test_valid_url(self, value):
        assert validate_field(make_field("u", "url", "Link"), value) == []

    @pytest.mark.parametrize("value", ["example.com", "/relative/path", "http://", "not a url", 5])
    def test_invalid_url(self, value):
        assert validate_field(make_field("u", "url", "Link"), value) == ["Link must be a valid URL"]

    @pytest.mark.parametrize("value", [1, 2.5, "3", " 4.5 ", -7])
    def test_valid_number(self, value):
        assert validate_field(make_field("n", "number", "Qty"), value) == []

    @pytest.mark.parametrize("value", ["abc", True, [1], {"a": 1}, "nan"])
    def test_invalid_number(self, value):
        assert validate_field(make_field("n", "number", "Qty"), value) == ["Qty must be a number"]

    def test_number_bounds(self):
        field = make_field("n", "number", "Qty", validation_rules=ValidationRules(min=1.0, max=10.5))

        assert validate_field(field, 0) == ["Qty must be at least 1"]
        assert validate_field(field, "11") == ["Qty must be at most 10.5"]
        assert validate_field(field, 1) == []
        assert validate_field(field, 10.5) == []

    @pytest.mark.parametrize("value", [True, False, "true", "false"])
    def test_valid_boolean(self, value):
        assert validate_field(make_field("b", "boolean", "Active"), value) == []

    @pytest.mark.parametrize("value", ["yes", 1, "True"])
    def test_invalid_boolean(self, value):
        assert validate_field(make_field("b", "boolean", "Active"), value) == ["Active must be true or false"]

    @pytest.mark.parametrize("field_type", ["string", "text", "date", "select", "multiselect", "file", "files", "json"])
    def test_other_types_have_no_format_check(self, field_type):
        assert validate_field(make_field("x", field_type, "X"), {"any": ["thing"]}) == []

    def test_uploaded_file_urls_are_opaque(self):
        uploaded = UploadedFile(
            filename="manual.pdf",
            key="uploads/manual.pdf",
            url="https://storage.example.com/uploads/manual.pdf",
            size=2048,
            mimetype="application/pdf",
        )
        attachments = make_field("attachments", "files", "Attachments", is_required=True)

        assert validate_field(make_field("cover", "file", "Cover"), uploaded.url) == []
        assert validate_field(attachments, [uploaded.url, uploaded.key]) == []
        assert validate_field(attachments) == ["Attachments is required"]


@pytest.mark.unit
class TestPattern:
    """Test pattern rules."""

    def test_pattern_mismatch(self):
        field = make_field("sku", "string", "SKU", validation_rules=ValidationRules(pattern=r"^[A-Z]{3}-\d+$"))

        assert validate_field(field, "abc-1") == ["SKU format is invalid"]
        assert validate_field(field, "ABC-1") == []

    def test_pattern_is_a_search(self):
        field = make_field("code", "string", "Code", validation_rules=ValidationRules(pattern=r"\d"))

        assert validate_field(field, "abc1def") == []

    def test_pattern_error_is_added_to_type_error(self):
        field = make_field("e", "email", "Email", validation_rules=ValidationRules(pattern="^admin"))

        assert validate_field(field, "nope") == ["Email must be a valid email", "Email format is invalid"]

    def test_pattern_applies_to_string_form(self):
        field = make_field("n", "number", "Qty", validation_rules=ValidationRules(pattern=r"^\d+$"))

        assert validate_field(field, 12) == []
        assert validate_field(field, 1.5) == ["Qty format is invalid"]

    def test_broken_pattern_fails_closed(self):
        field = make_field("x", "string", "X", validation_rules=ValidationRules(pattern="("))

        assert validate_field(field, "anything") == ["X format is invalid"]


@pytest.mark.unit
class TestHelpers:
    """Test number helpers."""

    @pytest.mark.parametrize(
        "value,expected", [(0.0, "0"), (0, "0"), (2.5, "2.5"), (-3.0, "-3"), (100, "100")]
    )
    def test_format_number(self, value, expected):
        assert format_number(value) == expected

    def test_to_number(self):
        assert to_number("1e3") == 1000.0
        assert to_number(False) is None
        assert to_number(None) is None
