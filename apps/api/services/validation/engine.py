"""Field-level validation of collection records.

Validation is a pure function of a table definition and a candidate record.
Every active field is checked in field order and every failure is reported,
so callers can show all problems at once. Nothing here touches the database,
which keeps the engine safe to call from any thread.
"""

# flake8: noqa: E501


import math
import re
from functools import lru_cache
from typing import Any, List, Mapping, Optional, assert_never
from urllib.parse import urlparse

from apps.api.models.dataclasses import FieldDefinition, TableDefinition
from apps.api.models.field_types import FieldType

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_MISSING = object()


def validate(table_definition: Optional[TableDefinition], record: Mapping[str, Any]) -> List[str]:
    """
    Validate a record against a table's active field definitions.

    Args:
        table_definition: Table with its fields, or None for an undefined collection
        record: Candidate record (create payload or merged update)

    Returns:
        Every violation message, in field order. Empty when the record is valid.

    Example:
        >>> errors = validate(products, {"name": "Widget", "price": -1})
        >>> errors
        ['Price must be at least 0']
    """
    if table_definition is None:
        return []

    errors: List[str] = []
    for field_definition in table_definition.active_fields:
        value = record.get(field_definition.field_name, _MISSING)
        errors.extend(validate_field(field_definition, value))
    return errors


def validate_field(field_definition: FieldDefinition, value: Any = _MISSING) -> List[str]:
    """Validate one value against one field definition."""
    label = field_definition.field_label

    if is_empty(value):
        if field_definition.is_required:
            return [f"{label} is required"]
        return []

    errors: List[str] = []
    errors.extend(_check_type(field_definition, value))

    pattern = field_definition.validation_rules.pattern
    if pattern and not _matches(pattern, value):
        errors.append(f"{label} format is invalid")

    return errors


def is_empty(value: Any) -> bool:
    """Missing, None and the empty string count as empty. False and 0 do not."""
    return value is _MISSING or value is None or value == ""


def _check_type(field_definition: FieldDefinition, value: Any) -> List[str]:
    label = field_definition.field_label
    field_type = field_definition.field_type

    match field_type:
        case FieldType.EMAIL:
            if not isinstance(value, str) or not EMAIL_PATTERN.match(value):
                return [f"{label} must be a valid email"]
            return []
        case FieldType.URL:
            if not is_absolute_url(value):
                return [f"{label} must be a valid URL"]
            return []
        case FieldType.NUMBER:
            number = to_number(value)
            if number is None:
                return [f"{label} must be a number"]
            return _check_range(field_definition, number)
        case FieldType.BOOLEAN:
            if not isinstance(value, bool) and value not in ("true", "false"):
                return [f"{label} must be true or false"]
            return []
        case (
            FieldType.STRING
            | FieldType.TEXT
            | FieldType.DATE
            | FieldType.SELECT
            | FieldType.MULTISELECT
            | FieldType.FILE
            | FieldType.FILES
            | FieldType.JSON
        ):
            return []
        case _:
            assert_never(field_type)


def _check_range(field_definition: FieldDefinition, number: float) -> List[str]:
    label = field_definition.field_label
    rules = field_definition.validation_rules
    errors = []
    if rules.min is not None and number < rules.min:
        errors.append(f"{label} must be at least {format_number(rules.min)}")
    if rules.max is not None and number > rules.max:
        errors.append(f"{label} must be at most {format_number(rules.max)}")
    return errors


def to_number(value: Any) -> Optional[float]:
    """
    Coerce a value to a number.

    Numbers and numeric strings are accepted; booleans and NaN are not.

    Returns:
        The numeric value, or None when the value is not numeric
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number):
        return None
    return number


def format_number(value: Any) -> str:
    """Render a rule bound the way users typed it: 0.0 -> "0", 2.5 -> "2.5"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_absolute_url(value: Any) -> bool:
    if not isinstance(value, str) or any(ch.isspace() for ch in value):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc)


def _matches(pattern: str, value: Any) -> bool:
    compiled = _compile(pattern)
    if compiled is None:
        return False
    return compiled.search(_as_text(value)) is not None


@lru_cache(maxsize=256)
def _compile(pattern: str) -> Optional[re.Pattern]:
    try:
        return re.compile(pattern)
    except re.error:
        return None


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_number(value)
    return str(value)
