"""Closed enumerations used by schema definitions."""

# flake8: noqa: E501


from enum import Enum
from typing import List


class FieldType(str, Enum):
    """Field types a field definition may declare."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    EMAIL = "email"
    URL = "url"
    TEXT = "text"
    SELECT = "select"
    MULTISELECT = "multiselect"
    FILE = "file"
    FILES = "files"
    JSON = "json"

    @property
    def requires_options(self) -> bool:
        """Select-style fields must declare their option list."""
        return self in (FieldType.SELECT, FieldType.MULTISELECT)


class RelationshipType(str, Enum):
    """Cardinality of a relationship definition."""

    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_ONE = "many-to-one"
    MANY_TO_MANY = "many-to-many"


def get_field_types() -> List[str]:
    """Return all valid field type values."""
    return [field_type.value for field_type in FieldType]


def get_relationship_types() -> List[str]:
    """Return all valid relationship type values."""
    return [relationship_type.value for relationship_type in RelationshipType]
