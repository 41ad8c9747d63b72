"""Python 3.12 dataclasses with slots for schema definitions and CRUD results.

Using @dataclass(slots=True) provides lower memory use and faster attribute access.
"""

# flake8: noqa: E501


from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional

from apps.api.models.field_types import FieldType, RelationshipType

# ==================== Field building blocks ====================


@dataclass(slots=True, frozen=True)
class FieldOption:
    """One value/label pair of a select or multiselect field."""

    value: Any
    label: str


@dataclass(slots=True, frozen=True)
class ValidationRules:
    """Declarative validation rules attached to a field.

    ``custom`` is a reserved identifier; no check is dispatched for it.
    """

    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None
    custom: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "ValidationRules":
        data = data or {}
        return cls(
            min=data.get("min"),
            max=data.get("max"),
            pattern=data.get("pattern") or None,
            custom=data.get("custom") or None,
        )

    def to_dict(self) -> dict:
        return {key: value for key, value in asdict(self).items() if value is not None}


# ==================== Definitions ====================


@dataclass(slots=True, frozen=True)
class FieldDefinition:
    """Immutable field definition data transfer object."""

    table_name: str
    field_name: str
    field_type: FieldType
    field_label: str
    id: Optional[int] = None
    is_required: bool = False
    default_value: Any = None
    placeholder: Optional[str] = None
    field_options: tuple[FieldOption, ...] = ()
    validation_rules: ValidationRules = field(default_factory=ValidationRules)
    ui_config: dict = field(default_factory=dict)
    is_seo_field: bool = False
    is_searchable: bool = False
    is_sortable: bool = False
    is_display_field: bool = False
    field_order: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Any) -> "FieldDefinition":
        """Build a definition from a PyDAL ``schema_fields`` row."""
        return cls(
            id=row.id,
            table_name=row.table_name,
            field_name=row.field_name,
            field_type=FieldType(row.field_type),
            field_label=row.field_label,
            is_required=bool(row.is_required),
            default_value=row.default_value,
            placeholder=row.placeholder,
            field_options=tuple(
                FieldOption(value=option.get("value"), label=option.get("label", ""))
                for option in (row.field_options or [])
            ),
            validation_rules=ValidationRules.from_dict(row.validation_rules),
            ui_config=dict(row.ui_config or {}),
            is_seo_field=bool(row.is_seo_field),
            is_searchable=bool(row.is_searchable),
            is_sortable=bool(row.is_sortable),
            is_display_field=bool(row.is_display_field),
            field_order=row.field_order or 0,
            is_active=bool(row.is_active),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "table_name": self.table_name,
            "field_name": self.field_name,
            "field_type": self.field_type.value,
            "field_label": self.field_label,
            "is_required": self.is_required,
            "default_value": self.default_value,
            "placeholder": self.placeholder,
            "field_options": [asdict(option) for option in self.field_options],
            "validation_rules": self.validation_rules.to_dict(),
            "ui_config": dict(self.ui_config),
            "is_seo_field": self.is_seo_field,
            "is_searchable": self.is_searchable,
            "is_sortable": self.is_sortable,
            "is_display_field": self.is_display_field,
            "field_order": self.field_order,
            "is_active": self.is_active,
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }


@dataclass(slots=True, frozen=True)
class TableDefinition:
    """Immutable table definition, optionally carrying its fields."""

    table_name: str
    table_label: str
    id: Optional[int] = None
    table_description: str = ""
    table_icon: Optional[str] = None
    table_group: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    fields: tuple[FieldDefinition, ...] = ()

    @classmethod
    def from_row(
        cls, row: Any, fields: tuple[FieldDefinition, ...] = ()
    ) -> "TableDefinition":
        """Build a definition from a PyDAL ``schema_tables`` row."""
        return cls(
            id=row.id,
            table_name=row.table_name,
            table_label=row.table_label,
            table_description=row.table_description or "",
            table_icon=row.table_icon,
            table_group=row.table_group,
            is_active=bool(row.is_active),
            created_at=row.created_at,
            updated_at=row.updated_at,
            fields=fields,
        )

    @property
    def active_fields(self) -> list[FieldDefinition]:
        """Active fields in field_order, ties broken by creation order."""
        return sorted(
            (f for f in self.fields if f.is_active),
            key=lambda f: (f.field_order, f.id or 0),
        )

    def to_dict(self, include_fields: bool = False) -> dict:
        data = {
            "id": self.id,
            "table_name": self.table_name,
            "table_label": self.table_label,
            "table_description": self.table_description,
            "table_icon": self.table_icon,
            "table_group": self.table_group,
            "is_active": self.is_active,
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }
        if include_fields:
            data["fields"] = [f.to_dict() for f in self.fields]
        return data


@dataclass(slots=True, frozen=True)
class RelationshipDefinition:
    """Descriptive edge between two table fields. Never enforced."""

    source_table: str
    source_field: str
    target_table: str
    target_field: str
    relationship_type: RelationshipType
    id: Optional[int] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Any) -> "RelationshipDefinition":
        return cls(
            id=row.id,
            source_table=row.source_table,
            source_field=row.source_field,
            target_table=row.target_table,
            target_field=row.target_field,
            relationship_type=RelationshipType(row.relationship_type),
            is_active=bool(row.is_active),
            created_at=row.created_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source_table": self.source_table,
            "source_field": self.source_field,
            "target_table": self.target_table,
            "target_field": self.target_field,
            "relationship_type": self.relationship_type.value,
            "is_active": self.is_active,
            "created_at": _isoformat(self.created_at),
        }


@dataclass(slots=True, frozen=True)
class PermissionDefinition:
    """Per (table, role) CRUD flags. Informational within the core."""

    table_name: str
    role: str
    id: Optional[int] = None
    can_create: bool = False
    can_read: bool = False
    can_update: bool = False
    can_delete: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Any) -> "PermissionDefinition":
        return cls(
            id=row.id,
            table_name=row.table_name,
            role=row.role,
            can_create=bool(row.can_create),
            can_read=bool(row.can_read),
            can_update=bool(row.can_update),
            can_delete=bool(row.can_delete),
            created_at=row.created_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "table_name": self.table_name,
            "role": self.role,
            "can_create": self.can_create,
            "can_read": self.can_read,
            "can_update": self.can_update,
            "can_delete": self.can_delete,
            "created_at": _isoformat(self.created_at),
        }


# ==================== CRUD results ====================


@dataclass(slots=True, frozen=True)
class Pagination:
    """Pagination metadata echoed with every list response."""

    current: int
    pages: int
    total: int


@dataclass(slots=True)
class CollectionPage:
    """One page of collection records."""

    data: list[dict]
    pagination: Pagination


@dataclass(slots=True, frozen=True)
class CollectionStats:
    """Record counts for a collection, split on the ``is_active`` flag."""

    total: int
    active: int
    inactive: int


@dataclass(slots=True, frozen=True)
class UploadedFile:
    """Per-file result returned by the upload collaborator."""

    filename: str
    key: str
    url: str
    size: int
    mimetype: str


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
