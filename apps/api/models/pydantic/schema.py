"""
Pydantic 2 models for schema-management requests.

Provides validated request bodies for the schema definition endpoints:
- CreateTableRequest / UpdateTableRequest
- CreateFieldRequest / UpdateFieldRequest
- CreateRelationshipRequest
- CreatePermissionRequest / UpdatePermissionRequest
- InferFieldsRequest
"""

# flake8: noqa: E501


import re
from typing import Any, ClassVar, Optional

from pydantic import Field, field_validator, model_validator

from apps.api.models.field_types import FieldType, RelationshipType

from .base import RequestModel, UpdateRequestModel

TABLE_NAME_PATTERN = r"^[a-z][a-z0-9_]*$"
FIELD_NAME_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*$"


class FieldOptionModel(RequestModel):
    """One value/label pair of a select field."""

    value: Any = Field(..., description="Stored option value")
    label: str = Field(..., min_length=1, max_length=255, description="Display label")


class ValidationRulesModel(RequestModel):
    """
    Validation rules attached to a field.

    Attributes:
        min: Lower bound for number fields
        max: Upper bound for number fields
        pattern: Regular expression every present value must match
        custom: Reserved custom-rule identifier (currently inert)
    """

    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = Field(default=None, max_length=1000)
    custom: Optional[str] = Field(default=None, max_length=255)

    @field_validator("pattern")
    @classmethod
    def pattern_compiles(cls, v: Optional[str]) -> Optional[str]:
        """Reject patterns that are not valid regular expressions."""
        if v:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"pattern is not a valid regular expression: {e}")
        return v or None

    @model_validator(mode="after")
    def min_not_above_max(self) -> "ValidationRulesModel":
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("min must be less than or equal to max")
        return self


class CreateTableRequest(RequestModel):
    """
    Request to create a new table definition.

    Attributes:
        table_name: Lowercase identifier used as the collection handle (required)
        table_label: Human readable label (required)
        table_description: Optional description
        table_icon: Optional icon hint
        table_group: Optional navigation group
        is_active: Whether the table is live (default: True)
    """

    table_name: str = Field(
        ..., min_length=1, max_length=64, pattern=TABLE_NAME_PATTERN
    )
    table_label: str = Field(..., min_length=1, max_length=255)
    table_description: str = Field(default="", max_length=2000)
    table_icon: Optional[str] = Field(default=None, max_length=64)
    table_group: Optional[str] = Field(default=None, max_length=64)
    is_active: bool = True

    @field_validator("table_name", mode="before")
    @classmethod
    def lowercase_table_name(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class UpdateTableRequest(UpdateRequestModel):
    """
    Request to update a table definition.

    All fields optional. ``table_name`` is immutable and therefore not accepted.
    """

    non_nullable: ClassVar[tuple[str, ...]] = ("table_label", "is_active")

    table_label: Optional[str] = Field(default=None, min_length=1, max_length=255)
    table_description: Optional[str] = Field(default=None, max_length=2000)
    table_icon: Optional[str] = Field(default=None, max_length=64)
    table_group: Optional[str] = Field(default=None, max_length=64)
    is_active: Optional[bool] = None


class CreateFieldRequest(RequestModel):
    """
    Request to add a field definition to a table.

    Select and multiselect fields must carry a non-empty ``field_options`` list.
    """

    field_name: str = Field(
        ..., min_length=1, max_length=64, pattern=FIELD_NAME_PATTERN
    )
    field_type: FieldType
    field_label: str = Field(..., min_length=1, max_length=255)
    is_required: bool = False
    default_value: Any = None
    placeholder: Optional[str] = Field(default=None, max_length=255)
    field_options: Optional[list[FieldOptionModel]] = None
    validation_rules: Optional[ValidationRulesModel] = None
    ui_config: Optional[dict[str, Any]] = None
    is_seo_field: bool = False
    is_searchable: bool = False
    is_sortable: bool = False
    is_display_field: bool = False
    field_order: int = 0
    is_active: bool = True

    @model_validator(mode="after")
    def options_for_select_types(self) -> "CreateFieldRequest":
        if self.field_type.requires_options and not self.field_options:
            raise ValueError(
                f"field_options are required for {self.field_type.value} fields"
            )
        return self


class UpdateFieldRequest(UpdateRequestModel):
    """
    Request to update a field definition.

    All fields optional. The owning table cannot be changed.
    """

    non_nullable: ClassVar[tuple[str, ...]] = (
        "field_name",
        "field_type",
        "field_label",
        "is_required",
        "is_seo_field",
        "is_searchable",
        "is_sortable",
        "is_display_field",
        "field_order",
        "is_active",
    )

    field_name: Optional[str] = Field(
        default=None, min_length=1, max_length=64, pattern=FIELD_NAME_PATTERN
    )
    field_type: Optional[FieldType] = None
    field_label: Optional[str] = Field(default=None, min_length=1, max_length=255)
    is_required: Optional[bool] = None
    default_value: Any = None
    placeholder: Optional[str] = Field(default=None, max_length=255)
    field_options: Optional[list[FieldOptionModel]] = None
    validation_rules: Optional[ValidationRulesModel] = None
    ui_config: Optional[dict[str, Any]] = None
    is_seo_field: Optional[bool] = None
    is_searchable: Optional[bool] = None
    is_sortable: Optional[bool] = None
    is_display_field: Optional[bool] = None
    field_order: Optional[int] = None
    is_active: Optional[bool] = None


class CreateRelationshipRequest(RequestModel):
    """Request to declare a relationship between two table fields."""

    source_table: str = Field(..., min_length=1, max_length=64)
    source_field: str = Field(..., min_length=1, max_length=64)
    target_table: str = Field(..., min_length=1, max_length=64)
    target_field: str = Field(default="id", min_length=1, max_length=64)
    relationship_type: RelationshipType
    is_active: bool = True


class CreatePermissionRequest(RequestModel):
    """Request to record CRUD permissions of a role on a table."""

    table_name: str = Field(..., min_length=1, max_length=64)
    role: str = Field(..., min_length=1, max_length=64)
    can_create: bool = False
    can_read: bool = False
    can_update: bool = False
    can_delete: bool = False


class UpdatePermissionRequest(UpdateRequestModel):
    """Request to change the CRUD flags of a permission definition."""

    non_nullable: ClassVar[tuple[str, ...]] = ("can_create", "can_read", "can_update", "can_delete")

    can_create: Optional[bool] = None
    can_read: Optional[bool] = None
    can_update: Optional[bool] = None
    can_delete: Optional[bool] = None


class InferFieldsRequest(RequestModel):
    """Request to infer field definitions from existing collection records."""

    sample_size: int = Field(default=10, ge=1, le=100)
    persist: bool = False
