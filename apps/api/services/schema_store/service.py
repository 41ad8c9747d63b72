"""Schema store - durable table, field, relationship and permission definitions."""

# flake8: noqa: E501


import re
import threading
from typing import Any, Dict, Iterable, List, Optional

import structlog

from apps.api.exceptions import DuplicateDefinitionError, NotFoundError, ValidationError
from apps.api.models.dataclasses import (
    FieldDefinition,
    PermissionDefinition,
    RelationshipDefinition,
    TableDefinition,
)
from apps.api.models.field_types import FieldType, RelationshipType
from apps.api.services.schema_store.inference import infer_field_definitions

logger = structlog.get_logger()

TABLE_NAME_RE = re.compile(r"^[a-z][a-z0-9_]*$")

# Route segments that can never be collection names
RESERVED_TABLE_NAMES = frozenset({"schema", "stats"})

TABLE_COLUMNS = ("table_label", "table_description", "table_icon", "table_group", "is_active")

FIELD_COLUMNS = (
    "field_name",
    "field_type",
    "field_label",
    "is_required",
    "default_value",
    "placeholder",
    "field_options",
    "validation_rules",
    "ui_config",
    "is_seo_field",
    "is_searchable",
    "is_sortable",
    "is_display_field",
    "field_order",
    "is_active",
)

PERMISSION_FLAGS = ("can_create", "can_read", "can_update", "can_delete")


class SchemaStore:
    """Service for managing schema definitions.

    All uniqueness checks and the writes they guard run under one lock, so
    two concurrent creates of the same table or field cannot both succeed.
    Reads are lock free.
    """

    def __init__(self, db):
        """
        Initialize SchemaStore.

        Args:
            db: PyDAL database instance
        """
        self.db = db
        self._write_lock = threading.RLock()

    # ===========================
    # Tables
    # ===========================

    def list_tables(self, include_inactive: bool = True, with_fields: bool = False) -> List[TableDefinition]:
        """List table definitions ordered by table_name."""
        db = self.db
        query = db.schema_tables.id > 0
        if not include_inactive:
            query &= db.schema_tables.is_active == True  # noqa: E712

        rows = db(query).select(orderby=db.schema_tables.table_name)
        if not with_fields:
            return [TableDefinition.from_row(row) for row in rows]

        fields_by_table: Dict[str, List[FieldDefinition]] = {}
        for field_row in db(db.schema_fields.id > 0).select(
            orderby=db.schema_fields.field_order | db.schema_fields.id
        ):
            fields_by_table.setdefault(field_row.table_name, []).append(
                FieldDefinition.from_row(field_row)
            )
        return [
            TableDefinition.from_row(row, tuple(fields_by_table.get(row.table_name, ())))
            for row in rows
        ]

    def find_table(self, table_name: str, with_fields: bool = True) -> Optional[TableDefinition]:
        """Return a table definition, or None when it does not exist."""
        row = self._table_row(table_name)
        if row is None:
            return None
        fields = tuple(self.list_fields(table_name)) if with_fields else ()
        return TableDefinition.from_row(row, fields)

    def get_table(self, table_name: str, with_fields: bool = True) -> TableDefinition:
        """
        Get a table definition.

        Raises:
            NotFoundError: If the table is not defined
        """
        table = self.find_table(table_name, with_fields=with_fields)
        if table is None:
            raise NotFoundError("Table", table_name)
        return table

    def create_table(self, data: Dict[str, Any]) -> TableDefinition:
        """
        Create a table definition.

        Args:
            data: table_name, table_label and optional description/icon/group/is_active

        Raises:
            ValidationError: If table_name is malformed or reserved
            DuplicateDefinitionError: If the table already exists
        """
        db = self.db
        table_name = str(data.get("table_name") or "").strip().lower()
        errors = _table_name_errors(table_name)
        if not data.get("table_label"):
            errors.append("table_label is required")
        if errors:
            raise ValidationError(errors)

        with self._write_lock:
            if self._table_row(table_name) is not None:
                raise DuplicateDefinitionError(f"Table already exists: {table_name}")

            values = _pick(data, TABLE_COLUMNS)
            table_id = db.schema_tables.insert(table_name=table_name, **values)
            db.commit()

        logger.info("schema_table_created", table_name=table_name, table_id=table_id)
        return TableDefinition.from_row(db.schema_tables[table_id])

    def update_table(self, table_name: str, data: Dict[str, Any]) -> TableDefinition:
        """
        Update a table definition.

        Raises:
            NotFoundError: If the table is not defined
            ValidationError: If the update tries to rename the table
        """
        new_name = data.get("table_name")
        if new_name is not None and new_name != table_name:
            raise ValidationError(["table_name cannot be changed"])

        with self._write_lock:
            row = self._table_row(table_name)
            if row is None:
                raise NotFoundError("Table", table_name)

            values = _pick(data, TABLE_COLUMNS)
            if "table_label" in values and not values["table_label"]:
                raise ValidationError(["table_label is required"])
            if values:
                row.update_record(**values)
                self.db.commit()

        logger.info("schema_table_updated", table_name=table_name, fields=sorted(values))
        return self.get_table(table_name, with_fields=False)

    def delete_table(self, table_name: str) -> None:
        """
        Delete a table definition and everything that hangs off it.

        Removes the table's fields, its permissions and every relationship
        where it is the source or the target. Collection records are kept.

        Raises:
            NotFoundError: If the table is not defined
        """
        db = self.db
        with self._write_lock:
            row = self._table_row(table_name)
            if row is None:
                raise NotFoundError("Table", table_name)

            fields_removed = db(db.schema_fields.table_name == table_name).delete()
            relationships_removed = db(
                (db.schema_relationships.source_table == table_name)
                | (db.schema_relationships.target_table == table_name)
            ).delete()
            permissions_removed = db(db.schema_permissions.table_name == table_name).delete()
            db(db.schema_tables.id == row.id).delete()
            db.commit()

        logger.info(
            "schema_table_deleted",
            table_name=table_name,
            fields_removed=fields_removed,
            relationships_removed=relationships_removed,
            permissions_removed=permissions_removed,
        )

    # ===========================
    # Fields
    # ===========================

    def list_fields(self, table_name: str, include_inactive: bool = True) -> List[FieldDefinition]:
        """List a table's fields by field_order, ties by creation order."""
        db = self.db
        query = db.schema_fields.table_name == table_name
        if not include_inactive:
            query &= db.schema_fields.is_active == True  # noqa: E712
        rows = db(query).select(orderby=db.schema_fields.field_order | db.schema_fields.id)
        return [FieldDefinition.from_row(row) for row in rows]

    def get_field(self, field_id: int) -> FieldDefinition:
        """
        Get a field definition by id.

        Raises:
            NotFoundError: If the field does not exist
        """
        row = self.db.schema_fields(field_id)
        if row is None:
            raise NotFoundError("Field", field_id)
        return FieldDefinition.from_row(row)

    def create_field(self, table_name: str, data: Dict[str, Any]) -> FieldDefinition:
        """
        Add a field definition to an existing table.

        Raises:
            NotFoundError: If the table is not defined
            ValidationError: If the type is unknown or select options are missing
            DuplicateDefinitionError: If the table already has a field with this name
        """
        db = self.db
        values = _field_values(data)
        errors = []
        if not values.get("field_name"):
            errors.append("field_name is required")
        if not values.get("field_label"):
            errors.append("field_label is required")
        errors.extend(_field_type_errors(values.get("field_type"), values.get("field_options")))
        if errors:
            raise ValidationError(errors)

        with self._write_lock:
            if self._table_row(table_name) is None:
                raise NotFoundError("Table", table_name)
            if self._field_row(table_name, values["field_name"]) is not None:
                raise DuplicateDefinitionError(
                    f"Field already exists: {table_name}.{values['field_name']}"
                )

            field_id = db.schema_fields.insert(table_name=table_name, **values)
            db.commit()

        logger.info(
            "schema_field_created",
            table_name=table_name,
            field_name=values["field_name"],
            field_type=values["field_type"],
        )
        return self.get_field(field_id)

    def update_field(self, field_id: int, data: Dict[str, Any]) -> FieldDefinition:
        """
        Update a field definition.

        Raises:
            NotFoundError: If the field does not exist
            ValidationError: If the resulting type/options combination is invalid
            DuplicateDefinitionError: If a rename collides with a sibling field
        """
        if "table_name" in data:
            raise ValidationError(["table_name cannot be changed"])

        with self._write_lock:
            row = self.db.schema_fields(field_id)
            if row is None:
                raise NotFoundError("Field", field_id)

            values = _field_values(data)
            errors = []
            if "field_name" in values and not values["field_name"]:
                errors.append("field_name is required")
            if "field_label" in values and not values["field_label"]:
                errors.append("field_label is required")
            errors.extend(
                _field_type_errors(
                    values.get("field_type", row.field_type),
                    values.get("field_options", row.field_options),
                )
            )
            if errors:
                raise ValidationError(errors)

            new_name = values.get("field_name")
            if new_name and new_name != row.field_name:
                if self._field_row(row.table_name, new_name) is not None:
                    raise DuplicateDefinitionError(
                        f"Field already exists: {row.table_name}.{new_name}"
                    )

            if values:
                row.update_record(**values)
                self.db.commit()

        logger.info("schema_field_updated", field_id=field_id, fields=sorted(values))
        return self.get_field(field_id)

    def delete_field(self, field_id: int) -> None:
        """
        Delete a field definition.

        Raises:
            NotFoundError: If the field does not exist
        """
        db = self.db
        with self._write_lock:
            row = db.schema_fields(field_id)
            if row is None:
                raise NotFoundError("Field", field_id)
            db(db.schema_fields.id == field_id).delete()
            db.commit()

        logger.info("schema_field_deleted", table_name=row.table_name, field_name=row.field_name)

    def infer_fields(
        self, table_name: str, documents: Iterable[dict], persist: bool = False
    ) -> List[dict]:
        """
        Propose field definitions from sample records of a collection.

        Args:
            table_name: Defined table whose records were sampled
            documents: Sample records
            persist: Create the proposed fields that are not yet defined

        Returns:
            The proposals, each flagged with ``exists`` when already defined

        Raises:
            NotFoundError: If the table is not defined
        """
        if self._table_row(table_name) is None:
            raise NotFoundError("Table", table_name)

        existing = self.list_fields(table_name)
        existing_names = {f.field_name for f in existing}
        start_order = max((f.field_order for f in existing), default=-1) + 1

        proposals = infer_field_definitions(documents, start_order=start_order)
        for proposal in proposals:
            proposal["exists"] = proposal["field_name"] in existing_names

        if persist:
            created = 0
            for proposal in proposals:
                if proposal["exists"] or not _is_identifier(proposal["field_name"]):
                    continue
                payload = {k: v for k, v in proposal.items() if k != "exists"}
                try:
                    self.create_field(table_name, payload)
                except DuplicateDefinitionError:
                    logger.info("schema_field_created_concurrently", table_name=table_name, field_name=payload["field_name"])
                else:
                    created += 1
                proposal["exists"] = True
            logger.info("schema_fields_inferred", table_name=table_name, created=created)

        return proposals

    # ===========================
    # Relationships
    # ===========================

    def list_relationships(self, table_name: Optional[str] = None) -> List[RelationshipDefinition]:
        """List relationships, optionally those touching one table at either end."""
        db = self.db
        t = db.schema_relationships
        query = t.id > 0
        if table_name:
            query = (t.source_table == table_name) | (t.target_table == table_name)
        rows = db(query).select(orderby=t.source_table | t.source_field | t.target_table | t.target_field | t.id)
        return [RelationshipDefinition.from_row(row) for row in rows]

    def create_relationship(self, data: Dict[str, Any]) -> RelationshipDefinition:
        """
        Declare a relationship between two defined tables.

        Raises:
            ValidationError: If the relationship type is unknown
            NotFoundError: If either table is not defined
            DuplicateDefinitionError: If the same edge already exists
        """
        db = self.db
        t = db.schema_relationships
        relationship_type = _enum_value(RelationshipType, data.get("relationship_type"))
        if relationship_type is None:
            raise ValidationError([f"Invalid relationship_type: {data.get('relationship_type')}"])

        source_table = data["source_table"]
        target_table = data["target_table"]
        source_field = data["source_field"]
        target_field = data.get("target_field") or "id"

        with self._write_lock:
            for name in (source_table, target_table):
                if self._table_row(name) is None:
                    raise NotFoundError("Table", name)

            existing = db(
                (t.source_table == source_table)
                & (t.source_field == source_field)
                & (t.target_table == target_table)
                & (t.target_field == target_field)
            ).select(t.id).first()
            if existing is not None:
                raise DuplicateDefinitionError(
                    f"Relationship already exists: {source_table}.{source_field} -> {target_table}.{target_field}"
                )

            relationship_id = t.insert(
                source_table=source_table,
                source_field=source_field,
                target_table=target_table,
                target_field=target_field,
                relationship_type=relationship_type,
                is_active=data.get("is_active", True),
            )
            db.commit()

        logger.info(
            "schema_relationship_created",
            source=f"{source_table}.{source_field}",
            target=f"{target_table}.{target_field}",
            relationship_type=relationship_type,
        )
        return RelationshipDefinition.from_row(t[relationship_id])

    def delete_relationship(self, relationship_id: int) -> None:
        """
        Delete a relationship.

        Raises:
            NotFoundError: If the relationship does not exist
        """
        db = self.db
        with self._write_lock:
            if db.schema_relationships(relationship_id) is None:
                raise NotFoundError("Relationship", relationship_id)
            db(db.schema_relationships.id == relationship_id).delete()
            db.commit()
        logger.info("schema_relationship_deleted", relationship_id=relationship_id)

    # ===========================
    # Permissions
    # ===========================

    def list_permissions(self, table_name: Optional[str] = None) -> List[PermissionDefinition]:
        """List permissions ordered by table and role."""
        db = self.db
        t = db.schema_permissions
        query = t.id > 0
        if table_name:
            query = t.table_name == table_name
        rows = db(query).select(orderby=t.table_name | t.role)
        return [PermissionDefinition.from_row(row) for row in rows]

    def create_permission(self, data: Dict[str, Any]) -> PermissionDefinition:
        """
        Record a role's CRUD flags on a table.

        Raises:
            NotFoundError: If the table is not defined
            DuplicateDefinitionError: If the role already has permissions on the table
        """
        db = self.db
        t = db.schema_permissions
        table_name = data["table_name"]
        role = data["role"]

        with self._write_lock:
            if self._table_row(table_name) is None:
                raise NotFoundError("Table", table_name)
            if db((t.table_name == table_name) & (t.role == role)).count():
                raise DuplicateDefinitionError(f"Permission already exists: {table_name}/{role}")

            permission_id = t.insert(table_name=table_name, role=role, **_pick(data, PERMISSION_FLAGS))
            db.commit()

        logger.info("schema_permission_created", table_name=table_name, role=role)
        return PermissionDefinition.from_row(t[permission_id])

    def update_permission(self, permission_id: int, data: Dict[str, Any]) -> PermissionDefinition:
        """
        Change a permission's CRUD flags.

        Raises:
            NotFoundError: If the permission does not exist
        """
        db = self.db
        with self._write_lock:
            row = db.schema_permissions(permission_id)
            if row is None:
                raise NotFoundError("Permission", permission_id)
            values = _pick(data, PERMISSION_FLAGS)
            if values:
                row.update_record(**values)
                db.commit()
        return PermissionDefinition.from_row(db.schema_permissions[permission_id])

    def delete_permission(self, permission_id: int) -> None:
        """
        Delete a permission.

        Raises:
            NotFoundError: If the permission does not exist
        """
        db = self.db
        with self._write_lock:
            if db.schema_permissions(permission_id) is None:
                raise NotFoundError("Permission", permission_id)
            db(db.schema_permissions.id == permission_id).delete()
            db.commit()
        logger.info("schema_permission_deleted", permission_id=permission_id)

    # ===========================
    # Internal helpers
    # ===========================

    def _table_row(self, table_name: str):
        db = self.db
        return db(db.schema_tables.table_name == table_name).select().first()

    def _field_row(self, table_name: str, field_name: str):
        db = self.db
        return db(
            (db.schema_fields.table_name == table_name)
            & (db.schema_fields.field_name == field_name)
        ).select().first()


def _pick(data: Dict[str, Any], columns: Iterable[str]) -> Dict[str, Any]:
    return {column: data[column] for column in columns if column in data}


def _field_values(data: Dict[str, Any]) -> Dict[str, Any]:
    values = _pick(data, FIELD_COLUMNS)
    if "field_type" in values:
        field_type = _enum_value(FieldType, values["field_type"])
        if field_type is None:
            raise ValidationError([f"Invalid field_type: {values['field_type']}"])
        values["field_type"] = field_type
    if values.get("field_options") is not None:
        values["field_options"] = [
            {"value": option.get("value"), "label": option.get("label", "")}
            for option in values["field_options"]
        ]
    if "validation_rules" in values:
        values["validation_rules"] = {
            key: value
            for key, value in (values["validation_rules"] or {}).items()
            if value is not None
        }
    return values


def _field_type_errors(field_type: Optional[str], field_options: Optional[list]) -> List[str]:
    if field_type is None:
        return ["field_type is required"]
    if FieldType(field_type).requires_options and not field_options:
        return [f"field_options are required for {field_type} fields"]
    return []


def _table_name_errors(table_name: str) -> List[str]:
    if not table_name:
        return ["table_name is required"]
    if not TABLE_NAME_RE.match(table_name) or len(table_name) > 64:
        return ["table_name must start with a letter and contain only lowercase letters, digits and underscores"]
    if table_name in RESERVED_TABLE_NAMES:
        return [f"table_name is reserved: {table_name}"]
    return []


def _is_identifier(name: str) -> bool:
    return bool(re.match(r"^[A-Za-z_][A-Za-z0-9_]*$", name)) and len(name) <= 64


def _enum_value(enum_cls, value) -> Optional[str]:
    try:
        return enum_cls(value).value
    except ValueError:
        return None
