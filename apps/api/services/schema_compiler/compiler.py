"""Project schema definitions into one static schema document."""

# flake8: noqa: E501


import hashlib
import json
from dataclasses import asdict
from typing import Any, Dict, List

from apps.api.exceptions import NotFoundError
from apps.api.models.dataclasses import FieldDefinition, TableDefinition
from apps.api.services.schema_store import SchemaStore


class SchemaCompiler:
    """Deterministic projection of the schema store.

    The same store contents always compile to the same document, and
    ``render`` serialises it canonically, so identical state produces
    byte-identical artifacts. Ids and timestamps are left out on purpose.
    """

    def __init__(self, store: SchemaStore):
        self.store = store

    def compile(self) -> Dict[str, Any]:
        """Compile every active table, keyed by table name."""
        tables = self.store.list_tables(include_inactive=False, with_fields=True)
        relationships = self.store.list_relationships()
        permissions = self.store.list_permissions()
        return {
            table.table_name: self._table_entry(table, relationships, permissions)
            for table in sorted(tables, key=lambda t: t.table_name)
        }

    def compile_table(self, table_name: str) -> Dict[str, Any]:
        """
        Compile a single active table.

        Raises:
            NotFoundError: If the table is not defined or inactive
        """
        table = self.store.find_table(table_name)
        if table is None or not table.is_active:
            raise NotFoundError("Schema", table_name)
        return self._table_entry(
            table,
            self.store.list_relationships(table_name),
            self.store.list_permissions(table_name),
        )

    @staticmethod
    def render(document: Dict[str, Any]) -> str:
        """Canonical JSON: sorted keys, two-space indent, trailing newline."""
        return json.dumps(document, sort_keys=True, indent=2, ensure_ascii=False, default=str) + "\n"

    @staticmethod
    def checksum(rendered: str) -> str:
        return hashlib.sha256(rendered.encode("utf-8")).hexdigest()

    def _table_entry(self, table: TableDefinition, relationships, permissions) -> Dict[str, Any]:
        outgoing = sorted(
            (
                r
                for r in relationships
                if r.source_table == table.table_name and r.is_active
            ),
            key=lambda r: (r.source_field, r.target_table, r.target_field),
        )
        roles = sorted(
            (p for p in permissions if p.table_name == table.table_name),
            key=lambda p: p.role,
        )
        return {
            "label": table.table_label,
            "description": table.table_description,
            "icon": table.table_icon,
            "group": table.table_group,
            "fields": [_field_entry(f) for f in table.active_fields],
            "relationships": [
                {
                    "source_field": r.source_field,
                    "target_table": r.target_table,
                    "target_field": r.target_field,
                    "type": r.relationship_type.value,
                }
                for r in outgoing
            ],
            "permissions": [
                {
                    "role": p.role,
                    "can_create": p.can_create,
                    "can_read": p.can_read,
                    "can_update": p.can_update,
                    "can_delete": p.can_delete,
                }
                for p in roles
            ],
        }


def _field_entry(field: FieldDefinition) -> Dict[str, Any]:
    options: List[dict] = [asdict(option) for option in field.field_options]
    return {
        "name": field.field_name,
        "type": field.field_type.value,
        "label": field.field_label,
        "required": field.is_required,
        "default_value": field.default_value,
        "placeholder": field.placeholder,
        "options": options,
        "validation": field.validation_rules.to_dict(),
        "ui": dict(field.ui_config),
        "is_seo_field": field.is_seo_field,
        "is_searchable": field.is_searchable,
        "is_sortable": field.is_sortable,
        "is_display_field": field.is_display_field,
        "order": field.field_order,
    }
