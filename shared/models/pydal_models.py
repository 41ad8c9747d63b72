"""PyDAL table definitions for the collections service.

Four record sets hold schema definitions (tables, fields, relationships,
permissions). A fifth, ``collection_records``, is the schema-agnostic document
store behind every runtime collection. Long lines are unavoidable due to
Field() definition syntax and are suppressed from linting.
"""

# flake8: noqa: E501

import datetime

from pydal import Field
from pydal.validators import IS_IN_SET, IS_MATCH, IS_NOT_EMPTY

from apps.api.models.field_types import get_field_types, get_relationship_types


def _utcnow():
    return datetime.datetime.now(datetime.timezone.utc)


def define_all_tables(db, migrate: bool = True):
    """Define all database tables using PyDAL.

    Args:
        db: PyDAL database instance
        migrate: Let PyDAL create and alter the tables
    """

    # ==========================================
    # Schema definitions
    # ==========================================

    db.define_table(
        "schema_tables",
        Field(
            "table_name",
            "string",
            length=64,
            notnull=True,
            unique=True,
            requires=IS_MATCH(r"^[a-z][a-z0-9_]*$"),
        ),
        Field("table_label", "string", length=255, notnull=True, requires=IS_NOT_EMPTY()),
        Field("table_description", "text", default=""),
        Field("table_icon", "string", length=64),
        Field("table_group", "string", length=64),
        Field("is_active", "boolean", default=True, notnull=True),
        Field("created_at", "datetime", default=_utcnow),
        Field("updated_at", "datetime", default=_utcnow, update=_utcnow),
        migrate=migrate,
    )

    # (table_name, field_name) uniqueness is enforced by SchemaStore
    db.define_table(
        "schema_fields",
        Field("table_name", "string", length=64, notnull=True),
        Field("field_name", "string", length=64, notnull=True, requires=IS_NOT_EMPTY()),
        Field(
            "field_type",
            "string",
            length=20,
            notnull=True,
            requires=IS_IN_SET(get_field_types()),
        ),
        Field("field_label", "string", length=255, notnull=True),
        Field("is_required", "boolean", default=False, notnull=True),
        Field("default_value", "json"),
        Field("placeholder", "string", length=255),
        Field("field_options", "json"),  # [{"value": ..., "label": ...}]
        Field("validation_rules", "json"),  # {"min", "max", "pattern", "custom"}
        Field("ui_config", "json"),  # Presentation hints only
        Field("is_seo_field", "boolean", default=False, notnull=True),
        Field("is_searchable", "boolean", default=False, notnull=True),
        Field("is_sortable", "boolean", default=False, notnull=True),
        Field("is_display_field", "boolean", default=False, notnull=True),
        Field("field_order", "integer", default=0, notnull=True),
        Field("is_active", "boolean", default=True, notnull=True),
        Field("created_at", "datetime", default=_utcnow),
        Field("updated_at", "datetime", default=_utcnow, update=_utcnow),
        migrate=migrate,
    )

    db.define_table(
        "schema_relationships",
        Field("source_table", "string", length=64, notnull=True),
        Field("source_field", "string", length=64, notnull=True),
        Field("target_table", "string", length=64, notnull=True),
        Field("target_field", "string", length=64, notnull=True),
        Field(
            "relationship_type",
            "string",
            length=20,
            notnull=True,
            requires=IS_IN_SET(get_relationship_types()),
        ),
        Field("is_active", "boolean", default=True, notnull=True),
        Field("created_at", "datetime", default=_utcnow),
        migrate=migrate,
    )

    db.define_table(
        "schema_permissions",
        Field("table_name", "string", length=64, notnull=True),
        Field("role", "string", length=64, notnull=True),
        Field("can_create", "boolean", default=False, notnull=True),
        Field("can_read", "boolean", default=False, notnull=True),
        Field("can_update", "boolean", default=False, notnull=True),
        Field("can_delete", "boolean", default=False, notnull=True),
        Field("created_at", "datetime", default=_utcnow),
        migrate=migrate,
    )

    # ==========================================
    # Runtime collections (untyped documents)
    # ==========================================

    db.define_table(
        "collection_records",
        Field("collection", "string", length=64, notnull=True),
        Field("data", "json"),
        # Lowercased values of the conventional search keys, one per line
        Field("search_text", "text", default=""),
        # Mirrors data["is_active"] when it is a real boolean, NULL otherwise
        Field("is_active", "boolean"),
        Field("created_at", "datetime", default=_utcnow),
        Field("updated_at", "datetime", default=_utcnow, update=_utcnow),
        migrate=migrate,
    )
