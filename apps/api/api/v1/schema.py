"""Schema API endpoints.

Serves the compiled schema document and manages the definitions it is
compiled from: tables, fields, relationships and permissions.
"""

# flake8: noqa: E501


from flask import Blueprint, current_app, request

from apps.api.models.pydantic import (
    CreateFieldRequest,
    CreatePermissionRequest,
    CreateRelationshipRequest,
    CreateTableRequest,
    InferFieldsRequest,
    UpdateFieldRequest,
    UpdatePermissionRequest,
    UpdateTableRequest,
)
from apps.api.services.collections import CollectionRegistry
from apps.api.services.schema_compiler import SchemaCompiler, SchemaReconciler
from apps.api.services.schema_store import SchemaStore
from apps.api.utils.api_responses import ApiResponse
from apps.api.utils.async_utils import run_in_threadpool
from apps.api.utils.validation_helpers import validated_request

bp = Blueprint("schema", __name__)


def _store() -> SchemaStore:
    return current_app.extensions["schema_store"]


def _compiler() -> SchemaCompiler:
    return current_app.extensions["schema_compiler"]


def _reconciler() -> SchemaReconciler:
    return current_app.extensions["schema_reconciler"]


def _registry() -> CollectionRegistry:
    return current_app.extensions["collection_registry"]


def _changes(body) -> dict:
    return body.model_dump(mode="json", exclude_unset=True)


def _include_inactive() -> bool:
    return request.args.get("include_inactive", "true").lower() != "false"


# ===========================
# Compiled schema
# ===========================


@bp.route("", methods=["GET"])
async def get_schema():
    """
    The full compiled schema document.

    Returns:
        200: {<table_name>: {label, description, icon, group, fields, relationships, permissions}}
    """
    document = await run_in_threadpool(_compiler().compile)
    return ApiResponse.raw(document)


@bp.route("/generate", methods=["POST"])
async def generate_schema():
    """
    Compile the schema and write the artifact now.

    Returns:
        200: {success, data: {tables, checksum, path, lastUpdate}}
    """
    result = await run_in_threadpool(_reconciler().force_update)
    return ApiResponse.success(result)


# ===========================
# Tables
# ===========================


@bp.route("/tables", methods=["GET"])
async def list_tables():
    """
    List table definitions.

    Query Parameters:
        - include_inactive: Include inactive tables (default: true)
    """
    tables = await run_in_threadpool(_store().list_tables, include_inactive=_include_inactive())
    return ApiResponse.success([table.to_dict() for table in tables])


@bp.route("/tables", methods=["POST"])
@validated_request(body_model=CreateTableRequest)
async def create_table(body: CreateTableRequest):
    """
    Create a table definition.

    Returns:
        201: {success, data}
        400: Invalid request body
        409: Table already exists
    """
    table = await run_in_threadpool(_store().create_table, body.model_dump(mode="json"))
    return ApiResponse.created(table.to_dict())


@bp.route("/tables/<table_name>", methods=["GET"])
async def get_table(table_name: str):
    """
    Get a table definition with its fields.

    Returns:
        200: {success, data}
        404: Table not found
    """
    table = await run_in_threadpool(_store().get_table, table_name)
    return ApiResponse.success(table.to_dict(include_fields=True))


@bp.route("/tables/<table_name>", methods=["PUT"])
@validated_request(body_model=UpdateTableRequest)
async def update_table(table_name: str, body: UpdateTableRequest):
    """
    Update a table definition. ``table_name`` cannot be changed.

    Returns:
        200: {success, data}
        404: Table not found
    """
    table = await run_in_threadpool(_store().update_table, table_name, _changes(body))
    return ApiResponse.success(table.to_dict())


@bp.route("/tables/<table_name>", methods=["DELETE"])
async def delete_table(table_name: str):
    """
    Delete a table definition with its fields, relationships and permissions.

    Returns:
        200: {success, message}
        404: Table not found
    """
    await run_in_threadpool(_store().delete_table, table_name)
    return ApiResponse.message(f"Table '{table_name}' deleted successfully")


@bp.route("/tables/<table_name>/infer", methods=["POST"])
@validated_request(body_model=InferFieldsRequest)
async def infer_fields(table_name: str, body: InferFieldsRequest):
    """
    Propose field definitions from existing records of the collection.

    Request Body:
        - sample_size: Records to sample (default: 10)
        - persist: Create proposed fields that are not yet defined (default: false)

    Returns:
        200: {success, data: [proposal, ...]}
        404: Table not found
    """
    registry = _registry()
    store = _store()

    def infer():
        store.get_table(table_name, with_fields=False)
        documents = registry.get_accessor(table_name).sample(body.sample_size)
        return store.infer_fields(table_name, documents, persist=body.persist)

    proposals = await run_in_threadpool(infer)
    return ApiResponse.success(proposals)


# ===========================
# Fields
# ===========================


@bp.route("/tables/<table_name>/fields", methods=["GET"])
async def list_fields(table_name: str):
    """
    List a table's fields in field order.

    Returns:
        200: {success, data}
        404: Table not found
    """
    store = _store()

    def get_fields():
        store.get_table(table_name, with_fields=False)
        return store.list_fields(table_name, include_inactive=_include_inactive())

    fields = await run_in_threadpool(get_fields)
    return ApiResponse.success([f.to_dict() for f in fields])


@bp.route("/tables/<table_name>/fields", methods=["POST"])
@validated_request(body_model=CreateFieldRequest)
async def create_field(table_name: str, body: CreateFieldRequest):
    """
    Add a field definition to a table.

    Returns:
        201: {success, data}
        404: Table not found
        409: Field already exists on the table
    """
    field = await run_in_threadpool(
        _store().create_field, table_name, body.model_dump(mode="json", exclude_none=True)
    )
    return ApiResponse.created(field.to_dict())


@bp.route("/fields/<int:field_id>", methods=["GET"])
async def get_field(field_id: int):
    field = await run_in_threadpool(_store().get_field, field_id)
    return ApiResponse.success(field.to_dict())


@bp.route("/fields/<int:field_id>", methods=["PUT"])
@validated_request(body_model=UpdateFieldRequest)
async def update_field(field_id: int, body: UpdateFieldRequest):
    """
    Update a field definition.

    Returns:
        200: {success, data}
        404: Field not found
        409: Rename collides with another field of the table
    """
    field = await run_in_threadpool(_store().update_field, field_id, _changes(body))
    return ApiResponse.success(field.to_dict())


@bp.route("/fields/<int:field_id>", methods=["DELETE"])
async def delete_field(field_id: int):
    await run_in_threadpool(_store().delete_field, field_id)
    return ApiResponse.message("Field deleted successfully")


# ===========================
# Relationships
# ===========================


@bp.route("/relationships", methods=["GET"])
async def list_relationships():
    """
    List relationships.

    Query Parameters:
        - table: Only relationships where this table is source or target
    """
    relationships = await run_in_threadpool(
        _store().list_relationships, request.args.get("table") or None
    )
    return ApiResponse.success([r.to_dict() for r in relationships])


@bp.route("/relationships", methods=["POST"])
@validated_request(body_model=CreateRelationshipRequest)
async def create_relationship(body: CreateRelationshipRequest):
    relationship = await run_in_threadpool(
        _store().create_relationship, body.model_dump(mode="json")
    )
    return ApiResponse.created(relationship.to_dict())


@bp.route("/relationships/<int:relationship_id>", methods=["DELETE"])
async def delete_relationship(relationship_id: int):
    await run_in_threadpool(_store().delete_relationship, relationship_id)
    return ApiResponse.message("Relationship deleted successfully")


# ===========================
# Permissions
# ===========================


@bp.route("/permissions", methods=["GET"])
async def list_permissions():
    """
    List permissions.

    Query Parameters:
        - table: Only permissions on this table
    """
    permissions = await run_in_threadpool(
        _store().list_permissions, request.args.get("table") or None
    )
    return ApiResponse.success([p.to_dict() for p in permissions])


@bp.route("/permissions", methods=["POST"])
@validated_request(body_model=CreatePermissionRequest)
async def create_permission(body: CreatePermissionRequest):
    permission = await run_in_threadpool(_store().create_permission, body.model_dump(mode="json"))
    return ApiResponse.created(permission.to_dict())


@bp.route("/permissions/<int:permission_id>", methods=["PUT"])
@validated_request(body_model=UpdatePermissionRequest)
async def update_permission(permission_id: int, body: UpdatePermissionRequest):
    permission = await run_in_threadpool(
        _store().update_permission, permission_id, _changes(body)
    )
    return ApiResponse.success(permission.to_dict())


@bp.route("/permissions/<int:permission_id>", methods=["DELETE"])
async def delete_permission(permission_id: int):
    await run_in_threadpool(_store().delete_permission, permission_id)
    return ApiResponse.message("Permission deleted successfully")


# ===========================
# Single table document
# ===========================


@bp.route("/<collection>", methods=["GET"])
async def get_table_schema(collection: str):
    """
    The compiled document of one table.

    Returns:
        200: {label, description, icon, group, fields, relationships, permissions}
        404: {error}
    """
    entry = await run_in_threadpool(_compiler().compile_table, collection)
    return ApiResponse.raw(entry)
