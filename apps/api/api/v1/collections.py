"""Generic collection API endpoints using PyDAL with async/await.

One set of routes serves every collection: ``/api/<collection>`` and
``/api/<collection>/<id>``. Records are validated against the collection's
field definitions by GenericCrudService.
"""

# flake8: noqa: E501


from dataclasses import asdict

from flask import Blueprint, current_app, request

from apps.api.models.pydantic import ListQuery
from apps.api.services.collections import GenericCrudService
from apps.api.services.schema_store import SchemaStore
from apps.api.utils.api_responses import ApiResponse
from apps.api.utils.async_utils import run_in_threadpool, run_parallel
from apps.api.utils.validation_helpers import validate_json_object, validated_request

bp = Blueprint("collections", __name__)


def _crud() -> GenericCrudService:
    return current_app.extensions["crud_service"]


def _store() -> SchemaStore:
    return current_app.extensions["schema_store"]


@bp.route("/stats", methods=["GET"])
async def all_stats():
    """
    Record counts for every active table definition.

    Returns:
        200: {success, data: {<table>: {total, active, inactive}}}
    """
    crud = _crud()
    tables = await run_in_threadpool(_store().list_tables, include_inactive=False)
    results = await run_parallel(
        *(run_in_threadpool(crud.stats, table.table_name) for table in tables)
    )
    return ApiResponse.success(
        {table.table_name: asdict(stats) for table, stats in zip(tables, results)}
    )


@bp.route("/<collection>", methods=["POST"])
async def create_record(collection: str):
    """
    Create a record.

    Request Body:
        JSON object; ``id``/``_id`` keys are ignored

    Returns:
        200: {success, data, id}
        400: Body is not a JSON object
        Validation failures: {error, errors} with VALIDATION_ERROR_STATUS
    """
    data = request.get_json(silent=True)
    if error := validate_json_object(data):
        return error

    record = await run_in_threadpool(_crud().create, collection, data)
    return ApiResponse.success(record, id=record["id"])


@bp.route("/<collection>", methods=["GET"])
@validated_request(query_model=ListQuery)
async def list_records(collection: str, query: ListQuery):
    """
    List records with search, sorting and pagination.

    Query Parameters:
        - page: Page number (default: 1)
        - limit: Items per page (default: 10)
        - search: Matched against name, title, email and sku
        - sortBy: Field to sort by (default: id)
        - sortOrder: asc or desc (default: desc)

    Returns:
        200: {data, pagination: {current, pages, total}}

    Example:
        GET /api/products?search=widget&sortBy=price&sortOrder=asc
    """
    page = await run_in_threadpool(
        _crud().list,
        collection,
        page=query.page,
        limit=query.limit,
        search=query.search,
        sort_by=query.sort_by,
        sort_order=query.sort_order,
    )
    return ApiResponse.raw(asdict(page))


@bp.route("/<collection>/stats", methods=["GET"])
async def collection_stats(collection: str):
    """
    Record counts split on the ``is_active`` flag.

    Returns:
        200: {total, active, inactive}
    """
    stats = await run_in_threadpool(_crud().stats, collection)
    return ApiResponse.raw(asdict(stats))


@bp.route("/<collection>/<record_id>", methods=["GET"])
async def get_record(collection: str, record_id: str):
    """
    Get one record.

    Returns:
        200: {success, data}
        404: Record not found
    """
    record = await run_in_threadpool(_crud().get_by_id, collection, record_id)
    return ApiResponse.success(record)


@bp.route("/<collection>/<record_id>", methods=["PUT"])
async def update_record(collection: str, record_id: str):
    """
    Merge the body into an existing record.

    Returns:
        200: {success, data}
        404: Record not found
    """
    data = request.get_json(silent=True)
    if error := validate_json_object(data):
        return error

    record = await run_in_threadpool(_crud().update, collection, record_id, data)
    return ApiResponse.success(record)


@bp.route("/<collection>/<record_id>", methods=["DELETE"])
async def delete_record(collection: str, record_id: str):
    """
    Delete a record.

    Returns:
        200: {success, message}
        404: Record not found
    """
    await run_in_threadpool(_crud().delete, collection, record_id)
    return ApiResponse.message("Record deleted successfully")
