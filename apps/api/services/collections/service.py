"""Generic CRUD service - one surface for every named collection."""

# flake8: noqa: E501


import math
import re
from typing import Any, Dict, Optional

import structlog

from apps.api.exceptions import NotFoundError, ValidationError
from apps.api.models.dataclasses import CollectionPage, CollectionStats, Pagination, TableDefinition
from apps.api.services.collections.registry import CollectionRegistry
from apps.api.services.schema_store import SchemaStore
from apps.api.services.validation import validate

logger = structlog.get_logger()

COLLECTION_NAME_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class GenericCrudService:
    """Service for create/read/update/delete/stats over any collection.

    Records are validated against the collection's table definition, read
    fresh from the schema store on every write so definition changes apply
    immediately. Collections without a definition accept any record unless
    the service is strict.
    """

    def __init__(self, store: SchemaStore, registry: CollectionRegistry, strict: bool = False):
        """
        Initialize GenericCrudService.

        Args:
            store: Schema store holding the table definitions
            registry: Accessor registry
            strict: Reject collections that have no table definition
        """
        self.store = store
        self.registry = registry
        self.strict = strict

    # ===========================
    # Writes
    # ===========================

    def create(self, table_name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate and store a new record.

        Raises:
            ValidationError: With every violation; nothing is written
            NotFoundError: For an undefined collection in strict mode
        """
        accessor = self.registry.get_accessor(self._check_name(table_name))
        definition = self._definition(table_name)

        document = _without_ids(payload)
        errors = validate(definition, document)
        if errors:
            logger.info("record_rejected", collection=table_name, errors=errors)
            raise ValidationError(errors)

        record = accessor.insert(document)
        logger.info("record_created", collection=table_name, record_id=record["id"])
        return record

    def update(self, table_name: str, record_id: Any, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge ``payload`` into an existing record after validating the result.

        Raises:
            NotFoundError: If the record does not exist
            ValidationError: If the merged record is invalid; nothing is written
        """
        accessor = self.registry.get_accessor(self._check_name(table_name))
        definition = self._definition(table_name)
        record_id = _parse_id(record_id)

        existing = accessor.get(record_id)
        if existing is None:
            raise NotFoundError("Record", record_id)

        changes = _without_ids(payload)
        merged = _without_ids(existing)
        merged.update(changes)
        errors = validate(definition, merged)
        if errors:
            logger.info("record_rejected", collection=table_name, record_id=record_id, errors=errors)
            raise ValidationError(errors)

        record = accessor.update(record_id, changes)
        if record is None:
            raise NotFoundError("Record", record_id)
        logger.info("record_updated", collection=table_name, record_id=record_id)
        return record

    def delete(self, table_name: str, record_id: Any) -> None:
        """
        Delete a record.

        Raises:
            NotFoundError: If the record does not exist
        """
        accessor = self.registry.get_accessor(self._check_name(table_name))
        record_id = _parse_id(record_id)
        if not accessor.delete(record_id):
            raise NotFoundError("Record", record_id)
        logger.info("record_deleted", collection=table_name, record_id=record_id)

    # ===========================
    # Reads
    # ===========================

    def get_by_id(self, table_name: str, record_id: Any) -> Dict[str, Any]:
        """
        Get one record.

        Raises:
            NotFoundError: If the record does not exist
        """
        accessor = self.registry.get_accessor(self._check_name(table_name))
        self._require_definition(table_name)
        record_id = _parse_id(record_id)
        record = accessor.get(record_id)
        if record is None:
            raise NotFoundError("Record", record_id)
        return record

    def list(
        self,
        table_name: str,
        page: int = 1,
        limit: int = 10,
        search: str = "",
        sort_by: str = "id",
        sort_order: str = "desc",
    ) -> CollectionPage:
        """
        List one page of records.

        Args:
            table_name: Collection name
            page: 1-indexed page number; pages past the end are empty
            limit: Records per page
            search: Case-insensitive substring matched against name/title/email/sku
            sort_by: Document key to sort by (``id`` and ``_id`` sort by identifier)
            sort_order: ``asc`` or ``desc``

        Returns:
            CollectionPage with pagination metadata
        """
        accessor = self.registry.get_accessor(self._check_name(table_name))
        self._require_definition(table_name)

        page = max(int(page), 1)
        limit = max(int(limit), 1)
        sort_order = "asc" if str(sort_order).lower() == "asc" else "desc"

        total = accessor.count(search)
        pages = math.ceil(total / limit) if total else 0
        offset = (page - 1) * limit
        data = []
        if offset < total:
            data = accessor.find(
                search=search,
                sort_by=sort_by or "id",
                sort_order=sort_order,
                offset=offset,
                limit=limit,
            )
        return CollectionPage(data=data, pagination=Pagination(current=page, pages=pages, total=total))

    def stats(self, table_name: str) -> CollectionStats:
        """
        Count records, split on a boolean ``is_active`` key.

        Records without a boolean ``is_active`` count toward the total only.
        """
        accessor = self.registry.get_accessor(self._check_name(table_name))
        self._require_definition(table_name)
        return CollectionStats(
            total=accessor.count(),
            active=accessor.count_active(True),
            inactive=accessor.count_active(False),
        )

    # ===========================
    # Internal helpers
    # ===========================

    def _check_name(self, table_name: str) -> str:
        if not isinstance(table_name, str) or not COLLECTION_NAME_RE.match(table_name):
            raise NotFoundError("Collection", table_name)
        return table_name

    def _definition(self, table_name: str) -> Optional[TableDefinition]:
        definition = self.store.find_table(table_name)
        if definition is None and self.strict:
            raise NotFoundError("Collection", table_name)
        return definition

    def _require_definition(self, table_name: str) -> None:
        if self.strict:
            self._definition(table_name)


def _without_ids(document: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in (document or {}).items() if key not in ("id", "_id")}


def _parse_id(record_id: Any) -> int:
    try:
        parsed = int(record_id)
    except (TypeError, ValueError):
        raise NotFoundError("Record", record_id)
    if parsed < 1:
        raise NotFoundError("Record", record_id)
    return parsed
