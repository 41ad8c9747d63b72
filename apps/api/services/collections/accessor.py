"""Schema-agnostic data accessor for one named collection.

Every collection lives in the shared ``collection_records`` table as JSON
documents. Two denormalised columns make the fixed list contract cheap:
``search_text`` (lowercased name/title/email/sku values) and ``is_active``
(the document's flag when it is a real boolean).
"""

# flake8: noqa: E501


import json
from typing import Any, Dict, List, Optional

# Conventional text keys matched by the list search
SEARCH_KEYS = ("name", "title", "email", "sku")

ID_SORT_KEYS = frozenset({"id", "_id"})


class CollectionAccessor:
    """CRUD primitives over one collection. Never validates data."""

    def __init__(self, db, name: str):
        """
        Args:
            db: PyDAL database instance
            name: Collection (table) name
        """
        self.db = db
        self.name = name

    @property
    def _table(self):
        return self.db.collection_records

    def _base_query(self):
        return self._table.collection == self.name

    def _record_query(self, record_id: int):
        return self._base_query() & (self._table.id == record_id)

    def _search_query(self, search: str):
        query = self._base_query()
        term = _normalize(search or "")
        if term:
            query &= self._table.search_text.contains(term, case_sensitive=True)
        return query

    # ===========================
    # Writes
    # ===========================

    def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Store a new document and return it with its generated id."""
        document = _strip_ids(document)
        record_id = self._table.insert(collection=self.name, **_columns(document))
        self.db.commit()
        return _record(record_id, document)

    def update(self, record_id: int, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Shallow-merge ``changes`` into a stored document.

        Returns:
            The merged record, or None when the record does not exist
        """
        row = self.db(self._record_query(record_id)).select().first()
        if row is None:
            return None
        document = dict(row.data or {})
        document.update(_strip_ids(changes))
        row.update_record(**_columns(document))
        self.db.commit()
        return _record(record_id, document)

    def delete(self, record_id: int) -> bool:
        """Delete a record. Returns False when it did not exist."""
        deleted = self.db(self._record_query(record_id)).delete()
        self.db.commit()
        return bool(deleted)

    # ===========================
    # Reads
    # ===========================

    def get(self, record_id: int) -> Optional[Dict[str, Any]]:
        row = self.db(self._record_query(record_id)).select().first()
        if row is None:
            return None
        return _record(row.id, row.data or {})

    def count(self, search: str = "") -> int:
        return self.db(self._search_query(search)).count()

    def count_active(self, flag: bool) -> int:
        """Count records whose ``is_active`` is exactly ``flag``."""
        return self.db(self._base_query() & (self._table.is_active == flag)).count()

    def find(
        self,
        search: str = "",
        sort_by: str = "id",
        sort_order: str = "desc",
        offset: int = 0,
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        """
        Return one page of matching records.

        Sorting on the id is done by the database. Any other key lives inside
        the JSON document, so matching rows are sorted here; records without
        the key come last in either direction.
        """
        t = self._table
        query = self._search_query(search)
        descending = sort_order == "desc"

        if sort_by in ID_SORT_KEYS:
            rows = self.db(query).select(
                t.id,
                t.data,
                orderby=~t.id if descending else t.id,
                limitby=(offset, offset + limit),
            )
            return [_record(row.id, row.data or {}) for row in rows]

        rows = self.db(query).select(t.id, t.data, orderby=t.id)
        present = []
        missing = []
        for row in rows:
            document = row.data or {}
            value = document.get(sort_by)
            if value is None:
                missing.append(row)
            else:
                present.append((_sort_key(value), row.id, row))

        present.sort(key=lambda item: (item[0], item[1]), reverse=descending)
        if descending:
            missing.reverse()
        ordered = [item[2] for item in present] + missing
        return [_record(row.id, row.data or {}) for row in ordered[offset:offset + limit]]

    def sample(self, size: int = 10) -> List[Dict[str, Any]]:
        """The oldest ``size`` documents, used for field inference."""
        t = self._table
        rows = self.db(self._base_query()).select(t.id, t.data, orderby=t.id, limitby=(0, size))
        return [_record(row.id, row.data or {}) for row in rows]


def _strip_ids(document: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in document.items() if key not in ID_SORT_KEYS}


def _columns(document: Dict[str, Any]) -> Dict[str, Any]:
    flag = document.get("is_active")
    return {
        "data": document,
        "search_text": "\n".join(
            _normalize(document[key])
            for key in SEARCH_KEYS
            if isinstance(document.get(key), str)
        ),
        "is_active": flag if isinstance(flag, bool) else None,
    }


def _normalize(text: str) -> str:
    return " ".join(text.split()).lower()


def _record(record_id: int, document: Dict[str, Any]) -> Dict[str, Any]:
    record = {"id": record_id}
    record.update(_strip_ids(document))
    return record


# Type order for mixed-type sort keys: numbers, strings, objects, arrays, booleans
def _sort_key(value: Any) -> tuple:
    if isinstance(value, bool):
        return (4, int(value), "")
    if isinstance(value, (int, float)):
        return (0, value, "")
    if isinstance(value, str):
        return (1, 0, value)
    if isinstance(value, dict):
        return (2, 0, json.dumps(value, sort_keys=True, default=str))
    if isinstance(value, list):
        return (3, 0, json.dumps(value, sort_keys=True, default=str))
    return (5, 0, str(value))
