"""Durable schema definitions."""

from apps.api.services.schema_store.service import SchemaStore

__all__ = ["SchemaStore"]
