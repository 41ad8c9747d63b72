"""Generic record collections."""

from apps.api.services.collections.accessor import CollectionAccessor
from apps.api.services.collections.registry import CollectionRegistry
from apps.api.services.collections.service import GenericCrudService

__all__ = ["CollectionAccessor", "CollectionRegistry", "GenericCrudService"]
