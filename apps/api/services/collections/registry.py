"""Registry of collection accessors, one per collection name."""

# flake8: noqa: E501


import logging
import threading
from typing import Dict, List

from apps.api.services.collections.accessor import CollectionAccessor

logger = logging.getLogger(__name__)


class CollectionRegistry:
    """Lazily creates and caches a CollectionAccessor per collection name.

    Accessors are never evicted. Creation happens under a lock so two
    requests racing on a new name still end up sharing one accessor.
    """

    def __init__(self, db):
        """
        Initialize registry.

        Args:
            db: PyDAL database instance shared by all accessors
        """
        self.db = db
        self._accessors: Dict[str, CollectionAccessor] = {}
        self._lock = threading.Lock()

    def get_accessor(self, name: str) -> CollectionAccessor:
        """Return the accessor for ``name``, creating it on first use."""
        accessor = self._accessors.get(name)
        if accessor is not None:
            return accessor

        with self._lock:
            accessor = self._accessors.get(name)
            if accessor is None:
                accessor = CollectionAccessor(self.db, name)
                self._accessors[name] = accessor
                logger.info(f"Created accessor for collection '{name}'")
        return accessor

    def names(self) -> List[str]:
        """Names of the collections accessed so far."""
        with self._lock:
            return sorted(self._accessors)

    def clear(self) -> None:
        """Forget every cached accessor."""
        with self._lock:
            self._accessors.clear()
