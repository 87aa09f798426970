"""In-process entity cache with explicit invalidation.

Entries live for ``CACHE_TTL_SECONDS`` at most, but every code path that
mutates an entity invalidates its key immediately, so readers never see a
version older than the last committed write made by this process.

Keys are ``"<entity>:<id>"`` (``meal-orders:4f1c...``, ``users:alice``).
Values are plain dicts, never ORM instances, so they are safe to share
across sessions and threads.
"""

import copy
import logging
import threading
from typing import Any, Optional

from cachetools import TTLCache

from ..core.config import settings

logger = logging.getLogger(__name__)


class EntityCache:
    """Thread-safe TTL cache keyed by entity type and id."""

    def __init__(self, maxsize: int = 1024, ttl: float = 300):
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._lock = threading.Lock()

    @staticmethod
    def _key(entity: str, entity_id: str) -> str:
        return f"{entity}:{entity_id}"

    def get(self, entity: str, entity_id: str) -> Optional[dict]:
        with self._lock:
            value = self._cache.get(self._key(entity, entity_id))
        # Callers may mutate what they get back
        return copy.deepcopy(value) if value is not None else None

    def set(self, entity: str, entity_id: str, value: dict) -> None:
        with self._lock:
            self._cache[self._key(entity, entity_id)] = copy.deepcopy(value)

    def invalidate(self, entity: str, entity_id: str) -> None:
        with self._lock:
            removed = self._cache.pop(self._key(entity, entity_id), None)
        if removed is not None:
            logger.debug("Cache invalidated: %s:%s", entity, entity_id)

    def invalidate_many(self, entity: str, entity_ids: list[Any]) -> None:
        for entity_id in entity_ids:
            self.invalidate(entity, str(entity_id))

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


entity_cache = EntityCache(maxsize=settings.cache_max_entries, ttl=settings.cache_ttl_seconds)
