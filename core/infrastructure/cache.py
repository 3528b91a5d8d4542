"""
Cache port and its Django cache adapter.

The adapter namespaces keys and treats backend failures as misses, so an
unavailable Redis degrades reads to the database instead of failing them.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from asgiref.sync import sync_to_async
from django.core.cache import cache

logger = logging.getLogger(__name__)

KEY_PREFIX = "entitlement"


class CachePort(ABC):
    """Abstract cache port."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the cached value or None."""

    @abstractmethod
    async def set(self, key: str, value: Any, timeout: Optional[int] = None) -> None:
        """Store a value for timeout seconds (None for no expiration)."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Drop a key."""


class DjangoCacheAdapter(CachePort):
    """
    Django cache adapter implementing CachePort.

    Uses Django's cache framework (Redis in production, LocMem in tests).
    """

    def __init__(self, prefix: str = KEY_PREFIX):
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def _call(self, operation: str, func: Callable, *args, **kwargs) -> Any:
        try:
            return await sync_to_async(func)(*args, **kwargs)
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Cache %s failed: %s", operation, e, exc_info=True)
            return None

    async def get(self, key: str) -> Optional[Any]:
        value = await self._call("get", cache.get, self._key(key))
        logger.debug("Cache %s: %s", "hit" if value is not None else "miss", key)
        return value

    async def set(self, key: str, value: Any, timeout: Optional[int] = None) -> None:
        await self._call("set", cache.set, self._key(key), value, timeout=timeout)
        logger.debug("Cache set: %s (timeout=%s)", key, timeout)

    async def delete(self, key: str) -> None:
        await self._call("delete", cache.delete, self._key(key))
        logger.debug("Cache delete: %s", key)


# Global cache instance
cache_adapter = DjangoCacheAdapter()
