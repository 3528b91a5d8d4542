"""
License cache service.

Caches the active license of each user. Entries are dropped whenever a
license event for that user is published.
"""
import hashlib
import logging
from typing import Optional

from django.conf import settings

from core.infrastructure.cache import cache_adapter
from core.metrics import cache_hits_total, cache_misses_total
from licenses.application.dto.license_dto import LicenseDTO

logger = logging.getLogger(__name__)

# Cache TTL (in seconds)
CACHE_TTL_ACTIVE_LICENSE = 300  # 5 minutes


class LicenseCacheService:
    """Service for caching license-related data."""

    @staticmethod
    def _active_license_key(user_id: str) -> str:
        """Generate cache key for a user's active license."""
        key_hash = hashlib.sha256(user_id.encode()).hexdigest()[:16]
        return f"license:active:{key_hash}"

    @staticmethod
    async def get_active_license(user_id: str) -> Optional[LicenseDTO]:
        """
        Get cached active license.

        Args:
            user_id: User identifier

        Returns:
            Cached LicenseDTO or None
        """
        cache_key = LicenseCacheService._active_license_key(user_id)
        cached = await cache_adapter.get(cache_key)
        if not cached:
            cache_misses_total.labels(cache_key="license:active").inc()
            return None

        try:
            dto = LicenseDTO.from_cache(cached)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Error deserializing cached license: %s", e)
            await cache_adapter.delete(cache_key)
            return None

        cache_hits_total.labels(cache_key="license:active").inc()
        return dto

    @staticmethod
    async def set_active_license(user_id: str, license: LicenseDTO, ttl: int = None) -> None:
        """
        Cache a user's active license.

        Args:
            user_id: User identifier
            license: LicenseDTO to cache
            ttl: Time to live in seconds
        """
        cache_key = LicenseCacheService._active_license_key(user_id)
        timeout = ttl or getattr(settings, "LICENSE_CACHE_TTL_SECONDS", CACHE_TTL_ACTIVE_LICENSE)
        await cache_adapter.set(cache_key, license.to_cache(), timeout=timeout)

    @staticmethod
    async def invalidate_active_license(user_id: str) -> None:
        """
        Invalidate a user's cached active license.

        Args:
            user_id: User identifier
        """
        cache_key = LicenseCacheService._active_license_key(user_id)
        await cache_adapter.delete(cache_key)
        logger.debug("Invalidated active license cache for user %s", user_id)
