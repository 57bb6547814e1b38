"""
Caching utilities for frequently accessed data.

Provides centralized cache management with consistent TTLs and invalidation
patterns. Cache failures never propagate: a read error is a miss and a write
error is logged and skipped, so the caller recomputes from source truth.
"""
import logging
import uuid
from typing import Any, Optional
from django.core.cache import cache
from django.conf import settings

logger = logging.getLogger(__name__)


class CacheKeys:
    """Centralized cache key definitions with consistent naming."""

    # Generation tokens, rotated on every write that can change a resolution
    MODULE_ACCESS_GLOBAL_GEN = "modules:gen:global"
    MODULE_ACCESS_TENANT_GEN = "modules:gen:tenant:{tenant_id}"

    # Resolved effective module set for one (tenant, user, role)
    EFFECTIVE_MODULES = "modules:effective:{tenant_id}:{user_id}:{role}:{global_gen}:{tenant_gen}"

    @classmethod
    def format(cls, key_template: str, **kwargs) -> str:
        """Format a cache key with provided parameters."""
        return key_template.format(**kwargs)


class CacheTTL:
    """Cache TTL (Time To Live) constants in seconds."""

    # Generation tokens must outlive every entry keyed on them
    GENERATION = None

    @staticmethod
    def module_access() -> int:
        """TTL for resolved module sets; 0 disables the cache."""
        return int(getattr(settings, 'MODULE_ACCESS_CACHE_TTL', 0) or 0)


class CacheService:
    """Service for managing cached data with consistent patterns."""

    @staticmethod
    def get(key: str, default: Any = None) -> Any:
        """
        Get value from cache.

        Args:
            key: Cache key
            default: Default value if key not found

        Returns:
            Cached value or default
        """
        try:
            value = cache.get(key, default)
            if value is not None:
                logger.debug(f"Cache HIT: {key}")
            else:
                logger.debug(f"Cache MISS: {key}")
            return value
        except Exception as e:
            logger.error(f"Cache get error for key {key}: {str(e)}")
            return default

    @staticmethod
    def set(key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds (None caches forever)

        Returns:
            True if successful, False otherwise
        """
        try:
            cache.set(key, value, timeout=ttl)
            logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"Cache set error for key {key}: {str(e)}")
            return False

    @staticmethod
    def delete(key: str) -> bool:
        """Delete value from cache."""
        try:
            cache.delete(key)
            logger.debug(f"Cache DELETE: {key}")
            return True
        except Exception as e:
            logger.error(f"Cache delete error for key {key}: {str(e)}")
            return False

    @staticmethod
    def generation(key: str) -> Optional[str]:
        """
        Return the current generation token stored at ``key``.

        A missing token is initialised to a fresh random value, never to a
        counter that could repeat after eviction. Returns None when the cache
        is unreachable, which callers treat as "do not cache".
        """
        try:
            token = cache.get(key)
            if token is None:
                cache.add(key, uuid.uuid4().hex, timeout=CacheTTL.GENERATION)
                token = cache.get(key)
            return token
        except Exception as e:
            logger.error(f"Cache generation read error for key {key}: {str(e)}")
            return None

    @staticmethod
    def bump_generation(key: str) -> bool:
        """Rotate the generation token at ``key`` so dependent entries go stale."""
        try:
            cache.set(key, uuid.uuid4().hex, timeout=CacheTTL.GENERATION)
            logger.debug(f"Cache GENERATION BUMP: {key}")
            return True
        except Exception as e:
            logger.error(f"Cache generation bump error for key {key}: {str(e)}")
            return False


class ModuleAccessCacheInvalidator:
    """Utility for invalidating resolved module access caches."""

    @staticmethod
    def invalidate_tenant(tenant_id):
        """Invalidate every resolution cached for one tenant."""
        CacheService.bump_generation(
            CacheKeys.format(CacheKeys.MODULE_ACCESS_TENANT_GEN, tenant_id=tenant_id)
        )
        logger.info(f"Invalidated module access cache for tenant {tenant_id}")

    @staticmethod
    def invalidate_all():
        """Invalidate every cached resolution (registry or template changes)."""
        CacheService.bump_generation(CacheKeys.MODULE_ACCESS_GLOBAL_GEN)
        logger.info("Invalidated module access cache for all tenants")
