"""
Optional cache of resolved effective module sets.

Disabled unless MODULE_ACCESS_CACHE_TTL > 0. Entries are keyed on a global
and a per-tenant generation token; writers rotate the tokens instead of
deleting keys. Every write rotates twice: once inside its transaction and
once after commit, so a reader that resolved from pre-commit data can only
have stored its result under a token that no longer exists.
"""
import logging
from typing import Optional, Set

from django.db import transaction

from apps.core.cache import CacheKeys, CacheService, CacheTTL, ModuleAccessCacheInvalidator

logger = logging.getLogger(__name__)


class ModuleAccessCache:
    """Get/set/invalidate helpers for resolved module sets."""

    @staticmethod
    def enabled() -> bool:
        return CacheTTL.module_access() > 0

    @classmethod
    def key(cls, tenant_id, user_id, role) -> Optional[str]:
        """Cache key for one resolution, or None when caching is unavailable."""
        if not cls.enabled():
            return None
        global_gen = CacheService.generation(CacheKeys.MODULE_ACCESS_GLOBAL_GEN)
        tenant_gen = CacheService.generation(
            CacheKeys.format(CacheKeys.MODULE_ACCESS_TENANT_GEN, tenant_id=tenant_id)
        )
        if global_gen is None or tenant_gen is None:
            return None
        return CacheKeys.format(
            CacheKeys.EFFECTIVE_MODULES,
            tenant_id=tenant_id,
            user_id=user_id or 'anonymous',
            role=role or 'none',
            global_gen=global_gen,
            tenant_gen=tenant_gen,
        )

    @staticmethod
    def get(key) -> Optional[Set[str]]:
        if key is None:
            return None
        cached = CacheService.get(key)
        if cached is None:
            return None
        return set(cached)

    @staticmethod
    def set(key, module_ids) -> None:
        if key is None:
            return
        CacheService.set(key, sorted(module_ids), CacheTTL.module_access())

    @classmethod
    def invalidate_tenant(cls, tenant_id) -> None:
        """Invalidate one tenant now and again once the current transaction commits."""
        if not cls.enabled():
            return
        ModuleAccessCacheInvalidator.invalidate_tenant(tenant_id)
        transaction.on_commit(lambda: ModuleAccessCacheInvalidator.invalidate_tenant(tenant_id))

    @classmethod
    def invalidate_all(cls) -> None:
        """Invalidate every tenant (registry or template changes)."""
        if not cls.enabled():
            return
        ModuleAccessCacheInvalidator.invalidate_all()
        transaction.on_commit(ModuleAccessCacheInvalidator.invalidate_all)
