"""
Access resolver: the effective module set of a (tenant, user, role).

Resolution order:

1. Platform super-admins see every active module, skipping all other steps.
2. ``enabled`` = the tenant's entitlement (the ceiling).
3. ``role_set`` = matrix[role] in custom mode, ``enabled`` in default mode.
4. ``base`` = role_set & enabled.
5. Grants add a module only when it is in ``enabled``.
6. Revokes remove a module unconditionally, after grants.

Every result is a subset of ``enabled`` for non-super-admins.
"""
import logging
from typing import Iterable, Set

from apps.modules.models import OverrideType
from apps.modules.services.access_cache import ModuleAccessCache
from apps.modules.services.enablement import EnablementService
from apps.modules.services.registry_service import ModuleRegistryService
from apps.modules.services.role_matrix import RoleMatrixService
from apps.modules.services.user_overrides import UserOverrideService
from apps.rbac.services import MembershipService

logger = logging.getLogger(__name__)


def is_super_admin(user) -> bool:
    return bool(user is not None and getattr(user, 'is_authenticated', False)
                and getattr(user, 'is_superuser', False))


class AccessResolver:
    """
    Orchestrates enablement, the role matrix and user overrides.
    """

    @staticmethod
    def combine(enabled: Set[str], role_set: Set[str], overrides: Iterable) -> Set[str]:
        """
        Apply the ceiling and the user's overrides to a role baseline.

        Args:
            enabled: Tenant entitlement
            role_set: Role baseline before the ceiling is applied
            overrides: Override objects (module_id, kind)

        Returns:
            The effective module ids
        """
        overrides = list(overrides)
        effective = set(role_set) & set(enabled)

        for override in overrides:
            if override.kind != OverrideType.GRANT:
                continue
            if override.module_id in enabled:
                effective.add(override.module_id)
            else:
                logger.debug(
                    f"Ignoring grant for {override.module_id}: not enabled for tenant",
                    extra={'module_id': override.module_id}
                )

        for override in overrides:
            if override.kind == OverrideType.REVOKE:
                effective.discard(override.module_id)

        return effective

    @classmethod
    def effective_modules(cls, tenant, user, role) -> Set[str]:
        """
        Compute the modules ``user`` holding ``role`` may see in ``tenant``.

        Args:
            tenant: Tenant instance or id
            user: User instance (or None for a role-only preview)
            role: Tenant role key

        Returns:
            Set of module ids

        Raises:
            TenantNotFound: if the tenant does not exist
            StoreFailure: if the backing store fails
        """
        if is_super_admin(user):
            return ModuleRegistryService.all_module_ids()

        tenant = EnablementService.get_tenant(tenant)
        user_id = getattr(user, 'id', None)

        cache_key = ModuleAccessCache.key(tenant.id, user_id, role)
        cached = ModuleAccessCache.get(cache_key)
        if cached is not None:
            return cached

        enabled = EnablementService.enabled_modules(tenant)
        matrix = RoleMatrixService.get_matrix(tenant)

        if matrix.is_customized:
            role_set = matrix.roles.get(role, set())
        else:
            role_set = enabled

        overrides = UserOverrideService.get_overrides(tenant, user) if user is not None else []
        effective = cls.combine(enabled, role_set, overrides)

        ModuleAccessCache.set(cache_key, effective)
        logger.debug(
            f"Resolved {len(effective)} modules for user {user_id} ({role}) in tenant {tenant.id}",
            extra={'tenant_id': str(tenant.id), 'user_id': str(user_id), 'role': role}
        )
        return effective

    @classmethod
    def resolve_for_member(cls, tenant, user) -> Set[str]:
        """
        Resolve a user's modules using the role of their membership.

        Raises:
            UserNotInTenant: if a non-super-admin user has no active membership
        """
        if is_super_admin(user):
            return ModuleRegistryService.all_module_ids()

        tenant = EnablementService.get_tenant(tenant)
        membership = MembershipService.require_member(tenant, user)
        return cls.effective_modules(tenant, user, membership.role)
