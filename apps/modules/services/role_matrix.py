"""
Role matrix store: tenant-specific role -> module visibility.

A tenant is in *default* mode (every role sees every enabled module) until
an admin saves a non-empty matrix, which switches it to *custom* mode (each
role sees exactly its rows; a role without rows sees nothing from the
matrix). The mode flag and the rows are written in one transaction.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Set

from django.db import transaction
from django.utils import timezone

from apps.core.exceptions import ValidationError, store_errors_as_failure
from apps.modules.models import Module, RoleModuleOverride
from apps.modules.services.access_cache import ModuleAccessCache
from apps.modules.services.enablement import EnablementService
from apps.modules.services.registry_service import ModuleRegistryService
from apps.rbac.models import AuditLog, TenantRole
from apps.rbac.services import MembershipService
from apps.tenants.models import Tenant, ModuleAccessMode

logger = logging.getLogger(__name__)


@dataclass
class RoleMatrix:
    """Every known role mapped to its module ids, plus the tenant's mode."""
    roles: Dict[str, Set[str]]
    is_customized: bool

    def as_lists(self) -> Dict[str, list]:
        """JSON-friendly form with sorted id lists."""
        return {role: sorted(ids) for role, ids in self.roles.items()}


class RoleMatrixService:
    """
    Service for reading and replacing a tenant's role matrix.
    """

    @classmethod
    @store_errors_as_failure
    def get_matrix(cls, tenant) -> RoleMatrix:
        """
        Return the tenant's matrix with every role key present.

        ``is_customized`` reads the tenant's explicit module access mode.
        """
        tenant = EnablementService.get_tenant(tenant)

        roles = {role: set() for role in TenantRole.values}
        rows = RoleModuleOverride.objects.for_tenant(tenant).values_list('role', 'module__slug')
        for role, module_id in rows:
            roles.setdefault(role, set()).add(module_id)

        return RoleMatrix(roles=roles, is_customized=tenant.is_customized)

    @classmethod
    def normalize_mapping(cls, mapping: Mapping) -> Dict[str, Set[str]]:
        """
        Validate a role -> module ids mapping and collapse duplicates.

        Raises:
            ValidationError: on unknown roles or unknown module ids
        """
        if not isinstance(mapping, Mapping):
            raise ValidationError('Role matrix must be an object of role -> module ids')

        unknown_roles = sorted(str(role) for role in mapping if role not in TenantRole.values)
        if unknown_roles:
            raise ValidationError(
                'Unknown roles in role matrix',
                details={'unknown_roles': unknown_roles, 'known_roles': list(TenantRole.values)}
            )

        normalized = {}
        for role, module_ids in mapping.items():
            if isinstance(module_ids, (str, bytes)) or module_ids is None:
                raise ValidationError(
                    'Module ids must be a list',
                    details={'role': role}
                )
            normalized[role] = {str(module_id) for module_id in module_ids}

        requested = set().union(*normalized.values())
        unknown = ModuleRegistryService.unknown_ids(requested)
        if unknown:
            raise ValidationError(
                'Unknown module ids in role matrix',
                details={'unknown_modules': sorted(unknown)}
            )
        return normalized

    @classmethod
    @store_errors_as_failure
    def save_matrix(cls, tenant, mapping: Mapping, actor, request=None) -> RoleMatrix:
        """
        Atomically replace the tenant's role matrix.

        Deletes every row for the tenant, inserts the new rows and sets the
        module access mode (custom when any row was written, default
        otherwise) in one transaction. Any failure leaves the prior matrix
        and mode intact.

        Args:
            tenant: Tenant instance or id
            mapping: role -> iterable of module ids; omitted roles get no rows
            actor: User performing the save (owner/admin or super-admin)
            request: Optional request for audit context

        Returns:
            The saved RoleMatrix

        Raises:
            Forbidden: if actor may not manage module access
            ValidationError: on unknown roles or module ids
        """
        tenant = EnablementService.get_tenant(tenant)
        MembershipService.require_module_admin(tenant, actor, 'save_role_matrix', request)
        normalized = cls.normalize_mapping(mapping)

        with transaction.atomic():
            locked = Tenant.objects.select_for_update().get(pk=tenant.pk)
            before = cls.get_matrix(locked)

            modules = {
                module.slug: module
                for module in Module.objects.by_slugs(set().union(*normalized.values()))
            }
            rows = [
                RoleModuleOverride(
                    tenant=locked,
                    role=role,
                    module=modules[module_id],
                    created_by=actor if getattr(actor, 'is_authenticated', False) else None,
                )
                for role in sorted(normalized)
                for module_id in sorted(normalized[role])
            ]

            RoleModuleOverride.objects.for_tenant(locked).delete()
            RoleModuleOverride.objects.bulk_create(rows)

            mode = ModuleAccessMode.CUSTOM if rows else ModuleAccessMode.DEFAULT
            Tenant.objects.filter(pk=locked.pk).update(
                module_access_mode=mode,
                updated_at=timezone.now(),
            )
            tenant.module_access_mode = mode

            AuditLog.log_action(
                action='role_matrix_saved',
                user=actor,
                tenant=tenant,
                target_type='Tenant',
                target_id=tenant.id,
                diff={
                    'before': {'mode': 'custom' if before.is_customized else 'default',
                               'roles': before.as_lists()},
                    'after': {'mode': mode.value,
                              'roles': {role: sorted(ids) for role, ids in normalized.items()}},
                },
                metadata={'row_count': len(rows)},
                request=request,
            )
            ModuleAccessCache.invalidate_tenant(tenant.id)

        logger.info(
            f"Role matrix saved for tenant {tenant.id}: {len(rows)} rows, mode={mode}",
            extra={'tenant_id': str(tenant.id), 'row_count': len(rows)}
        )
        return cls.get_matrix(tenant)
