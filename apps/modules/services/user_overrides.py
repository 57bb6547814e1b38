"""
User override store: per-user grant/revoke exceptions.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Mapping

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from apps.core.exceptions import UserNotInTenant, ValidationError, store_errors_as_failure
from apps.core.logging import SecurityLogger
from apps.modules.models import Module, OverrideType, UserModuleOverride
from apps.modules.services.access_cache import ModuleAccessCache
from apps.modules.services.enablement import EnablementService
from apps.modules.services.registry_service import ModuleRegistryService
from apps.rbac.models import AuditLog, User
from apps.rbac.services import MembershipService
from apps.tenants.models import Tenant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Override:
    """One user exception: ``kind`` is 'grant' or 'revoke'."""
    module_id: str
    kind: str

    def as_dict(self):
        return {'module_id': self.module_id, 'override_type': self.kind}


class UserOverrideService:
    """
    Service for reading and replacing one user's module overrides in a tenant.
    """

    @classmethod
    @store_errors_as_failure
    def get_overrides(cls, tenant, user) -> List[Override]:
        """Return the user's overrides in ``tenant``, ordered by module id."""
        tenant = EnablementService.get_tenant(tenant)
        rows = (
            UserModuleOverride.objects.for_member(tenant, user)
            .values_list('module__slug', 'override_type')
            .order_by('module__slug')
        )
        return [Override(module_id=module_id, kind=kind) for module_id, kind in rows]

    @classmethod
    def normalize_overrides(cls, overrides: Iterable) -> List[Override]:
        """
        Validate a batch and collapse duplicate module ids.

        A module id listed more than once keeps its last entry in submission
        order (last write wins).

        Raises:
            ValidationError: on malformed entries, unknown kinds or unknown modules
        """
        collapsed = {}
        for index, entry in enumerate(overrides or []):
            if isinstance(entry, Override):
                module_id, kind = entry.module_id, entry.kind
            elif isinstance(entry, Mapping):
                module_id, kind = entry.get('module_id'), entry.get('override_type')
            else:
                try:
                    module_id, kind = entry
                except (TypeError, ValueError):
                    raise ValidationError('Malformed override entry', details={'index': index})

            if not module_id:
                raise ValidationError('Override is missing module_id', details={'index': index})
            if kind not in OverrideType.values:
                raise ValidationError(
                    'override_type must be "grant" or "revoke"',
                    details={'index': index, 'override_type': kind}
                )

            collapsed.pop(str(module_id), None)
            collapsed[str(module_id)] = kind

        unknown = ModuleRegistryService.unknown_ids(collapsed.keys())
        if unknown:
            raise ValidationError(
                'Unknown module ids in overrides',
                details={'unknown_modules': sorted(unknown)}
            )
        return [Override(module_id=module_id, kind=kind) for module_id, kind in collapsed.items()]

    @classmethod
    @store_errors_as_failure
    def save_overrides(cls, tenant, user, overrides: Iterable, actor, request=None) -> List[Override]:
        """
        Atomically replace ``user``'s overrides in ``tenant``.

        The target must be an active member of the tenant; overrides are
        never written across tenants.

        Args:
            tenant: Tenant instance or id
            user: Target User instance or id
            overrides: Iterable of Override, {'module_id', 'override_type'}
                dicts or (module_id, kind) pairs
            actor: User performing the save (owner/admin or super-admin)
            request: Optional request for audit context

        Returns:
            The saved overrides

        Raises:
            Forbidden: if actor may not manage module access
            UserNotInTenant: if the target is not an active member
            ValidationError: on malformed batches
        """
        tenant = EnablementService.get_tenant(tenant)
        MembershipService.require_module_admin(tenant, actor, 'save_module_overrides', request)

        target = cls._get_user(user)
        if target is None or MembershipService.get_membership(tenant, target) is None:
            SecurityLogger.log_cross_tenant_attempt(
                actor=actor,
                tenant=tenant,
                target_user_id=getattr(user, 'id', user),
                ip_address=request.META.get('REMOTE_ADDR') if request is not None else None,
            )
            raise UserNotInTenant(
                'User is not a member of this tenant',
                details={'tenant_id': str(tenant.id), 'user_id': str(getattr(user, 'id', user))}
            )

        batch = cls.normalize_overrides(overrides)

        with transaction.atomic():
            # Serialise concurrent saves for the same tenant
            Tenant.objects.select_for_update().filter(pk=tenant.pk).first()
            before = cls.get_overrides(tenant, target)

            modules = {
                module.slug: module
                for module in Module.objects.by_slugs({o.module_id for o in batch})
            }
            rows = [
                UserModuleOverride(
                    tenant=tenant,
                    user=target,
                    module=modules[override.module_id],
                    override_type=override.kind,
                    created_by=actor if getattr(actor, 'is_authenticated', False) else None,
                )
                for override in batch
            ]

            UserModuleOverride.objects.for_member(tenant, target).delete()
            UserModuleOverride.objects.bulk_create(rows)

            AuditLog.log_action(
                action='module_overrides_saved',
                user=actor,
                tenant=tenant,
                target_type='User',
                target_id=target.id,
                diff={
                    'before': [o.as_dict() for o in before],
                    'after': [o.as_dict() for o in batch],
                },
                metadata={'row_count': len(rows)},
                request=request,
            )
            ModuleAccessCache.invalidate_tenant(tenant.id)

        logger.info(
            f"Module overrides saved for user {target.id} in tenant {tenant.id}: {len(rows)} rows",
            extra={'tenant_id': str(tenant.id), 'user_id': str(target.id), 'row_count': len(rows)}
        )
        return cls.get_overrides(tenant, target)

    @staticmethod
    def _get_user(user):
        if isinstance(user, User):
            return user
        try:
            return User.objects.filter(id=user).first()
        except (ValueError, DjangoValidationError):
            return None
