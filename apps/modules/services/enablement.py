"""
Tenant enablement: which modules a tenant is entitled to.

Precedence, strictly in this order:

1. The tenant's template has active module links: exactly those modules.
2. The tenant (or, failing that, its template) carries legacy feature keys:
   every active module whose feature key is in that set.
3. Neither: every active module. This permissive branch keeps ungated
   legacy tenants working; it is logged on every use and reported by the
   diagnostics endpoint so those tenants can be found and migrated.
"""
import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Set

from django.core.exceptions import ValidationError as DjangoValidationError

from apps.core.exceptions import TenantNotFound, store_errors_as_failure
from apps.modules.models import Module, TemplateModule
from apps.tenants.models import Tenant

logger = logging.getLogger(__name__)

SOURCE_TEMPLATE = 'template'
SOURCE_FEATURE_KEYS = 'feature_keys'
SOURCE_ALL_MODULES = 'all_modules'


@dataclass(frozen=True)
class EnablementResult:
    """The enabled module ids of a tenant and which rule produced them."""
    module_ids: FrozenSet[str]
    source: str
    feature_keys: FrozenSet[str] = field(default_factory=frozenset)


class EnablementService:
    """
    Service computing tenant module entitlement.
    """

    @classmethod
    @store_errors_as_failure
    def get_tenant(cls, tenant) -> Tenant:
        """
        Return a Tenant for an instance or an id.

        Raises:
            TenantNotFound: if no live tenant has that id
        """
        if isinstance(tenant, Tenant):
            if tenant.is_deleted:
                raise TenantNotFound('Tenant not found', details={'tenant_id': str(tenant.id)})
            return tenant

        try:
            return Tenant.objects.select_related('template').get(id=tenant)
        except (Tenant.DoesNotExist, ValueError, DjangoValidationError):
            raise TenantNotFound('Tenant not found', details={'tenant_id': str(tenant)})

    @classmethod
    @store_errors_as_failure
    def resolve(cls, tenant) -> EnablementResult:
        """
        Compute the enabled module set of ``tenant`` with its source rule.

        Args:
            tenant: Tenant instance or tenant id

        Returns:
            EnablementResult
        """
        tenant = cls.get_tenant(tenant)
        template = cls._live_template(tenant)

        if template is not None:
            linked = set(
                TemplateModule.objects.for_template(template).filter(
                    deleted_at__isnull=True,
                    module__is_active=True,
                    module__deleted_at__isnull=True,
                ).values_list('module__slug', flat=True)
            )
            if linked:
                return EnablementResult(frozenset(linked), SOURCE_TEMPLATE)

        keys = tenant.get_feature_keys()
        if not keys and template is not None:
            keys = template.get_feature_keys()

        if keys:
            matched = set(
                Module.objects.active()
                .filter(feature_key__in=sorted(keys))
                .values_list('slug', flat=True)
            )
            return EnablementResult(frozenset(matched), SOURCE_FEATURE_KEYS, frozenset(keys))

        logger.warning(
            f"Tenant {tenant.id} has no template modules and no feature keys; "
            f"enabling every registry module",
            extra={'tenant_id': str(tenant.id), 'enablement_source': SOURCE_ALL_MODULES}
        )
        return EnablementResult(frozenset(Module.objects.active_slugs()), SOURCE_ALL_MODULES)

    @classmethod
    def enabled_modules(cls, tenant) -> Set[str]:
        """The module ids ``tenant`` is entitled to (the access ceiling)."""
        return set(cls.resolve(tenant).module_ids)

    @staticmethod
    def _live_template(tenant):
        if not tenant.template_id:
            return None
        template = tenant.template
        if template is None or template.is_deleted:
            return None
        return template
