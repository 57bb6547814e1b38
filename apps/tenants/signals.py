"""
Signals for tenant lifecycle events.
"""
import logging
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from apps.tenants.models import Tenant
from apps.modules.services.access_cache import ModuleAccessCache

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Tenant)
@receiver(post_delete, sender=Tenant)
def invalidate_tenant_module_access(sender, instance, created=False, **kwargs):
    """
    Invalidate cached resolutions when a tenant's template, feature keys
    or module access mode may have changed.
    """
    if created:
        return
    ModuleAccessCache.invalidate_tenant(instance.id)
    logger.debug(
        "Tenant changed; module access cache invalidated",
        extra={'tenant_id': str(instance.id)}
    )
