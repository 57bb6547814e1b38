"""
Signals keeping the module access cache consistent with reference data.

Registry and template edits can change any tenant's enablement, so they
invalidate globally. Matrix and override saves invalidate their tenant
directly from the services.
"""
import logging
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from apps.modules.models import Module, Template, TemplateModule
from apps.modules.services.access_cache import ModuleAccessCache

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Module)
@receiver(post_delete, sender=Module)
@receiver(post_save, sender=Template)
@receiver(post_delete, sender=Template)
@receiver(post_save, sender=TemplateModule)
@receiver(post_delete, sender=TemplateModule)
def invalidate_on_reference_change(sender, instance, **kwargs):
    """Invalidate every cached resolution when registry or template data changes."""
    ModuleAccessCache.invalidate_all()
    logger.debug(
        f"{sender.__name__} changed; module access cache invalidated",
        extra={'object_id': str(instance.pk)}
    )
