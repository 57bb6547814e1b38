"""
Module registry service: read-only access to the platform module catalog.
"""
from typing import List, Set

from apps.core.exceptions import store_errors_as_failure
from apps.modules.models import Module


class ModuleRegistryService:
    """Read-only view of the active module catalog."""

    @classmethod
    @store_errors_as_failure
    def list_modules(cls) -> List[Module]:
        """All active modules ordered by (display_order, name, slug)."""
        return list(Module.objects.ordered())

    @classmethod
    @store_errors_as_failure
    def all_module_ids(cls) -> Set[str]:
        """Ids of every active module; what a platform super-admin sees."""
        return Module.objects.active_slugs()

    @classmethod
    @store_errors_as_failure
    def unknown_ids(cls, module_ids) -> Set[str]:
        """Return the ids in ``module_ids`` that are not active registry modules."""
        requested = set(module_ids)
        if not requested:
            return set()
        known = set(
            Module.objects.by_slugs(requested).values_list('slug', flat=True)
        )
        return requested - known
