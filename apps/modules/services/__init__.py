"""
Services for module access resolution.
"""
from .registry_service import ModuleRegistryService
from .enablement import EnablementService, EnablementResult
from .role_matrix import RoleMatrixService, RoleMatrix
from .user_overrides import UserOverrideService, Override
from .resolver import AccessResolver
from .navigation import NavigationBuilder, Navigation, NavGroup, NavLink
from .access_cache import ModuleAccessCache

__all__ = [
    'ModuleRegistryService',
    'EnablementService',
    'EnablementResult',
    'RoleMatrixService',
    'RoleMatrix',
    'UserOverrideService',
    'Override',
    'AccessResolver',
    'NavigationBuilder',
    'Navigation',
    'NavGroup',
    'NavLink',
    'ModuleAccessCache',
]
