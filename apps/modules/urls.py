"""
Module access API URLs.

Provides endpoints for:
- Workspace navigation and its loading state
- Registry listing
- Role matrix and per-user overrides
- Enablement diagnostics
"""
from django.urls import path
from apps.modules.views import (
    NavigationView,
    NavigationLoadingView,
    ModuleRegistryView,
    RoleMatrixView,
    UserModuleOverridesView,
    EnabledModulesView,
)

app_name = 'modules'

urlpatterns = [
    # Navigation endpoints
    path('modules', NavigationView.as_view(), name='navigation'),
    path('modules/loading', NavigationLoadingView.as_view(), name='navigation-loading'),
    path('modules/registry', ModuleRegistryView.as_view(), name='registry'),

    # Tenant administration endpoints
    path('tenants/<uuid:tenant_id>/role-matrix', RoleMatrixView.as_view(), name='role-matrix'),
    path(
        'tenants/<uuid:tenant_id>/users/<uuid:user_id>/module-overrides',
        UserModuleOverridesView.as_view(),
        name='user-module-overrides'
    ),
    path('tenants/<uuid:tenant_id>/enabled-modules', EnabledModulesView.as_view(), name='enabled-modules'),
]
