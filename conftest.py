"""
Pytest configuration and fixtures.

Builds the reference world most module access tests share: a small
registry, one template, one tenant on that template, and a member for
every tenant role.
"""
import pytest


@pytest.fixture
def api_client():
    """Return DRF API client."""
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def make_module(db):
    """Factory for registry modules."""
    from apps.modules.models import Module

    def _make(slug, name=None, route_path=None, category='Workspace', display_order=0,
              feature_key=None, icon='LayoutDashboard', is_active=True):
        return Module.objects.create(
            slug=slug,
            name=name or slug.replace('-', ' ').title(),
            route_path=route_path or f'/{slug}',
            category=category,
            display_order=display_order,
            feature_key=feature_key,
            icon=icon,
            is_active=is_active,
        )
    return _make


@pytest.fixture
def modules(make_module):
    """
    Registry with four modules.

    crm, analytics and finance are bundled by the ``growth`` template;
    simulator exists in the registry but is not enabled for the tenant.
    """
    return {
        'crm': make_module('crm', 'CRM', '/crm', category='Sales', display_order=10,
                           feature_key='crm', icon='Users'),
        'analytics': make_module('analytics', 'Analytics', '/analytics', category='Insights',
                                 display_order=20, feature_key='analytics', icon='BarChart3'),
        'finance': make_module('finance', 'Finance', '/workspace/finanzas', category='Sales',
                               display_order=5, feature_key='finance', icon='DollarSign'),
        'simulator': make_module('simulator', 'Simulator', '/simulador', category='Tools',
                                 display_order=40, feature_key='simulator', icon='Cpu'),
    }


@pytest.fixture
def template(db, modules):
    """Template bundling crm, analytics and finance."""
    from apps.modules.models import Template, TemplateModule
    template = Template.objects.create(slug='growth', name='Growth')
    for slug in ('crm', 'analytics', 'finance'):
        TemplateModule.objects.create(template=template, module=modules[slug])
    return template


@pytest.fixture
def tenant(db, template):
    """Create a test tenant on the growth template."""
    from apps.tenants.models import Tenant
    return Tenant.objects.create(
        name='Test Tenant',
        slug='test-tenant',
        template=template,
    )


@pytest.fixture
def other_tenant(db):
    """Create another tenant for isolation tests."""
    from apps.tenants.models import Tenant
    return Tenant.objects.create(
        name='Other Tenant',
        slug='other-tenant',
    )


@pytest.fixture
def make_member(db):
    """Factory creating a user with a membership in a tenant."""
    from apps.rbac.models import User, TenantUser

    def _make(tenant, role, email=None):
        user = User.objects.create_user(
            email=email or f'{role}-{tenant.slug}@example.com',
            password='Str0ng-pass-for-tests',
            first_name=role.title(),
        )
        TenantUser.objects.create(tenant=tenant, user=user, role=role)
        return user
    return _make


@pytest.fixture
def owner(tenant, make_member):
    return make_member(tenant, 'owner')


@pytest.fixture
def admin_user(tenant, make_member):
    return make_member(tenant, 'admin')


@pytest.fixture
def manager(tenant, make_member):
    return make_member(tenant, 'manager')


@pytest.fixture
def employee(tenant, make_member):
    return make_member(tenant, 'employee')


@pytest.fixture
def super_admin(db):
    """Platform super-admin with no tenant membership."""
    from apps.rbac.models import User
    return User.objects.create_superuser(
        email='root@example.com',
        password='Str0ng-pass-for-tests',
    )


@pytest.fixture
def outsider(db):
    """A user with no membership anywhere."""
    from apps.rbac.models import User
    return User.objects.create_user(
        email='outsider@example.com',
        password='Str0ng-pass-for-tests',
    )


@pytest.fixture
def auth_client(api_client):
    """Return a callable that authenticates the API client as a user via JWT."""
    from apps.rbac.services import AuthService

    def _auth(user):
        token = AuthService.generate_jwt(user)
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        return api_client
    return _auth
