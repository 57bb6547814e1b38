"""
Tests for tenant models.
"""
import pytest
from unittest.mock import patch

from apps.tenants.models import Tenant, ModuleAccessMode


@pytest.mark.django_db
class TestTenantModel:
    """Test Tenant model functionality."""

    def test_defaults(self):
        tenant = Tenant.objects.create(name='Acme', slug='acme')

        assert tenant.status == 'active'
        assert tenant.is_active() is True
        assert tenant.module_access_mode == ModuleAccessMode.DEFAULT
        assert tenant.is_customized is False
        assert tenant.get_feature_keys() == set()
        assert str(tenant) == 'Acme (acme)'

    def test_feature_keys_are_normalised(self):
        tenant = Tenant.objects.create(name='Acme', slug='acme', feature_keys=['crm', '', None, 'crm', 7])

        assert tenant.get_feature_keys() == {'crm', '7'}

    def test_custom_mode(self):
        tenant = Tenant.objects.create(name='Acme', slug='acme', module_access_mode=ModuleAccessMode.CUSTOM)

        assert tenant.is_customized is True

    def test_soft_delete_hides_tenant(self):
        tenant = Tenant.objects.create(name='Acme', slug='acme')
        tenant.delete()

        assert not Tenant.objects.filter(pk=tenant.pk).exists()
        assert Tenant.objects_with_deleted.filter(pk=tenant.pk).exists()

    def test_manager_lookups(self):
        Tenant.objects.create(name='Acme', slug='acme')
        Tenant.objects.create(name='Gone', slug='gone', status='canceled')

        assert Tenant.objects.by_slug('acme').name == 'Acme'
        assert list(Tenant.objects.active().values_list('slug', flat=True)) == ['acme']

    def test_template_removal_keeps_tenant(self, tenant, template):
        template.hard_delete()
        tenant.refresh_from_db()

        assert tenant.template is None


@pytest.mark.django_db
class TestTenantSignals:
    """Tenant edits invalidate cached resolutions."""

    def test_update_invalidates_tenant(self, tenant):
        with patch('apps.tenants.signals.ModuleAccessCache.invalidate_tenant') as invalidate:
            tenant.feature_keys = ['crm']
            tenant.save()

        invalidate.assert_called_once_with(tenant.id)

    def test_create_does_not_invalidate(self):
        with patch('apps.tenants.signals.ModuleAccessCache.invalidate_tenant') as invalidate:
            Tenant.objects.create(name='Acme', slug='acme')

        invalidate.assert_not_called()
