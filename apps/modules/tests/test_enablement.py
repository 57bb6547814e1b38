"""
Tests for tenant enablement precedence.
"""
import logging
import uuid

import pytest

from apps.core.exceptions import TenantNotFound
from apps.modules.models import Template, TemplateModule
from apps.modules.services import EnablementService
from apps.modules.services.enablement import (
    SOURCE_TEMPLATE, SOURCE_FEATURE_KEYS, SOURCE_ALL_MODULES,
)
from apps.tenants.models import Tenant


@pytest.mark.django_db
class TestEnablementPrecedence:
    """Template links, then feature keys, then every module."""

    def test_template_links_win(self, tenant):
        tenant.feature_keys = ['simulator']
        tenant.save()

        result = EnablementService.resolve(tenant)

        assert result.source == SOURCE_TEMPLATE
        assert result.module_ids == frozenset({'crm', 'analytics', 'finance'})

    def test_inactive_linked_modules_are_excluded(self, tenant, modules):
        modules['analytics'].is_active = False
        modules['analytics'].save()

        assert EnablementService.enabled_modules(tenant) == {'crm', 'finance'}

    def test_soft_deleted_links_are_ignored(self, tenant, template, modules):
        TemplateModule.objects.get(template=template, module=modules['crm']).delete()

        assert EnablementService.enabled_modules(tenant) == {'analytics', 'finance'}

    def test_tenant_feature_keys_when_template_has_no_links(self, modules):
        empty = Template.objects.create(slug='empty', name='Empty', feature_keys=['analytics'])
        tenant = Tenant.objects.create(
            name='Legacy', slug='legacy', template=empty, feature_keys=['crm', 'finance'],
        )

        result = EnablementService.resolve(tenant)

        assert result.source == SOURCE_FEATURE_KEYS
        assert result.module_ids == frozenset({'crm', 'finance'})
        assert result.feature_keys == frozenset({'crm', 'finance'})

    def test_template_feature_keys_when_tenant_has_none(self, modules):
        empty = Template.objects.create(slug='empty', name='Empty', feature_keys=['analytics'])
        tenant = Tenant.objects.create(name='Legacy', slug='legacy', template=empty)

        result = EnablementService.resolve(tenant)

        assert result.source == SOURCE_FEATURE_KEYS
        assert result.module_ids == frozenset({'analytics'})

    def test_feature_keys_without_template(self, modules):
        tenant = Tenant.objects.create(name='Legacy', slug='legacy', feature_keys=['simulator'])

        assert EnablementService.enabled_modules(tenant) == {'simulator'}

    def test_unmatched_feature_keys_enable_nothing(self, modules):
        tenant = Tenant.objects.create(name='Legacy', slug='legacy', feature_keys=['unknown'])

        result = EnablementService.resolve(tenant)

        assert result.source == SOURCE_FEATURE_KEYS
        assert result.module_ids == frozenset()

    def test_template_with_only_inactive_modules_falls_through(self, modules):
        template = Template.objects.create(slug='retired', name='Retired')
        TemplateModule.objects.create(template=template, module=modules['simulator'])
        modules['simulator'].is_active = False
        modules['simulator'].save()
        tenant = Tenant.objects.create(
            name='Legacy', slug='legacy', template=template, feature_keys=['crm'],
        )

        result = EnablementService.resolve(tenant)

        assert result.source == SOURCE_FEATURE_KEYS
        assert result.module_ids == frozenset({'crm'})

    def test_fallback_enables_every_active_module(self, modules, caplog):
        tenant = Tenant.objects.create(name='Bare', slug='bare')

        with caplog.at_level(logging.WARNING, logger='apps.modules.services.enablement'):
            result = EnablementService.resolve(tenant)

        assert result.source == SOURCE_ALL_MODULES
        assert result.module_ids == frozenset({'crm', 'analytics', 'finance', 'simulator'})
        assert any('enabling every registry module' in message for message in caplog.messages)

    def test_soft_deleted_template_is_ignored(self, tenant, template):
        template.delete()
        tenant.refresh_from_db()

        assert EnablementService.resolve(tenant).source == SOURCE_ALL_MODULES


@pytest.mark.django_db
class TestTenantLookup:
    """Unknown tenants fail explicitly."""

    def test_lookup_by_id(self, tenant):
        assert EnablementService.get_tenant(tenant.id) == tenant
        assert EnablementService.get_tenant(str(tenant.id)) == tenant

    def test_unknown_tenant_id(self):
        with pytest.raises(TenantNotFound):
            EnablementService.resolve(uuid.uuid4())

    def test_malformed_tenant_id(self):
        with pytest.raises(TenantNotFound):
            EnablementService.enabled_modules('not-a-uuid')

    def test_soft_deleted_tenant(self, tenant):
        tenant.delete()

        with pytest.raises(TenantNotFound):
            EnablementService.enabled_modules(tenant)
        with pytest.raises(TenantNotFound):
            EnablementService.enabled_modules(tenant.id)
