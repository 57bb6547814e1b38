"""
Tests for the navigation builder.
"""
from unittest.mock import patch

import pytest
from django.db import DatabaseError

from apps.core.exceptions import StoreFailure
from apps.modules.models import Module
from apps.modules.services import NavigationBuilder
from apps.modules.services.navigation import (
    STATE_LOADING, STATE_READY, TEAM_LINK_ID,
)

ENABLED = {'crm', 'analytics', 'finance'}


@pytest.mark.django_db
class TestNavigationGrouping:
    """Modules are grouped by category and ordered."""

    def test_groups_ordered_by_lowest_display_order(self, modules, tenant):
        nav = NavigationBuilder.build(ENABLED, tenant.id, role='manager')

        assert [group.label for group in nav.groups] == ['Sales', 'Insights']
        assert [link.module_id for link in nav.groups[0].links] == ['finance', 'crm']
        assert nav.module_ids() == ['finance', 'crm', 'analytics']

    def test_only_given_modules_are_rendered(self, modules, tenant):
        nav = NavigationBuilder.build({'analytics'}, tenant.id, role='employee')

        assert nav.module_ids() == ['analytics']

    def test_inactive_modules_are_skipped(self, modules, tenant):
        modules['crm'].is_active = False
        modules['crm'].save()

        nav = NavigationBuilder.build(ENABLED, tenant.id, role='manager')

        assert 'crm' not in nav.module_ids()

    def test_empty_set_is_ready_with_no_groups(self, modules, tenant):
        nav = NavigationBuilder.build(set(), tenant.id, role='employee')

        assert nav.state == STATE_READY
        assert nav.is_loading is False
        assert nav.groups == []

    def test_ties_break_on_name(self, make_module, tenant):
        make_module('zeta', 'Zeta', category='Tools', display_order=1)
        make_module('alpha', 'Alpha', category='Tools', display_order=1)

        nav = NavigationBuilder.build({'zeta', 'alpha'}, tenant.id)

        assert nav.module_ids() == ['alpha', 'zeta']


@pytest.mark.django_db
class TestNavigationLinks:
    """Link targets, icons and active state."""

    def test_href_carries_tenant_id(self, modules, tenant):
        nav = NavigationBuilder.build({'crm'}, tenant.id)

        link = nav.groups[0].links[0]
        assert link.href == f'/workspace/crm?tenant_id={tenant.id}'
        assert link.icon == 'Users'
        assert link.label == 'CRM'

    def test_href_replaces_existing_tenant_id(self, make_module, tenant):
        make_module('board', 'Board', route_path='/board?tenant_id=stale&view=kanban')

        nav = NavigationBuilder.build({'board'}, tenant.id)

        assert nav.groups[0].links[0].href == f'/workspace/board?view=kanban&tenant_id={tenant.id}'

    def test_active_path_marks_link(self, modules, tenant):
        nav = NavigationBuilder.build(ENABLED, tenant.id, active_path='/workspace/finanzas/invoices/7')

        active = [link.module_id for group in nav.groups for link in group.links if link.active]
        assert active == ['finance']

    def test_to_dict(self, modules, tenant):
        payload = NavigationBuilder.build({'analytics'}, tenant.id).to_dict()

        assert payload == {
            'state': 'ready',
            'placeholder_rows': 0,
            'groups': [{
                'label': 'Insights',
                'links': [{
                    'module_id': 'analytics',
                    'label': 'Analytics',
                    'href': f'/workspace/analytics?tenant_id={tenant.id}',
                    'icon': 'BarChart3',
                    'active': False,
                    'pinned': False,
                }],
            }],
        }


@pytest.mark.django_db
class TestTeamLink:
    """Tenant admins get a pinned link to team settings."""

    @pytest.mark.parametrize('role', ['owner', 'admin'])
    def test_admin_roles_get_team_link(self, modules, tenant, role):
        nav = NavigationBuilder.build(ENABLED, tenant.id, role=role)

        workspace = nav.groups[-1]
        assert workspace.label == 'Workspace'
        team = workspace.links[-1]
        assert team.module_id == TEAM_LINK_ID
        assert team.pinned is True
        assert team.href == f'/workspace/settings/users?tenant_id={tenant.id}'

    def test_super_admin_gets_team_link(self, modules, tenant):
        nav = NavigationBuilder.build(set(), tenant.id, is_super_admin=True)

        assert [link.module_id for link in nav.groups[0].links] == [TEAM_LINK_ID]
        assert nav.module_ids() == []

    @pytest.mark.parametrize('role', ['manager', 'employee', 'viewer', None])
    def test_other_roles_do_not(self, modules, tenant, role):
        nav = NavigationBuilder.build(ENABLED, tenant.id, role=role)

        all_ids = [link.module_id for group in nav.groups for link in group.links]
        assert TEAM_LINK_ID not in all_ids


class TestLoadingState:

    def test_loading_has_placeholders_and_no_groups(self, settings):
        settings.NAVIGATION_PLACEHOLDER_ROWS = 8

        nav = NavigationBuilder.loading()

        assert nav.state == STATE_LOADING
        assert nav.is_loading is True
        assert nav.groups == []
        assert nav.placeholder_rows == 8
        assert nav.module_ids() == []


@pytest.mark.django_db
class TestNavigationStoreFailure:

    def test_database_error_becomes_store_failure(self, tenant):
        with patch.object(Module.objects, 'by_slugs', side_effect=DatabaseError('down')):
            with pytest.raises(StoreFailure) as exc_info:
                NavigationBuilder.build(ENABLED, tenant.id, role='manager')

        assert exc_info.value.details == {'operation': 'build'}
