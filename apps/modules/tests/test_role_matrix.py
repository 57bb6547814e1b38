"""
Tests for the role matrix store.
"""
from unittest.mock import patch

import pytest
from django.db import DatabaseError

from apps.core.exceptions import Forbidden, StoreFailure, ValidationError
from apps.modules.models import RoleModuleOverride
from apps.modules.services import RoleMatrixService
from apps.rbac.models import AuditLog, TenantRole
from apps.tenants.models import ModuleAccessMode


@pytest.mark.django_db
class TestGetMatrix:
    """Reading a tenant's matrix."""

    def test_default_tenant_has_every_role_and_no_rows(self, tenant):
        matrix = RoleMatrixService.get_matrix(tenant)

        assert matrix.is_customized is False
        assert set(matrix.roles) == set(TenantRole.values)
        assert all(ids == set() for ids in matrix.roles.values())

    def test_lookup_by_tenant_id(self, tenant, owner):
        RoleMatrixService.save_matrix(tenant, {'manager': ['crm']}, actor=owner)

        matrix = RoleMatrixService.get_matrix(str(tenant.id))

        assert matrix.roles['manager'] == {'crm'}

    def test_as_lists_is_sorted(self, tenant, owner):
        RoleMatrixService.save_matrix(
            tenant, {'manager': ['finance', 'analytics', 'crm']}, actor=owner,
        )

        lists = RoleMatrixService.get_matrix(tenant).as_lists()

        assert lists['manager'] == ['analytics', 'crm', 'finance']
        assert lists['viewer'] == []


@pytest.mark.django_db
class TestSaveMatrix:
    """Replacing a tenant's matrix."""

    def test_round_trip(self, tenant, owner):
        mapping = {'manager': ['crm', 'analytics'], 'employee': ['crm']}

        saved = RoleMatrixService.save_matrix(tenant, mapping, actor=owner)
        fetched = RoleMatrixService.get_matrix(tenant)

        assert saved == fetched
        assert fetched.is_customized is True
        assert fetched.roles['manager'] == {'crm', 'analytics'}
        assert fetched.roles['employee'] == {'crm'}
        assert fetched.roles['owner'] == set()

    def test_save_switches_tenant_to_custom_mode(self, tenant, admin_user):
        RoleMatrixService.save_matrix(tenant, {'manager': ['crm']}, actor=admin_user)

        tenant.refresh_from_db()
        assert tenant.module_access_mode == ModuleAccessMode.CUSTOM

    def test_save_replaces_previous_rows(self, tenant, owner):
        RoleMatrixService.save_matrix(tenant, {'manager': ['crm', 'finance']}, actor=owner)
        RoleMatrixService.save_matrix(tenant, {'employee': ['analytics']}, actor=owner)

        matrix = RoleMatrixService.get_matrix(tenant)

        assert matrix.roles['manager'] == set()
        assert matrix.roles['employee'] == {'analytics'}
        assert RoleModuleOverride.objects.for_tenant(tenant).count() == 1

    def test_duplicate_ids_collapse(self, tenant, owner):
        RoleMatrixService.save_matrix(tenant, {'manager': ['crm', 'crm']}, actor=owner)

        assert RoleModuleOverride.objects.for_tenant(tenant).count() == 1

    def test_empty_save_returns_to_default_mode(self, tenant, owner):
        RoleMatrixService.save_matrix(tenant, {'manager': ['crm']}, actor=owner)

        matrix = RoleMatrixService.save_matrix(tenant, {'manager': []}, actor=owner)

        assert matrix.is_customized is False
        assert RoleModuleOverride.objects.for_tenant(tenant).count() == 0
        tenant.refresh_from_db()
        assert tenant.module_access_mode == ModuleAccessMode.DEFAULT

    def test_save_is_idempotent(self, tenant, owner):
        mapping = {'manager': ['crm'], 'viewer': ['analytics']}

        first = RoleMatrixService.save_matrix(tenant, mapping, actor=owner)
        second = RoleMatrixService.save_matrix(tenant, mapping, actor=owner)

        assert first == second

    def test_rows_do_not_leak_between_tenants(self, tenant, other_tenant, owner, super_admin):
        RoleMatrixService.save_matrix(tenant, {'manager': ['crm']}, actor=owner)
        RoleMatrixService.save_matrix(other_tenant, {'manager': ['analytics']}, actor=super_admin)

        assert RoleMatrixService.get_matrix(tenant).roles['manager'] == {'crm'}
        assert RoleMatrixService.get_matrix(other_tenant).roles['manager'] == {'analytics'}

    def test_save_writes_audit_entry(self, tenant, owner):
        RoleMatrixService.save_matrix(tenant, {'manager': ['crm']}, actor=owner)

        entry = AuditLog.objects.for_tenant(tenant).by_action('role_matrix_saved').get()
        assert entry.user == owner
        assert entry.target_id == tenant.id
        assert entry.diff['before']['mode'] == 'default'
        assert entry.diff['after'] == {'mode': 'custom', 'roles': {'manager': ['crm']}}
        assert entry.metadata == {'row_count': 1}


@pytest.mark.django_db
class TestSaveMatrixValidation:
    """Rejected saves leave nothing behind."""

    def test_unknown_role(self, tenant, owner):
        with pytest.raises(ValidationError) as exc_info:
            RoleMatrixService.save_matrix(tenant, {'intern': ['crm']}, actor=owner)

        assert exc_info.value.details['unknown_roles'] == ['intern']
        assert not RoleModuleOverride.objects.exists()

    def test_unknown_module(self, tenant, owner):
        with pytest.raises(ValidationError) as exc_info:
            RoleMatrixService.save_matrix(tenant, {'manager': ['crm', 'payroll']}, actor=owner)

        assert exc_info.value.details['unknown_modules'] == ['payroll']
        tenant.refresh_from_db()
        assert tenant.module_access_mode == ModuleAccessMode.DEFAULT

    def test_string_instead_of_list(self, tenant, owner):
        with pytest.raises(ValidationError):
            RoleMatrixService.save_matrix(tenant, {'manager': 'crm'}, actor=owner)

    def test_mapping_required(self, tenant, owner):
        with pytest.raises(ValidationError):
            RoleMatrixService.save_matrix(tenant, [('manager', ['crm'])], actor=owner)

    @pytest.mark.parametrize('role', ['manager', 'employee', 'viewer'])
    def test_non_admin_roles_are_forbidden(self, tenant, make_member, role):
        actor = make_member(tenant, role)

        with pytest.raises(Forbidden):
            RoleMatrixService.save_matrix(tenant, {'manager': ['crm']}, actor=actor)

    def test_admin_of_another_tenant_is_forbidden(self, tenant, other_tenant, make_member):
        foreign_admin = make_member(other_tenant, 'admin')

        with pytest.raises(Forbidden):
            RoleMatrixService.save_matrix(tenant, {'manager': ['crm']}, actor=foreign_admin)

    def test_super_admin_may_save(self, tenant, super_admin):
        matrix = RoleMatrixService.save_matrix(tenant, {'manager': ['crm']}, actor=super_admin)

        assert matrix.is_customized is True


@pytest.mark.django_db
class TestSaveMatrixAtomicity:
    """A failed replace keeps the prior matrix and mode."""

    def test_store_failure_rolls_back(self, tenant, owner):
        RoleMatrixService.save_matrix(tenant, {'manager': ['crm']}, actor=owner)

        with patch.object(
            RoleModuleOverride.objects, 'bulk_create', side_effect=DatabaseError('disk full'),
        ):
            with pytest.raises(StoreFailure):
                RoleMatrixService.save_matrix(tenant, {'employee': ['analytics']}, actor=owner)

        matrix = RoleMatrixService.get_matrix(tenant)
        assert matrix.is_customized is True
        assert matrix.roles['manager'] == {'crm'}
        assert matrix.roles['employee'] == set()
        assert AuditLog.objects.by_action('role_matrix_saved').count() == 1

    def test_read_failure_surfaces_as_store_failure(self, tenant):
        with patch.object(
            RoleModuleOverride.objects, 'for_tenant', side_effect=DatabaseError('gone'),
        ):
            with pytest.raises(StoreFailure) as exc_info:
                RoleMatrixService.get_matrix(tenant)

        assert exc_info.value.code == 'STORE_FAILURE'
