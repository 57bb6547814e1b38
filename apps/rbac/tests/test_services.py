"""
Unit tests for RBAC services.

Tests JWT issuance and validation, membership lookup and the module
administration check.
"""
import logging
import uuid
from unittest.mock import patch

import pytest
from django.db import DatabaseError
from django.test import RequestFactory

from apps.core.exceptions import Forbidden, StoreFailure, UserNotInTenant
from apps.rbac.models import TenantUser, User
from apps.rbac.services import AuthService, MembershipService


@pytest.mark.django_db
class TestAuthService:
    """Test JWT round trips."""

    def test_generate_and_resolve(self, manager):
        token = AuthService.generate_jwt(manager)

        payload = AuthService.validate_jwt(token)
        assert payload['user_id'] == str(manager.id)
        assert payload['email'] == manager.email
        assert AuthService.get_user_from_jwt(token) == manager

    def test_invalid_token(self):
        assert AuthService.validate_jwt('garbage') is None
        assert AuthService.get_user_from_jwt('garbage') is None

    @pytest.mark.parametrize('payload', [{}, {'user_id': 'not-a-uuid'}, {'user_id': '00000000-0000-0000-0000-000000000000'}])
    def test_payload_without_live_user(self, payload):
        assert AuthService.get_user_from_payload(payload) is None


@pytest.mark.django_db
class TestMembershipService:
    """Test membership lookups."""

    def test_get_role(self, tenant, manager, outsider):
        assert MembershipService.get_role(tenant, manager) == 'manager'
        assert MembershipService.get_role(tenant, outsider) is None
        assert MembershipService.get_role(tenant, None) is None

    def test_require_member(self, tenant, employee, outsider):
        assert MembershipService.require_member(tenant, employee).user == employee

        with pytest.raises(UserNotInTenant) as exc_info:
            MembershipService.require_member(tenant, outsider)
        assert exc_info.value.details['user_id'] == str(outsider.id)

    def test_can_manage_modules(self, tenant, owner, admin_user, manager, employee, super_admin, outsider):
        assert MembershipService.can_manage_modules(tenant, owner) is True
        assert MembershipService.can_manage_modules(tenant, admin_user) is True
        assert MembershipService.can_manage_modules(tenant, super_admin) is True
        assert MembershipService.can_manage_modules(tenant, manager) is False
        assert MembershipService.can_manage_modules(tenant, employee) is False
        assert MembershipService.can_manage_modules(tenant, outsider) is False
        assert MembershipService.can_manage_modules(tenant, None) is False

    def test_owner_of_other_tenant_cannot_manage(self, tenant, other_tenant, make_member):
        foreign_owner = make_member(other_tenant, 'owner')

        assert MembershipService.can_manage_modules(tenant, foreign_owner) is False

    def test_require_module_admin_logs_denial(self, tenant, manager, caplog):
        request = RequestFactory().put('/v1/tenants/x/role-matrix', REMOTE_ADDR='198.51.100.4')

        with caplog.at_level(logging.WARNING, logger='security'):
            with pytest.raises(Forbidden) as exc_info:
                MembershipService.require_module_admin(tenant, manager, 'save_role_matrix', request)

        assert exc_info.value.details == {'action': 'save_role_matrix'}
        record = next(r for r in caplog.records if r.name == 'security')
        assert record.event_type == 'module_admin_denied'
        assert record.ip_address == '198.51.100.4'

    def test_require_module_admin_allows_owner(self, tenant, owner):
        assert MembershipService.require_module_admin(tenant, owner, 'save_role_matrix') is None

    def test_get_active_user(self, manager):
        assert MembershipService.get_active_user(manager.id) == manager
        assert MembershipService.get_active_user(uuid.uuid4()) is None

        manager.is_active = False
        manager.save()
        assert MembershipService.get_active_user(manager.id) is None

    def test_membership_store_failure(self, tenant, manager):
        with patch.object(TenantUser.objects, 'get_membership', side_effect=DatabaseError('down')):
            with pytest.raises(StoreFailure) as exc_info:
                MembershipService.require_member(tenant, manager)

        assert exc_info.value.details == {'operation': 'get_membership'}

    def test_user_lookup_store_failure(self, manager):
        with patch.object(User.objects, 'active', side_effect=DatabaseError('down')):
            with pytest.raises(StoreFailure):
                MembershipService.get_active_user(manager.id)
