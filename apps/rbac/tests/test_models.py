"""
Unit tests for RBAC models.

Tests core functionality of User, TenantUser and AuditLog models.
"""
import pytest
from unittest.mock import patch
from django.db import DatabaseError
from django.test import RequestFactory
from apps.rbac.models import User, TenantUser, TenantRole, AuditLog
from apps.rbac.backends import EmailAuthBackend


@pytest.mark.django_db
class TestUserModel:
    """Test User model functionality."""

    def test_create_user(self):
        """Test creating a user with hashed password."""
        user = User.objects.create_user(
            email='test@EXAMPLE.com',
            password='testpass123'
        )

        assert user.email == 'test@example.com'
        assert user.is_active is True
        assert user.is_superuser is False
        assert user.password_hash != 'testpass123'  # Should be hashed
        assert user.check_password('testpass123') is True
        assert user.check_password('wrongpass') is False

    def test_create_user_requires_email(self):
        with pytest.raises(ValueError):
            User.objects.create_user(email='', password='testpass123')

    def test_create_superuser(self):
        """Test platform super-admins are Django staff."""
        user = User.objects.create_superuser(email='root@example.com', password='testpass123')

        assert user.is_superuser is True
        assert user.is_staff is True
        assert user.has_perm('modules.change_module') is True

    def test_regular_user_has_no_admin_perms(self, manager):
        assert manager.is_staff is False
        assert manager.has_module_perms('modules') is False

    def test_full_name(self):
        user = User.objects.create_user(email='ana@example.com', first_name='Ana', last_name='Ruiz')

        assert user.get_full_name() == 'Ana Ruiz'
        assert User.objects.create_user(email='x@example.com').get_full_name() == 'x@example.com'


@pytest.mark.django_db
class TestTenantUserModel:
    """Test membership lookups and roles."""

    def test_get_membership(self, tenant, manager):
        membership = TenantUser.objects.get_membership(tenant, manager)

        assert membership.role == TenantRole.MANAGER
        assert membership.is_admin is False

    def test_admin_roles(self, tenant, owner, admin_user):
        assert TenantUser.objects.get_membership(tenant, owner).is_admin is True
        assert TenantUser.objects.get_membership(tenant, admin_user).is_admin is True
        assert TenantRole.admin_roles() == {'owner', 'admin'}

    def test_revoked_membership_is_not_found(self, tenant, employee):
        TenantUser.objects.get_membership(tenant, employee).revoke()

        assert TenantUser.objects.get_membership(tenant, employee) is None
        assert TenantUser.objects.for_tenant(tenant).filter(user=employee).count() == 0

    def test_membership_is_tenant_scoped(self, tenant, other_tenant, manager):
        assert TenantUser.objects.get_membership(other_tenant, manager) is None


@pytest.mark.django_db
class TestAuditLogModel:
    """Test audit trail entries."""

    def test_log_action_with_request_context(self, tenant, owner):
        request = RequestFactory().put(
            '/v1/tenants/x/role-matrix',
            HTTP_X_FORWARDED_FOR='203.0.113.7, 10.0.0.1',
            HTTP_USER_AGENT='pytest',
        )
        request.request_id = 'req-9'

        entry = AuditLog.log_action(
            action='role_matrix_saved',
            user=owner,
            tenant=tenant,
            target_type='Tenant',
            target_id=tenant.id,
            diff={'after': {'mode': 'custom'}},
            request=request,
        )

        assert entry.ip_address == '203.0.113.7'
        assert entry.user_agent == 'pytest'
        assert entry.request_id == 'req-9'
        assert AuditLog.objects.for_tenant(tenant).by_target('Tenant', tenant.id).get() == entry

    def test_log_action_failure_returns_none(self, tenant, owner):
        with patch.object(AuditLog.objects, 'create', side_effect=DatabaseError('audit table locked')):
            entry = AuditLog.log_action(action='role_matrix_saved', user=owner, tenant=tenant)

        assert entry is None


@pytest.mark.django_db
class TestEmailAuthBackend:
    """Test the admin login backend."""

    def test_authenticate(self, super_admin):
        backend = EmailAuthBackend()

        assert backend.authenticate(None, username='root@EXAMPLE.com', password='Str0ng-pass-for-tests') == super_admin
        assert backend.authenticate(None, username='root@example.com', password='wrong') is None
        assert backend.authenticate(None, username='nobody@example.com', password='x') is None

    def test_inactive_user_rejected(self, super_admin):
        super_admin.is_active = False
        super_admin.save()

        assert EmailAuthBackend().authenticate(
            None, username='root@example.com', password='Str0ng-pass-for-tests'
        ) is None

    def test_get_user(self, super_admin):
        assert EmailAuthBackend().get_user(super_admin.pk) == super_admin
