"""
DRF permission classes for module access administration.
"""
import logging
from rest_framework.permissions import BasePermission

from apps.core.exceptions import Forbidden, TenantNotFound
from apps.core.logging import SecurityLogger
from apps.core.middleware import set_log_tenant
from apps.modules.services.enablement import EnablementService
from apps.rbac.services import MembershipService

logger = logging.getLogger(__name__)


class IsTenantModuleAdmin(BasePermission):
    """
    Allow only tenant owners/admins and platform super-admins.

    The tenant comes from the ``tenant_id`` URL kwarg and is attached to the
    request as ``request.tenant``. A non-admin caller raises Forbidden (403),
    rendered by the platform exception handler. An unknown tenant raises
    TenantNotFound (404) for super-admins only; everyone else gets the same
    403 as for a tenant they cannot administer.

    Usage in views:
        class MyView(APIView):
            permission_classes = [IsAuthenticated, IsTenantModuleAdmin]
            admin_action = 'view_role_matrix'
    """

    def has_permission(self, request, view):
        action = getattr(view, 'admin_action', None) or f"{request.method.lower()}_{view.__class__.__name__}"
        tenant_id = view.kwargs.get('tenant_id')

        try:
            tenant = EnablementService.get_tenant(tenant_id)
        except TenantNotFound:
            if request.user.is_superuser:
                raise
            SecurityLogger.log_permission_denied(
                user=request.user,
                tenant=None,
                action=action,
                ip_address=request.META.get('REMOTE_ADDR'),
            )
            raise Forbidden(
                'Only tenant owners, admins or platform super-admins may change module access',
                details={'action': action}
            )

        request.tenant = tenant
        set_log_tenant(tenant.id)

        MembershipService.require_module_admin(tenant, request.user, action, request)
        return True
