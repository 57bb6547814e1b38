"""
Module access REST API views.

Implements endpoints for:
- Workspace navigation (resolved and loading states)
- Registry listing
- Role matrix read / full replace
- Per-user override read / full replace
- Enablement diagnostics
"""
import logging

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.core.exceptions import Forbidden, UserNotInTenant, ValidationError
from apps.core.middleware import set_log_tenant
from apps.modules.permissions import IsTenantModuleAdmin
from apps.modules.serializers import (
    ModuleSerializer, NavigationSerializer, NavigationQuerySerializer,
    RoleMatrixSerializer, RoleMatrixUpdateSerializer,
    ModuleOverrideSerializer, ModuleOverridesSerializer, EnabledModulesSerializer,
)
from apps.modules.services import (
    AccessResolver, EnablementService, ModuleRegistryService, NavigationBuilder,
    RoleMatrixService, UserOverrideService,
)
from apps.modules.services.resolver import is_super_admin
from apps.rbac.services import MembershipService

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: OpenApiTypes.OBJECT,
    401: OpenApiTypes.OBJECT,
    403: OpenApiTypes.OBJECT,
    404: OpenApiTypes.OBJECT,
    503: OpenApiTypes.OBJECT,
}


@extend_schema_view(
    get=extend_schema(
        tags=['Modules - Navigation'],
        summary='Resolve workspace navigation',
        description='''
Resolve the modules a user may see in a tenant and return them as grouped
navigation links. Every link carries `tenant_id` as a query parameter.

Defaults to the caller. Passing `user` previews another member's
navigation and requires owner/admin or platform super-admin.

A `state` of `ready` with no groups means the user resolved to no modules.

**Example curl:**
```bash
curl "https://api.example.com/v1/modules?tenant={tenant_id}" \\
  -H "Authorization: Bearer {token}"
```
        ''',
        parameters=[
            OpenApiParameter('tenant', OpenApiTypes.UUID, OpenApiParameter.QUERY, required=True),
            OpenApiParameter('user', OpenApiTypes.UUID, OpenApiParameter.QUERY),
            OpenApiParameter('active_path', OpenApiTypes.STR, OpenApiParameter.QUERY),
        ],
        responses={200: NavigationSerializer, **ERROR_RESPONSES},
    )
)
class NavigationView(APIView):
    """
    GET /v1/modules

    Effective modules for (tenant, user) rendered as navigation.
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = NavigationQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        tenant = EnablementService.get_tenant(query.validated_data['tenant'])
        set_log_tenant(tenant.id)
        caller = request.user

        if not is_super_admin(caller) and MembershipService.get_membership(tenant, caller) is None:
            raise Forbidden(
                'You are not a member of this tenant',
                details={'tenant_id': str(tenant.id)}
            )

        target = caller
        target_id = query.validated_data.get('user')
        if target_id and target_id != caller.id:
            MembershipService.require_module_admin(tenant, caller, 'preview_navigation', request)
            target = MembershipService.get_active_user(target_id)
            if target is None:
                raise UserNotInTenant(
                    'User is not a member of this tenant',
                    details={'tenant_id': str(tenant.id), 'user_id': str(target_id)}
                )

        module_ids = AccessResolver.resolve_for_member(tenant, target)
        navigation = NavigationBuilder.build(
            module_ids,
            tenant_id=tenant.id,
            role=MembershipService.get_role(tenant, target),
            is_super_admin=is_super_admin(target),
            active_path=query.validated_data.get('active_path'),
        )

        payload = navigation.to_dict()
        payload.update({
            'tenant_id': str(tenant.id),
            'user_id': str(target.id),
            'module_ids': sorted(module_ids),
        })
        return Response(payload)


@extend_schema_view(
    get=extend_schema(
        tags=['Modules - Navigation'],
        summary='Navigation loading state',
        description='Placeholder navigation shown while resolution is in flight.',
        responses={200: NavigationSerializer, 401: OpenApiTypes.OBJECT},
    )
)
class NavigationLoadingView(APIView):
    """
    GET /v1/modules/loading
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(NavigationBuilder.loading().to_dict())


@extend_schema_view(
    get=extend_schema(
        tags=['Modules - Registry'],
        summary='List registry modules',
        description='Every active module in registry order.',
        responses={200: ModuleSerializer(many=True), 401: OpenApiTypes.OBJECT, 503: OpenApiTypes.OBJECT},
    )
)
class ModuleRegistryView(APIView):
    """
    GET /v1/modules/registry
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        modules = ModuleRegistryService.list_modules()
        return Response(ModuleSerializer(modules, many=True).data)


@extend_schema_view(
    get=extend_schema(
        tags=['Modules - Role Matrix'],
        summary='Get tenant role matrix',
        description='''
Every role with the module ids it may see, whether the tenant is in custom
mode, and the tenant's enabled modules (the ceiling editors pick from).

**Required role:** owner, admin or platform super-admin
        ''',
        responses={200: RoleMatrixSerializer, **ERROR_RESPONSES},
    ),
    put=extend_schema(
        tags=['Modules - Role Matrix'],
        summary='Replace tenant role matrix',
        description='''
Atomically replace the whole matrix. Roles omitted from `role_modules` get
no rows. A non-empty matrix switches the tenant to custom mode; an empty one
restores default mode (every role sees every enabled module).

**Example curl:**
```bash
curl -X PUT https://api.example.com/v1/tenants/{tenant_id}/role-matrix \\
  -H "Authorization: Bearer {token}" \\
  -H "Content-Type: application/json" \\
  -d '{"role_modules": {"manager": ["crm"], "employee": []}}'
```
        ''',
        request=RoleMatrixUpdateSerializer,
        responses={200: RoleMatrixSerializer, **ERROR_RESPONSES},
    ),
)
class RoleMatrixView(APIView):
    """
    GET|PUT /v1/tenants/{tenant_id}/role-matrix
    """

    permission_classes = [IsAuthenticated, IsTenantModuleAdmin]
    admin_action = 'role_matrix'

    def get(self, request, tenant_id):
        return Response(self._payload(request.tenant, RoleMatrixService.get_matrix(request.tenant)))

    def put(self, request, tenant_id):
        serializer = RoleMatrixUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        matrix = RoleMatrixService.save_matrix(
            request.tenant,
            serializer.validated_data['role_modules'],
            actor=request.user,
            request=request,
        )
        return Response(self._payload(request.tenant, matrix))

    @staticmethod
    def _payload(tenant, matrix):
        return {
            'role_modules': matrix.as_lists(),
            'is_customized': matrix.is_customized,
            'tenant_modules': sorted(EnablementService.enabled_modules(tenant)),
        }


@extend_schema_view(
    get=extend_schema(
        tags=['Modules - User Overrides'],
        summary="Get a user's module overrides",
        responses={200: ModuleOverridesSerializer, **ERROR_RESPONSES},
    ),
    put=extend_schema(
        tags=['Modules - User Overrides'],
        summary="Replace a user's module overrides",
        description='''
Atomically replace the user's grant/revoke list. The body is an array of
`{"module_id", "override_type"}` (an object with an `overrides` array is
also accepted). A module listed twice keeps its last entry.

Grants only take effect for modules the tenant has enabled; revokes always
win. The user must be a member of the tenant.
        ''',
        request=ModuleOverrideSerializer(many=True),
        responses={200: ModuleOverridesSerializer, **ERROR_RESPONSES},
    ),
)
class UserModuleOverridesView(APIView):
    """
    GET|PUT /v1/tenants/{tenant_id}/users/{user_id}/module-overrides
    """

    permission_classes = [IsAuthenticated, IsTenantModuleAdmin]
    admin_action = 'module_overrides'

    def get(self, request, tenant_id, user_id):
        tenant = request.tenant
        target = MembershipService.get_active_user(user_id)
        if target is None:
            raise UserNotInTenant(
                'User is not a member of this tenant',
                details={'tenant_id': str(tenant.id), 'user_id': str(user_id)}
            )
        MembershipService.require_member(tenant, target)

        overrides = UserOverrideService.get_overrides(tenant, target)
        return Response({'overrides': [override.as_dict() for override in overrides]})

    def put(self, request, tenant_id, user_id):
        body = request.data
        if isinstance(body, dict):
            body = body.get('overrides')
        if not isinstance(body, list):
            raise ValidationError(
                'Expected an array of overrides or an object with an "overrides" array'
            )

        serializer = ModuleOverrideSerializer(data=body, many=True)
        serializer.is_valid(raise_exception=True)

        overrides = UserOverrideService.save_overrides(
            request.tenant,
            user_id,
            serializer.validated_data,
            actor=request.user,
            request=request,
        )
        return Response({'overrides': [override.as_dict() for override in overrides]})


@extend_schema_view(
    get=extend_schema(
        tags=['Modules - Diagnostics'],
        summary='Tenant enablement diagnostics',
        description='''
The tenant's enabled module ids and the rule that produced them:
`template`, `feature_keys`, or `all_modules` (no template modules and no
feature keys; every registry module is enabled).

**Required role:** owner, admin or platform super-admin
        ''',
        responses={200: EnabledModulesSerializer, **ERROR_RESPONSES},
    )
)
class EnabledModulesView(APIView):
    """
    GET /v1/tenants/{tenant_id}/enabled-modules
    """

    permission_classes = [IsAuthenticated, IsTenantModuleAdmin]
    admin_action = 'enablement_diagnostics'

    def get(self, request, tenant_id):
        tenant = request.tenant
        result = EnablementService.resolve(tenant)
        return Response({
            'tenant_id': str(tenant.id),
            'source': result.source,
            'module_ids': sorted(result.module_ids),
            'feature_keys': sorted(result.feature_keys),
            'module_access_mode': tenant.module_access_mode,
        })
