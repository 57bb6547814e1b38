"""
Module access serializers for REST API endpoints.

Provides serialization for:
- Registry listing
- Navigation payloads (ready and loading)
- Role matrix reads and full-replace writes
- User override reads and full-replace writes
- Enablement diagnostics
"""
from rest_framework import serializers

from apps.modules.models import Module, OverrideType
from apps.rbac.models import TenantRole


class ModuleSerializer(serializers.ModelSerializer):
    """Serializer for registry entries. ``id`` is the stable module id."""

    id = serializers.CharField(source='slug', read_only=True)
    route = serializers.CharField(source='route_path', read_only=True)

    class Meta:
        model = Module
        fields = [
            'id', 'name', 'description', 'route', 'icon',
            'category', 'display_order', 'feature_key',
        ]
        read_only_fields = fields


class NavLinkSerializer(serializers.Serializer):
    module_id = serializers.CharField()
    label = serializers.CharField()
    href = serializers.CharField()
    icon = serializers.CharField()
    active = serializers.BooleanField()
    pinned = serializers.BooleanField()


class NavGroupSerializer(serializers.Serializer):
    label = serializers.CharField()
    links = NavLinkSerializer(many=True)


class NavigationSerializer(serializers.Serializer):
    """Serializer for Navigation; ``state`` is 'ready' or 'loading'."""

    state = serializers.ChoiceField(choices=['ready', 'loading'])
    placeholder_rows = serializers.IntegerField()
    groups = NavGroupSerializer(many=True)
    tenant_id = serializers.UUIDField(required=False)
    user_id = serializers.UUIDField(required=False)
    module_ids = serializers.ListField(child=serializers.CharField(), required=False)


class NavigationQuerySerializer(serializers.Serializer):
    """Query parameters for GET /v1/modules."""

    tenant = serializers.UUIDField(required=True)
    user = serializers.UUIDField(required=False)
    active_path = serializers.CharField(required=False, allow_blank=True, max_length=512)


class RoleMatrixSerializer(serializers.Serializer):
    """Role matrix response."""

    role_modules = serializers.DictField(
        child=serializers.ListField(child=serializers.CharField())
    )
    is_customized = serializers.BooleanField()
    tenant_modules = serializers.ListField(child=serializers.CharField())


class RoleMatrixUpdateSerializer(serializers.Serializer):
    """
    Full-replace body for PUT /v1/tenants/{id}/role-matrix.

    Roles omitted from ``role_modules`` are saved with no rows.
    """

    role_modules = serializers.DictField(
        child=serializers.ListField(child=serializers.CharField(max_length=64), allow_empty=True)
    )

    def validate_role_modules(self, value):
        unknown = sorted(role for role in value if role not in TenantRole.values)
        if unknown:
            raise serializers.ValidationError(
                f"Unknown roles: {', '.join(unknown)}. Known roles: {', '.join(TenantRole.values)}"
            )
        return value


class ModuleOverrideSerializer(serializers.Serializer):
    """One user override entry."""

    module_id = serializers.CharField(max_length=64)
    override_type = serializers.ChoiceField(choices=OverrideType.choices)


class ModuleOverridesSerializer(serializers.Serializer):
    """Override list wrapper used by GET and by the object form of PUT."""

    overrides = ModuleOverrideSerializer(many=True)


class EnabledModulesSerializer(serializers.Serializer):
    """Enablement diagnostics response."""

    tenant_id = serializers.UUIDField()
    source = serializers.ChoiceField(choices=['template', 'feature_keys', 'all_modules'])
    module_ids = serializers.ListField(child=serializers.CharField())
    feature_keys = serializers.ListField(child=serializers.CharField())
    module_access_mode = serializers.CharField()
