"""
Module access models.

Implements:
- Module (platform catalog of installable application modules)
- Template / TemplateModule (curated module bundles assignable to tenants)
- RoleModuleOverride (tenant-custom role matrix rows)
- UserModuleOverride (per-user grant/revoke exceptions)

Modules and templates are platform reference data and are soft-disabled
through ``is_active`` rather than deleted. Role matrix and user override
rows are only ever written in full-replace batches by their stores.
"""
import logging
from urllib.parse import urlsplit

from django.core.exceptions import ValidationError
from django.db import models

from apps.core.models import BaseModel, BaseModelManager
from apps.modules.registry import (
    ModuleIcon, WorkspaceRoute, resolve_icon, UnknownModuleIcon, InvalidModuleRoute,
)
from apps.rbac.models import TenantRole

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = 'Workspace'


class ModuleManager(BaseModelManager):
    """Manager for Module queries."""

    def active(self):
        """Return modules that are not soft-disabled."""
        return self.filter(is_active=True)

    def ordered(self):
        """Active modules in registry order."""
        return self.active().order_by('display_order', 'name', 'slug')

    def active_slugs(self):
        """Set of every active module id."""
        return set(self.active().values_list('slug', flat=True))

    def by_slugs(self, slugs):
        """Active modules whose id is in ``slugs``."""
        return self.active().filter(slug__in=list(slugs))


class Module(BaseModel):
    """
    An installable application module, addressable by route.

    ``slug`` is the stable module id used on the wire and in every
    resolution. ``route_path`` is normalised to a workspace-rooted path
    on save and never re-derived afterwards.
    """

    slug = models.SlugField(
        unique=True,
        max_length=64,
        help_text="Stable module id (e.g., 'crm', 'finance')"
    )
    name = models.CharField(
        max_length=120,
        help_text="Display name"
    )
    description = models.TextField(
        blank=True,
        help_text="Short description shown in module pickers"
    )
    feature_key = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        db_index=True,
        help_text="Legacy feature key, used only by the feature-key enablement fallback"
    )
    route_path = models.CharField(
        max_length=255,
        help_text="Workspace-rooted route (bare paths are prefixed with /workspace on save)"
    )
    icon = models.CharField(
        max_length=32,
        choices=ModuleIcon.choices,
        default=ModuleIcon.LAYOUT_DASHBOARD,
        help_text="Icon key from the icon registry"
    )
    category = models.CharField(
        max_length=100,
        default=DEFAULT_CATEGORY,
        help_text="Navigation group label"
    )
    display_order = models.IntegerField(
        default=0,
        help_text="Sort position inside its category (lower first)"
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Soft-disable flag; inactive modules are excluded from every resolution"
    )

    objects = ModuleManager()

    class Meta:
        db_table = 'modules'
        ordering = ['display_order', 'name']
        indexes = [
            models.Index(fields=['is_active', 'display_order'], name='module_active_order_idx'),
            models.Index(fields=['category', 'display_order'], name='module_category_order_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.slug})"

    def clean(self):
        super().clean()
        errors = {}
        try:
            self.route_path = str(WorkspaceRoute.parse(self.route_path))
        except InvalidModuleRoute as e:
            errors['route_path'] = e.reason
        try:
            resolve_icon(self.icon)
        except UnknownModuleIcon as e:
            errors['icon'] = str(e)
        if errors:
            raise ValidationError(errors)

    def save(self, *args, **kwargs):
        """Normalise the route and validate the icon before every write."""
        self.route_path = str(WorkspaceRoute.parse(self.route_path))
        self.icon = resolve_icon(self.icon).value
        if not self.category:
            self.category = DEFAULT_CATEGORY
        super().save(*args, **kwargs)

    @property
    def route(self) -> WorkspaceRoute:
        """The stored route as a value object (already normalised)."""
        parts = urlsplit(self.route_path)
        return WorkspaceRoute(path=parts.path, query=parts.query)


class TemplateManager(BaseModelManager):
    """Manager for Template queries."""

    def active(self):
        return self.filter(is_active=True)


class Template(BaseModel):
    """
    A platform-curated bundle of modules assignable to a tenant.

    Explicit TemplateModule links are authoritative. ``feature_keys`` is the
    legacy bundle description, consulted only when the tenant has no feature
    keys of its own and the template has no active links.
    """

    slug = models.SlugField(
        unique=True,
        max_length=64,
        help_text="Stable template id"
    )
    name = models.CharField(
        max_length=120,
        help_text="Display name"
    )
    description = models.TextField(
        blank=True,
        help_text="Who this template is meant for"
    )
    feature_keys = models.JSONField(
        default=list,
        blank=True,
        help_text="Legacy feature keys this template historically granted"
    )
    is_active = models.BooleanField(
        default=True,
        help_text="Whether the template can be assigned to new tenants"
    )
    modules = models.ManyToManyField(
        Module,
        through='TemplateModule',
        related_name='templates',
        blank=True,
        help_text="Curated module membership"
    )

    objects = TemplateManager()

    class Meta:
        db_table = 'module_templates'
        ordering = ['name']

    def __str__(self):
        return self.name

    def get_feature_keys(self):
        return {str(key) for key in (self.feature_keys or []) if key}


class TemplateModuleManager(models.Manager):
    """Manager for TemplateModule queries."""

    def for_template(self, template):
        return self.filter(template=template)


class TemplateModule(BaseModel):
    """Curated membership of a module in a template."""

    template = models.ForeignKey(
        Template,
        on_delete=models.CASCADE,
        related_name='template_modules',
        help_text="Template granting the module"
    )
    module = models.ForeignKey(
        Module,
        on_delete=models.CASCADE,
        related_name='template_links',
        help_text="Module granted by the template"
    )

    objects = TemplateModuleManager()

    class Meta:
        db_table = 'template_modules'
        unique_together = [('template', 'module')]

    def __str__(self):
        return f"{self.template.slug} -> {self.module.slug}"


class RoleModuleOverrideManager(models.Manager):
    """Manager for role matrix rows."""

    def for_tenant(self, tenant):
        return self.filter(tenant=tenant)


class RoleModuleOverride(BaseModel):
    """
    One row of a tenant's custom role matrix: ``role`` may see ``module``.

    Rows are replaced as a whole by RoleMatrixService.save_matrix, which also
    sets the tenant's module access mode in the same transaction.
    """

    tenant = models.ForeignKey(
        'tenants.Tenant',
        on_delete=models.CASCADE,
        related_name='role_module_overrides',
        help_text="Tenant owning this matrix row"
    )
    role = models.CharField(
        max_length=20,
        choices=TenantRole.choices,
        help_text="Role the module is visible to"
    )
    module = models.ForeignKey(
        Module,
        on_delete=models.CASCADE,
        related_name='role_overrides',
        help_text="Module visible to the role"
    )
    created_by = models.ForeignKey(
        'rbac.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        help_text="Admin who saved the matrix"
    )

    objects = RoleModuleOverrideManager()

    class Meta:
        db_table = 'role_module_overrides'
        unique_together = [('tenant', 'role', 'module')]
        indexes = [
            models.Index(fields=['tenant', 'role'], name='rmo_tenant_role_idx'),
        ]

    def __str__(self):
        return f"{self.tenant_id}:{self.role} -> {self.module_id}"


class OverrideType(models.TextChoices):
    GRANT = 'grant', 'Grant'
    REVOKE = 'revoke', 'Revoke'


class UserModuleOverrideManager(models.Manager):
    """Manager for per-user override rows."""

    def for_member(self, tenant, user):
        return self.filter(tenant=tenant, user=user)


class UserModuleOverride(BaseModel):
    """
    A per-user exception on top of role resolution.

    Grants only restore modules the tenant is entitled to; revokes always
    win. Unique per (tenant, user, module).
    """

    tenant = models.ForeignKey(
        'tenants.Tenant',
        on_delete=models.CASCADE,
        related_name='user_module_overrides',
        help_text="Tenant the exception applies in"
    )
    user = models.ForeignKey(
        'rbac.User',
        on_delete=models.CASCADE,
        related_name='module_overrides',
        help_text="User the exception applies to"
    )
    module = models.ForeignKey(
        Module,
        on_delete=models.CASCADE,
        related_name='user_overrides',
        help_text="Module granted or revoked"
    )
    override_type = models.CharField(
        max_length=10,
        choices=OverrideType.choices,
        help_text="grant adds the module within the tenant ceiling; revoke removes it"
    )
    created_by = models.ForeignKey(
        'rbac.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        help_text="Admin who saved the overrides"
    )

    objects = UserModuleOverrideManager()

    class Meta:
        db_table = 'user_module_overrides'
        unique_together = [('tenant', 'user', 'module')]
        indexes = [
            models.Index(fields=['tenant', 'user'], name='umo_tenant_user_idx'),
        ]

    def __str__(self):
        return f"{self.user_id}@{self.tenant_id}: {self.override_type} {self.module_id}"
