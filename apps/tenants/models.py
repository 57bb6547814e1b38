"""
Tenant models for multi-tenant isolation.

A tenant ("company") is the unit of module entitlement: it may be assigned a
curated module template, may carry legacy feature keys from before template
curation existed, and records whether its role visibility follows the default
rule or a tenant-custom role matrix.
"""
from django.db import models
from apps.core.models import BaseModel, BaseModelManager


class ModuleAccessMode(models.TextChoices):
    """How role visibility is decided for a tenant."""
    DEFAULT = 'default', 'Default (every role sees every enabled module)'
    CUSTOM = 'custom', 'Custom (roles see only their role matrix rows)'


class TenantManager(BaseModelManager):
    """Manager for tenant-scoped queries."""

    def active(self):
        """Return only active tenants."""
        return self.filter(status__in=['active', 'trial'])

    def by_slug(self, slug):
        """Find tenant by slug."""
        return self.filter(slug=slug).first()


class Tenant(BaseModel):
    """
    Tenant model representing an isolated customer organization.

    Each tenant has:
    - An optional module template (the curated entitlement path)
    - Optional legacy feature keys (the pre-template fallback path)
    - A module access mode, switched together with role matrix writes
    """

    STATUS_CHOICES = [
        ('active', 'Active'),
        ('trial', 'Free Trial'),
        ('suspended', 'Suspended'),
        ('canceled', 'Canceled'),
    ]

    # Basic Information
    name = models.CharField(
        max_length=255,
        help_text="Business name"
    )
    slug = models.SlugField(
        unique=True,
        max_length=100,
        help_text="URL-friendly identifier"
    )
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default='active',
        db_index=True,
        help_text="Current tenant status"
    )

    # Module Entitlement
    template = models.ForeignKey(
        'modules.Template',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='tenants',
        help_text="Curated module template assigned to this tenant"
    )
    feature_keys = models.JSONField(
        default=list,
        blank=True,
        help_text="Legacy feature keys (e.g., ['crm', 'finance']) used when the template has no module links"
    )
    module_access_mode = models.CharField(
        max_length=10,
        choices=ModuleAccessMode.choices,
        default=ModuleAccessMode.DEFAULT,
        help_text="Role visibility mode, written in the same transaction as the role matrix"
    )

    # Contact Information
    contact_email = models.EmailField(
        null=True,
        blank=True,
        help_text="Primary contact email for notifications"
    )

    # Custom manager
    objects = TenantManager()

    class Meta:
        db_table = 'tenants'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='tenant_status_created_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.slug})"

    def is_active(self):
        """Check if tenant is in a usable status."""
        return self.status in ('active', 'trial')

    @property
    def is_customized(self):
        """Whether the tenant uses a custom role matrix."""
        return self.module_access_mode == ModuleAccessMode.CUSTOM

    def get_feature_keys(self):
        """Return the tenant's own legacy feature keys as a set of strings."""
        return {str(key) for key in (self.feature_keys or []) if key}
