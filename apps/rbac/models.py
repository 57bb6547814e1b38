"""
RBAC models for multi-tenant access control.

Implements:
- Global User identity (can work across multiple tenants); ``is_superuser``
  marks the platform super-admin that bypasses module resolution
- TenantUser membership carrying the member's role in that tenant
- AuditLog (audit trail of admin changes to module access settings)
"""
import logging
from django.db import models, transaction
from django.contrib.auth.hashers import make_password, check_password
from apps.core.models import BaseModel, BaseModelManager

logger = logging.getLogger(__name__)


class TenantRole(models.TextChoices):
    """Roles a member can hold inside a tenant."""
    OWNER = 'owner', 'Owner'
    ADMIN = 'admin', 'Admin'
    MANAGER = 'manager', 'Manager'
    EMPLOYEE = 'employee', 'Employee'
    VIEWER = 'viewer', 'Viewer'

    @classmethod
    def admin_roles(cls):
        """Roles allowed to edit module access settings."""
        return {cls.OWNER.value, cls.ADMIN.value}


class UserManager(BaseModelManager):
    """
    Manager for User queries.

    Compatible with Django's authentication system and admin interface.
    """

    def active(self):
        """Return only active users."""
        return self.filter(is_active=True)

    def by_email(self, email):
        """Find user by email."""
        return self.filter(email=self.normalize_email(email)).first()

    def create_user(self, email, password=None, **extra_fields):
        """
        Create a new user with hashed password.

        This method is compatible with Django's authentication system.
        """
        if not email:
            raise ValueError('Email address is required')

        email = self.normalize_email(email)
        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('is_superuser', False)

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        """
        Create a platform super-admin.

        This method is required for Django's createsuperuser command.
        """
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)

        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True')

        return self.create_user(email, password, **extra_fields)

    @staticmethod
    def normalize_email(email):
        """Normalize the email address by lowercasing the domain part."""
        email = (email or '').strip()
        try:
            email_name, domain_part = email.rsplit('@', 1)
        except ValueError:
            return email
        return email_name + '@' + domain_part.lower()

    def get_by_natural_key(self, email):
        """Get user by natural key (email)."""
        return self.get(**{self.model.USERNAME_FIELD: email})


class User(BaseModel):
    """
    Global user identity - can belong to multiple tenants.

    Authentication happens at the User level, authorization at the
    TenantUser level. This is the AUTH_USER_MODEL for the application.
    """

    email = models.EmailField(
        unique=True,
        help_text="User email address (unique globally)"
    )
    password_hash = models.CharField(
        max_length=255,
        blank=True,
        help_text="Hashed password",
        db_column='password_hash'
    )

    # Status
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether user account is active"
    )
    is_superuser = models.BooleanField(
        default=False,
        help_text="Platform super-admin: sees every module in every tenant"
    )

    # Profile
    first_name = models.CharField(
        max_length=100,
        blank=True,
        help_text="User first name"
    )
    last_name = models.CharField(
        max_length=100,
        blank=True,
        help_text="User last name"
    )
    last_login = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Last login timestamp"
    )

    USERNAME_FIELD = 'email'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        db_table = 'users'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['is_active', 'created_at'], name='user_active_created_idx'),
        ]

    def __str__(self):
        return self.email

    @property
    def password(self):
        """Alias for password_hash (Django admin expects a 'password' attribute)."""
        return self.password_hash

    @password.setter
    def password(self, value):
        self.password_hash = value

    def check_password(self, raw_password):
        """Check if provided password matches stored hash."""
        return check_password(raw_password, self.password_hash)

    def set_password(self, raw_password):
        """Set user password (hashes automatically)."""
        self.password_hash = make_password(raw_password)

    def get_username(self):
        return self.email

    def get_full_name(self):
        """Return full name or email if name not set."""
        if self.first_name or self.last_name:
            return f"{self.first_name} {self.last_name}".strip()
        return self.email

    def get_short_name(self):
        return self.first_name or self.email

    @property
    def is_authenticated(self):
        """Always True for User instances (Django auth compatibility)."""
        return True

    @property
    def is_anonymous(self):
        """Always False for User instances (Django auth compatibility)."""
        return False

    @property
    def is_staff(self):
        """Super-admins are the only Django admin users."""
        return self.is_superuser

    def has_perm(self, perm, obj=None):
        return self.is_active and self.is_superuser

    def has_perms(self, perm_list, obj=None):
        return self.is_active and self.is_superuser

    def has_module_perms(self, app_label):
        return self.is_active and self.is_superuser

    def natural_key(self):
        return (self.email,)


class TenantUserManager(BaseModelManager):
    """Manager for TenantUser queries."""

    def for_tenant(self, tenant):
        """Get all active memberships of a tenant."""
        return self.filter(tenant=tenant, is_active=True)

    def for_user(self, user):
        """Get all active memberships of a user."""
        return self.filter(user=user, is_active=True)

    def get_membership(self, tenant, user):
        """Get the active membership of ``user`` in ``tenant``, or None."""
        return self.filter(tenant=tenant, user=user, is_active=True).first()


class TenantUser(BaseModel):
    """
    Association between User and Tenant.

    Represents a user's membership in a specific tenant and the role
    they hold there. A user can have multiple TenantUser records
    (one per tenant).
    """

    INVITE_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('accepted', 'Accepted'),
        ('revoked', 'Revoked'),
    ]

    tenant = models.ForeignKey(
        'tenants.Tenant',
        on_delete=models.CASCADE,
        related_name='tenant_users',
        help_text="Tenant this membership belongs to"
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='tenant_memberships',
        help_text="User who is a member"
    )
    role = models.CharField(
        max_length=20,
        choices=TenantRole.choices,
        default=TenantRole.EMPLOYEE,
        db_index=True,
        help_text="Role of the member inside this tenant"
    )

    # Status
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether membership is active"
    )
    invite_status = models.CharField(
        max_length=20,
        choices=INVITE_STATUS_CHOICES,
        default='accepted',
        db_index=True,
        help_text="Invitation status"
    )

    objects = TenantUserManager()

    class Meta:
        db_table = 'tenant_users'
        unique_together = [('tenant', 'user')]
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['tenant', 'user', 'is_active'], name='tu_tenant_user_active_idx'),
            models.Index(fields=['user', 'is_active'], name='tu_user_active_idx'),
        ]

    def __str__(self):
        return f"{self.user.email} @ {self.tenant.name} ({self.role})"

    @property
    def is_admin(self):
        """Whether this member may edit module access settings."""
        return self.role in TenantRole.admin_roles()

    def revoke(self):
        """Revoke membership."""
        self.invite_status = 'revoked'
        self.is_active = False
        self.save(update_fields=['invite_status', 'is_active', 'updated_at'])


class AuditLogQuerySet(models.QuerySet):
    """Chainable AuditLog filters with tenant scoping."""

    def for_tenant(self, tenant):
        """Get audit logs for a specific tenant."""
        return self.filter(tenant=tenant)

    def by_action(self, action):
        """Get audit logs for a specific action."""
        return self.filter(action=action)

    def by_target(self, target_type, target_id=None):
        """Get audit logs for a specific target type and optionally target ID."""
        qs = self.filter(target_type=target_type)
        if target_id:
            qs = qs.filter(target_id=target_id)
        return qs


class AuditLog(BaseModel):
    """
    Audit trail of admin changes to module access settings.

    Records role matrix and user override saves. Access *decisions*
    are never written here.
    """

    tenant = models.ForeignKey(
        'tenants.Tenant',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='audit_logs',
        help_text="Tenant this action belongs to (null for platform-level)"
    )
    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs',
        help_text="User who performed the action (null for system actions)"
    )

    # Action Details
    action = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Action performed (e.g., 'role_matrix_saved', 'module_overrides_saved')"
    )
    target_type = models.CharField(
        max_length=50,
        db_index=True,
        help_text="Type of target entity (e.g., 'Tenant', 'TenantUser')"
    )
    target_id = models.UUIDField(
        null=True,
        blank=True,
        help_text="ID of target entity"
    )

    # Change Tracking
    diff = models.JSONField(
        default=dict,
        blank=True,
        help_text="Before/after changes in JSON format"
    )

    # Request Context
    ip_address = models.GenericIPAddressField(
        null=True,
        blank=True,
        help_text="IP address of the request"
    )
    user_agent = models.TextField(
        blank=True,
        help_text="User agent string"
    )
    request_id = models.CharField(
        max_length=64,
        blank=True,
        db_index=True,
        help_text="Request ID for tracing"
    )

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Additional context metadata"
    )

    objects = models.Manager.from_queryset(AuditLogQuerySet)()

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['tenant', 'created_at'], name='audit_tenant_created_idx'),
            models.Index(fields=['target_type', 'target_id'], name='audit_target_idx'),
            models.Index(fields=['tenant', 'action', 'created_at'], name='audit_tenant_action_idx'),
        ]

    def __str__(self):
        user_str = self.user.email if self.user else 'System'
        tenant_str = self.tenant.name if self.tenant else 'Platform'
        return f"{tenant_str} - {user_str} - {self.action}"

    @classmethod
    def log_action(cls, action, user=None, tenant=None, target_type=None,
                   target_id=None, diff=None, metadata=None, request=None):
        """
        Convenience method to create audit log entry.

        The insert runs in its own savepoint, so a failed audit row is
        logged and dropped without aborting the caller's transaction.

        Args:
            action: Action being performed
            user: User performing the action
            tenant: Tenant context
            target_type: Type of target entity
            target_id: ID of target entity
            diff: Before/after changes
            metadata: Additional context
            request: Request object (for IP, user agent, request ID)

        Returns:
            AuditLog instance or None
        """
        if user is not None and not getattr(user, 'is_authenticated', False):
            user = None

        log_data = {
            'action': action,
            'user': user,
            'tenant': tenant,
            'target_type': target_type or '',
            'target_id': target_id,
            'diff': diff or {},
            'metadata': metadata or {},
        }

        if request is not None:
            log_data['ip_address'] = cls._get_client_ip(request)
            log_data['user_agent'] = request.META.get('HTTP_USER_AGENT', '')
            log_data['request_id'] = getattr(request, 'request_id', None) or ''

        try:
            with transaction.atomic():
                return cls.objects.create(**log_data)
        except Exception as e:
            logger.error(
                f"Failed to create audit log: {str(e)}",
                extra={'action': action, 'tenant_id': str(tenant.id) if tenant else None},
                exc_info=True
            )
            return None

    @staticmethod
    def _get_client_ip(request):
        """Extract client IP from request."""
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            return x_forwarded_for.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR')
