"""
RBAC and Authentication services.

Implements:
- AuthService: JWT issuance (for tooling and tests) and validation
- MembershipService: tenant membership lookup and admin checks
"""
import logging
from typing import Optional, Dict, Any
from datetime import datetime, timedelta, timezone as dt_timezone
from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
import jwt

from apps.core.exceptions import Forbidden, UserNotInTenant, store_errors_as_failure
from apps.core.logging import SecurityLogger
from apps.rbac.models import User, TenantUser, TenantRole

logger = logging.getLogger(__name__)


class AuthService:
    """
    Service for JWT authentication.

    Sessions are issued by the identity provider; this service validates
    the resulting bearer tokens. ``generate_jwt`` exists for operators and
    test fixtures that need a token signed with the shared secret.
    """

    @classmethod
    def generate_jwt(cls, user: User) -> str:
        """
        Generate JWT token for a user.

        Args:
            user: User instance

        Returns:
            JWT token string
        """
        now = datetime.now(dt_timezone.utc)
        payload = {
            'user_id': str(user.id),
            'email': user.email,
            'exp': now + timedelta(hours=getattr(settings, 'JWT_EXPIRATION_HOURS', 24)),
            'iat': now,
        }

        return jwt.encode(
            payload,
            settings.JWT_SECRET_KEY,
            algorithm=getattr(settings, 'JWT_ALGORITHM', 'HS256')
        )

    @classmethod
    def validate_jwt(cls, token: str) -> Optional[Dict[str, Any]]:
        """
        Validate JWT token and return payload.

        Args:
            token: JWT token string

        Returns:
            Decoded payload dict or None if invalid
        """
        try:
            return jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[getattr(settings, 'JWT_ALGORITHM', 'HS256')]
            )
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired JWT")
            return None
        except jwt.InvalidTokenError:
            logger.info("Rejected invalid JWT")
            return None

    @classmethod
    def get_user_from_payload(cls, payload: Dict[str, Any]) -> Optional[User]:
        """Return the active user named by a decoded token payload."""
        user_id = payload.get('user_id')
        if not user_id:
            return None

        try:
            return User.objects.get(id=user_id, is_active=True)
        except (User.DoesNotExist, ValueError, DjangoValidationError):
            # Malformed UUIDs raise ValidationError from the field
            return None

    @classmethod
    def get_user_from_jwt(cls, token: str) -> Optional[User]:
        """
        Extract and return user from JWT token.

        Args:
            token: JWT token string

        Returns:
            User instance or None if invalid
        """
        payload = cls.validate_jwt(token)
        if not payload:
            return None
        return cls.get_user_from_payload(payload)


class MembershipService:
    """
    Service for tenant membership questions asked by the module access layer.
    """

    @classmethod
    @store_errors_as_failure
    def get_membership(cls, tenant, user) -> Optional[TenantUser]:
        """Return the active membership of ``user`` in ``tenant``, or None."""
        if user is None:
            return None
        return TenantUser.objects.get_membership(tenant, user)

    @classmethod
    @store_errors_as_failure
    def get_active_user(cls, user_id) -> Optional[User]:
        """Return the active user with ``user_id``, or None."""
        return User.objects.active().filter(id=user_id).first()

    @classmethod
    def get_role(cls, tenant, user) -> Optional[str]:
        """Return the role ``user`` holds in ``tenant``, or None for non-members."""
        membership = cls.get_membership(tenant, user)
        return membership.role if membership else None

    @classmethod
    def require_member(cls, tenant, user) -> TenantUser:
        """
        Return the membership of a target user, or raise UserNotInTenant.
        """
        membership = cls.get_membership(tenant, user)
        if membership is None:
            raise UserNotInTenant(
                'User is not a member of this tenant',
                details={'tenant_id': str(tenant.id), 'user_id': str(getattr(user, 'id', user))}
            )
        return membership

    @classmethod
    def can_manage_modules(cls, tenant, user) -> bool:
        """Owner/admin members and platform super-admins manage module access."""
        if user is None or not getattr(user, 'is_authenticated', False):
            return False
        if user.is_superuser:
            return True
        return cls.get_role(tenant, user) in TenantRole.admin_roles()

    @classmethod
    def require_module_admin(cls, tenant, user, action: str, request=None):
        """Raise Forbidden unless ``user`` may edit module access for ``tenant``."""
        if cls.can_manage_modules(tenant, user):
            return

        SecurityLogger.log_permission_denied(
            user=user,
            tenant=tenant,
            action=action,
            ip_address=request.META.get('REMOTE_ADDR') if request is not None else None,
        )
        raise Forbidden(
            'Only tenant owners, admins or platform super-admins may change module access',
            details={'action': action}
        )
