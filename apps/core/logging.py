"""
Custom logging formatters for structured JSON logging.
"""
import json
import logging
import re
import traceback
from datetime import datetime, timezone as dt_timezone
from django.utils import timezone
import sentry_sdk


class PIIMasker:
    """
    Utility class to mask sensitive PII data in logs.
    """

    EMAIL_PATTERN = re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b')
    BEARER_PATTERN = re.compile(r'(Bearer\s+)[A-Za-z0-9\-_\.]+', re.IGNORECASE)
    SECRET_PATTERN = re.compile(r'(token|secret|password|authorization)["\']?\s*[:=]\s*["\']?([^"\'\s,}]+)', re.IGNORECASE)

    # Sensitive field names that should be masked
    SENSITIVE_FIELDS = {
        'email', 'email_address', 'user_email',
        'password', 'password_hash',
        'token', 'access_token', 'refresh_token', 'authorization',
        'secret', 'secret_key',
    }

    @classmethod
    def mask_email(cls, text):
        """Mask email addresses in text."""
        if not isinstance(text, str):
            return text

        def mask_email_match(match):
            username, _, domain = match.group(0).partition('@')
            if len(username) > 1:
                username = username[0] + '*' * (len(username) - 1)
            return f"{username}@{domain}"
        return cls.EMAIL_PATTERN.sub(mask_email_match, text)

    @classmethod
    def mask_secrets(cls, text):
        """Mask bearer tokens and key/value secrets in text."""
        if not isinstance(text, str):
            return text
        text = cls.BEARER_PATTERN.sub(r'\1********', text)
        return cls.SECRET_PATTERN.sub(r'\1: ********', text)

    @classmethod
    def mask_text(cls, text):
        """Apply all masking patterns to text."""
        if not isinstance(text, str):
            return text
        return cls.mask_secrets(cls.mask_email(text))

    @classmethod
    def mask_dict(cls, data):
        """Recursively mask sensitive data in dictionaries."""
        if not isinstance(data, dict):
            return data

        masked = {}
        for key, value in data.items():
            if key.lower() in cls.SENSITIVE_FIELDS:
                if key.lower().endswith('email') and isinstance(value, str):
                    masked[key] = cls.mask_email(value)
                elif value and not isinstance(value, (dict, list)):
                    masked[key] = '********'
                else:
                    masked[key] = value
            elif isinstance(value, dict):
                masked[key] = cls.mask_dict(value)
            elif isinstance(value, list):
                masked[key] = [
                    cls.mask_dict(item) if isinstance(item, dict) else cls.mask_text(item)
                    for item in value
                ]
            elif isinstance(value, str):
                masked[key] = cls.mask_text(value)
            else:
                masked[key] = value

        return masked


class MaskingFormatter(logging.Formatter):
    """Plain text formatter that masks PII in the rendered line."""

    def format(self, record):
        return PIIMasker.mask_text(super().format(record))


# LogRecord attributes that are never copied as extra fields
RESERVED_ATTRS = frozenset([
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs', 'message',
    'pathname', 'process', 'processName', 'relativeCreated',
    'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info',
    'taskName', 'request_id', 'tenant_id',
])


class JSONFormatter(logging.Formatter):
    """
    Format log records as JSON for structured logging.
    Includes request_id and tenant_id from extra fields if available.
    Automatically masks sensitive PII data.
    """

    def format(self, record):
        log_data = {
            'timestamp': datetime.now(dt_timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': PIIMasker.mask_text(record.getMessage()),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if getattr(record, 'request_id', None):
            log_data['request_id'] = record.request_id

        if getattr(record, 'tenant_id', None):
            log_data['tenant_id'] = str(record.tenant_id)

        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': PIIMasker.mask_text(str(record.exc_info[1])),
                'traceback': [PIIMasker.mask_text(line) for line in traceback.format_exception(*record.exc_info)],
            }

        # Add any extra fields
        for key, value in record.__dict__.items():
            if key in RESERVED_ATTRS or key.startswith('_'):
                continue
            if isinstance(value, dict):
                value = PIIMasker.mask_dict(value)
            elif isinstance(value, str):
                value = PIIMasker.mask_text(value)
            elif isinstance(value, (set, frozenset)):
                value = sorted(str(item) for item in value)
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = PIIMasker.mask_text(str(value))

        return json.dumps(log_data)


class SecurityLogger:
    """
    Centralized security event logging.

    Events go to the ``security`` logger with structured, masked context.
    Critical events are also sent to Sentry for real-time alerting.
    """

    CRITICAL_EVENTS = {
        'cross_tenant_write_attempt',
    }

    @staticmethod
    def log_event(event_type: str, level: str = 'warning', **context):
        """
        Log a security event with structured data.

        Args:
            event_type: Type of security event (e.g., 'module_admin_denied')
            level: Log level ('info', 'warning', 'error', 'critical')
            **context: Additional context data (user_id, tenant_id, etc.)
        """
        logger = logging.getLogger('security')

        log_data = {
            'event_type': event_type,
            'timestamp': timezone.now().isoformat(),
        }
        log_data.update(context)
        log_data = PIIMasker.mask_dict(log_data)

        log_method = getattr(logger, level, logger.warning)
        log_method(
            f"Security event: {event_type}",
            extra=log_data
        )

        if event_type in SecurityLogger.CRITICAL_EVENTS:
            sentry_sdk.capture_message(
                f"Critical security event: {event_type}",
                level='error',
            )

    @staticmethod
    def log_permission_denied(user, tenant, action: str, ip_address: str = None):
        """
        Log a denied admin action on module access settings.

        Args:
            user: User instance attempting the action
            tenant: Tenant instance the action targeted
            action: Action name (e.g., 'save_role_matrix')
            ip_address: IP address of the request
        """
        SecurityLogger.log_event(
            'module_admin_denied',
            level='warning',
            user_id=str(user.id) if user else None,
            tenant_id=str(tenant.id) if tenant else None,
            action=action,
            ip_address=ip_address
        )

    @staticmethod
    def log_cross_tenant_attempt(actor, tenant, target_user_id, ip_address: str = None):
        """
        Log an attempt to write overrides for a user outside the tenant.

        This is critical: it means an admin of one tenant tried to touch
        a user that belongs elsewhere (or nowhere).
        """
        SecurityLogger.log_event(
            'cross_tenant_write_attempt',
            level='error',
            actor_id=str(actor.id) if actor else None,
            tenant_id=str(tenant.id) if tenant else None,
            target_user_id=str(target_user_id),
            ip_address=ip_address
        )
