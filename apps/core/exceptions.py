"""
Platform exception hierarchy and the DRF exception handler.

Every error leaves the API as::

    {"error": {"code": ..., "message": ..., "details": {...}}, "request_id": ...}

so clients can tell "failed to resolve" apart from "resolved to nothing".
"""
import logging
from functools import wraps
from django.db import DatabaseError
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from rest_framework import exceptions as drf_exceptions

logger = logging.getLogger(__name__)


class PlatformException(Exception):
    """Base exception for platform-specific errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = 'PLATFORM_ERROR'

    def __init__(self, message, details=None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class Unauthenticated(PlatformException):
    """Raised when no caller identity is present."""
    status_code = status.HTTP_401_UNAUTHORIZED
    code = 'UNAUTHENTICATED'


class Forbidden(PlatformException):
    """Raised when the caller is identified but lacks the required role."""
    status_code = status.HTTP_403_FORBIDDEN
    code = 'FORBIDDEN'


class TenantNotFound(PlatformException):
    """Raised when tenant cannot be resolved."""
    status_code = status.HTTP_404_NOT_FOUND
    code = 'TENANT_NOT_FOUND'


class UserNotInTenant(PlatformException):
    """Raised when a target user has no active membership in the tenant."""
    status_code = status.HTTP_403_FORBIDDEN
    code = 'USER_NOT_IN_TENANT'


class StoreFailure(PlatformException):
    """Raised when the backing store fails during a read or a replace."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = 'STORE_FAILURE'


class ValidationError(PlatformException):
    """Raised when input validation fails."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = 'VALIDATION_ERROR'


# DRF exceptions mapped onto the platform error codes
DRF_ERROR_CODES = {
    drf_exceptions.NotAuthenticated: 'UNAUTHENTICATED',
    drf_exceptions.AuthenticationFailed: 'UNAUTHENTICATED',
    drf_exceptions.PermissionDenied: 'FORBIDDEN',
    drf_exceptions.ValidationError: 'VALIDATION_ERROR',
    drf_exceptions.ParseError: 'VALIDATION_ERROR',
    drf_exceptions.NotFound: 'NOT_FOUND',
    drf_exceptions.MethodNotAllowed: 'METHOD_NOT_ALLOWED',
}


def _error_body(code, message, details, request_id):
    return {
        'error': {
            'code': code,
            'message': message,
            'details': details,
        },
        'request_id': request_id,
    }


def custom_exception_handler(exc, context):
    """
    Custom exception handler that logs errors and returns consistent format.

    Platform exceptions carry their own status and code. Framework exceptions
    go through DRF's handler first (so auth headers such as WWW-Authenticate
    are kept) and are then reshaped. Anything else becomes a 500.
    """
    request = context.get('request')
    request_id = getattr(request, 'request_id', None) if request else None
    log_extra = {
        'request_id': request_id,
        'path': request.path if request else None,
        'method': request.method if request else None,
    }

    if isinstance(exc, PlatformException):
        level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
        logger.log(
            level,
            f"API Exception: {exc.__class__.__name__}: {exc.message}",
            extra={**log_extra, 'error_code': exc.code},
            exc_info=exc.status_code >= 500,
        )
        return Response(
            _error_body(exc.code, exc.message, exc.details, request_id),
            status=exc.status_code,
        )

    # Call DRF's default exception handler first
    response = exception_handler(exc, context)

    if response is None:
        logger.error(
            f"Unhandled API Exception: {exc.__class__.__name__}",
            extra={**log_extra, 'exception': str(exc)},
            exc_info=True
        )
        return Response(
            _error_body('INTERNAL_ERROR', 'An unexpected error occurred', {}, request_id),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    logger.warning(
        f"API Exception: {exc.__class__.__name__}",
        extra={**log_extra, 'status_code': response.status_code},
    )

    code = 'ERROR'
    for exc_class, mapped_code in DRF_ERROR_CODES.items():
        if isinstance(exc, exc_class):
            code = mapped_code
            break

    if isinstance(exc, drf_exceptions.ValidationError):
        message = 'Invalid request data'
        details = response.data
    else:
        message = str(getattr(exc, 'detail', exc))
        details = {}

    response.data = _error_body(code, message, details, request_id)
    return response


def store_errors_as_failure(func):
    """
    Decorator translating backing store errors into StoreFailure.

    Applied to service entry points so a database outage surfaces as an
    explicit 503 instead of an empty or partial module list.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DatabaseError as e:
            logger.error(
                f"Store failure in {func.__qualname__}: {e}",
                extra={'operation': func.__qualname__},
                exc_info=True
            )
            raise StoreFailure(
                'The module access store is unavailable',
                details={'operation': func.__name__}
            ) from e
    return wrapper
