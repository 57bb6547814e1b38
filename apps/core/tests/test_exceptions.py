"""
Tests for the platform exception handler and store failure translation.
"""
import pytest
from django.db import DatabaseError, OperationalError
from rest_framework import exceptions as drf_exceptions
from rest_framework.test import APIRequestFactory

from apps.core.exceptions import (
    custom_exception_handler, store_errors_as_failure,
    Forbidden, StoreFailure, TenantNotFound, UserNotInTenant, ValidationError,
)


@pytest.fixture
def context():
    request = APIRequestFactory().get('/v1/modules')
    request.request_id = 'req-123'
    return {'request': request, 'view': None}


class TestExceptionHandler:
    """Every error leaves the API in the same envelope."""

    @pytest.mark.parametrize('exc,status_code,code', [
        (Forbidden('nope'), 403, 'FORBIDDEN'),
        (TenantNotFound('missing'), 404, 'TENANT_NOT_FOUND'),
        (UserNotInTenant('elsewhere'), 403, 'USER_NOT_IN_TENANT'),
        (StoreFailure('down'), 503, 'STORE_FAILURE'),
        (ValidationError('bad'), 400, 'VALIDATION_ERROR'),
    ])
    def test_platform_exceptions(self, context, exc, status_code, code):
        response = custom_exception_handler(exc, context)

        assert response.status_code == status_code
        assert response.data['error']['code'] == code
        assert response.data['error']['message'] == exc.message
        assert response.data['request_id'] == 'req-123'

    def test_details_are_passed_through(self, context):
        exc = ValidationError('Unknown module ids', details={'unknown_modules': ['payroll']})

        response = custom_exception_handler(exc, context)

        assert response.data['error']['details'] == {'unknown_modules': ['payroll']}

    def test_drf_validation_error(self, context):
        exc = drf_exceptions.ValidationError({'tenant': ['This field is required.']})

        response = custom_exception_handler(exc, context)

        assert response.status_code == 400
        assert response.data['error']['code'] == 'VALIDATION_ERROR'
        assert response.data['error']['details'] == {'tenant': ['This field is required.']}

    def test_drf_not_authenticated(self, context):
        response = custom_exception_handler(drf_exceptions.NotAuthenticated(), context)

        assert response.status_code in (401, 403)
        assert response.data['error']['code'] == 'UNAUTHENTICATED'

    def test_unexpected_exception_becomes_500(self, context):
        response = custom_exception_handler(RuntimeError('boom'), context)

        assert response.status_code == 500
        assert response.data['error']['code'] == 'INTERNAL_ERROR'
        assert 'boom' not in response.data['error']['message']


class TestStoreErrorsAsFailure:
    """Database errors become explicit StoreFailure."""

    def test_database_error_is_translated(self):
        @store_errors_as_failure
        def read_matrix():
            raise OperationalError('connection lost')

        with pytest.raises(StoreFailure) as exc_info:
            read_matrix()

        assert exc_info.value.details == {'operation': 'read_matrix'}
        assert isinstance(exc_info.value.__cause__, DatabaseError)

    def test_platform_exceptions_pass_through(self):
        @store_errors_as_failure
        def lookup():
            raise TenantNotFound('Tenant not found')

        with pytest.raises(TenantNotFound):
            lookup()

    def test_return_value_is_kept(self):
        @store_errors_as_failure
        def resolve():
            return {'crm'}

        assert resolve() == {'crm'}
