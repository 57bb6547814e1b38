"""
Custom DRF authentication classes.
"""
from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication, get_authorization_header


class JWTAuthentication(BaseAuthentication):
    """
    DRF authentication class for ``Authorization: Bearer <jwt>`` headers.

    Tokens are issued by the identity provider and only consumed here.
    A missing header means "anonymous" (views then answer 401 through
    IsAuthenticated); a present but invalid token fails immediately.
    """

    keyword = 'Bearer'

    def authenticate(self, request):
        """
        Return (user, payload) for a valid bearer token.

        Returns:
            tuple: (user, token payload) if authenticated, None if no header
        """
        from apps.rbac.services import AuthService

        auth = get_authorization_header(request).split()
        if not auth or auth[0].lower() != self.keyword.lower().encode():
            return None

        if len(auth) != 2:
            raise exceptions.AuthenticationFailed('Invalid Authorization header.')

        try:
            token = auth[1].decode()
        except UnicodeError:
            raise exceptions.AuthenticationFailed('Invalid token encoding.')

        payload = AuthService.validate_jwt(token)
        if payload is None:
            raise exceptions.AuthenticationFailed('Invalid or expired token.')

        user = AuthService.get_user_from_payload(payload)
        if user is None:
            raise exceptions.AuthenticationFailed('User not found or inactive.')

        return (user, payload)

    def authenticate_header(self, request):
        return self.keyword
