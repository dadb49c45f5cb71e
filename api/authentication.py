"""
JWT authentication for staff and customer sessions
"""
import logging

from django.conf import settings
from rest_framework import authentication, exceptions

from apps.accounts.models import Customer, Staff
from apps.core.exceptions import AuthenticationException
from apps.accounts.tokens import decode_token

logger = logging.getLogger(__name__)

PRINCIPAL_MODELS = {
    'staff': Staff,
    'customer': Customer,
}


class JWTAuthentication(authentication.BaseAuthentication):
    """
    Reads the token from ``Authorization: Bearer <token>`` or, failing
    that, from the auth cookie, and resolves it to a Staff or Customer.
    """
    keyword = 'Bearer'

    def _get_token(self, request):
        header = authentication.get_authorization_header(request).decode('utf-8', errors='ignore')
        if header:
            parts = header.split()
            if len(parts) == 2 and parts[0] == self.keyword:
                return parts[1]
            raise exceptions.AuthenticationFailed('Invalid Authorization header')
        return request.COOKIES.get(settings.AUTH_COOKIE_NAME)

    def authenticate(self, request):
        token = self._get_token(request)
        if not token:
            return None

        try:
            payload = decode_token(token)
        except AuthenticationException as e:
            raise exceptions.AuthenticationFailed(e.message)

        model = PRINCIPAL_MODELS.get(payload.get('type'))
        if model is None:
            raise exceptions.AuthenticationFailed('Invalid token type')

        principal = model.objects.filter(pk=payload.get('id')).first()
        if principal is None:
            raise exceptions.AuthenticationFailed('Account not found')
        if not principal.is_active:
            raise exceptions.AuthenticationFailed('Account is deactivated')

        return principal, payload

    def authenticate_header(self, request):
        return self.keyword
