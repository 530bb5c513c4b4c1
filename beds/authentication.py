"""
Token authentication for the bed board clients.

Kept apart from the views so DRF can import it from settings without
pulling in view modules. JWT bearer tokens issued at login are accepted
by ``rest_framework_simplejwt.authentication.JWTAuthentication``, which
is listed next to this class in ``REST_FRAMEWORK``.
"""
from __future__ import annotations

from rest_framework import authentication, exceptions


class TokenAuthentication(authentication.TokenAuthentication):
    """``Authorization: Token <key>`` for staff accounts."""

    keyword = 'Token'

    def authenticate_credentials(self, key):
        user, token = super().authenticate_credentials(key)
        if not getattr(user, 'role', None):
            raise exceptions.AuthenticationFailed('Account has no role assigned.')
        return user, token
