# apps/accounts/authentication.py

from django.utils.translation import gettext_lazy as _
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, AuthenticationFailed


class CustomJWTAuthentication(JWTAuthentication):
    """
    JWT Authentication with active user and role consistency checks.
    """

    def authenticate(self, request):
        header = self.get_header(request)
        if header is None:
            return None

        raw_token = self.get_raw_token(header)
        if raw_token is None:
            return None

        try:
            validated_token = self.get_validated_token(raw_token)
        except InvalidToken:
            raise AuthenticationFailed(_('Token is invalid or expired.'))

        user = self.get_user(validated_token)

        if not user or not user.is_active:
            raise AuthenticationFailed(_('User account is disabled.'))

        # A role change invalidates tokens issued for the old role
        token_role = validated_token.get("role")
        if token_role and token_role != user.role:
            raise AuthenticationFailed(_('Role changed. Please login again.'))

        return (user, validated_token)
