"""
DRF 认证类 - Authorization: Bearer <access_token>
"""

import logging

from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication, get_authorization_header

from ..exceptions import AuthenticationError
from ..services.auth_service import AuthService


logger = logging.getLogger(__name__)


class JWTAuthentication(BaseAuthentication):
    """
    JWT 认证

    每次请求都从数据库重新加载主体，令牌中的角色和租户不作为授权依据
    """

    keyword = 'Bearer'

    def __init__(self):
        self.auth_service = AuthService()

    def authenticate(self, request):
        auth = get_authorization_header(request).split()

        if not auth or auth[0].lower() != self.keyword.lower().encode():
            return None

        if len(auth) != 2:
            raise exceptions.AuthenticationFailed('Invalid token header')

        try:
            token = auth[1].decode()
        except UnicodeError:
            raise exceptions.AuthenticationFailed('Invalid token header')

        try:
            user = self.auth_service.get_principal_from_token(token)
        except AuthenticationError as e:
            logger.info(f"JWT authentication failed: {e.error_code}")
            raise exceptions.AuthenticationFailed(e.message, code=e.error_code)

        return user, token

    def authenticate_header(self, request):
        return self.keyword
