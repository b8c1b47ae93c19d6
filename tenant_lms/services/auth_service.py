"""
认证服务
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

import jwt
from django.utils import timezone

from ..conf import is_feature_enabled, lms_settings
from ..constants import (
    AUDIT_ACTIONS,
    ROLE_STUDENT,
    TOKEN_TYPE_ACCESS,
    TOKEN_TYPE_REFRESH,
)
from ..exceptions import (
    AuthenticationError,
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    PermissionDenied,
    TenantNotFoundError,
    TokenExpiredError,
    TokenInvalidError,
    UserInactiveError,
    ValidationError,
)
from ..models import AuditLog, Tenant, User
from ..tenancy import RequestContext, normalize_tenant_id


logger = logging.getLogger(__name__)


class AuthService:
    """
    认证服务

    认证发生在租户作用域之前，因此这里按邮箱/ID直接查询用户
    """

    @property
    def jwt_settings(self) -> Dict[str, Any]:
        return {
            'secret_key': lms_settings.JWT_SECRET_KEY,
            'algorithm': lms_settings.JWT_ALGORITHM,
            'access_token_lifetime': lms_settings.JWT_ACCESS_TOKEN_LIFETIME,
            'refresh_token_lifetime': lms_settings.JWT_REFRESH_TOKEN_LIFETIME,
        }

    def generate_tokens(self, user: User) -> Dict[str, str]:
        """
        生成访问令牌和刷新令牌

        令牌中的 role / tenant_id 仅供客户端展示，服务端每次请求都重新加载用户

        Args:
            user: 用户对象

        Returns:
            Dict[str, str]: 包含access_token和refresh_token的字典
        """
        jwt_settings = self.jwt_settings
        now = timezone.now()

        access_token_payload = {
            'user_id': str(user.id),
            'email': user.email,
            'role': user.role,
            'tenant_id': user.tenant_id,
            'token_type': TOKEN_TYPE_ACCESS,
            'iat': int(now.timestamp()),
            'exp': int((now + timedelta(seconds=jwt_settings['access_token_lifetime'])).timestamp()),
        }

        refresh_token_payload = {
            'user_id': str(user.id),
            'token_type': TOKEN_TYPE_REFRESH,
            'iat': int(now.timestamp()),
            'exp': int((now + timedelta(seconds=jwt_settings['refresh_token_lifetime'])).timestamp()),
        }

        access_token = jwt.encode(
            access_token_payload,
            jwt_settings['secret_key'],
            algorithm=jwt_settings['algorithm']
        )

        refresh_token = jwt.encode(
            refresh_token_payload,
            jwt_settings['secret_key'],
            algorithm=jwt_settings['algorithm']
        )

        return {
            'access_token': access_token,
            'refresh_token': refresh_token,
            'token_type': 'Bearer',
            'expires_in': jwt_settings['access_token_lifetime'],
        }

    def verify_token(self, token: str) -> Dict[str, Any]:
        """
        验证JWT令牌

        Raises:
            TokenExpiredError: 令牌过期
            TokenInvalidError: 令牌无效
        """
        jwt_settings = self.jwt_settings
        try:
            return jwt.decode(
                token,
                jwt_settings['secret_key'],
                algorithms=[jwt_settings['algorithm']]
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except jwt.InvalidTokenError:
            raise TokenInvalidError("Invalid token")

    @staticmethod
    def serialize_user(user: User) -> Dict[str, Any]:
        return {
            'id': str(user.id),
            'email': user.email,
            'name': user.name,
            'display_name': user.display_name,
            'role': user.role,
            'tenant_id': user.tenant_id,
            'is_active': user.is_active,
            'last_login_at': user.last_login_at.isoformat() if user.last_login_at else None,
            'created_at': user.created_at.isoformat() if user.created_at else None,
        }

    def authenticate_user(self, email: str, password: str, ip_address: str = None, user_agent: str = None) -> Dict[str, Any]:
        """
        用户认证

        Raises:
            InvalidCredentialsError: 邮箱或密码错误
            UserInactiveError: 用户未激活
        """
        try:
            user = User.objects.get(email=(email or '').lower())
        except User.DoesNotExist:
            AuditLog.log_action(
                user=None,
                action=AUDIT_ACTIONS['USER_LOGIN'],
                resource_type='user',
                metadata={'email': email, 'success': False, 'reason': 'user_not_found'},
                ip_address=ip_address,
                user_agent=user_agent
            )
            raise InvalidCredentialsError("Invalid credentials")

        if not user.is_active:
            AuditLog.log_action(
                user=user,
                action=AUDIT_ACTIONS['USER_LOGIN'],
                resource_type='user',
                metadata={'success': False, 'reason': 'user_inactive'},
                ip_address=ip_address,
                user_agent=user_agent
            )
            raise UserInactiveError("User account is inactive")

        if not user.check_password(password):
            AuditLog.log_action(
                user=user,
                action=AUDIT_ACTIONS['USER_LOGIN'],
                resource_type='user',
                metadata={'success': False, 'reason': 'invalid_password'},
                ip_address=ip_address,
                user_agent=user_agent
            )
            raise InvalidCredentialsError("Invalid credentials")

        user.last_login_at = timezone.now()
        user.save(update_fields=['last_login_at', 'updated_at'])

        AuditLog.log_action(
            user=user,
            action=AUDIT_ACTIONS['USER_LOGIN'],
            resource_type='user',
            resource_id=user.id,
            metadata={'success': True},
            ip_address=ip_address,
            user_agent=user_agent
        )
        logger.info(f"User logged in: {user.email} (tenant={user.tenant_id})")

        return {
            'success': True,
            'user': self.serialize_user(user),
            **self.generate_tokens(user)
        }

    def register_user(
        self,
        email: str,
        password: str,
        name: str = '',
        tenant_id: Optional[str] = None,
        request_context: Optional[RequestContext] = None,
        ip_address: str = None,
        user_agent: str = None
    ) -> Dict[str, Any]:
        """
        学生自助注册

        租户取显式参数或请求头提示；自助注册只能得到 student 角色

        Raises:
            EmailAlreadyExistsError: 邮箱已存在
            TenantNotFoundError: 租户不存在或未激活
            ValidationError: 参数错误
        """
        if not is_feature_enabled('registration'):
            raise PermissionDenied("Registration is disabled")
        if not email:
            raise ValidationError("Email is required")
        self.validate_password(password)

        tenant_id = normalize_tenant_id(tenant_id) or (request_context or RequestContext()).tenant_hint
        if tenant_id is None:
            raise ValidationError("A tenant is required to register")

        try:
            tenant = Tenant.objects.get(pk=tenant_id)
        except Tenant.DoesNotExist:
            raise TenantNotFoundError(f"Tenant not found: {tenant_id}")
        if not tenant.is_active:
            raise TenantNotFoundError(f"Tenant is not active: {tenant_id}")

        if User.objects.filter(email=email.lower()).exists():
            raise EmailAlreadyExistsError("Email already exists")

        user = User.objects.create_user(
            email=email,
            password=password,
            name=name or '',
            role=ROLE_STUDENT,
            tenant=tenant
        )

        AuditLog.log_action(
            user=user,
            action=AUDIT_ACTIONS['USER_REGISTERED'],
            resource_type='user',
            resource_id=user.id,
            metadata={'email': user.email},
            ip_address=ip_address,
            user_agent=user_agent
        )
        logger.info(f"User registered: {user.email} (tenant={tenant.id})")

        return {
            'success': True,
            'user': self.serialize_user(user),
            **self.generate_tokens(user)
        }

    def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]:
        """
        刷新访问令牌

        Raises:
            TokenExpiredError: 刷新令牌过期
            TokenInvalidError: 刷新令牌无效
            UserInactiveError: 用户未激活
        """
        payload = self.verify_token(refresh_token)

        if payload.get('token_type') != TOKEN_TYPE_REFRESH:
            raise TokenInvalidError("Invalid token type")

        try:
            user = User.objects.get(id=payload['user_id'])
        except (User.DoesNotExist, KeyError):
            raise TokenInvalidError("User not found")

        if not user.is_active:
            raise UserInactiveError("User account is inactive")

        return {
            'success': True,
            **self.generate_tokens(user)
        }

    def get_principal_from_token(self, token: str) -> User:
        """
        从访问令牌加载主体

        Raises:
            AuthenticationError: 令牌无效、过期，或用户不存在/未激活
        """
        payload = self.verify_token(token)

        if payload.get('token_type') != TOKEN_TYPE_ACCESS:
            raise TokenInvalidError("Invalid token type")

        try:
            user = User.objects.select_related('tenant').get(id=payload['user_id'])
        except (User.DoesNotExist, KeyError):
            raise TokenInvalidError("User not found")

        if not user.is_active:
            raise UserInactiveError("User account is inactive")

        return user

    def get_user_from_token(self, token: str) -> Optional[User]:
        """从token获取用户，失败返回None"""
        try:
            return self.get_principal_from_token(token)
        except AuthenticationError:
            return None

    def change_password(self, user: User, old_password: str, new_password: str) -> bool:
        """
        修改密码

        Raises:
            InvalidCredentialsError: 原密码错误
            ValidationError: 新密码不符合要求
        """
        if not user.check_password(old_password):
            raise InvalidCredentialsError("Current password is incorrect")

        self.validate_password(new_password)
        user.set_password(new_password)
        logger.info(f"Password changed: {user.email}")
        return True

    @staticmethod
    def validate_password(password: str):
        min_length = lms_settings.PASSWORD_MIN_LENGTH
        if not password or len(password) < min_length:
            raise ValidationError(f"Password must be at least {min_length} characters long")
