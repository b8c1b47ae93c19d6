"""
用户管理服务
"""

import logging
from typing import Any, Dict, Optional

from django.contrib.auth.hashers import make_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db.models import Q

from .base import TenantScopedService
from ..conf import lms_settings
from ..constants import ACTION_DELETE, ACTION_UPDATE, AUDIT_ACTIONS, USER_MANAGER_ROLES, USER_ROLES
from ..exceptions import (
    EmailAlreadyExistsError,
    PermissionDenied,
    TenantMismatchError,
    TenantNotFoundError,
    ValidationError,
)
from ..models import AuditLog, Tenant, User
from ..tenancy import RequestContext, guarded_mutation, is_exempt, normalize_tenant_id


logger = logging.getLogger(__name__)


class UserService(TenantScopedService):
    """
    用户管理服务

    租户内用户只能看到并管理本租户用户；super_admin 不受限制
    """

    model = User

    def list_users(
        self,
        principal,
        request_context: Optional[RequestContext] = None,
        role: Optional[str] = None,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        page: Any = 1,
        per_page: Any = None
    ) -> Dict[str, Any]:
        """用户列表"""
        queryset = self.repository.queryset(principal, request_context)
        if role:
            queryset = queryset.filter(role=role)
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        if search:
            queryset = queryset.filter(Q(email__icontains=search) | Q(name__icontains=search))
        return self.paginate(queryset, page, per_page)

    def get_user(self, principal, request_context, user_id) -> User:
        return self.get_scoped(principal, request_context, user_id)

    @staticmethod
    def _is_self(principal, user: User) -> bool:
        return str(user.pk) == str(getattr(principal, 'id', ''))

    @staticmethod
    def _require_manager(principal, operation: str):
        if getattr(principal, 'role', None) not in USER_MANAGER_ROLES:
            raise PermissionDenied(f"Only {', '.join(USER_MANAGER_ROLES)} can {operation}")

    @staticmethod
    def _validate_role(principal, role: str):
        if role not in USER_ROLES:
            raise ValidationError(f"Invalid role: {role}")
        if role == lms_settings.EXEMPT_ROLE and not is_exempt(principal):
            raise PermissionDenied(f"Only {lms_settings.EXEMPT_ROLE} can grant the {role} role")

    @staticmethod
    def _validate_password(password: str):
        min_length = lms_settings.PASSWORD_MIN_LENGTH
        if not password or len(password) < min_length:
            raise ValidationError(f"Password must be at least {min_length} characters long")

    def create_user(self, principal, request_context, data: Dict[str, Any]) -> User:
        """
        创建用户

        非 super_admin 用户写入作用域租户；super_admin 用户没有租户

        Args:
            data: email, password, name, role, is_active, tenant_id
        """
        self._require_manager(principal, "create users")

        email = (data.get('email') or '').strip().lower()
        try:
            validate_email(email)
        except DjangoValidationError:
            raise ValidationError(f"Invalid email: {email}")
        self._validate_password(data.get('password'))

        role = data.get('role') or 'student'
        self._validate_role(principal, role)

        if User.objects.filter(email=email).exists():
            raise EmailAlreadyExistsError("Email already exists")

        values = {
            'email': email,
            'password_hash': make_password(data['password']),
            'name': data.get('name') or '',
            'role': role,
            'is_active': data.get('is_active', True),
        }

        if role == lms_settings.EXEMPT_ROLE:
            user = User.objects.create(tenant=None, **values)
        else:
            tenant_id = normalize_tenant_id(data.get('tenant_id'))
            if tenant_id is not None and not Tenant.objects.filter(pk=tenant_id).exists():
                raise TenantNotFoundError(f"Tenant not found: {tenant_id}")
            if tenant_id is not None:
                values['tenant_id'] = tenant_id
            user = self.repository.create(principal, request_context, **values)

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['USER_CREATED'],
            resource_type='user',
            resource_id=user.id,
            metadata={'email': user.email, 'role': user.role},
            tenant_id=user.tenant_id
        )
        self.log(principal).info(f"User created: {user.email} role={user.role} tenant={user.tenant_id}")
        return user

    @guarded_mutation(ACTION_UPDATE)
    def update_user(self, principal, request_context, user: User, data: Dict[str, Any]) -> User:
        """
        更新用户；租户不可修改

        管理员可以修改本租户用户；其他角色只能修改自己的资料，不能修改自己的角色和状态
        """
        is_self = self._is_self(principal, user)
        if not is_self:
            self._require_manager(principal, "update other users")

        if 'tenant_id' in data and normalize_tenant_id(data['tenant_id']) != user.tenant_id:
            raise TenantMismatchError("tenant_id of a user is immutable")

        if 'role' in data and data['role'] != user.role:
            if is_self:
                raise PermissionDenied("Cannot change your own role")
            self._validate_role(principal, data['role'])
            if data['role'] != lms_settings.EXEMPT_ROLE and user.tenant_id is None:
                raise ValidationError("Non super_admin users must belong to a tenant")
            user.role = data['role']

        if 'name' in data:
            user.name = data['name'] or ''
        if 'is_active' in data:
            if is_self and bool(data['is_active']) != user.is_active:
                raise PermissionDenied("Cannot change your own active status")
            user.is_active = bool(data['is_active'])
        if 'email' in data:
            email = (data['email'] or '').strip().lower()
            try:
                validate_email(email)
            except DjangoValidationError:
                raise ValidationError(f"Invalid email: {email}")
            if User.objects.filter(email=email).exclude(pk=user.pk).exists():
                raise EmailAlreadyExistsError("Email already exists")
            user.email = email
        if data.get('password'):
            self._validate_password(data['password'])
            user.password_hash = make_password(data['password'])

        user.save()

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['USER_UPDATED'],
            resource_type='user',
            resource_id=user.id,
            metadata={'fields': sorted(k for k in data.keys() if k != 'password')},
            tenant_id=user.tenant_id
        )
        return user

    @guarded_mutation(ACTION_DELETE)
    def delete_user(self, principal, request_context, user: User) -> bool:
        """删除用户，不能删除自己"""
        if self._is_self(principal, user):
            raise ValidationError("Cannot delete your own account")
        self._require_manager(principal, "delete users")

        user_id = user.id
        email = user.email
        tenant_id = user.tenant_id
        user.delete()

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['USER_DELETED'],
            resource_type='user',
            resource_id=user_id,
            metadata={'email': email},
            tenant_id=tenant_id
        )
        self.log(principal).info(f"User deleted: {email}")
        return True
