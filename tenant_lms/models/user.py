"""
用户模型
"""

from django.contrib.auth.base_user import BaseUserManager
from django.contrib.auth.hashers import check_password, make_password
from django.core.exceptions import ValidationError
from django.db import models

from .base import BaseModel, ImmutableTenantMixin
from ..constants import EXEMPT_ROLE, ROLE_STUDENT, USER_ROLES
from ..tenancy.scoping import TenantQuerySet, tenant_owned


class UserManager(BaseUserManager.from_queryset(TenantQuerySet)):
    """自定义用户管理器"""

    def create_user(self, email, password=None, **extra_fields):
        """创建普通用户"""
        if not email:
            raise ValueError('Email is required')

        user = self.model(
            email=self.normalize_email(email).lower(),
            **extra_fields
        )
        if password:
            user.password_hash = make_password(password)
        user.full_clean(exclude=['password_hash'])
        user.save(using=self._db)
        return user

    def create_super_admin(self, email, password=None, **extra_fields):
        """创建跨租户超级管理员"""
        extra_fields['role'] = EXEMPT_ROLE
        extra_fields.setdefault('tenant', None)
        extra_fields.setdefault('is_active', True)
        return self.create_user(email, password, **extra_fields)


@tenant_owned(field='tenant_id')
class User(ImmutableTenantMixin, BaseModel):
    """
    用户模型 - 充当请求主体 (id / role / tenant_id)

    非 super_admin 用户必须绑定租户；创建后租户不可变
    """

    email = models.EmailField(
        max_length=255,
        unique=True,
        db_index=True
    )
    password_hash = models.CharField(
        max_length=255
    )
    name = models.CharField(
        max_length=255,
        blank=True,
        default=''
    )
    role = models.CharField(
        max_length=50,
        choices=[(role, role) for role in USER_ROLES],
        default=ROLE_STUDENT,
        help_text="用户角色"
    )
    tenant = models.ForeignKey(
        'Tenant',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='users',
        help_text="所属租户，仅 super_admin 可为空"
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True
    )
    last_login_at = models.DateTimeField(
        null=True,
        blank=True
    )

    objects = UserManager()

    class Meta(BaseModel.Meta):
        db_table = 'lms_user'
        indexes = [
            models.Index(fields=['tenant', 'role'], name='lms_user_tenant_role_idx'),
            models.Index(fields=['tenant', 'email'], name='lms_user_tenant_email_idx'),
        ]

    def __str__(self):
        return self.email

    def clean(self):
        if self.role != EXEMPT_ROLE and self.tenant_id is None:
            raise ValidationError({'tenant': 'Non super_admin users must belong to a tenant'})

    def set_password(self, password):
        """设置密码"""
        self.password_hash = make_password(password)
        self.save(update_fields=['password_hash', 'updated_at'])

    def check_password(self, password):
        """验证密码"""
        return check_password(password, self.password_hash)

    @property
    def is_anonymous(self):
        """是否匿名用户"""
        return False

    @property
    def is_authenticated(self):
        """已认证"""
        return True

    @property
    def is_super_admin(self):
        return self.role == EXEMPT_ROLE

    @property
    def display_name(self):
        """显示名称"""
        return self.name or self.email
