"""
审计日志模型
"""

import logging

from django.db import models

from .base import BaseModel


logger = logging.getLogger(__name__)


class AuditLog(BaseModel):
    """
    审计日志模型

    记录所属租户以便按租户查询；super_admin 或系统操作的租户可为空
    """

    tenant = models.ForeignKey(
        'Tenant',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='audit_logs',
        help_text="所属租户"
    )
    user = models.ForeignKey(
        'User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs',
        help_text="操作用户"
    )
    action = models.CharField(
        max_length=100,
        db_index=True,
        help_text="操作类型"
    )
    resource_type = models.CharField(
        max_length=50,
        null=True,
        blank=True,
        help_text="资源类型"
    )
    resource_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="资源ID"
    )
    ip_address = models.GenericIPAddressField(
        null=True,
        blank=True,
        help_text="IP地址"
    )
    user_agent = models.TextField(
        null=True,
        blank=True,
        help_text="User Agent"
    )
    metadata = models.JSONField(
        default=dict,
        help_text="附加元数据"
    )

    class Meta(BaseModel.Meta):
        db_table = 'lms_audit_log'
        indexes = [
            models.Index(fields=['tenant', 'created_at'], name='lms_audit_tenant_created_idx'),
            models.Index(fields=['user'], name='lms_audit_user_idx'),
            models.Index(fields=['resource_type', 'resource_id'], name='lms_audit_resource_idx'),
        ]

    def __str__(self):
        return f"{self.user_id} - {self.action} - {self.created_at}"

    @classmethod
    def log_action(
        cls,
        user,
        action,
        resource_type=None,
        resource_id=None,
        ip_address=None,
        user_agent=None,
        metadata=None,
        tenant_id=None
    ):
        """
        记录操作日志

        user 可以是任意主体对象；只有持久化的 User 才会写入外键
        """
        from ..conf import is_feature_enabled
        from .user import User

        if not is_feature_enabled('audit_log'):
            return None

        metadata = dict(metadata or {})
        if user is not None and not isinstance(user, User):
            metadata.setdefault('principal_id', str(getattr(user, 'id', '')))
            principal_tenant = getattr(user, 'tenant_id', None)
            user = None
        else:
            principal_tenant = getattr(user, 'tenant_id', None)

        from .tenant import Tenant

        tenant_id = tenant_id or principal_tenant
        if tenant_id is not None and not Tenant.objects.filter(pk=tenant_id).exists():
            metadata.setdefault('tenant_id', str(tenant_id))
            tenant_id = None

        return cls.objects.create(
            tenant_id=tenant_id,
            user=user,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            ip_address=ip_address,
            user_agent=user_agent,
            metadata=metadata
        )

    @classmethod
    def log_user_action(cls, user, action, request=None, **kwargs):
        """记录用户操作"""
        ip_address = None
        user_agent = None

        if request:
            ip_address = cls._get_client_ip(request)
            user_agent = request.META.get('HTTP_USER_AGENT', '')

        return cls.log_action(
            user=user,
            action=action,
            ip_address=ip_address,
            user_agent=user_agent,
            **kwargs
        )

    @staticmethod
    def _get_client_ip(request):
        """获取客户端IP地址"""
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            ip = x_forwarded_for.split(',')[0].strip()
        else:
            ip = request.META.get('REMOTE_ADDR')
        return ip

    @classmethod
    def get_tenant_logs(cls, tenant_id, limit=50, action=None):
        """获取租户操作日志"""
        queryset = cls.objects.filter(tenant_id=tenant_id)

        if action:
            queryset = queryset.filter(action=action)

        return queryset.order_by('-created_at')[:limit]
