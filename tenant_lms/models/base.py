"""
基础模型类
"""

import uuid

from django.db import models

from ..exceptions import TenantMismatchError
from ..tenancy.scoping import TenantQuerySet


class BaseModel(models.Model):
    """基础模型类"""

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )
    created_at = models.DateTimeField(
        auto_now_add=True
    )
    updated_at = models.DateTimeField(
        auto_now=True
    )

    class Meta:
        abstract = True
        ordering = ['-created_at']


_UNLOADED = object()


class ImmutableTenantMixin:
    """
    租户不可变：实例从数据库加载或首次保存后，tenant_id 不允许再变化

    允许租户为空的模型（如 super_admin 用户）同样适用：空租户也不能改为某个租户
    """

    tenant_field = 'tenant_id'

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_tenant_id = instance.__dict__.get(cls.tenant_field, _UNLOADED)
        return instance

    def save(self, *args, **kwargs):
        loaded = getattr(self, '_loaded_tenant_id', _UNLOADED)
        current = getattr(self, self.tenant_field)
        if loaded is not _UNLOADED and current != loaded:
            raise TenantMismatchError(
                f"tenant_id of {self.__class__.__name__} {self.pk} is immutable "
                f"({loaded} -> {current})"
            )
        super().save(*args, **kwargs)
        self._loaded_tenant_id = current


class TenantOwnedModel(ImmutableTenantMixin, BaseModel):
    """
    租户归属模型基类

    - tenant 外键非空，指向已存在的租户
    - 创建后租户不可变（不允许重新归属）
    - objects 为不过滤的管理器，业务代码通过 TenantScopedRepository 访问
    """

    tenant = models.ForeignKey(
        'Tenant',
        on_delete=models.CASCADE,
        related_name='+',
        help_text="所属租户"
    )

    objects = TenantQuerySet.as_manager()

    class Meta(BaseModel.Meta):
        abstract = True
