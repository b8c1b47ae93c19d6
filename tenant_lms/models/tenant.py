"""
租户模型
"""

import copy
import uuid

from django.db import models

from .base import BaseModel
from ..constants import DEFAULT_TENANT_SETTINGS, TENANT_STATUSES
from ..tenancy.scoping import TenantQuerySet, tenant_owned


def generate_tenant_id():
    """生成租户ID，形如 t1a2b3c4d5e6"""
    return f"t{uuid.uuid4().hex[:12]}"


@tenant_owned(field='id')
class Tenant(BaseModel):
    """
    租户模型 - 隔离边界

    租户在带外创建，隔离核心只引用不修改；
    settings 为不透明的结构化数据（通用、品牌、功能开关、主题、安全）
    """

    id = models.CharField(
        primary_key=True,
        max_length=64,
        default=generate_tenant_id,
        editable=False
    )
    name = models.CharField(
        max_length=255,
        help_text="租户名称"
    )
    domain = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
        help_text="租户域名"
    )
    description = models.TextField(
        blank=True,
        default='',
        help_text="租户描述"
    )
    status = models.CharField(
        max_length=20,
        choices=[(v, k) for k, v in TENANT_STATUSES.items()],
        default=TENANT_STATUSES['ACTIVE'],
        db_index=True,
        help_text="状态: active | inactive | suspended"
    )
    settings = models.JSONField(
        default=dict,
        blank=True,
        help_text="租户设置 {general, branding, features, theme, security}"
    )

    objects = TenantQuerySet.as_manager()

    class Meta(BaseModel.Meta):
        db_table = 'lms_tenant'

    def __str__(self):
        return f"{self.name} ({self.id})"

    @property
    def is_active(self):
        return self.status == TENANT_STATUSES['ACTIVE']

    def get_section(self, section):
        """获取某个设置分区，合并默认值"""
        merged = copy.deepcopy(DEFAULT_TENANT_SETTINGS.get(section, {}))
        merged.update((self.settings or {}).get(section, {}))
        return merged

    @property
    def timezone(self):
        return self.get_section('general').get('timezone', 'UTC')

    @property
    def language(self):
        return self.get_section('general').get('language', 'en')
