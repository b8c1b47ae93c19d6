"""
租户设置服务

设置按分区存储（general / branding / features / theme / security），
读取时与默认值合并并缓存，更新后清除缓存
"""

import copy
import logging
from typing import Any, Dict, Optional

from django.core.cache import cache

from .base import TenantScopedService
from ..conf import lms_settings
from ..constants import (
    ACTION_UPDATE,
    AUDIT_ACTIONS,
    DEFAULT_TENANT_SETTINGS,
    SETTINGS_MANAGER_ROLES,
    TENANT_SETTINGS_CACHE_KEY,
    TENANT_SETTINGS_SECTIONS,
)
from ..exceptions import PermissionDenied, ValidationError
from ..models import AuditLog, Tenant
from ..tenancy import RequestContext, guarded_mutation, resolve_tenant_id


logger = logging.getLogger(__name__)


class TenantSettingsService(TenantScopedService):
    """租户设置服务"""

    model = Tenant

    @staticmethod
    def _cache_key(tenant_id: str) -> str:
        return lms_settings.get_cache_key(TENANT_SETTINGS_CACHE_KEY, tenant_id)

    @staticmethod
    def merge_with_defaults(stored: Optional[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
        """逐分区合并默认值"""
        base_defaults = copy.deepcopy(DEFAULT_TENANT_SETTINGS)
        overrides = lms_settings.DEFAULT_TENANT_SETTINGS or {}
        stored = stored or {}

        merged = {}
        for section in TENANT_SETTINGS_SECTIONS:
            values = base_defaults.get(section, {})
            values.update(copy.deepcopy(overrides.get(section, {})))
            values.update(stored.get(section, {}))
            merged[section] = values
        return merged

    def target_tenant_id(self, principal, request_context: Optional[RequestContext], tenant_id=None) -> str:
        """目标租户：显式参数优先，否则取解析出的租户"""
        target = tenant_id or resolve_tenant_id(principal, request_context)
        if not target:
            raise ValidationError("A tenant is required to read or update settings")
        return str(target)

    def get_settings(self, principal, request_context: Optional[RequestContext] = None, tenant_id=None) -> Dict[str, Any]:
        """
        获取租户设置（合并默认值，带缓存）

        Raises:
            NotFoundError: 租户不存在或不在作用域内
            PermissionDenied: 无权查看该租户
        """
        target = self.target_tenant_id(principal, request_context, tenant_id)
        tenant = self.get_scoped(principal, request_context, target)

        cache_key = self._cache_key(tenant.id)
        cached = cache.get(cache_key)
        if cached is not None:
            return cached

        result = {
            'tenant_id': tenant.id,
            'name': tenant.name,
            'settings': self.merge_with_defaults(tenant.settings),
        }
        cache.set(cache_key, result, lms_settings.CACHE_TIMEOUT)
        return result

    @guarded_mutation(ACTION_UPDATE)
    def update_settings(self, principal, request_context, tenant: Tenant, data: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        """
        按分区更新租户设置

        调用时传入租户ID（见 target_tenant_id）；只有管理员和 super_admin 可以修改

        Args:
            data: {section: {key: value}}，只允许已知分区
        """
        if getattr(principal, 'role', None) not in SETTINGS_MANAGER_ROLES:
            raise PermissionDenied("Only administrators can update tenant settings")

        if not isinstance(data, dict) or not data:
            raise ValidationError("Settings payload must be a non-empty object")

        unknown = set(data) - set(TENANT_SETTINGS_SECTIONS)
        if unknown:
            raise ValidationError(f"Unknown settings sections: {', '.join(sorted(unknown))}")

        stored = copy.deepcopy(tenant.settings or {})
        for section, values in data.items():
            if not isinstance(values, dict):
                raise ValidationError(f"Settings section {section} must be an object")
            section_values = stored.get(section, {})
            section_values.update(values)
            stored[section] = section_values

        tenant.settings = stored
        tenant.save(update_fields=['settings', 'updated_at'])
        cache.delete(self._cache_key(tenant.id))

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['TENANT_SETTINGS_UPDATED'],
            resource_type='tenant',
            resource_id=tenant.id,
            metadata={'sections': sorted(data.keys())},
            tenant_id=tenant.id
        )
        self.log(principal).info(f"Tenant settings updated: {tenant.id} sections={sorted(data.keys())}")

        return {
            'tenant_id': tenant.id,
            'name': tenant.name,
            'settings': self.merge_with_defaults(tenant.settings),
        }

    def clear_cache(self, tenant_id: str):
        cache.delete(self._cache_key(tenant_id))
