"""
Tenant LMS 日志工具

- TenantLoggerAdapter: 在每条日志的 extra 中写入 tenant_id / user_id
- TenantContextFilter: 为没有租户信息的日志记录补默认值，便于 LOGGING 格式化
"""

import logging
from typing import Optional


class TenantContextFilter(logging.Filter):
    """保证日志记录上总有 tenant_id / user_id 字段"""

    def filter(self, record):
        if not hasattr(record, 'tenant_id'):
            record.tenant_id = '-'
        if not hasattr(record, 'user_id'):
            record.user_id = '-'
        return True


class TenantLoggerAdapter(logging.LoggerAdapter):
    """带租户上下文的日志适配器"""

    def process(self, msg, kwargs):
        extra = dict(self.extra)
        extra.update(kwargs.get('extra') or {})
        kwargs['extra'] = extra
        return msg, kwargs

    def bind(self, principal=None, tenant_id: Optional[str] = None) -> 'TenantLoggerAdapter':
        """基于主体生成新的适配器"""
        extra = dict(self.extra)
        if principal is not None:
            extra['user_id'] = str(getattr(principal, 'id', '-'))
            extra['tenant_id'] = str(getattr(principal, 'tenant_id', None) or '-')
        if tenant_id is not None:
            extra['tenant_id'] = str(tenant_id)
        return self.__class__(self.logger, extra)


def get_tenant_logger(name: str, principal=None, tenant_id: Optional[str] = None) -> TenantLoggerAdapter:
    """获取带租户上下文的日志对象"""
    adapter = TenantLoggerAdapter(logging.getLogger(name), {'tenant_id': '-', 'user_id': '-'})
    if principal is not None or tenant_id is not None:
        adapter = adapter.bind(principal=principal, tenant_id=tenant_id)
    return adapter
