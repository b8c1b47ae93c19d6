"""
租户隔离的上下文值对象

RequestContext: 路由层提供的请求元数据（租户提示头、系统上下文标记）
ScopeContext: 单次数据访问的作用域，每次操作重新计算，不跨操作缓存
"""

from dataclasses import dataclass
from typing import Any, Optional

from ..constants import (
    SCOPE_DENIED,
    SCOPE_DETACHED,
    SCOPE_EXEMPT,
    SCOPE_SYSTEM,
    SCOPE_TENANT,
    SCOPE_UNRESOLVED,
)


def normalize_tenant_id(value: Any) -> Optional[str]:
    """统一租户ID表示：空值为None，其余转为去空白字符串"""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


@dataclass(frozen=True)
class RequestContext:
    """请求上下文"""

    tenant_hint: Optional[str] = None
    # 显式的系统上下文（后台任务等），解析不到租户时允许不过滤
    system: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'tenant_hint', normalize_tenant_id(self.tenant_hint))

    @classmethod
    def from_request(cls, request) -> 'RequestContext':
        """从 Django/DRF request 读取租户提示头"""
        from ..conf import lms_settings

        existing = getattr(request, 'tenant_context', None)
        if isinstance(existing, cls):
            return existing

        headers = getattr(request, 'headers', None) or {}
        return cls(tenant_hint=headers.get(lms_settings.TENANT_HEADER))

    @classmethod
    def system_context(cls, tenant_hint: Optional[str] = None) -> 'RequestContext':
        return cls(tenant_hint=tenant_hint, system=True)


EMPTY_CONTEXT = RequestContext()


@dataclass(frozen=True)
class ScopeContext:
    """
    单次操作的作用域

    tenant_id 为 None 且未被拒绝时表示不施加租户条件
    """

    tenant_id: Optional[str]
    reason: str

    @property
    def unrestricted(self) -> bool:
        return self.tenant_id is None and self.reason != SCOPE_DENIED

    @property
    def deny_all(self) -> bool:
        return self.reason == SCOPE_DENIED

    @classmethod
    def for_tenant(cls, tenant_id) -> 'ScopeContext':
        return cls(tenant_id=normalize_tenant_id(tenant_id), reason=SCOPE_TENANT)

    @classmethod
    def exempt(cls) -> 'ScopeContext':
        return cls(tenant_id=None, reason=SCOPE_EXEMPT)

    @classmethod
    def system(cls) -> 'ScopeContext':
        return cls(tenant_id=None, reason=SCOPE_SYSTEM)

    @classmethod
    def unresolved(cls) -> 'ScopeContext':
        return cls(tenant_id=None, reason=SCOPE_UNRESOLVED)

    @classmethod
    def denied(cls) -> 'ScopeContext':
        return cls(tenant_id=None, reason=SCOPE_DENIED)

    @classmethod
    def detached(cls) -> 'ScopeContext':
        return cls(tenant_id=None, reason=SCOPE_DETACHED)
